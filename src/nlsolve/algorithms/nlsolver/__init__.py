"""Provide the convergence controller of implicit time-stepping methods.

The :mod:`~nlsolve.algorithms.nlsolver` package solves, once per implicit
stage, the nonlinear equation

    dt * f(tmp + gamma * z, p, t + c * dt) = z

for the increment ``z``. A pluggable iteration scheme (full Newton,
modified Newton or functional iteration) produces successive iterates; the
controller estimates the asymptotic contraction rate from consecutive
residual norms and stops as soon as the iteration has converged, diverged,
become hopelessly slow, or exhausted its budget.

Examples
-------------
Solve one backward-Euler stage of ``u' = -50 u``:

>>> import numpy as np
>>> from nlsolve.algorithms.nlsolver import (IntegratorContext, NLSolverConfig,
...                                          NonlinearSolver)
>>> solver = NonlinearSolver.with_default_engine(config=NLSolverConfig(max_iters=7))
>>> ctx = IntegratorContext(f=lambda u, p, t: -50.0 * u, t=0.0, dt=0.1)
>>> state = solver.build_state(np.zeros(1), np.ones(1), gamma=1.0)
>>> result = solver.solve(state, ctx)

Drivers of a hand-written integrator call :func:`nlsolve` directly and
branch on ``integrator.force_stepfail``:

>>> from nlsolve.algorithms.nlsolver import nlsolve
>>> z = nlsolve(state, ctx)

------------

The controller never raises on a failed solve; failures are terminal
members of :class:`NLStatus`.

See Also
--------
:mod:`~nlsolve.algorithms.nlsolver.convergence`
    The stopping rule.
:mod:`~nlsolve.algorithms.nlsolver.backends`
    The iteration schemes.
"""

from .backends import (_FunctionalIterationCache, _ModifiedNewtonCache,
                       _NewtonCache, _NLSolverCache)
from .base import NonlinearSolver, make_cache, nlsolve
from .config import NLSolverConfig
from .convergence import check_status, norm_of_residuals
from .engine import _NLSolveEngine
from .integrator import (DEStats, IntegratorContext, IntegratorOptions,
                         IntegratorProtocol)
from .residuals import (calculate_residuals, check_tolerances,
                        ode_default_norm)
from .state import NLSolverState
from .types import NLSolveResult, NLStatus, nlsolvefail

__all__ = [
    "NonlinearSolver",
    "nlsolve",
    "make_cache",

    "NLSolverConfig",
    "NLSolverState",
    "NLStatus",
    "NLSolveResult",
    "nlsolvefail",

    "check_status",
    "norm_of_residuals",
    "calculate_residuals",
    "check_tolerances",
    "ode_default_norm",

    "DEStats",
    "IntegratorContext",
    "IntegratorOptions",
    "IntegratorProtocol",

    "_NLSolveEngine",
    "_NLSolverCache",
    "_NewtonCache",
    "_ModifiedNewtonCache",
    "_FunctionalIterationCache",
]
