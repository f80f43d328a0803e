"""Collaborator contract between the nonlinear solver and its integrator.

The solver never owns the time-stepping loop. It reads the problem data,
tolerances and the success counter from an integrator object and writes
statistics and the step-failure flag back. :class:`IntegratorContext` is a
ready-made container satisfying :class:`IntegratorProtocol`.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, Union, runtime_checkable

import numpy as np

from nlsolve.algorithms.nlsolver.residuals import ode_default_norm
from nlsolve.algorithms.nlsolver.types import JacobianFn, NormFn, RhsFn
from nlsolve.algorithms.types.core import _NLBaseConfig


@dataclass
class DEStats:
    """Counters incremented by the solver and its caches.

    Attributes
    ----------
    nf : int
        Right-hand side evaluations.
    njacs : int
        Jacobian evaluations (analytic or finite-difference).
    nw : int
        Iteration-matrix factorizations.
    nsolve : int
        Linear solves with the iteration matrix.
    nnonliniter : int
        Nonlinear iterations performed.
    nnonlinconvfail : int
        Nonlinear solves that ended in a failed status.
    """
    nf: int = 0
    njacs: int = 0
    nw: int = 0
    nsolve: int = 0
    nnonliniter: int = 0
    nnonlinconvfail: int = 0


@dataclass(frozen=True, eq=False)
class IntegratorOptions(_NLBaseConfig):
    """Tolerance configuration consumed by the residual weighting.

    Parameters
    ----------
    abstol : float or ndarray, default=1e-6
        Absolute tolerance, scalar or per component.
    reltol : float or ndarray, default=1e-3
        Relative tolerance, scalar or per component.
    internalnorm : NormFn, default=ode_default_norm
        Norm ``internalnorm(u, t)`` applied to the weighted residual.

    Raises
    ------
    ValueError
        If a tolerance is negative or both vanish for some component.
    """
    abstol: Union[float, np.ndarray] = 1e-6
    reltol: Union[float, np.ndarray] = 1e-3
    internalnorm: NormFn = ode_default_norm

    def _validate(self) -> None:
        """Validate the tolerances."""
        abstol = np.asarray(self.abstol, dtype=float)
        reltol = np.asarray(self.reltol, dtype=float)
        if np.any(abstol < 0) or np.any(reltol < 0):
            raise ValueError("abstol and reltol must be non-negative.")
        if not np.all(abstol + reltol > 0):
            raise ValueError("abstol and reltol cannot both vanish.")
        if not callable(self.internalnorm):
            raise ValueError("internalnorm must be callable.")


@runtime_checkable
class IntegratorProtocol(Protocol):
    """Protocol for the integrator collaborating with a nonlinear solve.

    Attributes
    ----------
    f : RhsFn
        Right-hand side ``f(u, p, t)``.
    p : Any
        Parameters forwarded to ``f``.
    t : float
        Time at the start of the step.
    dt : float
        Step size.
    opts : IntegratorOptions
        Tolerances and internal norm.
    destats : DEStats or None
        Statistics, or None when the integrator does not collect them.
    force_stepfail : bool
        Written by the solver: True when the last solve failed.
    success_iter : int
        Number of successful outer steps so far; read by the solver.
    """
    f: RhsFn
    p: Any
    t: float
    dt: float
    opts: IntegratorOptions
    destats: Optional[DEStats]
    force_stepfail: bool
    success_iter: int


def has_destats(integrator) -> bool:
    """Return True when *integrator* collects statistics."""
    return getattr(integrator, "destats", None) is not None


@dataclass
class IntegratorContext:
    """Minimal integrator state a nonlinear solve needs.

    Parameters
    ----------
    f : RhsFn
        Right-hand side ``f(u, p, t)``.
    t : float
        Time at the start of the step.
    dt : float
        Step size.
    p : Any, optional
        Parameters forwarded to ``f`` and ``jac``.
    opts : IntegratorOptions, optional
        Tolerances and internal norm.
    destats : DEStats or None, optional
        Statistics; pass None to disable collection.
    jac : JacobianFn or None, optional
        Analytic Jacobian of ``f`` with respect to ``u``. Newton caches fall
        back to finite differences when it is None.
    success_iter : int, default=0
        Successful outer steps so far. The solver only reads it; the outer
        integrator increments it when it accepts a step.

    Examples
    --------
    >>> ctx = IntegratorContext(f=lambda u, p, t: -u, t=0.0, dt=0.1)
    >>> ctx.force_stepfail
    False
    """
    f: RhsFn
    t: float
    dt: float
    p: Any = None
    opts: IntegratorOptions = field(default_factory=IntegratorOptions)
    destats: Optional[DEStats] = field(default_factory=DEStats)
    jac: Optional[JacobianFn] = None
    success_iter: int = 0
    force_stepfail: bool = False
