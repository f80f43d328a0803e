"""User-facing entry points of the nonlinear solver.

:func:`nlsolve` is the bare driver an implicit integrator calls once per
stage: it mutates the state and the integrator and returns the accepted
iterate. :class:`NonlinearSolver` wraps the same driver behind the facade
pattern used across the package and returns an :class:`NLSolveResult`.
"""

import copy
from typing import Literal, Optional

import numpy as np

from nlsolve.algorithms.nlsolver.backends import (_FunctionalIterationCache,
                                                  _ModifiedNewtonCache,
                                                  _NewtonCache,
                                                  _NLSolverCache)
from nlsolve.algorithms.nlsolver.config import NLSolverConfig
from nlsolve.algorithms.nlsolver.engine import _NLSolveEngine
from nlsolve.algorithms.nlsolver.residuals import check_tolerances
from nlsolve.algorithms.nlsolver.state import NLSolverState
from nlsolve.algorithms.nlsolver.types import Iterate, NLSolveResult
from nlsolve.algorithms.types.core import _NLBaseFacade
from nlsolve.utils.log_config import logger

Method = Literal["newton", "modified_newton", "functional"]

_CACHES = {
    "newton": _NewtonCache,
    "modified_newton": _ModifiedNewtonCache,
    "functional": _FunctionalIterationCache,
}

_DEFAULT_ENGINE = _NLSolveEngine()


def make_cache(method: Method = "newton", **kwargs) -> _NLSolverCache:
    """Build the iteration cache for *method*.

    Parameters
    ----------
    method : {'newton', 'modified_newton', 'functional'}, default='newton'
        Iteration scheme.
    **kwargs
        Forwarded to the cache constructor (``fd_step`` for Newton caches).

    Raises
    ------
    ValueError
        If *method* is unknown.
    """
    try:
        cache_cls = _CACHES[method]
    except KeyError:
        raise ValueError(
            f"Unknown method: {method!r}. Must be one of {sorted(_CACHES)}."
        ) from None
    return cache_cls(**kwargs)


def nlsolve(state: NLSolverState, integrator, engine: Optional[_NLSolveEngine] = None) -> Iterate:
    """Solve ``dt * f(tmp + gamma * z, p, t + c * dt) = z`` for ``z``.

    Runs the convergence loop on *state* until its status is terminal,
    updates the integrator's statistics and ``force_stepfail`` flag, and
    returns the last accepted iterate whatever the outcome. Branch on
    ``state.status`` or ``integrator.force_stepfail`` to decide what to do
    with it.

    Parameters
    ----------
    state : NLSolverState
        State with the initial guess and an attached cache.
    integrator : IntegratorProtocol
        Collaborating integrator.
    engine : _NLSolveEngine, optional
        Engine to run; the default engine carries no state and is shared.

    Returns
    -------
    ndarray or float
        ``state.z`` itself (not a copy).

    Raises
    ------
    EngineError
        If a user callback raised while iterating. ``state.status`` is
        reset to None in that case.
    ValueError
        If the integrator's tolerances do not broadcast to the shape of
        ``state.z``.
    """
    opts = integrator.opts
    check_tolerances(opts.abstol, opts.reltol, np.shape(state.z))

    engine = _DEFAULT_ENGINE if engine is None else engine
    return engine.solve(state, integrator)


class NonlinearSolver(_NLBaseFacade[NLSolverConfig, _NLSolveEngine, NLSolveResult]):
    """Facade for building states and running nonlinear solves.

    Parameters
    ----------
    config : NLSolverConfig
        Stopping-rule configuration given to the states it builds.
    engine : _NLSolveEngine
        Engine running the solves.
    method : {'newton', 'modified_newton', 'functional'}, default='newton'
        Iteration scheme of the states it builds.

    Examples
    --------
    >>> import numpy as np
    >>> from nlsolve import IntegratorContext, NonlinearSolver
    >>> solver = NonlinearSolver.with_default_engine(method="newton")
    >>> ctx = IntegratorContext(f=lambda u, p, t: -u, t=0.0, dt=0.1)
    >>> state = solver.build_state(np.zeros(2), np.ones(2), gamma=1.0)
    >>> result = solver.solve(state, ctx)
    >>> result.converged
    True
    """

    def __init__(self, config: NLSolverConfig, engine: _NLSolveEngine, *, method: Method = "newton", **cache_kwargs) -> None:
        super().__init__(config, engine)
        # fresh states get a deep copy of this unused cache
        self._cache_template = make_cache(method, **cache_kwargs)
        self._method = method

    @classmethod
    def with_default_engine(cls, *, config: Optional[NLSolverConfig] = None, method: Method = "newton", **cache_kwargs) -> "NonlinearSolver":
        return cls(config or NLSolverConfig(), _NLSolveEngine(), method=method, **cache_kwargs)

    @property
    def method(self) -> str:
        return self._method

    def build_state(self, z0: Iterate, tmp: Iterate, *, gamma: float, c: float = 1.0) -> NLSolverState:
        """Create a state carrying this solver's configuration and scheme."""
        return NLSolverState(
            z0,
            tmp,
            gamma=gamma,
            c=c,
            config=self._config,
            cache=copy.deepcopy(self._cache_template),
        )

    def solve(self, state: NLSolverState, integrator) -> NLSolveResult:
        """Run one nonlinear solve and package its outcome.

        Parameters
        ----------
        state : NLSolverState
            State to solve; typically from :meth:`build_state`.
        integrator : IntegratorProtocol
            Collaborating integrator.

        Returns
        -------
        NLSolveResult
            Copy of the accepted iterate with the terminal status and the
            iteration diagnostics.
        """
        z = nlsolve(state, integrator, engine=self._engine)
        result = NLSolveResult(
            z=np.copy(z) if isinstance(z, np.ndarray) else float(z),
            status=state.status,
            iterations=state.iter,
            eta=float(state.eta),
            residual_norm=float(state.ndz),
        )
        if result.converged:
            logger.debug(
                "Nonlinear solve converged after %d iterations (|dz|=%.2e, status=%s)",
                result.iterations, result.residual_norm, result.status.name,
            )
        else:
            logger.info(
                "Nonlinear solve failed after %d iterations (|dz|=%.2e, status=%s)",
                result.iterations, result.residual_norm, result.status.name,
            )
        self._results = result
        return result
