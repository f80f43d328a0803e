"""Define the engine driving a nonlinear solve to a terminal status.

The engine owns no numerical state: everything lives on the
:class:`~nlsolve.algorithms.nlsolver.state.NLSolverState` it is handed,
and the iteration scheme is the cache attached to that state.
"""

import numpy as np

from nlsolve.algorithms.nlsolver.convergence import check_status
from nlsolve.algorithms.nlsolver.engine.base import _NLSolveEngineBase
from nlsolve.algorithms.nlsolver.integrator import has_destats
from nlsolve.algorithms.nlsolver.types import NLStatus, nlsolvefail
from nlsolve.algorithms.types.exceptions import EngineError
from nlsolve.utils.log_config import logger


class _NLSolveEngine(_NLSolveEngineBase):
    """Engine solving ``dt * f(tmp + gamma * z, p, t + c * dt) = z``.

    Subclasses may override :meth:`initial_eta` to seed the rate estimate
    differently, or any phase method to change how it runs.
    """

    def _run(self, state, integrator):
        try:
            self.preamble(state, integrator)

            while state.status is NLStatus.CONVERGING:
                # (possibly modify and) accept step
                self.apply_step(state, integrator)

                # compute next iterate
                self.perform_step(state, integrator)

                # check convergence and divergence criteria
                self.check_status(state, integrator)
        except Exception:
            # an interrupted loop has no verdict
            state.status = None
            raise

        return self.postamble(state, integrator)

    def initial_eta(self, state, integrator) -> float:
        """Seed of the rate estimate; carries over the state's value."""
        return state.eta

    def preamble(self, state, integrator) -> None:
        state.iter = 0
        if state.config.max_iters == 0:
            # no iterate is ever computed, so no cache is needed
            state.status = NLStatus.MAX_ITERS_REACHED
            return

        cache = state.get_cache()
        state.status = NLStatus.CONVERGING
        state.eta = self.initial_eta(state, integrator)
        cache.initialize(state, integrator)

    def apply_step(self, state, integrator) -> None:
        if state.iter > 0:
            if state.is_inplace:
                np.copyto(state.z, state.gz)
            else:
                state.z = state.gz

        state.iter += 1
        if has_destats(integrator):
            integrator.destats.nnonliniter += 1

    def perform_step(self, state, integrator) -> None:
        state.get_cache().perform_step(state, integrator)

    def check_status(self, state, integrator) -> None:
        state.status = check_status(state, integrator)
        logger.debug(
            "nlsolve iter %d: |dz|=%.3e eta=%.3e -> %s",
            state.iter, state.ndz, state.eta, state.status.name,
        )
        state.get_cache().on_iteration(state.iter, state.z, state.ndz)

    def postamble(self, state, integrator):
        fail_convergence = nlsolvefail(state)
        if fail_convergence and has_destats(integrator):
            integrator.destats.nnonlinconvfail += 1
        integrator.force_stepfail = fail_convergence

        cache = state.cache
        if cache is not None:
            hook = cache.on_failure if fail_convergence else cache.on_accept
            hook(state.z, iterations=state.iter, residual_norm=state.ndz)

        return state.z

    def _handle_failure(self, exc: Exception, state=None, *args, **kwargs) -> None:
        raise EngineError(
            f"Nonlinear solve interrupted at iteration "
            f"{getattr(state, 'iter', '?')}: {exc}"
        ) from exc
