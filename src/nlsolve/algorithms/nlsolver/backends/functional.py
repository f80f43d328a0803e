"""Provide the functional (fixed-point) iteration cache."""

from nlsolve.algorithms.nlsolver.backends.base import _NLSolverCache


class _FunctionalIterationCache(_NLSolverCache):
    """Fixed-point iteration ``gz = dt * f(tmp + gamma * z, p, t + c * dt)``.

    Needs no Jacobian and no linear algebra; converges only when
    ``dt * gamma`` times the Lipschitz constant of ``f`` is below one, so it
    suits non-stiff problems.
    """

    def perform_step(self, state, integrator) -> None:
        self._store_candidate(state, self._scaled_rhs(state, integrator))
