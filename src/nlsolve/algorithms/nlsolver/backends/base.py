"""Define the base class of the iteration caches.

A cache is the scheme-specific half of a nonlinear solve: it owns whatever
workspace the scheme needs (Jacobian, factorized iteration matrix, ...) and
turns the current iterate ``z`` into a candidate ``gz``. The driver treats
it as opaque.
"""

from abc import abstractmethod

import numpy as np

from nlsolve.algorithms.nlsolver.integrator import has_destats
from nlsolve.algorithms.types.core import _NLBaseBackend


class _NLSolverCache(_NLBaseBackend):
    """Abstract base class for iteration caches.

    Subclasses implement :meth:`perform_step` and may override
    :meth:`initialize`, which runs once per solve before the first
    iterate.
    """

    def initialize(self, state, integrator) -> None:
        """Prepare the cache for a new solve."""
        return None

    @abstractmethod
    def perform_step(self, state, integrator) -> None:
        """Write the next candidate ``state.gz`` computed from ``state.z``."""
        ...

    def _stage_value(self, state, z=None):
        """Return ``tmp + gamma * z`` for the current (or given) iterate."""
        z = state.z if z is None else z
        return state.tmp + state.gamma * z

    def _stage_time(self, state, integrator) -> float:
        return integrator.t + state.c * integrator.dt

    def _scaled_rhs(self, state, integrator, z=None):
        """Evaluate ``dt * f(tmp + gamma * z, p, t + c * dt)``."""
        u = self._stage_value(state, z)
        du = integrator.f(u, integrator.p, self._stage_time(state, integrator))
        if has_destats(integrator):
            integrator.destats.nf += 1
        if state.is_inplace:
            return integrator.dt * np.asarray(du, dtype=float).reshape(np.shape(state.z))
        return integrator.dt * float(np.asarray(du, dtype=float).reshape(()))

    def _store_candidate(self, state, gz) -> None:
        if state.is_inplace:
            np.copyto(state.gz, gz)
        else:
            state.gz = float(gz)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"
