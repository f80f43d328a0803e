"""Provide Newton and modified-Newton iteration caches.

Both schemes solve ``G(z) = dt * f(tmp + gamma * z, p, t + c * dt) - z = 0``
with the iteration matrix ``W = I - dt * gamma * J`` where ``J`` is the
Jacobian of ``f`` at the stage value. The full Newton cache rebuilds ``W``
at every iterate; the modified-Newton cache builds it once per solve.
"""

import warnings
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
from scipy.linalg import LinAlgWarning, lu_factor, lu_solve

from nlsolve.algorithms.nlsolver.backends.base import _NLSolverCache
from nlsolve.algorithms.nlsolver.integrator import has_destats
from nlsolve.algorithms.types.exceptions import BackendError
from nlsolve.utils.log_config import logger


@dataclass
class _IterationMatrix:
    """Iteration matrix and its LU factors (None when singular)."""
    W: np.ndarray
    lu_piv: Optional[Tuple[np.ndarray, np.ndarray]]


def _as_vector(u) -> np.ndarray:
    return np.atleast_1d(np.asarray(u, dtype=float))


class _NewtonCache(_NLSolverCache):
    """Full Newton iteration: a fresh iteration matrix at every iterate.

    Parameters
    ----------
    fd_step : float, default=1e-8
        Relative step of the forward-difference Jacobian used when the
        integrator provides no ``jac``.

    Notes
    -----
    A singular iteration matrix does not abort the solve: the update is
    taken as the least-squares solution, and a non-finite matrix yields a
    NaN candidate that the convergence check reports as divergence.
    """

    reuse_iteration_matrix = False

    def __init__(self, *, fd_step: float = 1e-8) -> None:
        if not fd_step > 0:
            raise ValueError(f"fd_step must be positive, got {fd_step}")
        self._fd_step = fd_step
        self._matrix: Optional[_IterationMatrix] = None

    @property
    def iteration_matrix(self) -> Optional[np.ndarray]:
        return None if self._matrix is None else self._matrix.W

    def initialize(self, state, integrator) -> None:
        self._matrix = None
        if self.reuse_iteration_matrix:
            self._matrix = self._build_iteration_matrix(state, integrator)

    def perform_step(self, state, integrator) -> None:
        if self._matrix is None or not self.reuse_iteration_matrix:
            self._matrix = self._build_iteration_matrix(state, integrator)

        z = _as_vector(state.z)
        residual = _as_vector(self._scaled_rhs(state, integrator)) - z
        dz = self._solve_linear(self._matrix, residual, integrator)
        gz = z + dz
        self._store_candidate(state, gz if state.is_inplace else gz[0])

    def _compute_jacobian(self, state, integrator) -> np.ndarray:
        u = self._stage_value(state)
        tc = self._stage_time(state, integrator)
        n = np.size(u)
        jac = getattr(integrator, "jac", None)

        if jac is not None:
            J = np.atleast_2d(np.asarray(jac(u, integrator.p, tc), dtype=float))
        else:
            J = self._fd_jacobian(u, tc, integrator)

        if has_destats(integrator):
            integrator.destats.njacs += 1
        if J.shape != (n, n):
            raise BackendError(f"Jacobian has shape {J.shape}, expected {(n, n)}")
        return J

    def _fd_jacobian(self, u, tc: float, integrator) -> np.ndarray:
        scalar = np.ndim(u) == 0
        uv = _as_vector(u)
        n = uv.size

        def rhs(x):
            arg = float(x[0]) if scalar else x
            return _as_vector(integrator.f(arg, integrator.p, tc))

        f0 = rhs(uv)
        J = np.empty((n, n))
        for j in range(n):
            h = self._fd_step * max(1.0, abs(uv[j]))
            up = uv.copy()
            up[j] += h
            J[:, j] = (rhs(up) - f0) / h
        if has_destats(integrator):
            integrator.destats.nf += n + 1
        return J

    def _build_iteration_matrix(self, state, integrator) -> _IterationMatrix:
        J = self._compute_jacobian(state, integrator)
        W = np.eye(J.shape[0]) - integrator.dt * state.gamma * J
        if has_destats(integrator):
            integrator.destats.nw += 1

        if not np.all(np.isfinite(W)):
            return _IterationMatrix(W, None)

        with warnings.catch_warnings():
            warnings.simplefilter("ignore", LinAlgWarning)
            lu, piv = lu_factor(W, check_finite=False)
        if np.any(np.diag(lu) == 0.0):
            return _IterationMatrix(W, None)
        return _IterationMatrix(W, (lu, piv))

    def _solve_linear(self, matrix: _IterationMatrix, rhs: np.ndarray, integrator) -> np.ndarray:
        if has_destats(integrator):
            integrator.destats.nsolve += 1
        if matrix.lu_piv is not None:
            return lu_solve(matrix.lu_piv, rhs, check_finite=False)
        if not np.all(np.isfinite(matrix.W)):
            return np.full_like(rhs, np.nan)
        logger.warning("Iteration matrix is singular; taking a least-squares update.")
        dz, *_ = np.linalg.lstsq(matrix.W, rhs, rcond=None)
        return dz

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(fd_step={self._fd_step})"


class _ModifiedNewtonCache(_NewtonCache):
    """Modified Newton iteration: one iteration matrix per solve.

    The matrix is built at the initial guess in :meth:`initialize` and
    reused for every iterate, trading convergence order for fewer
    Jacobian evaluations and factorizations.
    """

    reuse_iteration_matrix = True
