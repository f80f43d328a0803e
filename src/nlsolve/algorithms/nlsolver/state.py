"""Mutable iteration state of one nonlinear solve."""

from typing import Optional

import numpy as np

from nlsolve.algorithms.nlsolver.config import NLSolverConfig
from nlsolve.algorithms.nlsolver.types import Iterate, NLStatus
from nlsolve.algorithms.types.exceptions import BackendError


def _copy_iterate(u: Iterate) -> Iterate:
    arr = np.array(u, dtype=float, copy=True)
    if arr.ndim > 0:
        return arr
    return float(arr)


class NLSolverState:
    """Iteration state for ``dt * f(tmp + gamma * z, p, t + c * dt) = z``.

    The state is owned by exactly one solve at a time. Array iterates are
    updated in place, scalar iterates are rebound.

    Parameters
    ----------
    z : ndarray or float
        Initial guess of the increment.
    tmp : ndarray or float
        Offset of the stage value ``tmp + gamma * z``.
    gamma : float
        Stage coefficient multiplying ``z``.
    c : float, default=1.0
        Stage time fraction; the right-hand side is evaluated at
        ``t + c * dt``.
    config : NLSolverConfig, optional
        Stopping-rule configuration. Defaults to :class:`NLSolverConfig`.
    cache : _NLSolverCache, optional
        Iteration scheme. Must be set before solving.

    Attributes
    ----------
    gz : ndarray or float
        Candidate iterate written by the cache.
    iter : int
        Iterations of the current (or last) solve.
    eta : float
        Convergence-rate estimate, carried over between solves.
    ndz : float
        Weighted residual norm of the latest iteration.
    status : NLStatus or None
        None until the first solve; terminal after every solve.
    """

    def __init__(
        self,
        z: Iterate,
        tmp: Iterate,
        *,
        gamma: float,
        c: float = 1.0,
        config: Optional[NLSolverConfig] = None,
        cache=None,
    ) -> None:
        if np.ndim(z) > 1:
            raise ValueError(f"Iterates must be scalars or 1-D arrays, got ndim={np.ndim(z)}")
        if np.shape(tmp) != np.shape(z):
            raise ValueError(f"tmp has shape {np.shape(tmp)}, expected {np.shape(z)}")
        self.config = config if config is not None else NLSolverConfig()
        self.z = _copy_iterate(z)
        self.gz = _copy_iterate(z)
        self.tmp = _copy_iterate(tmp)
        self.gamma = float(gamma)
        self.c = float(c)
        self.cache = cache
        self.iter = 0
        self.eta = self.config.initial_eta
        self.ndz = 0.0
        self.status: Optional[NLStatus] = None

    @property
    def is_inplace(self) -> bool:
        return isinstance(self.z, np.ndarray)

    def get_cache(self):
        """Return the attached cache or raise :class:`BackendError`."""
        if self.cache is None:
            raise BackendError("NLSolverState has no iteration cache attached.")
        return self.cache

    def reset(self, z0: Optional[Iterate] = None) -> None:
        """Forget everything a previous solve left behind.

        Parameters
        ----------
        z0 : ndarray or float, optional
            New initial guess; when omitted the current ``z`` is kept.
        """
        if z0 is not None:
            if np.shape(z0) != np.shape(self.z):
                raise ValueError(f"z0 has shape {np.shape(z0)}, expected {np.shape(self.z)}")
            self.z = _copy_iterate(z0)
            self.gz = _copy_iterate(z0)
        self.iter = 0
        self.eta = self.config.initial_eta
        self.ndz = 0.0
        self.status = None

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(iter={self.iter}, status={self.status!r}, "
            f"eta={self.eta:.3e}, ndz={self.ndz:.3e}, cache={self.cache!r})"
        )
