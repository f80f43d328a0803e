"""Provide the configuration class of the nonlinear solver.

These parameters define the stopping rule of a solve. They are fixed when a
state is built and never mutated while a solve runs.
"""

import math
from dataclasses import dataclass
from numbers import Integral

from nlsolve.algorithms.types.core import _NLBaseConfig


@dataclass(frozen=True)
class NLSolverConfig(_NLBaseConfig):
    """Configuration of the convergence controller.

    Parameters
    ----------
    max_iters : int, default=10
        Iteration budget of one solve. Zero is accepted and makes every
        solve fail immediately without iterating.
    kappa : float, default=1e-2
        Convergence tolerance on the rate-weighted residual norm
        ``eta * ndz``.
    fast_convergence_cutoff : float, default=0.2
        Converged solves whose rate estimate is below this value are
        reported as fast convergence.
    initial_eta : float, default=1.0
        Seed of the convergence-rate estimate used until a rate can be
        measured.

    Raises
    ------
    ValueError
        If any parameter is outside its domain.

    Examples
    --------
    >>> config = NLSolverConfig(max_iters=7, kappa=1e-3)
    >>> looser = config.merge(kappa=1e-1)
    """
    max_iters: int = 10
    kappa: float = 1e-2
    fast_convergence_cutoff: float = 0.2
    initial_eta: float = 1.0

    def _validate(self) -> None:
        """Validate the configuration."""
        if isinstance(self.max_iters, bool) or not isinstance(self.max_iters, Integral):
            raise ValueError(f"max_iters must be an integer, got {self.max_iters!r}")
        if self.max_iters < 0:
            raise ValueError(f"max_iters must be non-negative, got {self.max_iters}")
        if not (math.isfinite(self.kappa) and self.kappa > 0):
            raise ValueError(f"kappa must be positive and finite, got {self.kappa}")
        if not self.fast_convergence_cutoff > 0:
            raise ValueError(
                f"fast_convergence_cutoff must be positive, got {self.fast_convergence_cutoff}"
            )
        if not (math.isfinite(self.initial_eta) and self.initial_eta > 0):
            raise ValueError(
                f"initial_eta must be positive and finite, got {self.initial_eta}"
            )
