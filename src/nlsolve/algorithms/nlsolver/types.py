"""
Types for the nonlinear solver module.

This module provides the status enumeration, callable aliases and the
result container of the nonlinear solver.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Callable, Union

import numpy as np

from nlsolve.algorithms.types.core import _NLBaseResults

#: Type alias for the iterates handled by a solve.
#:
#: Iterates are either 1-D numpy arrays, updated in place by the driver,
#: or plain real scalars, rebound on every iteration.
Iterate = Union[np.ndarray, float]

#: Type alias for norm function signatures.
#:
#: Functions of this type reduce a weighted residual to a scalar at time
#: ``t``. They must be proper norms (non-negative, zero only for the zero
#: vector) for the classification of a solve to be meaningful.
#:
#: Parameters
#: ----------
#: u : ndarray or float
#:     Weighted residual.
#: t : float
#:     Time at which the residual is evaluated.
#:
#: Returns
#: -------
#: norm : float
#:     Scalar norm value (non-negative).
NormFn = Callable[[Iterate, float], float]

#: Type alias for right-hand side signatures ``f(u, p, t) -> du``.
RhsFn = Callable[[Iterate, Any, float], Iterate]

#: Type alias for Jacobian signatures ``jac(u, p, t) -> J`` with ``J`` of
#: shape (n, n), element (i, j) holding d f_i / d u_j.
JacobianFn = Callable[[Iterate, Any, float], np.ndarray]


class NLStatus(IntEnum):
    """Outcome of a nonlinear solve.

    Positive members are successes, non-positive members are failures.
    ``CONVERGING`` is the loop-continue marker: it only appears on a state
    while the driver loop is running.
    """
    FAST_CONVERGENCE = 2
    CONVERGENCE = 1
    CONVERGING = 0
    VERY_SLOW_CONVERGENCE = -1
    DIVERGENCE = -2
    MAX_ITERS_REACHED = -3

    @property
    def is_terminal(self) -> bool:
        return self is not NLStatus.CONVERGING

    @property
    def succeeded(self) -> bool:
        return self > 0


def nlsolvefail(status) -> bool:
    """Return True when *status* (or the status of a state) is a failure.

    Parameters
    ----------
    status : NLStatus or object with a ``status`` attribute
        Status to test.

    Returns
    -------
    bool
        ``True`` for every member with a non-positive value.
    """
    if not isinstance(status, NLStatus):
        status = status.status
    return int(status) <= 0


@dataclass
class NLSolveResult(_NLBaseResults):
    """Standardized result for a finished nonlinear solve.

    Attributes
    ----------
    z : ndarray or float
        Last accepted iterate (a copy, safe to keep across solves).
    status : NLStatus
        Terminal status of the solve.
    iterations : int
        Number of iterations performed.
    eta : float
        Convergence-rate estimate at the end of the solve.
    residual_norm : float
        Weighted residual norm of the last iteration (0.0 if none ran).
    """
    z: Iterate
    status: NLStatus
    iterations: int
    eta: float
    residual_norm: float

    def __post_init__(self) -> None:
        if self.status is None or not NLStatus(self.status).is_terminal:
            raise ValueError(
                f"NLSolveResult requires a terminal status, got {self.status!r}"
            )

    @property
    def converged(self) -> bool:
        return self.status.succeeded
