"""Tolerance-weighted residuals and the default internal norm.

The residual of two successive iterates ``u0`` and ``u1`` is scaled
element-wise by ``abstol + reltol * max(|u0|, |u1|)`` so that a weighted
norm of one means "exactly at tolerance". The array kernels are compiled
with numba.
"""

import numpy as np
from numba import njit

from nlsolve.algorithms.utils.config import FASTMATH, NUMPY_DTYPE_REAL


@njit(fastmath=FASTMATH, cache=False)
def _weighted_residuals(u0, u1, abstol, reltol, out):
    """Fill *out* with the tolerance-weighted difference of two 1-D arrays.

    Identical entries give exactly zero, including when the scale vanishes
    (``abstol == 0`` at a zero component).
    """
    for i in range(u0.shape[0]):
        diff = u0[i] - u1[i]
        if diff == 0.0:
            out[i] = 0.0
        else:
            scale = abstol[i] + max(abs(u0[i]), abs(u1[i])) * reltol[i]
            out[i] = diff / scale
    return out


@njit(fastmath=FASTMATH, cache=False)
def _rms_norm(u):
    """Root-mean-square norm of a 1-D array; zero for an empty array."""
    n = u.shape[0]
    if n == 0:
        return 0.0
    acc = 0.0
    for i in range(n):
        acc += u[i] * u[i]
    return np.sqrt(acc / n)


def _as_real_vector(u, shape) -> np.ndarray:
    return np.ascontiguousarray(
        np.broadcast_to(np.asarray(u, dtype=NUMPY_DTYPE_REAL), shape)
    ).ravel()


def check_tolerances(abstol, reltol, shape) -> None:
    """Raise ValueError unless both tolerances broadcast to *shape*.

    A scalar iterate (``shape == ()``) only accepts scalar tolerances.
    """
    for name, tol in (("abstol", abstol), ("reltol", reltol)):
        try:
            np.broadcast_to(np.asarray(tol), shape)
        except ValueError:
            raise ValueError(
                f"{name} with shape {np.shape(tol)} does not broadcast to "
                f"iterates of shape {tuple(shape)}"
            ) from None


def calculate_residuals(u0, u1, abstol, reltol):
    """Return the tolerance-weighted difference ``(u0 - u1) / scale``.

    Parameters
    ----------
    u0, u1 : ndarray or float
        Two successive iterates of identical shape.
    abstol, reltol : float or ndarray
        Non-negative absolute and relative tolerances, scalars or arrays
        broadcastable to the shape of the iterates.

    Returns
    -------
    ndarray or float
        Weighted residual with the shape of *u0* (a float for scalars).

    Raises
    ------
    ValueError
        If the iterates differ in shape or a tolerance does not broadcast
        to their shape.
    """
    if np.ndim(u0) == 0 and np.ndim(u1) == 0:
        check_tolerances(abstol, reltol, ())
        diff = float(u0) - float(u1)
        if diff == 0.0:
            return 0.0
        return diff / (float(abstol) + max(abs(float(u0)), abs(float(u1))) * float(reltol))

    shape = np.shape(u0)
    if np.shape(u1) != shape:
        raise ValueError(f"Iterates differ in shape: {shape} vs {np.shape(u1)}")
    check_tolerances(abstol, reltol, shape)
    a0 = _as_real_vector(u0, shape)
    a1 = _as_real_vector(u1, shape)
    out = np.empty_like(a0)
    _weighted_residuals(a0, a1, _as_real_vector(abstol, shape), _as_real_vector(reltol, shape), out)
    return out.reshape(shape)


def ode_default_norm(u, t) -> float:
    """Default internal norm: ``abs`` for scalars, RMS norm for arrays.

    Parameters
    ----------
    u : ndarray or float
        Vector (or scalar) to measure.
    t : float
        Evaluation time, unused by the default norm.
    """
    if np.ndim(u) == 0:
        return abs(float(u))
    return float(_rms_norm(np.ascontiguousarray(u, dtype=NUMPY_DTYPE_REAL).ravel()))
