"""Convergence and divergence classification of nonlinear iterates.

After every iterate the weighted distance ``ndz`` between the accepted
iterate ``z`` and the candidate ``gz`` is measured. From the second
iteration on, the contraction ratio ``theta = ndz / ndz_prev`` gives the
Theta-extrapolated rate estimate ``eta = theta / (1 - theta)``, and the
iteration is accepted once ``eta * ndz < kappa``.

References
----------
Hairer, E., Wanner, G. (1996). "Solving Ordinary Differential Equations II:
Stiff and Differential-Algebraic Problems", Section IV.8.
"""

import math

from nlsolve.algorithms.nlsolver.residuals import calculate_residuals
from nlsolve.algorithms.nlsolver.types import NLStatus


def norm_of_residuals(state, integrator) -> float:
    """Weighted norm of ``z - gz`` at the integrator's current time."""
    opts = integrator.opts
    atmp = calculate_residuals(state.z, state.gz, opts.abstol, opts.reltol)
    return float(opts.internalnorm(atmp, integrator.t))


def _contraction(ndz: float, ndz_prev: float) -> float:
    if ndz_prev == 0.0:
        return 0.0 if ndz == 0.0 else math.inf
    return ndz / ndz_prev


def _rate_estimate(theta: float) -> float:
    if theta == 1.0:
        return math.inf
    return theta / (1.0 - theta)


def _converged(eta: float, fast_convergence_cutoff: float) -> NLStatus:
    if eta < fast_convergence_cutoff:
        return NLStatus.FAST_CONVERGENCE
    return NLStatus.CONVERGENCE


def check_status(state, integrator) -> NLStatus:
    """Classify the latest iterate of *state*.

    Updates ``state.ndz`` and, from the second iteration on, ``state.eta``.

    Parameters
    ----------
    state : NLSolverState
        State holding ``z``, ``gz``, ``iter`` and the configuration.
    integrator : IntegratorProtocol
        Provides tolerances, the internal norm, ``t`` and ``success_iter``.

    Returns
    -------
    NLStatus
        ``CONVERGING`` while the loop should continue, a terminal member
        otherwise.

    Notes
    -----
    - A contraction ratio above one is reported as divergence before the
      rate test is applied, because ``eta`` is negative in that regime.
      ``eta`` keeps its previous value in that case.
    - A non-finite residual norm is reported as divergence.
    - ``theta == 1`` gives ``eta = inf``, which the very-slow test catches.
    """
    config = state.config
    it = state.iter
    max_iters, kappa = config.max_iters, config.kappa

    # compute norm of residuals and cache previous value
    ndz_prev = state.ndz if it > 1 else None
    ndz = norm_of_residuals(state, integrator)
    state.ndz = ndz

    if math.isnan(ndz) or math.isinf(ndz):
        return NLStatus.DIVERGENCE

    theta = None
    if ndz_prev is not None:
        theta = _contraction(ndz, ndz_prev)
        if theta <= 1.0:
            state.eta = _rate_estimate(theta)
    eta = state.eta

    if ndz == 0.0:
        return _converged(eta, config.fast_convergence_cutoff)

    # iterates are growing
    if theta is not None and theta > 1.0:
        return NLStatus.DIVERGENCE

    # a lone first iterate only counts once an earlier outer step succeeded
    if eta * ndz < kappa and (it > 1 or integrator.success_iter != 0):
        return _converged(eta, config.fast_convergence_cutoff)

    if theta is not None:
        # the remaining budget cannot reach kappa even at the observed rate
        if ndz * theta ** (max_iters - it) > kappa * (1.0 - theta):
            return NLStatus.VERY_SLOW_CONVERGENCE

    if it >= max_iters:
        return NLStatus.MAX_ITERS_REACHED

    return NLStatus.CONVERGING
