"""Example script: backward Euler on the stiff Robertson kinetics problem.

Each step solves ``z = dt * f(u_n + z)`` with :func:`nlsolve.nlsolve`; a
failed solve halves the step and retries, a converged one advances the
solution and grows the step again.

Run with
    python examples/stiff_decay.py
"""

import os
import sys

import numpy as np

sys.path.append(os.path.join(os.path.dirname(__file__), "..", "src"))

from nlsolve import (IntegratorContext, IntegratorOptions, NLStatus,
                     NonlinearSolver)
from nlsolve.algorithms.nlsolver import nlsolve
from nlsolve.utils.log_config import logger


def robertson(u, p, t):
    k1, k2, k3 = p
    y1, y2, y3 = u
    return np.array([
        -k1 * y1 + k3 * y2 * y3,
        k1 * y1 - k2 * y2 ** 2 - k3 * y2 * y3,
        k2 * y2 ** 2,
    ])


def robertson_jac(u, p, t):
    k1, k2, k3 = p
    _, y2, y3 = u
    return np.array([
        [-k1, k3 * y3, k3 * y2],
        [k1, -2.0 * k2 * y2 - k3 * y3, -k3 * y2],
        [0.0, 2.0 * k2 * y2, 0.0],
    ])


def integrate(integrator, u0, t_end, *, dt_min=1e-12, method="modified_newton"):
    """Advance *u0* to *t_end* with backward Euler.

    Returns the final state and the number of rejected steps. Raises
    RuntimeError when repeated failures push the step below *dt_min*.
    """
    u = np.array(u0, dtype=float)
    solver = NonlinearSolver.with_default_engine(method=method)
    state = solver.build_state(np.zeros_like(u), u, gamma=1.0)

    rejected = 0
    while integrator.t < t_end:
        integrator.dt = min(integrator.dt, t_end - integrator.t)
        np.copyto(state.tmp, u)
        state.reset(np.zeros_like(u))

        z = nlsolve(state, integrator)

        if integrator.force_stepfail:
            rejected += 1
            integrator.success_iter = 0
            integrator.dt *= 0.5
            if integrator.dt < dt_min:
                raise RuntimeError(
                    f"Step size fell below {dt_min:g} at t={integrator.t:.6g} "
                    f"after {rejected} rejected steps"
                )
            continue

        u = u + z
        integrator.t += integrator.dt
        integrator.success_iter += 1
        if state.status is NLStatus.FAST_CONVERGENCE:
            integrator.dt *= 2.0

    return u, rejected


def main() -> None:
    integrator = IntegratorContext(
        f=robertson,
        jac=robertson_jac,
        t=0.0,
        dt=1e-4,
        p=(0.04, 3e7, 1e4),
        opts=IntegratorOptions(abstol=1e-8, reltol=1e-4),
    )
    u, rejected = integrate(integrator, [1.0, 0.0, 0.0], 40.0)

    stats = integrator.destats
    logger.info("Solution at t=%.1f: %s (sum=%.12f)", integrator.t, u, u.sum())
    logger.info(
        "Nonlinear iterations: %d, convergence failures: %d, rejected steps: %d",
        stats.nnonliniter, stats.nnonlinconvfail, rejected,
    )
    logger.info(
        "RHS evaluations: %d, Jacobians: %d, factorizations: %d, linear solves: %d",
        stats.nf, stats.njacs, stats.nw, stats.nsolve,
    )


if __name__ == "__main__":
    main()
