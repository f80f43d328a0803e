"""nlsolve: convergence control for the nonlinear solves of implicit ODE/DAE integrators."""

from nlsolve.algorithms import (DEStats, IntegratorContext, IntegratorOptions,
                                NLSolverConfig, NLSolverState, NLSolveResult,
                                NLStatus, NonlinearSolver, nlsolve)

__version__ = "0.1.0"

__all__ = [
    "NonlinearSolver",
    "nlsolve",
    "NLSolverConfig",
    "NLSolverState",
    "NLStatus",
    "NLSolveResult",
    "DEStats",
    "IntegratorContext",
    "IntegratorOptions",
]
