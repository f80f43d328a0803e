from .nlsolver import (DEStats, IntegratorContext, IntegratorOptions,
                       NLSolverConfig, NLSolverState, NLSolveResult, NLStatus,
                       NonlinearSolver, nlsolve)

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
