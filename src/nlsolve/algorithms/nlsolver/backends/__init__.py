from .base import _NLSolverCache
from .functional import _FunctionalIterationCache
from .newton import _ModifiedNewtonCache, _NewtonCache

__all__ = [
    "_NLSolverCache",
    "_FunctionalIterationCache",
    "_NewtonCache",
    "_ModifiedNewtonCache",
]
