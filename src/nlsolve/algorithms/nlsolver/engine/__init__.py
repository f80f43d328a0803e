from .base import _NLSolveEngineBase
from .engine import _NLSolveEngine

__all__ = ["_NLSolveEngineBase", "_NLSolveEngine"]
