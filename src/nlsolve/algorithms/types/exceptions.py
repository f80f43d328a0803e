"""
Custom exceptions for the algorithms package.

Convergence outcomes of a nonlinear solve are reported through
:class:`~nlsolve.algorithms.nlsolver.types.NLStatus`, not through
exceptions. The classes below cover misuse of the machinery itself.
"""

class NLSolveError(Exception):
    """Base exception for nlsolve errors.
    
    Parameters
    ----------
    message : str
        The error message.
    """

    def __init__(self, message: str):
        super().__init__(message)


class BackendError(NLSolveError):
    """Raised when an iteration cache cannot be built or evaluated.
    
    Parameters
    ----------
    message : str
        The error message.
    """
    
    def __init__(self, message: str):
        super().__init__(message)


class EngineError(NLSolveError):
    """Raised when an exception occurs in the engine.
    
    Parameters
    ----------
    message : str
        The error message.
    """
    
    def __init__(self, message: str):
        super().__init__(message)
