"""Define the base class for nonlinear solve engines.

This module provides the phase contract every engine follows: preamble,
then (apply-step, perform-step, check-status) until the status is terminal,
then postamble.
"""

from abc import abstractmethod

from nlsolve.algorithms.types.core import _NLBaseEngine


class _NLSolveEngineBase(_NLBaseEngine):
    """Provide an abstract base class for nonlinear solve engines."""

    @abstractmethod
    def preamble(self, state, integrator) -> None:
        """Reset the iteration counters and prepare the cache."""

    @abstractmethod
    def apply_step(self, state, integrator) -> None:
        """Accept the previous candidate and advance the iteration count."""

    @abstractmethod
    def perform_step(self, state, integrator) -> None:
        """Compute the next candidate."""

    @abstractmethod
    def check_status(self, state, integrator) -> None:
        """Classify the latest iterate and store the status."""

    @abstractmethod
    def postamble(self, state, integrator):
        """Publish the outcome to the integrator and return the iterate."""
