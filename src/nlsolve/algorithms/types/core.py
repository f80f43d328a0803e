"""Abstract base classes shared by the nlsolve algorithms.

This module provides the configuration, backend, engine and facade bases
that the nonlinear solver package builds on.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import fields
from typing import Any, Generic, TypeVar, Union

from nlsolve.algorithms.types.exceptions import EngineError, NLSolveError

ConfigT = TypeVar("ConfigT", bound=Union["_NLBaseConfig", None])

ResultT = TypeVar("ResultT", bound="_NLBaseResults")

EngineT = TypeVar("EngineT", bound="_NLBaseEngine")


class _NLBaseConfig(ABC):
    """Base class for frozen configuration dataclasses.

    Subclasses are declared with ``@dataclass(frozen=True)`` and validate
    themselves on construction through :meth:`_validate`, so a malformed
    configuration never reaches a solve.
    """

    __slots__ = ()

    def __post_init__(self) -> None:
        self._validate()

    def _validate(self) -> None:
        """Validate the configuration. Override in subclasses."""
        return None

    def merge(self, **overrides: Any):
        """Return a copy of the configuration with *overrides* applied.

        Raises
        ------
        ValueError
            If an override does not name a configuration field.
        """
        config_dict = {f.name: getattr(self, f.name) for f in fields(self)}
        for key, value in overrides.items():
            if key not in config_dict:
                raise ValueError(f"Unknown configuration parameter: {key}")
            config_dict[key] = value
        return type(self)(**config_dict)


class _NLBaseResults(ABC):
    """Marker base class for user-facing results returned by facades."""

    __slots__ = ()


class _NLBaseBackend(ABC):
    """Abstract base class for the numerical workhorses of a solve.

    Backends own the scheme-specific numerics; engines handle orchestration.

    Notes
    -----
    This base class provides lifecycle hooks that backends can override:
    - on_iteration: Called after each classified iterate
    - on_accept: Called when the solve ends in a converged status
    - on_failure: Called when the solve ends in a failed status
    """

    def on_iteration(self, k: int, x: Any, r_norm: float) -> None:
        """Called after each iteration of the main algorithm.

        Parameters
        ----------
        k : int
            Current iteration number (1-based).
        x : Any
            Current solution estimate or state.
        r_norm : float
            Current residual norm or convergence metric.
        """
        return

    def on_accept(self, x: Any, *, iterations: int, residual_norm: float) -> None:
        """Called when the solve ends in a converged status.

        Parameters
        ----------
        x : Any
            Final solution or result.
        iterations : int
            Total number of iterations performed.
        residual_norm : float
            Final residual norm or convergence metric.
        """
        return

    def on_failure(self, x: Any, *, iterations: int, residual_norm: float) -> None:
        """Called when the solve ends in a failed status.

        Parameters
        ----------
        x : Any
            Final solution estimate (may not be converged).
        iterations : int
            Total number of iterations performed.
        residual_norm : float
            Final residual norm or convergence metric.
        """
        return


class _NLBaseEngine(ABC):
    """Template providing the canonical engine flow.

    Concrete engines implement :meth:`_run`; :meth:`solve` wraps unexpected
    exceptions from user callbacks into :class:`EngineError`.
    """

    def solve(self, *args, **kwargs):
        """Execute the engine and translate unexpected failures."""
        try:
            return self._run(*args, **kwargs)
        except NLSolveError:
            raise
        except Exception as exc:
            self._handle_failure(exc, *args, **kwargs)

    @abstractmethod
    def _run(self, *args, **kwargs):
        """Run the algorithm proper."""

    def _handle_failure(self, exc: Exception, *args, **kwargs) -> None:
        raise EngineError(
            f"{self.__class__.__name__} failed: {exc}"
        ) from exc


class _NLBaseFacade(Generic[ConfigT, EngineT, ResultT]):
    """Abstract base class for user-facing facades.

    Facades accept an engine through their constructor, provide a
    ``with_default_engine()`` factory, delegate computation to the engine
    and keep the last result around.
    """

    def __init__(self, config: ConfigT, engine: EngineT) -> None:
        self._config: ConfigT = config
        self._engine: EngineT = engine
        self._results: ResultT | None = None

    @classmethod
    @abstractmethod
    def with_default_engine(cls, *, config: ConfigT | None = None, **kwargs) -> "_NLBaseFacade[ConfigT, EngineT, ResultT]":
        pass

    @abstractmethod
    def solve(self, *args, **kwargs) -> ResultT:
        """Solve the problem using the configured engine."""
        ...

    @property
    def config(self) -> ConfigT:
        return self._config

    @property
    def engine(self) -> EngineT:
        return self._engine

    @property
    def results(self) -> ResultT | None:
        return self._results

    def update_config(self, **kwargs) -> None:
        """Update configuration parameters.

        Parameters
        ----------
        **kwargs
            Configuration parameters to update. ``None`` values are ignored.

        Raises
        ------
        ValueError
            If a parameter is unknown or the new configuration is invalid.
        """
        filtered_kwargs = {k: v for k, v in kwargs.items() if v is not None}
        if not filtered_kwargs:
            return
        self._config = self._config.merge(**filtered_kwargs)
