"""Abstract base classes for environment locators, and the ordered registry that holds them."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from pathlib import Path

    from ._env import Environment, EnvironmentCategory, PythonEnv
    from ._reporter import Reporter

LOGGER = logging.getLogger(__name__)


@dataclass
class Configuration:
    search_paths: list[Path] = field(default_factory=list)
    environment_paths: list[Path] = field(default_factory=list)
    conda_executable: Path | None = None
    poetry_executable: Path | None = None
    workspace_depth: int = 1


class Locator(ABC):
    """Find and identify the environments of one family of tools."""

    @abstractmethod
    def supported_categories(self) -> frozenset[EnvironmentCategory]:
        raise NotImplementedError

    def configure(self, config: Configuration) -> None:  # noqa: B027
        """Replace any previous configuration, dropping what was memoized under it."""

    @abstractmethod
    def try_from(self, env: PythonEnv) -> Environment | None:
        """Identify an interpreter.

        Must be cheap and safe to call repeatedly, including while :meth:`find` runs on another thread.

        :returns: the environment if this locator owns the interpreter, ``None`` otherwise

        """
        raise NotImplementedError

    @abstractmethod
    def find(self, reporter: Reporter) -> None:
        """Run this locator's own discovery, reporting every manager and environment found."""
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class CondaLocator(Locator):
    @abstractmethod
    def find_with_conda_executable(self, reporter: Reporter, conda_executable: Path | None) -> None:
        """Look for more environments by asking the conda executable itself; best effort, may be slow.

        Runs detached from discovery, so results may reach ``reporter`` after :func:`envfinder.discover` returned.

        """
        raise NotImplementedError


class LocatorRegistry:
    """Locators in precedence order; the first one to claim an interpreter wins."""

    def __init__(self, locators: Iterable[Locator] = ()) -> None:
        self._locators = tuple(locators)

    def __iter__(self) -> Iterator[Locator]:
        return iter(self._locators)

    def __len__(self) -> int:
        return len(self._locators)

    def configure(self, config: Configuration) -> None:
        for locator in self._locators:
            locator.configure(config)

    def for_category(self, category: EnvironmentCategory) -> Locator | None:
        """:returns: the locator that validates cached environments of this category, the last one declaring it"""
        for locator in reversed(self._locators):
            if category in locator.supported_categories():
                return locator
        return None

    def conda_locator(self) -> CondaLocator | None:
        return next((locator for locator in self._locators if isinstance(locator, CondaLocator)), None)

    def identify(self, env: PythonEnv) -> Environment | None:
        for locator in self._locators:
            if (result := locator.try_from(env)) is not None:
                LOGGER.debug("%r identified %s", locator, env.executable)
                return result
        return None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({list(self._locators)!r})"


__all__ = [
    "CondaLocator",
    "Configuration",
    "Locator",
    "LocatorRegistry",
]
