"""Reporter Protocol and the reporters shipped with the package."""

from __future__ import annotations

import threading
from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ._cache import Cache
    from ._env import Environment, EnvironmentCategory, Manager, ManagerType


@runtime_checkable
class Reporter(Protocol):
    """Receives results as they are found; called concurrently from any discovery thread."""

    def report_manager(self, manager: Manager) -> None: ...

    def report_environment(self, env: Environment) -> None: ...


class CacheReporter:
    """Forward to another reporter, persisting every environment on the way."""

    def __init__(self, reporter: Reporter, cache: Cache | None = None) -> None:
        self.reporter = reporter
        self.cache = cache

    def report_manager(self, manager: Manager) -> None:
        self.reporter.report_manager(manager)

    def report_environment(self, env: Environment) -> None:
        if self.cache is not None:
            self.cache.store(env)
        self.reporter.report_environment(env)


@dataclass
class ReportSummary:
    managers: dict[ManagerType, int] = field(default_factory=dict)
    environments: dict[EnvironmentCategory, int] = field(default_factory=dict)


class StdioReporter:
    def __init__(self, print_list: bool = True) -> None:  # noqa: FBT001, FBT002
        self.print_list = print_list
        self._lock = threading.Lock()
        self._managers: Counter[ManagerType] = Counter()
        self._environments: Counter[EnvironmentCategory] = Counter()

    def report_manager(self, manager: Manager) -> None:
        with self._lock:
            self._managers[manager.tool] += 1

    def report_environment(self, env: Environment) -> None:
        with self._lock:
            self._environments[env.category] += 1
            if self.print_list:
                print(env, flush=True)  # noqa: T201

    def get_summary(self) -> ReportSummary:
        with self._lock:
            return ReportSummary(managers=dict(self._managers), environments=dict(self._environments))


__all__ = [
    "CacheReporter",
    "ReportSummary",
    "Reporter",
    "StdioReporter",
]
