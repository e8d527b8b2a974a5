"""Discover Python environments, and the tools managing them, concurrently and with a persistent cache."""

from __future__ import annotations

from ._cache import Cache, compute_hash
from ._env import Environment, EnvironmentCategory, Manager, ManagerType, PythonEnv
from ._find import Summary, discover
from ._fs import FileTimes, get_mtime_ctime
from ._locator import CondaLocator, Configuration, Locator, LocatorRegistry
from ._reporter import CacheReporter, Reporter, ReportSummary, StdioReporter

__all__ = [
    "Cache",
    "CacheReporter",
    "CondaLocator",
    "Configuration",
    "Environment",
    "EnvironmentCategory",
    "FileTimes",
    "Locator",
    "LocatorRegistry",
    "Manager",
    "ManagerType",
    "PythonEnv",
    "ReportSummary",
    "Reporter",
    "StdioReporter",
    "Summary",
    "compute_hash",
    "discover",
    "get_mtime_ctime",
]
