"""Discovered Python environments, their managers and their on-disk record format."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, NamedTuple

from ._fs import FileTimes

if TYPE_CHECKING:
    from collections.abc import Mapping


class EnvironmentCategory(str, Enum):
    CONDA = "Conda"
    HOMEBREW = "Homebrew"
    PYENV = "Pyenv"
    PYENV_VIRTUAL_ENV = "PyenvVirtualEnv"
    PIPENV = "Pipenv"
    POETRY = "Poetry"
    SYSTEM = "System"
    MAC_PYTHON_ORG = "MacPythonOrg"
    MAC_COMMAND_LINE_TOOLS = "MacCommandLineTools"
    MAC_XCODE = "MacXCode"
    LINUX_GLOBAL = "LinuxGlobal"
    GLOBAL_PATHS = "GlobalPaths"
    VIRTUAL_ENV_WRAPPER = "VirtualEnvWrapper"
    VENV = "Venv"
    VIRTUAL_ENV = "VirtualEnv"
    WINDOWS_STORE = "WindowsStore"
    WINDOWS_REGISTRY = "WindowsRegistry"
    UNKNOWN = "Unknown"


class ManagerType(str, Enum):
    CONDA = "Conda"
    POETRY = "Poetry"
    PYENV = "Pyenv"


class PythonEnv(NamedTuple):
    """A candidate interpreter handed to locators for identification."""

    executable: Path
    prefix: Path | None = None
    version: str | None = None


@dataclass(frozen=True)
class Manager:
    executable: Path
    tool: ManagerType
    version: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"executable": str(self.executable), "tool": self.tool.value, "version": self.version}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Manager:
        return cls(executable=Path(data["executable"]), tool=ManagerType(data["tool"]), version=data.get("version"))


@dataclass(frozen=True)
class Environment:
    """A Python installation as seen by a locator.

    Instances are never updated in place, rediscovery (or attaching fingerprints) builds a new value via
    :func:`dataclasses.replace`.

    """

    category: EnvironmentCategory
    executable: Path | None = None
    prefix: Path | None = None
    version: str | None = None
    manager: Manager | None = None
    symlinks: tuple[Path, ...] | None = None
    times: tuple[tuple[Path, FileTimes], ...] | None = None
    project: Path | None = None

    @property
    def key(self) -> Path | None:
        """:returns: the identity of this environment, used to name its cache record"""
        return self.executable if self.executable is not None else self.prefix

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category.value,
            "executable": _str_or_none(self.executable),
            "prefix": _str_or_none(self.prefix),
            "version": self.version,
            "manager": None if self.manager is None else self.manager.to_dict(),
            "symlinks": None if self.symlinks is None else [str(p) for p in self.symlinks],
            "times": None
            if self.times is None
            else {str(path): {"mtime": t.mtime, "ctime": t.ctime} for path, t in self.times},
            "project": _str_or_none(self.project),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Environment:
        manager, symlinks, times = data.get("manager"), data.get("symlinks"), data.get("times")
        return cls(
            category=EnvironmentCategory(data["category"]),
            executable=_path_or_none(data.get("executable")),
            prefix=_path_or_none(data.get("prefix")),
            version=data.get("version"),
            manager=None if manager is None else Manager.from_dict(manager),
            symlinks=None if symlinks is None else tuple(Path(p) for p in symlinks),
            times=None
            if times is None
            else tuple((Path(path), FileTimes(int(t["mtime"]), int(t["ctime"]))) for path, t in times.items()),
            project=_path_or_none(data.get("project")),
        )

    def __str__(self) -> str:
        parts = [self.category.value]
        if self.version:
            parts.append(self.version)
        parts.append(str(self.executable if self.executable is not None else self.prefix))
        return " ".join(parts)


def _str_or_none(value: Path | None) -> str | None:
    return None if value is None else str(value)


def _path_or_none(value: str | None) -> Path | None:
    return None if value is None else Path(value)


__all__ = [
    "Environment",
    "EnvironmentCategory",
    "Manager",
    "ManagerType",
    "PythonEnv",
]
