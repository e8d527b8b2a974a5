from __future__ import annotations

from typing import TYPE_CHECKING

from envfinder._env import Environment, EnvironmentCategory
from envfinder._executable import BIN_DIR, find_executables, get_shortest_executable
from envfinder._locator import Locator

from ._pyvenv import read_pyvenv_cfg, version_from_pyvenv_cfg

if TYPE_CHECKING:
    from pathlib import Path

    from envfinder._env import PythonEnv
    from envfinder._reporter import Reporter


class Venv(Locator):
    """Environments created by ``python -m venv`` or virtualenv, recognised by their ``pyvenv.cfg``."""

    def supported_categories(self) -> frozenset[EnvironmentCategory]:
        return frozenset((EnvironmentCategory.VENV, EnvironmentCategory.VIRTUAL_ENV))

    def try_from(self, env: PythonEnv) -> Environment | None:
        prefix = env.prefix if env.prefix is not None else _prefix_of(env.executable)
        values = read_pyvenv_cfg(prefix)
        if values is None:
            return None
        category = EnvironmentCategory.VIRTUAL_ENV if "virtualenv" in values else EnvironmentCategory.VENV
        symlinks = find_executables(prefix) or [env.executable]
        if env.executable not in symlinks:
            symlinks.append(env.executable)
        return Environment(
            category=category,
            executable=get_shortest_executable(symlinks),
            prefix=prefix,
            version=version_from_pyvenv_cfg(values) or env.version,
            symlinks=tuple(sorted(symlinks)),
        )

    def find(self, reporter: Reporter) -> None:
        """Nothing to do, these live in folders the path scans already visit."""


def _prefix_of(executable: Path) -> Path:
    # bin/python, or python directly in the environment root
    return executable.parent.parent if executable.parent.name == BIN_DIR else executable.parent


__all__ = [
    "Venv",
]
