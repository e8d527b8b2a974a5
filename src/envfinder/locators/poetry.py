from __future__ import annotations

import logging
import os
import shutil
import subprocess
import threading
from pathlib import Path
from typing import TYPE_CHECKING

from envfinder._env import Environment, EnvironmentCategory, Manager, ManagerType
from envfinder._executable import find_executables
from envfinder._locator import Locator

from ._pyvenv import read_pyvenv_cfg, version_from_pyvenv_cfg

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from envfinder._env import PythonEnv
    from envfinder._locator import Configuration
    from envfinder._reporter import Reporter

LOGGER = logging.getLogger(__name__)

_ACTIVATED = " (Activated)"
_TIMEOUT = 30


class Poetry(Locator):
    """Environments Poetry created for the configured project folders, as listed by ``poetry env list``."""

    def __init__(self, env: Mapping[str, str] | None = None) -> None:
        self._env = os.environ if env is None else env
        self._lock = threading.Lock()
        self._project_dirs: list[Path] = []
        self._poetry_executable: Path | None = None
        self._searched = False
        self._generation = 0
        self._environments: list[Environment] = []

    def supported_categories(self) -> frozenset[EnvironmentCategory]:
        return frozenset((EnvironmentCategory.POETRY,))

    def configure(self, config: Configuration) -> None:
        with self._lock:
            if config.search_paths:
                self._project_dirs = list(config.search_paths)
            if config.poetry_executable is not None:
                self._poetry_executable = config.poetry_executable
            self._searched = False
            self._generation += 1
            self._environments = []

    def try_from(self, env: PythonEnv) -> Environment | None:
        for found in self._find_with_cache():
            if found.symlinks and env.executable in found.symlinks:
                return found
        return None

    def find(self, reporter: Reporter) -> None:
        for found in self._find_with_cache():
            if found.manager is not None:
                reporter.report_manager(found.manager)
            reporter.report_environment(found)

    def _find_with_cache(self) -> list[Environment]:
        with self._lock:
            if self._searched:
                return list(self._environments)
            executable, project_dirs = self._poetry_executable, list(self._project_dirs)
            generation = self._generation
        # the search runs unlocked so try_from never waits on a find in progress, both may search once
        manager = find_poetry_manager(executable, self._env)
        environments = [] if manager is None else get_environments_for_folders(manager, project_dirs)
        with self._lock:
            if generation == self._generation:  # a configure while searching invalidates this result
                self._environments = environments
                self._searched = True
        return list(environments)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(poetry_executable={self._poetry_executable!r})"


def find_poetry_manager(executable: Path | None, env: Mapping[str, str]) -> Manager | None:
    if executable is None:
        found = shutil.which("poetry", path=env.get("PATH", ""))
        executable = None if found is None else Path(found)
    if executable is not None and executable.is_file():
        return Manager(executable=executable, tool=ManagerType.POETRY)
    return None


def get_environments_for_folders(manager: Manager, project_dirs: Sequence[Path]) -> list[Environment]:
    environments = []
    for project_dir in project_dirs:
        for prefix in list_environments(manager.executable, project_dir):
            if (env := create_poetry_env(prefix, project_dir, manager)) is not None:
                environments.append(env)
    return environments


def list_environments(executable: Path, project_dir: Path) -> list[Path]:
    cmd = [str(executable), "env", "list", "--full-path"]
    LOGGER.debug("get poetry environments via cmd: %s in %s", " ".join(cmd), project_dir)
    try:
        process = subprocess.run(
            cmd,
            cwd=project_dir,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
            timeout=_TIMEOUT,
        )
    except (OSError, subprocess.SubprocessError) as exception:
        LOGGER.warning("failed to execute %s: %r", " ".join(cmd), exception)
        return []
    if process.returncode != 0:
        LOGGER.debug("poetry env list failed in %s with code %d: %s", project_dir, process.returncode, process.stderr)
        return []
    return parse_env_list(process.stdout)


def parse_env_list(output: str) -> list[Path]:
    prefixes = []
    for line in output.splitlines():
        line = line.strip()  # noqa: PLW2901
        if line.endswith(_ACTIVATED):
            line = line[: -len(_ACTIVATED)].strip()  # noqa: PLW2901
        if line:
            prefixes.append(Path(line))
    return prefixes


def create_poetry_env(prefix: Path, project_dir: Path, manager: Manager) -> Environment | None:
    if not prefix.exists():
        return None
    executables = sorted(find_executables(prefix))
    if not executables:
        return None
    values = read_pyvenv_cfg(prefix) or {}
    return Environment(
        category=EnvironmentCategory.POETRY,
        executable=executables[0],
        prefix=prefix,
        version=version_from_pyvenv_cfg(values),
        manager=manager,
        symlinks=tuple(executables),
        project=project_dir,
    )


__all__ = [
    "Poetry",
    "create_poetry_env",
    "find_poetry_manager",
    "get_environments_for_folders",
    "list_environments",
    "parse_env_list",
]
