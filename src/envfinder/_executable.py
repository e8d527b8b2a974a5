"""Candidate search roots and the Python executables found inside them."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import TYPE_CHECKING

from ._fs import IS_LINUX, IS_WIN, fs_path_id

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

LOGGER = logging.getLogger(__name__)

BIN_DIR = "Scripts" if IS_WIN else "bin"
_EXE_SUFFIX = ".exe" if IS_WIN else ""
_PYTHON_EXES = (f"python{_EXE_SUFFIX}", f"python3{_EXE_SUFFIX}")
_EXE_PATTERN = re.compile(r"python(\d+\.?)*\.exe" if IS_WIN else r"python(\d+\.?)*")

# version-manager shims re-dispatch to the real binary, they are never environments themselves
_SHIM_DIRS: tuple[tuple[str, ...], ...] = (
    (".pyenv", "shims"),
    ("pyenv-win", "shims"),
    (".asdf", "shims"),
    ("mise", "shims"),
)

# mostly taken from https://github.com/github/gitignore/blob/main/Python.gitignore
FOLDERS_TO_IGNORE = frozenset(
    (
        "node_modules",
        ".git",
        ".tox",
        ".nox",
        ".hypothesis",
        ".ipynb_checkpoints",
        ".eggs",
        ".coverage",
        ".cache",
        ".pyre",
        ".ptype",
        ".pytest_cache",
        "__pycache__",
        "__pypackages__",
        ".mypy_cache",
        "cython_debug",
        "env.bak",
        "venv.bak",
        # the parent of a bin/Scripts folder is the environment, not the folder itself
        "Scripts",
        "bin",
    ),
)


def is_python_executable_name(exe: Path) -> bool:
    name = exe.name.lower()
    return name.startswith("python") and _EXE_PATTERN.fullmatch(name) is not None


def _is_shim_dir(path: Path) -> bool:
    return path.name == ".DS_Store" or any(path.parts[-len(shim) :] == shim for shim in _SHIM_DIRS)


def find_executable(env_path: Path) -> Path | None:
    """Probe only the canonical interpreter locations of an environment root."""
    for candidate in (
        env_path / BIN_DIR / _PYTHON_EXES[0],
        env_path / BIN_DIR / _PYTHON_EXES[1],
        env_path / _PYTHON_EXES[0],
        env_path / _PYTHON_EXES[1],
    ):
        if candidate.exists():
            return candidate
    return None


def find_executables(env_path: Path) -> list[Path]:
    """All interpreters of a directory, enumerating it only when it is likely to hold some.

    Listing a directory is expensive and PATH holds many that never contain Python, so the directory is only read
    when ``python``/``python3`` is already there or when it is itself a ``bin``/``Scripts`` folder (e.g. a
    linuxbrew ``bin`` holding only ``python3.12``).

    """
    env_path = Path(env_path)
    if _is_shim_dir(env_path):
        return []
    if (env_path / BIN_DIR).exists():
        env_path /= BIN_DIR
    if not (any((env_path / name).exists() for name in _PYTHON_EXES) or env_path.name == BIN_DIR):
        return []
    try:
        with os.scandir(env_path) as entries:
            return [Path(entry.path) for entry in entries if is_python_executable_name(Path(entry.name))]
    except OSError:
        LOGGER.debug("failed to list %s", env_path, exc_info=True)
        return []


def get_shortest_executable(exes: Iterable[Path] | None) -> Path | None:
    """:returns: the shortest of the given executables, most likely the one a user would type"""
    if not exes:
        return None
    return min(exes, key=lambda exe: len(str(exe)), default=None)


def should_search_for_environments_in_path(path: Path) -> bool:
    if path.name in FOLDERS_TO_IGNORE:
        LOGGER.debug("ignoring folder %s", path)
        return False
    return True


def get_search_paths_from_env_variables(env: Mapping[str, str]) -> list[Path]:
    path = env.get("PATH", None)
    if not path:
        return []
    result, seen = [], set()
    for entry in filter(None, path.split(os.pathsep)):
        path_id = fs_path_id(entry)
        if path_id in seen:
            continue
        seen.add(path_id)
        if (p := Path(entry)).is_dir():
            result.append(p)
    return result


def get_global_virtualenv_dirs(work_on_home: str | None, user_home: Path | None) -> list[Path]:
    venv_dirs: list[Path] = []
    if work_on_home:
        work_on_home_dir = Path(work_on_home).expanduser()
        if work_on_home_dir.exists():
            venv_dirs.append(work_on_home_dir)
    if user_home is not None:
        candidates = [
            Path("envs"),
            Path(".direnv"),
            Path(".venvs"),  # pipenv
            Path(".virtualenvs"),  # virtualenvwrapper
            Path(".local", "share", "virtualenvs"),
        ]
        if IS_LINUX:
            candidates.append(Path("Envs"))  # virtualenvwrapper's recommended location
        venv_dirs.extend(venv_dir for venv_dir in (user_home / d for d in candidates) if venv_dir.exists())
    return venv_dirs


def list_global_virtual_envs_paths(work_on_home: str | None, user_home: Path | None) -> list[Path]:
    python_envs: set[Path] = set()
    for root_dir in get_global_virtualenv_dirs(work_on_home, user_home):
        try:
            with os.scandir(root_dir) as entries:
                children = [Path(entry.path) for entry in entries]
        except OSError:
            LOGGER.debug("failed to list %s", root_dir, exc_info=True)
            continue
        python_envs.update(child for child in children if not (child / "conda-meta").is_dir())
    return sorted(python_envs)


__all__ = [
    "BIN_DIR",
    "FOLDERS_TO_IGNORE",
    "find_executable",
    "find_executables",
    "get_global_virtualenv_dirs",
    "get_search_paths_from_env_variables",
    "get_shortest_executable",
    "is_python_executable_name",
    "list_global_virtual_envs_paths",
    "should_search_for_environments_in_path",
]
