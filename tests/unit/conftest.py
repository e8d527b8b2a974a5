from __future__ import annotations

import threading
from typing import TYPE_CHECKING

import pytest

from envfinder import Environment, EnvironmentCategory, Locator
from envfinder._executable import BIN_DIR
from envfinder._fs import IS_WIN

if TYPE_CHECKING:
    from pathlib import Path

    from envfinder import Manager, PythonEnv

PYTHON_EXE = "python.exe" if IS_WIN else "python"


class CollectingReporter:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.managers: list[Manager] = []
        self.environments: list[Environment] = []

    def report_manager(self, manager: Manager) -> None:
        with self._lock:
            self.managers.append(manager)

    def report_environment(self, env: Environment) -> None:
        with self._lock:
            self.environments.append(env)

    @property
    def executables(self) -> set[Path]:
        return {env.executable for env in self.environments}


class FakeLocator(Locator):
    """Claims every interpreter in ``accept`` (or all of them if unset) as ``category``."""

    def __init__(self, category: EnvironmentCategory, accept: set[Path] | None = None) -> None:
        self.category = category
        self.accept = accept
        self.found: list[Environment] = []

    def supported_categories(self) -> frozenset[EnvironmentCategory]:
        return frozenset((self.category,))

    def try_from(self, env: PythonEnv) -> Environment | None:
        if self.accept is not None and env.executable not in self.accept:
            return None
        return Environment(category=self.category, executable=env.executable, symlinks=(env.executable,))

    def find(self, reporter) -> None:
        for env in self.found:
            reporter.report_environment(env)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.category.value})"


@pytest.fixture
def reporter() -> CollectingReporter:
    return CollectingReporter()


@pytest.fixture
def env_vars(tmp_path: Path) -> dict[str, str]:
    home = tmp_path / "home"
    home.mkdir()
    return {"PATH": "", "HOME": str(home)}


@pytest.fixture
def make_venv():
    def _make(root: Path, version: str = "3.12.1", *, virtualenv: bool = False) -> Path:
        (root / BIN_DIR).mkdir(parents=True)
        exe = root / BIN_DIR / PYTHON_EXE
        exe.write_text("", encoding="utf-8")
        cfg = f"home = /usr/bin\nversion_info = {version}\n"
        if virtualenv:
            cfg += "virtualenv = 20.26.0\n"
        (root / "pyvenv.cfg").write_text(cfg, encoding="utf-8")
        return exe

    return _make
