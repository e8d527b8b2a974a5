from __future__ import annotations

import os
from pathlib import Path

import pytest

from envfinder._executable import (
    BIN_DIR,
    find_executable,
    find_executables,
    get_search_paths_from_env_variables,
    get_shortest_executable,
    is_python_executable_name,
    list_global_virtual_envs_paths,
    should_search_for_environments_in_path,
)
from envfinder._fs import IS_LINUX, IS_WIN

EXE = ".exe" if IS_WIN else ""


def _touch(*paths: Path) -> None:
    for path in paths:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("", encoding="utf-8")


@pytest.mark.skipif(IS_WIN, reason="unix executable names")
@pytest.mark.parametrize("name", ["python", "python3", "python3.1", "python3.10", "python4.10", "Python3"])
def test_is_python_executable_name(name):
    assert is_python_executable_name(Path(name))


@pytest.mark.skipif(IS_WIN, reason="unix executable names")
@pytest.mark.parametrize("name", ["pythonw", "pythonw3", "python3-config", "python3.12-config", "ipython", "py"])
def test_is_not_python_executable_name(name):
    assert not is_python_executable_name(Path(name))


def test_find_executables_descends_into_bin(tmp_path):
    _touch(tmp_path / BIN_DIR / f"python{EXE}", tmp_path / BIN_DIR / f"python3.12{EXE}", tmp_path / BIN_DIR / "pip")

    result = find_executables(tmp_path)

    assert sorted(result) == [tmp_path / BIN_DIR / f"python{EXE}", tmp_path / BIN_DIR / f"python3.12{EXE}"]


def test_find_executables_lists_bin_without_canonical_name(tmp_path):
    # e.g. a linuxbrew bin folder holding only python3.12
    _touch(tmp_path / BIN_DIR / f"python3.12{EXE}")

    assert find_executables(tmp_path / BIN_DIR) == [tmp_path / BIN_DIR / f"python3.12{EXE}"]


def test_find_executables_skips_listing_without_python(tmp_path, mocker):
    folder = tmp_path / "tools"
    _touch(folder / f"python3.12{EXE}", folder / "node")
    scandir = mocker.spy(os, "scandir")

    assert find_executables(folder) == []
    assert scandir.call_count == 0


@pytest.mark.parametrize("shim", [(".pyenv", "shims"), (".asdf", "shims"), ("pyenv-win", "shims")])
def test_find_executables_skips_shims(tmp_path, shim):
    folder = tmp_path.joinpath(*shim)
    _touch(folder / f"python{EXE}")

    assert find_executables(folder) == []


def test_find_executables_unreadable(tmp_path):
    assert find_executables(tmp_path / "missing" / BIN_DIR) == []


def test_find_executable_prefers_bin_python(tmp_path):
    _touch(tmp_path / BIN_DIR / f"python{EXE}", tmp_path / BIN_DIR / f"python3{EXE}", tmp_path / f"python{EXE}")

    assert find_executable(tmp_path) == tmp_path / BIN_DIR / f"python{EXE}"


def test_find_executable_falls_back_to_root(tmp_path):
    _touch(tmp_path / f"python3{EXE}")

    assert find_executable(tmp_path) == tmp_path / f"python3{EXE}"
    assert find_executable(tmp_path / "missing") is None


@pytest.mark.parametrize("name", ["node_modules", ".git", ".tox", "__pycache__", ".mypy_cache", "bin", "Scripts"])
def test_ignored_folders(tmp_path, name):
    assert not should_search_for_environments_in_path(tmp_path / name)


def test_regular_folder_searched(tmp_path):
    assert should_search_for_environments_in_path(tmp_path / ".venv")


def test_search_paths_from_path_variable(tmp_path):
    first, second = tmp_path / "first", tmp_path / "second"
    first.mkdir()
    second.mkdir()
    path = os.pathsep.join([str(first), "", str(tmp_path / "missing"), str(second), str(first)])

    assert get_search_paths_from_env_variables({"PATH": path}) == [first, second]
    assert get_search_paths_from_env_variables({}) == []


def test_global_virtual_envs(tmp_path):
    home = tmp_path / "home"
    (home / ".virtualenvs" / "b").mkdir(parents=True)
    (home / ".virtualenvs" / "a").mkdir()
    (home / "envs" / "conda-env" / "conda-meta").mkdir(parents=True)
    work_on_home = tmp_path / "workon"
    (work_on_home / "c").mkdir(parents=True)

    result = list_global_virtual_envs_paths(str(work_on_home), home)

    assert result == sorted([home / ".virtualenvs" / "a", home / ".virtualenvs" / "b", work_on_home / "c"])


@pytest.mark.skipif(not IS_LINUX, reason="virtualenvwrapper location is linux only")
def test_global_virtual_envs_linux_envs_folder(tmp_path):
    (tmp_path / "Envs" / "d").mkdir(parents=True)

    assert list_global_virtual_envs_paths(None, tmp_path) == [tmp_path / "Envs" / "d"]


def test_global_virtual_envs_without_home():
    assert list_global_virtual_envs_paths(None, None) == []


def test_shortest_executable(tmp_path):
    exes = [tmp_path / "python3.12", tmp_path / "python", tmp_path / "python3"]

    assert get_shortest_executable(exes) == tmp_path / "python"
    assert get_shortest_executable([]) is None
    assert get_shortest_executable(None) is None
