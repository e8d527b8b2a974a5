from __future__ import annotations

import logging
import subprocess

import pytest

from envfinder import Configuration, EnvironmentCategory, ManagerType, PythonEnv
from envfinder.locators.poetry import Poetry, find_poetry_manager, parse_env_list


@pytest.fixture
def poetry_exe(tmp_path):
    exe = tmp_path / "poetry"
    exe.write_text("", encoding="utf-8")
    return exe


@pytest.fixture
def project(tmp_path):
    folder = tmp_path / "project"
    folder.mkdir()
    return folder


def _completed(stdout="", returncode=0):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr="boom")


def test_parse_env_list(tmp_path):
    output = f"{tmp_path / 'a-py3.11'}\n\n  {tmp_path / 'a-py3.12'} (Activated)\n"

    assert parse_env_list(output) == [tmp_path / "a-py3.11", tmp_path / "a-py3.12"]


def test_poetry_find_memoized(tmp_path, poetry_exe, project, make_venv, reporter, mocker):
    exe = make_venv(tmp_path / "virtualenvs" / "project-py3.12", version="3.12.4")
    run = mocker.patch(
        "envfinder.locators.poetry.subprocess.run",
        return_value=_completed(f"{tmp_path / 'virtualenvs' / 'project-py3.12'} (Activated)\n{tmp_path / 'gone'}\n"),
    )
    locator = Poetry({"PATH": ""})
    locator.configure(Configuration(search_paths=[project], poetry_executable=poetry_exe))

    locator.find(reporter)

    assert [manager.tool for manager in reporter.managers] == [ManagerType.POETRY]
    assert len(reporter.environments) == 1
    env = reporter.environments[0]
    assert env.category == EnvironmentCategory.POETRY
    assert env.executable == exe
    assert env.project == project
    assert env.version == "3.12.4"
    assert env.manager.executable == poetry_exe
    assert run.call_args.kwargs["cwd"] == project

    assert locator.try_from(PythonEnv(exe)) == env
    assert locator.try_from(PythonEnv(tmp_path / "other" / "python")) is None
    assert run.call_count == 1

    locator.configure(Configuration(search_paths=[project], poetry_executable=poetry_exe))
    locator.find(reporter)
    assert run.call_count == 2


def test_poetry_failing_command(poetry_exe, project, reporter, mocker):
    mocker.patch("envfinder.locators.poetry.subprocess.run", return_value=_completed(returncode=1))
    locator = Poetry({"PATH": ""})
    locator.configure(Configuration(search_paths=[project], poetry_executable=poetry_exe))

    locator.find(reporter)

    assert reporter.environments == []


def test_poetry_command_cannot_start(poetry_exe, project, reporter, mocker, caplog):
    caplog.set_level(logging.WARNING)
    mocker.patch("envfinder.locators.poetry.subprocess.run", side_effect=OSError("exec format error"))
    locator = Poetry({"PATH": ""})
    locator.configure(Configuration(search_paths=[project], poetry_executable=poetry_exe))

    locator.find(reporter)

    assert reporter.environments == []
    assert "exec format error" in caplog.text


def test_poetry_not_installed(tmp_path, reporter, mocker):
    run = mocker.patch("envfinder.locators.poetry.subprocess.run")
    locator = Poetry({"PATH": ""})
    locator.configure(Configuration(search_paths=[tmp_path]))

    locator.find(reporter)

    assert reporter.environments == []
    assert run.call_count == 0


def test_poetry_manager_found_on_path(tmp_path, mocker):
    which = mocker.patch("envfinder.locators.poetry.shutil.which", return_value=str(tmp_path / "poetry"))
    (tmp_path / "poetry").write_text("", encoding="utf-8")

    manager = find_poetry_manager(None, {"PATH": str(tmp_path)})

    assert manager is not None
    assert manager.executable == tmp_path / "poetry"
    which.assert_called_once_with("poetry", path=str(tmp_path))


def test_poetry_reconfigured_while_searching(tmp_path, poetry_exe, project, reporter, mocker):
    other = tmp_path / "other"
    other.mkdir()
    locator = Poetry({"PATH": ""})
    searched = []

    def _run(cmd, cwd, **kwargs):
        searched.append(cwd)
        if len(searched) == 1:
            locator.configure(Configuration(search_paths=[other], poetry_executable=poetry_exe))
        return _completed()

    mocker.patch("envfinder.locators.poetry.subprocess.run", side_effect=_run)
    locator.configure(Configuration(search_paths=[project], poetry_executable=poetry_exe))

    locator.find(reporter)
    locator.find(reporter)
    locator.find(reporter)

    assert searched == [project, other]
