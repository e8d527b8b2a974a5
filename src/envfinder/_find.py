"""Two phase concurrent discovery: validate the cache, then search afresh."""

from __future__ import annotations

import logging
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import timedelta
from functools import partial
from pathlib import Path
from typing import TYPE_CHECKING

from ._env import PythonEnv
from ._executable import (
    BIN_DIR,
    find_executable,
    find_executables,
    get_search_paths_from_env_variables,
    list_global_virtual_envs_paths,
    should_search_for_environments_in_path,
)
from ._fs import IS_MAC, get_mtime_ctime

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

    from ._cache import Cache
    from ._env import Environment
    from ._locator import CondaLocator, Configuration, LocatorRegistry
    from ._reporter import Reporter

LOGGER = logging.getLogger(__name__)

WORKSPACE_BATCH_SIZE = 20


@dataclass
class Summary:
    validation_time: timedelta = timedelta(0)
    search_time: timedelta = timedelta(0)


def discover(
    reporter: Reporter,
    config: Configuration,
    registry: LocatorRegistry,
    cache: Cache | None = None,
    env: Mapping[str, str] | None = None,
) -> Summary:
    """Find every environment on this machine, reporting each one as soon as it is known.

    Cached environments that still look current are validated and reported first. Then locators, global folders
    (PATH, well-known virtualenv homes, configured environment paths) and workspace folders are searched
    concurrently. The same environment may be reported more than once; de-duplicating is up to the reporter.

    """
    env = os.environ if env is None else env
    registry.configure(config)
    summary = Summary()
    if cache is not None:
        start = time.perf_counter()
        report_validated_environments(reporter, cache, registry)
        summary.validation_time = timedelta(seconds=time.perf_counter() - start)

    LOGGER.info("started refreshing environments")
    start = time.perf_counter()
    _run_concurrently(
        [
            partial(_find_using_locators, reporter, registry, config),
            partial(_find_in_global_folders, reporter, registry, config, env),
            partial(_find_in_workspace_folders, reporter, registry, config),
        ],
    )
    summary.search_time = timedelta(seconds=time.perf_counter() - start)
    LOGGER.info("refreshed environments in %s", summary.search_time)
    return summary


def _run_concurrently(tasks: Sequence[Callable[[], None]]) -> None:
    """Run each task on its own thread and wait for all of them, a failing task does not affect the others."""
    if not tasks:
        return
    with ThreadPoolExecutor(max_workers=len(tasks), thread_name_prefix="envfinder") as executor:
        futures = [executor.submit(task) for task in tasks]
        for future in futures:
            if (exception := future.exception()) is not None:
                LOGGER.error("discovery task failed", exc_info=exception)


def _report(reporter: Reporter, env: Environment) -> None:
    if env.manager is not None:
        reporter.report_manager(env.manager)
    reporter.report_environment(env)


def report_validated_environments(reporter: Reporter, cache: Cache, registry: LocatorRegistry) -> None:
    environments = cache.get_all_environments()
    if not environments:
        return
    LOGGER.info("validating %d cached environments", len(environments))
    _run_concurrently(
        [partial(_validate_cached, reporter, registry, env) for env in environments if env.executable is not None],
    )


def _validate_cached(reporter: Reporter, registry: LocatorRegistry, cached: Environment) -> None:
    locator = registry.for_category(cached.category)
    if locator is None:
        return
    for executable, cached_times in cached.times or ():
        current = get_mtime_ctime(executable)
        if current is not None and current != cached_times:
            LOGGER.debug("skipping validation of %s, %s changed since it was cached", cached.executable, executable)
            return
    # ask the locator again rather than trusting the record, the manager or its layout may have changed
    env = locator.try_from(PythonEnv(cached.executable, cached.prefix, cached.version))
    if env is not None:
        _report(reporter, env)


def _find_using_locators(reporter: Reporter, registry: LocatorRegistry, config: Configuration) -> None:
    _run_concurrently([partial(locator.find, reporter) for locator in registry])
    conda_locator = registry.conda_locator()
    if conda_locator is not None:
        # never joined: may still be running (and reporting) after discover returns
        threading.Thread(
            target=_find_with_conda_executable,
            args=(conda_locator, reporter, config.conda_executable),
            name="envfinder-conda",
            daemon=True,
        ).start()


def _find_with_conda_executable(locator: CondaLocator, reporter: Reporter, conda_executable: Path | None) -> None:
    try:
        locator.find_with_conda_executable(reporter, conda_executable)
    except Exception:
        LOGGER.exception("conda probe with %s failed", conda_executable)


def _find_in_global_folders(
    reporter: Reporter,
    registry: LocatorRegistry,
    config: Configuration,
    env: Mapping[str, str],
) -> None:
    search_paths = [
        *get_search_paths_from_env_variables(env),
        *list_global_virtual_envs_paths(env.get("WORKON_HOME"), _user_home(env)),
        *config.environment_paths,
    ]
    LOGGER.debug("searching for environments in global folders %s", search_paths)
    find_python_environments(search_paths, reporter, registry, is_workspace_folder=False)


def _find_in_workspace_folders(reporter: Reporter, registry: LocatorRegistry, config: Configuration) -> None:
    if not config.search_paths:
        return
    LOGGER.debug("searching for environments in workspace folders %s", config.search_paths)
    find_python_environments_in_workspace_folders_recursive(
        list(config.search_paths),
        reporter,
        registry,
        0,
        config.workspace_depth,
    )


def find_python_environments_in_workspace_folders_recursive(
    paths: Sequence[Path],
    reporter: Reporter,
    registry: LocatorRegistry,
    depth: int,
    max_depth: int,
) -> None:
    find_python_environments(paths, reporter, registry, is_workspace_folder=True)
    if depth >= max_depth:
        return
    batches: list[list[Path]] = []
    for path in paths:
        if (path / BIN_DIR).exists():  # an environment, do not look for environments inside it
            continue
        try:
            with os.scandir(path) as entries:
                folders = [Path(entry.path) for entry in entries if entry.is_dir()]
        except OSError:
            LOGGER.debug("failed to list %s", path, exc_info=True)
            continue
        folders = [folder for folder in folders if should_search_for_environments_in_path(folder)]
        batches.extend(_chunked(folders, WORKSPACE_BATCH_SIZE))
    _run_concurrently(
        [
            partial(
                find_python_environments_in_workspace_folders_recursive,
                batch,
                reporter,
                registry,
                depth + 1,
                max_depth,
            )
            for batch in batches
        ],
    )


def _chunked(items: list[Path], size: int) -> list[list[Path]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


def find_python_environments(
    paths: Sequence[Path],
    reporter: Reporter,
    registry: LocatorRegistry,
    *,
    is_workspace_folder: bool,
) -> None:
    if is_workspace_folder:
        # workspace folders hold whole environments, which always have bin/python, never only bin/python3.12
        executables = [exe for exe in map(find_executable, paths) if exe is not None]
    else:
        executables = [exe for path in paths for exe in find_executables(path)]
        if IS_MAC:
            executables = [exe for exe in executables if str(exe) != "/usr/bin/python2"]
    identify_python_executables_using_locators(executables, registry, reporter)


def identify_python_executables_using_locators(
    executables: Sequence[Path],
    registry: LocatorRegistry,
    reporter: Reporter,
) -> None:
    for executable in executables:
        env = registry.identify(PythonEnv(executable))
        if env is None:
            LOGGER.warning("Unknown Python Env %s", executable)
            continue
        _report(reporter, env)


def _user_home(env: Mapping[str, str]) -> Path | None:
    if home := env.get("HOME") or env.get("USERPROFILE"):
        return Path(home)
    try:
        return Path.home()
    except RuntimeError:
        return None


__all__ = [
    "WORKSPACE_BATCH_SIZE",
    "Summary",
    "discover",
    "find_python_environments",
    "find_python_environments_in_workspace_folders_recursive",
    "identify_python_executables_using_locators",
    "report_validated_environments",
]
