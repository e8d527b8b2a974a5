"""Disk backed cache of discovered environments, mirrored in memory."""

from __future__ import annotations

import json
import logging
import os
import threading
from contextlib import contextmanager
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING

from filelock import FileLock

from ._env import Environment
from ._fs import get_mtime_ctime

if TYPE_CHECKING:
    from collections.abc import Generator

LOGGER = logging.getLogger(__name__)

_FNV_OFFSET = 0xCBF29CE484222325
_FNV_PRIME = 0x100000001B3
_MASK_64 = (1 << 64) - 1
_LOCK_TIMEOUT = 10


def compute_hash(path: str | os.PathLike[str]) -> str:
    """Stable 64-bit FNV-1a hash of a path's bytes, as hex.

    The built-in :func:`hash` is salted per process so it cannot name files that must be found again later.

    """
    value = _FNV_OFFSET
    for byte in os.fsencode(path):
        value = ((value ^ byte) * _FNV_PRIME) & _MASK_64
    return f"{value:x}"


class Cache:
    """One JSON file per environment, named after the hash of its identity.

    Layout: ``<cache_dir>/<compute_hash(key)>.json``

    """

    def __init__(self, cache_dir: Path) -> None:
        self.cache_dir = Path(cache_dir)
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exception:
            LOGGER.warning("failed to create cache directory %s: %r", self.cache_dir, exception)
        self._lock = threading.Lock()
        self._environments: list[Environment] = []
        self._dirty = threading.Event()
        self._dirty.set()

    def _file(self, key: Path) -> Path:
        return self.cache_dir / f"{compute_hash(key)}.json"

    @contextmanager
    def _locked(self, key: Path) -> Generator[None]:
        with FileLock(str(self.cache_dir / f"{compute_hash(key)}.lock"), timeout=_LOCK_TIMEOUT):
            yield

    def store(self, environment: Environment) -> None:
        with self._lock:
            self._environments.append(environment)
        key = environment.key
        if key is None:
            return
        environment = _with_times(environment)
        cache_file = self._file(key)
        try:
            content = json.dumps(environment.to_dict(), sort_keys=True, indent=2)
        except (TypeError, ValueError) as exception:
            LOGGER.warning("failed to serialize environment %s for caching: %r", key, exception)
            return
        try:
            with self._locked(key):
                cache_file.write_text(content, encoding="utf-8")
        except OSError as exception:
            LOGGER.warning("failed to write environment %s to cache: %r", key, exception)
            return
        LOGGER.debug("cached %s at %s", key, cache_file)
        self._dirty.set()

    def get_all_environments(self) -> list[Environment]:
        if not self._dirty.is_set():
            with self._lock:
                return list(self._environments)
        # cleared before reading so that a store landing mid-scan marks the mirror dirty again
        self._dirty.clear()
        environments = []
        try:
            entries = list(os.scandir(self.cache_dir))
        except OSError as exception:
            LOGGER.warning("failed to read cache directory %s: %r", self.cache_dir, exception)
            entries = []
        for entry in entries:
            if not entry.name.lower().endswith(".json"):
                continue
            environment = self._read(Path(entry.path))
            if environment is not None:
                environments.append(environment)
        with self._lock:
            self._environments = list(environments)
        return environments

    @staticmethod
    def _read(path: Path) -> Environment | None:
        try:
            content = path.read_text(encoding="utf-8")
        except OSError:
            LOGGER.warning("failed to read cache file %s", path, exc_info=True)
            return None
        try:
            return Environment.from_dict(json.loads(content))
        except (ValueError, KeyError, TypeError, AttributeError):
            LOGGER.warning("failed to deserialize environment from cache file %s", path)
            return None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(cache_dir={str(self.cache_dir)!r})"


def _with_times(environment: Environment) -> Environment:
    if not environment.symlinks:
        return environment
    times = []
    for executable in environment.symlinks:
        if (file_times := get_mtime_ctime(executable)) is not None:
            times.append((executable, file_times))
    return replace(environment, times=tuple(times)) if times else environment


__all__ = [
    "Cache",
    "compute_hash",
]
