"""Platform flags, path identity and the timestamps used as staleness fingerprints."""

from __future__ import annotations

import functools
import logging
import os
import sys
import tempfile
from typing import NamedTuple

IS_WIN = sys.platform == "win32"
IS_MAC = sys.platform == "darwin"
IS_LINUX = sys.platform.startswith("linux")

LOGGER = logging.getLogger(__name__)


class FileTimes(NamedTuple):
    """Modification and creation time of a file, in milliseconds since the epoch."""

    mtime: int
    ctime: int


def get_mtime_ctime(path: str | os.PathLike[str]) -> FileTimes | None:
    """:returns: the fingerprint of *path*, or ``None`` if it cannot be stat-ed"""
    try:
        st = os.stat(path)
    except OSError:
        return None
    # st_birthtime is missing on most Linux filesystems, fall back to the inode change time
    created = getattr(st, "st_birthtime", None)
    ctime = int(created * 1000) if created is not None else st.st_ctime_ns // 1_000_000
    return FileTimes(mtime=st.st_mtime_ns // 1_000_000, ctime=ctime)


@functools.lru_cache(maxsize=1)
def fs_is_case_sensitive() -> bool:
    with tempfile.NamedTemporaryFile(prefix="TmP") as tmp_file:
        result = not os.path.exists(tmp_file.name.lower())
    LOGGER.debug("filesystem is %scase-sensitive", "" if result else "not ")
    return result


def fs_path_id(path: str) -> str:
    """:returns: a key equal for two spellings of the same path on case-insensitive filesystems"""
    return path.casefold() if not fs_is_case_sensitive() else path


__all__ = [
    "IS_LINUX",
    "IS_MAC",
    "IS_WIN",
    "FileTimes",
    "fs_is_case_sensitive",
    "fs_path_id",
    "get_mtime_ctime",
]
