"""Reading the ``pyvenv.cfg`` written by venv and virtualenv."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path


PYVENV_CFG = "pyvenv.cfg"


def read_pyvenv_cfg(prefix: Path) -> dict[str, str] | None:
    """:returns: the ``key = value`` pairs of the environment's ``pyvenv.cfg``, ``None`` if it has none"""
    try:
        content = (prefix / PYVENV_CFG).read_text(encoding="utf-8")
    except OSError:
        return None
    values = {}
    for line in content.splitlines():
        key, sep, value = line.partition("=")
        if sep:
            values[key.strip().lower()] = value.strip()
    return values


def version_from_pyvenv_cfg(values: dict[str, str]) -> str | None:
    return values.get("version_info") or values.get("version")


__all__ = [
    "PYVENV_CFG",
    "read_pyvenv_cfg",
    "version_from_pyvenv_cfg",
]
