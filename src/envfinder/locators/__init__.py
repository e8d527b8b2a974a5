"""Locators shipped with envfinder, and the default order they are consulted in."""

from __future__ import annotations

from typing import TYPE_CHECKING

from envfinder._locator import LocatorRegistry

from .poetry import Poetry
from .venv import Venv

if TYPE_CHECKING:
    from collections.abc import Mapping


def create_locators(env: Mapping[str, str] | None = None) -> LocatorRegistry:
    """:returns: the default registry; Poetry comes first as its environments are venvs too"""
    return LocatorRegistry([Poetry(env), Venv()])


__all__ = [
    "Poetry",
    "Venv",
    "create_locators",
]
