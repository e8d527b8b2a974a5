from __future__ import annotations

import logging
import os
import sys
import time
from argparse import ArgumentParser
from pathlib import Path
from typing import TYPE_CHECKING

from platformdirs import user_cache_path

from ._cache import Cache
from ._find import discover
from ._locator import Configuration
from ._reporter import CacheReporter, StdioReporter
from .locators import create_locators

if TYPE_CHECKING:
    from argparse import Namespace
    from collections.abc import Mapping, Sequence

    from ._reporter import ReportSummary


CACHE_DIR_ENV = "ENVFINDER_CACHE_DIR"


def build_parser(env: Mapping[str, str]) -> ArgumentParser:
    parser = ArgumentParser(prog="envfinder", description="discover Python environments on this machine")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="count", default=0, help="increase verbosity")
    verbosity.add_argument("-q", "--quiet", action="count", default=0, help="decrease verbosity")
    sub = parser.add_subparsers(dest="command")
    find = sub.add_parser("find", help="find environments and report them to the standard output")
    cache = find.add_mutually_exclusive_group()
    cache.add_argument(
        "--cache-dir",
        type=Path,
        default=Path(env[CACHE_DIR_ENV]) if env.get(CACHE_DIR_ENV) else None,
        help=f"directory for caching environments (default: ${CACHE_DIR_ENV}, no caching if unset)",
    )
    cache.add_argument(
        "--cache",
        dest="cache_dir",
        action="store_const",
        const=user_cache_path("envfinder"),
        help="cache environments in the per-user cache directory",
    )
    find.add_argument("--list", dest="print_list", action="store_true", default=True, help="print each environment")
    find.add_argument("--no-list", dest="print_list", action="store_false", help="only print the summary")
    find.add_argument(
        "--search-path",
        dest="search_paths",
        action="append",
        type=Path,
        metavar="PATH",
        help="workspace folder to look for environments in, may be repeated (default: the current directory)",
    )
    return parser


def _setup_logging(options: Namespace) -> None:
    level = logging.WARNING - 10 * (options.verbose - options.quiet)
    logging.basicConfig(
        level=min(max(level, logging.DEBUG), logging.CRITICAL),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )


def find_and_report_envs_stdio(
    print_list: bool,  # noqa: FBT001
    cache_dir: Path | None,
    search_paths: Sequence[Path],
    env: Mapping[str, str],
) -> None:
    start = time.perf_counter()
    cache = None if cache_dir is None else Cache(cache_dir)
    reporter = StdioReporter(print_list=print_list)
    config = Configuration(search_paths=list(search_paths))
    summary = discover(CacheReporter(reporter, cache), config, create_locators(env), cache, env)
    _print_summary(reporter.get_summary())
    elapsed = int((time.perf_counter() - start) * 1000)
    if cache is not None:
        cache_ms = int(summary.validation_time.total_seconds() * 1000)
        search_ms = int(summary.search_time.total_seconds() * 1000)
        print(f"Refresh completed in {elapsed}ms ({cache_ms}ms cache + {search_ms}ms search)")  # noqa: T201
    else:
        print(f"Refresh completed in {elapsed}ms")  # noqa: T201


def _print_summary(summary: ReportSummary) -> None:
    for title, counts in (("Managers", summary.managers), ("Environments", summary.environments)):
        if not counts:
            continue
        print(f"{title}:")  # noqa: T201
        print("-" * (len(title) + 1))  # noqa: T201
        for kind, count in sorted((k.value, v) for k, v in counts.items()):
            print(f"{kind:<20} : {count}")  # noqa: T201
        print()  # noqa: T201


def run(args: Sequence[str] | None = None, env: Mapping[str, str] | None = None) -> int:
    env = os.environ if env is None else env
    parser = build_parser(env)
    options = parser.parse_args(args)
    if options.command is None:
        options = parser.parse_args([*(args if args is not None else sys.argv[1:]), "find"])
    _setup_logging(options)
    search_paths = options.search_paths or [Path.cwd()]
    find_and_report_envs_stdio(options.print_list, options.cache_dir, search_paths, env)
    return 0


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
