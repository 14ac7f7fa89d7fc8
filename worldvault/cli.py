"""
worldvault/cli.py -- Command-line entry point.

Usage::

    worldvault convert --json Oakvale.json --map Oakvale.map \\
        --img Oakvale.svg --output-dir ~/Vaults/Oakvale
    # or
    python -m worldvault convert ...

Exit status is 1 when the inputs are unusable (missing files, an invalid
map) and nothing was written; otherwise 0, even if some notes could not be
written (those are logged as warnings).
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Optional, Sequence

from pydantic import ValidationError

from worldvault import __version__
from worldvault.config import load_options
from worldvault.context import build_map_context
from worldvault.errors import MapValidationError
from worldvault.map_loader import load_world
from worldvault.orchestrator import RunStatus, run_generation
from worldvault.vault import VaultLayout

logger = logging.getLogger("worldvault")

EXIT_OK = 0
EXIT_INVALID = 1


def _setup_logging(level: str = "INFO") -> None:
    """Configure logging for command-line runs."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _positive_seconds(value: str) -> float:
    try:
        seconds = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{value!r} is not a number") from None
    if seconds <= 0:
        raise argparse.ArgumentTypeError(f"{value} is not a positive number of seconds")
    return seconds


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="worldvault",
        description="Convert a Fantasy Map Generator world into an Obsidian vault",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    convert = subparsers.add_parser("convert", help="Generate or refresh a vault")
    convert.add_argument("-j", "--json", help="Consolidated JSON export of the map")
    convert.add_argument("-m", "--map", help="Legacy .map save of the map")
    convert.add_argument("-i", "--img", required=True, help="Map image (SVG)")
    convert.add_argument("-o", "--output-dir", required=True, help="Vault directory")
    convert.add_argument(
        "--deadline", type=_positive_seconds,
        help="Give up on notes after this many seconds",
    )
    convert.add_argument("--config", help="JSON options file (default: per-user config)")
    convert.add_argument("-v", "--verbose", action="store_true", help="Log debug output")
    return parser


def _check_inputs(args) -> list[str]:
    problems = []
    if not args.json and not args.map:
        problems.append("one of --json or --map is required")
    for flag in ("json", "map", "img"):
        value = getattr(args, flag)
        if value and not os.path.isfile(value):
            problems.append(f"--{flag} {value} is not a file")
    if not os.path.isdir(args.output_dir):
        problems.append(f"--output-dir {args.output_dir} is not a directory")
    return problems


def convert(args) -> int:
    """Run the ``convert`` command; returns the exit status."""
    try:
        options = load_options(
            args.config,
            deadline_seconds=args.deadline,
            log_level="DEBUG" if args.verbose else None,
        )
    except ValidationError as exc:
        _setup_logging()
        logger.error("Invalid options: %s", exc)
        return EXIT_INVALID
    _setup_logging(options.log_level)

    problems = _check_inputs(args)
    if problems:
        for problem in problems:
            logger.error("Invalid arguments: %s", problem)
        return EXIT_INVALID

    try:
        dataset = load_world(args.json or args.map)
        context = build_map_context(dataset)
    except MapValidationError as exc:
        logger.error("%s", exc)
        for issue in exc.issues[1:]:
            logger.error("  %s", issue)
        return EXIT_INVALID

    vault = VaultLayout(
        os.path.abspath(args.output_dir),
        world_dir=options.world_directory,
        assets_dir=options.assets_directory,
        map_dir=options.map_directory,
    )
    sources = {}
    if options.copy_sources:
        sources = {"json": args.json, "map": args.map, "img": args.img}

    report = run_generation(
        context, vault, sources=sources, deadline=options.deadline_seconds
    )
    for failure in report.failures:
        logger.warning("Not written: %s (%s)", failure.label, failure.error)
    if report.status is not RunStatus.SUCCESS:
        logger.warning(report.summary())
    return EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.command == "convert":
        return convert(args)
    return EXIT_INVALID


if __name__ == "__main__":
    sys.exit(main())
