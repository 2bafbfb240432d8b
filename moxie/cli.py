"""Command-line interface for moxie."""

import argparse
import importlib
import logging
import sys
from pathlib import Path

from moxie.config import ConfigurationError, MoxieConfig
from moxie.emitter import render_surface
from moxie.errors import GenerationError
from moxie.inspector import component_type
from moxie.resolver import resolve

logger = logging.getLogger(__name__)


def setup_logging(level: str = "WARNING"):
    """Configure logging to stderr."""
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="moxie",
        description="Resolve and describe mockable methods of composed classes",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # resolve subcommand
    resolve_parser = subparsers.add_parser(
        "resolve",
        help="Print the resolved method set as JSON (default)",
    )
    resolve_parser.add_argument(
        "target",
        help="Class to resolve, as module:Class",
    )
    resolve_parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail on ambiguous method names instead of dropping them",
    )

    # surface subcommand
    surface_parser = subparsers.add_parser(
        "surface",
        help="Write a stub of the generated proxies and their controls",
    )
    surface_parser.add_argument(
        "target",
        help="Class to describe, as module:Class",
    )
    surface_parser.add_argument(
        "--output",
        "-o",
        help="Output path for the stub (default: stdout)",
    )
    surface_parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail on ambiguous method names instead of dropping them",
    )

    return parser


def parse_args(args: list[str]) -> argparse.Namespace:
    """Parse command-line arguments; a bare target means resolve."""
    parser = create_parser()

    if args and not args[0].startswith("-") and args[0] not in ("resolve", "surface"):
        args = ["resolve"] + args

    return parser.parse_args(args)


def load_target(target: str) -> type:
    """Import ``module:Class`` (nested classes as ``module:Outer.Inner``).

    Raises:
        ValueError: If the target is malformed or not a class
        ImportError: If the module cannot be imported
        AttributeError: If the class does not exist
    """
    module_name, sep, class_path = target.partition(":")
    if not sep or not module_name or not class_path:
        raise ValueError(f"bad target: {target!r} (expected module:Class)")

    obj = importlib.import_module(module_name)
    for part in class_path.split("."):
        obj = getattr(obj, part)
    if not isinstance(obj, type):
        raise ValueError(f"{target} is not a class")
    return obj


def run_resolve(target: str, strict: bool) -> int:
    """Run the resolve command."""
    logger.info(f"Resolving {target}")
    resolved = resolve(component_type(load_target(target)), strict=strict)
    print(resolved.to_json())
    return 0


def run_surface(target: str, output: str | None, strict: bool) -> int:
    """Run the surface command.

    The stub is fully rendered before anything is written, so a generation
    error leaves no output file behind.
    """
    logger.info(f"Rendering surface of {target}")
    resolved = resolve(component_type(load_target(target)), strict=strict)
    content = render_surface(resolved, source=target)

    if output is None:
        sys.stdout.write(content)
        return 0

    Path(output).write_text(content)
    logger.info(f"Surface written to {output}")
    print(
        f"Wrote {len(resolved)} proxied methods of {resolved.component} to: {output}",
        file=sys.stderr,
    )
    return 0


def run_cli(args: list[str]) -> int:
    """Run the CLI with the given arguments.

    Args:
        args: Command-line arguments (without program name)

    Returns:
        Exit code (0 for success, 1 for load or generation errors,
        2 for usage errors)
    """
    try:
        config = MoxieConfig.from_env()
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    setup_logging(config.log_level)

    try:
        parsed = parse_args(args)
    except SystemExit as e:
        return e.code if e.code else 0

    if parsed.command is None:
        create_parser().print_help(sys.stderr)
        return 2

    strict = parsed.strict or config.strict
    try:
        if parsed.command == "resolve":
            return run_resolve(parsed.target, strict)
        elif parsed.command == "surface":
            return run_surface(parsed.target, parsed.output, strict)
    except (ImportError, AttributeError, ValueError) as e:
        logger.error(f"Cannot load {parsed.target}: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except GenerationError as e:
        logger.error(f"Generation failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 2


def main():
    """Entry point for the CLI."""
    sys.exit(run_cli(sys.argv[1:]))


if __name__ == "__main__":
    main()
