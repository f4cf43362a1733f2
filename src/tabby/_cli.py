"""Tabby CLI — tabby build / tabby watch.

Entry point for the ``tabby`` command-line interface.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path


def _add_project_arguments(parser: argparse.ArgumentParser) -> None:
    """Arguments shared by every subcommand."""
    parser.add_argument(
        "cwd", nargs="?", default=".", help="Directory to search for the project file from",
    )
    parser.add_argument("-p", "--project", default=None, help="Project file name")
    parser.add_argument("-o", "--out-dir", default=None, help="Output directory")
    parser.add_argument("--out-ext", default=None, help="Extension for rendered templates")
    parser.add_argument(
        "--force",
        action="store_true",
        default=None,
        help="Render every file regardless of timestamps",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only print errors")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the tabby CLI."""
    parser = argparse.ArgumentParser(
        prog="tabby",
        description="Incremental renderer for templates, stylesheets and static files.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # tabby build
    build_parser = subparsers.add_parser(
        "build",
        help="Render every stale target into the output directory",
    )
    _add_project_arguments(build_parser)
    build_parser.add_argument(
        "-w", "--watch", action="store_true", help="Keep watching after the build",
    )

    # tabby watch
    watch_parser = subparsers.add_parser(
        "watch",
        help="Watch the project and re-render on change, without an initial build",
    )
    _add_project_arguments(watch_parser)

    return parser


def _get_version() -> str:
    """Get the package version."""
    from tabby import __version__

    return __version__


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    from tabby._errors import TabbyError
    from tabby.app import build
    from tabby.log import Log, LogLevel

    if args.verbose:
        level = LogLevel.VERBOSE
    elif args.quiet:
        level = LogLevel.ERROR
    else:
        level = LogLevel.INFO
    log = Log(level)

    watching = args.command == "watch" or args.watch
    # A relative --out-dir is taken from the shell's directory, not the project's.
    out_dir = str(Path(args.out_dir).resolve()) if args.out_dir else None

    try:
        build(
            args.cwd,
            project=args.project,
            watch=watching,
            render=args.command == "build",
            log=log,
            out_dir=out_dir,
            out_ext=args.out_ext,
            force=args.force,
        )
    except (TabbyError, OSError) as exc:
        log.error("%s", exc)
        sys.exit(1)
    except KeyboardInterrupt:
        log.info("Stopped.")


if __name__ == "__main__":
    main()
