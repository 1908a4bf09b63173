"""Command-line front door for lazybranch.

Parses CLI options, merges them over the persisted config, and configures
logging. Then either launches the interactive browser or prints one parsed
listing and exits.
"""

from __future__ import annotations

import argparse
import shutil
import sys
from pathlib import Path

from loguru import logger

from .ansi import ANSI_ESCAPE_RE
from .branch import decode_output, parse_local_listing, parse_remote_listing
from .commands import CommandTag, list_local_command, list_remote_command, run_git
from .app import command_error_from_result
from .config import CONFIG_PATH, BranchesConfig, load_branches_config, save_branches_config
from .errors import LazyBranchError
from .logging_setup import configure_logging
from .render import (
    LOCAL_COLUMN_CAPS,
    LOCAL_HEADER,
    REMOTE_COLUMN_CAPS,
    REMOTE_HEADER,
    local_row_cells,
    remote_row_cells,
    render_table,
)
from .runtime import run_browser


def _non_negative_float(value: str) -> float:
    """argparse type for non-negative float values."""
    try:
        parsed = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid number: {value!r}") from exc
    if parsed < 0:
        raise argparse.ArgumentTypeError("value must be >= 0")
    return parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lazybranch",
        description="Browse, filter, switch, and manage git branches in the terminal.",
    )
    parser.add_argument("--cwd", default=None, help="Repository directory. Defaults to the current directory.")
    parser.add_argument(
        "--floating-log",
        dest="floating_log",
        action="store_const",
        const=True,
        default=None,
        help="Open git log in a floating pane (zellij/tmux).",
    )
    parser.add_argument(
        "--log-arg",
        dest="log_args",
        action="append",
        default=None,
        metavar="ARG",
        help="Extra argument for git log (repeatable).",
    )
    parser.add_argument(
        "--refresh-seconds",
        type=_non_negative_float,
        default=None,
        help="Re-list branches periodically (0 disables).",
    )
    parser.add_argument("--save-config", action="store_true", help=f"Persist the given options to {CONFIG_PATH}.")
    parser.add_argument(
        "--print",
        dest="print_listing",
        choices=("local", "remote"),
        default=None,
        help="Print one parsed listing and exit instead of starting the browser.",
    )
    parser.add_argument("--git", default="git", help="git executable to run.")
    parser.add_argument("--log-level", default="INFO", help="Log level for the log file.")
    parser.add_argument("--no-log-file", action="store_true", help="Do not write a log file.")
    return parser


def resolve_config(args: argparse.Namespace) -> BranchesConfig:
    return load_branches_config().with_overrides(
        open_log_in_floating=args.floating_log,
        log_args=args.log_args,
        refresh_seconds=args.refresh_seconds,
    )


def print_listing(kind: str, cwd: Path, git_executable: str, color: bool) -> int:
    """Run one listing, print it as a table, and return the exit status."""
    command = list_remote_command() if kind == "remote" else list_local_command()
    result = run_git(git_executable, command, cwd, CommandTag(command.kind, 0))
    try:
        if not result.succeeded:
            raise command_error_from_result(result)
        text = decode_output(result.stdout)
        if kind == "remote":
            rows = [remote_row_cells(branch) for branch in parse_remote_listing(text)]
            lines = render_table(REMOTE_HEADER, rows, None, _output_width(), REMOTE_COLUMN_CAPS)
        else:
            local = parse_local_listing(text)
            rows = [local_row_cells(branch) for branch in local]
            lines = render_table(LOCAL_HEADER, rows, None, _output_width(), LOCAL_COLUMN_CAPS)
    except LazyBranchError as exc:
        logger.error("Listing failed: {}", exc)
        sys.stderr.write(f"{exc}\n")
        return 1

    for line in lines:
        sys.stdout.write((line if color else ANSI_ESCAPE_RE.sub("", line)) + "\n")
    return 0


def _is_interactive() -> bool:
    return sys.stdin.isatty() and sys.stdout.isatty()


def _output_width() -> int:
    return max(20, shutil.get_terminal_size((120, 24)).columns)


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and launch the browser (or print a listing)."""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(level=args.log_level.upper(), log_file=not args.no_log_file)

    cwd = Path(args.cwd) if args.cwd is not None else Path.cwd()
    if not cwd.is_dir():
        raise SystemExit(f"Directory not found: {cwd}")
    cwd = cwd.resolve()

    config = resolve_config(args)
    if args.save_config:
        save_branches_config(config)

    if args.print_listing is not None or not _is_interactive():
        kind = args.print_listing or "local"
        raise SystemExit(print_listing(kind, cwd, args.git, color=sys.stdout.isatty()))

    run_browser(cwd, config, git_executable=args.git)


if __name__ == "__main__":
    main()
