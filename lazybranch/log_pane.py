"""``git log`` launcher for the selected branch.

Inside zellij or tmux the log opens in a new (optionally floating) pane and
the browser keeps running. Elsewhere the TUI is suspended and ``git log``
runs in the foreground with its usual pager.
Returns an error message string instead of raising for UI-friendly handling.
"""

from __future__ import annotations

import os
import shlex
import shutil
import subprocess
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Callable

from loguru import logger

from .commands import log_command_args


def multiplexer_command(
    git_cmd: Sequence[str],
    cwd: Path,
    floating: bool,
    env: Mapping[str, str] | None = None,
) -> list[str] | None:
    """Build the zellij/tmux command opening ``git_cmd`` in a new pane."""
    environ = os.environ if env is None else env
    if environ.get("ZELLIJ") is not None and shutil.which("zellij"):
        cmd = ["zellij", "run"]
        if floating:
            cmd.append("--floating")
        return [*cmd, "--cwd", str(cwd), "--", *git_cmd]
    if environ.get("TMUX") and shutil.which("tmux"):
        shell_cmd = shlex.join(git_cmd)
        if floating:
            return ["tmux", "display-popup", "-E", "-d", str(cwd), shell_cmd]
        return ["tmux", "split-window", "-c", str(cwd), shell_cmd]
    return None


def open_log(
    branch_name: str,
    cwd: Path,
    log_args: Sequence[str],
    floating: bool,
    disable_tui_mode: Callable[[], None],
    enable_tui_mode: Callable[[], None],
    git_executable: str = "git",
) -> str | None:
    git_cmd = [git_executable, *log_command_args(branch_name, tuple(log_args))]
    pane_cmd = multiplexer_command(git_cmd, cwd, floating)
    if pane_cmd is not None:
        logger.debug("Opening log pane: {}", pane_cmd)
        try:
            subprocess.Popen(
                pane_cmd,
                cwd=cwd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as exc:
            return f"Failed to open log pane: {exc}"
        return None

    logger.debug("Running log in foreground: {}", git_cmd)
    disable_tui_mode()
    try:
        subprocess.run(git_cmd, cwd=cwd, check=False)
    except OSError as exc:
        return f"Failed to run git log: {exc}"
    finally:
        enable_tui_mode()
    return None
