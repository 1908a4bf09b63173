"""Main interactive event loop for the branch browser.

Each iteration applies viewport resizes, drains finished git commands,
renders when dirty, and dispatches at most one key token. All state mutation
happens on this thread; git commands run on worker threads and only their
queued results cross over.
"""

from __future__ import annotations

import shutil
import sys
import time
from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from .app import BranchesApp
from .commands import CommandRunner
from .config import BranchesConfig
from .input import read_key
from .keys import KeyHandler
from .layout import RenderArea
from .log_pane import open_log
from .render import render_screen
from .state import AppState, create_state
from .terminal import TerminalController

KEY_POLL_TIMEOUT_MS = 50


@dataclass(frozen=True)
class RuntimeSession:
    state: AppState
    app: BranchesApp
    keys: KeyHandler
    runner: CommandRunner


def current_render_area() -> RenderArea:
    term = shutil.get_terminal_size((80, 24))
    return RenderArea(term.columns, term.lines)


def normalize_enter(state: AppState, key: str) -> str | None:
    """Collapse CR/LF pairs into one ``ENTER``; returns ``None`` for a swallowed LF."""
    if state.skip_next_lf and key == "ENTER_LF":
        state.skip_next_lf = False
        return None
    if key == "ENTER_CR":
        state.skip_next_lf = True
        return "ENTER"
    state.skip_next_lf = False
    if key == "ENTER_LF":
        return "ENTER"
    return key


def run_main_loop(session: RuntimeSession, terminal: TerminalController, stdin_fd: int) -> None:
    """Run until the user quits. Assumes the terminal is already in TUI mode."""
    state = session.state
    app = session.app
    app.resize(current_render_area().visible_branch_count)
    app.ensure_listed()
    while not state.should_quit:
        area = current_render_area()
        app.resize(area.visible_branch_count)

        for result in session.runner.poll():
            app.handle_command_result(result)
        app.maybe_periodic_refresh(time.monotonic())

        if state.dirty:
            terminal.write(render_screen(state, area))
            state.dirty = False

        try:
            key = read_key(stdin_fd, timeout_ms=KEY_POLL_TIMEOUT_MS)
        except KeyboardInterrupt:
            continue
        if key == "":
            continue
        normalized = normalize_enter(state, key)
        if normalized is None:
            continue
        session.keys.handle_key(normalized)


def build_session(
    cwd: Path,
    config: BranchesConfig,
    terminal: TerminalController | None = None,
    git_executable: str = "git",
) -> RuntimeSession:
    state = create_state(cwd, config)
    runner = CommandRunner(git_executable)

    def open_log_for(branch_name: str) -> str | None:
        if terminal is None:
            return "Log viewing needs an interactive terminal"
        return open_log(
            branch_name,
            state.cwd,
            state.config.log_args,
            state.config.open_log_in_floating,
            terminal.disable_tui_mode,
            terminal.enable_tui_mode,
            git_executable=git_executable,
        )

    app = BranchesApp(state, runner, open_log_for)
    return RuntimeSession(state=state, app=app, keys=KeyHandler(app), runner=runner)


def run_browser(cwd: Path, config: BranchesConfig, git_executable: str = "git") -> None:
    """Start the interactive browser on ``cwd``."""
    stdin_fd = sys.stdin.fileno()
    terminal = TerminalController(stdin_fd, sys.stdout.fileno())
    session = build_session(cwd, config, terminal, git_executable)
    logger.info("Starting branch browser in {}", cwd)
    with terminal.raw_mode():
        run_main_loop(session, terminal, stdin_fd)
    logger.info("Branch browser closed")
