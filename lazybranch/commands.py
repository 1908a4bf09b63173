"""Git command builders and the asynchronous command runner.

Every command carries a kind (``list_local_branches``, ``switch``, ...). The
runner executes commands on daemon threads and queues tagged results; the
runtime loop drains them between key reads and dispatches on the kind.
"""

from __future__ import annotations

import itertools
import os
import subprocess
import threading
from dataclasses import dataclass
from pathlib import Path
from queue import Empty, Queue

from loguru import logger

from .branch import LocalBranch, RemoteBranch
from .errors import ActionPreconditionError

LIST_LOCAL = "list_local_branches"
LIST_REMOTE = "list_remote_branches"
SWITCH = "switch"
CREATE = "create"
DELETE = "delete"
FETCH = "fetch"
TRACK_REMOTE = "track_remote"


@dataclass(frozen=True)
class GitCommand:
    args: tuple[str, ...]
    kind: str


@dataclass(frozen=True)
class CommandTag:
    """Correlates a submitted command with its later result."""

    kind: str
    request_id: int


@dataclass(frozen=True)
class CommandResult:
    exit_status: int | None
    stdout: bytes
    stderr: bytes
    tag: CommandTag

    @property
    def succeeded(self) -> bool:
        return self.exit_status == 0


def list_local_command() -> GitCommand:
    return GitCommand(("branch", "-vv"), LIST_LOCAL)


def list_remote_command() -> GitCommand:
    return GitCommand(("branch", "-r", "-v"), LIST_REMOTE)


def switch_command(branch: LocalBranch) -> GitCommand:
    return GitCommand(("switch", branch.name), SWITCH)


def switch_previous_command() -> GitCommand:
    return GitCommand(("switch", "-"), SWITCH)


def create_command(name: str) -> GitCommand:
    if not name.strip():
        raise ActionPreconditionError("Type a branch name before creating a branch")
    return GitCommand(("checkout", "-b", name), CREATE)


def delete_command(branch: LocalBranch, force: bool = False) -> GitCommand:
    return GitCommand(("branch", "-D" if force else "-d", branch.name), DELETE)


def fetch_command(branch: LocalBranch) -> GitCommand:
    """Fast-forward ``branch`` from its upstream without switching to it."""
    if branch.upstream is None:
        raise ActionPreconditionError("Local branch does not track any remote branch")
    remote_parts = branch.upstream.split_remote()
    if remote_parts is None:
        raise ActionPreconditionError("Invalid upstream")
    remote, remote_ref = remote_parts
    return GitCommand(("fetch", remote, f"{remote_ref}:{branch.name}"), FETCH)


def track_command(branch: RemoteBranch) -> GitCommand:
    return GitCommand(("checkout", "--track", branch.name), TRACK_REMOTE)


def log_command_args(branch_name: str, log_args: list[str] | tuple[str, ...] = ()) -> list[str]:
    return ["log", *log_args, branch_name]


def _git_env() -> dict[str, str]:
    env = dict(os.environ)
    # Credential prompts would fight the TUI for the terminal.
    env["GIT_TERMINAL_PROMPT"] = "0"
    return env


def run_git(git_executable: str, command: GitCommand, cwd: Path, tag: CommandTag) -> CommandResult:
    """Run ``command`` to completion and capture its output.

    Spawn failures are reported as a result with no exit status.
    """
    try:
        proc = subprocess.run(
            [git_executable, *command.args],
            cwd=cwd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            env=_git_env(),
            check=False,
        )
    except OSError as exc:
        return CommandResult(None, b"", f"Failed to run {git_executable}: {exc}".encode("utf-8"), tag)
    return CommandResult(proc.returncode, proc.stdout, proc.stderr, tag)


class CommandRunner:
    """Fire-and-forget git execution with results delivered through a queue."""

    def __init__(self, git_executable: str = "git") -> None:
        self.git_executable = git_executable
        self._results: Queue[CommandResult] = Queue()
        self._ids = itertools.count(1)
        self._lock = threading.Lock()
        self._in_flight: dict[int, CommandTag] = {}

    def submit(self, command: GitCommand, cwd: Path) -> CommandTag:
        tag = CommandTag(kind=command.kind, request_id=next(self._ids))
        with self._lock:
            self._in_flight[tag.request_id] = tag
        logger.debug("git {} (kind={}, id={}) in {}", " ".join(command.args), tag.kind, tag.request_id, cwd)
        worker = threading.Thread(
            target=self._worker,
            args=(command, cwd, tag),
            name=f"lazybranch-git-{tag.request_id}",
            daemon=True,
        )
        worker.start()
        return tag

    def _worker(self, command: GitCommand, cwd: Path, tag: CommandTag) -> None:
        result = run_git(self.git_executable, command, cwd, tag)
        with self._lock:
            self._in_flight.pop(tag.request_id, None)
        self._results.put(result)

    def poll(self) -> list[CommandResult]:
        """Return every result that arrived since the last poll."""
        results: list[CommandResult] = []
        while True:
            try:
                results.append(self._results.get_nowait())
            except Empty:
                return results

    def wait(self, timeout: float | None = None) -> CommandResult | None:
        """Block for the next result; mainly useful outside the TUI loop."""
        try:
            return self._results.get(timeout=timeout)
        except Empty:
            return None

    def in_flight_kinds(self) -> set[str]:
        with self._lock:
            return {tag.kind for tag in self._in_flight.values()}
