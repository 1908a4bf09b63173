"""Branch browser operations over ``AppState``.

``BranchesApp`` turns semantic actions (switch, delete, type a query
character, ...) into state changes and git command submissions, and applies
tagged command results when they arrive. Errors from parsing, failed commands
and rejected actions all end up in ``state.error_message``.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from pathlib import Path
from typing import Protocol

from loguru import logger

from .branch import (
    LocalBranch,
    RemoteBranch,
    decode_output,
    parse_local_listing,
    parse_remote_listing,
)
from .commands import (
    CREATE,
    DELETE,
    FETCH,
    LIST_LOCAL,
    LIST_REMOTE,
    SWITCH,
    TRACK_REMOTE,
    CommandResult,
    CommandTag,
    GitCommand,
    create_command,
    delete_command,
    fetch_command,
    list_local_command,
    list_remote_command,
    switch_command,
    switch_previous_command,
    track_command,
)
from .errors import ActionPreconditionError, BranchParseError, CommandError, LazyBranchError
from .state import LOCAL_TAB, REMOTE_TAB, AppState
from .tab import FilterableTab

_RELIST_LOCAL_KINDS = frozenset({SWITCH, CREATE, DELETE, FETCH})


class CommandSubmitter(Protocol):
    def submit(self, command: GitCommand, cwd: Path) -> CommandTag: ...

    def in_flight_kinds(self) -> set[str]: ...


LogOpener = Callable[[str], "str | None"]


def _is_current(branch: LocalBranch) -> bool:
    return branch.is_current


def command_error_from_result(result: CommandResult) -> CommandError:
    message = decode_output(result.stderr).rstrip("\n")
    if not message:
        if result.exit_status is None:
            message = "git did not report an exit status"
        else:
            message = f"git exited with status {result.exit_status}"
    return CommandError(message, exit_status=result.exit_status)


class BranchesApp:
    """State-bound actions used by key handling and the runtime loop."""

    def __init__(
        self,
        state: AppState,
        runner: CommandSubmitter,
        open_log: LogOpener | None = None,
    ) -> None:
        self.state = state
        self.runner = runner
        self.open_log_fn = open_log

    # -- tabs ---------------------------------------------------------------

    def active_tab(self) -> FilterableTab:
        if self.state.branch_type == REMOTE_TAB:
            return self.state.remote_tab
        return self.state.local_tab

    def toggle_tab(self) -> None:
        self.state.branch_type = LOCAL_TAB if self.state.branch_type == REMOTE_TAB else REMOTE_TAB
        self.ensure_listed()
        self.active_tab().reconcile_scroll(self.state.visible_capacity)
        self.state.dirty = True

    def ensure_listed(self) -> None:
        """List the active tab's branches the first time it is shown."""
        tab = self.active_tab()
        if tab.inited:
            return
        tab.inited = True
        self.refresh_active()

    def refresh_active(self) -> None:
        if self.state.branch_type == REMOTE_TAB:
            self.list_remote_branches()
        else:
            self.list_local_branches()

    def list_local_branches(self) -> CommandTag:
        return self._submit(list_local_command())

    def list_remote_branches(self) -> CommandTag:
        return self._submit(list_remote_command())

    def maybe_periodic_refresh(self, now: float) -> bool:
        """Re-list the active tab when ``refresh_seconds`` has elapsed."""
        interval = self.state.config.refresh_seconds
        if interval <= 0 or not self.active_tab().inited:
            return False
        kind = LIST_REMOTE if self.state.branch_type == REMOTE_TAB else LIST_LOCAL
        last = self.state.last_refresh_at.get(kind)
        if last is None or now - last < interval:
            return False
        if kind in self.runner.in_flight_kinds():
            return False
        self.refresh_active()
        return True

    def resize(self, visible_capacity: int) -> None:
        """Apply a new viewport capacity; selection is never changed."""
        if visible_capacity == self.state.visible_capacity:
            return
        self.state.visible_capacity = visible_capacity
        self.state.local_tab.reconcile_scroll(visible_capacity)
        self.state.remote_tab.reconcile_scroll(visible_capacity)
        self.state.dirty = True

    # -- errors -------------------------------------------------------------

    def set_error(self, error: LazyBranchError | str) -> None:
        self.state.error_message = str(error)
        self.state.dirty = True

    def dismiss_error(self) -> bool:
        if self.state.error_message is None:
            return False
        self.state.error_message = None
        self.state.dirty = True
        return True

    # -- query and navigation ------------------------------------------------

    def type_char(self, ch: str) -> None:
        self.active_tab().type_char(ch, self.state.visible_capacity)
        self.state.dirty = True

    def erase_char(self) -> None:
        self.active_tab().erase_char(self.state.visible_capacity)
        self.state.dirty = True

    def clear_query(self) -> None:
        self.active_tab().clear_query()
        self.active_tab().reconcile_scroll(self.state.visible_capacity)
        self.state.dirty = True

    def move_selection(self, delta: int) -> None:
        self.active_tab().move_selection(delta, self.state.visible_capacity)
        self.state.dirty = True

    def page_size(self) -> int:
        return max(1, self.state.visible_capacity)

    def move_to_start(self) -> None:
        self.move_selection(-len(self.active_tab().active_view().records))

    def move_to_end(self) -> None:
        self.move_selection(len(self.active_tab().active_view().records))

    # -- actions ------------------------------------------------------------

    def _submit(self, command: GitCommand) -> CommandTag:
        tag = self.runner.submit(command, self.state.cwd)
        if command.kind in (LIST_LOCAL, LIST_REMOTE):
            self.state.last_refresh_at[command.kind] = time.monotonic()
        return tag

    def _selected_local(self) -> LocalBranch:
        branch = self.state.local_tab.selected()
        if branch is None:
            raise ActionPreconditionError("No branch selected")
        return branch

    def _selected_remote(self) -> RemoteBranch:
        branch = self.state.remote_tab.selected()
        if branch is None:
            raise ActionPreconditionError("No branch selected")
        return branch

    def run_action(self, action: Callable[[], object]) -> bool:
        """Run ``action``, turning rejected preconditions into the error state."""
        try:
            action()
        except ActionPreconditionError as exc:
            logger.info("Action rejected: {}", exc)
            self.set_error(exc)
            return False
        return True

    def switch_to_selected(self) -> CommandTag:
        return self._submit(switch_command(self._selected_local()))

    def switch_to_previous(self) -> CommandTag:
        return self._submit(switch_previous_command())

    def create_from_query(self) -> CommandTag:
        return self._submit(create_command(self.state.local_tab.query))

    def delete_selected(self, force: bool = False) -> CommandTag:
        return self._submit(delete_command(self._selected_local(), force=force))

    def fetch_selected(self) -> CommandTag:
        return self._submit(fetch_command(self._selected_local()))

    def track_selected(self) -> CommandTag:
        return self._submit(track_command(self._selected_remote()))

    def open_log_for_selected(self) -> None:
        branch = self.active_tab().selected()
        if branch is None:
            raise ActionPreconditionError("No branch selected")
        if self.open_log_fn is None:
            raise ActionPreconditionError("Log viewing is not available")
        error = self.open_log_fn(branch.name)
        self.state.dirty = True
        if error:
            self.set_error(error)

    def quit(self) -> None:
        self.state.should_quit = True

    # -- command results ----------------------------------------------------

    def handle_command_result(self, result: CommandResult) -> bool:
        """Apply one tagged command result; returns whether state changed."""
        kind = result.tag.kind
        logger.debug("git result kind={} id={} status={}", kind, result.tag.request_id, result.exit_status)
        if not result.succeeded:
            error = command_error_from_result(result)
            logger.warning("git command {} failed: {}", kind, error)
            self.set_error(error)
            return True

        if kind == LIST_LOCAL:
            self._apply_local_listing(result.stdout)
            return True
        if kind == LIST_REMOTE:
            self._apply_remote_listing(result.stdout)
            return True
        if kind in _RELIST_LOCAL_KINDS:
            self.list_local_branches()
            return True
        if kind == TRACK_REMOTE:
            self.state.branch_type = LOCAL_TAB
            self.state.local_tab.inited = True
            self.list_local_branches()
            self.state.dirty = True
            return True
        return False

    def _apply_local_listing(self, stdout: bytes) -> None:
        try:
            branches = parse_local_listing(decode_output(stdout))
        except BranchParseError as exc:
            logger.warning("Rejected local listing: {}", exc)
            self.set_error(exc)
            return
        self.state.local_tab.refresh(branches, preserve=_is_current, visible_capacity=self.state.visible_capacity)
        self.state.error_message = None
        self.state.dirty = True

    def _apply_remote_listing(self, stdout: bytes) -> None:
        try:
            branches = parse_remote_listing(decode_output(stdout))
        except BranchParseError as exc:
            logger.warning("Rejected remote listing: {}", exc)
            self.set_error(exc)
            return
        self.state.remote_tab.refresh(branches, visible_capacity=self.state.visible_capacity)
        self.state.error_message = None
        self.state.dirty = True
