"""Key-token dispatch for the local and remote branch tabs.

Maps decoded key tokens onto ``BranchesApp`` actions. While an error is on
screen the first key press only dismisses it.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from .app import BranchesApp
from .state import REMOTE_TAB


@dataclass(frozen=True)
class KeyComboBinding:
    """Mapping from one or more key tokens to a single action callback."""

    combos: tuple[str, ...]
    handler: Callable[[], object]


class KeyComboRegistry:
    """Small exact-match key-dispatch table."""

    def __init__(self) -> None:
        self._handlers: dict[str, Callable[[], object]] = {}

    def register_bindings(self, *bindings: KeyComboBinding) -> KeyComboRegistry:
        for binding in bindings:
            for combo in binding.combos:
                self._handlers[combo] = binding.handler
        return self

    def dispatch(self, key: str) -> bool:
        handler = self._handlers.get(key)
        if handler is None:
            return False
        handler()
        return True


def _navigation_bindings(app: BranchesApp) -> tuple[KeyComboBinding, ...]:
    return (
        KeyComboBinding(("UP",), lambda: app.move_selection(-1)),
        KeyComboBinding(("DOWN",), lambda: app.move_selection(1)),
        KeyComboBinding(("PAGE_UP",), lambda: app.move_selection(-app.page_size())),
        KeyComboBinding(("PAGE_DOWN",), lambda: app.move_selection(app.page_size())),
        KeyComboBinding(("HOME",), app.move_to_start),
        KeyComboBinding(("END",), app.move_to_end),
        KeyComboBinding(("TAB",), app.toggle_tab),
        KeyComboBinding(("BACKSPACE",), app.erase_char),
        KeyComboBinding(("CTRL_U",), app.clear_query),
        KeyComboBinding(("CTRL_R",), app.refresh_active),
        KeyComboBinding(("CTRL_L",), lambda: app.run_action(app.open_log_for_selected)),
    )


def local_tab_registry(app: BranchesApp) -> KeyComboRegistry:
    return KeyComboRegistry().register_bindings(
        *_navigation_bindings(app),
        KeyComboBinding(("ENTER",), lambda: app.run_action(app.switch_to_selected)),
        KeyComboBinding(("CTRL_C",), lambda: app.run_action(app.create_from_query)),
        KeyComboBinding(("CTRL_D",), lambda: app.run_action(lambda: app.delete_selected(force=False))),
        KeyComboBinding(("CTRL_X",), lambda: app.run_action(lambda: app.delete_selected(force=True))),
        KeyComboBinding(("CTRL_P",), lambda: app.run_action(app.switch_to_previous)),
        KeyComboBinding(("CTRL_F",), lambda: app.run_action(app.fetch_selected)),
    )


def remote_tab_registry(app: BranchesApp) -> KeyComboRegistry:
    return KeyComboRegistry().register_bindings(
        *_navigation_bindings(app),
        KeyComboBinding(("ENTER",), lambda: app.run_action(app.track_selected)),
    )


def _is_query_char(key: str) -> bool:
    return len(key) == 1 and key.isprintable()


class KeyHandler:
    """Route one key token to the registry of the active tab."""

    def __init__(self, app: BranchesApp) -> None:
        self.app = app
        self._local = local_tab_registry(app)
        self._remote = remote_tab_registry(app)

    def handle_key(self, key: str) -> bool:
        """Handle ``key``; returns whether it was consumed."""
        if self.app.dismiss_error():
            return True
        if key == "ESC":
            self.app.quit()
            return True
        registry = self._remote if self.app.state.branch_type == REMOTE_TAB else self._local
        if registry.dispatch(key):
            return True
        if _is_query_char(key):
            self.app.type_char(key)
            return True
        return False
