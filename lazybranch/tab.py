"""Scrollable branch list views and the filterable tab that owns them.

``ListView`` keeps one ordered record list with a selection index and scroll
offset. ``FilterableTab`` owns the unfiltered view plus an optional filtered
view rebuilt from the fuzzy ranker on every query change. Navigation always
goes through :meth:`FilterableTab.active_view` so callers never need to know
whether a filter is active.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Generic, Protocol, TypeVar

from .fuzzy import DefaultFuzzyRanker, FuzzyRanker


class Named(Protocol):
    @property
    def name(self) -> str: ...


T = TypeVar("T", bound=Named)


@dataclass
class ListView(Generic[T]):
    records: list[T] = field(default_factory=list)
    selected_index: int = 0
    scroll_offset: int = 0

    def selected(self) -> T | None:
        if not self.records:
            return None
        return self.records[self.selected_index]

    def select_by(self, predicate: Callable[[T], bool] | None) -> None:
        """Select the first record matching ``predicate``, else index 0."""
        self.selected_index = 0
        if predicate is None:
            return
        for idx, record in enumerate(self.records):
            if predicate(record):
                self.selected_index = idx
                return

    def move_selection(self, delta: int) -> None:
        """Move selection by ``delta``, saturating at both ends."""
        if delta == 0 or not self.records:
            return
        last = len(self.records) - 1
        self.selected_index = max(0, min(last, self.selected_index + delta))

    def reconcile_scroll(self, visible_capacity: int) -> None:
        """Scroll the minimum amount needed to keep the selection in the window.

        The window spans ``scroll_offset .. scroll_offset + visible_capacity``
        inclusive. This is the only place ``scroll_offset`` changes.
        """
        capacity = max(0, visible_capacity)
        if self.selected_index < self.scroll_offset:
            self.scroll_offset = self.selected_index
        elif self.selected_index > self.scroll_offset + capacity:
            self.scroll_offset = self.selected_index - capacity


class FilterableTab(Generic[T]):
    """Full and filtered views of one branch listing plus the live query."""

    def __init__(self, ranker: FuzzyRanker | None = None) -> None:
        self.ranker: FuzzyRanker = ranker if ranker is not None else DefaultFuzzyRanker()
        self.query = ""
        self.full_view: ListView[T] = ListView()
        self.filtered_view: ListView[T] | None = None
        self.inited = False

    def active_view(self) -> ListView[T]:
        if self.filtered_view is not None:
            return self.filtered_view
        return self.full_view

    def selected(self) -> T | None:
        return self.active_view().selected()

    def refresh(
        self,
        records: Iterable[T],
        preserve: Callable[[T], bool] | None = None,
        visible_capacity: int | None = None,
    ) -> None:
        """Replace the full listing and re-select the preserved record."""
        self.full_view.records = list(records)
        self.full_view.select_by(preserve)
        if visible_capacity is not None:
            self.full_view.reconcile_scroll(visible_capacity)
        if self.query:
            self.recompute_filtered(visible_capacity)

    def type_char(self, ch: str, visible_capacity: int | None = None) -> None:
        self.query += ch
        self.recompute_filtered(visible_capacity)

    def erase_char(self, visible_capacity: int | None = None) -> None:
        self.query = self.query[:-1]
        if not self.query:
            self.filtered_view = None
            return
        self.recompute_filtered(visible_capacity)

    def clear_query(self) -> None:
        self.query = ""
        self.filtered_view = None

    def recompute_filtered(self, visible_capacity: int | None = None) -> None:
        """Rebuild the filtered view from the ranker's best-first ordering."""
        by_name = {record.name: record for record in self.full_view.records}
        ranked = self.ranker.rank(self.query, list(by_name))
        visible = [by_name[name] for name in ranked if name in by_name]

        view = self.filtered_view
        if view is None:
            view = ListView(records=visible)
            self.filtered_view = view
        else:
            view.records = visible
            if view.selected_index >= len(visible):
                view.selected_index = 0
        if visible_capacity is not None:
            view.reconcile_scroll(visible_capacity)

    def move_selection(self, delta: int, visible_capacity: int | None = None) -> None:
        view = self.active_view()
        view.move_selection(delta)
        if visible_capacity is not None:
            view.reconcile_scroll(visible_capacity)

    def reconcile_scroll(self, visible_capacity: int) -> None:
        self.active_view().reconcile_scroll(visible_capacity)
