"""Screen geometry for the branch browser.

Rows, top to bottom: tab bar, padding, query prompt, padding, table header,
branch rows, padding, key help, working directory.
"""

from __future__ import annotations

from dataclasses import dataclass

TAB_BAR_ROW = 0
INPUT_ROW = 2
TABLE_HEADER_ROW = 4
FOOTER_HEIGHT = 2
Y_PADDING = 1
X_PADDING = 1
MIN_WIDTH = 20


@dataclass(frozen=True)
class RenderArea:
    width: int
    height: int

    @property
    def first_branch_row(self) -> int:
        return TABLE_HEADER_ROW + 1

    @property
    def branch_rows(self) -> int:
        """Number of branch rows drawn below the table header (at least one)."""
        return max(1, self.height - self.first_branch_row - Y_PADDING - FOOTER_HEIGHT)

    @property
    def visible_branch_count(self) -> int:
        """Scroll capacity: the window covers ``offset .. offset + capacity``."""
        return self.branch_rows - 1

    @property
    def help_row(self) -> int:
        return max(0, self.height - FOOTER_HEIGHT)

    @property
    def cwd_row(self) -> int:
        return max(0, self.height - 1)

    @property
    def content_width(self) -> int:
        return max(MIN_WIDTH, self.width - 2 * X_PADDING)
