"""Exception types surfaced as user-visible error states.

Parse failures reject a whole listing, command failures carry the command's
captured stderr, and precondition failures stop an action before any git
command is issued.
"""

from __future__ import annotations


class LazyBranchError(Exception):
    """Base class for errors shown in the error screen."""


class BranchParseError(LazyBranchError, ValueError):
    """One line of ``git branch`` output did not match the expected grammar."""

    def __init__(
        self,
        expected: str,
        line: str,
        column: int,
        line_number: int | None = None,
    ) -> None:
        self.expected = expected
        self.line = line
        self.column = column
        self.line_number = line_number
        super().__init__(self._format())

    def _format(self) -> str:
        where = f"line {self.line_number}, " if self.line_number is not None else ""
        return f"Failed to parse branch line ({where}column {self.column + 1}): expected {self.expected}: {self.line!r}"

    def at_line(self, line_number: int) -> BranchParseError:
        """Return a copy annotated with the 1-based listing line number."""
        return BranchParseError(self.expected, self.line, self.column, line_number)


class CommandError(LazyBranchError):
    """A git command exited unsuccessfully."""

    def __init__(self, message: str, exit_status: int | None = None) -> None:
        self.exit_status = exit_status
        super().__init__(message)


class ActionPreconditionError(LazyBranchError):
    """An action was rejected before issuing any command."""
