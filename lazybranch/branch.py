"""Branch records and the ``git branch`` line parser.

Local listings come from ``git branch -vv`` and remote listings from
``git branch -r -v``. Each line is parsed independently into a frozen record;
a listing parses atomically, so one malformed line rejects the whole batch.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

from .errors import BranchParseError

_MARKER_RE = re.compile(r"\*|\+(?=\s)")
_PAREN_NAME_RE = re.compile(r"\([^)\r\n]+\)")
_BARE_NAME_RE = re.compile(r"\S+")
_SHA_RE = re.compile(r"[0-9a-fA-F]+(?=\s|$)")
_WORKTREE_PATH_RE = re.compile(r"\(([^)\r\n]+)\)")
_UPSTREAM_RE = re.compile(r"\[\s*([^\]\s][^\]]*)\]")
_POINTER_RE = re.compile(r"-> (.+)")
_WS_RE = re.compile(r"\s*")


@dataclass(frozen=True)
class UpstreamInfo:
    """Tracked upstream of a local branch, e.g. ``origin/main: ahead 1``."""

    name: str
    relationship: str | None = None

    @classmethod
    def parse(cls, text: str) -> UpstreamInfo:
        """Split bracketed upstream text on the first ``:``."""
        name, sep, relationship = text.partition(":")
        relationship = relationship.strip()
        return cls(name=name.strip(), relationship=relationship if sep and relationship else None)

    @property
    def text(self) -> str:
        if self.relationship:
            return f"{self.name}: {self.relationship}"
        return self.name

    def split_remote(self) -> tuple[str, str] | None:
        """Return ``(remote, remote_ref)`` or ``None`` when the name has no ``/``."""
        remote, sep, remote_ref = self.name.partition("/")
        if not sep or not remote or not remote_ref:
            return None
        return remote, remote_ref.split(":", 1)[0]


@dataclass(frozen=True)
class LocalBranch:
    name: str
    is_current: bool
    commit_sha: str
    upstream: UpstreamInfo | None = None
    commit_message: str = ""
    worktree_path: str | None = None
    in_other_worktree: bool = False


@dataclass(frozen=True)
class SymbolicRef:
    """Remote head that is an alias for another ref (``origin/HEAD -> origin/main``)."""

    target_name: str


@dataclass(frozen=True)
class CommitRef:
    commit_sha: str
    commit_message: str = ""


@dataclass(frozen=True)
class RemoteBranch:
    name: str
    pointer: SymbolicRef | CommitRef

    @property
    def is_symbolic(self) -> bool:
        return isinstance(self.pointer, SymbolicRef)


BranchRecord = LocalBranch | RemoteBranch
RecordT = TypeVar("RecordT", LocalBranch, RemoteBranch)


class _Cursor:
    """Left-to-right scanner over one listing line."""

    def __init__(self, line: str) -> None:
        self.line = line
        self.pos = 0

    def skip_ws(self) -> None:
        match = _WS_RE.match(self.line, self.pos)
        if match:
            self.pos = match.end()

    def match(self, pattern: re.Pattern[str]) -> re.Match[str] | None:
        match = pattern.match(self.line, self.pos)
        if match is not None:
            self.pos = match.end()
        return match

    def expect(self, pattern: re.Pattern[str], expected: str) -> re.Match[str]:
        match = self.match(pattern)
        if match is None:
            raise self.error(expected)
        return match

    def rest(self) -> str:
        remainder = self.line[self.pos :]
        self.pos = len(self.line)
        return remainder

    def error(self, expected: str) -> BranchParseError:
        if self.pos >= len(self.line):
            expected = f"{expected} (unexpected end of line)"
        return BranchParseError(expected, self.line, self.pos)


def _strip_line_ending(line: str) -> str:
    return line.rstrip("\r\n")


def _parse_name(cursor: _Cursor) -> str:
    # Parenthesized names cover detached HEAD and rebase-in-progress states.
    match = cursor.match(_PAREN_NAME_RE)
    if match is None:
        match = cursor.expect(_BARE_NAME_RE, "branch name")
    return match.group(0)


def _parse_upstream(cursor: _Cursor) -> UpstreamInfo | None:
    # Unclosed or empty brackets are commit message text, not an upstream.
    match = cursor.match(_UPSTREAM_RE)
    if match is None:
        return None
    return UpstreamInfo.parse(match.group(1))


def parse_local_line(line: str) -> LocalBranch:
    """Parse one ``git branch -vv`` line.

    Shape: ``[*|+] <name> <sha> [(<worktree>)] [[<upstream>]] <message>``.
    Raises :class:`BranchParseError` when a required field is missing or the
    sha token is not entirely hexadecimal.
    """
    cursor = _Cursor(_strip_line_ending(line))
    cursor.skip_ws()
    marker = cursor.match(_MARKER_RE)
    is_current = marker is not None and marker.group(0) == "*"
    in_other_worktree = marker is not None and marker.group(0) == "+"
    cursor.skip_ws()
    name = _parse_name(cursor)
    cursor.skip_ws()
    commit_sha = cursor.expect(_SHA_RE, "commit sha").group(0)
    cursor.skip_ws()

    worktree_path = None
    if in_other_worktree:
        worktree = cursor.match(_WORKTREE_PATH_RE)
        if worktree is not None:
            worktree_path = worktree.group(1)
            cursor.skip_ws()

    upstream = _parse_upstream(cursor)
    if upstream is not None:
        cursor.skip_ws()

    return LocalBranch(
        name=name,
        is_current=is_current,
        commit_sha=commit_sha,
        upstream=upstream,
        commit_message=cursor.rest(),
        worktree_path=worktree_path,
        in_other_worktree=in_other_worktree,
    )


def parse_remote_line(line: str) -> RemoteBranch:
    """Parse one ``git branch -r -v`` line.

    Either ``<name> <sha> <message>`` or ``<name> -> <target>``; the commit
    form is tried first.
    """
    cursor = _Cursor(_strip_line_ending(line))
    cursor.skip_ws()
    name = _parse_name(cursor)
    cursor.skip_ws()

    sha = cursor.match(_SHA_RE)
    if sha is not None:
        cursor.skip_ws()
        return RemoteBranch(name=name, pointer=CommitRef(commit_sha=sha.group(0), commit_message=cursor.rest()))

    pointer = cursor.expect(_POINTER_RE, "commit sha or '-> <target>'")
    return RemoteBranch(name=name, pointer=SymbolicRef(target_name=pointer.group(1)))


def _parse_listing(text: str, parse_line: Callable[[str], RecordT]) -> list[RecordT]:
    records: list[RecordT] = []
    for line_number, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            records.append(parse_line(line))
        except BranchParseError as exc:
            raise exc.at_line(line_number) from None
    return records


def parse_local_listing(text: str) -> list[LocalBranch]:
    """Parse a full local listing, failing on the first malformed line."""
    return _parse_listing(text, parse_local_line)


def parse_remote_listing(text: str) -> list[RemoteBranch]:
    """Parse a full remote listing, failing on the first malformed line."""
    return _parse_listing(text, parse_remote_line)


def decode_output(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


def format_local_line(branch: LocalBranch) -> str:
    """Render ``branch`` in ``git branch -vv`` shape."""
    if branch.is_current:
        marker = "*"
    elif branch.in_other_worktree:
        marker = "+"
    else:
        marker = " "
    parts = [marker, branch.name, branch.commit_sha]
    if branch.in_other_worktree and branch.worktree_path:
        parts.append(f"({branch.worktree_path})")
    if branch.upstream is not None:
        parts.append(f"[{branch.upstream.text}]")
    line = " ".join(parts)
    if branch.commit_message:
        line = f"{line} {branch.commit_message}"
    return line


def format_remote_line(branch: RemoteBranch) -> str:
    """Render ``branch`` in ``git branch -r -v`` shape."""
    pointer = branch.pointer
    if isinstance(pointer, SymbolicRef):
        return f"  {branch.name} -> {pointer.target_name}"
    line = f"  {branch.name} {pointer.commit_sha}"
    if pointer.commit_message:
        line = f"{line} {pointer.commit_message}"
    return line
