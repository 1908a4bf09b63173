"""Screen composition for the branch browser.

Builds the tab bar, query prompt, branch table, key help and working
directory rows as ANSI strings. Rendering is presentation-only: it reads
``AppState`` and never mutates it.
"""

from __future__ import annotations

from .ansi import RESET, clip_ansi_line, display_width, fit_ansi_cell, sanitize_terminal_text
from .branch import LocalBranch, RemoteBranch
from .layout import INPUT_ROW, TAB_BAR_ROW, TABLE_HEADER_ROW, X_PADDING, RenderArea
from .state import LOCAL_TAB, REMOTE_TAB, AppState
from .tab import ListView

TAB_ACTIVE = "\033[1;7;38;5;81m"
TAB_INACTIVE = "\033[2;38;5;250m"
TABLE_HEADER = "\033[1;38;5;81m"
CURRENT_BRANCH = "\033[1;38;5;42m"
OTHER_WORKTREE = "\033[38;5;44m"
UPSTREAM = "\033[38;5;214m"
SHA = "\033[38;5;229m"
HELP_KEY = "\033[38;5;229m"
DIM = "\033[2;38;5;250m"
ERROR_TITLE = "\033[1;38;5;203m"
COLUMN_GAP = "  "
MAX_NAME_COLUMN = 48
MAX_UPSTREAM_COLUMN = 40

TAB_LABELS: tuple[tuple[str, str], ...] = ((LOCAL_TAB, "Local"), (REMOTE_TAB, "Remote"))

LOCAL_HELP: tuple[tuple[str, str], ...] = (
    ("<Enter>", "Switch"),
    ("<Ctrl-r>", "Refresh"),
    ("<Ctrl-c>", "Create"),
    ("<Ctrl-d>", "Delete"),
    ("<Ctrl-x>", "Force delete"),
    ("<Ctrl-l>", "Open log"),
    ("<Ctrl-p>", "Previous branch"),
    ("<Ctrl-f>", "Fetch"),
)

REMOTE_HELP: tuple[tuple[str, str], ...] = (
    ("<Enter>", "Track"),
    ("<Ctrl-r>", "Refresh"),
    ("<Ctrl-l>", "Open log"),
)


def selected_with_ansi(text: str) -> str:
    """Apply selection styling without discarding existing ANSI colors."""
    if not text:
        return text

    # Keep reverse video active even when the text contains internal resets.
    return "\033[7m" + text.replace(RESET, "\033[0;7m") + RESET


def _styled(style: str, text: str) -> str:
    return f"{style}{text}{RESET}" if text else text


def format_help_line(items: tuple[tuple[str, str], ...]) -> str:
    return ", ".join(f"{_styled(HELP_KEY, key)} - {label}" for key, label in items)


def render_tab_bar(branch_type: str) -> str:
    parts = []
    for tab_id, label in TAB_LABELS:
        style = TAB_ACTIVE if tab_id == branch_type else TAB_INACTIVE
        parts.append(_styled(style, f" {label} "))
    return "  ".join(parts)


def render_query_line(query: str, view: ListView, total: int, filtering: bool) -> str:
    line = f"Branch: {query}|"
    if filtering:
        line += " " + _styled(DIM, f"({len(view.records)}/{total})")
    return line


def _upstream_text(branch: LocalBranch) -> str:
    if branch.upstream is None:
        return ""
    return branch.upstream.text


def local_row_cells(branch: LocalBranch) -> list[str]:
    if branch.is_current:
        name = _styled(CURRENT_BRANCH, branch.name)
    elif branch.in_other_worktree:
        name = _styled(OTHER_WORKTREE, branch.name)
    else:
        name = branch.name
    return [
        name,
        _styled(UPSTREAM, sanitize_terminal_text(_upstream_text(branch))),
        _styled(SHA, branch.commit_sha),
        sanitize_terminal_text(branch.commit_message),
    ]


def remote_row_cells(branch: RemoteBranch) -> list[str]:
    pointer = branch.pointer
    if branch.is_symbolic:
        return [branch.name, "", sanitize_terminal_text(pointer.target_name), ""]
    return [
        branch.name,
        _styled(SHA, pointer.commit_sha),
        "",
        sanitize_terminal_text(pointer.commit_message),
    ]


LOCAL_HEADER = ["Name", "Upstream", "Sha", "Message"]
REMOTE_HEADER = ["Name", "Sha", "Ref", "Message"]
LOCAL_COLUMN_CAPS = (MAX_NAME_COLUMN, MAX_UPSTREAM_COLUMN, None)
REMOTE_COLUMN_CAPS = (MAX_NAME_COLUMN, None, MAX_NAME_COLUMN)


def render_table(
    header: list[str],
    rows: list[list[str]],
    selected_row: int | None,
    width: int,
    column_caps: tuple[int | None, ...],
) -> list[str]:
    """Lay out ``rows`` under ``header``; the last column takes the remaining width."""
    widths: list[int] = []
    for col, cap in enumerate(column_caps):
        natural = max([display_width(header[col])] + [display_width(row[col]) for row in rows])
        widths.append(min(natural, cap) if cap is not None else natural)

    def layout_row(cells: list[str]) -> str:
        fixed = COLUMN_GAP.join(fit_ansi_cell(cell, widths[idx]) for idx, cell in enumerate(cells[:-1]))
        return clip_ansi_line(fixed + COLUMN_GAP + cells[-1], width)

    lines = [_styled(TABLE_HEADER, clip_ansi_line(layout_row(header), width))]
    for idx, row in enumerate(rows):
        line = layout_row(row)
        if idx == selected_row:
            line = selected_with_ansi(fit_ansi_cell(line, width))
        lines.append(line)
    return lines


def render_branch_table(state: AppState, area: RenderArea) -> list[str]:
    tab = state.remote_tab if state.branch_type == REMOTE_TAB else state.local_tab
    view = tab.active_view()
    start = view.scroll_offset
    window = view.records[start : start + area.branch_rows]
    if state.branch_type == REMOTE_TAB:
        header, caps = REMOTE_HEADER, REMOTE_COLUMN_CAPS
        rows = [remote_row_cells(branch) for branch in window]
    else:
        header, caps = LOCAL_HEADER, LOCAL_COLUMN_CAPS
        rows = [local_row_cells(branch) for branch in window]

    selected_row = view.selected_index - start if view.records else None
    lines = render_table(header, rows, selected_row, area.content_width, caps)
    if not window:
        message = "no matching branches" if tab.query else "no branches"
        lines.append(_styled(DIM, message))
    return lines


def render_error_lines(message: str, area: RenderArea) -> list[str]:
    lines = [_styled(ERROR_TITLE, "ERROR")]
    for raw in message.splitlines()[: max(0, area.height - 2)]:
        lines.append(clip_ansi_line(sanitize_terminal_text(raw), area.width))
    lines.append(_styled(DIM, "Press any key to continue"))
    return lines


def render_screen_lines(state: AppState, area: RenderArea) -> list[str]:
    """Return exactly ``area.height`` rows of styled text."""
    if state.error_message is not None:
        lines = render_error_lines(state.error_message, area)
        return (lines + [""] * area.height)[: area.height]

    lines = [""] * area.height
    pad = " " * X_PADDING

    def put(row: int, text: str) -> None:
        if 0 <= row < area.height:
            lines[row] = text

    tab = state.remote_tab if state.branch_type == REMOTE_TAB else state.local_tab
    put(TAB_BAR_ROW, render_tab_bar(state.branch_type))
    put(
        INPUT_ROW,
        pad + render_query_line(tab.query, tab.active_view(), len(tab.full_view.records), tab.filtered_view is not None),
    )
    for offset, text in enumerate(render_branch_table(state, area)):
        row = TABLE_HEADER_ROW + offset
        if row >= area.help_row:
            break
        put(row, pad + text)

    help_items = REMOTE_HELP if state.branch_type == REMOTE_TAB else LOCAL_HELP
    put(area.help_row, clip_ansi_line(format_help_line(help_items), area.width))
    put(area.cwd_row, _styled(DIM, clip_ansi_line(str(state.cwd), area.width)))
    return [clip_ansi_line(line, area.width) for line in lines]


def render_screen(state: AppState, area: RenderArea) -> str:
    out = ["\033[H\033[J"]
    out.append("\r\n".join(line + "\033[K" for line in render_screen_lines(state, area)))
    return "".join(out)
