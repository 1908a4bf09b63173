"""Screen composition tests for the branch browser.

Asserts on ANSI-stripped rows so color choices can change freely.
"""

from __future__ import annotations

import unittest
from pathlib import Path

from lazybranch.ansi import ANSI_ESCAPE_RE, clip_ansi_line, display_width, fit_ansi_cell, sanitize_terminal_text
from lazybranch.branch import parse_local_listing, parse_remote_listing
from lazybranch.layout import RenderArea
from lazybranch.render import render_screen, render_screen_lines, render_table
from lazybranch.state import REMOTE_TAB, create_state


def _plain(lines: list[str]) -> list[str]:
    return [ANSI_ESCAPE_RE.sub("", line) for line in lines]


def _state_with_local(listing: str):
    state = create_state(Path("/work/repo"))
    state.local_tab.refresh(parse_local_listing(listing), preserve=lambda b: b.is_current)
    return state


class LayoutTests(unittest.TestCase):
    def test_branch_rows_leave_room_for_chrome(self) -> None:
        area = RenderArea(80, 24)

        self.assertEqual(area.first_branch_row, 5)
        self.assertEqual(area.branch_rows, 16)
        self.assertEqual(area.visible_branch_count, 15)
        self.assertEqual(area.help_row, 22)
        self.assertEqual(area.cwd_row, 23)

    def test_tiny_terminal_keeps_one_branch_row(self) -> None:
        area = RenderArea(10, 4)

        self.assertEqual(area.branch_rows, 1)
        self.assertEqual(area.visible_branch_count, 0)
        self.assertEqual(area.content_width, 20)


class AnsiHelperTests(unittest.TestCase):
    def test_clip_preserves_escapes_and_counts_visible_columns(self) -> None:
        text = "\033[31mhello\033[0m world"

        clipped = clip_ansi_line(text, 3)

        self.assertEqual(ANSI_ESCAPE_RE.sub("", clipped), "hel")
        self.assertTrue(clipped.endswith("\033[0m"))

    def test_wide_characters_take_two_columns(self) -> None:
        self.assertEqual(display_width("日本"), 4)
        self.assertEqual(display_width(fit_ansi_cell("日本語", 5)), 5)

    def test_sanitize_strips_control_characters(self) -> None:
        self.assertEqual(sanitize_terminal_text("a\x1b[2Jb\x07c"), "a[2Jbc")


class RenderScreenTests(unittest.TestCase):
    def test_screen_has_exact_height_and_expected_rows(self) -> None:
        state = _state_with_local("* main 1111111 [origin/main] Main\n  dev 2222222 Dev\n")
        area = RenderArea(80, 12)

        lines = _plain(render_screen_lines(state, area))

        self.assertEqual(len(lines), 12)
        self.assertIn("Local", lines[0])
        self.assertIn("Remote", lines[0])
        self.assertEqual(lines[2].strip(), "Branch: |")
        self.assertIn("Name", lines[4])
        self.assertIn("main", lines[5])
        self.assertIn("origin/main", lines[5])
        self.assertIn("dev", lines[6])
        self.assertIn("Switch", lines[area.help_row])
        self.assertEqual(lines[area.cwd_row], "/work/repo")

    def test_rows_never_exceed_width(self) -> None:
        state = _state_with_local("* " + "x" * 200 + " 1111111 " + "m" * 300 + "\n")
        area = RenderArea(40, 10)

        for line in render_screen_lines(state, area):
            self.assertLessEqual(display_width(line), 40)

    def test_query_line_shows_match_count_while_filtering(self) -> None:
        state = _state_with_local("* main 1 a\n  feature/foo 2 b\n  release 3 c\n")
        for ch in "fea":
            state.local_tab.type_char(ch)

        lines = _plain(render_screen_lines(state, RenderArea(80, 12)))

        self.assertIn("Branch: fea| (1/3)", lines[2])
        self.assertIn("feature/foo", lines[5])
        self.assertNotIn("release", "\n".join(lines[5:8]))

    def test_no_matching_branches_message(self) -> None:
        state = _state_with_local("* main 1 a\n")
        state.local_tab.type_char("z")

        lines = _plain(render_screen_lines(state, RenderArea(80, 12)))

        self.assertIn("no matching branches", "\n".join(lines))

    def test_error_screen_replaces_browser(self) -> None:
        state = _state_with_local("* main 1 a\n")
        state.error_message = "fatal: bad things\nsecond line"

        lines = _plain(render_screen_lines(state, RenderArea(60, 8)))

        self.assertEqual(lines[0], "ERROR")
        self.assertEqual(lines[1], "fatal: bad things")
        self.assertEqual(lines[2], "second line")
        self.assertEqual(lines[3], "Press any key to continue")
        self.assertEqual(len(lines), 8)

    def test_remote_tab_shows_pointer_target(self) -> None:
        state = create_state(Path("/work/repo"))
        state.branch_type = REMOTE_TAB
        state.remote_tab.refresh(parse_remote_listing("  origin/HEAD -> origin/main\n  origin/main 1111111 Main\n"))

        lines = _plain(render_screen_lines(state, RenderArea(80, 12)))

        self.assertIn("origin/HEAD", lines[5])
        self.assertIn("origin/main", lines[5])
        self.assertIn("Track", lines[10])

    def test_scroll_offset_controls_first_visible_row(self) -> None:
        listing = "".join(f"  b{i:02d} {i + 10} msg\n" for i in range(30))
        state = _state_with_local(listing)
        view = state.local_tab.full_view
        view.selected_index = 20
        view.reconcile_scroll(RenderArea(80, 12).visible_branch_count)

        lines = _plain(render_screen_lines(state, RenderArea(80, 12)))

        self.assertIn(f"b{view.scroll_offset:02d}", lines[5])

    def test_render_screen_homes_cursor_and_clears_line_ends(self) -> None:
        state = _state_with_local("* main 1 a\n")

        out = render_screen(state, RenderArea(40, 8))

        self.assertTrue(out.startswith("\033[H\033[J"))
        self.assertEqual(out.count("\r\n"), 7)

    def test_render_table_pads_fixed_columns(self) -> None:
        lines = _plain(
            render_table(["A", "B"], [["x", "tail"], ["long", "t"]], None, 40, (10,))
        )

        self.assertEqual(lines[1], "x     tail")
        self.assertEqual(lines[2], "long  t")


if __name__ == "__main__":
    unittest.main()
