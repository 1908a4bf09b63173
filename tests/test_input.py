"""Regression tests for raw-key decoding.

Covers ESC timing, navigation sequences, and control-key token mapping.
"""

import os
import time
import unittest

from lazybranch import input as input_mod


class ReadKeyRegressionTests(unittest.TestCase):
    def setUp(self) -> None:
        input_mod._PENDING_BYTES.clear()

    def tearDown(self) -> None:
        input_mod._PENDING_BYTES.clear()

    def _read_all(self, data: bytes, count: int) -> list[str]:
        read_fd, write_fd = os.pipe()
        try:
            os.write(write_fd, data)
            return [input_mod.read_key(read_fd, timeout_ms=20) for _ in range(count)]
        finally:
            os.close(read_fd)
            os.close(write_fd)

    def test_single_escape_returns_esc_without_second_keypress(self) -> None:
        started = time.monotonic()
        keys = self._read_all(b"\x1b", 1)
        elapsed = time.monotonic() - started

        self.assertEqual(keys, ["ESC"])
        self.assertLess(elapsed, 0.2)

    def test_escape_does_not_swallow_following_printable_key(self) -> None:
        self.assertEqual(self._read_all(b"\x1ba", 2), ["ESC", "a"])

    def test_arrow_and_paging_sequences(self) -> None:
        cases = {
            b"\x1b[A": "UP",
            b"\x1b[B": "DOWN",
            b"\x1bOH": "HOME",
            b"\x1b[F": "END",
            b"\x1b[5~": "PAGE_UP",
            b"\x1b[6~": "PAGE_DOWN",
            b"\x1b[1~": "HOME",
        }
        for data, expected in cases.items():
            with self.subTest(data=data):
                self.assertEqual(self._read_all(data, 1), [expected])

    def test_unmapped_sequences_are_consumed_whole(self) -> None:
        cases = {
            b"\x1b[Z": "shift-tab",
            b"\x1bOP": "F1",
            b"\x1b[1;5A": "ctrl-up",
            b"\x1b[200~": "paste start",
        }
        for data, label in cases.items():
            with self.subTest(key=label):
                self.assertEqual(self._read_all(data + b"x", 2), [input_mod.UNKNOWN_KEY, "x"])

    def test_control_keys(self) -> None:
        cases = {
            b"\t": "TAB",
            b"\x7f": "BACKSPACE",
            b"\x08": "BACKSPACE",
            b"\r": "ENTER_CR",
            b"\n": "ENTER_LF",
            b"\x03": "CTRL_C",
            b"\x04": "CTRL_D",
            b"\x18": "CTRL_X",
            b"\x15": "CTRL_U",
        }
        for data, expected in cases.items():
            with self.subTest(data=data):
                self.assertEqual(self._read_all(data, 1), [expected])

    def test_multibyte_utf8_character(self) -> None:
        self.assertEqual(self._read_all("é".encode("utf-8"), 1), ["é"])

    def test_timeout_returns_empty_token(self) -> None:
        read_fd, write_fd = os.pipe()
        try:
            key = input_mod.read_key(read_fd, timeout_ms=5)
        finally:
            os.close(read_fd)
            os.close(write_fd)

        self.assertEqual(key, "")


if __name__ == "__main__":
    unittest.main()
