"""Low-level terminal input decoding.

Reads raw bytes from stdin and translates them into normalized key tokens.
Handles ESC-sequence timing, control-key combos, and multi-byte UTF-8 input.
"""

from __future__ import annotations

import os
import select

ESC_SEQUENCE_TIMEOUT_MS = 25
MAX_CSI_LENGTH = 32
UNKNOWN_KEY = "UNKNOWN"
_PENDING_BYTES: list[bytes] = []

_TILDE_KEYS = {
    b"1": "HOME",
    b"3": "DELETE",
    b"4": "END",
    b"5": "PAGE_UP",
    b"6": "PAGE_DOWN",
    b"7": "HOME",
    b"8": "END",
}
_LETTER_KEYS = {
    b"A": "UP",
    b"B": "DOWN",
    b"C": "RIGHT",
    b"D": "LEFT",
    b"H": "HOME",
    b"F": "END",
}


def _read_ready_byte(fd: int, timeout_ms: int) -> bytes | None:
    ready, _, _ = select.select([fd], [], [], max(0.0, timeout_ms / 1000.0))
    if not ready:
        return None
    ch = os.read(fd, 1)
    if not ch:
        return None
    return ch


def _utf8_length(lead: int) -> int:
    if lead >= 0xF0:
        return 4
    if lead >= 0xE0:
        return 3
    if lead >= 0xC0:
        return 2
    return 1


def _decode_utf8(fd: int, first: bytes) -> str:
    data = first
    for _ in range(_utf8_length(first[0]) - 1):
        nxt = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
        if nxt is None:
            break
        data += nxt
    return data.decode("utf-8", errors="replace")


def _control_key(ch: bytes) -> str | None:
    if ch == b"\t":
        return "TAB"
    if ch in {b"\x08", b"\x7f"}:
        return "BACKSPACE"
    if ch == b"\r":
        return "ENTER_CR"
    if ch == b"\n":
        return "ENTER_LF"
    code = ch[0]
    if 1 <= code <= 26:
        return f"CTRL_{chr(0x40 + code)}"
    return None


def _read_csi(fd: int) -> str:
    """Consume a CSI sequence through its final byte; unmapped ones become ``UNKNOWN``."""
    params = b""
    while len(params) < MAX_CSI_LENGTH:
        ch = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
        if ch is None:
            return UNKNOWN_KEY
        if 0x40 <= ch[0] <= 0x7E:
            if not params and ch in _LETTER_KEYS:
                return _LETTER_KEYS[ch]
            if ch == b"~" and params in _TILDE_KEYS:
                return _TILDE_KEYS[params]
            return UNKNOWN_KEY
        params += ch
    return UNKNOWN_KEY


def _read_escape_sequence(fd: int) -> str:
    seq = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
    if seq is None:
        return "ESC"
    if seq == b"O":
        # SS3 form used by some terminals for Home/End, arrows and F1-F4.
        final = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
        if final is None:
            _PENDING_BYTES.append(seq)
            return "ESC"
        return _LETTER_KEYS.get(final, UNKNOWN_KEY)
    if seq != b"[":
        _PENDING_BYTES.append(seq)
        return "ESC"
    return _read_csi(fd)


def read_key(fd: int, timeout_ms: int | None = None) -> str:
    """Read one key token; returns ``""`` when ``timeout_ms`` elapses first."""
    if _PENDING_BYTES:
        ch = _PENDING_BYTES.pop(0)
    else:
        if timeout_ms is not None:
            ready, _, _ = select.select([fd], [], [], max(0.0, timeout_ms / 1000.0))
            if not ready:
                return ""

        ch = os.read(fd, 1)
        if not ch:
            return ""

    if ch == b"\x1b":
        return _read_escape_sequence(fd)

    control = _control_key(ch)
    if control is not None:
        return control
    if ch[0] < 0x20:
        return ""
    return _decode_utf8(fd, ch)
