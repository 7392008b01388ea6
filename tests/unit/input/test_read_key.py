"""Tests for raw key decoding from a byte stream."""

from __future__ import annotations

import os
import unittest

from lazystatus.runtime.input import read_key


class ReadKeyTests(unittest.TestCase):
    def setUp(self) -> None:
        self.read_fd, self.write_fd = os.pipe()
        self.addCleanup(os.close, self.read_fd)
        self.addCleanup(os.close, self.write_fd)

    def keys(self, data: bytes, count: int) -> list[str]:
        os.write(self.write_fd, data)
        return [read_key(self.read_fd, timeout_ms=50) for _ in range(count)]

    def test_plain_and_control_keys(self) -> None:
        self.assertEqual(self.keys(b"s\t\r\x04\x15", 5), ["s", "TAB", "ENTER", "CTRL_D", "CTRL_U"])

    def test_csi_sequences(self) -> None:
        self.assertEqual(self.keys(b"\x1b[A\x1b[B\x1b[5~\x1b[6~\x1b[H", 5), ["UP", "DOWN", "PAGE_UP", "PAGE_DOWN", "HOME"])

    def test_lone_escape_and_timeout(self) -> None:
        self.assertEqual(self.keys(b"\x1b", 2), ["ESC", ""])

    def test_escape_followed_by_key_keeps_key(self) -> None:
        self.assertEqual(self.keys(b"\x1bq", 2), ["ESC", "q"])

    def test_multibyte_character(self) -> None:
        self.assertEqual(self.keys("é".encode("utf-8"), 1), ["é"])


if __name__ == "__main__":
    unittest.main()
