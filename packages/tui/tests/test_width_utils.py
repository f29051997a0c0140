"""Tests for pipeline_tui.utils"""
from pipeline_tui.utils import char_width, is_control_char, truncate_to_width, visible_width


class TestCharWidth:
    def test_ascii(self):
        assert char_width("a") == 1

    def test_cjk(self):
        assert char_width("中") == 2

    def test_combining_mark(self):
        assert char_width("\u0301") == 0

    def test_controls(self):
        assert char_width("\x1b") == 0
        assert char_width("\n") == 0
        assert char_width("\x7f") == 0


class TestIsControlChar:
    def test_c0_and_c1(self):
        assert is_control_char("\x07")
        assert is_control_char("\x9b")

    def test_printable(self):
        assert not is_control_char("a")
        assert not is_control_char(" ")


class TestVisibleWidth:
    def test_ascii(self):
        assert visible_width("hello") == 5

    def test_empty(self):
        assert visible_width("") == 0

    def test_ansi_stripped(self):
        assert visible_width("\x1b[31mhello\x1b[0m") == 5

    def test_osc_stripped(self):
        assert visible_width("\x1b]0;title\x07ok") == 2

    def test_cjk(self):
        assert visible_width("中文") == 4

    def test_cached_result_stable(self):
        assert visible_width("é中") == visible_width("é中") == 3


class TestTruncateToWidth:
    def test_short_unchanged(self):
        assert truncate_to_width("hello", 10) == "hello"

    def test_clipped(self):
        assert truncate_to_width("hello world", 5) == "hello"

    def test_pad(self):
        assert truncate_to_width("ab", 5, pad=True) == "ab   "

    def test_pad_after_clip(self):
        # "中" would straddle column 3; it is dropped and the gap padded.
        assert truncate_to_width("ab中", 3, pad=True) == "ab "

    def test_zero_width(self):
        assert truncate_to_width("abc", 0) == ""
