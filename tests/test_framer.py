"""
Line Framer Tests
=================
"""

import pytest

from aiduino.stream.framer import LineFramer


def _frame_all(chunks):
    framer = LineFramer()
    lines = []
    for chunk in chunks:
        lines.extend(framer.feed(chunk))
    return lines, framer


def _split_every(data: bytes, size: int):
    return [data[i:i + size] for i in range(0, len(data), size)]


class TestLineFramer:
    """Newline framing over arbitrary chunk boundaries."""

    def test_whole_text_at_once(self, sample_lines):
        lines, _ = _frame_all([sample_lines])
        assert lines == [
            '{"temp": 21.5, "hum": 40}',
            '{"temp": 21.7, "hum": 41, "unit": "°C"}',
            '{"temp": 22.0, "hum": 42}',
            '{"label": "Grüße ✓"}',
        ]

    @pytest.mark.parametrize("size", [1, 2, 3, 5, 7, 13])
    def test_chunking_does_not_change_lines(self, sample_lines, size):
        """Any split, including inside multi-byte characters, yields the same lines."""
        expected, _ = _frame_all([sample_lines])
        lines, _ = _frame_all(_split_every(sample_lines, size))
        assert lines == expected

    def test_split_inside_multibyte_character(self):
        data = '{"unit": "°C"}\n'.encode("utf-8")
        cut = data.index(b"\xc2") + 1  # between the two bytes of "°"

        framer = LineFramer()
        assert framer.feed(data[:cut]) == []
        assert framer.feed(data[cut:]) == ['{"unit": "°C"}']

    def test_line_spanning_many_chunks(self):
        framer = LineFramer()
        assert framer.feed(b'{"a"') == []
        assert framer.feed(b": 1") == []
        assert framer.pending == '{"a": 1'
        assert framer.feed(b"}\n{") == ['{"a": 1}']
        assert framer.pending == "{"

    def test_crlf_and_blank_lines(self):
        lines, _ = _frame_all([b'{"a": 1}\r\n\r\n  \n{"b": 2}\r\n'])
        assert lines == ['{"a": 1}', '{"b": 2}']

    def test_unterminated_tail_is_never_emitted(self):
        framer = LineFramer()
        assert framer.feed(b'{"a": 1}\n{"b": 2}') == ['{"a": 1}']

        assert framer.finish() == '{"b": 2}'
        assert framer.pending == ""
        # Nothing from the old stream leaks into the next one
        assert framer.feed(b'{"c": 3}\n') == ['{"c": 3}']

    def test_invalid_bytes_are_replaced(self):
        lines, _ = _frame_all([b'{"a": "\xff"}\n'])
        assert lines == ['{"a": "�"}']

    def test_reset_drops_partial_character(self):
        framer = LineFramer()
        framer.feed(b"\xe2\x9c")  # first two bytes of a 3-byte character
        framer.reset()
        assert framer.feed(b"ok\n") == ["ok"]
