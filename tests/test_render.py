from __future__ import annotations

from hexrange.partition import Range
from hexrange.render import Chunk, format_line, render_chunk


def test_format_line_zero_padded_lowercase():
    assert format_line(0) == "000000\n"
    assert format_line(255) == "0000ff\n"
    assert format_line(0xABCDEF) == "abcdef\n"
    assert format_line(0xFFFFFF) == "ffffff\n"


def test_render_chunk_is_one_buffer_in_increasing_order():
    assert render_chunk(Range(0, 3)) == "000000\n000001\n000002\n000003\n"
    assert render_chunk(Range(14, 17)) == "00000e\n00000f\n000010\n000011\n"


def test_chunk_of_range():
    c = Chunk.of(Range(4, 6))
    assert c.start == 4
    assert c.lines == 3
    assert c.text == "000004\n000005\n000006\n"


def test_render_chunk_uses_the_single_line_format(monkeypatch):
    import hexrange.render as render

    monkeypatch.setattr(render, "format_line", lambda i: f"<{i}>")
    assert render.render_chunk(Range(1, 3)) == "<1><2><3>"
