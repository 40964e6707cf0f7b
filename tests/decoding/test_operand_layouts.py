from __future__ import annotations

from typing import Iterable

from dalvik.decoding import decode_one
from dalvik.decoding.reader import LayoutEntry, StreamCtx


def _capture_layout(units: Iterable[int]) -> tuple[LayoutEntry, ...]:
    ctx = StreamCtx(list(units), record_layout=True)
    decode_one(ctx)
    return ctx.snapshot_layout()


def test_22c_layout_has_nibbles_and_index() -> None:
    layout = _capture_layout([0x2054, 0xBEEF])
    assert [entry.key for entry in layout] == ["A", "B", "CCCC"]
    a, b, cccc = layout
    assert a.kind == "field"
    assert a.meta == {"unit": 0, "shift": 8, "width": 4}
    assert b.meta == {"unit": 0, "shift": 12, "width": 4}
    assert cccc.meta == {"unit": 1, "shift": 0, "width": 16}


def test_35c_layout_records_every_register_nibble() -> None:
    layout = _capture_layout([0x2071, 0x4455, 0x0030])
    assert [entry.key for entry in layout] == ["G", "A", "BBBB", "C", "D", "E", "F"]
    by_key = {entry.key: entry.meta for entry in layout}
    assert by_key["D"] == {"unit": 2, "shift": 4, "width": 4}
    assert by_key["F"] == {"unit": 2, "shift": 12, "width": 4}


def test_51l_layout_spans_four_units() -> None:
    layout = _capture_layout([0x0018, 0, 0, 0, 0])
    assert len(layout) == 2
    aa, literal = layout
    assert aa.key == "AA"
    assert literal.meta == {"unit": 1, "shift": 0, "width": 64}


def test_10x_layout_is_empty() -> None:
    assert _capture_layout([0x000E]) == ()


def test_layout_not_recorded_by_default() -> None:
    ctx = StreamCtx([0x2054, 0xBEEF])
    decode_one(ctx)
    assert ctx.snapshot_layout() == ()
