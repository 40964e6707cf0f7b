"""Inline payload tables: packed-switch, sparse-switch and fill-array-data.

Payloads are data embedded in the instruction stream, identified by a first
unit of ``0x0100``, ``0x0200`` or ``0x0300`` (a ``nop`` opcode byte with a
non-zero high byte). Switch targets are offsets relative to the switch
instruction that references the table, not to the table itself.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Sequence, Tuple, Union

import numpy as np

from .errors import BufferTooShort, InvalidEncoding
from .formats import sign_extend
from .reader import StreamCtx

PACKED_SWITCH = "packed-switch"
SPARSE_SWITCH = "sparse-switch"
FILL_ARRAY_DATA = "fill-array-data"

PAYLOAD_KINDS: Dict[int, str] = {
    0x01: PACKED_SWITCH,
    0x02: SPARSE_SWITCH,
    0x03: FILL_ARRAY_DATA,
}

# units needed before the total length is known
_HEADER_UNITS: Dict[str, int] = {
    PACKED_SWITCH: 2,
    SPARSE_SWITCH: 2,
    FILL_ARRAY_DATA: 4,
}


def packed_switch_length(size: int) -> int:
    return 4 + 2 * size


def sparse_switch_length(size: int) -> int:
    return 2 + 4 * size


def fill_array_data_length(element_width: int, size: int) -> int:
    return (element_width * size + 1) // 2 + 4


@dataclass(frozen=True)
class PackedSwitchPayload:
    first_key: int
    targets: Tuple[int, ...]

    def length(self) -> int:
        return packed_switch_length(len(self.targets))

    def keys(self) -> Tuple[int, ...]:
        return tuple(range(self.first_key, self.first_key + len(self.targets)))


@dataclass(frozen=True)
class SparseSwitchPayload:
    keys: Tuple[int, ...]
    targets: Tuple[int, ...]

    def length(self) -> int:
        return sparse_switch_length(len(self.targets))


@dataclass(frozen=True)
class FillArrayDataPayload:
    element_width: int
    size: int
    data: bytes

    def length(self) -> int:
        return fill_array_data_length(self.element_width, self.size)

    def elements(self) -> Tuple[int, ...]:
        """Unsigned little-endian element values."""
        width = self.element_width
        return tuple(
            int.from_bytes(self.data[i : i + width], "little")
            for i in range(0, width * self.size, width)
        )


Payload = Union[PackedSwitchPayload, SparseSwitchPayload, FillArrayDataPayload]


def payload_kind(unit: int) -> str:
    if unit & 0xFF:
        raise InvalidEncoding(f"Not a payload identifier: {unit:#06x}")
    try:
        return PAYLOAD_KINDS[unit >> 8]
    except KeyError as exc:
        raise InvalidEncoding(f"Unknown payload identifier: {unit:#06x}") from exc


def measure_payload(ctx: StreamCtx) -> Tuple[str, int]:
    """Return ``(kind, length)`` of the table at the cursor without consuming it.

    Raises :class:`BufferTooShort` when the header or the body it announces
    runs past the end of the buffer.
    """
    kind = payload_kind(ctx.peek())
    ctx.require(_HEADER_UNITS[kind])
    if kind == FILL_ARRAY_DATA:
        width = ctx.peek(1)
        size = ctx.peek(2) | (ctx.peek(3) << 16)
        length = fill_array_data_length(width, size)
    elif kind == PACKED_SWITCH:
        length = packed_switch_length(ctx.peek(1))
    else:
        length = sparse_switch_length(ctx.peek(1))
    if length > ctx.remaining():
        raise BufferTooShort(
            f"{kind} payload needs {length} code units, "
            f"have {ctx.remaining()} remaining",
            pos=ctx.idx,
        )
    return kind, length


def _read_s32s(ctx: StreamCtx, count: int) -> Tuple[int, ...]:
    return tuple(sign_extend(ctx.read_u32(), 32) for _ in range(count))


def read_payload(units: Sequence[int], pos: int) -> Payload:
    """Parse the payload table starting at ``units[pos]``."""
    ctx = StreamCtx(units, idx=pos)
    kind, length = measure_payload(ctx)
    ctx.read_u16()
    if kind == PACKED_SWITCH:
        size = ctx.read_u16()
        first_key = sign_extend(ctx.read_u32(), 32)
        return PackedSwitchPayload(first_key, _read_s32s(ctx, size))
    if kind == SPARSE_SWITCH:
        size = ctx.read_u16()
        keys = _read_s32s(ctx, size)
        return SparseSwitchPayload(keys, _read_s32s(ctx, size))
    width = ctx.read_u16()
    size = ctx.read_u32()
    body = np.asarray(units[ctx.idx : pos + length], dtype="<u2").tobytes()
    return FillArrayDataPayload(width, size, body[: width * size])
