"""Operand-packing primitives, one per Dalvik instruction format.

Each primitive starts with the cursor on the opcode unit, checks that the
whole format is available, consumes it, and returns the raw fields in the
order its name spells them (3rc excepted, see its docstring). Field
letters follow the Dalvik format tables: ``op`` is the low byte of the
first unit, ``AA`` its high byte, ``B|A`` the two nibbles of that byte
(B high), and each further unit is written most significant nibble first.

Recorded layouts use the field letters as keys with the unit offset
(relative to the opcode unit), bit shift and width of each field.
"""

from __future__ import annotations

from typing import Tuple

from .errors import InvalidEncoding
from .reader import StreamCtx


def sign_extend(value: int, bits: int) -> int:
    sign = 1 << (bits - 1)
    value &= (1 << bits) - 1
    return value - (1 << bits) if value & sign else value


def _field(ctx: StreamCtx, key: str, unit: int, shift: int, width: int) -> None:
    ctx.record_operand(key, "field", unit=unit, shift=shift, width=width)


def _must_be_zero(value: int, start: int) -> None:
    if value:
        raise InvalidEncoding(
            f"Non-zero high byte {value:#04x} in a format that reserves it",
            pos=start,
        )


def zz_op(ctx: StreamCtx) -> None:
    """10x: ``00|op``."""
    start = ctx.idx
    ctx.require(1)
    _must_be_zero(ctx.read_u16() >> 8, start)


def aa_op(ctx: StreamCtx) -> int:
    """11x, 10t: ``AA|op``."""
    ctx.require(1)
    aa = ctx.read_u16() >> 8
    _field(ctx, "AA", 0, 8, 8)
    return aa


def ba_op(ctx: StreamCtx) -> Tuple[int, int]:
    """12x, 11n: ``B|A|op``. Returns ``(B, A)``."""
    ctx.require(1)
    unit = ctx.read_u16()
    _field(ctx, "A", 0, 8, 4)
    _field(ctx, "B", 0, 12, 4)
    return unit >> 12, (unit >> 8) & 0xF


def aa_op_bbbb(ctx: StreamCtx) -> Tuple[int, int]:
    """22x, 21t, 21s, 21h, 21c: ``AA|op BBBB``."""
    ctx.require(2)
    aa = ctx.read_u16() >> 8
    bbbb = ctx.read_u16()
    _field(ctx, "AA", 0, 8, 8)
    _field(ctx, "BBBB", 1, 0, 16)
    return aa, bbbb


def aa_op_ccbb(ctx: StreamCtx) -> Tuple[int, int, int]:
    """23x, 22b: ``AA|op CC|BB``. Returns ``(AA, CC, BB)``."""
    ctx.require(2)
    aa = ctx.read_u16() >> 8
    ccbb = ctx.read_u16()
    _field(ctx, "AA", 0, 8, 8)
    _field(ctx, "BB", 1, 0, 8)
    _field(ctx, "CC", 1, 8, 8)
    return aa, ccbb >> 8, ccbb & 0xFF


def ba_op_cccc(ctx: StreamCtx) -> Tuple[int, int, int]:
    """22t, 22s, 22c: ``B|A|op CCCC``. Returns ``(B, A, CCCC)``."""
    ctx.require(2)
    unit = ctx.read_u16()
    cccc = ctx.read_u16()
    _field(ctx, "A", 0, 8, 4)
    _field(ctx, "B", 0, 12, 4)
    _field(ctx, "CCCC", 1, 0, 16)
    return unit >> 12, (unit >> 8) & 0xF, cccc


def zz_op_aaaa(ctx: StreamCtx) -> int:
    """20t: ``00|op AAAA``."""
    start = ctx.idx
    ctx.require(2)
    _must_be_zero(ctx.read_u16() >> 8, start)
    aaaa = ctx.read_u16()
    _field(ctx, "AAAA", 1, 0, 16)
    return aaaa


def zz_op_aaaabbbb(ctx: StreamCtx) -> Tuple[int, int]:
    """32x: ``00|op AAAA BBBB``."""
    start = ctx.idx
    ctx.require(3)
    _must_be_zero(ctx.read_u16() >> 8, start)
    aaaa = ctx.read_u16()
    bbbb = ctx.read_u16()
    _field(ctx, "AAAA", 1, 0, 16)
    _field(ctx, "BBBB", 2, 0, 16)
    return aaaa, bbbb


def aa_op_bbbbbbbb(ctx: StreamCtx) -> Tuple[int, int]:
    """31t, 31i, 31c: ``AA|op BBBBlo BBBBhi``."""
    ctx.require(3)
    aa = ctx.read_u16() >> 8
    value = ctx.read_u32()
    _field(ctx, "AA", 0, 8, 8)
    _field(ctx, "BBBBBBBB", 1, 0, 32)
    return aa, value


def zz_op_aaaaaaaa(ctx: StreamCtx) -> int:
    """30t: ``00|op AAAAlo AAAAhi``."""
    start = ctx.idx
    ctx.require(3)
    _must_be_zero(ctx.read_u16() >> 8, start)
    value = ctx.read_u32()
    _field(ctx, "AAAAAAAA", 1, 0, 32)
    return value


def aa_op_ccccbbbb(ctx: StreamCtx) -> Tuple[int, int, int]:
    """3rc: ``AA|op BBBB CCCC``.

    AA is the register count, BBBB the symbol index and CCCC the first
    register. Returns ``(AA, BBBB, CCCC)`` in unit order.
    """
    ctx.require(3)
    aa = ctx.read_u16() >> 8
    bbbb = ctx.read_u16()
    cccc = ctx.read_u16()
    _field(ctx, "AA", 0, 8, 8)
    _field(ctx, "BBBB", 1, 0, 16)
    _field(ctx, "CCCC", 2, 0, 16)
    return aa, bbbb, cccc


def _read_ag_fedc(ctx: StreamCtx) -> Tuple[int, int, int, int, int, int, int]:
    unit = ctx.read_u16()
    bbbb = ctx.read_u16()
    fedc = ctx.read_u16()
    _field(ctx, "G", 0, 8, 4)
    _field(ctx, "A", 0, 12, 4)
    _field(ctx, "BBBB", 1, 0, 16)
    for key, shift in (("C", 0), ("D", 4), ("E", 8), ("F", 12)):
        _field(ctx, key, 2, shift, 4)
    return (
        unit >> 12,
        (unit >> 8) & 0xF,
        bbbb,
        fedc >> 12,
        (fedc >> 8) & 0xF,
        (fedc >> 4) & 0xF,
        fedc & 0xF,
    )


def ag_op_bbbbfedc(ctx: StreamCtx) -> Tuple[int, int, int, int, int, int, int]:
    """35c: ``A|G|op BBBB F|E|D|C``. Returns ``(A, G, BBBB, F, E, D, C)``."""
    ctx.require(3)
    return _read_ag_fedc(ctx)


def ag_op_bbbbfedc_hhhh(
    ctx: StreamCtx,
) -> Tuple[int, int, int, int, int, int, int, int]:
    """45cc: ``A|G|op BBBB F|E|D|C HHHH``."""
    ctx.require(4)
    fields = _read_ag_fedc(ctx)
    hhhh = ctx.read_u16()
    _field(ctx, "HHHH", 3, 0, 16)
    return fields + (hhhh,)


def aa_op_bbbb_cccc_hhhh(ctx: StreamCtx) -> Tuple[int, int, int, int]:
    """4rcc: ``AA|op BBBB CCCC HHHH``."""
    ctx.require(4)
    aa, bbbb, cccc = aa_op_ccccbbbb(ctx)
    hhhh = ctx.read_u16()
    _field(ctx, "HHHH", 3, 0, 16)
    return aa, bbbb, cccc, hhhh


def aa_op_b64(ctx: StreamCtx) -> Tuple[int, int]:
    """51l: ``AA|op BBBBlo BBBB BBBB BBBBhi``."""
    ctx.require(5)
    aa = ctx.read_u16() >> 8
    value = ctx.read_u64()
    _field(ctx, "AA", 0, 8, 8)
    _field(ctx, "BBBBBBBBBBBBBBBB", 1, 0, 64)
    return aa, value
