"""Decoding whole code-unit streams."""

from __future__ import annotations

import logging
from typing import Iterator, List, Optional, Sequence, Tuple

from ..instr import Instruction
from .decode_map import decode_opcode
from .errors import DecodeError, PayloadTable
from .reader import StreamCtx

logger = logging.getLogger(__name__)


def decode_one(ctx: StreamCtx) -> Instruction:
    """Decode a single instruction at ``ctx.idx`` and advance past it.

    On any :class:`DecodeError`, including the :class:`PayloadTable` signal,
    the cursor is left where it was.
    """
    start = ctx.idx
    try:
        opcode = ctx.peek() & 0xFF
        inst = decode_opcode(opcode, ctx)
    except DecodeError as exc:
        ctx.idx = start
        if exc.pos is None:
            exc.pos = start
        raise
    consumed = ctx.idx - start
    assert consumed == inst.length(), (
        f"{inst.mnemonic} consumed {consumed} units, format says {inst.length()}"
    )
    return inst


def iter_instructions(
    units: Sequence[int], start: int = 0
) -> Iterator[Tuple[int, Instruction]]:
    """Yield ``(address, instruction)`` pairs, skipping payload tables."""
    ctx = StreamCtx(units, idx=start)
    while ctx.remaining() > 0:
        addr = ctx.idx
        try:
            inst = decode_one(ctx)
        except PayloadTable as table:
            logger.debug(
                "Skipping %s payload at %#x (%d units)", table.kind, addr, table.length
            )
            ctx.idx = addr + table.length
            continue
        yield addr, inst


def decode_all(units: Sequence[int], until: Optional[int] = None) -> List[Instruction]:
    """Decode ``units`` front to back.

    Stops at the end of the buffer or after ``until`` instructions. Truncated
    and malformed instructions raise; payload tables are skipped.
    """
    out: List[Instruction] = []
    if until is not None and until <= 0:
        return out
    for _, inst in iter_instructions(units):
        out.append(inst)
        if until is not None and len(out) >= until:
            break
    return out
