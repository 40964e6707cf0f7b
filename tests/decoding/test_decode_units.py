from __future__ import annotations

from typing import List

import numpy as np
import pytest

from dalvik import instr
from dalvik.decoding import (
    BufferTooShort,
    InvalidEncoding,
    StreamCtx,
    code_units,
    decode_all,
    decode_one,
    iter_instructions,
)
from dalvik.opcodes import Opcode


def _decode(units: List[int]) -> instr.Instruction:
    ctx = StreamCtx(units)
    inst = decode_one(ctx)
    assert ctx.idx == len(units)
    return inst


@pytest.mark.parametrize(
    "units, text",
    [
        ([0x0108, 0x001F], "move-object/from16 v1, v31"),
        ([0x031A, 0x1234], "const-string v3, string@1234"),
        ([0x001B, 0x4EE5, 0x0021], "const-string/jumbo v0, string@214ee5"),
        ([0x2071, 0x4455, 0x0030], "invoke-static {v0, v3}, method@4455"),
        ([0x106E, 0xCCDD, 0x0001], "invoke-virtual {v1}, method@ccdd"),
        ([0x040C], "move-result-object v4"),
        ([0x7B12], "const/4 v11, 0x7"),
        ([0x1039, 0x0401], "if-nez v16, +1025"),
        ([0x030F], "return v3"),
        ([0x2054, 0xBEEF], "iget-object v0, v2, field@beef"),
    ],
)
def test_decode_renders_mnemonic_text(units: List[int], text: str) -> None:
    assert str(_decode(units)) == text


def test_invoke_static_collects_argument_registers() -> None:
    inst = _decode([0x2071, 0x4455, 0x0030])
    assert inst == instr.Invoke(Opcode.INVOKE_STATIC, 0x4455, (0, 3))
    assert inst.args == (0, 3)
    assert inst.kind == "static"


def test_invoke_with_five_arguments_uses_g_last() -> None:
    inst = _decode([0x5F6E, 0x0000, 0x4321])
    assert inst.args == (1, 2, 3, 4, 15)


def test_invoke_range_expands_first_register() -> None:
    inst = _decode([0x0374, 0x0001, 0x0010])
    assert inst.args == (16, 17, 18)
    assert str(inst) == "invoke-virtual/range {v16, v17, v18}, method@1"


def test_filled_new_array_and_empty_range() -> None:
    assert str(_decode([0x1024, 0x0007, 0x0005])) == "filled-new-array {v5}, type@7"
    assert _decode([0x0025, 0x0007, 0x0000]).args == ()


@pytest.mark.parametrize(
    "units, literal",
    [
        ([0xF012], -1),
        ([0x8012], -8),
        ([0x7012], 7),
        ([0x0013, 0x8000], -0x8000),
        ([0x0013, 0x7FFF], 0x7FFF),
        ([0x0014, 0xFFFF, 0xFFFF], -1),
        ([0x0017, 0x0000, 0x8000], -0x80000000),
        ([0x0018, 0x1111, 0x2222, 0x3333, 0x4444], 0x4444333322221111),
        ([0x0018, 0xFFFE, 0xFFFF, 0xFFFF, 0xFFFF], -2),
    ],
)
def test_const_literals_are_sign_extended(units: List[int], literal: int) -> None:
    inst = _decode(units)
    assert isinstance(inst, instr.Const)
    assert inst.literal == literal


def test_const4_negative_renders_signed_hex() -> None:
    assert str(_decode([0xF012])) == "const/4 v0, -0x1"


def test_high16_constants_shift_the_literal() -> None:
    inst = _decode([0x0115, 0x1234])
    assert inst.literal == 0x1234
    assert inst.value == 0x12340000
    assert str(inst) == "const/high16 v1, 0x12340000"

    wide = _decode([0x0019, 0x8000])
    assert wide.value == -0x8000 << 48
    assert wide.wide


@pytest.mark.parametrize(
    "units, text",
    [
        ([0x01D8, 0xFF02], "add-int/lit8 v1, v2, -0x1"),
        ([0x21D0, 0xFFFF], "add-int/lit16 v1, v2, -0x1"),
        ([0x0090, 0x0201], "add-int v0, v1, v2"),
        ([0x0031, 0x0201], "cmp-long v0, v1, v2"),
        ([0x0144, 0x0302], "aget v1, v2, v3"),
        ([0x21B0], "add-int/2addr v1, v2"),
        ([0x217B], "neg-int v1, v2"),
        ([0x1032, 0x0005], "if-eq v0, v1, +5"),
        ([0x0038, 0xFFFD], "if-eqz v0, -3"),
        ([0xFE28], "goto -2"),
        ([0x0029, 0xFFFD], "goto/16 -3"),
        ([0x002A, 0x0000, 0x8000], "goto/32 -2147483648"),
        ([0x012B, 0x0010, 0x0000], "packed-switch v1, +16"),
        ([0x0226, 0x0004, 0x0000], "fill-array-data v2, +4"),
        ([0x1020, 0x0003], "instance-of v0, v1, type@3"),
        ([0x1023, 0x0003], "new-array v0, v1, type@3"),
        ([0x0022, 0x00AB], "new-instance v0, type@ab"),
        ([0x071D], "monitor-enter v7"),
        ([0x0127], "throw v1"),
        ([0x0003, 0x0100, 0x0200], "move/16 v256, v512"),
        ([0x0160, 0x0002], "sget v1, field@2"),
        ([0x21FA, 0x0003, 0x0054, 0x0009], "invoke-polymorphic {v4, v5}, method@3, proto@9"),
        ([0x02FB, 0x0003, 0x0006, 0x0009], "invoke-polymorphic/range {v6, v7}, method@3, proto@9"),
        ([0x10FC, 0x0002, 0x0003], "invoke-custom {v3}, call_site@2"),
        ([0x01FE, 0x0002], "const-method-handle v1, method_handle@2"),
        ([0x01FF, 0x0002], "const-method-type v1, proto@2"),
        ([0x0000], "nop"),
        ([0x000E], "return-void"),
    ],
)
def test_operand_order_follows_mnemonic(units: List[int], text: str) -> None:
    assert str(_decode(units)) == text


def test_array_length_binds_destination_first() -> None:
    inst = _decode([0x1221])
    assert inst == instr.ArrayLength(Opcode.ARRAY_LENGTH, dst=2, array=1)
    assert str(inst) == "array-length v2, v1"


def test_truncated_instruction_leaves_cursor() -> None:
    ctx = StreamCtx([0x0000, 0x001B, 0x4EE5], idx=1)
    with pytest.raises(BufferTooShort) as info:
        decode_one(ctx)
    assert ctx.idx == 1
    assert info.value.pos == 1


def test_empty_buffer_is_truncated() -> None:
    ctx = StreamCtx([])
    with pytest.raises(BufferTooShort):
        decode_one(ctx)
    assert ctx.idx == 0


@pytest.mark.parametrize(
    "units",
    [
        [0x003E],  # unused opcode
        [0x0073],
        [0x00E3],
        [0x00F9],
        [0x0400],  # nop with an unknown high byte
        [0x010E],  # return-void with a non-zero reserved byte
        [0x0129, 0x0002],  # goto/16 with a non-zero reserved byte
        [0x606E, 0x0000, 0x0000],  # 35c with six arguments
        [0x0274, 0x0000, 0xFFFF],  # register range past v65535
        [0x10000],  # not a 16-bit value
    ],
)
def test_malformed_units_raise_invalid_encoding(units: List[int]) -> None:
    ctx = StreamCtx(units + [0, 0, 0, 0])
    with pytest.raises(InvalidEncoding):
        decode_one(ctx)
    assert ctx.idx == 0


def test_decode_all_stops_at_until() -> None:
    units = [0x0012, 0x1112, 0x000E]
    assert [str(i) for i in decode_all(units)] == [
        "const/4 v0, 0x0",
        "const/4 v1, 0x1",
        "return-void",
    ]
    assert len(decode_all(units, until=2)) == 2
    assert decode_all(units, until=0) == []
    assert decode_all([]) == []


def test_decode_all_propagates_truncation() -> None:
    with pytest.raises(BufferTooShort):
        decode_all([0x000E, 0x0108])


def test_code_units_from_bytes_and_arrays() -> None:
    assert code_units(b"\x08\x01\x1f\x00") == (0x0108, 0x001F)
    assert code_units(bytearray(b"\x0e\x00")) == (0x000E,)
    assert code_units(np.array([0x08, 0x01], dtype=np.uint8)) == (0x0108,)
    assert code_units(np.array([0x0108, 0x001F], dtype=np.uint16)) == (0x0108, 0x001F)
    assert code_units([1, 2]) == (1, 2)
    with pytest.raises(ValueError):
        code_units(b"\x00")


def test_decode_from_loaded_bytes() -> None:
    units = code_units(bytes.fromhex("71200000300054000000"))
    first = decode_all(units, until=1)[0]
    assert str(first) == "invoke-static {v0, v3}, method@0"


def test_negative_cursor_is_rejected() -> None:
    ctx = StreamCtx([0x0000, 0x000E], idx=-1)
    with pytest.raises(InvalidEncoding):
        decode_one(ctx)
    assert ctx.idx == -1
    with pytest.raises(InvalidEncoding):
        list(iter_instructions([0x0000, 0x000E], start=-1))
