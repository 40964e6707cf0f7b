from __future__ import annotations

import dataclasses

import pytest

from dalvik import instr
from dalvik.instr import Branch, FallThrough, GoTo, Terminate
from dalvik.opcodes import MNEMONICS, Format, Opcode, format_of


@pytest.mark.parametrize(
    "opcode, mnemonic",
    [
        (Opcode.MOVE_FROM16, "move/from16"),
        (Opcode.MOVE_WIDE_16, "move-wide/16"),
        (Opcode.CONST_4, "const/4"),
        (Opcode.CONST_WIDE_HIGH16, "const-wide/high16"),
        (Opcode.CONST_STRING_JUMBO, "const-string/jumbo"),
        (Opcode.FILLED_NEW_ARRAY_RANGE, "filled-new-array/range"),
        (Opcode.GOTO_32, "goto/32"),
        (Opcode.INVOKE_INTERFACE_RANGE, "invoke-interface/range"),
        (Opcode.CMPL_DOUBLE, "cmpl-double"),
        (Opcode.INT_TO_BYTE, "int-to-byte"),
        (Opcode.SHL_LONG_2ADDR, "shl-long/2addr"),
        (Opcode.RSUB_INT, "rsub-int"),
        (Opcode.RSUB_INT_LIT8, "rsub-int/lit8"),
        (Opcode.USHR_INT_LIT8, "ushr-int/lit8"),
        (Opcode.IPUT_OBJECT, "iput-object"),
        (Opcode.INVOKE_POLYMORPHIC_RANGE, "invoke-polymorphic/range"),
    ],
)
def test_mnemonics(opcode: Opcode, mnemonic: str) -> None:
    assert MNEMONICS[opcode] == mnemonic


def test_format_lengths() -> None:
    assert format_of(Opcode.NOP) is Format.F10X
    assert format_of(Opcode.CONST_WIDE).units == 5
    assert format_of(Opcode.INVOKE_POLYMORPHIC).units == 4
    assert format_of(Opcode.RSUB_INT) is Format.F22S
    assert Format.F3RC.ident == "3rc"


@pytest.mark.parametrize(
    "inst, flow",
    [
        (instr.ReturnVoid(), Terminate()),
        (instr.Return(Opcode.RETURN_OBJECT, 0), Terminate()),
        (instr.Throw(Opcode.THROW, 3), Terminate()),
        (instr.Goto(Opcode.GOTO, -2), GoTo(-2)),
        (instr.Goto(Opcode.GOTO_32, 0x10000), GoTo(0x10000)),
        (instr.IfTest(Opcode.IF_LT, 0, 1, 7), Branch(7)),
        (instr.IfTestZ(Opcode.IF_NEZ, 0, -4), Branch(-4)),
        (instr.Switch(Opcode.PACKED_SWITCH, 0, 8), FallThrough()),
        (instr.Invoke(Opcode.INVOKE_STATIC, 0, ()), FallThrough()),
        (instr.FillArrayData(Opcode.FILL_ARRAY_DATA, 0, 4), FallThrough()),
        (instr.Nop(), FallThrough()),
    ],
)
def test_control_flow_classification(inst: instr.Instruction, flow: object) -> None:
    assert inst.control_flow() == flow


def test_constructor_rejects_foreign_opcode() -> None:
    with pytest.raises(ValueError):
        instr.Move(Opcode.RETURN, 0, 0)
    with pytest.raises(ValueError):
        instr.Invoke(Opcode.FILLED_NEW_ARRAY, 0, ())


@pytest.mark.parametrize(
    "build",
    [
        lambda: instr.Move(Opcode.MOVE, 16, 0),
        lambda: instr.Move(Opcode.MOVE_FROM16, 256, 0),
        lambda: instr.Move(Opcode.MOVE_16, 0, 0x10000),
        lambda: instr.Const(Opcode.CONST_4, 0, 8),
        lambda: instr.Const(Opcode.CONST_4, 16, 0),
        lambda: instr.Const(Opcode.CONST_16, 0, 0x8000),
        lambda: instr.ConstString(Opcode.CONST_STRING, 0, 0x10000),
        lambda: instr.Goto(Opcode.GOTO, 128),
        lambda: instr.IfTestZ(Opcode.IF_EQZ, 0, -0x8001),
        lambda: instr.BinaryOpLit8(Opcode.ADD_INT_LIT8, 0, 0, -129),
        lambda: instr.Invoke(Opcode.INVOKE_STATIC, 0, (0, 1, 2, 3, 4, 5)),
        lambda: instr.Invoke(Opcode.INVOKE_STATIC, 0, (16,)),
        lambda: instr.Invoke(Opcode.INVOKE_STATIC_RANGE, 0, (1, 3)),
        lambda: instr.Invoke(Opcode.INVOKE_STATIC_RANGE, 0, (0xFFFF, 0x10000)),
    ],
)
def test_constructor_rejects_out_of_range_operands(build) -> None:
    with pytest.raises(ValueError):
        build()


def test_boundary_operands_are_accepted() -> None:
    assert instr.Const(Opcode.CONST_4, 15, -8).literal == -8
    assert instr.Move(Opcode.MOVE_16, 0xFFFF, 0xFFFF).dst == 0xFFFF
    assert instr.Const(Opcode.CONST_WIDE, 0, -(1 << 63)).value == -(1 << 63)
    assert instr.ConstString(Opcode.CONST_STRING_JUMBO, 0, 0xFFFFFFFF).string == 0xFFFFFFFF


def test_args_are_stored_as_tuples() -> None:
    inst = instr.Invoke(Opcode.INVOKE_STATIC, 0x4455, [0, 3])
    assert inst.args == (0, 3)
    assert inst == instr.Invoke(Opcode.INVOKE_STATIC, 0x4455, (0, 3))
    assert hash(inst) == hash(instr.Invoke(Opcode.INVOKE_STATIC, 0x4455, (0, 3)))


def test_instructions_are_frozen() -> None:
    inst = instr.Return(Opcode.RETURN, 3)
    with pytest.raises(dataclasses.FrozenInstanceError):
        inst.src = 4  # type: ignore[misc]


def test_invoke_kind() -> None:
    assert instr.Invoke(Opcode.INVOKE_DIRECT, 0, ()).kind == "direct"
    assert instr.Invoke(Opcode.INVOKE_SUPER_RANGE, 0, ()).kind == "super"
