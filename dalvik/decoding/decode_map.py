"""Opcode to decoder dispatch table."""

from __future__ import annotations

from typing import Callable, Dict, Tuple

from .. import instr
from ..instr import Instruction
from ..opcodes import Format, Opcode, format_of
from . import formats
from .errors import InvalidEncoding, PayloadTable
from .formats import sign_extend
from .payload import PAYLOAD_KINDS, measure_payload
from .reader import StreamCtx

DecoderFunc = Callable[[Opcode, StreamCtx], Instruction]


def _args_35c(ctx: StreamCtx) -> Tuple[int, Tuple[int, ...]]:
    start = ctx.idx
    count, g, index, f, e, d, c = formats.ag_op_bbbbfedc(ctx)
    if count > 5:
        raise InvalidEncoding(f"35c argument count {count} exceeds 5", pos=start)
    return index, (c, d, e, f, g)[:count]


def _args_3rc(ctx: StreamCtx) -> Tuple[int, Tuple[int, ...]]:
    start = ctx.idx
    count, index, first = formats.aa_op_ccccbbbb(ctx)
    if first + count > 0x10000:
        raise InvalidEncoding(
            f"Register range v{first}..+{count} overflows 16 bits", pos=start
        )
    return index, tuple(range(first, first + count))


def _dec_nop(opcode: Opcode, ctx: StreamCtx) -> Instruction:
    high = ctx.peek() >> 8
    if high in PAYLOAD_KINDS:
        kind, length = measure_payload(ctx)
        raise PayloadTable(kind, length, pos=ctx.idx)
    if high:
        raise InvalidEncoding(f"Unknown nop variant {high:#04x}", pos=ctx.idx)
    formats.zz_op(ctx)
    return instr.Nop()


def _dec_move(opcode: Opcode, ctx: StreamCtx) -> Instruction:
    fmt = format_of(opcode)
    if fmt is Format.F12X:
        src, dst = formats.ba_op(ctx)
    elif fmt is Format.F22X:
        dst, src = formats.aa_op_bbbb(ctx)
    else:
        dst, src = formats.zz_op_aaaabbbb(ctx)
    return instr.Move(opcode, dst, src)


def _dec_move_result(opcode: Opcode, ctx: StreamCtx) -> Instruction:
    return instr.MoveResult(opcode, formats.aa_op(ctx))


def _dec_return_void(opcode: Opcode, ctx: StreamCtx) -> Instruction:
    formats.zz_op(ctx)
    return instr.ReturnVoid()


def _dec_return(opcode: Opcode, ctx: StreamCtx) -> Instruction:
    return instr.Return(opcode, formats.aa_op(ctx))


def _dec_const(opcode: Opcode, ctx: StreamCtx) -> Instruction:
    if opcode == Opcode.CONST_4:
        literal, dst = formats.ba_op(ctx)
        return instr.Const(opcode, dst, sign_extend(literal, 4))
    fmt = format_of(opcode)
    if fmt is Format.F51L:
        dst, literal = formats.aa_op_b64(ctx)
        return instr.Const(opcode, dst, sign_extend(literal, 64))
    if fmt is Format.F31I:
        dst, literal = formats.aa_op_bbbbbbbb(ctx)
        return instr.Const(opcode, dst, sign_extend(literal, 32))
    # 21s and 21h
    dst, literal = formats.aa_op_bbbb(ctx)
    return instr.Const(opcode, dst, sign_extend(literal, 16))


def _dec_const_string(opcode: Opcode, ctx: StreamCtx) -> Instruction:
    if opcode == Opcode.CONST_STRING_JUMBO:
        dst, index = formats.aa_op_bbbbbbbb(ctx)
    else:
        dst, index = formats.aa_op_bbbb(ctx)
    return instr.ConstString(opcode, dst, index)


def _dec_type_ref(opcode: Opcode, ctx: StreamCtx) -> Instruction:
    reg, index = formats.aa_op_bbbb(ctx)
    return instr.TypeRef(opcode, reg, index)


def _dec_monitor(opcode: Opcode, ctx: StreamCtx) -> Instruction:
    return instr.Monitor(opcode, formats.aa_op(ctx))


def _dec_instance_of(opcode: Opcode, ctx: StreamCtx) -> Instruction:
    src, dst, index = formats.ba_op_cccc(ctx)
    return instr.InstanceOf(opcode, dst, src, index)


def _dec_array_length(opcode: Opcode, ctx: StreamCtx) -> Instruction:
    array, dst = formats.ba_op(ctx)
    return instr.ArrayLength(opcode, dst, array)


def _dec_new_array(opcode: Opcode, ctx: StreamCtx) -> Instruction:
    size, dst, index = formats.ba_op_cccc(ctx)
    return instr.NewArray(opcode, dst, size, index)


def _dec_filled_new_array(opcode: Opcode, ctx: StreamCtx) -> Instruction:
    if opcode == Opcode.FILLED_NEW_ARRAY:
        index, args = _args_35c(ctx)
    else:
        index, args = _args_3rc(ctx)
    return instr.FilledNewArray(opcode, index, args)


def _dec_fill_array_data(opcode: Opcode, ctx: StreamCtx) -> Instruction:
    array, offset = formats.aa_op_bbbbbbbb(ctx)
    return instr.FillArrayData(opcode, array, sign_extend(offset, 32))


def _dec_throw(opcode: Opcode, ctx: StreamCtx) -> Instruction:
    return instr.Throw(opcode, formats.aa_op(ctx))


def _dec_goto(opcode: Opcode, ctx: StreamCtx) -> Instruction:
    if opcode == Opcode.GOTO:
        offset = sign_extend(formats.aa_op(ctx), 8)
    elif opcode == Opcode.GOTO_16:
        offset = sign_extend(formats.zz_op_aaaa(ctx), 16)
    else:
        offset = sign_extend(formats.zz_op_aaaaaaaa(ctx), 32)
    return instr.Goto(opcode, offset)


def _dec_switch(opcode: Opcode, ctx: StreamCtx) -> Instruction:
    reg, offset = formats.aa_op_bbbbbbbb(ctx)
    return instr.Switch(opcode, reg, sign_extend(offset, 32))


def _dec_compare(opcode: Opcode, ctx: StreamCtx) -> Instruction:
    dst, src2, src1 = formats.aa_op_ccbb(ctx)
    return instr.Compare(opcode, dst, src1, src2)


def _dec_if_test(opcode: Opcode, ctx: StreamCtx) -> Instruction:
    b, a, offset = formats.ba_op_cccc(ctx)
    return instr.IfTest(opcode, a, b, sign_extend(offset, 16))


def _dec_if_testz(opcode: Opcode, ctx: StreamCtx) -> Instruction:
    reg, offset = formats.aa_op_bbbb(ctx)
    return instr.IfTestZ(opcode, reg, sign_extend(offset, 16))


def _dec_array_op(opcode: Opcode, ctx: StreamCtx) -> Instruction:
    reg, index, array = formats.aa_op_ccbb(ctx)
    return instr.ArrayOp(opcode, reg, array, index)


def _dec_instance_field(opcode: Opcode, ctx: StreamCtx) -> Instruction:
    obj, reg, index = formats.ba_op_cccc(ctx)
    return instr.InstanceField(opcode, reg, obj, index)


def _dec_static_field(opcode: Opcode, ctx: StreamCtx) -> Instruction:
    reg, index = formats.aa_op_bbbb(ctx)
    return instr.StaticField(opcode, reg, index)


def _dec_invoke(opcode: Opcode, ctx: StreamCtx) -> Instruction:
    if format_of(opcode) is Format.F35C:
        index, args = _args_35c(ctx)
    else:
        index, args = _args_3rc(ctx)
    return instr.Invoke(opcode, index, args)


def _dec_invoke_polymorphic(opcode: Opcode, ctx: StreamCtx) -> Instruction:
    start = ctx.idx
    if opcode == Opcode.INVOKE_POLYMORPHIC:
        count, g, method, f, e, d, c, proto = formats.ag_op_bbbbfedc_hhhh(ctx)
        if count > 5:
            raise InvalidEncoding(f"45cc argument count {count} exceeds 5", pos=start)
        args: Tuple[int, ...] = (c, d, e, f, g)[:count]
    else:
        count, method, first, proto = formats.aa_op_bbbb_cccc_hhhh(ctx)
        if first + count > 0x10000:
            raise InvalidEncoding(
                f"Register range v{first}..+{count} overflows 16 bits", pos=start
            )
        args = tuple(range(first, first + count))
    return instr.InvokePolymorphic(opcode, method, proto, args)


def _dec_invoke_custom(opcode: Opcode, ctx: StreamCtx) -> Instruction:
    if opcode == Opcode.INVOKE_CUSTOM:
        index, args = _args_35c(ctx)
    else:
        index, args = _args_3rc(ctx)
    return instr.InvokeCustom(opcode, index, args)


def _dec_const_method_handle(opcode: Opcode, ctx: StreamCtx) -> Instruction:
    dst, index = formats.aa_op_bbbb(ctx)
    return instr.ConstMethodHandle(opcode, dst, index)


def _dec_const_method_type(opcode: Opcode, ctx: StreamCtx) -> Instruction:
    dst, index = formats.aa_op_bbbb(ctx)
    return instr.ConstMethodType(opcode, dst, index)


def _dec_unary(opcode: Opcode, ctx: StreamCtx) -> Instruction:
    src, dst = formats.ba_op(ctx)
    return instr.UnaryOp(opcode, dst, src)


def _dec_binary(opcode: Opcode, ctx: StreamCtx) -> Instruction:
    dst, src2, src1 = formats.aa_op_ccbb(ctx)
    return instr.BinaryOp(opcode, dst, src1, src2)


def _dec_binary_2addr(opcode: Opcode, ctx: StreamCtx) -> Instruction:
    src, dst = formats.ba_op(ctx)
    return instr.BinaryOp2Addr(opcode, dst, src)


def _dec_binary_lit16(opcode: Opcode, ctx: StreamCtx) -> Instruction:
    src, dst, literal = formats.ba_op_cccc(ctx)
    return instr.BinaryOpLit16(opcode, dst, src, sign_extend(literal, 16))


def _dec_binary_lit8(opcode: Opcode, ctx: StreamCtx) -> Instruction:
    dst, literal, src = formats.aa_op_ccbb(ctx)
    return instr.BinaryOpLit8(opcode, dst, src, sign_extend(literal, 8))


_FAMILY_DECODERS: Dict[type, DecoderFunc] = {
    instr.Nop: _dec_nop,
    instr.Move: _dec_move,
    instr.MoveResult: _dec_move_result,
    instr.ReturnVoid: _dec_return_void,
    instr.Return: _dec_return,
    instr.Const: _dec_const,
    instr.ConstString: _dec_const_string,
    instr.TypeRef: _dec_type_ref,
    instr.Monitor: _dec_monitor,
    instr.InstanceOf: _dec_instance_of,
    instr.ArrayLength: _dec_array_length,
    instr.NewArray: _dec_new_array,
    instr.FilledNewArray: _dec_filled_new_array,
    instr.FillArrayData: _dec_fill_array_data,
    instr.Throw: _dec_throw,
    instr.Goto: _dec_goto,
    instr.Switch: _dec_switch,
    instr.Compare: _dec_compare,
    instr.IfTest: _dec_if_test,
    instr.IfTestZ: _dec_if_testz,
    instr.ArrayOp: _dec_array_op,
    instr.InstanceField: _dec_instance_field,
    instr.StaticField: _dec_static_field,
    instr.Invoke: _dec_invoke,
    instr.InvokePolymorphic: _dec_invoke_polymorphic,
    instr.InvokeCustom: _dec_invoke_custom,
    instr.ConstMethodHandle: _dec_const_method_handle,
    instr.ConstMethodType: _dec_const_method_type,
    instr.UnaryOp: _dec_unary,
    instr.BinaryOp: _dec_binary,
    instr.BinaryOp2Addr: _dec_binary_2addr,
    instr.BinaryOpLit16: _dec_binary_lit16,
    instr.BinaryOpLit8: _dec_binary_lit8,
}

DECODERS: Dict[Opcode, DecoderFunc] = {
    opcode: decoder
    for family, decoder in _FAMILY_DECODERS.items()
    for opcode in sorted(family.OPS)
}

_missing = set(Opcode) - set(DECODERS)
if _missing:
    raise RuntimeError(
        "No decoder for opcodes: " + ", ".join(op.name for op in sorted(_missing))
    )
del _missing


def decode_opcode(opcode: int, ctx: StreamCtx) -> Instruction:
    """Decode the instruction whose opcode unit is at ``ctx.idx``."""
    try:
        op = Opcode(opcode)
        decoder = DECODERS[op]
    except (KeyError, ValueError) as exc:
        raise InvalidEncoding(
            f"No decoder registered for opcode {opcode:#04x}", pos=ctx.idx
        ) from exc
    return decoder(op, ctx)
