"""Decoded Dalvik instructions.

Each opcode family is a frozen dataclass whose fields follow the mnemonic's
operand order read left to right (``dst`` before ``src``), regardless of how
the operands are packed in the encoding. The concrete opcode is carried in
``op``; ``__post_init__`` rejects opcodes from another family and operands
that would not fit the encoded field widths.

Symbol indices (strings, types, fields, methods, prototypes) are kept as
raw integers. See :mod:`dalvik.pretty` for rendering them with names.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Dict, FrozenSet, Tuple, Union

from .opcodes import MNEMONICS, OPCODE_FORMATS, Format, Opcode


@dataclass(frozen=True, slots=True)
class Terminate:
    """Return or throw: no local successor."""


@dataclass(frozen=True, slots=True)
class GoTo:
    offset: int  # code units, relative to the branching instruction


@dataclass(frozen=True, slots=True)
class Branch:
    offset: int  # taken target; not-taken falls through


@dataclass(frozen=True, slots=True)
class FallThrough:
    pass


ControlFlow = Union[Terminate, GoTo, Branch, FallThrough]

TERMINATE = Terminate()
FALL_THROUGH = FallThrough()


def _ops(first: Opcode, last: Opcode) -> FrozenSet[Opcode]:
    return frozenset(Opcode(v) for v in range(first, last + 1))


def _check_unsigned(name: str, value: int, bits: int) -> None:
    if not 0 <= value < (1 << bits):
        raise ValueError(f"{name} does not fit in {bits} bits: {value:#x}")


def _check_signed(name: str, value: int, bits: int) -> None:
    bound = 1 << (bits - 1)
    if not -bound <= value < bound:
        raise ValueError(f"{name} does not fit in signed {bits} bits: {value}")


def _check_args(args: Tuple[int, ...], fmt: Format) -> None:
    if fmt in (Format.F35C, Format.F45CC):
        if len(args) > 5:
            raise ValueError(f"{fmt.ident} encodes at most 5 arguments, got {len(args)}")
        for reg in args:
            _check_unsigned("argument register", reg, 4)
        return
    # register-range forms: contiguous run of at most 255 registers
    if len(args) > 0xFF:
        raise ValueError(f"{fmt.ident} encodes at most 255 arguments, got {len(args)}")
    if args:
        _check_unsigned("first argument register", args[0], 16)
        _check_unsigned("last argument register", args[-1], 16)
        if args != tuple(range(args[0], args[0] + len(args))):
            raise ValueError(f"{fmt.ident} arguments must be contiguous: {args}")


def format_registers(args: Tuple[int, ...]) -> str:
    return "{" + ", ".join(f"v{reg}" for reg in args) + "}"


@dataclass(frozen=True, slots=True)
class Instruction:
    op: Opcode

    OPS: ClassVar[FrozenSet[Opcode]] = frozenset()

    def __post_init__(self) -> None:
        if self.op not in self.OPS:
            raise ValueError(
                f"{type(self).__name__} cannot carry opcode {Opcode(self.op).name}"
            )
        self._validate()

    def _validate(self) -> None:
        pass

    @property
    def format(self) -> Format:
        return OPCODE_FORMATS[self.op]

    @property
    def mnemonic(self) -> str:
        return MNEMONICS[self.op]

    def length(self) -> int:
        """Encoded size in 16-bit code units."""
        return self.format.units

    def control_flow(self) -> ControlFlow:
        return FALL_THROUGH

    def __str__(self) -> str:
        return self.mnemonic


@dataclass(frozen=True, slots=True)
class Nop(Instruction):
    op: Opcode = Opcode.NOP

    OPS: ClassVar[FrozenSet[Opcode]] = frozenset({Opcode.NOP})


_MOVE_WIDTHS: Dict[Format, Tuple[int, int]] = {
    Format.F12X: (4, 4),
    Format.F22X: (8, 16),
    Format.F32X: (16, 16),
}


@dataclass(frozen=True, slots=True)
class Move(Instruction):
    dst: int
    src: int

    OPS: ClassVar[FrozenSet[Opcode]] = _ops(Opcode.MOVE, Opcode.MOVE_OBJECT_16)

    def _validate(self) -> None:
        dst_bits, src_bits = _MOVE_WIDTHS[self.format]
        _check_unsigned("dst", self.dst, dst_bits)
        _check_unsigned("src", self.src, src_bits)

    def __str__(self) -> str:
        return f"{self.mnemonic} v{self.dst}, v{self.src}"


@dataclass(frozen=True, slots=True)
class MoveResult(Instruction):
    dst: int

    OPS: ClassVar[FrozenSet[Opcode]] = _ops(Opcode.MOVE_RESULT, Opcode.MOVE_EXCEPTION)

    def _validate(self) -> None:
        _check_unsigned("dst", self.dst, 8)

    def __str__(self) -> str:
        return f"{self.mnemonic} v{self.dst}"


@dataclass(frozen=True, slots=True)
class ReturnVoid(Instruction):
    op: Opcode = Opcode.RETURN_VOID

    OPS: ClassVar[FrozenSet[Opcode]] = frozenset({Opcode.RETURN_VOID})

    def control_flow(self) -> ControlFlow:
        return TERMINATE


@dataclass(frozen=True, slots=True)
class Return(Instruction):
    src: int

    OPS: ClassVar[FrozenSet[Opcode]] = _ops(Opcode.RETURN, Opcode.RETURN_OBJECT)

    def _validate(self) -> None:
        _check_unsigned("src", self.src, 8)

    def control_flow(self) -> ControlFlow:
        return TERMINATE

    def __str__(self) -> str:
        return f"{self.mnemonic} v{self.src}"


# literal width in bits, and the shift applied to form the constant
_CONST_LITERALS: Dict[Opcode, Tuple[int, int]] = {
    Opcode.CONST_4: (4, 0),
    Opcode.CONST_16: (16, 0),
    Opcode.CONST: (32, 0),
    Opcode.CONST_HIGH16: (16, 16),
    Opcode.CONST_WIDE_16: (16, 0),
    Opcode.CONST_WIDE_32: (32, 0),
    Opcode.CONST_WIDE: (64, 0),
    Opcode.CONST_WIDE_HIGH16: (16, 48),
}


@dataclass(frozen=True, slots=True)
class Const(Instruction):
    """Literal load. ``literal`` is the sign-extended encoded field."""

    dst: int
    literal: int

    OPS: ClassVar[FrozenSet[Opcode]] = _ops(Opcode.CONST_4, Opcode.CONST_WIDE_HIGH16)

    def _validate(self) -> None:
        _check_unsigned("dst", self.dst, 4 if self.op == Opcode.CONST_4 else 8)
        bits, _ = _CONST_LITERALS[self.op]
        _check_signed("literal", self.literal, bits)

    @property
    def value(self) -> int:
        """The constant written to the register, high16 forms included."""
        _, shift = _CONST_LITERALS[self.op]
        return self.literal << shift

    @property
    def wide(self) -> bool:
        return self.op >= Opcode.CONST_WIDE_16

    def __str__(self) -> str:
        return f"{self.mnemonic} v{self.dst}, {self.value:#x}"


@dataclass(frozen=True, slots=True)
class ConstString(Instruction):
    dst: int
    string: int

    OPS: ClassVar[FrozenSet[Opcode]] = frozenset(
        {Opcode.CONST_STRING, Opcode.CONST_STRING_JUMBO}
    )

    def _validate(self) -> None:
        _check_unsigned("dst", self.dst, 8)
        bits = 32 if self.op == Opcode.CONST_STRING_JUMBO else 16
        _check_unsigned("string index", self.string, bits)

    def __str__(self) -> str:
        return f"{self.mnemonic} v{self.dst}, string@{self.string:x}"


@dataclass(frozen=True, slots=True)
class TypeRef(Instruction):
    """const-class, check-cast and new-instance: a register and a type."""

    reg: int
    type: int

    OPS: ClassVar[FrozenSet[Opcode]] = frozenset(
        {Opcode.CONST_CLASS, Opcode.CHECK_CAST, Opcode.NEW_INSTANCE}
    )

    def _validate(self) -> None:
        _check_unsigned("reg", self.reg, 8)
        _check_unsigned("type index", self.type, 16)

    def __str__(self) -> str:
        return f"{self.mnemonic} v{self.reg}, type@{self.type:x}"


@dataclass(frozen=True, slots=True)
class Monitor(Instruction):
    reg: int

    OPS: ClassVar[FrozenSet[Opcode]] = frozenset(
        {Opcode.MONITOR_ENTER, Opcode.MONITOR_EXIT}
    )

    def _validate(self) -> None:
        _check_unsigned("reg", self.reg, 8)

    def __str__(self) -> str:
        return f"{self.mnemonic} v{self.reg}"


@dataclass(frozen=True, slots=True)
class InstanceOf(Instruction):
    dst: int
    src: int
    type: int

    OPS: ClassVar[FrozenSet[Opcode]] = frozenset({Opcode.INSTANCE_OF})

    def _validate(self) -> None:
        _check_unsigned("dst", self.dst, 4)
        _check_unsigned("src", self.src, 4)
        _check_unsigned("type index", self.type, 16)

    def __str__(self) -> str:
        return f"{self.mnemonic} v{self.dst}, v{self.src}, type@{self.type:x}"


@dataclass(frozen=True, slots=True)
class ArrayLength(Instruction):
    dst: int
    array: int

    OPS: ClassVar[FrozenSet[Opcode]] = frozenset({Opcode.ARRAY_LENGTH})

    def _validate(self) -> None:
        _check_unsigned("dst", self.dst, 4)
        _check_unsigned("array", self.array, 4)

    def __str__(self) -> str:
        return f"{self.mnemonic} v{self.dst}, v{self.array}"


@dataclass(frozen=True, slots=True)
class NewArray(Instruction):
    dst: int
    size: int
    type: int

    OPS: ClassVar[FrozenSet[Opcode]] = frozenset({Opcode.NEW_ARRAY})

    def _validate(self) -> None:
        _check_unsigned("dst", self.dst, 4)
        _check_unsigned("size", self.size, 4)
        _check_unsigned("type index", self.type, 16)

    def __str__(self) -> str:
        return f"{self.mnemonic} v{self.dst}, v{self.size}, type@{self.type:x}"


@dataclass(frozen=True, slots=True)
class FilledNewArray(Instruction):
    type: int
    args: Tuple[int, ...]

    OPS: ClassVar[FrozenSet[Opcode]] = frozenset(
        {Opcode.FILLED_NEW_ARRAY, Opcode.FILLED_NEW_ARRAY_RANGE}
    )

    def _validate(self) -> None:
        object.__setattr__(self, "args", tuple(self.args))
        _check_unsigned("type index", self.type, 16)
        _check_args(self.args, self.format)

    def __str__(self) -> str:
        return f"{self.mnemonic} {format_registers(self.args)}, type@{self.type:x}"


@dataclass(frozen=True, slots=True)
class FillArrayData(Instruction):
    array: int
    offset: int  # to the fill-array-data payload

    OPS: ClassVar[FrozenSet[Opcode]] = frozenset({Opcode.FILL_ARRAY_DATA})

    def _validate(self) -> None:
        _check_unsigned("array", self.array, 8)
        _check_signed("offset", self.offset, 32)

    def __str__(self) -> str:
        return f"{self.mnemonic} v{self.array}, {self.offset:+d}"


@dataclass(frozen=True, slots=True)
class Throw(Instruction):
    src: int

    OPS: ClassVar[FrozenSet[Opcode]] = frozenset({Opcode.THROW})

    def _validate(self) -> None:
        _check_unsigned("src", self.src, 8)

    def control_flow(self) -> ControlFlow:
        return TERMINATE

    def __str__(self) -> str:
        return f"{self.mnemonic} v{self.src}"


_GOTO_BITS: Dict[Opcode, int] = {
    Opcode.GOTO: 8,
    Opcode.GOTO_16: 16,
    Opcode.GOTO_32: 32,
}


@dataclass(frozen=True, slots=True)
class Goto(Instruction):
    offset: int

    OPS: ClassVar[FrozenSet[Opcode]] = frozenset(_GOTO_BITS)

    def _validate(self) -> None:
        _check_signed("offset", self.offset, _GOTO_BITS[self.op])

    def control_flow(self) -> ControlFlow:
        return GoTo(self.offset)

    def __str__(self) -> str:
        return f"{self.mnemonic} {self.offset:+d}"


@dataclass(frozen=True, slots=True)
class Switch(Instruction):
    """packed-switch / sparse-switch. Targets live in the payload table."""

    reg: int
    offset: int  # to the switch payload

    OPS: ClassVar[FrozenSet[Opcode]] = frozenset(
        {Opcode.PACKED_SWITCH, Opcode.SPARSE_SWITCH}
    )

    def _validate(self) -> None:
        _check_unsigned("reg", self.reg, 8)
        _check_signed("offset", self.offset, 32)

    def __str__(self) -> str:
        return f"{self.mnemonic} v{self.reg}, {self.offset:+d}"


@dataclass(frozen=True, slots=True)
class Compare(Instruction):
    dst: int
    src1: int
    src2: int

    OPS: ClassVar[FrozenSet[Opcode]] = _ops(Opcode.CMPL_FLOAT, Opcode.CMP_LONG)

    def _validate(self) -> None:
        for name in ("dst", "src1", "src2"):
            _check_unsigned(name, getattr(self, name), 8)

    def __str__(self) -> str:
        return f"{self.mnemonic} v{self.dst}, v{self.src1}, v{self.src2}"


@dataclass(frozen=True, slots=True)
class IfTest(Instruction):
    a: int
    b: int
    offset: int

    OPS: ClassVar[FrozenSet[Opcode]] = _ops(Opcode.IF_EQ, Opcode.IF_LE)

    def _validate(self) -> None:
        _check_unsigned("a", self.a, 4)
        _check_unsigned("b", self.b, 4)
        _check_signed("offset", self.offset, 16)

    def control_flow(self) -> ControlFlow:
        return Branch(self.offset)

    def __str__(self) -> str:
        return f"{self.mnemonic} v{self.a}, v{self.b}, {self.offset:+d}"


@dataclass(frozen=True, slots=True)
class IfTestZ(Instruction):
    reg: int
    offset: int

    OPS: ClassVar[FrozenSet[Opcode]] = _ops(Opcode.IF_EQZ, Opcode.IF_LEZ)

    def _validate(self) -> None:
        _check_unsigned("reg", self.reg, 8)
        _check_signed("offset", self.offset, 16)

    def control_flow(self) -> ControlFlow:
        return Branch(self.offset)

    def __str__(self) -> str:
        return f"{self.mnemonic} v{self.reg}, {self.offset:+d}"


@dataclass(frozen=True, slots=True)
class ArrayOp(Instruction):
    """aget*/aput*: ``reg`` is the value loaded or stored."""

    reg: int
    array: int
    index: int

    OPS: ClassVar[FrozenSet[Opcode]] = _ops(Opcode.AGET, Opcode.APUT_SHORT)

    def _validate(self) -> None:
        for name in ("reg", "array", "index"):
            _check_unsigned(name, getattr(self, name), 8)

    def __str__(self) -> str:
        return f"{self.mnemonic} v{self.reg}, v{self.array}, v{self.index}"


@dataclass(frozen=True, slots=True)
class InstanceField(Instruction):
    reg: int
    obj: int
    field: int

    OPS: ClassVar[FrozenSet[Opcode]] = _ops(Opcode.IGET, Opcode.IPUT_SHORT)

    def _validate(self) -> None:
        _check_unsigned("reg", self.reg, 4)
        _check_unsigned("obj", self.obj, 4)
        _check_unsigned("field index", self.field, 16)

    def __str__(self) -> str:
        return f"{self.mnemonic} v{self.reg}, v{self.obj}, field@{self.field:x}"


@dataclass(frozen=True, slots=True)
class StaticField(Instruction):
    reg: int
    field: int

    OPS: ClassVar[FrozenSet[Opcode]] = _ops(Opcode.SGET, Opcode.SPUT_SHORT)

    def _validate(self) -> None:
        _check_unsigned("reg", self.reg, 8)
        _check_unsigned("field index", self.field, 16)

    def __str__(self) -> str:
        return f"{self.mnemonic} v{self.reg}, field@{self.field:x}"


@dataclass(frozen=True, slots=True)
class Invoke(Instruction):
    """invoke-{virtual,super,direct,static,interface}, plain and /range."""

    method: int
    args: Tuple[int, ...]

    OPS: ClassVar[FrozenSet[Opcode]] = _ops(
        Opcode.INVOKE_VIRTUAL, Opcode.INVOKE_INTERFACE
    ) | _ops(Opcode.INVOKE_VIRTUAL_RANGE, Opcode.INVOKE_INTERFACE_RANGE)

    def _validate(self) -> None:
        object.__setattr__(self, "args", tuple(self.args))
        _check_unsigned("method index", self.method, 16)
        _check_args(self.args, self.format)

    @property
    def kind(self) -> str:
        """``virtual``, ``super``, ``direct``, ``static`` or ``interface``."""
        return self.mnemonic.split("/")[0][len("invoke-"):]

    def __str__(self) -> str:
        return f"{self.mnemonic} {format_registers(self.args)}, method@{self.method:x}"


@dataclass(frozen=True, slots=True)
class InvokePolymorphic(Instruction):
    method: int
    proto: int
    args: Tuple[int, ...]

    OPS: ClassVar[FrozenSet[Opcode]] = frozenset(
        {Opcode.INVOKE_POLYMORPHIC, Opcode.INVOKE_POLYMORPHIC_RANGE}
    )

    def _validate(self) -> None:
        object.__setattr__(self, "args", tuple(self.args))
        _check_unsigned("method index", self.method, 16)
        _check_unsigned("proto index", self.proto, 16)
        _check_args(self.args, self.format)

    def __str__(self) -> str:
        return (
            f"{self.mnemonic} {format_registers(self.args)}, "
            f"method@{self.method:x}, proto@{self.proto:x}"
        )


@dataclass(frozen=True, slots=True)
class InvokeCustom(Instruction):
    call_site: int
    args: Tuple[int, ...]

    OPS: ClassVar[FrozenSet[Opcode]] = frozenset(
        {Opcode.INVOKE_CUSTOM, Opcode.INVOKE_CUSTOM_RANGE}
    )

    def _validate(self) -> None:
        object.__setattr__(self, "args", tuple(self.args))
        _check_unsigned("call site index", self.call_site, 16)
        _check_args(self.args, self.format)

    def __str__(self) -> str:
        return f"{self.mnemonic} {format_registers(self.args)}, call_site@{self.call_site:x}"


@dataclass(frozen=True, slots=True)
class ConstMethodHandle(Instruction):
    dst: int
    method_handle: int

    OPS: ClassVar[FrozenSet[Opcode]] = frozenset({Opcode.CONST_METHOD_HANDLE})

    def _validate(self) -> None:
        _check_unsigned("dst", self.dst, 8)
        _check_unsigned("method handle index", self.method_handle, 16)

    def __str__(self) -> str:
        return f"{self.mnemonic} v{self.dst}, method_handle@{self.method_handle:x}"


@dataclass(frozen=True, slots=True)
class ConstMethodType(Instruction):
    dst: int
    proto: int

    OPS: ClassVar[FrozenSet[Opcode]] = frozenset({Opcode.CONST_METHOD_TYPE})

    def _validate(self) -> None:
        _check_unsigned("dst", self.dst, 8)
        _check_unsigned("proto index", self.proto, 16)

    def __str__(self) -> str:
        return f"{self.mnemonic} v{self.dst}, proto@{self.proto:x}"


@dataclass(frozen=True, slots=True)
class UnaryOp(Instruction):
    """neg-*, not-* and the primitive conversions."""

    dst: int
    src: int

    OPS: ClassVar[FrozenSet[Opcode]] = _ops(Opcode.NEG_INT, Opcode.INT_TO_SHORT)

    def _validate(self) -> None:
        _check_unsigned("dst", self.dst, 4)
        _check_unsigned("src", self.src, 4)

    def __str__(self) -> str:
        return f"{self.mnemonic} v{self.dst}, v{self.src}"


@dataclass(frozen=True, slots=True)
class BinaryOp(Instruction):
    dst: int
    src1: int
    src2: int

    OPS: ClassVar[FrozenSet[Opcode]] = _ops(Opcode.ADD_INT, Opcode.REM_DOUBLE)

    def _validate(self) -> None:
        for name in ("dst", "src1", "src2"):
            _check_unsigned(name, getattr(self, name), 8)

    def __str__(self) -> str:
        return f"{self.mnemonic} v{self.dst}, v{self.src1}, v{self.src2}"


@dataclass(frozen=True, slots=True)
class BinaryOp2Addr(Instruction):
    """``dst = dst <op> src``."""

    dst: int
    src: int

    OPS: ClassVar[FrozenSet[Opcode]] = _ops(
        Opcode.ADD_INT_2ADDR, Opcode.REM_DOUBLE_2ADDR
    )

    def _validate(self) -> None:
        _check_unsigned("dst", self.dst, 4)
        _check_unsigned("src", self.src, 4)

    def __str__(self) -> str:
        return f"{self.mnemonic} v{self.dst}, v{self.src}"


@dataclass(frozen=True, slots=True)
class BinaryOpLit16(Instruction):
    dst: int
    src: int
    literal: int

    OPS: ClassVar[FrozenSet[Opcode]] = _ops(Opcode.ADD_INT_LIT16, Opcode.XOR_INT_LIT16)

    def _validate(self) -> None:
        _check_unsigned("dst", self.dst, 4)
        _check_unsigned("src", self.src, 4)
        _check_signed("literal", self.literal, 16)

    def __str__(self) -> str:
        return f"{self.mnemonic} v{self.dst}, v{self.src}, {self.literal:#x}"


@dataclass(frozen=True, slots=True)
class BinaryOpLit8(Instruction):
    dst: int
    src: int
    literal: int

    OPS: ClassVar[FrozenSet[Opcode]] = _ops(Opcode.ADD_INT_LIT8, Opcode.USHR_INT_LIT8)

    def _validate(self) -> None:
        _check_unsigned("dst", self.dst, 8)
        _check_unsigned("src", self.src, 8)
        _check_signed("literal", self.literal, 8)

    def __str__(self) -> str:
        return f"{self.mnemonic} v{self.dst}, v{self.src}, {self.literal:#x}"


INSTRUCTION_CLASSES: Tuple[type, ...] = (
    Nop,
    Move,
    MoveResult,
    ReturnVoid,
    Return,
    Const,
    ConstString,
    TypeRef,
    Monitor,
    InstanceOf,
    ArrayLength,
    NewArray,
    FilledNewArray,
    FillArrayData,
    Throw,
    Goto,
    Switch,
    Compare,
    IfTest,
    IfTestZ,
    ArrayOp,
    InstanceField,
    StaticField,
    Invoke,
    InvokePolymorphic,
    InvokeCustom,
    ConstMethodHandle,
    ConstMethodType,
    UnaryOp,
    BinaryOp,
    BinaryOp2Addr,
    BinaryOpLit16,
    BinaryOpLit8,
)

INSTRUCTION_CLASS: Dict[Opcode, type] = {
    op: cls for cls in INSTRUCTION_CLASSES for op in cls.OPS
}
