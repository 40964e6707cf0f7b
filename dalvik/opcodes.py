"""Dalvik opcode numbering and the static opcode -> format table.

Every supported opcode byte is a member of :class:`Opcode`. Unused opcode
values (0x3e-0x43, 0x73, 0x79-0x7a, 0xe3-0xf9) are absent; decoding them
fails.
"""

from __future__ import annotations

from enum import Enum, IntEnum
from typing import Dict, Tuple


class Format(Enum):
    """Operand layouts from the Dalvik instruction-format reference.

    ``ident`` is the format identifier and ``units`` the encoded length in
    16-bit code units.
    """

    F10X = ("10x", 1)
    F12X = ("12x", 1)
    F11N = ("11n", 1)
    F11X = ("11x", 1)
    F10T = ("10t", 1)
    F20T = ("20t", 2)
    F22X = ("22x", 2)
    F21T = ("21t", 2)
    F21S = ("21s", 2)
    F21H = ("21h", 2)
    F21C = ("21c", 2)
    F23X = ("23x", 2)
    F22B = ("22b", 2)
    F22T = ("22t", 2)
    F22S = ("22s", 2)
    F22C = ("22c", 2)
    F32X = ("32x", 3)
    F30T = ("30t", 3)
    F31T = ("31t", 3)
    F31I = ("31i", 3)
    F31C = ("31c", 3)
    F35C = ("35c", 3)
    F3RC = ("3rc", 3)
    F45CC = ("45cc", 4)
    F4RCC = ("4rcc", 4)
    F51L = ("51l", 5)

    def __init__(self, ident: str, units: int) -> None:
        self.ident = ident
        self.units = units


class Opcode(IntEnum):
    NOP = 0x00
    MOVE = 0x01
    MOVE_FROM16 = 0x02
    MOVE_16 = 0x03
    MOVE_WIDE = 0x04
    MOVE_WIDE_FROM16 = 0x05
    MOVE_WIDE_16 = 0x06
    MOVE_OBJECT = 0x07
    MOVE_OBJECT_FROM16 = 0x08
    MOVE_OBJECT_16 = 0x09
    MOVE_RESULT = 0x0A
    MOVE_RESULT_WIDE = 0x0B
    MOVE_RESULT_OBJECT = 0x0C
    MOVE_EXCEPTION = 0x0D
    RETURN_VOID = 0x0E
    RETURN = 0x0F
    RETURN_WIDE = 0x10
    RETURN_OBJECT = 0x11
    CONST_4 = 0x12
    CONST_16 = 0x13
    CONST = 0x14
    CONST_HIGH16 = 0x15
    CONST_WIDE_16 = 0x16
    CONST_WIDE_32 = 0x17
    CONST_WIDE = 0x18
    CONST_WIDE_HIGH16 = 0x19
    CONST_STRING = 0x1A
    CONST_STRING_JUMBO = 0x1B
    CONST_CLASS = 0x1C
    MONITOR_ENTER = 0x1D
    MONITOR_EXIT = 0x1E
    CHECK_CAST = 0x1F
    INSTANCE_OF = 0x20
    ARRAY_LENGTH = 0x21
    NEW_INSTANCE = 0x22
    NEW_ARRAY = 0x23
    FILLED_NEW_ARRAY = 0x24
    FILLED_NEW_ARRAY_RANGE = 0x25
    FILL_ARRAY_DATA = 0x26
    THROW = 0x27
    GOTO = 0x28
    GOTO_16 = 0x29
    GOTO_32 = 0x2A
    PACKED_SWITCH = 0x2B
    SPARSE_SWITCH = 0x2C
    CMPL_FLOAT = 0x2D
    CMPG_FLOAT = 0x2E
    CMPL_DOUBLE = 0x2F
    CMPG_DOUBLE = 0x30
    CMP_LONG = 0x31
    IF_EQ = 0x32
    IF_NE = 0x33
    IF_LT = 0x34
    IF_GE = 0x35
    IF_GT = 0x36
    IF_LE = 0x37
    IF_EQZ = 0x38
    IF_NEZ = 0x39
    IF_LTZ = 0x3A
    IF_GEZ = 0x3B
    IF_GTZ = 0x3C
    IF_LEZ = 0x3D
    AGET = 0x44
    AGET_WIDE = 0x45
    AGET_OBJECT = 0x46
    AGET_BOOLEAN = 0x47
    AGET_BYTE = 0x48
    AGET_CHAR = 0x49
    AGET_SHORT = 0x4A
    APUT = 0x4B
    APUT_WIDE = 0x4C
    APUT_OBJECT = 0x4D
    APUT_BOOLEAN = 0x4E
    APUT_BYTE = 0x4F
    APUT_CHAR = 0x50
    APUT_SHORT = 0x51
    IGET = 0x52
    IGET_WIDE = 0x53
    IGET_OBJECT = 0x54
    IGET_BOOLEAN = 0x55
    IGET_BYTE = 0x56
    IGET_CHAR = 0x57
    IGET_SHORT = 0x58
    IPUT = 0x59
    IPUT_WIDE = 0x5A
    IPUT_OBJECT = 0x5B
    IPUT_BOOLEAN = 0x5C
    IPUT_BYTE = 0x5D
    IPUT_CHAR = 0x5E
    IPUT_SHORT = 0x5F
    SGET = 0x60
    SGET_WIDE = 0x61
    SGET_OBJECT = 0x62
    SGET_BOOLEAN = 0x63
    SGET_BYTE = 0x64
    SGET_CHAR = 0x65
    SGET_SHORT = 0x66
    SPUT = 0x67
    SPUT_WIDE = 0x68
    SPUT_OBJECT = 0x69
    SPUT_BOOLEAN = 0x6A
    SPUT_BYTE = 0x6B
    SPUT_CHAR = 0x6C
    SPUT_SHORT = 0x6D
    INVOKE_VIRTUAL = 0x6E
    INVOKE_SUPER = 0x6F
    INVOKE_DIRECT = 0x70
    INVOKE_STATIC = 0x71
    INVOKE_INTERFACE = 0x72
    INVOKE_VIRTUAL_RANGE = 0x74
    INVOKE_SUPER_RANGE = 0x75
    INVOKE_DIRECT_RANGE = 0x76
    INVOKE_STATIC_RANGE = 0x77
    INVOKE_INTERFACE_RANGE = 0x78
    NEG_INT = 0x7B
    NOT_INT = 0x7C
    NEG_LONG = 0x7D
    NOT_LONG = 0x7E
    NEG_FLOAT = 0x7F
    NEG_DOUBLE = 0x80
    INT_TO_LONG = 0x81
    INT_TO_FLOAT = 0x82
    INT_TO_DOUBLE = 0x83
    LONG_TO_INT = 0x84
    LONG_TO_FLOAT = 0x85
    LONG_TO_DOUBLE = 0x86
    FLOAT_TO_INT = 0x87
    FLOAT_TO_LONG = 0x88
    FLOAT_TO_DOUBLE = 0x89
    DOUBLE_TO_INT = 0x8A
    DOUBLE_TO_LONG = 0x8B
    DOUBLE_TO_FLOAT = 0x8C
    INT_TO_BYTE = 0x8D
    INT_TO_CHAR = 0x8E
    INT_TO_SHORT = 0x8F
    ADD_INT = 0x90
    SUB_INT = 0x91
    MUL_INT = 0x92
    DIV_INT = 0x93
    REM_INT = 0x94
    AND_INT = 0x95
    OR_INT = 0x96
    XOR_INT = 0x97
    SHL_INT = 0x98
    SHR_INT = 0x99
    USHR_INT = 0x9A
    ADD_LONG = 0x9B
    SUB_LONG = 0x9C
    MUL_LONG = 0x9D
    DIV_LONG = 0x9E
    REM_LONG = 0x9F
    AND_LONG = 0xA0
    OR_LONG = 0xA1
    XOR_LONG = 0xA2
    SHL_LONG = 0xA3
    SHR_LONG = 0xA4
    USHR_LONG = 0xA5
    ADD_FLOAT = 0xA6
    SUB_FLOAT = 0xA7
    MUL_FLOAT = 0xA8
    DIV_FLOAT = 0xA9
    REM_FLOAT = 0xAA
    ADD_DOUBLE = 0xAB
    SUB_DOUBLE = 0xAC
    MUL_DOUBLE = 0xAD
    DIV_DOUBLE = 0xAE
    REM_DOUBLE = 0xAF
    ADD_INT_2ADDR = 0xB0
    SUB_INT_2ADDR = 0xB1
    MUL_INT_2ADDR = 0xB2
    DIV_INT_2ADDR = 0xB3
    REM_INT_2ADDR = 0xB4
    AND_INT_2ADDR = 0xB5
    OR_INT_2ADDR = 0xB6
    XOR_INT_2ADDR = 0xB7
    SHL_INT_2ADDR = 0xB8
    SHR_INT_2ADDR = 0xB9
    USHR_INT_2ADDR = 0xBA
    ADD_LONG_2ADDR = 0xBB
    SUB_LONG_2ADDR = 0xBC
    MUL_LONG_2ADDR = 0xBD
    DIV_LONG_2ADDR = 0xBE
    REM_LONG_2ADDR = 0xBF
    AND_LONG_2ADDR = 0xC0
    OR_LONG_2ADDR = 0xC1
    XOR_LONG_2ADDR = 0xC2
    SHL_LONG_2ADDR = 0xC3
    SHR_LONG_2ADDR = 0xC4
    USHR_LONG_2ADDR = 0xC5
    ADD_FLOAT_2ADDR = 0xC6
    SUB_FLOAT_2ADDR = 0xC7
    MUL_FLOAT_2ADDR = 0xC8
    DIV_FLOAT_2ADDR = 0xC9
    REM_FLOAT_2ADDR = 0xCA
    ADD_DOUBLE_2ADDR = 0xCB
    SUB_DOUBLE_2ADDR = 0xCC
    MUL_DOUBLE_2ADDR = 0xCD
    DIV_DOUBLE_2ADDR = 0xCE
    REM_DOUBLE_2ADDR = 0xCF
    ADD_INT_LIT16 = 0xD0
    RSUB_INT = 0xD1
    MUL_INT_LIT16 = 0xD2
    DIV_INT_LIT16 = 0xD3
    REM_INT_LIT16 = 0xD4
    AND_INT_LIT16 = 0xD5
    OR_INT_LIT16 = 0xD6
    XOR_INT_LIT16 = 0xD7
    ADD_INT_LIT8 = 0xD8
    RSUB_INT_LIT8 = 0xD9
    MUL_INT_LIT8 = 0xDA
    DIV_INT_LIT8 = 0xDB
    REM_INT_LIT8 = 0xDC
    AND_INT_LIT8 = 0xDD
    OR_INT_LIT8 = 0xDE
    XOR_INT_LIT8 = 0xDF
    SHL_INT_LIT8 = 0xE0
    SHR_INT_LIT8 = 0xE1
    USHR_INT_LIT8 = 0xE2
    INVOKE_POLYMORPHIC = 0xFA
    INVOKE_POLYMORPHIC_RANGE = 0xFB
    INVOKE_CUSTOM = 0xFC
    INVOKE_CUSTOM_RANGE = 0xFD
    CONST_METHOD_HANDLE = 0xFE
    CONST_METHOD_TYPE = 0xFF


def _span(first: Opcode, last: Opcode) -> Tuple[Opcode, ...]:
    return tuple(Opcode(v) for v in range(first, last + 1))


_FORMAT_GROUPS: Dict[Format, Tuple[Opcode, ...]] = {
    Format.F10X: (Opcode.NOP, Opcode.RETURN_VOID),
    Format.F12X: (
        Opcode.MOVE,
        Opcode.MOVE_WIDE,
        Opcode.MOVE_OBJECT,
        Opcode.ARRAY_LENGTH,
        *_span(Opcode.NEG_INT, Opcode.INT_TO_SHORT),
        *_span(Opcode.ADD_INT_2ADDR, Opcode.REM_DOUBLE_2ADDR),
    ),
    Format.F11N: (Opcode.CONST_4,),
    Format.F11X: (
        *_span(Opcode.MOVE_RESULT, Opcode.MOVE_EXCEPTION),
        *_span(Opcode.RETURN, Opcode.RETURN_OBJECT),
        Opcode.MONITOR_ENTER,
        Opcode.MONITOR_EXIT,
        Opcode.THROW,
    ),
    Format.F10T: (Opcode.GOTO,),
    Format.F20T: (Opcode.GOTO_16,),
    Format.F22X: (
        Opcode.MOVE_FROM16,
        Opcode.MOVE_WIDE_FROM16,
        Opcode.MOVE_OBJECT_FROM16,
    ),
    Format.F21T: _span(Opcode.IF_EQZ, Opcode.IF_LEZ),
    Format.F21S: (Opcode.CONST_16, Opcode.CONST_WIDE_16),
    Format.F21H: (Opcode.CONST_HIGH16, Opcode.CONST_WIDE_HIGH16),
    Format.F21C: (
        Opcode.CONST_STRING,
        Opcode.CONST_CLASS,
        Opcode.CHECK_CAST,
        Opcode.NEW_INSTANCE,
        *_span(Opcode.SGET, Opcode.SPUT_SHORT),
        Opcode.CONST_METHOD_HANDLE,
        Opcode.CONST_METHOD_TYPE,
    ),
    Format.F23X: (
        *_span(Opcode.CMPL_FLOAT, Opcode.CMP_LONG),
        *_span(Opcode.AGET, Opcode.APUT_SHORT),
        *_span(Opcode.ADD_INT, Opcode.REM_DOUBLE),
    ),
    Format.F22B: _span(Opcode.ADD_INT_LIT8, Opcode.USHR_INT_LIT8),
    Format.F22T: _span(Opcode.IF_EQ, Opcode.IF_LE),
    Format.F22S: _span(Opcode.ADD_INT_LIT16, Opcode.XOR_INT_LIT16),
    Format.F22C: (
        Opcode.INSTANCE_OF,
        Opcode.NEW_ARRAY,
        *_span(Opcode.IGET, Opcode.IPUT_SHORT),
    ),
    Format.F32X: (Opcode.MOVE_16, Opcode.MOVE_WIDE_16, Opcode.MOVE_OBJECT_16),
    Format.F30T: (Opcode.GOTO_32,),
    Format.F31T: (
        Opcode.FILL_ARRAY_DATA,
        Opcode.PACKED_SWITCH,
        Opcode.SPARSE_SWITCH,
    ),
    Format.F31I: (Opcode.CONST, Opcode.CONST_WIDE_32),
    Format.F31C: (Opcode.CONST_STRING_JUMBO,),
    Format.F35C: (
        Opcode.FILLED_NEW_ARRAY,
        *_span(Opcode.INVOKE_VIRTUAL, Opcode.INVOKE_INTERFACE),
        Opcode.INVOKE_CUSTOM,
    ),
    Format.F3RC: (
        Opcode.FILLED_NEW_ARRAY_RANGE,
        *_span(Opcode.INVOKE_VIRTUAL_RANGE, Opcode.INVOKE_INTERFACE_RANGE),
        Opcode.INVOKE_CUSTOM_RANGE,
    ),
    Format.F45CC: (Opcode.INVOKE_POLYMORPHIC,),
    Format.F4RCC: (Opcode.INVOKE_POLYMORPHIC_RANGE,),
    Format.F51L: (Opcode.CONST_WIDE,),
}

OPCODE_FORMATS: Dict[Opcode, Format] = {
    op: fmt for fmt, ops in _FORMAT_GROUPS.items() for op in ops
}

_missing = set(Opcode) - set(OPCODE_FORMATS)
if _missing:  # pragma: no cover - guards edits to the table above
    raise RuntimeError(
        "Opcodes without a format: "
        + ", ".join(sorted(op.name for op in _missing))
    )
del _missing

# Suffixes that Dalvik spells with a slash rather than a dash. Order matters:
# "_LIT16" and "_FROM16" must win over the bare "_16".
_SLASH_SUFFIXES: Tuple[Tuple[str, str], ...] = (
    ("_FROM16", "/from16"),
    ("_HIGH16", "/high16"),
    ("_JUMBO", "/jumbo"),
    ("_RANGE", "/range"),
    ("_2ADDR", "/2addr"),
    ("_LIT16", "/lit16"),
    ("_LIT8", "/lit8"),
    ("_16", "/16"),
    ("_32", "/32"),
    ("_4", "/4"),
)


def _mnemonic(name: str) -> str:
    suffix = ""
    for tail, spelled in _SLASH_SUFFIXES:
        if name.endswith(tail):
            name, suffix = name[: -len(tail)], spelled
            break
    return name.lower().replace("_", "-") + suffix


MNEMONICS: Dict[Opcode, str] = {op: _mnemonic(op.name) for op in Opcode}


def format_of(op: Opcode) -> Format:
    return OPCODE_FORMATS[op]
