"""
Dalvik bytecode decoding and basic block lifting.

Code is handled as a sequence of 16-bit code units, the representation used
by the ``insns`` array of a dex ``code_item``.
"""

from .blocks import (  # noqa: F401
    BasicBlock,
    CondBranch,
    GotoBranch,
    NextBranch,
    Terminal,
    basic_blocks,
)
from .config import LiftConfig  # noqa: F401
from .decoding import (  # noqa: F401
    BufferTooShort,
    DecodeError,
    InvalidEncoding,
    PayloadTable,
    code_units,
    decode_all,
    decode_one,
    iter_instructions,
)
from .instr import ControlFlow, Instruction  # noqa: F401
from .opcodes import Format, Opcode  # noqa: F401
from .pretty import SymbolLookup, render  # noqa: F401

__all__ = [
    "BasicBlock",
    "CondBranch",
    "GotoBranch",
    "NextBranch",
    "Terminal",
    "basic_blocks",
    "LiftConfig",
    "BufferTooShort",
    "DecodeError",
    "InvalidEncoding",
    "PayloadTable",
    "code_units",
    "decode_all",
    "decode_one",
    "iter_instructions",
    "ControlFlow",
    "Instruction",
    "Format",
    "Opcode",
    "SymbolLookup",
    "render",
]
