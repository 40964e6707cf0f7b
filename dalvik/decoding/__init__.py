"""
Stream decoder for Dalvik code units.

`decode_one` reads a single instruction from a `StreamCtx`; `decode_all` and
`iter_instructions` walk a whole buffer and step over inline payload tables.
"""

from .errors import (  # noqa: F401
    BufferTooShort,
    DecodeError,
    InvalidEncoding,
    PayloadTable,
)
from .payload import (  # noqa: F401
    FillArrayDataPayload,
    PackedSwitchPayload,
    SparseSwitchPayload,
    read_payload,
)
from .reader import LayoutEntry, StreamCtx, code_units  # noqa: F401
from .stream import decode_all, decode_one, iter_instructions  # noqa: F401
from . import decode_map  # noqa: F401

__all__ = [
    "BufferTooShort",
    "DecodeError",
    "InvalidEncoding",
    "PayloadTable",
    "FillArrayDataPayload",
    "PackedSwitchPayload",
    "SparseSwitchPayload",
    "read_payload",
    "LayoutEntry",
    "StreamCtx",
    "code_units",
    "decode_all",
    "decode_one",
    "iter_instructions",
    "decode_map",
]
