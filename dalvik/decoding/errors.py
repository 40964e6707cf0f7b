"""Decoder failure classes."""

from __future__ import annotations

from typing import Optional


class DecodeError(Exception):
    """Base class for everything the stream decoder raises.

    ``pos`` is the code-unit offset the failed decode started at, when known.
    """

    def __init__(self, message: str = "", pos: Optional[int] = None) -> None:
        super().__init__(message)
        self.pos = pos


class BufferTooShort(DecodeError):
    """Raised when an instruction or payload runs past the end of the buffer.

    Nothing is consumed, so the same offset may be retried with more input.
    """


class InvalidEncoding(DecodeError):
    """Raised for unused opcodes and malformed operand fields."""


class PayloadTable(DecodeError):
    """Signals an inline switch or array-data table at the cursor.

    Not a failure: stream consumers skip ``length`` code units and continue.
    """

    def __init__(self, kind: str, length: int, pos: Optional[int] = None) -> None:
        super().__init__(f"{kind} payload of {length} code units", pos)
        self.kind = kind
        self.length = length
