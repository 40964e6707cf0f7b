from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple, Union

import numpy as np

from .errors import BufferTooShort, InvalidEncoding


@dataclass(frozen=True)
class LayoutEntry:
    key: str
    kind: str
    meta: Dict[str, object]


@dataclass
class StreamCtx:
    """
    Sequential reader over 16-bit code units.

    `idx` is an absolute unit offset into `data`; decoders never look behind
    it, so a failed decode can be retried by resetting `idx`.
    """

    data: Sequence[int]
    idx: int = 0
    record_layout: bool = False
    _layout: List[LayoutEntry] = field(default_factory=list, init=False)

    def require(self, count: int) -> None:
        if self.idx < 0:
            raise InvalidEncoding(f"Negative code unit offset {self.idx}", pos=self.idx)
        if self.idx + count > len(self.data):
            raise BufferTooShort(
                f"Insufficient code units: need {count}, "
                f"have {len(self.data) - self.idx} remaining",
                pos=self.idx,
            )

    def record_operand(self, key: str, kind: str, **meta) -> None:
        if not self.record_layout:
            return
        self._layout.append(LayoutEntry(key=key, kind=kind, meta=dict(meta)))

    def peek(self, offset: int = 0) -> int:
        self.require(offset + 1)
        return self._unit(self.idx + offset)

    def _unit(self, pos: int) -> int:
        value = int(self.data[pos])
        if not 0 <= value <= 0xFFFF:
            raise InvalidEncoding(f"Code unit out of range: {value:#x}", pos=pos)
        return value

    def read_u16(self) -> int:
        self.require(1)
        value = self._unit(self.idx)
        self.idx += 1
        return value

    def read_u32(self) -> int:
        # low unit first
        self.require(2)
        lo = self.read_u16()
        hi = self.read_u16()
        return lo | (hi << 16)

    def read_u64(self) -> int:
        self.require(4)
        lo = self.read_u32()
        hi = self.read_u32()
        return lo | (hi << 32)

    def remaining(self) -> int:
        return len(self.data) - self.idx

    def snapshot_layout(self) -> tuple[LayoutEntry, ...]:
        return tuple(self._layout)


CodeUnitSource = Union[bytes, bytearray, memoryview, np.ndarray, Sequence[int]]


def code_units(data: CodeUnitSource) -> Tuple[int, ...]:
    """Normalise a byte buffer, numpy array or int sequence to code units.

    Byte buffers are read as little-endian 16-bit units, the order they have
    inside a dex file.
    """
    if isinstance(data, np.ndarray) and data.dtype == np.uint8:
        data = data.tobytes()
    if isinstance(data, (bytes, bytearray, memoryview)):
        raw = bytes(data)
        if len(raw) % 2:
            raise ValueError(f"Odd byte count for 16-bit code units: {len(raw)}")
        return tuple(np.frombuffer(raw, dtype="<u2").tolist())
    if isinstance(data, np.ndarray):
        return tuple(data.tolist())
    return tuple(data)
