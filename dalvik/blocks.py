"""Basic block lifting over a method's code units."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set, Tuple, Union

from .config import LiftConfig
from .decoding.errors import InvalidEncoding, PayloadTable
from .decoding.reader import StreamCtx
from .decoding.stream import decode_one
from .instr import Branch, FallThrough, GoTo, Instruction, Terminate

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Terminal:
    """Return or throw: no local successor."""

    def targets(self) -> Tuple[int, ...]:
        return ()


@dataclass(frozen=True, slots=True)
class GotoBranch:
    target: int

    def targets(self) -> Tuple[int, ...]:
        return (self.target,)


@dataclass(frozen=True, slots=True)
class CondBranch:
    t: int  # condition holds
    f: int  # condition fails; the instruction after the branch

    def targets(self) -> Tuple[int, ...]:
        return (self.t, self.f)


NextBranch = Union[Terminal, GotoBranch, CondBranch]

TERMINAL = Terminal()


@dataclass(frozen=True, slots=True)
class BasicBlock:
    """Straight-line run of instructions.

    Every instruction but the last falls through to the one after it; the
    last one's successors are described by ``next``. ``addrs`` holds the
    code-unit address of each instruction.
    """

    start: int
    addrs: Tuple[int, ...]
    instructions: Tuple[Instruction, ...]
    next: NextBranch

    @property
    def end(self) -> int:
        """Address just past the last instruction."""
        return self.addrs[-1] + self.instructions[-1].length()

    def __len__(self) -> int:
        return len(self.instructions)


def _target(addr: int, offset: int) -> int:
    target = addr + offset
    if target < 0:
        raise InvalidEncoding(
            f"Branch at {addr:#x} targets negative address {target}", pos=addr
        )
    return target


def _decode_run(
    units: Sequence[int], start: int, is_boundary: Callable[[int], bool]
) -> BasicBlock:
    ctx = StreamCtx(units, idx=start)
    addrs: List[int] = []
    insts: List[Instruction] = []

    def finish(next_branch: NextBranch) -> BasicBlock:
        return BasicBlock(start, tuple(addrs), tuple(insts), next_branch)

    while True:
        addr = ctx.idx
        try:
            inst = decode_one(ctx)
        except PayloadTable as table:
            if not insts:
                raise InvalidEncoding(
                    f"Block at {addr:#x} starts on a {table.kind} payload", pos=addr
                ) from None
            logger.debug(
                "Skipping %s payload at %#x (%d units)", table.kind, addr, table.length
            )
            ctx.idx = addr + table.length
            if is_boundary(ctx.idx):
                return finish(GotoBranch(ctx.idx))
            continue

        addrs.append(addr)
        insts.append(inst)
        match inst.control_flow():
            case Terminate():
                return finish(TERMINAL)
            case GoTo(offset=offset):
                return finish(GotoBranch(_target(addr, offset)))
            case Branch(offset=offset):
                return finish(CondBranch(t=_target(addr, offset), f=ctx.idx))
            case FallThrough():
                if is_boundary(ctx.idx):
                    return finish(GotoBranch(ctx.idx))


def _split(block: BasicBlock, at: int) -> Tuple[BasicBlock, BasicBlock]:
    k = block.addrs.index(at)
    head = BasicBlock(
        block.start, block.addrs[:k], block.instructions[:k], GotoBranch(at)
    )
    tail = BasicBlock(at, block.addrs[k:], block.instructions[k:], block.next)
    return head, tail


def basic_blocks(
    units: Sequence[int],
    entries: Iterable[int] = (),
    config: Optional[LiftConfig] = None,
) -> Dict[int, BasicBlock]:
    """Partition ``units`` into basic blocks keyed by start address.

    Discovery starts at address 0 and at every address in ``entries`` (for
    example exception handler offsets from the method's try table), then
    follows every branch target. Blocks stop before any address already
    known to start a block. A branch into the middle of a multi-unit
    instruction decodes its operand units as code, so such blocks may share
    code units with the instruction they cut into. Decoding errors and
    negative entry points abort the whole lift.
    """
    if config is None:
        config = LiftConfig.from_env()

    pending: Set[int] = {0}
    for entry in entries:
        if entry < 0:
            raise InvalidEncoding(f"Negative entry point {entry}", pos=entry)
        pending.add(entry)
    blocks: Dict[int, BasicBlock] = {}
    # instruction address -> start of the block holding it (split mode only)
    owner: Dict[int, int] = {}

    if config.split_blocks:

        def is_boundary(addr: int) -> bool:
            return addr in pending or addr in owner

    else:

        def is_boundary(addr: int) -> bool:
            return addr in pending

    while pending:
        start = min(pending)
        pending.discard(start)
        block = _decode_run(units, start, is_boundary)
        blocks[start] = block
        logger.debug(
            "Block %#x..%#x: %d instructions, next %s",
            start,
            block.end,
            len(block),
            block.next,
        )
        if config.split_blocks:
            owner.update((addr, start) for addr in block.addrs)

        for target in block.next.targets():
            if target in blocks or target in pending:
                continue
            holder = owner.get(target)
            if holder is not None:
                head, tail = _split(blocks[holder], target)
                blocks[holder] = head
                blocks[target] = tail
                owner.update((addr, target) for addr in tail.addrs)
                logger.debug("Split block %#x at %#x", holder, target)
                continue
            pending.add(target)

    return dict(sorted(blocks.items()))
