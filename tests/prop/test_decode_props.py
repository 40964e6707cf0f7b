from __future__ import annotations

import os
from typing import Dict, List

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from dalvik.blocks import BasicBlock, CondBranch, GotoBranch, Terminal, basic_blocks
from dalvik.config import LiftConfig
from dalvik.decoding import DecodeError, StreamCtx, decode_one, iter_instructions
from dalvik.instr import Branch, FallThrough, GoTo, Terminate

from .strategies import code_streams, instruction_units, small_methods


FAST_MAX_EXAMPLES = int(os.getenv("DALVIK_PROP_EXAMPLES", "300"))
NIGHTLY_MAX_EXAMPLES = int(os.getenv("DALVIK_PROP_NIGHTLY_EXAMPLES", "5000"))


def _check_single_decode(units: List[int]) -> None:
    ctx = StreamCtx(units)
    try:
        inst = decode_one(ctx)
    except DecodeError:
        assert ctx.idx == 0
        return
    assert ctx.idx == inst.length()
    assert decode_one(StreamCtx(units)) == inst


@given(units=instruction_units())
@settings(max_examples=FAST_MAX_EXAMPLES, deadline=None)
def test_prop_decode_consumes_length_or_nothing(units: List[int]) -> None:
    _check_single_decode(units)


@pytest.mark.nightly
@given(units=instruction_units())
@settings(
    max_examples=NIGHTLY_MAX_EXAMPLES,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
)
def test_prop_decode_nightly(units: List[int]) -> None:
    if not os.getenv("DALVIK_PROP_RUN_NIGHTLY"):
        pytest.skip("Nightly fuzzing disabled (set DALVIK_PROP_RUN_NIGHTLY=1 to enable)")
    _check_single_decode(units)


@given(units=code_streams())
@settings(max_examples=FAST_MAX_EXAMPLES, deadline=None)
def test_prop_stream_addresses_tile_the_buffer(units: List[int]) -> None:
    seen = []
    try:
        for addr, inst in iter_instructions(units):
            seen.append((addr, inst.length()))
    except DecodeError:
        pass
    end = 0
    for addr, length in seen:
        assert addr >= end
        end = addr + length
    assert end <= len(units)


def _check_block_shape(blocks: Dict[int, BasicBlock], contiguous: bool = True) -> None:
    for start, bb in blocks.items():
        assert bb.start == start
        assert bb.addrs[0] == start
        for addr, inst, following in zip(bb.addrs, bb.instructions, bb.addrs[1:]):
            if contiguous:
                assert following == addr + inst.length()
            else:
                # payload tables may sit between instructions
                assert following >= addr + inst.length()
            assert isinstance(inst.control_flow(), FallThrough)
        last = bb.instructions[-1].control_flow()
        if isinstance(bb.next, Terminal):
            assert isinstance(last, Terminate)
        elif isinstance(bb.next, CondBranch):
            assert isinstance(last, Branch)
            assert bb.next.f == bb.end
        else:
            assert isinstance(bb.next, GotoBranch)
            assert isinstance(last, (GoTo, FallThrough))
        for target in bb.next.targets():
            assert target in blocks


@given(data=st.data(), units=small_methods())
@settings(max_examples=FAST_MAX_EXAMPLES, deadline=None)
def test_prop_block_structure(data: st.DataObject, units: List[int]) -> None:
    starts = [addr for addr, _ in iter_instructions(units)]
    entries = data.draw(st.lists(st.sampled_from(starts), max_size=3))

    split = basic_blocks(units, entries, config=LiftConfig(split_blocks=True))
    baseline = basic_blocks(units, entries, config=LiftConfig(split_blocks=False))
    _check_block_shape(split)
    _check_block_shape(baseline)

    assert 0 in split and all(entry in split for entry in entries)
    assert list(split) == sorted(split)

    split_addrs = [addr for bb in split.values() for addr in bb.addrs]
    assert len(split_addrs) == len(set(split_addrs))
    baseline_addrs = {addr for bb in baseline.values() for addr in bb.addrs}
    assert set(split_addrs) == baseline_addrs

    assert basic_blocks(units, entries, config=LiftConfig()) == split


@given(units=code_streams())
@settings(max_examples=FAST_MAX_EXAMPLES, deadline=None)
def test_prop_lifting_random_streams_fails_cleanly(units: List[int]) -> None:
    try:
        blocks = basic_blocks(units, config=LiftConfig())
    except DecodeError:
        return
    _check_block_shape(blocks, contiguous=False)
