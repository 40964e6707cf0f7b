"""Shared pytest fixtures for the decoder and lifter tests."""

from __future__ import annotations

from typing import Dict, Sequence, Tuple

import pytest


class FakeSymbols:
    """In-memory symbol tables standing in for a parsed dex file."""

    def __init__(self) -> None:
        self.strings: Dict[int, str] = {0: "hi", 1: 'say "hi"'}
        self.types: Dict[int, str] = {0: "LFoo;", 1: "[I"}
        self.fields: Dict[int, Tuple[str, str, str]] = {0: ("LFoo;", "x", "I")}
        self.methods: Dict[int, Tuple[str, str, Sequence[str], str]] = {
            0: ("LFoo;", "bar", ("I",), "V"),
            1: ("Ljava/lang/Object;", "<init>", (), "V"),
        }

    def method(self, index: int) -> Tuple[str, str, Sequence[str], str]:
        return self.methods[index]

    def field(self, index: int) -> Tuple[str, str, str]:
        return self.fields[index]

    def string(self, index: int) -> str:
        return self.strings[index]

    def type_name(self, index: int) -> str:
        return self.types[index]


@pytest.fixture
def symbols() -> FakeSymbols:
    return FakeSymbols()


@pytest.fixture(autouse=True)
def _default_lift_env(monkeypatch: pytest.MonkeyPatch) -> None:
    # keep basic_blocks(config=None) independent of the caller's shell
    monkeypatch.delenv("DALVIK_SPLIT_BLOCKS", raising=False)
