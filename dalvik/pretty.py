"""Render instructions with symbolic names from a dex symbol table.

The decoder only knows raw indices; callers that have parsed the dex
string/type/field/method tables pass a :class:`SymbolLookup` to
:func:`render` to get baksmali-style text.
"""

from __future__ import annotations

import json
from typing import Protocol, Sequence, Tuple, runtime_checkable

from .instr import (
    ConstString,
    FilledNewArray,
    InstanceField,
    InstanceOf,
    Instruction,
    Invoke,
    InvokePolymorphic,
    NewArray,
    StaticField,
    TypeRef,
    format_registers,
)


@runtime_checkable
class SymbolLookup(Protocol):
    def method(self, index: int) -> Tuple[str, str, Sequence[str], str]:
        """Return ``(class, name, parameter types, return type)``."""
        ...

    def field(self, index: int) -> Tuple[str, str, str]:
        """Return ``(class, name, type)``."""
        ...

    def string(self, index: int) -> str: ...

    def type_name(self, index: int) -> str: ...


def method_ref(lookup: SymbolLookup, index: int) -> str:
    cls, name, params, ret = lookup.method(index)
    return f"{cls}->{name}({''.join(params)}){ret}"


def field_ref(lookup: SymbolLookup, index: int) -> str:
    cls, name, type_ = lookup.field(index)
    return f"{cls}->{name}:{type_}"


def string_literal(lookup: SymbolLookup, index: int) -> str:
    return json.dumps(lookup.string(index), ensure_ascii=False)


def render(inst: Instruction, lookup: SymbolLookup) -> str:
    """Like ``str(inst)`` but with string, type, field and method names resolved."""
    mn = inst.mnemonic
    match inst:
        case ConstString(dst=dst, string=index):
            return f"{mn} v{dst}, {string_literal(lookup, index)}"
        case TypeRef(reg=reg, type=index):
            return f"{mn} v{reg}, {lookup.type_name(index)}"
        case InstanceOf(dst=dst, src=src, type=index):
            return f"{mn} v{dst}, v{src}, {lookup.type_name(index)}"
        case NewArray(dst=dst, size=size, type=index):
            return f"{mn} v{dst}, v{size}, {lookup.type_name(index)}"
        case FilledNewArray(type=index, args=args):
            return f"{mn} {format_registers(args)}, {lookup.type_name(index)}"
        case InstanceField(reg=reg, obj=obj, field=index):
            return f"{mn} v{reg}, v{obj}, {field_ref(lookup, index)}"
        case StaticField(reg=reg, field=index):
            return f"{mn} v{reg}, {field_ref(lookup, index)}"
        case Invoke(method=index, args=args):
            return f"{mn} {format_registers(args)}, {method_ref(lookup, index)}"
        case InvokePolymorphic(method=index, proto=proto, args=args):
            return (
                f"{mn} {format_registers(args)}, "
                f"{method_ref(lookup, index)}, proto@{proto:x}"
            )
    return str(inst)
