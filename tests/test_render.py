"""
Tests for rendering options and renderer hardening.
"""

import pytest

from itanium_abi_demangler import (
    DemangleOptions,
    FormattingError,
    RecursionLimitExceeded,
    demangle,
    parse,
)
from itanium_abi_demangler.cxx import (
    BackReference,
    BuiltinType,
    FunctionEncoding,
    Identifier,
    MangledName,
    PointerType,
    SourceName,
    UnscopedName,
)
from itanium_abi_demangler.render import render
from itanium_abi_demangler.subs import SubstitutionTable
from itanium_abi_demangler.token import StandardBuiltin

INT = BuiltinType(StandardBuiltin(StandardBuiltin.Kind.INT))


def _function_f(*params):
    """
    Build `f(params...)` by hand; the raw input is just "f".
    """
    return MangledName(FunctionEncoding(UnscopedName(SourceName(Identifier(0, 1))), params))


def test_closing_angles():
    symbol = "_ZNSt6vectorIiSaIiEE9push_backERKi"

    assert (
        str(parse(symbol)) == "std::vector<int, std::allocator<int> >::push_back(int const&)"
    )
    assert (
        str(parse(symbol, DemangleOptions(separate_closing_angles=False)))
        == "std::vector<int, std::allocator<int>>::push_back(int const&)"
    )


def test_show_params():
    options = DemangleOptions(show_params=False)

    assert str(parse("_ZNK3foo3barEv", options)) == "foo::bar"
    # Only function encodings are affected.
    assert str(parse("_ZTV3foo", options)) == "vtable for foo"
    assert str(parse("_ZN5space3barE", options)) == "space::bar"


def test_generic_lambda():
    assert (
        str(parse("_ZZ4mainENKUlT_E_clEv")) == "main::{lambda(auto:1)#1}::operator()() const"
    )


def test_render_is_repeatable():
    first = parse("_ZSt4endlIcSt11char_traitsIcEERSt13basic_ostreamIT_T0_ES6_")
    second = parse("_ZSt4endlIcSt11char_traitsIcEERSt13basic_ostreamIT_T0_ES6_")

    assert first == second
    assert hash(first) == hash(second)
    assert str(first) == str(first) == str(second)


def test_render_manual_tree():
    table = SubstitutionTable()
    table.insert(PointerType(INT))

    assert render(_function_f(), table, "f") == "f()"
    assert render(_function_f(BackReference(0), INT), table, "f") == "f(int*, int)"


def test_self_referencing_table():
    """
    A table entry that contains a reference to itself can't come out of the
    parser, but the renderer must still refuse it rather than loop.
    """
    table = SubstitutionTable()
    table.insert(PointerType(BackReference(0)))

    with pytest.raises(FormattingError):
        render(_function_f(BackReference(0)), table, "f")


def test_reference_past_end_of_table():
    with pytest.raises(FormattingError):
        render(_function_f(BackReference(3)), SubstitutionTable(), "f")


def test_render_depth_limit():
    table = SubstitutionTable()
    table.insert(INT)
    for i in range(1, 50):
        table.insert(PointerType(BackReference(i - 1)))

    options = DemangleOptions(recursion_limit=10)
    with pytest.raises(RecursionLimitExceeded):
        render(_function_f(BackReference(49)), table, "f", options)


def _substitution(index):
    """
    The `S_` / `S<seq-id>_` reference to table entry `index`.
    """
    if index == 0:
        return "S_"
    digits = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    seq_id, value = "", index - 1
    while True:
        value, digit = divmod(value, 36)
        seq_id = digits[digit] + seq_id
        if not value:
            return f"S{seq_id}_"


def test_render_budget():
    """
    Each parameter is a pointer to a function taking the previous parameter
    twice, so the text doubles with every level while the symbol grows by a
    few characters.
    """
    symbol = "_Z1f1a"
    for level in range(1, 41):
        ref = _substitution(2 * (level - 1))
        symbol += f"PFv{ref}{ref}E"

    parsed = parse(symbol)
    with pytest.raises(RecursionLimitExceeded):
        str(parsed)
    assert demangle(symbol) == symbol

    assert str(parse("_Z1f1aPFvS_S_E")) == "f(a, void (*)(a, a))"
    assert str(parse("_Z1f1aPFvS_S_EPFvS1_S1_E")) == (
        "f(a, void (*)(a, a), void (*)(void (*)(a, a), void (*)(a, a)))"
    )


def test_self_referencing_return_type():
    table = SubstitutionTable()
    table.insert(PointerType(BackReference(0)))
    name = UnscopedName(SourceName(Identifier(0, 1)))

    with pytest.raises(FormattingError):
        render(MangledName(FunctionEncoding(name, (), BackReference(0))), table, "f")
