"""
Tests for the substitution table.
"""

import pytest

from itanium_abi_demangler import parse, parse_with_tail
from itanium_abi_demangler.cxx import BackReference, Identifier, SourceName
from itanium_abi_demangler.errors import InvalidBackReference
from itanium_abi_demangler.subs import SubstitutionTable


def test_insert_and_get():
    table = SubstitutionTable()
    assert table.insert("a") == 0
    assert table.insert("b") == 1

    assert len(table) == 2
    assert table.get(1) == "b"
    assert list(table) == ["a", "b"]

    with pytest.raises(InvalidBackReference):
        table.get(2)
    with pytest.raises(InvalidBackReference):
        table.get(-1)


def test_fork_sees_parent_entries():
    table = SubstitutionTable()
    table.insert("a")

    fork = table.fork()
    assert fork.insert("b") == 1
    assert fork.get(0) == "a"

    # The parent doesn't see the fork's entries until they are committed.
    assert len(table) == 1
    table.commit(fork)
    assert list(table) == ["a", "b"]


def test_dropped_fork_leaves_no_trace():
    table = SubstitutionTable()
    fork = table.fork()
    fork.insert("a")

    assert len(table) == 0
    assert table == SubstitutionTable()


def test_table_contents_after_parse():
    """
    `N5space3fooE` records only the prefix `space`; the final component of a
    nested name is never a substitution candidate.
    """
    symbol = parse("_ZN5space3fooEii")
    entries = list(symbol.substitutions)

    assert len(entries) == 1
    assert entries[0].prefix is None
    assert entries[0].name == SourceName(Identifier(4, 9))


def test_back_reference_before_definition():
    with pytest.raises(InvalidBackReference):
        parse("_ZN5space3fooES0_")

    with pytest.raises(InvalidBackReference) as info:
        parse("_Z1fS_")
    assert info.value.offset == 4


def test_failed_speculation_is_rolled_back():
    """
    The parameter parse that fails on `!` must not leave `bar` (or a pointer
    to it) in the table; only `foo` survives.
    """
    symbol, tail = parse_with_tail("_Z1f3fooPN3bar!")

    assert tail == "PN3bar!"
    assert len(symbol.substitutions) == 1


def test_substitution_of_repeated_type():
    symbol = parse("_Z1f3fooS_")

    assert symbol.parsed.encoding.params == (BackReference(0), BackReference(0))
    assert str(symbol) == "f(foo, foo)"
