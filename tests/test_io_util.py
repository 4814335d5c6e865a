"""
Tests for the cursor and the number readers built on it.
"""

import pytest

from itanium_abi_demangler.errors import UnexpectedEnd, UnexpectedToken
from itanium_abi_demangler.io_util import (
    Cursor,
    read_discriminator,
    read_number,
    read_seq_id,
    read_source_length,
    read_underscored_index,
)


def test_cursor_is_immutable():
    src = Cursor("_ZN5spaceE")
    rest = src.advance(2)

    assert src.offset == 0
    assert rest.offset == 2
    assert rest.peek() == "N"
    assert src.peek(2) == "_Z"


def test_cursor_peek_near_end():
    src = Cursor("ab", 1)

    assert src.peek(3) == "b"
    assert src.peek_exact(3) == ""
    assert src.peek(1, 5) == ""
    assert src.bytes_left() == 1
    assert src.remaining() == "b"


def test_cursor_take_past_end():
    with pytest.raises(UnexpectedEnd):
        Cursor("abc").take(4)


def test_cursor_expect():
    assert Cursor("_Zv").expect("_Z").offset == 2

    with pytest.raises(UnexpectedEnd):
        Cursor("_").expect("_Z")
    with pytest.raises(UnexpectedToken) as info:
        Cursor("xy").expect("_Z")
    assert info.value.offset == 0


def test_cursor_unexpected():
    codes = ("cv", "GTt")

    assert isinstance(Cursor("").unexpected("a type"), UnexpectedEnd)
    assert isinstance(Cursor("c").unexpected("a type", codes), UnexpectedEnd)
    assert isinstance(Cursor("GT").unexpected("a type", codes), UnexpectedEnd)
    # Only input that stops inside a code counts as cut short.
    assert isinstance(Cursor("c").unexpected("a type"), UnexpectedToken)
    assert isinstance(Cursor("cx").unexpected("a type", codes), UnexpectedToken)
    assert isinstance(Cursor("cv").unexpected("a type", codes), UnexpectedToken)


def test_cursor_try_consume():
    assert Cursor("_GLOBAL__I_x").try_consume("_GLOBAL__I_").remaining() == "x"
    assert Cursor("_Z").try_consume("_GLOBAL__I_") is None


def test_read_number():
    assert read_number(Cursor("42E"))[0] == 42
    assert read_number(Cursor("n8_"))[0] == -8
    assert read_number(Cursor("0_"))[0] == 0

    value, rest = read_number(Cursor("123abc"))
    assert value == 123
    assert rest.remaining() == "abc"

    with pytest.raises(UnexpectedToken):
        read_number(Cursor("n8"), allow_negative=False)
    with pytest.raises(UnexpectedToken):
        read_number(Cursor("012"))
    with pytest.raises(UnexpectedEnd):
        read_number(Cursor(""))


def test_read_source_length():
    length, rest = read_source_length(Cursor("3foo"))
    assert length == 3
    assert rest.remaining() == "foo"

    with pytest.raises(UnexpectedToken):
        read_source_length(Cursor("0foo"))
    with pytest.raises(UnexpectedEnd):
        read_source_length(Cursor("5spa"))


def test_read_seq_id():
    assert read_seq_id(Cursor("0_"))[0] == 0
    assert read_seq_id(Cursor("A_"))[0] == 10
    assert read_seq_id(Cursor("10_"))[0] == 36

    with pytest.raises(UnexpectedToken):
        read_seq_id(Cursor("a_"))


def test_read_underscored_index():
    assert read_underscored_index(Cursor("_"))[0] == 0
    assert read_underscored_index(Cursor("0_"))[0] == 1
    assert read_underscored_index(Cursor("12_"))[0] == 13

    with pytest.raises(UnexpectedEnd):
        read_underscored_index(Cursor("3"))


def test_read_discriminator():
    assert read_discriminator(Cursor("_3x")) == (3, Cursor("_3x", 2))
    assert read_discriminator(Cursor("__12_x"))[0] == 12
    assert read_discriminator(Cursor("x"))[0] is None
    assert read_discriminator(Cursor("_x"))[0] is None
