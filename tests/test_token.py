"""
Tests for the fixed-vocabulary tokens of the mangling.
"""

from itanium_abi_demangler.io_util import Cursor
from itanium_abi_demangler.token import (
    CtorDtor,
    CvQualifiers,
    Operator,
    RefQualifier,
    StandardBuiltin,
    WellKnownComponent,
)


def test_operator():
    plus = Operator.peek(Cursor("plLi1E"))
    assert plus.symbol == "+"
    assert plus.arity == 2
    assert str(plus) == "operator+"

    assert str(Operator(Operator.Kind.CALL)) == "operator()"
    assert Operator.peek(Cursor("p")) is None
    assert Operator.peek(Cursor("3foo")) is None


def test_builtin():
    builtin, size = StandardBuiltin.peek(Cursor("Dnv"))
    assert str(builtin) == "decltype(nullptr)"
    assert size == 2

    builtin, size = StandardBuiltin.peek(Cursor("j"))
    assert str(builtin) == "unsigned int"
    assert builtin.literal_suffix() == "u"
    assert StandardBuiltin.peek(Cursor("3foo")) is None


def test_well_known_component():
    string = WellKnownComponent.peek(Cursor("Ss"))
    assert string.short_name() == "std::string"
    assert string.source_name() == "basic_string"
    assert WellKnownComponent.peek(Cursor("S_")) is None


def test_ctor_dtor():
    ctor, size = CtorDtor.peek(Cursor("CI1"))
    assert ctor.is_inheriting()
    assert not ctor.is_dtor()
    assert size == 3

    dtor, size = CtorDtor.peek(Cursor("D0Ev"))
    assert dtor.is_dtor()
    assert size == 2


def test_qualifiers():
    qualifiers, rest = CvQualifiers.read(Cursor("rVKi"))
    assert str(qualifiers) == " const volatile restrict"
    assert rest.remaining() == "i"

    qualifiers, rest = CvQualifiers.read(Cursor("i"))
    assert not qualifiers
    assert rest.offset == 0

    ref, rest = RefQualifier.read(Cursor("OE"))
    assert str(ref) == " &&"
    assert rest.remaining() == "E"
