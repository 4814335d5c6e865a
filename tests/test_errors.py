"""
Tests for malformed, truncated and hostile input.
"""

import pytest

from itanium_abi_demangler import (
    DemangleError,
    DemangleOptions,
    ExtensionPolicy,
    FormattingError,
    InvalidBackReference,
    InvalidTemplateArgReference,
    RecursionLimitExceeded,
    UnexpectedEnd,
    UnexpectedToken,
    UnexpectedTrailingBytes,
    UnsupportedExtension,
    demangle,
    parse,
    parse_with_tail,
)

TRUNCATED = [
    "",
    "_",
    "_Z",
    "_ZN",
    "_ZN5spa",
    "_ZN5space",
    "_ZN5space3foo",
    "_Z1fPK",
    "_Z1fIi",
    "_Z1fILi3",
    "_ZTV",
    "_ZT",
    "_ZG",
    "_ZGT",
    "_Zp",
    "_ZN1Ac",
    "_ZN3FooC",
    "_ZN3FooCI",
    "_Z1fD",
    "_Z1fPFv",
    "_Z3foov.",
    "__",
    "_GLOBAL__",
]


@pytest.mark.parametrize("symbol", TRUNCATED)
def test_truncated_input(symbol):
    with pytest.raises(UnexpectedEnd):
        parse(symbol)


def test_not_a_mangled_name():
    with pytest.raises(UnexpectedToken):
        parse("foo")
    with pytest.raises(UnexpectedToken):
        parse("_Z01fv")


def test_leading_underscore():
    assert str(parse("__Z3foov")) == "foo()"

    with pytest.raises(UnexpectedToken):
        parse("__Z3foov", DemangleOptions(strip_leading_underscore=False))


def test_trailing_input():
    with pytest.raises(UnexpectedTrailingBytes) as info:
        parse("_ZN5space3fooEibc and some trailing junk")
    assert info.value.offset == len("_ZN5space3fooEibc")

    symbol, tail = parse_with_tail("_ZN5space3fooEibc and some trailing junk")
    assert str(symbol) == "space::foo(int, bool, char)"
    assert tail == " and some trailing junk"


def test_bytes_input():
    symbol, tail = parse_with_tail(b"_Z3foov rest")
    assert str(symbol) == "foo()"
    assert tail == b" rest"

    assert demangle(b"_Z3foov") == "foo()"


def test_demangle_falls_back_to_input():
    assert demangle("not a symbol") == "not a symbol"
    assert demangle("_ZN5space3fooES0_") == "_ZN5space3fooES0_"
    assert demangle(b"junk") == "junk"


def test_recursion_limit():
    symbol = "_Z1f" + "P" * 5000 + "i"

    with pytest.raises(RecursionLimitExceeded):
        parse(symbol)
    # Even when the configured limit is out of reach, the interpreter's own
    # limit is reported the same way.
    with pytest.raises(RecursionLimitExceeded):
        parse(symbol, DemangleOptions(recursion_limit=1_000_000))

    assert str(parse("_Z1f" + "P" * 20 + "i")) == "f(int" + "*" * 20 + ")"


def test_recursion_limit_must_be_positive():
    with pytest.raises(ValueError):
        DemangleOptions(recursion_limit=0)
    with pytest.raises(ValueError):
        DemangleOptions(render_budget=0)


def test_unresolvable_template_param():
    symbol = parse("_Z1fT_")

    with pytest.raises(InvalidTemplateArgReference):
        str(symbol)
    with pytest.raises(FormattingError):
        symbol.demangle()
    with pytest.raises(InvalidBackReference):
        symbol.demangle()


def test_vendor_extensions():
    assert str(parse("_Z1fu3foo")) == "f(foo)"

    strict = DemangleOptions(extension_policy=ExtensionPolicy.STRICT)
    with pytest.raises(UnsupportedExtension):
        parse("_Z1fu3foo", strict)
    # Known clone suffixes aren't extensions.
    assert str(parse("_Z3foov.cold", strict)) == "foo() [clone .cold]"


def test_errors_are_value_errors():
    for error in (UnexpectedEnd, UnexpectedToken, InvalidBackReference, FormattingError):
        assert issubclass(error, DemangleError)
        assert issubclass(error, ValueError)

    with pytest.raises(ValueError):
        parse("_ZN5space3fooES0_")
