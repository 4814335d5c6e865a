"""
Module implementing variant types for the fixed code tables of the Itanium
C++ ABI mangling: operators, builtin types, well-known `std` components,
constructor / destructor codes, special names and qualifiers.

These variants are mostly used to improve the readability of the parser.
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import ClassVar, Optional

from itanium_abi_demangler.io_util import Cursor


@dataclass(frozen=True)
class Operator:
    """
    Variant type for two-letter `<operator-name>` codes.
    """

    class Kind(StrEnum):
        NEW = "nw"
        NEW_ARR = "na"
        DELETE = "dl"
        DELETE_ARR = "da"
        AWAIT = "aw"
        PLUS_UNARY = "ps"
        MINUS_UNARY = "ng"
        ADDRESS_OF = "ad"
        DEREF = "de"
        BW_NOT = "co"
        PLUS = "pl"
        MINUS = "mi"
        MUL = "ml"
        DIV = "dv"
        MOD = "rm"
        BW_AND = "an"
        BW_OR = "or"
        BW_XOR = "eo"
        ASSIGN = "aS"
        PLUS_ASSIGN = "pL"
        MINUS_ASSIGN = "mI"
        MUL_ASSIGN = "mL"
        DIV_ASSIGN = "dV"
        MOD_ASSIGN = "rM"
        BW_AND_ASSIGN = "aN"
        BW_OR_ASSIGN = "oR"
        BW_XOR_ASSIGN = "eO"
        SHIFT_LEFT = "ls"
        SHIFT_RIGHT = "rs"
        SHIFT_LEFT_ASSIGN = "lS"
        SHIFT_RIGHT_ASSIGN = "rS"
        EQUAL = "eq"
        NOT_EQUAL = "ne"
        LESS = "lt"
        GREATER = "gt"
        LESS_EQUAL = "le"
        GREATER_EQUAL = "ge"
        SPACESHIP = "ss"
        LOG_NOT = "nt"
        LOG_AND = "aa"
        LOG_OR = "oo"
        INC = "pp"
        DEC = "mm"
        COMMA = "cm"
        POINTER_TO_MEMBER = "pm"
        ARROW = "pt"
        CALL = "cl"
        INDEX = "ix"
        TERNARY = "qu"
        SIZEOF_TYPE = "st"
        SIZEOF_EXPR = "sz"
        ALIGNOF_TYPE = "at"
        ALIGNOF_EXPR = "az"

    # Operator text and arity (the number of operands it takes in an
    # expression).
    _OPERATORS: ClassVar[dict[Kind, tuple[str, int]]] = {
        Kind.NEW: ("new", 1),
        Kind.NEW_ARR: ("new[]", 1),
        Kind.DELETE: ("delete", 1),
        Kind.DELETE_ARR: ("delete[]", 1),
        Kind.AWAIT: ("co_await", 1),
        Kind.PLUS_UNARY: ("+", 1),
        Kind.MINUS_UNARY: ("-", 1),
        Kind.ADDRESS_OF: ("&", 1),
        Kind.DEREF: ("*", 1),
        Kind.BW_NOT: ("~", 1),
        Kind.PLUS: ("+", 2),
        Kind.MINUS: ("-", 2),
        Kind.MUL: ("*", 2),
        Kind.DIV: ("/", 2),
        Kind.MOD: ("%", 2),
        Kind.BW_AND: ("&", 2),
        Kind.BW_OR: ("|", 2),
        Kind.BW_XOR: ("^", 2),
        Kind.ASSIGN: ("=", 2),
        Kind.PLUS_ASSIGN: ("+=", 2),
        Kind.MINUS_ASSIGN: ("-=", 2),
        Kind.MUL_ASSIGN: ("*=", 2),
        Kind.DIV_ASSIGN: ("/=", 2),
        Kind.MOD_ASSIGN: ("%=", 2),
        Kind.BW_AND_ASSIGN: ("&=", 2),
        Kind.BW_OR_ASSIGN: ("|=", 2),
        Kind.BW_XOR_ASSIGN: ("^=", 2),
        Kind.SHIFT_LEFT: ("<<", 2),
        Kind.SHIFT_RIGHT: (">>", 2),
        Kind.SHIFT_LEFT_ASSIGN: ("<<=", 2),
        Kind.SHIFT_RIGHT_ASSIGN: (">>=", 2),
        Kind.EQUAL: ("==", 2),
        Kind.NOT_EQUAL: ("!=", 2),
        Kind.LESS: ("<", 2),
        Kind.GREATER: (">", 2),
        Kind.LESS_EQUAL: ("<=", 2),
        Kind.GREATER_EQUAL: (">=", 2),
        Kind.SPACESHIP: ("<=>", 2),
        Kind.LOG_NOT: ("!", 1),
        Kind.LOG_AND: ("&&", 2),
        Kind.LOG_OR: ("||", 2),
        Kind.INC: ("++", 1),
        Kind.DEC: ("--", 1),
        Kind.COMMA: (",", 2),
        Kind.POINTER_TO_MEMBER: ("->*", 2),
        Kind.ARROW: ("->", 2),
        Kind.CALL: ("()", 2),
        Kind.INDEX: ("[]", 2),
        Kind.TERNARY: ("?", 3),
        Kind.SIZEOF_TYPE: ("sizeof", 1),
        Kind.SIZEOF_EXPR: ("sizeof", 1),
        Kind.ALIGNOF_TYPE: ("alignof", 1),
        Kind.ALIGNOF_EXPR: ("alignof", 1),
    }
    # Operators spelled as keywords, which need a space after `operator`.
    _WORDY: ClassVar[set[Kind]] = {
        Kind.NEW,
        Kind.NEW_ARR,
        Kind.DELETE,
        Kind.DELETE_ARR,
        Kind.AWAIT,
        Kind.SIZEOF_TYPE,
        Kind.SIZEOF_EXPR,
        Kind.ALIGNOF_TYPE,
        Kind.ALIGNOF_EXPR,
    }

    kind: Kind

    @property
    def symbol(self) -> str:
        """
        The operator as it is spelled in an expression, e.g. `+=`.
        """
        return self._OPERATORS[self.kind][0]

    @property
    def arity(self) -> int:
        return self._OPERATORS[self.kind][1]

    def get_name(self) -> str:
        """
        The full function name for this operator overload, e.g. `operator+=`.
        """
        space = " " if self.kind in self._WORDY else ""
        return f"operator{space}{self.symbol}"

    def __str__(self) -> str:
        return self.get_name()

    @staticmethod
    def peek(src: Cursor) -> Optional["Operator"]:
        """
        Peek a two-letter operator code from the buffer, or return `None` if the
        buffer does not start with one.
        """
        try:
            return Operator(kind=Operator.Kind(src.peek_exact(2)))
        except ValueError:
            return None


@dataclass(frozen=True)
class StandardBuiltin:
    """
    Variant type for the builtin type codes (`i`, `Dn`, ...).
    """

    class Kind(StrEnum):
        VOID = "v"
        WCHAR = "w"
        BOOL = "b"
        CHAR = "c"
        SIGNED_CHAR = "a"
        UNSIGNED_CHAR = "h"
        SHORT = "s"
        UNSIGNED_SHORT = "t"
        INT = "i"
        UNSIGNED_INT = "j"
        LONG = "l"
        UNSIGNED_LONG = "m"
        LONG_LONG = "x"
        UNSIGNED_LONG_LONG = "y"
        INT128 = "n"
        UNSIGNED_INT128 = "o"
        FLOAT = "f"
        DOUBLE = "d"
        LONG_DOUBLE = "e"
        FLOAT128 = "g"
        ELLIPSIS = "z"
        DECIMAL64 = "Dd"
        DECIMAL128 = "De"
        DECIMAL32 = "Df"
        HALF = "Dh"
        CHAR8 = "Du"
        CHAR32 = "Di"
        CHAR16 = "Ds"
        AUTO = "Da"
        DECLTYPE_AUTO = "Dc"
        NULLPTR = "Dn"

    _NAMES: ClassVar[dict[Kind, str]] = {
        Kind.VOID: "void",
        Kind.WCHAR: "wchar_t",
        Kind.BOOL: "bool",
        Kind.CHAR: "char",
        Kind.SIGNED_CHAR: "signed char",
        Kind.UNSIGNED_CHAR: "unsigned char",
        Kind.SHORT: "short",
        Kind.UNSIGNED_SHORT: "unsigned short",
        Kind.INT: "int",
        Kind.UNSIGNED_INT: "unsigned int",
        Kind.LONG: "long",
        Kind.UNSIGNED_LONG: "unsigned long",
        Kind.LONG_LONG: "long long",
        Kind.UNSIGNED_LONG_LONG: "unsigned long long",
        Kind.INT128: "__int128",
        Kind.UNSIGNED_INT128: "unsigned __int128",
        Kind.FLOAT: "float",
        Kind.DOUBLE: "double",
        Kind.LONG_DOUBLE: "long double",
        Kind.FLOAT128: "__float128",
        Kind.ELLIPSIS: "...",
        Kind.DECIMAL64: "decimal64",
        Kind.DECIMAL128: "decimal128",
        Kind.DECIMAL32: "decimal32",
        Kind.HALF: "half",
        Kind.CHAR8: "char8_t",
        Kind.CHAR32: "char32_t",
        Kind.CHAR16: "char16_t",
        Kind.AUTO: "auto",
        Kind.DECLTYPE_AUTO: "decltype(auto)",
        Kind.NULLPTR: "decltype(nullptr)",
    }
    # Literal suffixes for integer template arguments, e.g. `1ul`. Types not
    # listed here render their literals as a cast: `(char)97`.
    _LITERAL_SUFFIXES: ClassVar[dict[Kind, str]] = {
        Kind.INT: "",
        Kind.UNSIGNED_INT: "u",
        Kind.LONG: "l",
        Kind.UNSIGNED_LONG: "ul",
        Kind.LONG_LONG: "ll",
        Kind.UNSIGNED_LONG_LONG: "ull",
    }
    _FLOATING: ClassVar[set[Kind]] = {
        Kind.FLOAT,
        Kind.DOUBLE,
        Kind.LONG_DOUBLE,
        Kind.FLOAT128,
    }

    kind: Kind

    def is_void(self) -> bool:
        return self.kind == StandardBuiltin.Kind.VOID

    def is_floating(self) -> bool:
        return self.kind in self._FLOATING

    def literal_suffix(self) -> Optional[str]:
        return self._LITERAL_SUFFIXES.get(self.kind)

    def __str__(self) -> str:
        return self._NAMES[self.kind]

    @staticmethod
    def peek(src: Cursor) -> Optional[tuple["StandardBuiltin", int]]:
        """
        Peek a builtin type code. Returns the builtin and the number of characters
        its code takes, or `None`.
        """
        for size in (1, 2):
            try:
                kind = StandardBuiltin.Kind(src.peek_exact(size))
            except ValueError:
                continue
            return StandardBuiltin(kind=kind), size
        return None


@dataclass(frozen=True)
class WellKnownComponent:
    """
    Variant type for the abbreviations of common `std` entities, which are
    never entered into the substitution table.
    """

    class Kind(StrEnum):
        STD = "St"
        STD_ALLOCATOR = "Sa"
        STD_BASIC_STRING = "Sb"
        STD_STRING = "Ss"
        STD_ISTREAM = "Si"
        STD_OSTREAM = "So"
        STD_IOSTREAM = "Sd"

    # Short spelling, spelling used when the component names the class of a
    # constructor or destructor, and the class's own name.
    _NAMES: ClassVar[dict[Kind, tuple[str, str, str]]] = {
        Kind.STD: ("std", "std", "std"),
        Kind.STD_ALLOCATOR: ("std::allocator", "std::allocator", "allocator"),
        Kind.STD_BASIC_STRING: ("std::basic_string", "std::basic_string", "basic_string"),
        Kind.STD_STRING: (
            "std::string",
            "std::basic_string<char, std::char_traits<char>, std::allocator<char> >",
            "basic_string",
        ),
        Kind.STD_ISTREAM: (
            "std::istream",
            "std::basic_istream<char, std::char_traits<char> >",
            "basic_istream",
        ),
        Kind.STD_OSTREAM: (
            "std::ostream",
            "std::basic_ostream<char, std::char_traits<char> >",
            "basic_ostream",
        ),
        Kind.STD_IOSTREAM: (
            "std::iostream",
            "std::basic_iostream<char, std::char_traits<char> >",
            "basic_iostream",
        ),
    }

    kind: Kind

    def short_name(self) -> str:
        return self._NAMES[self.kind][0]

    def full_name(self) -> str:
        return self._NAMES[self.kind][1]

    def source_name(self) -> str:
        return self._NAMES[self.kind][2]

    def __str__(self) -> str:
        return self.short_name()

    @staticmethod
    def peek(src: Cursor) -> Optional["WellKnownComponent"]:
        try:
            return WellKnownComponent(kind=WellKnownComponent.Kind(src.peek_exact(2)))
        except ValueError:
            return None


@dataclass(frozen=True)
class CtorDtor:
    """
    Variant type for constructor and destructor codes.
    """

    class Kind(StrEnum):
        COMPLETE_CTOR = "C1"
        BASE_CTOR = "C2"
        ALLOCATING_CTOR = "C3"
        MAYBE_IN_CHARGE_CTOR = "C4"
        COMDAT_CTOR = "C5"
        COMPLETE_INHERITING_CTOR = "CI1"
        BASE_INHERITING_CTOR = "CI2"
        DELETING_DTOR = "D0"
        COMPLETE_DTOR = "D1"
        BASE_DTOR = "D2"
        MAYBE_IN_CHARGE_DTOR = "D4"
        COMDAT_DTOR = "D5"

    kind: Kind

    def is_dtor(self) -> bool:
        return self.kind.startswith("D")

    def is_inheriting(self) -> bool:
        return self.kind.startswith("CI")

    @staticmethod
    def peek(src: Cursor) -> Optional[tuple["CtorDtor", int]]:
        for size in (3, 2):
            try:
                kind = CtorDtor.Kind(src.peek_exact(size))
            except ValueError:
                continue
            return CtorDtor(kind=kind), size
        return None


@dataclass(frozen=True)
class Special:
    """
    Variant type for `<special-name>` prefixes.
    """

    class Kind(StrEnum):
        VTABLE = "TV"
        VTT = "TT"
        TYPEINFO = "TI"
        TYPEINFO_NAME = "TS"
        NONVIRTUAL_THUNK = "Th"
        VIRTUAL_THUNK = "Tv"
        COVARIANT_THUNK = "Tc"
        CONSTRUCTION_VTABLE = "TC"
        TLS_INIT = "TH"
        TLS_WRAPPER = "TW"
        GUARD_VARIABLE = "GV"
        REFERENCE_TEMPORARY = "GR"
        TRANSACTION_CLONE = "GTt"
        NONTRANSACTION_CLONE = "GTn"

    _PREFIXES: ClassVar[dict[Kind, str]] = {
        Kind.VTABLE: "vtable for ",
        Kind.VTT: "VTT for ",
        Kind.TYPEINFO: "typeinfo for ",
        Kind.TYPEINFO_NAME: "typeinfo name for ",
        Kind.NONVIRTUAL_THUNK: "non-virtual thunk to ",
        Kind.VIRTUAL_THUNK: "virtual thunk to ",
        Kind.COVARIANT_THUNK: "covariant return thunk to ",
        Kind.CONSTRUCTION_VTABLE: "construction vtable for ",
        Kind.TLS_INIT: "TLS init function for ",
        Kind.TLS_WRAPPER: "TLS wrapper function for ",
        Kind.GUARD_VARIABLE: "guard variable for ",
        Kind.REFERENCE_TEMPORARY: "reference temporary #",
        Kind.TRANSACTION_CLONE: "transaction clone for ",
        Kind.NONTRANSACTION_CLONE: "non-transaction clone for ",
    }
    # Kinds followed by a `<type>`.
    _TYPED: ClassVar[set[Kind]] = {Kind.VTABLE, Kind.VTT, Kind.TYPEINFO, Kind.TYPEINFO_NAME}
    # Kinds followed by a `<name>`.
    _NAMED: ClassVar[set[Kind]] = {
        Kind.TLS_INIT,
        Kind.TLS_WRAPPER,
        Kind.GUARD_VARIABLE,
        Kind.REFERENCE_TEMPORARY,
    }

    kind: Kind

    def prefix(self) -> str:
        return self._PREFIXES[self.kind]

    def takes_type(self) -> bool:
        return self.kind in self._TYPED

    def takes_name(self) -> bool:
        return self.kind in self._NAMED

    @staticmethod
    def peek(src: Cursor) -> Optional[tuple["Special", int]]:
        for size in (3, 2):
            try:
                kind = Special.Kind(src.peek_exact(size))
            except ValueError:
                continue
            return Special(kind=kind), size
        return None


@dataclass(frozen=True)
class CvQualifiers:
    """
    A set of `<CV-qualifiers>`, mangled in the order `r V K`.
    """

    restrict: bool = False
    volatile: bool = False
    const: bool = False

    def __bool__(self) -> bool:
        return self.restrict or self.volatile or self.const

    def __str__(self) -> str:
        """
        Qualifiers as they follow a type or a member function, each preceded by
        a space: ` const volatile`.
        """
        result = ""
        if self.const:
            result += " const"
        if self.volatile:
            result += " volatile"
        if self.restrict:
            result += " restrict"
        return result

    @staticmethod
    def read(src: Cursor) -> tuple["CvQualifiers", Cursor]:
        """
        Read any CV qualifiers at the start of the buffer. Never fails; an empty
        set is returned when there are none.
        """
        restrict = volatile = const = False
        if src.peek() == "r":
            restrict, src = True, src.advance(1)
        if src.peek() == "V":
            volatile, src = True, src.advance(1)
        if src.peek() == "K":
            const, src = True, src.advance(1)
        return CvQualifiers(restrict=restrict, volatile=volatile, const=const), src


class RefQualifier(StrEnum):
    LVALUE = "R"
    RVALUE = "O"

    def __str__(self) -> str:
        return " &" if self == RefQualifier.LVALUE else " &&"

    @staticmethod
    def read(src: Cursor) -> tuple[Optional["RefQualifier"], Cursor]:
        if src.peek() in ("R", "O"):
            return RefQualifier(src.peek()), src.advance(1)
        return None, src
