"""
Demangler for Itanium C++ ABI symbols.

The parser is a recursive descent over the `_Z` mangling grammar. It reads
through an immutable `Cursor`, builds the frozen AST from `cxx.py` and
records every substitutable entity in a `SubstitutionTable` as soon as its
production is complete. Rendering lives in `render.py`.
"""

import logging
from contextlib import contextmanager
from typing import Callable, Optional, Union

from itanium_abi_demangler.cxx import (
    AbiTaggedName,
    ArgPack,
    ArrayType,
    BackReference,
    BinaryExpr,
    BuiltinType,
    BracedInitExpr,
    CallExpr,
    CallOffset,
    CastExpr,
    ClassEnumType,
    CloneSuffix,
    ClosureTypeName,
    ComplexPairType,
    ConstructionVtable,
    ConversionExpr,
    ConversionOperatorName,
    CtorDtorName,
    DataEncoding,
    Decltype,
    DefaultArgLocalName,
    DeleteExpr,
    DestructorId,
    ExpressionArg,
    FunctionEncoding,
    FunctionParam,
    FunctionType,
    GlobalCtorDtor,
    Identifier,
    ImaginaryType,
    KeywordExpr,
    KeywordTypeExpr,
    LiteralExpr,
    LiteralOperatorName,
    LocalName,
    LocalSourceName,
    LocalStringLiteral,
    LvalueReferenceType,
    MangledName,
    MangledNameExpr,
    MemberExpr,
    NestedName,
    NewExpr,
    OperatorId,
    OperatorName,
    PackExpansionExpr,
    PackExpansionType,
    PointerToMemberType,
    PointerType,
    PostfixExpr,
    PrefixDecltype,
    PrefixName,
    PrefixTemplate,
    PrefixTemplateParam,
    QualifiedType,
    RvalueReferenceType,
    SimpleId,
    SizeofPackExpr,
    SourceName,
    SpecialEntityName,
    SpecialTypeName,
    TemplateArgs,
    TemplateParam,
    TemplateTemplateParamType,
    TernaryExpr,
    ThrowExpr,
    ThunkName,
    TransactionClone,
    UnaryExpr,
    UnnamedTypeName,
    UnresolvedName,
    UnscopedName,
    UnscopedTemplate,
    UnscopedTemplateName,
    VectorType,
    VendorBuiltinType,
    VendorExpr,
    VendorOperatorName,
    VendorQualifiedType,
    unwrap_abi_tags,
)
from itanium_abi_demangler.errors import (
    DemangleError,
    InvalidBackReference,
    RecursionLimitExceeded,
    UnexpectedToken,
    UnexpectedTrailingBytes,
    UnsupportedExtension,
)
from itanium_abi_demangler.io_util import (
    Cursor,
    read_discriminator,
    read_number,
    read_seq_id,
    read_source_length,
    read_underscored_index,
)
from itanium_abi_demangler.options import DEFAULT_OPTIONS, DemangleOptions, ExtensionPolicy
from itanium_abi_demangler.subs import SubstitutionTable
from itanium_abi_demangler.symbol import Symbol
from itanium_abi_demangler.token import (
    CtorDtor,
    CvQualifiers,
    Operator,
    RefQualifier,
    Special,
    StandardBuiltin,
    WellKnownComponent,
)

log = logging.getLogger(__name__)

# Clone suffixes GCC and LLVM are known to emit.
_KNOWN_CLONE_SUFFIXES = {
    "clone",
    "cold",
    "constprop",
    "isra",
    "llvm",
    "localalias",
    "lto_priv",
    "part",
    "str",
}

# Two-letter expression codes that take a type operand, and their keyword.
_TYPE_KEYWORDS = {"ti": "typeid", "st": "sizeof", "at": "alignof"}
# Two-letter expression codes that take an expression operand, and their keyword.
_EXPR_KEYWORDS = {"te": "typeid", "sz": "sizeof", "az": "alignof", "nx": "noexcept"}
_CAST_KEYWORDS = {
    "dc": "dynamic_cast",
    "sc": "static_cast",
    "cc": "const_cast",
    "rc": "reinterpret_cast",
}
_MEMBER_ACCESS = {"dt": ".", "pt": "->", "ds": ".*"}

# Every multi-character code a production can dispatch on. Input that ends
# partway through one of them is truncated rather than malformed.
_GRAMMAR_CODES = frozenset(
    [kind.value for kind in Operator.Kind]
    + [kind.value for kind in StandardBuiltin.Kind]
    + [kind.value for kind in WellKnownComponent.Kind]
    + [kind.value for kind in CtorDtor.Kind]
    + [kind.value for kind in Special.Kind]
    + list(_TYPE_KEYWORDS)
    + list(_EXPR_KEYWORDS)
    + list(_CAST_KEYWORDS)
    + list(_MEMBER_ACCESS)
    + [f"v{digit}" for digit in range(10)]
    + ["_Z", "__Z", "_GLOBAL__I_", "_GLOBAL__D_", "S_", "cv", "li", "Ut", "Ul"]
    + ["Dp", "Dv", "Dt", "DT", "Dx", "Do", "Ts", "Tu", "Te", "fp", "fL"]
    + ["gs", "sr", "on", "dn", "sZ", "sP", "tw", "tr", "pi", "il", "tl", "sp"]
)

ParseResult = tuple[object, Cursor]


class ParseContext:
    """
    Recursion depth bookkeeping shared by every production of one parse.
    """

    def __init__(self, limit: int):
        self.limit = limit
        self.depth = 0

    @contextmanager
    def descend(self, src: Cursor):
        """
        Enter one more level of nesting, failing once `limit` is reached.
        """
        if self.depth >= self.limit:
            raise RecursionLimitExceeded(
                f"Nesting deeper than {self.limit} levels", src.offset
            )
        self.depth += 1
        try:
            yield
        finally:
            self.depth -= 1


def _is_ctor_dtor_or_conversion(name) -> bool:
    return isinstance(unwrap_abi_tags(name), (CtorDtorName, ConversionOperatorName))


class ItaniumDemangler:
    """
    Demangler object. One instance parses one symbol.
    """

    def __init__(self, raw: str, options: DemangleOptions = DEFAULT_OPTIONS):
        self._raw = raw
        self._options = options
        self._ctx = ParseContext(options.recursion_limit)
        self.subs = SubstitutionTable()

    def parse(self) -> ParseResult:
        """
        Parse a mangled name from the start of the input. Returns the root node
        and the cursor just past it; anything after that cursor is the tail.
        """
        src = Cursor(self._raw)
        try:
            return self._parse_top_level(src)
        except RecursionError as e:
            raise RecursionLimitExceeded("Input nests too deeply", src.offset) from e

    # Helpers
    # -------

    @contextmanager
    def _speculating(self):
        """
        Run the body against a fork of the substitution table. The fork is
        committed if the body completes and dropped if it raises.
        """
        table = self.subs
        self.subs = table.fork()
        try:
            yield
        except BaseException:
            self.subs = table
            raise
        else:
            fork, self.subs = self.subs, table
            table.commit(fork)

    def _attempt(self, parse: Callable[[Cursor], ParseResult], src: Cursor) -> Optional[ParseResult]:
        """
        Try an optional production. Returns `None`, with no substitutions
        recorded, if the input does not match it.
        """
        try:
            with self._speculating():
                return parse(src)
        except UnsupportedExtension:
            raise
        except UnexpectedToken as e:
            log.debug("Dropped speculative parse at offset %d: %s", src.offset, e)
            return None

    def _insert(self, node) -> BackReference:
        return BackReference(self.subs.insert(node))

    def _resolve(self, handle):
        if isinstance(handle, BackReference):
            return self.subs.get(handle.index)
        return handle

    def _check_extension(self, src: Cursor, what: str):
        if self._options.extension_policy == ExtensionPolicy.STRICT:
            raise UnsupportedExtension(f"Vendor extension {what} is not allowed", src.offset)

    # Top level
    # ---------

    def _parse_top_level(self, src: Cursor) -> ParseResult:
        for marker, is_ctor in (("_GLOBAL__I_", True), ("_GLOBAL__D_", False)):
            rest = src.try_consume(marker)
            if rest is not None:
                mangled, rest = self._parse_mangled_name(rest)
                return GlobalCtorDtor(is_ctor, mangled), rest
        return self._parse_mangled_name(src)

    def _parse_mangled_name(self, src: Cursor) -> ParseResult:
        """
        `<mangled-name> ::= _Z <encoding> [. <vendor-specific suffix>]*`
        """
        if self._options.strip_leading_underscore and src.peek(3) == "__Z":
            src = src.advance(1)
        if src.try_consume("_Z") is None:
            raise src.unexpected("`_Z`", _GRAMMAR_CODES)
        src = src.advance(2)
        encoding, src = self._parse_encoding(src)

        suffixes = []
        while src.peek() == ".":
            result = self._parse_clone_suffix(src)
            if result is None:
                break
            suffix, src = result
            suffixes.append(suffix)
        return MangledName(encoding, tuple(suffixes)), src

    def _parse_clone_suffix(self, src: Cursor) -> Optional[ParseResult]:
        """
        Read `.word[.number]*` or `.number[.number]*`. Returns `None` if what
        follows the dot isn't a clone suffix, leaving it for the tail.
        """
        if src.bytes_left() == 1:
            raise src.advance(1).unexpected("a clone suffix")

        start = src.offset
        count = 1
        word = ""
        while src.peek(1, count).isalpha() or src.peek(1, count) == "_":
            word += src.peek(1, count)
            count += 1
        if not word and not src.peek(1, count).isdigit():
            return None
        if word:
            if word not in _KNOWN_CLONE_SUFFIXES:
                self._check_extension(src, f"clone suffix `.{word}`")
        else:
            while src.peek(1, count).isdigit():
                count += 1
        while src.peek(1, count) == "." and src.peek(1, count + 1).isdigit():
            count += 1
            while src.peek(1, count).isdigit():
                count += 1
        return CloneSuffix(Identifier(start, start + count)), src.advance(count)

    # Encodings
    # ---------

    def _ends_encoding(self, src: Cursor) -> bool:
        return src.is_empty() or src.peek() in ("E", ".")

    def _parse_encoding(self, src: Cursor) -> ParseResult:
        """
        `<encoding> ::= <name> <bare-function-type> | <name> | <special-name>`
        """
        with self._ctx.descend(src):
            if src.peek() in ("T", "G"):
                return self._parse_special_name(src)

            name, src = self._parse_name(src)
            if self._ends_encoding(src):
                return DataEncoding(name), src

            if self._has_return_type(name):
                return_type, src = self._parse_type(src)
                params, src = self._parse_bare_function_type(src, required=True)
                return FunctionEncoding(name, params, return_type), src

            params, src = self._parse_bare_function_type(src, required=False)
            if not params:
                return DataEncoding(name), src
            return FunctionEncoding(name, params), src

    def _parse_bare_function_type(self, src: Cursor, required: bool) -> tuple[tuple, Cursor]:
        """
        Read parameter types until the encoding ends or the input stops looking
        like a type.
        """
        params = []
        while not self._ends_encoding(src):
            result = self._attempt(self._parse_type, src)
            if result is None:
                break
            param, src = result
            params.append(param)

        if required and not params:
            raise src.unexpected("function parameter types", _GRAMMAR_CODES)
        return tuple(params), src

    def _has_return_type(self, name) -> bool:
        """
        Template functions encode their return type, except for constructors,
        destructors and conversion operators.
        """
        if isinstance(name, (LocalName, DefaultArgLocalName)):
            return self._has_return_type(name.entity)

        if isinstance(name, UnscopedTemplate):
            template = self._resolve(name.template)
            if isinstance(template, UnscopedTemplateName):
                return not _is_ctor_dtor_or_conversion(template.name.name)
            return True

        if isinstance(name, NestedName) and isinstance(name.prefix, PrefixTemplate):
            template = self._resolve(name.prefix.prefix)
            if isinstance(template, PrefixName):
                return not _is_ctor_dtor_or_conversion(template.name)
            return True

        return False

    def _parse_call_offset(self, src: Cursor) -> ParseResult:
        """
        `<call-offset> ::= h <nv-offset> _ | v <v-offset> _ <virtual offset> _`
        """
        kind = src.peek()
        if kind == "h":
            offset, src = read_number(src.advance(1))
            return CallOffset(offset), src.expect("_")
        if kind == "v":
            offset, src = read_number(src.advance(1))
            virtual_offset, src = read_number(src.expect("_"))
            return CallOffset(offset, virtual_offset), src.expect("_")
        raise src.unexpected("a call offset", _GRAMMAR_CODES)

    def _parse_special_name(self, src: Cursor) -> ParseResult:
        found = Special.peek(src)
        if found is None:
            raise src.unexpected("a special name", _GRAMMAR_CODES)
        special, size = found
        start = src
        src = src.advance(size)
        kind = special.kind

        if special.takes_type():
            type_, src = self._parse_type(src)
            return SpecialTypeName(special, type_), src

        if kind == Special.Kind.REFERENCE_TEMPORARY:
            name, src = self._parse_name(src)
            number = None
            if src.peek() == "_":
                number, src = 0, src.advance(1)
            elif src.peek() and src.peek() in "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ":
                seq_id, src = read_seq_id(src)
                number, src = seq_id + 1, src.expect("_")
            return SpecialEntityName(special, name, number), src

        if special.takes_name():
            name, src = self._parse_name(src)
            return SpecialEntityName(special, name), src

        if kind == Special.Kind.NONVIRTUAL_THUNK:
            offset, src = read_number(src)
            encoding, src = self._parse_encoding(src.expect("_"))
            return ThunkName(special, (CallOffset(offset),), encoding), src

        if kind == Special.Kind.VIRTUAL_THUNK:
            offset, src = read_number(src)
            virtual_offset, src = read_number(src.expect("_"))
            encoding, src = self._parse_encoding(src.expect("_"))
            return ThunkName(special, (CallOffset(offset, virtual_offset),), encoding), src

        if kind == Special.Kind.COVARIANT_THUNK:
            this_offset, src = self._parse_call_offset(src)
            result_offset, src = self._parse_call_offset(src)
            encoding, src = self._parse_encoding(src)
            return ThunkName(special, (this_offset, result_offset), encoding), src

        if kind == Special.Kind.CONSTRUCTION_VTABLE:
            derived, src = self._parse_type(src)
            offset, src = read_number(src)
            base, src = self._parse_type(src.expect("_"))
            return ConstructionVtable(derived, offset, base), src

        if kind in (Special.Kind.TRANSACTION_CLONE, Special.Kind.NONTRANSACTION_CLONE):
            encoding, src = self._parse_encoding(src)
            return TransactionClone(special, encoding), src

        raise start.unexpected("a special name", _GRAMMAR_CODES)

    # Names
    # -----

    def _parse_name(self, src: Cursor) -> ParseResult:
        """
        `<name> ::= <nested-name> | <local-name> | <unscoped-template-name>
        <template-args> | <unscoped-name>`
        """
        with self._ctx.descend(src):
            c = src.peek()
            if c == "N":
                return self._parse_nested_name(src)
            if c == "Z":
                return self._parse_local_name(src)

            if c == "S" and src.peek(2) != "St":
                template, src = self._parse_substitution(src)
                if src.peek() != "I":
                    raise src.unexpected("template arguments after a substitution", _GRAMMAR_CODES)
                args, src = self._parse_template_args(src)
                return UnscopedTemplate(template, args), src

            name, src = self._parse_unscoped_name(src)
            if src.peek() == "I":
                template = self._insert(UnscopedTemplateName(name))
                args, src = self._parse_template_args(src)
                return UnscopedTemplate(template, args), src
            return name, src

    def _parse_unscoped_name(self, src: Cursor) -> ParseResult:
        is_std = False
        rest = src.try_consume("St")
        if rest is not None:
            is_std, src = True, rest
        name, src = self._parse_unqualified_name(src)
        return UnscopedName(name, is_std), src

    def _parse_nested_name(self, src: Cursor) -> ParseResult:
        """
        `<nested-name> ::= N [<CV-qualifiers>] [<ref-qualifier>] <prefix> E`
        """
        src = src.expect("N")
        cv_qualifiers, src = CvQualifiers.read(src)
        ref_qualifier, src = RefQualifier.read(src)
        prefix, src = self._parse_prefix(src)
        return NestedName(prefix, cv_qualifiers, ref_qualifier), src.expect("E")

    def _parse_prefix(self, src: Cursor) -> ParseResult:
        """
        Read the components of a nested name up to (not including) its `E`.

        Every component but the last is entered into the substitution table as
        soon as it is complete; the last is returned inline.
        """
        current = None
        while True:
            c = src.peek()
            if c == "E" or not c:
                if not isinstance(current, (PrefixName, PrefixTemplate)):
                    raise src.unexpected("a nested name component", _GRAMMAR_CODES)
                return current, src

            if c == "S" and current is None:
                current, src = self._parse_substitution(src)
                continue

            if c == "T" and current is None:
                param, src = self._parse_template_param(src)
                node = PrefixTemplateParam(param)
            elif c == "D" and src.peek(1, 1) in ("t", "T") and current is None:
                decltype, src = self._parse_decltype(src)
                node = PrefixDecltype(decltype)
            elif c == "I":
                if current is None or isinstance(self._resolve(current), PrefixTemplate):
                    raise src.unexpected(
                        "a template name before template arguments", _GRAMMAR_CODES
                    )
                args, src = self._parse_template_args(src)
                node = PrefixTemplate(current, args)
            else:
                name, src = self._parse_unqualified_name(src)
                node = PrefixName(current, name)

            if src.peek() == "E":
                current = node
            else:
                current = self._insert(node)

    def _parse_local_name(self, src: Cursor) -> ParseResult:
        """
        `<local-name> ::= Z <encoding> E <entity name> [<discriminator>]
                      ::= Z <encoding> E s [<discriminator>]
                      ::= Z <encoding> Ed [<number>] _ <entity name>`
        """
        encoding, src = self._parse_encoding(src.expect("Z"))
        src = src.expect("E")

        if src.peek() == "s":
            discriminator, src = read_discriminator(src.advance(1))
            return LocalStringLiteral(encoding, discriminator), src

        if src.peek() == "d":
            src = src.advance(1)
            param = None
            if src.peek() != "_":
                param, src = read_number(src, allow_negative=False)
            entity, src = self._parse_name(src.expect("_"))
            return DefaultArgLocalName(encoding, param, entity), src

        entity, src = self._parse_name(src)
        discriminator, src = read_discriminator(src)
        return LocalName(encoding, entity, discriminator), src

    def _parse_source_name(self, src: Cursor) -> ParseResult:
        length, src = read_source_length(src)
        return SourceName(Identifier(src.offset, src.offset + length)), src.advance(length)

    def _parse_unqualified_name(self, src: Cursor) -> ParseResult:
        """
        `<unqualified-name> ::= <operator-name> | <ctor-dtor-name> | <source-name>
        | <unnamed-type-name>`, each optionally followed by ABI tags.
        """
        c = src.peek()
        if c.isdigit():
            name, src = self._parse_source_name(src)
        elif c == "L":
            source, src = self._parse_source_name(src.advance(1))
            discriminator, src = read_discriminator(src)
            name = LocalSourceName(source, discriminator)
        elif c == "U":
            name, src = self._parse_unnamed_type_name(src)
        elif c in ("C", "D"):
            name, src = self._parse_ctor_dtor_name(src)
        else:
            name, src = self._parse_operator_name(src)

        tags = []
        while src.peek() == "B":
            tag, src = self._parse_source_name(src.advance(1))
            tags.append(tag)
        if tags:
            name = AbiTaggedName(name, tuple(tags))
        return name, src

    def _parse_ctor_dtor_name(self, src: Cursor) -> ParseResult:
        found = CtorDtor.peek(src)
        if found is None:
            raise src.unexpected("a constructor or destructor name", _GRAMMAR_CODES)
        code, size = found
        src = src.advance(size)
        if code.is_inheriting():
            inherited, src = self._parse_type(src)
            return CtorDtorName(code, inherited), src
        return CtorDtorName(code), src

    def _parse_unnamed_type_name(self, src: Cursor) -> ParseResult:
        """
        `<unnamed-type-name> ::= Ut [<number>] _ | Ul <lambda-sig> E [<number>] _`
        """
        kind = src.peek(2)
        if kind == "Ut":
            src = src.advance(2)
            number = None
            if src.peek() != "_":
                number, src = read_number(src, allow_negative=False)
            return UnnamedTypeName(number), src.expect("_")

        if kind == "Ul":
            src = src.advance(2)
            signature = []
            while src.peek() != "E":
                param, src = self._parse_type(src)
                signature.append(param)
            src = src.advance(1)
            number = None
            if src.peek() != "_":
                number, src = read_number(src, allow_negative=False)
            return ClosureTypeName(tuple(signature), number), src.expect("_")

        raise src.unexpected("an unnamed type or closure name", _GRAMMAR_CODES)

    def _parse_operator_name(self, src: Cursor) -> ParseResult:
        """
        `<operator-name>`, including conversion, literal and vendor operators.
        """
        code = src.peek(2)
        if code == "cv":
            type_, src = self._parse_type(src.advance(2))
            return ConversionOperatorName(type_), src
        if code == "li":
            name, src = self._parse_source_name(src.advance(2))
            return LiteralOperatorName(name), src
        if src.peek() == "v" and src.peek(1, 1).isdigit():
            self._check_extension(src, "operator")
            arity = int(src.peek(1, 1))
            name, src = self._parse_source_name(src.advance(2))
            return VendorOperatorName(arity, name), src

        operator = Operator.peek(src)
        if operator is None:
            raise src.unexpected("an unqualified name", _GRAMMAR_CODES)
        return OperatorName(operator), src.advance(2)

    def _parse_substitution(self, src: Cursor) -> ParseResult:
        """
        `<substitution> ::= S_ | S <seq-id> _ | St | Sa | Sb | Ss | Si | So | Sd`
        """
        well_known = WellKnownComponent.peek(src)
        if well_known is not None:
            return well_known, src.advance(2)

        start = src
        src = src.expect("S")
        if src.peek() == "_":
            index, src = 0, src.advance(1)
        else:
            seq_id, src = read_seq_id(src)
            index, src = seq_id + 1, src.expect("_")

        if index >= len(self.subs):
            raise InvalidBackReference(
                f"Substitution S{index} used, but only {len(self.subs)} entries exist",
                start.offset,
            )
        return BackReference(index), src

    def _parse_template_param(self, src: Cursor) -> ParseResult:
        """
        `<template-param> ::= T_ | T <number> _`
        """
        index, src = read_underscored_index(src.expect("T"))
        return TemplateParam(index), src

    def _parse_decltype(self, src: Cursor) -> ParseResult:
        kind = src.peek(2)
        if kind not in ("Dt", "DT"):
            raise src.unexpected("a decltype", _GRAMMAR_CODES)
        expression, src = self._parse_expression(src.advance(2))
        return Decltype(expression, kind == "Dt"), src.expect("E")

    # Types
    # -----

    def _parse_type(self, src: Cursor) -> ParseResult:
        with self._ctx.descend(src):
            return self._parse_type_inner(src)

    def _parse_type_inner(self, src: Cursor) -> ParseResult:
        found = StandardBuiltin.peek(src)
        if found is not None:
            builtin, size = found
            return BuiltinType(builtin), src.advance(size)

        c = src.peek()
        code = src.peek(2)

        if c == "u":
            self._check_extension(src, "builtin type")
            name, src = self._parse_source_name(src.advance(1))
            return self._insert(VendorBuiltinType(name)), src

        if c in ("r", "V", "K"):
            cv_qualifiers, rest = CvQualifiers.read(src)
            if rest.peek() == "F" or rest.peek(2) in ("Dx", "Do"):
                node, src = self._parse_function_type(src)
                return self._insert(node), src
            inner, src = self._parse_type(rest)
            return self._insert(QualifiedType(cv_qualifiers, inner)), src

        if c == "F" or code in ("Dx", "Do"):
            node, src = self._parse_function_type(src)
            return self._insert(node), src

        if c == "U":
            self._check_extension(src, "type qualifier")
            name, src = self._parse_source_name(src.advance(1))
            args = None
            if src.peek() == "I":
                args, src = self._parse_template_args(src)
            inner, src = self._parse_type(src)
            return self._insert(VendorQualifiedType(name, args, inner)), src

        wrappers = {
            "P": PointerType,
            "R": LvalueReferenceType,
            "O": RvalueReferenceType,
            "C": ComplexPairType,
            "G": ImaginaryType,
        }
        if c in wrappers:
            inner, src = self._parse_type(src.advance(1))
            return self._insert(wrappers[c](inner)), src

        if c == "A":
            node, src = self._parse_array_type(src)
            return self._insert(node), src

        if c == "M":
            class_type, src = self._parse_type(src.advance(1))
            member_type, src = self._parse_type(src)
            return self._insert(PointerToMemberType(class_type, member_type)), src

        if code in ("Ts", "Tu", "Te"):
            elaborated = {"Ts": "struct", "Tu": "union", "Te": "enum"}[code]
            name, src = self._parse_name(src.advance(2))
            return self._insert(ClassEnumType(name, elaborated)), src

        if c == "T":
            param, src = self._parse_template_param(src)
            handle = self._insert(param)
            if src.peek() == "I":
                args, src = self._parse_template_args(src)
                return self._insert(TemplateTemplateParamType(handle, args)), src
            return handle, src

        if code in ("Dt", "DT"):
            decltype, src = self._parse_decltype(src)
            return self._insert(decltype), src

        if code == "Dp":
            inner, src = self._parse_type(src.advance(2))
            return self._insert(PackExpansionType(inner)), src

        if code == "Dv":
            node, src = self._parse_vector_type(src)
            return self._insert(node), src

        if c == "S" and code != "St":
            handle, src = self._parse_substitution(src)
            if src.peek() == "I":
                args, src = self._parse_template_args(src)
                return self._insert(ClassEnumType(UnscopedTemplate(handle, args))), src
            return handle, src

        name, src = self._parse_name(src)
        return self._insert(ClassEnumType(name)), src

    def _parse_function_type(self, src: Cursor) -> ParseResult:
        """
        `<function-type> ::= [<CV-qualifiers>] [<exception-spec>] [Dx] F [Y]
        <bare-function-type> [<ref-qualifier>] E`
        """
        cv_qualifiers, src = CvQualifiers.read(src)
        is_noexcept = False
        if src.peek(2) == "Do":
            is_noexcept, src = True, src.advance(2)
        elif src.peek(2) == "Dx":
            src = src.advance(2)
        src = src.expect("F")
        is_extern_c = False
        if src.peek() == "Y":
            is_extern_c, src = True, src.advance(1)

        return_type, src = self._parse_type(src)
        params = []
        while True:
            if src.peek() == "E":
                ref_qualifier = None
                break
            if src.peek() in ("R", "O") and src.peek(1, 1) == "E":
                ref_qualifier, src = RefQualifier.read(src)
                break
            param, src = self._parse_type(src)
            params.append(param)

        node = FunctionType(
            return_type,
            tuple(params),
            cv_qualifiers,
            ref_qualifier,
            is_noexcept,
            is_extern_c,
        )
        return node, src.expect("E")

    def _parse_array_type(self, src: Cursor) -> ParseResult:
        """
        `<array-type> ::= A <number> _ <type> | A [<expression>] _ <type>`
        """
        src = src.expect("A")
        dimension: Union[int, object, None] = None
        if src.peek().isdigit():
            dimension, src = read_number(src, allow_negative=False)
        elif src.peek() != "_":
            dimension, src = self._parse_expression(src)
        element, src = self._parse_type(src.expect("_"))
        return ArrayType(dimension, element), src

    def _parse_vector_type(self, src: Cursor) -> ParseResult:
        """
        `Dv <number> _ <type>` or `Dv _ <expression> _ <type>`
        """
        src = src.expect("Dv")
        if src.peek() == "_":
            dimension, src = self._parse_expression(src.advance(1))
        else:
            dimension, src = read_number(src, allow_negative=False)
        element, src = self._parse_type(src.expect("_"))
        return VectorType(dimension, element), src

    # Template arguments
    # ------------------

    def _parse_template_args(self, src: Cursor) -> ParseResult:
        """
        `<template-args> ::= I <template-arg>* E`
        """
        with self._ctx.descend(src):
            src = src.expect("I")
            args = []
            while src.peek() != "E":
                if src.is_empty():
                    raise src.unexpected("a template argument", _GRAMMAR_CODES)
                arg, src = self._parse_template_arg(src)
                args.append(arg)
            return TemplateArgs(tuple(args)), src.advance(1)

    def _parse_template_arg(self, src: Cursor) -> ParseResult:
        with self._ctx.descend(src):
            c = src.peek()
            if c == "X":
                expression, src = self._parse_expression(src.advance(1))
                return ExpressionArg(expression), src.expect("E")
            if c == "L":
                return self._parse_expr_primary(src)
            if c in ("J", "I"):
                src = src.advance(1)
                args = []
                while src.peek() != "E":
                    if src.is_empty():
                        raise src.unexpected("a template argument", _GRAMMAR_CODES)
                    arg, src = self._parse_template_arg(src)
                    args.append(arg)
                return ArgPack(tuple(args)), src.advance(1)
            return self._parse_type(src)

    # Expressions
    # -----------

    def _parse_expr_primary(self, src: Cursor) -> ParseResult:
        """
        `<expr-primary> ::= L <type> <value> E | L _Z <encoding> E | LZ <encoding> E`
        """
        src = src.expect("L")
        if src.peek(2) == "_Z" or src.peek() == "Z":
            src = src.advance(2 if src.peek() == "_" else 1)
            encoding, src = self._parse_encoding(src)
            return MangledNameExpr(encoding), src.expect("E")

        type_, src = self._parse_type(src)
        count = 0
        while src.peek(1, count) not in ("E", ""):
            count += 1
        if not src.peek(1, count):
            raise src.advance(count).unexpected("the end of a literal", _GRAMMAR_CODES)
        value = Identifier(src.offset, src.offset + count) if count else None
        return LiteralExpr(type_, value), src.advance(count + 1)

    def _parse_expressions_until(self, src: Cursor, end: str) -> tuple[tuple, Cursor]:
        items = []
        while src.peek() != end:
            if src.is_empty():
                raise src.unexpected(f"an expression or `{end}`", _GRAMMAR_CODES)
            item, src = self._parse_expression(src)
            items.append(item)
        return tuple(items), src.advance(1)

    def _parse_expression(self, src: Cursor) -> ParseResult:
        with self._ctx.descend(src):
            return self._parse_expression_inner(src)

    def _parse_expression_inner(self, src: Cursor) -> ParseResult:
        c = src.peek()
        code = src.peek(2)

        if c == "L":
            return self._parse_expr_primary(src)
        if c == "T":
            return self._parse_template_param(src)
        if code in ("fp", "fL"):
            return self._parse_function_param(src)

        is_global = False
        if code == "gs":
            is_global, src = True, src.advance(2)
            code = src.peek(2)
        if code in ("nw", "na"):
            return self._parse_new_expression(src.advance(2), is_global, code == "na")
        if code in ("dl", "da"):
            operand, src = self._parse_expression(src.advance(2))
            return DeleteExpr(operand, is_global, code == "da"), src
        if is_global:
            return self._parse_unresolved_name(src, is_global=True)

        if code in ("pp", "mm") and src.peek(1, 2) == "_":
            operand, src = self._parse_expression(src.advance(3))
            return UnaryExpr(Operator(Operator.Kind(code)), operand), src
        if code == "cl":
            callee, src = self._parse_expression(src.advance(2))
            args, src = self._parse_expressions_until(src, "E")
            return CallExpr(callee, args), src
        if code == "cv":
            type_, src = self._parse_type(src.advance(2))
            if src.peek() == "_":
                args, src = self._parse_expressions_until(src.advance(1), "E")
                return ConversionExpr(type_, args, is_list=True), src
            operand, src = self._parse_expression(src)
            return ConversionExpr(type_, (operand,)), src
        if code == "tl":
            type_, src = self._parse_type(src.advance(2))
            items, src = self._parse_expressions_until(src, "E")
            return BracedInitExpr(type_, items), src
        if code == "il":
            items, src = self._parse_expressions_until(src.advance(2), "E")
            return BracedInitExpr(None, items), src
        if code in _CAST_KEYWORDS:
            type_, src = self._parse_type(src.advance(2))
            operand, src = self._parse_expression(src)
            return CastExpr(_CAST_KEYWORDS[code], type_, operand), src
        if code in _TYPE_KEYWORDS:
            type_, src = self._parse_type(src.advance(2))
            return KeywordTypeExpr(_TYPE_KEYWORDS[code], type_), src
        if code in _EXPR_KEYWORDS:
            operand, src = self._parse_expression(src.advance(2))
            return KeywordExpr(_EXPR_KEYWORDS[code], operand), src
        if code == "sZ":
            src = src.advance(2)
            if src.peek() == "T":
                target, src = self._parse_template_param(src)
            else:
                target, src = self._parse_function_param(src)
            return SizeofPackExpr(target), src
        if code == "sP":
            src = src.advance(2)
            args = []
            while src.peek() != "E":
                if src.is_empty():
                    raise src.unexpected("a template argument", _GRAMMAR_CODES)
                arg, src = self._parse_template_arg(src)
                args.append(arg)
            return SizeofPackExpr(ArgPack(tuple(args))), src.advance(1)
        if code == "tw":
            operand, src = self._parse_expression(src.advance(2))
            return ThrowExpr(operand), src
        if code == "tr":
            return ThrowExpr(), src.advance(2)
        if code in ("dt", "pt"):
            target, src = self._parse_expression(src.advance(2))
            member, src = self._parse_unresolved_name(src)
            return MemberExpr(target, _MEMBER_ACCESS[code], member), src
        if code == "ds":
            target, src = self._parse_expression(src.advance(2))
            member, src = self._parse_expression(src)
            return MemberExpr(target, _MEMBER_ACCESS[code], member), src
        if code == "sp":
            operand, src = self._parse_expression(src.advance(2))
            return PackExpansionExpr(operand), src
        if code in ("sr", "on", "dn") or c.isdigit():
            return self._parse_unresolved_name(src)

        if c == "v" and src.peek(1, 1).isdigit():
            operator, src = self._parse_operator_name(src)
            operands = []
            for _ in range(operator.arity):
                operand, src = self._parse_expression(src)
                operands.append(operand)
            return VendorExpr(operator, tuple(operands)), src

        operator = Operator.peek(src)
        if operator is None:
            raise src.unexpected("an expression", _GRAMMAR_CODES)
        src = src.advance(2)
        if operator.arity == 1:
            operand, src = self._parse_expression(src)
            if operator.kind in (Operator.Kind.INC, Operator.Kind.DEC):
                return PostfixExpr(operator, operand), src
            return UnaryExpr(operator, operand), src
        if operator.arity == 2:
            lhs, src = self._parse_expression(src)
            rhs, src = self._parse_expression(src)
            return BinaryExpr(operator, lhs, rhs), src
        condition, src = self._parse_expression(src)
        if_true, src = self._parse_expression(src)
        if_false, src = self._parse_expression(src)
        return TernaryExpr(condition, if_true, if_false), src

    def _parse_function_param(self, src: Cursor) -> ParseResult:
        """
        `fp <CV-qualifiers> [<number>] _` or
        `fL <number> p <CV-qualifiers> [<number>] _`
        """
        level = 0
        if src.peek(2) == "fL":
            level, src = read_number(src.advance(2), allow_negative=False)
            level += 1
            src = src.expect("p")
        else:
            src = src.expect("fp")
        cv_qualifiers, src = CvQualifiers.read(src)
        index, src = read_underscored_index(src)
        return FunctionParam(index + 1, level, cv_qualifiers), src

    def _parse_new_expression(self, src: Cursor, is_global: bool, is_array: bool) -> ParseResult:
        """
        `nw <expression>* _ <type> E` or `nw <expression>* _ <type> <initializer>`
        """
        placement, src = self._parse_expressions_until(src, "_")
        type_, src = self._parse_type(src)
        initializer = None
        if src.peek(2) == "pi":
            initializer, src = self._parse_expressions_until(src.advance(2), "E")
        elif src.peek(2) == "il":
            braced, src = self._parse_expression(src)
            initializer = (braced,)
        else:
            src = src.expect("E")
        return NewExpr(type_, placement, initializer, is_global, is_array), src

    def _parse_simple_id(self, src: Cursor) -> ParseResult:
        name, src = self._parse_source_name(src)
        args = None
        if src.peek() == "I":
            args, src = self._parse_template_args(src)
        return SimpleId(name, args), src

    def _parse_unresolved_type(self, src: Cursor) -> ParseResult:
        """
        `<unresolved-type> ::= <template-param> [<template-args>] | <decltype>
        | <substitution>`
        """
        c = src.peek()
        if c == "T":
            param, src = self._parse_template_param(src)
            handle = self._insert(param)
            if src.peek() == "I":
                args, src = self._parse_template_args(src)
                return self._insert(TemplateTemplateParamType(handle, args)), src
            return handle, src
        if c == "D":
            decltype, src = self._parse_decltype(src)
            return self._insert(decltype), src
        if c == "S":
            return self._parse_substitution(src)
        raise src.unexpected("an unresolved type", _GRAMMAR_CODES)

    def _parse_base_unresolved_name(self, src: Cursor) -> ParseResult:
        """
        `<base-unresolved-name> ::= <simple-id> | on <operator-name>
        [<template-args>] | dn <destructor-name>`
        """
        code = src.peek(2)
        if code == "on":
            name, src = self._parse_operator_name(src.advance(2))
            args = None
            if src.peek() == "I":
                args, src = self._parse_template_args(src)
            return OperatorId(name, args), src
        if code == "dn":
            src = src.advance(2)
            if src.peek().isdigit():
                target, src = self._parse_simple_id(src)
            else:
                target, src = self._parse_unresolved_type(src)
            return DestructorId(target), src
        if src.peek().isdigit():
            return self._parse_simple_id(src)
        # Old GCC emits bare operator names here.
        name, src = self._parse_operator_name(src)
        return OperatorId(name), src

    def _parse_unresolved_name(self, src: Cursor, is_global: bool = False) -> ParseResult:
        """
        `<unresolved-name>`: a name that depends on a template parameter.
        """
        if src.peek(2) != "sr":
            base, src = self._parse_base_unresolved_name(src)
            return UnresolvedName(base, is_global=is_global), src

        src = src.advance(2)
        if src.peek() == "N":
            qualifier, src = self._parse_unresolved_type(src.advance(1))
            levels = []
            while src.peek() != "E":
                level, src = self._parse_simple_id(src)
                levels.append(level)
            base, src = self._parse_base_unresolved_name(src.advance(1))
            return UnresolvedName(base, qualifier, tuple(levels), is_global), src

        if src.peek().isdigit():
            ids = []
            while src.peek().isdigit():
                level, src = self._parse_simple_id(src)
                ids.append(level)
            if src.peek() == "E":
                base, src = self._parse_base_unresolved_name(src.advance(1))
                return UnresolvedName(base, None, tuple(ids), is_global), src
            # Old GCC omits the `E` when the scope is a single class name.
            if len(ids) == 1:
                base, src = self._parse_base_unresolved_name(src)
                return UnresolvedName(base, None, tuple(ids), is_global), src
            return UnresolvedName(ids[-1], None, tuple(ids[:-1]), is_global), src

        qualifier, src = self._parse_unresolved_type(src)
        base, src = self._parse_base_unresolved_name(src)
        return UnresolvedName(base, qualifier, (), is_global), src


def _as_text(raw: Union[str, bytes]) -> str:
    if isinstance(raw, bytes):
        return raw.decode("latin-1")
    return raw


def parse_with_tail(
    raw: Union[str, bytes], options: Optional[DemangleOptions] = None
) -> tuple[Symbol, Union[str, bytes]]:
    """
    Parse a mangled symbol from the start of `raw`, returning it together with
    whatever input follows it. The tail has the same type as `raw`.
    """
    options = options or DEFAULT_OPTIONS
    text = _as_text(raw)
    demangler = ItaniumDemangler(text, options)
    root, rest = demangler.parse()
    log.debug(
        "Parsed %r with %d substitutions: %r", text, len(demangler.subs), root
    )

    symbol = Symbol(text, demangler.subs, root, options)
    tail = raw[rest.offset :]
    return symbol, tail


def parse(raw: Union[str, bytes], options: Optional[DemangleOptions] = None) -> Symbol:
    """
    Parse a complete mangled symbol. Fails if any input is left over.
    """
    symbol, tail = parse_with_tail(raw, options)
    if tail:
        raise UnexpectedTrailingBytes(
            f"Unexpected trailing input {tail!r}", len(raw) - len(tail)
        )
    return symbol


def demangle(raw: Union[str, bytes], options: Optional[DemangleOptions] = None) -> str:
    """
    Convenience function which demangles a symbol, or returns the symbol
    unchanged if it couldn't be demangled.
    """
    try:
        return parse(raw, options).demangle()
    except DemangleError as e:
        log.debug("Unable to demangle %r: %s", raw, e)
        return _as_text(raw)
