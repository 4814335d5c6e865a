"""
Module implementing the abstract syntax tree of an Itanium-mangled symbol.

There is one frozen dataclass per grammar production. Nodes never point at
substitutable entities directly: wherever a type or prefix may have been
entered into the substitution table, the node stores a `BackReference` index
(or a `WellKnownComponent`, or a non-substitutable builtin inline) and the
renderer resolves it on demand. A parsed tree therefore never forms a cycle
and two parses of the same input compare equal.

Handles used in field annotations:
- a "type handle" is a `BackReference`, a `WellKnownComponent`, a
  `BuiltinType` or a `VendorBuiltinType`;
- a "prefix handle" is a `BackReference`, a `WellKnownComponent`, or (only
  for the final component of a nested name) a prefix node inline.
"""

from dataclasses import dataclass
from typing import Optional, Union

from itanium_abi_demangler.token import (
    CtorDtor,
    CvQualifiers,
    Operator,
    RefQualifier,
    Special,
    StandardBuiltin,
    WellKnownComponent,
)


@dataclass(frozen=True)
class BackReference:
    """
    A reference to entry `index` of the substitution table.
    """

    index: int


@dataclass(frozen=True)
class Identifier:
    """
    A span of the raw input, used for identifiers and literal text so that
    nodes don't copy the mangled string.
    """

    start: int
    end: int

    def text(self, raw: str) -> str:
        return raw[self.start : self.end]


# Names
# -----


@dataclass(frozen=True)
class SourceName:
    """
    `<source-name> ::= <positive length number> <identifier>`
    """

    identifier: Identifier


@dataclass(frozen=True)
class LocalSourceName:
    """
    `L <source-name> [<discriminator>]`, a name with internal linkage.
    """

    name: SourceName
    discriminator: Optional[int] = None


@dataclass(frozen=True)
class OperatorName:
    operator: Operator


@dataclass(frozen=True)
class ConversionOperatorName:
    """
    `cv <type>`, rendered as `operator <type>`.
    """

    type: object


@dataclass(frozen=True)
class LiteralOperatorName:
    """
    `li <source-name>`, a user-defined literal operator.
    """

    name: SourceName


@dataclass(frozen=True)
class VendorOperatorName:
    """
    `v <digit> <source-name>`, a vendor extended operator.
    """

    arity: int
    name: SourceName


@dataclass(frozen=True)
class CtorDtorName:
    """
    A constructor or destructor. Inheriting constructors carry the type of the
    base class they inherit from.
    """

    code: CtorDtor
    inherited_type: Optional[object] = None


@dataclass(frozen=True)
class UnnamedTypeName:
    """
    `Ut [<number>] _`, rendered `{unnamed type#N}`.
    """

    number: Optional[int] = None


@dataclass(frozen=True)
class ClosureTypeName:
    """
    `Ul <lambda-sig> E [<number>] _`, rendered `{lambda(args)#N}`.
    """

    signature: tuple
    number: Optional[int] = None


@dataclass(frozen=True)
class AbiTaggedName:
    """
    An unqualified name followed by one or more `B <source-name>` ABI tags.
    """

    name: object
    tags: tuple[SourceName, ...]


UnqualifiedName = Union[
    SourceName,
    LocalSourceName,
    OperatorName,
    ConversionOperatorName,
    LiteralOperatorName,
    VendorOperatorName,
    CtorDtorName,
    UnnamedTypeName,
    ClosureTypeName,
    AbiTaggedName,
]


@dataclass(frozen=True)
class UnscopedName:
    """
    `<unscoped-name> ::= <unqualified-name> | St <unqualified-name>`
    """

    name: UnqualifiedName
    is_std: bool = False


@dataclass(frozen=True)
class UnscopedTemplateName:
    """
    An unscoped name used as a template, as stored in the substitution table.
    """

    name: UnscopedName


@dataclass(frozen=True)
class UnscopedTemplate:
    """
    `<unscoped-template-name> <template-args>`. `template` is a back reference
    to an `UnscopedTemplateName` entry or a well-known component.
    """

    template: Union[BackReference, WellKnownComponent]
    args: "TemplateArgs"


@dataclass(frozen=True)
class NestedName:
    """
    `N [<CV-qualifiers>] [<ref-qualifier>] <prefix> E`

    `prefix` is the final prefix node of the chain, held inline because the
    complete nested name is not itself a substitution candidate.
    """

    prefix: object
    cv_qualifiers: CvQualifiers = CvQualifiers()
    ref_qualifier: Optional[RefQualifier] = None


@dataclass(frozen=True)
class LocalName:
    """
    `Z <function encoding> E <entity name> [<discriminator>]`
    """

    encoding: object
    entity: object
    discriminator: Optional[int] = None


@dataclass(frozen=True)
class LocalStringLiteral:
    """
    `Z <function encoding> E s [<discriminator>]`
    """

    encoding: object
    discriminator: Optional[int] = None


@dataclass(frozen=True)
class DefaultArgLocalName:
    """
    `Z <function encoding> Ed [<number>] _ <entity name>`, an entity declared
    inside a default argument.
    """

    encoding: object
    param: Optional[int]
    entity: object


Name = Union[
    NestedName,
    UnscopedName,
    UnscopedTemplate,
    LocalName,
    LocalStringLiteral,
    DefaultArgLocalName,
]


# Prefixes: every one of these except the last in a nested name is entered
# into the substitution table.


@dataclass(frozen=True)
class PrefixName:
    """
    `<prefix> <unqualified-name>`; `prefix` is `None` for the first component.
    """

    prefix: Optional[object]
    name: UnqualifiedName


@dataclass(frozen=True)
class PrefixTemplate:
    """
    `<template-prefix> <template-args>`
    """

    prefix: object
    args: "TemplateArgs"


@dataclass(frozen=True)
class PrefixTemplateParam:
    param: "TemplateParam"


@dataclass(frozen=True)
class PrefixDecltype:
    decltype: "Decltype"


# Types
# -----


@dataclass(frozen=True)
class BuiltinType:
    builtin: StandardBuiltin


@dataclass(frozen=True)
class VendorBuiltinType:
    """
    `u <source-name>`, a vendor extended builtin type.
    """

    name: SourceName


@dataclass(frozen=True)
class QualifiedType:
    cv_qualifiers: CvQualifiers
    type: object


@dataclass(frozen=True)
class VendorQualifiedType:
    """
    `U <source-name> [<template-args>] <type>`, a vendor extended qualifier.
    """

    name: SourceName
    args: Optional["TemplateArgs"]
    type: object


@dataclass(frozen=True)
class PointerType:
    type: object


@dataclass(frozen=True)
class LvalueReferenceType:
    type: object


@dataclass(frozen=True)
class RvalueReferenceType:
    type: object


@dataclass(frozen=True)
class ComplexPairType:
    type: object


@dataclass(frozen=True)
class ImaginaryType:
    type: object


@dataclass(frozen=True)
class FunctionType:
    """
    `[<CV-qualifiers>] [Dx] F [Y] <return type> <parameter types> [<ref-qualifier>] E`
    """

    return_type: object
    params: tuple
    cv_qualifiers: CvQualifiers = CvQualifiers()
    ref_qualifier: Optional[RefQualifier] = None
    is_noexcept: bool = False
    is_extern_c: bool = False


@dataclass(frozen=True)
class ArrayType:
    """
    `A [<number> | <expression>] _ <element type>`. `dimension` is an `int`,
    an expression node, or `None` for an array of unknown bound.
    """

    dimension: Union[int, object, None]
    element: object


@dataclass(frozen=True)
class VectorType:
    """
    `Dv <number> _ <element type>` or `Dv _ <expression> _ <element type>`.
    """

    dimension: Union[int, object]
    element: object


@dataclass(frozen=True)
class PointerToMemberType:
    class_type: object
    member_type: object


@dataclass(frozen=True)
class TemplateParam:
    """
    `T_` (index 0) or `T <number> _` (index number + 1).
    """

    index: int


@dataclass(frozen=True)
class TemplateTemplateParamType:
    """
    `<template-template-param> <template-args>`; `param` is a back reference
    to the `TemplateParam` entry that names the template.
    """

    param: object
    args: "TemplateArgs"


@dataclass(frozen=True)
class Decltype:
    """
    `Dt <expression> E` (id-expression) or `DT <expression> E`.
    """

    expression: object
    is_id_expression: bool


@dataclass(frozen=True)
class PackExpansionType:
    """
    `Dp <type>`
    """

    type: object


@dataclass(frozen=True)
class ClassEnumType:
    """
    A class or enum named by `<name>`, optionally elaborated with `Ts`, `Tu`
    or `Te` (struct, union, enum).
    """

    name: Name
    elaborated: Optional[str] = None


# Template arguments
# ------------------


@dataclass(frozen=True)
class TemplateArgs:
    """
    `I <template-arg>+ E`. Each argument is a type handle, an `ExpressionArg`,
    an `<expr-primary>` node or an `ArgPack`.
    """

    args: tuple


@dataclass(frozen=True)
class ExpressionArg:
    """
    `X <expression> E`
    """

    expression: object


@dataclass(frozen=True)
class ArgPack:
    """
    `J <template-arg>* E`
    """

    args: tuple


# Expressions
# -----------


@dataclass(frozen=True)
class UnaryExpr:
    operator: Operator
    operand: object


@dataclass(frozen=True)
class PostfixExpr:
    """
    `pp <expression>` / `mm <expression>`, postfix increment or decrement.
    """

    operator: Operator
    operand: object


@dataclass(frozen=True)
class BinaryExpr:
    operator: Operator
    lhs: object
    rhs: object


@dataclass(frozen=True)
class TernaryExpr:
    condition: object
    if_true: object
    if_false: object


@dataclass(frozen=True)
class VendorExpr:
    """
    An expression built from a vendor extended operator.
    """

    operator: VendorOperatorName
    operands: tuple


@dataclass(frozen=True)
class CallExpr:
    callee: object
    args: tuple


@dataclass(frozen=True)
class ConversionExpr:
    """
    `cv <type> <expression>` or, when `is_list` is set,
    `cv <type> _ <expression>* E`.
    """

    type: object
    args: tuple
    is_list: bool = False


@dataclass(frozen=True)
class BracedInitExpr:
    """
    `tl <type> <braced-expression>* E` or `il <braced-expression>* E`.
    """

    type: Optional[object]
    items: tuple


@dataclass(frozen=True)
class CastExpr:
    """
    `dc`, `sc`, `cc` or `rc` followed by a type and an expression.
    """

    keyword: str
    type: object
    expression: object


@dataclass(frozen=True)
class KeywordTypeExpr:
    """
    `typeid (type)`, `sizeof (type)`, `alignof (type)`.
    """

    keyword: str
    type: object


@dataclass(frozen=True)
class KeywordExpr:
    """
    `typeid (expr)`, `sizeof (expr)`, `alignof (expr)`, `noexcept (expr)`.
    """

    keyword: str
    expression: object


@dataclass(frozen=True)
class SizeofPackExpr:
    """
    `sZ <template-param>` / `sZ <function-param>`, or `sP <template-arg>* E`.
    """

    target: object


@dataclass(frozen=True)
class ThrowExpr:
    """
    `tw <expression>`, or a rethrow (`tr`) when `expression` is `None`.
    """

    expression: Optional[object] = None


@dataclass(frozen=True)
class MemberExpr:
    """
    `dt` (`.`), `pt` (`->`) or `ds` (`.*`) member access.
    """

    target: object
    operator: str
    member: object


@dataclass(frozen=True)
class PackExpansionExpr:
    expression: object


@dataclass(frozen=True)
class NewExpr:
    """
    `[gs] nw <expression>* _ <type> [pi <expression>* | E]`, also `na`.
    """

    type: object
    placement: tuple = ()
    initializer: Optional[tuple] = None
    is_global: bool = False
    is_array: bool = False


@dataclass(frozen=True)
class DeleteExpr:
    expression: object
    is_global: bool = False
    is_array: bool = False


@dataclass(frozen=True)
class FunctionParam:
    """
    `fp [<CV-qualifiers>] [<number>] _` or `fL ...`; `index` is 1-based.
    """

    index: int
    level: int = 0
    cv_qualifiers: CvQualifiers = CvQualifiers()


@dataclass(frozen=True)
class SimpleId:
    """
    `<source-name> [<template-args>]`
    """

    name: SourceName
    args: Optional[TemplateArgs] = None


@dataclass(frozen=True)
class OperatorId:
    """
    `on <operator-name> [<template-args>]`
    """

    name: UnqualifiedName
    args: Optional[TemplateArgs] = None


@dataclass(frozen=True)
class DestructorId:
    """
    `dn <unresolved-type>` or `dn <simple-id>`.
    """

    target: object


@dataclass(frozen=True)
class UnresolvedName:
    """
    `[gs] [sr <unresolved-type>] [<qualifier levels>] <base-unresolved-name>`

    `qualifier` is the unresolved type (a type handle) or `None`; `levels` is
    a tuple of `SimpleId`s naming further scopes.
    """

    base: object
    qualifier: Optional[object] = None
    levels: tuple = ()
    is_global: bool = False


@dataclass(frozen=True)
class LiteralExpr:
    """
    `L <type> <value number> E`. `value` spans the literal text (including
    the `n` sign marker) or is `None` for a literal without a value.
    """

    type: object
    value: Optional[Identifier]


@dataclass(frozen=True)
class MangledNameExpr:
    """
    `L _Z <encoding> E`, an external name used as a template argument.
    """

    encoding: object


# Encodings and special names
# ---------------------------


@dataclass(frozen=True)
class FunctionEncoding:
    """
    `<name> <bare-function-type>`. `return_type` is only present for template
    functions that aren't constructors, destructors or conversion operators.
    """

    name: Name
    params: tuple
    return_type: Optional[object] = None


@dataclass(frozen=True)
class DataEncoding:
    name: Name


@dataclass(frozen=True)
class CallOffset:
    """
    `h <nv-offset> _` (virtual offset `None`) or `v <offset> _ <v-offset> _`.
    """

    offset: int
    virtual_offset: Optional[int] = None


@dataclass(frozen=True)
class SpecialTypeName:
    """
    `TV`, `TT`, `TI` and `TS` followed by a type.
    """

    special: Special
    type: object


@dataclass(frozen=True)
class SpecialEntityName:
    """
    `TH`, `TW`, `GV` and `GR` followed by a name. Reference temporaries carry
    their sequence number.
    """

    special: Special
    name: Name
    number: Optional[int] = None


@dataclass(frozen=True)
class ThunkName:
    """
    `Th`, `Tv` and `Tc` followed by call offsets and the target encoding.
    """

    special: Special
    offsets: tuple[CallOffset, ...]
    encoding: object


@dataclass(frozen=True)
class ConstructionVtable:
    """
    `TC <derived type> <number> _ <base type>`
    """

    derived: object
    offset: int
    base: object


@dataclass(frozen=True)
class TransactionClone:
    special: Special
    encoding: object


@dataclass(frozen=True)
class CloneSuffix:
    """
    A `.suffix[.N]*` appended by the compiler to a cloned function.
    """

    identifier: Identifier


@dataclass(frozen=True)
class MangledName:
    """
    `_Z <encoding> [<clone-suffix>]*`
    """

    encoding: object
    clone_suffixes: tuple[CloneSuffix, ...] = ()


@dataclass(frozen=True)
class GlobalCtorDtor:
    """
    `_GLOBAL__I_<mangled-name>` / `_GLOBAL__D_<mangled-name>`
    """

    is_ctor: bool
    mangled: MangledName


def unwrap_abi_tags(name):
    """
    Strip any ABI tags from an unqualified name.
    """
    while isinstance(name, AbiTaggedName):
        name = name.name
    return name
