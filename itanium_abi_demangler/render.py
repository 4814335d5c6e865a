"""
Renderer turning a parsed symbol back into C++ source text.

Types are rendered declarator-first: each type constructor receives the text
of everything that wraps it (its "declarator") and hands a new declarator to
its inner type, so `int (*) [3]` and `void (foo::*)() const` come out in C++
order without a separate layout pass.
"""

from contextlib import contextmanager
from dataclasses import fields, is_dataclass
from typing import Optional

from itanium_abi_demangler.cxx import (
    AbiTaggedName,
    ArgPack,
    ArrayType,
    BackReference,
    BinaryExpr,
    BracedInitExpr,
    BuiltinType,
    CallExpr,
    CastExpr,
    ClassEnumType,
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
    FormattingError,
    InvalidBackReference,
    InvalidTemplateArgReference,
    RecursionLimitExceeded,
)
from itanium_abi_demangler.options import DEFAULT_OPTIONS, DemangleOptions
from itanium_abi_demangler.subs import SubstitutionTable
from itanium_abi_demangler.token import Operator, Special, StandardBuiltin, WellKnownComponent

# Expressions that need parentheses when they appear as an operand.
_COMPOUND_EXPRESSIONS = (UnaryExpr, PostfixExpr, BinaryExpr, TernaryExpr, ConversionExpr)
# Template arguments that aren't types.
_NON_TYPE_ARGS = (ArgPack, ExpressionArg, LiteralExpr, MangledNameExpr)


def _join(base: str, decl: str) -> str:
    """
    Attach a declarator to the name of the type it declares.
    """
    if not decl:
        return base
    if decl[0] in "*& ":
        return base + decl
    return f"{base} {decl}"


def _prepend(text: str, decl: str) -> str:
    """
    Put `text` in front of a declarator, keeping an array declarator visually
    separate: `int* (*) [3]` and `int const [3]`, but `int (*(*)())()`.
    """
    if decl and (decl[0] == "[" or decl[-1] == "]"):
        return f"{text} {decl}"
    return text + decl


def _is_anonymous_namespace(text: str) -> bool:
    return len(text) > 9 and text.startswith("_GLOBAL_") and text[8] in "._$" and text[9] == "N"


class RenderContext:
    """
    Mutable state for one rendering pass over a symbol.
    """

    def __init__(self, subs: SubstitutionTable, raw: str, options: DemangleOptions):
        self.subs = subs
        self.raw = raw
        self.options = options
        # Rendering may re-enter a table entry legitimately only through
        # another entry; the indices being rendered right now must never
        # recur.
        self.rendering: set[int] = set()
        self.resolving_params: set[int] = set()
        self.depth = 0
        self.limit = 2 * options.recursion_limit
        self.steps = 0
        self.step_limit = options.render_budget * max(len(raw), 16)
        self.template_args: Optional[TemplateArgs] = None
        self.pack_index: Optional[int] = None
        self.in_lambda_signature = False


class Renderer:
    """
    Renders AST nodes produced by `ItaniumDemangler` to strings.
    """

    def __init__(self, ctx: RenderContext):
        self.ctx = ctx

    # Context management
    # ------------------

    @contextmanager
    def _descend(self):
        ctx = self.ctx
        if ctx.depth >= ctx.limit:
            raise RecursionLimitExceeded(f"Rendering nests deeper than {ctx.limit} levels")
        ctx.steps += 1
        if ctx.steps > ctx.step_limit:
            raise RecursionLimitExceeded(
                f"Rendering takes more than {ctx.step_limit} steps for {len(ctx.raw)} characters"
            )
        ctx.depth += 1
        try:
            yield
        finally:
            ctx.depth -= 1

    @contextmanager
    def _resolving(self, ref: BackReference):
        """
        Look up a table entry, marking it as being rendered for the duration.
        """
        ctx = self.ctx
        if ref.index in ctx.rendering:
            raise FormattingError(f"Substitution {ref.index} refers back to itself")
        try:
            node = ctx.subs.get(ref.index)
        except InvalidBackReference as e:
            raise FormattingError(str(e)) from e

        ctx.rendering.add(ref.index)
        try:
            yield node
        finally:
            ctx.rendering.discard(ref.index)

    @contextmanager
    def _template_scope(self, args: Optional[TemplateArgs]):
        ctx = self.ctx
        saved = ctx.template_args
        if args is not None:
            ctx.template_args = args
        try:
            yield
        finally:
            ctx.template_args = saved

    @contextmanager
    def _pack_element(self, index: Optional[int]):
        ctx = self.ctx
        saved = ctx.pack_index
        ctx.pack_index = index
        try:
            yield
        finally:
            ctx.pack_index = saved

    def _lookup(self, handle):
        """
        Resolve a handle for inspection only, without rendering it.
        """
        seen = 0
        while isinstance(handle, BackReference) and seen <= len(self.ctx.subs):
            handle = self.ctx.subs.get(handle.index)
            seen += 1
        return handle

    def _lookup_type(self, handle):
        """
        Like `_lookup`, but also see through template parameters that stand
        for a type.
        """
        for _ in range(self.ctx.limit):
            handle = self._lookup(handle)
            if not isinstance(handle, TemplateParam):
                break
            arg = self._lookup_template_arg(handle)
            if arg is None or isinstance(arg, _NON_TYPE_ARGS):
                break
            handle = arg
        return handle

    # Top level and encodings
    # -----------------------

    def render_root(self, root) -> str:
        if isinstance(root, GlobalCtorDtor):
            kind = "constructors" if root.is_ctor else "destructors"
            return f"global {kind} keyed to {self.render_root(root.mangled)}"
        if isinstance(root, MangledName):
            encoding = root.encoding
            if isinstance(encoding, FunctionEncoding) and not self.ctx.options.show_params:
                with self._template_scope(self._template_args_of(encoding.name)):
                    text = self.render_name(encoding.name)
            else:
                text = self.render_encoding(encoding)
            for suffix in root.clone_suffixes:
                text += f" [clone {suffix.identifier.text(self.ctx.raw)}]"
            return text
        return self.render_encoding(root)

    def render_encoding(self, encoding) -> str:
        with self._descend():
            if isinstance(encoding, FunctionEncoding):
                return self._render_function_encoding(encoding)

            if isinstance(encoding, DataEncoding):
                with self._template_scope(self._template_args_of(encoding.name)):
                    return self.render_name(encoding.name)

            if isinstance(encoding, SpecialTypeName):
                return encoding.special.prefix() + self.render_type(encoding.type)

            if isinstance(encoding, SpecialEntityName):
                name = self.render_name(encoding.name)
                if encoding.special.kind == Special.Kind.REFERENCE_TEMPORARY:
                    number = encoding.number if encoding.number is not None else 0
                    return f"{encoding.special.prefix()}{number} for {name}"
                return encoding.special.prefix() + name

            if isinstance(encoding, (ThunkName, TransactionClone)):
                return encoding.special.prefix() + self.render_encoding(encoding.encoding)

            if isinstance(encoding, ConstructionVtable):
                base = self.render_type(encoding.base)
                derived = self.render_type(encoding.derived)
                return f"construction vtable for {base}-in-{derived}"

        raise FormattingError(f"Unexpected node in encoding position: {encoding!r}")

    def _render_function_encoding(self, encoding: FunctionEncoding) -> str:
        with self._template_scope(self._template_args_of(encoding.name)):
            text = self.render_name(encoding.name)
            text += f"({self._render_params(encoding.params)})"
            text += self._member_qualifiers(encoding.name)

            if encoding.return_type is None:
                return text
            if self._wraps_declarator(encoding.return_type):
                return self.render_type(encoding.return_type, text)
            return f"{self.render_type(encoding.return_type)} {text}"

    def _wraps_declarator(self, handle) -> bool:
        """
        Whether a return type has to be written around the function's name,
        as in `int (*f<int>()) [3]`.
        """
        node = self._lookup(handle)
        wrapped = False
        for _ in range(self.ctx.limit):
            if isinstance(node, (PointerType, LvalueReferenceType, RvalueReferenceType)):
                node, wrapped = self._lookup(node.type), True
            elif isinstance(node, PointerToMemberType):
                node, wrapped = self._lookup(node.member_type), True
            elif isinstance(node, QualifiedType):
                node = self._lookup(node.type)
            else:
                return wrapped and isinstance(node, (FunctionType, ArrayType))
        return False

    def _member_qualifiers(self, name) -> str:
        if isinstance(name, NestedName):
            text = str(name.cv_qualifiers)
            if name.ref_qualifier is not None:
                text += str(name.ref_qualifier)
            return text
        if isinstance(name, (LocalName, DefaultArgLocalName)):
            return self._member_qualifiers(name.entity)
        return ""

    def _template_args_of(self, name) -> Optional[TemplateArgs]:
        """
        The template arguments that `T_` parameters in an encoding refer to:
        those of the innermost template in its name.
        """
        if isinstance(name, UnscopedTemplate):
            return name.args
        if isinstance(name, (LocalName, DefaultArgLocalName)):
            return self._template_args_of(name.entity)
        if not isinstance(name, NestedName):
            return None

        prefix = name.prefix
        for _ in range(len(self.ctx.subs) + 1):
            node = self._lookup(prefix)
            if isinstance(node, PrefixTemplate):
                return node.args
            if not isinstance(node, PrefixName) or node.prefix is None:
                return None
            prefix = node.prefix
        return None

    def _render_params(self, params: tuple) -> str:
        if len(params) == 1:
            only = params[0]
            if isinstance(only, BuiltinType) and only.builtin.is_void():
                return ""
        rendered = [self.render_type(param) for param in params]
        return ", ".join(text for text in rendered if text)

    # Names
    # -----

    def render_name(self, name) -> str:
        with self._descend():
            if isinstance(name, NestedName):
                return self.render_prefix(name.prefix)
            if isinstance(name, UnscopedName):
                return self._render_unscoped(name)
            if isinstance(name, UnscopedTemplate):
                template = self.render_prefix(name.template)
                return template + self.render_template_args(name.args, template)
            if isinstance(name, LocalName):
                return f"{self.render_encoding(name.encoding)}::{self.render_name(name.entity)}"
            if isinstance(name, LocalStringLiteral):
                return f"{self.render_encoding(name.encoding)}::string literal"
            if isinstance(name, DefaultArgLocalName):
                number = 1 if name.param is None else name.param + 2
                encoding = self.render_encoding(name.encoding)
                return f"{encoding}::{{default arg#{number}}}::{self.render_name(name.entity)}"
        raise FormattingError(f"Unexpected node in name position: {name!r}")

    def _render_unscoped(self, name: UnscopedName) -> str:
        text = self.render_unqualified(name.name, None)
        return f"std::{text}" if name.is_std else text

    def render_prefix(self, handle, expand_well_known: bool = False) -> str:
        """
        Render a prefix chain. `expand_well_known` spells out abbreviations
        like `std::string` in full, as done when they scope another name.
        """
        if isinstance(handle, BackReference):
            with self._resolving(handle) as node:
                return self.render_prefix(node, expand_well_known)
        if isinstance(handle, WellKnownComponent):
            return handle.full_name() if expand_well_known else handle.short_name()

        with self._descend():
            if isinstance(handle, PrefixName):
                text = self.render_unqualified(handle.name, handle.prefix)
                if handle.prefix is None:
                    return text
                return f"{self.render_prefix(handle.prefix, expand_well_known=True)}::{text}"
            if isinstance(handle, PrefixTemplate):
                text = self.render_prefix(handle.prefix)
                return text + self.render_template_args(handle.args, text)
            if isinstance(handle, PrefixTemplateParam):
                return self.render_type(handle.param)
            if isinstance(handle, PrefixDecltype):
                return self.render_type(handle.decltype)
            if isinstance(handle, UnscopedTemplateName):
                return self._render_unscoped(handle.name)
            # A type entry used as a scope.
            return self.render_type(handle)

    def _source_text(self, name: SourceName) -> str:
        text = name.identifier.text(self.ctx.raw)
        if _is_anonymous_namespace(text):
            return "(anonymous namespace)"
        return text

    def render_unqualified(self, name, scope) -> str:
        """
        Render an unqualified name. `scope` is the prefix it appears in, which
        constructors and destructors take their class name from.
        """
        if isinstance(name, SourceName):
            return self._source_text(name)
        if isinstance(name, LocalSourceName):
            return self._source_text(name.name)
        if isinstance(name, OperatorName):
            return str(name.operator)
        if isinstance(name, ConversionOperatorName):
            return f"operator {self.render_type(name.type)}"
        if isinstance(name, LiteralOperatorName):
            return f'operator"" {self._source_text(name.name)}'
        if isinstance(name, VendorOperatorName):
            return f"operator {self._source_text(name.name)}"
        if isinstance(name, CtorDtorName):
            class_name = self._class_name(scope)
            return f"~{class_name}" if name.code.is_dtor() else class_name
        if isinstance(name, UnnamedTypeName):
            number = 1 if name.number is None else name.number + 2
            return f"{{unnamed type#{number}}}"
        if isinstance(name, ClosureTypeName):
            saved = self.ctx.in_lambda_signature
            self.ctx.in_lambda_signature = True
            try:
                params = self._render_params(name.signature)
            finally:
                self.ctx.in_lambda_signature = saved
            number = 1 if name.number is None else name.number + 2
            return f"{{lambda({params})#{number}}}"
        if isinstance(name, AbiTaggedName):
            text = self.render_unqualified(name.name, scope)
            return text + "".join(f"[abi:{self._source_text(tag)}]" for tag in name.tags)
        raise FormattingError(f"Unexpected unqualified name: {name!r}")

    def _class_name(self, scope) -> str:
        """
        The bare name of the class a constructor or destructor belongs to.
        """
        if scope is None:
            raise FormattingError("Constructor or destructor outside of a class")
        if isinstance(scope, BackReference):
            with self._resolving(scope) as node:
                return self._class_name(node)
        if isinstance(scope, WellKnownComponent):
            return scope.source_name()
        if isinstance(scope, PrefixName):
            name = unwrap_abi_tags(scope.name)
            if isinstance(name, LocalSourceName):
                name = name.name
            if isinstance(name, SourceName):
                return self._source_text(name)
            return self.render_unqualified(name, scope.prefix)
        if isinstance(scope, PrefixTemplate):
            return self._class_name(scope.prefix)
        if isinstance(scope, UnscopedTemplateName):
            return self.render_unqualified(unwrap_abi_tags(scope.name.name), None)
        return self.render_prefix(scope)

    # Template arguments
    # ------------------

    def render_template_args(self, args: TemplateArgs, preceding: str = "") -> str:
        """
        Render `<...>`. `preceding` is the text the list follows, so that
        `operator<` gets a space before its argument list.
        """
        with self._descend():
            rendered = [self.render_template_arg(arg) for arg in args.args]
        body = ", ".join(text for text in rendered if text)
        opener = " <" if preceding.endswith("<") else "<"
        if body.endswith(">") and self.ctx.options.separate_closing_angles:
            return f"{opener}{body} >"
        return f"{opener}{body}>"

    def render_template_arg(self, arg) -> str:
        if isinstance(arg, ArgPack):
            rendered = [self.render_template_arg(item) for item in arg.args]
            return ", ".join(text for text in rendered if text)
        if isinstance(arg, ExpressionArg):
            text = self.render_expression(arg.expression)
            if isinstance(arg.expression, (BinaryExpr, TernaryExpr)):
                return f"({text})"
            return text
        if isinstance(arg, (LiteralExpr, MangledNameExpr)):
            return self.render_expression(arg)
        return self.render_type(arg)

    def _lookup_template_arg(self, param: TemplateParam):
        args = self.ctx.template_args
        if args is None or param.index >= len(args.args):
            return None
        return args.args[param.index]

    def _render_template_param(self, param: TemplateParam, decl: str) -> str:
        arg = self._lookup_template_arg(param)
        if arg is None:
            if self.ctx.in_lambda_signature:
                return _join(f"auto:{param.index + 1}", decl)
            raise InvalidTemplateArgReference(
                f"Template parameter {param.index} has no matching template argument"
            )

        if isinstance(arg, ArgPack) and self.ctx.pack_index is not None:
            if self.ctx.pack_index >= len(arg.args):
                raise FormattingError(f"Pack index {self.ctx.pack_index} out of range")
            arg = arg.args[self.ctx.pack_index]

        if param.index in self.ctx.resolving_params:
            raise FormattingError(f"Template parameter {param.index} refers to itself")
        self.ctx.resolving_params.add(param.index)
        try:
            return self._render_arg_as_type(arg, decl)
        finally:
            self.ctx.resolving_params.discard(param.index)

    def _render_arg_as_type(self, arg, decl: str) -> str:
        if isinstance(arg, ArgPack):
            rendered = [self._render_arg_as_type(item, decl) for item in arg.args]
            return ", ".join(text for text in rendered if text)
        if isinstance(arg, (ExpressionArg, LiteralExpr, MangledNameExpr)):
            return _join(self.render_template_arg(arg), decl)
        return self.render_type(arg, decl)

    def _pack_size(self, node, seen: set[int]) -> Optional[int]:
        """
        Find the length of the first argument pack a pack expansion refers to.
        """
        if isinstance(node, BackReference):
            if node.index in seen or node.index >= len(self.ctx.subs):
                return None
            seen.add(node.index)
            return self._pack_size(self.ctx.subs.get(node.index), seen)
        if isinstance(node, TemplateParam):
            arg = self._lookup_template_arg(node)
            return len(arg.args) if isinstance(arg, ArgPack) else None
        if isinstance(node, tuple):
            children = node
        elif is_dataclass(node) and not isinstance(node, type):
            children = tuple(getattr(node, field.name) for field in fields(node))
        else:
            return None

        for child in children:
            size = self._pack_size(child, seen)
            if size is not None:
                return size
        return None

    def _expand_pack(self, node, render_one) -> Optional[str]:
        """
        Render `node` once per element of the pack it refers to, or return
        `None` if it doesn't refer to one.
        """
        size = self._pack_size(node, set())
        if size is None:
            return None
        parts = []
        for index in range(size):
            with self._pack_element(index):
                parts.append(render_one())
        return ", ".join(part for part in parts if part)

    # Types
    # -----

    def render_type(self, handle, decl: str = "") -> str:
        """
        Render a type, attaching `decl` (the declarator text of whatever the
        type is nested in) where C++ syntax puts it.
        """
        if isinstance(handle, BackReference):
            with self._resolving(handle) as node:
                return self.render_type(node, decl)
        with self._descend():
            return self._render_type_node(handle, decl)

    def _render_type_node(self, node, decl: str) -> str:
        if isinstance(node, BuiltinType):
            return _join(str(node.builtin), decl)
        if isinstance(node, VendorBuiltinType):
            return _join(self._source_text(node.name), decl)
        if isinstance(node, WellKnownComponent):
            return _join(node.short_name(), decl)
        if isinstance(node, ClassEnumType):
            text = self.render_name(node.name)
            if node.elaborated:
                text = f"{node.elaborated} {text}"
            return _join(text, decl)

        if isinstance(node, QualifiedType):
            inner = self._lookup_type(node.type)
            if isinstance(inner, ArrayType):
                # Qualifiers on an array type belong to its elements.
                element = QualifiedType(node.cv_qualifiers, inner.element)
                return self.render_type(ArrayType(inner.dimension, element), decl)
            return self.render_type(node.type, _prepend(str(node.cv_qualifiers), decl))
        if isinstance(node, VendorQualifiedType):
            qualifier = f" {self._source_text(node.name)}"
            if node.args is not None:
                qualifier += self.render_template_args(node.args, qualifier)
            return self.render_type(node.type, _prepend(qualifier, decl))
        if isinstance(node, PointerType):
            return self.render_type(node.type, _prepend("*", decl))
        if isinstance(node, LvalueReferenceType):
            return self.render_type(node.type, _prepend("&", decl))
        if isinstance(node, RvalueReferenceType):
            return self.render_type(node.type, _prepend("&&", decl))
        if isinstance(node, ComplexPairType):
            return self.render_type(node.type, _prepend(" _Complex", decl))
        if isinstance(node, ImaginaryType):
            return self.render_type(node.type, _prepend(" _Imaginary", decl))

        if isinstance(node, FunctionType):
            suffix = f"({self._render_params(node.params)}){node.cv_qualifiers}"
            if node.ref_qualifier is not None:
                suffix += str(node.ref_qualifier)
            if node.is_noexcept:
                suffix += " noexcept"
            inner = f"({decl}){suffix}" if decl else suffix
            return self.render_type(node.return_type, inner)

        if isinstance(node, ArrayType):
            dimension = f"[{self._render_dimension(node.dimension)}]"
            if not decl:
                inner = dimension
            elif decl[0] == "[" or (decl[0] == "(" and decl[-1] == "]"):
                inner = decl + dimension
            else:
                inner = f"({decl}) {dimension}"
            return self.render_type(node.element, inner)

        if isinstance(node, VectorType):
            element = self.render_type(node.element)
            return _join(f"{element} __vector({self._render_dimension(node.dimension)})", decl)

        if isinstance(node, PointerToMemberType):
            class_type = self.render_type(node.class_type)
            return self.render_type(node.member_type, _prepend(f"{class_type}::*", decl))

        if isinstance(node, TemplateParam):
            return self._render_template_param(node, decl)
        if isinstance(node, TemplateTemplateParamType):
            template = self.render_type(node.param)
            return _join(template + self.render_template_args(node.args, template), decl)
        if isinstance(node, Decltype):
            return _join(f"decltype ({self.render_expression(node.expression)})", decl)

        if isinstance(node, PackExpansionType):
            expanded = self._expand_pack(node.type, lambda: self.render_type(node.type, decl))
            if expanded is not None:
                return expanded
            return self.render_type(node.type, decl) + "..."

        if isinstance(node, (PrefixName, PrefixTemplate, PrefixTemplateParam, PrefixDecltype)):
            return _join(self.render_prefix(node), decl)
        if isinstance(node, UnscopedTemplateName):
            return _join(self._render_unscoped(node.name), decl)

        raise FormattingError(f"Unexpected node in type position: {node!r}")

    def _render_dimension(self, dimension) -> str:
        if dimension is None:
            return ""
        if isinstance(dimension, int):
            return str(dimension)
        return self.render_expression(dimension)

    # Expressions
    # -----------

    def _operand(self, expression) -> str:
        text = self.render_expression(expression)
        if isinstance(expression, _COMPOUND_EXPRESSIONS):
            return f"({text})"
        return text

    def _render_list(self, expressions: tuple) -> str:
        return ", ".join(self.render_expression(expression) for expression in expressions)

    def render_expression(self, expression) -> str:
        with self._descend():
            return self._render_expression_node(expression)

    def _render_expression_node(self, expr) -> str:
        if isinstance(expr, LiteralExpr):
            return self._render_literal(expr)
        if isinstance(expr, MangledNameExpr):
            return self.render_encoding(expr.encoding)
        if isinstance(expr, FunctionParam):
            return f"{{parm#{expr.index}}}"

        if isinstance(expr, UnaryExpr):
            if expr.operator.kind == Operator.Kind.ADDRESS_OF and isinstance(
                expr.operand, MangledNameExpr
            ):
                encoding = expr.operand.encoding
                if isinstance(encoding, FunctionEncoding):
                    return "&" + self.render_name(encoding.name)
            return expr.operator.symbol + self._operand(expr.operand)
        if isinstance(expr, PostfixExpr):
            return self._operand(expr.operand) + expr.operator.symbol
        if isinstance(expr, BinaryExpr):
            lhs = self._operand(expr.lhs)
            if expr.operator.kind == Operator.Kind.INDEX:
                return f"{lhs}[{self.render_expression(expr.rhs)}]"
            return f"{lhs}{expr.operator.symbol}{self._operand(expr.rhs)}"
        if isinstance(expr, TernaryExpr):
            condition = self._operand(expr.condition)
            return f"{condition} ? {self._operand(expr.if_true)} : {self._operand(expr.if_false)}"
        if isinstance(expr, VendorExpr):
            name = self._source_text(expr.operator.name)
            return f"{name}({self._render_list(expr.operands)})"

        if isinstance(expr, CallExpr):
            return f"{self._operand(expr.callee)}({self._render_list(expr.args)})"
        if isinstance(expr, ConversionExpr):
            type_ = self.render_type(expr.type)
            if expr.is_list:
                return f"{type_}({self._render_list(expr.args)})"
            return f"({type_}){self._operand(expr.args[0])}"
        if isinstance(expr, BracedInitExpr):
            type_ = self.render_type(expr.type) if expr.type is not None else ""
            return f"{type_}{{{self._render_list(expr.items)}}}"
        if isinstance(expr, CastExpr):
            type_ = self.render_type(expr.type)
            return f"{expr.keyword}<{type_}>({self.render_expression(expr.expression)})"
        if isinstance(expr, KeywordTypeExpr):
            return f"{expr.keyword} ({self.render_type(expr.type)})"
        if isinstance(expr, KeywordExpr):
            return f"{expr.keyword} ({self.render_expression(expr.expression)})"
        if isinstance(expr, SizeofPackExpr):
            if isinstance(expr.target, ArgPack):
                target = self.render_template_arg(expr.target)
            else:
                target = self.render_expression(expr.target)
            return f"sizeof...({target})"
        if isinstance(expr, ThrowExpr):
            if expr.expression is None:
                return "throw"
            return f"throw {self.render_expression(expr.expression)}"
        if isinstance(expr, MemberExpr):
            member = self.render_expression(expr.member)
            return f"{self._operand(expr.target)}{expr.operator}{member}"
        if isinstance(expr, PackExpansionExpr):
            expanded = self._expand_pack(
                expr.expression, lambda: self.render_expression(expr.expression)
            )
            if expanded is not None:
                return expanded
            return self.render_expression(expr.expression) + "..."

        if isinstance(expr, NewExpr):
            return self._render_new(expr)
        if isinstance(expr, DeleteExpr):
            text = "::delete" if expr.is_global else "delete"
            text += "[] " if expr.is_array else " "
            return text + self.render_expression(expr.expression)

        if isinstance(expr, UnresolvedName):
            parts = []
            if expr.qualifier is not None:
                parts.append(self.render_type(expr.qualifier))
            parts.extend(self.render_expression(level) for level in expr.levels)
            parts.append(self.render_expression(expr.base))
            text = "::".join(parts)
            return f"::{text}" if expr.is_global else text
        if isinstance(expr, SimpleId):
            text = self._source_text(expr.name)
            if expr.args is not None:
                text += self.render_template_args(expr.args, text)
            return text
        if isinstance(expr, OperatorId):
            text = self.render_unqualified(expr.name, None)
            if expr.args is not None:
                text += self.render_template_args(expr.args, text)
            return text
        if isinstance(expr, DestructorId):
            if isinstance(expr.target, SimpleId):
                return "~" + self.render_expression(expr.target)
            return "~" + self.render_type(expr.target)

        # Template parameters and other types used as expressions.
        return self.render_type(expr)

    def _render_new(self, expr: NewExpr) -> str:
        text = "::new" if expr.is_global else "new"
        if expr.is_array:
            text += "[]"
        if expr.placement:
            text += f" ({self._render_list(expr.placement)})"
        text += f" {self.render_type(expr.type)}"
        if expr.initializer is None:
            return text
        if len(expr.initializer) == 1 and isinstance(expr.initializer[0], BracedInitExpr):
            return text + self.render_expression(expr.initializer[0])
        return f"{text}({self._render_list(expr.initializer)})"

    def _render_literal(self, expr: LiteralExpr) -> str:
        value = expr.value.text(self.ctx.raw) if expr.value is not None else None
        node = self._lookup(expr.type)

        if isinstance(node, BuiltinType):
            builtin = node.builtin
            if builtin.kind == StandardBuiltin.Kind.NULLPTR and value in (None, "0"):
                return "nullptr"
            if value is not None:
                if builtin.kind == StandardBuiltin.Kind.BOOL and value in ("0", "1"):
                    return "true" if value == "1" else "false"
                if builtin.is_floating():
                    return f"({builtin})[{value}]"
                number = _signed(value)
                suffix = builtin.literal_suffix()
                if suffix is not None:
                    return number + suffix
                return f"({builtin}){number}"

        type_ = self.render_type(expr.type)
        if value is None:
            return f"({type_})"
        return f"({type_}){_signed(value)}"


def _signed(value: str) -> str:
    return "-" + value[1:] if value.startswith("n") else value


def render(
    root,
    subs: SubstitutionTable,
    raw: str,
    options: DemangleOptions = DEFAULT_OPTIONS,
) -> str:
    """
    Render the AST rooted at `root`, resolving back references through `subs`
    and identifiers through `raw`.
    """
    renderer = Renderer(RenderContext(subs, raw, options))
    try:
        return renderer.render_root(root)
    except RecursionError as e:
        raise RecursionLimitExceeded("Symbol nests too deeply to render") from e
