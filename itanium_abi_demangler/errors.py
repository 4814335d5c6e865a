"""
Error types raised while parsing or rendering a mangled symbol.

Every error is a `ValueError`, so callers that only care about "this is not a
valid mangled name" can catch that and ignore the finer distinctions.
"""

from typing import Optional


class DemangleError(ValueError):
    """
    Base class for all demangling failures.

    `offset` is the position in the mangled input where the failure was
    detected, if known.
    """

    def __init__(self, message: str, offset: Optional[int] = None):
        if offset is not None:
            message = f"{message} (at offset {offset})"
        super().__init__(message)
        self.offset = offset


class UnexpectedEnd(DemangleError):
    """
    The input ended in the middle of a production.
    """


class UnexpectedToken(DemangleError):
    """
    The input at the current position does not match any alternative of the
    production being parsed.
    """


class UnsupportedExtension(UnexpectedToken):
    """
    A vendor extension construct was found while running with
    `ExtensionPolicy.STRICT`.
    """


class InvalidBackReference(DemangleError):
    """
    A substitution code refers to an entry that does not exist (yet), or a
    reference chain loops back on itself.
    """


class RecursionLimitExceeded(DemangleError):
    """
    The input nests deeper than `DemangleOptions.recursion_limit` allows.
    """


class UnexpectedTrailingBytes(DemangleError):
    """
    The whole-input entry point matched a symbol but input remained.
    """


class FormattingError(DemangleError):
    """
    The renderer found an inconsistency in a parsed symbol.
    """


class InvalidTemplateArgReference(InvalidBackReference, FormattingError):
    """
    A template parameter refers to a template argument that is not in scope.
    """
