"""
Python package which implements an Itanium C++ ABI demangler.
"""

from itanium_abi_demangler.demangler import ItaniumDemangler, demangle, parse, parse_with_tail
from itanium_abi_demangler.errors import (
    DemangleError,
    FormattingError,
    InvalidBackReference,
    InvalidTemplateArgReference,
    RecursionLimitExceeded,
    UnexpectedEnd,
    UnexpectedToken,
    UnexpectedTrailingBytes,
    UnsupportedExtension,
)
from itanium_abi_demangler.options import DEFAULT_OPTIONS, DemangleOptions, ExtensionPolicy
from itanium_abi_demangler.subs import SubstitutionTable
from itanium_abi_demangler.symbol import Symbol

__all__ = [
    "parse",
    "parse_with_tail",
    "demangle",
    "ItaniumDemangler",
    "Symbol",
    "SubstitutionTable",
    "DemangleOptions",
    "DEFAULT_OPTIONS",
    "ExtensionPolicy",
    "DemangleError",
    "UnexpectedEnd",
    "UnexpectedToken",
    "UnsupportedExtension",
    "InvalidBackReference",
    "InvalidTemplateArgReference",
    "RecursionLimitExceeded",
    "UnexpectedTrailingBytes",
    "FormattingError",
]
