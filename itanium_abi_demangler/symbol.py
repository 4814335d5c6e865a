"""
The result of a successful parse.
"""

from dataclasses import dataclass

from itanium_abi_demangler.options import DEFAULT_OPTIONS, DemangleOptions
from itanium_abi_demangler.render import render
from itanium_abi_demangler.subs import SubstitutionTable


@dataclass(frozen=True, eq=False)
class Symbol:
    """
    A parsed mangled symbol: the input it was parsed from, the substitution
    table built while parsing, and the root of its AST.

    Symbols own all of their data and are never mutated after parsing, so one
    can be rendered any number of times (and from any thread).
    """

    raw: str
    substitutions: SubstitutionTable
    parsed: object
    options: DemangleOptions = DEFAULT_OPTIONS

    def demangle(self) -> str:
        """
        Render the symbol as C++ source text.
        """
        return render(self.parsed, self.substitutions, self.raw, self.options)

    def __str__(self) -> str:
        return self.demangle()

    def __eq__(self, other) -> bool:
        if not isinstance(other, Symbol):
            return NotImplemented
        return (
            self.raw == other.raw
            and self.parsed == other.parsed
            and self.substitutions == other.substitutions
        )

    def __hash__(self) -> int:
        return hash((self.raw, self.parsed))
