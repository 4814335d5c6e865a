"""
Configuration for a single parse / render call.
"""

from dataclasses import dataclass
from enum import StrEnum


class ExtensionPolicy(StrEnum):
    """
    What to do with vendor extension constructs (`u` builtin types, `U`
    qualifiers, `v` operators and unrecognised clone suffixes).
    """

    # Render the extension by its vendor-supplied name.
    PLACEHOLDER = "placeholder"
    # Refuse to parse the symbol.
    STRICT = "strict"


@dataclass(frozen=True)
class DemangleOptions:
    """
    Options accepted by `parse`, `parse_with_tail` and `demangle`.

    Instances are immutable and never stored globally; pass one explicitly to
    each call that needs non-default behaviour.
    """

    # Maximum nesting of types, names, expressions and template arguments.
    recursion_limit: int = 96
    # Accept `__Z` (the extra underscore some platforms prepend) as well as `_Z`.
    strip_leading_underscore: bool = True
    extension_policy: ExtensionPolicy = ExtensionPolicy.PLACEHOLDER
    # Render `a<b<c> >` instead of `a<b<c>>`.
    separate_closing_angles: bool = True
    # Render the parameter list (and return type) of the top-level function.
    show_params: bool = True
    # Nodes the renderer may visit per character of input. Back references let
    # a short symbol describe an exponentially long rendering.
    render_budget: int = 256

    def __post_init__(self):
        if self.recursion_limit < 1:
            raise ValueError(f"recursion_limit must be positive, got {self.recursion_limit}")
        if self.render_budget < 1:
            raise ValueError(f"render_budget must be positive, got {self.render_budget}")


DEFAULT_OPTIONS = DemangleOptions()
