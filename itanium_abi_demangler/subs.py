"""
The substitution table used by the Itanium mangling's compression scheme.

Entities are appended exactly once, when their production has been fully
parsed, and never change afterwards. Back references (`S_`, `S0_`, ...) are
plain indices into this table.
"""

from typing import Iterator, Optional

from itanium_abi_demangler.errors import InvalidBackReference


class SubstitutionTable:
    """
    Append-only, ordered collection of substitutable AST nodes.

    A table may be a fork of a parent table: it sees every entry the parent
    had when it was forked, and appends only to itself. `commit()` folds a
    fork's new entries back into its parent; a fork that is never committed is
    simply dropped, which is how a failed speculative parse is discarded.
    """

    def __init__(self, parent: Optional["SubstitutionTable"] = None):
        self._parent = parent
        self._base = len(parent) if parent is not None else 0
        self._entries: list = []

    def __len__(self) -> int:
        return self._base + len(self._entries)

    def __iter__(self) -> Iterator:
        for i in range(len(self)):
            yield self.get(i)

    def __eq__(self, other) -> bool:
        if not isinstance(other, SubstitutionTable):
            return NotImplemented
        return list(self) == list(other)

    def __repr__(self) -> str:
        lines = [f"  S[{i}] = {node!r}" for i, node in enumerate(self)]
        return "SubstitutionTable([\n" + "\n".join(lines) + "\n])"

    def insert(self, node) -> int:
        """
        Append a newly parsed substitutable entity and return its index.
        """
        self._entries.append(node)
        return len(self) - 1

    def get(self, index: int):
        """
        Look up entry `index`. Only entries that already exist can be
        referenced; anything else is an invalid back reference.
        """
        if index < 0 or index >= len(self):
            raise InvalidBackReference(
                f"Back reference to entry {index}, but only {len(self)} entries exist"
            )
        if index < self._base:
            return self._parent.get(index)
        return self._entries[index - self._base]

    def fork(self) -> "SubstitutionTable":
        """
        Start a speculative table layered over this one.
        """
        return SubstitutionTable(parent=self)

    def commit(self, fork: "SubstitutionTable"):
        """
        Append the entries a fork of this table gathered.
        """
        assert fork._parent is self, "Can only commit a direct fork of this table!"
        assert fork._base == len(self), "Table grew while a fork was outstanding!"
        self._entries.extend(fork._entries)
