"""
Utility types for walking a mangled symbol.

`Cursor` is an immutable view over the input: every read returns a new
cursor rather than moving a shared position, so a parser can back out of a
failed alternative by simply keeping the cursor it had before.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from itanium_abi_demangler.errors import UnexpectedEnd, UnexpectedToken

_SEQ_ID_DIGITS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


@dataclass(frozen=True)
class Cursor:
    """
    A position in an immutable mangled string.
    """

    raw: str
    offset: int = 0

    def __post_init__(self):
        assert 0 <= self.offset <= len(self.raw), f"Cursor offset {self.offset} out of range!"

    def is_empty(self) -> bool:
        return self.offset == len(self.raw)

    def bytes_left(self) -> int:
        """
        Number of characters that have not been consumed yet.
        """
        return len(self.raw) - self.offset

    def remaining(self) -> str:
        return self.raw[self.offset :]

    def peek(self, n: int = 1, offset: int = 0) -> str:
        """
        Read up to `n` characters starting `offset` characters ahead, without
        consuming them. Returns fewer characters (possibly "") near the end.
        """
        start = self.offset + offset
        return self.raw[start : start + n]

    def peek_exact(self, n: int = 1, offset: int = 0) -> str:
        """
        Like `peek`, but returns "" unless exactly `n` characters are available.
        """
        value = self.peek(n, offset)
        return value if len(value) == n else ""

    def take(self, n: int) -> tuple[str, "Cursor"]:
        """
        Consume exactly `n` characters, returning them and the rest of the input.
        """
        if n < 0 or n > self.bytes_left():
            raise UnexpectedEnd(
                f"Unable to read {n} characters; only {self.bytes_left()} left", self.offset
            )
        return self.raw[self.offset : self.offset + n], Cursor(self.raw, self.offset + n)

    def advance(self, n: int = 1) -> "Cursor":
        return self.take(n)[1]

    def try_consume(self, literal: str) -> Optional["Cursor"]:
        """
        Consume `literal` if the input continues with it, otherwise return `None`.
        """
        if self.raw.startswith(literal, self.offset):
            return Cursor(self.raw, self.offset + len(literal))
        return None

    def expect(self, literal: str) -> "Cursor":
        """
        Consume `literal` or raise an error describing what was found instead.
        """
        rest = self.try_consume(literal)
        if rest is not None:
            return rest

        found = self.peek(len(literal))
        if len(found) < len(literal) and literal.startswith(found):
            raise UnexpectedEnd(f"Expected `{literal}`, found end of input", self.offset)
        raise UnexpectedToken(f"Expected `{literal}`, found `{found}`", self.offset)

    def unexpected(self, what: str, codes: Iterable[str] = ()) -> Exception:
        """
        Build the error to raise when the input does not match `what`.

        Input that stops partway through one of the multi-character `codes`
        was cut short rather than malformed, so it reports `UnexpectedEnd`.
        """
        if self.is_empty():
            return UnexpectedEnd(f"Expected {what}, found end of input", self.offset)

        rest = self.remaining()
        if any(len(rest) < len(code) and code.startswith(rest) for code in codes):
            return UnexpectedEnd(f"Expected {what}, input ends inside `{rest}`", self.offset)
        return UnexpectedToken(f"Expected {what}, found `{self.peek()}`", self.offset)


def _read_digits(src: Cursor) -> tuple[str, Cursor]:
    """
    Read a run of decimal digits. Leading zeros are only allowed for "0" itself.
    """
    count = 0
    while src.peek(1, count).isdigit() and src.peek(1, count).isascii():
        count += 1

    if count == 0:
        raise src.unexpected("a decimal number")

    digits, rest = src.take(count)
    if len(digits) > 1 and digits[0] == "0":
        raise UnexpectedToken(f"Number `{digits}` has a leading zero", src.offset)
    return digits, rest


def read_number(src: Cursor, allow_negative: bool = True) -> tuple[int, Cursor]:
    """
    Read a `<number>`: an optional `n` sign marker followed by decimal digits.
    """
    negative = False
    if allow_negative and src.peek() == "n":
        negative = True
        src = src.advance(1)

    digits, src = _read_digits(src)
    value = int(digits)
    return (-value if negative else value), src


def read_source_length(src: Cursor) -> tuple[int, Cursor]:
    """
    Read the positive length prefix of a `<source-name>`.

    The length must not be zero and must not reach past the end of the input.
    """
    digits, rest = _read_digits(src)
    length = int(digits)
    if length == 0:
        raise UnexpectedToken("Source name length must be positive", src.offset)
    if length > rest.bytes_left():
        raise UnexpectedEnd(
            f"Source name length {length} exceeds the {rest.bytes_left()} characters left",
            rest.offset,
        )
    return length, rest


def read_seq_id(src: Cursor) -> tuple[int, Cursor]:
    """
    Read a base 36 `<seq-id>` made of digits and upper case letters.
    """
    count = 0
    while src.peek(1, count) and src.peek(1, count) in _SEQ_ID_DIGITS:
        count += 1

    if count == 0:
        raise src.unexpected("a sequence id")

    digits, rest = src.take(count)
    return int(digits, 36), rest


def read_underscored_index(src: Cursor) -> tuple[int, Cursor]:
    """
    Read the `[<number>] _` tail used by template and function parameters.

    A bare `_` means 0, and `<n>_` means n + 1.
    """
    rest = src.try_consume("_")
    if rest is not None:
        return 0, rest

    value, src = read_number(src, allow_negative=False)
    return value + 1, src.expect("_")


def read_discriminator(src: Cursor) -> tuple[Optional[int], Cursor]:
    """
    Read an optional `<discriminator>`: `_ <digit>` or `__ <number> _`.
    """
    if src.peek() != "_":
        return None, src

    if src.peek(1, 1) == "_":
        value, rest = read_number(src.advance(2), allow_negative=False)
        return value, rest.expect("_")

    digit = src.peek(1, 1)
    if digit.isdigit() and digit.isascii():
        return int(digit), src.advance(2)

    return None, src
