"""
Commandflow argument stack: a typed cursor over the tokens of one dispatch.

What this module provides
- ArgumentStack: ordered tokens plus a position. Values are taken from the
  front with next()/peek() and the typed next_int()/next_float()/next_boolean().
- Checkpoint: an opaque, O(1) snapshot of the position used by mark()/reset()
  for backtracking and for non-destructive lookahead during suggestions.

Conversion rules
- booleans: "true"/"false", case-insensitive; anything else is a mismatch.
- integers: an optional sign followed by ASCII digits (no underscores, no spaces).
- floats: decimal or exponent literals, plus NaN/Infinity spellings.

Faults
- OutOfArgumentsError when a value is required but the stack is exhausted.
- TypeMismatchError when the token exists but does not convert. The cursor is
  left on the offending token so the caller may rewind or report it.
"""
import itertools
import re
from typing import NamedTuple

from .faults import OutOfArgumentsError, TypeMismatchError
from .utils import ordinal

_INTEGER = re.compile(r"[+-]?[0-9]+")
_FLOAT = re.compile(r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|nan|infinity|inf)", re.IGNORECASE)
_SERIALS = itertools.count()


class Checkpoint(NamedTuple):
    """
    snapshot of a stack position; only meaningful for the stack that produced it.
    """
    owner: int  # serial of the producing stack
    position: int


class ArgumentStack:
    """
    Mutable cursor over an immutable sequence of string tokens.

    Invariant: 0 <= position <= size. has_next() is True iff position < size.

    Example
        >>> stack = ArgumentStack(["give", "3", "true"])
        >>> stack.next()
        'give'
        >>> stack.next_int(), stack.next_boolean()
        (3, True)
        >>> stack.has_next()
        False
    """

    __slots__ = ("_tokens", "_position", "_serial")

    def __init__(self, tokens=(), /, position=0):
        self._tokens = tuple(tokens)
        if not all(isinstance(token, str) for token in self._tokens):
            raise TypeError("ArgumentStack() tokens must be strings")
        if not 0 <= position <= len(self._tokens):
            raise ValueError("ArgumentStack() position out of range")
        self._position = position
        self._serial = next(_SERIALS)

    @property
    def position(self):
        return self._position

    @property
    def size(self):
        return len(self._tokens)

    @property
    def arguments(self):
        return self._tokens

    def has_next(self):
        return self._position < len(self._tokens)

    def remaining(self):
        return len(self._tokens) - self._position

    def remaining_tokens(self):
        return self._tokens[self._position:]

    def slice(self, start, end=None, /):
        return self._tokens[start:end]

    def _missing(self, what):
        return OutOfArgumentsError(
            "expected %s at %s position but no more arguments were given" % (what, ordinal(self._position + 1)),
            position=self._position,
            hint="add the missing argument at the end of the input",
        )

    def peek(self):
        if not self.has_next():
            raise self._missing("an argument")
        return self._tokens[self._position]

    def next(self):
        token = self.peek()
        self._position += 1
        return token

    def skip(self, count, /):
        """
        advance the cursor by count tokens without reading them.
        """
        if count < 0:
            raise ValueError("skip() count must be non-negative")
        if count > self.remaining():
            raise self._missing("%d more arguments" % count)
        self._position += count

    def back(self):
        """
        step the cursor one token back (the inverse of next()).
        """
        if self._position == 0:
            raise OutOfArgumentsError("cannot move before the first argument", position=0)
        self._position -= 1
        return self._tokens[self._position]

    def _convert(self, target, converter):
        if not self.has_next():
            raise self._missing("a value of type %s" % target)
        token = self._tokens[self._position]
        value = converter(token)
        if value is None:
            raise TypeMismatchError(
                "expected a value of type %s but found %r at %s position" % (target, token, ordinal(self._position + 1)),
                token=token,
                target=target,
                position=self._position,
                hint="replace %r with a valid %s" % (token, target),
            )
        self._position += 1
        return value

    def next_int(self):
        return self._convert("int", lambda token: int(token) if _INTEGER.fullmatch(token) else None)

    def next_float(self):
        return self._convert("float", lambda token: float(token) if _FLOAT.fullmatch(token) else None)

    def next_boolean(self):
        return self._convert("bool", lambda token: {"true": True, "false": False}.get(token.lower()))

    def mark(self):
        return Checkpoint(self._serial, self._position)

    def reset(self, checkpoint, /):
        if checkpoint.owner != self._serial:
            raise ValueError("reset() checkpoint belongs to another stack")
        if not 0 <= checkpoint.position <= len(self._tokens):
            raise ValueError("reset() checkpoint position out of range")
        self._position = checkpoint.position

    def __repr__(self):
        return "%s(%r, position=%d)" % (type(self).__name__, list(self._tokens), self._position)


__all__ = (
    "ArgumentStack",
    "Checkpoint",
)
