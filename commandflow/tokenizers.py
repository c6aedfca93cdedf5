"""
Line tokenizers: turn a raw input line into the token list a dispatch consumes.

- StringSpaceTokenizer: splits on spaces, ignoring runs of spaces.
- QuotedSpaceTokenizer: shell-like splitting (shlex), so "two words" stays one token.
  An unterminated quote raises ValueError.

Both are callables (``tokenizer(line) -> list[str]``) and expose tokenize().
"""
import shlex


class StringSpaceTokenizer:

    def tokenize(self, line):
        return [token for token in line.split(" ") if token]

    def __call__(self, line):
        return self.tokenize(line)


class QuotedSpaceTokenizer:

    def tokenize(self, line):
        return shlex.split(line)

    def __call__(self, line):
        return self.tokenize(line)


__all__ = (
    "StringSpaceTokenizer",
    "QuotedSpaceTokenizer",
)
