"""
Commandflow command parts: the composable argument grammar.

What this module provides
- CommandPart: base of every parsing unit. A part reads tokens from an
  ArgumentStack, binds values into a CommandContext under its name, and can
  answer "what could come next?" for tab-completion.
- Primitive parts (one typed value per token, or every remaining token with
  consume_all): BooleanPart, IntegerPart, FloatPart, StringPart, ChoicePart.
- Combinators:
  • SequentialPart: children parsed in order, all must succeed.
  • FirstMatchingPart: ordered choice, commits to the first alternative that
    succeeds; when all fail the last failure wins.
  • OptionalPart: the wrapped part may be skipped.
  • SubCommandPart: consumes one discriminator token and recurses into the
    selected child command's own part tree.
  • EndPart: succeeds only when no tokens are left.
- Factories: boolean(), integer(), floating(), string(), choice(), optional(),
  sequence(), first_matching(), subcommands(), end().

Backtracking
- attempt() runs a part against a scratch context forked from the real one and
  returns an explicit outcome: Success(context) carrying the scratch bindings,
  or Failure(error, context) after the stack was rewound to where the attempt
  started; its context records how deep the command path got before failing.
  Callers commit a Success with CommandContext.absorb(); a Failure leaves both
  the stack and the real context exactly as they were.

Suggestions
- get_suggestions() never raises ArgumentException out of the combinators: any
  failure along the walk degrades to "no suggestions".

Quick example
    >>> from commandflow.parts import sequence, integer, string
    >>> from commandflow.context import CommandContext
    >>> from commandflow.stack import ArgumentStack
    >>> part = sequence("give", string("item"), integer("amount"))
    >>> context = CommandContext(None)
    >>> part.parse(context, ArgumentStack(["apple", "3"]))
    >>> context.get_value("item"), context.get_value("amount")
    ('apple', 3)
"""
import difflib
from abc import ABC, abstractmethod
from typing import NamedTuple

from .faults import (
    ArgumentException,
    NotAuthorizedError,
    OutOfArgumentsError,
    TypeMismatchError,
    UnknownSubcommandError,
    UnparsedTokensError,
)
from .stack import ArgumentStack
from .utils import ordinal, prefixed


class Success(NamedTuple):
    """
    outcome of an attempt that parsed; ``context`` holds the uncommitted bindings.
    """
    context: object


class Failure(NamedTuple):
    """
    outcome of an attempt that did not parse; the stack has already been rewound.

    ``context`` is the discarded scratch context, kept so usage can be rendered
    for the deepest command that was reached.
    """
    error: ArgumentException
    context: object


def _unique(suggestions):
    seen = set()
    return [item for item in suggestions if not (item in seen or seen.add(item))]


class CommandPart(ABC):
    """
    A unit of argument grammar identified by ``name``.

    The name is the key under which the part binds its values in the context. It
    needs to be unique only among the parts whose values the caller reads back.
    """

    def __init__(self, name):
        if not isinstance(name, str):
            raise TypeError("%s() name must be a string" % type(self).__name__)
        if not name.strip():
            raise ValueError("%s() name must be a non-empty string" % type(self).__name__)
        self._name = name

    @property
    def name(self):
        return self._name

    @property
    def optional(self):
        """
        True when the part may bind nothing and consume nothing.
        """
        return False

    @abstractmethod
    def parse(self, context, stack):
        """
        consume tokens from stack and bind values into context, or raise ArgumentException.
        """

    def attempt(self, context, stack):
        """
        tentative parse: returns Success(scratch) or Failure(error) with the stack rewound.
        """
        checkpoint = stack.mark()
        scratch = context.fork()
        try:
            self.parse(scratch, stack)
        except ArgumentException as error:
            stack.reset(checkpoint)
            return Failure(error, scratch)
        return Success(scratch)

    def get_suggestions(self, context, stack):
        return []

    def line_representation(self):
        return "<%s>" % self._name

    def __repr__(self):
        return "%s(%r)" % (type(self).__name__, self._name)


class PrimitivePart(CommandPart):
    """
    Consumes one typed value, or with consume_all every remaining token.

    Subclasses implement consume(stack) for a single value. Nothing is bound
    until the whole value list was produced, so a failure leaves the context untouched.
    """

    def __init__(self, name, consume_all=False):
        super().__init__(name)
        self._consume_all = bool(consume_all)

    @property
    def consume_all(self):
        return self._consume_all

    @abstractmethod
    def consume(self, stack):
        """
        take and convert exactly one token.
        """

    def parse_value(self, context, stack):
        values = []
        if self._consume_all:
            while stack.has_next():
                values.append(self.consume(stack))
        else:
            values.append(self.consume(stack))
        return values

    def parse(self, context, stack):
        context.set_value(self, self.parse_value(context, stack))

    def domain(self):
        """
        finite set of acceptable values, in suggestion order (empty when unbounded).
        """
        return ()

    def render(self, value):
        """
        textual form of a value, the inverse of consume().
        """
        return str(value)

    def get_suggestions(self, context, stack):
        if self._consume_all:
            while stack.remaining() > 1:
                stack.next()
        if stack.remaining() > 1:
            return []
        token = stack.next() if stack.has_next() else ""
        return prefixed(map(self.render, self.domain()), token)

    def line_representation(self):
        if self._consume_all:
            return "<%s...>" % self._name
        return "<%s>" % self._name

    def __repr__(self):
        return "%s(%r, consume_all=%r)" % (type(self).__name__, self._name, self._consume_all)


class BooleanPart(PrimitivePart):
    def consume(self, stack):
        return stack.next_boolean()

    def domain(self):
        return (True, False)

    def render(self, value):
        return "true" if value else "false"


class IntegerPart(PrimitivePart):
    def consume(self, stack):
        return stack.next_int()


class FloatPart(PrimitivePart):
    def consume(self, stack):
        return stack.next_float()

    def render(self, value):
        return repr(float(value))


class StringPart(PrimitivePart):
    def consume(self, stack):
        return stack.next()


class ChoicePart(PrimitivePart):
    """
    String value restricted to a declared set of choices (matched case-insensitively).

    The bound value is the declared spelling, not the typed one.
    """

    def __init__(self, name, choices, consume_all=False):
        super().__init__(name, consume_all)
        self._choices = tuple(choices)
        if not self._choices:
            raise ValueError("ChoicePart() choices must not be empty")
        if not all(isinstance(choice, str) for choice in self._choices):
            raise TypeError("ChoicePart() choices must be strings")
        self._lookup = {}
        for choice in self._choices:
            if choice.lower() in self._lookup:
                raise ValueError("ChoicePart() duplicated choice %r" % choice)
            self._lookup[choice.lower()] = choice

    @property
    def choices(self):
        return self._choices

    def consume(self, stack):
        token = stack.peek()
        try:
            value = self._lookup[token.lower()]
        except KeyError:
            raise TypeMismatchError(
                "expected one of %s but found %r at %s position" % (
                    ", ".join(map(repr, self._choices)), token, ordinal(stack.position + 1)
                ),
                token=token,
                target="one of %s" % ", ".join(self._choices),
                position=stack.position,
                hint="pick one of %s" % ", ".join(self._choices),
            ) from None
        stack.next()
        return value

    def domain(self):
        return self._choices


class SequentialPart(CommandPart):
    """
    Ordered list of parts that must all succeed, left to right.
    """

    def __init__(self, name, parts):
        super().__init__(name)
        self._parts = tuple(parts)
        if not all(isinstance(part, CommandPart) for part in self._parts):
            raise TypeError("SequentialPart() parts must be command parts")

    @property
    def parts(self):
        return self._parts

    @property
    def optional(self):
        return all(part.optional for part in self._parts)

    def parse(self, context, stack):
        for part in self._parts:
            part.parse(context, stack)

    def get_suggestions(self, context, stack):
        # parts ahead of the token being typed are parsed without that token; the
        # part that runs out of input there, or that ends exactly before it, answers
        collected = []
        for part in self._parts:
            checkpoint = stack.mark()

            if stack.remaining() <= 1:
                try:
                    collected.extend(part.get_suggestions(context, stack))
                except ArgumentException:
                    return _unique(collected)
                if not part.optional:
                    return _unique(collected)
                stack.reset(checkpoint)
                continue

            bounded = ArgumentStack(stack.slice(0, stack.size - 1), position=stack.position)
            outcome = part.attempt(context, bounded)

            if isinstance(outcome, Failure):
                if not isinstance(outcome.error, OutOfArgumentsError):
                    return []
                try:
                    return _unique(collected + part.get_suggestions(context, stack))
                except ArgumentException:
                    return []

            if not bounded.has_next():
                try:
                    collected.extend(part.get_suggestions(context.fork(), stack))
                except ArgumentException:
                    pass
                stack.reset(checkpoint)

            context.absorb(outcome.context)
            stack.skip(bounded.position - stack.position)
        return _unique(collected)

    def line_representation(self):
        return " ".join(filter(None, (part.line_representation() for part in self._parts)))

    def __repr__(self):
        return "%s(%r, %r)" % (type(self).__name__, self._name, list(self._parts))


class FirstMatchingPart(CommandPart):
    """
    Ordered choice between alternatives that share one logical name.

    parse() tries each alternative in order and commits the first one that
    succeeds. If every alternative fails, the failure of the last alternative
    tried is raised.
    """

    def __init__(self, name, parts):
        super().__init__(name)
        self._parts = tuple(parts)
        if not self._parts:
            raise ValueError("FirstMatchingPart() needs at least one alternative")
        if not all(isinstance(part, CommandPart) for part in self._parts):
            raise TypeError("FirstMatchingPart() parts must be command parts")

    @property
    def parts(self):
        return self._parts

    @property
    def optional(self):
        return any(part.optional for part in self._parts)

    def parse(self, context, stack):
        for part in self._parts:
            outcome = part.attempt(context, stack)
            if isinstance(outcome, Success):
                context.absorb(outcome.context)
                return
        # keep the command path of the last failure so usage names the failing level
        context.absorb(outcome.context, values=False)
        raise outcome.error

    def get_suggestions(self, context, stack):
        collected = []
        checkpoint = stack.mark()
        for part in self._parts:
            try:
                collected.extend(part.get_suggestions(context.fork(), stack))
            except ArgumentException:
                pass
            stack.reset(checkpoint)
        return _unique(collected)

    def line_representation(self):
        return "|".join(filter(None, (part.line_representation() for part in self._parts)))

    def __repr__(self):
        return "%s(%r, %r)" % (type(self).__name__, self._name, list(self._parts))


class OptionalPart(CommandPart):
    """
    Wraps a part that may be skipped when the stack is exhausted or the part fails.

    A skipped part binds nothing and consumes nothing.
    """

    def __init__(self, part):
        if not isinstance(part, CommandPart):
            raise TypeError("OptionalPart() argument must be a command part")
        super().__init__(part.name)
        self._part = part

    @property
    def part(self):
        return self._part

    @property
    def optional(self):
        return True

    def parse(self, context, stack):
        if not stack.has_next():
            return
        outcome = self._part.attempt(context, stack)
        if isinstance(outcome, Success):
            context.absorb(outcome.context)

    def get_suggestions(self, context, stack):
        return self._part.get_suggestions(context, stack)

    def line_representation(self):
        inner = self._part.line_representation()
        if inner.startswith("<") and inner.endswith(">") and " " not in inner:
            inner = inner[1:-1]
        return "[%s]" % inner

    def __repr__(self):
        return "%s(%r)" % (type(self).__name__, self._part)


class EndPart(CommandPart):
    """
    Binds nothing; fails when tokens are left on the stack.
    """

    def __init__(self, name="end"):
        super().__init__(name)

    def parse(self, context, stack):
        if stack.has_next():
            token = stack.peek()
            raise UnparsedTokensError(
                "unexpected argument %r at %s position" % (token, ordinal(stack.position + 1)),
                token=token,
                position=stack.position,
                hint="remove everything from %r on" % token,
            )

    def line_representation(self):
        return ""


class DefaultSubCommandHandler:
    """
    Selects the child command whose name, or else one of whose aliases, equals the token (ignoring case).
    """

    def resolve(self, context, token, candidates):
        lowered = token.lower()
        for command in candidates:
            if command.name.lower() == lowered:
                return command
        for command in candidates:
            if lowered in (alias.lower() for alias in command.aliases):
                return command
        return None

    def __call__(self, context, token, candidates):
        return self.resolve(context, token, candidates)


def _authorized(context, command):
    """
    ask the manager stored in the accessor namespace, if any, about command's permission.
    """
    from .manager import CommandManager

    lookup = getattr(context.accessor, "get_object", None)
    manager = lookup(CommandManager, "commandManager") if lookup else None
    if manager is None:
        return True
    return manager.is_authorized(context.accessor, command.permission)


class SubCommandPart(CommandPart):
    """
    Consumes one discriminator token and dispatches into the selected child command.

    The child commands are referenced, not owned. Resolution is delegated to a
    handler (``resolve(context, token, candidates) -> Command | None``, or a
    plain callable with the same signature).
    """

    def __init__(self, name, commands, optional=False, handler=None):
        super().__init__(name)
        self._commands = tuple(commands)
        if not self._commands:
            raise ValueError("SubCommandPart() needs at least one command")
        self._optional = bool(optional)
        self._handler = handler if handler is not None else DefaultSubCommandHandler()

    @property
    def commands(self):
        return self._commands

    @property
    def optional(self):
        return self._optional

    @property
    def handler(self):
        return self._handler

    def _resolve(self, context, token):
        resolve = getattr(self._handler, "resolve", self._handler)
        return resolve(context, token, self._commands)

    def parse(self, context, stack):
        if not stack.has_next():
            if self._optional:
                return
            stack.peek()

        token = stack.peek()
        command = self._resolve(context, token)

        if command is None:
            if self._optional:
                return
            names = [child.name for child in self._commands]
            matches = difflib.get_close_matches(token.lower(), names, 1)
            raise UnknownSubcommandError(
                "unknown subcommand %r at %s position" % (token, ordinal(stack.position + 1)),
                token=token,
                position=stack.position,
                hint="did you mean %r?" % matches[0] if matches else "use one of %s" % ", ".join(names),
            )

        if not _authorized(context, command):
            raise NotAuthorizedError(command.permission_message, permission=command.permission)

        stack.next()
        context.set_command(command, token)
        command.part.parse(context, stack)

    def get_suggestions(self, context, stack):
        token = stack.next() if stack.has_next() else ""

        if not stack.has_next():
            candidates = []
            for command in self._commands:
                if _authorized(context, command):
                    candidates.append(command.name)
                    candidates.extend(sorted(command.aliases))
            return prefixed(candidates, token)

        command = self._resolve(context, token)
        if command is None or not _authorized(context, command):
            return []
        context.set_command(command, token)
        return command.part.get_suggestions(context, stack)

    def line_representation(self):
        names = "|".join(command.name for command in self._commands)
        return ("[%s]" if self._optional else "<%s>") % names

    def __repr__(self):
        return "%s(%r, %r, optional=%r)" % (
            type(self).__name__, self._name, [command.name for command in self._commands], self._optional
        )


def boolean(name, consume_all=False):
    return BooleanPart(name, consume_all)


def integer(name, consume_all=False):
    return IntegerPart(name, consume_all)


def floating(name, consume_all=False):
    return FloatPart(name, consume_all)


def string(name, consume_all=False):
    return StringPart(name, consume_all)


def choice(name, choices, consume_all=False):
    return ChoicePart(name, choices, consume_all)


def optional(part):
    return OptionalPart(part)


def sequence(name, *parts):
    return SequentialPart(name, parts)


def first_matching(name, *parts):
    return FirstMatchingPart(name, parts)


def subcommands(name, commands, optional=False, handler=None):
    return SubCommandPart(name, commands, optional, handler)


def end(name="end"):
    return EndPart(name)


__all__ = (
    "Success",
    "Failure",
    "CommandPart",
    "PrimitivePart",
    "BooleanPart",
    "IntegerPart",
    "FloatPart",
    "StringPart",
    "ChoicePart",
    "SequentialPart",
    "FirstMatchingPart",
    "OptionalPart",
    "EndPart",
    "DefaultSubCommandHandler",
    "SubCommandPart",
    "boolean",
    "integer",
    "floating",
    "string",
    "choice",
    "optional",
    "sequence",
    "first_matching",
    "subcommands",
    "end",
)
