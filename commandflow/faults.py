"""
Commandflow faults (errors) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for all user-facing issues.
  Codes are grouped by domain to keep copy consistent and make logs/searches predictable.
- CommandException: base type that carries message + options and knows how to
  render itself in a friendly, lowercased and actionable way.
- ArgumentException and its subclasses: parse-time failures raised by the stack
  and by command parts. They are local to the part tree until they escape the
  root part, where the manager wraps them into a CommandUsageError.
- trigger(): central entry point to surface any fault (respecting shell/fancy/colorful).
- getdoc(): optional description lookup for a code from the host application.

UX goals
- Position-first messages: parse faults name the ordinal position of the token
  they choke on (“at third position”).
- Soft but technical language: short titles, one-sentence bodies, a single clear hint.

Integration
- The manager calls trigger(fault, **options) with its own shell/fancy/colorful settings.
- In non-shell mode, exceptions are raised; in shell mode, they are rendered via rich.
"""
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, coalesce

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the library (stable identifiers).

    grouping (by high-level domain)
    - registry (2100x)
      • DUPLICATE_COMMAND
    - dispatch (2110x)
      • NOT_AUTHORIZED, COMMAND_USAGE
    - arguments (2120x)
      • OUT_OF_ARGUMENTS, TYPE_MISMATCH, UNKNOWN_SUBCOMMAND, UNPARSED_TOKENS

    spacing leaves room for future additions without reshuffling existing codes.
    """
    # --- registry errors (21xxx) ---
    DUPLICATE_COMMAND  = 21001

    # --- dispatch errors (21xxx) ---
    NOT_AUTHORIZED     = 21101
    COMMAND_USAGE      = 21102

    # --- argument errors (21xxx) ---
    OUT_OF_ARGUMENTS   = 21201
    TYPE_MISMATCH      = 21202
    UNKNOWN_SUBCOMMAND = 21203
    UNPARSED_TOKENS    = 21204

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class CommandException(Exception):
    """
    base fault: a message plus a read-only bag of options.

    common options
    - code: FaultCode (defaults to the class' __fault__).
    - title: short header text (defaults to the class' __title__).
    - hint: one actionable sentence.
    - prog, shell, fancy, colorful: rendering/surfacing switches, usually
      merged in by trigger().
    """
    __fault__ = Unset
    __title__ = "command error"

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(coalesce(message, ""))
        options.setdefault("code", type(self).__fault__)
        options.setdefault("title", type(self).__title__)
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def code(self):
        return self.options["code"]

    @property
    def hint(self):
        return self.options.get("hint", "")

    def __rich__(self):
        main = __import__("__main__")

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "usage": "bold #E6E6F0",  # usage line of CommandUsageError
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        } | getattr(main, "__styles__", {}))

        colorful = self.options.get("colorful", False)
        fancy = self.options.get("fancy", False)

        def styler(style):
            return styles[style] if colorful else ""

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if not colorful:
                return Text(str(fragment))
            if isinstance(fragment, Text):
                return fragment
            return Text(str(fragment), style)

        prog = text(getattr(main, "__prog__", self.options.get("prog", "commandflow")), styler("prog-name"))
        code = self.code.normalize() if isinstance(self.code, FaultCode) else "-"

        header = Text.assemble(
            "[ ",
            prog,
            " | ",
            text(code, styler("code")),
            " | ",
            text(self.options["title"].title(), styler("error-title")),
            " ]"
        )
        body = [text(coalesce(self.message, ""), styler("error-message"))]
        body.extend(self.__details__(text, styler))
        if self.hint:
            body.append(Text.assemble(text(" → ", styler("hint-arrow")), text(self.hint, styler("hint"))))

        if fancy:
            return Panel(Group(*body), title=header, title_align="left", width=console.width - 4)

        return Group(header, *body)

    def __details__(self, text, styler):
        """
        extra renderables placed between the message and the hint (none by default).
        """
        return []

    def __trigger__(self):
        if not self.options.get("shell", False):
            raise self
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        replaced = type(self)(self.message, **{**self.options, **overrides})
        replaced.__cause__ = self.__cause__
        return replaced


class ArgumentException(CommandException):
    """
    base of every parse-time fault; these are local to the part tree.
    """
    __title__ = "bad arguments"


class OutOfArgumentsError(ArgumentException):
    """
    raised when the stack is exhausted where a value was required.
    """
    __fault__ = FaultCode.OUT_OF_ARGUMENTS
    __title__ = "missing argument"

    @property
    def position(self):
        return self.options.get("position")


class ArgumentParseError(ArgumentException):
    """
    a token was present but did not fit; ``kind`` tells how.
    """
    __title__ = "invalid argument"

    @property
    def kind(self):
        return self.code

    @property
    def token(self):
        return self.options.get("token")

    @property
    def position(self):
        return self.options.get("position")


class TypeMismatchError(ArgumentParseError):
    __fault__ = FaultCode.TYPE_MISMATCH
    __title__ = "type mismatch"

    @property
    def target(self):
        return self.options.get("target")


class UnknownSubcommandError(ArgumentParseError):
    __fault__ = FaultCode.UNKNOWN_SUBCOMMAND
    __title__ = "unknown subcommand"


class UnparsedTokensError(ArgumentParseError):
    __fault__ = FaultCode.UNPARSED_TOKENS
    __title__ = "unexpected arguments"


class DuplicateCommandError(CommandException, ValueError):
    __fault__ = FaultCode.DUPLICATE_COMMAND
    __title__ = "duplicate command"


class NotAuthorizedError(CommandException):
    __fault__ = FaultCode.NOT_AUTHORIZED
    __title__ = "not authorized"

    @property
    def permission(self):
        return self.options.get("permission", "")


class CommandUsageError(CommandException):
    """
    a parse failure that escaped the root part, paired with the rendered usage.

    the original ArgumentException is kept as __cause__ (and as ``cause``).
    """
    __fault__ = FaultCode.COMMAND_USAGE
    __title__ = "wrong usage"

    def __init__(self, message=Unset, /, **options):
        super().__init__(message, **options)
        if (cause := self.options.get("cause")) is not None:
            self.__cause__ = cause

    @property
    def usage(self):
        return self.options.get("usage", "")

    @property
    def command(self):
        return self.options.get("command")

    @property
    def cause(self):
        return self.options.get("cause")

    def __details__(self, text, styler):
        if not self.usage:
            return []
        return [Text.assemble("usage: ", text(self.usage, styler("usage")))]


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see CommandException).
    - options are merged into the fault via __replace__(**options) before triggering.
    - in shell mode, rendering happens via the rich console; otherwise, the fault is raised.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    fault.__replace__(**options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    the host application may expose a __docs__ mapping in __main__ where keys
    are FaultCode instances and values are short documentation strings.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "FaultCode",
    "CommandException",
    "ArgumentException",
    "OutOfArgumentsError",
    "ArgumentParseError",
    "TypeMismatchError",
    "UnknownSubcommandError",
    "UnparsedTokensError",
    "DuplicateCommandError",
    "NotAuthorizedError",
    "CommandUsageError",
    "trigger",
    "getdoc",
)
