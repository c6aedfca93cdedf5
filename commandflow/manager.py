"""
Commandflow manager: the command registry and the dispatch entry points.

What this module provides
- CommandManager: owns the name -> Command registry and drives a dispatch:
  tokenize, look up the leading token, authorize, parse the command's part tree
  over an ArgumentStack, then hand the populated context to the executor.
  It also drives the parallel suggestion walk used for tab-completion.
- DefaultExecutor: runs the resolved command's action with the context.
- allow_all: the default authorizer (every permission granted).

Dispatch outcome
- execute() returns False when nothing matched (empty input, unknown command)
  and never raises in that case.
- NotAuthorizedError is raised before any parsing when the caller may not run
  the command.
- Any ArgumentException escaping the root part (or, with strict=True, tokens
  left over after it) is wrapped into a CommandUsageError carrying the rendered
  usage, with the original fault as its cause.
- With shell=True, faults are printed with rich instead of raised and execute()
  returns False.

Suggestions
- get_suggestions() never raises; anything unexpected degrades to [].

Threading
- The registry is a plain dict owned by this instance, without locks: serialize
  registration yourself. Dispatches allocate their own stack and context, so
  concurrent dispatches over a registry that is not being mutated are independent.
"""
import logging

from .context import CommandContext
from .faults import ArgumentException, CommandException, CommandUsageError, DuplicateCommandError, NotAuthorizedError, trigger
from .parts import EndPart
from .stack import ArgumentStack
from .tokenizers import StringSpaceTokenizer
from .usage import DefaultUsageBuilder
from .utils import prefixed

logger = logging.getLogger(__name__)


def allow_all(accessor, permission):
    return True


class DefaultExecutor:
    """
    Calls the resolved command's action with the context.

    - no action: returns False.
    - action returned False: the input was not acceptable after all; raises a
      CommandUsageError with the rendered usage.
    - otherwise: returns True.
    """

    def execute(self, context, usage_builder):
        command = context.command
        if command is None or command.action is None:
            return False
        if command.action(context) is False:
            raise CommandUsageError(
                "the command %r rejected its arguments" % " ".join(context.labels),
                usage=usage_builder.get_usage(context),
                command=command,
            )
        return True


def _require(value, what):
    if value is None:
        raise ValueError("trying to set a None %s" % what)
    return value


class CommandManager:
    """
    Registry of commands plus the execute/suggest entry points.

    Collaborators (all replaceable, None is rejected):
    - authorizer: ``is_authorized(accessor, permission) -> bool`` or a plain callable.
    - tokenizer: ``tokenize(line) -> list[str]`` or a plain callable.
    - executor: ``execute(context, usage_builder) -> bool``.
    - usage_builder: ``get_usage(context) -> str``.

    Options
    - shell: print faults with rich instead of raising them.
    - fancy / colorful: rendering switches forwarded to the faults.
    - prog: program name shown in rendered faults.
    - strict: reject tokens left over after the root part (UnparsedTokensError).
      Off by default: the action runs and may read context.arguments itself.
    """

    def __init__(
            self,
            authorizer=allow_all,
            /,
            *,
            tokenizer=None,
            executor=None,
            usage_builder=None,
            shell=False,
            fancy=False,
            colorful=False,
            prog="commandflow",
            strict=False,
    ):
        self._commands = {}
        self.authorizer = authorizer
        self.tokenizer = tokenizer if tokenizer is not None else StringSpaceTokenizer()
        self.executor = executor if executor is not None else DefaultExecutor()
        self.usage_builder = usage_builder if usage_builder is not None else DefaultUsageBuilder()
        self.shell = shell
        self.fancy = fancy
        self.colorful = colorful
        self.prog = prog
        self.strict = strict

    @property
    def authorizer(self):
        return self._authorizer

    @authorizer.setter
    def authorizer(self, authorizer):
        self._authorizer = _require(authorizer, "authorizer")

    @property
    def tokenizer(self):
        return self._tokenizer

    @tokenizer.setter
    def tokenizer(self, tokenizer):
        self._tokenizer = _require(tokenizer, "tokenizer")

    @property
    def executor(self):
        return self._executor

    @executor.setter
    def executor(self, executor):
        self._executor = _require(executor, "executor")

    @property
    def usage_builder(self):
        return self._usage_builder

    @usage_builder.setter
    def usage_builder(self, usage_builder):
        self._usage_builder = _require(usage_builder, "usage builder")

    # --- registry ---

    def register_command(self, command, /):
        if (name := command.name.lower()) in self._commands:
            raise DuplicateCommandError(
                "a command with the name %r is already registered" % command.name,
                hint="pick another name or unregister the existing command first",
                command=command,
            )
        self._commands[name] = command
        for alias in command.aliases:
            if self._commands.setdefault(alias.lower(), command) is not command:
                logger.debug("alias %r of command %r is taken, skipping it", alias, command.name)
        logger.debug("registered command %r", command.name)

    def register_commands(self, commands, /):
        for command in commands:
            self.register_command(command)

    def unregister_command(self, command, /):
        for key in (command.name, *command.aliases):
            if self._commands.get(key := key.lower()) is command:
                del self._commands[key]
        logger.debug("unregistered command %r", command.name)

    def unregister_commands(self, commands, /):
        for command in commands:
            self.unregister_command(command)

    def unregister_all(self):
        for command in self.get_commands():
            self.unregister_command(command)

    def get_commands(self):
        return set(self._commands.values())

    def exists(self, name, /):
        return name.lower() in self._commands

    def get_command(self, name, /):
        return self._commands.get(name.lower())

    # --- dispatch ---

    def is_authorized(self, accessor, permission, /):
        if not permission:
            return True
        check = getattr(self._authorizer, "is_authorized", self._authorizer)
        return bool(check(accessor, permission))

    def trigger(self, fault, /, **options):
        """
        surface a fault with this manager's rendering options (raises unless shell is set).
        """
        trigger(fault, **options, shell=self.shell, fancy=self.fancy, colorful=self.colorful, prog=self.prog)

    def _tokenize(self, arguments):
        if isinstance(arguments, str):
            tokenize = getattr(self._tokenizer, "tokenize", self._tokenizer)
            return list(tokenize(arguments))
        return list(arguments)

    def _bind(self, accessor):
        if hasattr(accessor, "set_object"):
            accessor.set_object(CommandManager, "commandManager", self)

    def execute(self, accessor, arguments, /):
        """
        dispatch a line (str) or a token list; see the module docstring for outcomes.
        """
        tokens = self._tokenize(arguments)
        if not tokens:
            return False

        command = self.get_command(tokens[0])
        if command is None:
            logger.debug("no command matches %r", tokens[0])
            return False

        stack = ArgumentStack(tokens)
        label = stack.next()

        if not self.is_authorized(accessor, command.permission):
            self.trigger(NotAuthorizedError(command.permission_message, permission=command.permission))
            return False

        context = CommandContext(accessor, tokens)
        context.set_command(command, label)
        self._bind(accessor)

        try:
            command.part.parse(context, stack)
            if self.strict:
                EndPart().parse(context, stack)
        except ArgumentException as error:
            logger.debug("parsing %r failed: %s", label, error)
            self.trigger(CommandUsageError(
                str(error),
                usage=self._usage_builder.get_usage(context),
                command=context.command,
                cause=error,
                hint=error.hint,
            ))
            return False
        except NotAuthorizedError as fault:
            self.trigger(fault)
            return False

        logger.debug("dispatching %r", " ".join(context.labels))
        try:
            return self._executor.execute(context, self._usage_builder)
        except CommandException as fault:
            self.trigger(fault)
            return False

    def get_suggestions(self, accessor, arguments, /):
        """
        valid next tokens for a partial line (str) or token list; never raises.

        a line ending in whitespace asks for the token after the last one typed.
        """
        try:
            tokens = self._tokenize(arguments)
            if isinstance(arguments, str) and arguments[-1:].isspace():
                tokens.append("")
            return self._suggest(accessor, tokens)
        except Exception:
            logger.debug("suggestions for %r failed", arguments, exc_info=True)
            return []

    def _suggest(self, accessor, tokens):
        if not tokens:
            return []

        if len(tokens) == 1:
            candidates = []
            for command in dict.fromkeys(self._commands.values()):
                if not self.is_authorized(accessor, command.permission):
                    continue
                candidates.append(command.name)
                candidates.extend(alias for alias in sorted(command.aliases) if self._commands.get(alias.lower()) is command)
            return prefixed(candidates, tokens[0])

        command = self.get_command(tokens[0])
        if command is None or not self.is_authorized(accessor, command.permission):
            return []

        stack = ArgumentStack(tokens)
        context = CommandContext(accessor, tokens)
        context.set_command(command, stack.next())
        self._bind(accessor)

        return command.part.get_suggestions(context, stack)


__all__ = (
    "CommandManager",
    "DefaultExecutor",
    "allow_all",
)
