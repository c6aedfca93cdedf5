"""
Commandflow command layer: immutable command definitions and their builder.

What this module provides
- Command: name, aliases, permission (+ message), description, the root part of
  its argument grammar and an action. Immutable once built; the registry of a
  CommandManager owns it.
- CommandBuilder: fluent construction of commands and their part trees, including
  subcommand trees (Command.builder(name) returns one).
- command(...): decorator form, turning a function into the action of a new command.

Quick start
    from commandflow import Command, CommandManager, Namespace
    from commandflow.parts import integer, string

    give = (
        Command.builder("give")
        .aliases("g")
        .permission("game.give")
        .add_part(string("item"))
        .add_part(integer("amount"))
        .action(lambda context: print(context.get_value("item"), context.get_value("amount")))
        .build()
    )

    manager = CommandManager()
    manager.register_command(give)
    manager.execute(Namespace(), "give apple 3")

Subcommand trees
- add_subcommand() collects children; build() appends a SubCommandPart named
  "subcommand" after the command's own parts.
- optional() lets the subcommand token be absent.
- arguments_or_subcommand() makes the root an ordered choice between the
  command's own arguments (which must then cover the whole input) and the
  subcommand part, in that order.
"""
from .parts import CommandPart, EndPart, FirstMatchingPart, SequentialPart, SubCommandPart
from .utils import Unset, mirror

_DEFAULT_PERMISSION_MESSAGE = "you are not allowed to run this command"


def _validate_name(name, what):
    if not isinstance(name, str):
        raise TypeError("%s must be a string" % what)
    if not name or any(char.isspace() for char in name):
        raise ValueError("%s must be a non-empty string without whitespace, got %r" % (what, name))
    return name


class Command:
    """
    Immutable command definition.

    Fields are exposed as read-only properties; aliases are returned as a frozenset.
    Two commands are equal only when they are the same object.
    """

    __slots__ = ("_name", "_aliases", "_permission", "_permission_message", "_description", "_part", "_action")

    name = mirror("name")
    aliases = mirror("aliases")
    permission = mirror("permission")
    permission_message = mirror("permission_message")
    description = mirror("description")
    part = mirror("part")
    action = mirror("action")

    def __init__(
            self,
            name,
            /,
            aliases=(),
            permission="",
            permission_message=_DEFAULT_PERMISSION_MESSAGE,
            description="",
            part=Unset,
            action=None,
    ):
        self._name = _validate_name(name, "Command() name")
        if isinstance(aliases, str):
            raise TypeError("Command() aliases must be an iterable of strings, not a string")
        self._aliases = frozenset(_validate_name(alias, "Command() alias") for alias in aliases)
        if not isinstance(permission, str):
            raise TypeError("Command() permission must be a string")
        self._permission = permission
        self._permission_message = str(permission_message)
        self._description = str(description)
        if part is Unset:
            part = SequentialPart(name, ())
        if not isinstance(part, CommandPart):
            raise TypeError("Command() part must be a command part")
        self._part = part
        if action is not None and not callable(action):
            raise TypeError("Command() action must be callable")
        self._action = action

    @staticmethod
    def builder(name, /):
        return CommandBuilder(name)

    def __rich_repr__(self):
        yield self._name
        yield "aliases", sorted(self._aliases), []
        yield "permission", self._permission, ""
        yield "part", self._part

    def __repr__(self):
        return "%s(%r, aliases=%r)" % (type(self).__name__, self._name, sorted(self._aliases))


class CommandBuilder:
    """
    Fluent builder for Command; every setter returns the builder itself.
    """

    def __init__(self, name, /):
        self._name = _validate_name(name, "CommandBuilder() name")
        self._aliases = []
        self._permission = ""
        self._permission_message = _DEFAULT_PERMISSION_MESSAGE
        self._description = ""
        self._parts = []
        self._root = Unset
        self._action = None
        self._subcommands = []
        self._handler = None
        self._optional = False
        self._arguments_or_subcommand = False

    def aliases(self, *aliases):
        self._aliases = list(aliases)
        return self

    def add_alias(self, alias, /):
        self._aliases.append(alias)
        return self

    def permission(self, permission, /):
        self._permission = permission
        return self

    def permission_message(self, message, /):
        self._permission_message = message
        return self

    def description(self, description, /):
        self._description = description
        return self

    def add_part(self, part, /):
        if not isinstance(part, CommandPart):
            raise TypeError("add_part() argument must be a command part")
        self._parts.append(part)
        return self

    def part(self, part, /):
        """
        use part as the whole argument grammar (replaces anything added so far).
        """
        if not isinstance(part, CommandPart):
            raise TypeError("part() argument must be a command part")
        self._parts = []
        self._root = part
        return self

    def action(self, action, /):
        if not callable(action):
            raise TypeError("action() argument must be callable")
        self._action = action
        return self

    def add_subcommand(self, command, /):
        if isinstance(command, CommandBuilder):
            command = command.build()
        if not isinstance(command, Command):
            raise TypeError("add_subcommand() argument must be a command or a command builder")
        self._subcommands.append(command)
        return self

    def subcommand_handler(self, handler, /):
        if handler is None:
            raise ValueError("subcommand_handler() handler must not be None")
        self._handler = handler
        return self

    def optional(self):
        self._optional = True
        return self

    def arguments_or_subcommand(self):
        self._arguments_or_subcommand = True
        return self

    def _arguments(self):
        parts = list(self._parts)
        if self._root is not Unset:
            parts.insert(0, self._root)
        return parts

    def build(self):
        arguments = self._arguments()

        if not self._subcommands:
            if self._root is not Unset and len(arguments) == 1:
                root = self._root
            else:
                root = SequentialPart(self._name, arguments)
        else:
            part = SubCommandPart("subcommand", self._subcommands, self._optional, self._handler)
            if self._arguments_or_subcommand:
                root = FirstMatchingPart(
                    part.name + "|" + "arguments",
                    [SequentialPart("arguments", [*arguments, EndPart()]), part],
                )
            else:
                root = SequentialPart(self._name, [*arguments, part])

        return Command(
            self._name,
            aliases=self._aliases,
            permission=self._permission,
            permission_message=self._permission_message,
            description=self._description,
            part=root,
            action=self._action,
        )


def command(name=Unset, /, *parts, **options):
    """
    decorator: build a Command whose action is the decorated function.

    the command name defaults to the function name; parts are added in order and
    options (aliases, permission, permission_message, description) are passed to
    Command. the function receives the CommandContext.

        @command("greet", string("who"), aliases=["hi"])
        def greet(context):
            print("hello", context.get_value("who"))
    """
    if callable(name) and not parts and not options:
        return command(Unset)(name)

    def wrapper(action, /):
        if not callable(action):
            raise TypeError("@command() must be applied to a callable")
        built = Command(
            action.__name__ if name is Unset else name,
            part=SequentialPart(action.__name__ if name is Unset else name, parts),
            action=action,
            **options,
        )
        return built

    return wrapper


__all__ = (
    "Command",
    "CommandBuilder",
    "command",
)
