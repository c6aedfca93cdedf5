import sys

from rich.pretty import pprint

from commandflow import *

__prog__ = "demo"


def give(context):
    print("giving", context.get_value("amount", 1), context.get_value("item"))


def show(context):
    print("mode is", context.get_value("value", "safe"))


game = (
    Command.builder("game")
    .aliases("g")
    .description("a tiny game console")
    .add_subcommand(
        Command.builder("give")
        .add_part(string("item"))
        .add_part(optional(integer("amount")))
        .action(give)
    )
    .add_subcommand(Command("mode", part=optional(choice("value", ["fast", "safe", "slow"])), action=show))
    .build()
)


if __name__ == '__main__':
    manager = CommandManager(shell=True, colorful=True, prog=__prog__)
    manager.register_command(game)
    if len(sys.argv) < 2:
        pprint(game)
    elif sys.argv[1] == "--complete":
        pprint(manager.get_suggestions(Namespace(), " ".join(sys.argv[2:])))
    else:
        manager.execute(Namespace(), sys.argv[1:])
