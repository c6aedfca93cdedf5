"""
CommandManager behavioral tests (registry, dispatch, faults, suggestions).

Scope
- Validate registration policies: case-insensitive duplicates fail, alias collisions are skipped.
- Validate execute outcomes: no match, success, usage faults, authorization.
- Validate subcommand trees built with the fluent builder, end to end.
- Validate suggestions: top-level names, nested walks, permission filtering, never raising.

Conventions
- Test method names follow CamelCase per project convention.
- Tests use the public API (Command, CommandManager, Namespace, part factories).
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from commandflow import Command, CommandManager, Namespace, QuotedSpaceTokenizer
from commandflow.faults import (
    CommandUsageError,
    DuplicateCommandError,
    NotAuthorizedError,
    TypeMismatchError,
    UnknownSubcommandError,
    UnparsedTokensError,
)
from commandflow.parts import choice, integer, optional, string


class Recorder:
    """Action double remembering the contexts it was called with."""

    def __init__(self, result=True):
        self.contexts = []
        self.result = result

    def __call__(self, context):
        self.contexts.append(context)
        return self.result


class TestRegistry(TestCase):

    def setUp(self):
        self.manager = CommandManager()

    def testRegisterAndLookupIgnoreCase(self):
        help = Command("Help", aliases=["h"])
        self.manager.register_command(help)
        self.assertTrue(self.manager.exists("help"))
        self.assertTrue(self.manager.exists("HELP"))
        self.assertIs(self.manager.get_command("H"), help)
        self.assertIsNone(self.manager.get_command("missing"))

    def testDuplicateNameRaises(self):
        self.manager.register_command(Command("help"))
        with self.assertRaises(DuplicateCommandError):
            self.manager.register_command(Command("HELP"))

    def testDuplicateCommandErrorIsValueError(self):
        self.manager.register_command(Command("help"))
        with self.assertRaises(ValueError):
            self.manager.register_command(Command("help"))

    def testAliasCollisionIsSilentlySkipped(self):
        first = Command("help", aliases=["h"])
        second = Command("hello", aliases=["h", "HELP", "hi"])
        self.manager.register_command(first)
        self.manager.register_command(second)
        self.assertIs(self.manager.get_command("h"), first)
        self.assertIs(self.manager.get_command("help"), first)
        self.assertIs(self.manager.get_command("hi"), second)

    def testUnregisterKeepsForeignAliasSlots(self):
        first = Command("help", aliases=["h"])
        second = Command("hello", aliases=["h"])
        self.manager.register_commands([first, second])
        self.manager.unregister_command(second)
        self.assertFalse(self.manager.exists("hello"))
        self.assertIs(self.manager.get_command("h"), first)

    def testUnregisterAll(self):
        self.manager.register_commands([Command("a", aliases=["x"]), Command("b")])
        self.manager.unregister_all()
        self.assertEqual(self.manager.get_commands(), set())

    def testCollaboratorsRejectNone(self):
        for attribute in ("authorizer", "tokenizer", "executor", "usage_builder"):
            with self.subTest(attribute=attribute):
                with self.assertRaises(ValueError):
                    setattr(self.manager, attribute, None)


class TestExecute(TestCase):

    def setUp(self):
        self.action = Recorder()
        self.give = (
            Command.builder("give")
            .aliases("g")
            .add_part(string("item"))
            .add_part(integer("amount"))
            .action(self.action)
            .build()
        )
        self.manager = CommandManager()
        self.manager.register_command(self.give)

    def testEmptyInputIsNoMatch(self):
        self.assertFalse(self.manager.execute(Namespace(), []))
        self.assertFalse(self.manager.execute(Namespace(), ""))
        self.assertFalse(self.manager.execute(Namespace(), "   "))

    def testUnknownCommandIsNoMatch(self):
        self.assertFalse(self.manager.execute(Namespace(), ["take", "apple"]))
        self.assertEqual(self.action.contexts, [])

    def testSuccessfulDispatch(self):
        accessor = Namespace()
        self.assertTrue(self.manager.execute(accessor, "G apple 3"))
        context, = self.action.contexts
        self.assertIs(context.command, self.give)
        self.assertEqual(context.label, "G")
        self.assertEqual(context.get_value("item"), "apple")
        self.assertEqual(context.get_value("amount"), 3)
        self.assertIs(context.accessor, accessor)
        self.assertIs(accessor.get_object(CommandManager, "commandManager"), self.manager)

    def testTokenListDispatch(self):
        self.assertTrue(self.manager.execute(Namespace(), ["give", "apple", "3"]))

    def testParseFailureIsWrappedWithUsage(self):
        with self.assertRaises(CommandUsageError) as caught:
            self.manager.execute(Namespace(), "give apple lots")
        error = caught.exception
        self.assertEqual(error.usage, "give <item> <amount>")
        self.assertIs(error.command, self.give)
        self.assertIsInstance(error.__cause__, TypeMismatchError)
        self.assertIsInstance(error.cause, TypeMismatchError)
        self.assertEqual(self.action.contexts, [])

    def testLeftoverTokensReachTheAction(self):
        self.assertTrue(self.manager.execute(Namespace(), "give apple 3 extra"))
        context = self.action.contexts[-1]
        self.assertEqual(context.get_value("amount"), 3)
        self.assertEqual(context.arguments, ("give", "apple", "3", "extra"))

    def testStrictManagerRejectsLeftoverTokens(self):
        self.manager.strict = True
        with self.assertRaises(CommandUsageError) as caught:
            self.manager.execute(Namespace(), "give apple 3 extra")
        self.assertIsInstance(caught.exception.__cause__, UnparsedTokensError)
        self.assertEqual(self.action.contexts, [])

    def testNotAuthorizedShortCircuits(self):
        asked = []

        def authorizer(accessor, permission):
            asked.append(permission)
            return False

        guarded = Command("ban", permission="admin.ban", permission_message="admins only", action=self.action)
        manager = CommandManager(authorizer)
        manager.register_command(guarded)
        with self.assertRaises(NotAuthorizedError) as caught:
            manager.execute(Namespace(), "ban someone")
        self.assertEqual(caught.exception.message, "admins only")
        self.assertEqual(caught.exception.permission, "admin.ban")
        self.assertEqual(asked, ["admin.ban"])
        self.assertEqual(self.action.contexts, [])

    def testEmptyPermissionNeverAsksTheAuthorizer(self):
        manager = CommandManager(lambda accessor, permission: False)
        manager.register_command(Command("ping", action=self.action))
        self.assertTrue(manager.execute(Namespace(), "ping"))

    def testActionReturningFalseIsAUsageFault(self):
        manager = CommandManager()
        manager.register_command(Command("noop", action=Recorder(result=False)))
        with self.assertRaises(CommandUsageError) as caught:
            manager.execute(Namespace(), "noop")
        self.assertEqual(caught.exception.usage, "noop")

    def testCommandWithoutActionReturnsFalse(self):
        manager = CommandManager()
        manager.register_command(Command("idle"))
        self.assertFalse(manager.execute(Namespace(), "idle"))

    def testShellModeReportsInsteadOfRaising(self):
        self.manager.shell = True
        self.assertFalse(self.manager.execute(Namespace(), "give apple lots"))

    def testQuotedTokenizer(self):
        self.manager.tokenizer = QuotedSpaceTokenizer()
        self.assertTrue(self.manager.execute(Namespace(), 'give "golden apple" 1'))
        self.assertEqual(self.action.contexts[-1].get_value("item"), "golden apple")


class TestSubcommandTrees(TestCase):

    def setUp(self):
        self.give = Recorder()
        self.list = Recorder()
        self.root = Recorder()
        self.manager = CommandManager(lambda accessor, permission: permission != "denied")
        self.game = (
            Command.builder("game")
            .action(self.root)
            .add_subcommand(
                Command.builder("give")
                .add_part(string("item"))
                .add_part(optional(integer("amount")))
                .action(self.give)
            )
            .add_subcommand(Command("list", aliases=["ls"], action=self.list))
            .add_subcommand(Command("secret", permission="denied"))
            .build()
        )
        self.manager.register_command(self.game)

    def testDeepestCommandRuns(self):
        self.assertTrue(self.manager.execute(Namespace(), "game give apple"))
        context, = self.give.contexts
        self.assertEqual(context.labels, ("game", "give"))
        self.assertEqual(context.get_value("item"), "apple")
        self.assertFalse(context.has("amount"))
        self.assertEqual(self.root.contexts, [])

    def testAliasOfSubcommand(self):
        self.assertTrue(self.manager.execute(Namespace(), "game LS"))
        self.assertEqual(len(self.list.contexts), 1)

    def testUsageOfTheFailingLevel(self):
        with self.assertRaises(CommandUsageError) as caught:
            self.manager.execute(Namespace(), "game give")
        self.assertEqual(caught.exception.usage, "game give <item> [amount]")

    def testUnknownSubcommand(self):
        with self.assertRaises(CommandUsageError) as caught:
            self.manager.execute(Namespace(), "game take")
        self.assertIsInstance(caught.exception.__cause__, UnknownSubcommandError)
        self.assertEqual(caught.exception.usage, "game <give|list|secret>")

    def testSubcommandPermissionIsChecked(self):
        with self.assertRaises(NotAuthorizedError):
            self.manager.execute(Namespace(), "game secret")

    def testArgumentsOrSubcommand(self):
        teleport = Recorder()
        warps = Recorder()
        warp = (
            Command.builder("warp")
            .add_part(integer("x"))
            .add_part(integer("y"))
            .action(teleport)
            .add_subcommand(Command("list", action=warps))
            .arguments_or_subcommand()
            .build()
        )
        self.manager.register_command(warp)

        self.assertTrue(self.manager.execute(Namespace(), "warp 3 4"))
        self.assertEqual(teleport.contexts[-1].get_values("x"), [3])
        self.assertTrue(self.manager.execute(Namespace(), "warp list"))
        self.assertEqual(len(warps.contexts), 1)

        with self.assertRaises(CommandUsageError) as caught:
            self.manager.execute(Namespace(), "warp nowhere")
        self.assertIsInstance(caught.exception.__cause__, UnknownSubcommandError)

    def testArgumentsOrSubcommandUsageNamesTheFailingSubcommand(self):
        go = Command.builder("go").add_part(integer("id"))
        warp = (
            Command.builder("warp")
            .add_part(integer("x"))
            .add_part(integer("y"))
            .add_subcommand(go)
            .arguments_or_subcommand()
            .build()
        )
        self.manager.register_command(warp)
        with self.assertRaises(CommandUsageError) as caught:
            self.manager.execute(Namespace(), "warp go x")
        self.assertEqual(caught.exception.usage, "warp go <id>")
        self.assertEqual(caught.exception.command.name, "go")
        self.assertIsInstance(caught.exception.__cause__, TypeMismatchError)


class TestSuggestions(TestCase):

    def setUp(self):
        self.manager = CommandManager(lambda accessor, permission: permission != "denied")
        self.manager.register_commands([
            Command("help"),
            Command("hello", aliases=["hey"]),
            Command("hidden", permission="denied"),
            Command.builder("mode")
            .add_subcommand(Command("set", part=choice("value", ["fast", "safe", "slow"])))
            .add_subcommand(Command("show"))
            .add_subcommand(Command("shutdown", permission="denied"))
            .build(),
        ])

    def testTopLevelPrefix(self):
        self.assertEqual(sorted(self.manager.get_suggestions(Namespace(), ["he"])), ["hello", "help", "hey"])
        self.assertEqual(sorted(self.manager.get_suggestions(Namespace(), "HEL")), ["hello", "help"])

    def testTopLevelHidesUnauthorizedCommands(self):
        self.assertEqual(self.manager.get_suggestions(Namespace(), ["hi"]), [])

    def testTrailingSpaceAsksForTheNextToken(self):
        self.assertEqual(self.manager.get_suggestions(Namespace(), "mode "), ["set", "show"])

    def testNestedWalk(self):
        self.assertEqual(self.manager.get_suggestions(Namespace(), "mode sh"), ["show"])
        self.assertEqual(self.manager.get_suggestions(Namespace(), "mode set s"), ["safe", "slow"])
        self.assertEqual(self.manager.get_suggestions(Namespace(), ["mode", "set", "F"]), ["fast"])

    def testUnknownOrUnauthorizedCommandYieldsNothing(self):
        self.assertEqual(self.manager.get_suggestions(Namespace(), "nope "), [])
        self.assertEqual(self.manager.get_suggestions(Namespace(), "hidden "), [])
        self.assertEqual(self.manager.get_suggestions(Namespace(), []), [])

    def testNeverRaises(self):
        self.manager.tokenizer = QuotedSpaceTokenizer()
        self.assertEqual(self.manager.get_suggestions(Namespace(), 'mode "set'), [])

        def broken(line):
            raise RuntimeError("tokenizer down")

        self.manager.tokenizer = broken
        self.assertEqual(self.manager.get_suggestions(Namespace(), "mode s"), [])


if __name__ == "__main__":
    unittest.main()
