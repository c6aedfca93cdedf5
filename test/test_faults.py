"""
Tests for the fault hierarchy.

This module verifies:
- Codes and titles are taken from the class and can be overridden per instance.
- trigger() raises by default and prints through rich in shell mode.
- __replace__ keeps the explicit cause of a fault.
- Rich rendering shows the header, message, usage line and hint.
"""
import io
import unittest
from unittest import TestCase, mock

from rich.console import Console

from commandflow import faults
from commandflow.faults import *


def render(renderable, width=100):
    console = Console(file=io.StringIO(), width=width, color_system=None)
    console.print(renderable)
    return console.file.getvalue()


class TestFaultOptions(TestCase):

    def testCodeAndTitleDefaults(self):
        error = TypeMismatchError("bad", token="x", target="int", position=2)
        self.assertEqual(error.code, FaultCode.TYPE_MISMATCH)
        self.assertEqual(error.kind, FaultCode.TYPE_MISMATCH)
        self.assertEqual(error.options["title"], "type mismatch")
        self.assertEqual((error.token, error.target, error.position), ("x", "int", 2))
        self.assertEqual(str(error), "bad")

    def testHierarchy(self):
        self.assertTrue(issubclass(OutOfArgumentsError, ArgumentException))
        self.assertTrue(issubclass(UnknownSubcommandError, ArgumentParseError))
        self.assertTrue(issubclass(UnparsedTokensError, ArgumentParseError))
        self.assertTrue(issubclass(DuplicateCommandError, ValueError))
        self.assertFalse(issubclass(NotAuthorizedError, ArgumentException))
        self.assertFalse(issubclass(CommandUsageError, ArgumentException))

    def testOptionsAreReadOnly(self):
        error = NotAuthorizedError("no", permission="a.b")
        with self.assertRaises(TypeError):
            error.options["permission"] = "c"  # type: ignore[index]

    def testNormalizeWithoutHostMapping(self):
        self.assertEqual(FaultCode.OUT_OF_ARGUMENTS.normalize(), "21201")

    def testGetdocRejectsNonCodes(self):
        with self.assertRaises(TypeError):
            getdoc(21201)
        self.assertIsNone(getdoc(FaultCode.OUT_OF_ARGUMENTS))


class TestTrigger(TestCase):

    def testRaisesByDefault(self):
        with self.assertRaises(NotAuthorizedError) as caught:
            trigger(NotAuthorizedError("no", permission="a.b"), prog="demo")
        self.assertEqual(caught.exception.options["prog"], "demo")
        self.assertEqual(caught.exception.permission, "a.b")

    def testShellModePrints(self):
        with mock.patch.object(faults, "console") as console:
            trigger(OutOfArgumentsError("missing", position=0), shell=True)
        console.print.assert_called_once()

    def testRejectsPlainObjects(self):
        with self.assertRaises(TypeError):
            trigger(object())

    def testReplaceKeepsCause(self):
        cause = UnparsedTokensError("left over", token="x", position=3)
        error = CommandUsageError("wrapped", usage="a <b>", cause=cause)
        self.assertIs(error.__cause__, cause)
        replaced = error.__replace__(shell=False)
        self.assertIs(replaced.__cause__, cause)
        self.assertIs(replaced.cause, cause)
        self.assertEqual(replaced.usage, "a <b>")


class TestRendering(TestCase):

    def testPlainRendering(self):
        error = CommandUsageError("bad amount", usage="give <item> <amount>", hint="use a number", prog="demo")
        output = render(error)
        self.assertIn("[ demo | 21102 | Wrong Usage ]", output)
        self.assertIn("bad amount", output)
        self.assertIn("usage: give <item> <amount>", output)
        self.assertIn("use a number", output)

    def testFancyRenderingUsesAPanel(self):
        output = render(OutOfArgumentsError("missing", fancy=True, prog="demo"))
        self.assertIn("demo", output)
        self.assertIn("missing", output)
        self.assertIn("╭", output)

    def testNoHintNoArrow(self):
        self.assertNotIn("→", render(OutOfArgumentsError("missing")))


if __name__ == "__main__":
    unittest.main()
