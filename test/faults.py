"""
Faults module behavioral tests (codes, triggering, rendering).

Scope
- Validate FaultCode normalization and host remapping through __main__.
- Validate trigger() dispatch for exceptions and warnings, in and out of shell mode.
- Validate rich rendering (plain and fancy) and option merging through copy.replace.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import copy
import sys
import unittest
from unittest import TestCase

from rich.console import Console

from flagpole.faults import *
from flagpole import faults


class TestFaultCode(TestCase):
    """Behavioral tests for FaultCode."""

    def setUp(self):
        self.main = sys.modules["__main__"]

    def tearDown(self):
        for name in ("__codes__", "__docs__"):
            if hasattr(self.main, name):
                delattr(self.main, name)

    def testNormalizeDefaultsToNumber(self):
        self.assertEqual(FaultCode.UNKNOWN_FLAG.normalize(), "22111")

    def testNormalizeHonoursHostMapping(self):
        self.main.__codes__ = {FaultCode.UNKNOWN_FLAG: "E-UNKNOWN"}
        self.assertEqual(FaultCode.UNKNOWN_FLAG.normalize(), "E-UNKNOWN")
        self.assertEqual(FaultCode.MISSING_VALUE.normalize(), "22113")

    def testGetdoc(self):
        self.assertIsNone(getdoc(FaultCode.NO_ARGUMENTS))
        self.main.__docs__ = {FaultCode.NO_ARGUMENTS: "bind argv first"}
        self.assertEqual(getdoc(FaultCode.NO_ARGUMENTS), "bind argv first")
        with self.assertRaises(TypeError):
            getdoc(21101)


class TestTrigger(TestCase):
    """Behavioral tests for trigger()."""

    def testExceptionRaisesOutsideShell(self):
        with self.assertRaises(NoArgumentsError) as context:
            trigger(NoArgumentsError("nothing to parse", code=FaultCode.NO_ARGUMENTS), shell=False)
        self.assertEqual(str(context.exception), "nothing to parse")

    def testExceptionIsCatchableAsBase(self):
        with self.assertRaises(ParserException):
            trigger(ImpossibleDialectError("bad dialect"))

    def testWarningIsQuietOutsideShell(self):
        fault = UnknownFlagWarning("unknown flag", code=FaultCode.UNKNOWN_FLAG)
        with self.assertLogs("flagpole.faults", level="DEBUG") as logs:
            self.assertIsNone(trigger(fault, shell=False))
        self.assertIn("unknown flag", logs.output[0])

    def testWarningPrintsInShell(self):
        fault = MissingValueWarning("value missing", code=FaultCode.MISSING_VALUE, title="missing value", hint="add one")
        with faults.console.capture() as capture:
            trigger(fault, shell=True, colorful=False)
        output = capture.get()
        self.assertIn("value missing", output)
        self.assertIn("add one", output)

    def testExceptionExitsInShell(self):
        with faults.console.capture():
            with self.assertRaises(SystemExit) as context:
                trigger(NoArgumentsError("nothing", code=FaultCode.NO_ARGUMENTS), shell=True, colorful=False)
        self.assertEqual(context.exception.code, 1)

    def testRejectsNonFaults(self):
        with self.assertRaises(TypeError):
            trigger(ValueError("plain"))


class TestRendering(TestCase):
    """Behavioral tests for rich rendering."""

    def render(self, fault):
        console = Console(color_system=None, force_terminal=False, width=120)
        with console.capture() as capture:
            console.print(fault)
        return capture.get()

    def testPlainHeader(self):
        fault = UnknownFlagWarning(
            "unknown flag '--x' at first position",
            code=FaultCode.UNKNOWN_FLAG,
            title="unknown flag",
            hint="check the spelling",
            prog="tool",
            colorful=False,
        )
        output = self.render(fault)
        self.assertIn("[ tool - 22111 | Unknown Flag ]", output)
        self.assertIn("unknown flag '--x' at first position", output)
        self.assertIn("check the spelling", output)

    def testFancyPanel(self):
        fault = ValueConversionWarning(
            "integer flag '-n' cannot take 'x'",
            code=FaultCode.UNCASTABLE_VALUE,
            title="uncastable value",
            hint="pass a valid integer",
            colorful=False,
            fancy=True,
        )
        output = self.render(fault)
        self.assertIn("Uncastable Value", output)
        self.assertIn("integer flag '-n' cannot take 'x'", output)
        self.assertNotIn("[ flagpole - 22114 | Uncastable Value ]\n", output)

    def testReplaceMergesOptions(self):
        fault = UnknownFlagWarning("m", token="-x", index=0)
        merged = copy.replace(fault, index=3, shell=False)
        self.assertIsInstance(merged, UnknownFlagWarning)
        self.assertEqual(merged.message, "m")
        self.assertEqual((merged.token, merged.index, merged.shell), ("-x", 3, False))
        self.assertEqual(fault.index, 0)

    def testMissingOptionIsAttributeError(self):
        with self.assertRaises(AttributeError):
            UnknownFlagWarning("m").token

    def testOptionsAreReadOnly(self):
        fault = UnknownFlagWarning("m", token="-x")
        with self.assertRaises(TypeError):
            fault.options["token"] = "-y"


if __name__ == "__main__":
    unittest.main()
