"""
Tests for the internal helpers.

This module verifies:
- Unset sentinel guarantees (singleton, falsy, sealed) and coalesce().
- Quote stripping used on every flag value.
- mirror() read-only, detached properties.
- pluralize() for message labels.
- verbose() installing exactly one rich handler.
"""
import copy
import logging
import pickle
import unittest
from unittest import TestCase

from rich.logging import RichHandler

from flagpole.utils import *


class UnsetTest(TestCase):
    """Unset sentinel and coalesce()."""

    def testSingleton(self):
        self.assertIs(UnsetType(), Unset)

    def testFalsyButNotNone(self):
        self.assertFalse(Unset)
        self.assertIsNot(Unset, None)
        self.assertNotEqual(Unset, None)

    def testRepr(self):
        self.assertEqual(repr(Unset), "Unset")

    def testCopyAndPicklePreserveIdentity(self):
        self.assertIs(copy.copy(Unset), Unset)
        self.assertIs(copy.deepcopy(Unset), Unset)
        self.assertIs(pickle.loads(pickle.dumps(Unset)), Unset)

    def testFinalClass(self):
        with self.assertRaises(TypeError):
            type("Derived", (UnsetType,), {})

    def testUnionInIsinstance(self):
        self.assertTrue(isinstance("x", str | Unset))
        self.assertTrue(isinstance(Unset, str | Unset))
        self.assertFalse(isinstance(3, str | Unset))

    def testCoalesce(self):
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(None, "fallback"))
        self.assertEqual(coalesce(0, 5), 0)
        self.assertIsNone(coalesce(Unset))


class UnquoteTest(TestCase):
    """Quote stripping."""

    def testMatchingPairsAreStripped(self):
        self.assertEqual(unquote('"hello"'), "hello")
        self.assertEqual(unquote("'0'"), "0")
        self.assertEqual(unquote('""'), "")

    def testOnlyOnePairIsStripped(self):
        self.assertEqual(unquote('""x""'), '"x"')

    def testMismatchedOrLoneQuotesAreKept(self):
        for text in ('"oops\'', "'half", 'half"', '"', "'", "", "plain", "a\"b\"c"):
            with self.subTest(text=text):
                self.assertEqual(unquote(text), text)

    def testRejectsNonStrings(self):
        with self.assertRaises(TypeError):
            unquote(0)


class MirrorTest(TestCase):
    """mirror() property factory."""

    class Holder:
        items = mirror("items")

        def __init__(self):
            self._items = ["a", {"b": ["c"]}]

    def testReadsBackingField(self):
        self.assertEqual(self.Holder().items, ["a", {"b": ["c"]}])

    def testReturnsDetachedCopies(self):
        holder = self.Holder()
        view = holder.items
        view[1]["b"].append("d")
        view.append("e")
        self.assertEqual(holder.items, ["a", {"b": ["c"]}])

    def testReadOnly(self):
        with self.assertRaises(AttributeError):
            self.Holder().items = []

    def testNameMustBeString(self):
        with self.assertRaises(TypeError):
            mirror(1)


class RenameTest(TestCase):
    """rename() in both forms."""

    def testFunctionForm(self):
        def f(): ...
        self.assertIs(rename(f, "g"), f)
        self.assertEqual((f.__name__, f.__qualname__), ("g", "g"))

    def testDecoratorForm(self):
        @rename("h")
        def f(): ...
        self.assertEqual(f.__name__, "h")

    def testWrongArity(self):
        with self.assertRaises(TypeError):
            rename()


class PluralizeTest(TestCase):
    """pluralize() labels."""

    def testSingular(self):
        self.assertEqual(pluralize("token", 1), "token")

    def testPlural(self):
        self.assertEqual(pluralize("token", 0), "tokens")
        self.assertEqual(pluralize("alias", 2), "aliases")
        self.assertEqual(pluralize("entry", 3), "entries")
        self.assertEqual(pluralize("key", 3), "keys")


class VerboseTest(TestCase):
    """verbose() handler installation."""

    def setUp(self):
        self.logger = logging.getLogger("flagpole")
        self.level = self.logger.level
        self.handlers = list(self.logger.handlers)

    def tearDown(self):
        self.logger.handlers[:] = self.handlers
        self.logger.setLevel(self.level)

    def testInstallsOneRichHandler(self):
        first = verbose()
        second = verbose("INFO")
        self.assertIs(first, second)
        self.assertIsInstance(first, RichHandler)
        self.assertEqual(sum(isinstance(handler, RichHandler) for handler in self.logger.handlers), 1)
        self.assertEqual(self.logger.level, logging.INFO)


if __name__ == "__main__":
    unittest.main()
