"""
Flagpole faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every issue a parse pass
  can surface. Codes are grouped by domain so logs and searches stay predictable.
- ParserException / ParserWarning: base types that carry a message plus options
  and know how to render themselves with rich.
- trigger(): central entry point to surface any fault (respecting shell/fancy/colorful).
- getdoc(): optional description lookup for a code from the host application.

Severity
- ParserException subclasses are fatal to the call: a pass never starts, or is
  aborted, and the caller has to fix its setup.
- ParserWarning subclasses are recoverable: the offending token is collected in
  the unrecognized list and parsing continues with the next token.

Integration
- The parser records every recoverable fault and hands it to trigger(fault, **ctx).
- Outside shell mode exceptions are raised and warnings are only recorded; in
  shell mode both are printed to stderr via rich and exceptions exit the process.
"""
import copy
import logging
import sys
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)
logger = logging.getLogger(__name__)


class FaultCode(IntEnum):
    """
    canonical fault codes used by the parser (stable identifiers).

    grouping (by high-level domain)
    - configuration (21xxx)
      • NO_ARGUMENTS, IMPOSSIBLE_DIALECT
    - tokens (22xxx)
      • UNKNOWN_FLAG, MISSING_INLINE_VALUE, MISSING_VALUE, UNCASTABLE_VALUE
    - registry (23xxx)
      • REBOUND_ALIAS
    """
    # --- configuration errors (21xxx) ---
    NO_ARGUMENTS          = 21101
    IMPOSSIBLE_DIALECT    = 21102

    # --- token warnings (22xxx) ---
    UNKNOWN_FLAG          = 22111
    MISSING_INLINE_VALUE  = 22112
    MISSING_VALUE         = 22113
    UNCASTABLE_VALUE      = 22114

    # --- registry warnings (23xxx) ---
    REBOUND_ALIAS         = 23111

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class _Renderable:
    """
    shared rich rendering for faults.

    subclasses pick their palette through __palette__; hosts override any key
    through a __styles__ mapping in __main__.
    """
    __palette__ = {}

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        self.message = message
        self.options = MappingProxyType(options)

    def __getattr__(self, name):
        # token/index/value and the like live in options
        try:
            return object.__getattribute__(self, "options")[name]
        except KeyError:
            raise AttributeError(name) from None

    def __str__(self):
        return str(self.message)

    def __rich__(self):
        main = __import__("__main__")
        styles = defaultdict(str, type(self).__palette__ | getattr(main, "__styles__", {}))
        colorful = self.options.get("colorful", True)
        fancy = self.options.get("fancy", False)

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if isinstance(fragment, Text):
                return fragment
            return Text(str(fragment), styles[style] if colorful else "")

        prog = getattr(main, "__prog__", self.options.get("prog", "flagpole"))
        code = self.options.get("code")

        header = Text.assemble(
            "[ ",
            text(prog, "prog-name"),
            " - ",
            text(code.normalize() if code is not None else "", "code"),
            " | ",
            text(self.options.get("title", "").title(), "title"),
            " ]"
        )
        message = text(self.message, "message")
        hint = Text.assemble(text(" -> ", "hint-arrow"), text(self.options.get("hint", ""), "hint"))

        if fancy:
            return Panel(Group(message, hint), title=header, title_align="left")
        return Group(header, message, hint)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class ParserException(_Renderable, Exception):
    __palette__ = {
        "prog-name": "bold #E6E6F0",
        "code": "bold #00E5FF",
        "title": "bold #FF4DA6",
        "message": "#C8C8D0",
        "hint-arrow": "#9CE19C dim",
        "hint": "italic #9CE19C",
    }

    def __init__(self, message=Unset, /, **options):
        _Renderable.__init__(self, message, **options)
        Exception.__init__(self, message)

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        sys.exit(1)


class NoArgumentsError(ParserException): ...
class ImpossibleDialectError(ParserException): ...


class ParserWarning(_Renderable, Warning):
    __palette__ = {
        "prog-name": "bold #E6E6F0",
        "code": "bold #FFB400",
        "title": "bold #FFC2E0",
        "message": "#D6D6DE",
        "hint-arrow": "#B8EFAF dim",
        "hint": "italic #B8EFAF",
    }

    def __init__(self, message=Unset, /, **options):
        _Renderable.__init__(self, message, **options)
        Warning.__init__(self, message)

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            logger.debug("%s (%s)", self.message, self.options.get("code"))
            return
        console.print(self)


class UnknownFlagWarning(ParserWarning): ...
class MissingInlineValueWarning(ParserWarning): ...
class MissingValueWarning(ParserWarning): ...
class ValueConversionWarning(ParserWarning): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via copy.replace(fault, **options) before triggering.
    - in shell mode, rendering happens via the rich console; otherwise exceptions
      are raised and warnings are only logged.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    the host application may expose a __docs__ mapping in __main__ where keys
    are FaultCode instances and values are short documentation strings.
    returns None when nothing is registered.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    return getattr(__import__("__main__"), "__docs__", {}).get(code)


__all__ = (
    "FaultCode",
    "ParserException",
    "NoArgumentsError",
    "ImpossibleDialectError",
    "ParserWarning",
    "UnknownFlagWarning",
    "MissingInlineValueWarning",
    "MissingValueWarning",
    "ValueConversionWarning",
    "trigger",
    "getdoc",
)
