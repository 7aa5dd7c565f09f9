"""
Flagpole parser: bind flags to typed cells and read them out of an argument vector.

What this module provides
- Parser: owns a flag registry, an argument vector, and the append-only history
  of free-standing tokens (options). One parse() call walks the vector once and
  writes every recognized flag's value into its cell.
- Dialect: STRICT ("-a 0", "--append=0") or AS_IS (either separator for any flag).
- parse(): one-shot convenience for scripts and tests.

Core ideas
- A token is split at its first '=' into the flag part and an optional inline value.
- The dialect and the token's marker length pick a separator policy (inline,
  spaced, or either); one consumption routine applies that policy to every kind.
- Clusters like "-abc" are rewritten in a private copy of the vector: the current
  slot becomes "-c" (so "-abc value" still feeds "value" to -c) and "-a", "-b" are
  appended at the end. The caller's vector is never touched.
- Nothing recoverable aborts a pass: unknown flags, missing values and
  unconvertible values are collected and returned as unrecognized tokens.

Quick start
    from flagpole import Parser, Dialect

    parser = Parser(["prog", "-a", "-n", "5", "file.txt"])
    append = parser.boolean("-a,--append")
    count = parser.integer("-n,--count")

    unrecognized = parser.parse(Dialect.STRICT)
    # append.value is True, count.value == 5, parser.options == ["file.txt"]
"""
import copy
import functools
import logging
import os.path
import shlex
import sys
from collections.abc import Iterable, Mapping
from contextlib import contextmanager
from enum import Enum

from .faults import *
from .flags import Kind, Registry
from .utils import *

logger = logging.getLogger(__name__)


class Dialect(Enum):
    """
    parsing dialects.

    - STRICT: "-a 0" and "--append=0" are valid; "--append 0" and "-a=0" are not.
    - AS_IS: "-a 0", "-a=0", "--append 0" and "--append=0" are all valid
      (useful for windows-style flags).

    members can also be looked up by name, case-insensitively ("strict", "as_is", "AS-IS").
    """
    STRICT = "strict"
    AS_IS = "as-is"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            return cls.__members__.get(value.strip().upper().replace("-", "_"))
        return None


class Separator(Enum):
    """
    where a flag's value comes from.

    - INLINE: after '=' in the same token.
    - SPACED: the following token.
    - EITHER: INLINE when the token carries '=', SPACED otherwise.
    """
    INLINE = "inline"
    SPACED = "spaced"
    EITHER = "either"

    @classmethod
    def resolve(cls, dialect, token, value, /):
        """
        pick the concrete separator for a recognized flag token.

        STRICT splits on marker length (long -> INLINE, short -> SPACED);
        AS_IS lets the presence of '=' decide.
        """
        if dialect is Dialect.STRICT:
            policy = cls.INLINE if _islong(token) else cls.SPACED
        else:
            policy = cls.EITHER
        if policy is cls.EITHER:
            return cls.INLINE if value is not None else cls.SPACED
        return policy


def _islong(token):
    """
    whether token starts with the long marker (its first character doubled, e.g. "--").
    """
    return len(token) >= 2 and token[1] == token[0]


@functools.cache
def _ordinal(number):
    """
    Return a human-friendly ordinal label for a 1-based position.
    """
    try:
        return {
            1: "first",
            2: "second",
            3: "third",
            4: "fourth",
            5: "fifth",
            6: "sixth",
            7: "seventh",
            8: "eighth",
            9: "ninth",
            10: "tenth",
        }[number]
    except KeyError:
        pass

    if 10 < number % 100 < 20:
        return f"{number}th"

    return f'{number}%s' % {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")


class Parser:
    """
    Command-line flag parser.

    Lifecycle
    - construct (optionally with the argument vector), register flags, call parse().
    - every registration returns a Cell the caller keeps; parse() writes into it.
    - options accumulate across parse() calls on the same instance; build a fresh
      parser per pass when that history is unwanted.

    Runtime options (keyword-only)
    - system: the vector comes from the process (position 0 is the program name
      and is skipped).
    - shell: print recoverable faults to stderr with rich and exit on fatal ones,
      instead of raising.
    - fancy / colorful: panel chrome and colors for shell rendering.

    Not thread-safe: one parse() at a time per instance.
    """

    def __init__(self, argv=Unset, /, *, system=True, shell=False, fancy=False, colorful=True):
        self.shell = bool(shell)
        self.fancy = bool(fancy)
        self.colorful = bool(colorful)

        self._registry = Registry()
        self._argv = Unset
        self._system = bool(system)
        self._options = []
        self._faults = []
        self._tokens = Unset
        self._index = 0

        if argv is not Unset:
            self.initialize(argv, system=system)

    options = mirror("options")

    @property
    def faults(self):
        """
        recoverable faults recorded by the latest parse() call, in token order.
        """
        return tuple(self._faults)

    @property
    def registry(self):
        return self._registry

    @property
    def prog(self):
        """
        program name used in rendered faults: the basename of argv[0] for
        system vectors, "flagpole" otherwise.
        """
        if self._system and self._argv:
            return os.path.basename(self._argv[0]) or "flagpole"
        return "flagpole"

    def initialize(self, argv=Unset, /, *, system=True):
        """
        bind the argument vector to parse.

        Parameters
        - argv:
          • Unset: sys.argv (a system vector).
          • str: shell-like string, split with shlex.split.
          • Iterable[str]: tokens, used exactly as given (no trimming).
        - system: bool (keyword-only)
          True when position 0 holds the program name and must be skipped.

        Raises
        - TypeError: argv is not a string or an iterable of strings.
        """
        if argv is Unset:
            argv = sys.argv
        elif isinstance(argv, str):
            argv = shlex.split(argv)
        elif not isinstance(argv, Iterable):
            raise TypeError("initialize() argument must be a string or an iterable of strings")

        tokens = tuple(argv)
        for token in tokens:
            if not isinstance(token, str):
                raise TypeError("initialize() argument must be a string or an iterable of strings")

        self._argv = tokens
        self._system = bool(system)
        logger.debug("bound %d %s (system=%s)", len(tokens), pluralize("token", len(tokens)), self._system)
        return self

    def register(self, aliases, kind, default=Unset, /):
        """
        register a flag family of the given kind; see Registry.register().
        """
        return self._registry.register(aliases, kind, default)

    def boolean(self, aliases, default=False, /):
        return self.register(aliases, Kind.BOOLEAN, default)

    def integer(self, aliases, default=0, /):
        return self.register(aliases, Kind.INTEGER, default)

    def floating(self, aliases, default=0.0, /):
        return self.register(aliases, Kind.FLOAT, default)

    def string(self, aliases, default="", /):
        return self.register(aliases, Kind.STRING, default)

    def trigger(self, fault, /, **options):
        """
        surface a fault with this parser's runtime options merged in.

        recoverable faults (ParserWarning) are also recorded in self.faults.
        """
        if (
                not hasattr(fault, "__trigger__") or
                not callable(fault.__trigger__) or
                not hasattr(fault, "__replace__") or
                not callable(fault.__replace__)
        ):
            raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
        fault = copy.replace(fault, **options, prog=self.prog, shell=self.shell, fancy=self.fancy, colorful=self.colorful)
        if isinstance(fault, ParserWarning):
            self._faults.append(fault)
        trigger(fault)

    def parse(self, dialect=Dialect.STRICT, /):
        """
        walk the argument vector once and fill every matched flag's cell.

        Parameters
        - dialect: Dialect (or a member name such as "as_is")

        Returns
        - list[str]: unrecognized tokens, in the order they were met. This covers
          unknown flags, value-bearing flags missing their value, and flags whose
          value could not be converted.

        Raises
        - NoArgumentsError: no argument vector was bound.
        - ImpossibleDialectError: dialect is not a Dialect.
        """
        if self._argv is Unset:
            return self.trigger(NoArgumentsError(
                "parse() was called before any argument vector was bound",
                title="no arguments configured",
                code=FaultCode.NO_ARGUMENTS,
                hint="pass the vector to Parser(...) or call initialize(argv) first",
                docs=getdoc(FaultCode.NO_ARGUMENTS)
            ))

        try:
            dialect = Dialect(dialect)
        except (ValueError, TypeError):
            return self.trigger(ImpossibleDialectError(
                "unknown dialect %r" % (dialect,),
                title="impossible dialect",
                code=FaultCode.IMPOSSIBLE_DIALECT,
                hint="use Dialect.STRICT or Dialect.AS_IS",
                dialect=dialect,
                docs=getdoc(FaultCode.IMPOSSIBLE_DIALECT)
            ))

        unrecognized = []
        with self._session():
            while self._index < len(self._tokens):
                self._step(dialect, unrecognized)

        logger.debug(
            "%s pass finished: %d unrecognized %s",
            dialect.name,
            len(unrecognized),
            pluralize("token", len(unrecognized)),
        )
        return unrecognized

    @contextmanager
    def _session(self):
        """
        scope one pass: fresh fault list, working view of the vector, start index.

        the working view starts as the caller's (immutable) tuple and is only
        copied into a list when a cluster needs expanding; it is dropped on
        every exit path.
        """
        self._faults.clear()
        self._tokens = self._argv
        self._index = int(self._system)
        try:
            yield
        finally:
            self._tokens = Unset
            self._index = 0

    def _step(self, dialect, unrecognized):
        """
        examine the token at the current index and advance past whatever it consumed.
        """
        token = self._tokens[self._index]
        name, separator, value = token.partition("=")
        value = value if separator else None

        try:
            flag = self._registry.lookup(name)
        except KeyError:
            return self._unmatched(token, unrecognized)

        policy = Separator.resolve(dialect, token, value)
        logger.debug("%r matched %s flag %r (%s)", token, flag.kind.label, name, policy.value)

        if flag.kind is Kind.BOOLEAN:
            self._consume_boolean(flag, value, policy)
        else:
            self._consume_value(flag, token, value, policy, unrecognized)

    def _unmatched(self, token, unrecognized):
        """
        classify a token whose flag part is not registered.

        - not flag-like              -> option
        - first two chars unknown    -> unknown flag
        - otherwise                  -> cluster, expanded in place (index unchanged)
        """
        if not self._registry.flaglike(token):
            logger.debug("%r collected as option", token)
            self._options.append(token)
            self._index += 1
        elif token[:2] not in self._registry:
            self._reject(token, unrecognized, UnknownFlagWarning(
                "unknown flag %r at %s position" % (token, _ordinal(self._index + 1)),
                title="unknown flag",
                code=FaultCode.UNKNOWN_FLAG,
                hint="check the spelling, or register %r before parsing" % token.partition("=")[0],
                docs=getdoc(FaultCode.UNKNOWN_FLAG)
            ))
        else:
            self._expand(token)

    def _expand(self, token):
        """
        rewrite a cluster ("-abc") as "-c" in place and "-a", "-b" at the end.
        """
        if not isinstance(self._tokens, list):
            self._tokens = list(self._tokens)
        marker, interior, final = token[0], token[1:-1], token[-1]
        self._tokens[self._index] = marker + final
        self._tokens.extend(marker + char for char in interior)
        logger.debug(
            "%r expanded into %s",
            token,
            ", ".join(repr(marker + char) for char in (final, *interior)),
        )

    def _peek(self):
        """
        the token following the current one, or Unset at the end of the vector.
        """
        if self._index + 1 < len(self._tokens):
            return self._tokens[self._index + 1]
        return Unset

    def _consume_boolean(self, flag, value, policy):
        """
        store a boolean flag.

        - INLINE: no '=' means True; otherwise False only for a "0" value.
        - SPACED: a following "0"/"1" is consumed as the value; anything else
          (or nothing) leaves it alone and stores True.
        """
        match policy:
            case Separator.INLINE:
                flag.cell.value = value is None or unquote(value) != "0"
                self._index += 1
            case Separator.SPACED:
                following = self._peek()
                if following is not Unset and (text := unquote(following)) in ("0", "1"):
                    flag.cell.value = text == "1"
                    self._index += 2
                else:
                    flag.cell.value = True
                    self._index += 1

    def _consume_value(self, flag, token, value, policy, unrecognized):
        """
        store an integer, float or string flag.

        - INLINE: the value after '=' is required.
        - SPACED: the following token is taken unconditionally (even if it looks
          like a flag); at the end of the vector the flag is unrecognized.

        a value its kind cannot convert leaves the cell untouched and marks the
        flag token unrecognized; a spaced value token is still consumed.
        """
        position = _ordinal(self._index + 1)
        match policy:
            case Separator.INLINE:
                if value is None:
                    return self._reject(token, unrecognized, MissingInlineValueWarning(
                        "%s flag %r at %s position requires an inline value" % (flag.kind.label, token, position),
                        title="missing inline value",
                        code=FaultCode.MISSING_INLINE_VALUE,
                        hint="write it as %s=<value>" % token,
                        docs=getdoc(FaultCode.MISSING_INLINE_VALUE)
                    ))
                raw, consumed = value, 1
            case Separator.SPACED:
                if (following := self._peek()) is Unset:
                    return self._reject(token, unrecognized, MissingValueWarning(
                        "%s flag %r at %s position is missing its value" % (flag.kind.label, token, position),
                        title="missing value",
                        code=FaultCode.MISSING_VALUE,
                        hint="pass the value after a space (for example: %s <value>)" % token.partition("=")[0],
                        docs=getdoc(FaultCode.MISSING_VALUE)
                    ))
                raw, consumed = following, 2

        try:
            flag.cell.value = flag.kind.convert(unquote(raw))
        except ValueError:
            self._reject(token, unrecognized, ValueConversionWarning(
                "%s flag %r at %s position cannot take %r" % (flag.kind.label, token, position, raw),
                title="uncastable value",
                code=FaultCode.UNCASTABLE_VALUE,
                hint="pass a valid %s" % flag.kind.label,
                value=raw,
                docs=getdoc(FaultCode.UNCASTABLE_VALUE)
            ), advance=consumed)
            return

        self._index += consumed

    def _reject(self, token, unrecognized, fault, /, advance=1):
        """
        record token as unrecognized, surface its fault, and move on.
        """
        unrecognized.append(token)
        self.trigger(fault, token=token, index=self._index)
        self._index += advance


def parse(argv, flags, /, *, dialect=Dialect.STRICT, system=True):
    """
    one-shot parse for scripts and tests.

    Parameters
    - argv: anything Parser.initialize() accepts.
    - flags: Mapping[str, Kind | tuple[Kind, default]]
      keys are alias lists ("-v,--verbose"); values are a kind or (kind, default).
    - dialect / system: as for Parser.

    Returns
    - (values, options, unrecognized), where values maps every flags key to the
      parsed (or default) value.
    """
    if not isinstance(flags, Mapping):
        raise TypeError("parse() second argument must be a mapping")

    parser = Parser(argv, system=system)
    cells = {}
    for aliases, entry in flags.items():
        kind, default = (entry, Unset) if isinstance(entry, Kind) else entry
        cells[aliases] = parser.register(aliases, kind, default)

    unrecognized = parser.parse(dialect)
    return {aliases: cell.value for aliases, cell in cells.items()}, parser.options, unrecognized


__all__ = (
    "Dialect",
    "Separator",
    "Parser",
    "parse",
)
