"""
Flagpole utilities (internal helpers, carefully exposed)

Overview
- UnsetType / Unset
  • Singleton sentinel to represent “value not provided” without conflating with None.
  • Falsey (bool(Unset) is False), printable as "Unset", and non-subclassable.

- coalesce(value, default=None)
  • Replace Unset with a concrete default, but preserve legitimate falsey values like None/0/""/[].

- rename(callable, name) / @rename("name")
  • Assign stable __name__/__qualname__ to generated getters for clean tracebacks.

- mirror("attr")
  • Read-only property factory exposing a private backing field (self._attr) with
    fresh copies for containers, so callers never mutate parser state by accident.

- pluralize(word, count)
  • Pick the singular or plural of a label for log and fault messages.

- unquote(text)
  • Strip one matching pair of surrounding double or single quotes from a flag value.

- verbose(level)
  • Attach a rich log handler to the package logger for interactive debugging.

Stability and contract
- These utilities are re-exported via __all__; names outside __all__ may change.
"""
import builtins
import functools
import logging
from collections.abc import Sequence, Mapping, Set
from typing import final

from rich.logging import RichHandler


@final
class UnsetType:
    """
    Internal sentinel type representing a value that was not provided.

    Used where None is a legitimate value but the API still has to tell
    “not provided” apart from “provided as None”, e.g. a parser whose
    argument vector was never set, or a registration without a default.

    Characteristics
    - Boolean-false: bool(Unset) is False, but it is distinct from None and 0.
    - Printable: repr(Unset) -> "Unset".
    - Non-subclassable and a singleton per process.
    """

    def __or__(self, other, /):
        """
        Support PEP 604 unions in isinstance checks (e.g., str | Unset).
        """
        try:
            return type(self) | other
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __reduce__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def coalesce(object, default=None, /):
    """
    Resolve the Unset sentinel to a concrete default.

    Returns object unless it is Unset, in which case default is returned.
    Falsey values like None, 0, "" or [] are preserved as-is.

    Examples
    - coalesce("name", "fallback") -> "name"
    - coalesce(Unset, "fallback")  -> "fallback"
    - coalesce(None, "fallback")   -> None
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Set a stable __name__/__qualname__ on a callable, or return a decorator
    that will do so later.

    Forms
    - rename(callable, name) -> callable
    - rename(name) -> decorator
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def _copy(object):
    """
    Recursively copy container values.

    - Sequence (non-string): a new list
    - Mapping: a new dict with the same keys
    - Set: a new set
    - Anything else: returned as-is
    """
    if isinstance(object, Sequence) and not isinstance(object, str):
        return list(map(_copy, object))
    elif isinstance(object, Mapping):
        return dict(zip(object.keys(), map(_copy, object.values())))
    elif isinstance(object, Set):
        return set(map(_copy, object))
    return object


def mirror(name, /):
    """
    Define a read-only property that mirrors a private backing attribute.

    The property reads "_{name}" from the instance and hands back a fresh copy
    for container types, so repeated reads return equal but independent objects.

    Example
    - Given self._options, declare options = mirror("options") to expose it safely.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _copy(getattr(self, "_" + name))

    return property(getter)


def pluralize(word, count, /):
    """
    Return word as-is for a count of one and its plural otherwise.

    Only the regular forms flagpole's own messages need are handled
    (flag -> flags, alias -> aliases, entry -> entries).
    """
    if not isinstance(word, str):
        raise TypeError("pluralize() first argument must be a string")
    if count == 1 or not word:
        return word
    if word.endswith(("s", "sh", "ch", "x", "z")):
        return word + "es"
    if word.endswith("y") and len(word) > 1 and word[-2] not in "aeiou":
        return word[:-1] + "ies"
    return word + "s"


def unquote(text, /):
    """
    Strip one matching pair of surrounding quotes.

    Only a leading and trailing pair of the same kind (both '"' or both "'")
    is removed; a lone quote character or mismatched pair is left untouched.
    Inner quotes are never inspected.

    Examples
    - unquote('"hello"') -> 'hello'
    - unquote("'0'")     -> '0'
    - unquote('"oops\\'') -> '"oops\\''
    """
    if not isinstance(text, str):
        raise TypeError("unquote() argument must be a string")
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "\"'":
        return text[1:-1]
    return text


def verbose(level="DEBUG", /):
    """
    Route flagpole's log records to a rich handler on stderr.

    The library itself only installs a NullHandler; hosts that want to watch
    token decisions while debugging call verbose() once. Repeated calls only
    adjust the level.
    """
    logger = logging.getLogger(__package__)
    logger.setLevel(level)
    for handler in logger.handlers:
        if isinstance(handler, RichHandler):
            handler.setLevel(level)
            return handler
    handler = RichHandler(level=level, show_path=False, markup=False)
    logger.addHandler(handler)
    return handler


Unset = UnsetType()
"""
Internal sentinel for “not provided”.

Use Unset as a default when None is a valid value but “no input” still has to be
distinguished; materialize it with coalesce().
"""


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",
    "pluralize",
    "unquote",
    "verbose",

    # Types
    "UnsetType",

    # Constants
    "Unset",
)
