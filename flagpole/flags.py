r"""
Flagpole flag registry: kinds, storage cells, and alias lookup.

Overview
- Kind: the four value kinds a flag can carry (boolean, integer, float, string),
  each with its converter and its zero default.
- Cell: the mutable storage location handed back to the caller at registration
  and written in place by the parser.
- Flag: one registered flag family (all aliases, one kind, one cell).
- Registry: per-parser lookup from every alias spelling to its Flag.

Aliases
- Registration takes a comma-separated spelling list ("-a,--append") or any
  iterable of spellings. Each alias is trimmed; empty aliases, aliases with '='
  or whitespace, and repeats within one registration are rejected.
- Rebinding an alias that an earlier registration already holds overwrites the
  lookup entry and logs a warning; the earlier cell keeps its value but is no
  longer reachable through that spelling.

Quick example:
    >>> registry = Registry()
    >>> verbose = registry.register("-v,--verbose", Kind.BOOLEAN)
    >>> registry.lookup("--verbose").cell is verbose
    True
"""
import functools
import logging
import operator
import re
from collections.abc import Iterable
from enum import Enum

from .faults import FaultCode
from .utils import *

logger = logging.getLogger(__name__)


class Kind(Enum):
    """
    value kinds a flag can be bound to.

    each member carries (label, converter, default); the converter turns the
    raw, quote-stripped token text into the stored value.
    """
    BOOLEAN = ("boolean", bool, False)
    INTEGER = ("integer", int, 0)
    FLOAT = ("float", float, 0.0)
    STRING = ("string", str, "")

    def __init__(self, label, converter, default):
        self.label = label
        self.converter = converter
        self.default = default

    def convert(self, text, /):
        """
        convert raw flag text into this kind's value.

        booleans never come through here (their text is only compared with
        "0"/"1" by the parser). a ValueError propagates on bad numeric text.
        """
        if self is Kind.BOOLEAN:
            raise TypeError("boolean flags are not converted from text")
        return self.converter(text)

    def validate(self, default, /):
        """
        check and normalize a registration default for this kind.
        """
        match self:
            case Kind.BOOLEAN if isinstance(default, bool):
                return default
            case Kind.INTEGER if isinstance(default, int) and not isinstance(default, bool):
                return default
            case Kind.FLOAT if isinstance(default, int | float) and not isinstance(default, bool):
                return float(default)
            case Kind.STRING if isinstance(default, str):
                return default
        raise TypeError("%s flag default must be a %s, not %s" % (self.label, self.label, type(default).__name__))


class Cell:
    """
    mutable storage location bound to a flag family.

    the caller owns the cell; the registry only keeps a reference for lookup.
    read or assign `value` directly.
    """
    __slots__ = ("value",)

    def __init__(self, value):
        self.value = value

    def __repr__(self):
        return "Cell(%r)" % (self.value,)

    def __rich_repr__(self):
        yield self.value

    def __eq__(self, other):
        if isinstance(other, Cell):
            return self.value == other.value
        return NotImplemented

    __hash__ = None


class FlagType(type):
    """
    Metaclass giving flag records read-only properties and stable reprs.

    Names listed in __introspectable__ become properties backed by "_{name}"
    (see mirror()); __repr__/__rich_repr__ list __displayable__ when set,
    otherwise the introspectable names.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


class Flag(metaclass=FlagType):
    """
    one registered flag family.

    all names share the same kind and the same cell. `names` keeps
    registration order; `default` is the (validated) value the cell started
    with.
    """
    __introspectable__ = ("kind", "default")
    __displayable__ = ("names", "kind", "default")

    def __init__(self, names, kind, default):
        self._names = tuple(names)
        self._kind = kind
        self._default = default
        self._cell = Cell(default)

    @property
    def names(self):
        return self._names

    @property
    def cell(self):
        return self._cell


def _split(aliases):
    """
    Internal: split and validate an alias list.

    accepts "-a,--append" or an iterable of spellings; returns the trimmed
    spellings in order.
    """
    if isinstance(aliases, str):
        aliases = aliases.split(",")
    elif not isinstance(aliases, Iterable):
        raise TypeError("flag aliases must be a string or an iterable of strings")

    names = []
    for alias in aliases:
        if not isinstance(alias, str):
            raise TypeError("flag aliases must be strings")
        elif not (alias := alias.strip()):
            raise ValueError("flag aliases cannot be empty-strings")
        elif "=" in alias or re.search(r"\s", alias):
            raise ValueError("flag alias %r cannot contain '=' or whitespace" % alias)
        elif alias in names:
            raise ValueError("flag aliases cannot contain duplicates (%r)" % alias)
        names.append(alias)

    if not names:
        raise ValueError("at least one flag alias is required")
    return names


class Registry:
    """
    per-parser mapping from alias spelling to its Flag.

    lookups are exact; everything about a token's shape (prefixes, clusters,
    '=' suffixes) is the parser's business.
    """

    def __init__(self):
        self._lookup = {}
        self._markers = set()

    def register(self, aliases, kind, default=Unset, /):
        """
        register a flag family and return its storage cell.

        parameters
        - aliases: str | Iterable[str]
          comma-separated spellings ("-a,--append") or an iterable of them.
        - kind: Kind
        - default: value of the kind; the kind's zero value when omitted.

        returns
        - Cell shared by every alias, initialized to default.
        """
        if not isinstance(kind, Kind):
            raise TypeError("flag kind must be a Kind member")
        names = _split(aliases)
        flag = Flag(names, kind, kind.validate(coalesce(default, kind.default)))

        for name in names:
            if (previous := self._lookup.get(name)) is not None:
                logger.warning(
                    "alias %r rebound from %s flag %s to %s flag %s (%s)",
                    name,
                    previous.kind.label,
                    ",".join(previous.names),
                    kind.label,
                    ",".join(names),
                    FaultCode.REBOUND_ALIAS.normalize(),
                )
            self._lookup[name] = flag
            self._markers.add(name[0])

        logger.debug("registered %s flag %s (default %r)", kind.label, ",".join(names), flag.default)
        return flag.cell

    def lookup(self, spelling, /):
        """
        return the Flag bound to spelling; KeyError when absent.
        """
        return self._lookup[spelling]

    def flaglike(self, token, /):
        """
        whether token starts with a character some registered spelling starts with.
        """
        return bool(token) and token[0] in self._markers

    def flags(self):
        """
        unique flag families that are still reachable, in registration order.
        """
        return list(dict.fromkeys(self._lookup.values()))

    def __contains__(self, spelling):
        return spelling in self._lookup

    def __iter__(self):
        return iter(self._lookup)

    def __len__(self):
        return len(self._lookup)

    def __repr__(self):
        return "registry(%s)" % ", ".join(self._lookup)


__all__ = (
    "Kind",
    "Cell",
    "Flag",
    "Registry",
)
