"""
Lingo Object System
===================
Runtime values produced by the Interpreter, plus the Environment that
maps identifiers to them.

Objects are immutable once constructed. Integer, Boolean and String can
be used as hash keys: equal underlying values give equal HashKeys
regardless of which object produced them.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from .ast import BlockStatement, Identifier, quote_string


class ObjectType(Enum):
    INTEGER      = "INTEGER"
    BOOLEAN      = "BOOLEAN"
    STRING       = "STRING"
    NULL         = "NULL"
    RETURN_VALUE = "RETURN_VALUE"
    ERROR        = "ERROR"
    ARRAY        = "ARRAY"
    HASH         = "HASH"
    FUNCTION     = "FUNCTION"
    BUILTIN      = "BUILTIN"


@dataclass(frozen=True)
class HashKey:
    """Identity of a hashable object's value: (kind, underlying value)."""
    type: ObjectType
    value: Any


class Object:
    """Base class for all runtime values."""
    object_type: ObjectType

    def type(self) -> ObjectType:
        return self.object_type

    def inspect(self) -> str:
        raise NotImplementedError(type(self).__name__)


class Hashable(Object):
    """Objects usable as hash keys."""
    value: Any

    def hash_key(self) -> HashKey:
        return HashKey(self.object_type, self.value)


@dataclass(frozen=True)
class Integer(Hashable):
    value: int
    object_type = ObjectType.INTEGER

    def inspect(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Boolean(Hashable):
    value: bool
    object_type = ObjectType.BOOLEAN

    def inspect(self) -> str:
        return "true" if self.value else "false"


@dataclass(frozen=True)
class String(Hashable):
    value: str
    object_type = ObjectType.STRING

    def inspect(self) -> str:
        return self.value


@dataclass(frozen=True)
class Null(Object):
    object_type = ObjectType.NULL

    def inspect(self) -> str:
        return "null"


@dataclass(frozen=True)
class ReturnValue(Object):
    """Wraps the value of a `return` while it unwinds to the call boundary."""
    value: Object
    object_type = ObjectType.RETURN_VALUE

    def inspect(self) -> str:
        return self.value.inspect()


@dataclass(frozen=True)
class Error(Object):
    message: str
    object_type = ObjectType.ERROR

    def inspect(self) -> str:
        return f"ERROR: {self.message}"


@dataclass(frozen=True)
class Array(Object):
    elements: tuple[Object, ...] = ()
    object_type = ObjectType.ARRAY

    def __post_init__(self):
        object.__setattr__(self, "elements", tuple(self.elements))

    def inspect(self) -> str:
        return "[" + ", ".join(_inspect_nested(e) for e in self.elements) + "]"


@dataclass(frozen=True)
class HashPair:
    key: Object
    value: Object


@dataclass(frozen=True, eq=False)
class Hash(Object):
    pairs: dict[HashKey, HashPair] = field(default_factory=dict)
    object_type = ObjectType.HASH

    def get(self, key: Hashable) -> Object | None:
        pair = self.pairs.get(key.hash_key())
        return pair.value if pair is not None else None

    def inspect(self) -> str:
        items = [
            f"{_inspect_nested(p.key)}: {_inspect_nested(p.value)}"
            for p in self.pairs.values()
        ]
        return "{" + ", ".join(items) + "}"


@dataclass(frozen=True, eq=False)
class Function(Object):
    """A closure: parameters and body plus the Environment it was defined in."""
    parameters: list[Identifier]
    body: BlockStatement
    env: "Environment"
    object_type = ObjectType.FUNCTION

    def inspect(self) -> str:
        params = ", ".join(p.value for p in self.parameters)
        return f"fn({params}) {self.body.format()}"


@dataclass(frozen=True, eq=False)
class Builtin(Object):
    """A native function exposed to Lingo code under a fixed name."""
    name: str
    fn: Callable[..., Object]
    object_type = ObjectType.BUILTIN

    def inspect(self) -> str:
        return "builtin function"


def _inspect_nested(obj: Object) -> str:
    """Strings are quoted when shown inside arrays and hashes."""
    if isinstance(obj, String):
        return quote_string(obj.value)
    return obj.inspect()


TRUE = Boolean(True)
FALSE = Boolean(False)
NULL = Null()


def native_bool(value: bool) -> Boolean:
    return TRUE if value else FALSE


# ─────────────────────────────────────────────────────────────
#  Environment
# ─────────────────────────────────────────────────────────────

class Environment:
    """
    A mapping from identifier to Object with an optional enclosing scope.

    Lookups walk outward through `outer`; bindings are only ever added to
    the environment's own store, so a child scope shadows but never
    mutates its parent.
    """

    def __init__(self, outer: "Environment | None" = None):
        self.store: dict[str, Object] = {}
        self.outer = outer

    @classmethod
    def from_bindings(cls, bindings: dict[str, Object],
                      outer: "Environment | None" = None) -> "Environment":
        env = cls(outer)
        env.store.update(bindings)
        return env

    def get(self, name: str) -> Object | None:
        env = self
        while env is not None:
            if name in env.store:
                return env.store[name]
            env = env.outer
        return None

    def set(self, name: str, value: Object) -> Object:
        self.store[name] = value
        return value

    def extend(self) -> "Environment":
        """Create a fresh child scope enclosed by this one."""
        return Environment(outer=self)

    def __contains__(self, name: str) -> bool:
        return self.get(name) is not None

    def __repr__(self) -> str:
        return f"Environment({sorted(self.store)}, outer={'yes' if self.outer else 'no'})"
