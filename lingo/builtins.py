"""
Lingo Builtin Registry
======================
The fixed table of native functions bound beneath every top-level
Environment. Builtins report misuse by returning Error objects.

`puts` writes through the host-supplied output function; the registry
itself performs no I/O.
"""
from typing import Callable

from .objects import (
    Object, ObjectType, Integer, String, Array, Hash, Builtin, Error, NULL,
)


def _wrong_arg_count(got: int, want: int) -> Error:
    return Error(f"wrong number of arguments. got={got}, want={want}")


def _expect_array(name: str, arg: Object) -> Error | None:
    if arg.type() != ObjectType.ARRAY:
        return Error(f'argument to "{name}" must be ARRAY, got {arg.type().value}')
    return None


def builtin_len(*args: Object) -> Object:
    if len(args) != 1:
        return _wrong_arg_count(len(args), 1)
    match args[0]:
        case String(value=value):
            return Integer(len(value))
        case Array(elements=elements):
            return Integer(len(elements))
        case Hash(pairs=pairs):
            return Integer(len(pairs))
        case other:
            return Error(f'argument to "len" not supported, got {other.type().value}')


def builtin_first(*args: Object) -> Object:
    if len(args) != 1:
        return _wrong_arg_count(len(args), 1)
    if (err := _expect_array("first", args[0])) is not None:
        return err
    elements = args[0].elements
    return elements[0] if elements else NULL


def builtin_last(*args: Object) -> Object:
    if len(args) != 1:
        return _wrong_arg_count(len(args), 1)
    if (err := _expect_array("last", args[0])) is not None:
        return err
    elements = args[0].elements
    return elements[-1] if elements else NULL


def builtin_rest(*args: Object) -> Object:
    """All but the first element, as a new Array. Null for an empty array."""
    if len(args) != 1:
        return _wrong_arg_count(len(args), 1)
    if (err := _expect_array("rest", args[0])) is not None:
        return err
    elements = args[0].elements
    return Array(elements[1:]) if elements else NULL


def builtin_push(*args: Object) -> Object:
    """A new Array with the value appended. The original is unchanged."""
    if len(args) != 2:
        return _wrong_arg_count(len(args), 2)
    if (err := _expect_array("push", args[0])) is not None:
        return err
    return Array(args[0].elements + (args[1],))


def make_builtins(output_fn: Callable[[str], None]) -> dict[str, Builtin]:
    """Build the builtin table. `output_fn` receives each line `puts` prints."""

    def builtin_puts(*args: Object) -> Object:
        for arg in args:
            output_fn(arg.inspect())
        return NULL

    natives = {
        "len": builtin_len,
        "first": builtin_first,
        "last": builtin_last,
        "rest": builtin_rest,
        "push": builtin_push,
        "puts": builtin_puts,
    }
    return {name: Builtin(name=name, fn=fn) for name, fn in natives.items()}
