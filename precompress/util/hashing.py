"""Utility functions for hashing operations."""

import functools
import hashlib
import inspect
import json
import types
from typing import Any, Callable


def calculate_bytes_hash(data: bytes, algorithm: str = "sha256") -> str:
    """Calculate hash of bytes data."""
    hasher = hashlib.new(algorithm)
    hasher.update(data)
    return hasher.hexdigest()


def calculate_text_hash(text: str, algorithm: str = "md5") -> str:
    """Calculate hash of a UTF-8 encoded string."""
    return calculate_bytes_hash(text.encode("utf-8"), algorithm)


def serialize_callable(func: Callable[..., Any]) -> str:
    """Serialize a callable into a string that is stable across processes.

    Different behavior gives a different string: partials include their
    bound arguments, callable instances their attributes, and functions
    their bytecode, constants, defaults and closure contents next to the
    module, qualified name and source text.
    """
    if isinstance(func, functools.partial):
        return "partial({},{},{})".format(
            serialize_callable(func.func),
            serialize_value(list(func.args)),
            serialize_value(func.keywords),
        )

    if isinstance(func, types.MethodType):
        return "method({},{})".format(
            serialize_callable(func.__func__),
            serialize_value(func.__self__),
        )

    if isinstance(func, types.FunctionType):
        return "function({}:{}:{}:{}:{}:{})".format(
            func.__module__,
            func.__qualname__,
            _source_of(func),
            _serialize_code(func.__code__),
            serialize_value([func.__defaults__, func.__kwdefaults__]),
            serialize_value([_cell_contents(cell, func) for cell in func.__closure__ or ()]),
        )

    if isinstance(func, (types.BuiltinFunctionType, type)):
        return f"{func.__module__}:{func.__qualname__}"

    # Callable instance: its class plus its state
    cls = type(func)
    return "instance({}:{}:{}:{})".format(
        cls.__module__,
        cls.__qualname__,
        _source_of(cls),
        serialize_value(getattr(func, "__dict__", {})),
    )


def _source_of(obj: Any) -> str:
    try:
        return inspect.getsource(obj)
    except (OSError, TypeError):
        return ""


def _serialize_code(code: types.CodeType) -> str:
    consts = [
        _serialize_code(const) if isinstance(const, types.CodeType) else _const_repr(const)
        for const in code.co_consts
    ]
    return f"{code.co_code.hex()}|{','.join(consts)}|{','.join(code.co_names)}"


def _const_repr(const: Any) -> str:
    if isinstance(const, frozenset):
        return repr(sorted(const, key=repr))
    return repr(const)


def _cell_contents(cell: Any, owner: Callable[..., Any]) -> Any:
    try:
        contents = cell.cell_contents
    except ValueError:
        # Cell not yet assigned
        return None
    # A nested function referring to itself
    return "<self>" if contents is owner else contents


def serialize_value(value: Any) -> str:
    """Deterministic, key-order independent serialization of plain data.

    Callables are replaced by their serialized form, bytes by their hex and
    other objects by their class and attributes.
    """
    return json.dumps(value, sort_keys=True, separators=(",", ":"), default=_encode_default)


def _encode_default(value: Any) -> Any:
    if callable(value):
        return {"__callable__": serialize_callable(value)}
    if isinstance(value, (bytes, bytearray, memoryview)):
        return {"__bytes__": bytes(value).hex()}
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=repr)
    if hasattr(value, "__dict__"):
        cls = type(value)
        return {"__object__": f"{cls.__module__}:{cls.__qualname__}", "state": vars(value)}
    return {"__repr__": f"{type(value).__qualname__}:{value!r}"}
