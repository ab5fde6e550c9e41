"""
scopelang - Runtime values
Numbers, strings, bools and nil are plain Python objects (float, str, bool, None);
lists are tuples and functions are Function instances.
"""

from dataclasses import dataclass
from typing import Any, Tuple

from .ast_nodes import Node

NIL = None

@dataclass(frozen=True, slots=True)
class Function:
    """Function value: parameter names plus a reference to the body sub-tree"""
    params: Tuple[str, ...]
    body: Node

@dataclass(frozen=True, slots=True)
class Binding:
    """A name's value within one scope"""
    value: Any
    is_const: bool = False


def type_name(value: Any) -> str:
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, tuple):
        return "list"
    if isinstance(value, Function):
        return "function"
    return type(value).__name__


def is_truthy(value: Any) -> bool:
    return value is not None and value is not False


def format_value(value: Any) -> str:
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, tuple):
        return "[" + ", ".join(format_value(v) for v in value) + "]"
    if isinstance(value, Function):
        return f"<func({', '.join(value.params)})>"
    return str(value)
