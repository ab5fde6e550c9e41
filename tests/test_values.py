import math

from scopelang.ast_nodes import Block
from scopelang.values import Function, format_value, is_truthy, type_name


def test_format_value():
    assert format_value(None) == "nil"
    assert format_value(True) == "true"
    assert format_value(3.0) == "3"
    assert format_value(-2.5) == "-2.5"
    assert format_value(math.inf) == "inf"
    assert format_value("hi") == "hi"
    assert format_value((1.0, "a", None)) == "[1, a, nil]"
    assert format_value(Function((), Block(1))) == "<func()>"


def test_type_name():
    assert [type_name(v) for v in (None, False, 1.0, "s", (), Function((), Block(1)))] == [
        "nil", "bool", "number", "string", "list", "function",
    ]


def test_truthiness():
    assert not is_truthy(None)
    assert not is_truthy(False)
    assert is_truthy(0.0)
    assert is_truthy("")
