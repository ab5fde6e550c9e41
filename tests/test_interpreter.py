import math

import pytest

from scopelang.ast_nodes import *
from scopelang.interpreter import (
    ConstantReassignmentError, EvalError, Interpreter, InvalidElementError, NestingTooDeepError,
    NoScopeError, RedefinitionError, UndefinedVariableError, compare, execute, format_scope, run,
)
from scopelang.lexer import tokenize
from scopelang.parser import SourceError, parse
from scopelang.values import Binding, Function, format_value


def statements(source):
    """Parse source and return the first statement of each top-level block"""
    tokens, _ = tokenize(source)
    tree, errors = parse(tokens)
    assert errors == []
    return [block.body[0] for block in tree.body]


@pytest.fixture
def interpreter():
    """An interpreter with one scope already pushed"""
    interp = Interpreter()
    interp.scope_stack.append({})
    return interp


def test_lookup_in_same_and_nested_scope():
    assert execute("(scope (let x 5) x)") == 5.0
    assert execute("(scope (let x 5) (scope x))") == 5.0


def test_lookup_after_scope_is_popped():
    with pytest.raises(UndefinedVariableError, match="undefined variable"):
        execute("(scope (scope (let x 5)) x)")


def test_shadowing_in_nested_scope():
    seen = []
    execute("(scope (let a 3) (scope (let a 4) (set a 5)))",
            on_scope_exit=lambda depth, bindings: seen.append((depth, bindings)))
    assert seen == [
        (2, {"a": Binding(5.0, False)}),
        (1, {"a": Binding(3.0, False)}),
    ]


def test_redeclaration_in_same_scope_fails():
    with pytest.raises(RedefinitionError, match="already present in the current scope"):
        execute("(scope (let a 1) (let a 2))")


def test_constant_cannot_be_reassigned(interpreter):
    declare, reassign = statements("(const x 1) (set x 2)")
    interpreter.evaluate(declare)
    with pytest.raises(ConstantReassignmentError, match="constant"):
        interpreter.evaluate(reassign)
    assert interpreter.lookup("x") == Binding(1.0, True)


def test_reassigning_undeclared_variable_fails():
    with pytest.raises(UndefinedVariableError, match="redefine an undefined variable"):
        execute("(scope (set y 1))")


def test_reassignment_is_local_to_the_innermost_scope():
    with pytest.raises(UndefinedVariableError):
        execute("(scope (let a 1) (scope (set a 2)))")


def test_reassignment_clears_nothing_else(interpreter):
    for stmt in statements("(let a 1) (let b 2) (set a 3)"):
        interpreter.evaluate(stmt)
    assert interpreter.scopes == [{"a": Binding(3.0, False), "b": Binding(2.0, False)}]


def test_declaration_requires_a_scope():
    with pytest.raises(NoScopeError, match="No scopes available"):
        execute("(let x 1)")
    with pytest.raises(NoScopeError):
        execute("(x)")


def test_expressions_need_no_scope():
    assert execute("(+ 1 2)") == 3.0


def test_arithmetic():
    assert execute("(- 10 (* 2 (/ 9 3)))") == 4.0
    assert execute("(% -7 2)") == -1.0


def test_arithmetic_on_mismatched_types_is_nil():
    assert execute("(+ 'a' 1)") is None
    assert execute("(scope (let r (+ 'a' 1)) r)") is None
    assert execute("(* true 2)") is None


def test_division_by_zero_follows_ieee():
    assert execute("(/ 1 0)") == math.inf
    assert execute("(/ -1 0)") == -math.inf
    assert math.isnan(execute("(/ 0 0)"))
    assert math.isnan(execute("(% 5 0)"))


def test_equality_across_types():
    assert execute("(= 1 '1')") is False
    assert execute("(~ 1 '1')") is True
    assert execute("(= 1 true)") is False
    assert execute("(= nil nil)") is True
    assert execute("(~ nil nil)") is False
    assert execute("(= 'a' 'a')") is True
    assert execute("(= true false)") is False


def test_equality_on_other_values_defaults():
    fn = Function(("a",), Block(1))
    assert compare(CmpKind.EQ, (1.0,), (1.0,)) is False
    assert compare(CmpKind.NEQ, fn, fn) is True


def test_ordering():
    assert execute("(< 1 2)") is True
    assert execute("(<= 2 2)") is True
    assert execute("(> 1 2)") is False
    assert execute("(>= 3 2)") is True
    assert execute("(< 'a' 'b')") is None


def test_logical_operators():
    assert execute("(and true false)") is False
    assert execute("(or true false)") is True
    assert execute("(and 1 true)") is None


def test_identifiers_as_operands():
    assert execute("(scope (let a 3) (= a 3))") is True
    assert execute("(scope (let a 3) (+ (a) 1))") == 4.0


def test_conditional():
    assert execute("(scope (let a 1) (if (= a 1) ((set a 2)) ((set a 3))) a)") == 2.0
    assert execute("(scope (let a 0) (if (= a 1) ((set a 2)) ((set a 3))) a)") == 3.0
    assert execute("(scope (let a 0) (if (< 'a' 1) ((set a 2))) a)") == 0.0


def test_loop():
    assert execute("(scope (let i 0) (while (< i 3) ((set i (+ (i) 1)))) i)") == 3.0


def test_function_literal_is_stored_not_called():
    fn = execute("(scope (let f (func (a b) ((+ 1 2)))) f)")
    assert isinstance(fn, Function)
    assert fn.params == ("a", "b")
    assert isinstance(fn.body, Block)
    assert format_value(fn) == "<func(a, b)>"


def test_empty_and_unknown_nodes_are_nil():
    assert run(Block(1, (Empty(1),))) is None
    assert run(Block(1, ())) is None


def test_invalid_operand_shape():
    bad = Operator(1, OpKind.ADD,
                   Assignment(1, AssignKind.LET, Identifier(1, "x"), NumberLiteral(1, 1.0)),
                   NumberLiteral(1, 1.0))
    with pytest.raises(InvalidElementError, match="Invalid element"):
        run(Block(1, (bad,)))


def test_nesting_too_deep():
    node = NumberLiteral(1, 1.0)
    for _ in range(Interpreter.MAX_DEPTH + 10):
        node = Block(1, (node,))
    with pytest.raises(NestingTooDeepError):
        run(node)
    assert run(node, max_depth=Interpreter.MAX_DEPTH + 20) == 1.0


def test_scope_stack_is_unwound_on_error():
    interp = Interpreter()
    tokens, _ = tokenize("(scope (scope (scope (set nope 1))))")
    tree, _ = parse(tokens)
    with pytest.raises(EvalError):
        interp.run(tree)
    assert interp.scopes == []


def test_errors_carry_the_node_line():
    with pytest.raises(UndefinedVariableError) as info:
        execute("(scope\n  (let a 1)\n  b)")
    assert info.value.line == 3
    assert "(line 3)" in str(info.value)


def test_execute_reports_source_errors():
    with pytest.raises(SourceError) as info:
        execute("(let 5 5) @")
    errors = info.value.errors
    assert "1 | Unexpected character: @" in errors
    assert any("Invalid token" in e for e in errors)


def test_format_scope():
    text = format_scope({"a": Binding(3.0, False), "b": Binding("x", True)})
    assert text.splitlines() == ["{", "  a: 3 (mutable)", "  b: x (const)", "}"]


def test_nesting_beyond_the_python_stack_is_reported():
    node = NumberLiteral(1, 1.0)
    for _ in range(3000):
        node = Block(1, (node,))
    interp = Interpreter(max_depth=100000)
    with pytest.raises(NestingTooDeepError, match="Nesting too deep"):
        interp.run(node)
    assert interp.depth == 0
