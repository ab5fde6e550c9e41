"""
scopelang - Interpreter
Tree-walking evaluator over a stack of lexical scopes
"""

from typing import Any, Callable, Dict, List, Optional
import logging
import math

from .ast_nodes import *
from .lexer import tokenize
from .parser import Parser, SourceError
from .values import Binding, Function, format_value, is_truthy

logger = logging.getLogger(__name__)

ScopeObserver = Callable[[int, Dict[str, Binding]], None]

class EvalError(Exception):
    def __init__(self, message: str, line: Optional[int] = None):
        if line is None:
            super().__init__(message)
        else:
            super().__init__(f"{message} (line {line})")
        self.message = message
        self.line = line

class NoScopeError(EvalError):
    pass

class UndefinedVariableError(EvalError):
    pass

class RedefinitionError(EvalError):
    pass

class ConstantReassignmentError(EvalError):
    pass

class InvalidElementError(EvalError):
    pass

class NestingTooDeepError(EvalError):
    pass


def _div(a: float, b: float) -> float:
    if b == 0:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b

def _mod(a: float, b: float) -> float:
    if b == 0 or math.isinf(a):
        return math.nan
    return math.fmod(a, b)

ARITHMETIC = {
    OpKind.ADD: lambda a, b: a + b,
    OpKind.SUB: lambda a, b: a - b,
    OpKind.MUL: lambda a, b: a * b,
    OpKind.DIV: _div,
    OpKind.MOD: _mod,
}

ORDERING = {
    CmpKind.LT: lambda a, b: a < b,
    CmpKind.LTE: lambda a, b: a <= b,
    CmpKind.GT: lambda a, b: a > b,
    CmpKind.GTE: lambda a, b: a >= b,
}


def is_number(value: Any) -> bool:
    return isinstance(value, float)

def values_equal(a: Any, b: Any) -> bool:
    """Equality is only defined between numbers, bools, strings, or two nils"""
    if a is None or b is None:
        return a is None and b is None
    for kind in (bool, float, str):
        if isinstance(a, kind) and isinstance(b, kind):
            return a == b
    return False

def arithmetic(op: OpKind, a: Any, b: Any) -> Any:
    if is_number(a) and is_number(b):
        return ARITHMETIC[op](a, b)
    return None

def compare(op: CmpKind, a: Any, b: Any) -> Any:
    if op == CmpKind.EQ:
        return values_equal(a, b)
    if op == CmpKind.NEQ:
        return not values_equal(a, b)
    if op in ORDERING:
        if is_number(a) and is_number(b):
            return ORDERING[op](a, b)
        return None
    # and / or
    if isinstance(a, bool) and isinstance(b, bool):
        return (a and b) if op == CmpKind.AND else (a or b)
    return None


def format_scope(bindings: Dict[str, Binding]) -> str:
    """Render one scope, one binding per line, in declaration order"""
    lines = ["{"]
    for name, binding in bindings.items():
        flag = "const" if binding.is_const else "mutable"
        lines.append(f"  {name}: {format_value(binding.value)} ({flag})")
    lines.append("}")
    return "\n".join(lines)


class Interpreter:
    """Evaluates a syntax tree; the first semantic error aborts the walk"""

    MAX_DEPTH = 200

    NO_SCOPE = "No scopes available. Consider adding a scope to your program"

    __slots__ = ('scope_stack', 'depth', 'max_depth', 'on_scope_exit')

    def __init__(self, max_depth: Optional[int] = None, on_scope_exit: Optional[ScopeObserver] = None):
        self.scope_stack: List[Dict[str, Binding]] = []
        self.depth = 0
        self.max_depth = self.MAX_DEPTH if max_depth is None else max_depth
        self.on_scope_exit = on_scope_exit

    # === Scope introspection ===

    @property
    def scopes(self) -> List[Dict[str, Binding]]:
        """Snapshot of the scope stack, outermost first"""
        return [dict(scope) for scope in self.scope_stack]

    def lookup(self, name: str) -> Optional[Binding]:
        """Binding visible under name, innermost scope first"""
        for scope in reversed(self.scope_stack):
            if name in scope:
                return scope[name]
        return None

    def current_scope(self, line: int) -> Dict[str, Binding]:
        if not self.scope_stack:
            raise NoScopeError(self.NO_SCOPE, line)
        return self.scope_stack[-1]

    # === Evaluation ===

    def run(self, tree: Node) -> Any:
        """Evaluate a whole program from an empty scope stack"""
        self.scope_stack = []
        self.depth = 0
        try:
            return self.evaluate(tree)
        except EvalError as e:
            logger.debug("evaluation failed: %s", e)
            raise
        except RecursionError:
            logger.debug("evaluation failed: Python stack exhausted")
            raise NestingTooDeepError("Nesting too deep", tree.line) from None

    def evaluate(self, node: Node) -> Any:
        self.depth += 1
        try:
            if self.depth > self.max_depth:
                raise NestingTooDeepError("Nesting too deep", node.line)
            return self.eval_node(node)
        finally:
            self.depth -= 1

    def eval_node(self, node: Node) -> Any:
        if isinstance(node, Scope):
            return self.eval_scope(node)

        elif isinstance(node, Block):
            return self.eval_sequence(node.body)

        elif isinstance(node, Assignment):
            if node.kind == AssignKind.SET:
                self.reassign(node)
            else:
                self.declare(node)
            return None

        elif isinstance(node, Identifier):
            return self.resolve(node)

        elif isinstance(node, (NumberLiteral, StringLiteral, BoolLiteral)):
            return node.value

        elif isinstance(node, Operator):
            left = self.eval_operand(node.left)
            right = self.eval_operand(node.right)
            return arithmetic(node.op, left, right)

        elif isinstance(node, Comparison):
            left = self.eval_operand(node.left)
            right = self.eval_operand(node.right)
            return compare(node.op, left, right)

        elif isinstance(node, Conditional):
            if is_truthy(self.evaluate(node.condition)):
                return self.evaluate(node.then_branch)
            return self.evaluate(node.else_branch)

        elif isinstance(node, Loop):
            while is_truthy(self.evaluate(node.condition)):
                self.evaluate(node.body)
            return None

        elif isinstance(node, FunctionLiteral):
            return self.make_function(node)

        # Empty, NilLiteral and anything unrecognised
        return None

    def eval_sequence(self, statements) -> Any:
        result = None
        for statement in statements:
            result = self.evaluate(statement)
        return result

    def eval_scope(self, node: Scope) -> Any:
        self.scope_stack.append({})
        depth = len(self.scope_stack)
        logger.debug("push scope %d (line %d)", depth, node.line)
        try:
            result = self.eval_sequence(node.body)
            if self.on_scope_exit is not None:
                self.on_scope_exit(depth, dict(self.scope_stack[-1]))
            return result
        finally:
            self.scope_stack.pop()
            logger.debug("pop scope %d", depth)

    def eval_operand(self, node: Node) -> Any:
        if isinstance(node, (Block, Scope, Identifier, NumberLiteral, StringLiteral,
                             BoolLiteral, NilLiteral, Empty)):
            return self.evaluate(node)
        raise InvalidElementError("Invalid element", node.line)

    def resolve(self, node: Identifier) -> Any:
        self.current_scope(node.line)
        binding = self.lookup(node.name)
        if binding is None:
            raise UndefinedVariableError(f"Attempted to access an undefined variable `{node.name}`", node.line)
        return binding.value

    def declare(self, node: Assignment):
        scope = self.current_scope(node.line)
        name = node.target.name
        if name in scope:
            raise RedefinitionError(
                f"Attempted to redefine variable `{name}` that is already present in the current scope",
                node.line)

        value = self.evaluate(node.value)
        # The value block runs in this scope and may have bound the name itself
        if name in scope:
            raise RedefinitionError(
                f"Attempted to redefine variable `{name}` that is already present in the current scope",
                node.line)
        scope[name] = Binding(value, node.kind == AssignKind.CONST)

    def reassign(self, node: Assignment):
        scope = self.current_scope(node.line)
        name = node.target.name
        if name not in scope:
            raise UndefinedVariableError(f"Attempted to redefine an undefined variable `{name}`", node.line)
        if scope[name].is_const:
            raise ConstantReassignmentError(f"Attempted to redefine a constant `{name}`", node.line)

        scope[name] = Binding(self.evaluate(node.value), False)

    def make_function(self, node: FunctionLiteral) -> Function:
        params = []
        for param in node.params.body:
            if not isinstance(param, Identifier):
                raise InvalidElementError("Invalid argument in function declaration", param.line)
            params.append(param.name)
        return Function(tuple(params), node.body)


def run(tree: Node, max_depth: Optional[int] = None, on_scope_exit: Optional[ScopeObserver] = None) -> Any:
    """Evaluate tree with a fresh interpreter"""
    return Interpreter(max_depth, on_scope_exit).run(tree)


def execute(source: str, max_depth: Optional[int] = None, on_scope_exit: Optional[ScopeObserver] = None) -> Any:
    """Tokenize, parse and run source code. max_depth bounds block nesting in the parser."""
    tokens, errors = tokenize(source)
    parser = Parser(tokens, max_depth)
    tree = parser.parse()
    errors = errors + parser.get_errors()
    if errors:
        raise SourceError(errors)
    return run(tree, on_scope_exit=on_scope_exit)
