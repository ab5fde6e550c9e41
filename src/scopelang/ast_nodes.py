"""
scopelang - AST (Abstract Syntax Tree)
Immutable node structures; each kind has a fixed set of child slots
"""

from dataclasses import dataclass
from typing import Tuple, Union
from enum import IntEnum, auto

class OpKind(IntEnum):
    ADD = auto()
    SUB = auto()
    MUL = auto()
    DIV = auto()
    MOD = auto()

class CmpKind(IntEnum):
    EQ = auto()
    NEQ = auto()
    LT = auto()
    LTE = auto()
    GT = auto()
    GTE = auto()
    AND = auto()
    OR = auto()

class AssignKind(IntEnum):
    LET = auto()
    CONST = auto()
    SET = auto()

# Base AST Node
@dataclass(frozen=True, slots=True)
class Node:
    line: int

    @property
    def children(self) -> Tuple['Node', ...]:
        return ()

# Containers
@dataclass(frozen=True, slots=True)
class Block(Node):
    """Statements evaluated in the enclosing scope"""
    body: Tuple[Node, ...] = ()

    @property
    def children(self):
        return self.body

@dataclass(frozen=True, slots=True)
class Scope(Node):
    """Statements evaluated in a freshly pushed scope"""
    body: Tuple[Node, ...] = ()

    @property
    def children(self):
        return self.body

@dataclass(frozen=True, slots=True)
class Empty(Node):
    pass

# Leaves
@dataclass(frozen=True, slots=True)
class Identifier(Node):
    name: str

@dataclass(frozen=True, slots=True)
class NumberLiteral(Node):
    value: float

@dataclass(frozen=True, slots=True)
class StringLiteral(Node):
    value: str

@dataclass(frozen=True, slots=True)
class BoolLiteral(Node):
    value: bool

@dataclass(frozen=True, slots=True)
class NilLiteral(Node):
    pass

# Expressions
@dataclass(frozen=True, slots=True)
class Operator(Node):
    op: OpKind
    left: Node
    right: Node

    @property
    def children(self):
        return (self.left, self.right)

@dataclass(frozen=True, slots=True)
class Comparison(Node):
    op: CmpKind
    left: Node
    right: Node

    @property
    def children(self):
        return (self.left, self.right)

# Statements
@dataclass(frozen=True, slots=True)
class Conditional(Node):
    condition: Node
    then_branch: Node
    else_branch: Node

    @property
    def children(self):
        return (self.condition, self.then_branch, self.else_branch)

@dataclass(frozen=True, slots=True)
class Loop(Node):
    condition: Node
    body: Node

    @property
    def children(self):
        return (self.condition, self.body)

@dataclass(frozen=True, slots=True)
class Assignment(Node):
    kind: AssignKind
    target: Identifier
    value: Node

    @property
    def children(self):
        return (self.target, self.value)

@dataclass(frozen=True, slots=True)
class FunctionLiteral(Node):
    params: Block
    body: Node

    @property
    def children(self):
        return (self.params, self.body)

Literal = Union[NumberLiteral, StringLiteral, BoolLiteral, NilLiteral]


def describe(node: Node) -> str:
    """One-line label for a node, without its children"""
    name = type(node).__name__
    if isinstance(node, Identifier):
        return f"{name}({node.name})"
    if isinstance(node, (NumberLiteral, StringLiteral, BoolLiteral)):
        return f"{name}({node.value!r})"
    if isinstance(node, (Operator, Comparison)):
        return f"{name}({node.op.name})"
    if isinstance(node, Assignment):
        return f"{name}({node.kind.name})"
    return name


def dump_tree(node: Node, indent: int = 0) -> str:
    """Indented multi-line rendering of a tree, one node per line"""
    lines = [f"{'  ' * indent}{describe(node)}"]
    for child in node.children:
        lines.append(dump_tree(child, indent + 1))
    return "\n".join(lines)
