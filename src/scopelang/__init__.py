"""
scopelang Language Package
"""

import logging

from .lexer import tokenize, Lexer, Token, TokenType, KEYWORDS
from .parser import parse, Parser, ParseError, SourceError
from .interpreter import (
    run, execute, Interpreter, EvalError, NoScopeError, UndefinedVariableError,
    RedefinitionError, ConstantReassignmentError, InvalidElementError, NestingTooDeepError,
    format_scope,
)
from .values import Function, Binding, format_value, type_name
from .ast_nodes import dump_tree

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"
__all__ = [
    "tokenize", "Lexer", "Token", "TokenType", "KEYWORDS",
    "parse", "Parser", "ParseError", "SourceError",
    "run", "execute", "Interpreter", "EvalError", "NoScopeError", "UndefinedVariableError",
    "RedefinitionError", "ConstantReassignmentError", "InvalidElementError", "NestingTooDeepError",
    "format_scope", "Function", "Binding", "format_value", "type_name", "dump_tree",
]
