"""
scopelang - Parser
Recursive descent parser, one method per production, with best-effort error recovery
"""

from typing import List, Optional, Tuple
import logging

from .lexer import Token, TokenType
from .ast_nodes import *

logger = logging.getLogger(__name__)

class ParseError(Exception):
    def __init__(self, message: str, line: int):
        super().__init__(f"{message} at line {line}")
        self.message = message
        self.line = line

class SourceError(Exception):
    """Lexical and/or syntax errors collected while reading a program"""

    def __init__(self, errors: List[str]):
        super().__init__("\n".join(errors))
        self.errors = list(errors)

class Parser:
    """Recursive descent parser over a token list ending in EOF"""

    __slots__ = ('tokens', 'pos', 'length', 'depth', 'max_depth', 'errors')

    MAX_DEPTH = 64

    ARITHMETIC = {
        TokenType.PLUS: OpKind.ADD,
        TokenType.MINUS: OpKind.SUB,
        TokenType.STAR: OpKind.MUL,
        TokenType.SLASH: OpKind.DIV,
        TokenType.PERCENT: OpKind.MOD,
    }

    COMPARISONS = {
        TokenType.EQUAL: CmpKind.EQ,
        TokenType.TILDE: CmpKind.NEQ,
        TokenType.LESS: CmpKind.LT,
        TokenType.LESS_EQUAL: CmpKind.LTE,
        TokenType.GREATER: CmpKind.GT,
        TokenType.GREATER_EQUAL: CmpKind.GTE,
        TokenType.AND: CmpKind.AND,
        TokenType.OR: CmpKind.OR,
    }

    ASSIGNMENTS = {
        TokenType.LET: AssignKind.LET,
        TokenType.CONST: AssignKind.CONST,
        TokenType.SET: AssignKind.SET,
    }

    def __init__(self, tokens: List[Token], max_depth: Optional[int] = None):
        if not tokens or tokens[-1].type != TokenType.EOF:
            line = tokens[-1].line if tokens else 1
            tokens = list(tokens) + [Token(TokenType.EOF, '', line)]
        self.tokens = tokens
        self.pos = 0
        self.length = len(tokens)
        self.depth = 0
        self.max_depth = self.MAX_DEPTH if max_depth is None else max_depth
        self.errors: List[str] = []

    # === Token helpers ===

    def peek(self, offset: int = 0) -> Token:
        idx = self.pos + offset
        if idx >= self.length:
            return self.tokens[-1]  # EOF
        return self.tokens[idx]

    def current(self) -> Token:
        return self.peek(0)

    def advance(self) -> Token:
        token = self.current()
        if token.type != TokenType.EOF:
            self.pos += 1
        return token

    def check(self, *types: TokenType) -> bool:
        return self.current().type in types

    def match(self, *types: TokenType) -> Optional[Token]:
        if self.check(*types):
            return self.advance()
        return None

    def is_at_end(self) -> bool:
        return self.check(TokenType.EOF)

    # === Error reporting ===

    def had_error(self) -> bool:
        return bool(self.errors)

    def get_errors(self) -> List[str]:
        return list(self.errors)

    def error(self, message: str, line: int) -> Empty:
        """Record a syntax error and return the placeholder that takes the broken node's place"""
        logger.debug("syntax error on line %d: %s", line, message)
        self.errors.append(f"{line} | {message}")
        return Empty(line)

    def invalid(self, token: Token) -> Empty:
        if token.type == TokenType.EOF:
            return self.error("Unexpected end of input", token.line)
        return self.error(f"Invalid token: {token!r}", token.line)

    # === Operands ===

    def parse_operand(self, allow_identifier: bool) -> Node:
        """Parse one operand: nested block, literal, or (in comparisons) identifier"""
        token = self.current()

        # A missing operand must not swallow the closing paren of the enclosing block
        if token.type in (TokenType.RPAREN, TokenType.EOF):
            return self.error(f"Expected operand, found {token!r}", token.line)

        self.advance()
        if token.type == TokenType.LPAREN:
            return self.parse_block(token)

        literal = self.literal(token)
        if literal is not None:
            return literal

        if allow_identifier and token.type == TokenType.IDENT:
            return Identifier(token.line, token.value)

        return self.invalid(token)

    def literal(self, token: Token) -> Optional[Literal]:
        if token.type == TokenType.NUMBER:
            return NumberLiteral(token.line, token.value)
        if token.type == TokenType.STRING:
            return StringLiteral(token.line, token.value)
        if token.type == TokenType.TRUE:
            return BoolLiteral(token.line, True)
        if token.type == TokenType.FALSE:
            return BoolLiteral(token.line, False)
        if token.type == TokenType.NIL:
            return NilLiteral(token.line)
        return None

    # === Productions ===

    def parse_block(self, opener: Token) -> Node:
        """Parse the contents of a block whose '(' has been consumed, up to and including ')'"""
        self.depth += 1
        try:
            if self.depth > self.max_depth:
                raise ParseError("Nesting too deep", opener.line)

            is_scope = self.match(TokenType.SCOPE) is not None
            statements = []

            while True:
                if self.match(TokenType.RPAREN):
                    break
                if self.is_at_end():
                    self.error(f"Expected ')' to close block opened on line {opener.line}", self.current().line)
                    break
                statements.append(self.parse_statement())
        finally:
            self.depth -= 1

        if is_scope:
            return Scope(opener.line, tuple(statements))
        return Block(opener.line, tuple(statements))

    def parse_statement(self) -> Node:
        """Dispatch on the leading token of a block element"""
        token = self.advance()

        if token.type == TokenType.IF:
            return self.parse_conditional(token)

        if token.type == TokenType.LPAREN:
            return self.parse_block(token)

        if token.type in self.ASSIGNMENTS:
            return self.parse_assignment(token)

        if token.type in self.ARITHMETIC:
            return self.parse_op(token)

        if token.type in self.COMPARISONS:
            return self.parse_comparison(token)

        if token.type == TokenType.IDENT:
            return Identifier(token.line, token.value)

        if token.type == TokenType.FUNC:
            return self.parse_function(token)

        if token.type == TokenType.WHILE:
            return self.parse_loop(token)

        return self.invalid(token)

    def parse_op(self, token: Token) -> Operator:
        """Parse arithmetic: + - * / % followed by exactly two operands"""
        left = self.parse_operand(allow_identifier=False)
        right = self.parse_operand(allow_identifier=False)
        return Operator(token.line, self.ARITHMETIC[token.type], left, right)

    def parse_comparison(self, token: Token) -> Comparison:
        """Parse comparison/logical: = ~ < <= > >= and or followed by exactly two operands"""
        left = self.parse_operand(allow_identifier=True)
        right = self.parse_operand(allow_identifier=True)
        return Comparison(token.line, self.COMPARISONS[token.type], left, right)

    def parse_sub_block(self, what: str) -> Node:
        opener = self.match(TokenType.LPAREN)
        if opener is None:
            found = self.current()
            return self.error(f"Expected '(' to open {what}, found {found!r}", found.line)
        return self.parse_block(opener)

    def parse_conditional(self, token: Token) -> Conditional:
        """Parse: if (condition) (then) [(else)]"""
        condition = self.parse_sub_block("condition")
        then_branch = self.parse_sub_block("then-block")

        # The else block is optional
        opener = self.match(TokenType.LPAREN)
        else_branch = self.parse_block(opener) if opener else Empty(token.line)

        return Conditional(token.line, condition, then_branch, else_branch)

    def parse_loop(self, token: Token) -> Loop:
        """Parse: while (condition) (body)"""
        condition = self.parse_sub_block("loop condition")
        body = self.parse_sub_block("loop body")
        return Loop(token.line, condition, body)

    def parse_function(self, token: Token) -> Node:
        """Parse: func (param ...) (body)"""
        if not self.match(TokenType.LPAREN):
            found = self.current()
            return self.error(f"Expected '(' to open parameter list, found {found!r}", found.line)

        params = []
        while not self.match(TokenType.RPAREN):
            param = self.current()
            if param.type == TokenType.EOF:
                self.error("Unterminated parameter list", token.line)
                break
            self.advance()
            if param.type == TokenType.IDENT:
                params.append(Identifier(param.line, param.value))
            else:
                self.invalid(param)

        opener = self.match(TokenType.LPAREN)
        if opener is None:
            body = self.error("Expected '(' to open function body", self.current().line)
        else:
            body = self.parse_block(opener)

        return FunctionLiteral(token.line, Block(token.line, tuple(params)), body)

    def parse_assignment(self, token: Token) -> Node:
        """Parse: let|const|set name value"""
        name_token = self.current()
        if name_token.type != TokenType.IDENT:
            if name_token.type not in (TokenType.RPAREN, TokenType.EOF):
                self.advance()
            return self.invalid(name_token)
        self.advance()
        target = Identifier(name_token.line, name_token.value)

        value_token = self.current()
        if value_token.type in (TokenType.RPAREN, TokenType.EOF):
            return self.invalid(value_token)
        self.advance()

        value = self.literal(value_token)
        if value is None:
            if value_token.type == TokenType.IDENT:
                value = Identifier(value_token.line, value_token.value)
            elif value_token.type in self.ARITHMETIC:
                value = self.parse_op(value_token)
            elif value_token.type == TokenType.FUNC:
                value = self.parse_function(value_token)
            elif value_token.type == TokenType.LPAREN:
                value = self.parse_block(value_token)
            else:
                return self.invalid(value_token)

        return Assignment(token.line, self.ASSIGNMENTS[token.type], target, value)

    def parse_program(self) -> Block:
        """Parse every top-level block into one program block"""
        blocks = []
        try:
            while not self.is_at_end():
                token = self.advance()
                if token.type == TokenType.LPAREN:
                    blocks.append(self.parse_block(token))
                else:
                    self.invalid(token)
        except ParseError as e:
            self.error(e.message, e.line)
        except RecursionError:
            # max_depth set beyond what the interpreter stack can hold
            self.error("Nesting too deep", token.line)
        return Block(1, tuple(blocks))

    parse = parse_program


def parse(tokens: List[Token]) -> Tuple[Block, List[str]]:
    """Convenience function returning the program tree and the collected syntax errors"""
    parser = Parser(tokens)
    tree = parser.parse()
    return tree, parser.get_errors()
