"""
scopelang - Lexer/Tokenizer
Single-pass tokenization that collects errors instead of stopping at the first one
"""

from enum import IntEnum, auto
from dataclasses import dataclass
from types import MappingProxyType
from typing import List, Tuple
import logging

logger = logging.getLogger(__name__)

class TokenType(IntEnum):
    # Punctuation
    LBRACE = auto()
    RBRACE = auto()
    LPAREN = auto()
    RPAREN = auto()
    COMMA = auto()
    DOT = auto()

    # Operators
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()
    PERCENT = auto()
    TILDE = auto()
    EQUAL = auto()
    LESS = auto()
    LESS_EQUAL = auto()
    GREATER = auto()
    GREATER_EQUAL = auto()

    # Literals
    NUMBER = auto()
    STRING = auto()
    IDENT = auto()

    # Keywords
    FUNC = auto()
    IF = auto()
    NIL = auto()
    OR = auto()
    RET = auto()
    TRUE = auto()
    FALSE = auto()
    WHILE = auto()
    LET = auto()
    CONST = auto()
    SET = auto()
    AND = auto()
    SCOPE = auto()

    # Special
    EOF = auto()

KEYWORDS = MappingProxyType({
    'func': TokenType.FUNC,
    'if': TokenType.IF,
    'nil': TokenType.NIL,
    'or': TokenType.OR,
    'ret': TokenType.RET,
    'true': TokenType.TRUE,
    'false': TokenType.FALSE,
    'while': TokenType.WHILE,
    'let': TokenType.LET,
    'const': TokenType.CONST,
    'set': TokenType.SET,
    'and': TokenType.AND,
    'scope': TokenType.SCOPE,
})

SINGLE_CHAR_TOKENS = MappingProxyType({
    '{': TokenType.LBRACE,
    '}': TokenType.RBRACE,
    '(': TokenType.LPAREN,
    ')': TokenType.RPAREN,
    ',': TokenType.COMMA,
    '.': TokenType.DOT,
    '+': TokenType.PLUS,
    '*': TokenType.STAR,
    '/': TokenType.SLASH,
    '~': TokenType.TILDE,
    '=': TokenType.EQUAL,
})

DIGITS = frozenset('0123456789')

@dataclass(frozen=True, slots=True)
class Token:
    type: TokenType
    text: str
    line: int
    value: str | float | None = None

    def __repr__(self):
        return f"Token({self.type.name}, {self.text!r}, line {self.line})"


def is_identifier_char(ch: str) -> bool:
    return ch.isalnum() or ch == '_' or ch == ':'


class Lexer:
    """Single-pass lexer; problems are appended to `errors` and scanning goes on"""

    __slots__ = ('source', 'pos', 'start', 'line', 'length', 'tokens', 'errors')

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.start = 0
        self.line = 1
        self.length = len(source)
        self.tokens: List[Token] = []
        self.errors: List[str] = []

    def is_at_end(self) -> bool:
        return self.pos >= self.length

    def peek(self, offset: int = 0) -> str:
        """Look ahead without consuming"""
        idx = self.pos + offset
        return self.source[idx] if idx < self.length else '\0'

    def advance(self) -> str:
        """Consume and return current character"""
        ch = self.source[self.pos]
        self.pos += 1
        return ch

    def match(self, expected: str) -> bool:
        if self.peek() != expected:
            return False
        self.pos += 1
        return True

    def error(self, message: str, line: int):
        logger.debug("lexical error on line %d: %s", line, message)
        self.errors.append(f"{line} | {message}")

    def add_token(self, type: TokenType, value=None, line: int | None = None):
        text = self.source[self.start:self.pos]
        self.tokens.append(Token(type, text, self.line if line is None else line, value))

    def skip_line_comment(self):
        while self.peek() != '\n' and not self.is_at_end():
            self.advance()

    def skip_block_comment(self):
        """Skip a %% ... %% comment; the opening %% is already consumed"""
        line = self.line
        while not self.is_at_end():
            if self.peek() == '%' and self.peek(1) == '%':
                self.pos += 2
                return
            if self.advance() == '\n':
                self.line += 1
        self.error("Unterminated block comment", line)

    def read_string(self, quote: str):
        """Parse string literal, content is kept verbatim"""
        line = self.line
        while self.peek() != quote and not self.is_at_end():
            if self.advance() == '\n':
                self.line += 1

        if self.is_at_end():
            self.error("Unterminated string", line)
            return

        self.advance()  # Closing quote
        self.add_token(TokenType.STRING, self.source[self.start + 1:self.pos - 1], line)

    def read_number(self):
        """Parse integer or decimal literal, the optional leading '-' is already consumed"""
        while self.peek() in DIGITS:
            self.advance()

        if self.peek() == '.' and self.peek(1) in DIGITS:
            self.advance()  # .
            while self.peek() in DIGITS:
                self.advance()

        self.add_token(TokenType.NUMBER, float(self.source[self.start:self.pos]))

    def read_identifier(self):
        """Parse identifier or keyword"""
        while is_identifier_char(self.peek()):
            self.advance()

        text = self.source[self.start:self.pos]
        token_type = KEYWORDS.get(text, TokenType.IDENT)
        self.add_token(token_type, text if token_type == TokenType.IDENT else None)

    def scan_token(self):
        ch = self.advance()

        if ch in SINGLE_CHAR_TOKENS:
            self.add_token(SINGLE_CHAR_TOKENS[ch])

        elif ch == '-':
            if self.peek() in DIGITS:
                self.read_number()
            else:
                self.add_token(TokenType.MINUS)

        elif ch == '<':
            self.add_token(TokenType.LESS_EQUAL if self.match('=') else TokenType.LESS)

        elif ch == '>':
            self.add_token(TokenType.GREATER_EQUAL if self.match('=') else TokenType.GREATER)

        elif ch == '%':
            if self.match('%'):
                self.skip_block_comment()
            else:
                self.add_token(TokenType.PERCENT)

        elif ch == '#':
            self.skip_line_comment()

        elif ch in ' \r\t':
            pass

        elif ch == '\n':
            self.line += 1

        elif ch == '"' or ch == "'":
            self.read_string(ch)

        elif ch in DIGITS:
            self.read_number()

        elif is_identifier_char(ch):
            self.read_identifier()

        else:
            self.error(f"Unexpected character: {ch}", self.line)

    def tokenize(self) -> List[Token]:
        """Tokenize entire source into list, always terminated by a single EOF token"""
        while not self.is_at_end():
            self.start = self.pos
            self.scan_token()
        self.start = self.pos
        self.tokens.append(Token(TokenType.EOF, '', self.line))
        return self.tokens


def tokenize(source: str) -> Tuple[List[Token], List[str]]:
    """Convenience function returning the tokens and the collected lexical errors"""
    lexer = Lexer(source)
    tokens = lexer.tokenize()
    return tokens, lexer.errors
