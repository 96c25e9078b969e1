"""
Tokenizer (lexer) for the formula language.

Scans the source on demand, one token at a time. The evaluator holds a
single token of lookahead and asks for the next one only when it has
consumed the current one.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional


class TokenType(Enum):
    """Token types produced by the tokenizer."""

    # Literals
    NUMBER = "NUMBER"

    # Identifiers
    IDENTIFIER = "IDENTIFIER"

    # Operators
    PLUS = "PLUS"
    MINUS = "MINUS"
    STAR = "STAR"
    SLASH = "SLASH"

    # Delimiters
    LPAREN = "LPAREN"
    RPAREN = "RPAREN"
    COMMA = "COMMA"

    # Special
    UNKNOWN = "UNKNOWN"
    EOF = "EOF"


@dataclass
class Token:
    """A token produced by the tokenizer."""

    type: TokenType
    value: str
    position: int


SINGLE_CHAR_TOKENS: Dict[str, TokenType] = {
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    ",": TokenType.COMMA,
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.STAR,
    "/": TokenType.SLASH,
}


def _is_digit(ch: str) -> bool:
    """Checks if a character is an ASCII digit."""
    return "0" <= ch <= "9"


def _is_number_part(ch: str) -> bool:
    # Points are matched greedily; malformed literals fail when parsed.
    return _is_digit(ch) or ch == "."


class Tokenizer:
    """On-demand tokenizer over an expression string."""

    def __init__(self, source: str = ""):
        self._source = source
        self._position = 0

    @property
    def source(self) -> str:
        return self._source

    @property
    def position(self) -> int:
        """Cursor position, always within ``0..len(source)``."""
        return self._position

    def reset(self, source: Optional[str] = None) -> None:
        """Moves the cursor back to the start, optionally replacing the source."""
        if source is not None:
            self._source = source
        self._position = 0

    def next_token(self) -> Token:
        """Scans and returns the next token, skipping leading whitespace."""
        source = self._source
        length = len(source)

        while self._position < length and source[self._position].isspace():
            self._position += 1

        start = self._position
        if start >= length:
            return Token(TokenType.EOF, "", start)

        ch = source[start]
        self._position += 1

        if ch.isalpha():
            while self._position < length and source[self._position].isalnum():
                self._position += 1
            return Token(TokenType.IDENTIFIER, source[start : self._position], start)

        if _is_number_part(ch):
            while self._position < length and _is_number_part(source[self._position]):
                self._position += 1
            return Token(TokenType.NUMBER, source[start : self._position], start)

        return Token(SINGLE_CHAR_TOKENS.get(ch, TokenType.UNKNOWN), ch, start)


def tokenize(source: str) -> List[Token]:
    """
    Tokenizes an expression string into tokens.

    Args:
        source: The expression string to tokenize

    Returns:
        List of tokens, always terminated by an EOF token
    """
    tokenizer = Tokenizer(source)
    tokens: List[Token] = []
    while True:
        token = tokenizer.next_token()
        tokens.append(token)
        if token.type == TokenType.EOF:
            return tokens
