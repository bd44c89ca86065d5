"""
Lingo Lexer
===========
Tokenizes Lingo source code into a stream of typed tokens.
Single pass, left to right, no backtracking. Unknown characters and
unterminated strings become ILLEGAL tokens for the parser to report.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Iterator


class TokenType(Enum):
    """All token types in the Lingo language."""
    ILLEGAL   = "ILLEGAL"
    EOF       = "EOF"

    # Identifiers and literals
    IDENT     = "IDENT"
    INT       = "INT"
    STRING    = "STRING"

    # Operators
    ASSIGN    = "="
    PLUS      = "+"
    MINUS     = "-"
    BANG      = "!"
    ASTERISK  = "*"
    SLASH     = "/"
    LT        = "<"
    GT        = ">"
    LT_EQ     = "<="
    GT_EQ     = ">="
    EQ        = "=="
    NOT_EQ    = "!="
    AND       = "&&"
    OR        = "||"

    # Delimiters
    COMMA     = ","
    SEMICOLON = ";"
    COLON     = ":"
    LPAREN    = "("
    RPAREN    = ")"
    LBRACE    = "{"
    RBRACE    = "}"
    LBRACKET  = "["
    RBRACKET  = "]"

    # Keywords
    FUNCTION  = "FUNCTION"
    LET       = "LET"
    TRUE      = "TRUE"
    FALSE     = "FALSE"
    IF        = "IF"
    ELSE      = "ELSE"
    RETURN    = "RETURN"


@dataclass(frozen=True)
class Token:
    """A single token from the Lingo source."""
    type: TokenType
    literal: str
    line: int = 1
    col: int = 1

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.literal!r}, L{self.line}:{self.col})"

    def __str__(self) -> str:
        return f"{{Type:{self.type.value} Literal:{self.literal}}}"


SINGLE_CHAR_TOKENS = {
    "=": TokenType.ASSIGN,
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "!": TokenType.BANG,
    "*": TokenType.ASTERISK,
    "/": TokenType.SLASH,
    "<": TokenType.LT,
    ">": TokenType.GT,
    ",": TokenType.COMMA,
    ";": TokenType.SEMICOLON,
    ":": TokenType.COLON,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
}

# Matched before falling back to SINGLE_CHAR_TOKENS
TWO_CHAR_TOKENS = {
    "==": TokenType.EQ,
    "!=": TokenType.NOT_EQ,
    "<=": TokenType.LT_EQ,
    ">=": TokenType.GT_EQ,
    "&&": TokenType.AND,
    "||": TokenType.OR,
}

KEYWORDS = {
    "fn": TokenType.FUNCTION,
    "let": TokenType.LET,
    "true": TokenType.TRUE,
    "false": TokenType.FALSE,
    "if": TokenType.IF,
    "else": TokenType.ELSE,
    "return": TokenType.RETURN,
}

WHITESPACE = (" ", "\t", "\r", "\n")

ESCAPES = {"n": "\n", "t": "\t", "\\": "\\", '"': '"'}


def lookup_ident(word: str) -> TokenType:
    """Keywords are recognized by exact match against identifier text."""
    return KEYWORDS.get(word, TokenType.IDENT)


def _is_letter(ch: str | None) -> bool:
    return ch is not None and (("a" <= ch <= "z") or ("A" <= ch <= "Z") or ch == "_")


def _is_digit(ch: str | None) -> bool:
    return ch is not None and "0" <= ch <= "9"


class Lexer:
    """
    Tokenizes Lingo source code.

    Usage:
        lexer = Lexer(source_code)
        tokens = lexer.tokenize()

    or pull tokens one at a time with next_token() until EOF.
    """

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 1
        self.col = 1
        self._done = False

    def _current(self) -> str | None:
        if self.pos >= len(self.source):
            return None
        return self.source[self.pos]

    def _peek(self, offset: int = 1) -> str | None:
        idx = self.pos + offset
        if idx >= len(self.source):
            return None
        return self.source[idx]

    def _advance(self) -> str:
        ch = self.source[self.pos]
        self.pos += 1
        if ch == "\n":
            self.line += 1
            self.col = 1
        else:
            self.col += 1
        return ch

    def _skip_whitespace_and_comments(self):
        while self.pos < len(self.source):
            ch = self._current()
            if ch in WHITESPACE:
                self._advance()
            elif ch == "/" and self._peek() == "/":
                while self.pos < len(self.source) and self._current() != "\n":
                    self._advance()
            else:
                break

    def _read_string(self) -> Token:
        """Read a double-quoted string literal."""
        start_line, start_col = self.line, self.col
        self._advance()  # consume opening "
        chars = []
        while self.pos < len(self.source):
            ch = self._advance()
            if ch == '"':
                return Token(TokenType.STRING, "".join(chars), start_line, start_col)
            if ch == "\\" and self.pos < len(self.source):
                next_ch = self._advance()
                chars.append(ESCAPES.get(next_ch, next_ch))
            else:
                chars.append(ch)
        return Token(TokenType.ILLEGAL, '"' + "".join(chars), start_line, start_col)

    def _read_number(self) -> Token:
        """Read a maximal run of digits."""
        start_line, start_col = self.line, self.col
        start = self.pos
        while _is_digit(self._current()):
            self._advance()
        return Token(TokenType.INT, self.source[start:self.pos], start_line, start_col)

    def _read_identifier(self) -> Token:
        """Read an identifier or keyword."""
        start_line, start_col = self.line, self.col
        start = self.pos
        while _is_letter(self._current()) or _is_digit(self._current()):
            self._advance()
        word = self.source[start:self.pos]
        return Token(lookup_ident(word), word, start_line, start_col)

    def next_token(self) -> Token:
        """Return the next token. Keeps returning EOF once the input is exhausted."""
        self._skip_whitespace_and_comments()

        line, col = self.line, self.col
        ch = self._current()

        if ch is None:
            return Token(TokenType.EOF, "", line, col)

        if ch == '"':
            return self._read_string()

        if _is_letter(ch):
            return self._read_identifier()

        if _is_digit(ch):
            return self._read_number()

        pair = ch + (self._peek() or "")
        if pair in TWO_CHAR_TOKENS:
            self._advance()
            self._advance()
            return Token(TWO_CHAR_TOKENS[pair], pair, line, col)

        self._advance()
        if ch in SINGLE_CHAR_TOKENS:
            return Token(SINGLE_CHAR_TOKENS[ch], ch, line, col)

        # Lone '&', '|' and anything unrecognized
        return Token(TokenType.ILLEGAL, ch, line, col)

    def __iter__(self) -> Iterator[Token]:
        """Yield tokens up to and including EOF. Not restartable."""
        while not self._done:
            token = self.next_token()
            if token.type == TokenType.EOF:
                self._done = True
            yield token

    def tokenize(self) -> list[Token]:
        """Tokenize the entire source into a list of tokens ending with EOF."""
        return list(self)


def lex(source: str) -> Iterator[Token]:
    """Lex source text into a finite token stream ending with EOF."""
    return iter(Lexer(source))
