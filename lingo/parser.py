"""
Lingo Parser
============
Operator-precedence (Pratt) parser that builds an Abstract Syntax Tree
from the token stream produced by the Lexer.

Each token type that can start an expression has a prefix rule; each
token type that can continue one has an infix rule and a precedence.
Parse errors are accumulated: after an error the parser resynchronizes
at the next statement boundary and keeps going.
"""
import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable

from .ast import (
    ASTNode, Program, LetStatement, ReturnStatement, ExpressionStatement,
    BlockStatement, Identifier, IntegerLiteral, BooleanLiteral, StringLiteral,
    PrefixExpression, InfixExpression, IfExpression, FunctionLiteral,
    CallExpression, ArrayLiteral, IndexExpression, HashLiteral,
)
from .lexer import Lexer, Token, TokenType

logger = logging.getLogger(__name__)

INT64_MAX = 2**63 - 1


class Precedence(IntEnum):
    LOWEST      = 1
    LOGICAL     = 2   # && ||
    EQUALS      = 3   # == !=
    LESSGREATER = 4   # < > <= >=
    SUM         = 5   # + -
    PRODUCT     = 6   # * /
    PREFIX      = 7   # -x !x
    CALL        = 8   # f(x) a[i]


PRECEDENCES = {
    TokenType.AND: Precedence.LOGICAL,
    TokenType.OR: Precedence.LOGICAL,
    TokenType.EQ: Precedence.EQUALS,
    TokenType.NOT_EQ: Precedence.EQUALS,
    TokenType.LT: Precedence.LESSGREATER,
    TokenType.GT: Precedence.LESSGREATER,
    TokenType.LT_EQ: Precedence.LESSGREATER,
    TokenType.GT_EQ: Precedence.LESSGREATER,
    TokenType.PLUS: Precedence.SUM,
    TokenType.MINUS: Precedence.SUM,
    TokenType.ASTERISK: Precedence.PRODUCT,
    TokenType.SLASH: Precedence.PRODUCT,
    TokenType.LPAREN: Precedence.CALL,
    TokenType.LBRACKET: Precedence.CALL,
}


# ─────────────────────────────────────────────────────────────
#  Parse Errors
# ─────────────────────────────────────────────────────────────

@dataclass
class ParseError:
    """A single parse error with location.

    expected/got are token type names for expected-vs-actual mismatches
    and None for other kinds of error.
    """
    message: str
    line: int
    col: int
    expected: str | None = None
    got: str | None = None

    def __str__(self) -> str:
        return f"L{self.line}:{self.col} — {self.message}"


class LingoSyntaxError(SyntaxError):
    """Raised by Parser.parse() when the source has one or more parse errors."""

    def __init__(self, errors: list[ParseError]):
        self.errors = list(errors)
        msgs = [f"  {e}" for e in self.errors]
        super().__init__(f"{len(self.errors)} parse error(s):\n" + "\n".join(msgs))


# ─────────────────────────────────────────────────────────────
#  Parser
# ─────────────────────────────────────────────────────────────

class Parser:
    """
    Pratt parser for Lingo source.

    Usage:
        parser = Parser(Lexer(source).tokenize())
        program, errors = parser.parse_program()

    Every rule leaves the cursor on the first token after what it consumed.
    """

    def __init__(self, tokens: list[Token]):
        if not tokens or tokens[-1].type != TokenType.EOF:
            last = tokens[-1] if tokens else None
            eof = Token(TokenType.EOF, "", last.line if last else 1, last.col if last else 1)
            tokens = list(tokens) + [eof]
        self.tokens = tokens
        self.pos = 0
        self.errors: list[ParseError] = []

        self._prefix_rules: dict[TokenType, Callable[[], ASTNode]] = {
            TokenType.IDENT: self._parse_identifier,
            TokenType.INT: self._parse_integer_literal,
            TokenType.STRING: self._parse_string_literal,
            TokenType.TRUE: self._parse_boolean_literal,
            TokenType.FALSE: self._parse_boolean_literal,
            TokenType.BANG: self._parse_prefix_expression,
            TokenType.MINUS: self._parse_prefix_expression,
            TokenType.LPAREN: self._parse_grouped_expression,
            TokenType.IF: self._parse_if_expression,
            TokenType.FUNCTION: self._parse_function_literal,
            TokenType.LBRACKET: self._parse_array_literal,
            TokenType.LBRACE: self._parse_hash_literal,
            TokenType.ILLEGAL: self._parse_illegal,
        }
        self._infix_rules: dict[TokenType, Callable[[ASTNode], ASTNode]] = {
            TokenType.LPAREN: self._parse_call_expression,
            TokenType.LBRACKET: self._parse_index_expression,
        }
        for token_type in PRECEDENCES:
            self._infix_rules.setdefault(token_type, self._parse_infix_expression)

    def _current(self) -> Token:
        return self.tokens[self.pos]

    def _peek(self, offset: int = 1) -> Token:
        idx = self.pos + offset
        if idx >= len(self.tokens):
            return self.tokens[-1]  # EOF
        return self.tokens[idx]

    def _advance(self) -> Token:
        token = self.tokens[self.pos]
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
        return token

    def _at(self, token_type: TokenType) -> bool:
        return self._current().type == token_type

    def _expect(self, token_type: TokenType) -> Token:
        token = self._current()
        if token.type != token_type:
            self._fail(
                f"expected {token_type.name}, got {token.type.name} ({token.literal!r})",
                expected=token_type.name, got=token.type.name,
            )
        return self._advance()

    def _skip_semicolon(self):
        if self._at(TokenType.SEMICOLON):
            self._advance()

    def _record_error(self, message: str, expected: str | None = None, got: str | None = None):
        """Record a parse error at the current token, continue parsing."""
        token = self._current()
        error = ParseError(message, token.line, token.col, expected, got)
        logger.debug("parse error %s", error)
        self.errors.append(error)

    def _fail(self, message: str, expected: str | None = None, got: str | None = None):
        """Record an error and unwind to the nearest statement loop."""
        self._record_error(message, expected, got)
        token = self._current()
        raise SyntaxError(f"{message} at line {token.line}, col {token.col}")

    def _synchronize(self):
        """Skip to the next ';' (consumed), an unmatched '}' (kept) or EOF."""
        depth = 0
        while not self._at(TokenType.EOF):
            token_type = self._current().type
            if token_type == TokenType.SEMICOLON and depth == 0:
                self._advance()
                return
            if token_type == TokenType.LBRACE:
                depth += 1
            elif token_type == TokenType.RBRACE:
                if depth == 0:
                    return
                depth -= 1
            self._advance()

    # ─────────────────────────────────────────────────────────
    #  Top-Level Parsing
    # ─────────────────────────────────────────────────────────

    def parse_program(self) -> tuple[Program, list[ParseError]]:
        """Parse the token stream. Returns the Program and every error found."""
        first = self._current()
        program = Program(line=first.line, col=first.col)

        while not self._at(TokenType.EOF):
            start = self.pos
            try:
                program.statements.append(self._parse_statement())
            except SyntaxError:
                # Error already recorded; synchronize and continue
                self._synchronize()
                if self.pos == start:
                    self._advance()  # stray '}'

        return program, list(self.errors)

    def parse(self) -> Program:
        """Parse the token stream, raising LingoSyntaxError on any error."""
        program, errors = self.parse_program()
        if errors:
            raise LingoSyntaxError(errors)
        return program

    def _parse_statement(self) -> ASTNode:
        match self._current().type:
            case TokenType.LET:
                return self._parse_let_statement()
            case TokenType.RETURN:
                return self._parse_return_statement()
            case _:
                return self._parse_expression_statement()

    def _parse_let_statement(self) -> LetStatement:
        """Parse: let <ident> = <expr>;"""
        token = self._advance()  # consume 'let'
        name_token = self._expect(TokenType.IDENT)
        self._expect(TokenType.ASSIGN)
        value = self._parse_expression(Precedence.LOWEST)
        self._skip_semicolon()
        return LetStatement(
            name=Identifier(value=name_token.literal, line=name_token.line, col=name_token.col),
            value=value, line=token.line, col=token.col,
        )

    def _parse_return_statement(self) -> ReturnStatement:
        """Parse: return <expr>; with the expression optional."""
        token = self._advance()  # consume 'return'
        value = None
        if self._current().type not in (TokenType.SEMICOLON, TokenType.RBRACE, TokenType.EOF):
            value = self._parse_expression(Precedence.LOWEST)
        self._skip_semicolon()
        return ReturnStatement(value=value, line=token.line, col=token.col)

    def _parse_expression_statement(self) -> ExpressionStatement:
        token = self._current()
        expression = self._parse_expression(Precedence.LOWEST)
        self._skip_semicolon()
        return ExpressionStatement(expression=expression, line=token.line, col=token.col)

    def _parse_block_statement(self) -> BlockStatement:
        """Parse: { statements }"""
        token = self._expect(TokenType.LBRACE)
        block = BlockStatement(line=token.line, col=token.col)

        while self._current().type not in (TokenType.RBRACE, TokenType.EOF):
            try:
                block.statements.append(self._parse_statement())
            except SyntaxError:
                self._synchronize()

        self._expect(TokenType.RBRACE)
        return block

    # ─────────────────────────────────────────────────────────
    #  Expressions
    # ─────────────────────────────────────────────────────────

    def _parse_expression(self, precedence: Precedence) -> ASTNode:
        token = self._current()
        prefix = self._prefix_rules.get(token.type)
        if prefix is None:
            self._fail(f"no prefix parse rule for {token.type.name} ({token.literal!r})",
                       got=token.type.name)
        left = prefix()

        while precedence < PRECEDENCES.get(self._current().type, Precedence.LOWEST):
            infix = self._infix_rules[self._current().type]
            left = infix(left)

        return left

    def _parse_identifier(self) -> Identifier:
        token = self._advance()
        return Identifier(value=token.literal, line=token.line, col=token.col)

    def _parse_integer_literal(self) -> IntegerLiteral:
        token = self._current()
        value = int(token.literal)
        if value > INT64_MAX:
            self._fail(f"could not parse {token.literal} as integer")
        self._advance()
        return IntegerLiteral(value=value, line=token.line, col=token.col)

    def _parse_string_literal(self) -> StringLiteral:
        token = self._advance()
        return StringLiteral(value=token.literal, line=token.line, col=token.col)

    def _parse_boolean_literal(self) -> BooleanLiteral:
        token = self._advance()
        return BooleanLiteral(value=token.type == TokenType.TRUE, line=token.line, col=token.col)

    def _parse_illegal(self) -> ASTNode:
        token = self._current()
        if token.literal.startswith('"'):
            self._fail(f"unterminated string {token.literal!r}", got=token.type.name)
        self._fail(f"illegal token {token.literal!r}", got=token.type.name)

    def _parse_prefix_expression(self) -> PrefixExpression:
        token = self._advance()
        right = self._parse_expression(Precedence.PREFIX)
        return PrefixExpression(operator=token.literal, right=right, line=token.line, col=token.col)

    def _parse_infix_expression(self, left: ASTNode) -> InfixExpression:
        token = self._advance()
        precedence = PRECEDENCES[token.type]
        right = self._parse_expression(precedence)
        return InfixExpression(
            left=left, operator=token.literal, right=right,
            line=token.line, col=token.col,
        )

    def _parse_grouped_expression(self) -> ASTNode:
        """Parse a parenthesized expression."""
        self._advance()  # consume (
        inner = self._parse_expression(Precedence.LOWEST)
        self._expect(TokenType.RPAREN)
        return inner

    def _parse_if_expression(self) -> IfExpression:
        """Parse: if (<cond>) { ... } else { ... }, where else may be 'else if'."""
        token = self._advance()  # consume 'if'
        self._expect(TokenType.LPAREN)
        condition = self._parse_expression(Precedence.LOWEST)
        self._expect(TokenType.RPAREN)
        consequence = self._parse_block_statement()

        alternative = None
        if self._at(TokenType.ELSE):
            self._advance()
            if self._at(TokenType.IF):
                nested = self._current()
                alternative = BlockStatement(
                    statements=[ExpressionStatement(
                        expression=self._parse_if_expression(),
                        line=nested.line, col=nested.col,
                    )],
                    line=nested.line, col=nested.col,
                )
            else:
                alternative = self._parse_block_statement()

        return IfExpression(
            condition=condition, consequence=consequence, alternative=alternative,
            line=token.line, col=token.col,
        )

    def _parse_function_literal(self) -> FunctionLiteral:
        """Parse: fn(a, b) { ... }"""
        token = self._advance()  # consume 'fn'
        self._expect(TokenType.LPAREN)
        parameters = []
        if not self._at(TokenType.RPAREN):
            parameters.append(self._parse_parameter())
            while self._at(TokenType.COMMA):
                self._advance()
                parameters.append(self._parse_parameter())
        self._expect(TokenType.RPAREN)
        body = self._parse_block_statement()
        return FunctionLiteral(parameters=parameters, body=body, line=token.line, col=token.col)

    def _parse_parameter(self) -> Identifier:
        token = self._expect(TokenType.IDENT)
        return Identifier(value=token.literal, line=token.line, col=token.col)

    def _parse_expression_list(self, end: TokenType) -> list[ASTNode]:
        """Parse comma-separated expressions up to and including `end`."""
        items = []
        if self._at(end):
            self._advance()
            return items
        items.append(self._parse_expression(Precedence.LOWEST))
        while self._at(TokenType.COMMA):
            self._advance()
            items.append(self._parse_expression(Precedence.LOWEST))
        self._expect(end)
        return items

    def _parse_call_expression(self, function: ASTNode) -> CallExpression:
        token = self._advance()  # consume (
        arguments = self._parse_expression_list(TokenType.RPAREN)
        return CallExpression(function=function, arguments=arguments, line=token.line, col=token.col)

    def _parse_index_expression(self, left: ASTNode) -> IndexExpression:
        token = self._advance()  # consume [
        index = self._parse_expression(Precedence.LOWEST)
        self._expect(TokenType.RBRACKET)
        return IndexExpression(left=left, index=index, line=token.line, col=token.col)

    def _parse_array_literal(self) -> ArrayLiteral:
        """Parse a list: [a, b, c]."""
        token = self._advance()  # consume [
        elements = self._parse_expression_list(TokenType.RBRACKET)
        return ArrayLiteral(elements=elements, line=token.line, col=token.col)

    def _parse_hash_literal(self) -> HashLiteral:
        """Parse a hash: {key: value, ...}."""
        token = self._advance()  # consume {
        pairs = []
        while not self._at(TokenType.RBRACE):
            key = self._parse_expression(Precedence.LOWEST)
            self._expect(TokenType.COLON)
            value = self._parse_expression(Precedence.LOWEST)
            pairs.append((key, value))
            if not self._at(TokenType.RBRACE):
                self._expect(TokenType.COMMA)
        self._advance()  # consume }
        return HashLiteral(pairs=pairs, line=token.line, col=token.col)


def parse(source: str) -> tuple[Program, list[ParseError]]:
    """Lex and parse source text. The Program must not be evaluated if errors is non-empty."""
    return Parser(Lexer(source).tokenize()).parse_program()
