"""
Lingo AST
=========
Node types produced by the Parser and walked by the Interpreter.

Every node renders itself back to canonical source text with format().
Prefix, infix and index expressions are fully parenthesised, so the
output re-parses to a structurally equal tree. Positions are excluded
from equality for the same reason.
"""
from dataclasses import dataclass, field


def quote_string(value: str) -> str:
    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\t", "\\t")
    )
    return f'"{escaped}"'


@dataclass
class ASTNode:
    """Base class for all AST nodes."""
    node_type: str = field(default="", compare=False)
    line: int = field(default=0, compare=False)
    col: int = field(default=0, compare=False)

    def format(self) -> str:
        raise NotImplementedError(type(self).__name__)

    def __str__(self) -> str:
        return self.format()


# ─────────────────────────────────────────────────────────────
#  Expressions
# ─────────────────────────────────────────────────────────────

@dataclass
class Identifier(ASTNode):
    """A reference to a named binding."""
    value: str = ""

    def __post_init__(self):
        self.node_type = "Identifier"

    def format(self) -> str:
        return self.value


@dataclass
class IntegerLiteral(ASTNode):
    value: int = 0

    def __post_init__(self):
        self.node_type = "Integer"

    def format(self) -> str:
        return str(self.value)


@dataclass
class BooleanLiteral(ASTNode):
    value: bool = False

    def __post_init__(self):
        self.node_type = "Boolean"

    def format(self) -> str:
        return "true" if self.value else "false"


@dataclass
class StringLiteral(ASTNode):
    value: str = ""

    def __post_init__(self):
        self.node_type = "String"

    def format(self) -> str:
        return quote_string(self.value)


@dataclass
class PrefixExpression(ASTNode):
    """<operator><right>, where operator is '!' or '-'."""
    operator: str = ""
    right: ASTNode | None = None

    def __post_init__(self):
        self.node_type = "Prefix"

    def format(self) -> str:
        return f"({self.operator}{self.right.format()})"


@dataclass
class InfixExpression(ASTNode):
    """<left> <operator> <right>."""
    left: ASTNode | None = None
    operator: str = ""
    right: ASTNode | None = None

    def __post_init__(self):
        self.node_type = "Infix"

    def format(self) -> str:
        return f"({self.left.format()} {self.operator} {self.right.format()})"


@dataclass
class IfExpression(ASTNode):
    """if (<condition>) <consequence> else <alternative>.

    The alternative block is optional.
    """
    condition: ASTNode | None = None
    consequence: "BlockStatement | None" = None
    alternative: "BlockStatement | None" = None

    def __post_init__(self):
        self.node_type = "If"

    def format(self) -> str:
        out = f"if ({self.condition.format()}) {self.consequence.format()}"
        if self.alternative is not None:
            out += f" else {self.alternative.format()}"
        return out


@dataclass
class FunctionLiteral(ASTNode):
    """fn(<parameters>) <body>."""
    parameters: list[Identifier] = field(default_factory=list)
    body: "BlockStatement | None" = None

    def __post_init__(self):
        self.node_type = "Function"

    def format(self) -> str:
        params = ", ".join(p.format() for p in self.parameters)
        return f"fn({params}) {self.body.format()}"


@dataclass
class CallExpression(ASTNode):
    """<function>(<arguments>). function is an Identifier or FunctionLiteral."""
    function: ASTNode | None = None
    arguments: list[ASTNode] = field(default_factory=list)

    def __post_init__(self):
        self.node_type = "Call"

    def format(self) -> str:
        args = ", ".join(a.format() for a in self.arguments)
        return f"{self.function.format()}({args})"


@dataclass
class ArrayLiteral(ASTNode):
    elements: list[ASTNode] = field(default_factory=list)

    def __post_init__(self):
        self.node_type = "Array"

    def format(self) -> str:
        return "[" + ", ".join(e.format() for e in self.elements) + "]"


@dataclass
class IndexExpression(ASTNode):
    """<left>[<index>]."""
    left: ASTNode | None = None
    index: ASTNode | None = None

    def __post_init__(self):
        self.node_type = "Index"

    def format(self) -> str:
        return f"({self.left.format()}[{self.index.format()}])"


@dataclass
class HashLiteral(ASTNode):
    """{<key>: <value>, ...}. Pairs keep source order."""
    pairs: list[tuple[ASTNode, ASTNode]] = field(default_factory=list)

    def __post_init__(self):
        self.node_type = "Hash"

    def format(self) -> str:
        items = ", ".join(f"{k.format()}: {v.format()}" for k, v in self.pairs)
        return "{" + items + "}"


# ─────────────────────────────────────────────────────────────
#  Statements
# ─────────────────────────────────────────────────────────────

@dataclass
class LetStatement(ASTNode):
    """let <name> = <value>;"""
    name: Identifier | None = None
    value: ASTNode | None = None

    def __post_init__(self):
        self.node_type = "Let"

    def format(self) -> str:
        return f"let {self.name.format()} = {self.value.format()};"


@dataclass
class ReturnStatement(ASTNode):
    """return <value>; where value may be omitted."""
    value: ASTNode | None = None

    def __post_init__(self):
        self.node_type = "Return"

    def format(self) -> str:
        if self.value is None:
            return "return;"
        return f"return {self.value.format()};"


@dataclass
class ExpressionStatement(ASTNode):
    expression: ASTNode | None = None

    def __post_init__(self):
        self.node_type = "ExpressionStatement"

    def format(self) -> str:
        return f"{self.expression.format()};"


@dataclass
class BlockStatement(ASTNode):
    """{ <statements> }: function bodies and if/else branches."""
    statements: list[ASTNode] = field(default_factory=list)

    def __post_init__(self):
        self.node_type = "Block"

    def format(self) -> str:
        if not self.statements:
            return "{ }"
        return "{ " + " ".join(s.format() for s in self.statements) + " }"


@dataclass
class Program(ASTNode):
    """Root node containing all top-level statements."""
    statements: list[ASTNode] = field(default_factory=list)

    def __post_init__(self):
        self.node_type = "Program"

    def format(self) -> str:
        return "\n".join(s.format() for s in self.statements)
