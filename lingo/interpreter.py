"""
Lingo Interpreter
=================
Tree-walking evaluator that reduces the AST produced by the Parser to
runtime Objects.

Evaluation errors are Error objects, not exceptions: every rule checks
its sub-results and hands an Error back unchanged. `return` travels the
same way as a ReturnValue until a function call (or the program) unwraps
it.
"""
import logging
from typing import Callable

from .ast import (
    ASTNode, Program, LetStatement, ReturnStatement, ExpressionStatement,
    BlockStatement, Identifier, IntegerLiteral, BooleanLiteral, StringLiteral,
    PrefixExpression, InfixExpression, IfExpression, FunctionLiteral,
    CallExpression, ArrayLiteral, IndexExpression, HashLiteral,
)
from .builtins import make_builtins
from .objects import (
    Object, ObjectType, Integer, Boolean, String, Array, Hash, HashPair, Hashable,
    Function, Builtin, ReturnValue, Error, Environment, TRUE, FALSE, NULL, native_bool,
)
from .parser import Parser
from .lexer import Lexer

logger = logging.getLogger(__name__)

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


class LingoError(Exception):
    """Host-level misuse of the interpreter (never a Lingo runtime error)."""
    pass


def is_error(obj: Object | None) -> bool:
    return obj is not None and obj.type() == ObjectType.ERROR


def is_unwinding(obj: Object | None) -> bool:
    """True for an Error or a pending ReturnValue; both pass through unchanged."""
    return obj is not None and obj.type() in (ObjectType.ERROR, ObjectType.RETURN_VALUE)


def is_truthy(obj: Object) -> bool:
    """Null and false are falsy; everything else is truthy."""
    if obj.type() == ObjectType.NULL:
        return False
    if isinstance(obj, Boolean):
        return obj.value
    return True


def _type_name(obj: Object) -> str:
    return obj.type().value


def new_environment(output_fn: Callable[[str], None] | None = None,
                    builtins: dict[str, Builtin] | None = None) -> Environment:
    """A fresh top-level program scope enclosed by a builtin table.

    `builtins` defaults to the standard table with `puts` writing to
    `output_fn` (default: print).
    """
    if builtins is None:
        builtins = make_builtins(output_fn or print)
    return Environment(outer=Environment.from_bindings(builtins))


class Interpreter:
    """
    Tree-walking interpreter for Lingo programs.

    Usage:
        interp = Interpreter()
        result = interp.run('let x = 5; x * 2')
        result.inspect()  # "10"

    `output_fn` receives every line written by `puts` (default: print).
    `builtins` replaces the builtin table bound beneath the program scope.
    """

    def __init__(self, output_fn: Callable[[str], None] | None = None,
                 builtins: dict[str, Builtin] | None = None):
        self.output_fn = output_fn or (lambda s: print(s))
        if builtins is None:
            builtins = make_builtins(self.output_fn)
        self.builtins = builtins
        self.env = new_environment(builtins=builtins)
        self.globals = self.env.outer

    def run(self, source: str) -> Object:
        """Parse and evaluate source in the interpreter's program scope.

        Raises LingoSyntaxError if the source does not parse.
        """
        program = Parser(Lexer(source).tokenize()).parse()
        return self.evaluate(program)

    def evaluate(self, node: ASTNode, env: Environment | None = None) -> Object:
        """Evaluate an AST node in `env` (default: the program scope)."""
        if not isinstance(node, ASTNode):
            raise LingoError(f"Cannot evaluate {type(node).__name__}: not an AST node")
        if env is None:
            env = self.env
        method = f"_eval_{node.node_type.lower()}"
        evaluator = getattr(self, method, None)
        if evaluator is None:
            raise LingoError(f"Unknown node type: {node.node_type}")
        return evaluator(node, env)

    # ─────────────────────────────────────────────────────────
    #  Program & Statements
    # ─────────────────────────────────────────────────────────

    def _eval_program(self, node: Program, env: Environment) -> Object:
        result: Object = NULL
        for stmt in node.statements:
            result = self.evaluate(stmt, env)
            if isinstance(result, ReturnValue):
                return result.value
            if is_error(result):
                return result
        return result

    def _eval_block(self, node: BlockStatement, env: Environment) -> Object:
        """Evaluate statements in order.

        A ReturnValue or Error stops the block and is passed up still wrapped.
        """
        result: Object = NULL
        for stmt in node.statements:
            result = self.evaluate(stmt, env)
            if is_unwinding(result):
                return result
        return result

    def _eval_expressionstatement(self, node: ExpressionStatement, env: Environment) -> Object:
        return self.evaluate(node.expression, env)

    def _eval_let(self, node: LetStatement, env: Environment) -> Object:
        value = self.evaluate(node.value, env)
        if is_unwinding(value):
            return value
        env.set(node.name.value, value)
        return NULL

    def _eval_return(self, node: ReturnStatement, env: Environment) -> Object:
        if node.value is None:
            return ReturnValue(NULL)
        value = self.evaluate(node.value, env)
        if is_unwinding(value):
            return value
        return ReturnValue(value)

    # ─────────────────────────────────────────────────────────
    #  Literals & Identifiers
    # ─────────────────────────────────────────────────────────

    def _eval_integer(self, node: IntegerLiteral, env: Environment) -> Object:
        return Integer(node.value)

    def _eval_boolean(self, node: BooleanLiteral, env: Environment) -> Object:
        return native_bool(node.value)

    def _eval_string(self, node: StringLiteral, env: Environment) -> Object:
        return String(node.value)

    def _eval_identifier(self, node: Identifier, env: Environment) -> Object:
        value = env.get(node.value)
        if value is None:
            # Scopes built without new_environment still see the builtins
            value = self.builtins.get(node.value)
        if value is None:
            return Error(f"identifier not found: {node.value}")
        return value

    def _eval_array(self, node: ArrayLiteral, env: Environment) -> Object:
        elements = self._eval_expressions(node.elements, env)
        if not isinstance(elements, list):
            return elements
        return Array(elements)

    def _eval_hash(self, node: HashLiteral, env: Environment) -> Object:
        pairs: dict = {}
        for key_node, value_node in node.pairs:
            key = self.evaluate(key_node, env)
            if is_unwinding(key):
                return key
            if not isinstance(key, Hashable):
                return Error(f"unusable as hash key: {_type_name(key)}")
            value = self.evaluate(value_node, env)
            if is_unwinding(value):
                return value
            pairs[key.hash_key()] = HashPair(key, value)
        return Hash(pairs)

    def _eval_function(self, node: FunctionLiteral, env: Environment) -> Object:
        # Captures env by reference, not a copy
        return Function(parameters=node.parameters, body=node.body, env=env)

    def _eval_expressions(self, nodes: list[ASTNode], env: Environment) -> list[Object] | Object:
        """Evaluate left to right, stopping at the first Error or ReturnValue."""
        results = []
        for expr in nodes:
            value = self.evaluate(expr, env)
            if is_unwinding(value):
                return value
            results.append(value)
        return results

    # ─────────────────────────────────────────────────────────
    #  Operators
    # ─────────────────────────────────────────────────────────

    def _eval_prefix(self, node: PrefixExpression, env: Environment) -> Object:
        right = self.evaluate(node.right, env)
        if is_unwinding(right):
            return right

        match node.operator:
            case "!":
                return FALSE if is_truthy(right) else TRUE
            case "-":
                if not isinstance(right, Integer):
                    return Error(f"unknown operator: -{_type_name(right)}")
                if -right.value > INT64_MAX:
                    return Error(f"integer overflow: -{right.value}")
                return Integer(-right.value)
            case _:
                return Error(f"unknown operator: {node.operator}{_type_name(right)}")

    def _eval_infix(self, node: InfixExpression, env: Environment) -> Object:
        left = self.evaluate(node.left, env)
        if is_unwinding(left):
            return left

        if node.operator in ("&&", "||"):
            return self._eval_logical(node, left, env)

        right = self.evaluate(node.right, env)
        if is_unwinding(right):
            return right
        return eval_infix_operator(node.operator, left, right)

    def _eval_logical(self, node: InfixExpression, left: Object, env: Environment) -> Object:
        if node.operator == "&&" and not is_truthy(left):
            return FALSE
        if node.operator == "||" and is_truthy(left):
            return TRUE
        right = self.evaluate(node.right, env)
        if is_unwinding(right):
            return right
        return native_bool(is_truthy(right))

    # ─────────────────────────────────────────────────────────
    #  Control Flow
    # ─────────────────────────────────────────────────────────

    def _eval_if(self, node: IfExpression, env: Environment) -> Object:
        condition = self.evaluate(node.condition, env)
        if is_unwinding(condition):
            return condition
        if is_truthy(condition):
            return self.evaluate(node.consequence, env)
        if node.alternative is not None:
            return self.evaluate(node.alternative, env)
        return NULL

    def _eval_call(self, node: CallExpression, env: Environment) -> Object:
        function = self.evaluate(node.function, env)
        if is_unwinding(function):
            return function
        args = self._eval_expressions(node.arguments, env)
        if not isinstance(args, list):
            return args
        return self.apply_function(function, args)

    def apply_function(self, function: Object, args: list[Object]) -> Object:
        """Call a Function or Builtin with already-evaluated arguments."""
        match function:
            case Function(parameters=parameters, body=body, env=closure_env):
                if len(parameters) != len(args):
                    return Error(
                        f"wrong number of arguments. got={len(args)}, want={len(parameters)}"
                    )
                call_env = closure_env.extend()
                for param, arg in zip(parameters, args):
                    call_env.set(param.value, arg)
                logger.debug("apply fn(%s) with %d arg(s)",
                             ", ".join(p.value for p in parameters), len(args))
                result = self.evaluate(body, call_env)
                if isinstance(result, ReturnValue):
                    return result.value
                return result
            case Builtin(fn=native):
                return native(*args)
            case _:
                return Error(f"not a function: {_type_name(function)}")

    # ─────────────────────────────────────────────────────────
    #  Indexing
    # ─────────────────────────────────────────────────────────

    def _eval_index(self, node: IndexExpression, env: Environment) -> Object:
        left = self.evaluate(node.left, env)
        if is_unwinding(left):
            return left
        index = self.evaluate(node.index, env)
        if is_unwinding(index):
            return index

        match left:
            case Array(elements=elements):
                if not isinstance(index, Integer):
                    return Error(f"index operator not supported: {_type_name(left)}")
                if 0 <= index.value < len(elements):
                    return elements[index.value]
                return NULL
            case Hash():
                if not isinstance(index, Hashable):
                    return Error(f"unusable as hash key: {_type_name(index)}")
                value = left.get(index)
                return value if value is not None else NULL
            case _:
                return Error(f"index operator not supported: {_type_name(left)}")


def eval_infix_operator(operator: str, left: Object, right: Object) -> Object:
    """Apply a binary operator to two already-evaluated operands."""
    if left.type() != right.type():
        return Error(f"type mismatch: {_type_name(left)} {operator} {_type_name(right)}")

    match left.type():
        case ObjectType.INTEGER:
            return _eval_integer_infix(operator, left.value, right.value)
        case ObjectType.STRING if operator == "+":
            return String(left.value + right.value)
        case ObjectType.BOOLEAN if operator in ("==", "!="):
            return native_bool((left.value == right.value) == (operator == "=="))
        case ObjectType.NULL if operator in ("==", "!="):
            return native_bool(operator == "==")
        case _:
            return Error(
                f"unknown operator: {_type_name(left)} {operator} {_type_name(right)}"
            )


def _truncating_div(a: int, b: int) -> int:
    quotient = abs(a) // abs(b)
    return quotient if (a < 0) == (b < 0) else -quotient


def _eval_integer_infix(operator: str, a: int, b: int) -> Object:
    match operator:
        case "+":
            value = a + b
        case "-":
            value = a - b
        case "*":
            value = a * b
        case "/":
            if b == 0:
                return Error("division by zero")
            value = _truncating_div(a, b)
        case "<":
            return native_bool(a < b)
        case ">":
            return native_bool(a > b)
        case "<=":
            return native_bool(a <= b)
        case ">=":
            return native_bool(a >= b)
        case "==":
            return native_bool(a == b)
        case "!=":
            return native_bool(a != b)
        case _:
            return Error(f"unknown operator: INTEGER {operator} INTEGER")

    if not INT64_MIN <= value <= INT64_MAX:
        return Error(f"integer overflow: {a} {operator} {b}")
    return Integer(value)


_default_interpreter: Interpreter | None = None


def evaluate(node: ASTNode, env: Environment | None = None) -> Object:
    """Evaluate a Program or single node in `env`.

    `env` defaults to a fresh scope from new_environment(). The builtin
    table resolves even when `env` was built without one.
    """
    global _default_interpreter
    if _default_interpreter is None:
        _default_interpreter = Interpreter()
    if env is None:
        env = new_environment()
    return _default_interpreter.evaluate(node, env)
