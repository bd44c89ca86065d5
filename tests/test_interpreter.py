"""
Lingo Test Suite — Interpreter
==============================
End-to-end tests: source text → Lexer → Parser → Interpreter → Object.

Usage:
    python -m pytest tests/test_interpreter.py -v
    python tests/test_interpreter.py
"""
import sys
import os
import unittest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from lingo.parser import parse, LingoSyntaxError
from lingo.interpreter import Interpreter, LingoError, evaluate, new_environment
from lingo.objects import (
    Integer, String, Array, Hash, Function, Builtin, Error, Environment,
    TRUE, FALSE, NULL,
)
from lingo.builtins import make_builtins


class InterpreterTestCase(unittest.TestCase):

    def setUp(self):
        self.output: list[str] = []
        self.interp = Interpreter(output_fn=self.output.append)

    def _run(self, source: str):
        program, errors = parse(source)
        self.assertEqual(errors, [], f"unexpected parse errors for {source!r}")
        return self.interp.evaluate(program)

    def _assert_error(self, source: str, message: str):
        result = self._run(source)
        self.assertIsInstance(result, Error, f"{source!r} gave {result.inspect()}")
        self.assertEqual(result.message, message)


# ─────────────────────────────────────────────
#  Expressions
# ─────────────────────────────────────────────

class TestExpressions(InterpreterTestCase):

    def test_integer_arithmetic(self):
        cases = [
            ("5", 5), ("-10", -10), ("--5", 5),
            ("5 + 5 + 5 + 5 - 10", 10),
            ("2 * 2 * 2 * 2 * 2", 32),
            ("-50 + 100 + -50", 0),
            ("20 + 2 * -10", 0),
            ("50 / 2 * 2 + 10", 60),
            ("2 * (5 + 10)", 30),
            ("3 * 3 * 3 + 10", 37),
            ("(5 + 10 * 2 + 15 / 3) * 2 + -10", 50),
            ("1 + 2 * 3", 7),
            ("(1 + 2) * 3", 9),
        ]
        for source, expected in cases:
            with self.subTest(source=source):
                self.assertEqual(self._run(source), Integer(expected))

    def test_division_truncates_toward_zero(self):
        self.assertEqual(self._run("7 / 2"), Integer(3))
        self.assertEqual(self._run("-7 / 2"), Integer(-3))
        self.assertEqual(self._run("7 / -2"), Integer(-3))
        self.assertEqual(self._run("-7 / -2"), Integer(3))

    def test_division_by_zero(self):
        self._assert_error("1 / 0", "division by zero")

    def test_integer_overflow(self):
        self._assert_error("9223372036854775807 + 1", "integer overflow: 9223372036854775807 + 1")
        self._assert_error("-9223372036854775807 - 2", "integer overflow: -9223372036854775807 - 2")
        self.assertEqual(self._run("-9223372036854775807 - 1"), Integer(-(2**63)))
        self._assert_error("-(-9223372036854775807 - 1)", "integer overflow: --9223372036854775808")

    def test_boolean_expressions(self):
        cases = [
            ("true", True), ("false", False),
            ("1 < 2", True), ("1 > 2", False), ("1 <= 1", True), ("2 >= 3", False),
            ("1 == 1", True), ("1 != 1", False),
            ("true == true", True), ("true != false", True), ("false == true", False),
            ("(1 < 2) == true", True), ("(1 > 2) == true", False),
        ]
        for source, expected in cases:
            with self.subTest(source=source):
                self.assertIs(self._run(source), TRUE if expected else FALSE)

    def test_bang_operator(self):
        cases = [("!true", False), ("!false", True), ("!5", False), ("!!true", True),
                 ("!!5", True), ("!0", False), ('!""', False)]
        for source, expected in cases:
            with self.subTest(source=source):
                self.assertIs(self._run(source), TRUE if expected else FALSE)

    def test_bang_on_null(self):
        self.assertIs(self._run("!if (false) { 1 }"), TRUE)

    def test_logical_operators(self):
        self.assertIs(self._run("true && 1"), TRUE)
        self.assertIs(self._run("1 > 2 || 3 > 2"), TRUE)
        self.assertIs(self._run("false || false"), FALSE)

    def test_logical_operators_short_circuit(self):
        self.assertIs(self._run("false && missing"), FALSE)
        self.assertIs(self._run("true || missing"), TRUE)
        self._assert_error("true && missing", "identifier not found: missing")

    def test_string_concatenation(self):
        self.assertEqual(self._run('"Hello" + " " + "World!"'), String("Hello World!"))

    def test_null_equality(self):
        self.assertIs(self._run("if (false) { 1 } == if (false) { 2 }"), TRUE)


# ─────────────────────────────────────────────
#  Control Flow
# ─────────────────────────────────────────────

class TestControlFlow(InterpreterTestCase):

    def test_if_else(self):
        cases = [
            ("if (true) { 10 }", Integer(10)),
            ("if (false) { 10 }", NULL),
            ("if (1) { 10 }", Integer(10)),
            ("if (1 < 2) { 10 }", Integer(10)),
            ("if (1 > 2) { 10 }", NULL),
            ("if (1 > 2) { 10 } else { 20 }", Integer(20)),
            ("if (1 < 2) { 10 } else { 20 }", Integer(10)),
            ("if (1 > 2) { 10 } else if (2 > 1) { 15 } else { 20 }", Integer(15)),
            ("if (true) { }", NULL),
        ]
        for source, expected in cases:
            with self.subTest(source=source):
                self.assertEqual(self._run(source), expected)

    def test_return_statements(self):
        cases = [
            ("return 10;", 10),
            ("return 10; 9;", 10),
            ("return 2 * 5; 9;", 10),
            ("9; return 2 * 5; 9;", 10),
            ("if (10 > 1) { if (10 > 1) { return 10; } return 1; }", 10),
        ]
        for source, expected in cases:
            with self.subTest(source=source):
                self.assertEqual(self._run(source), Integer(expected))

    def test_bare_return(self):
        self.assertIs(self._run("let f = fn() { return; 5 }; f()"), NULL)

    def test_return_exits_only_the_called_function(self):
        source = """
            let inner = fn() { return 1; 99 };
            let outer = fn() { let a = inner(); a + 1 };
            outer();
        """
        self.assertEqual(self._run(source), Integer(2))

    def test_return_inside_expression_unwinds_to_call(self):
        cases = [
            ("let f = fn() { let y = if (true) { return 1 }; 10 }; f()", 1),
            ("let f = fn() { return if (true) { return 2 } }; f()", 2),
            ("let f = fn() { [0, if (true) { return 3 }, 2] }; f()", 3),
            ("let f = fn() { -if (true) { return 4 } }; f()", 4),
            ("let f = fn() { 1 + if (true) { return 5 } }; f()", 5),
            ("let f = fn() { true && if (true) { return 6 } }; f()", 6),
            ("let f = fn() { if (if (true) { return 7 }) { 1 } else { 2 } }; f()", 7),
            ("let g = fn(x) { x }; let f = fn() { g(if (true) { return 8 }) }; f()", 8),
            ("let f = fn() { [1, 2][if (true) { return 9 }] }; f()", 9),
            ("let f = fn() { {\"k\": if (true) { return 10 }} }; f()", 10),
        ]
        for source, expected in cases:
            with self.subTest(source=source):
                self.assertEqual(self._run(source), Integer(expected))

    def test_return_in_let_skips_rest_of_body(self):
        source = 'let f = fn() { let y = if (true) { return 1 }; puts("after"); 10 }; f()'
        self.assertEqual(self._run(source), Integer(1))
        self.assertEqual(self.output, [])

    def test_top_level_return_in_expression_ends_program(self):
        self.assertEqual(self._run("let x = if (true) { return 5 }; x + 1"), Integer(5))
        self.assertEqual(self._run("[if (true) { return 5 }]"), Integer(5))
        self.assertNotIn("x", self.interp.env)

    def test_let_evaluates_to_null(self):
        self.assertIs(self._run("let a = 5;"), NULL)
        self.assertIs(self._run(""), NULL)

    def test_let_bindings(self):
        cases = [
            ("let a = 5; a;", 5),
            ("let a = 5 * 5; a;", 25),
            ("let a = 5; let b = a; b;", 5),
            ("let a = 5; let b = a; let c = a + b + 5; c;", 15),
        ]
        for source, expected in cases:
            with self.subTest(source=source):
                self.assertEqual(self._run(source), Integer(expected))


# ─────────────────────────────────────────────
#  Errors
# ─────────────────────────────────────────────

class TestErrors(InterpreterTestCase):

    def test_error_messages(self):
        cases = [
            ("5 + true;", "type mismatch: INTEGER + BOOLEAN"),
            ("5 + true; 5;", "type mismatch: INTEGER + BOOLEAN"),
            ("-true", "unknown operator: -BOOLEAN"),
            ("true + false;", "unknown operator: BOOLEAN + BOOLEAN"),
            ("5; true + false; 5", "unknown operator: BOOLEAN + BOOLEAN"),
            ("if (10 > 1) { true + false; }", "unknown operator: BOOLEAN + BOOLEAN"),
            ("if (10 > 1) { if (10 > 1) { return true + false; } return 1; }",
             "unknown operator: BOOLEAN + BOOLEAN"),
            ("foobar", "identifier not found: foobar"),
            ('"Hello" - "World"', "unknown operator: STRING - STRING"),
            ('"a" == "a"', "unknown operator: STRING == STRING"),
            ('{"name": "Lingo"}[fn(x) { x }];', "unusable as hash key: FUNCTION"),
            ("{[1]: 2}", "unusable as hash key: ARRAY"),
            ("1 == true", "type mismatch: INTEGER == BOOLEAN"),
            ("5(1)", "not a function: INTEGER"),
            ("5[0]", "index operator not supported: INTEGER"),
            ('[1, 2]["a"]', "index operator not supported: ARRAY"),
            ("[1, 2] + [3]", "unknown operator: ARRAY + ARRAY"),
        ]
        for source, expected in cases:
            with self.subTest(source=source):
                self._assert_error(source, expected)

    def test_error_propagates_through_constructs(self):
        cases = [
            "[1, missing, 3]",
            '{"a": missing}',
            "{missing: 1}",
            "let f = fn(x) { x }; f(missing)",
            "missing(1)",
            "len(missing)",
            "[1][missing]",
            "missing[0]",
            "-missing",
            "!missing",
            "if (missing) { 1 }",
            "let x = missing; 5",
            "fn() { return missing; }()",
        ]
        for source in cases:
            with self.subTest(source=source):
                self._assert_error(source, "identifier not found: missing")

    def test_arithmetic_with_error_yields_no_number(self):
        result = self._run("5 + true")
        self.assertNotIsInstance(result, Integer)
        self.assertIn("INTEGER", result.message)
        self.assertIn("BOOLEAN", result.message)

    def test_first_error_wins(self):
        self._assert_error("[a, b]", "identifier not found: a")

    def test_wrong_number_of_arguments(self):
        self._assert_error("fn(x, y) { x }(1)", "wrong number of arguments. got=1, want=2")


# ─────────────────────────────────────────────
#  Functions & Closures
# ─────────────────────────────────────────────

class TestFunctions(InterpreterTestCase):

    def test_function_object(self):
        result = self._run("fn(x) { x + 2; };")
        self.assertIsInstance(result, Function)
        self.assertEqual([p.value for p in result.parameters], ["x"])
        self.assertEqual(result.body.format(), "{ (x + 2); }")
        self.assertEqual(result.inspect(), "fn(x) { (x + 2); }")

    def test_function_application(self):
        cases = [
            ("let identity = fn(x) { x; }; identity(5);", 5),
            ("let identity = fn(x) { return x; }; identity(5);", 5),
            ("let double = fn(x) { x * 2; }; double(5);", 10),
            ("let add = fn(x, y) { x + y; }; add(5, 5);", 10),
            ("let add = fn(x, y) { x + y; }; add(5 + 5, add(5, 5));", 20),
            ("fn(x) { x; }(5)", 5),
        ]
        for source, expected in cases:
            with self.subTest(source=source):
                self.assertEqual(self._run(source), Integer(expected))

    def test_closures(self):
        source = "let newAdder = fn(x) { fn(y) { x + y } }; let addTwo = newAdder(2); addTwo(3);"
        self.assertEqual(self._run(source), Integer(5))

    def test_closures_do_not_share_captures(self):
        source = """
            let newAdder = fn(x) { fn(y) { x + y } };
            let addTwo = newAdder(2);
            let addTen = newAdder(10);
            [addTwo(1), addTen(1), addTwo(1)];
        """
        self.assertEqual(self._run(source), Array((Integer(3), Integer(11), Integer(3))))

    def test_closure_sees_later_bindings_by_reference(self):
        source = "let f = fn() { y }; let y = 7; f();"
        self.assertEqual(self._run(source), Integer(7))

    def test_lexical_not_dynamic_scope(self):
        source = """
            let x = 1;
            let getX = fn() { x };
            let caller = fn(x) { getX() };
            caller(100);
        """
        self.assertEqual(self._run(source), Integer(1))

    def test_shadowing_does_not_alter_outer_binding(self):
        source = """
            let x = 10;
            let f = fn() { let x = 20; x };
            let inner = f();
            [inner, x];
        """
        self.assertEqual(self._run(source), Array((Integer(20), Integer(10))))

    def test_parameter_shadows_outer(self):
        source = "let x = 1; let f = fn(x) { x * 3 }; f(5) + x;"
        self.assertEqual(self._run(source), Integer(16))

    def test_recursion(self):
        source = """
            let fib = fn(n) {
                if (n < 2) { return n; }
                fib(n - 1) + fib(n - 2)
            };
            fib(15);
        """
        self.assertEqual(self._run(source), Integer(610))

    def test_higher_order_functions(self):
        source = """
            let map = fn(arr, f) {
                let iter = fn(arr, acc) {
                    if (len(arr) == 0) { acc } else { iter(rest(arr), push(acc, f(first(arr)))) }
                };
                iter(arr, []);
            };
            let reduce = fn(arr, initial, f) {
                let iter = fn(arr, result) {
                    if (len(arr) == 0) { result } else { iter(rest(arr), f(result, first(arr))) }
                };
                iter(arr, initial);
            };
            let doubled = map([1, 2, 3, 4], fn(x) { x * 2 });
            reduce(doubled, 0, fn(acc, x) { acc + x });
        """
        self.assertEqual(self._run(source), Integer(20))

    def test_function_ast_reusable_across_calls(self):
        source = "let sq = fn(x) { let y = x * x; y }; sq(3) + sq(4);"
        self.assertEqual(self._run(source), Integer(25))


# ─────────────────────────────────────────────
#  Arrays & Hashes
# ─────────────────────────────────────────────

class TestCollections(InterpreterTestCase):

    def test_array_literal(self):
        result = self._run("[1, 2 * 2, 3 + 3]")
        self.assertEqual(result, Array((Integer(1), Integer(4), Integer(6))))
        self.assertEqual(result.inspect(), "[1, 4, 6]")

    def test_array_indexing(self):
        cases = [
            ("[1, 2, 3][0]", Integer(1)),
            ("[1, 2, 3][2]", Integer(3)),
            ("let i = 0; [1][i];", Integer(1)),
            ("[1, 2, 3][1 + 1];", Integer(3)),
            ("let myArray = [1, 2, 3]; myArray[0] + myArray[1] + myArray[2];", Integer(6)),
            ("[1, 2, 3][3]", NULL),
            ("[1, 2, 3][5]", NULL),
            ("[1, 2, 3][-1]", NULL),
        ]
        for source, expected in cases:
            with self.subTest(source=source):
                self.assertEqual(self._run(source), expected)

    def test_hash_literal(self):
        source = """
            let two = "two";
            {"one": 10 - 9, two: 1 + 1, "thr" + "ee": 6 / 2, 4: 4, true: 5, false: 6}
        """
        result = self._run(source)
        self.assertIsInstance(result, Hash)
        expected = [
            (String("one"), Integer(1)), (String("two"), Integer(2)),
            (String("three"), Integer(3)), (Integer(4), Integer(4)),
            (TRUE, Integer(5)), (FALSE, Integer(6)),
        ]
        self.assertEqual([(p.key, p.value) for p in result.pairs.values()], expected)

    def test_hash_indexing(self):
        cases = [
            ('{"foo": 5}["foo"]', Integer(5)),
            ('{"foo": 5}["bar"]', NULL),
            ('let key = "foo"; {"foo": 5}[key]', Integer(5)),
            ('{}["foo"]', NULL),
            ("{5: 5}[5]", Integer(5)),
            ("{true: 5}[true]", Integer(5)),
            ("{false: 5}[false]", Integer(5)),
            ("{1: 5}[true]", NULL),
        ]
        for source, expected in cases:
            with self.subTest(source=source):
                self.assertEqual(self._run(source), expected)

    def test_distinct_strings_resolve_to_same_entry(self):
        source = 'let k = "na" + "me"; let h = {"name": "Lingo"}; h[k]'
        self.assertEqual(self._run(source), String("Lingo"))

    def test_duplicate_keys_keep_last_value(self):
        result = self._run('{"a": 1, "a": 2}')
        self.assertEqual(len(result.pairs), 1)
        self.assertEqual(self._run('{"a": 1, "a": 2}["a"]'), Integer(2))

    def test_hash_inspect(self):
        self.assertEqual(self._run('{"a": [1, "b"], 2: true}').inspect(), '{"a": [1, "b"], 2: true}')


# ─────────────────────────────────────────────
#  Builtins
# ─────────────────────────────────────────────

class TestBuiltins(InterpreterTestCase):

    def test_len(self):
        cases = [
            ('len("")', Integer(0)),
            ('len("four")', Integer(4)),
            ('len("hello")', Integer(5)),
            ("len([1, 2, 3])", Integer(3)),
            ("len([])", Integer(0)),
            ('len({"a": 1, "b": 2})', Integer(2)),
        ]
        for source, expected in cases:
            with self.subTest(source=source):
                self.assertEqual(self._run(source), expected)

    def test_len_errors(self):
        self._assert_error("len(5)", 'argument to "len" not supported, got INTEGER')
        self._assert_error('len("one", "two")', "wrong number of arguments. got=2, want=1")

    def test_array_builtins(self):
        cases = [
            ("first([1, 2, 3])", Integer(1)),
            ("first([])", NULL),
            ("last([1, 2, 3])", Integer(3)),
            ("last([])", NULL),
            ("rest([1, 2, 3])", Array((Integer(2), Integer(3)))),
            ("rest([1])", Array(())),
            ("rest([])", NULL),
            ("push([], 1)", Array((Integer(1),))),
            ("push([1], [2])", Array((Integer(1), Array((Integer(2),))))),
        ]
        for source, expected in cases:
            with self.subTest(source=source):
                self.assertEqual(self._run(source), expected)

    def test_array_builtin_errors(self):
        self._assert_error("first(1)", 'argument to "first" must be ARRAY, got INTEGER')
        self._assert_error('last("x")', 'argument to "last" must be ARRAY, got STRING')
        self._assert_error("rest(true)", 'argument to "rest" must be ARRAY, got BOOLEAN')
        self._assert_error("push(1, 1)", 'argument to "push" must be ARRAY, got INTEGER')
        self._assert_error("push([1])", "wrong number of arguments. got=1, want=2")

    def test_push_leaves_original_unchanged(self):
        source = "let a = [1, 2]; let b = push(a, 3); [len(a), len(b)]"
        self.assertEqual(self._run(source), Array((Integer(2), Integer(3))))

    def test_puts_uses_host_output(self):
        result = self._run('puts("hello", 42, [1, "x"])')
        self.assertIs(result, NULL)
        self.assertEqual(self.output, ["hello", "42", '[1, "x"]'])

    def test_builtins_can_be_shadowed(self):
        self.assertEqual(self._run("let len = fn(x) { 42 }; len([1])"), Integer(42))
        fresh = Interpreter(output_fn=self.output.append)
        self.assertEqual(fresh.run("len([1])"), Integer(1))
        self.assertIsInstance(self.interp.globals.get("len"), Builtin)

    def test_builtin_inspect(self):
        self.assertEqual(self._run("len").inspect(), "builtin function")


# ─────────────────────────────────────────────
#  Host API
# ─────────────────────────────────────────────

class TestHostApi(unittest.TestCase):

    def test_run_raises_on_syntax_error(self):
        with self.assertRaises(LingoSyntaxError):
            Interpreter(output_fn=lambda s: None).run("let = 5;")

    def test_run_keeps_bindings_between_calls(self):
        interp = Interpreter(output_fn=lambda s: None)
        interp.run("let x = 40;")
        self.assertEqual(interp.run("x + 2"), Integer(42))
        self.assertIn("x", interp.env)
        self.assertNotIn("x", interp.globals)

    def test_module_level_evaluate(self):
        env = Environment(outer=Environment.from_bindings(make_builtins(lambda s: None)))
        program, errors = parse("let a = [1, 2, 3]; len(a)")
        self.assertEqual(errors, [])
        self.assertEqual(evaluate(program, env), Integer(3))
        self.assertEqual(env.get("a"), Array((Integer(1), Integer(2), Integer(3))))

    def test_evaluate_single_node(self):
        program, _ = parse("1 + 2")
        interp = Interpreter(output_fn=lambda s: None)
        self.assertEqual(interp.evaluate(program.statements[0].expression), Integer(3))

    def test_evaluate_rejects_non_nodes(self):
        with self.assertRaises(LingoError):
            Interpreter(output_fn=lambda s: None).evaluate("1 + 2")

    def test_custom_builtins_table(self):
        interp = Interpreter(builtins={})
        result = interp.run("len([1])")
        self.assertEqual(result, Error("identifier not found: len"))

    def test_module_level_evaluate_with_bare_environment(self):
        program, _ = parse("len([1])")
        self.assertEqual(evaluate(program, Environment()), Integer(1))
        self.assertEqual(evaluate(program), Integer(1))

    def test_new_environment_binds_builtins(self):
        output = []
        env = new_environment(output_fn=output.append)
        self.assertIsInstance(env.get("len"), Builtin)
        self.assertNotIn("len", env.store)
        program, _ = parse('let n = len("abc"); puts(n)')
        evaluate(program, env)
        self.assertEqual(output, ["3"])
        self.assertEqual(env.get("n"), Integer(3))


if __name__ == "__main__":
    unittest.main(verbosity=2)
