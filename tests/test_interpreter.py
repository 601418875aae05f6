"""Tests for expression evaluation, variables, functions and natives."""

import io

import pytest

from errors import ErrorKind
from interpreter import Interpreter
from parser import parse_source


@pytest.mark.parametrize("expression, printed", [
    ("3 + 4", "7"),
    ("10 / 4", "2.5"),
    ("7 % 3", "1"),
    ("2 ** 10", "1024"),
    ("2 ** -1", "0.5"),
    ("-2 ** 2", "-4"),
    ("0.1 + 0.2", "0.30000000000000004"),
    ("(1 + 2) * 3", "9"),
    ('"con" + "cat"', "concat"),
    ("1 < 2", "true"),
    ("2 <= 1", "false"),
    ("!nil", "true"),
    ("!0", "false"),
    ('1 == "1"', "false"),
    ("nil == nil", "true"),
    ("nil == false", "false"),
    ("[1] == [1]", "false"),
    ("true ? 1 : 2", "1"),
    ("nil ? 1 : false ? 2 : 3", "3"),
])
def test_expression_values(run, expression, printed):
    outcome = run(f"print {expression};")
    assert outcome.exit_code == 0, outcome.stderr
    assert outcome.lines == [printed]


@pytest.mark.parametrize("source, kind, message", [
    ('print 1 + "a";', ErrorKind.TYPE_MISMATCH,
     "operands of '+' must be two numbers or two strings, got number and string"),
    ('print "a" * 2;', ErrorKind.TYPE_MISMATCH,
     "operands of '*' must be numbers, got string and number"),
    ('print "a" < "b";', ErrorKind.TYPE_MISMATCH,
     "operands of '<' must be numbers, got string and string"),
    ('print -"a";', ErrorKind.TYPE_MISMATCH, "operand of '-' must be a number, got string"),
    ("print 1 / 0;", ErrorKind.DIVISION_BY_ZERO, "division by zero"),
    ("print 1 % 0;", ErrorKind.DIVISION_BY_ZERO, "modulo by zero"),
    ("print 0 ** -1;", ErrorKind.DIVISION_BY_ZERO, "zero raised to a negative power"),
    ("print y;", ErrorKind.UNDEFINED_VARIABLE, "undefined variable 'y'"),
    ("y = 1;", ErrorKind.UNDEFINED_VARIABLE, "undefined variable 'y'"),
    ('"x"();', ErrorKind.NOT_CALLABLE, "can only call functions and classes, got string"),
    ("fun f(a) {} f(1, 2);", ErrorKind.ARITY_MISMATCH, "f expected 1 argument but got 2"),
    ("fun g(a, b) {} g();", ErrorKind.ARITY_MISMATCH, "g expected 2 arguments but got 0"),
    ("const k = 1; k = 2;", ErrorKind.CONSTANT_REASSIGNMENT, "cannot assign to constant 'k'"),
    ("print (1).x;", ErrorKind.TYPE_MISMATCH, "only instances have properties, got number"),
    ('"s".x = 1;', ErrorKind.TYPE_MISMATCH, "only instances have fields, got string"),
])
def test_runtime_errors(run, source, kind, message):
    outcome = run(source)
    assert outcome.exit_code == 70
    assert outcome.error.kind is kind
    assert outcome.error.message == message


def test_output_before_an_error_is_kept(run):
    outcome = run("print 1;\nprint missing;\nprint 2;")
    assert outcome.lines == ["1"]
    assert outcome.error.line == 2


def test_no_implicit_conversions_in_string_concatenation(run):
    assert run('print "n: " + str(3);').lines == ["n: 3"]
    assert run('print "n: " + 3;').error.kind is ErrorKind.TYPE_MISMATCH


def test_block_scoping_and_shadowing(run):
    outcome = run("""
        var a = "global";
        {
            var a = "inner";
            print a;
        }
        print a;
    """)
    assert outcome.lines == ["inner", "global"]


def test_assignment_is_an_expression(run):
    assert run("var a; var b; a = b = 3; print a + b;").lines == ["6"]


def test_uninitialized_variable_is_nil(run):
    assert run("var a; print a;").lines == ["nil"]


def test_logical_operators_short_circuit_and_return_operands(run):
    outcome = run("""
        print nil or "default";
        print 0 and 2;
        print false and undefinedName;
        print "yes" or undefinedName;
        print nil and 1;
    """)
    assert outcome.lines == ["default", "2", "false", "yes", "nil"]


def test_closures_keep_their_own_state(run):
    outcome = run("""
        fun makeCounter() {
            var count = 0;
            fun increment() {
                count = count + 1;
                return count;
            }
            return increment;
        }
        var a = makeCounter();
        var b = makeCounter();
        print a();
        print a();
        print b();
    """)
    assert outcome.lines == ["1", "2", "1"]


def test_closure_sees_later_assignment(run):
    outcome = run("""
        var x = "before";
        fun show() { print x; }
        x = "after";
        show();
    """)
    assert outcome.lines == ["after"]


def test_recursion(run):
    outcome = run("""
        fun fib(n) {
            if (n < 2) return n;
            return fib(n - 1) + fib(n - 2);
        }
        print fib(15);
    """)
    assert outcome.lines == ["610"]


def test_function_without_return_yields_nil(run):
    assert run("fun f() { 1; } print f();").lines == ["nil"]


def test_lambdas(run):
    outcome = run("""
        var double = (x) => x * 2;
        var greet = fun (name) { return "hi " + name; };
        fun apply(f, v) { return f(v); }
        print apply(double, 4);
        print greet("bob");
        print double;
        print apply((x) => { return x - 1; }, 10);
    """)
    assert outcome.lines == ["8", "hi bob", "<fn lambda>", "9"]


def test_functions_print_with_their_name(run):
    assert run("fun f() {} print f; print clock;").lines == ["<fn f>", "<native fn clock>"]


def test_natives(run):
    outcome = run("""
        print typeOf(1);
        print typeOf("s");
        print typeOf(nil);
        print typeOf(true);
        print typeOf([]);
        print typeOf({});
        print typeOf(clock);
        print typeOf(typeOf);
        print len("abc");
        print len([1, 2]);
        print len({a: 1});
        print str(2.5) + "!";
        print clock() > 0;
    """)
    assert outcome.lines == [
        "number", "string", "nil", "boolean", "list", "map",
        "native function", "native function", "3", "2", "1", "2.5!", "true",
    ]


def test_len_rejects_numbers(run):
    assert run("len(1);").error.kind is ErrorKind.TYPE_MISMATCH


def test_natives_can_be_shadowed(run):
    assert run("var len = 5; print len;").lines == ["5"]


def test_dump_lists_scopes_innermost_first(run):
    outcome = run("""
        var a = 1;
        {
            var b = "x";
            var c;
            dump;
        }
    """)
    assert outcome.lines == ["b = x", "c = nil", "---", "a = 1", "---"]


def test_const_can_be_shadowed_in_an_inner_scope(run):
    assert run("const k = 1; { var k = 2; k = 3; print k; } print k;").lines == ["3", "1"]


def test_interpreter_keeps_state_between_programs():
    output = io.StringIO()
    interpreter = Interpreter(output)
    interpreter.interpret(parse_source("var total = 40;"))
    interpreter.interpret(parse_source("total = total + 2; print total;"))
    assert output.getvalue() == "42\n"


def test_echo_prints_expression_statements():
    output = io.StringIO()
    interpreter = Interpreter(output)
    interpreter.interpret(parse_source("var a = 2; a * 21; print \"x\";"), echo=True)
    assert output.getvalue().splitlines() == ["42", "x"]
