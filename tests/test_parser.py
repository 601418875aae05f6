"""Tests for the parser."""

import pytest

from ast_nodes import *
from errors import ErrorCode, StaticErrors
from parser import parse_source


def parse_one(source):
    program = parse_source(source)
    assert len(program.statements) == 1
    return program.statements[0]


def parse_expr(source):
    stmt = parse_one(source + ";")
    assert isinstance(stmt, ExpressionStatement)
    return stmt.expression


def errors_of(source):
    with pytest.raises(StaticErrors) as info:
        parse_source(source)
    return info.value.errors


def test_multiplication_binds_tighter_than_addition():
    expr = parse_expr("1 + 2 * 3")
    assert isinstance(expr, BinaryExpression) and expr.operator == "+"
    assert isinstance(expr.right, BinaryExpression) and expr.right.operator == "*"


def test_binary_operators_are_left_associative():
    expr = parse_expr("8 - 4 - 2")
    assert expr.operator == "-"
    assert isinstance(expr.left, BinaryExpression)
    assert expr.right.value == 2.0


def test_power_is_right_associative_and_tighter_than_unary_minus():
    expr = parse_expr("-2 ** 3 ** 2")
    assert isinstance(expr, UnaryExpression)
    power = expr.operand
    assert power.operator == "**"
    assert power.right.operator == "**"


def test_ternary_sits_between_assignment_and_or():
    expr = parse_expr("x = a or b ? 1 : 2")
    assert isinstance(expr, AssignmentExpression)
    ternary = expr.value
    assert isinstance(ternary, ConditionalExpression)
    assert isinstance(ternary.condition, LogicalExpression)


def test_comparison_and_equality_precedence():
    expr = parse_expr("1 < 2 == true")
    assert expr.operator == "=="
    assert expr.left.operator == "<"


def test_and_binds_tighter_than_or():
    expr = parse_expr("a or b and c")
    assert expr.operator == "or"
    assert expr.right.operator == "and"


def test_assignment_targets():
    assert isinstance(parse_expr("a = 1"), AssignmentExpression)
    assert isinstance(parse_expr("a.b = 1"), SetExpression)
    assert isinstance(parse_expr("a[0] = 1"), IndexSetExpression)


def test_call_property_and_index_chain():
    expr = parse_expr("a.b(1, 2)[3].c")
    assert isinstance(expr, GetExpression) and expr.name == "c"
    index = expr.object
    assert isinstance(index, IndexExpression)
    call = index.object
    assert isinstance(call, CallExpression) and len(call.arguments) == 2


def test_list_and_map_literals():
    expr = parse_expr('[1, "two", [3],]')
    assert isinstance(expr, ListExpression) and len(expr.elements) == 3

    stmt = parse_one('var m = {name: 1, "k": 2, 3: 4};')
    pairs = stmt.initializer.pairs
    assert [key.value for key, _ in pairs] == ["name", "k", 3.0]


def test_arrow_and_anonymous_functions():
    arrow = parse_expr("(a, b) => a + b")
    assert isinstance(arrow, FunctionExpression)
    assert arrow.params == ["a", "b"]
    assert isinstance(arrow.body[0], ReturnStatement)

    block_arrow = parse_expr("() => { print 1; }")
    assert block_arrow.params == [] and isinstance(block_arrow.body[0], PrintStatement)

    anonymous = parse_expr("fun (x) { return x; }")
    assert isinstance(anonymous, FunctionExpression) and anonymous.params == ["x"]


def test_parenthesized_expression_is_not_a_lambda():
    expr = parse_expr("(a)")
    assert isinstance(expr, VariableExpression)


def test_class_with_superclass_and_methods():
    stmt = parse_one("class B < A { init(x) { this.x = x; } get() { return this.x; } }")
    assert isinstance(stmt, ClassStatement)
    assert stmt.superclass.name == "A"
    assert [m.name for m in stmt.methods] == ["init", "get"]


def test_do_while_is_marked():
    stmt = parse_one("do { print 1; } while (false);")
    assert isinstance(stmt, DoWhileStatement)
    assert isinstance(stmt, WhileStatement) and stmt.is_do_while
    assert not parse_one("while (false) print 1;").is_do_while


def test_for_keeps_its_clauses():
    stmt = parse_one("for (var i = 0; i < 3; i = i + 1) print i;")
    assert isinstance(stmt, ForStatement)
    assert isinstance(stmt.initializer, VarStatement)
    assert stmt.condition.operator == "<"
    assert isinstance(stmt.increment, AssignmentExpression)

    bare = parse_one("for (;;) break;")
    assert bare.initializer is None and bare.condition is None and bare.increment is None


def test_try_forms():
    full = parse_one("try { throw 1; } catch (e) { print e; } finally { print 2; }")
    assert full.catch_variable == "e" and full.catch_body and full.finally_body

    only_finally = parse_one("try { } finally { }")
    assert only_finally.catch_body is None and only_finally.finally_body == []


def test_try_needs_catch_or_finally():
    errors = errors_of("try { }")
    assert "'catch' or 'finally'" in errors[0].message


def test_const_requires_initializer():
    assert parse_one("const x = 1;").is_const
    errors = errors_of("const x;")
    assert errors[0].message == "a constant must be initialized"


@pytest.mark.parametrize("source, message", [
    ("return 1;", "can't return from top-level code"),
    ("break;", "'break' outside of a loop"),
    ("continue;", "'continue' outside of a loop"),
    ("while (true) { fun f() { break; } }", "'break' outside of a loop"),
    ("print this;", "can't use 'this' outside of a class"),
    ("fun f() { return super.x; }", "can't use 'super' outside of a class"),
    ("class A { f() { return super.f(); } }", "can't use 'super' in a class with no superclass"),
    ("class A < A { }", "a class can't inherit from itself"),
])
def test_context_errors(source, message):
    errors = errors_of(source)
    assert errors[0].code == ErrorCode.INVALID_CONTEXT
    assert errors[0].message == message


def test_invalid_assignment_target():
    errors = errors_of("1 + 2 = 3;")
    assert errors[0].code == ErrorCode.INVALID_ASSIGNMENT_TARGET


def test_too_many_arguments():
    args = ", ".join(["1"] * 256)
    errors = errors_of(f"f({args});")
    assert errors[0].code == ErrorCode.TOO_MANY_ARGUMENTS


def test_error_recovery_reports_several_errors():
    source = "var = 1;\nprint 2;\nvar y = ;\nprint (3;\n"
    errors = errors_of(source)
    assert len(errors) == 3
    assert [e.line for e in errors] == [1, 3, 4]
    assert all(e.expected for e in errors)


def test_parse_error_carries_token_and_expectation():
    error = errors_of("print 1")[0]
    assert error.code == ErrorCode.EXPECTED_TOKEN
    assert error.expected == "';' after value"
    assert error.token.lexeme == ""
    assert "end of input" in error.message


def test_first_error_only_mode():
    with pytest.raises(StaticErrors) as info:
        parse_source("var = 1; var = 2;", collect_all=False)
    assert len(info.value.errors) == 1
