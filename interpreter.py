"""
Main interpreter for the Lox language

Statements execute to an explicit Signal (normal completion, return, break,
continue or a thrown value) that every block and loop threads back to its
caller. Host-level runtime errors are LoxRuntimeError exceptions and unwind
straight to the top unless catch_runtime_errors is enabled.
"""

import logging
import math
import sys
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, TextIO, Tuple

from ast_nodes import *
from classes import BoundMethod, LoxClass, LoxInstance
from config import InterpreterOptions, recursion_headroom
from containers import LoxCollection, LoxList, LoxMap
from environment import Environment
from errors import ErrorKind, LoxRuntimeError, TraceEntry, UncaughtThrow
from source_map import Span, get_source_map
from values import (LoxCallable, LoxFunction, NativeFunction, ThrownValue,
                    is_equal, is_truthy, stringify, type_name)

logger = logging.getLogger(__name__)

# Python frames used per Lox call, with room to spare
_FRAMES_PER_CALL = 40

class SignalKind(Enum):
    NORMAL = "normal"
    RETURN = "return"
    BREAK = "break"
    CONTINUE = "continue"
    THROWN = "thrown"

@dataclass(frozen=True)
class Signal:
    """Outcome of executing a statement"""
    kind: SignalKind
    value: Any = None  # return value, or the ThrownValue for THROWN

    @property
    def is_normal(self) -> bool:
        return self.kind is SignalKind.NORMAL

    @classmethod
    def returning(cls, value: Any) -> 'Signal':
        return cls(SignalKind.RETURN, value)

    @classmethod
    def thrown(cls, thrown: ThrownValue) -> 'Signal':
        return cls(SignalKind.THROWN, thrown)

NORMAL = Signal(SignalKind.NORMAL)
BREAK = Signal(SignalKind.BREAK)
CONTINUE = Signal(SignalKind.CONTINUE)

class ThrownUnwind(Exception):
    """Carries a thrown value out of an expression to the statement that contains it"""
    def __init__(self, thrown: ThrownValue):
        self.thrown = thrown
        super().__init__(stringify(thrown.payload))

@dataclass(frozen=True)
class CallFrame:
    """One active call: the callee's name and where it was called from"""
    name: str
    call_span: Optional[Span]

class Interpreter:
    """Main interpreter that executes the AST"""

    def __init__(self, output: Optional[TextIO] = None, options: Optional[InterpreterOptions] = None):
        self.options = options or InterpreterOptions()
        self.output = output if output is not None else sys.stdout

        # Natives live one level above the program's globals
        self.builtins = Environment()
        self.globals = Environment(self.builtins)
        self.environment = self.globals

        self.frames: List[CallFrame] = []
        self.last_value: Any = None

        self.define_built_ins()

    def define_built_ins(self):
        """Define built-in functions"""
        def clock(interpreter, arguments):
            return time.time()

        def type_of(interpreter, arguments):
            return type_name(arguments[0])

        def to_string(interpreter, arguments):
            return stringify(arguments[0])

        def length(interpreter, arguments):
            value = arguments[0]
            if isinstance(value, str):
                return float(len(value))
            if isinstance(value, LoxCollection):
                return float(value.length())
            raise LoxRuntimeError.of(ErrorKind.TYPE_MISMATCH,
                                     f"len() expects a string, list or map, got {type_name(value)}")

        for native in (NativeFunction("clock", 0, clock),
                       NativeFunction("typeOf", 1, type_of),
                       NativeFunction("str", 1, to_string),
                       NativeFunction("len", 1, length)):
            self.builtins.define(native.name, native)

    def interpret(self, program: Program, echo: bool = False):
        """Interpret a program.

        Raises LoxRuntimeError for a host-level failure and UncaughtThrow when
        a thrown value reaches the top level. With echo, the value of each
        top-level expression statement is printed (REPL mode).
        """
        logger.debug("executing %d top-level statement(s)", len(program.statements))
        with self._recursion_headroom():
            try:
                for statement in program.statements:
                    signal = self.execute(statement)
                    if signal.kind is SignalKind.THROWN:
                        self._raise_uncaught(signal.value)
                    if echo and isinstance(statement, ExpressionStatement):
                        self.write_line(stringify(self.last_value))
            except RecursionError:
                self.frames.clear()
                self.environment = self.globals
                raise LoxRuntimeError.of(ErrorKind.STACK_OVERFLOW, "stack overflow") from None
        logger.debug("program finished")

    def _raise_uncaught(self, thrown: ThrownValue):
        logger.debug("uncaught thrown value: %s", stringify(thrown.payload))
        raise UncaughtThrow.from_payload(thrown.payload, stringify(thrown.payload), thrown.span, thrown.trace)

    def _recursion_headroom(self):
        """Enough host stack for max_call_depth nested calls"""
        return recursion_headroom(self.options.max_call_depth * _FRAMES_PER_CALL + 1000)

    def write_line(self, text: str):
        self.output.write(text + "\n")

    # Statements

    def execute(self, stmt: Statement) -> Signal:
        """Execute a statement, turning thrown values into a THROWN signal"""
        try:
            return self.visit_statement(stmt)
        except ThrownUnwind as unwind:
            return Signal.thrown(unwind.thrown)
        except LoxRuntimeError as error:
            error.with_span(stmt.span)
            error.with_trace(self.stack_trace(error.diagnostic.primary_span()))
            if self.options.catch_runtime_errors and error.kind is not ErrorKind.STACK_OVERFLOW:
                logger.debug("converting %s into a thrown value", error.kind.title)
                return Signal.thrown(ThrownValue(error.message, error.trace, error.diagnostic.primary_span()))
            raise

    def visit_statement(self, stmt: Statement) -> Signal:
        """Visit and execute statement based on type"""
        if isinstance(stmt, ExpressionStatement):
            self.last_value = self.evaluate(stmt.expression)
            return NORMAL
        elif isinstance(stmt, PrintStatement):
            self.write_line(stringify(self.evaluate(stmt.expression)))
            return NORMAL
        elif isinstance(stmt, VarStatement):
            return self.execute_var_statement(stmt)
        elif isinstance(stmt, BlockStatement):
            return self.execute_block(stmt.statements, Environment(self.environment))
        elif isinstance(stmt, IfStatement):
            return self.execute_if_statement(stmt)
        elif isinstance(stmt, WhileStatement):
            return self.execute_while_statement(stmt)
        elif isinstance(stmt, ForStatement):
            return self.execute_for_statement(stmt)
        elif isinstance(stmt, FunctionStatement):
            self.environment.define(stmt.name, LoxFunction(stmt, self.environment))
            return NORMAL
        elif isinstance(stmt, ReturnStatement):
            value = self.evaluate(stmt.value) if stmt.value is not None else None
            return Signal.returning(value)
        elif isinstance(stmt, BreakStatement):
            return BREAK
        elif isinstance(stmt, ContinueStatement):
            return CONTINUE
        elif isinstance(stmt, ClassStatement):
            return self.execute_class_statement(stmt)
        elif isinstance(stmt, TryStatement):
            return self.execute_try_statement(stmt)
        elif isinstance(stmt, ThrowStatement):
            return self.execute_throw_statement(stmt)
        elif isinstance(stmt, DumpStatement):
            return self.execute_dump_statement(stmt)
        raise TypeError(f"Unknown statement type: {type(stmt).__name__}")

    def execute_var_statement(self, stmt: VarStatement) -> Signal:
        """Execute variable declaration"""
        value = None
        if stmt.initializer is not None:
            value = self.evaluate(stmt.initializer)

        self.environment.define(stmt.name, value, stmt.is_const)
        return NORMAL

    def execute_block(self, statements: List[Statement], environment: Environment) -> Signal:
        """Execute statements in the given environment, stopping at the first non-normal signal"""
        previous = self.environment
        try:
            self.environment = environment
            for statement in statements:
                signal = self.execute(statement)
                if not signal.is_normal:
                    return signal
            return NORMAL
        finally:
            self.environment = previous

    def execute_class_statement(self, stmt: ClassStatement) -> Signal:
        """Execute class declaration"""
        superclass = None
        if stmt.superclass is not None:
            superclass = self.evaluate(stmt.superclass)
            if not isinstance(superclass, LoxClass):
                raise LoxRuntimeError.of(
                    ErrorKind.INVALID_SUPERCLASS,
                    f"superclass must be a class, got {type_name(superclass)}",
                    stmt.superclass.span,
                )

        self.environment.define(stmt.name, None)

        # Methods of a subclass close over a scope that binds 'super'
        method_scope = self.environment
        if superclass is not None:
            method_scope = Environment(self.environment)
            method_scope.define("super", superclass)

        klass = LoxClass(stmt.name, superclass, {})
        for method in stmt.methods:
            klass.methods[method.name] = LoxFunction(
                method, method_scope, owner=klass, is_initializer=method.name == "init"
            )

        self.environment.define(stmt.name, klass)
        logger.debug("declared %r", klass)
        return NORMAL

    def execute_if_statement(self, stmt: IfStatement) -> Signal:
        """Execute if statement"""
        if is_truthy(self.evaluate(stmt.condition)):
            return self.execute(stmt.then_branch)
        if stmt.else_branch is not None:
            return self.execute(stmt.else_branch)
        return NORMAL

    def execute_loop_body(self, body: Statement, scope: Environment) -> Signal:
        """Run one iteration in its own child scope"""
        return self.execute_block([body], Environment(scope))

    def execute_while_statement(self, stmt: WhileStatement) -> Signal:
        """Execute while and do-while loops"""
        run_body = stmt.is_do_while
        while run_body or is_truthy(self.evaluate(stmt.condition)):
            run_body = False
            signal = self.execute_loop_body(stmt.body, self.environment)
            if signal.kind is SignalKind.BREAK:
                break
            if signal.kind is SignalKind.CONTINUE:
                continue
            if not signal.is_normal:
                return signal
        return NORMAL

    def execute_for_statement(self, stmt: ForStatement) -> Signal:
        """Execute a C-style for loop.

        Each iteration works on a fresh copy of the initializer's bindings, and
        the increment runs in the new copy, so closures created in an iteration
        keep that iteration's values.
        """
        previous = self.environment
        try:
            iteration_scope = Environment(previous)
            self.environment = iteration_scope
            if stmt.initializer is not None:
                signal = self.execute(stmt.initializer)
                if not signal.is_normal:
                    return signal

            first = True
            while True:
                iteration_scope = iteration_scope.copy()
                self.environment = iteration_scope
                if not first and stmt.increment is not None:
                    self.evaluate(stmt.increment)
                first = False

                if stmt.condition is not None and not is_truthy(self.evaluate(stmt.condition)):
                    break

                signal = self.execute_loop_body(stmt.body, iteration_scope)
                if signal.kind is SignalKind.BREAK:
                    break
                if signal.kind is SignalKind.CONTINUE:
                    continue
                if not signal.is_normal:
                    return signal
            return NORMAL
        finally:
            self.environment = previous

    def execute_try_statement(self, stmt: TryStatement) -> Signal:
        """Execute try/catch/finally; a non-normal finally signal wins"""
        signal = self.execute_block(stmt.try_body, Environment(self.environment))

        if signal.kind is SignalKind.THROWN and stmt.catch_body is not None:
            catch_scope = Environment(self.environment)
            catch_scope.define(stmt.catch_variable, signal.value.payload)
            signal = self.execute_block(stmt.catch_body, catch_scope)

        if stmt.finally_body is not None:
            finally_signal = self.execute_block(stmt.finally_body, Environment(self.environment))
            if not finally_signal.is_normal:
                return finally_signal

        return signal

    def execute_throw_statement(self, stmt: ThrowStatement) -> Signal:
        payload = self.evaluate(stmt.value)
        return Signal.thrown(ThrownValue(payload, self.stack_trace(stmt.span), stmt.span))

    def execute_dump_statement(self, stmt: DumpStatement) -> Signal:
        """List the visible bindings, innermost scope first"""
        for scope in self.environment.scopes(stop=self.builtins):
            for name, value in scope.bindings():
                self.write_line(f"{name} = {stringify(value)}")
            self.write_line("---")
        return NORMAL

    def run_function_body(self, function: LoxFunction, environment: Environment) -> Any:
        """Execute a function body and translate its signal into a result"""
        signal = self.execute_block(function.declaration.body, environment)
        if signal.kind is SignalKind.RETURN:
            return signal.value
        if signal.kind is SignalKind.THROWN:
            raise ThrownUnwind(signal.value)
        return None

    # Calls and stack traces

    def call_value(self, callee: Any, arguments: List[Any], span: Optional[Span] = None) -> Any:
        """Check arity and depth, then call with a frame pushed"""
        if not isinstance(callee, LoxCallable):
            raise LoxRuntimeError.of(ErrorKind.NOT_CALLABLE,
                                     f"can only call functions and classes, got {type_name(callee)}", span)

        if len(arguments) != callee.arity():
            raise LoxRuntimeError.of(
                ErrorKind.ARITY_MISMATCH,
                f"{callee.qualified_name} expected {callee.arity()} argument"
                f"{'s' if callee.arity() != 1 else ''} but got {len(arguments)}",
                span,
            )

        if len(self.frames) >= self.options.max_call_depth:
            raise LoxRuntimeError.of(ErrorKind.STACK_OVERFLOW,
                                     f"stack overflow (more than {self.options.max_call_depth} nested calls)",
                                     span)

        self.frames.append(CallFrame(callee.qualified_name, span))
        try:
            return callee.call(self, arguments)
        finally:
            self.frames.pop()

    def stack_trace(self, span: Optional[Span]) -> Tuple[TraceEntry, ...]:
        """Snapshot of the active calls, innermost first"""
        entries = []
        location = span
        for frame in reversed(self.frames):
            entries.append(self._trace_entry(frame.name, location))
            location = frame.call_span
        entries.append(self._trace_entry("<script>", location))
        return tuple(entries)

    @staticmethod
    def _trace_entry(name: str, span: Optional[Span]) -> TraceEntry:
        position = get_source_map().position_of(span)
        if position is None:
            return TraceEntry(name)
        return TraceEntry(name, position.line, position.column)

    # Expressions

    def evaluate(self, expr: Expression) -> Any:
        """Evaluate an expression; runtime errors are located at the innermost expression"""
        try:
            return self.visit_expression(expr)
        except LoxRuntimeError as error:
            raise error.with_span(expr.span)

    def visit_expression(self, expr: Expression) -> Any:
        """Visit and evaluate expression based on type"""
        if isinstance(expr, LiteralExpression):
            return expr.value
        elif isinstance(expr, VariableExpression):
            return self.environment.get(expr.name)
        elif isinstance(expr, AssignmentExpression):
            value = self.evaluate(expr.value)
            self.environment.assign(expr.name, value)
            return value
        elif isinstance(expr, BinaryExpression):
            return self.evaluate_binary_expression(expr)
        elif isinstance(expr, UnaryExpression):
            return self.evaluate_unary_expression(expr)
        elif isinstance(expr, LogicalExpression):
            return self.evaluate_logical_expression(expr)
        elif isinstance(expr, ConditionalExpression):
            if is_truthy(self.evaluate(expr.condition)):
                return self.evaluate(expr.then_branch)
            return self.evaluate(expr.else_branch)
        elif isinstance(expr, CallExpression):
            callee = self.evaluate(expr.callee)
            arguments = [self.evaluate(argument) for argument in expr.arguments]
            return self.call_value(callee, arguments, expr.span)
        elif isinstance(expr, GetExpression):
            return self.evaluate_get_expression(expr)
        elif isinstance(expr, SetExpression):
            return self.evaluate_set_expression(expr)
        elif isinstance(expr, ThisExpression):
            return self.environment.get("this")
        elif isinstance(expr, SuperExpression):
            return self.evaluate_super_expression(expr)
        elif isinstance(expr, ListExpression):
            return LoxList([self.evaluate(element) for element in expr.elements])
        elif isinstance(expr, MapExpression):
            return self.evaluate_map_expression(expr)
        elif isinstance(expr, IndexExpression):
            return self.evaluate_index_expression(expr)
        elif isinstance(expr, IndexSetExpression):
            return self.evaluate_index_set_expression(expr)
        elif isinstance(expr, FunctionExpression):
            return LoxFunction(expr, self.environment)
        raise TypeError(f"Unknown expression type: {type(expr).__name__}")

    def evaluate_binary_expression(self, expr: BinaryExpression) -> Any:
        """Evaluate binary expression; operands are never converted implicitly"""
        left = self.evaluate(expr.left)
        right = self.evaluate(expr.right)
        operator = expr.operator

        if operator == "==":
            return is_equal(left, right)
        if operator == "!=":
            return not is_equal(left, right)

        if operator == "+":
            if isinstance(left, float) and isinstance(right, float):
                return left + right
            if isinstance(left, str) and isinstance(right, str):
                return left + right
            raise LoxRuntimeError.of(
                ErrorKind.TYPE_MISMATCH,
                f"operands of '+' must be two numbers or two strings, got {type_name(left)} and {type_name(right)}",
                expr.span,
            )

        self.check_number_operands(operator, left, right, expr.span)

        if operator == "-":
            return left - right
        if operator == "*":
            return left * right
        if operator == "/":
            if right == 0:
                raise LoxRuntimeError.of(ErrorKind.DIVISION_BY_ZERO, "division by zero",
                                         expr.right.span, "divisor is zero")
            return left / right
        if operator == "%":
            if right == 0:
                raise LoxRuntimeError.of(ErrorKind.DIVISION_BY_ZERO, "modulo by zero",
                                         expr.right.span, "divisor is zero")
            return left % right
        if operator == "**":
            return self.power(left, right, expr)
        if operator == ">":
            return left > right
        if operator == ">=":
            return left >= right
        if operator == "<":
            return left < right
        if operator == "<=":
            return left <= right

        raise TypeError(f"Unknown binary operator: {operator}")

    @staticmethod
    def power(base: float, exponent: float, expr: BinaryExpression) -> float:
        if base == 0 and exponent < 0:
            raise LoxRuntimeError.of(ErrorKind.DIVISION_BY_ZERO,
                                     "zero raised to a negative power", expr.span)
        try:
            return math.pow(base, exponent)
        except OverflowError:
            return math.inf
        except ValueError:
            # negative base with a fractional exponent
            return math.nan

    def evaluate_unary_expression(self, expr: UnaryExpression) -> Any:
        """Evaluate unary expression"""
        operand = self.evaluate(expr.operand)

        if expr.operator == "-":
            if not isinstance(operand, float):
                raise LoxRuntimeError.of(ErrorKind.TYPE_MISMATCH,
                                         f"operand of '-' must be a number, got {type_name(operand)}",
                                         expr.span)
            return -operand
        if expr.operator == "!":
            return not is_truthy(operand)

        raise TypeError(f"Unknown unary operator: {expr.operator}")

    def evaluate_logical_expression(self, expr: LogicalExpression) -> Any:
        """Short-circuit 'and'/'or', yielding the deciding operand"""
        left = self.evaluate(expr.left)

        if expr.operator == "or":
            if is_truthy(left):
                return left
        elif not is_truthy(left):
            return left

        return self.evaluate(expr.right)

    def evaluate_get_expression(self, expr: GetExpression) -> Any:
        """Evaluate property access"""
        obj = self.evaluate(expr.object)
        if isinstance(obj, (LoxInstance, LoxCollection)):
            return obj.get(expr.name)

        raise LoxRuntimeError.of(ErrorKind.TYPE_MISMATCH,
                                 f"only instances have properties, got {type_name(obj)}", expr.span)

    def evaluate_set_expression(self, expr: SetExpression) -> Any:
        """Evaluate property assignment"""
        obj = self.evaluate(expr.object)
        if not isinstance(obj, LoxInstance):
            raise LoxRuntimeError.of(ErrorKind.TYPE_MISMATCH,
                                     f"only instances have fields, got {type_name(obj)}", expr.span)

        value = self.evaluate(expr.value)
        obj.set(expr.name, value)
        return value

    def evaluate_super_expression(self, expr: SuperExpression) -> BoundMethod:
        """Resolve super.method from the class above the one that declared the running method"""
        superclass = self.environment.get("super")
        receiver = self.environment.get("this")

        method = superclass.find_method(expr.method)
        if method is None:
            raise LoxRuntimeError.of(ErrorKind.UNDEFINED_PROPERTY,
                                     f"undefined superclass method '{expr.method}'", expr.span)
        return BoundMethod(receiver, method)

    def evaluate_map_expression(self, expr: MapExpression) -> LoxMap:
        result = LoxMap()
        for key_expr, value_expr in expr.pairs:
            key = self.evaluate(key_expr)
            value = self.evaluate(value_expr)
            try:
                result.set_item(key, value)
            except LoxRuntimeError as error:
                raise error.with_span(key_expr.span)
        return result

    def evaluate_index_expression(self, expr: IndexExpression) -> Any:
        """Evaluate element access"""
        obj = self.evaluate(expr.object)
        index = self.evaluate(expr.index)
        self.check_indexable(obj, expr.span)
        return obj.get_item(index)

    def evaluate_index_set_expression(self, expr: IndexSetExpression) -> Any:
        """Evaluate element assignment"""
        obj = self.evaluate(expr.object)
        index = self.evaluate(expr.index)
        value = self.evaluate(expr.value)
        self.check_indexable(obj, expr.span)
        obj.set_item(index, value)
        return value

    @staticmethod
    def check_indexable(obj: Any, span: Optional[Span]):
        if not isinstance(obj, (LoxList, LoxMap)):
            raise LoxRuntimeError.of(ErrorKind.TYPE_MISMATCH,
                                     f"only lists and maps can be indexed, got {type_name(obj)}", span)

    @staticmethod
    def check_number_operands(operator: str, left: Any, right: Any, span: Optional[Span]):
        """Check that both operands are numbers"""
        if not isinstance(left, float) or not isinstance(right, float):
            raise LoxRuntimeError.of(
                ErrorKind.TYPE_MISMATCH,
                f"operands of '{operator}' must be numbers, got {type_name(left)} and {type_name(right)}",
                span,
            )
