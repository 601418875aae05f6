"""
Abstract Syntax Tree node definitions for the Lox language
"""

from abc import ABC
from typing import Any, List, Optional, Tuple
from source_map import Span

# Base classes
class ASTNode(ABC):
    """Base class for all AST nodes"""
    def __init__(self, span: Optional[Span] = None):
        self.span = span

    def __repr__(self):
        fields = ", ".join(f"{key}={value!r}" for key, value in vars(self).items() if key != "span")
        return f"{type(self).__name__}({fields})"

class Expression(ASTNode):
    """Base class for all expressions"""

class Statement(ASTNode):
    """Base class for all statements"""

# Expressions
class LiteralExpression(Expression):
    def __init__(self, value: Any, span: Optional[Span] = None):
        super().__init__(span)
        self.value = value

class VariableExpression(Expression):
    def __init__(self, name: str, span: Optional[Span] = None):
        super().__init__(span)
        self.name = name

class AssignmentExpression(Expression):
    def __init__(self, name: str, value: Expression, span: Optional[Span] = None):
        super().__init__(span)
        self.name = name
        self.value = value

class BinaryExpression(Expression):
    def __init__(self, left: Expression, operator: str, right: Expression, span: Optional[Span] = None):
        super().__init__(span)
        self.left = left
        self.operator = operator
        self.right = right

class UnaryExpression(Expression):
    def __init__(self, operator: str, operand: Expression, span: Optional[Span] = None):
        super().__init__(span)
        self.operator = operator
        self.operand = operand

class LogicalExpression(Expression):
    """'and' / 'or'; the right operand is evaluated only when needed"""
    def __init__(self, left: Expression, operator: str, right: Expression, span: Optional[Span] = None):
        super().__init__(span)
        self.left = left
        self.operator = operator
        self.right = right

class ConditionalExpression(Expression):
    """cond ? then : otherwise"""
    def __init__(self, condition: Expression, then_branch: Expression, else_branch: Expression,
                 span: Optional[Span] = None):
        super().__init__(span)
        self.condition = condition
        self.then_branch = then_branch
        self.else_branch = else_branch

class CallExpression(Expression):
    def __init__(self, callee: Expression, arguments: List[Expression], span: Optional[Span] = None):
        super().__init__(span)
        self.callee = callee
        self.arguments = arguments

class GetExpression(Expression):
    """Property access (obj.name)"""
    def __init__(self, object: Expression, name: str, span: Optional[Span] = None):
        super().__init__(span)
        self.object = object
        self.name = name

class SetExpression(Expression):
    """Property assignment (obj.name = value)"""
    def __init__(self, object: Expression, name: str, value: Expression, span: Optional[Span] = None):
        super().__init__(span)
        self.object = object
        self.name = name
        self.value = value

class ThisExpression(Expression):
    pass

class SuperExpression(Expression):
    """super.method"""
    def __init__(self, method: str, span: Optional[Span] = None):
        super().__init__(span)
        self.method = method

class ListExpression(Expression):
    """List literal [1, 2, 3]"""
    def __init__(self, elements: List[Expression], span: Optional[Span] = None):
        super().__init__(span)
        self.elements = elements

class MapExpression(Expression):
    """Map literal {key: value}"""
    def __init__(self, pairs: List[Tuple[Expression, Expression]], span: Optional[Span] = None):
        super().__init__(span)
        self.pairs = pairs

class IndexExpression(Expression):
    """Element access (target[index])"""
    def __init__(self, object: Expression, index: Expression, span: Optional[Span] = None):
        super().__init__(span)
        self.object = object
        self.index = index

class IndexSetExpression(Expression):
    """Element assignment (target[index] = value)"""
    def __init__(self, object: Expression, index: Expression, value: Expression, span: Optional[Span] = None):
        super().__init__(span)
        self.object = object
        self.index = index
        self.value = value

class FunctionExpression(Expression):
    """Anonymous function: fun (a) { ... } or (a) => expr"""
    def __init__(self, params: List[str], body: List[Statement], span: Optional[Span] = None):
        super().__init__(span)
        self.name = None
        self.params = params
        self.body = body

# Statements
class ExpressionStatement(Statement):
    def __init__(self, expression: Expression, span: Optional[Span] = None):
        super().__init__(span)
        self.expression = expression

class PrintStatement(Statement):
    def __init__(self, expression: Expression, span: Optional[Span] = None):
        super().__init__(span)
        self.expression = expression

class VarStatement(Statement):
    def __init__(self, name: str, initializer: Optional[Expression], is_const: bool = False,
                 span: Optional[Span] = None):
        super().__init__(span)
        self.name = name
        self.initializer = initializer
        self.is_const = is_const

class BlockStatement(Statement):
    def __init__(self, statements: List[Statement], span: Optional[Span] = None):
        super().__init__(span)
        self.statements = statements

class IfStatement(Statement):
    def __init__(self, condition: Expression, then_branch: Statement,
                 else_branch: Optional[Statement] = None, span: Optional[Span] = None):
        super().__init__(span)
        self.condition = condition
        self.then_branch = then_branch
        self.else_branch = else_branch

class WhileStatement(Statement):
    """while loop; is_do_while runs the body once before the first check"""
    def __init__(self, condition: Expression, body: Statement, is_do_while: bool = False,
                 span: Optional[Span] = None):
        super().__init__(span)
        self.condition = condition
        self.body = body
        self.is_do_while = is_do_while

class DoWhileStatement(WhileStatement):
    def __init__(self, body: Statement, condition: Expression, span: Optional[Span] = None):
        super().__init__(condition, body, is_do_while=True, span=span)

class ForStatement(Statement):
    """C-style for; kept structured so 'continue' still runs the increment"""
    def __init__(self, initializer: Optional[Statement], condition: Optional[Expression],
                 increment: Optional[Expression], body: Statement, span: Optional[Span] = None):
        super().__init__(span)
        self.initializer = initializer
        self.condition = condition
        self.increment = increment
        self.body = body

class BreakStatement(Statement):
    pass

class ContinueStatement(Statement):
    pass

class FunctionStatement(Statement):
    def __init__(self, name: str, params: List[str], body: List[Statement], span: Optional[Span] = None):
        super().__init__(span)
        self.name = name
        self.params = params
        self.body = body

class ReturnStatement(Statement):
    def __init__(self, value: Optional[Expression], span: Optional[Span] = None):
        super().__init__(span)
        self.value = value

class ClassStatement(Statement):
    def __init__(self, name: str, superclass: Optional[VariableExpression],
                 methods: List[FunctionStatement], span: Optional[Span] = None):
        super().__init__(span)
        self.name = name
        self.superclass = superclass
        self.methods = methods

class TryStatement(Statement):
    """try/catch/finally; at least one of catch_body and finally_body is present"""
    def __init__(self, try_body: List[Statement], catch_variable: Optional[str] = None,
                 catch_body: Optional[List[Statement]] = None,
                 finally_body: Optional[List[Statement]] = None, span: Optional[Span] = None):
        super().__init__(span)
        self.try_body = try_body
        self.catch_variable = catch_variable
        self.catch_body = catch_body
        self.finally_body = finally_body

class ThrowStatement(Statement):
    def __init__(self, value: Expression, span: Optional[Span] = None):
        super().__init__(span)
        self.value = value

class DumpStatement(Statement):
    """Debug listing of the visible bindings"""

class Program(ASTNode):
    """Root node containing all statements"""
    def __init__(self, statements: List[Statement], span: Optional[Span] = None):
        super().__init__(span)
        self.statements = statements
