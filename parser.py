"""
Recursive descent parser for the Lox language
"""

import logging
from contextlib import contextmanager
from typing import List, Optional
from tokens import Token, TokenType
from ast_nodes import *
from errors import ParseError, StaticErrors
from config import recursion_headroom
from lexer import Lexer
from source_map import Span

logger = logging.getLogger(__name__)

MAX_ARGUMENTS = 255
MAX_NESTING_DEPTH = 200

# Upper bound on host frames one nesting level costs while parsing
_FRAMES_PER_LEVEL = 20

# Tokens that can begin a statement; synchronize() stops in front of them
_STATEMENT_STARTS = {
    TokenType.CLASS, TokenType.FUN, TokenType.VAR, TokenType.CONST,
    TokenType.FOR, TokenType.IF, TokenType.WHILE, TokenType.DO,
    TokenType.PRINT, TokenType.RETURN, TokenType.TRY, TokenType.THROW,
    TokenType.BREAK, TokenType.CONTINUE, TokenType.DUMP,
}

class Parser:
    def __init__(self, tokens: List[Token], collect_all: bool = True):
        self.tokens = tokens
        self.current = 0
        self.collect_all = collect_all
        self.errors: List[ParseError] = []

        # Context for statements that are only legal in certain places
        self.function_depth = 0
        self.loop_depth = 0
        self.class_stack: List[bool] = []  # one entry per enclosing class: has a superclass?
        self.depth = 0

    def parse(self) -> Program:
        """Parse tokens into an AST, raising StaticErrors if anything was malformed"""
        statements = []
        while not self.is_at_end():
            stmt = self.declaration()
            if stmt:
                statements.append(stmt)

        if self.errors:
            logger.debug("parse failed with %d error(s)", len(self.errors))
            raise StaticErrors(self.errors)

        span = None
        if statements:
            span = self.merge_spans(statements[0].span, statements[-1].span)
        return Program(statements, span)

    def declaration(self) -> Optional[Statement]:
        """Parse declarations (var, const, fun, class) or fall through to a statement"""
        try:
            if self.match(TokenType.VAR):
                return self.var_declaration()
            if self.match(TokenType.CONST):
                return self.var_declaration(is_const=True)
            if self.check(TokenType.FUN) and self.check_next(TokenType.IDENTIFIER):
                self.advance()
                return self.function_declaration()
            if self.match(TokenType.CLASS):
                return self.class_declaration()

            return self.statement()
        except ParseError as e:
            self.report(e)
            self.synchronize()
            return None

    def var_declaration(self, is_const: bool = False) -> VarStatement:
        """Parse variable declaration"""
        keyword = self.previous()
        name = self.consume(TokenType.IDENTIFIER, "variable name").lexeme

        initializer = None
        if is_const:
            self.consume(TokenType.ASSIGN, "'=' after constant name",
                         "a constant must be initialized")
            initializer = self.expression()
        elif self.match(TokenType.ASSIGN):
            initializer = self.expression()

        self.consume(TokenType.SEMICOLON, "';' after variable declaration")
        return VarStatement(name, initializer, is_const, self.span_from(keyword))

    def function_declaration(self) -> FunctionStatement:
        """Parse named function declaration"""
        keyword = self.previous()
        name = self.consume(TokenType.IDENTIFIER, "function name").lexeme
        params, body = self.function_rest()
        return FunctionStatement(name, params, body, self.span_from(keyword))

    def function_rest(self):
        """Parse '(' params ')' followed by a block body"""
        self.consume(TokenType.LEFT_PAREN, "'(' before parameters")
        params = self.parameters()
        self.consume(TokenType.RIGHT_PAREN, "')' after parameters")
        self.consume(TokenType.LEFT_BRACE, "'{' before function body")
        return params, self.function_body()

    def parameters(self) -> List[str]:
        """Parse a comma separated parameter list (without the parentheses)"""
        params = []
        if self.check(TokenType.RIGHT_PAREN):
            return params

        while True:
            if len(params) >= MAX_ARGUMENTS:
                self.report(ParseError.too_many(self.peek(), "parameters", MAX_ARGUMENTS))
            param = self.consume(TokenType.IDENTIFIER, "parameter name")
            params.append(param.lexeme)
            if not self.match(TokenType.COMMA):
                return params

    def function_body(self) -> List[Statement]:
        """Parse a block after its '{' with a fresh function context"""
        enclosing_loop_depth = self.loop_depth
        self.function_depth += 1
        self.loop_depth = 0
        try:
            with self.nesting():
                return self.block()
        finally:
            self.function_depth -= 1
            self.loop_depth = enclosing_loop_depth

    def class_declaration(self) -> ClassStatement:
        """Parse class declaration with optional superclass"""
        keyword = self.previous()
        name_token = self.consume(TokenType.IDENTIFIER, "class name")
        name = name_token.lexeme

        superclass = None
        if self.match(TokenType.LESS):
            super_token = self.consume(TokenType.IDENTIFIER, "superclass name")
            if super_token.lexeme == name:
                self.report(ParseError.invalid_context(
                    super_token, "a class can't inherit from itself", "a different class name"))
            superclass = VariableExpression(super_token.lexeme, super_token.span)

        self.consume(TokenType.LEFT_BRACE, "'{' before class body")

        methods = []
        self.class_stack.append(superclass is not None)
        try:
            while not self.check(TokenType.RIGHT_BRACE) and not self.is_at_end():
                methods.append(self.method())
        finally:
            self.class_stack.pop()

        self.consume(TokenType.RIGHT_BRACE, "'}' after class body")
        return ClassStatement(name, superclass, methods, self.span_from(keyword))

    def method(self) -> FunctionStatement:
        """Parse a method: a function declaration without 'fun'"""
        name_token = self.consume(TokenType.IDENTIFIER, "method name")
        params, body = self.function_rest()
        return FunctionStatement(name_token.lexeme, params, body, self.span_from(name_token))

    def statement(self) -> Statement:
        """Parse statements"""
        with self.nesting():
            if self.match(TokenType.PRINT):
                return self.print_statement()
            if self.match(TokenType.LEFT_BRACE):
                start = self.previous()
                return BlockStatement(self.block(), self.span_from(start))
            if self.match(TokenType.IF):
                return self.if_statement()
            if self.match(TokenType.WHILE):
                return self.while_statement()
            if self.match(TokenType.DO):
                return self.do_while_statement()
            if self.match(TokenType.FOR):
                return self.for_statement()
            if self.match(TokenType.RETURN):
                return self.return_statement()
            if self.match(TokenType.BREAK):
                return self.break_statement()
            if self.match(TokenType.CONTINUE):
                return self.continue_statement()
            if self.match(TokenType.TRY):
                return self.try_statement()
            if self.match(TokenType.THROW):
                return self.throw_statement()
            if self.match(TokenType.DUMP):
                keyword = self.previous()
                self.consume(TokenType.SEMICOLON, "';' after 'dump'")
                return DumpStatement(self.span_from(keyword))

            return self.expression_statement()

    def block(self) -> List[Statement]:
        """Parse statements up to the closing '}' (the '{' is already consumed)"""
        statements = []
        while not self.check(TokenType.RIGHT_BRACE) and not self.is_at_end():
            stmt = self.declaration()
            if stmt:
                statements.append(stmt)

        self.consume(TokenType.RIGHT_BRACE, "'}' after block")
        return statements

    def print_statement(self) -> PrintStatement:
        keyword = self.previous()
        value = self.expression()
        self.consume(TokenType.SEMICOLON, "';' after value")
        return PrintStatement(value, self.span_from(keyword))

    def if_statement(self) -> IfStatement:
        """Parse if statement"""
        keyword = self.previous()
        self.consume(TokenType.LEFT_PAREN, "'(' after 'if'")
        condition = self.expression()
        self.consume(TokenType.RIGHT_PAREN, "')' after if condition")

        then_branch = self.statement()
        else_branch = None
        if self.match(TokenType.ELSE):
            else_branch = self.statement()

        return IfStatement(condition, then_branch, else_branch, self.span_from(keyword))

    def loop_body(self) -> Statement:
        """Parse a loop body with break/continue allowed"""
        self.loop_depth += 1
        try:
            return self.statement()
        finally:
            self.loop_depth -= 1

    def while_statement(self) -> WhileStatement:
        """Parse while loop"""
        keyword = self.previous()
        self.consume(TokenType.LEFT_PAREN, "'(' after 'while'")
        condition = self.expression()
        self.consume(TokenType.RIGHT_PAREN, "')' after while condition")
        body = self.loop_body()
        return WhileStatement(condition, body, span=self.span_from(keyword))

    def do_while_statement(self) -> DoWhileStatement:
        """Parse do { ... } while (cond);"""
        keyword = self.previous()
        body = self.loop_body()
        self.consume(TokenType.WHILE, "'while' after do body")
        self.consume(TokenType.LEFT_PAREN, "'(' after 'while'")
        condition = self.expression()
        self.consume(TokenType.RIGHT_PAREN, "')' after do-while condition")
        self.consume(TokenType.SEMICOLON, "';' after do-while statement")
        return DoWhileStatement(body, condition, self.span_from(keyword))

    def for_statement(self) -> ForStatement:
        """Parse C-style for loop"""
        keyword = self.previous()
        self.consume(TokenType.LEFT_PAREN, "'(' after 'for'")

        if self.match(TokenType.SEMICOLON):
            initializer = None
        elif self.match(TokenType.VAR):
            initializer = self.var_declaration()
        else:
            initializer = self.expression_statement()

        condition = None
        if not self.check(TokenType.SEMICOLON):
            condition = self.expression()
        self.consume(TokenType.SEMICOLON, "';' after loop condition")

        increment = None
        if not self.check(TokenType.RIGHT_PAREN):
            increment = self.expression()
        self.consume(TokenType.RIGHT_PAREN, "')' after for clauses")

        body = self.loop_body()
        return ForStatement(initializer, condition, increment, body, self.span_from(keyword))

    def return_statement(self) -> ReturnStatement:
        """Parse return statement"""
        keyword = self.previous()
        if self.function_depth == 0:
            self.report(ParseError.invalid_context(
                keyword, "can't return from top-level code", "function body"))

        value = None
        if not self.check(TokenType.SEMICOLON):
            value = self.expression()

        self.consume(TokenType.SEMICOLON, "';' after return value")
        return ReturnStatement(value, self.span_from(keyword))

    def break_statement(self) -> BreakStatement:
        """Parse break statement"""
        keyword = self.previous()
        if self.loop_depth == 0:
            self.report(ParseError.invalid_context(
                keyword, "'break' outside of a loop", "enclosing loop"))
        self.consume(TokenType.SEMICOLON, "';' after 'break'")
        return BreakStatement(self.span_from(keyword))

    def continue_statement(self) -> ContinueStatement:
        """Parse continue statement"""
        keyword = self.previous()
        if self.loop_depth == 0:
            self.report(ParseError.invalid_context(
                keyword, "'continue' outside of a loop", "enclosing loop"))
        self.consume(TokenType.SEMICOLON, "';' after 'continue'")
        return ContinueStatement(self.span_from(keyword))

    def try_statement(self) -> TryStatement:
        """Parse try/catch/finally"""
        keyword = self.previous()
        self.consume(TokenType.LEFT_BRACE, "'{' after 'try'")
        try_body = self.block()

        catch_variable = None
        catch_body = None
        if self.match(TokenType.CATCH):
            self.consume(TokenType.LEFT_PAREN, "'(' after 'catch'")
            catch_variable = self.consume(TokenType.IDENTIFIER, "exception variable name").lexeme
            self.consume(TokenType.RIGHT_PAREN, "')' after exception variable")
            self.consume(TokenType.LEFT_BRACE, "'{' after catch clause")
            catch_body = self.block()

        finally_body = None
        if self.match(TokenType.FINALLY):
            self.consume(TokenType.LEFT_BRACE, "'{' after 'finally'")
            finally_body = self.block()

        if catch_body is None and finally_body is None:
            raise ParseError.expected_token(self.peek(), "'catch' or 'finally'")

        return TryStatement(try_body, catch_variable, catch_body, finally_body, self.span_from(keyword))

    def throw_statement(self) -> ThrowStatement:
        keyword = self.previous()
        value = self.expression()
        self.consume(TokenType.SEMICOLON, "';' after thrown value")
        return ThrowStatement(value, self.span_from(keyword))

    def expression_statement(self) -> ExpressionStatement:
        """Parse expression statement"""
        expr = self.expression()
        self.consume(TokenType.SEMICOLON, "';' after expression")
        return ExpressionStatement(expr, self.merge_spans(expr.span, self.previous().span))

    def expression(self) -> Expression:
        """Parse expression"""
        with self.nesting():
            return self.assignment()

    def assignment(self) -> Expression:
        """Parse assignment expression"""
        expr = self.ternary()

        if self.match(TokenType.ASSIGN):
            equals = self.previous()
            with self.nesting():
                value = self.assignment()
            span = self.merge_spans(expr.span, value.span)

            if isinstance(expr, VariableExpression):
                return AssignmentExpression(expr.name, value, span)
            elif isinstance(expr, GetExpression):
                return SetExpression(expr.object, expr.name, value, span)
            elif isinstance(expr, IndexExpression):
                return IndexSetExpression(expr.object, expr.index, value, span)

            # Report without unwinding; the right-hand side parsed fine
            self.report(ParseError.invalid_assignment_target(equals, expr.span))

        return expr

    def ternary(self) -> Expression:
        """Parse cond ? a : b (right-associative)"""
        expr = self.logical_or()

        if self.match(TokenType.QUESTION):
            then_branch = self.expression()
            self.consume(TokenType.COLON, "':' in conditional expression")
            with self.nesting():
                else_branch = self.ternary()
            expr = ConditionalExpression(expr, then_branch, else_branch,
                                         self.merge_spans(expr.span, else_branch.span))

        return expr

    def logical_or(self) -> Expression:
        """Parse logical OR expression"""
        expr = self.logical_and()

        while self.match(TokenType.OR):
            right = self.logical_and()
            expr = LogicalExpression(expr, "or", right, self.merge_spans(expr.span, right.span))

        return expr

    def logical_and(self) -> Expression:
        """Parse logical AND expression"""
        expr = self.equality()

        while self.match(TokenType.AND):
            right = self.equality()
            expr = LogicalExpression(expr, "and", right, self.merge_spans(expr.span, right.span))

        return expr

    def equality(self) -> Expression:
        """Parse equality expression"""
        expr = self.comparison()

        while self.match(TokenType.NOT_EQUAL, TokenType.EQUAL):
            operator = self.previous().lexeme
            right = self.comparison()
            expr = BinaryExpression(expr, operator, right, self.merge_spans(expr.span, right.span))

        return expr

    def comparison(self) -> Expression:
        """Parse comparison expression"""
        expr = self.term()

        while self.match(TokenType.GREATER, TokenType.GREATER_EQUAL,
                         TokenType.LESS, TokenType.LESS_EQUAL):
            operator = self.previous().lexeme
            right = self.term()
            expr = BinaryExpression(expr, operator, right, self.merge_spans(expr.span, right.span))

        return expr

    def term(self) -> Expression:
        """Parse addition and subtraction"""
        expr = self.factor()

        while self.match(TokenType.MINUS, TokenType.PLUS):
            operator = self.previous().lexeme
            right = self.factor()
            expr = BinaryExpression(expr, operator, right, self.merge_spans(expr.span, right.span))

        return expr

    def factor(self) -> Expression:
        """Parse multiplication, division and modulo"""
        expr = self.unary()

        while self.match(TokenType.SLASH, TokenType.STAR, TokenType.PERCENT):
            operator = self.previous().lexeme
            right = self.unary()
            expr = BinaryExpression(expr, operator, right, self.merge_spans(expr.span, right.span))

        return expr

    def unary(self) -> Expression:
        """Parse unary expression"""
        if self.match(TokenType.BANG, TokenType.MINUS):
            operator = self.previous()
            with self.nesting():
                operand = self.unary()
            return UnaryExpression(operator.lexeme, operand, self.merge_spans(operator.span, operand.span))

        return self.power()

    def power(self) -> Expression:
        """Parse exponentiation (right-associative, tighter than a unary minus on its left)"""
        expr = self.call()

        if self.match(TokenType.POWER):
            with self.nesting():
                right = self.unary()
            expr = BinaryExpression(expr, "**", right, self.merge_spans(expr.span, right.span))

        return expr

    def call(self) -> Expression:
        """Parse calls, property access and indexing"""
        expr = self.primary()

        while True:
            if self.match(TokenType.LEFT_PAREN):
                expr = self.finish_call(expr)
            elif self.match(TokenType.DOT):
                name = self.consume(TokenType.IDENTIFIER, "property name after '.'")
                expr = GetExpression(expr, name.lexeme, self.merge_spans(expr.span, name.span))
            elif self.match(TokenType.LEFT_BRACKET):
                index = self.expression()
                bracket = self.consume(TokenType.RIGHT_BRACKET, "']' after index")
                expr = IndexExpression(expr, index, self.merge_spans(expr.span, bracket.span))
            else:
                break

        return expr

    def finish_call(self, callee: Expression) -> CallExpression:
        """Parse the argument list of a call"""
        arguments = []
        if not self.check(TokenType.RIGHT_PAREN):
            while True:
                if len(arguments) >= MAX_ARGUMENTS:
                    self.report(ParseError.too_many(self.peek(), "arguments", MAX_ARGUMENTS))
                arguments.append(self.expression())
                if not self.match(TokenType.COMMA):
                    break

        paren = self.consume(TokenType.RIGHT_PAREN, "')' after arguments")
        return CallExpression(callee, arguments, self.merge_spans(callee.span, paren.span))

    def primary(self) -> Expression:
        """Parse primary expressions"""
        if self.match(TokenType.TRUE):
            return LiteralExpression(True, self.previous().span)

        if self.match(TokenType.FALSE):
            return LiteralExpression(False, self.previous().span)

        if self.match(TokenType.NIL):
            return LiteralExpression(None, self.previous().span)

        if self.match(TokenType.NUMBER, TokenType.STRING):
            token = self.previous()
            return LiteralExpression(token.literal, token.span)

        if self.match(TokenType.THIS):
            token = self.previous()
            if not self.class_stack:
                self.report(ParseError.invalid_context(
                    token, "can't use 'this' outside of a class", "method body"))
            return ThisExpression(token.span)

        if self.match(TokenType.SUPER):
            return self.super_expression()

        if self.match(TokenType.IDENTIFIER):
            token = self.previous()
            return VariableExpression(token.lexeme, token.span)

        if self.match(TokenType.FUN):
            keyword = self.previous()
            params, body = self.function_rest()
            return FunctionExpression(params, body, self.span_from(keyword))

        if self.check(TokenType.LEFT_PAREN) and self.looks_like_lambda():
            return self.arrow_function()

        if self.match(TokenType.LEFT_PAREN):
            expr = self.expression()
            self.consume(TokenType.RIGHT_PAREN, "')' after expression")
            return expr

        if self.match(TokenType.LEFT_BRACKET):
            return self.list_literal()

        if self.match(TokenType.LEFT_BRACE):
            return self.map_literal()

        raise ParseError.expected_expression(self.peek())

    def super_expression(self) -> SuperExpression:
        keyword = self.previous()
        if not self.class_stack:
            self.report(ParseError.invalid_context(
                keyword, "can't use 'super' outside of a class", "method body"))
        elif not self.class_stack[-1]:
            self.report(ParseError.invalid_context(
                keyword, "can't use 'super' in a class with no superclass", "subclass method"))
        self.consume(TokenType.DOT, "'.' after 'super'")
        method = self.consume(TokenType.IDENTIFIER, "superclass method name")
        return SuperExpression(method.lexeme, self.span_from(keyword))

    def looks_like_lambda(self) -> bool:
        """Is the '(' at the cursor the start of '(a, b) => ...'?"""
        index = self.current + 1
        expect_name = True
        while index < len(self.tokens):
            token_type = self.tokens[index].type
            if token_type == TokenType.RIGHT_PAREN:
                following = self.tokens[index + 1].type if index + 1 < len(self.tokens) else TokenType.EOF
                return following == TokenType.ARROW
            if expect_name and token_type != TokenType.IDENTIFIER:
                return False
            if not expect_name and token_type != TokenType.COMMA:
                return False
            expect_name = not expect_name
            index += 1
        return False

    def arrow_function(self) -> FunctionExpression:
        """Parse (params) => expression | block"""
        start = self.advance()
        params = self.parameters()
        self.consume(TokenType.RIGHT_PAREN, "')' after parameters")
        self.consume(TokenType.ARROW, "'=>' after parameters")

        if self.match(TokenType.LEFT_BRACE):
            body = self.function_body()
        else:
            # An expression body is an implicit return
            self.function_depth += 1
            enclosing_loop_depth = self.loop_depth
            self.loop_depth = 0
            try:
                value = self.assignment()
            finally:
                self.function_depth -= 1
                self.loop_depth = enclosing_loop_depth
            body = [ReturnStatement(value, value.span)]

        return FunctionExpression(params, body, self.span_from(start))

    def list_literal(self) -> ListExpression:
        """Parse list literal [1, 2, 3]"""
        start = self.previous()
        elements = []
        while not self.check(TokenType.RIGHT_BRACKET):
            elements.append(self.expression())
            if not self.match(TokenType.COMMA):
                break

        self.consume(TokenType.RIGHT_BRACKET, "']' after list elements")
        return ListExpression(elements, self.span_from(start))

    def map_literal(self) -> MapExpression:
        """Parse map literal {key: value, "key2": value2}"""
        start = self.previous()
        pairs = []
        while not self.check(TokenType.RIGHT_BRACE):
            key = self.map_key()
            self.consume(TokenType.COLON, "':' after map key")
            value = self.expression()
            pairs.append((key, value))
            if not self.match(TokenType.COMMA):
                break

        self.consume(TokenType.RIGHT_BRACE, "'}' after map entries")
        return MapExpression(pairs, self.span_from(start))

    def map_key(self) -> Expression:
        """A bare identifier followed by ':' is a string key; anything else is an expression"""
        if self.check(TokenType.IDENTIFIER) and self.check_next(TokenType.COLON):
            token = self.advance()
            return LiteralExpression(token.lexeme, token.span)
        return self.expression()

    # Utility methods
    def match(self, *types: TokenType) -> bool:
        """Check if current token matches any of the given types"""
        for token_type in types:
            if self.check(token_type):
                self.advance()
                return True
        return False

    def check(self, token_type: TokenType) -> bool:
        """Check if current token is of given type"""
        if self.is_at_end():
            return False
        return self.peek().type == token_type

    def check_next(self, token_type: TokenType) -> bool:
        """Check the token after the current one"""
        if self.current + 1 >= len(self.tokens):
            return False
        return self.tokens[self.current + 1].type == token_type

    def advance(self) -> Token:
        """Consume current token and return it"""
        if not self.is_at_end():
            self.current += 1
        return self.previous()

    def is_at_end(self) -> bool:
        return self.peek().type == TokenType.EOF

    def peek(self) -> Token:
        return self.tokens[self.current]

    def previous(self) -> Token:
        return self.tokens[max(self.current - 1, 0)]

    def consume(self, token_type: TokenType, expected: str, message: Optional[str] = None) -> Token:
        """Consume token of expected type or raise error"""
        if self.check(token_type):
            return self.advance()
        raise ParseError.expected_token(self.peek(), expected, message)

    def report(self, error: ParseError):
        """Record an error; outside collect-all mode the first one aborts the parse"""
        self.errors.append(error)
        if not self.collect_all:
            raise StaticErrors(self.errors)

    @contextmanager
    def nesting(self):
        """Count one level of nested statements or expressions; too many aborts the parse"""
        if self.depth >= MAX_NESTING_DEPTH:
            self.errors.append(ParseError.nested_too_deeply(self.peek(), MAX_NESTING_DEPTH))
            raise StaticErrors(self.errors)
        self.depth += 1
        try:
            yield
        finally:
            self.depth -= 1

    def synchronize(self):
        """Recover from parse error by skipping to the next statement boundary"""
        self.advance()

        while not self.is_at_end():
            if self.previous().type in (TokenType.SEMICOLON, TokenType.RIGHT_BRACE):
                return
            if self.peek().type in _STATEMENT_STARTS:
                return
            self.advance()

    def span_from(self, start: Token) -> Optional[Span]:
        """Span from a start token to the most recently consumed one"""
        return self.merge_spans(start.span, self.previous().span)

    @staticmethod
    def merge_spans(first: Optional[Span], last: Optional[Span]) -> Optional[Span]:
        if first is None:
            return last
        return first.merge(last)

def parse_source(source: str, file_path: str = "<string>", collect_all: bool = True) -> Program:
    """Lex and parse a complete program; raises StaticErrors on any lexical or syntax error"""
    tokens = Lexer(source, file_path, collect_all=collect_all).tokenize()
    parser = Parser(tokens, collect_all=collect_all)
    with recursion_headroom(MAX_NESTING_DEPTH * _FRAMES_PER_LEVEL + 1000):
        try:
            return parser.parse()
        except RecursionError:
            logger.debug("host stack exhausted at token %d", parser.current)
            error = ParseError.nested_too_deeply(parser.peek(), MAX_NESTING_DEPTH)
            raise StaticErrors(parser.errors + [error]) from None
