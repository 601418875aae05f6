"""
Error handling for plox
Diagnostics, error codes, runtime error kinds and the exception hierarchy
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import List, Optional, Any, Dict, Tuple, Sequence
from source_map import Span, get_source_map, Position

class Severity(Enum):
    """Error severity levels"""
    ERROR = "error"

@dataclass
class LabeledSpan:
    """A span with an optional label"""
    span: Span
    label: Optional[str] = None
    is_primary: bool = False

@dataclass(frozen=True)
class TraceEntry:
    """One frame of a Lox call-stack snapshot"""
    function: str
    line: Optional[int] = None
    column: Optional[int] = None

    def __str__(self) -> str:
        if self.line is None:
            return f"at {self.function}"
        return f"at {self.function} (line {self.line}:{self.column})"

class ErrorCode:
    """Error code constants"""
    # Lexical errors (LOX1xxx)
    UNEXPECTED_CHARACTER = "LOX1001"
    UNTERMINATED_STRING = "LOX1002"
    UNTERMINATED_COMMENT = "LOX1003"

    # Syntax errors (LOX2xxx)
    EXPECTED_TOKEN = "LOX2001"
    EXPECTED_EXPRESSION = "LOX2002"
    INVALID_ASSIGNMENT_TARGET = "LOX2003"
    INVALID_CONTEXT = "LOX2004"
    TOO_MANY_ARGUMENTS = "LOX2005"
    NESTING_TOO_DEEP = "LOX2006"

    # Runtime errors (LOX3xxx)
    UNDEFINED_VARIABLE = "LOX3001"
    UNDEFINED_PROPERTY = "LOX3002"
    UNDEFINED_KEY = "LOX3003"
    TYPE_MISMATCH = "LOX3004"
    DIVISION_BY_ZERO = "LOX3005"
    ARITY_MISMATCH = "LOX3006"
    INDEX_OUT_OF_BOUNDS = "LOX3007"
    INVALID_SUPERCLASS = "LOX3008"
    STACK_OVERFLOW = "LOX3009"
    CONSTANT_REASSIGNMENT = "LOX3010"
    NOT_CALLABLE = "LOX3011"

    # Thrown values (LOX4xxx)
    UNCAUGHT_EXCEPTION = "LOX4001"

class ErrorKind(Enum):
    """Runtime error kinds"""
    UNDEFINED_VARIABLE = ("UndefinedVariable", ErrorCode.UNDEFINED_VARIABLE)
    UNDEFINED_PROPERTY = ("UndefinedProperty", ErrorCode.UNDEFINED_PROPERTY)
    UNDEFINED_KEY = ("UndefinedKey", ErrorCode.UNDEFINED_KEY)
    TYPE_MISMATCH = ("TypeMismatch", ErrorCode.TYPE_MISMATCH)
    DIVISION_BY_ZERO = ("DivisionByZero", ErrorCode.DIVISION_BY_ZERO)
    ARITY_MISMATCH = ("ArityMismatch", ErrorCode.ARITY_MISMATCH)
    INDEX_OUT_OF_BOUNDS = ("IndexOutOfBounds", ErrorCode.INDEX_OUT_OF_BOUNDS)
    INVALID_SUPERCLASS = ("InvalidSuperclass", ErrorCode.INVALID_SUPERCLASS)
    STACK_OVERFLOW = ("StackOverflow", ErrorCode.STACK_OVERFLOW)
    CONSTANT_REASSIGNMENT = ("ConstantReassignment", ErrorCode.CONSTANT_REASSIGNMENT)
    NOT_CALLABLE = ("NotCallable", ErrorCode.NOT_CALLABLE)
    UNCAUGHT = ("Uncaught", ErrorCode.UNCAUGHT_EXCEPTION)

    def __init__(self, title: str, code: str):
        self.title = title
        self.code = code

_HELP = {
    ErrorKind.UNDEFINED_VARIABLE: "declare the variable with 'var' before using or assigning it",
    ErrorKind.TYPE_MISMATCH: "operands are never converted implicitly",
    ErrorKind.DIVISION_BY_ZERO: "ensure the denominator is not zero before dividing",
    ErrorKind.STACK_OVERFLOW: "check for unbounded recursion",
    ErrorKind.CONSTANT_REASSIGNMENT: "declare the binding with 'var' if it needs to change",
    ErrorKind.UNDEFINED_KEY: "use has(key) or get(key, default) to look up a key that may be missing",
}

@dataclass
class Diagnostic:
    """Everything needed to report one problem"""
    code: str
    severity: Severity
    message: str
    labels: List[LabeledSpan] = field(default_factory=list)
    notes: List[str] = field(default_factory=list)
    help: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        # Exactly one primary label
        primaries = [label for label in self.labels if label.is_primary]
        if not primaries and self.labels:
            self.labels[0].is_primary = True
        for label in primaries[1:]:
            label.is_primary = False

    def primary_span(self) -> Optional[Span]:
        for label in self.labels:
            if label.is_primary:
                return label.span
        return None

class LoxError(Exception):
    """Base exception class for all plox errors with diagnostics support"""

    def __init__(self, diagnostic: Diagnostic):
        self.diagnostic = diagnostic
        super().__init__(self._format_simple_message())

    @property
    def message(self) -> str:
        return self.diagnostic.message

    @property
    def code(self) -> str:
        return self.diagnostic.code

    @property
    def position(self) -> Optional[Position]:
        return get_source_map().position_of(self.diagnostic.primary_span())

    @property
    def line(self) -> Optional[int]:
        position = self.position
        return position.line if position else None

    @property
    def column(self) -> Optional[int]:
        position = self.position
        return position.column if position else None

    def _format_simple_message(self) -> str:
        prefix = f"{self.diagnostic.severity.value.title()} [{self.diagnostic.code}]: {self.diagnostic.message}"
        primary_span = self.diagnostic.primary_span()
        if primary_span is None:
            return prefix
        source_map = get_source_map()
        source_file = source_map.get_file(primary_span.file_id)
        position = source_map.position_of(primary_span)
        if source_file is None or position is None:
            return prefix
        return f"{prefix} at {source_file.name}:{position.line}:{position.column}"

class LexError(LoxError):
    """Lexical analysis errors"""

    @classmethod
    def unexpected_character(cls, span: Span, char: str):
        diagnostic = Diagnostic(
            code=ErrorCode.UNEXPECTED_CHARACTER,
            severity=Severity.ERROR,
            message=f"unexpected character '{char}'",
            labels=[LabeledSpan(span, f"unexpected character '{char}'", is_primary=True)],
            help="check for typos or unsupported characters"
        )
        return cls(diagnostic)

    @classmethod
    def unterminated_string(cls, span: Span):
        diagnostic = Diagnostic(
            code=ErrorCode.UNTERMINATED_STRING,
            severity=Severity.ERROR,
            message="unterminated string literal",
            labels=[LabeledSpan(span, "string starts here", is_primary=True)],
            help="add closing quote to terminate the string"
        )
        return cls(diagnostic)

    @classmethod
    def unterminated_comment(cls, span: Span):
        diagnostic = Diagnostic(
            code=ErrorCode.UNTERMINATED_COMMENT,
            severity=Severity.ERROR,
            message="unterminated block comment",
            labels=[LabeledSpan(span, "comment starts here", is_primary=True)],
            help="close the comment with '*/'"
        )
        return cls(diagnostic)

class ParseError(LoxError):
    """Syntax errors; each carries the offending token and what was expected"""

    def __init__(self, diagnostic: Diagnostic, token=None, expected: Optional[str] = None):
        self.token = token
        self.expected = expected
        super().__init__(diagnostic)

    @staticmethod
    def _found(token) -> str:
        if token is None or not token.lexeme:
            return "end of input"
        return token.lexeme

    @classmethod
    def expected_token(cls, token, expected: str, message: Optional[str] = None):
        found = cls._found(token)
        diagnostic = Diagnostic(
            code=ErrorCode.EXPECTED_TOKEN,
            severity=Severity.ERROR,
            message=message or f"expected {expected}, found '{found}'",
            labels=[LabeledSpan(token.span, f"expected {expected} here", is_primary=True)] if token.span else [],
            data={'expected': expected, 'found': found},
        )
        return cls(diagnostic, token, expected)

    @classmethod
    def expected_expression(cls, token):
        found = cls._found(token)
        diagnostic = Diagnostic(
            code=ErrorCode.EXPECTED_EXPRESSION,
            severity=Severity.ERROR,
            message=f"expected expression, found '{found}'",
            labels=[LabeledSpan(token.span, "expected expression here", is_primary=True)] if token.span else [],
            help="add a valid expression (variable, literal, or function call)"
        )
        return cls(diagnostic, token, "expression")

    @classmethod
    def invalid_assignment_target(cls, token, span: Optional[Span] = None):
        span = span or token.span
        diagnostic = Diagnostic(
            code=ErrorCode.INVALID_ASSIGNMENT_TARGET,
            severity=Severity.ERROR,
            message="invalid assignment target",
            labels=[LabeledSpan(span, "cannot assign to this expression", is_primary=True)] if span else [],
            help="only variables, properties, and list or map elements can be assigned to"
        )
        return cls(diagnostic, token, "assignable expression")

    @classmethod
    def invalid_context(cls, token, message: str, expected: str):
        diagnostic = Diagnostic(
            code=ErrorCode.INVALID_CONTEXT,
            severity=Severity.ERROR,
            message=message,
            labels=[LabeledSpan(token.span, message, is_primary=True)] if token.span else [],
        )
        return cls(diagnostic, token, expected)

    @classmethod
    def too_many(cls, token, what: str, limit: int):
        diagnostic = Diagnostic(
            code=ErrorCode.TOO_MANY_ARGUMENTS,
            severity=Severity.ERROR,
            message=f"can't have more than {limit} {what}",
            labels=[LabeledSpan(token.span, f"{what} limit exceeded", is_primary=True)] if token.span else [],
        )
        return cls(diagnostic, token, f"at most {limit} {what}")

    @classmethod
    def nested_too_deeply(cls, token, limit: int):
        diagnostic = Diagnostic(
            code=ErrorCode.NESTING_TOO_DEEP,
            severity=Severity.ERROR,
            message=f"code nested more than {limit} levels deep",
            labels=[LabeledSpan(token.span, "nesting limit reached here", is_primary=True)] if token.span else [],
            help="move inner parts into variables or functions"
        )
        return cls(diagnostic, token, f"at most {limit} levels of nesting")

class LoxRuntimeError(LoxError):
    """Dynamic errors detected during evaluation"""

    def __init__(self, diagnostic: Diagnostic, kind: ErrorKind, trace: Sequence[TraceEntry] = ()):
        self.kind = kind
        self.trace: Tuple[TraceEntry, ...] = tuple(trace)
        super().__init__(diagnostic)

    @classmethod
    def of(cls, kind: ErrorKind, message: str, span: Optional[Span] = None,
           label: Optional[str] = None):
        labels = [LabeledSpan(span, label or message, is_primary=True)] if span else []
        diagnostic = Diagnostic(
            code=kind.code,
            severity=Severity.ERROR,
            message=message,
            labels=labels,
            help=_HELP.get(kind),
            data={'kind': kind.title},
        )
        return cls(diagnostic, kind)

    def with_trace(self, trace: Sequence[TraceEntry]) -> 'LoxRuntimeError':
        """Attach a call-stack snapshot unless one is already present"""
        if not self.trace:
            self.trace = tuple(trace)
            self.diagnostic.notes.extend(str(entry) for entry in self.trace)
        return self

    def with_span(self, span: Optional[Span]) -> 'LoxRuntimeError':
        """Locate an error raised by code that had no span at hand"""
        if span is not None and self.diagnostic.primary_span() is None:
            self.diagnostic.labels.append(LabeledSpan(span, self.diagnostic.message, is_primary=True))
            self.args = (self._format_simple_message(),)
        return self

class UncaughtThrow(LoxRuntimeError):
    """A value thrown with 'throw' that reached the top level"""

    def __init__(self, diagnostic: Diagnostic, payload: Any, trace: Sequence[TraceEntry]):
        self.payload = payload
        super().__init__(diagnostic, ErrorKind.UNCAUGHT, trace)

    @classmethod
    def from_payload(cls, payload: Any, text: str, span: Optional[Span],
                     trace: Sequence[TraceEntry]):
        message = f"uncaught exception: {text}"
        diagnostic = Diagnostic(
            code=ErrorCode.UNCAUGHT_EXCEPTION,
            severity=Severity.ERROR,
            message=message,
            labels=[LabeledSpan(span, "thrown here", is_primary=True)] if span else [],
            notes=[str(entry) for entry in trace],
            help="wrap the code in try/catch to handle it",
        )
        return cls(diagnostic, payload, trace)

class StaticErrors(Exception):
    """One or more lexical/syntax errors; the program is never executed"""

    def __init__(self, errors: Sequence[LoxError]):
        self.errors: List[LoxError] = list(errors)
        count = len(self.errors)
        summary = f"{count} error{'s' if count != 1 else ''}"
        super().__init__("\n".join([summary] + [str(error) for error in self.errors]))
