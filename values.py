"""
Runtime value model for the Lox language

Numbers are Python floats, strings are str, booleans are bool and nil is None.
Every composite runtime object carries an explicit ``kind`` tag so that all
value kinds can be enumerated by kind_of().
"""

from enum import Enum
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple
from environment import Environment
from errors import TraceEntry
from source_map import Span

class ValueKind(Enum):
    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"
    NIL = "nil"
    FUNCTION = "function"
    NATIVE_FUNCTION = "native function"
    CLASS = "class"
    INSTANCE = "instance"
    LIST = "list"
    MAP = "map"

_COMPOSITE_KINDS = {
    ValueKind.FUNCTION, ValueKind.NATIVE_FUNCTION, ValueKind.CLASS,
    ValueKind.INSTANCE, ValueKind.LIST, ValueKind.MAP,
}

def kind_of(value: Any) -> ValueKind:
    """Classify a runtime value"""
    if value is None:
        return ValueKind.NIL
    # bool first: it is a subclass of int
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, float):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    kind = getattr(value, "kind", None)
    if isinstance(kind, ValueKind):
        return kind
    raise TypeError(f"not a Lox value: {value!r}")

def type_name(value: Any) -> str:
    """Name used for a value's type in messages and by typeOf()"""
    return kind_of(value).value

def is_truthy(value: Any) -> bool:
    """nil and false are falsy; everything else is truthy"""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return True

def is_equal(a: Any, b: Any) -> bool:
    """Values of different kinds are never equal; composites compare by identity"""
    kind = kind_of(a)
    if kind != kind_of(b):
        return False
    if kind in _COMPOSITE_KINDS:
        return a is b
    return a == b

def format_number(number: float) -> str:
    """Integral values print without a trailing '.0'"""
    if number.is_integer() and abs(number) < 1e21:
        return str(int(number))
    return repr(number)

def stringify(value: Any) -> str:
    """Textual representation used by print"""
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return format_number(value)
    if isinstance(value, str):
        return value
    return str(value)

@dataclass(frozen=True)
class ThrownValue:
    """A value raised with 'throw', plus the call stack at the throw site"""
    payload: Any
    trace: Tuple[TraceEntry, ...] = ()
    span: Optional[Span] = None

class LoxCallable:
    """Base class for everything that can appear in callee position"""
    name = "callable"

    def arity(self) -> int:
        raise NotImplementedError

    def call(self, interpreter, arguments: List[Any]) -> Any:
        raise NotImplementedError

class LoxFunction(LoxCallable):
    """User-defined function or method closing over its defining environment"""
    kind = ValueKind.FUNCTION

    def __init__(self, declaration, closure: Environment, owner=None, is_initializer: bool = False):
        self.declaration = declaration
        self.closure = closure
        self.owner = owner  # class whose body declared this method
        self.is_initializer = is_initializer
        self.name = declaration.name or "lambda"

    @property
    def params(self) -> List[str]:
        return self.declaration.params

    @property
    def qualified_name(self) -> str:
        if self.owner is not None:
            return f"{self.owner.name}.{self.name}"
        return self.name

    def arity(self) -> int:
        return len(self.declaration.params)

    def call(self, interpreter, arguments: List[Any]) -> Any:
        return self.invoke(interpreter, arguments, self.closure)

    def invoke(self, interpreter, arguments: List[Any], scope: Environment, receiver: Any = None) -> Any:
        """Run the body in a fresh child of scope with the parameters bound"""
        environment = Environment(scope)
        for param, argument in zip(self.declaration.params, arguments):
            environment.define(param, argument)

        result = interpreter.run_function_body(self, environment)
        if self.is_initializer:
            return receiver
        return result

    def __str__(self):
        return f"<fn {self.name}>"

    def __repr__(self):
        return f"LoxFunction({self.qualified_name!r}, arity={self.arity()})"

class NativeFunction(LoxCallable):
    """Function implemented in Python; body(interpreter, arguments) returns a Lox value"""
    kind = ValueKind.NATIVE_FUNCTION

    def __init__(self, name: str, arity: int, body: Callable[[Any, List[Any]], Any]):
        self.name = name
        self._arity = arity
        self.body = body

    @property
    def qualified_name(self) -> str:
        return self.name

    def arity(self) -> int:
        return self._arity

    def call(self, interpreter, arguments: List[Any]) -> Any:
        return self.body(interpreter, arguments)

    def __str__(self):
        return f"<native fn {self.name}>"

    def __repr__(self):
        return f"NativeFunction({self.name!r}, arity={self._arity})"
