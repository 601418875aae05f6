"""
Class and instance runtime for the Lox language
"""

from typing import Any, Dict, List, Optional
from environment import Environment
from errors import ErrorKind, LoxRuntimeError
from values import LoxCallable, LoxFunction, ValueKind

class LoxClass(LoxCallable):
    """User-defined class; calling it constructs an instance"""
    kind = ValueKind.CLASS

    def __init__(self, name: str, superclass: Optional['LoxClass'], methods: Dict[str, LoxFunction]):
        self.name = name
        self.superclass = superclass
        self.methods = methods

    @property
    def qualified_name(self) -> str:
        return self.name

    def find_method(self, name: str) -> Optional[LoxFunction]:
        """Look a method up through this class and then each superclass"""
        klass = self
        while klass is not None:
            method = klass.methods.get(name)
            if method is not None:
                return method
            klass = klass.superclass
        return None

    def arity(self) -> int:
        initializer = self.find_method("init")
        if initializer is None:
            return 0
        return initializer.arity()

    def call(self, interpreter, arguments: List[Any]) -> 'LoxInstance':
        """Create new instance of the class"""
        instance = LoxInstance(self)

        initializer = self.find_method("init")
        if initializer is not None:
            BoundMethod(instance, initializer).call(interpreter, arguments)

        return instance

    def __str__(self):
        return f"<class {self.name}>"

    def __repr__(self):
        parent = self.superclass.name if self.superclass else None
        return f"LoxClass({self.name!r}, superclass={parent!r}, methods={list(self.methods)})"

class LoxInstance:
    """Instance of a Lox class: per-instance fields, methods resolved through the class chain"""
    kind = ValueKind.INSTANCE

    def __init__(self, klass: LoxClass):
        self.klass = klass
        self.fields: Dict[str, Any] = {}

    def get(self, name: str) -> Any:
        """Fields first, then methods bound to this instance"""
        if name in self.fields:
            return self.fields[name]

        method = self.klass.find_method(name)
        if method is not None:
            return BoundMethod(self, method)

        raise LoxRuntimeError.of(
            ErrorKind.UNDEFINED_PROPERTY,
            f"undefined property '{name}' on {self.klass.name} instance"
        )

    def set(self, name: str, value: Any):
        self.fields[name] = value

    def __str__(self):
        return f"<{self.klass.name} instance>"

    def __repr__(self):
        return f"LoxInstance({self.klass.name!r}, fields={list(self.fields)})"

class BoundMethod(LoxCallable):
    """A method paired with the instance it was read from"""
    kind = ValueKind.FUNCTION

    def __init__(self, receiver: LoxInstance, method: LoxFunction):
        self.receiver = receiver
        self.method = method
        self.name = method.name

    @property
    def qualified_name(self) -> str:
        return self.method.qualified_name

    def arity(self) -> int:
        return self.method.arity()

    def call(self, interpreter, arguments: List[Any]) -> Any:
        # 'this' lives between the method's closure and its parameters
        scope = Environment(self.method.closure)
        scope.define("this", self.receiver)
        return self.method.invoke(interpreter, arguments, scope, receiver=self.receiver)

    def __str__(self):
        return f"<fn {self.name}>"

    def __repr__(self):
        return f"BoundMethod({self.qualified_name!r}, receiver={self.receiver!r})"
