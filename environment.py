"""
Environment and scoping system for the Lox language
"""

from typing import Any, Dict, Iterator, List, Optional, Tuple
from errors import ErrorKind, LoxRuntimeError

class Variable:
    """A binding slot; constants reject reassignment"""
    def __init__(self, value: Any, is_const: bool = False):
        self.value = value
        self.is_const = is_const

    def __repr__(self):
        return f"Variable({self.value!r}, is_const={self.is_const})"

class Environment:
    """One lexical scope: its own bindings plus a link to the enclosing scope"""

    def __init__(self, enclosing: Optional['Environment'] = None):
        self.enclosing = enclosing
        self.values: Dict[str, Variable] = {}

    def define(self, name: str, value: Any, is_const: bool = False):
        """Create or overwrite a binding in this scope"""
        self.values[name] = Variable(value, is_const)

    def lookup(self, name: str) -> Optional[Variable]:
        """Find the innermost binding for name, walking outward"""
        environment = self
        while environment is not None:
            variable = environment.values.get(name)
            if variable is not None:
                return variable
            environment = environment.enclosing
        return None

    def get(self, name: str) -> Any:
        """Get variable value"""
        variable = self.lookup(name)
        if variable is None:
            raise LoxRuntimeError.of(ErrorKind.UNDEFINED_VARIABLE, f"undefined variable '{name}'")
        return variable.value

    def assign(self, name: str, value: Any):
        """Assign to an existing binding; never creates one"""
        variable = self.lookup(name)
        if variable is None:
            raise LoxRuntimeError.of(ErrorKind.UNDEFINED_VARIABLE, f"undefined variable '{name}'")
        if variable.is_const:
            raise LoxRuntimeError.of(ErrorKind.CONSTANT_REASSIGNMENT,
                                     f"cannot assign to constant '{name}'")
        variable.value = value

    def copy(self) -> 'Environment':
        """A sibling scope with the same parent and fresh copies of this scope's bindings"""
        clone = Environment(self.enclosing)
        for name, variable in self.values.items():
            clone.values[name] = Variable(variable.value, variable.is_const)
        return clone

    def scopes(self, stop: Optional['Environment'] = None) -> Iterator['Environment']:
        """This scope and its ancestors, innermost first, ending before stop"""
        environment = self
        while environment is not None and environment is not stop:
            yield environment
            environment = environment.enclosing

    def bindings(self) -> List[Tuple[str, Any]]:
        """(name, value) pairs of this scope in definition order"""
        return [(name, variable.value) for name, variable in self.values.items()]

    def depth(self) -> int:
        return sum(1 for _ in self.scopes())

    def __repr__(self):
        return f"Environment({list(self.values)}, depth={self.depth()})"
