"""
Built-in collection types for the Lox language: List and Map
"""

from reprlib import recursive_repr
from typing import Any, Callable, Dict, List, Optional
from errors import ErrorKind, LoxRuntimeError
from values import NativeFunction, ValueKind, is_equal, stringify, type_name

def check_index(index: Any, length: int, allow_end: bool = False) -> int:
    """Validate a list index; allow_end admits index == length (for insert)"""
    if not isinstance(index, float):
        raise LoxRuntimeError.of(ErrorKind.TYPE_MISMATCH,
                                 f"list index must be a number, got {type_name(index)}")
    if not index.is_integer():
        raise LoxRuntimeError.of(ErrorKind.TYPE_MISMATCH,
                                 f"list index must be an integer, got {stringify(index)}")
    position = int(index)
    upper = length if allow_end else length - 1
    if position < 0 or position > upper:
        raise LoxRuntimeError.of(ErrorKind.INDEX_OUT_OF_BOUNDS,
                                 f"index {position} out of bounds for list of length {length}")
    return position

def check_key(key: Any) -> Any:
    """Map keys are strings or numbers"""
    if isinstance(key, bool) or not isinstance(key, (str, float)):
        raise LoxRuntimeError.of(ErrorKind.TYPE_MISMATCH,
                                 f"map keys must be strings or numbers, got {type_name(key)}")
    return key

class LoxCollection:
    """Shared method lookup for the built-in collections"""
    type_label = "collection"

    def method_table(self) -> Dict[str, NativeFunction]:
        raise NotImplementedError

    def get(self, name: str) -> NativeFunction:
        method = self.method_table().get(name)
        if method is None:
            raise LoxRuntimeError.of(ErrorKind.UNDEFINED_PROPERTY,
                                     f"undefined property '{name}' on {self.type_label}")
        return method

    def length(self) -> int:
        raise NotImplementedError

def _native(name: str, arity: int, body: Callable[..., Any]) -> NativeFunction:
    # collection methods ignore the interpreter argument
    return NativeFunction(name, arity, lambda interpreter, arguments: body(*arguments))

class LoxList(LoxCollection):
    """Ordered, 0-indexed, growable list shared by reference"""
    kind = ValueKind.LIST
    type_label = "list"

    def __init__(self, elements: Optional[List[Any]] = None):
        self.elements: List[Any] = list(elements) if elements is not None else []

    def length(self) -> int:
        return len(self.elements)

    def get_item(self, index: Any) -> Any:
        return self.elements[check_index(index, len(self.elements))]

    def set_item(self, index: Any, value: Any):
        self.elements[check_index(index, len(self.elements))] = value

    def add(self, value: Any):
        self.elements.append(value)

    def pop(self) -> Any:
        if not self.elements:
            raise LoxRuntimeError.of(ErrorKind.INDEX_OUT_OF_BOUNDS, "pop from empty list")
        return self.elements.pop()

    def insert(self, index: Any, value: Any):
        self.elements.insert(check_index(index, len(self.elements), allow_end=True), value)

    def remove_at(self, index: Any) -> Any:
        return self.elements.pop(check_index(index, len(self.elements)))

    def index_of(self, value: Any) -> float:
        for position, element in enumerate(self.elements):
            if is_equal(element, value):
                return float(position)
        return -1.0

    def method_table(self) -> Dict[str, NativeFunction]:
        return {
            "add": _native("add", 1, lambda value: self.add(value)),
            "pop": _native("pop", 0, self.pop),
            "insert": _native("insert", 2, lambda index, value: self.insert(index, value)),
            "removeAt": _native("removeAt", 1, self.remove_at),
            "length": _native("length", 0, lambda: float(self.length())),
            "contains": _native("contains", 1, lambda value: self.index_of(value) >= 0),
            "indexOf": _native("indexOf", 1, self.index_of),
            "clear": _native("clear", 0, lambda: self.elements.clear()),
        }

    @recursive_repr(fillvalue="[...]")
    def __str__(self):
        return "[" + ", ".join(stringify(element) for element in self.elements) + "]"

    def __repr__(self):
        return f"LoxList({self.elements!r})"

class LoxMap(LoxCollection):
    """String/number keyed map that remembers insertion order"""
    kind = ValueKind.MAP
    type_label = "map"

    def __init__(self, entries: Optional[Dict[Any, Any]] = None):
        self.entries: Dict[Any, Any] = {}
        for key, value in (entries or {}).items():
            self.set_item(key, value)

    def length(self) -> int:
        return len(self.entries)

    def get_item(self, key: Any) -> Any:
        check_key(key)
        if key not in self.entries:
            raise LoxRuntimeError.of(ErrorKind.UNDEFINED_KEY, f"undefined key {_describe_key(key)}")
        return self.entries[key]

    def set_item(self, key: Any, value: Any):
        self.entries[check_key(key)] = value

    def has(self, key: Any) -> bool:
        return check_key(key) in self.entries

    def get_or_default(self, key: Any, default: Any) -> Any:
        return self.entries.get(check_key(key), default)

    def remove(self, key: Any) -> bool:
        check_key(key)
        if key in self.entries:
            del self.entries[key]
            return True
        return False

    def method_table(self) -> Dict[str, NativeFunction]:
        return {
            "has": _native("has", 1, self.has),
            "get": _native("get", 2, self.get_or_default),
            "remove": _native("remove", 1, self.remove),
            "keys": _native("keys", 0, lambda: LoxList(self.entries.keys())),
            "values": _native("values", 0, lambda: LoxList(self.entries.values())),
            "length": _native("length", 0, lambda: float(self.length())),
            "clear": _native("clear", 0, lambda: self.entries.clear()),
        }

    @recursive_repr(fillvalue="{...}")
    def __str__(self):
        items = (f"{stringify(key)}: {stringify(value)}" for key, value in self.entries.items())
        return "{" + ", ".join(items) + "}"

    def __repr__(self):
        return f"LoxMap({self.entries!r})"

def _describe_key(key: Any) -> str:
    if isinstance(key, str):
        return f"'{key}'"
    return stringify(key)
