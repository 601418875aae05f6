"""
Interpreter configuration for plox
"""

import os
import sys
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Mapping, Optional
from diagnostics import ColorMode

DEFAULT_MAX_CALL_DEPTH = 512

_TRUE_WORDS = {"1", "true", "yes", "on"}
_FALSE_WORDS = {"0", "false", "no", "off", ""}

def _parse_flag(name: str, raw: str) -> bool:
    word = raw.strip().lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    raise ValueError(f"{name} must be one of 1/true/yes/on or 0/false/no/off, got {raw!r}")

def _parse_depth(name: str, raw: str) -> int:
    try:
        depth = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if depth < 1:
        raise ValueError(f"{name} must be at least 1, got {depth}")
    return depth

@dataclass(frozen=True)
class InterpreterOptions:
    """Knobs for one interpreter session"""
    max_call_depth: int = DEFAULT_MAX_CALL_DEPTH
    collect_all_diagnostics: bool = True
    catch_runtime_errors: bool = False
    color: ColorMode = ColorMode.AUTO
    max_errors: int = 20

    def __post_init__(self):
        if self.max_call_depth < 1:
            raise ValueError(f"max_call_depth must be at least 1, got {self.max_call_depth}")
        if self.max_errors < 1:
            raise ValueError(f"max_errors must be at least 1, got {self.max_errors}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'InterpreterOptions':
        """Defaults overlaid with PLOX_MAX_CALL_DEPTH, PLOX_CATCH_RUNTIME_ERRORS and NO_COLOR"""
        environ = os.environ if environ is None else environ
        options = cls()

        if "PLOX_MAX_CALL_DEPTH" in environ:
            depth = _parse_depth("PLOX_MAX_CALL_DEPTH", environ["PLOX_MAX_CALL_DEPTH"])
            options = replace(options, max_call_depth=depth)
        if "PLOX_CATCH_RUNTIME_ERRORS" in environ:
            flag = _parse_flag("PLOX_CATCH_RUNTIME_ERRORS", environ["PLOX_CATCH_RUNTIME_ERRORS"])
            options = replace(options, catch_runtime_errors=flag)
        if "NO_COLOR" in environ:
            options = replace(options, color=ColorMode.NEVER)

        return options

    def with_overrides(self, **changes) -> 'InterpreterOptions':
        """Copy with every non-None keyword applied"""
        return replace(self, **{key: value for key, value in changes.items() if value is not None})

@contextmanager
def recursion_headroom(needed: int):
    """Raise the host recursion limit to at least needed for the duration of the block"""
    previous = sys.getrecursionlimit()
    if needed > previous:
        sys.setrecursionlimit(needed)
    try:
        yield
    finally:
        sys.setrecursionlimit(previous)
