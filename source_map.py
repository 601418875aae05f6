"""
Source tracking for plox
Every lexed text is registered here so that spans stored in tokens, AST nodes
and diagnostics can be turned back into file names, lines and columns.
"""

import bisect
import os
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

@dataclass(frozen=True)
class Span:
    """Half-open character range [start, end) inside one registered source"""
    file_id: int
    start: int
    end: int

    def __post_init__(self):
        if self.end < self.start:
            raise ValueError(f"span ends before it starts: {self.start}..{self.end}")

    def merge(self, other: Optional['Span']) -> 'Span':
        """Cover both spans; spans from another source are ignored"""
        if other is None or other.file_id != self.file_id:
            return self
        return Span(self.file_id, min(self.start, other.start), max(self.end, other.end))

@dataclass(frozen=True)
class Position:
    """1-based line and column"""
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"

class SourceFile:
    """One registered text and the offsets at which its lines begin"""

    def __init__(self, file_id: int, path: str, content: str):
        self.file_id = file_id
        self.path = path
        self.content = content
        self.line_offsets = [0] + [index + 1 for index, char in enumerate(content) if char == '\n']

    @property
    def name(self) -> str:
        if self.path.startswith('<'):
            return self.path
        return os.path.basename(self.path)

    def position(self, offset: int) -> Position:
        if not 0 <= offset <= len(self.content):
            raise ValueError(f"offset {offset} is outside {self.path}")
        line = bisect.bisect_right(self.line_offsets, offset)
        return Position(line, offset - self.line_offsets[line - 1] + 1)

    def line_count(self) -> int:
        return len(self.line_offsets)

    def get_line(self, line: int) -> str:
        """Text of a 1-based line without its terminator"""
        if not 1 <= line <= len(self.line_offsets):
            raise ValueError(f"{self.path} has no line {line}")
        start = self.line_offsets[line - 1]
        end = self.line_offsets[line] - 1 if line < len(self.line_offsets) else len(self.content)
        return self.content[start:end].rstrip('\r')

class SourceMap:
    """Registry of the sources seen in one session"""

    def __init__(self):
        self.files: Dict[int, SourceFile] = {}
        self._ids_by_path: Dict[str, int] = {}
        self._next_id = 1

    def add_file(self, path: str, content: str) -> int:
        """Register source text and return its file ID.

        An unchanged real file keeps its ID. Pseudo-paths like ``<repl>`` are
        shared by unrelated snippets, so each registration gets a new ID.
        """
        pseudo = path.startswith('<')
        key = path if pseudo else os.path.abspath(path)

        known = None if pseudo else self._ids_by_path.get(key)
        if known is not None and self.files[known].content == content:
            return known

        file_id = self._next_id
        self._next_id += 1
        self.files[file_id] = SourceFile(file_id, key, content)
        self._ids_by_path[key] = file_id
        return file_id

    def get_file(self, file_id: int) -> Optional[SourceFile]:
        return self.files.get(file_id)

    def resolve_span(self, span: Span) -> Tuple[SourceFile, Position, Position]:
        """File plus first and last character positions of a span"""
        source = self.files.get(span.file_id)
        if source is None:
            raise ValueError(f"no source registered with ID {span.file_id}")
        last = max(span.start, span.end - 1)
        return source, source.position(span.start), source.position(last)

    def position_of(self, span: Optional[Span]) -> Optional[Position]:
        """Start of a span, or None when the span is missing or unknown"""
        if span is None or span.file_id not in self.files:
            return None
        try:
            return self.files[span.file_id].position(span.start)
        except ValueError:
            return None

_source_map = SourceMap()

def get_source_map() -> SourceMap:
    return _source_map

@contextmanager
def source_map_session():
    """Give one interpreter session its own map; the previous map comes back afterwards"""
    global _source_map
    previous = _source_map
    _source_map = SourceMap()
    try:
        yield _source_map
    finally:
        _source_map = previous
