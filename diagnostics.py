"""
Diagnostic rendering for plox
Turns a Diagnostic into a report with a source excerpt, underlined spans,
help text and the Lox stack trace, optionally colored with ANSI escapes.
"""

import os
import sys
from enum import Enum
from typing import Iterable, List, Optional, TextIO, Tuple

from errors import Diagnostic, LabeledSpan, LoxError
from source_map import Position, SourceFile, get_source_map

class ColorMode(Enum):
    NEVER = "never"
    ALWAYS = "always"
    AUTO = "auto"

_RESET = '\033[0m'

# Escape sequence per role in a report
_STYLES = {
    'error': '\033[1;91m',
    'note': '\033[94m',
    'help': '\033[36m',
    'gutter': '\033[94m',
    'primary': '\033[91m',
    'secondary': '\033[93m',
    'trace': '\033[34m',
    'summary': '\033[1m',
}

Mark = Tuple[LabeledSpan, Position, Position]

class DiagnosticFormatter:
    """Writes diagnostics to a stream, counting them and capping how many are shown"""

    def __init__(self, color_mode: ColorMode = ColorMode.AUTO, max_errors: int = 20):
        self.color_mode = color_mode
        self.max_errors = max_errors
        self.error_count = 0
        self.suppressed_count = 0

    def should_use_colors(self, file: TextIO = sys.stderr) -> bool:
        if self.color_mode is ColorMode.AUTO:
            isatty = getattr(file, "isatty", None)
            return bool(isatty and isatty()) and "NO_COLOR" not in os.environ
        return self.color_mode is ColorMode.ALWAYS

    def paint(self, text: str, role: str, file: TextIO = sys.stderr) -> str:
        if not text or not self.should_use_colors(file):
            return text
        return f"{_STYLES[role]}{text}{_RESET}"

    def format_diagnostic(self, diagnostic: Diagnostic, file: TextIO = sys.stderr) -> str:
        """Render one diagnostic; the result ends with a blank line"""
        header = f"{diagnostic.severity.value.title()} [{diagnostic.code}]: {diagnostic.message}"
        lines = [self.paint(header, 'error', file)]

        located = self._locate(diagnostic)
        if located is not None:
            source, start = located
            lines.append(self.paint(f"  --> {self._display_path(source)}:{start}", 'gutter', file))
            lines.append(self.paint("   |", 'gutter', file))
            lines.extend(self.code_frame(diagnostic, source, file))

        if diagnostic.help:
            lines.append(self.paint(f"   = help: {diagnostic.help}", 'help', file))

        trace = [note for note in diagnostic.notes if note.startswith("at ")]
        lines.extend(self.paint(f"   = note: {note}", 'note', file)
                     for note in diagnostic.notes if note not in trace)
        if trace:
            lines.append(self.paint("   = stack trace:", 'trace', file))
            lines.extend(self.paint(f"       {entry}", 'trace', file) for entry in trace)

        lines.append("")
        return "\n".join(lines)

    @staticmethod
    def _locate(diagnostic: Diagnostic) -> Optional[Tuple[SourceFile, Position]]:
        span = diagnostic.primary_span()
        if span is None:
            return None
        try:
            source, start, _ = get_source_map().resolve_span(span)
        except ValueError:
            return None
        return source, start

    @staticmethod
    def _display_path(source: SourceFile) -> str:
        if source.path.startswith('<') or not os.path.exists(source.path):
            return source.path
        return os.path.relpath(source.path)

    def code_frame(self, diagnostic: Diagnostic, source: SourceFile, file: TextIO = sys.stderr) -> List[str]:
        """Excerpt of the labelled lines, one line of context either side"""
        marks: List[Mark] = []
        for label in diagnostic.labels:
            if label.span.file_id != source.file_id:
                continue
            try:
                _, start, end = get_source_map().resolve_span(label.span)
            except ValueError:
                continue
            marks.append((label, start, end))
        if not marks:
            return []

        first = max(1, min(start.line for _, start, _ in marks) - 1)
        last = min(source.line_count(), max(end.line for _, _, end in marks) + 1)
        width = len(str(last))
        bar = self.paint("|", 'gutter', file)

        frame = []
        for number in range(first, last + 1):
            text = source.get_line(number)
            frame.append(f"{self.paint(str(number).rjust(width), 'gutter', file)} {bar} {text}")
            starting = [mark for mark in marks if mark[1].line == number]
            if starting:
                frame.extend(self._underline(text, number, starting, width, bar, file))
        return frame

    def _underline(self, text: str, number: int, marks: List[Mark], width: int,
                   bar: str, file: TextIO) -> List[str]:
        cells = [' '] * (len(text) + 1)
        captions = []
        for label, start, end in marks:
            begin = start.column - 1
            stop = min(len(text), end.column) if end.line == number else len(text)
            for column in range(begin, min(len(cells), max(begin + 1, stop))):
                cells[column] = '^' if label.is_primary else '-'
            if label.label:
                captions.append((begin, label.label, 'primary' if label.is_primary else 'secondary'))

        marker = "".join(
            self.paint(cell, 'primary' if cell == '^' else 'secondary', file) if cell != ' ' else cell
            for cell in "".join(cells).rstrip()
        )
        rendered = [f"{' ' * width} {bar} {marker}"]
        for column, caption, role in captions:
            rendered.append(' ' * (width + 3 + column) + self.paint(caption, role, file))
        return rendered

    def emit_diagnostic(self, diagnostic: Diagnostic, file: TextIO = sys.stderr):
        """Write a diagnostic unless max_errors have already been shown"""
        self.error_count += 1
        if self.error_count > self.max_errors:
            self.suppressed_count += 1
            return

        file.write(self.format_diagnostic(diagnostic, file) + "\n")
        file.flush()

    def emit_errors(self, errors: Iterable[LoxError], file: TextIO = sys.stderr):
        for error in errors:
            self.emit_diagnostic(error.diagnostic, file)
        self.print_summary(file)

    def print_summary(self, file: TextIO = sys.stderr):
        """e.g. '3 errors generated (1 not shown)'"""
        if not self.error_count:
            return

        summary = f"{self.error_count} error{'s' if self.error_count != 1 else ''} generated"
        if self.suppressed_count:
            summary += f" ({self.suppressed_count} not shown)"
        file.write(self.paint(summary, 'summary', file) + "\n")
        file.flush()
