"""Data models for extractor results."""

from __future__ import annotations

from dataclasses import dataclass, field

from contractdrift.core.models import ExportedFunction, ExportedShape


@dataclass
class ParsedImport:
    """An import, re-export or require found in a source file."""

    specifier: str
    line: int
    names: list[str] = field(default_factory=list)
    type_only: bool = False

    @property
    def is_external(self) -> bool:
        """Bare package specifiers are external; relative and absolute paths are local."""
        return not self.specifier.startswith((".", "/"))


@dataclass
class ExtractionResult:
    """Result of extracting contracts from a file."""

    path: str
    functions: list[ExportedFunction] = field(default_factory=list)
    shapes: list[ExportedShape] = field(default_factory=list)
    dropped: list[str] = field(default_factory=list)
