"""Protocols for language extractors and usage scanners."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from contractdrift.core.models import UsageSite
    from contractdrift.languages.models import ExtractionResult, ParsedImport


class SymbolExtractor(Protocol):
    """Protocol for extracting imports and exported contracts from source text."""

    def supports(self, path: str) -> bool:
        """Check if this extractor supports the given file."""
        ...

    def extract_imports(self, content: str) -> list[ParsedImport]:
        """Extract import statements."""
        ...

    def extract_symbols(self, path: str, content: str) -> ExtractionResult:
        """Extract exported functions and data shapes."""
        ...


class UsageScanner(Protocol):
    """Protocol for enumerating call sites and field accesses."""

    def scan(self, path: str, content: str) -> list[UsageSite]:
        """Return usage sites in source order."""
        ...
