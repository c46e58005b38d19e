"""
Language extractors: Find contracts and their usages in source code.

This module provides the extraction layer that converts source files into
structured data (imports, exported contracts, usage sites).

Components:
    - SymbolExtractor: Protocol defining the extractor interface
    - UsageScanner: Protocol for call-site / field-access scanners
    - TypeScriptExtractor: Regex and brace-depth extractor for TS/JS files
    - TypeScriptUsageScanner: Consumer-side usage scanner for TS/JS files

Adding a new language:
    1. Create an extractor class implementing SymbolExtractor
    2. Create a scanner class implementing UsageScanner
    3. Register both in EXTRACTORS / SCANNERS under its Language
"""

from contractdrift.core.models import Language
from contractdrift.languages.base import SymbolExtractor, UsageScanner
from contractdrift.languages.models import ExtractionResult, ParsedImport
from contractdrift.languages.typescript import TypeScriptExtractor, parse_parameters
from contractdrift.languages.usages import TypeScriptUsageScanner

_TYPESCRIPT = TypeScriptExtractor()

EXTRACTORS: dict[Language, SymbolExtractor] = {
    Language.TYPESCRIPT: _TYPESCRIPT,
    Language.JAVASCRIPT: _TYPESCRIPT,
}

SCANNERS: dict[Language, UsageScanner] = {
    Language.TYPESCRIPT: TypeScriptUsageScanner(_TYPESCRIPT),
    Language.JAVASCRIPT: TypeScriptUsageScanner(_TYPESCRIPT),
}


def get_extractor(language: Language) -> SymbolExtractor:
    """Get the extractor registered for a language."""
    return EXTRACTORS[language]


def get_scanner(language: Language) -> UsageScanner:
    """Get the usage scanner registered for a language."""
    return SCANNERS[language]


__all__ = [
    "EXTRACTORS",
    "SCANNERS",
    "ExtractionResult",
    "ParsedImport",
    "SymbolExtractor",
    "TypeScriptExtractor",
    "TypeScriptUsageScanner",
    "UsageScanner",
    "get_extractor",
    "get_scanner",
    "parse_parameters",
]
