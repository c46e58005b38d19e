"""In-memory index of contracts exported by shared files."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable

from contractdrift.core.models import ExportedFunction, ExportedShape, ShapeField, SourceFile
from contractdrift.languages import ExtractionResult, SymbolExtractor, get_extractor

logger = logging.getLogger(__name__)


class ExportIndex:
    """Identity-keyed index of exported functions and data shapes.

    Per-file extraction results are kept so that a file can be purged and
    re-extracted without touching other files. The live entry for an identity
    is resolved over files in path order (then source order within a file),
    so the outcome never depends on the order in which files were committed.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._results: dict[str, ExtractionResult] = {}
        self._functions: dict[str, ExportedFunction] = {}
        self._shapes: dict[str, ExportedShape] = {}

    def extract(
        self, file: SourceFile, extractor: SymbolExtractor | None = None
    ) -> ExtractionResult:
        """Extract a file's contracts and replace its previous entries."""
        extractor = extractor or get_extractor(file.language)
        result = extractor.extract_symbols(file.path, file.content)
        self.replace_file(file.path, result)
        return result

    def replace_file(self, path: str, result: ExtractionResult) -> None:
        """Purge a file's entries and insert the given result."""
        self.replace_many([(path, result)])

    def replace_many(self, results: Iterable[tuple[str, ExtractionResult]]) -> None:
        """Replace several files at once, rebuilding the identity maps once."""
        with self._lock:
            for path, result in results:
                self._results[path] = result
            self._rebuild()

    def clear(self, path: str) -> bool:
        """Purge a file's entries. Returns True if the file was indexed."""
        with self._lock:
            if self._results.pop(path, None) is None:
                return False
            self._rebuild()
            return True

    def reset(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._results.clear()
            self._functions.clear()
            self._shapes.clear()

    def _rebuild(self) -> None:
        functions: dict[str, ExportedFunction] = {}
        shapes: dict[str, ExportedShape] = {}
        for path in sorted(self._results):
            result = self._results[path]
            for func in result.functions:
                if func.identity in functions:
                    logger.debug("Duplicate contract %s in %s", func.identity, path)
                functions[func.identity] = func
            for shape in result.shapes:
                if shape.identity in shapes:
                    logger.debug("Duplicate shape %s in %s", shape.identity, path)
                shapes[shape.identity] = shape
        self._functions = functions
        self._shapes = shapes

    def functions(self) -> list[ExportedFunction]:
        """All live functions and methods, ordered by file then line."""
        return sorted(self._functions.values(), key=lambda f: (f.file, f.line, f.identity))

    def shapes(self) -> list[ExportedShape]:
        """All live shapes, ordered by file then line."""
        return sorted(self._shapes.values(), key=lambda s: (s.file, s.line, s.identity))

    def function(self, identity: str) -> ExportedFunction | None:
        return self._functions.get(identity)

    def shape(self, identity: str) -> ExportedShape | None:
        return self._shapes.get(identity)

    def functions_named(self, name: str) -> list[ExportedFunction]:
        """Functions and methods whose short name is ``name``."""
        return [f for f in self.functions() if f.name == name]

    def field_entries(self) -> list[tuple[ShapeField, ExportedShape]]:
        """Every (field, declaring shape) pair, ordered by shape."""
        return [(f, shape) for shape in self.shapes() for f in shape.fields]

    def file_result(self, path: str) -> ExtractionResult | None:
        """The extraction result currently held for a file."""
        return self._results.get(path)

    def files(self) -> list[str]:
        """Indexed file paths, sorted."""
        return sorted(self._results)

    def dropped(self) -> dict[str, list[str]]:
        """Declarations dropped as malformed, keyed by file."""
        return {path: list(r.dropped) for path, r in sorted(self._results.items()) if r.dropped}

    @property
    def is_empty(self) -> bool:
        return not self._functions and not self._shapes

    def __len__(self) -> int:
        return len(self._functions) + len(self._shapes)

    def __repr__(self) -> str:
        return f"ExportIndex(functions={len(self._functions)}, shapes={len(self._shapes)})"
