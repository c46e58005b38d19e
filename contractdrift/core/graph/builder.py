"""Builds the source graph: discovery, role classification, import resolution."""

from __future__ import annotations

import functools
import logging
import os
import posixpath
import re
from collections.abc import Mapping
from pathlib import Path

from contractdrift.core.config import EngineConfig
from contractdrift.core.exceptions import ProjectRootError
from contractdrift.core.graph.base import SourceGraph
from contractdrift.core.graph.roles import RoleClassifier
from contractdrift.core.models import (
    EXTENSION_FAMILIES,
    ChangeKind,
    DependencyEdge,
    Language,
    SourceFile,
    language_for,
)
from contractdrift.languages import ParsedImport, get_extractor

logger = logging.getLogger(__name__)

ALWAYS_SKIPPED = ("node_modules",)

_JS_SUFFIX_RE = re.compile(r"\.(?:js|jsx|mjs|cjs)$")


@functools.lru_cache(maxsize=256)
def _glob_regex(pattern: str) -> re.Pattern[str]:
    """Translate a glob to a regex. ``**/`` matches zero or more directories."""
    out: list[str] = []
    i = 0
    n = len(pattern)
    while i < n:
        ch = pattern[i]
        if pattern.startswith("**/", i):
            out.append("(?:[^/]+/)*")
            i += 3
            continue
        if pattern.startswith("**", i):
            out.append(".*")
            i += 2
            continue
        if ch == "*":
            out.append("[^/]*")
        elif ch == "?":
            out.append("[^/]")
        else:
            out.append(re.escape(ch))
        i += 1
    return re.compile("".join(out) + r"\Z")


def match_glob(path: str, pattern: str) -> bool:
    """Match a project-relative POSIX path against a glob pattern."""
    return _glob_regex(pattern).match(path) is not None


def normalize_path(path: str) -> str:
    """Project-relative POSIX form of a path key."""
    path = path.replace("\\", "/")
    while path.startswith("./"):
        path = path[2:]
    return path.lstrip("/")


class GraphBuilder:
    """Discovers source files and maintains the graph across edits.

    When ``files`` is given it replaces filesystem access entirely: discovery
    enumerates its keys and reads return its values.
    """

    def __init__(self, config: EngineConfig | None = None, files: Mapping[str, str] | None = None):
        self.config = config or EngineConfig()
        self.classifier = RoleClassifier(self.config)
        self.graph = SourceGraph()
        self.root: Path | None = None
        self.skipped: list[str] = []
        self._files: dict[str, str] | None = None
        if files is not None:
            self._files = {normalize_path(p): c for p, c in files.items()}
        self._imports: dict[str, list[ParsedImport]] = {}

    def scan(self, root: Path | str | None = None) -> SourceGraph:
        """Build the graph for a project from scratch."""
        self._set_root(root)
        self.graph = SourceGraph()
        self.skipped = []
        self._imports = {}

        contents: dict[str, tuple[str, float | None]] = {}
        for path in self._discover():
            read = self._read(path)
            if read is not None:
                contents[path] = read

        if not self.classifier.explicit:
            self.classifier.detect({p: c for p, (c, _) in contents.items()})

        # First pass: nodes and parsed imports
        for path, (content, mtime) in contents.items():
            self._add_node(path, content, mtime)

        # Second pass: resolve edges once every node exists
        self._resolve_all()

        logger.info(
            "Scanned %d files (%d edges, %d skipped)",
            self.graph.num_nodes,
            self.graph.num_edges,
            len(self.skipped),
        )
        return self.graph

    def apply_change(
        self,
        path: str,
        kind: ChangeKind | str,
        content: str | None = None,
    ) -> SourceGraph:
        """Apply one file event, touching only that file's node and edges."""
        kind = ChangeKind(kind)
        path = self.relative(path)

        if kind is ChangeKind.REMOVED:
            if self._files is not None:
                self._files.pop(path, None)
            self._drop(path)
            return self.graph

        if content is not None and self._files is not None:
            self._files[path] = content

        read = None
        if self._accepts(path):
            read = (content, None) if content is not None else self._read(path)
        if read is None:
            self._drop(path)
            return self.graph

        is_new = path not in self.graph
        self._add_node(path, *read)
        if is_new:
            self._resolve_all()
        else:
            self._resolve(path)
        return self.graph

    def relative(self, path: str | Path) -> str:
        """Project-relative key for a path given absolute or relative."""
        p = Path(path)
        if p.is_absolute() and self.root is not None:
            try:
                return p.relative_to(self.root).as_posix()
            except ValueError:
                pass
        return normalize_path(str(path))

    # -- discovery ---------------------------------------------------------

    def _set_root(self, root: Path | str | None) -> None:
        if root is None:
            if self._files is None:
                raise ProjectRootError("A project root is required without a content map")
            self.root = None
            return
        root = Path(root)
        if self._files is None and not root.is_dir():
            raise ProjectRootError(f"Project root is not a readable directory: {root}")
        self.root = root.resolve() if root.exists() else root

    def _discover(self) -> list[str]:
        if self._files is not None:
            candidates = sorted(self._files)
        elif self.root is None:
            raise ProjectRootError("No project root to discover files in")
        else:
            candidates = []
            for dirpath, dirnames, filenames in os.walk(self.root):
                dirnames[:] = sorted(
                    d for d in dirnames if not d.startswith(".") and d not in ALWAYS_SKIPPED
                )
                rel_dir = Path(dirpath).relative_to(self.root).as_posix()
                for name in filenames:
                    candidates.append(name if rel_dir == "." else f"{rel_dir}/{name}")
            candidates.sort()

        paths = []
        for path in candidates:
            if language_for(path) is None or not self._included(path):
                continue
            if self._excluded(path):
                self.skipped.append(path)
                continue
            paths.append(path)
        return paths

    def _included(self, path: str) -> bool:
        return any(match_glob(path, pattern) for pattern in self.config.include)

    def _excluded(self, path: str) -> bool:
        """Hidden components and node_modules are always excluded."""
        for part in path.split("/"):
            if part.startswith(".") or part in ALWAYS_SKIPPED:
                return True
        return any(match_glob(path, pattern) for pattern in self.config.exclude)

    def _accepts(self, path: str) -> bool:
        return language_for(path) is not None and self._included(path) and not self._excluded(path)

    def _read(self, path: str) -> tuple[str, float | None] | None:
        if self._files is not None:
            content = self._files.get(path)
            if content is None:
                self.skipped.append(path)
                return None
            return content, None

        if self.root is None:
            raise ProjectRootError(f"No project root to read {path} from")
        full = self.root / path
        try:
            return full.read_text(encoding="utf-8"), full.stat().st_mtime
        except (OSError, UnicodeDecodeError) as e:
            logger.debug("Skipping unreadable file %s: %s", path, e)
            self.skipped.append(path)
            return None

    # -- nodes and edges ---------------------------------------------------

    def _add_node(self, path: str, content: str, mtime: float | None) -> None:
        file = SourceFile(
            path=path,
            language=language_for(path) or Language.TYPESCRIPT,
            role=self.classifier.classify(path),
            content=content,
            mtime=mtime,
        )
        self.graph.add_file(file)
        self._imports[path] = get_extractor(file.language).extract_imports(content)

    def _drop(self, path: str) -> None:
        self._imports.pop(path, None)
        if self.graph.remove_file(path) is not None:
            self._resolve_all()

    def _resolve_all(self) -> None:
        for file in self.graph.files():
            self._resolve(file.path)

    def _resolve(self, path: str) -> None:
        edges: dict[str, DependencyEdge] = {}
        for imp in self._imports.get(path, []):
            target = self.resolve(path, imp.specifier)
            if target is None:
                if not imp.is_external:
                    logger.debug("Unresolved import %r in %s:%d", imp.specifier, path, imp.line)
                continue
            if target in edges:
                prev = edges[target]
                merged = prev.names + tuple(n for n in imp.names if n not in prev.names)
                edges[target] = DependencyEdge(
                    prev.source, target, prev.specifier, prev.line, merged
                )
            else:
                edges[target] = DependencyEdge(
                    path, target, imp.specifier, imp.line, tuple(imp.names)
                )
        self.graph.set_edges(path, list(edges.values()))

    def resolve(self, source: str, specifier: str) -> str | None:
        """Resolve a local import specifier to a node path, None if external or missing."""
        if not specifier.startswith((".", "/")):
            return None
        spec = specifier.split("?", 1)[0]
        if spec.startswith("/"):
            base = posixpath.normpath(spec.lstrip("/"))
        else:
            base = posixpath.normpath(posixpath.join(posixpath.dirname(source), spec))
        if base == ".." or base.startswith("../"):
            return None
        if base == ".":
            base = ""

        language = language_for(source) or Language.TYPESCRIPT
        bases = [base]
        if _JS_SUFFIX_RE.search(base):
            bases.append(_JS_SUFFIX_RE.sub("", base))

        for candidate in bases:
            if candidate and candidate in self.graph:
                return candidate
            for ext in EXTENSION_FAMILIES[language]:
                if candidate and candidate + ext in self.graph:
                    return candidate + ext
                index = posixpath.join(candidate, "index" + ext) if candidate else "index" + ext
                if index in self.graph:
                    return index
        return None
