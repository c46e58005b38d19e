"""Core SourceGraph class with adjacency list representation."""

from __future__ import annotations

from contractdrift.core.models import DependencyEdge, Role, SourceFile


class SourceGraph:
    """Directed graph of files and their local imports.

    Nodes are keyed by project-relative path. Uses adjacency lists for O(1)
    neighbor lookup.
    """

    __slots__ = ("_files", "_out", "_in")

    def __init__(self) -> None:
        self._files: dict[str, SourceFile] = {}
        self._out: dict[str, list[DependencyEdge]] = {}
        self._in: dict[str, list[DependencyEdge]] = {}

    def add_file(self, file: SourceFile) -> None:
        """Add or replace a file node. Existing edges are kept. O(1)."""
        self._files[file.path] = file
        self._out.setdefault(file.path, [])
        self._in.setdefault(file.path, [])

    def remove_file(self, path: str) -> SourceFile | None:
        """Remove a node and every edge touching it."""
        file = self._files.pop(path, None)
        if file is None:
            return None
        self.set_edges(path, [])
        for edge in self._in.pop(path, []):
            self._out[edge.source] = [e for e in self._out.get(edge.source, []) if e.target != path]
        self._out.pop(path, None)
        return file

    def set_edges(self, path: str, edges: list[DependencyEdge]) -> None:
        """Replace the outgoing edges of a node."""
        for edge in self._out.get(path, []):
            incoming = self._in.get(edge.target)
            if incoming is not None:
                self._in[edge.target] = [e for e in incoming if e.source != path]
        self._out[path] = list(edges)
        for edge in edges:
            self._in.setdefault(edge.target, []).append(edge)

    def get_file(self, path: str) -> SourceFile | None:
        """Get a file node by path. O(1)."""
        return self._files.get(path)

    def files(self, role: Role | None = None) -> list[SourceFile]:
        """File nodes sorted by path, optionally filtered by role."""
        files = [self._files[p] for p in sorted(self._files)]
        return [f for f in files if role is None or f.role is role]

    def dependencies(self, path: str) -> list[DependencyEdge]:
        """Edges from a file to the files it imports."""
        return list(self._out.get(path, []))

    def dependents(self, path: str) -> list[DependencyEdge]:
        """Edges from files importing this file."""
        return list(self._in.get(path, []))

    def edges(self) -> list[DependencyEdge]:
        return [e for p in sorted(self._out) for e in self._out[p]]

    @property
    def num_nodes(self) -> int:
        return len(self._files)

    @property
    def num_edges(self) -> int:
        return sum(len(edges) for edges in self._out.values())

    def __contains__(self, path: object) -> bool:
        return path in self._files

    def __len__(self) -> int:
        return len(self._files)

    def __repr__(self) -> str:
        return f"SourceGraph(nodes={self.num_nodes}, edges={self.num_edges})"
