"""Graph analysis: blast radius of an edit, import cycles."""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from contractdrift.core.graph.base import SourceGraph
    from contractdrift.core.models import Role


def affected_files(
    graph: SourceGraph,
    path: str,
    roles: tuple[Role, ...] | None = None,
) -> list[str]:
    """Transitive importers of a file (reverse BFS), sorted by path.

    The file itself is not included. ``roles`` filters the result, not the
    traversal: a client file importing a shared barrel that re-exports the
    changed file is still reached.
    """
    seen: set[str] = {path}
    queue: deque[str] = deque([path])
    while queue:
        current = queue.popleft()
        for edge in graph.dependents(current):
            if edge.source not in seen:
                seen.add(edge.source)
                queue.append(edge.source)

    seen.discard(path)
    result = []
    for p in sorted(seen):
        file = graph.get_file(p)
        if file is None:
            continue
        if roles is None or file.role in roles:
            result.append(p)
    return result


def find_cycles(graph: SourceGraph, max_cycles: int = 10) -> list[list[str]]:
    """Find import cycles, each as a list of paths in import order."""
    cycles: list[list[str]] = []
    visited: set[str] = set()
    stack: list[str] = []
    stack_set: set[str] = set()

    def dfs(node: str) -> None:
        if len(cycles) >= max_cycles:
            return

        visited.add(node)
        stack.append(node)
        stack_set.add(node)

        for edge in graph.dependencies(node):
            target = edge.target
            if target not in visited:
                dfs(target)
            elif target in stack_set:
                cycle = stack[stack.index(target) :]
                if cycle not in cycles:
                    cycles.append(cycle)

        stack.pop()
        stack_set.remove(node)

    for file in graph.files():
        if file.path not in visited:
            dfs(file.path)

    return cycles[:max_cycles]
