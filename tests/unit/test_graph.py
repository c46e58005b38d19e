"""Unit tests for the source graph, its builder and role classification."""

import tempfile
from pathlib import Path

import pytest

from contractdrift.core.config import EngineConfig
from contractdrift.core.exceptions import ProjectRootError
from contractdrift.core.graph import (
    GraphBuilder,
    RoleClassifier,
    SourceGraph,
    affected_files,
    find_cycles,
    match_glob,
)
from contractdrift.core.graph.roles import in_directory
from contractdrift.core.models import DependencyEdge, Language, Role, SourceFile


def make_file(path: str, role: Role = Role.CLIENT) -> SourceFile:
    """Create a test file node."""
    return SourceFile(path=path, language=Language.TYPESCRIPT, role=role, content="")


def make_edge(source: str, target: str) -> DependencyEdge:
    """Create a test import edge."""
    return DependencyEdge(source=source, target=target, specifier=f"./{target}", line=1)


@pytest.fixture
def linear_graph() -> SourceGraph:
    """Create a linear graph: a imports b imports c."""
    graph = SourceGraph()
    graph.add_file(make_file("a.ts"))
    graph.add_file(make_file("b.ts", Role.SERVER))
    graph.add_file(make_file("c.ts", Role.SHARED))
    graph.set_edges("a.ts", [make_edge("a.ts", "b.ts")])
    graph.set_edges("b.ts", [make_edge("b.ts", "c.ts")])
    return graph


@pytest.fixture
def cyclic_graph() -> SourceGraph:
    """Create a graph with a cycle: a -> b -> c -> a."""
    graph = SourceGraph()
    for name in ("a.ts", "b.ts", "c.ts"):
        graph.add_file(make_file(name))
    graph.set_edges("a.ts", [make_edge("a.ts", "b.ts")])
    graph.set_edges("b.ts", [make_edge("b.ts", "c.ts")])
    graph.set_edges("c.ts", [make_edge("c.ts", "a.ts")])
    return graph


PROJECT = {
    "shared/api.ts": "export function getUserById(id: string) {\n  return id;\n}\n",
    "shared/index.ts": "export * from './api';\n",
    "client/app.ts": "import { getUserById } from '../shared';\nimport React from 'react';\n",
    "server/routes.ts": "import { getUserById } from '../shared/api.js';\n",
    "client/README.md": "# notes\n",
    "node_modules/lib/index.js": "module.exports = {};\n",
}


@pytest.fixture
def explicit_config() -> EngineConfig:
    return EngineConfig(shared_dirs=["shared"], client_dirs=["client"], server_dirs=["server"])


@pytest.fixture
def builder(explicit_config: EngineConfig) -> GraphBuilder:
    builder = GraphBuilder(explicit_config, files=PROJECT)
    builder.scan()
    return builder


class TestSourceGraph:
    """Tests for the graph data structure."""

    def test_nodes_and_edges(self, linear_graph: SourceGraph) -> None:
        assert linear_graph.num_nodes == 3
        assert linear_graph.num_edges == 2
        assert "a.ts" in linear_graph
        assert "z.ts" not in linear_graph
        assert len(linear_graph) == 3
        assert repr(linear_graph) == "SourceGraph(nodes=3, edges=2)"

    def test_dependencies_and_dependents(self, linear_graph: SourceGraph) -> None:
        assert [e.target for e in linear_graph.dependencies("a.ts")] == ["b.ts"]
        assert [e.source for e in linear_graph.dependents("c.ts")] == ["b.ts"]
        assert linear_graph.dependents("a.ts") == []

    def test_files_filtered_by_role(self, linear_graph: SourceGraph) -> None:
        assert [f.path for f in linear_graph.files()] == ["a.ts", "b.ts", "c.ts"]
        assert [f.path for f in linear_graph.files(Role.SHARED)] == ["c.ts"]

    def test_set_edges_replaces(self, linear_graph: SourceGraph) -> None:
        linear_graph.set_edges("a.ts", [make_edge("a.ts", "c.ts")])
        assert linear_graph.dependents("b.ts") == []
        assert sorted(e.source for e in linear_graph.dependents("c.ts")) == ["a.ts", "b.ts"]

    def test_remove_file_drops_edges(self, linear_graph: SourceGraph) -> None:
        removed = linear_graph.remove_file("b.ts")
        assert removed is not None
        assert removed.path == "b.ts"
        assert linear_graph.dependencies("a.ts") == []
        assert linear_graph.dependents("c.ts") == []
        assert linear_graph.num_edges == 0

    def test_remove_missing_file(self, linear_graph: SourceGraph) -> None:
        assert linear_graph.remove_file("missing.ts") is None


class TestAnalysis:
    """Tests for blast radius and cycle detection."""

    def test_affected_files_transitive(self, linear_graph: SourceGraph) -> None:
        assert affected_files(linear_graph, "c.ts") == ["a.ts", "b.ts"]

    def test_affected_files_excludes_self(self, linear_graph: SourceGraph) -> None:
        assert affected_files(linear_graph, "a.ts") == []

    def test_affected_files_role_filter(self, linear_graph: SourceGraph) -> None:
        assert affected_files(linear_graph, "c.ts", roles=(Role.CLIENT,)) == ["a.ts"]

    def test_affected_files_in_cycle(self, cyclic_graph: SourceGraph) -> None:
        assert affected_files(cyclic_graph, "a.ts") == ["b.ts", "c.ts"]

    def test_find_cycles(self, cyclic_graph: SourceGraph) -> None:
        assert find_cycles(cyclic_graph) == [["a.ts", "b.ts", "c.ts"]]

    def test_no_cycles(self, linear_graph: SourceGraph) -> None:
        assert find_cycles(linear_graph) == []


class TestMatchGlob:
    """Tests for glob matching."""

    @pytest.mark.parametrize(
        ("path", "pattern", "expected"),
        [
            ("src/a.ts", "**/*.ts", True),
            ("a.ts", "**/*.ts", True),
            ("src/a.tsx", "**/*.ts", False),
            ("node_modules/x/a.js", "**/node_modules/**", True),
            ("pkg/dist/out.js", "**/dist/**", True),
            ("a/b/c.ts", "a/*.ts", False),
            ("a/c.ts", "a/?.ts", True),
        ],
    )
    def test_patterns(self, path: str, pattern: str, expected: bool) -> None:
        assert match_glob(path, pattern) is expected


class TestGraphBuilder:
    """Tests for discovery and import resolution."""

    def test_discovery(self, builder: GraphBuilder) -> None:
        paths = [f.path for f in builder.graph.files()]
        assert paths == ["client/app.ts", "server/routes.ts", "shared/api.ts", "shared/index.ts"]
        assert builder.skipped == ["node_modules/lib/index.js"]

    def test_roles_assigned(self, builder: GraphBuilder) -> None:
        graph = builder.graph
        assert graph.get_file("client/app.ts").role is Role.CLIENT
        assert graph.get_file("server/routes.ts").role is Role.SERVER
        assert graph.get_file("shared/api.ts").role is Role.SHARED

    def test_resolves_index_extension_and_js_suffix(self, builder: GraphBuilder) -> None:
        graph = builder.graph
        assert [e.target for e in graph.dependencies("client/app.ts")] == ["shared/index.ts"]
        assert [e.target for e in graph.dependencies("server/routes.ts")] == ["shared/api.ts"]
        assert [e.target for e in graph.dependencies("shared/index.ts")] == ["shared/api.ts"]
        assert graph.num_edges == 3

    def test_edge_records_import_names(self, builder: GraphBuilder) -> None:
        (edge,) = builder.graph.dependencies("server/routes.ts")
        assert edge.names == ("getUserById",)
        assert edge.specifier == "../shared/api.js"
        assert edge.line == 1

    def test_external_and_escaping_specifiers(self, builder: GraphBuilder) -> None:
        assert builder.resolve("client/app.ts", "lodash") is None
        assert builder.resolve("client/app.ts", "../../outside") is None
        assert builder.resolve("client/app.ts", "../shared/missing") is None

    def test_blast_radius_through_barrel(self, builder: GraphBuilder) -> None:
        graph = builder.graph
        assert affected_files(graph, "shared/api.ts") == [
            "client/app.ts",
            "server/routes.ts",
            "shared/index.ts",
        ]
        assert affected_files(graph, "shared/api.ts", roles=(Role.CLIENT, Role.SERVER)) == [
            "client/app.ts",
            "server/routes.ts",
        ]

    def test_add_file(self, builder: GraphBuilder) -> None:
        builder.apply_change("client/new.ts", "added", "import { x } from '../shared/api';\n")
        graph = builder.graph
        assert graph.get_file("client/new.ts").role is Role.CLIENT
        assert "client/new.ts" in [e.source for e in graph.dependents("shared/api.ts")]

    def test_change_file(self, builder: GraphBuilder) -> None:
        builder.apply_change("client/app.ts", "changed", "import { y } from '../shared/api';\n")
        assert [e.target for e in builder.graph.dependencies("client/app.ts")] == ["shared/api.ts"]
        assert builder.graph.dependents("shared/index.ts") == []

    def test_remove_file(self, builder: GraphBuilder) -> None:
        builder.apply_change("shared/index.ts", "removed")
        assert "shared/index.ts" not in builder.graph
        assert builder.graph.dependencies("client/app.ts") == []

    def test_excluded_file_not_added(self, builder: GraphBuilder) -> None:
        builder.apply_change("dist/bundle.ts", "added", "export const x = 1;\n")
        assert "dist/bundle.ts" not in builder.graph

    def test_relative_key(self, builder: GraphBuilder) -> None:
        assert builder.relative("./client/app.ts") == "client/app.ts"
        assert builder.relative("client\\app.ts") == "client/app.ts"


class TestFilesystemScan:
    """Tests for scanning a real directory."""

    @pytest.fixture
    def temp_dir(self):
        """Create a temporary project directory."""
        with tempfile.TemporaryDirectory() as td:
            root = Path(td).resolve()
            (root / "shared").mkdir()
            (root / "client").mkdir()
            (root / ".cache").mkdir()
            (root / "shared" / "types.ts").write_text("export interface User {\n  id: string;\n}\n")
            (root / "client" / "app.ts").write_text("import { User } from '../shared/types';\n")
            (root / ".cache" / "junk.ts").write_text("export const junk = 1;\n")
            yield root

    def test_scan_directory(self, temp_dir: Path) -> None:
        builder = GraphBuilder()
        graph = builder.scan(temp_dir)
        assert [f.path for f in graph.files()] == ["client/app.ts", "shared/types.ts"]
        assert graph.get_file("shared/types.ts").mtime is not None
        assert [e.target for e in graph.dependencies("client/app.ts")] == ["shared/types.ts"]

    def test_detected_roles(self, temp_dir: Path) -> None:
        graph = GraphBuilder().scan(temp_dir)
        assert graph.get_file("shared/types.ts").role is Role.SHARED
        assert graph.get_file("client/app.ts").role is Role.CLIENT

    def test_absolute_paths_made_relative(self, temp_dir: Path) -> None:
        builder = GraphBuilder()
        builder.scan(temp_dir)
        assert builder.relative(temp_dir / "client" / "app.ts") == "client/app.ts"

    def test_missing_root(self, temp_dir: Path) -> None:
        with pytest.raises(ProjectRootError):
            GraphBuilder().scan(temp_dir / "missing")

    def test_root_required_without_content_map(self) -> None:
        with pytest.raises(ProjectRootError):
            GraphBuilder().scan()


class TestRoleClassifier:
    """Tests for role classification."""

    def test_detect_from_content_and_names(self) -> None:
        classifier = RoleClassifier(EngineConfig())
        detected = classifier.detect(
            {
                "shared/types.ts": "export interface User {\n  id: string;\n}\n",
                "web/app.tsx": "import React from 'react';\nconst [a, setA] = useState(0);\n",
                "backend/server.ts": "import express from 'express';\napp.get('/x', handler);\n",
                "misc/util.ts": "export const x = 1;\n",
            }
        )
        assert detected == {
            "backend": Role.SERVER,
            "shared": Role.SHARED,
            "web": Role.CLIENT,
        }
        assert classifier.classify("misc/util.ts") is Role.UNCLASSIFIED
        assert classifier.classify("web/app.tsx") is Role.CLIENT

    def test_detect_descends_wrapping_directory(self) -> None:
        classifier = RoleClassifier(EngineConfig())
        detected = classifier.detect({"src/shared/a.ts": "", "src/client/b.ts": ""})
        assert detected == {"src/client": Role.CLIENT, "src/shared": Role.SHARED}
        assert classifier.classify("src/shared/a.ts") is Role.SHARED

    def test_detect_below_minimum_score(self) -> None:
        classifier = RoleClassifier(EngineConfig())
        assert classifier.detect({"misc/a.ts": "const a = 1;\n", "other/b.ts": ""}) == {}

    def test_explicit_longest_directory_wins(self) -> None:
        classifier = RoleClassifier(EngineConfig(shared_dirs=["src"], client_dirs=["src/client"]))
        assert classifier.explicit
        assert classifier.classify("src/client/x.ts") is Role.CLIENT
        assert classifier.classify("src/other.ts") is Role.SHARED
        assert classifier.classify("lib/x.ts") is Role.UNCLASSIFIED

    def test_explicit_tie_prefers_shared(self) -> None:
        classifier = RoleClassifier(EngineConfig(shared_dirs=["common"], client_dirs=["common"]))
        assert classifier.classify("common/x.ts") is Role.SHARED

    def test_explicit_skips_detection(self) -> None:
        classifier = RoleClassifier(EngineConfig(client_dirs=["app"]))
        assert classifier.detect({"shared/a.ts": "export interface A {}\n"}) == {"app": Role.CLIENT}

    def test_in_directory(self) -> None:
        assert in_directory("packages/app/shared/x.ts", "shared")
        assert in_directory("Shared/x.ts", "shared")
        assert not in_directory("sharedlib/x.ts", "shared")
        assert not in_directory("x.ts", "")
