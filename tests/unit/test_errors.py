"""Tests for error handling paths."""

import tempfile
from pathlib import Path

import pytest

from contractdrift.core.config import EngineConfig
from contractdrift.core.engine import ContractEngine
from contractdrift.core.exceptions import (
    ConfigError,
    ContractDriftError,
    ExtractionError,
    ProjectRootError,
)
from contractdrift.core.graph import GraphBuilder
from contractdrift.core.models import MismatchKind
from contractdrift.languages import TypeScriptExtractor, TypeScriptUsageScanner

SHARED_API = """\
export function getUserById(id: string) {
  return id;
}
"""

CONSUMER = """\
import { getUser } from '../shared/api';

getUser('42');
"""


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as td:
        yield Path(td)


@pytest.fixture
def config() -> EngineConfig:
    return EngineConfig(shared_dirs=["shared"], client_dirs=["client"])


class TestExceptionHierarchy:
    """Every library error derives from ContractDriftError."""

    @pytest.mark.parametrize("error", [ProjectRootError, ConfigError, ExtractionError])
    def test_subclasses(self, error: type[Exception]) -> None:
        assert issubclass(error, ContractDriftError)


class TestExtractionErrors:
    """Tests for extraction error handling."""

    def test_binary_shared_file(self) -> None:
        with pytest.raises(ExtractionError) as exc_info:
            TypeScriptExtractor().extract_symbols("shared/blob.ts", "\x00\x01\x02")
        assert "shared/blob.ts" in str(exc_info.value)

    def test_binary_consumer_file(self) -> None:
        with pytest.raises(ExtractionError) as exc_info:
            TypeScriptUsageScanner().scan("client/blob.ts", "abc\x00")
        assert "Binary content" in str(exc_info.value)


class TestProjectRootErrors:
    """Tests for project root validation."""

    def test_missing_root(self, temp_dir: Path) -> None:
        engine = ContractEngine()
        with pytest.raises(ProjectRootError):
            engine.run(temp_dir / "does-not-exist")

    def test_root_is_a_file(self, temp_dir: Path) -> None:
        file_path = temp_dir / "app.ts"
        file_path.write_text("export const x = 1;\n")
        with pytest.raises(ProjectRootError):
            GraphBuilder().scan(file_path)

    def test_no_root_without_content_map(self) -> None:
        with pytest.raises(ProjectRootError):
            GraphBuilder().scan()


class TestEngineErrors:
    """Failures on one file are recorded and the run continues."""

    def test_binary_consumer_recorded(self, config: EngineConfig) -> None:
        files = {
            "shared/api.ts": SHARED_API,
            "client/app.ts": CONSUMER,
            "client/bad.ts": "abc\x00def",
        }
        result = ContractEngine(config, files).run()

        assert result.stats.errors == ["client/bad.ts: Binary content in client/bad.ts"]
        assert [f.kind for f in result.findings] == [MismatchKind.FUNCTION_NAME]
        assert result.findings[0].file == "client/app.ts"

    def test_binary_shared_recorded(self, config: EngineConfig) -> None:
        files = {
            "shared/api.ts": SHARED_API,
            "shared/blob.ts": "\x00",
            "client/app.ts": CONSUMER,
        }
        result = ContractEngine(config, files).run()

        assert result.stats.errors == ["shared/blob.ts: Binary content in shared/blob.ts"]
        assert result.stats.functions == 1
        assert len(result.findings) == 1

    def test_check_unknown_file(self, config: EngineConfig) -> None:
        engine = ContractEngine(config, {"shared/api.ts": SHARED_API})
        engine.run()
        with pytest.raises(ContractDriftError) as exc_info:
            engine.check_file("client/missing.ts")
        assert "client/missing.ts" in str(exc_info.value)

    def test_invalid_change_kind(self, config: EngineConfig) -> None:
        engine = ContractEngine(config, {"shared/api.ts": SHARED_API})
        engine.run()
        with pytest.raises(ValueError):
            engine.apply_change("client/app.ts", "renamed", CONSUMER)
