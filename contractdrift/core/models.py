"""Data models for contractdrift."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Role(Enum):
    """Architectural role of a source file."""

    SHARED = "shared"
    CLIENT = "client"
    SERVER = "server"
    UNCLASSIFIED = "unclassified"

    @property
    def is_consumer(self) -> bool:
        return self in (Role.CLIENT, Role.SERVER)


class Language(Enum):
    """Languages with a registered extractor."""

    TYPESCRIPT = "typescript"
    JAVASCRIPT = "javascript"


LANGUAGE_EXTENSIONS: dict[str, Language] = {
    ".ts": Language.TYPESCRIPT,
    ".tsx": Language.TYPESCRIPT,
    ".mts": Language.TYPESCRIPT,
    ".cts": Language.TYPESCRIPT,
    ".js": Language.JAVASCRIPT,
    ".jsx": Language.JAVASCRIPT,
    ".mjs": Language.JAVASCRIPT,
    ".cjs": Language.JAVASCRIPT,
}

# Extensions tried, in order, when resolving an extensionless relative import.
EXTENSION_FAMILIES: dict[Language, list[str]] = {
    Language.TYPESCRIPT: [".ts", ".tsx", ".d.ts", ".mts", ".cts", ".js", ".jsx", ".mjs", ".cjs"],
    Language.JAVASCRIPT: [".js", ".jsx", ".mjs", ".cjs", ".ts", ".tsx", ".mts", ".cts"],
}


def language_for(path: str) -> Language | None:
    """Look up the language registered for a path's extension."""
    dot = path.rfind(".")
    if dot == -1:
        return None
    return LANGUAGE_EXTENSIONS.get(path[dot:].lower())


class ChangeKind(Enum):
    """Kinds of file events accepted by incremental updates."""

    ADDED = "added"
    CHANGED = "changed"
    REMOVED = "removed"


class UsageKind(Enum):
    """Kinds of usage sites found in consumer code."""

    CALL = "call"
    FIELD_ACCESS = "field-access"


class MismatchKind(Enum):
    """Classification of a contract mismatch."""

    FUNCTION_NAME = "function-name"
    PARAMETER_NAME = "parameter-name"
    PARAMETER_COUNT = "parameter-count"
    TYPE_FIELD = "type-field"


class ShapeKind(Enum):
    """Declaration form of an exported data shape."""

    INTERFACE = "interface"
    TYPE = "type"
    RECORD = "record"


@dataclass
class SourceFile:
    """A file node in the source graph."""

    path: str
    language: Language
    role: Role
    content: str
    mtime: float | None = None
    content_hash: str = ""

    def __post_init__(self) -> None:
        if not self.content_hash:
            self.content_hash = compute_content_hash(self.content)


@dataclass(frozen=True)
class DependencyEdge:
    """A resolved local import from one file to another."""

    source: str
    target: str
    specifier: str
    line: int
    names: tuple[str, ...] = ()


@dataclass(frozen=True)
class Parameter:
    """A declared function parameter."""

    name: str
    optional: bool = False
    type_text: str | None = None
    default: str | None = None
    rest: bool = False
    destructured_keys: tuple[str, ...] = ()

    @property
    def required(self) -> bool:
        return not (self.optional or self.default is not None or self.rest)


@dataclass(frozen=True)
class ExportedFunction:
    """A function or exported-class method declared in a shared file."""

    name: str
    file: str
    line: int
    parameters: tuple[Parameter, ...] = ()
    is_async: bool = False
    class_name: str | None = None

    @property
    def identity(self) -> str:
        return f"{self.class_name}.{self.name}" if self.class_name else self.name

    @property
    def required_count(self) -> int:
        return sum(1 for p in self.parameters if p.required)

    @property
    def parameter_names(self) -> list[str]:
        """Names a caller may use for object-style arguments."""
        names: list[str] = []
        for param in self.parameters:
            if param.destructured_keys:
                names.extend(param.destructured_keys)
            else:
                names.append(param.name)
        return names


@dataclass(frozen=True)
class ShapeField:
    """A field of an exported data shape."""

    name: str
    optional: bool = False
    type_text: str | None = None
    line: int = 0


@dataclass(frozen=True)
class ExportedShape:
    """An exported interface, object type alias, or schema record."""

    name: str
    kind: ShapeKind
    file: str
    line: int
    fields: tuple[ShapeField, ...] = ()

    @property
    def identity(self) -> str:
        return self.name

    def has_field(self, name: str) -> bool:
        return any(f.name == name for f in self.fields)


@dataclass(frozen=True)
class UsageSite:
    """A call site or field access found in a consumer file."""

    kind: UsageKind
    name: str
    file: str
    line: int
    column: int
    arguments: str | None = None
    receiver: str | None = None


@dataclass(frozen=True)
class Location:
    """A position in the project."""

    file: str
    line: int
    column: int | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"file": self.file, "line": self.line}
        if self.column is not None:
            result["column"] = self.column
        return result


@dataclass(frozen=True)
class Mismatch:
    """A usage whose name drifts from a declared contract."""

    kind: MismatchKind
    expected: str
    found: str
    confidence: float
    declared_in: Location
    used_in: Location
    alternatives: tuple[str, ...] = ()
    owner: str | None = None
    suggestion: str | None = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence < 1.0:
            raise ValueError(f"Mismatch confidence must be in [0, 1): {self.confidence}")

    @property
    def sort_key(self) -> tuple[str, int, int]:
        return (self.used_in.file, self.used_in.line, self.used_in.column or 0)


@dataclass(frozen=True)
class Finding:
    """A reportable finding built from exactly one Mismatch."""

    id: str
    kind: MismatchKind
    severity: str
    message: str
    file: str
    line: int
    column: int | None
    suggestion: str | None
    mismatch: Mismatch
    rule_id: str = "function-signature-matching"

    @property
    def payload(self) -> dict[str, Any]:
        m = self.mismatch
        return {
            "expected": m.expected,
            "found": m.found,
            "confidence": m.confidence,
            "declaredIn": m.declared_in.to_dict(),
            "alternatives": list(m.alternatives),
            "owner": m.owner,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "ruleId": self.rule_id,
            "kind": self.kind.value,
            "severity": self.severity,
            "message": self.message,
            "file": self.file,
            "line": self.line,
            "column": self.column,
            "suggestion": self.suggestion,
            "payload": self.payload,
        }


def finding_id(mismatch: Mismatch) -> str:
    """Stable identifier derived from a mismatch's kind, location and names."""
    used = mismatch.used_in
    key = "|".join(
        [
            mismatch.kind.value,
            used.file,
            str(used.line),
            str(used.column or 0),
            mismatch.found,
            mismatch.expected,
        ]
    )
    return "sig-" + hashlib.sha1(key.encode("utf-8")).hexdigest()[:10]


def compute_content_hash(content: str) -> str:
    """Compute SHA-256 hash of file content."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


class RunStats:
    """Statistics from a check run."""

    def __init__(self) -> None:
        self.files: int = 0
        self.shared_files: int = 0
        self.consumer_files: int = 0
        self.functions: int = 0
        self.shapes: int = 0
        self.usages: int = 0
        self.skipped: int = 0
        self.errors: list[str] = []

    def to_dict(self) -> dict[str, Any]:
        return {
            "files": self.files,
            "shared_files": self.shared_files,
            "consumer_files": self.consumer_files,
            "functions": self.functions,
            "shapes": self.shapes,
            "usages": self.usages,
            "skipped": self.skipped,
            "errors": list(self.errors),
        }

    def __repr__(self) -> str:
        return (
            f"RunStats(files={self.files}, shared={self.shared_files}, "
            f"consumers={self.consumer_files}, functions={self.functions}, "
            f"shapes={self.shapes}, usages={self.usages}, skipped={self.skipped}, "
            f"errors={len(self.errors)})"
        )


@dataclass
class CheckResult:
    """Outcome of a full run."""

    findings: list[Finding]
    stats: RunStats
    contracts_indexed: bool
    cancelled: bool = False


@dataclass
class ChangeResult:
    """Outcome of an incremental single-file update."""

    path: str
    kind: ChangeKind
    role: Role
    findings: list[Finding] = field(default_factory=list)
    affected: list[str] = field(default_factory=list)
    rescanned: list[str] = field(default_factory=list)
