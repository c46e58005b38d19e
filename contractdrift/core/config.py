"""Engine configuration."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from typing import Any

from contractdrift.core.exceptions import ConfigError

DEFAULT_INCLUDE = [
    "**/*.ts",
    "**/*.tsx",
    "**/*.mts",
    "**/*.cts",
    "**/*.js",
    "**/*.jsx",
    "**/*.mjs",
    "**/*.cjs",
]

DEFAULT_EXCLUDE = [
    "**/node_modules/**",
    "**/dist/**",
    "**/build/**",
    "**/coverage/**",
]

SEVERITIES = ("error", "warning", "info")

# Keys accepted from the config layer's camelCase documents.
_ALIASES = {
    "similarityThreshold": "similarity_threshold",
    "maxCandidates": "max_candidates",
    "maxWorkers": "max_workers",
    "checkParameterNames": "check_parameters",
    "checkTypeFields": "check_type_fields",
    "generateQuickFixes": "quick_fixes",
    "scanShared": "scan_shared",
    "sharedDirectories": "shared_dirs",
    "clientDirectories": "client_dirs",
    "serverDirectories": "server_dirs",
}


@dataclass
class EngineConfig:
    """Settings for one contract-checking session.

    Role directory lists left as None are detected from file contents.
    """

    include: list[str] = field(default_factory=lambda: list(DEFAULT_INCLUDE))
    exclude: list[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE))
    shared_dirs: list[str] | None = None
    client_dirs: list[str] | None = None
    server_dirs: list[str] | None = None
    similarity_threshold: float = 0.7
    max_candidates: int = 3
    max_workers: int = 4
    check_parameters: bool = True
    check_type_fields: bool = True
    quick_fixes: bool = True
    scan_shared: bool = False
    severity: str = "error"

    def __post_init__(self) -> None:
        if not 0.0 < self.similarity_threshold <= 1.0:
            raise ConfigError(
                f"similarity_threshold must be in (0, 1], got {self.similarity_threshold}"
            )
        if self.max_candidates < 1:
            raise ConfigError(f"max_candidates must be at least 1, got {self.max_candidates}")
        if self.max_workers < 1:
            raise ConfigError(f"max_workers must be at least 1, got {self.max_workers}")
        if self.severity not in SEVERITIES:
            raise ConfigError(f"severity must be one of {', '.join(SEVERITIES)}")

    @property
    def has_role_dirs(self) -> bool:
        """True when any role directory list was configured explicitly."""
        return any(d is not None for d in (self.shared_dirs, self.client_dirs, self.server_dirs))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EngineConfig:
        """Build a config from a plain mapping.

        Accepts snake_case field names, their camelCase aliases, and the
        nested ``directories`` / ``patterns`` sections of a project config.
        """
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}

        directories = data.get("directories") or {}
        for role in ("shared", "client", "server"):
            if role in directories:
                kwargs[f"{role}_dirs"] = list(directories[role])

        patterns = data.get("patterns") or {}
        for key in ("include", "exclude"):
            if key in patterns:
                kwargs[key] = list(patterns[key])

        for key, value in data.items():
            if key in ("directories", "patterns"):
                continue
            name = _ALIASES.get(key, key)
            if name not in known:
                raise ConfigError(f"Unknown configuration key: {key}")
            kwargs[name] = value

        return cls(**kwargs)
