"""Role classification: shared contracts, client code, server code."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping

from contractdrift.core.config import EngineConfig
from contractdrift.core.models import Role

logger = logging.getLogger(__name__)

MIN_ROLE_SCORE = 3

# Tie-break order: earlier roles win.
ROLE_PRIORITY = (Role.SHARED, Role.SERVER, Role.CLIENT)

ROLE_NAME_HINTS: dict[Role, frozenset[str]] = {
    Role.CLIENT: frozenset(
        {"client", "frontend", "web", "app", "pages", "components", "views", "ui"}
    ),
    Role.SERVER: frozenset(
        {"server", "backend", "api", "services", "functions", "lambda", "routes", "controllers"}
    ),
    Role.SHARED: frozenset(
        {"shared", "common", "contracts", "lib", "libs", "core", "types", "models", "schemas"}
    ),
}

ROLE_PATTERNS: dict[Role, list[re.Pattern[str]]] = {
    Role.CLIENT: [
        re.compile(
            r"""from\s+['"](?:react|react-dom|vue|svelte|@angular/[\w-]+|"""
            r"""next/[\w/-]+|solid-js)['"]"""
        ),
        re.compile(r"\buse(?:State|Effect|Memo|Callback|Ref|Context|Reducer|Query)\s*\("),
        re.compile(r"<[A-Z][A-Za-z0-9]*[\s/>]"),
        re.compile(r"\b(?:document|window|localStorage)\."),
    ],
    Role.SERVER: [
        re.compile(
            r"""(?:from\s+|require\(\s*)['"](?:express|fastify|koa|@nestjs/[\w-]+|hono|"""
            r"""@prisma/client|mongoose|sequelize|typeorm|pg|mysql2)['"]"""
        ),
        re.compile(r"\b(?:app|router|server)\.(?:get|post|put|patch|delete|use|route)\s*\("),
        re.compile(r"\b(?:req|request)\.(?:body|params|query|headers)\b"),
        re.compile(r"\b(?:res|reply)\.(?:status|json|send)\s*\("),
        re.compile(r"@(?:Controller|Get|Post|Put|Patch|Delete|Injectable)\s*\("),
        re.compile(r"\.(?:findMany|findUnique|findById|findOne|findAll)\s*\("),
    ],
    Role.SHARED: [
        re.compile(r"^\s*export\s+(?:declare\s+)?(?:interface|type|enum)\s", re.MULTILINE),
        re.compile(r"^\s*export\s+const\s+\w+\s*=\s*(?:\w+\.)?object\(", re.MULTILINE),
    ],
}


def in_directory(path: str, directory: str) -> bool:
    """Whether a project-relative path lies under a directory (case-insensitive)."""
    normalized = path.replace("\\", "/").lower()
    d = directory.replace("\\", "/").strip("/").lower()
    if not d:
        return False
    return normalized.startswith(d + "/") or f"/{d}/" in normalized


def score_content(content: str) -> dict[Role, int]:
    """Count role-indicative pattern matches in one file."""
    return {
        role: sum(len(pattern.findall(content)) for pattern in patterns)
        for role, patterns in ROLE_PATTERNS.items()
    }


class RoleClassifier:
    """Assigns each file a single role from a directory-to-role map.

    The map comes from explicit configuration when any role directory list is
    set; otherwise it is detected once from file contents with :meth:`detect`.
    """

    def __init__(self, config: EngineConfig) -> None:
        self.config = config
        self.directories: dict[str, Role] = {}
        if config.has_role_dirs:
            for role, dirs in (
                (Role.CLIENT, config.client_dirs),
                (Role.SERVER, config.server_dirs),
                (Role.SHARED, config.shared_dirs),
            ):
                for d in dirs or []:
                    self._assign(d.replace("\\", "/").strip("/"), role)

    @property
    def explicit(self) -> bool:
        return self.config.has_role_dirs

    def _assign(self, directory: str, role: Role) -> None:
        current = self.directories.get(directory)
        if current is None or ROLE_PRIORITY.index(role) < ROLE_PRIORITY.index(current):
            self.directories[directory] = role

    def classify(self, path: str) -> Role:
        """Role of a file; the longest matching directory wins."""
        best: tuple[int, int] | None = None
        role = Role.UNCLASSIFIED
        for directory, candidate in self.directories.items():
            if not in_directory(path, directory):
                continue
            rank = (len(directory), -ROLE_PRIORITY.index(candidate))
            if best is None or rank > best:
                best = rank
                role = candidate
        return role

    def detect(self, contents: Mapping[str, str]) -> dict[str, Role]:
        """Detect the directory map from file contents.

        Does nothing when directories were configured explicitly.
        """
        if self.explicit:
            return self.directories

        groups: dict[str, list[str]] = {}
        for path in contents:
            parts = path.split("/")
            if len(parts) > 1:
                groups.setdefault(parts[0], []).append(path)

        prefix = ""
        # Descend through a single wrapping directory such as src/
        while len(groups) == 1 and all(p.count("/") > prefix.count("/") + 1 for p in contents):
            (only,) = groups
            prefix = only + "/"
            groups = {}
            for path in contents:
                rest = path[len(prefix) :].split("/")
                if len(rest) > 1:
                    groups.setdefault(prefix + rest[0], []).append(path)

        detected: dict[str, Role] = {}
        for directory in sorted(groups):
            role = self._score_directory(directory, [contents[p] for p in groups[directory]])
            if role is not Role.UNCLASSIFIED:
                detected[directory] = role

        self.directories = detected
        logger.info(
            "Detected roles: %s",
            ", ".join(f"{d}={r.value}" for d, r in detected.items()) or "none",
        )
        return detected

    def _score_directory(self, directory: str, texts: list[str]) -> Role:
        totals = {role: 0 for role in ROLE_PRIORITY}
        for text in texts:
            for role, count in score_content(text).items():
                totals[role] += count

        name = directory.rsplit("/", 1)[-1].lower()
        for role, hints in ROLE_NAME_HINTS.items():
            if name in hints:
                totals[role] += MIN_ROLE_SCORE

        best = max(ROLE_PRIORITY, key=lambda r: (totals[r], -ROLE_PRIORITY.index(r)))
        logger.debug("Role scores for %s: %s", directory, {r.value: s for r, s in totals.items()})
        if totals[best] < MIN_ROLE_SCORE:
            return Role.UNCLASSIFIED
        return best
