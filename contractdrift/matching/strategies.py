"""Name-similarity scoring strategies.

Each strategy is a plain function ``(candidate, indexed) -> float`` returning
a score in [0, 1]. ``candidate`` is the name found at a usage site and
``indexed`` a declared name; some strategies are asymmetric.
"""

from __future__ import annotations

import re
from collections.abc import Callable

Strategy = Callable[[str, str], float]

SYNONYMS: dict[str, tuple[str, ...]] = {
    "get": ("fetch", "retrieve", "find", "load", "read"),
    "create": ("add", "insert", "new", "make", "register", "post"),
    "update": ("edit", "modify", "change", "patch", "set"),
    "delete": ("remove", "destroy", "drop", "cancel", "erase"),
    "list": ("items", "array", "collection", "all"),
    "user": ("account", "profile", "member"),
    "total": ("amount", "sum", "price", "cost"),
    "name": ("title", "label", "text"),
    "id": ("identifier", "key", "code"),
    "date": ("time", "timestamp", "at", "when"),
    "email": ("mail", "address"),
    "status": ("state", "condition"),
    "data": ("info", "details", "payload", "body"),
    "by": ("for", "with", "from"),
}

# Words that commonly prefix a field with its owning entity (userEmail -> email).
CONTEXT_PREFIXES = (
    "user",
    "product",
    "order",
    "item",
    "account",
    "customer",
    "payment",
    "cart",
    "session",
    "request",
    "response",
    "current",
)

_GROUPS = [frozenset((key, *words)) for key, words in SYNONYMS.items()]

_CASE_BOUNDARY_RE = re.compile(r"([a-z0-9])([A-Z])")
_ACRONYM_BOUNDARY_RE = re.compile(r"([A-Z]+)([A-Z][a-z])")
_SEPARATOR_RE = re.compile(r"[\s_\-.]+")


def levenshtein(a: str, b: str) -> int:
    """Edit distance between two strings."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, 1):
        current = [i]
        for j, cb in enumerate(b, 1):
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + (ca != cb),
                )
            )
        previous = current
    return previous[-1]


def tokenize(name: str) -> list[str]:
    """Split an identifier on case, underscore, hyphen and dot boundaries."""
    spaced = _CASE_BOUNDARY_RE.sub(r"\1 \2", name)
    spaced = _ACRONYM_BOUNDARY_RE.sub(r"\1 \2", spaced)
    return [t.lower() for t in _SEPARATOR_RE.split(spaced) if t]


def are_synonyms(a: str, b: str) -> bool:
    """Whether two distinct lowercase words belong to the same synonym group."""
    return a != b and any(a in group and b in group for group in _GROUPS)


def edit_distance_score(candidate: str, indexed: str) -> float:
    a, b = candidate.lower(), indexed.lower()
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0
    return 1.0 - levenshtein(a, b) / max(len(a), len(b))


def synonym_overlap_score(candidate: str, indexed: str) -> float:
    """Token overlap where synonym tokens count slightly less than identical ones."""
    tokens_a, tokens_b = tokenize(candidate), tokenize(indexed)
    if not tokens_a or not tokens_b:
        return 0.0
    shorter, longer = sorted((tokens_a, tokens_b), key=len)
    matched = 0.0
    for token in shorter:
        if token in longer:
            matched += 1.0
        elif any(are_synonyms(token, other) for other in longer):
            matched += 0.9
    return matched / len(longer)


def affix_score(candidate: str, indexed: str) -> float:
    """Score the context-prefixed field pattern (``userEmail`` vs ``email``)."""
    a, b = candidate.lower(), indexed.lower()
    if len(a) < 2 or len(b) < 2 or a == b:
        return 0.0
    if a.endswith(b):
        prefix = a[: -len(b)]
        if any(prefix.endswith(word) for word in CONTEXT_PREFIXES):
            return 0.9
        return 0.8
    if b.endswith(a) or b.startswith(a):
        return 0.7
    if a.startswith(b):
        return 0.75
    return 0.0


def token_jaccard_score(candidate: str, indexed: str) -> float:
    """Jaccard similarity of token sets, tolerant to synonyms and small typos."""
    set_a, set_b = set(tokenize(candidate)), set(tokenize(indexed))
    if not set_a or not set_b:
        return 0.0
    shared = [t for t in set_a if t in set_b or _has_close_match(t, set_b)]
    return len(shared) / len(set_a | set_b)


def _has_close_match(token: str, others: set[str]) -> bool:
    for other in others:
        if are_synonyms(token, other):
            return True
        if max(len(token), len(other)) >= 4 and levenshtein(token, other) <= 2:
            return True
    return False


DEFAULT_STRATEGIES: tuple[Strategy, ...] = (
    edit_distance_score,
    synonym_overlap_score,
    affix_score,
    token_jaccard_score,
)
