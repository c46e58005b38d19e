"""Turn usage sites into mismatches and mismatches into findings."""

from __future__ import annotations

import logging
import posixpath
import re

from contractdrift.core.config import EngineConfig
from contractdrift.core.index import ExportIndex
from contractdrift.core.models import (
    ExportedFunction,
    ExportedShape,
    Finding,
    Location,
    Mismatch,
    MismatchKind,
    ShapeField,
    UsageKind,
    UsageSite,
    finding_id,
)
from contractdrift.languages.lexing import split_top_level
from contractdrift.matching.similarity import SimilarityEngine, SimilarityMatch

logger = logging.getLogger(__name__)

PARAMETER_COUNT_CONFIDENCE = 0.9

_OBJECT_KEY_RE = re.compile(r"^\s*([A-Za-z_$][\w$]*)\s*(?::|$)")

_NAME_KINDS = (MismatchKind.FUNCTION_NAME, MismatchKind.PARAMETER_NAME, MismatchKind.TYPE_FIELD)


class MismatchSynthesizer:
    """Classifies usage sites against the export index."""

    def __init__(
        self,
        index: ExportIndex,
        config: EngineConfig | None = None,
        similarity: SimilarityEngine | None = None,
    ) -> None:
        self.index = index
        self.config = config or EngineConfig()
        self.similarity = similarity or SimilarityEngine(
            threshold=self.config.similarity_threshold,
            max_candidates=self.config.max_candidates,
        )

    def analyze(self, sites: list[UsageSite]) -> list[Mismatch]:
        """Mismatches for usage sites, in site order."""
        functions = self.index.functions()
        fields = self.index.field_entries()
        mismatches: list[Mismatch] = []

        for site in sites:
            if site.kind is UsageKind.CALL:
                candidates = [f for f in functions if f.file != site.file]
                mismatches.extend(self._check_call(site, candidates))
            elif self.config.check_type_fields:
                candidates_f = [entry for entry in fields if entry[1].file != site.file]
                mismatch = self._check_field(site, candidates_f)
                if mismatch is not None:
                    mismatches.append(mismatch)

        if mismatches:
            logger.debug("%d mismatches from %d usage sites", len(mismatches), len(sites))
        return mismatches

    def findings(self, sites: list[UsageSite]) -> list[Finding]:
        """Findings for usage sites, in site order."""
        return [self.to_finding(m) for m in self.analyze(sites)]

    # -- calls -------------------------------------------------------------

    def _check_call(self, site: UsageSite, candidates: list[ExportedFunction]) -> list[Mismatch]:
        exact = [f for f in candidates if f.name == site.name]
        if exact:
            plain = [f for f in exact if f.class_name is None]
            func = (plain or exact)[0]
            if not self.config.check_parameters or site.arguments is None:
                return []
            return self._check_arguments(site, func)

        ranked = self.similarity.rank(site.name, candidates, key=lambda f: f.name)
        if not ranked:
            return []
        best = ranked[0]
        func = best.entry
        return [
            self._mismatch(
                MismatchKind.FUNCTION_NAME,
                site,
                best,
                ranked,
                declared_in=Location(func.file, func.line),
                owner=func.identity,
            )
        ]

    def _check_arguments(self, site: UsageSite, func: ExportedFunction) -> list[Mismatch]:
        if site.arguments is None:
            return []
        mismatches: list[Mismatch] = []
        declared_in = Location(func.file, func.line)

        count = count_arguments(site.arguments)
        required = func.required_count
        if count < required:
            mismatches.append(
                Mismatch(
                    kind=MismatchKind.PARAMETER_COUNT,
                    expected=str(required),
                    found=str(count),
                    confidence=PARAMETER_COUNT_CONFIDENCE,
                    declared_in=declared_in,
                    used_in=Location(site.file, site.line, site.column),
                    owner=func.identity,
                )
            )

        names = func.parameter_names
        if not names:
            return mismatches
        for key in object_keys(site.arguments):
            if key in names:
                continue
            ranked = self.similarity.rank(key, names, key=lambda n: n)
            if not ranked:
                continue
            mismatches.append(
                self._mismatch(
                    MismatchKind.PARAMETER_NAME,
                    site,
                    ranked[0],
                    ranked,
                    declared_in=declared_in,
                    owner=func.identity,
                    found=key,
                )
            )
        return mismatches

    # -- fields ------------------------------------------------------------

    def _check_field(
        self,
        site: UsageSite,
        candidates: list[tuple[ShapeField, ExportedShape]],
    ) -> Mismatch | None:
        if any(f.name == site.name for f, _ in candidates):
            return None
        ranked = self.similarity.rank(site.name, candidates, key=lambda entry: entry[0].name)
        if not ranked:
            return None
        shape_field, shape = ranked[0].entry
        return self._mismatch(
            MismatchKind.TYPE_FIELD,
            site,
            ranked[0],
            ranked,
            declared_in=Location(shape.file, shape_field.line or shape.line),
            owner=shape.identity,
        )

    # -- construction ------------------------------------------------------

    def _mismatch(
        self,
        kind: MismatchKind,
        site: UsageSite,
        best: SimilarityMatch,
        ranked: list[SimilarityMatch],
        declared_in: Location,
        owner: str,
        found: str | None = None,
    ) -> Mismatch:
        found = found or site.name
        suggestion = None
        if self.config.quick_fixes:
            suggestion = (
                f"Rename '{found}' to '{best.name}' in {posixpath.basename(site.file)}:{site.line}"
            )
        return Mismatch(
            kind=kind,
            expected=best.name,
            found=found,
            confidence=best.score,
            declared_in=declared_in,
            used_in=Location(site.file, site.line, site.column),
            alternatives=tuple(m.name for m in ranked[1:]),
            owner=owner,
            suggestion=suggestion,
        )

    def to_finding(self, mismatch: Mismatch) -> Finding:
        """Build the reportable finding for a mismatch."""
        used = mismatch.used_in
        return Finding(
            id=finding_id(mismatch),
            kind=mismatch.kind,
            severity=self.config.severity,
            message=format_message(mismatch),
            file=used.file,
            line=used.line,
            column=used.column,
            suggestion=mismatch.suggestion or _hint(mismatch),
            mismatch=mismatch,
        )


def count_arguments(arguments: str) -> int:
    """Number of arguments in a call's argument text.

    This is a plain comma split: commas nested inside calls, literals or type
    arguments are counted too, so the result can only overestimate.
    """
    if not arguments.strip():
        return 0
    return len(arguments.split(","))


def object_keys(arguments: str) -> list[str]:
    """Keys of the first object literal in a call's arguments (``key:`` or shorthand)."""
    start = arguments.find("{")
    if start == -1:
        return []
    depth = 0
    end = len(arguments)
    for i in range(start, len(arguments)):
        if arguments[i] == "{":
            depth += 1
        elif arguments[i] == "}":
            depth -= 1
            if depth == 0:
                end = i
                break

    keys: list[str] = []
    for item in split_top_level(arguments[start + 1 : end]):
        if item.strip().startswith("..."):
            continue
        match = _OBJECT_KEY_RE.match(item)
        if match and match.group(1) not in keys:
            keys.append(match.group(1))
    return keys


def format_message(mismatch: Mismatch) -> str:
    """Human-readable message for a mismatch."""
    m = mismatch
    if m.kind is MismatchKind.FUNCTION_NAME:
        return (
            f"Function name mismatch: '{m.found}' called but '{m.expected}' "
            "is defined in shared contracts"
        )
    if m.kind is MismatchKind.PARAMETER_COUNT:
        return (
            f"Parameter count mismatch: '{m.owner}' expects {m.expected} required "
            f"parameters but {m.found} provided"
        )
    if m.kind is MismatchKind.PARAMETER_NAME:
        return (
            f"Parameter name mismatch: '{m.found}' used but '{m.expected}' "
            f"is the defined parameter of '{m.owner}'"
        )
    return (
        f"Type field mismatch: '{m.found}' accessed but '{m.owner}.{m.expected}' "
        "is the defined field"
    )


def _hint(mismatch: Mismatch) -> str:
    if mismatch.kind in _NAME_KINDS:
        return f"Rename to '{mismatch.expected}'"
    return f"Pass at least {mismatch.expected} argument(s) to '{mismatch.owner}'"
