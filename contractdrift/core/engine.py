"""Checking session: full runs, incremental updates, finding cache."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from contractdrift.core.config import EngineConfig
from contractdrift.core.exceptions import ContractDriftError, ExtractionError
from contractdrift.core.graph import GraphBuilder, SourceGraph, affected_files
from contractdrift.core.index import ExportIndex
from contractdrift.core.models import (
    ChangeKind,
    ChangeResult,
    CheckResult,
    Finding,
    Role,
    RunStats,
    SourceFile,
    UsageSite,
)
from contractdrift.languages import ExtractionResult, get_extractor, get_scanner
from contractdrift.matching import MismatchSynthesizer

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int, int], None]


class ContractEngine:
    """A per-project checking session.

    Owns the source graph, the export index and the per-file finding cache.
    ``run``, ``apply_change`` and ``check_file`` are serialised by a lock;
    within a run, files are processed on a thread pool.
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        files: dict[str, str] | None = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.builder = GraphBuilder(self.config, files)
        self.index = ExportIndex()
        self.synthesizer = MismatchSynthesizer(self.index, self.config)
        self.stats = RunStats()

        self._findings: dict[str, list[Finding]] = {}
        self._sites: dict[str, list[UsageSite]] = {}
        self._lock = threading.Lock()
        self._cancel = threading.Event()
        self._has_run = False

    @property
    def graph(self) -> SourceGraph:
        return self.builder.graph

    def cancel(self) -> None:
        """Ask a running ``run`` to stop before its next file."""
        self._cancel.set()

    # -- full runs ---------------------------------------------------------

    def run(
        self,
        root: Path | str | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> CheckResult:
        """Scan the project, index shared contracts, check every consumer file.

        Raises:
            ProjectRootError: If the root is missing or unreadable.
        """
        with self._lock:
            return self._run(root, on_progress)

    def _run(self, root: Path | str | None, on_progress: ProgressCallback | None) -> CheckResult:
        self._cancel.clear()
        graph = self.builder.scan(root)
        self.index.reset()
        self._findings = {}
        self._sites = {}
        self._has_run = True

        stats = RunStats()
        self.stats = stats
        shared = graph.files(Role.SHARED)
        consumers = self._consumers()
        stats.files = graph.num_nodes
        stats.shared_files = len(shared)
        stats.consumer_files = len(consumers)
        stats.skipped = len(self.builder.skipped)

        total = len(shared) + len(consumers)
        done = 0
        cancelled = False

        with ThreadPoolExecutor(max_workers=self.config.max_workers) as pool:
            # Phase 1: extract shared contracts, commit in path order
            committed: list[tuple[str, ExtractionResult]] = []
            for file, outcome in zip(shared, pool.map(self._extract_task, shared)):
                if outcome is None or self._cancel.is_set():
                    cancelled = True
                    break
                done += 1
                result, error = outcome
                if error is not None:
                    self._record_error(stats, file.path, error)
                elif result is not None:
                    committed.append((file.path, result))
                    stats.functions += len(result.functions)
                    stats.shapes += len(result.shapes)
                if on_progress:
                    on_progress(file.path, done, total)
            self.index.replace_many(committed)

            contracts_indexed = not self.index.is_empty
            if not contracts_indexed:
                logger.info("No shared contracts found; nothing to check")
            elif not cancelled:
                # Phase 2: scan consumers against the index
                for file, scan in zip(consumers, pool.map(self._scan_task, consumers)):
                    if scan is None or self._cancel.is_set():
                        cancelled = True
                        break
                    done += 1
                    sites, findings, error = scan
                    if error is not None:
                        self._record_error(stats, file.path, error)
                    else:
                        self._sites[file.path] = sites
                        self._findings[file.path] = findings
                        stats.usages += len(sites)
                    if on_progress:
                        on_progress(file.path, done, total)

        findings = [f for path in sorted(self._findings) for f in self._findings[path]]
        if cancelled:
            logger.info("Run cancelled after %d of %d files", done, total)
        logger.info("Checked %s: %d findings", stats, len(findings))
        return CheckResult(
            findings=findings,
            stats=stats,
            contracts_indexed=contracts_indexed,
            cancelled=cancelled,
        )

    def _extract_task(self, file: SourceFile) -> tuple[ExtractionResult | None, str | None] | None:
        if self._cancel.is_set():
            return None
        try:
            return get_extractor(file.language).extract_symbols(file.path, file.content), None
        except ExtractionError as e:
            return None, str(e)

    def _scan_task(
        self, file: SourceFile
    ) -> tuple[list[UsageSite], list[Finding], str | None] | None:
        if self._cancel.is_set():
            return None
        try:
            sites, findings = self._scan_file(file)
        except ExtractionError as e:
            return [], [], str(e)
        return sites, findings, None

    def _scan_file(self, file: SourceFile) -> tuple[list[UsageSite], list[Finding]]:
        sites = get_scanner(file.language).scan(file.path, file.content)
        return sites, self.synthesizer.findings(sites)

    def _record_error(self, stats: RunStats, path: str, error: str) -> None:
        logger.warning("Failed to analyse %s: %s", path, error)
        stats.errors.append(f"{path}: {error}")

    def _consumers(self) -> list[SourceFile]:
        return [f for f in self.graph.files() if self._is_consumer(f)]

    def _is_consumer(self, file: SourceFile) -> bool:
        return file.role.is_consumer or (self.config.scan_shared and file.role is Role.SHARED)

    def _is_consumer_path(self, path: str) -> bool:
        file = self.graph.get_file(path)
        return file is not None and self._is_consumer(file)

    # -- incremental updates -----------------------------------------------

    def apply_change(
        self,
        path: str,
        kind: ChangeKind | str,
        content: str | None = None,
        rescan_dependents: bool = False,
    ) -> ChangeResult:
        """Apply one file event and re-run only the affected stage.

        A shared file is purged from and re-extracted into the index; a
        consumer file is re-scanned. ``affected`` lists consumer files whose
        cached findings may be stale; with ``rescan_dependents`` they are
        re-checked immediately.
        """
        with self._lock:
            if not self._has_run:
                self._run(self.builder.root, None)

            kind = ChangeKind(kind)
            path = self.builder.relative(path)
            graph = self.graph
            old = graph.get_file(path)
            importers = set(affected_files(graph, path)) if old is not None else set()

            self.builder.apply_change(path, kind, content)
            new = graph.get_file(path)
            if new is not None:
                importers |= set(affected_files(graph, path))

            source = new or old
            role = source.role if source is not None else Role.UNCLASSIFIED
            result = ChangeResult(path=path, kind=kind, role=role)

            was_shared = old is not None and old.role is Role.SHARED
            is_shared = new is not None and new.role is Role.SHARED
            affected: set[str] = set()
            if was_shared or is_shared:
                was_empty = self.index.is_empty
                before = self._declared_names(path)
                self._reindex(path, new if is_shared else None)
                after = self._declared_names(path)
                if self.index.is_empty:
                    # nothing left to check against
                    self._findings.clear()
                    self._sites.clear()
                    affected = importers
                elif was_empty:
                    affected = {f.path for f in self._consumers()}
                else:
                    affected = importers | self._stale_files(path, before, after)

            if new is not None and self._is_consumer(new) and not self.index.is_empty:
                result.findings = self._rescan(new)
                result.rescanned.append(path)
            else:
                self._findings.pop(path, None)
                self._sites.pop(path, None)

            result.affected = sorted(
                p for p in affected if p != path and self._is_consumer_path(p)
            )

            if rescan_dependents:
                for p in result.affected:
                    file = graph.get_file(p)
                    if file is None:
                        continue
                    self._rescan(file)
                    result.rescanned.append(p)

            logger.info(
                "Applied %s %s: %d findings, %d affected",
                kind.value,
                path,
                len(result.findings),
                len(result.affected),
            )
            return result

    def _reindex(self, path: str, file: SourceFile | None) -> None:
        if file is None:
            self.index.clear(path)
            return
        try:
            self.index.extract(file)
        except ExtractionError as e:
            self.index.clear(path)
            self._record_error(self.stats, path, str(e))

    def _declared_names(self, path: str) -> set[str]:
        result = self.index.file_result(path)
        if result is None:
            return set()
        names = {f.name for f in result.functions}
        names |= {fld.name for shape in result.shapes for fld in shape.fields}
        return names

    def _stale_files(self, path: str, before: set[str], after: set[str]) -> set[str]:
        """Consumer files whose findings may change when a shared file's contracts change."""
        added = after - before
        touched = before | after
        stale: set[str] = set()
        for consumer, findings in self._findings.items():
            if any(f.mismatch.declared_in.file == path for f in findings):
                stale.add(consumer)
        for consumer, sites in self._sites.items():
            for site in sites:
                if site.name in touched or any(
                    self.synthesizer.similarity.score(site.name, name)
                    >= self.synthesizer.similarity.threshold
                    for name in added
                ):
                    stale.add(consumer)
                    break
        return stale

    def _rescan(self, file: SourceFile) -> list[Finding]:
        try:
            sites, findings = self._scan_file(file)
        except ExtractionError as e:
            self._record_error(self.stats, file.path, str(e))
            sites, findings = [], []
        self._sites[file.path] = sites
        self._findings[file.path] = findings
        return findings

    def check_file(self, path: str) -> list[Finding]:
        """Re-scan one consumer file against the current index."""
        with self._lock:
            if not self._has_run:
                self._run(self.builder.root, None)
            path = self.builder.relative(path)
            file = self.graph.get_file(path)
            if file is None:
                raise ContractDriftError(f"File is not part of the project graph: {path}")
            if not self._is_consumer(file) or self.index.is_empty:
                return []
            return self._rescan(file)

    def findings(self) -> list[Finding]:
        """All cached findings ordered by (file, line, column)."""
        with self._lock:
            cached = [f for path in sorted(self._findings) for f in self._findings[path]]
        return sorted(cached, key=lambda f: (f.file, f.line, f.column or 0))

