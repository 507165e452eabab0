"""Synchronization pass over every auto-node in a vault."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from autonode.config import DEFAULT_PLACEHOLDER
from autonode.errors import AutoNodeError, DocumentReadError
from autonode.models import AutoNodeRecord, Document, DocumentRef, MatchRule
from autonode.sync.matcher import KeywordMatcher
from autonode.sync.merger import merge
from autonode.sync.registry import AutoNodeRegistry
from autonode.sync.scheduler import InProgressGuard
from autonode.utils.text import sorted_casefold
from autonode.vault.store import DocumentStore

LOGGER = logging.getLogger(__name__)

Matcher = Callable[[Document, MatchRule], bool]


def render_body(links: Sequence[str], placeholder: str = DEFAULT_PLACEHOLDER) -> str:
    if not links:
        return placeholder
    return "\n".join(f"- {link}" for link in links)


@dataclass(slots=True)
class SyncStats:
    updated: int = 0
    unchanged: int = 0
    skipped: int = 0
    failed: int = 0
    pruned: int = 0
    processed_paths: list[str] = field(default_factory=list)

    def increment(self, status: str, path: str) -> None:
        if status == "updated":
            self.updated += 1
        elif status == "unchanged":
            self.unchanged += 1
        elif status == "skipped":
            self.skipped += 1
        else:
            self.failed += 1
        self.processed_paths.append(path)


class SyncEngine:
    """Rebuilds generated sections from the current vault contents."""

    def __init__(
        self,
        documents: DocumentStore,
        registry: AutoNodeRegistry,
        *,
        guard: Optional[InProgressGuard] = None,
        placeholder: str = DEFAULT_PLACEHOLDER,
        matcher: Optional[Matcher] = None,
    ) -> None:
        self.documents = documents
        self.registry = registry
        self.guard = guard or InProgressGuard()
        self.placeholder = placeholder
        self.matcher = matcher or KeywordMatcher()

    def sync_all(self) -> SyncStats:
        """Re-read every note's declared rule, drop stale records and refresh each node in path order."""
        stats = SyncStats()
        candidates = self.documents.list_documents()
        known = {ref.path for ref in candidates}

        for ref in candidates:
            self.registry.reload(ref)

        for record in self.registry.list():
            if record.path not in known:
                LOGGER.info("Forgetting auto-node %s; note no longer exists", record.path)
                self.registry.discard(record.path)
                stats.pruned += 1

        for record in self.registry.list():
            try:
                status = self._refresh(DocumentRef(record.path), self.registry.resolve, candidates)
            except AutoNodeError as exc:
                LOGGER.error("Failed to refresh %s: %s", record.path, exc)
                status = "failed"
            stats.increment(status, record.path)

        return stats

    def sync_one(
        self, ref: DocumentRef, *, candidates: Optional[Sequence[DocumentRef]] = None
    ) -> str:
        """Re-read the declared rule and refresh one auto-node.

        Returns 'updated', 'unchanged' or 'skipped'.
        """
        return self._refresh(ref, self.registry.reload, candidates)

    def _refresh(
        self,
        ref: DocumentRef,
        lookup: Callable[[DocumentRef], Optional[AutoNodeRecord]],
        candidates: Optional[Sequence[DocumentRef]],
    ) -> str:
        with self.guard.claim(ref.path) as acquired:
            if not acquired:
                LOGGER.debug("Skipping %s; refresh already in progress", ref.path)
                return "skipped"

            record = lookup(ref)
            if record is None:
                return "skipped"

            if candidates is None:
                candidates = self.documents.list_documents()
            links = self.collect_links(ref, record.rule, candidates)
            generated = render_body(links, self.placeholder)

            current = self.documents.read(ref)
            updated = merge(current, generated, record.rule.keyword)
            if updated == current:
                LOGGER.debug("No changes needed for %s", ref.path)
                return "unchanged"

            self.documents.write(ref, updated)
            LOGGER.info("Updated generated section in %s with %d links", ref.path, len(links))
            return "updated"

    def collect_links(
        self, target: DocumentRef, rule: MatchRule, candidates: Sequence[DocumentRef]
    ) -> List[str]:
        links: List[str] = []
        for other in candidates:
            if other.path == target.path:
                continue
            try:
                text = self.documents.read(other)
            except DocumentReadError as exc:
                LOGGER.warning("Skipping %s: %s", other.path, exc.reason)
                continue
            if self.matcher(Document.from_ref(other, text), rule):
                LOGGER.debug(
                    "Match found in %s for keyword '%s' in %s", other.path, rule.keyword, target.path
                )
                links.append(self.documents.link_to(other, target))
        return sorted_casefold(links)
