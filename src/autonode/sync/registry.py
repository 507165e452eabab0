"""In-memory registry of auto-nodes with a write-through settings snapshot."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Dict, List, Optional, Protocol

from autonode.errors import ConflictError, DocumentReadError, NotFoundError, PersistenceError
from autonode.models import AutoNodeRecord, DocumentRef, MatchRule, Settings
from autonode.utils.text import sort_key

if TYPE_CHECKING:
    from autonode.vault.store import DocumentStore

LOGGER = logging.getLogger(__name__)


class SettingsStore(Protocol):
    def load(self) -> Optional[Settings]: ...

    def save(self, settings: Settings) -> None: ...


class AutoNodeRegistry:
    """Single owner of the auto-node record set."""

    def __init__(self, documents: "DocumentStore", settings_store: SettingsStore) -> None:
        self.documents = documents
        self.settings_store = settings_store
        self._lock = threading.RLock()
        self._settings = self._load()

    def _load(self) -> Settings:
        try:
            settings = self.settings_store.load()
        except PersistenceError as exc:
            LOGGER.error("Falling back to empty auto-node settings: %s", exc)
            return Settings()
        return settings if settings is not None else Settings()

    def _persist(self) -> None:
        snapshot = Settings(nodes=dict(self._settings.nodes), schema_version=self._settings.schema_version)
        try:
            self.settings_store.save(snapshot)
        except PersistenceError as exc:
            LOGGER.error("Could not persist auto-node settings: %s", exc)

    def __contains__(self, path: object) -> bool:
        with self._lock:
            return path in self._settings.nodes

    def __len__(self) -> int:
        with self._lock:
            return len(self._settings.nodes)

    def get(self, path: str) -> Optional[AutoNodeRecord]:
        with self._lock:
            return self._settings.nodes.get(path)

    def resolve(self, ref: DocumentRef) -> Optional[AutoNodeRecord]:
        """Cached record for ``ref``, discovering it from frontmatter on a miss."""
        with self._lock:
            record = self._settings.nodes.get(ref.path)
            if record is not None:
                return record

        try:
            rule = self.documents.get_declared_config(ref)
        except DocumentReadError as exc:
            LOGGER.warning("Could not check %s for an auto-node rule: %s", ref.path, exc.reason)
            return None
        if rule is None:
            return None
        LOGGER.info("Discovered auto-node %s (keyword '%s')", ref.path, rule.keyword)
        return self.upsert(ref.path, rule)

    def reload(self, ref: DocumentRef) -> Optional[AutoNodeRecord]:
        """Re-read declared config; the note's frontmatter always wins over the cache.

        A note that no longer declares a rule is forgotten. When the note
        cannot be read the cached record is kept as it is.
        """
        try:
            rule = self.documents.get_declared_config(ref)
        except DocumentReadError as exc:
            LOGGER.warning("Keeping cached rule for %s: %s", ref.path, exc.reason)
            return self.get(ref.path)
        current = self.get(ref.path)
        if rule is None:
            if current is not None:
                LOGGER.info("Forgetting auto-node %s; it no longer declares a keyword", ref.path)
                self.discard(ref.path)
            return None
        if current is not None and current.rule == rule:
            return current
        if current is None:
            LOGGER.info("Discovered auto-node %s (keyword '%s')", ref.path, rule.keyword)
        return self.upsert(ref.path, rule)

    def upsert(self, path: str, rule: MatchRule) -> AutoNodeRecord:
        rule.validate()
        record = AutoNodeRecord(path=path, rule=rule)
        with self._lock:
            self._settings.nodes[path] = record
            self._persist()
        return record

    def remove(self, path: str) -> AutoNodeRecord:
        with self._lock:
            record = self._settings.nodes.pop(path, None)
            if record is None:
                raise NotFoundError(f"No auto-node registered at {path}")
            self._persist()
        return record

    def discard(self, path: str) -> Optional[AutoNodeRecord]:
        """Remove if present; used for deletions reported by the vault."""
        try:
            return self.remove(path)
        except NotFoundError:
            return None

    def rename(self, old_path: str, new_path: str) -> AutoNodeRecord:
        with self._lock:
            record = self._settings.nodes.get(old_path)
            if record is None:
                raise NotFoundError(f"No auto-node registered at {old_path}")
            if new_path != old_path and new_path in self._settings.nodes:
                raise ConflictError(f"An auto-node is already registered at {new_path}")
            del self._settings.nodes[old_path]
            moved = AutoNodeRecord(path=new_path, rule=record.rule)
            self._settings.nodes[new_path] = moved
            self._persist()
        return moved

    def list(self) -> List[AutoNodeRecord]:
        with self._lock:
            records: Dict[str, AutoNodeRecord] = dict(self._settings.nodes)
        return [records[path] for path in sorted(records, key=sort_key)]
