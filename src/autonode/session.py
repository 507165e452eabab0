"""Running auto-node instance: registry, engine and scheduler wired together."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Optional

from autonode.config import AppConfig
from autonode.errors import ConfigurationError, ConflictError, NotFoundError
from autonode.models import AutoNodeRecord, ChangeEvent, DocumentRef, MatchRule
from autonode.notify import Notifier, NullNotifier
from autonode.settings.storage import SQLiteSettingsStore
from autonode.sync.engine import SyncEngine, SyncStats
from autonode.sync.registry import AutoNodeRegistry, SettingsStore
from autonode.sync.scheduler import InProgressGuard, RefreshScheduler, TimerFactory
from autonode.utils.files import is_markdown
from autonode.utils.text import normalize_note_path
from autonode.vault.frontmatter import (
    build_initial_content,
    remove_declared_config,
    write_declared_config,
)
from autonode.vault.store import FileSystemVault

LOGGER = logging.getLogger(__name__)


class AutoNodeSession:
    """Owns all per-instance state; construct at startup, ``teardown`` at exit."""

    def __init__(
        self,
        vault: FileSystemVault,
        settings_store: SettingsStore,
        *,
        config: Optional[AppConfig] = None,
        notifier: Optional[Notifier] = None,
        timer_factory: Optional[TimerFactory] = None,
    ) -> None:
        self.config = config or AppConfig(vault_path=vault.root)
        self.vault = vault
        self.notifier = notifier or NullNotifier()
        self.guard = InProgressGuard()
        self.registry = AutoNodeRegistry(vault, settings_store)
        self.engine = SyncEngine(
            vault, self.registry, guard=self.guard, placeholder=self.config.placeholder
        )
        self.scheduler = RefreshScheduler(
            self.engine.sync_all,
            delay=self.config.debounce_delay,
            notifier=self.notifier,
            guard=self.guard,
            timer_factory=timer_factory or threading.Timer,
        )

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        *,
        notifier: Optional[Notifier] = None,
        timer_factory: Optional[TimerFactory] = None,
    ) -> "AutoNodeSession":
        """Open the vault and settings database described by ``config``."""
        db_path = config.resolve_db_path()
        db_path.parent.mkdir(parents=True, exist_ok=True)
        vault = FileSystemVault(config.vault_path or Path.cwd(), link_style=config.link_style)
        return cls(
            vault,
            SQLiteSettingsStore(db_path),
            config=config,
            notifier=notifier,
            timer_factory=timer_factory,
        )

    def start(self) -> None:
        """Schedule the initial pass with the short startup delay."""
        self.scheduler.schedule(self.config.startup_delay)

    def teardown(self) -> None:
        self.scheduler.teardown()
        close = getattr(self.registry.settings_store, "close", None)
        if callable(close):
            close()

    def sync_all(self) -> SyncStats:
        return self.engine.sync_all()

    def handle_event(self, event: ChangeEvent) -> None:
        """React to a vault change notification and schedule a refresh."""
        if not is_markdown(event.path):
            return

        if event.kind == "deleted":
            if self.registry.discard(event.path) is not None:
                LOGGER.info("Auto-node %s deleted", event.path)
        elif event.kind == "renamed":
            if event.old_path and event.old_path in self.registry:
                try:
                    self.registry.rename(event.old_path, event.path)
                except ConflictError as exc:
                    LOGGER.warning("Could not follow rename: %s", exc)
        else:
            self.registry.reload(DocumentRef(event.path))

        self.scheduler.schedule()

    def create_auto_node(self, name: str, rule: MatchRule) -> AutoNodeRecord:
        """Create a new auto-node note and fill its generated section."""
        rule = MatchRule(rule.keyword.strip(), rule.case_sensitive, rule.match_whole_word).validate()
        path = normalize_note_path(name)
        if not path:
            raise ConfigurationError("Auto-node creation requires a note name.")

        ref = DocumentRef(path)
        if self.vault.exists(ref):
            raise ConflictError(f"File '{path}' already exists.")

        self.notifier.notify(f"Creating auto-node at {path}", 4.0)
        try:
            self.vault.create(ref, build_initial_content(rule))
            record = self.registry.upsert(path, rule)
            self.engine.sync_one(ref)
        except Exception as exc:
            self.notifier.notify(f"Failed to create auto-node note: {exc}")
            raise
        self.notifier.notify(f"Created auto-node '{ref.title}' at {path}.", 5.0)
        return record

    def update_rule(self, path: str, rule: MatchRule) -> AutoNodeRecord:
        """Change a note's rule on disk and in the registry, then refresh it."""
        rule.validate()
        ref = DocumentRef(path)
        if not self.vault.exists(ref):
            raise NotFoundError(f"Note not found: {path}")

        current = self.vault.read(ref)
        updated = write_declared_config(current, rule)
        if updated != current:
            self.vault.write(ref, updated)
        record = self.registry.upsert(path, rule)
        self.engine.sync_one(ref)
        return record

    def unregister(self, path: str) -> AutoNodeRecord:
        """Stop managing ``path``; its generated section is left as it is."""
        record = self.registry.remove(path)
        ref = DocumentRef(path)
        if self.vault.exists(ref):
            current = self.vault.read(ref)
            stripped = remove_declared_config(current)
            if stripped != current:
                self.vault.write(ref, stripped)
        return record
