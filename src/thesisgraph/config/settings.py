"""GraphConfig - Typed view of the configuration dictionary.

The settings object is passed explicitly to whatever opens the store and
the mutation engine; nothing reads configuration from global state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from thesisgraph.engine import MutationEngine
from thesisgraph.export import ExportOptions
from thesisgraph.store.sqlite import SQLiteGraphStore
from thesisgraph.thesis import is_relation_kind


@dataclass
class GraphConfig:
    """Settings needed to open a thesis graph.

    Attributes:
        store_path: SQLite database file.
        relation_kinds: Allow-list of relation kinds.
        busy_timeout: Milliseconds a writer waits for the write lock.
        export: DOT rendering options.
    """

    store_path: Path
    relation_kinds: frozenset[str] = field(default_factory=frozenset)
    busy_timeout: int = 5000
    export: ExportOptions = field(default_factory=ExportOptions)

    def __post_init__(self) -> None:
        self.store_path = Path(self.store_path)
        self.relation_kinds = frozenset(self.relation_kinds)
        for kind in self.relation_kinds:
            if not is_relation_kind(kind):
                raise ValueError(
                    f"Relation kind must be words without punctuation, got {kind!r}"
                )

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> GraphConfig:
        """Build settings from a loaded configuration dictionary.

        A relative store path is resolved against "config_dir" when present.
        """
        store = config.get("store", {})
        store_path = Path(store.get("path", ".thesisgraph/theses.db"))
        if not store_path.is_absolute() and config.get("config_dir"):
            store_path = Path(config["config_dir"]) / store_path
        return cls(
            store_path=store_path,
            relation_kinds=frozenset(config.get("relations", {}).get("kinds", [])),
            busy_timeout=int(store.get("busy_timeout", 5000)),
            export=ExportOptions.from_dict(config.get("graph", {})),
        )

    def open_store(self) -> SQLiteGraphStore:
        return SQLiteGraphStore(self.store_path, busy_timeout=self.busy_timeout)

    def open_engine(self) -> MutationEngine:
        """Open the store and wrap it in a mutation engine."""
        return MutationEngine(store=self.open_store(), relation_kinds=self.relation_kinds)
