"""
TOPICGRAPH VERSION STORE - The Append-Only Memory

The VersionStore is the only stateful component of the system. It owns one
ascending list of immutable Topic snapshots per topic id. Everything else
(TopicGraph, TreeBuilder, PathFinder, HierarchyValidator) recomputes from
here on every call.

Architecture:
  _versions: Dict[str, List[Topic]]   (topic id -> snapshots, ascending)

Semantics:
- save() overwrites on an exact (id, version) collision, otherwise appends
  and re-sorts. There is no locking: two writers that both read version N
  and both save N+1 leave only the second one (last-writer-wins).
- Lookups never raise. Absence is None or [].
- import_data() replaces the whole state, after checking every chain is
  numbered 1..N.

Thread Safety:
    NOT thread-safe. Serialize writes per topic id if you need consistency.
"""
import logging
from pathlib import Path
from typing import Dict, Iterator, List, Mapping, Optional, Sequence

import msgspec
import polars as pl

from core.errors import ValidationError
from core.schemas import (
    Topic,
    convert_export,
    deserialize_export,
    serialize_export,
)


logger = logging.getLogger("topicgraph.store")


class VersionStore:
    """
    In-memory, append-only store of topic snapshots.

    Usage:
        store = VersionStore()
        topic = Topic.create(name="Graphs", content="...")
        store.save(topic)
        store.save(topic.next_version(content="edited"))

        store.find_by_id(topic.id)               # latest (version 2)
        store.find_by_id(topic.id, version=1)    # exact version
        store.find_versions(topic.id)            # [v1, v2]
    """

    def __init__(self):
        self._versions: Dict[str, List[Topic]] = {}

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def topic_count(self) -> int:
        """Number of distinct topic ids."""
        return len(self._versions)

    @property
    def version_count(self) -> int:
        """Number of stored snapshots across all ids."""
        return sum(len(versions) for versions in self._versions.values())

    @property
    def is_empty(self) -> bool:
        return not self._versions

    # =========================================================================
    # WRITE OPERATIONS
    # =========================================================================

    def save(self, topic: Topic) -> Topic:
        """
        Store a snapshot.

        If a snapshot with the same (id, version) exists it is replaced in
        place; otherwise the snapshot is appended and the id's list re-sorted
        ascending by version.

        Returns:
            The stored snapshot
        """
        versions = self._versions.setdefault(topic.id, [])

        for i, existing in enumerate(versions):
            if existing.version == topic.version:
                versions[i] = topic
                return topic

        versions.append(topic)
        versions.sort(key=lambda t: t.version)
        return topic

    def delete_all(self, topic_id: str) -> bool:
        """
        Remove every version of a topic.

        Children are not touched; their parent pointers now dangle.

        Returns:
            True if the id existed
        """
        return self._versions.pop(topic_id, None) is not None

    def clear(self) -> None:
        """Drop all state."""
        self._versions.clear()

    # =========================================================================
    # READ OPERATIONS
    # =========================================================================

    def find_by_id(self, topic_id: Optional[str], version: Optional[int] = None) -> Optional[Topic]:
        """
        Find a snapshot by id.

        Args:
            topic_id: The topic id (None is accepted and finds nothing)
            version: Exact version to fetch. If None, the latest is returned.

        Returns:
            The snapshot, or None if the id (or that version) is unknown
        """
        if topic_id is None:
            return None

        versions = self._versions.get(topic_id)
        if not versions:
            return None

        if version is None:
            return versions[-1]

        for topic in versions:
            if topic.version == version:
                return topic
        return None

    def find_all_latest(self) -> List[Topic]:
        """One latest snapshot per known id, in id insertion order."""
        return [versions[-1] for versions in self._versions.values() if versions]

    def find_versions(self, topic_id: str) -> List[Topic]:
        """All snapshots of a topic, ascending by version. Empty if unknown."""
        return list(self._versions.get(topic_id, []))

    def find_by_parent_id(self, parent_id: str) -> List[Topic]:
        """Latest snapshots whose parent pointer equals parent_id."""
        return [t for t in self.find_all_latest() if t.parent_topic_id == parent_id]

    def exists(self, topic_id: str) -> bool:
        return topic_id in self._versions

    def latest_version_number(self, topic_id: str) -> int:
        """Highest version number for a topic, 0 if unknown."""
        versions = self._versions.get(topic_id)
        return versions[-1].version if versions else 0

    def iter_ids(self) -> Iterator[str]:
        return iter(list(self._versions))

    # =========================================================================
    # BULK STATE TRANSFER
    # =========================================================================

    def export_data(self) -> Dict[str, List[Dict[str, object]]]:
        """
        Export every version chain as builtin data.

        Returns:
            {topic_id: [snapshot dict, ...]} with versions ascending and
            camelCase keys (parentTopicId, createdAt, updatedAt)
        """
        return {
            topic_id: [topic.to_dict() for topic in versions]
            for topic_id, versions in self._versions.items()
        }

    def import_data(self, data: Mapping[str, Sequence[object]]) -> int:
        """
        Replace all state with the supplied version chains.

        Accepts either builtin dicts (as produced by export_data) or Topic
        snapshots. Hierarchy integrity (dangling parents, cycles) is NOT
        checked here; use HierarchyValidator afterwards.

        Returns:
            Number of topic ids imported

        Raises:
            ValidationError: If a record is malformed, filed under the wrong
                id, or a chain is not numbered 1..N. State is left untouched.
        """
        if not isinstance(data, Mapping):
            raise ValidationError(["Import data must map topic ids to version lists"])

        # Non-list chains are passed through so msgspec reports them
        builtin = {
            topic_id: [
                t.to_dict() if isinstance(t, Topic) else t
                for t in versions
            ] if isinstance(versions, (list, tuple)) else versions
            for topic_id, versions in data.items()
        }
        try:
            chains = convert_export(builtin)
        except msgspec.ValidationError as e:
            raise ValidationError([str(e)]) from e

        self._install(chains)
        return len(chains)

    def to_json(self) -> bytes:
        """Export all version chains as JSON bytes."""
        return serialize_export(
            {topic_id: list(versions) for topic_id, versions in self._versions.items()}
        )

    def load_json(self, raw: bytes) -> int:
        """
        Replace all state from JSON bytes produced by to_json().

        Raises:
            ValidationError: On malformed JSON or inconsistent chains
        """
        try:
            chains = deserialize_export(raw)
        except (msgspec.DecodeError, UnicodeDecodeError) as e:
            raise ValidationError([str(e)]) from e

        self._install(chains)
        return len(chains)

    def _install(self, chains: Dict[str, List[Topic]]) -> None:
        """Check chain numbering, then swap in the new state."""
        errors: List[str] = []
        installed: Dict[str, List[Topic]] = {}

        for topic_id, versions in chains.items():
            ordered = sorted(versions, key=lambda t: t.version)
            for topic in ordered:
                if topic.id != topic_id:
                    errors.append(f"Snapshot {topic.id} filed under {topic_id}")
                if topic.version < 1:
                    errors.append(f"Topic {topic_id} has version {topic.version} < 1")
            numbers = [t.version for t in ordered]
            if numbers != list(range(1, len(ordered) + 1)):
                errors.append(f"Topic {topic_id} versions are not 1..N: {numbers}")
            installed[topic_id] = ordered

        if errors:
            raise ValidationError(errors)

        self._versions = installed
        logger.info(
            "Imported %d topics (%d versions)", self.topic_count, self.version_count
        )

    # =========================================================================
    # TABULAR EXPORT
    # =========================================================================

    def to_polars(self) -> pl.DataFrame:
        """
        Export every stored snapshot as one row of a Polars DataFrame.

        Useful for analytics over version history.
        """
        rows = [t for versions in self._versions.values() for t in versions]
        return pl.DataFrame(
            {
                "id": [t.id for t in rows],
                "version": [t.version for t in rows],
                "name": [t.name for t in rows],
                "content": [t.content for t in rows],
                "parent_topic_id": [t.parent_topic_id for t in rows],
                "created_at": [t.created_at for t in rows],
                "updated_at": [t.updated_at for t in rows],
            },
            schema={
                "id": pl.Utf8,
                "version": pl.Int64,
                "name": pl.Utf8,
                "content": pl.Utf8,
                "parent_topic_id": pl.Utf8,
                "created_at": pl.Utf8,
                "updated_at": pl.Utf8,
            },
        )

    def save_parquet(self, path: Path) -> None:
        """Write the version table to a parquet file."""
        self.to_polars().write_parquet(Path(path))

    # =========================================================================
    # DUNDER METHODS
    # =========================================================================

    def __len__(self) -> int:
        return self.topic_count

    def __contains__(self, topic_id: str) -> bool:
        return topic_id in self._versions

    def __repr__(self) -> str:
        return f"VersionStore(topics={self.topic_count}, versions={self.version_count})"
