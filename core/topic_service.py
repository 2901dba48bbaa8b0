"""
TOPICGRAPH SERVICE - The Orchestration Boundary

TopicService is what a request layer talks to. It wires one explicitly
constructed VersionStore into the stateless components and turns "not
found" results into exceptions where an operation needs an existing topic.

    TopicService
      |-- VersionStore         (state)
      |-- TopicGraph           (derived relations, move)
      |-- TreeBuilder          (forest / subtree assembly)
      |-- PathFinder           (weighted paths, distances)
      |-- HierarchyValidator   (integrity scan)
      |-- MutationLogger       (write journal)

Concurrency:
    Synchronous and lock-free. Two concurrent update() calls on one id can
    both write version N+1 and the later one wins. Pass expected_version to
    update()/move() to turn that race into a VersionConflictError.
"""
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import msgspec
import polars as pl

from core.errors import (
    TopicNotFoundError,
    ValidationError,
    VersionConflictError,
)
from core.hierarchy_validator import HierarchyReport, HierarchyValidator
from core.path_finder import ClosestTopic, PathFinder
from core.schemas import Topic
from core.topic_graph import TopicGraph
from core.tree_builder import TopicNode, TreeBuilder
from core.version_store import VersionStore
from infrastructure.config import TopicGraphConfig, get_config
from infrastructure.logger import LoggerConfig, MutationLogger


logger = logging.getLogger("topicgraph.service")

UNSET = msgspec.UNSET


class TopicService:
    """
    Versioned topic hierarchy with graph queries.

    Usage:
        service = TopicService()
        root = service.create("Math", "All of it")
        algebra = service.create("Algebra", "Structures", parent_id=root.id)

        service.update(algebra.id, content="Groups, rings, fields")
        service.move(algebra.id, None)
        service.find_shortest_path(root.id, algebra.id)
    """

    def __init__(
        self,
        store: Optional[VersionStore] = None,
        config: Optional[TopicGraphConfig] = None,
        mutation_logger: Optional[MutationLogger] = None,
    ):
        self.config = config or get_config()
        self.store = store if store is not None else VersionStore()
        self.graph = TopicGraph(self.store)
        self.trees = TreeBuilder(self.graph)
        self.paths = PathFinder(self.graph)
        self.validator = HierarchyValidator(self.graph)
        self.mutations = mutation_logger or MutationLogger(
            LoggerConfig.from_settings(self.config)
        )

    # =========================================================================
    # VALIDATION HELPERS
    # =========================================================================

    def _validate_fields(self, name: Optional[str], content: Optional[str]) -> None:
        errors: List[str] = []

        if name is not None and not isinstance(name, str):
            errors.append("Name must be a string")
        elif name is None or not name.strip():
            errors.append("Name is required")
        elif len(name) > self.config.max_name_length:
            errors.append(f"Name must be at most {self.config.max_name_length} characters")

        if content is not None and not isinstance(content, str):
            errors.append("Content must be a string")
        elif content is None or not content.strip():
            errors.append("Content is required")
        elif len(content) > self.config.max_content_length:
            errors.append(
                f"Content must be at most {self.config.max_content_length} characters"
            )

        if errors:
            raise ValidationError(errors)

    def _require(self, topic_id: str) -> Topic:
        topic = self.store.find_by_id(topic_id)
        if topic is None:
            raise TopicNotFoundError(topic_id)
        return topic

    def _require_parent(self, parent_id: Optional[str]) -> None:
        if parent_id is not None and not self.store.exists(parent_id):
            raise TopicNotFoundError(parent_id)

    @staticmethod
    def _check_expected(topic: Topic, expected_version: Optional[int]) -> None:
        if expected_version is not None and topic.version != expected_version:
            raise VersionConflictError(topic.id, expected_version, topic.version)

    # =========================================================================
    # WRITE OPERATIONS
    # =========================================================================

    def create(self, name: str, content: str, parent_id: Optional[str] = None) -> Topic:
        """
        Create a topic at version 1.

        Raises:
            ValidationError: On missing or oversized name/content
            TopicNotFoundError: If parent_id does not exist
        """
        self._validate_fields(name, content)
        self._require_parent(parent_id)

        topic = self.store.save(Topic.create(name=name, content=content, parent_topic_id=parent_id))
        self.mutations.log_topic_created(topic.id, topic.version, topic.name)
        return topic

    def update(
        self,
        topic_id: str,
        name: Optional[str] = None,
        content: Optional[str] = None,
        parent_id: Union[Optional[str], msgspec.UnsetType] = UNSET,
        expected_version: Optional[int] = None,
    ) -> Topic:
        """
        Append a new version with the given fields changed.

        Fields left as None (or UNSET for parent_id) are carried forward.
        Passing parent_id=None detaches the topic to a root. A parent change
        gets the same cycle check as move().

        Raises:
            TopicNotFoundError: If the topic (or the new parent) does not exist
            ValidationError: On invalid name/content
            CircularReferenceError: If the new parent is the topic or below it
            VersionConflictError: If expected_version is given and stale
        """
        current = self._require(topic_id)
        self._check_expected(current, expected_version)

        changes: Dict[str, Any] = {}
        if name is not None:
            changes["name"] = name
        if content is not None:
            changes["content"] = content
        self._validate_fields(changes.get("name", current.name), changes.get("content", current.content))

        if parent_id is not UNSET and parent_id != current.parent_topic_id:
            self._require_parent(parent_id)
            moved = self.graph.move(msgspec.structs.replace(current, **changes), parent_id)
            self.mutations.log_topic_moved(
                moved.id, moved.version, current.parent_topic_id, moved.parent_topic_id
            )
            return moved

        topic = self.store.save(current.next_version(**changes))
        self.mutations.log_topic_updated(topic.id, topic.version, topic.name)
        return topic

    def move(
        self,
        topic_id: str,
        new_parent_id: Optional[str],
        expected_version: Optional[int] = None,
    ) -> Topic:
        """
        Reparent a topic (None makes it a root).

        Raises:
            TopicNotFoundError: If the topic or the new parent does not exist
            CircularReferenceError: If the new parent is the topic or below it
            VersionConflictError: If expected_version is given and stale
        """
        current = self._require(topic_id)
        self._check_expected(current, expected_version)
        self._require_parent(new_parent_id)

        moved = self.graph.move(current, new_parent_id)
        self.mutations.log_topic_moved(
            moved.id, moved.version, current.parent_topic_id, new_parent_id
        )
        return moved

    def delete(self, topic_id: str) -> bool:
        """
        Remove every version of a topic.

        Children are not deleted or reparented; they keep a dangling parent
        pointer that validate_hierarchy() reports.
        """
        orphans = len(self.store.find_by_parent_id(topic_id))
        deleted = self.store.delete_all(topic_id)
        if deleted:
            self.mutations.log_topic_deleted(topic_id)
            if orphans:
                logger.info("Deleted %s leaving %d orphaned child topic(s)", topic_id, orphans)
        return deleted

    # =========================================================================
    # LOOKUPS
    # =========================================================================

    def get(self, topic_id: str) -> Topic:
        """Latest version. Raises TopicNotFoundError."""
        return self._require(topic_id)

    def get_version(self, topic_id: str, version: int) -> Topic:
        """
        A specific version.

        Raises:
            ValidationError: If version < 1
            TopicNotFoundError: If the id or version does not exist
        """
        if version < 1:
            raise ValidationError(["Version must be greater than 0"])
        topic = self.store.find_by_id(topic_id, version)
        if topic is None:
            raise TopicNotFoundError(topic_id, version)
        return topic

    def get_versions(self, topic_id: str) -> List[Topic]:
        """All versions ascending; empty if unknown."""
        return self.store.find_versions(topic_id)

    def list_topics(self) -> List[Topic]:
        return self.store.find_all_latest()

    def get_children(self, topic_id: str) -> List[Topic]:
        return self.graph.get_children(self._require(topic_id))

    def get_root_topics(self) -> List[Topic]:
        return self.graph.get_roots()

    # =========================================================================
    # SEARCH
    # =========================================================================

    def search_by_name(self, query: str) -> List[Topic]:
        """Case-insensitive substring match on latest names."""
        needle = query.lower()
        return [t for t in self.store.find_all_latest() if needle in t.name.lower()]

    def search_by_content(self, query: str) -> List[Topic]:
        needle = query.lower()
        return [t for t in self.store.find_all_latest() if needle in t.content.lower()]

    def search_topics(self, query: str) -> List[Topic]:
        """Name matches first, then content matches, without duplicates."""
        results: List[Topic] = []
        seen = set()
        for topic in self.search_by_name(query) + self.search_by_content(query):
            if topic.id not in seen:
                seen.add(topic.id)
                results.append(topic)
        return results

    # =========================================================================
    # TREES
    # =========================================================================

    def get_topic_tree(self, root_id: str) -> TopicNode:
        """Subtree rooted at root_id. Raises TopicNotFoundError."""
        return self.trees.get_topic_tree(root_id)

    def get_forest(self, sort: bool = True) -> List[TopicNode]:
        """Every tree of the hierarchy, built in one batch."""
        return self.trees.build_forest(sort=sort)

    def calculate_depth(self, topic_id: str) -> int:
        """Resolvable ancestors of a topic (a root is 0)."""
        return self.graph.get_depth(self._require(topic_id))

    def count_descendants(self, topic_id: str) -> int:
        return len(self.graph.get_descendants(self._require(topic_id)))

    def get_max_depth(self) -> int:
        """Deepest level in the hierarchy, counting a root as 1 (0 if empty)."""
        return max(
            (self.graph.get_depth(t) + 1 for t in self.store.find_all_latest()),
            default=0,
        )

    # =========================================================================
    # PATHS
    # =========================================================================

    def find_shortest_path(self, from_id: str, to_id: str) -> List[Topic]:
        return self.paths.find_shortest_path(from_id, to_id)

    def find_all_paths(self, from_id: str, to_id: str, max_depth: Optional[int] = None) -> List[List[Topic]]:
        if max_depth is None:
            max_depth = self.config.default_max_path_depth
        return self.paths.find_all_paths(from_id, to_id, max_depth)

    def calculate_distance(self, from_id: str, to_id: str) -> int:
        return self.paths.calculate_distance(from_id, to_id)

    def find_closest_topics(self, topic_id: str, max_distance: Optional[int] = None) -> List[ClosestTopic]:
        if max_distance is None:
            max_distance = self.config.default_max_distance
        return self.paths.find_closest_topics(topic_id, max_distance)

    # =========================================================================
    # INTEGRITY & STATISTICS
    # =========================================================================

    def validate_hierarchy(self) -> HierarchyReport:
        return self.validator.validate()

    def get_statistics(self) -> Dict[str, int]:
        latest = self.store.find_all_latest()
        return {
            "totalTopics": len(latest),
            "totalVersions": self.store.version_count,
            "rootTopics": sum(1 for t in latest if t.parent_topic_id is None),
            "maxDepth": self.get_max_depth(),
        }

    # =========================================================================
    # BULK STATE TRANSFER
    # =========================================================================

    def export_data(self) -> Dict[str, List[Dict[str, object]]]:
        return self.store.export_data()

    def import_data(self, data: Mapping[str, Sequence[object]]) -> int:
        """Replace all state. Hierarchy integrity is not checked here."""
        count = self.store.import_data(data)
        self.mutations.log_store_imported(count)
        return count

    def export_json(self) -> bytes:
        return self.store.to_json()

    def import_json(self, raw: bytes) -> int:
        count = self.store.load_json(raw)
        self.mutations.log_store_imported(count)
        return count

    def export_frame(self) -> pl.DataFrame:
        return self.store.to_polars()

    def save_parquet(self, path: Path) -> None:
        self.store.save_parquet(path)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def close(self) -> None:
        """Release the mutation journal's file handle, if any."""
        self.mutations.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
