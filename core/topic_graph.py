"""
TOPICGRAPH HIERARCHY - Relationships Derived From Parent Pointers

The hierarchy is never stored as edges. Each latest snapshot carries a single
`parent_topic_id`; parents, children, siblings, ancestors and descendants are
recomputed from the VersionStore on every call.

Architecture:
  VersionStore (snapshots) --> TopicGraph (derived relations)
                                 |
                                 +--> to_digraph(): rustworkx PyDiGraph
                                      materialization for analytics

Walk Bounds:
  Out-of-band data (imports) can contain parent cycles. Every upward walk is
  capped at the current topic count; hitting the cap, or revisiting an id, is
  logged as an integrity fault and the walk stops. Nothing here raises on
  corrupt data.

Write Path:
  move() is the one mutation this module performs. It refuses to place a
  topic under itself or under one of its own descendants, then appends a new
  version through the store.
"""
import logging
from typing import Dict, List, Optional, Set, Tuple

import rustworkx as rx

from core.errors import CircularReferenceError
from core.schemas import Topic
from core.version_store import VersionStore


logger = logging.getLogger("topicgraph.graph")


class TopicGraph:
    """
    Stateless view of the topic hierarchy over a VersionStore.

    Usage:
        graph = TopicGraph(store)
        graph.get_children(topic)
        graph.get_ancestors(topic)       # root-first
        graph.move(topic, new_parent_id)
    """

    def __init__(self, store: VersionStore):
        self.store = store

    # =========================================================================
    # IMMEDIATE RELATIONS
    # =========================================================================

    def get_parent(self, topic: Topic) -> Optional[Topic]:
        """Latest snapshot of the parent, or None if unset or unresolvable."""
        if topic.parent_topic_id is None:
            return None
        return self.store.find_by_id(topic.parent_topic_id)

    def get_children(self, topic: Topic) -> List[Topic]:
        """Latest snapshots whose parent pointer is this topic's id."""
        return self.store.find_by_parent_id(topic.id)

    def get_siblings(self, topic: Topic) -> List[Topic]:
        """
        Latest snapshots sharing this topic's parent id (excluding itself).

        Root topics have no siblings. A dangling parent id still groups its
        children as siblings.
        """
        if topic.parent_topic_id is None:
            return []
        return [
            t for t in self.store.find_by_parent_id(topic.parent_topic_id)
            if t.id != topic.id
        ]

    def get_roots(self) -> List[Topic]:
        """Latest snapshots without a parent pointer."""
        return [t for t in self.store.find_all_latest() if t.parent_topic_id is None]

    # =========================================================================
    # TRANSITIVE RELATIONS
    # =========================================================================

    def get_ancestors(self, topic: Topic) -> List[Topic]:
        """
        Walk parent pointers upward.

        Returns:
            Ancestors ordered root-first (the direct parent is last)
        """
        limit = self.store.topic_count
        ancestors: List[Topic] = []
        seen: Set[str] = {topic.id}

        current = self.get_parent(topic)
        while current is not None:
            if current.id in seen or len(ancestors) >= limit:
                logger.warning(
                    "Ancestor walk from %s stopped at %s: parent chain is cyclic",
                    topic.id, current.id,
                )
                break
            seen.add(current.id)
            ancestors.append(current)
            current = self.get_parent(current)

        ancestors.reverse()
        return ancestors

    def get_descendants(self, topic: Topic) -> List[Topic]:
        """All transitive children in pre-order (child, its subtree, next child)."""
        descendants: List[Topic] = []
        seen: Set[str] = {topic.id}
        self._collect_descendants(topic, descendants, seen)
        return descendants

    def _collect_descendants(self, topic: Topic, out: List[Topic], seen: Set[str]) -> None:
        for child in self.get_children(topic):
            if child.id in seen:
                continue
            seen.add(child.id)
            out.append(child)
            self._collect_descendants(child, out, seen)

    def get_depth(self, topic: Topic) -> int:
        """Number of resolvable ancestors (a root has depth 0)."""
        return len(self.get_ancestors(topic))

    # =========================================================================
    # REPARENTING
    # =========================================================================

    def would_create_cycle(self, topic_id: str, new_parent_id: Optional[str]) -> bool:
        """
        Check whether placing topic_id under new_parent_id closes a loop.

        Walks the candidate parent's ancestor chain toward topic_id instead of
        materializing topic_id's descendant set. The walk is capped at the
        topic count so a pre-existing cycle above the candidate terminates.
        """
        if new_parent_id is None:
            return False
        if new_parent_id == topic_id:
            return True

        limit = self.store.topic_count
        steps = 0
        current_id: Optional[str] = new_parent_id
        while current_id is not None and steps <= limit:
            if current_id == topic_id:
                return True
            current = self.store.find_by_id(current_id)
            if current is None:
                break
            current_id = current.parent_topic_id
            steps += 1

        return False

    def move(self, topic: Topic, new_parent_id: Optional[str]) -> Topic:
        """
        Reparent a topic by appending a new version.

        Args:
            topic: Snapshot to move (normally the latest)
            new_parent_id: New parent id, or None to make the topic a root

        Returns:
            The new snapshot

        Raises:
            CircularReferenceError: If new_parent_id is the topic itself or one
                of its descendants. Nothing is written in that case.
        """
        if self.would_create_cycle(topic.id, new_parent_id):
            logger.info("Rejected move of %s under %s (cycle)", topic.id, new_parent_id)
            raise CircularReferenceError(topic.id, new_parent_id)

        moved = topic.next_version(parent_topic_id=new_parent_id)
        return self.store.save(moved)

    # =========================================================================
    # MATERIALIZATION (rustworkx)
    # =========================================================================

    def to_digraph(self) -> Tuple[rx.PyDiGraph, Dict[str, int]]:
        """
        Materialize the current hierarchy as a rustworkx directed graph.

        One node per latest topic (payload = the Topic snapshot) and one
        parent -> child edge per resolvable parent pointer. Dangling pointers
        produce no edge.

        Returns:
            (graph, node_map) where node_map is topic id -> rustworkx index
        """
        graph = rx.PyDiGraph()
        topics = self.store.find_all_latest()

        indices = graph.add_nodes_from(topics)
        node_map: Dict[str, int] = {t.id: idx for t, idx in zip(topics, indices)}

        edges = [
            (node_map[t.parent_topic_id], node_map[t.id], None)
            for t in topics
            if t.parent_topic_id is not None and t.parent_topic_id in node_map
        ]
        graph.add_edges_from(edges)

        return graph, node_map
