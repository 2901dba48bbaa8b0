"""
TOPICGRAPH HIERARCHY VALIDATOR - Integrity Scan

move() keeps the hierarchy acyclic for writes that go through the service,
but imported or seeded data can still be inconsistent. This module reports
such problems; it never repairs them and never raises.

Checks (per latest topic):
1. Dangling parent: parent_topic_id is set but does not resolve
2. Circular reference: walking the ancestor chain revisits an id

Metrics come from the rustworkx materialization of the hierarchy.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Set

import rustworkx as rx

from core.schemas import Topic
from core.topic_graph import TopicGraph


logger = logging.getLogger("topicgraph.validator")


# =============================================================================
# REPORT TYPES
# =============================================================================

class ViolationKind(str, Enum):
    DANGLING_PARENT = "dangling_parent"
    CIRCULAR_REFERENCE = "circular_reference"


@dataclass
class HierarchyViolation:
    """A single integrity problem attached to one topic."""
    kind: ViolationKind
    topic_id: str
    message: str
    parent_id: Optional[str] = None


@dataclass
class HierarchyReport:
    """Result of a full hierarchy scan."""
    is_valid: bool
    errors: List[HierarchyViolation] = field(default_factory=list)
    metrics: Dict[str, Any] = field(default_factory=dict)

    @property
    def messages(self) -> List[str]:
        return [e.message for e in self.errors]

    def topics_with(self, kind: ViolationKind) -> List[str]:
        """Ids of topics flagged with the given kind."""
        return [e.topic_id for e in self.errors if e.kind == kind]

    def to_dict(self) -> Dict[str, Any]:
        return {"isValid": self.is_valid, "errors": self.messages}


# =============================================================================
# VALIDATOR
# =============================================================================

class HierarchyValidator:
    """
    Read-only integrity checker.

    Usage:
        report = HierarchyValidator(graph).validate()
        if not report.is_valid:
            for message in report.messages:
                print(message)
    """

    def __init__(self, graph: TopicGraph):
        self.graph = graph

    def validate(self) -> HierarchyReport:
        """Scan every latest topic for dangling parents and cycles."""
        store = self.graph.store
        errors: List[HierarchyViolation] = []

        for topic in store.find_all_latest():
            if topic.parent_topic_id is not None and store.find_by_id(topic.parent_topic_id) is None:
                errors.append(HierarchyViolation(
                    kind=ViolationKind.DANGLING_PARENT,
                    topic_id=topic.id,
                    parent_id=topic.parent_topic_id,
                    message=(
                        f"Topic {topic.id} references non-existent parent "
                        f"{topic.parent_topic_id}"
                    ),
                ))

            if self.has_circular_reference(topic):
                errors.append(HierarchyViolation(
                    kind=ViolationKind.CIRCULAR_REFERENCE,
                    topic_id=topic.id,
                    parent_id=topic.parent_topic_id,
                    message=f"Topic {topic.id} has circular reference in hierarchy",
                ))

        if errors:
            logger.warning("Hierarchy scan found %d problem(s)", len(errors))

        return HierarchyReport(
            is_valid=not errors,
            errors=errors,
            metrics=self.compute_metrics(),
        )

    def has_circular_reference(self, topic: Topic) -> bool:
        """True if the ancestor walk starting at topic revisits an id."""
        store = self.graph.store
        visited: Set[str] = set()
        current: Optional[Topic] = topic

        while current is not None:
            if current.id in visited:
                return True
            visited.add(current.id)
            current = store.find_by_id(current.parent_topic_id)

        return False

    def compute_metrics(self) -> Dict[str, Any]:
        """Shape metrics of the materialized hierarchy."""
        digraph, _ = self.graph.to_digraph()
        roots = sum(1 for idx in digraph.node_indices() if digraph.in_degree(idx) == 0)
        return {
            "topic_count": digraph.num_nodes(),
            "edge_count": digraph.num_edges(),
            "root_count": roots,
            "weakly_connected_components": (
                rx.number_weakly_connected_components(digraph) if digraph.num_nodes() else 0
            ),
            "is_acyclic": rx.is_directed_acyclic_graph(digraph),
        }


def validate_hierarchy(graph: TopicGraph) -> HierarchyReport:
    """Convenience function to validate a hierarchy."""
    return HierarchyValidator(graph).validate()
