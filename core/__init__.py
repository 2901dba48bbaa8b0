"""
TOPICGRAPH CORE - Central exports for the topic store.

This module provides access to:
- Snapshots (Topic, TopicTree)
- Storage (VersionStore)
- Derived hierarchy (TopicGraph) and its read-side queries
  (TreeBuilder, PathFinder, HierarchyValidator)
- The orchestration boundary (TopicService)
"""

from core.errors import (
    TopicGraphError,
    TopicNotFoundError,
    ValidationError,
    CircularReferenceError,
    VersionConflictError,
)
from core.schemas import Topic, TopicTree
from core.version_store import VersionStore
from core.topic_graph import TopicGraph
from core.tree_builder import TopicNode, TreeBuilder
from core.path_finder import ClosestTopic, PathFinder
from core.hierarchy_validator import (
    HierarchyReport,
    HierarchyValidator,
    HierarchyViolation,
    ViolationKind,
)
from core.topic_service import TopicService, UNSET

__all__ = [
    # Errors
    "TopicGraphError",
    "TopicNotFoundError",
    "ValidationError",
    "CircularReferenceError",
    "VersionConflictError",
    # Data
    "Topic",
    "TopicTree",
    # Components
    "VersionStore",
    "TopicGraph",
    "TopicNode",
    "TreeBuilder",
    "ClosestTopic",
    "PathFinder",
    "HierarchyReport",
    "HierarchyValidator",
    "HierarchyViolation",
    "ViolationKind",
    # Service
    "TopicService",
    "UNSET",
]
