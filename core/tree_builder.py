"""
TOPICGRAPH TREE BUILDER - Forests From Flat Snapshots

Two ways to assemble TopicNode trees:

- Batch (build_forest): one O(n) pass creates a node per latest topic, a
  second O(n) pass attaches each node under its parent via an id map.
  Topics whose parent is unset or unresolvable become roots.
- Single subtree (get_topic_tree): fetch the root, then fetch live children
  through TopicGraph one lookup per node. Used when only one subtree is
  wanted.

There is a single node shape. A leaf is simply a node with no children.
"""
import logging
from typing import Dict, List, Optional, Set

from core.errors import TopicNotFoundError
from core.schemas import Topic, TopicTree
from core.topic_graph import TopicGraph


logger = logging.getLogger("topicgraph.tree")


# =============================================================================
# TREE NODE
# =============================================================================

class TopicNode:
    """A topic plus its (possibly empty) list of child nodes."""

    def __init__(self, topic: Topic):
        self.topic = topic
        self._children: List["TopicNode"] = []

    @property
    def id(self) -> str:
        return self.topic.id

    @property
    def name(self) -> str:
        return self.topic.name

    @property
    def is_leaf(self) -> bool:
        return not self._children

    # === Structure ===

    def add_child(self, node: "TopicNode") -> None:
        """
        Attach a child node.

        Raises:
            ValueError: If the child's parent pointer is not this topic
        """
        if node.topic.parent_topic_id != self.topic.id:
            raise ValueError(
                f"Child parent_topic_id ({node.topic.parent_topic_id}) "
                f"does not match parent id ({self.topic.id})"
            )
        self._children.append(node)

    def remove_child(self, node: "TopicNode") -> bool:
        if node in self._children:
            self._children.remove(node)
            return True
        return False

    def get_children(self) -> List["TopicNode"]:
        return list(self._children)

    # === Queries ===

    def get_size(self) -> int:
        """Number of nodes in this subtree, including this one."""
        return 1 + sum(child.get_size() for child in self._children)

    def get_depth(self) -> int:
        """Longest root-to-leaf path counted in nodes (a leaf is 1)."""
        if not self._children:
            return 1
        return 1 + max(child.get_depth() for child in self._children)

    def find_by_id(self, topic_id: str) -> Optional["TopicNode"]:
        """Pre-order search of this subtree."""
        if self.topic.id == topic_id:
            return self
        for child in self._children:
            found = child.find_by_id(topic_id)
            if found is not None:
                return found
        return None

    def get_all_topics(self) -> List[Topic]:
        """Flatten this subtree in pre-order."""
        topics = [self.topic]
        for child in self._children:
            topics.extend(child.get_all_topics())
        return topics

    def get_topics_at_depth(self, depth: int, current_depth: int = 1) -> List[Topic]:
        """Topics exactly `depth` levels down, where this node is level 1."""
        if current_depth == depth:
            return [self.topic]
        if current_depth > depth:
            return []

        topics: List[Topic] = []
        for child in self._children:
            topics.extend(child.get_topics_at_depth(depth, current_depth + 1))
        return topics

    # === Transformations ===

    def sort_children(self) -> None:
        """Order children by name, recursively."""
        self._children.sort(key=lambda node: node.name)
        for child in self._children:
            child.sort_children()

    def to_tree(self) -> TopicTree:
        return TopicTree(
            topic=self.topic,
            children=[child.to_tree() for child in self._children],
        )

    def __repr__(self) -> str:
        return f"TopicNode(id={self.id!r}, name={self.name!r}, children={len(self._children)})"


# =============================================================================
# BUILDER
# =============================================================================

class TreeBuilder:
    """
    Assembles TopicNode trees from the store.

    Usage:
        builder = TreeBuilder(graph)
        forest = builder.build_forest(sort=True)
        subtree = builder.get_topic_tree(root_id)
    """

    def __init__(self, graph: TopicGraph):
        self.graph = graph

    def build_forest(self, sort: bool = False) -> List[TopicNode]:
        """Build every tree from the latest snapshots (batch mode)."""
        return self.build_from_topics(self.graph.store.find_all_latest(), sort=sort)

    def build_from_topics(self, topics: List[Topic], sort: bool = False) -> List[TopicNode]:
        """
        Build a forest from an arbitrary flat list of snapshots.

        Topics caught in a parent cycle never hang below a root, so they are
        left out of the result.
        """
        # First pass: one node per topic
        nodes: Dict[str, TopicNode] = {t.id: TopicNode(t) for t in topics}

        # Second pass: attach under parents
        roots: List[TopicNode] = []
        for topic in topics:
            node = nodes[topic.id]
            parent = nodes.get(topic.parent_topic_id) if topic.parent_topic_id else None
            if parent is None:
                roots.append(node)
            else:
                parent.add_child(node)

        placed = sum(root.get_size() for root in roots)
        if placed < len(nodes):
            logger.warning(
                "%d topic(s) excluded from forest: parent chain is cyclic",
                len(nodes) - placed,
            )

        if sort:
            roots.sort(key=lambda node: node.name)
            for root in roots:
                root.sort_children()

        return roots

    def get_topic_tree(self, root_id: str) -> TopicNode:
        """
        Build the subtree rooted at root_id by walking live children.

        Raises:
            TopicNotFoundError: If root_id is unknown
        """
        root = self.graph.store.find_by_id(root_id)
        if root is None:
            raise TopicNotFoundError(root_id)

        seen: Set[str] = {root.id}
        return self._build_subtree(root, seen)

    def _build_subtree(self, topic: Topic, seen: Set[str]) -> TopicNode:
        node = TopicNode(topic)
        for child in self.graph.get_children(topic):
            if child.id in seen:
                logger.warning("Skipping %s under %s: already in subtree", child.id, topic.id)
                continue
            seen.add(child.id)
            node.add_child(self._build_subtree(child, seen))
        return node
