"""
TOPICGRAPH PATH FINDER - Weighted Search Over Derived Edges

The search graph is implicit. Nodes are the latest topic snapshots; edges
are derived from parent pointers whenever a node is expanded:

    relation                  weight
    parent <-> child            1
    siblings (same parent)      2
    anything else               3   (not produced: neighbors are exactly
                                     parent + children + siblings)

Algorithms:
- find_shortest_path: Dijkstra with a linear scan for the next node, over
  the entire topic set. Ties on tentative distance are resolved in favor of
  the most recently settled predecessor, so routes through a shared parent
  win over an equal-weight sibling hop.
- find_all_paths: DFS with mark/unmark backtracking over simple paths.
- calculate_distance / find_closest_topics: hop counts of shortest paths.

Scaling Limits:
- find_shortest_path is O(V^2) per call because neighbor derivation rescans
  the store on every expansion.
- find_closest_topics runs one shortest-path search per topic: O(V^3).
  Suitable for small hierarchies only.
"""
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Set, Tuple

from core.schemas import Topic
from core.topic_graph import TopicGraph


# =============================================================================
# EDGE WEIGHTS
# =============================================================================

PARENT_CHILD_WEIGHT = 1
SIBLING_WEIGHT = 2
DEFAULT_WEIGHT = 3


@dataclass
class ClosestTopic:
    """A topic and its hop distance from the query topic."""
    topic: Topic
    distance: int


class PathFinder:
    """
    Path queries over the hierarchy's derived, undirected edges.

    Usage:
        finder = PathFinder(graph)
        finder.find_shortest_path(a.id, c.id)      # [a, b, c]
        finder.calculate_distance(a.id, c.id)      # 2
        finder.find_all_paths(a.id, c.id, max_depth=4)
    """

    def __init__(self, graph: TopicGraph):
        self.graph = graph

    @property
    def store(self):
        return self.graph.store

    # =========================================================================
    # EDGE DERIVATION
    # =========================================================================

    def get_neighbors(self, topic: Topic) -> List[Topic]:
        """Parent (if resolvable), then children, then siblings."""
        neighbors: List[Topic] = []

        parent = self.graph.get_parent(topic)
        if parent is not None:
            neighbors.append(parent)

        neighbors.extend(self.graph.get_children(topic))
        neighbors.extend(self.graph.get_siblings(topic))
        return neighbors

    @staticmethod
    def get_edge_weight(source: Topic, target: Topic) -> int:
        """Weight of the derived edge between two topics."""
        if source.parent_topic_id == target.id or target.parent_topic_id == source.id:
            return PARENT_CHILD_WEIGHT
        if source.parent_topic_id is not None and source.parent_topic_id == target.parent_topic_id:
            return SIBLING_WEIGHT
        return DEFAULT_WEIGHT

    # =========================================================================
    # SHORTEST PATH
    # =========================================================================

    def find_shortest_path(self, from_id: str, to_id: str) -> List[Topic]:
        """
        Lowest-weight path between two topics.

        Returns:
            Topics from source to target inclusive. [topic] when both ids are
            the same, [] when either id is unknown or no path exists.
        """
        path, _ = self._dijkstra(from_id, to_id)
        return path

    def calculate_path_weight(self, from_id: str, to_id: str) -> Optional[float]:
        """Total edge weight of the shortest path, None if there is none."""
        path, weight = self._dijkstra(from_id, to_id)
        return weight if path else None

    def _dijkstra(self, from_id: str, to_id: str) -> Tuple[List[Topic], float]:
        if from_id == to_id:
            topic = self.store.find_by_id(from_id)
            return ([topic], 0) if topic is not None else ([], math.inf)

        if self.store.find_by_id(from_id) is None or self.store.find_by_id(to_id) is None:
            return [], math.inf

        topics: Dict[str, Topic] = {t.id: t for t in self.store.find_all_latest()}
        distance: Dict[str, float] = {topic_id: math.inf for topic_id in topics}
        previous: Dict[str, Optional[str]] = {topic_id: None for topic_id in topics}
        distance[from_id] = 0
        unvisited: List[str] = list(topics)

        while unvisited:
            # Linear scan for the closest unvisited node (first wins on ties)
            current_id = None
            best = math.inf
            for topic_id in unvisited:
                if distance[topic_id] < best:
                    best = distance[topic_id]
                    current_id = topic_id

            if current_id is None:
                break  # everything left is unreachable

            unvisited.remove(current_id)

            if current_id == to_id:
                return self._reconstruct(previous, topics, to_id), distance[to_id]

            current = topics[current_id]
            for neighbor in self.get_neighbors(current):
                if neighbor.id not in unvisited:
                    continue
                candidate = distance[current_id] + self.get_edge_weight(current, neighbor)
                if candidate <= distance[neighbor.id]:
                    distance[neighbor.id] = candidate
                    previous[neighbor.id] = current_id

        return [], math.inf

    @staticmethod
    def _reconstruct(
        previous: Dict[str, Optional[str]],
        topics: Dict[str, Topic],
        target_id: str,
    ) -> List[Topic]:
        path: List[Topic] = []
        current: Optional[str] = target_id
        while current is not None:
            path.append(topics[current])
            current = previous[current]
        path.reverse()
        return path

    # =========================================================================
    # PATH ENUMERATION
    # =========================================================================

    def find_all_paths(self, from_id: str, to_id: str, max_depth: int = 10) -> List[List[Topic]]:
        """
        Every simple path of at most max_depth hops, shortest first.

        The search is exhaustive; keep max_depth small on bushy hierarchies.
        """
        source = self.store.find_by_id(from_id)
        if source is None:
            return []
        if from_id == to_id:
            return [[source]]

        paths: List[List[Topic]] = []
        visited: Set[str] = set()
        self._dfs_paths(source, to_id, [source], visited, paths, max_depth)

        paths.sort(key=len)
        return paths

    def _dfs_paths(
        self,
        current: Topic,
        target_id: str,
        path: List[Topic],
        visited: Set[str],
        paths: List[List[Topic]],
        max_depth: int,
    ) -> None:
        if len(path) - 1 > max_depth:
            return

        if current.id == target_id:
            paths.append(list(path))
            return

        visited.add(current.id)
        for neighbor in self.get_neighbors(current):
            if neighbor.id in visited:
                continue
            path.append(neighbor)
            self._dfs_paths(neighbor, target_id, path, visited, paths, max_depth)
            path.pop()
        visited.discard(current.id)

    # =========================================================================
    # DISTANCES
    # =========================================================================

    def calculate_distance(self, from_id: str, to_id: str) -> int:
        """Hop count of the shortest path, or -1 if there is none."""
        path = self.find_shortest_path(from_id, to_id)
        return len(path) - 1 if path else -1

    def find_closest_topics(self, topic_id: str, max_distance: int = 3) -> List[ClosestTopic]:
        """
        Every other topic within max_distance hops, nearest first.

        O(V) shortest-path searches at O(V^2) each.
        """
        if self.store.find_by_id(topic_id) is None:
            return []

        results: List[ClosestTopic] = []
        for topic in self.store.find_all_latest():
            if topic.id == topic_id:
                continue
            distance = self.calculate_distance(topic_id, topic.id)
            if 0 <= distance <= max_distance:
                results.append(ClosestTopic(topic=topic, distance=distance))

        results.sort(key=lambda r: r.distance)
        return results
