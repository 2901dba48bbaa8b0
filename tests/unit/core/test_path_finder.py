"""
Unit tests for core/path_finder.py - PathFinder

Tests weighted search over derived edges:
- Edge weights and neighbor derivation
- Shortest path (chain, siblings, same node, disconnected)
- All simple paths with a hop limit
- Distances and nearest topics
"""
import pytest

from core.path_finder import PathFinder
from core.topic_graph import TopicGraph
from core.version_store import VersionStore
from conftest import make_topic


def _finder(*topics):
    store = VersionStore()
    for topic in topics:
        store.save(topic)
    return PathFinder(TopicGraph(store))


def _ids(path):
    return [t.id for t in path]


@pytest.fixture
def family():
    """
    g
    +-- p
    |   +-- a
    |   +-- b
    +-- u
        +-- c
    island
    """
    return _finder(
        make_topic("g"),
        make_topic("p", parent="g"),
        make_topic("u", parent="g"),
        make_topic("a", parent="p"),
        make_topic("b", parent="p"),
        make_topic("c", parent="u"),
        make_topic("island"),
    )


# =============================================================================
# EDGES
# =============================================================================

def test_edge_weights():
    parent = make_topic("p")
    child = make_topic("c", parent="p")
    sibling = make_topic("s", parent="p")
    stranger = make_topic("x")

    assert PathFinder.get_edge_weight(parent, child) == 1
    assert PathFinder.get_edge_weight(child, parent) == 1
    assert PathFinder.get_edge_weight(child, sibling) == 2
    assert PathFinder.get_edge_weight(parent, stranger) == 3


def test_roots_are_not_siblings():
    assert PathFinder.get_edge_weight(make_topic("r1"), make_topic("r2")) == 3


def test_neighbors_parent_children_siblings(family):
    a = family.store.find_by_id("a")
    assert _ids(family.get_neighbors(a)) == ["p", "b"]

    p = family.store.find_by_id("p")
    assert _ids(family.get_neighbors(p)) == ["g", "a", "b", "u"]


# =============================================================================
# SHORTEST PATH
# =============================================================================

def test_same_node_path():
    finder = _finder(make_topic("a"))
    assert _ids(finder.find_shortest_path("a", "a")) == ["a"]
    assert finder.find_shortest_path("missing", "missing") == []


def test_chain_path():
    """
    Validate the path down a chain A -> B -> C.

    Verifies:
    - Path is [A, B, C]
    - Total weight is 2
    """
    finder = _finder(
        make_topic("a"),
        make_topic("b", parent="a"),
        make_topic("c", parent="b"),
    )

    assert _ids(finder.find_shortest_path("a", "c")) == ["a", "b", "c"]
    assert _ids(finder.find_shortest_path("c", "a")) == ["c", "b", "a"]
    assert finder.calculate_path_weight("a", "c") == 2


def test_sibling_path_goes_through_parent():
    """Siblings B, C under A resolve to [B, A, C] with weight 2."""
    finder = _finder(
        make_topic("a"),
        make_topic("b", parent="a"),
        make_topic("c", parent="a"),
    )

    assert _ids(finder.find_shortest_path("b", "c")) == ["b", "a", "c"]
    assert finder.calculate_path_weight("b", "c") == 2


def test_cousins_path(family):
    assert _ids(family.find_shortest_path("a", "c")) == ["a", "p", "g", "u", "c"]
    assert family.calculate_path_weight("a", "c") == 4


def test_disconnected_returns_empty(family):
    assert family.find_shortest_path("a", "island") == []
    assert family.calculate_path_weight("a", "island") is None


def test_unknown_endpoint_returns_empty(family):
    assert family.find_shortest_path("a", "missing") == []
    assert family.find_shortest_path("missing", "a") == []


def test_siblings_under_dangling_parent_still_connected():
    finder = _finder(make_topic("x", parent="gone"), make_topic("y", parent="gone"))
    assert _ids(finder.find_shortest_path("x", "y")) == ["x", "y"]
    assert finder.calculate_path_weight("x", "y") == 2


# =============================================================================
# ALL PATHS
# =============================================================================

def test_all_paths_sorted_by_length():
    """
    Validate enumeration between two siblings.

    Verifies:
    - Both the direct sibling hop and the route via the parent are found
    - Results are ordered shortest first
    """
    finder = _finder(
        make_topic("a"),
        make_topic("b", parent="a"),
        make_topic("c", parent="a"),
    )

    paths = [_ids(p) for p in finder.find_all_paths("b", "c")]

    assert paths == [["b", "c"], ["b", "a", "c"]]


def test_all_paths_respects_max_depth():
    finder = _finder(
        make_topic("a"),
        make_topic("b", parent="a"),
        make_topic("c", parent="a"),
    )

    paths = [_ids(p) for p in finder.find_all_paths("b", "c", max_depth=1)]

    assert paths == [["b", "c"]]


def test_all_paths_same_node_and_unknown(family):
    assert [_ids(p) for p in family.find_all_paths("a", "a")] == [["a"]]
    assert family.find_all_paths("missing", "a") == []
    assert family.find_all_paths("a", "island") == []


def test_all_paths_are_simple(family):
    for path in family.find_all_paths("a", "c", max_depth=6):
        ids = _ids(path)
        assert len(ids) == len(set(ids))
        assert ids[0] == "a" and ids[-1] == "c"


# =============================================================================
# DISTANCES
# =============================================================================

def test_calculate_distance(family):
    assert family.calculate_distance("a", "a") == 0
    assert family.calculate_distance("a", "p") == 1
    assert family.calculate_distance("a", "c") == 4
    assert family.calculate_distance("a", "island") == -1


def test_find_closest_topics(family):
    """
    Validate nearest-topic search.

    Verifies:
    - The query topic itself is excluded
    - Unreachable topics are excluded
    - Results are ascending by distance and within the limit
    """
    results = family.find_closest_topics("a", max_distance=2)

    distances = {r.topic.id: r.distance for r in results}
    assert distances == {"p": 1, "b": 2, "g": 2}
    assert [r.distance for r in results] == sorted(r.distance for r in results)


def test_find_closest_topics_unknown(family):
    assert family.find_closest_topics("missing") == []
