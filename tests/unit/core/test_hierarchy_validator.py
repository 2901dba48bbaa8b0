"""
Unit tests for core/hierarchy_validator.py - HierarchyValidator

Tests the read-only integrity scan:
- Clean hierarchies validate
- Dangling parents are reported
- Every topic on (or hanging below) a parent cycle is reported
- Metrics from the rustworkx materialization
"""
import unittest

from core.hierarchy_validator import (
    HierarchyValidator,
    ViolationKind,
    validate_hierarchy,
)
from core.topic_graph import TopicGraph
from core.version_store import VersionStore
from conftest import make_topic


def _graph(*topics):
    store = VersionStore()
    for topic in topics:
        store.save(topic)
    return TopicGraph(store)


class TestCleanHierarchy(unittest.TestCase):

    def test_empty_store_valid(self):
        report = validate_hierarchy(_graph())
        self.assertTrue(report.is_valid)
        self.assertEqual(report.errors, [])
        self.assertEqual(report.metrics["topic_count"], 0)

    def test_forest_valid(self):
        report = validate_hierarchy(_graph(
            make_topic("r"),
            make_topic("a", parent="r"),
            make_topic("b", parent="a"),
            make_topic("other"),
        ))
        self.assertTrue(report.is_valid)
        self.assertEqual(report.metrics["root_count"], 2)
        self.assertEqual(report.metrics["edge_count"], 2)
        self.assertEqual(report.metrics["weakly_connected_components"], 2)
        self.assertTrue(report.metrics["is_acyclic"])

    def test_to_dict(self):
        report = validate_hierarchy(_graph(make_topic("r")))
        self.assertEqual(report.to_dict(), {"isValid": True, "errors": []})


class TestDanglingParent(unittest.TestCase):

    def test_dangling_parent_reported(self):
        report = validate_hierarchy(_graph(
            make_topic("r"),
            make_topic("orphan", parent="deleted"),
        ))

        self.assertFalse(report.is_valid)
        self.assertEqual(report.topics_with(ViolationKind.DANGLING_PARENT), ["orphan"])
        self.assertEqual(report.errors[0].parent_id, "deleted")
        self.assertIn("non-existent parent deleted", report.messages[0])

    def test_dangling_is_not_circular(self):
        report = validate_hierarchy(_graph(make_topic("orphan", parent="deleted")))
        self.assertEqual(report.topics_with(ViolationKind.CIRCULAR_REFERENCE), [])


class TestCircularReference(unittest.TestCase):

    def test_two_node_cycle_flags_both(self):
        """A -> B -> A reports a circular reference for A and for B."""
        report = validate_hierarchy(_graph(
            make_topic("a", parent="b"),
            make_topic("b", parent="a"),
        ))

        self.assertFalse(report.is_valid)
        self.assertEqual(
            sorted(report.topics_with(ViolationKind.CIRCULAR_REFERENCE)),
            ["a", "b"],
        )
        self.assertFalse(report.metrics["is_acyclic"])

    def test_self_parent_flagged(self):
        report = validate_hierarchy(_graph(make_topic("a", parent="a")))
        self.assertEqual(report.topics_with(ViolationKind.CIRCULAR_REFERENCE), ["a"])

    def test_topic_below_cycle_flagged(self):
        """A topic whose ancestor walk runs into a cycle is flagged too."""
        report = validate_hierarchy(_graph(
            make_topic("a", parent="b"),
            make_topic("b", parent="a"),
            make_topic("tail", parent="a"),
            make_topic("clean"),
        ))

        flagged = sorted(report.topics_with(ViolationKind.CIRCULAR_REFERENCE))
        self.assertEqual(flagged, ["a", "b", "tail"])

    def test_has_circular_reference(self):
        graph = _graph(make_topic("a", parent="b"), make_topic("b", parent="a"), make_topic("c"))
        validator = HierarchyValidator(graph)

        self.assertTrue(validator.has_circular_reference(graph.store.find_by_id("a")))
        self.assertFalse(validator.has_circular_reference(graph.store.find_by_id("c")))


if __name__ == "__main__":
    unittest.main()
