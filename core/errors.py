"""
TOPICGRAPH ERRORS

Exception taxonomy raised at the service boundary. Internal lookups in the
store and the graph return None or empty lists instead of raising.
"""
from typing import List, Optional, Sequence


class TopicGraphError(Exception):
    """Base exception for topic store operations."""
    pass


class TopicNotFoundError(TopicGraphError):
    """Raised when a topic id (or a specific version of it) does not exist."""
    def __init__(self, topic_id: str, version: Optional[int] = None):
        self.topic_id = topic_id
        self.version = version
        if version is None:
            super().__init__(f"Topic not found: {topic_id}")
        else:
            super().__init__(f"Topic not found: {topic_id} (version {version})")


class ValidationError(TopicGraphError):
    """Raised when topic fields or imported data fail validation."""
    def __init__(self, errors: Sequence[str]):
        self.errors: List[str] = list(errors)
        super().__init__(f"Topic validation failed: {', '.join(self.errors)}")


class CircularReferenceError(TopicGraphError):
    """Raised when moving a topic would make it its own ancestor."""
    def __init__(self, topic_id: str, new_parent_id: str):
        self.topic_id = topic_id
        self.new_parent_id = new_parent_id
        super().__init__(
            f"Cannot move {topic_id} under {new_parent_id}: "
            f"would create a circular reference"
        )


class VersionConflictError(TopicGraphError):
    """Raised when an expected-version precondition does not hold."""
    def __init__(self, topic_id: str, expected: int, actual: int):
        self.topic_id = topic_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Version conflict on {topic_id}: expected {expected}, found {actual}"
        )
