"""
TOPICGRAPH SCHEMAS - The Shape of a Topic

This module defines the data structures that flow through the topic store:
- Topic: One immutable snapshot of a versioned topic
- TopicTree: Plain recursive {topic, children} view of a subtree
- Serialization helpers for snapshots and bulk state transfer

Design Principles:
1. IMMUTABLE SNAPSHOTS: Topic is a frozen msgspec.Struct. A new version is a
   new struct built with msgspec.structs.replace, never an in-place edit.
2. KW_ONLY: Enforce keyword arguments to prevent positional mix-ups
3. CAMELCASE ON THE WIRE: Python attributes are snake_case, exported JSON uses
   parentTopicId / createdAt / updatedAt
4. NO BACK-REFERENCES: A snapshot knows its parent's id, never the store
"""
import msgspec
from typing import Optional, Dict, List
from datetime import datetime, timezone
import uuid


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def now_utc() -> str:
    """Fast UTC timestamp as ISO8601 string."""
    return datetime.now(timezone.utc).isoformat()


def generate_id() -> str:
    """Generate a new UUID hex string for topic IDs."""
    return uuid.uuid4().hex


# =============================================================================
# TOPIC SNAPSHOT
# =============================================================================

class Topic(msgspec.Struct, kw_only=True, frozen=True, rename="camel", forbid_unknown_fields=True):
    """
    One version of a topic.

    Every version of a topic shares the same `id`. Versions are numbered
    1..N without gaps; the highest number is the "latest" version and is the
    only one that participates in the live hierarchy.

    `parent_topic_id` is a plain id, resolved against the parent's latest
    version at read time. It is never a pointer to a specific snapshot.
    """
    # === Identity ===
    id: str
    version: int = 1

    # === Content ===
    name: str
    content: str

    # === Hierarchy ===
    parent_topic_id: Optional[str] = None

    # === Provenance ===
    created_at: str = msgspec.field(default_factory=now_utc)
    updated_at: str = msgspec.field(default_factory=now_utc)

    @property
    def is_root(self) -> bool:
        """True if this snapshot has no parent pointer."""
        return self.parent_topic_id is None

    def next_version(self, **changes) -> "Topic":
        """
        Build the snapshot that follows this one.

        Unspecified fields are copied forward, `version` is incremented and
        `updated_at` refreshed. The receiver is left untouched.
        """
        return msgspec.structs.replace(
            self,
            version=self.version + 1,
            updated_at=now_utc(),
            **changes,
        )

    def to_dict(self) -> Dict[str, object]:
        """Wire representation (camelCase keys)."""
        return msgspec.to_builtins(self)

    @classmethod
    def create(
        cls,
        name: str,
        content: str,
        parent_topic_id: Optional[str] = None,
        **kwargs
    ) -> "Topic":
        """Factory method for a version-1 snapshot with optional custom ID."""
        topic_id = kwargs.pop("id", None) or generate_id()
        timestamp = now_utc()
        kwargs.setdefault("created_at", timestamp)
        kwargs.setdefault("updated_at", timestamp)
        return cls(
            id=topic_id,
            version=1,
            name=name,
            content=content,
            parent_topic_id=parent_topic_id,
            **kwargs
        )


# =============================================================================
# TREE VIEW
# =============================================================================

class TopicTree(msgspec.Struct, kw_only=True):
    """Recursive {topic, children} view produced by TopicNode.to_tree()."""
    topic: Topic
    children: List["TopicTree"] = msgspec.field(default_factory=list)


# =============================================================================
# SERIALIZATION HELPERS
# =============================================================================

# Pre-compiled encoders/decoders, reused across the application

_topic_encoder = msgspec.json.Encoder()
_topic_decoder = msgspec.json.Decoder(type=Topic)

_export_decoder = msgspec.json.Decoder(type=Dict[str, List[Topic]])


def serialize_topic(topic: Topic) -> bytes:
    """Serialize a Topic snapshot to JSON bytes."""
    return _topic_encoder.encode(topic)


def deserialize_topic(data: bytes) -> Topic:
    """Deserialize JSON bytes to a Topic snapshot."""
    return _topic_decoder.decode(data)


def serialize_export(data: Dict[str, List[Topic]]) -> bytes:
    """Serialize a full {id: [versions]} export to JSON bytes."""
    return _topic_encoder.encode(data)


def deserialize_export(data: bytes) -> Dict[str, List[Topic]]:
    """Deserialize JSON bytes produced by serialize_export."""
    return _export_decoder.decode(data)


def convert_export(data: Dict[str, List[Dict[str, object]]]) -> Dict[str, List[Topic]]:
    """
    Convert builtin export data ({id: [dict, ...]}) into Topic snapshots.

    Raises:
        msgspec.ValidationError: If any record is malformed
    """
    return msgspec.convert(data, type=Dict[str, List[Topic]])
