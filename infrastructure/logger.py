"""
TOPICGRAPH MUTATION LOGGER - The Write Journal

Records every write that goes through TopicService so the history of a
topic's versions can be replayed and inspected.

Architecture:
- MutationLogger: Core logging interface
- EventBuffer: In-memory ring buffer for recent events
- FileLogger: Optional newline-delimited JSON log

Usage:
    logger = MutationLogger()
    logger.log_topic_created("abc123", version=1, name="Graphs")
    logger.log_topic_moved("abc123", version=2, old_parent_id=None, new_parent_id="root")

    events = logger.get_events_for_topic("abc123")

Design:
- Diagnostics (warnings, integrity faults) go through stdlib logging;
  this module journals successful writes only
- Buffer and file sink assume the synchronous caller of TopicService
- Subscribers are called synchronously after each event
"""
import logging
import msgspec
from typing import Any, BinaryIO, Callable, Dict, List, Optional
from datetime import datetime, timezone
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from collections import deque
import itertools


diag = logging.getLogger("topicgraph.mutations")


# =============================================================================
# EVENT TYPES
# =============================================================================

class MutationType(str, Enum):
    """Types of store writes."""
    TOPIC_CREATED = "TOPIC_CREATED"
    TOPIC_UPDATED = "TOPIC_UPDATED"
    TOPIC_MOVED = "TOPIC_MOVED"
    TOPIC_DELETED = "TOPIC_DELETED"
    STORE_IMPORTED = "STORE_IMPORTED"


class TopicMutationEvent(msgspec.Struct, kw_only=True):
    """A single journaled write."""
    timestamp: str
    sequence: int
    mutation_type: str                  # MutationType value
    topic_id: Optional[str] = None
    version: Optional[int] = None
    name: Optional[str] = None

    # For moves
    old_parent_id: Optional[str] = None
    new_parent_id: Optional[str] = None

    # For bulk imports
    topic_count: int = 0


# =============================================================================
# CONFIGURATION
# =============================================================================

@dataclass
class LoggerConfig:
    """Configuration for the mutation logger."""
    enable_file_log: bool = False       # Enable file-based logging
    log_path: Optional[Path] = None     # Path for log files
    buffer_size: int = 10000            # In-memory buffer size

    def __post_init__(self):
        if self.log_path is None:
            self.log_path = Path("./workspace/logs")

    @classmethod
    def from_settings(cls, settings) -> "LoggerConfig":
        """Build from a TopicGraphConfig."""
        return cls(
            enable_file_log=settings.log_mutations_to_file,
            log_path=Path(settings.log_path),
            buffer_size=settings.mutation_buffer_size,
        )


# =============================================================================
# EVENT BUFFER
# =============================================================================

class EventBuffer:
    """
    Bounded in-memory history of mutation events, oldest first.

    TopicService is synchronous, so appends and queries never interleave.
    When max_size is reached the oldest event is evicted.
    """

    def __init__(self, max_size: int = 10000):
        self._events: deque[TopicMutationEvent] = deque(maxlen=max_size)
        self._counter = itertools.count(1)

    def append(self, event: TopicMutationEvent) -> None:
        self._events.append(event)

    def next_sequence(self) -> int:
        return next(self._counter)

    def query(
        self,
        topic_id: Optional[str] = None,
        mutation_type: Optional[str] = None,
        since: Optional[str] = None,
    ) -> List[TopicMutationEvent]:
        """Events matching every filter that is given."""
        return [
            e for e in self._events
            if (topic_id is None or e.topic_id == topic_id)
            and (mutation_type is None or e.mutation_type == mutation_type)
            and (since is None or e.timestamp >= since)
        ]

    def tail(self, n: int) -> List[TopicMutationEvent]:
        """The newest n events, still oldest first."""
        if n <= 0:
            return []
        start = max(len(self._events) - n, 0)
        return list(itertools.islice(self._events, start, None))

    def clear(self) -> None:
        self._events.clear()

    def __len__(self) -> int:
        return len(self._events)


# =============================================================================
# FILE LOGGER
# =============================================================================

class FileLogger:
    """
    Daily JSONL journal: <log_path>/mutations_<YYYY-MM-DD>.jsonl

    The handle for the current UTC day stays open until close() or the
    first write on a new day.
    """

    def __init__(self, log_path: Path):
        self.log_path = Path(log_path)
        self.log_path.mkdir(parents=True, exist_ok=True)
        self._handle: Optional[BinaryIO] = None
        self._day: Optional[str] = None
        self._encoder = msgspec.json.Encoder()

    def path_for(self, day: str) -> Path:
        return self.log_path / f"mutations_{day}.jsonl"

    def write(self, event: TopicMutationEvent) -> None:
        day = datetime.now(timezone.utc).strftime("%Y-%m-%d")
        if day != self._day:
            self.close()
            self._handle = open(self.path_for(day), "ab")
            self._day = day

        self._handle.write(self._encoder.encode(event) + b"\n")
        self._handle.flush()

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
        self._handle = None
        self._day = None

    def read_log(self, day: str) -> List[TopicMutationEvent]:
        """Events journaled on one UTC day (YYYY-MM-DD); unreadable lines are skipped."""
        path = self.path_for(day)
        if not path.exists():
            return []

        decoder = msgspec.json.Decoder(type=TopicMutationEvent)
        events: List[TopicMutationEvent] = []
        for lineno, line in enumerate(path.read_bytes().splitlines(), start=1):
            if not line.strip():
                continue
            try:
                events.append(decoder.decode(line))
            except msgspec.DecodeError:
                diag.warning("Skipping unreadable line %d in %s", lineno, path)
        return events


# =============================================================================
# MUTATION LOGGER (Main Interface)
# =============================================================================

class MutationLogger:
    """
    Journal of topic writes.

    Events always go to the in-memory buffer; the file sink and subscribers
    are optional.
    """

    def __init__(self, config: Optional[LoggerConfig] = None):
        self.config = config or LoggerConfig()

        self._buffer = EventBuffer(self.config.buffer_size)
        self._file_logger: Optional[FileLogger] = None

        if self.config.enable_file_log and self.config.log_path:
            self._file_logger = FileLogger(self.config.log_path)

        self._subscribers: List[Callable[[TopicMutationEvent], None]] = []

    def _now(self) -> str:
        return datetime.now(timezone.utc).isoformat()

    def _emit(self, event: TopicMutationEvent) -> TopicMutationEvent:
        self._buffer.append(event)

        if self._file_logger:
            self._file_logger.write(event)

        for subscriber in self._subscribers:
            try:
                subscriber(event)
            except Exception:
                diag.exception("Mutation subscriber failed on %s", event.mutation_type)

        return event

    def _event(self, mutation_type: MutationType, **fields) -> TopicMutationEvent:
        return TopicMutationEvent(
            timestamp=self._now(),
            sequence=self._buffer.next_sequence(),
            mutation_type=mutation_type.value,
            **fields,
        )

    # =========================================================================
    # LOGGING METHODS
    # =========================================================================

    def log_topic_created(self, topic_id: str, version: int, name: str) -> TopicMutationEvent:
        return self._emit(self._event(
            MutationType.TOPIC_CREATED, topic_id=topic_id, version=version, name=name,
        ))

    def log_topic_updated(self, topic_id: str, version: int, name: str) -> TopicMutationEvent:
        return self._emit(self._event(
            MutationType.TOPIC_UPDATED, topic_id=topic_id, version=version, name=name,
        ))

    def log_topic_moved(
        self,
        topic_id: str,
        version: int,
        old_parent_id: Optional[str],
        new_parent_id: Optional[str],
    ) -> TopicMutationEvent:
        return self._emit(self._event(
            MutationType.TOPIC_MOVED,
            topic_id=topic_id,
            version=version,
            old_parent_id=old_parent_id,
            new_parent_id=new_parent_id,
        ))

    def log_topic_deleted(self, topic_id: str) -> TopicMutationEvent:
        return self._emit(self._event(MutationType.TOPIC_DELETED, topic_id=topic_id))

    def log_store_imported(self, topic_count: int) -> TopicMutationEvent:
        return self._emit(self._event(MutationType.STORE_IMPORTED, topic_count=topic_count))

    # =========================================================================
    # QUERY METHODS
    # =========================================================================

    def get_recent_events(self, n: int = 100) -> List[TopicMutationEvent]:
        return self._buffer.tail(n)

    def get_events_since(self, timestamp: str) -> List[TopicMutationEvent]:
        return self._buffer.query(since=timestamp)

    def get_events_for_topic(self, topic_id: str) -> List[TopicMutationEvent]:
        return self._buffer.query(topic_id=topic_id)

    def get_events_by_type(self, mutation_type: str) -> List[TopicMutationEvent]:
        return self._buffer.query(mutation_type=mutation_type)

    def get_topic_timeline(self, topic_id: str) -> List[Dict[str, Any]]:
        """Simplified list of a topic's writes, oldest first."""
        return [
            {
                "time": e.timestamp,
                "type": e.mutation_type,
                "version": e.version,
                "old_parent": e.old_parent_id,
                "new_parent": e.new_parent_id,
            }
            for e in self.get_events_for_topic(topic_id)
        ]

    # =========================================================================
    # SUBSCRIPTION
    # =========================================================================

    def subscribe(self, callback: Callable[[TopicMutationEvent], None]) -> None:
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable[[TopicMutationEvent], None]) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def close(self) -> None:
        if self._file_logger:
            self._file_logger.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
