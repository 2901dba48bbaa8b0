"""
Unit tests for infrastructure/logger.py - the topic write journal.

Covers:
- EventBuffer (append, filters, ring eviction, sequencing)
- FileLogger (JSONL round trip, missing dates, unreadable lines)
- MutationLogger (event fields, queries, subscribers, file sink)
"""
from datetime import datetime, timezone
from pathlib import Path

import pytest

from infrastructure.config import TopicGraphConfig
from infrastructure.logger import (
    EventBuffer,
    FileLogger,
    LoggerConfig,
    MutationLogger,
    MutationType,
    TopicMutationEvent,
)


def _today() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d")


def _event(seq: int, topic_id: str = "t1", mutation_type: str = "TOPIC_CREATED") -> TopicMutationEvent:
    return TopicMutationEvent(
        timestamp=f"2024-01-01T00:00:{seq:02d}+00:00",
        sequence=seq,
        mutation_type=mutation_type,
        topic_id=topic_id,
    )


@pytest.fixture
def mutation_logger():
    return MutationLogger()


# =============================================================================
# EVENT BUFFER
# =============================================================================

class TestEventBuffer:

    def test_ring_evicts_oldest(self):
        buffer = EventBuffer(max_size=3)
        for seq in range(5):
            buffer.append(_event(seq))

        assert len(buffer) == 3
        assert [e.sequence for e in buffer.tail(10)] == [2, 3, 4]

    def test_tail(self):
        buffer = EventBuffer()
        for seq in range(4):
            buffer.append(_event(seq))

        assert [e.sequence for e in buffer.tail(2)] == [2, 3]

    def test_filters(self):
        buffer = EventBuffer()
        buffer.append(_event(1, topic_id="a"))
        buffer.append(_event(2, topic_id="b", mutation_type="TOPIC_DELETED"))
        buffer.append(_event(3, topic_id="a", mutation_type="TOPIC_UPDATED"))

        assert [e.sequence for e in buffer.query(topic_id="a")] == [1, 3]
        assert [e.sequence for e in buffer.query(mutation_type="TOPIC_DELETED")] == [2]
        assert [e.sequence for e in buffer.query(since="2024-01-01T00:00:02+00:00")] == [2, 3]

    def test_sequence_increments(self):
        buffer = EventBuffer()
        assert buffer.next_sequence() == 1
        assert buffer.next_sequence() == 2

    def test_clear(self):
        buffer = EventBuffer()
        buffer.append(_event(1))
        buffer.clear()
        assert len(buffer) == 0

    def test_tail_of_empty_or_zero(self):
        buffer = EventBuffer()
        assert buffer.tail(3) == []
        buffer.append(_event(1))
        assert buffer.tail(0) == []


# =============================================================================
# FILE LOGGER
# =============================================================================

class TestFileLogger:

    def test_init_creates_directory(self, tmp_path):
        log_dir = tmp_path / "nested" / "logs"
        FileLogger(log_dir)
        assert log_dir.is_dir()

    def test_write_and_read_back(self, tmp_path):
        file_logger = FileLogger(tmp_path)
        file_logger.write(_event(1, topic_id="a"))
        file_logger.write(_event(2, topic_id="b"))
        file_logger.close()

        events = file_logger.read_log(_today())

        assert [e.topic_id for e in events] == ["a", "b"]
        assert (tmp_path / f"mutations_{_today()}.jsonl").exists()

    def test_read_missing_date(self, tmp_path):
        assert FileLogger(tmp_path).read_log("1999-01-01") == []

    def test_read_skips_unreadable_lines(self, tmp_path):
        file_logger = FileLogger(tmp_path)
        file_logger.write(_event(1))
        file_logger.close()

        with open(tmp_path / f"mutations_{_today()}.jsonl", "a", encoding="utf-8") as f:
            f.write("not json\n\n")

        assert len(file_logger.read_log(_today())) == 1

    def test_write_after_close_reopens(self, tmp_path):
        file_logger = FileLogger(tmp_path)
        file_logger.write(_event(1))
        file_logger.close()
        file_logger.write(_event(2))
        file_logger.close()

        assert [e.sequence for e in file_logger.read_log(_today())] == [1, 2]


# =============================================================================
# MUTATION LOGGER
# =============================================================================

class TestMutationLogger:

    def test_created_event_fields(self, mutation_logger):
        event = mutation_logger.log_topic_created("t1", version=1, name="Graphs")

        assert event.mutation_type == MutationType.TOPIC_CREATED.value
        assert event.topic_id == "t1"
        assert event.version == 1
        assert event.name == "Graphs"
        assert event.sequence == 1

    def test_moved_event_fields(self, mutation_logger):
        event = mutation_logger.log_topic_moved("t1", 3, old_parent_id="p", new_parent_id=None)

        assert event.old_parent_id == "p"
        assert event.new_parent_id is None
        assert event.version == 3

    def test_import_event_counts(self, mutation_logger):
        event = mutation_logger.log_store_imported(12)
        assert event.topic_id is None
        assert event.topic_count == 12

    def test_queries(self, mutation_logger):
        mutation_logger.log_topic_created("a", 1, "A")
        mutation_logger.log_topic_created("b", 1, "B")
        mutation_logger.log_topic_updated("a", 2, "A2")
        mutation_logger.log_topic_deleted("b")

        assert len(mutation_logger.get_recent_events()) == 4
        assert [e.version for e in mutation_logger.get_events_for_topic("a")] == [1, 2]
        deleted = mutation_logger.get_events_by_type(MutationType.TOPIC_DELETED.value)
        assert [e.topic_id for e in deleted] == ["b"]

    def test_topic_timeline(self, mutation_logger):
        mutation_logger.log_topic_created("a", 1, "A")
        mutation_logger.log_topic_moved("a", 2, None, "root")

        timeline = mutation_logger.get_topic_timeline("a")

        assert [entry["type"] for entry in timeline] == ["TOPIC_CREATED", "TOPIC_MOVED"]
        assert timeline[1]["new_parent"] == "root"

    def test_subscribers(self, mutation_logger):
        received = []
        mutation_logger.subscribe(received.append)

        mutation_logger.log_topic_created("a", 1, "A")
        mutation_logger.unsubscribe(received.append)
        mutation_logger.log_topic_deleted("a")

        assert [e.topic_id for e in received] == ["a"]
        assert len(received) == 1

    def test_failing_subscriber_does_not_block(self, mutation_logger):
        def broken(event):
            raise RuntimeError("boom")

        mutation_logger.subscribe(broken)
        mutation_logger.log_topic_created("a", 1, "A")

        assert len(mutation_logger.get_recent_events()) == 1

    def test_file_sink(self, tmp_path):
        config = LoggerConfig(enable_file_log=True, log_path=tmp_path)

        with MutationLogger(config) as journal:
            journal.log_topic_created("a", 1, "A")
            journal.log_topic_deleted("a")

        events = FileLogger(tmp_path).read_log(_today())
        assert [e.mutation_type for e in events] == ["TOPIC_CREATED", "TOPIC_DELETED"]


class TestLoggerConfig:

    def test_default_path(self):
        assert LoggerConfig().log_path == Path("./workspace/logs")

    def test_from_settings(self):
        settings = TopicGraphConfig(
            log_mutations_to_file=True,
            log_path="/tmp/topicgraph-logs",
            mutation_buffer_size=5,
        )

        config = LoggerConfig.from_settings(settings)

        assert config.enable_file_log is True
        assert config.log_path == Path("/tmp/topicgraph-logs")
        assert config.buffer_size == 5
