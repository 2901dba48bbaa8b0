"""
Pytest configuration and shared fixtures for the topicgraph test suite.
"""
import sys
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


@pytest.fixture(autouse=True)
def reset_global_state():
    """Pin the default config so env vars and the TOML file don't leak in."""
    from infrastructure.config import TopicGraphConfig, set_config

    set_config(TopicGraphConfig())

    yield

    set_config(None)


@pytest.fixture
def fresh_store():
    """Provide an empty VersionStore."""
    from core.version_store import VersionStore
    return VersionStore()


@pytest.fixture
def graph(fresh_store):
    """Provide a TopicGraph over the fresh store."""
    from core.topic_graph import TopicGraph
    return TopicGraph(fresh_store)


@pytest.fixture
def service(fresh_store):
    """Provide a TopicService with an isolated store and journal."""
    from core.topic_service import TopicService
    from infrastructure.config import TopicGraphConfig
    from infrastructure.logger import MutationLogger

    return TopicService(
        store=fresh_store,
        config=TopicGraphConfig(),
        mutation_logger=MutationLogger(),
    )


@pytest.fixture
def chain(service):
    """A -> B -> C (A is the root)."""
    a = service.create("A", "root topic")
    b = service.create("B", "middle topic", parent_id=a.id)
    c = service.create("C", "leaf topic", parent_id=b.id)
    return service, {"a": a, "b": b, "c": c}


@pytest.fixture
def siblings(service):
    """Parent A with children B and C."""
    a = service.create("A", "parent")
    b = service.create("B", "first child", parent_id=a.id)
    c = service.create("C", "second child", parent_id=a.id)
    return service, {"a": a, "b": b, "c": c}


def make_topic(topic_id, parent=None, version=1, name=None):
    """Build a snapshot with a fixed id (for import/out-of-band data)."""
    from core.schemas import Topic
    return Topic(
        id=topic_id,
        version=version,
        name=name or topic_id.upper(),
        content=f"content of {topic_id}",
        parent_topic_id=parent,
    )
