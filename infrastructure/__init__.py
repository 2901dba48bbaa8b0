"""
TOPICGRAPH INFRASTRUCTURE - System-Level Modules

This package contains infrastructure components:
- config: TOML configuration with TOPICGRAPH_* environment overrides
- logger: Mutation journal (ring buffer, JSONL file sink, subscribers)
"""

from infrastructure.config import (
    TopicGraphConfig,
    load_config,
    get_config,
    set_config,
)
from infrastructure.logger import (
    MutationLogger,
    LoggerConfig,
    MutationType,
    TopicMutationEvent,
)

__all__ = [
    "TopicGraphConfig",
    "load_config",
    "get_config",
    "set_config",
    "MutationLogger",
    "LoggerConfig",
    "MutationType",
    "TopicMutationEvent",
]
