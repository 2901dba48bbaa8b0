"""
TOPICGRAPH CONFIG - TOML Settings With Environment Overrides

Configuration is loaded once from config/topicgraph.toml, overlaid with
TOPICGRAPH_<FIELD> environment variables, and converted into a typed
TopicGraphConfig. Components take the config as a constructor argument;
get_config() exists for callers that just want the process default.

Usage:
    from infrastructure.config import load_config, get_config

    config = load_config()                     # file + env
    config = load_config({"max_name_length": 80}, use_env=False)
    config = get_config()                      # cached default
"""
import os
import warnings
from pathlib import Path
from typing import Any, Dict, Optional

import msgspec


CONFIG_PATH = Path(__file__).parent.parent / "config" / "topicgraph.toml"
ENV_PREFIX = "TOPICGRAPH_"


class TopicGraphConfig(msgspec.Struct, kw_only=True):
    """Typed settings for the topic store and its services."""
    # === Validation limits ===
    max_name_length: int = 255
    max_content_length: int = 100_000

    # === Query defaults ===
    default_max_path_depth: int = 10
    default_max_distance: int = 3

    # === Mutation logging ===
    log_mutations_to_file: bool = False
    log_path: str = "./workspace/logs"
    mutation_buffer_size: int = 10000


def load_toml_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load the raw TOML document.

    Returns:
        Dict with all sections, or {} if the file cannot be read
    """
    try:
        import tomllib
        config_path = Path(path) if path is not None else CONFIG_PATH

        with open(config_path, "rb") as f:
            return tomllib.load(f)
    except Exception as e:
        warnings.warn(f"Failed to load config from TOML: {e}")
        return {}


def _env_overrides() -> Dict[str, str]:
    """Collect TOPICGRAPH_<FIELD> variables for known fields."""
    overrides = {}
    for name in TopicGraphConfig.__struct_fields__:
        value = os.getenv(ENV_PREFIX + name.upper())
        if value is not None:
            overrides[name] = value
    return overrides


def load_config(
    values: Optional[Dict[str, Any]] = None,
    path: Optional[Path] = None,
    use_env: bool = True,
) -> TopicGraphConfig:
    """
    Build a TopicGraphConfig.

    Args:
        values: Explicit settings. If None, the [topicgraph] table of the
                TOML file is used.
        path: Alternate TOML path
        use_env: Apply TOPICGRAPH_<FIELD> environment overrides

    Raises:
        msgspec.ValidationError: If a value has the wrong type
    """
    if values is None:
        values = load_toml_config(path).get("topicgraph", {})

    merged: Dict[str, Any] = dict(values)
    if use_env:
        merged.update(_env_overrides())

    # strict=False lets string env values coerce into int/bool fields
    return msgspec.convert(merged, type=TopicGraphConfig, strict=False)


# =============================================================================
# PROCESS DEFAULT
# =============================================================================

_default_config: Optional[TopicGraphConfig] = None


def get_config() -> TopicGraphConfig:
    """Get or load the process-wide default config."""
    global _default_config
    if _default_config is None:
        _default_config = load_config()
    return _default_config


def set_config(config: Optional[TopicGraphConfig]) -> None:
    """Replace (or with None, reset) the process-wide default config."""
    global _default_config
    _default_config = config
