"""Collaborator-facing tools: cluster configuration and observation sources."""

from .config_loader import (
    ClusterConfig,
    ClusterConfigProvider,
    ConfigLoader,
    DEFAULT_CLUSTER_CONFIG,
    apply_env_overrides,
    config_from_mapping,
    fetch_remote_config,
    get_cluster_config,
)
from .observations import (
    InMemoryObservationSource,
    ObservationSource,
    format_captured_at,
    observation_from_record,
)

__all__ = [
    "ClusterConfig",
    "ClusterConfigProvider",
    "ConfigLoader",
    "DEFAULT_CLUSTER_CONFIG",
    "apply_env_overrides",
    "config_from_mapping",
    "fetch_remote_config",
    "get_cluster_config",
    "InMemoryObservationSource",
    "ObservationSource",
    "format_captured_at",
    "observation_from_record",
]
