"""
Cluster configuration: YAML profiles, environment overrides and an
optional remote constants document, cached behind a TTL.
"""

import logging
import math
import os
from dataclasses import asdict, dataclass, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import httpx
import yaml
from cachetools import TTLCache
from dotenv import load_dotenv


logger = logging.getLogger(__name__)


DEFAULT_PROFILE = "default"
DEFAULT_CONFIG_TTL = 5 * 60  # seconds
REMOTE_TIMEOUT = 5.0  # seconds


@dataclass(frozen=True)
class ClusterConfig:
    """Resolved clustering parameters."""

    radius_meters: float = 20.0
    min_points: int = 3
    limit: int = 5
    min_confidence: float = 0.0
    max_confidence: float = 1.0

    def is_low_confidence(self, score: Optional[float]) -> bool:
        return score is None or score < self.min_confidence

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


DEFAULT_CLUSTER_CONFIG = ClusterConfig()


# Field name -> (profile key, remote constants key, environment variable)
CONFIG_KEYS = {
    "radius_meters": ("radius_meters", "LOCATION_CLUSTER_RADIUS_METERS", "LOCATION_CLUSTER_RADIUS_METERS"),
    "min_points": ("min_points", "LOCATION_CLUSTER_MIN_POINTS", "LOCATION_CLUSTER_MIN_POINTS"),
    "limit": ("limit", "RECENT_TOP_LOCATION_LIMIT", "RECENT_TOP_LOCATION_LIMIT"),
    "min_confidence": ("min_confidence", "MIN_LOCATION_CONFIDENCE", "MIN_LOCATION_CONFIDENCE"),
    "max_confidence": ("max_confidence", "MAX_LOCATION_CONFIDENCE", "MAX_LOCATION_CONFIDENCE"),
}

INTEGER_FIELDS = {"min_points", "limit"}


def _coerce_value(field_name: str, value: Any) -> Optional[Any]:
    """Return ``value`` as the field's type, or None when it is not usable."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    if field_name in INTEGER_FIELDS:
        if float(value) != int(value):
            return None
        value = int(value)
        if value < (1 if field_name == "min_points" else 0):
            return None
        return value
    if field_name == "radius_meters" and not value > 0:
        return None
    return float(value)


def config_from_mapping(
    data: Mapping[str, Any],
    fallback: ClusterConfig = DEFAULT_CLUSTER_CONFIG,
    *,
    key_style: str = "profile",
) -> ClusterConfig:
    """
    Build a config from ``data``, keeping ``fallback`` values for missing or
    unusable entries.

    Args:
        data: Raw mapping (YAML profile or remote constants document)
        fallback: Values used where ``data`` has nothing usable
        key_style: "profile" for snake_case keys, "remote" for the upper-case
            constant names
    """
    position = 0 if key_style == "profile" else 1
    updates: Dict[str, Any] = {}
    for field_name, keys in CONFIG_KEYS.items():
        key = keys[position]
        if key not in data:
            continue
        coerced = _coerce_value(field_name, data[key])
        if coerced is None:
            logger.warning(f"Ignoring invalid cluster config value {key}={data[key]!r}")
            continue
        updates[field_name] = coerced

    config = replace(fallback, **updates)
    if config.min_confidence > config.max_confidence:
        logger.warning(
            f"min_confidence {config.min_confidence} exceeds max_confidence "
            f"{config.max_confidence}; keeping fallback bounds"
        )
        config = replace(config, min_confidence=fallback.min_confidence, max_confidence=fallback.max_confidence)
    return config


def apply_env_overrides(config: ClusterConfig, environ: Optional[Mapping[str, str]] = None) -> ClusterConfig:
    """Apply ``LOCATION_CLUSTER_*`` style environment overrides."""
    environ = os.environ if environ is None else environ
    updates: Dict[str, Any] = {}
    for field_name, (_, _, env_var) in CONFIG_KEYS.items():
        raw = environ.get(env_var)
        if raw is None or raw.strip() == "":
            continue
        try:
            parsed = float(raw)
        except ValueError:
            parsed = None
        coerced = _coerce_value(field_name, parsed)
        if coerced is None:
            logger.warning(f"Ignoring invalid environment override {env_var}={raw!r}")
            continue
        updates[field_name] = coerced
    return replace(config, **updates) if updates else config


class ConfigLoader:
    """Load cluster profiles from YAML files and environment."""

    CONFIG_DIR = Path(__file__).parent.parent.parent / "configs"

    @classmethod
    def load_profile(cls, profile_name: str = DEFAULT_PROFILE) -> Dict[str, Any]:
        """
        Load a cluster profile.

        Args:
            profile_name: Name of the profile (default, rural, ...)

        Returns:
            Dictionary with configuration values

        Raises:
            FileNotFoundError: If profile doesn't exist
        """
        profile_path = cls.CONFIG_DIR / f"{profile_name}.yaml"

        if not profile_path.exists():
            available = [f.stem for f in cls.CONFIG_DIR.glob("*.yaml")]
            raise FileNotFoundError(
                f"Profile '{profile_name}' not found. Available profiles: {', '.join(sorted(available))}"
            )

        with open(profile_path, "r") as f:
            return yaml.safe_load(f) or {}

    @classmethod
    def get_profile_from_env(cls) -> Optional[str]:
        """Get profile name from LOCATION_CLUSTER_PROFILE environment variable."""
        return os.getenv("LOCATION_CLUSTER_PROFILE")


def fetch_remote_config(
    url: str,
    fallback: ClusterConfig = DEFAULT_CLUSTER_CONFIG,
    *,
    client: Optional[httpx.Client] = None,
) -> Optional[ClusterConfig]:
    """
    Fetch the constants document from ``url``.

    Returns None (after logging a warning) when the document cannot be
    fetched or decoded, so callers fall back to local configuration.
    """
    try:
        if client is not None:
            response = client.get(url, timeout=REMOTE_TIMEOUT)
        else:
            response = httpx.get(url, timeout=REMOTE_TIMEOUT)
        response.raise_for_status()
        data = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.warning(f"Unable to fetch cluster config constants from {url}: {e}")
        return None

    if not isinstance(data, Mapping):
        logger.warning(f"Cluster config constants at {url} are not an object; ignoring")
        return None
    return config_from_mapping(data, fallback, key_style="remote")


class ClusterConfigProvider:
    """
    Resolve and cache the cluster configuration.

    Resolution order, later wins: built-in defaults, YAML profile, remote
    constants document, environment overrides. The resolved value is kept
    for ``ttl_seconds``; :meth:`refresh` drops it immediately.
    """

    _CACHE_KEY = "cluster_config"

    def __init__(
        self,
        *,
        profile: Optional[str] = None,
        remote_url: Optional[str] = None,
        ttl_seconds: float = DEFAULT_CONFIG_TTL,
        http_client: Optional[httpx.Client] = None,
        load_env_file: bool = True,
    ):
        self.profile = profile
        self.remote_url = remote_url
        self.http_client = http_client
        self.load_env_file = load_env_file
        self._cache: TTLCache = TTLCache(maxsize=1, ttl=ttl_seconds)

    def _load_profile(self) -> ClusterConfig:
        name = self.profile or ConfigLoader.get_profile_from_env() or DEFAULT_PROFILE
        try:
            data = ConfigLoader.load_profile(name)
        except FileNotFoundError as e:
            logger.warning(f"{e}. Using built-in cluster defaults.")
            return DEFAULT_CLUSTER_CONFIG
        return config_from_mapping(data, DEFAULT_CLUSTER_CONFIG)

    def _resolve(self) -> ClusterConfig:
        if self.load_env_file:
            load_dotenv()

        config = self._load_profile()
        if self.remote_url:
            remote = fetch_remote_config(self.remote_url, config, client=self.http_client)
            if remote is not None:
                config = remote
        return apply_env_overrides(config)

    def get_cluster_config(self) -> ClusterConfig:
        cached = self._cache.get(self._CACHE_KEY)
        if cached is not None:
            return cached
        config = self._resolve()
        self._cache[self._CACHE_KEY] = config
        logger.debug(f"Resolved cluster config: {config.to_dict()}")
        return config

    def refresh(self) -> ClusterConfig:
        """Drop the cached value and resolve again."""
        self._cache.clear()
        return self.get_cluster_config()


def get_cluster_config() -> ClusterConfig:
    """Convenience function: resolve the current profile without caching."""
    return ClusterConfigProvider(load_env_file=False)._resolve()
