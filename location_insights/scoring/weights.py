"""
Confidence Weights Module

Weights blending accuracy, recency and cluster size into a cluster
confidence, plus the weights used to pick a cluster's representative
observation.
"""

from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Dict, Optional

import yaml


@dataclass(frozen=True)
class ConfidenceWeights:
    """
    Scoring weight configuration.

    Attributes:
        w_accuracy: Weight of the averaged accuracy score in cluster confidence
        w_age: Weight of the recency score in cluster confidence
        w_count: Weight of the cluster size score in cluster confidence
        rep_w_accuracy: Weight of an observation's own accuracy when picking
            the representative
        rep_w_age: Weight of an observation's own recency when picking the
            representative
    """
    w_accuracy: float = 0.3
    w_age: float = 0.3
    w_count: float = 0.4
    rep_w_accuracy: float = 0.6
    rep_w_age: float = 0.4

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


DEFAULT_CONFIDENCE_WEIGHTS = ConfidenceWeights()


def load_weights_from_yaml(yaml_path: Optional[str] = None) -> ConfidenceWeights:
    """
    Load confidence weights from YAML.

    Missing keys keep their defaults; a missing file yields
    :data:`DEFAULT_CONFIDENCE_WEIGHTS`.

    YAML Format:
        ```yaml
        w_accuracy: 0.3
        w_age: 0.3
        w_count: 0.4
        rep_w_accuracy: 0.6
        rep_w_age: 0.4
        ```
    """
    if yaml_path is None:
        yaml_path = Path(__file__).parent.parent.parent / "configs" / "weights.yaml"

    yaml_path = Path(yaml_path)

    if not yaml_path.exists():
        return DEFAULT_CONFIDENCE_WEIGHTS

    with open(yaml_path, "r") as f:
        data = yaml.safe_load(f) or {}

    defaults = DEFAULT_CONFIDENCE_WEIGHTS.to_dict()
    return ConfidenceWeights(**{key: float(data.get(key, value)) for key, value in defaults.items()})
