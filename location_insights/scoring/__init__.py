"""
Scoring Module for location insights

Provides confidence scoring for observation clusters:
- Recency, accuracy and size normalization onto [0, 1]
- Configurable blend weights
- Cluster summarization with representative-observation selection

Usage:
    from location_insights.scoring import summarize_cluster, ConfidenceWeights

    summary = summarize_cluster(observations, [0, 1, 2], min_points=3)
"""

from .normalization import (
    MAX_OBSERVATION_ACCURACY_METERS,
    RECENCY_WINDOW,
    accuracy_score,
    age_score,
    bounded_accuracy,
    clamp,
    count_score,
    parse_timestamp,
    to_iso_millis,
)
from .weights import (
    ConfidenceWeights,
    DEFAULT_CONFIDENCE_WEIGHTS,
    load_weights_from_yaml,
)
from .summarizer import (
    ClusterSummary,
    determine_label,
    observation_score,
    select_representative,
    summarize_cluster,
)

__all__ = [
    "MAX_OBSERVATION_ACCURACY_METERS",
    "RECENCY_WINDOW",
    "accuracy_score",
    "age_score",
    "bounded_accuracy",
    "clamp",
    "count_score",
    "parse_timestamp",
    "to_iso_millis",

    "ConfidenceWeights",
    "DEFAULT_CONFIDENCE_WEIGHTS",
    "load_weights_from_yaml",

    "ClusterSummary",
    "determine_label",
    "observation_score",
    "select_representative",
    "summarize_cluster",
]
