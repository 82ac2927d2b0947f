"""Topic grammar module."""

from .grammar import (
    ACK_SUFFIX,
    COMMAND_SUFFIX,
    DATA_SUFFIX,
    STATUS_SUFFIX,
    feature_state_topic,
    join,
    match_feature_state,
    match_suffix,
    normalize,
    relative_segments,
    subscription_topics_for,
    union_topics,
    variants,
)

__all__ = [
    "ACK_SUFFIX",
    "COMMAND_SUFFIX",
    "DATA_SUFFIX",
    "STATUS_SUFFIX",
    "normalize",
    "variants",
    "join",
    "feature_state_topic",
    "relative_segments",
    "match_feature_state",
    "match_suffix",
    "subscription_topics_for",
    "union_topics",
]
