"""Topic grammar: normalization, variants and feature-state matching."""

from typing import Iterable

from ..models import UnitDescriptor

COMMAND_SUFFIX = "cmd"
DATA_SUFFIX = "data"
ACK_SUFFIX = "ack"
STATUS_SUFFIX = "status"

UNIT_SUFFIXES = (COMMAND_SUFFIX, DATA_SUFFIX, ACK_SUFFIX, STATUS_SUFFIX)

FEATURE_SEGMENT = "feat"
STATE_SEGMENT = "$state"

def normalize(topic: str | None) -> str:
    """Strip all leading and trailing '/' characters."""
    return str(topic or "").strip("/")

def variants(topic: str | None) -> tuple[str, str]:
    """Return (without leading slash, with leading slash) forms of a topic."""
    bare = normalize(topic)
    return bare, f"/{bare}"

def join(base: str, suffix: str) -> str:
    """Join a base topic and a suffix with exactly one '/'."""
    return f"{base.rstrip('/')}/{suffix.lstrip('/')}"

def feature_state_topic(base_topic: str, feature_key: str) -> str:
    """Build <base>/feat/<key>/$state."""
    return f"{normalize(base_topic)}/{FEATURE_SEGMENT}/{feature_key}/{STATE_SEGMENT}"

def relative_segments(base_topic: str, incoming_topic: str) -> list[str] | None:
    """
    Segments of incoming_topic below base_topic.

    Returns None when incoming_topic is neither the base itself nor a
    segment-aligned descendant of it.
    """
    base = normalize(base_topic)
    incoming = normalize(incoming_topic)
    if incoming == base:
        return []
    if not base:
        return incoming.split("/")
    if not incoming.startswith(f"{base}/"):
        return None
    return incoming[len(base) + 1:].split("/")

def match_feature_state(base_topic: str, incoming_topic: str) -> str | None:
    """Return the feature key iff incoming is exactly <base>/feat/<key>/$state."""
    rest = relative_segments(base_topic, incoming_topic)
    if rest is None or len(rest) != 3:
        return None
    head, key, tail = rest
    if head != FEATURE_SEGMENT or tail != STATE_SEGMENT or not key:
        return None
    return key

def match_suffix(base_topic: str, incoming_topic: str, suffix: str) -> bool:
    """
    True if suffix appears as a whole segment below base_topic.

    Matches both a trailing segment (<base>/data) and an internal one
    (<base>/data/temperature); the base topic itself is never inspected.
    """
    rest = relative_segments(base_topic, incoming_topic)
    return bool(rest) and suffix in rest

def subscription_topics_for(unit: UnitDescriptor) -> set[str]:
    """Every topic (both slash variants) a unit must be observed on."""
    if not normalize(unit.base_topic):
        return set()

    topics: set[str] = set()
    base_bare, base_lead = variants(unit.base_topic)
    topics.update((base_bare, base_lead))
    for suffix in UNIT_SUFFIXES:
        topics.update((join(base_bare, suffix), join(base_lead, suffix)))
    for feat in unit.features:
        if feat.state_topic:
            topics.update(variants(feat.state_topic))
    return topics

def union_topics(units: Iterable[UnitDescriptor]) -> set[str]:
    """De-duplicated union of subscription topics over units."""
    topics: set[str] = set()
    for unit in units:
        topics |= subscription_topics_for(unit)
    return topics
