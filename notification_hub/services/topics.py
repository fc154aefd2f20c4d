"""
Notification topic catalog shared by every service.
"""

from collections.abc import Iterable

TOPICS: tuple[str, ...] = ("trade_alerts", "fills", "risk_events", "system")

_TOPIC_SET = frozenset(TOPICS)


def normalize_topics(candidate) -> set[str]:
    """Keep only catalog topics.

    Unknown values are dropped without error. Anything that is not a list,
    tuple or set of strings yields the empty set, which callers read as
    "no filter".
    """
    if not isinstance(candidate, (list, tuple, set, frozenset)):
        return set()
    return {topic for topic in candidate if isinstance(topic, str) and topic in _TOPIC_SET}


def topic_matches(stored: Iterable[str] | None, topic_filter: Iterable[str] | None) -> bool:
    """Check a stored subscription filter against a sender's topic filter.

    An empty sender filter matches everything, and so does an empty stored
    filter (the device opted into all topics).
    """
    wanted = set(topic_filter or ())
    if not wanted:
        return True
    subscribed = set(stored or ())
    if not subscribed:
        return True
    return bool(subscribed & wanted)
