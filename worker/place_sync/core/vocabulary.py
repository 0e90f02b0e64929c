"""Allowed tag vocabularies and the normalizer that enforces them."""

from dataclasses import dataclass
from typing import Any, Iterable, List, Tuple

MOOD_TAGS: Tuple[str, ...] = (
    "cozy",
    "quiet",
    "lively",
    "romantic",
    "casual",
    "trendy",
    "traditional",
    "scenic",
)
SERVICE_TAGS: Tuple[str, ...] = (
    "takeout",
    "delivery",
    "reservation",
    "parking",
    "wifi",
    "pet friendly",
    "late night",
    "outdoor seating",
)
PARTY_SIZE_TAGS: Tuple[str, ...] = (
    "solo",
    "couple",
    "small group",
    "large group",
)


@dataclass(frozen=True)
class AllowedVocabulary:
    mood: Tuple[str, ...] = MOOD_TAGS
    service: Tuple[str, ...] = SERVICE_TAGS
    party_size: Tuple[str, ...] = PARTY_SIZE_TAGS

    def axes(self) -> Tuple[Tuple[str, Tuple[str, ...]], ...]:
        return (("mood", self.mood), ("service", self.service), ("party_size", self.party_size))


DEFAULT_VOCABULARY = AllowedVocabulary()


def _canonical(value: str) -> str:
    return " ".join(value.replace("_", " ").replace("-", " ").split()).lower()


def normalize_tags(values: Any, allowed: Iterable[str]) -> List[str]:
    """Keep only allowed tags, deduplicated in first-seen order.

    Matching ignores case and treats ``-``/``_`` like spaces; the returned
    values are always the canonical spelling from ``allowed``.
    """
    if isinstance(values, str):
        values = values.split(",")
    elif not isinstance(values, (list, tuple, set)):
        return []
    lookup = {_canonical(tag): tag for tag in allowed}

    result: List[str] = []
    for value in values:
        if not isinstance(value, str):
            continue
        tag = lookup.get(_canonical(value))
        if tag and tag not in result:
            result.append(tag)
    return result
