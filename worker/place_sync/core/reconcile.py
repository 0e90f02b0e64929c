"""Merge policy for derived place fields.

A derived field is only (re)fetched when it is empty or when the force flag of
its group is set, and an empty incoming value never replaces anything.
"""

import logging
from dataclasses import dataclass
from numbers import Number
from typing import Any, Callable, Dict, Iterable, List

from place_sync.core.config import Settings
from place_sync.core.models import PlaceRecord

logger = logging.getLogger(__name__)

SEARCH_FIELDS = ("match_url", "category")
SUMMARY_FIELDS = ("summary_text",)
TAG_FIELDS = ("mood", "service", "party_size")
RICH_TRIGGER_FIELDS = ("rating_score", "map_url", "external_id")
RICH_FIELDS = RICH_TRIGGER_FIELDS + ("image_url", "attribution_text", "price_cap")
DERIVED_FIELDS = SEARCH_FIELDS + SUMMARY_FIELDS + TAG_FIELDS + RICH_FIELDS
TRACKED_FIELDS = SEARCH_FIELDS + SUMMARY_FIELDS + TAG_FIELDS + RICH_TRIGGER_FIELDS

ANY_EMPTY = "any_empty"
ALL_EMPTY = "all_empty"
TAG_REFRESH_POLICY = ANY_EMPTY


def is_present_text(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def is_present_tags(value: Any) -> bool:
    return isinstance(value, (list, tuple, set)) and len(value) > 0


def is_present_number(value: Any) -> bool:
    return isinstance(value, Number) and not isinstance(value, bool)


FIELD_PREDICATES: Dict[str, Callable[[Any], bool]] = {
    "match_url": is_present_text,
    "category": is_present_text,
    "summary_text": is_present_text,
    "mood": is_present_tags,
    "service": is_present_tags,
    "party_size": is_present_tags,
    "rating_score": is_present_number,
    "map_url": is_present_text,
    "external_id": is_present_text,
    "image_url": is_present_text,
    "attribution_text": is_present_text,
    "price_cap": is_present_number,
}


def is_present(field_name: str, value: Any) -> bool:
    return FIELD_PREDICATES[field_name](value)


def missing_fields(values: Dict[str, Any], fields: Iterable[str]) -> List[str]:
    return [name for name in fields if not is_present(name, values.get(name))]


def current_values(record: PlaceRecord) -> Dict[str, Any]:
    return {name: getattr(record, name) for name in DERIVED_FIELDS}


def merge_value(field_name: str, current: Any, incoming: Any, force: bool = False) -> Any:
    """Resolve one field: keep ``current`` unless it is empty or ``force`` is set."""
    if not is_present(field_name, incoming):
        return current
    if is_present(field_name, current) and not force:
        return current
    return incoming


@dataclass(frozen=True)
class FieldReconciler:
    force_summary: bool = False
    force_classify: bool = False
    force_rating: bool = False
    tag_policy: str = TAG_REFRESH_POLICY

    @classmethod
    def from_settings(cls, settings: Settings) -> "FieldReconciler":
        return cls(
            force_summary=settings.force_summary,
            force_classify=settings.force_classify,
            force_rating=settings.force_rating,
        )

    def needs_search(self, values: Dict[str, Any]) -> bool:
        return self.force_classify or bool(missing_fields(values, SEARCH_FIELDS))

    def needs_summary(self, values: Dict[str, Any]) -> bool:
        return self.force_summary or bool(missing_fields(values, SUMMARY_FIELDS))

    def needs_tags(self, values: Dict[str, Any]) -> bool:
        if self.force_classify:
            return True
        missing = missing_fields(values, TAG_FIELDS)
        if self.tag_policy == ALL_EMPTY:
            return len(missing) == len(TAG_FIELDS)
        return bool(missing)

    def needs_rich(self, values: Dict[str, Any]) -> bool:
        return self.force_rating or bool(missing_fields(values, RICH_TRIGGER_FIELDS))

    def apply(self, values: Dict[str, Any], incoming: Dict[str, Any], force: bool) -> List[str]:
        """Merge ``incoming`` into ``values`` in place and return the changed field names."""
        changed = []
        for name, value in incoming.items():
            merged = merge_value(name, values.get(name), value, force)
            if merged != values.get(name):
                values[name] = merged
                changed.append(name)
        return changed


def build_update(record: PlaceRecord, values: Dict[str, Any]) -> Dict[str, Any]:
    """Fields whose resolved value is present and differs from the stored one."""
    update: Dict[str, Any] = {}
    for name in DERIVED_FIELDS:
        value = values.get(name)
        if not is_present(name, value):
            continue
        if value == getattr(record, name):
            continue
        update[name] = list(value) if isinstance(value, (tuple, set)) else value
    return update
