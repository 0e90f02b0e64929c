"""Utilities for transforming provider responses into candidates."""

import logging
from typing import Any, Dict, Iterable, Optional, Tuple

from place_sync.core.models import Candidate

logger = logging.getLogger(__name__)

CATEGORY_OTHER = "other"
CATEGORY_CAFE = "cafe"
_CAFE_GROUP = "CE7"
_FOOD_GROUP = "FD6"

# Checked in order; the first label whose keywords appear in the category text wins.
_CATEGORY_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("Chinese", ("중식", "chinese")),
    ("Japanese", ("일식", "japanese")),
    ("Western", ("양식", "western")),
    ("Korean", ("한식", "korean")),
    ("snack", ("분식", "snack")),
    ("chicken", ("치킨", "chicken")),
    ("fast food", ("패스트푸드", "fast food")),
    ("meat/grill", ("고기", "육류", "grill", "meat")),
    ("bar/tavern", ("술집", "포장마차", "바", "bar", "pub", "tavern")),
)

DEFAULT_ATTRIBUTION = "Google Maps"
_MAPS_PLACE_URL = "https://www.google.com/maps/place/?q=place_id:{place_id}"
_PHOTO_MEDIA_URL = "https://places.googleapis.com/v1/{photo_name}/media?maxWidthPx=800"


def map_category(category_name: str = "", group_code: str = "") -> str:
    """Map a keyword-provider category path to the place taxonomy."""
    if group_code == _CAFE_GROUP:
        return CATEGORY_CAFE
    if group_code and group_code != _FOOD_GROUP:
        return CATEGORY_OTHER

    text = (category_name or "").lower()
    for label, keywords in _CATEGORY_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return label
    return CATEGORY_OTHER


def _strip_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    value_str = str(value).strip()
    return value_str or None


def _safe_float(value: Any) -> Optional[float]:
    try:
        if value is None:
            return None
        return float(value)
    except (TypeError, ValueError):
        return None


def to_kakao_candidate(doc: Dict[str, Any]) -> Candidate:
    address = f"{doc.get('road_address_name') or ''} {doc.get('address_name') or ''}"
    return Candidate(
        name=(doc.get("place_name") or "").strip(),
        address=address.strip(),
        has_phone=bool(_strip_or_none(doc.get("phone"))),
        external_id=_strip_or_none(doc.get("id")),
        url=_strip_or_none(doc.get("place_url")),
        category_name=doc.get("category_name") or "",
        category_group_code=doc.get("category_group_code") or "",
        source="kakao_local",
        raw_snapshot=doc,
    )


def _money_units(money: Any) -> Optional[float]:
    if not isinstance(money, dict):
        return None
    return _safe_float(money.get("units"))


def _first_photo(photos: Iterable[Any]) -> Tuple[Optional[str], Optional[str]]:
    for photo in photos or []:
        if not isinstance(photo, dict):
            continue
        author = None
        for attribution in photo.get("authorAttributions") or []:
            if isinstance(attribution, dict):
                author = _strip_or_none(attribution.get("displayName"))
                if author:
                    break
        return _strip_or_none(photo.get("name")), author
    return None, None


def to_google_candidate(place: Dict[str, Any]) -> Candidate:
    display_name = place.get("displayName")
    if isinstance(display_name, dict):
        name = display_name.get("text") or ""
    else:
        name = display_name or ""
    price_range = place.get("priceRange") or {}
    photo_name, photo_author = _first_photo(place.get("photos") or [])

    return Candidate(
        name=str(name).strip(),
        address=(place.get("formattedAddress") or "").strip(),
        has_phone=bool(_strip_or_none(place.get("nationalPhoneNumber"))),
        rating=_safe_float(place.get("rating")),
        external_id=_strip_or_none(place.get("id")),
        url=_strip_or_none(place.get("googleMapsUri")),
        primary_type=_strip_or_none(place.get("primaryType")),
        price_start=_money_units(price_range.get("startPrice")),
        price_end=_money_units(price_range.get("endPrice")),
        photo_name=photo_name,
        photo_author=photo_author,
        source="google_places",
        raw_snapshot=place,
    )


def price_cap(candidate: Candidate) -> Optional[float]:
    """Upper bound of the candidate's price range, never the minimum or midpoint."""
    bounds = [value for value in (candidate.price_start, candidate.price_end) if value is not None]
    return max(bounds) if bounds else None


def attribution_text(candidate: Candidate) -> str:
    return candidate.photo_author or DEFAULT_ATTRIBUTION


def map_url(candidate: Candidate) -> Optional[str]:
    if candidate.url:
        return candidate.url
    return share_url(candidate.external_id)


def share_url(place_id: Optional[str]) -> Optional[str]:
    if not place_id:
        return None
    return _MAPS_PLACE_URL.format(place_id=place_id)


def image_url(candidate: Candidate) -> Optional[str]:
    if not candidate.photo_name:
        return None
    return _PHOTO_MEDIA_URL.format(photo_name=candidate.photo_name)


def to_rich_fields(candidate: Candidate) -> Dict[str, Any]:
    """Derived record fields contributed by a rich-provider candidate."""
    return {
        "rating_score": candidate.rating,
        "map_url": map_url(candidate),
        "external_id": candidate.external_id,
        "image_url": image_url(candidate),
        "attribution_text": attribution_text(candidate),
        "price_cap": price_cap(candidate),
    }
