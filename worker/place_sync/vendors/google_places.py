"""Client utilities for the Google Places (New) text search API."""

import logging
from typing import Any, Dict, List, Optional

import requests

from place_sync.core.models import Candidate
from place_sync.etl.transform import to_google_candidate
from place_sync.vendors.errors import GooglePlacesError

logger = logging.getLogger(__name__)
_SESSION = requests.Session()
_BASE_URL = "https://places.googleapis.com/v1"
FIELD_MASK = ",".join(
    (
        "places.id",
        "places.displayName",
        "places.formattedAddress",
        "places.nationalPhoneNumber",
        "places.rating",
        "places.priceRange",
        "places.primaryType",
        "places.photos",
        "places.googleMapsUri",
    )
)
MAX_RESULTS = 5


def search_text(
    query: str,
    api_key: str,
    *,
    bias: Optional[Dict[str, float]] = None,
    radius_m: int = 3000,
    language: str = "ko",
    max_results: int = MAX_RESULTS,
) -> List[Dict[str, Any]]:
    body: Dict[str, Any] = {"textQuery": query, "languageCode": language, "maxResultCount": max_results}
    if bias:
        body["locationBias"] = {
            "circle": {
                "center": {"latitude": bias["lat"], "longitude": bias["lng"]},
                "radius": float(radius_m),
            }
        }
    headers = {
        "Content-Type": "application/json",
        "X-Goog-Api-Key": api_key,
        "X-Goog-FieldMask": FIELD_MASK,
    }
    try:
        response = _SESSION.post(f"{_BASE_URL}/places:searchText", json=body, headers=headers, timeout=10)
    except requests.RequestException as exc:
        raise GooglePlacesError(f"Places text search failed: {exc}") from exc

    if not response.ok:
        logger.error("search_text failed: status=%s, body=%s", response.status_code, response.text[:200])
        raise GooglePlacesError("Places API error", status=response.status_code, body=response.text or "")
    return response.json().get("places") or []


class GooglePlacesSearch:
    """Rich place search returning candidates with rating, price and photo data."""

    name = "google"

    def __init__(self, api_key: str, *, radius_m: int = 3000, language: str = "ko") -> None:
        self.api_key = api_key
        self.radius_m = radius_m
        self.language = language

    def search(self, query: str, location_bias: Optional[Dict[str, float]] = None) -> List[Candidate]:
        places = search_text(
            query,
            self.api_key,
            bias=location_bias,
            radius_m=self.radius_m,
            language=self.language,
        )
        logger.debug("Places returned %d results for query=%s", len(places), query)
        return [to_google_candidate(place) for place in places if isinstance(place, dict)]
