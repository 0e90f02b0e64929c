"""Client utilities for the Kakao Local keyword search API."""

import logging
from typing import Any, Dict, List, Optional

import requests

from place_sync.core.models import Candidate
from place_sync.etl.transform import to_kakao_candidate
from place_sync.vendors.errors import KakaoLocalError

logger = logging.getLogger(__name__)
_SESSION = requests.Session()
_BASE_URL = "https://dapi.kakao.com/v2/local/search"
MAX_RESULTS = 5


def keyword_search(query: str, api_key: str, size: int = MAX_RESULTS) -> List[Dict[str, Any]]:
    params = {"query": query, "size": size}
    headers = {"Authorization": f"KakaoAK {api_key}"}
    try:
        response = _SESSION.get(f"{_BASE_URL}/keyword.json", params=params, headers=headers, timeout=10)
    except requests.RequestException as exc:
        raise KakaoLocalError(f"Kakao keyword search failed: {exc}") from exc

    if not response.ok:
        logger.error("keyword_search failed: status=%s, body=%s", response.status_code, response.text[:200])
        raise KakaoLocalError("Kakao API error", status=response.status_code, body=response.text or "")
    return response.json().get("documents") or []


class KakaoLocalSearch:
    """Keyword place search returning normalized candidates."""

    name = "kakao"

    def __init__(self, api_key: str, size: int = MAX_RESULTS) -> None:
        self.api_key = api_key
        self.size = size

    def search(self, query: str, location_bias: Optional[Dict[str, float]] = None) -> List[Candidate]:
        # Kakao's keyword endpoint is ranked by accuracy; the bias is not used.
        documents = keyword_search(query, self.api_key, size=self.size)
        logger.debug("Kakao returned %d documents for query=%s", len(documents), query)
        return [to_kakao_candidate(doc) for doc in documents if isinstance(doc, dict)]
