"""Core data models shared by the place sync pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

GENERATED = "generated"
FALLBACK = "fallback"


@dataclass(slots=True)
class PlaceRecord:
    """A row of the places table as seen by the sync job."""

    id: Any
    name: str
    location: Optional[str] = None
    mood: List[str] = field(default_factory=list)
    service: List[str] = field(default_factory=list)
    party_size: List[str] = field(default_factory=list)
    match_url: Optional[str] = None
    category: Optional[str] = None
    rating_score: Optional[float] = None
    map_url: Optional[str] = None
    external_id: Optional[str] = None
    image_url: Optional[str] = None
    attribution_text: Optional[str] = None
    price_cap: Optional[float] = None
    summary_text: Optional[str] = None


@dataclass(slots=True)
class Candidate:
    """Normalized snapshot of one place search result."""

    name: str
    address: str = ""
    has_phone: bool = False
    rating: Optional[float] = None
    external_id: Optional[str] = None
    url: Optional[str] = None
    category_name: str = ""
    category_group_code: str = ""
    primary_type: Optional[str] = None
    price_start: Optional[float] = None
    price_end: Optional[float] = None
    photo_name: Optional[str] = None
    photo_author: Optional[str] = None
    match_score: float = 0.0
    source: str = "kakao_local"
    raw_snapshot: Optional[Dict[str, Any]] = field(default=None, repr=False)


@dataclass(frozen=True)
class GenerationResult:
    """Outcome of one generation attempt; ``source`` is GENERATED or FALLBACK."""

    value: Any
    source: str
    reason: Optional[str] = None

    @property
    def used_fallback(self) -> bool:
        return self.source == FALLBACK


@dataclass
class SyncOutcome:
    name: str
    updated_fields: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    summary_source: Optional[str] = None
    tags_source: Optional[str] = None
