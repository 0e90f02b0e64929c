"""Candidate scoring and ranking shared by every search provider."""

from dataclasses import replace
from typing import Iterable, List, Optional

from place_sync.core.models import Candidate

NAME_WEIGHT = 3.0
LOCALITY_WEIGHT = 2.0
PHONE_WEIGHT = 0.5
MAX_RATING_BONUS = 2.0


def score_candidate(candidate: Candidate, target_name: str, target_locality: Optional[str]) -> float:
    score = 0.0
    name = (target_name or "").lower()
    if name in (candidate.name or "").lower():
        score += NAME_WEIGHT
    if target_locality and target_locality in (candidate.address or ""):
        score += LOCALITY_WEIGHT
    if candidate.has_phone:
        score += PHONE_WEIGHT
    if candidate.rating is not None:
        score += min(MAX_RATING_BONUS, candidate.rating / 2)
    return score


def rank_candidates(
    candidates: Iterable[Candidate],
    target_name: str,
    target_locality: Optional[str],
) -> List[Candidate]:
    """Return scored copies ordered best-first; ties keep provider order."""
    scored = [
        replace(candidate, match_score=score_candidate(candidate, target_name, target_locality))
        for candidate in candidates
    ]
    # sorted() is stable, so equal scores stay in provider order.
    return sorted(scored, key=lambda candidate: candidate.match_score, reverse=True)


def best_candidate(
    candidates: Iterable[Candidate],
    target_name: str,
    target_locality: Optional[str],
) -> Optional[Candidate]:
    ranked = rank_candidates(candidates, target_name, target_locality)
    return ranked[0] if ranked else None
