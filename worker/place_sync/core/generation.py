"""Summary and tag generation with deterministic fallbacks.

Every generated field goes through the same steps: one prompt, an ordered
chain of parse attempts, validation, and a template fallback that is always
available. Nothing in here raises for provider or parsing problems; callers
get a :class:`GenerationResult` whose ``source`` says which branch won.
"""

import json
import logging
import re
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol

from place_sync.core.models import FALLBACK, GENERATED, GenerationResult, PlaceRecord
from place_sync.core.vocabulary import DEFAULT_VOCABULARY, AllowedVocabulary, normalize_tags
from place_sync.etl.transform import CATEGORY_OTHER

logger = logging.getLogger(__name__)

MAX_SUMMARY_LENGTH = 60
MIN_SUMMARY_CHARS = 6
DEFAULT_LOCALITY = "Yongsan-gu"

_MARKUP_CHARS = re.compile(r"[#*_\[\]`~<>]")
_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)
_OBJECT = re.compile(r"\{.*\}", re.DOTALL)
_WEAK_PHRASES = re.compile(
    r"(정보\s*(없음|부족)|데이터\s*없음|찾을\s*수\s*없음|no\s*info|not\s*enough|"
    r"information\s+(is\s+)?(not\s+available|unavailable)|no\s+data\b)",
    re.IGNORECASE,
)
_TAG_KEYS = {
    "mood": ("mood", "moods"),
    "service": ("service", "services"),
    "party_size": ("party_size", "partySize", "party"),
}


class TextClient(Protocol):
    def generate(self, prompt: str) -> str:
        ...


# ---------- parsing ----------


def _loads_object(text: str) -> Optional[Dict[str, Any]]:
    try:
        value = json.loads(text)
    except (TypeError, ValueError):
        return None
    return value if isinstance(value, dict) else None


def _parse_strict(raw: str) -> Optional[Dict[str, Any]]:
    return _loads_object(raw.strip())


def _parse_unfenced(raw: str) -> Optional[Dict[str, Any]]:
    text = _CODE_FENCE.sub("", raw.strip())
    parsed = _loads_object(text)
    if parsed is not None:
        return parsed
    match = _OBJECT.search(text)
    return _loads_object(match.group(0)) if match else None


PARSE_CHAIN = (_parse_strict, _parse_unfenced)


def parse_structured(raw: str) -> Optional[Dict[str, Any]]:
    """Return the first successful parse of ``raw`` or None."""
    for parser in PARSE_CHAIN:
        parsed = parser(raw or "")
        if parsed is not None:
            return parsed
    return None


# ---------- summary rules ----------


def sanitize_summary(text: Any) -> str:
    if not isinstance(text, str):
        return ""
    return _MARKUP_CHARS.sub("", text.strip())[:MAX_SUMMARY_LENGTH].strip()


def is_weak_summary(text: Optional[str], min_chars: int = MIN_SUMMARY_CHARS) -> bool:
    if not text or not text.strip():
        return True
    if _WEAK_PHRASES.search(text):
        return True
    return len(re.sub(r"\s", "", text)) < min_chars


def build_tagline(
    name: Optional[str],
    location: Optional[str] = None,
    category: Optional[str] = None,
    default_locality: str = DEFAULT_LOCALITY,
) -> str:
    locality = (location or "").strip() or default_locality
    place = (name or "").strip() or "this place"
    label = (category or "").strip()
    if label and label != CATEGORY_OTHER:
        return f"{place}, a hidden {label} spot in {locality}"
    return f"{place}, a hidden spot in {locality}"


def _join(values: Iterable[str]) -> str:
    joined = ", ".join(value for value in values or [] if value)
    return joined or "-"


def build_summary_prompt(record: PlaceRecord, category: Optional[str]) -> str:
    return "\n".join(
        [
            "Write a one-sentence summary of the place below and return JSON only.",
            "Rules:",
            "- no exaggeration, plain and short (under 40 characters)",
            "- no emoji, hashtags or special characters",
            "- friendly conversational tone",
            '- return pure JSON in exactly this shape: {"summary": "<sentence>"}',
            "",
            f"Name: {record.name}",
            f"Location: {record.location or '-'}",
            f"Category: {category or '-'}",
            f"Mood: {_join(record.mood)}",
            f"Service: {_join(record.service)}",
        ]
    )


def build_tags_prompt(
    record: PlaceRecord,
    category: Optional[str],
    summary: Optional[str],
    vocabulary: AllowedVocabulary = DEFAULT_VOCABULARY,
) -> str:
    return "\n".join(
        [
            "Classify the place below. Use only the allowed values; leave a list empty when unsure.",
            f"- mood (any of): {', '.join(vocabulary.mood)}",
            f"- service (any of): {', '.join(vocabulary.service)}",
            f"- party_size (exactly one or none): {', '.join(vocabulary.party_size)}",
            'Return pure JSON: {"mood": [...], "service": [...], "party_size": [...]}',
            "",
            f"Name: {record.name}",
            f"Location: {record.location or '-'}",
            f"Category: {category or '-'}",
            f"Summary: {summary or '-'}",
        ]
    )


def _empty_tags() -> Dict[str, List[str]]:
    return {"mood": [], "service": [], "party_size": []}


# ---------- generator ----------


class ResilientGenerator:
    """Generate summaries and tags, falling back to deterministic output."""

    def __init__(
        self,
        client: Optional[TextClient],
        *,
        vocabulary: AllowedVocabulary = DEFAULT_VOCABULARY,
        default_locality: str = DEFAULT_LOCALITY,
        min_summary_chars: int = MIN_SUMMARY_CHARS,
    ) -> None:
        self.client = client
        self.vocabulary = vocabulary
        self.default_locality = default_locality
        self.min_summary_chars = min_summary_chars

    @property
    def available(self) -> bool:
        return self.client is not None

    def _run(
        self,
        prompt: str,
        synthesize: Callable[[str], Dict[str, Any]],
        accept: Callable[[Dict[str, Any]], Any],
        fallback: Callable[[], Any],
    ) -> GenerationResult:
        if self.client is None:
            return GenerationResult(fallback(), FALLBACK, "unavailable")

        try:
            raw = self.client.generate(prompt)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Generation failed, using fallback: %s", exc)
            return GenerationResult(fallback(), FALLBACK, "provider_error")

        try:
            parsed = parse_structured(raw)
            if parsed is None:
                logger.debug("Generation output was not JSON; synthesizing from raw text")
                parsed = synthesize(raw)
            value = accept(parsed)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Generation output unusable, using fallback: %s", exc)
            return GenerationResult(fallback(), FALLBACK, "unparseable")

        if value is None:
            logger.debug("Generation output rejected: %r", (raw or "")[:80])
            return GenerationResult(fallback(), FALLBACK, "weak_output")
        return GenerationResult(value, GENERATED)

    def summarize(self, record: PlaceRecord, category: Optional[str] = None) -> GenerationResult:
        def fallback() -> str:
            return build_tagline(record.name, record.location, category, self.default_locality)

        def accept(data: Dict[str, Any]) -> Optional[str]:
            summary = sanitize_summary(data.get("summary"))
            if is_weak_summary(summary, self.min_summary_chars):
                return None
            return summary

        return self._run(
            build_summary_prompt(record, category),
            synthesize=lambda raw: {"summary": raw},
            accept=accept,
            fallback=fallback,
        )

    def classify(
        self,
        record: PlaceRecord,
        category: Optional[str] = None,
        summary: Optional[str] = None,
    ) -> GenerationResult:
        return self._run(
            build_tags_prompt(record, category, summary, self.vocabulary),
            synthesize=self._tags_from_text,
            accept=self.normalize_tag_payload,
            fallback=_empty_tags,
        )

    def normalize_tag_payload(self, data: Dict[str, Any]) -> Dict[str, List[str]]:
        tags = _empty_tags()
        for axis, allowed in self.vocabulary.axes():
            for key in _TAG_KEYS[axis]:
                if key in data:
                    tags[axis] = normalize_tags(data[key], allowed)
                    break
        tags["party_size"] = tags["party_size"][:1]
        return tags

    def _tags_from_text(self, raw: str) -> Dict[str, Any]:
        text = " ".join((raw or "").replace("_", " ").replace("-", " ").lower().split())
        return {
            axis: [tag for tag in allowed if re.search(rf"\b{re.escape(tag)}\b", text)]
            for axis, allowed in self.vocabulary.axes()
        }
