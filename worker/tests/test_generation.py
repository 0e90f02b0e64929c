import pytest

from place_sync.core import generation
from place_sync.core.models import FALLBACK, GENERATED, PlaceRecord
from place_sync.vendors.errors import GenerationError


class StubClient:
    def __init__(self, output=None, error=None):
        self.output = output
        self.error = error
        self.prompts = []

    def generate(self, prompt):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.output


@pytest.fixture
def record():
    return PlaceRecord(id=1, name="Noodle House", location="Mapo-gu", mood=["cozy"], service=["takeout"])


def test_parse_structured_strict_json():
    assert generation.parse_structured('{"summary": "Warm bowls"}') == {"summary": "Warm bowls"}


def test_parse_structured_strips_code_fences():
    raw = '```json\n{"summary": "Warm bowls"}\n```'
    assert generation.parse_structured(raw) == {"summary": "Warm bowls"}


def test_parse_structured_extracts_embedded_object():
    raw = 'Sure! Here it is: {"mood": ["quiet"]} Hope that helps.'
    assert generation.parse_structured(raw) == {"mood": ["quiet"]}


def test_parse_structured_returns_none_for_plain_text():
    assert generation.parse_structured("Just a sentence") is None
    assert generation.parse_structured('"a json string"') is None
    assert generation.parse_structured("") is None


def test_sanitize_summary_strips_markup_and_caps_length():
    assert generation.sanitize_summary("  **Cozy** #noodles  ") == "Cozy noodles"
    assert len(generation.sanitize_summary("a" * 100)) == 60
    assert generation.sanitize_summary(None) == ""


@pytest.mark.parametrize(
    "text",
    ["", "   ", "No info", "Not enough data to say", "정보 없음", "데이터 없음", "good", "맛 좋 아 요"],
)
def test_is_weak_summary_rejects(text):
    assert generation.is_weak_summary(text) is True


def test_is_weak_summary_accepts_useful_text():
    assert generation.is_weak_summary("Slurpable noodles near the station") is False


def test_is_weak_summary_threshold_is_tunable():
    assert generation.is_weak_summary("abcd", min_chars=4) is False
    assert generation.is_weak_summary("abcd", min_chars=6) is True


def test_build_tagline_uses_default_locality():
    assert generation.build_tagline("Noodle House") == "Noodle House, a hidden spot in Yongsan-gu"


def test_build_tagline_includes_category_label():
    assert generation.build_tagline("Noodle House", "Mapo-gu", "Korean") == "Noodle House, a hidden Korean spot in Mapo-gu"
    assert generation.build_tagline("Noodle House", "Mapo-gu", "other") == "Noodle House, a hidden spot in Mapo-gu"


def test_summarize_without_client_uses_template():
    generator = generation.ResilientGenerator(None)
    result = generator.summarize(PlaceRecord(id=1, name="Noodle House"))

    assert result.source == FALLBACK
    assert result.reason == "unavailable"
    assert result.value == "Noodle House, a hidden spot in Yongsan-gu"


def test_summarize_uses_generated_json(record):
    client = StubClient('{"summary": "Warm noodles for rainy days"}')
    generator = generation.ResilientGenerator(client)

    result = generator.summarize(record, "Korean")

    assert result.source == GENERATED
    assert result.value == "Warm noodles for rainy days"
    assert "Name: Noodle House" in client.prompts[0]
    assert "Mood: cozy" in client.prompts[0]


def test_summarize_wraps_plain_text(record):
    generator = generation.ResilientGenerator(StubClient("Handmade noodles, quick lunch spot"))

    result = generator.summarize(record)

    assert result.source == GENERATED
    assert result.value == "Handmade noodles, quick lunch spot"


def test_summarize_rejects_weak_output(record):
    generator = generation.ResilientGenerator(StubClient('{"summary": "no info"}'))

    result = generator.summarize(record, "Korean")

    assert result.source == FALLBACK
    assert result.reason == "weak_output"
    assert result.value == "Noodle House, a hidden Korean spot in Mapo-gu"


def test_summarize_falls_back_on_provider_error(record):
    generator = generation.ResilientGenerator(StubClient(error=GenerationError("boom", status=500)))

    result = generator.summarize(record)

    assert result.source == FALLBACK
    assert result.reason == "provider_error"


def test_classify_filters_to_vocabulary(record):
    client = StubClient(
        '{"mood": ["cozy", "haunted", "Quiet"], "service": ["wifi", "valet"], "partySize": ["couple", "solo"]}'
    )
    generator = generation.ResilientGenerator(client)

    result = generator.classify(record, "Korean", "Warm noodles")

    assert result.source == GENERATED
    assert result.value == {"mood": ["cozy", "quiet"], "service": ["wifi"], "party_size": ["couple"]}
    assert "Summary: Warm noodles" in client.prompts[0]


def test_classify_accepts_empty_result(record):
    generator = generation.ResilientGenerator(StubClient('{"mood": [], "service": [], "party_size": []}'))

    result = generator.classify(record)

    assert result.source == GENERATED
    assert result.value == {"mood": [], "service": [], "party_size": []}


def test_classify_synthesizes_from_plain_text(record):
    generator = generation.ResilientGenerator(StubClient("Mostly quiet, good for a couple, offers takeout."))

    result = generator.classify(record)

    assert result.value == {"mood": ["quiet"], "service": ["takeout"], "party_size": ["couple"]}


def test_classify_without_client_yields_empty_tags(record):
    result = generation.ResilientGenerator(None).classify(record)

    assert result.source == FALLBACK
    assert result.value == {"mood": [], "service": [], "party_size": []}


def test_is_weak_summary_keeps_positive_availability_phrasing():
    assert generation.is_weak_summary("Menu information is available at the counter") is False
    assert generation.is_weak_summary("No database needed, just good noodles") is False
    assert generation.is_weak_summary("Information not available") is True


@pytest.mark.parametrize(
    "output, expected",
    [
        ('{"mood": 5, "service": ["wifi"], "party_size": true}', {"mood": [], "service": ["wifi"], "party_size": []}),
        ('{"mood": ["cozy"], "service": {"wifi": true}}', {"mood": ["cozy"], "service": [], "party_size": []}),
        ('{"mood": null, "service": 3.5, "party": "solo"}', {"mood": [], "service": [], "party_size": ["solo"]}),
        ('["quiet", "couple"]', {"mood": ["quiet"], "service": [], "party_size": ["couple"]}),
    ],
)
def test_classify_tolerates_oddly_shaped_json(record, output, expected):
    result = generation.ResilientGenerator(StubClient(output)).classify(record)

    assert result.source == GENERATED
    assert result.value == expected


def test_classify_falls_back_when_payload_handling_fails(record):
    class BrokenGenerator(generation.ResilientGenerator):
        def normalize_tag_payload(self, data):
            raise TypeError("unexpected payload")

    result = BrokenGenerator(StubClient('{"mood": ["cozy"]}')).classify(record)

    assert result.source == FALLBACK
    assert result.reason == "unparseable"
    assert result.value == {"mood": [], "service": [], "party_size": []}


def test_classify_matches_whole_words_in_plain_text(record):
    generator = generation.ResilientGenerator(StubClient("A disquieting console bar with pet-friendly patio."))

    result = generator.classify(record)

    assert result.value == {"mood": [], "service": ["pet friendly"], "party_size": []}
