from place_sync.core.vocabulary import DEFAULT_VOCABULARY, MOOD_TAGS, SERVICE_TAGS, normalize_tags


def test_normalize_tags_drops_foreign_values():
    assert normalize_tags(["cozy", "spooky", "lively"], MOOD_TAGS) == ["cozy", "lively"]


def test_normalize_tags_dedupes_preserving_order():
    assert normalize_tags(["Lively", "cozy", "lively", "COZY"], MOOD_TAGS) == ["lively", "cozy"]


def test_normalize_tags_canonicalises_spelling():
    assert normalize_tags(["pet-friendly", "Late_Night"], SERVICE_TAGS) == ["pet friendly", "late night"]


def test_normalize_tags_accepts_comma_separated_string():
    assert normalize_tags("takeout, wifi, karaoke", SERVICE_TAGS) == ["takeout", "wifi"]


def test_normalize_tags_ignores_non_lists():
    assert normalize_tags(None, MOOD_TAGS) == []
    assert normalize_tags([1, None, "quiet"], MOOD_TAGS) == ["quiet"]


def test_vocabulary_axes_order():
    assert [axis for axis, _ in DEFAULT_VOCABULARY.axes()] == ["mood", "service", "party_size"]


def test_normalize_tags_returns_empty_for_scalars_and_mappings():
    assert normalize_tags(5, MOOD_TAGS) == []
    assert normalize_tags(True, MOOD_TAGS) == []
    assert normalize_tags({"quiet": True}, MOOD_TAGS) == []
    assert normalize_tags(("quiet",), MOOD_TAGS) == ["quiet"]
