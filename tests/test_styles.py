"""Tests for style extraction, recommendations and catalog bookkeeping."""

import itertools
import threading
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from enablement.brand import BRAND_COLORS, BRAND_ELEMENTS, TABLES_VERSION
from enablement.storage import InMemoryStore
from enablement.styles import (
    PATTERNS_NAMESPACE,
    PROGRESS_NAMESPACE,
    StyleNotFoundError,
    StylePatternStore,
    UploadedFile,
)

DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
START = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self) -> None:
        self.now = START

    def __call__(self) -> datetime:
        self.now += timedelta(minutes=1)
        return self.now


class FailingStore:
    def get(self, namespace: str) -> Optional[bytes]:
        raise OSError("disk unavailable")

    def set(self, namespace: str, value: bytes) -> None:
        raise OSError("disk unavailable")


def make_store(kv=None) -> StylePatternStore:
    counter = itertools.count(1)
    return StylePatternStore(
        kv if kv is not None else InMemoryStore(),
        id_factory=lambda: f"style-{next(counter)}",
        clock=FakeClock(),
    )


def image(name: str = "retail_hero.png") -> UploadedFile:
    return UploadedFile(name=name, content_type="image/png")


def test_image_upload_learns_one_pattern() -> None:
    store = make_store()

    patterns, insights = store.process_upload(image("campaign_banner.png"))

    assert len(patterns) == 1
    pattern = patterns[0]
    assert pattern.confidence == 0.85
    assert "campaign_banner.png" in pattern.name
    assert pattern.source == "campaign_banner.png"
    assert pattern.type == "learned"
    assert pattern.colors.primary == BRAND_COLORS["primary"]
    assert "Analyzed 1 uploaded files" in insights
    assert "Learned 1 style patterns" in insights


@pytest.mark.parametrize(
    "content_type, confidence, label",
    [
        ("image/jpeg", 0.85, "Image Style"),
        ("application/pdf", 0.80, "Document Style"),
        (DOCX, 0.75, "Content Style"),
        ("application/msword", 0.75, "Content Style"),
    ],
)
def test_extraction_strategy_follows_media_kind(content_type, confidence, label) -> None:
    store = make_store()

    patterns, _ = store.process_upload(UploadedFile(name="guide.bin", content_type=content_type))

    assert patterns[0].confidence == confidence
    assert label in patterns[0].name


def test_pdf_pattern_carries_document_layout() -> None:
    store = make_store()

    patterns, _ = store.process_upload(UploadedFile(name="deck.pdf", content_type="application/pdf"))

    assert patterns[0].layout.max_width == 1200
    assert patterns[0].colors.light_text == BRAND_COLORS["light_text"]


def test_unsupported_upload_counts_but_learns_nothing() -> None:
    store = make_store()

    patterns, _ = store.process_upload(UploadedFile(name="data.csv", content_type="text/csv"))

    assert patterns == []
    assert store.patterns() == []
    assert store.progress().total_uploads == 1
    assert store.progress().learned_patterns == 0


def test_upload_without_name_is_rejected_before_mutation() -> None:
    store = make_store()

    with pytest.raises(ValueError):
        store.process_upload(UploadedFile(name="", content_type="image/png"))

    assert store.progress().total_uploads == 0


def test_uploads_are_append_only() -> None:
    store = make_store()
    store.process_upload(image("a.png"))
    before_size = len(store.patterns())
    before_uploads = store.progress().total_uploads

    uploads = [image("b.png"), UploadedFile("c.txt", "text/plain"), UploadedFile("d.pdf", "application/pdf")]
    for upload in uploads:
        store.process_upload(upload)

    assert len(store.patterns()) >= before_size
    assert store.progress().total_uploads == before_uploads + len(uploads)
    assert [p.source for p in store.patterns()] == ["a.png", "b.png", "d.pdf"]


def test_style_confidence_tracks_catalog_average() -> None:
    store = make_store()
    store.process_upload(image())
    store.process_upload(UploadedFile("notes.docx", DOCX))

    assert store.progress().style_confidence == pytest.approx(0.8)
    assert "Building style confidence (80%)" in store.insights()


def test_catalog_and_progress_survive_reload() -> None:
    kv = InMemoryStore()
    store = make_store(kv)
    store.process_upload(image(), industry="retail")

    reloaded = make_store(kv)
    reloaded.initialize()

    assert kv.get(PATTERNS_NAMESPACE) is not None
    assert kv.get(PROGRESS_NAMESPACE) is not None
    assert [p.id for p in reloaded.patterns()] == [p.id for p in store.patterns()]
    assert reloaded.patterns()[0].created_at == store.patterns()[0].created_at
    assert reloaded.progress().total_uploads == 1
    assert "retail" in reloaded.progress().industry_styles


def test_storage_failures_are_absorbed() -> None:
    store = make_store(FailingStore())

    patterns, insights = store.process_upload(image())

    assert len(patterns) == 1
    assert len(store.patterns()) == 1
    assert insights


def test_corrupt_catalog_loads_as_empty() -> None:
    kv = InMemoryStore({PATTERNS_NAMESPACE: b"{not json", PROGRESS_NAMESPACE: b"[]"})
    store = make_store(kv)

    store.initialize()

    assert store.patterns() == []
    assert store.progress().total_uploads == 0


def test_style_for_overlays_industry_accent_and_patterns() -> None:
    store = make_store()

    style = store.style_for("brochure", "retail")

    assert style.confidence == 0.9
    assert style.colors.accent == "#FF6B35"
    assert style.colors.primary == BRAND_COLORS["primary"]
    assert style.brand_elements.patterns == ["shopping", "consumer", "vibrant"]
    assert store.patterns() == []


def test_style_for_unknown_industry_uses_brand_defaults() -> None:
    style = make_store().style_for("brochure", "mining")

    assert style.colors.accent == BRAND_COLORS["accent"]
    assert style.brand_elements.patterns == BRAND_ELEMENTS["patterns"]


def test_style_for_is_deterministic() -> None:
    store = make_store()

    first = store.style_for("brochure", "education")
    second = store.style_for("brochure", "education")

    assert first.id == second.id
    assert first.colors == second.colors
    assert first.name == second.name


def test_recommendations_match_name_case_insensitively() -> None:
    store = make_store()
    store.process_upload(image("RETAIL_hero.png"))
    store.process_upload(image("campus.png"))

    recommendations = store.recommendations_for("whitepaper", "retail")

    assert [p.source for p in recommendations] == ["RETAIL_hero.png"]


def test_recommendations_fall_back_to_brand_style() -> None:
    store = make_store()
    store.process_upload(image("campus.png"))

    recommendations = store.recommendations_for("whitepaper", "healthcare")

    assert len(recommendations) == 1
    assert recommendations[0].confidence == 0.9
    assert recommendations[0].colors.accent == "#10B981"


def test_recommendations_skip_low_confidence_patterns() -> None:
    store = make_store()
    patterns, _ = store.process_upload(image("retail.png"))
    store.adjust(patterns[0].id, {"confidence": 0.7})

    recommendations = store.recommendations_for("brochure", "retail")

    assert recommendations[0].id != patterns[0].id


def test_adjust_renames_only_target_pattern() -> None:
    store = make_store()
    first, _ = store.process_upload(image("one.png"))
    second, _ = store.process_upload(image("two.png"))
    untouched_before = store.get(second[0].id)

    adjusted = store.adjust(first[0].id, {"name": "X"})

    assert adjusted.name == "X"
    assert adjusted.type == "adjusted"
    assert adjusted.last_used > first[0].last_used
    assert store.get(first[0].id).name == "X"
    assert store.get(second[0].id) == untouched_before
    assert store.progress().improvements[-1] == "Style adjusted: X"


def test_adjust_overlays_nested_fields() -> None:
    store = make_store()
    patterns, _ = store.process_upload(image())

    adjusted = store.adjust(patterns[0].id, {"colors": {"primary": "#E30613"}})

    assert adjusted.colors.primary == "#E30613"
    assert adjusted.colors.secondary == BRAND_COLORS["secondary"]
    assert store.progress().improvements[-1] == "Style adjusted: Custom adjustment"


def test_adjust_rejects_unknown_fields_without_mutation() -> None:
    store = make_store()
    patterns, _ = store.process_upload(image())

    with pytest.raises(ValueError):
        store.adjust(patterns[0].id, {"name": "Y", "colors": {"sparkle": "#000000"}})
    with pytest.raises(ValueError):
        store.adjust(patterns[0].id, {"id": "other"})

    pattern = store.get(patterns[0].id)
    assert pattern.name == patterns[0].name
    assert pattern.type == "learned"


def test_adjust_unknown_pattern_raises() -> None:
    with pytest.raises(StyleNotFoundError):
        make_store().adjust("missing", {"name": "X"})


def test_record_outcome_uses_moving_average() -> None:
    store = make_store()
    patterns, _ = store.process_upload(image())
    pattern_id = patterns[0].id

    after_success = store.record_outcome(pattern_id, True)
    after_failure = store.record_outcome(pattern_id, False)

    assert after_success.success_rate == pytest.approx(0.82)
    assert after_failure.success_rate == pytest.approx(0.738)
    assert after_failure.usage_count == 2


def test_mark_used_bumps_counter() -> None:
    store = make_store()
    patterns, _ = store.process_upload(image())

    store.mark_used(patterns[0].id)

    assert store.get(patterns[0].id).usage_count == 1
    assert store.get(patterns[0].id).last_used > patterns[0].last_used


def test_combine_requires_input() -> None:
    with pytest.raises(ValueError):
        make_store().combine([])


def test_combine_single_returns_same_pattern() -> None:
    store = make_store()
    style = store.style_for("brochure", "retail")

    assert store.combine([style]) is style


def test_combine_picks_axes_by_success_and_compliance() -> None:
    store = make_store()
    successful = store.style_for("brochure", "retail")
    successful.success_rate = 0.95
    successful.brand_compliance = 0.5
    successful.typography.primary = "Winner Sans"
    compliant = store.style_for("brochure", "healthcare")
    compliant.success_rate = 0.6
    compliant.brand_compliance = 0.99

    combined = store.combine([successful, compliant])

    assert combined.type == "combined"
    assert combined.typography.primary == "Winner Sans"
    assert combined.layout == successful.layout
    assert combined.colors == compliant.colors
    assert combined.brand_elements == compliant.brand_elements
    assert combined.success_rate == pytest.approx(0.775)
    assert combined.id not in (successful.id, compliant.id)


def test_find_matching_sorts_by_success_rate() -> None:
    store = make_store()
    low, _ = store.process_upload(image("retail_a.png"))
    high, _ = store.process_upload(image("retail_b.png"))
    store.process_upload(image("school.png"))
    store.record_outcome(low[0].id, False)
    store.record_outcome(high[0].id, True)

    matches = store.find_matching("image", "retail")

    assert [p.id for p in matches] == [high[0].id, low[0].id]


def test_industry_upload_records_summary() -> None:
    store = make_store()
    patterns, insights = store.process_upload(image(), industry="healthcare")

    summary = store.progress().industry_styles["healthcare"]
    assert summary["accent"] == "#10B981"
    assert summary["pattern_ids"] == [patterns[0].id]
    assert "Adapted styles for 1 industries" in insights


@pytest.mark.parametrize(
    "adjustments",
    [
        {"confidence": "0.95"},
        {"success_rate": None},
        {"brand_compliance": True},
        {"confidence": 1.5},
        {"name": 42},
        {"colors": "#E30613"},
    ],
)
def test_adjust_rejects_malformed_values(adjustments) -> None:
    store = make_store()
    patterns, _ = store.process_upload(image("retail.png"))

    with pytest.raises(ValueError):
        store.adjust(patterns[0].id, adjustments)

    assert store.get(patterns[0].id) == patterns[0]
    assert store.recommendations_for("brochure", "retail")[0].id == patterns[0].id
    store.process_upload(image("retail_2.png"))
    assert len(store.patterns()) == 2
    assert store.progress().total_uploads == 2


def test_adjust_stores_scores_as_floats() -> None:
    store = make_store()
    patterns, _ = store.process_upload(image())

    adjusted = store.adjust(patterns[0].id, {"confidence": 1, "success_rate": 0})

    assert isinstance(adjusted.confidence, float)
    assert adjusted.confidence == 1.0
    assert isinstance(adjusted.success_rate, float)


def test_patterns_record_table_version() -> None:
    kv = InMemoryStore()
    store = make_store(kv)
    store.process_upload(image())

    reloaded = make_store(kv)

    assert store.patterns()[0].to_dict()["tables_version"] == TABLES_VERSION
    assert reloaded.patterns()[0].tables_version == TABLES_VERSION


def test_concurrent_uploads_are_all_recorded() -> None:
    kv = InMemoryStore()
    store = StylePatternStore(kv)
    workers, per_worker = 8, 25

    def upload(worker: int) -> None:
        for n in range(per_worker):
            store.process_upload(image(f"w{worker}_{n}.png"))

    threads = [threading.Thread(target=upload, args=(w,)) for w in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    total = workers * per_worker
    assert store.progress().total_uploads == total
    assert store.progress().learned_patterns == total
    assert len(store.patterns()) == total
    assert len({p.id for p in store.patterns()}) == total

    reloaded = StylePatternStore(kv)
    assert len(reloaded.patterns()) == total
    assert reloaded.progress().total_uploads == total


def test_readers_get_snapshots() -> None:
    store = make_store()
    patterns, _ = store.process_upload(image())

    snapshot = store.patterns()
    snapshot[0].name = "mutated by caller"

    assert store.get(patterns[0].id).name == patterns[0].name
