import pytest

from reftagger.config.default_vocabulary import get_default_structure
from reftagger.services.correction_service import (
    CorrectionService,
    calculate_accuracy,
    calculate_category_accuracy,
)

CONFIG = {"structure": get_default_structure(include_tags=False)}


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def correction(image_id, suggested, selected, added, removed):
    return {
        "image_id": image_id,
        "ai_suggested": {"confidence": "high", **suggested},
        "designer_selected": selected,
        "tags_added": added,
        "tags_removed": removed,
    }


def seed_corrections(supabase, count=5):
    rows = []
    for i in range(count):
        image = supabase.seed("reference_images", [{
            "original_filename": f"{i}.png",
            "status": "tagged",
            "tagged_at": f"2024-01-{i + 1:02d}T00:00:00+00:00",
            "industries": ["tech", "retail"],
            "tags": {"style": ["modern"]},
            "ai_suggested_tags": {"industries": ["tech", "finance"], "style": ["modern"]},
            "ai_confidence_score": 0.9 if i % 2 else 0.6,
        }])[0]
        rows.append(correction(
            image["id"],
            {"industries": ["tech", "finance"], "style": ["modern"]},
            {"industries": ["tech", "retail"], "style": ["modern"]},
            ["retail"],
            ["finance"],
        ))
    supabase.seed("tag_corrections", rows)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def correction_service(supabase, services, clock):
    return CorrectionService(supabase, services["vocabulary_config"], services["settings"], clock=clock)


def test_calculate_accuracy():
    corrections = [
        correction("a", {"industries": ["tech", "finance"]}, {}, [], ["finance"]),
        correction("b", {"industries": ["retail"], "style": ["modern"]}, {}, ["bold"], []),
    ]
    assert calculate_accuracy(corrections) == 75
    assert calculate_accuracy([]) == 0


def test_calculate_category_accuracy():
    corrections = [
        correction("a", {"industries": ["tech", "finance"]}, {"industries": ["tech"]}, [], ["finance"]),
    ]
    accuracy = calculate_category_accuracy(corrections, CONFIG)
    assert accuracy["industries"] == 50
    assert accuracy["style"] == 100
    assert "notes" not in accuracy


async def test_track_correction_writes_a_row_even_without_changes(supabase, default_config, correction_service):
    row = await correction_service.track_correction(
        "img-1", {"industries": ["tech"], "confidence": "high"}, {"industries": ["tech"], "notes": "x"}, CONFIG
    )
    assert row["tags_added"] == [] and row["tags_removed"] == []
    assert row["ai_suggested"]["industries"] == ["tech"]
    assert row["ai_suggested"]["confidence"] == "high"
    assert row["designer_selected"]["style"] == []
    assert len(supabase.rows("tag_corrections")) == 1


async def test_analysis_needs_five_corrections(supabase, default_config, correction_service):
    seed_corrections(supabase, 4)
    assert await correction_service.get_correction_analysis() is None


async def test_analysis_patterns_and_accuracy(supabase, default_config, correction_service):
    seed_corrections(supabase)

    analysis = await correction_service.get_correction_analysis()

    assert analysis["total_images"] == 5
    assert analysis["frequently_missed"] == [{"tag": "retail", "category": "industries", "count": 5, "percentage": 100}]
    assert analysis["frequently_wrong"] == [{"tag": "finance", "category": "industries", "count": 5, "percentage": 100}]
    assert analysis["accuracy_rate"] == 67
    assert analysis["category_accuracy"]["industries"] == 50
    assert analysis["category_accuracy"]["style"] == 100


async def test_analysis_is_cached_until_expiry_or_new_images(supabase, default_config, correction_service, clock):
    seed_corrections(supabase)
    first = await correction_service.get_correction_analysis()

    supabase.seed("tag_corrections", [correction("x", {"industries": ["tech"]}, {}, [], ["tech"])])
    assert await correction_service.get_correction_analysis() is first

    clock.now += 3601
    refreshed = await correction_service.get_correction_analysis()
    assert refreshed is not first
    assert refreshed["total_images"] == 6


async def test_cache_invalidated_by_new_tagged_images(supabase, default_config, correction_service):
    seed_corrections(supabase)
    first = await correction_service.get_correction_analysis()

    seed_corrections(supabase)
    second = await correction_service.get_correction_analysis()
    assert second is not first
    assert second["total_images"] == 10


async def test_retrain_prompt(supabase, default_config, correction_service):
    result = await correction_service.retrain_prompt()
    assert result["success"] is False

    seed_corrections(supabase)
    result = await correction_service.retrain_prompt()
    assert result["success"] is True
    assert result["analysis"]["top_missed"] == ["retail"]
    assert result["analysis"]["top_wrong"] == ["finance"]


async def test_analysis_errors_return_none(supabase, default_config, correction_service):
    seed_corrections(supabase)
    supabase.fail("tag_corrections", "select")
    assert await correction_service.get_correction_analysis() is None


async def test_ai_analytics_report(supabase, default_config, correction_service):
    seed_corrections(supabase)

    report = await correction_service.ai_analytics_report()

    overall = report["overall"]
    assert overall["total_images"] == 5
    assert overall["total_corrections"] == 5
    assert overall["avg_confidence"] == 0.72
    assert overall["overall_accuracy"] == 66.7
    assert overall["accuracy_trend"] == "stable"

    industries = next(c for c in report["category_breakdown"] if c["key"] == "industries")
    assert industries["avg_suggested_by_ai"] == 2
    assert industries["avg_selected_by_designer"] == 2
    assert industries["accuracy"] == 50

    assert report["missed_tags"][0]["tag"] == "retail"
    assert report["missed_tags"][0]["percentage"] == 100.0

    buckets = {b["range"]: b for b in report["confidence_buckets"]}
    assert buckets["Low (0-70%)"]["image_count"] == 3
    assert buckets["High (85-100%)"]["image_count"] == 2
    assert buckets["High (85-100%)"]["avg_corrections"] == 2
    assert buckets["High (85-100%)"]["correction_rate"] == 100

    assert len(report["image_analysis"]) == 5
    assert report["image_analysis"][0]["correction_percentage"] == 67
    assert report["enhanced_mode"] is False
