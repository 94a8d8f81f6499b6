import pytest

from reftagger.config.default_vocabulary import get_default_structure
from reftagger.services.tag_usage_service import TagUsageService, diff_tags

CONFIG = {"structure": get_default_structure(include_tags=False)}


def usage(supabase, category, tag_value):
    for row in supabase.rows("tag_vocabulary"):
        if row["category"] == category and row["tag_value"] == tag_value:
            return row["times_used"]
    raise AssertionError(f"{category}:{tag_value} not found")


def test_diff_tags():
    assert diff_tags(["a", "b"], ["b", "c", "c"]) == (["c"], ["a"])
    assert diff_tags(None, ["a"]) == (["a"], [])
    assert diff_tags(["a"], "not a list") == ([], ["a"])


async def test_increment_for_new_image(supabase, default_config):
    service = TagUsageService(supabase)
    count = await service.increment_for_new_image(
        {"industries": ["tech", "retail"], "style": ["modern"], "notes": "ignored"}, CONFIG
    )
    assert count == 3
    assert usage(supabase, "industries", "tech") == 1
    assert usage(supabase, "style", "modern") == 1
    last_used = [r["last_used_at"] for r in supabase.rows("tag_vocabulary") if r["tag_value"] == "tech"][0]
    assert last_used is not None


async def test_update_for_changes_counts_only_the_difference(supabase, default_config):
    service = TagUsageService(supabase)
    await service.increment_for_new_image({"industries": ["tech", "retail"]}, CONFIG)

    result = await service.update_for_changes(
        {"industries": ["tech", "retail"]}, {"industries": ["tech", "fashion"]}, CONFIG
    )

    assert result == {"incremented": 1, "decremented": 1}
    assert usage(supabase, "industries", "tech") == 1
    assert usage(supabase, "industries", "retail") == 0
    assert usage(supabase, "industries", "fashion") == 1


async def test_decrement_never_goes_below_zero(supabase, default_config):
    service = TagUsageService(supabase)
    await service.decrement_for_deleted_image({"mood": ["calm"]}, CONFIG)
    assert usage(supabase, "mood", "calm") == 0


async def test_strict_mode_propagates_rpc_errors(supabase, default_config):
    supabase.fail("rpc:increment_tag_usage")
    service = TagUsageService(supabase)

    with pytest.raises(RuntimeError):
        await service.increment_for_new_image({"industries": ["tech"]}, CONFIG)

    count = await service.increment_for_new_image({"industries": ["tech", "retail"]}, CONFIG, strict=False)
    assert count == 0


async def test_bulk_increment(supabase, default_config):
    service = TagUsageService(supabase)
    await service.bulk_increment("style", "modern", count=3)
    assert usage(supabase, "style", "modern") == 3
