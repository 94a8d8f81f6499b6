import pytest

from reftagger.config.settings import settings
from reftagger.core.errors import NotFound, ReftaggerError, ValidationFailed
from reftagger.services.image_service import filter_images, get_filter_options, sort_images
from reftagger.utils.error_messages import ErrorMessages

from tests.conftest import make_png


@pytest.fixture
def image_service(services):
    return services["image"]


def usage(supabase, category, tag_value):
    return next(
        r["times_used"] for r in supabase.rows("tag_vocabulary")
        if r["category"] == category and r["tag_value"] == tag_value
    )


TAGS = {"industries": ["tech"], "project_types": ["branding"], "style": ["modern"], "mood": [], "elements": [], "notes": "hero shot"}


async def test_save_image_stores_files_row_and_usage(supabase, default_config, image_service, png_bytes):
    image = await image_service.save_image("Hero Shot.png", "image/png", png_bytes, TAGS)

    assert image["status"] == "tagged"
    assert image["industries"] == ["tech"]
    assert image["tags"] == {"style": ["modern"], "mood": [], "elements": []}
    assert image["notes"] == "hero shot"
    assert image["prompt_version"] == "baseline"
    assert image["ai_model_version"] == settings.ANTHROPIC_MODEL
    assert image["file_size"] == len(png_bytes)
    assert image["perceptual_hash"] == "f" * 16
    assert image["storage_path"].endswith(f"originals/{image['id']}-hero-shot.png")
    assert set(supabase.files) == {f"originals/{image['id']}-hero-shot.png", f"thumbnails/{image['id']}-hero-shot.png"}

    assert usage(supabase, "industries", "tech") == 1
    assert usage(supabase, "style", "modern") == 1
    assert supabase.rows("tag_corrections") == []


async def test_save_image_with_ai_suggestion_tracks_correction(supabase, default_config, image_service, png_bytes):
    suggestion = {
        "industries": ["tech", "finance"],
        "style": ["modern"],
        "confidence": "high",
        "reasoning": "Clean layout",
        "promptVersion": "enhanced",
    }
    image = await image_service.save_image("a.png", "image/png", png_bytes, TAGS, ai_suggestion=suggestion)

    assert image["prompt_version"] == "enhanced"
    assert image["ai_confidence_score"] == 0.9
    assert image["ai_reasoning"] == "Clean layout"
    assert image["ai_suggested_tags"]["industries"] == ["tech", "finance"]

    [correction] = supabase.rows("tag_corrections")
    assert correction["image_id"] == image["id"]
    assert correction["tags_added"] == ["branding"]
    assert correction["tags_removed"] == ["finance"]


async def test_save_image_survives_usage_failures(supabase, default_config, image_service, png_bytes):
    supabase.fail("rpc:increment_tag_usage")
    supabase.fail("tag_corrections", "insert")
    image = await image_service.save_image("a.png", "image/png", png_bytes, TAGS, ai_suggestion={"industries": ["tech"]})
    assert image["status"] == "tagged"


async def test_save_image_rejects_bad_files(default_config, image_service):
    with pytest.raises(ValidationFailed) as excinfo:
        await image_service.save_image("a.pdf", "application/pdf", b"%PDF", TAGS)
    assert excinfo.value.message == "File validation failed: File must be a JPEG, PNG, or WEBP image"


async def test_save_image_requires_vocabulary(image_service, png_bytes):
    with pytest.raises(ReftaggerError):
        await image_service.save_image("a.png", "image/png", png_bytes, TAGS)


async def test_upload_then_tag(supabase, default_config, image_service, png_bytes):
    pending = await image_service.upload_image("a.png", "image/png", png_bytes)
    assert pending["status"] == "pending"

    result = await image_service.tag_image(pending["id"], {"industries": ["retail"]}, prompt_version="baseline")
    assert result["skipped"] is False
    assert result["image"]["industries"] == ["retail"]
    assert usage(supabase, "industries", "retail") == 1

    again = await image_service.tag_image(pending["id"], {"industries": ["tech"]})
    assert again["skipped"] is True
    assert usage(supabase, "industries", "tech") == 0


async def test_update_image_tags_adjusts_usage(supabase, default_config, image_service, png_bytes):
    image = await image_service.save_image("a.png", "image/png", png_bytes, TAGS)

    updated = await image_service.update_image_tags(image["id"], {"style": ["vintage"], "notes": ""})

    assert updated["tags"] == {"style": ["vintage"], "mood": [], "elements": []}
    assert updated["notes"] is None
    assert updated["industries"] == ["tech"]
    assert usage(supabase, "style", "modern") == 0
    assert usage(supabase, "style", "vintage") == 1
    assert usage(supabase, "industries", "tech") == 1


async def test_update_image_tags_aborts_when_usage_update_fails(supabase, default_config, image_service, png_bytes):
    image = await image_service.save_image("a.png", "image/png", png_bytes, TAGS)
    supabase.fail("rpc:increment_tag_usage")

    with pytest.raises(RuntimeError):
        await image_service.update_image_tags(image["id"], {"industries": ["tech", "retail"]})

    row = next(r for r in supabase.rows("reference_images") if r["id"] == image["id"])
    assert row["industries"] == ["tech"]
    assert usage(supabase, "industries", "retail") == 0


async def test_bulk_edit_skips_images_when_usage_update_fails(supabase, default_config, image_service, png_bytes):
    image = await image_service.save_image("a.png", "image/png", png_bytes, TAGS)
    supabase.fail("rpc:increment_tag_usage")

    result = await image_service.bulk_edit([image["id"]], {"mood": ["calm"]}, "add")

    assert result == {"updated": 0, "failed": [image["id"]]}
    row = next(r for r in supabase.rows("reference_images") if r["id"] == image["id"])
    assert row["tags"]["mood"] == []


async def test_save_image_rejects_unreadable_image_bytes(supabase, default_config, image_service):
    with pytest.raises(ValidationFailed) as excinfo:
        await image_service.save_image("a.png", "image/png", b"not really a png", TAGS)
    assert excinfo.value.message == f"File validation failed: {ErrorMessages.IMAGE_INVALID_FORMAT}"
    assert supabase.files == {}


async def test_bulk_edit(supabase, default_config, image_service, png_bytes):
    first = await image_service.save_image("a.png", "image/png", png_bytes, TAGS)
    second = await image_service.save_image("b.png", "image/png", png_bytes, {"mood": ["calm"]})

    result = await image_service.bulk_edit([first["id"], second["id"], "missing"], {"mood": ["calm"]}, "add")
    assert result == {"updated": 2, "failed": ["missing"]}
    assert usage(supabase, "mood", "calm") == 2

    rows = {r["id"]: r for r in supabase.rows("reference_images")}
    assert rows[first["id"]]["tags"]["mood"] == ["calm"]
    assert rows[first["id"]]["tags"]["style"] == ["modern"]

    result = await image_service.bulk_edit([first["id"], second["id"]], {"mood": ["calm"]}, "remove")
    assert result["updated"] == 2
    assert usage(supabase, "mood", "calm") == 0


async def test_set_status(default_config, image_service, png_bytes):
    image = await image_service.save_image("a.png", "image/png", png_bytes, TAGS)
    assert (await image_service.set_status(image["id"], "approved"))["status"] == "approved"

    with pytest.raises(ValidationFailed):
        await image_service.set_status(image["id"], "archived")
    with pytest.raises(NotFound):
        await image_service.set_status("missing", "approved")


async def test_delete_image(supabase, default_config, image_service, png_bytes):
    image = await image_service.save_image("a.png", "image/png", png_bytes, TAGS, ai_suggestion={"industries": ["tech"]})

    result = await image_service.delete_image(image["id"])

    assert result == {"success": True, "id": image["id"]}
    assert supabase.rows("reference_images") == []
    assert supabase.rows("tag_corrections") == []
    assert supabase.files == {}
    assert usage(supabase, "industries", "tech") == 0


async def test_delete_image_tolerates_storage_errors(supabase, default_config, image_service, png_bytes):
    image = await image_service.save_image("a.png", "image/png", png_bytes, TAGS)
    supabase.fail("storage", "remove")
    await image_service.delete_image(image["id"])
    assert supabase.rows("reference_images") == []


async def test_delete_all_images(supabase, default_config, image_service, png_bytes):
    await image_service.save_image("a.png", "image/png", png_bytes, TAGS)
    await image_service.save_image("b.png", "image/png", make_png(color=(0, 0, 255)), TAGS)

    result = await image_service.delete_all_images()

    assert result == {"success": True, "deleted_count": 2}
    assert supabase.rows("reference_images") == []
    assert supabase.files == {}
    assert all(r["times_used"] == 0 and r["last_used_at"] is None for r in supabase.rows("tag_vocabulary"))


async def test_gallery_search_filters_and_options(default_config, image_service, png_bytes):
    await image_service.save_image("cafe.png", "image/png", png_bytes, {"industries": ["restaurant"], "style": ["rustic"]})
    await image_service.save_image("bank.png", "image/png", png_bytes, {"industries": ["finance"], "notes": "cafe vibes"})
    await image_service.upload_image("pending.png", "image/png", png_bytes)

    gallery = await image_service.list_gallery()
    assert gallery["total"] == 2 and gallery["count"] == 2

    searched = await image_service.list_gallery(search="CAFE")
    assert searched["count"] == 2

    filtered = await image_service.list_gallery(filters={"industries": "finance", "style": "all"})
    assert [img["original_filename"] for img in filtered["images"]] == ["bank.png"]

    options = await image_service.filter_options()
    assert options["industries"] == ["finance", "restaurant"]
    assert options["style"] == ["rustic"]
    assert options["notes"] == ["cafe vibes"]


def test_sort_images():
    images = [
        {"id": "a", "tagged_at": "2024-01-01", "updated_at": "2024-03-01"},
        {"id": "b", "tagged_at": "2024-02-01", "updated_at": None},
    ]
    assert [i["id"] for i in sort_images(images, "newest")] == ["b", "a"]
    assert [i["id"] for i in sort_images(images, "oldest")] == ["a", "b"]
    assert [i["id"] for i in sort_images(images, "updated")] == ["a", "b"]


def test_filter_helpers_with_text_category():
    config = {"structure": {"categories": [
        {"key": "notes", "storage_type": "text", "storage_path": "notes"},
    ]}}
    images = [{"notes": "x"}, {"notes": None}]
    assert get_filter_options(images, config) == {"notes": ["x"]}
    assert filter_images(images, "", {"notes": "x"}, config) == [{"notes": "x"}]
