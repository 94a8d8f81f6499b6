import pytest

from reftagger.core.errors import ReftaggerError, ValidationFailed
from reftagger.services.search_service import score_image, select_results
from reftagger.config.default_vocabulary import get_default_structure


@pytest.fixture
def duplicate_service(services):
    return services["duplicate"]


@pytest.fixture
def search_service(services):
    return services["search"]


class TestDuplicates:
    @pytest.fixture(autouse=True)
    def existing(self, supabase):
        return supabase.seed("reference_images", [
            {"original_filename": "hero.png", "file_hash": "abc", "file_size": 100, "perceptual_hash": "ffffffffffffffff"},
            {"original_filename": "close.png", "file_hash": "def", "file_size": 200, "perceptual_hash": "fffffffffffffffe"},
            {"original_filename": "other.png", "file_hash": "ghi", "file_size": 300, "perceptual_hash": "0000000000000000"},
            {"original_filename": "legacy.png", "file_hash": "jkl", "file_size": 400, "perceptual_hash": None},
        ])

    async def test_exact_hash_match_wins(self, duplicate_service):
        result = await duplicate_service.check_duplicate("new.png", file_hash="ghi", perceptual_hash="ffffffffffffffff")
        assert result["match_type"] == "exact"
        assert result["confidence"] == 100
        assert result["existing_image"]["original_filename"] == "other.png"

    async def test_most_similar_perceptual_match(self, duplicate_service):
        result = await duplicate_service.check_duplicate("new.png", file_hash="zzz", perceptual_hash="fffffffffffffffe")
        assert result["match_type"] == "similar"
        assert result["confidence"] == 100
        assert result["existing_image"]["original_filename"] == "close.png"

    async def test_similarity_below_threshold_is_ignored(self, duplicate_service):
        result = await duplicate_service.check_duplicate("new.png", perceptual_hash="00000000ffffffff")
        assert result == {"is_duplicate": False}

    async def test_filename_match(self, duplicate_service):
        same = await duplicate_service.check_duplicate("hero.png", file_size=100)
        assert same["match_type"] == "filename"
        assert same["confidence"] == 80

        different = await duplicate_service.check_duplicate("hero.png", file_size=999)
        assert different["confidence"] == 50

    async def test_filename_required(self, duplicate_service):
        with pytest.raises(ValidationFailed):
            await duplicate_service.check_duplicate("")


CATEGORIES = get_default_structure(include_tags=False)["categories"]


def test_score_image_uses_category_weights():
    image = {
        "id": "1",
        "industries": ["restaurant"],
        "project_types": ["branding"],
        "tags": {"style": ["modern"], "mood": ["warm"]},
        "notes": "Great for a restaurant refresh",
    }
    result = score_image(image, ["restaurant", "warm"], CATEGORIES)
    assert result["match_score"] == 5 + 1 + 2
    assert result["matched_keywords"] == ["restaurant", "warm"]
    assert result["matched_on"] == {"industries": ["restaurant"], "mood": ["warm"]}
    assert result["tags"] == {"style": ["modern"], "mood": ["warm"]}


def test_select_results_relaxes_threshold():
    scored = [{"id": str(i), "match_score": s} for i, s in enumerate([5, 1, 0])]
    assert [r["id"] for r in select_results(scored)] == ["0", "1"]

    many = [{"id": str(i), "match_score": 2} for i in range(50)]
    assert len(select_results(many)) == 40


async def test_search_references(supabase, default_config, search_service):
    supabase.seed("reference_images", [
        {"original_filename": "a.png", "status": "tagged", "industries": ["restaurant"], "tags": {"style": ["rustic"]}},
        {"original_filename": "b.png", "status": "approved", "industries": ["tech"], "tags": {"style": ["rustic"]}},
        {"original_filename": "c.png", "status": "pending", "industries": ["restaurant"]},
    ])

    result = await search_service.search_references(["restaurant", "rustic"])

    assert [img["original_filename"] for img in result["images"]] == ["a.png", "b.png"]
    assert result["images"][0]["match_score"] == 7
    assert "warning" not in result


async def test_search_references_edge_cases(supabase, default_config, search_service):
    with pytest.raises(ValidationFailed):
        await search_service.search_references([])
    with pytest.raises(ValidationFailed):
        await search_service.search_references("restaurant")

    empty = await search_service.search_references(["restaurant"])
    assert empty == {"images": [], "warning": "No images in collection yet"}

    supabase.seed("reference_images", [{"original_filename": "a.png", "status": "tagged", "industries": ["tech"]}])
    nothing = await search_service.search_references(["zebra"])
    assert nothing["images"] == []
    assert nothing["warning"] == "No matching images found. Try different keywords."


async def test_search_requires_config(search_service):
    with pytest.raises(ReftaggerError):
        await search_service.search_references(["restaurant"])
