from reftagger.config.default_vocabulary import get_default_structure
from reftagger.utils.vocabulary import (
    build_update_object,
    category_row_fields,
    create_empty_tags,
    extract_tags,
    flatten_array_tags,
    get_array_categories,
    get_categories,
    get_image_value,
    merge_ai_suggestions,
    merge_with_existing,
    set_image_value,
)

CONFIG = {"structure": get_default_structure(include_tags=False)}


def test_get_categories_accepts_row_or_structure():
    assert get_categories(CONFIG) == get_categories(CONFIG["structure"])
    assert get_categories(None) == []
    assert [c["key"] for c in get_array_categories(CONFIG)] == [
        "industries", "project_types", "style", "mood", "elements",
    ]


def test_get_image_value_follows_dotted_paths():
    image = {"industries": ["tech"], "tags": {"style": ["modern"]}, "notes": None}
    assert get_image_value(image, "industries") == ["tech"]
    assert get_image_value(image, "tags.style") == ["modern"]
    assert get_image_value(image, "tags.mood") is None
    assert get_image_value(image, "notes") is None


def test_set_image_value_does_not_mutate_input():
    image = {"tags": {"style": ["modern"]}}
    updated = set_image_value(image, "tags.mood", ["calm"])
    assert updated == {"tags": {"style": ["modern"], "mood": ["calm"]}}
    assert image == {"tags": {"style": ["modern"]}}


def test_build_update_object_groups_nested_paths():
    update = build_update_object(
        {"industries": ["tech"], "style": ["modern"], "mood": ["calm"], "notes": None},
        CONFIG,
    )
    assert update == {"industries": ["tech"], "tags": {"style": ["modern"], "mood": ["calm"]}}


def test_build_update_object_can_clear_text_values():
    assert build_update_object({"notes": None}, CONFIG, include_none=True) == {"notes": None}


def test_extract_tags_fills_missing_categories():
    image = {"industries": ["retail"], "tags": {"mood": ["warm"]}, "notes": "good"}
    tags = extract_tags(image, CONFIG)
    assert tags == {
        "industries": ["retail"],
        "project_types": [],
        "style": [],
        "mood": ["warm"],
        "elements": [],
        "notes": "good",
    }


def test_create_empty_tags():
    empty = create_empty_tags(CONFIG)
    assert empty["industries"] == [] and empty["notes"] == ""


def test_category_row_fields_for_new_image():
    fields = category_row_fields({"industries": ["tech"], "style": ["modern"], "notes": ""}, CONFIG)
    assert fields["industries"] == ["tech"]
    assert fields["project_types"] == []
    assert fields["tags"] == {"style": ["modern"], "mood": [], "elements": []}
    assert fields["notes"] is None


def test_merge_with_existing_keeps_sibling_json_keys():
    image = {"tags": {"style": ["modern"], "mood": ["calm"]}}
    merged = merge_with_existing(image, {"tags": {"style": ["vintage"]}, "industries": ["tech"]})
    assert merged == {"tags": {"style": ["vintage"], "mood": ["calm"]}, "industries": ["tech"]}


def test_merge_ai_suggestions_appends_without_duplicates():
    existing = {"industries": ["tech"], "notes": ""}
    suggestions = {"industries": ["tech", "retail"], "notes": "from ai", "confidence": "high"}
    merged = merge_ai_suggestions(existing, suggestions, CONFIG)
    assert merged["industries"] == ["tech", "retail"]
    assert merged["notes"] == "from ai"
    assert merged["style"] == []


def test_flatten_array_tags_skips_text_categories():
    tags = {"industries": ["tech"], "style": ["modern", "bold"], "notes": "ignored"}
    assert flatten_array_tags(tags, CONFIG) == ["tech", "modern", "bold"]
