"""
Storage mapping between vocabulary categories and reference image rows

Categories name a storage_path on the image row. Flat paths ("industries")
are top-level columns; dotted paths ("tags.style") live inside a JSONB column.
"""
import copy
from typing import Any, Dict, List, Optional

ARRAY_STORAGE_TYPES = ("array", "jsonb_array")


def get_categories(config: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Get category list from a config row or a bare structure"""
    if not config:
        return []
    structure = config.get("structure", config)
    return list((structure or {}).get("categories") or [])


def is_array_category(category: Dict[str, Any]) -> bool:
    return category.get("storage_type") in ARRAY_STORAGE_TYPES


def get_array_categories(config: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [c for c in get_categories(config) if is_array_category(c)]


def find_category(config: Optional[Dict[str, Any]], key: str) -> Optional[Dict[str, Any]]:
    for category in get_categories(config):
        if category.get("key") == key:
            return category
    return None


def get_database_category(storage_path: str, key: str) -> str:
    """tag_vocabulary rows are keyed by category key, whatever the storage path"""
    return key


def get_image_value(image: Optional[Dict[str, Any]], storage_path: str) -> Any:
    """Read a value from an image row following a dotted storage path"""
    value: Any = image
    for part in storage_path.split("."):
        if not isinstance(value, dict) or part not in value or value[part] is None:
            return None
        value = value[part]
    return value


def set_image_value(image: Dict[str, Any], storage_path: str, value: Any) -> Dict[str, Any]:
    """Return a copy of the image with value written at the storage path"""
    updated = copy.deepcopy(image)
    parts = storage_path.split(".")
    target = updated
    for part in parts[:-1]:
        if not isinstance(target.get(part), dict):
            target[part] = {}
        target = target[part]
    target[parts[-1]] = value
    return updated


def build_update_object(
    tags: Dict[str, Any],
    config: Dict[str, Any],
    include_none: bool = False,
) -> Dict[str, Any]:
    """Build a row update from tags keyed by category key

    Nested paths are grouped under their root column so that
    {"style": [...], "mood": [...]} becomes {"tags": {"style": [...], "mood": [...]}}.
    None values are skipped unless include_none is set, which lets an edit
    clear a text category.
    """
    update: Dict[str, Any] = {}
    for category in get_categories(config):
        key = category["key"]
        if key not in tags:
            continue
        value = tags[key]
        if value is None and not include_none:
            continue

        path = category["storage_path"]
        if "." in path:
            root, nested = path.split(".", 1)
            if not isinstance(update.get(root), dict):
                update[root] = {}
            update[root][nested] = value
        else:
            update[path] = value
    return update


def extract_tags(image: Dict[str, Any], config: Dict[str, Any]) -> Dict[str, Any]:
    """Read every category value off an image row, keyed by category key"""
    tags: Dict[str, Any] = {}
    for category in get_categories(config):
        value = get_image_value(image, category["storage_path"])
        if is_array_category(category):
            tags[category["key"]] = list(value) if isinstance(value, list) else []
        else:
            tags[category["key"]] = value if isinstance(value, str) else ""
    return tags


def create_empty_tags(config: Dict[str, Any]) -> Dict[str, Any]:
    return {
        c["key"]: [] if is_array_category(c) else ""
        for c in get_categories(config)
    }


def validate_required_categories(tags: Dict[str, Any], config: Dict[str, Any]) -> Dict[str, Any]:
    """No category is mandatory; a reference may be saved with any subset tagged"""
    return {"valid": True, "missing": []}


def merge_ai_suggestions(
    existing: Dict[str, Any],
    suggestions: Dict[str, Any],
    config: Dict[str, Any],
) -> Dict[str, Any]:
    """Merge AI-suggested tags into the current selection"""
    merged = dict(existing)
    for category in get_categories(config):
        key = category["key"]
        current = existing.get(key)
        suggested = suggestions.get(key)

        if not is_array_category(category):
            if current:
                merged[key] = current
            elif isinstance(suggested, str):
                merged[key] = suggested
            continue

        combined = list(current or [])
        for tag in suggested if isinstance(suggested, list) else []:
            if tag not in combined:
                combined.append(tag)
        merged[key] = combined
    return merged


def flatten_array_tags(tags: Optional[Dict[str, Any]], config: Dict[str, Any]) -> List[str]:
    """Flatten every array category's tags into one list"""
    flat: List[str] = []
    for category in get_array_categories(config):
        values = (tags or {}).get(category["key"])
        if isinstance(values, list):
            flat.extend(values)
    return flat


def category_row_fields(tags: Dict[str, Any], config: Dict[str, Any]) -> Dict[str, Any]:
    """Row fields for a freshly tagged image

    Arrays are written directly, two-part jsonb paths are nested and text
    categories fall back to None when empty.
    """
    fields: Dict[str, Any] = {}
    for category in get_categories(config):
        key = category["key"]
        path = category["storage_path"]
        value = tags.get(key)
        storage_type = category.get("storage_type")

        if storage_type == "array":
            fields[path] = list(value) if isinstance(value, list) else []
        elif storage_type == "jsonb_array":
            parts = path.split(".")
            if len(parts) == 2:
                fields.setdefault(parts[0], {})
                fields[parts[0]][parts[1]] = list(value) if isinstance(value, list) else []
        else:
            fields[path] = value or None
    return fields


def merge_with_existing(image: Dict[str, Any], update: Dict[str, Any]) -> Dict[str, Any]:
    """Keep sibling keys of JSONB columns that an update only partly rewrites"""
    merged = dict(update)
    for column, value in update.items():
        current = image.get(column)
        if isinstance(value, dict) and isinstance(current, dict):
            merged[column] = {**current, **value}
    return merged
