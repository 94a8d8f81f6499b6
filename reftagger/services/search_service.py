"""
Weighted keyword search over tagged reference images

Each category of the active vocabulary contributes its search_weight to an
image's score whenever a keyword matches one of its values.
"""
from typing import Any, Dict, List

import structlog

from reftagger.core.errors import ReftaggerError, ValidationFailed
from reftagger.utils.vocabulary import get_categories, get_image_value, is_array_category

logger = structlog.get_logger(__name__)

MAX_RESULTS = 40
MIN_RESULTS_BEFORE_RELAXING = 10


def score_image(image: Dict[str, Any], keywords: List[str], categories: List[Dict[str, Any]]) -> Dict[str, Any]:
    score = 0
    matched_keywords: List[str] = []
    matched_on: Dict[str, List[str]] = {}

    for keyword in keywords:
        needle = keyword.lower()
        for category in categories:
            weight = category.get("search_weight", 1) or 0
            value = get_image_value(image, category["storage_path"])

            if is_array_category(category):
                if not isinstance(value, list):
                    continue
                for item in value:
                    item_lower = str(item).lower()
                    if needle in item_lower or item_lower in needle:
                        score += weight
                        if keyword not in matched_keywords:
                            matched_keywords.append(keyword)
                        hits = matched_on.setdefault(category["key"], [])
                        if item not in hits:
                            hits.append(item)
            elif isinstance(value, str) and needle in value.lower():
                score += weight
                if keyword not in matched_keywords:
                    matched_keywords.append(keyword)

    result = {
        "id": image.get("id"),
        "thumbnail_path": image.get("thumbnail_path"),
        "storage_path": image.get("storage_path"),
        "original_filename": image.get("original_filename"),
        "notes": image.get("notes"),
        "match_score": score,
        "matched_keywords": matched_keywords,
        "matched_on": matched_on,
    }
    for category in categories:
        path = category["storage_path"]
        value = get_image_value(image, path)
        if "." in path:
            root, nested = path.split(".", 1)
            result.setdefault(root, {})
            if value is not None:
                result[root][nested] = value
        elif value is not None:
            result[path] = value
    return result


def select_results(scored: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Keep strong matches, relaxing the threshold when too few images qualify"""
    def above(threshold):
        ranked = [img for img in scored if img["match_score"] >= threshold]
        ranked.sort(key=lambda img: img["match_score"], reverse=True)
        return ranked[:MAX_RESULTS]

    results = above(2)
    if len(results) < MIN_RESULTS_BEFORE_RELAXING:
        results = above(1)
    if not results:
        results = [img for img in scored if img["match_score"] > 0]
        results.sort(key=lambda img: img["match_score"], reverse=True)
        results = results[:MAX_RESULTS]
    return results


class SearchService:
    """Service for keyword search against the reference collection"""

    def __init__(self, supabase_client, config_service):
        self.supabase = supabase_client
        self.config_service = config_service

    async def search_references(self, keywords: Any) -> Dict[str, Any]:
        if not keywords or not isinstance(keywords, list) or not all(isinstance(k, str) for k in keywords):
            raise ValidationFailed(["Invalid keywords provided"])

        config = await self.config_service.get_active_config()
        if config is None:
            raise ReftaggerError("No active vocabulary configuration. Please configure vocabulary first.")
        categories = get_categories(config)

        images = (
            self.supabase.table("reference_images")
            .select("*")
            .in_("status", ["tagged", "approved"])
            .execute()
        ).data or []

        if not images:
            return {"images": [], "warning": "No images in collection yet"}

        scored = [score_image(image, keywords, categories) for image in images]
        results = select_results(scored)
        logger.info(f"🔍 Search for {keywords} matched {len(results)}/{len(images)} images")

        response: Dict[str, Any] = {"images": results}
        if not results:
            response["warning"] = "No matching images found. Try different keywords."
        return response
