"""
AI tag suggestion service using Claude vision
"""
import json
from typing import Any, Dict, Optional, Tuple

import structlog
from pydantic import ValidationError

from reftagger.config.settings import settings
from reftagger.schemas import format_validation_errors
from reftagger.schemas.suggestions import SuggestTagsRequest
from reftagger.services.prompt_builder import build_tag_suggestion_prompt

logger = structlog.get_logger(__name__)

CONFIDENCE_LEVELS = ("high", "medium", "low")


def create_empty_response(
    vocabulary: Optional[Dict[str, Any]],
    confidence: str = "low",
    reasoning: str = "",
    error: Optional[str] = None,
) -> Dict[str, Any]:
    response: Dict[str, Any] = {key: [] for key in (vocabulary or {})}
    response["confidence"] = confidence
    response["reasoning"] = reasoning
    if error:
        response["error"] = error
    return response


def _strip_fences(text: str) -> str:
    cleaned = text.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[len("```json"):]
    elif cleaned.startswith("```"):
        cleaned = cleaned[len("```"):]
    if cleaned.endswith("```"):
        cleaned = cleaned[: -len("```")]
    return cleaned.strip()


def parse_tag_suggestions(text: str) -> Dict[str, Any]:
    """Turn the model's JSON answer into a suggestion dict, tolerating code fences"""
    try:
        parsed = json.loads(_strip_fences(text))
        if not isinstance(parsed, dict):
            raise ValueError("Response is not a JSON object")
    except (ValueError, TypeError) as e:
        logger.error(f"❌ Failed to parse AI response: {e}")
        return create_empty_response({}, "low", "Failed to parse AI response", "Failed to parse response")

    result: Dict[str, Any] = {}
    for key, value in parsed.items():
        if key in ("confidence", "reasoning"):
            continue
        result[key] = value if isinstance(value, list) else []

    confidence = parsed.get("confidence")
    result["confidence"] = confidence if confidence in CONFIDENCE_LEVELS else "medium"
    reasoning = parsed.get("reasoning")
    result["reasoning"] = reasoning if isinstance(reasoning, str) else "AI analysis completed"
    return result


def extract_text_from_response(response) -> str:
    """Concatenate text blocks from a messages API response"""
    texts = []
    for block in getattr(response, "content", None) or []:
        if getattr(block, "type", None) == "text":
            texts.append(block.text)
    return "\n".join(texts)


class SuggestionService:
    """Ask Claude to tag a reference image from the studio vocabulary"""

    def __init__(self, anthropic_client, settings_service=None, correction_service=None):
        self.client = anthropic_client
        self.settings_service = settings_service
        self.correction_service = correction_service

    async def _prompt_version(self) -> str:
        if self.settings_service is None:
            return "enhanced" if settings.USE_ENHANCED_PROMPT else "baseline"
        enabled = await self.settings_service.get_enhanced_prompt_setting()
        return "enhanced" if enabled else "baseline"

    async def suggest_tags(self, payload: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
        """Returns (status_code, body); the body always has every vocabulary key"""
        raw_vocabulary = payload.get("vocabulary") if isinstance(payload, dict) else None
        if not isinstance(raw_vocabulary, dict):
            raw_vocabulary = {}

        try:
            request = SuggestTagsRequest.model_validate(payload)
        except ValidationError as e:
            errors = format_validation_errors(e)
            logger.warning(f"⚠️ Invalid suggestion request: {errors}")
            return 400, create_empty_response(
                raw_vocabulary, "low", "Invalid request data", f"Validation failed: {', '.join(errors[:2])}"
            )

        vocabulary = request.vocabulary
        if not settings.ANTHROPIC_API_KEY or self.client is None:
            logger.warning("⚠️ ANTHROPIC_API_KEY not configured")
            return 200, create_empty_response(vocabulary, "low", "AI service unavailable", "AI service unavailable")

        try:
            version = await self._prompt_version()
            analysis = None
            if version == "enhanced" and self.correction_service is not None:
                analysis = await self.correction_service.get_correction_analysis()
            prompt = build_tag_suggestion_prompt(vocabulary, version, analysis)

            header, data = request.image.split(",", 1)
            media_type = header[len("data:"):].split(";", 1)[0]
            if media_type == "image/jpg":
                media_type = "image/jpeg"

            logger.info(f"🤖 Requesting tag suggestions ({version} prompt, model {settings.ANTHROPIC_MODEL})")
            response = await self.client.messages.create(
                model=settings.ANTHROPIC_MODEL,
                max_tokens=settings.AI_MAX_TOKENS,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {
                                "type": "image",
                                "source": {"type": "base64", "media_type": media_type, "data": data},
                            },
                            {"type": "text", "text": prompt},
                        ],
                    }
                ],
            )

            text = extract_text_from_response(response)
            if not text:
                raise ValueError("No text content in AI response")

            suggestions = parse_tag_suggestions(text)
            for key in vocabulary:
                suggestions.setdefault(key, [])
            suggestions["promptVersion"] = version
            logger.info(f"✅ Tag suggestions ready (confidence: {suggestions['confidence']})")
            return 200, suggestions

        except Exception as e:
            logger.error(f"❌ Tag suggestion failed: {e}")
            return 500, create_empty_response(vocabulary, "low", "Failed to analyze image", str(e))
