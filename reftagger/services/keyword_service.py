"""
Keyword extraction from brand questionnaires

Keywords feed /search-references. When the model is unavailable or fails,
they come from common aesthetic words found in the answers.
"""
from typing import Any, Dict, List, Tuple

import structlog
from pydantic import ValidationError

from reftagger.config.settings import settings
from reftagger.schemas import format_validation_errors
from reftagger.schemas.keywords import QuestionnaireResponses
from reftagger.services.suggestion_service import extract_text_from_response

logger = structlog.get_logger(__name__)

MAX_KEYWORDS = 12
MAX_FALLBACK_KEYWORDS = 10
MAX_KEYWORD_LENGTH = 50

COMMON_KEYWORDS = [
    "minimal", "minimalist", "clean", "bold", "contemporary", "modern",
    "organic", "geometric", "layered", "simple", "complex", "accessible",
    "sophisticated", "playful", "serious", "warm", "cool", "vibrant",
    "muted", "colorful", "monochrome", "typography", "illustration",
    "photography", "abstract", "figurative", "cultural", "heritage",
    "innovation", "tradition", "community", "decolonial", "inclusive",
]

DEFAULT_KEYWORDS = ["contemporary", "creative", "cultural", "visual", "artistic", "innovative", "design", "aesthetic"]


def build_extraction_prompt(responses: QuestionnaireResponses) -> str:
    r = responses
    strategic = f"Additional Thoughts: {r.strategic_thoughts}" if r.strategic_thoughts else ""
    return f"""You are analyzing a brand strategy questionnaire for a creative design studio. Extract 8-12 keywords that capture the essence of this brand's visual identity, personality, and strategic direction.

Focus on extracting keywords that would help curate a visual mood board. Include:
- Visual aesthetic descriptors (minimal, bold, layered, organic, geometric, etc.)
- Emotional/mood keywords (contemplative, energetic, sophisticated, accessible, etc.)
- Design era/movement references (brutalist, modernist, art deco, etc.)
- Conceptual themes (decolonization, sustainability, innovation, heritage, etc.)

QUESTIONNAIRE RESPONSES:

## Brand Strategy & Positioning
Visual Approach: {r.visual_approach}
Creative Documents: {r.creative_documents}
Problem Solved: {r.problem_solved}
Deeper Reason: {r.deeper_reason}
Customer Words: {r.customer_words}
Differentiators: {r.differentiators}
{strategic}

## Brand Personality & Tone
Dinner Party Behavior: {r.dinner_party_behavior}
Should Never Feel Like: {r.never_feel_like}
Energy/Mood: {r.energy_mood}
Soundtrack Genre: {r.soundtrack_genre}
Artists/Diversification: {r.artists_diversification}

## Visual Identity & Style
Color Associations: {r.color_associations}
Visual Style Preference: {r.visual_style}
Admired Brands: {r.admired_brands}
Aesthetic Inspiration: {r.aesthetic_inspiration}
Decolonization Visual Approach: {r.decolonization_visual}

## Target Audience
Audience: {r.audience_description}
Ideal Client: {r.ideal_client}
Desired Feeling: {r.desired_feeling}
Customer Frustrations: {r.customer_frustrations}
Brand Role: {r.brand_role}

## Vision & Growth
5-Year Vision: {r.five_year_vision}
Expansion Plans: {r.expansion_plans}
Dream Partnerships: {r.dream_partnerships}
Big Dream: {r.big_dream}
Success Beyond Sales: {r.success_beyond_sales}
Long-term Focus: {r.long_term_focus}
Existing Collection: {r.existing_collection}
Competitors: {r.competitors}

---

Respond with ONLY a comma-separated list of 8-12 keywords. No explanations, no numbering, just the keywords separated by commas.

Example format: minimal, contemporary, cultural, accessible, bold typography, organic forms, decolonial, community-focused, innovative, heritage"""


def parse_keywords(text: str) -> List[str]:
    """Split a comma-separated model answer, dropping empty and overlong entries"""
    keywords = [k.strip() for k in (text or "").strip().split(",")]
    return [k for k in keywords if 0 < len(k) < MAX_KEYWORD_LENGTH][:MAX_KEYWORDS]


def extract_fallback_keywords(responses: QuestionnaireResponses) -> List[str]:
    """Common aesthetic words found in the answers, led by the visual approach"""
    all_text = " ".join(
        value for value in responses.model_dump().values() if isinstance(value, str)
    ).lower()

    found = [keyword for keyword in COMMON_KEYWORDS if keyword in all_text]
    if responses.visual_approach:
        found.insert(0, responses.visual_approach.lower()[:30])

    if not found:
        return list(DEFAULT_KEYWORDS)
    return found[:MAX_FALLBACK_KEYWORDS]


class KeywordService:
    """Turn questionnaire answers into search keywords with Claude"""

    def __init__(self, anthropic_client):
        self.client = anthropic_client

    async def extract_keywords(self, payload: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
        """Returns (status_code, body); every 200 body carries a keyword list"""
        raw = payload.get("responses") if isinstance(payload, dict) else None
        if not isinstance(raw, dict) or not raw:
            return 400, {"error": "Missing questionnaire responses"}

        try:
            responses = QuestionnaireResponses.model_validate(raw)
        except ValidationError as e:
            errors = format_validation_errors(e)
            logger.warning(f"⚠️ Invalid questionnaire: {errors}")
            return 400, {"error": f"Validation failed: {', '.join(errors[:2])}"}

        if not settings.ANTHROPIC_API_KEY or self.client is None:
            logger.warning("⚠️ ANTHROPIC_API_KEY not configured, using fallback keywords")
            return 200, {
                "keywords": extract_fallback_keywords(responses),
                "error": "AI service unavailable, using fallback keywords",
            }

        try:
            response = await self.client.messages.create(
                model=settings.KEYWORD_MODEL,
                max_tokens=settings.KEYWORD_MAX_TOKENS,
                messages=[{"role": "user", "content": build_extraction_prompt(responses)}],
            )
            keywords = parse_keywords(extract_text_from_response(response))
            logger.info(f"✅ Extracted {len(keywords)} keywords")
            return 200, {"keywords": keywords}
        except Exception as e:
            logger.error(f"❌ Keyword extraction failed: {e}")
            return 200, {
                "keywords": extract_fallback_keywords(responses),
                "error": "AI extraction failed, using fallback keywords",
            }
