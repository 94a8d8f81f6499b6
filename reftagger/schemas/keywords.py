"""
Brand questionnaire model used for keyword extraction
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict


class QuestionnaireResponses(BaseModel):
    """Answers from the client briefing questionnaire; unanswered questions are empty"""

    model_config = ConfigDict(extra="ignore")

    client_name: str = ""
    client_email: str = ""
    project_name: Optional[str] = None

    # Brand strategy and positioning
    visual_approach: str = ""
    creative_documents: str = ""
    problem_solved: str = ""
    deeper_reason: str = ""
    customer_words: str = ""
    differentiators: str = ""
    strategic_thoughts: Optional[str] = None

    # Personality and tone
    dinner_party_behavior: str = ""
    never_feel_like: str = ""
    energy_mood: str = ""
    soundtrack_genre: str = ""
    artists_diversification: str = ""

    # Visual identity
    color_associations: str = ""
    visual_style: str = ""
    admired_brands: str = ""
    aesthetic_inspiration: str = ""
    decolonization_visual: str = ""

    # Audience
    audience_description: str = ""
    ideal_client: str = ""
    desired_feeling: str = ""
    customer_frustrations: str = ""
    avoid_customer_types: Optional[str] = None
    brand_role: str = ""

    # Vision and growth
    five_year_vision: str = ""
    expansion_plans: str = ""
    dream_partnerships: str = ""
    big_dream: str = ""
    success_beyond_sales: str = ""
    long_term_focus: str = ""
    existing_collection: str = ""
    competitors: str = ""
