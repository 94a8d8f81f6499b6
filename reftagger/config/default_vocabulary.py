"""
Default reference vocabulary
Category layout and starter tags installed when no vocabulary config exists
"""

DEFAULT_CONFIG_NAME = "Mock Vocabulary (Test Phase)"
DEFAULT_CONFIG_DESCRIPTION = "Initial mock vocabulary for testing phase. Matches current tag_vocabulary structure."

DEFAULT_TAGS = {
    "industries": ["restaurant", "hospitality", "retail", "tech", "fashion", "healthcare",
                   "real-estate", "finance", "education", "entertainment"],

    "project_types": ["branding", "website", "packaging", "social-media", "print", "interior",
                      "signage", "app-design"],

    "style": ["minimalist", "modern", "vintage", "rustic", "industrial", "elegant", "playful",
              "editorial", "brutalist", "geometric", "organic", "sophisticated"],

    "mood": ["calm", "energetic", "luxury", "casual", "professional", "warm", "cool", "inviting",
             "bold", "serene", "sophisticated"],

    "elements": ["typography-heavy", "photography", "illustration", "gradient", "pattern", "texture",
                 "minimal-text", "hand-drawn", "abstract", "geometric-shapes", "natural-materials",
                 "high-contrast"],
}

DEFAULT_CATEGORIES = [
    {
        "key": "industries",
        "label": "Industries",
        "storage_type": "array",
        "storage_path": "industries",
        "search_weight": 5,
        "description": "Select all applicable industries",
        "placeholder": "restaurant, hospitality, retail, tech, healthcare...",
    },
    {
        "key": "project_types",
        "label": "Project Types",
        "storage_type": "array",
        "storage_path": "project_types",
        "search_weight": 4,
        "description": "Select all applicable project types",
        "placeholder": "branding, website, interior, packaging, editorial...",
    },
    {
        "key": "style",
        "label": "Style Tags",
        "storage_type": "jsonb_array",
        "storage_path": "tags.style",
        "search_weight": 2,
        "description": "Visual style descriptors",
        "placeholder": "minimalist, modern, organic, vintage, brutalist...",
    },
    {
        "key": "mood",
        "label": "Mood Tags",
        "storage_type": "jsonb_array",
        "storage_path": "tags.mood",
        "search_weight": 2,
        "description": "Emotional tone and atmosphere",
        "placeholder": "calm, bold, warm, sophisticated, playful...",
    },
    {
        "key": "elements",
        "label": "Visual Elements",
        "storage_type": "jsonb_array",
        "storage_path": "tags.elements",
        "search_weight": 1,
        "description": "Visual elements present in the image",
        "placeholder": "typography-heavy, photography, natural-materials...",
    },
    {
        "key": "notes",
        "label": "Notes",
        "storage_type": "text",
        "storage_path": "notes",
        "search_weight": 1,
        "description": "Optional notes about this reference image",
        "placeholder": "e.g., Great for high-end restaurant projects...",
    },
]


def get_default_structure(include_tags: bool = True) -> dict:
    """Get the default config structure, optionally carrying the starter tags"""
    categories = []
    for category in DEFAULT_CATEGORIES:
        entry = dict(category)
        if include_tags and category["key"] in DEFAULT_TAGS:
            entry["tags"] = list(DEFAULT_TAGS[category["key"]])
        categories.append(entry)
    return {"categories": categories}


def get_default_tag_rows() -> list:
    """Get tag_vocabulary rows for the starter tags"""
    rows = []
    for category_key, tags in DEFAULT_TAGS.items():
        for index, tag in enumerate(tags):
            rows.append({
                "category": category_key,
                "tag_value": tag,
                "sort_order": index + 1,
                "is_active": True,
                "times_used": 0,
                "last_used_at": None,
                "added_by": None,
                "description": None,
            })
    return rows

