"""
AI suggestion request model
"""
import re
from typing import Dict, List

from pydantic import BaseModel, field_validator

from reftagger.schemas.tags import normalize_tag_value

DATA_URI_PATTERN = re.compile(r"^data:image/(jpeg|jpg|png|webp);base64,")
MAX_IMAGE_BYTES = 20 * 1024 * 1024


class SuggestTagsRequest(BaseModel):
    image: str
    vocabulary: Dict[str, List[str]]

    @field_validator("image")
    @classmethod
    def check_image(cls, value: str) -> str:
        if not DATA_URI_PATTERN.match(value):
            raise ValueError("Invalid base64 image format")
        data = value.split(",", 1)[1] if "," in value else ""
        if len(data) * 3 / 4 >= MAX_IMAGE_BYTES:
            raise ValueError("Image data is too large (max 20MB)")
        return value

    @field_validator("vocabulary")
    @classmethod
    def check_vocabulary(cls, value: Dict[str, List[str]]) -> Dict[str, List[str]]:
        for key, tags in value.items():
            if len(tags) > 100:
                raise ValueError(f"Cannot have more than 100 tags in category '{key}'")
            value[key] = [normalize_tag_value(tag) for tag in tags]
        return value
