"""
Tag vocabulary models
"""
import re
from typing import Optional

from pydantic import BaseModel, Field, field_validator

TAG_VALUE_PATTERN = re.compile(r"^[a-z0-9-\s]+$")


def normalize_tag_value(value: str) -> str:
    """Validate a tag value and return it trimmed and lowercased"""
    if value is None or len(value) < 1:
        raise ValueError("Tag value is required")
    if len(value) > 50:
        raise ValueError("Tag value must be 50 characters or less")
    if not TAG_VALUE_PATTERN.match(value):
        raise ValueError("Tag value can only contain lowercase letters, numbers, hyphens, and spaces")
    normalized = value.strip().lower()
    if not normalized:
        raise ValueError("Tag value cannot be empty")
    return normalized


class TagCreate(BaseModel):
    category: str = Field(..., min_length=1, max_length=50)
    tag_value: str
    description: Optional[str] = Field(None, max_length=500)

    @field_validator("tag_value")
    @classmethod
    def check_tag_value(cls, value: str) -> str:
        return normalize_tag_value(value)


class TagUpdate(BaseModel):
    tag_value: Optional[str] = None
    description: Optional[str] = Field(None, max_length=500)
    sort_order: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None

    @field_validator("tag_value")
    @classmethod
    def check_tag_value(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return normalize_tag_value(value)


class TagMerge(BaseModel):
    source_id: str
    target_id: str
