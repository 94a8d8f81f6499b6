"""
Vocabulary configuration models
"""
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from reftagger.core.errors import ValidationFailed
from reftagger.schemas import format_validation_errors

CATEGORY_KEY_PATTERN = r"^[a-z_]+$"
STORAGE_PATH_PATTERN = r"^[a-z_][a-z0-9_.]*$"
MAX_TAG_LENGTH = 50


class StorageType(str, Enum):
    ARRAY = "array"
    JSONB_ARRAY = "jsonb_array"
    TEXT = "text"


def _normalize_tags(tags: Optional[List[str]]) -> Optional[List[str]]:
    if tags is None:
        return None
    normalized = []
    for tag in tags:
        value = tag.strip().lower()
        if not value:
            raise ValueError("Tags cannot be empty")
        if len(value) > MAX_TAG_LENGTH:
            raise ValueError(f"Tag '{value}' must be {MAX_TAG_LENGTH} characters or less")
        normalized.append(value)
    return normalized


class VocabularyCategory(BaseModel):
    """One taggable category and where its values live on a reference image"""

    model_config = ConfigDict(extra="ignore")

    key: str = Field(..., min_length=1, max_length=50, pattern=CATEGORY_KEY_PATTERN)
    label: str = Field(..., min_length=1, max_length=100)
    storage_type: StorageType
    storage_path: str = Field(..., min_length=1, max_length=100, pattern=STORAGE_PATH_PATTERN)
    search_weight: float = Field(..., ge=0, le=10)
    description: Optional[str] = Field(None, max_length=500)
    placeholder: Optional[str] = Field(None, max_length=200)
    tags: Optional[List[str]] = Field(None, max_length=100)

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, value):
        return _normalize_tags(value)


class CategoryUpdate(BaseModel):
    """Partial update of a category; the key itself is immutable"""

    model_config = ConfigDict(extra="ignore")

    label: Optional[str] = Field(None, min_length=1, max_length=100)
    storage_type: Optional[StorageType] = None
    storage_path: Optional[str] = Field(None, min_length=1, max_length=100, pattern=STORAGE_PATH_PATTERN)
    search_weight: Optional[float] = Field(None, ge=0, le=10)
    description: Optional[str] = Field(None, max_length=500)
    placeholder: Optional[str] = Field(None, max_length=200)


class VocabularyStructure(BaseModel):
    categories: List[VocabularyCategory] = Field(..., min_length=1, max_length=20)

    @model_validator(mode="after")
    def check_unique(self):
        keys = [c.key for c in self.categories]
        duplicate_keys = sorted({k for k in keys if keys.count(k) > 1})
        if duplicate_keys:
            raise ValueError(f"Duplicate category keys found: {', '.join(duplicate_keys)}")

        paths = [c.storage_path for c in self.categories]
        duplicate_paths = sorted({p for p in paths if paths.count(p) > 1})
        if duplicate_paths:
            raise ValueError(f"Duplicate storage paths found: {', '.join(duplicate_paths)}")
        return self


class VocabularyConfigRequest(BaseModel):
    config_name: str = Field(..., max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    structure: VocabularyStructure

    @field_validator("config_name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Config name is required")
        return value


def validate_vocabulary_config(payload: Dict[str, Any]) -> VocabularyConfigRequest:
    """Validate a full vocabulary config payload, raising ValidationFailed with every problem"""
    try:
        return VocabularyConfigRequest.model_validate(payload)
    except ValidationError as e:
        raise ValidationFailed(format_validation_errors(e))


def validate_category(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Validate a single category, returning its storable dict form"""
    try:
        category = VocabularyCategory.model_validate(payload)
    except ValidationError as e:
        raise ValidationFailed(format_validation_errors(e))
    return category.model_dump(mode="json", exclude_none=True)


def validate_category_update(payload: Dict[str, Any]) -> Dict[str, Any]:
    try:
        update = CategoryUpdate.model_validate(payload)
    except ValidationError as e:
        raise ValidationFailed(format_validation_errors(e))
    return update.model_dump(mode="json", exclude_none=True)
