"""
Reference image request models
"""
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

ImageStatus = Literal["pending", "tagged", "approved", "skipped"]
TagValue = Union[List[str], str, None]


class ImageTagsRequest(BaseModel):
    tags: Dict[str, TagValue] = Field(default_factory=dict)
    ai_suggestion: Optional[Dict[str, Any]] = None
    prompt_version: Optional[str] = None


class ImageEditRequest(BaseModel):
    tags: Dict[str, TagValue] = Field(default_factory=dict)


class BulkEditRequest(BaseModel):
    image_ids: List[str] = Field(..., min_length=1)
    tags: Dict[str, List[str]]
    mode: Literal["add", "remove"]


class StatusUpdate(BaseModel):
    status: ImageStatus


class DuplicateCheckRequest(BaseModel):
    filename: Optional[str] = None
    file_hash: Optional[str] = None
    perceptual_hash: Optional[str] = None
    file_size: Optional[int] = None
