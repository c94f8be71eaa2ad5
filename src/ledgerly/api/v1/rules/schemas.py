"""Pydantic schemas for categorization rules."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class RuleCreate(BaseModel):
    """Schema for creating a rule."""

    category_id: str
    pattern: str = Field(..., min_length=1, max_length=255)
    pattern_type: str = Field("contains", pattern="^(contains|startsWith|regex)$")
    priority: int = Field(0, ge=0)
    is_active: bool = True


class RuleResponse(BaseModel):
    """Schema for rule response."""

    id: str
    category_id: str
    category_name: Optional[str] = None
    pattern: str
    pattern_type: str
    priority: int
    is_active: bool
    created_at: datetime


class SuggestCategoryRequest(BaseModel):
    description: str = Field(..., min_length=1)


class SuggestCategoryResponse(BaseModel):
    category_id: Optional[str] = None
