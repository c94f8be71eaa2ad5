"""Pydantic schemas for authentication endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class Token(BaseModel):
    """JWT token response."""

    access_token: str
    token_type: str = "bearer"


class RegisterRequest(BaseModel):
    """New business with its owner."""

    email: EmailStr
    password: str = Field(..., min_length=8, max_length=100)
    full_name: str = Field(..., min_length=1, max_length=255)
    business_name: Optional[str] = Field(None, max_length=255)
    business_type: Optional[str] = Field(None, pattern="^(osek_patur|osek_murshe|company|household)$")
    country_code: Optional[str] = Field(None, min_length=2, max_length=2)


class UserMeResponse(BaseModel):
    """Current user data."""

    id: int
    email: str
    full_name: str
    is_active: bool
    business_id: str
    business_name: Optional[str] = None
    country_code: Optional[str] = None
    created_at: datetime


class ProfileUpdate(BaseModel):
    """Schema for updating own profile."""

    full_name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None


class ChangePassword(BaseModel):
    """Schema for changing own password."""

    current_password: str
    new_password: str = Field(..., min_length=8, max_length=100)
