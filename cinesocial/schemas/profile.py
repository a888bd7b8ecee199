from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime
from typing import Optional

from cinesocial.schemas.validation import SafeStringMixin, USERNAME_PATTERN


class ProfileSummary(BaseModel):
    """Minimal author projection embedded in reviews, comments and lists"""
    username: str
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ProfileResponse(ProfileSummary):
    id: str
    bio: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class ProfileUpdate(BaseModel, SafeStringMixin):
    """Patchable profile fields; anything else is rejected"""
    username: Optional[str] = Field(None, min_length=3, max_length=30, pattern=USERNAME_PATTERN)
    display_name: Optional[str] = Field(None, max_length=100)
    bio: Optional[str] = Field(None, max_length=500)
    avatar_url: Optional[str] = Field(None, max_length=500)

    model_config = ConfigDict(extra="forbid")

    @field_validator('username')
    @classmethod
    def not_null(cls, v):
        return cls.reject_null(v)

    @field_validator('display_name')
    @classmethod
    def clean_display_name(cls, v):
        return cls.validate_no_script(v)

    @field_validator('bio')
    @classmethod
    def clean_bio(cls, v):
        return cls.clean_text(v)
