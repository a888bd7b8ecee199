from pydantic import BaseModel, EmailStr, Field, field_validator, ConfigDict
from datetime import datetime
import re

from cinesocial.schemas.profile import ProfileResponse
from cinesocial.schemas.validation import USERNAME_PATTERN

PASSWORD_MAX_LENGTH = 72
PASSWORD_RULES = (
    (r'[A-Z]', 'Password must contain uppercase letter'),
    (r'[a-z]', 'Password must contain lowercase letter'),
    (r'[0-9]', 'Password must contain digit'),
)


class UserRegister(BaseModel):
    """Sign-up payload; the username seeds the new profile"""
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=PASSWORD_MAX_LENGTH)
    username: str = Field(..., min_length=3, max_length=30, pattern=USERNAME_PATTERN)

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        for pattern, message in PASSWORD_RULES:
            if not re.search(pattern, v):
                raise ValueError(message)
        return v


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class AccountResponse(BaseModel):
    id: str
    email: str
    is_active: bool
    created_at: datetime
    profile: ProfileResponse

    model_config = ConfigDict(from_attributes=True)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: ProfileResponse
