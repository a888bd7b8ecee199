from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime
from enum import Enum
from typing import Optional, List

from cinesocial.schemas.movie import MovieResponse
from cinesocial.schemas.profile import ProfileSummary
from cinesocial.schemas.validation import SafeStringMixin


class ListType(str, Enum):
    WATCHLIST = "watchlist"
    FAVORITES = "favorites"
    WATCHED = "watched"


# ==================== SAVED MOVIE SCHEMAS ====================

class SavedMovieAdd(BaseModel):
    """Schema for filing a movie under one of the fixed lists"""
    movie_id: str = Field(..., description="Internal movie ID")


class SavedMovieResponse(BaseModel):
    id: str
    user_id: str
    movie_id: str
    list_type: ListType
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SavedMovieWithDetails(SavedMovieResponse):
    movie: MovieResponse


# ==================== CUSTOM LIST SCHEMAS ====================

class CustomListCreate(BaseModel, SafeStringMixin):
    """Schema for creating a custom list"""
    name: str = Field(..., min_length=1, max_length=100, description="List name")
    description: Optional[str] = Field(None, max_length=500, description="List description")
    is_public: bool = Field(False, description="Is list public?")

    @field_validator('name')
    @classmethod
    def clean_name(cls, v):
        return cls.validate_no_script(v)

    @field_validator('description')
    @classmethod
    def clean_description(cls, v):
        return cls.clean_text(v)


class CustomListUpdate(BaseModel, SafeStringMixin):
    """Schema for updating a custom list; only name, description and visibility"""
    name: Optional[str] = Field(None, min_length=1, max_length=100, description="List name")
    description: Optional[str] = Field(None, max_length=500, description="List description")
    is_public: Optional[bool] = Field(None, description="Is list public?")

    model_config = ConfigDict(extra="forbid")

    @field_validator('name', 'is_public')
    @classmethod
    def not_null(cls, v):
        return cls.reject_null(v)

    @field_validator('name')
    @classmethod
    def clean_name(cls, v):
        return cls.validate_no_script(v)

    @field_validator('description')
    @classmethod
    def clean_description(cls, v):
        return cls.clean_text(v)


class CustomListMovieAdd(BaseModel):
    """Schema for adding a movie to a custom list"""
    movie_id: str = Field(..., description="Internal movie ID")


class CustomListMovieResponse(BaseModel):
    id: str
    list_id: str
    movie_id: str
    added_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CustomListResponse(BaseModel):
    """Schema for custom list response"""
    id: str
    user_id: str
    name: str
    description: Optional[str] = None
    is_public: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CustomListWithCount(CustomListResponse):
    movie_count: int = 0


class CustomListWithUserAndCount(CustomListWithCount):
    user: ProfileSummary


class CustomListMovieWithMovie(BaseModel):
    id: str
    added_at: datetime
    movie: MovieResponse

    model_config = ConfigDict(from_attributes=True)


class CustomListWithFullMovies(CustomListResponse):
    """Schema for custom list with every member movie"""
    entries: List[CustomListMovieWithMovie] = []
