"""
Review Schemas - Pydantic models for reviews, comments and comment votes
Follows the same pattern as watchlist schemas for consistency
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime
from typing import Literal, Optional

from cinesocial.models.review import MIN_RATING, MAX_RATING
from cinesocial.schemas.movie import MovieSummary, MovieResponse
from cinesocial.schemas.profile import ProfileSummary, ProfileResponse
from cinesocial.schemas.validation import SafeStringMixin


# ==================== REVIEW SCHEMAS ====================

class ReviewCreate(BaseModel, SafeStringMixin):
    """Schema for creating a review"""
    movie_id: str = Field(..., description="Internal movie ID")
    rating: int = Field(..., description="Rating value (1-10)", ge=MIN_RATING, le=MAX_RATING)
    review_text: str = Field("", max_length=5000)
    is_public: bool = Field(True, description="Visible to other users?")

    @field_validator('review_text')
    @classmethod
    def clean_review_text(cls, v):
        return cls.clean_text(v)


class ReviewUpdate(BaseModel, SafeStringMixin):
    """Schema for updating a review; only rating, text and visibility may change"""
    rating: Optional[int] = Field(None, ge=MIN_RATING, le=MAX_RATING)
    review_text: Optional[str] = Field(None, max_length=5000)
    is_public: Optional[bool] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator('rating', 'is_public')
    @classmethod
    def not_null(cls, v):
        return cls.reject_null(v)

    @field_validator('review_text')
    @classmethod
    def clean_review_text(cls, v):
        return cls.clean_text(v)


class ReviewResponse(BaseModel):
    """Schema for review response (matches database model)"""
    id: str
    user_id: str
    movie_id: str
    rating: int
    review_text: Optional[str] = None
    is_public: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ReviewWithDetails(ReviewResponse):
    """Public feed entry: author summary and movie summary"""
    user: ProfileSummary
    movie: MovieSummary


class ReviewWithFullDetails(ReviewResponse):
    user: ProfileResponse
    movie: MovieResponse


class ReviewWithMovie(ReviewResponse):
    movie: MovieSummary


# ==================== COMMENT SCHEMAS ====================

class CommentCreate(BaseModel, SafeStringMixin):
    comment_text: str = Field(..., min_length=1, max_length=500)

    @field_validator('comment_text')
    @classmethod
    def clean_comment_text(cls, v):
        return cls.clean_text(v)


class CommentResponse(BaseModel):
    id: str
    review_id: str
    user_id: str
    comment_text: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CommentWithUser(CommentResponse):
    user: ProfileSummary


# ==================== VOTE SCHEMAS ====================

class VoteCreate(BaseModel):
    vote_type: Literal[1, -1] = Field(..., description="1 for upvote, -1 for downvote")


class CommentVoteResponse(BaseModel):
    id: str
    comment_id: str
    user_id: str
    vote_type: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CommentVoteCounts(BaseModel):
    upvotes: int = 0
    downvotes: int = 0
