"""
Review Routes - reviews, their comments and comment votes
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from cinesocial.database import get_db
from cinesocial.models.user import Profile
from cinesocial.schemas.review import (
    CommentCreate,
    CommentVoteCounts,
    CommentVoteResponse,
    CommentWithUser,
    ReviewCreate,
    ReviewResponse,
    ReviewUpdate,
    ReviewWithDetails,
    ReviewWithFullDetails,
    VoteCreate,
)
from cinesocial.services.comment_service import CommentService
from cinesocial.services.review_service import ReviewService, DEFAULT_PUBLIC_LIMIT
from cinesocial.services.vote_service import VoteService
from cinesocial.utils.dependencies import get_current_user, get_optional_user
from cinesocial.utils.errors import check_response, unwrap_response

router = APIRouter(prefix="/api/reviews", tags=["Reviews"])
comment_router = APIRouter(prefix="/api/comments", tags=["Comments"])


# ==================== REVIEW ENDPOINTS ====================

@router.post("/", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
def create_review(
    review_data: ReviewCreate,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Write a review

    - **movie_id**: internal movie ID (required)
    - **rating**: 1 to 10 (required)
    - **review_text**: review body
    - **is_public**: defaults to true
    """
    return unwrap_response(ReviewService.create_review(
        db,
        current_user.id,
        review_data.movie_id,
        review_data.rating,
        review_data.review_text,
        review_data.is_public
    ))


@router.get("/", response_model=List[ReviewWithDetails])
def get_public_reviews(
    limit: int = Query(DEFAULT_PUBLIC_LIMIT, ge=1, le=100, description="Max results"),
    db: Session = Depends(get_db)
):
    """Latest public reviews"""
    return unwrap_response(ReviewService.get_public_reviews(db, limit))


@router.get("/{review_id}", response_model=ReviewWithFullDetails)
def get_review(review_id: str, db: Session = Depends(get_db)):
    """A public review; private reviews answer 404"""
    return unwrap_response(ReviewService.get_review_by_id(db, review_id))


@router.patch("/{review_id}", response_model=ReviewResponse)
def update_review(
    review_id: str,
    updates: ReviewUpdate,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return unwrap_response(ReviewService.update_review(db, current_user.id, review_id, updates))


@router.delete("/{review_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_review(
    review_id: str,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    check_response(ReviewService.delete_review(db, current_user.id, review_id))


# ==================== COMMENT ENDPOINTS ====================

@router.get("/{review_id}/comments", response_model=List[CommentWithUser])
def get_review_comments(
    review_id: str,
    current_user: Optional[Profile] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    """Comments on a review, oldest first; empty when the review is hidden from the caller"""
    viewer_id = current_user.id if current_user else None
    return unwrap_response(CommentService.get_review_comments(db, review_id, viewer_id=viewer_id))


@router.post("/{review_id}/comments", response_model=CommentWithUser, status_code=status.HTTP_201_CREATED)
def create_comment(
    review_id: str,
    comment_data: CommentCreate,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return unwrap_response(CommentService.create_comment(db, current_user.id, review_id, comment_data.comment_text))


@comment_router.delete("/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_comment(
    comment_id: str,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    check_response(CommentService.delete_comment(db, current_user.id, comment_id))


# ==================== VOTE ENDPOINTS ====================

@comment_router.put("/{comment_id}/vote", response_model=CommentVoteResponse)
def vote_on_comment(
    comment_id: str,
    vote: VoteCreate,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Upvote (1) or downvote (-1); voting again replaces the previous vote"""
    return unwrap_response(VoteService.vote_on_comment(db, current_user.id, comment_id, vote.vote_type))


@comment_router.delete("/{comment_id}/vote", status_code=status.HTTP_204_NO_CONTENT)
def remove_vote(
    comment_id: str,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    check_response(VoteService.remove_vote(db, current_user.id, comment_id))


@comment_router.get("/{comment_id}/votes", response_model=CommentVoteCounts)
def get_comment_votes(comment_id: str, db: Session = Depends(get_db)):
    return unwrap_response(VoteService.get_comment_votes(db, comment_id))
