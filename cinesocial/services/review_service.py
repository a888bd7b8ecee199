"""
Review Service - reviews and their public feeds

Ownership is not checked here directly: every write goes through the owner
policy (see cinesocial.policies), which is the trusted boundary. A write
against someone else's review therefore matches no row.
"""

from sqlalchemy.orm import Session, joinedload
from sqlalchemy.exc import SQLAlchemyError
from typing import List

from cinesocial.models.review import Review
from cinesocial.policies import owned_by
from cinesocial.schemas.response import DbResponse, DbErrorResponse
from cinesocial.schemas.review import (
    ReviewResponse,
    ReviewUpdate,
    ReviewWithDetails,
    ReviewWithFullDetails,
    ReviewWithMovie,
)
from cinesocial.utils.errors import failed, not_found_error

DEFAULT_PUBLIC_LIMIT = 10


class ReviewService:
    """Service for movie review operations"""

    @staticmethod
    def create_review(
        db: Session,
        user_id: str,
        movie_id: str,
        rating: int,
        review_text: str,
        is_public: bool = True
    ) -> DbResponse[ReviewResponse]:
        """
        Create a new review for a movie

        Args:
            db: Database session
            user_id: Acting user, becomes the owner
            movie_id: Internal movie ID
            rating: Rating score (1-10); out-of-range values are rejected by the database
            review_text: Review content
            is_public: Whether the review is publicly visible
        """
        review = Review(
            user_id=user_id,
            movie_id=movie_id,
            rating=rating,
            review_text=review_text,
            is_public=is_public
        )
        try:
            db.add(review)
            db.commit()
            db.refresh(review)
        except SQLAlchemyError as e:
            return failed(db, e)

        return DbResponse(data=ReviewResponse.model_validate(review))

    @staticmethod
    def get_public_reviews(db: Session, limit: int = DEFAULT_PUBLIC_LIMIT) -> DbResponse[List[ReviewWithDetails]]:
        """Public reviews, newest first, with author and movie summaries"""
        try:
            reviews = db.query(Review).options(
                joinedload(Review.user),
                joinedload(Review.movie)
            ).filter(
                Review.is_public.is_(True)
            ).order_by(Review.created_at.desc()).limit(limit).all()
        except SQLAlchemyError as e:
            return failed(db, e)

        return DbResponse(data=[ReviewWithDetails.model_validate(r) for r in reviews])

    @staticmethod
    def get_review_by_id(db: Session, review_id: str) -> DbResponse[ReviewWithFullDetails]:
        """A single public review with the full profile and movie; private reviews are not found"""
        try:
            review = db.query(Review).options(
                joinedload(Review.user),
                joinedload(Review.movie)
            ).filter(
                Review.id == review_id,
                Review.is_public.is_(True)
            ).first()
        except SQLAlchemyError as e:
            return failed(db, e)

        if not review:
            return DbResponse(error=not_found_error("Review"))
        return DbResponse(data=ReviewWithFullDetails.model_validate(review))

    @staticmethod
    def get_user_reviews(db: Session, user_id: str) -> DbResponse[List[ReviewWithMovie]]:
        """All public reviews by a user, newest first"""
        try:
            reviews = db.query(Review).options(joinedload(Review.movie)).filter(
                Review.user_id == user_id,
                Review.is_public.is_(True)
            ).order_by(Review.created_at.desc()).all()
        except SQLAlchemyError as e:
            return failed(db, e)

        return DbResponse(data=[ReviewWithMovie.model_validate(r) for r in reviews])

    @staticmethod
    def update_review(
        db: Session,
        user_id: str,
        review_id: str,
        updates: ReviewUpdate
    ) -> DbResponse[ReviewResponse]:
        """Patch rating / text / visibility of the acting user's review"""
        try:
            review = owned_by(db.query(Review), Review, user_id).filter(Review.id == review_id).first()
            if not review:
                return DbResponse(error=not_found_error("Review"))

            for field, value in updates.model_dump(exclude_unset=True).items():
                setattr(review, field, value)

            db.commit()
            db.refresh(review)
        except SQLAlchemyError as e:
            return failed(db, e)

        return DbResponse(data=ReviewResponse.model_validate(review))

    @staticmethod
    def delete_review(db: Session, user_id: str, review_id: str) -> DbErrorResponse:
        """Delete the acting user's review (comments and votes go with it)"""
        try:
            for review in owned_by(db.query(Review), Review, user_id).filter(Review.id == review_id).all():
                db.delete(review)
            db.commit()
        except SQLAlchemyError as e:
            return DbErrorResponse(error=failed(db, e).error)

        return DbErrorResponse()
