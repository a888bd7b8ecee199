from sqlalchemy.orm import Session, joinedload
from sqlalchemy.exc import SQLAlchemyError
from typing import List, Optional

from cinesocial.models.review import Comment, Review
from cinesocial.policies import check_can_comment, owned_by, visible_to
from cinesocial.schemas.response import DbResponse, DbErrorResponse
from cinesocial.schemas.review import CommentWithUser
from cinesocial.utils.errors import PolicyViolation, failed


class CommentService:
    """Service for comments on reviews"""

    @staticmethod
    def create_comment(db: Session, user_id: str, review_id: str, comment_text: str) -> DbResponse[CommentWithUser]:
        """
        Create a new comment on a review.

        Trusted boundary: the review must be public or owned by the commenter,
        otherwise the insert is refused with a policy error.
        """
        try:
            check_can_comment(db, review_id, user_id)

            comment = Comment(review_id=review_id, user_id=user_id, comment_text=comment_text)
            db.add(comment)
            db.commit()

            comment = db.query(Comment).options(joinedload(Comment.user)).filter(
                Comment.id == comment.id
            ).first()
        except (SQLAlchemyError, PolicyViolation) as e:
            return failed(db, e)

        return DbResponse(data=CommentWithUser.model_validate(comment))

    @staticmethod
    def get_review_comments(
        db: Session,
        review_id: str,
        viewer_id: Optional[str] = None
    ) -> DbResponse[List[CommentWithUser]]:
        """
        All comments on a review, oldest first.
        Comments follow their review's visibility: a private review's thread
        reads as empty to everyone but its author.
        """
        try:
            query = db.query(Comment).join(Review, Comment.review_id == Review.id)
            comments = visible_to(query, Review, viewer_id).options(joinedload(Comment.user)).filter(
                Comment.review_id == review_id
            ).order_by(Comment.created_at.asc()).all()
        except SQLAlchemyError as e:
            return failed(db, e)

        return DbResponse(data=[CommentWithUser.model_validate(c) for c in comments])

    @staticmethod
    def delete_comment(db: Session, user_id: str, comment_id: str) -> DbErrorResponse:
        """Delete the acting user's comment"""
        try:
            for comment in owned_by(db.query(Comment), Comment, user_id).filter(Comment.id == comment_id).all():
                db.delete(comment)
            db.commit()
        except SQLAlchemyError as e:
            return DbErrorResponse(error=failed(db, e).error)

        return DbErrorResponse()
