from sqlalchemy import case, func
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
import logging

from cinesocial.models.review import CommentVote
from cinesocial.policies import owned_by
from cinesocial.schemas.response import DbResponse, DbErrorResponse
from cinesocial.schemas.review import CommentVoteCounts, CommentVoteResponse
from cinesocial.utils.errors import error_from_exception, failed, is_unique_constraint_error

logger = logging.getLogger(__name__)

UPVOTE = 1
DOWNVOTE = -1


class VoteService:
    """Service for comment votes"""

    @staticmethod
    def _upsert(db: Session, user_id: str, comment_id: str, vote_type: int) -> CommentVote:
        vote = db.query(CommentVote).filter(
            CommentVote.comment_id == comment_id,
            CommentVote.user_id == user_id
        ).first()

        if vote:
            vote.vote_type = vote_type
        else:
            vote = CommentVote(comment_id=comment_id, user_id=user_id, vote_type=vote_type)
            db.add(vote)

        db.commit()
        db.refresh(vote)
        return vote

    @staticmethod
    def vote_on_comment(db: Session, user_id: str, comment_id: str, vote_type: int) -> DbResponse[CommentVoteResponse]:
        """
        Vote on a comment (1 = upvote, -1 = downvote).

        Keyed on (comment, user): voting again replaces the stored polarity.
        If a concurrent request inserted the same pair first, the unique
        index rejects our insert and the vote is applied as an update.
        """
        try:
            vote = VoteService._upsert(db, user_id, comment_id, vote_type)
        except IntegrityError as e:
            db.rollback()
            if not is_unique_constraint_error(error_from_exception(e)):
                return failed(db, e)
            logger.debug(f"Vote on comment {comment_id} raced an insert, applying as update")
            try:
                vote = VoteService._upsert(db, user_id, comment_id, vote_type)
            except SQLAlchemyError as retry_error:
                return failed(db, retry_error)
        except SQLAlchemyError as e:
            return failed(db, e)

        return DbResponse(data=CommentVoteResponse.model_validate(vote))

    @staticmethod
    def remove_vote(db: Session, user_id: str, comment_id: str) -> DbErrorResponse:
        """Remove the acting user's vote from a comment"""
        try:
            query = owned_by(db.query(CommentVote), CommentVote, user_id)
            for vote in query.filter(CommentVote.comment_id == comment_id).all():
                db.delete(vote)
            db.commit()
        except SQLAlchemyError as e:
            return DbErrorResponse(error=failed(db, e).error)

        return DbErrorResponse()

    @staticmethod
    def get_comment_votes(db: Session, comment_id: str) -> DbResponse[CommentVoteCounts]:
        """Upvote and downvote counts, aggregated by the database in one query"""
        try:
            upvotes, downvotes = db.query(
                func.coalesce(func.sum(case((CommentVote.vote_type == UPVOTE, 1), else_=0)), 0),
                func.coalesce(func.sum(case((CommentVote.vote_type == DOWNVOTE, 1), else_=0)), 0),
            ).filter(CommentVote.comment_id == comment_id).one()
        except SQLAlchemyError as e:
            return failed(db, e)

        return DbResponse(data=CommentVoteCounts(upvotes=int(upvotes), downvotes=int(downvotes)))
