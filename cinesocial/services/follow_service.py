from sqlalchemy import exists
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from typing import List

from cinesocial.models.follow import UserFollow
from cinesocial.models.user import Profile
from cinesocial.policies import owned_by
from cinesocial.schemas.follow import UserFollowResponse
from cinesocial.schemas.profile import ProfileResponse
from cinesocial.schemas.response import DbResponse, DbErrorResponse
from cinesocial.utils.errors import failed


class FollowService:
    """Service for the follow graph"""

    @staticmethod
    def follow_user(db: Session, user_id: str, following_id: str) -> DbResponse[UserFollowResponse]:
        """
        Follow a user.
        Following someone twice fails with a unique-constraint error.
        """
        follow = UserFollow(follower_id=user_id, following_id=following_id)
        try:
            db.add(follow)
            db.commit()
            db.refresh(follow)
        except SQLAlchemyError as e:
            return failed(db, e)

        return DbResponse(data=UserFollowResponse.model_validate(follow))

    @staticmethod
    def unfollow_user(db: Session, user_id: str, following_id: str) -> DbErrorResponse:
        try:
            query = owned_by(db.query(UserFollow), UserFollow, user_id, owner_column="follower_id")
            for follow in query.filter(UserFollow.following_id == following_id).all():
                db.delete(follow)
            db.commit()
        except SQLAlchemyError as e:
            return DbErrorResponse(error=failed(db, e).error)

        return DbErrorResponse()

    @staticmethod
    def get_followers(db: Session, user_id: str) -> DbResponse[List[ProfileResponse]]:
        """Profiles following ``user_id``, most recent first"""
        try:
            profiles = db.query(Profile).join(
                UserFollow, UserFollow.follower_id == Profile.id
            ).filter(
                UserFollow.following_id == user_id
            ).order_by(UserFollow.created_at.desc()).all()
        except SQLAlchemyError as e:
            return failed(db, e)

        return DbResponse(data=[ProfileResponse.model_validate(p) for p in profiles])

    @staticmethod
    def get_following(db: Session, user_id: str) -> DbResponse[List[ProfileResponse]]:
        """Profiles ``user_id`` follows, most recent first"""
        try:
            profiles = db.query(Profile).join(
                UserFollow, UserFollow.following_id == Profile.id
            ).filter(
                UserFollow.follower_id == user_id
            ).order_by(UserFollow.created_at.desc()).all()
        except SQLAlchemyError as e:
            return failed(db, e)

        return DbResponse(data=[ProfileResponse.model_validate(p) for p in profiles])

    @staticmethod
    def is_following(db: Session, follower_id: str, following_id: str) -> DbResponse[bool]:
        """EXISTS check in the database; no rows are fetched"""
        try:
            found = db.query(
                exists().where(
                    UserFollow.follower_id == follower_id,
                    UserFollow.following_id == following_id
                )
            ).scalar()
        except SQLAlchemyError as e:
            return failed(db, e)

        return DbResponse(data=bool(found))
