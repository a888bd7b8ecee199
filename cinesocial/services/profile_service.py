from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from cinesocial.models.user import Profile
from cinesocial.policies import owned_by
from cinesocial.schemas.profile import ProfileResponse, ProfileUpdate
from cinesocial.schemas.response import DbResponse
from cinesocial.utils.errors import failed, not_found_error


class ProfileService:
    """Service for profile operations"""

    @staticmethod
    def get_profile(db: Session, user_id: str) -> DbResponse[ProfileResponse]:
        """Get a user's profile by user ID"""
        try:
            profile = db.query(Profile).filter(Profile.id == user_id).first()
        except SQLAlchemyError as e:
            return failed(db, e)

        if not profile:
            return DbResponse(error=not_found_error("Profile"))
        return DbResponse(data=ProfileResponse.model_validate(profile))

    @staticmethod
    def update_profile(db: Session, user_id: str, updates: ProfileUpdate) -> DbResponse[ProfileResponse]:
        """
        Update a user's profile.

        Trusted boundary: the owner policy scopes the row to ``user_id``
        (the acting user). A username that is already taken comes back as
        a unique-constraint error; it is not retried.
        """
        try:
            query = owned_by(db.query(Profile), Profile, user_id, owner_column="id")
            profile = query.first()
            if not profile:
                return DbResponse(error=not_found_error("Profile"))

            for field, value in updates.model_dump(exclude_unset=True).items():
                setattr(profile, field, value)

            db.commit()
            db.refresh(profile)
        except SQLAlchemyError as e:
            return failed(db, e)

        return DbResponse(data=ProfileResponse.model_validate(profile))
