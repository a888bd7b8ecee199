"""
Custom List Service - user-curated, optionally public, movie lists

Writes are scoped by the owner policy; adding a movie to someone else's
list is refused by the insert check in cinesocial.policies.
"""

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload
from sqlalchemy.exc import SQLAlchemyError
from typing import List, Optional

from cinesocial.models.watchlist import CustomList, CustomListMovie
from cinesocial.policies import check_list_owner, owned_by, visible_to
from cinesocial.schemas.profile import ProfileSummary
from cinesocial.schemas.response import DbResponse, DbErrorResponse
from cinesocial.schemas.watchlist import (
    CustomListMovieResponse,
    CustomListResponse,
    CustomListUpdate,
    CustomListWithCount,
    CustomListWithFullMovies,
    CustomListWithUserAndCount,
)
from cinesocial.utils.errors import PolicyViolation, failed, not_found_error

DEFAULT_PUBLIC_LIMIT = 20


def _with_counts(db: Session):
    """Lists paired with their entry count, aggregated by the database"""
    movie_count = db.query(func.count(CustomListMovie.id)).filter(
        CustomListMovie.list_id == CustomList.id
    ).correlate(CustomList).scalar_subquery()
    return db.query(CustomList, movie_count.label("movie_count"))


class CustomListService:
    """Service for custom list operations"""

    @staticmethod
    def create_custom_list(
        db: Session,
        user_id: str,
        name: str,
        description: Optional[str] = None,
        is_public: bool = False
    ) -> DbResponse[CustomListResponse]:
        """Create a new custom list (private unless asked otherwise)"""
        custom_list = CustomList(
            user_id=user_id,
            name=name,
            description=description or None,
            is_public=is_public
        )
        try:
            db.add(custom_list)
            db.commit()
            db.refresh(custom_list)
        except SQLAlchemyError as e:
            return failed(db, e)

        return DbResponse(data=CustomListResponse.model_validate(custom_list))

    @staticmethod
    def get_user_custom_lists(
        db: Session,
        user_id: str,
        viewer_id: Optional[str] = None
    ) -> DbResponse[List[CustomListWithCount]]:
        """
        All lists of a user with movie counts, newest first.
        Viewers other than the owner only see the public ones.
        """
        try:
            rows = visible_to(_with_counts(db), CustomList, viewer_id).filter(
                CustomList.user_id == user_id
            ).order_by(CustomList.created_at.desc()).all()
        except SQLAlchemyError as e:
            return failed(db, e)

        return DbResponse(data=[
            CustomListWithCount(
                **CustomListResponse.model_validate(custom_list).model_dump(),
                movie_count=count
            )
            for custom_list, count in rows
        ])

    @staticmethod
    def get_custom_list_by_id(
        db: Session,
        list_id: str,
        viewer_id: Optional[str] = None
    ) -> DbResponse[CustomListWithFullMovies]:
        """A list with every member movie and when it was added"""
        try:
            query = db.query(CustomList).options(
                joinedload(CustomList.entries).joinedload(CustomListMovie.movie)
            ).filter(CustomList.id == list_id)
            custom_list = visible_to(query, CustomList, viewer_id).first()
        except SQLAlchemyError as e:
            return failed(db, e)

        if not custom_list:
            return DbResponse(error=not_found_error("Custom list"))
        return DbResponse(data=CustomListWithFullMovies.model_validate(custom_list))

    @staticmethod
    def get_public_custom_lists(
        db: Session,
        limit: int = DEFAULT_PUBLIC_LIMIT
    ) -> DbResponse[List[CustomListWithUserAndCount]]:
        """Public lists, newest first, with owner summary and movie count"""
        try:
            rows = _with_counts(db).options(joinedload(CustomList.user)).filter(
                CustomList.is_public.is_(True)
            ).order_by(CustomList.created_at.desc()).limit(limit).all()
        except SQLAlchemyError as e:
            return failed(db, e)

        return DbResponse(data=[
            CustomListWithUserAndCount(
                **CustomListResponse.model_validate(custom_list).model_dump(),
                user=ProfileSummary.model_validate(custom_list.user),
                movie_count=count
            )
            for custom_list, count in rows
        ])

    @staticmethod
    def update_custom_list(
        db: Session,
        user_id: str,
        list_id: str,
        updates: CustomListUpdate
    ) -> DbResponse[CustomListResponse]:
        """Patch name / description / visibility of the acting user's list"""
        try:
            custom_list = owned_by(db.query(CustomList), CustomList, user_id).filter(
                CustomList.id == list_id
            ).first()
            if not custom_list:
                return DbResponse(error=not_found_error("Custom list"))

            for field, value in updates.model_dump(exclude_unset=True).items():
                setattr(custom_list, field, value)

            db.commit()
            db.refresh(custom_list)
        except SQLAlchemyError as e:
            return failed(db, e)

        return DbResponse(data=CustomListResponse.model_validate(custom_list))

    @staticmethod
    def delete_custom_list(db: Session, user_id: str, list_id: str) -> DbErrorResponse:
        """Delete a custom list together with all of its entries"""
        try:
            query = owned_by(db.query(CustomList), CustomList, user_id).filter(CustomList.id == list_id)
            for custom_list in query.all():
                db.delete(custom_list)
            db.commit()
        except SQLAlchemyError as e:
            return DbErrorResponse(error=failed(db, e).error)

        return DbErrorResponse()

    @staticmethod
    def add_movie_to_custom_list(
        db: Session,
        user_id: str,
        list_id: str,
        movie_id: str
    ) -> DbResponse[CustomListMovieResponse]:
        """Add a movie to the acting user's list; a movie can only be in a list once"""
        try:
            check_list_owner(db, list_id, user_id)

            entry = CustomListMovie(list_id=list_id, movie_id=movie_id)
            db.add(entry)
            db.commit()
            db.refresh(entry)
        except (SQLAlchemyError, PolicyViolation) as e:
            return failed(db, e)

        return DbResponse(data=CustomListMovieResponse.model_validate(entry))

    @staticmethod
    def remove_movie_from_custom_list(db: Session, user_id: str, list_id: str, movie_id: str) -> DbErrorResponse:
        try:
            entries = db.query(CustomListMovie).join(CustomList).filter(
                CustomListMovie.list_id == list_id,
                CustomListMovie.movie_id == movie_id,
                CustomList.user_id == user_id
            ).all()
            for entry in entries:
                db.delete(entry)
            db.commit()
        except SQLAlchemyError as e:
            return DbErrorResponse(error=failed(db, e).error)

        return DbErrorResponse()
