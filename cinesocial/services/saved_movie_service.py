from sqlalchemy.orm import Session, joinedload
from sqlalchemy.exc import SQLAlchemyError
from typing import List

from cinesocial.models.watchlist import SavedMovie
from cinesocial.policies import owned_by
from cinesocial.schemas.response import DbResponse, DbErrorResponse
from cinesocial.schemas.watchlist import ListType, SavedMovieResponse, SavedMovieWithDetails
from cinesocial.utils.errors import failed


class SavedMovieService:
    """Service for the fixed per-user lists (watchlist, favorites, watched)"""

    @staticmethod
    def add_to_list(db: Session, user_id: str, movie_id: str, list_type: ListType) -> DbResponse[SavedMovieResponse]:
        """Add a movie to one of the user's lists; adding it twice is a unique-constraint error"""
        saved = SavedMovie(user_id=user_id, movie_id=movie_id, list_type=ListType(list_type).value)
        try:
            db.add(saved)
            db.commit()
            db.refresh(saved)
        except SQLAlchemyError as e:
            return failed(db, e)

        return DbResponse(data=SavedMovieResponse.model_validate(saved))

    @staticmethod
    def remove_from_list(db: Session, user_id: str, movie_id: str, list_type: ListType) -> DbErrorResponse:
        try:
            query = owned_by(db.query(SavedMovie), SavedMovie, user_id).filter(
                SavedMovie.movie_id == movie_id,
                SavedMovie.list_type == ListType(list_type).value
            )
            for saved in query.all():
                db.delete(saved)
            db.commit()
        except SQLAlchemyError as e:
            return DbErrorResponse(error=failed(db, e).error)

        return DbErrorResponse()

    @staticmethod
    def get_user_list(db: Session, user_id: str, list_type: ListType) -> DbResponse[List[SavedMovieWithDetails]]:
        """Movies in one of the user's lists, newest first, with full movie data"""
        try:
            entries = db.query(SavedMovie).options(joinedload(SavedMovie.movie)).filter(
                SavedMovie.user_id == user_id,
                SavedMovie.list_type == ListType(list_type).value
            ).order_by(SavedMovie.created_at.desc()).all()
        except SQLAlchemyError as e:
            return failed(db, e)

        return DbResponse(data=[SavedMovieWithDetails.model_validate(s) for s in entries])
