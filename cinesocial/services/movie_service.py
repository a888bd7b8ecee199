from typing import Optional
import logging

from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError, IntegrityError

from cinesocial.models.movie import Movie
from cinesocial.schemas.movie import MovieResponse, OMDBMovieData
from cinesocial.schemas.response import DbResponse
from cinesocial.utils.errors import error_from_exception, failed, is_unique_constraint_error, not_found_error

logger = logging.getLogger(__name__)


def _find_movie(db: Session, imdb_id: str) -> Optional[Movie]:
    return db.query(Movie).filter(Movie.imdb_id == imdb_id).first()


class MovieService:
    """Service for the shared movie catalogue"""

    @staticmethod
    def _movie_from_omdb(omdb_data: OMDBMovieData) -> Movie:
        """Map OMDb field names onto movie columns"""
        return Movie(
            imdb_id=omdb_data.imdb_id,
            title=omdb_data.title,
            year=omdb_data.year,
            poster_url=omdb_data.poster,
            plot=omdb_data.plot,
            genre=omdb_data.genre,
            director=omdb_data.director,
            actors=omdb_data.actors,
            imdb_rating=omdb_data.imdb_rating,
            rated=omdb_data.rated,
            released=omdb_data.released,
            runtime=omdb_data.runtime,
            writer=omdb_data.writer,
            language=omdb_data.language,
            country=omdb_data.country,
            awards=omdb_data.awards,
            metascore=omdb_data.metascore,
            imdb_votes=omdb_data.imdb_votes,
            type=omdb_data.type,
            box_office=omdb_data.box_office,
            production=omdb_data.production,
            website=omdb_data.website,
        )

    @staticmethod
    def get_or_create_movie(db: Session, omdb_data: OMDBMovieData) -> DbResponse[MovieResponse]:
        """
        Get an existing movie or create a new one from OMDb data.

        Concurrent callers can both miss the lookup and both insert; the
        loser hits the unique index on imdb_id, rolls back and re-reads
        the winner's row. Either way the caller gets the full record.
        """
        try:
            existing = _find_movie(db, omdb_data.imdb_id)
            if existing:
                return DbResponse(data=MovieResponse.model_validate(existing))

            movie = MovieService._movie_from_omdb(omdb_data)
            db.add(movie)
            db.commit()
            db.refresh(movie)
            logger.info(f"Created movie {movie.imdb_id} ({movie.title})")
            return DbResponse(data=MovieResponse.model_validate(movie))

        except IntegrityError as e:
            db.rollback()
            if not is_unique_constraint_error(error_from_exception(e)):
                return failed(db, e)

            logger.info(f"Movie {omdb_data.imdb_id} was created concurrently, re-fetching")
            try:
                winner = _find_movie(db, omdb_data.imdb_id)
            except SQLAlchemyError as refetch_error:
                return failed(db, refetch_error)
            if not winner:
                return DbResponse(error=not_found_error("Movie"))
            return DbResponse(data=MovieResponse.model_validate(winner))

        except SQLAlchemyError as e:
            return failed(db, e)

    @staticmethod
    def get_movie(db: Session, movie_id: str) -> DbResponse[MovieResponse]:
        """Get the full movie record by internal ID"""
        try:
            movie = db.query(Movie).filter(Movie.id == movie_id).first()
        except SQLAlchemyError as e:
            return failed(db, e)

        if not movie:
            return DbResponse(error=not_found_error("Movie"))
        return DbResponse(data=MovieResponse.model_validate(movie))
