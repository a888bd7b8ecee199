from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.orm import Session

from cinesocial.database import get_db
from cinesocial.models.user import Profile
from cinesocial.schemas.movie import MovieResponse, OMDBMovieData
from cinesocial.services.movie_service import MovieService
from cinesocial.services.omdb_service import OMDBService
from cinesocial.utils.dependencies import get_current_user
from cinesocial.utils.errors import unwrap_response

router = APIRouter(prefix="/api/movies", tags=["Movies"])


@router.post("/", response_model=MovieResponse, status_code=status.HTTP_201_CREATED)
def get_or_create_movie(
    omdb_data: OMDBMovieData,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Register a movie from an OMDb payload (imdbID, Title, Year, Poster, ...)

    Returns the existing record if the IMDb ID is already known.
    """
    return unwrap_response(MovieService.get_or_create_movie(db, omdb_data))


@router.post("/imdb/{imdb_id}", response_model=MovieResponse, status_code=status.HTTP_201_CREATED)
def import_movie(
    imdb_id: str = Path(..., pattern=r"^tt\d+$", description="IMDb ID"),
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Fetch a movie from OMDb by IMDb ID and register it"""
    omdb_data = OMDBService.get_movie(imdb_id)
    return unwrap_response(MovieService.get_or_create_movie(db, omdb_data))


@router.get("/{movie_id}", response_model=MovieResponse)
def get_movie(movie_id: str, db: Session = Depends(get_db)):
    return unwrap_response(MovieService.get_movie(db, movie_id))
