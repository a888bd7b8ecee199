from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from typing import List

from cinesocial.database import get_db
from cinesocial.utils.dependencies import get_current_user
from cinesocial.models.user import Profile
from cinesocial.schemas.watchlist import (
    ListType,
    SavedMovieAdd,
    SavedMovieResponse,
    SavedMovieWithDetails,
    CustomListCreate,
    CustomListUpdate,
    CustomListResponse,
    CustomListWithCount,
    CustomListWithUserAndCount,
    CustomListWithFullMovies,
    CustomListMovieAdd,
    CustomListMovieResponse
)
from cinesocial.services.saved_movie_service import SavedMovieService
from cinesocial.services.custom_list_service import CustomListService, DEFAULT_PUBLIC_LIMIT
from cinesocial.utils.errors import check_response, unwrap_response

router = APIRouter(prefix="/api/saved", tags=["Saved Movies"])
custom_list_router = APIRouter(prefix="/api/lists", tags=["Custom Lists"])


# ==================== SAVED MOVIE ENDPOINTS ====================

@router.post("/{list_type}", response_model=SavedMovieResponse, status_code=status.HTTP_201_CREATED)
def add_to_list(
    list_type: ListType,
    data: SavedMovieAdd,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    File a movie under watchlist, favorites or watched

    Answers 409 if the movie is already in that list.
    """
    return unwrap_response(SavedMovieService.add_to_list(db, current_user.id, data.movie_id, list_type))


@router.get("/{list_type}", response_model=List[SavedMovieWithDetails])
def get_my_list(
    list_type: ListType,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return unwrap_response(SavedMovieService.get_user_list(db, current_user.id, list_type))


@router.delete("/{list_type}/{movie_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_from_list(
    list_type: ListType,
    movie_id: str,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    check_response(SavedMovieService.remove_from_list(db, current_user.id, movie_id, list_type))


# ==================== CUSTOM LIST ENDPOINTS ====================

@custom_list_router.post("/", response_model=CustomListResponse, status_code=status.HTTP_201_CREATED)
def create_custom_list(
    list_data: CustomListCreate,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Create a new custom list

    - **name**: List name (required)
    - **description**: List description (optional)
    - **is_public**: Whether list is visible to others (default: false)
    """
    return unwrap_response(CustomListService.create_custom_list(
        db, current_user.id, list_data.name, list_data.description, list_data.is_public
    ))


@custom_list_router.get("/", response_model=List[CustomListWithCount])
def get_my_lists(
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get all custom lists created by current user"""
    return unwrap_response(CustomListService.get_user_custom_lists(db, current_user.id, viewer_id=current_user.id))


@custom_list_router.get("/public", response_model=List[CustomListWithUserAndCount])
def get_public_lists(
    limit: int = Query(DEFAULT_PUBLIC_LIMIT, ge=1, le=100),
    db: Session = Depends(get_db)
):
    return unwrap_response(CustomListService.get_public_custom_lists(db, limit))


@custom_list_router.get("/{list_id}", response_model=CustomListWithFullMovies)
def get_custom_list(
    list_id: str,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get a custom list with all its movies (public lists, or your own)"""
    return unwrap_response(CustomListService.get_custom_list_by_id(db, list_id, viewer_id=current_user.id))


@custom_list_router.patch("/{list_id}", response_model=CustomListResponse)
def update_custom_list(
    list_id: str,
    update_data: CustomListUpdate,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update custom list name, description or visibility"""
    return unwrap_response(CustomListService.update_custom_list(db, current_user.id, list_id, update_data))


@custom_list_router.delete("/{list_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_custom_list(
    list_id: str,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete a custom list and all its entries"""
    check_response(CustomListService.delete_custom_list(db, current_user.id, list_id))


@custom_list_router.post("/{list_id}/movies", response_model=CustomListMovieResponse, status_code=status.HTTP_201_CREATED)
def add_movie_to_list(
    list_id: str,
    item_data: CustomListMovieAdd,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Add a movie to one of your lists; 409 if it is already there"""
    return unwrap_response(CustomListService.add_movie_to_custom_list(db, current_user.id, list_id, item_data.movie_id))


@custom_list_router.delete("/{list_id}/movies/{movie_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_movie_from_list(
    list_id: str,
    movie_id: str,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    check_response(CustomListService.remove_movie_from_custom_list(db, current_user.id, list_id, movie_id))
