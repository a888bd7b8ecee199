from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from cinesocial.database import get_db
from cinesocial.models.user import Profile
from cinesocial.schemas.follow import FollowStatus, UserFollowResponse
from cinesocial.schemas.profile import ProfileResponse, ProfileUpdate
from cinesocial.schemas.review import ReviewWithMovie
from cinesocial.schemas.watchlist import ListType, SavedMovieWithDetails, CustomListWithCount
from cinesocial.services.custom_list_service import CustomListService
from cinesocial.services.follow_service import FollowService
from cinesocial.services.profile_service import ProfileService
from cinesocial.services.review_service import ReviewService
from cinesocial.services.saved_movie_service import SavedMovieService
from cinesocial.utils.dependencies import get_current_user
from cinesocial.utils.errors import check_response, unwrap_response

router = APIRouter(prefix="/api/profiles", tags=["Profiles"])


@router.patch("/me", response_model=ProfileResponse)
def update_my_profile(
    updates: ProfileUpdate,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Update the current user's profile

    - **username**, **display_name**, **bio**, **avatar_url** (all optional)
    """
    return unwrap_response(ProfileService.update_profile(db, current_user.id, updates))


@router.get("/{user_id}", response_model=ProfileResponse)
def get_profile(user_id: str, db: Session = Depends(get_db)):
    return unwrap_response(ProfileService.get_profile(db, user_id))


@router.get("/{user_id}/reviews", response_model=List[ReviewWithMovie])
def get_user_reviews(user_id: str, db: Session = Depends(get_db)):
    """Public reviews by a user, newest first"""
    return unwrap_response(ReviewService.get_user_reviews(db, user_id))


@router.get("/{user_id}/saved/{list_type}", response_model=List[SavedMovieWithDetails])
def get_user_list(user_id: str, list_type: ListType, db: Session = Depends(get_db)):
    return unwrap_response(SavedMovieService.get_user_list(db, user_id, list_type))


@router.get("/{user_id}/lists", response_model=List[CustomListWithCount])
def get_user_custom_lists(
    user_id: str,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """A user's custom lists; private ones only when it is your own profile"""
    return unwrap_response(CustomListService.get_user_custom_lists(db, user_id, viewer_id=current_user.id))


# ==================== FOLLOW ENDPOINTS ====================

@router.get("/{user_id}/followers", response_model=List[ProfileResponse])
def get_followers(user_id: str, db: Session = Depends(get_db)):
    return unwrap_response(FollowService.get_followers(db, user_id))


@router.get("/{user_id}/following", response_model=List[ProfileResponse])
def get_following(user_id: str, db: Session = Depends(get_db)):
    return unwrap_response(FollowService.get_following(db, user_id))


@router.get("/{user_id}/following/{following_id}", response_model=FollowStatus)
def check_following(user_id: str, following_id: str, db: Session = Depends(get_db)):
    return FollowStatus(
        follower_id=user_id,
        following_id=following_id,
        is_following=unwrap_response(FollowService.is_following(db, user_id, following_id))
    )


@router.post("/{user_id}/follow", response_model=UserFollowResponse, status_code=201)
def follow_user(
    user_id: str,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Follow a user; 409 if already following"""
    return unwrap_response(FollowService.follow_user(db, current_user.id, user_id))


@router.delete("/{user_id}/follow", status_code=204)
def unfollow_user(
    user_id: str,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    check_response(FollowService.unfollow_user(db, current_user.id, user_id))
