from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from cinesocial.database import get_db
from cinesocial.schemas.auth import UserRegister, UserLogin, AccountResponse, TokenResponse
from cinesocial.schemas.profile import ProfileResponse
from cinesocial.services.auth_service import AuthService
from cinesocial.utils.dependencies import get_current_user
from cinesocial.models.user import Profile

# Define router
router = APIRouter(prefix="/api/auth", tags=["Authentication"])


# Register a new user
@router.post("/register", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
def register(user_data: UserRegister, db: Session = Depends(get_db)):
    """Register a new user (creates the account and its profile)"""
    return AuthService.sign_up(db, user_data)


# Login endpoint
@router.post("/login", response_model=TokenResponse)
def login(credentials: UserLogin, db: Session = Depends(get_db)):
    """Login with email and password"""
    return AuthService.sign_in(db, credentials)


# Get current authenticated user
@router.get("/me", response_model=ProfileResponse)
def get_me(current_user: Profile = Depends(get_current_user)):
    """Get current authenticated user's profile"""
    return current_user
