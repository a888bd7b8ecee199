from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from cinesocial.models.user import Account, Profile
from cinesocial.schemas.auth import UserRegister, UserLogin
from cinesocial.schemas.profile import ProfileResponse
from cinesocial.utils.security import hash_password, verify_password, create_access_token
from fastapi import HTTPException, status
from datetime import timedelta
import os
import logging
from typing import cast

logger = logging.getLogger(__name__)
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 30))


class AuthService:
    @staticmethod
    def sign_up(db: Session, user_data: UserRegister) -> Account:
        """Create an account and its profile; the display name starts as the username"""
        # Check existing email / username
        if db.query(Account).filter(Account.email == user_data.email).first():
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")
        if db.query(Profile).filter(Profile.username == user_data.username).first():
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already taken")

        account = Account(
            email=user_data.email,
            password_hash=hash_password(user_data.password),
        )
        account.profile = Profile(
            username=user_data.username,
            display_name=user_data.username,
        )
        db.add(account)
        try:
            db.commit()
        except IntegrityError:
            # Lost a race against a concurrent sign-up with the same email/username
            db.rollback()
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email or username already registered")
        db.refresh(account)
        logger.info(f"New account registered: {account.profile.username}")
        return account

    @staticmethod
    def sign_in(db: Session, credentials: UserLogin) -> dict:
        # Find account
        account = db.query(Account).filter(Account.email == credentials.email).first()

        if not account:
            logger.warning(f"Login failed: no account with email {credentials.email}")
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Incorrect email or password")

        if not verify_password(credentials.password, str(account.password_hash)):
            logger.warning(f"Login failed: incorrect password for email {credentials.email}")
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Incorrect email or password")

        if not cast(bool, account.is_active):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is deactivated")

        # Create token
        access_token = create_access_token(
            data={"sub": account.email, "user_id": account.id},
            expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
        )

        return {
            "access_token": access_token,
            "token_type": "bearer",
            "expires_in": ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            "user": ProfileResponse.model_validate(account.profile)
        }
