from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional
import secrets

from cinesocial.database import Backend, get_backend, get_db
from cinesocial.utils.security import decode_access_token
from cinesocial.models.user import Account, Profile


def require_api_key(
    apikey: Optional[str] = Header(None, description="Publishable API key"),
    backend: Backend = Depends(get_backend)
) -> None:
    """Every API request must present the publishable key"""
    if not apikey or not secrets.compare_digest(apikey, backend.publishable_key):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")


security = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> Profile:
    """Resolve the bearer token to the acting user's profile"""
    user_id = decode_access_token(credentials.credentials)
    if user_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    account = db.query(Account).filter(Account.id == user_id).first()
    if not account or not account.is_active or not account.profile:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found or inactive")

    return account.profile


optional_security = HTTPBearer(auto_error=False)


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security),
    db: Session = Depends(get_db)
) -> Optional[Profile]:
    """Acting user when a bearer token is sent, otherwise an anonymous reader"""
    if credentials is None:
        return None
    return await get_current_user(credentials, db)
