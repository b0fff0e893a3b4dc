# movie_catalog/auth.py
import datetime
import logging
from typing import Optional

import bcrypt
import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from . import config, models
from .database import get_db
from .errors import AuthError

bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Stored hash is not a bcrypt hash
        return False


def create_access_token(user_id: int) -> str:
    expires = datetime.datetime.now(datetime.timezone.utc) + datetime.timedelta(hours=config.JWT_EXPIRES_HOURS)
    return jwt.encode({"id": user_id, "exp": expires}, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str) -> int:
    payload = jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    return int(payload["id"])


def _user_for_token(db: Session, token: str) -> Optional[models.User]:
    user_id = decode_access_token(token)
    return db.query(models.User).filter(models.User.user_id == user_id).first()


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> models.User:
    if credentials is None or not credentials.credentials:
        raise AuthError("Not authorized, no token")

    try:
        user = _user_for_token(db, credentials.credentials)
    except (jwt.PyJWTError, KeyError, ValueError) as e:
        logging.info(f"Rejected bearer token: {e}")
        raise AuthError("Not authorized, token failed")

    if user is None:
        raise AuthError("Not authorized, user not found")
    if not user.is_active:
        raise AuthError("Account is deactivated")
    return user


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Optional[models.User]:
    """Resolves the caller when a valid token is sent; never rejects the request."""
    if credentials is None or not credentials.credentials:
        return None
    try:
        user = _user_for_token(db, credentials.credentials)
    except (jwt.PyJWTError, KeyError, ValueError) as e:
        logging.info(f"Ignoring invalid optional bearer token: {e}")
        return None
    if user is None or not user.is_active:
        return None
    return user
