# movie_catalog/routers/auth.py
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from .. import auth, crud, models, schemas
from ..database import get_db
from ..presentation import envelope
from ..rate_limit import limiter

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _session_payload(user: models.User) -> dict:
    return {
        "token": auth.create_access_token(user.user_id),
        "user": schemas.UserPrivate.model_validate(user).model_dump(),
    }


@router.post("/register", status_code=201)
@limiter.limit("5/minute")
def register(request: Request, user: schemas.UserRegister, db: Session = Depends(get_db)):
    db_user = crud.create_user(db, user)
    return envelope(_session_payload(db_user), message="User registered successfully")


@router.post("/login")
@limiter.limit("10/minute")
def login(request: Request, credentials: schemas.UserLogin, db: Session = Depends(get_db)):
    user = crud.authenticate_user(db, credentials.username, credentials.password)
    return envelope(_session_payload(user), message="Login successful")


@router.get("/me")
def me(current_user: models.User = Depends(auth.get_current_user)):
    return envelope({"user": schemas.UserPrivate.model_validate(current_user).model_dump()})
