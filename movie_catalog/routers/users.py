# movie_catalog/routers/users.py
from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.orm import Session

from .. import auth, crud, models, schemas, storage
from ..database import get_db
from ..presentation import envelope, pagination

router = APIRouter(prefix="/api/users", tags=["users"])

DEFAULT_LIMIT = 10


@router.get("/ratings")
def my_ratings(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=100),
    current_user: models.User = Depends(auth.get_current_user),
    db: Session = Depends(get_db),
):
    rows, total = crud.get_user_ratings(db, current_user.user_id, page, limit)
    return envelope({
        "ratings": [schemas.Rating.model_validate(r).model_dump() for r in rows],
        "pagination": pagination(page, limit, total),
    })


@router.get("/reviews")
def my_reviews(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=100),
    current_user: models.User = Depends(auth.get_current_user),
    db: Session = Depends(get_db),
):
    rows, total = crud.get_user_reviews(db, current_user.user_id, page, limit)
    return envelope({
        "reviews": [schemas.Review.model_validate(r).model_dump() for r in rows],
        "pagination": pagination(page, limit, total),
    })


@router.get("/watchlist")
def my_watchlist(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=100),
    current_user: models.User = Depends(auth.get_current_user),
    db: Session = Depends(get_db),
):
    rows, total = crud.get_watchlist(db, current_user.user_id, page, limit)
    return envelope({
        "watchlist": [schemas.WatchlistItem.model_validate(w).model_dump() for w in rows],
        "pagination": pagination(page, limit, total),
    })


@router.put("/profile")
def update_profile(
    changes: schemas.ProfileUpdate,
    current_user: models.User = Depends(auth.get_current_user),
    db: Session = Depends(get_db),
):
    user = crud.update_profile(db, current_user, changes)
    return envelope(
        {"user": schemas.UserPrivate.model_validate(user).model_dump()},
        message="Profile updated successfully",
    )


@router.post("/profile-picture")
def upload_profile_picture(
    file: UploadFile = File(...),
    current_user: models.User = Depends(auth.get_current_user),
    db: Session = Depends(get_db),
):
    url = storage.save_profile_picture(file)
    user = crud.set_profile_picture(db, current_user, url)
    return envelope(
        {"profile_image_url": user.profile_image_url},
        message="Profile picture uploaded successfully",
    )


@router.delete("/account")
def delete_account(
    current_user: models.User = Depends(auth.get_current_user),
    db: Session = Depends(get_db),
):
    crud.deactivate_user(db, current_user)
    return envelope(message="Account deleted successfully")


@router.get("/{user_id}")
def user_profile(user_id: int, db: Session = Depends(get_db)):
    return envelope(crud.get_user_profile(db, user_id))
