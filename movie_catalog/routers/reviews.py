# movie_catalog/routers/reviews.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from .. import auth, crud, models, schemas
from ..database import get_db
from ..presentation import envelope, pagination
from ..rate_limit import limiter

router = APIRouter(prefix="/api/reviews", tags=["reviews"])


def _review(review: models.Review) -> dict:
    return schemas.Review.model_validate(review).model_dump()


@router.post("", status_code=201)
@limiter.limit("30/minute")
def create_review(
    request: Request,
    review: schemas.ReviewCreate,
    current_user: models.User = Depends(auth.get_current_user),
    db: Session = Depends(get_db),
):
    db_review = crud.create_review(db, current_user.user_id, review)
    return envelope({"review": _review(db_review)}, message="Review created successfully")


@router.get("/movie/{movie_id}")
def movie_reviews(
    movie_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sortBy: Optional[str] = "created_at",
    sortOrder: Optional[str] = "DESC",
    db: Session = Depends(get_db),
):
    rows, total = crud.get_movie_reviews(db, movie_id, page, limit, sortBy, sortOrder)
    return envelope({
        "reviews": [_review(r) for r in rows],
        "pagination": pagination(page, limit, total),
    })


@router.get("/{review_id}")
def get_review(review_id: int, db: Session = Depends(get_db)):
    return envelope({"review": _review(crud.get_review_or_404(db, review_id))})


@router.put("/{review_id}")
def update_review(
    review_id: int,
    changes: schemas.ReviewUpdate,
    current_user: models.User = Depends(auth.get_current_user),
    db: Session = Depends(get_db),
):
    review = crud.update_review(db, current_user.user_id, review_id, changes)
    return envelope({"review": _review(review)}, message="Review updated successfully")


@router.delete("/{review_id}")
def delete_review(
    review_id: int,
    current_user: models.User = Depends(auth.get_current_user),
    db: Session = Depends(get_db),
):
    crud.delete_review(db, current_user.user_id, review_id)
    return envelope(message="Review deleted successfully")
