# movie_catalog/routers/stats.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import aggregation, auth, models
from ..database import get_db
from ..presentation import envelope

router = APIRouter(prefix="/api/stats", tags=["stats"])


@router.get("/database")
def database_stats(db: Session = Depends(get_db)):
    return envelope({"stats": aggregation.get_database_stats(db)})


@router.get("/years-with-multiple-releases")
def years_with_multiple_releases(db: Session = Depends(get_db)):
    return envelope({"years": aggregation.get_years_with_multiple_releases(db)})


@router.get("/top-decades-by-runtime")
def top_decades_by_runtime(db: Session = Depends(get_db)):
    return envelope({"decades": aggregation.get_top_decades_by_runtime(db)})


@router.get("/genre-distribution")
def genre_distribution(db: Session = Depends(get_db)):
    return envelope({"genres": aggregation.get_genre_distribution(db)})


@router.get("/rating-distribution")
def rating_distribution(db: Session = Depends(get_db)):
    return envelope({"ratings": aggregation.get_rating_distribution(db)})


@router.get("/user-activity")
def user_activity(
    current_user: models.User = Depends(auth.get_current_user),
    db: Session = Depends(get_db),
):
    return envelope(aggregation.get_user_activity_stats(db, current_user.user_id))
