# movie_catalog/routers/watchlists.py
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from .. import auth, crud, models, schemas
from ..database import get_db
from ..presentation import envelope, pagination

router = APIRouter(prefix="/api/watchlists", tags=["watchlists"])


@router.post("", status_code=201)
def add_to_watchlist(
    item: schemas.WatchlistCreate,
    current_user: models.User = Depends(auth.get_current_user),
    db: Session = Depends(get_db),
):
    entry = crud.add_to_watchlist(db, current_user.user_id, item.movie_id)
    return envelope(
        {"watchlistItem": schemas.WatchlistItem.model_validate(entry).model_dump()},
        message="Added to watchlist successfully",
    )


@router.get("")
def get_watchlist(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sortBy: Optional[str] = "added_at",
    sortOrder: Optional[str] = "DESC",
    current_user: models.User = Depends(auth.get_current_user),
    db: Session = Depends(get_db),
):
    rows, total = crud.get_watchlist(db, current_user.user_id, page, limit, sortBy, sortOrder)
    return envelope({
        "watchlist": [schemas.WatchlistItem.model_validate(w).model_dump() for w in rows],
        "pagination": pagination(page, limit, total),
    })


@router.get("/check/{movie_id}")
def check_in_watchlist(
    movie_id: int,
    current_user: models.User = Depends(auth.get_current_user),
    db: Session = Depends(get_db),
):
    in_watchlist = crud.get_watchlist_item(db, current_user.user_id, movie_id) is not None
    return envelope({"isInWatchlist": in_watchlist})


@router.delete("/{movie_id}")
def remove_from_watchlist(
    movie_id: int,
    current_user: models.User = Depends(auth.get_current_user),
    db: Session = Depends(get_db),
):
    crud.remove_from_watchlist(db, current_user.user_id, movie_id)
    return envelope(message="Removed from watchlist successfully")
