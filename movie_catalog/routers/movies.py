# movie_catalog/routers/movies.py
import logging
import time
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from .. import aggregation, auth, crud, models, queries, recommendation_logic, schemas
from ..database import get_db
from ..errors import ValidationError
from ..presentation import envelope, movie_rows_payload, pagination
from ..rate_limit import limiter

router = APIRouter(prefix="/api/movies", tags=["movies"])

MAX_LIMIT = 100


@router.get("")
def list_movies(
    page: int = Query(queries.DEFAULT_PAGE, ge=1),
    limit: int = Query(queries.DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    sort: Optional[str] = Query(queries.DEFAULT_SORT),
    genre: Optional[str] = None,
    year: Optional[int] = Query(None, ge=1, le=9999),
    search: Optional[str] = None,
    minRating: Optional[float] = Query(None, ge=0, le=10),
    db: Session = Depends(get_db),
):
    params = queries.MovieListParams(
        page=page, limit=limit, search=search, year=year, genre=genre,
        min_rating=minRating, sort=queries.resolve_sort(sort),
    )
    rows, total = queries.list_movies(db, params)
    return envelope({
        "movies": movie_rows_payload(rows),
        "pagination": pagination(page, limit, total),
    })


@router.get("/top-rated")
def top_rated_movies(
    limit: int = Query(aggregation.DEFAULT_TOP_RATED_LIMIT, ge=1, le=MAX_LIMIT),
    db: Session = Depends(get_db),
):
    rows = aggregation.get_top_rated(db, limit=limit)
    return envelope({"movies": movie_rows_payload(rows)})


@router.get("/new-releases")
def new_releases(
    page: int = Query(queries.DEFAULT_PAGE, ge=1),
    limit: int = Query(queries.DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    sort: Optional[str] = Query(aggregation.NEW_RELEASES_DEFAULT_SORT),
    db: Session = Depends(get_db),
):
    rows, total = aggregation.get_new_releases(db, page, limit, sort)
    return envelope({
        "movies": movie_rows_payload(rows),
        "pagination": pagination(page, limit, total),
    })


@router.get("/search")
def search_movies(
    q: Optional[str] = None,
    page: int = Query(queries.DEFAULT_PAGE, ge=1),
    limit: int = Query(queries.DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    db: Session = Depends(get_db),
):
    q = (q or "").strip()
    if not q:
        raise ValidationError("Search query is required")
    rows, total = queries.search_movies(db, q, page, limit)
    return envelope({
        "movies": movie_rows_payload(rows),
        "pagination": pagination(page, limit, total),
        "query": q,
    })


@router.get("/genre/{genre}")
def movies_by_genre(
    genre: str,
    page: int = Query(queries.DEFAULT_PAGE, ge=1),
    limit: int = Query(queries.DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    db: Session = Depends(get_db),
):
    rows, total = aggregation.get_movies_by_genre(db, genre, page, limit)
    return envelope({
        "movies": movie_rows_payload(rows),
        "pagination": pagination(page, limit, total),
    })


@router.get("/recommendations")
@limiter.limit("10/minute")
def get_recommendations(
    request: Request,
    limit: int = Query(recommendation_logic.DEFAULT_RECOMMENDATIONS, ge=1, le=50),
    current_user: models.User = Depends(auth.get_current_user),
    db: Session = Depends(get_db),
):
    """Genre-affinity recommendations for the signed-in user."""
    logging.info(f"Received recommendation request for user_id={current_user.user_id}, limit={limit}")
    start_time = time.time()

    recommendations = recommendation_logic.generate_recommendations(db, current_user.user_id, n=limit)

    logging.info(
        f"Generated {len(recommendations.movies)} recommendations for user {current_user.user_id} "
        f"in {time.time() - start_time:.4f} seconds using method: {recommendations.method_used}"
    )
    return envelope(recommendations.model_dump())


@router.get("/{movie_id}")
def get_movie(
    movie_id: int,
    current_user: Optional[models.User] = Depends(auth.get_optional_user),
    db: Session = Depends(get_db),
):
    movie = crud.get_movie_detail(db, movie_id, current_user)
    return envelope({"movie": movie.model_dump()})


@router.post("/{movie_id}/rate")
@limiter.limit("60/minute")
def rate_movie(
    request: Request,
    movie_id: int,
    rating_data: schemas.RatingCreate,
    current_user: models.User = Depends(auth.get_current_user),
    db: Session = Depends(get_db),
):
    logging.info(f"Received rating submission: User {current_user.user_id}, Movie {movie_id}, Rating {rating_data.rating}")
    db_rating = crud.rate_movie(db, current_user.user_id, movie_id, rating_data.rating)
    return envelope(
        {"rating": schemas.Rating.model_validate(db_rating).model_dump()},
        message="Rating submitted successfully",
    )
