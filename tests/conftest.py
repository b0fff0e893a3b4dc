import datetime
import os
import tempfile

# Configure before the package reads its settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="movie-catalog-uploads-")

import pytest
from fastapi.testclient import TestClient

from movie_catalog import auth, models
from movie_catalog.database import Base, SessionLocal, engine
from movie_catalog.main import app


@pytest.fixture()
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client(db):
    return TestClient(app)


@pytest.fixture()
def make_user(db):
    def _make(username="alice", password="secret123", **kwargs):
        user = models.User(
            username=username,
            email=f"{username}@example.com",
            password_hash=auth.hash_password(password),
            **kwargs,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture()
def auth_headers():
    def _headers(user):
        return {"Authorization": f"Bearer {auth.create_access_token(user.user_id)}"}
    return _headers


@pytest.fixture()
def make_movie(db):
    def _make(title, release_date=None, genres=(), runtime_minutes=None, overview=None):
        movie = models.Movie(
            title=title,
            release_date=release_date,
            runtime_minutes=runtime_minutes,
            overview=overview,
        )
        for name in genres:
            genre = db.query(models.Genre).filter(models.Genre.name == name).first()
            if genre is None:
                genre = models.Genre(name=name)
                db.add(genre)
            movie.genres.append(genre)
        db.add(movie)
        db.commit()
        db.refresh(movie)
        return movie
    return _make


@pytest.fixture()
def make_rating(db):
    def _make(user, movie, value, timestamp=None):
        rating = models.Rating(user_id=user.user_id, movie_id=movie.movie_id, rating=value)
        if timestamp is not None:
            rating.timestamp = timestamp
        db.add(rating)
        db.commit()
        return rating
    return _make


@pytest.fixture()
def rated_movies(make_user, make_movie, make_rating):
    """Three movies whose averages are 8.5, 6.0 and 9.0."""
    raters = [make_user(f"rater{i}") for i in range(2)]
    alpha = make_movie("Alpha", datetime.date(2001, 5, 1), ["Drama"])
    bravo = make_movie("Bravo", datetime.date(1999, 3, 1), ["Comedy"])
    charlie = make_movie("Charlie", datetime.date(2010, 8, 1), ["Drama", "Thriller"])
    make_rating(raters[0], alpha, 8.0)
    make_rating(raters[1], alpha, 9.0)
    make_rating(raters[0], bravo, 6.0)
    make_rating(raters[0], charlie, 9.0)
    return {"alpha": alpha, "bravo": bravo, "charlie": charlie, "raters": raters}
