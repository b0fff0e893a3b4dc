# movie_catalog/models.py
from sqlalchemy import (
    Column, Integer, String, Float, ForeignKey, BigInteger, DateTime, Date, Text, Boolean,
    Table, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from .database import Base

movie_genres = Table(
    "movie_genres",
    Base.metadata,
    Column("movie_id", Integer, ForeignKey("movies.movie_id"), primary_key=True),
    Column("genre_id", Integer, ForeignKey("genres.genre_id"), primary_key=True),
)


class User(Base):
    __tablename__ = "users"
    user_id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(100), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(50), nullable=True)
    last_name = Column(String(50), nullable=True)
    date_of_birth = Column(Date, nullable=True)
    profile_image_url = Column(String(255), nullable=True)
    bio = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    last_login = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    email_verified = Column(Boolean, nullable=False, default=False)

    ratings = relationship("Rating", back_populates="user")
    reviews = relationship("Review", back_populates="user")
    watchlist = relationship("Watchlist", back_populates="user")


class Genre(Base):
    __tablename__ = "genres"
    genre_id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), unique=True, nullable=False)

    movies = relationship("Movie", secondary=movie_genres, back_populates="genres")


class Movie(Base):
    __tablename__ = "movies"
    movie_id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False, index=True)
    original_title = Column(String(255), nullable=True)
    tagline = Column(String(255), nullable=True)
    overview = Column(Text, nullable=True)
    release_date = Column(Date, nullable=True)
    runtime_minutes = Column(Integer, nullable=True)
    budget = Column(BigInteger, nullable=True)
    revenue = Column(BigInteger, nullable=True)
    poster_path = Column(String(255), nullable=True)
    backdrop_path = Column(String(255), nullable=True)
    imdb_id = Column(String(20), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    genres = relationship("Genre", secondary=movie_genres, back_populates="movies")
    cast = relationship("Cast", back_populates="movie", order_by="Cast.cast_order")
    crew = relationship("Crew", back_populates="movie")
    ratings = relationship("Rating", back_populates="movie")
    reviews = relationship("Review", back_populates="movie")
    watchlist_entries = relationship("Watchlist", back_populates="movie")


class Person(Base):
    __tablename__ = "people"
    person_id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    biography = Column(Text, nullable=True)
    date_of_birth = Column(Date, nullable=True)
    date_of_death = Column(Date, nullable=True)
    place_of_birth = Column(String(100), nullable=True)
    profile_path = Column(String(255), nullable=True)
    imdb_id = Column(String(20), nullable=True)

    cast_credits = relationship("Cast", back_populates="person")
    crew_credits = relationship("Crew", back_populates="person")


class Cast(Base):
    __tablename__ = "cast"
    cast_id = Column(Integer, primary_key=True, index=True)
    movie_id = Column(Integer, ForeignKey("movies.movie_id"), nullable=False, index=True)
    person_id = Column(Integer, ForeignKey("people.person_id"), nullable=False, index=True)
    character_name = Column(String(100), nullable=True)
    cast_order = Column(Integer, nullable=True)

    movie = relationship("Movie", back_populates="cast")
    person = relationship("Person", back_populates="cast_credits")


class Crew(Base):
    __tablename__ = "crew"
    crew_id = Column(Integer, primary_key=True, index=True)
    movie_id = Column(Integer, ForeignKey("movies.movie_id"), nullable=False, index=True)
    person_id = Column(Integer, ForeignKey("people.person_id"), nullable=False, index=True)
    department = Column(String(50), nullable=True)
    job = Column(String(50), nullable=True)

    movie = relationship("Movie", back_populates="crew")
    person = relationship("Person", back_populates="crew_credits")


class Rating(Base):
    __tablename__ = "ratings"
    rating_id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.user_id"), nullable=False, index=True)
    movie_id = Column(Integer, ForeignKey("movies.movie_id"), nullable=False, index=True)
    rating = Column(Float, nullable=False)  # 0.0 - 10.0, one decimal
    timestamp = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("user_id", "movie_id", name="uq_ratings_user_movie"),
    )

    user = relationship("User", back_populates="ratings")
    movie = relationship("Movie", back_populates="ratings")


class Review(Base):
    # One review per (user, movie) is checked in crud.create_review, not by the schema
    __tablename__ = "reviews"
    review_id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.user_id"), nullable=False, index=True)
    movie_id = Column(Integer, ForeignKey("movies.movie_id"), nullable=False, index=True)
    title = Column(String(255), nullable=True)
    content = Column(Text, nullable=False)
    is_spoiler = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="reviews")
    movie = relationship("Movie", back_populates="reviews")


class Watchlist(Base):
    __tablename__ = "watchlists"
    watchlist_id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.user_id"), nullable=False, index=True)
    movie_id = Column(Integer, ForeignKey("movies.movie_id"), nullable=False, index=True)
    added_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("user_id", "movie_id", name="uq_watchlists_user_movie"),
    )

    user = relationship("User", back_populates="watchlist")
    movie = relationship("Movie", back_populates="watchlist_entries")


class UserActivity(Base):
    __tablename__ = "user_activity"
    activity_id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.user_id"), nullable=False, index=True)
    movie_id = Column(Integer, ForeignKey("movies.movie_id"), nullable=True)
    activity_type = Column(String(20), nullable=False)
    timestamp = Column(DateTime(timezone=True), server_default=func.now())
