import os

from movie_catalog import config, models


def test_delete_account_deactivates_and_blocks_token(client, make_user, auth_headers, db):
    user = make_user()
    headers = auth_headers(user)

    response = client.delete("/api/users/account", headers=headers)
    assert response.status_code == 200
    assert response.json()["message"] == "Account deleted successfully"

    db.expire_all()
    stored = db.query(models.User).filter(models.User.user_id == user.user_id).one()
    assert stored.is_active is False

    again = client.get("/api/auth/me", headers=headers)
    assert again.status_code == 401
    assert again.json()["message"] == "Account is deactivated"


def test_public_profile_with_stats(client, make_user, make_movie, make_rating, db):
    user = make_user(bio="Cinephile")
    alpha = make_movie("Alpha")
    bravo = make_movie("Bravo")
    make_rating(user, alpha, 7.0)
    make_rating(user, bravo, 8.0)
    db.add(models.Review(user_id=user.user_id, movie_id=alpha.movie_id, content="Fine"))
    db.add(models.Watchlist(user_id=user.user_id, movie_id=bravo.movie_id))
    db.commit()

    data = client.get(f"/api/users/{user.user_id}").json()["data"]
    assert data["user"]["username"] == "alice"
    assert data["user"]["bio"] == "Cinephile"
    assert "password_hash" not in data["user"]
    assert "email" not in data["user"]
    assert data["stats"] == {"totalRatings": 2, "totalReviews": 1, "watchlistCount": 1, "averageRating": 7.5}
    assert len(data["recentActivity"]["ratings"]) == 2
    assert data["recentActivity"]["reviews"][0]["content"] == "Fine"


def test_profile_not_found(client):
    response = client.get("/api/users/777")
    assert response.status_code == 404
    assert response.json()["message"] == "User not found"


def test_update_profile_only_overwrites_supplied_fields(client, make_user, auth_headers):
    user = make_user(first_name="Alice", last_name="Liddell")

    response = client.put("/api/users/profile", json={"bio": "Likes noir", "first_name": ""}, headers=auth_headers(user))
    assert response.status_code == 200
    updated = response.json()["data"]["user"]
    assert updated["bio"] == "Likes noir"
    assert updated["first_name"] == "Alice"
    assert updated["last_name"] == "Liddell"


def test_upload_profile_picture(client, make_user, auth_headers, db):
    user = make_user()
    response = client.post(
        "/api/users/profile-picture",
        files={"file": ("me.png", b"\x89PNG fake image", "image/png")},
        headers=auth_headers(user),
    )
    assert response.status_code == 200
    url = response.json()["data"]["profile_image_url"]
    assert url.startswith("/uploads/profile-") and url.endswith(".png")
    assert os.path.exists(os.path.join(config.UPLOAD_DIR, url.rsplit("/", 1)[1]))

    db.expire_all()
    assert db.get(models.User, user.user_id).profile_image_url == url


def test_upload_rejects_other_file_types(client, make_user, auth_headers):
    response = client.post(
        "/api/users/profile-picture",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        headers=auth_headers(make_user()),
    )
    assert response.status_code == 400


def test_own_ratings_reviews_and_watchlist(client, make_user, make_movie, make_rating, auth_headers, db):
    user = make_user()
    movies = [make_movie(f"Movie {i}") for i in range(3)]
    for movie in movies:
        make_rating(user, movie, 6.0)
    db.add(models.Watchlist(user_id=user.user_id, movie_id=movies[0].movie_id))
    db.commit()
    headers = auth_headers(user)

    ratings = client.get("/api/users/ratings", params={"limit": 2}, headers=headers).json()["data"]
    assert len(ratings["ratings"]) == 2
    assert ratings["pagination"] == {"page": 1, "limit": 2, "total": 3, "pages": 2}
    assert ratings["ratings"][0]["movie"]["title"].startswith("Movie")

    assert client.get("/api/users/reviews", headers=headers).json()["data"]["reviews"] == []
    watchlist = client.get("/api/users/watchlist", headers=headers).json()["data"]["watchlist"]
    assert [w["movie_id"] for w in watchlist] == [movies[0].movie_id]
