from movie_catalog import models


def post_review(client, headers, movie_id, **fields):
    payload = {"movie_id": movie_id, "title": "Thoughts", "content": "Loved it."}
    payload.update(fields)
    return client.post("/api/reviews", json=payload, headers=headers)


def test_create_review(client, make_user, make_movie, auth_headers):
    user = make_user()
    movie = make_movie("Alpha")

    response = post_review(client, auth_headers(user), movie.movie_id)
    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Review created successfully"
    review = body["data"]["review"]
    assert review["content"] == "Loved it."
    assert review["is_spoiler"] is False
    assert review["user"]["username"] == "alice"
    assert review["movie"]["title"] == "Alpha"


def test_second_review_for_same_movie_is_rejected(client, make_user, make_movie, auth_headers, db):
    user = make_user()
    movie = make_movie("Alpha")
    assert post_review(client, auth_headers(user), movie.movie_id).status_code == 201

    response = post_review(client, auth_headers(user), movie.movie_id, content="Changed my mind.")
    assert response.status_code == 400
    assert "already reviewed" in response.json()["message"]
    assert db.query(models.Review).count() == 1


def test_review_for_missing_movie(client, make_user, auth_headers):
    response = post_review(client, auth_headers(make_user()), 12345)
    assert response.status_code == 404
    assert response.json()["message"] == "Movie not found"


def test_review_requires_content(client, make_user, make_movie, auth_headers):
    movie = make_movie("Alpha")
    response = post_review(client, auth_headers(make_user()), movie.movie_id, content="")
    assert response.status_code == 400


def test_update_review_is_partial(client, make_user, make_movie, auth_headers):
    user = make_user()
    movie = make_movie("Alpha")
    review_id = post_review(client, auth_headers(user), movie.movie_id).json()["data"]["review"]["review_id"]

    response = client.put(f"/api/reviews/{review_id}", json={"is_spoiler": True}, headers=auth_headers(user))
    assert response.status_code == 200
    review = response.json()["data"]["review"]
    assert review["is_spoiler"] is True
    assert review["title"] == "Thoughts"
    assert review["content"] == "Loved it."


def test_only_owner_may_update_or_delete(client, make_user, make_movie, auth_headers, db):
    owner = make_user("owner")
    other = make_user("other")
    movie = make_movie("Alpha")
    review_id = post_review(client, auth_headers(owner), movie.movie_id).json()["data"]["review"]["review_id"]

    update = client.put(f"/api/reviews/{review_id}", json={"content": "Hacked"}, headers=auth_headers(other))
    assert update.status_code == 403
    assert update.json()["message"] == "Not authorized to update this review"

    delete = client.delete(f"/api/reviews/{review_id}", headers=auth_headers(other))
    assert delete.status_code == 403
    assert db.query(models.Review).count() == 1

    own_delete = client.delete(f"/api/reviews/{review_id}", headers=auth_headers(owner))
    assert own_delete.status_code == 200
    assert db.query(models.Review).count() == 0


def test_get_review_and_not_found(client, make_user, make_movie, auth_headers):
    user = make_user()
    movie = make_movie("Alpha")
    review_id = post_review(client, auth_headers(user), movie.movie_id).json()["data"]["review"]["review_id"]

    assert client.get(f"/api/reviews/{review_id}").json()["data"]["review"]["review_id"] == review_id
    assert client.get("/api/reviews/999").status_code == 404


def test_movie_reviews_are_paginated_and_sorted(client, make_user, make_movie, auth_headers):
    movie = make_movie("Alpha")
    for name, title in (("ann", "Bravo take"), ("ben", "Alpha take"), ("cat", "Charlie take")):
        post_review(client, auth_headers(make_user(name)), movie.movie_id, title=title)

    data = client.get(
        f"/api/reviews/movie/{movie.movie_id}", params={"sortBy": "title", "sortOrder": "ASC", "limit": 2}
    ).json()["data"]
    assert [r["title"] for r in data["reviews"]] == ["Alpha take", "Bravo take"]
    assert data["pagination"] == {"page": 1, "limit": 2, "total": 3, "pages": 2}

    assert client.get("/api/reviews/movie/999").status_code == 404
