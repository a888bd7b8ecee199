import pytest
from fastapi import WebSocketDisconnect

from cinesocial.schemas.movie import OMDBMovieData
from cinesocial.services.omdb_service import OMDBService

from conftest import PASSWORD, PUBLISHABLE_KEY, api_headers


def register(client, username="carol", email="carol@example.com"):
    return client.post(
        "/api/auth/register",
        json={"email": email, "password": PASSWORD, "username": username},
        headers=api_headers(),
    )


def test_health_needs_no_key(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_api_requires_publishable_key(client, movie):
    assert client.get(f"/api/movies/{movie.id}").status_code == 401
    assert client.get(f"/api/movies/{movie.id}", headers={"apikey": "wrong"}).status_code == 401
    assert client.get(f"/api/movies/{movie.id}", headers=api_headers()).status_code == 200


def test_register_and_login(client):
    response = register(client)
    assert response.status_code == 201
    body = response.json()
    assert body["email"] == "carol@example.com"
    assert body["profile"]["username"] == "carol"
    assert body["profile"]["display_name"] == "carol"

    response = client.post(
        "/api/auth/login",
        json={"email": "carol@example.com", "password": PASSWORD},
        headers=api_headers(),
    )
    assert response.status_code == 200
    token = response.json()["access_token"]

    me = client.get("/api/auth/me", headers={**api_headers(), "Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["username"] == "carol"


def test_register_duplicate_email(client):
    register(client)
    assert register(client, username="carol2").status_code == 409


def test_login_wrong_password(client):
    register(client)
    response = client.post(
        "/api/auth/login",
        json={"email": "carol@example.com", "password": "WrongPass123"},
        headers=api_headers(),
    )
    assert response.status_code == 401


def test_review_flow(client, alice, bob, movie):
    response = client.post(
        "/api/reviews/",
        json={"movie_id": movie.id, "rating": 8, "review_text": "Great film"},
        headers=api_headers(alice),
    )
    assert response.status_code == 201
    review_id = response.json()["id"]

    feed = client.get("/api/reviews/", headers=api_headers()).json()
    assert [r["id"] for r in feed] == [review_id]
    assert feed[0]["user"]["username"] == "alice"

    response = client.post(
        f"/api/reviews/{review_id}/comments",
        json={"comment_text": "Agreed!"},
        headers=api_headers(bob),
    )
    assert response.status_code == 201
    comment_id = response.json()["id"]

    response = client.put(f"/api/comments/{comment_id}/vote", json={"vote_type": 1}, headers=api_headers(alice))
    assert response.status_code == 200

    counts = client.get(f"/api/comments/{comment_id}/votes", headers=api_headers()).json()
    assert counts == {"upvotes": 1, "downvotes": 0}

    response = client.delete(f"/api/reviews/{review_id}", headers=api_headers(alice))
    assert response.status_code == 204
    assert client.get(f"/api/reviews/{review_id}", headers=api_headers()).status_code == 404


def test_rating_validation(client, alice, movie):
    response = client.post(
        "/api/reviews/",
        json={"movie_id": movie.id, "rating": 11, "review_text": "Too good"},
        headers=api_headers(alice),
    )
    assert response.status_code == 422


def test_review_update_rejects_unknown_fields(client, alice, movie):
    review_id = client.post(
        "/api/reviews/",
        json={"movie_id": movie.id, "rating": 5},
        headers=api_headers(alice),
    ).json()["id"]

    response = client.patch(f"/api/reviews/{review_id}", json={"user_id": "someone"}, headers=api_headers(alice))
    assert response.status_code == 422


def test_error_mapping(client, alice, bob, movie):
    # unique violation -> 409
    assert client.post(f"/api/profiles/{bob.id}/follow", headers=api_headers(alice)).status_code == 201
    response = client.post(f"/api/profiles/{bob.id}/follow", headers=api_headers(alice))
    assert response.status_code == 409
    assert response.json()["code"] == "23505"

    # foreign key violation -> 422
    response = client.post("/api/saved/watchlist", json={"movie_id": "missing"}, headers=api_headers(alice))
    assert response.status_code == 422

    # policy violation -> 403
    list_id = client.post("/api/lists/", json={"name": "Mine"}, headers=api_headers(alice)).json()["id"]
    response = client.post(f"/api/lists/{list_id}/movies", json={"movie_id": movie.id}, headers=api_headers(bob))
    assert response.status_code == 403

    # private list -> 404 for others
    assert client.get(f"/api/lists/{list_id}", headers=api_headers(bob)).status_code == 404
    assert client.get(f"/api/lists/{list_id}", headers=api_headers(alice)).status_code == 200


def test_null_visibility_patch_is_rejected(client, alice):
    list_id = client.post("/api/lists/", json={"name": "Mine"}, headers=api_headers(alice)).json()["id"]

    response = client.patch(f"/api/lists/{list_id}", json={"is_public": None}, headers=api_headers(alice))
    assert response.status_code == 422

    lists = client.get("/api/lists/", headers=api_headers(alice))
    assert lists.status_code == 200
    assert [(entry["id"], entry["is_public"]) for entry in lists.json()] == [(list_id, False)]


def test_comments_on_private_review_are_hidden(client, alice, bob, movie):
    review_id = client.post(
        "/api/reviews/",
        json={"movie_id": movie.id, "rating": 4, "is_public": False},
        headers=api_headers(alice),
    ).json()["id"]
    client.post(f"/api/reviews/{review_id}/comments", json={"comment_text": "secret note"}, headers=api_headers(alice))

    assert client.get(f"/api/reviews/{review_id}/comments", headers=api_headers()).json() == []
    assert client.get(f"/api/reviews/{review_id}/comments", headers=api_headers(bob)).json() == []

    own = client.get(f"/api/reviews/{review_id}/comments", headers=api_headers(alice)).json()
    assert [c["comment_text"] for c in own] == ["secret note"]


def test_follow_status(client, alice, bob):
    client.post(f"/api/profiles/{bob.id}/follow", headers=api_headers(alice))

    status = client.get(f"/api/profiles/{alice.id}/following/{bob.id}", headers=api_headers()).json()
    assert status["is_following"] is True

    followers = client.get(f"/api/profiles/{bob.id}/followers", headers=api_headers()).json()
    assert [p["username"] for p in followers] == ["alice"]


def test_import_movie_from_omdb(client, alice, monkeypatch):
    payload = {"imdbID": "tt0068646", "Title": "The Godfather", "Year": "1972", "Poster": "N/A"}
    lookups = []

    def fake_get_movie(cls, imdb_id):
        lookups.append(imdb_id)
        return OMDBMovieData.model_validate(payload)

    monkeypatch.setattr(OMDBService, "get_movie", classmethod(fake_get_movie))

    first = client.post("/api/movies/imdb/tt0068646", headers=api_headers(alice))
    second = client.post("/api/movies/imdb/tt0068646", headers=api_headers(alice))

    assert first.status_code == 201
    assert first.json()["id"] == second.json()["id"]
    assert first.json()["poster_url"] is None
    assert lookups == ["tt0068646", "tt0068646"]


# ==================== WEBSOCKETS ====================

def test_comment_feed_over_websocket(client, alice, bob, movie):
    review_id = client.post(
        "/api/reviews/",
        json={"movie_id": movie.id, "rating": 8, "review_text": "Great film"},
        headers=api_headers(alice),
    ).json()["id"]

    with client.websocket_connect(f"/realtime/reviews/{review_id}/comments?apikey={PUBLISHABLE_KEY}") as websocket:
        client.post(f"/api/reviews/{review_id}/comments", json={"comment_text": "Live!"}, headers=api_headers(bob))
        message = websocket.receive_json()

    assert message["comment_text"] == "Live!"
    assert message["review_id"] == review_id


def test_vote_feed_over_websocket(client, alice, bob, movie):
    review_id = client.post(
        "/api/reviews/",
        json={"movie_id": movie.id, "rating": 8},
        headers=api_headers(alice),
    ).json()["id"]
    comment_id = client.post(
        f"/api/reviews/{review_id}/comments",
        json={"comment_text": "Agreed!"},
        headers=api_headers(bob),
    ).json()["id"]

    with client.websocket_connect(f"/realtime/comments/{comment_id}/votes?apikey={PUBLISHABLE_KEY}") as websocket:
        client.put(f"/api/comments/{comment_id}/vote", json={"vote_type": -1}, headers=api_headers(alice))
        message = websocket.receive_json()

    assert message["eventType"] == "INSERT"
    assert message["table"] == "comment_votes"
    assert message["new"]["vote_type"] == -1


def test_websocket_rejects_wrong_key(client, alice, movie):
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/realtime/reviews/whatever/comments?apikey=wrong"):
            pass
