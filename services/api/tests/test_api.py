"""HTTP surface: sessions, status codes, error bodies and the end-to-end flows."""
import uuid

import pytest
from sqlalchemy import delete

from triptalk.config import settings
from triptalk.models import User

from conftest import PASSWORD


def _user_body(username, **overrides):
    body = {
        "username": username,
        "password": PASSWORD,
        "displayName": username.title(),
        "email": f"{username}@example.com",
    }
    body.update(overrides)
    return body


@pytest.fixture
async def people(make_user):
    for name in ("alice", "bob", "carol"):
        await make_user(name)


class TestService:
    async def test_service_check(self, client):
        resp = await client.get("/test")
        assert resp.status_code == 200
        assert resp.json() == {"message": "tripTalk web service is running!"}

    async def test_unknown_route_renders_error_body(self, client):
        resp = await client.get("/nope")
        assert resp.status_code == 404
        assert "error" in resp.json()


class TestRegistration:
    async def test_register_returns_public_profile(self, client):
        resp = await client.post("/users", json=_user_body("alice"))

        assert resp.status_code == 201
        body = resp.json()
        assert body["username"] == "alice"
        assert body["displayName"] == "Alice"
        assert body["bio"] == ""
        assert "password" not in body

    async def test_duplicate_username_is_400(self, client):
        assert (await client.post("/users", json=_user_body("alice"))).status_code == 201

        resp = await client.post("/users", json=_user_body("alice", email="x@y.com"))

        assert resp.status_code == 400
        assert resp.json() == {"error": "This username is already taken. Please choose another."}

    async def test_missing_field_is_400(self, client):
        body = _user_body("alice")
        del body["email"]
        resp = await client.post("/users", json=body)
        assert resp.status_code == 400
        assert "error" in resp.json()

    async def test_weak_password_is_400(self, client):
        resp = await client.post("/users", json=_user_body("alice", password="abc"))
        assert resp.status_code == 400

    async def test_non_json_body_is_400(self, client):
        resp = await client.post(
            "/users", content=b"not json", headers={"Content-Type": "application/json"}
        )
        assert resp.status_code == 400
        assert resp.json()["error"].startswith("Missing or invalid field(s)")

    async def test_search_users_is_public(self, client, people):
        resp = await client.get("/users", params={"q": "AL"})
        assert resp.status_code == 200
        assert [u["username"] for u in resp.json()] == ["alice"]
        assert all("password" not in u for u in resp.json())


class TestLogin:
    async def test_status_when_logged_out(self, client):
        resp = await client.get("/login")
        assert resp.status_code == 200
        assert resp.json() == {"loggedIn": False}

    async def test_login_sets_session_cookie(self, client, people):
        resp = await client.post("/login", json={"username": "alice", "password": PASSWORD})

        assert resp.status_code == 200
        assert resp.json()["loggedIn"] is True
        assert settings.session_cookie_name in resp.cookies

        status = (await client.get("/login")).json()
        assert status["loggedIn"] is True
        assert status["user"]["username"] == "alice"

    async def test_wrong_password_is_401(self, client, people):
        resp = await client.post("/login", json={"username": "alice", "password": "Wrong123!"})
        assert resp.status_code == 401
        assert resp.json() == {"error": "Username or password incorrect."}

    async def test_missing_credentials_is_400(self, client, people):
        resp = await client.post("/login", json={"username": "alice"})
        assert resp.status_code == 400

    async def test_logout_is_idempotent(self, client):
        resp = await client.delete("/login")
        assert resp.status_code == 200
        assert resp.json() == {"message": "Not logged in, but logout complete."}

    async def test_forged_cookie_is_anonymous(self, client):
        resp = await client.get(
            "/profile", headers={"Cookie": f"{settings.session_cookie_name}=forged"}
        )
        assert resp.status_code == 401
        assert resp.json() == {"error": "You must be logged in to access this resource."}


class TestLogout:
    async def test_logout_then_protected_route_is_401(self, login, people):
        alice = await login("alice")

        resp = await alice.delete("/login")
        assert resp.status_code == 200
        assert resp.json() == {"message": "Logged out successfully."}

        assert (await alice.get("/profile")).status_code == 401
        assert (await alice.get("/login")).json() == {"loggedIn": False}


class TestProfile:
    async def test_requires_login(self, client):
        assert (await client.get("/profile")).status_code == 401
        assert (await client.put("/profile", json={"bio": "x"})).status_code == 401

    async def test_partial_update(self, login, people):
        alice = await login("alice")

        resp = await alice.put("/profile", json={"bio": "Backpacker", "location": "Lisbon"})
        assert resp.status_code == 200

        resp = await alice.put("/profile", json={"location": "Porto"})
        body = resp.json()
        assert body["bio"] == "Backpacker"
        assert body["location"] == "Porto"
        assert (await alice.get("/profile")).json()["location"] == "Porto"

    async def test_vanished_user_loses_session(self, login, people, session_factory):
        alice = await login("alice")
        async with session_factory() as session:
            await session.execute(delete(User).where(User.username == "alice"))
            await session.commit()

        first = await alice.get("/profile")
        assert first.status_code == 404
        assert first.json() == {"error": "User not found."}
        assert settings.session_cookie_name not in alice.cookies

        assert (await alice.get("/profile")).status_code == 401
        assert (await alice.get("/login")).json() == {"loggedIn": False}

    async def test_vanished_user_reported_logged_out(self, login, people, session_factory):
        alice = await login("alice")
        async with session_factory() as session:
            await session.execute(delete(User).where(User.username == "alice"))
            await session.commit()

        assert (await alice.get("/login")).json() == {"loggedIn": False}
        assert (await alice.get("/profile")).status_code == 401

    async def test_nothing_to_update(self, login, people):
        alice = await login("alice")
        resp = await alice.put("/profile", json={})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Nothing to update."}


class TestContents:
    async def test_create_requires_login(self, client):
        resp = await client.post("/contents", json={"text": "Hello"})
        assert resp.status_code == 401

    async def test_create_and_search(self, login, client, people):
        bob = await login("bob")

        resp = await bob.post("/contents", json={"text": "Hello Lisbon"})
        assert resp.status_code == 201
        post = resp.json()
        assert post["username"] == "bob"
        assert post["imageUrl"] == ""

        found = (await client.get("/contents", params={"q": "lisbon"})).json()
        assert [p["id"] for p in found] == [post["id"]]

    async def test_empty_text_is_400(self, login, people):
        bob = await login("bob")
        resp = await bob.post("/contents", json={"text": "  "})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Content text is required."}


class TestLikesAndComments:
    @pytest.fixture
    async def post_id(self, login, people):
        bob = await login("bob")
        return (await bob.post("/contents", json={"text": "Hello"})).json()["id"]

    async def test_like_flow(self, login, client, post_id):
        alice = await login("alice")

        resp = await alice.post(f"/contents/{post_id}/like")
        assert resp.status_code == 200
        assert resp.json() == {"message": "Post liked."}

        again = await alice.post(f"/contents/{post_id}/like")
        assert again.status_code == 400
        assert again.json() == {"error": "You already liked this post."}

        likes = (await client.get(f"/contents/{post_id}/likes")).json()
        assert likes == {"count": 1, "users": ["alice"]}

        assert (await alice.delete(f"/contents/{post_id}/like")).status_code == 200
        assert (await client.get(f"/contents/{post_id}/likes")).json()["count"] == 0
        assert (await alice.delete(f"/contents/{post_id}/like")).status_code == 404

    async def test_like_requires_login(self, client, post_id):
        assert (await client.post(f"/contents/{post_id}/like")).status_code == 401

    async def test_malformed_and_unknown_ids(self, login, people):
        alice = await login("alice")

        bad = await alice.post("/contents/123/like")
        assert bad.status_code == 400
        assert bad.json() == {"error": "Invalid content ID."}

        missing = await alice.post(f"/contents/{uuid.uuid4()}/like")
        assert missing.status_code == 404

    async def test_comment_flow(self, login, client, post_id):
        alice = await login("alice")

        resp = await alice.post(f"/contents/{post_id}/comments", json={"text": "Nice!"})
        assert resp.status_code == 201
        assert resp.json()["contentId"] == post_id

        blank = await alice.post(f"/contents/{post_id}/comments", json={"text": ""})
        assert blank.status_code == 400

        comments = (await client.get(f"/contents/{post_id}/comments")).json()
        assert [(c["username"], c["text"]) for c in comments] == [("alice", "Nice!")]


class TestFollowAndFeed:
    async def test_feed_requires_login(self, client):
        assert (await client.get("/feed")).status_code == 401

    async def test_alice_follows_bob_and_sees_hello(self, login, people):
        alice = await login("alice")
        bob = await login("bob")

        resp = await alice.post("/follow", json={"usernameToFollow": "bob"})
        assert resp.status_code == 200
        assert resp.json()["message"] == "Now following user."
        assert resp.json()["follow"]["followeeUsername"] == "bob"

        await bob.post("/contents", json={"text": "Hello"})

        feed = (await alice.get("/feed")).json()
        assert [p["text"] for p in feed] == ["Hello"]

    async def test_follow_errors(self, login, people):
        alice = await login("alice")

        missing = await alice.post("/follow", json={})
        assert missing.status_code == 400
        assert missing.json() == {"error": "You must provide 'usernameToFollow'."}

        self_follow = await alice.post("/follow", json={"usernameToFollow": "alice"})
        assert self_follow.status_code == 400

        ghost = await alice.post("/follow", json={"usernameToFollow": "ghost"})
        assert ghost.status_code == 404

        assert (await alice.post("/follow", json={"usernameToFollow": "bob"})).status_code == 200
        dup = await alice.post("/follow", json={"usernameToFollow": "bob"})
        assert dup.status_code == 400
        assert dup.json() == {"error": "You already follow this user."}

    async def test_unfollow(self, login, people):
        alice = await login("alice")
        await alice.post("/follow", json={"usernameToFollow": "bob"})

        resp = await alice.request("DELETE", "/follow", json={"usernameToUnfollow": "bob"})
        assert resp.status_code == 200
        assert resp.json() == {"message": "Unfollowed user."}

        again = await alice.request("DELETE", "/follow", json={"usernameToUnfollow": "bob"})
        assert again.status_code == 404


class TestFriendRequests:
    async def test_accept_makes_users_follow_each_other(self, login, people):
        alice = await login("alice")
        bob = await login("bob")

        sent = await bob.post("/friend-requests", json={"toUsername": "alice"})
        assert sent.status_code == 201
        request_id = sent.json()["id"]
        assert sent.json()["status"] == "pending"

        incoming = (await alice.get("/friend-requests")).json()
        assert [r["id"] for r in incoming] == [request_id]

        resp = await alice.post(f"/friend-requests/{request_id}/accept")
        assert resp.status_code == 200
        body = resp.json()
        assert body["message"] == "Friend request accepted."
        assert body["request"]["status"] == "accepted"
        assert body["request"]["handledAt"] is not None

        await alice.post("/contents", json={"text": "from alice"})
        await bob.post("/contents", json={"text": "from bob"})
        assert [p["text"] for p in (await alice.get("/feed")).json()] == ["from bob"]
        assert [p["text"] for p in (await bob.get("/feed")).json()] == ["from alice"]

        again = await alice.post(f"/friend-requests/{request_id}/accept")
        assert again.status_code == 400
        assert again.json() == {"error": "Request already handled."}

    async def test_only_recipient_may_accept(self, login, people):
        bob = await login("bob")
        carol = await login("carol")
        request_id = (await bob.post("/friend-requests", json={"toUsername": "alice"})).json()["id"]

        resp = await carol.post(f"/friend-requests/{request_id}/accept")

        assert resp.status_code == 403
        assert resp.json() == {"error": "You are not the recipient of this request."}

    async def test_request_errors(self, login, people):
        bob = await login("bob")

        assert (await bob.post("/friend-requests", json={})).status_code == 400
        assert (await bob.post("/friend-requests", json={"toUsername": "bob"})).status_code == 400
        assert (await bob.post("/friend-requests", json={"toUsername": "ghost"})).status_code == 404

        assert (await bob.post("/friend-requests", json={"toUsername": "alice"})).status_code == 201
        dup = await bob.post("/friend-requests", json={"toUsername": "alice"})
        assert dup.status_code == 400
        assert dup.json() == {"error": "Friend request already pending."}

        assert (await bob.post("/friend-requests/not-an-id/accept")).status_code == 400
        assert (await bob.post(f"/friend-requests/{uuid.uuid4()}/accept")).status_code == 404
