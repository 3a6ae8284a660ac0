"""
HTTP-level tests: the FastAPI app is driven through httpx's ASGI
transport with the database-backed collaborators swapped for the
in-memory ones from conftest.
"""

from datetime import datetime, timezone

import httpx
import pytest
import pytest_asyncio

from social_auth.api import deps
from social_auth.main import app
from social_auth.models import UserRole

from conftest import FrozenClock

API = "/api/v1/users"

SIGNUP = {
    "email": "a@x.com",
    "username": "alice",
    "password": "Pw1!",
    "password_confirm": "Pw1!",
    "name": "Alice",
}


@pytest.fixture
def clock():
    # Cookies carry absolute expiry dates, so start from the real time
    return FrozenClock(datetime.now(timezone.utc).replace(microsecond=0))


@pytest_asyncio.fixture
async def client(directory, notifier, social_graph, codec, hasher):
    app.dependency_overrides[deps.get_user_directory] = lambda: directory
    app.dependency_overrides[deps.get_social_graph] = lambda: social_graph
    app.dependency_overrides[deps.get_notifier] = lambda: notifier
    app.dependency_overrides[deps.get_token_codec] = lambda: codec
    app.dependency_overrides[deps.get_password_hasher] = lambda: hasher

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _signup(client, **overrides):
    response = await client.post(f"{API}/signup", json={**SIGNUP, **overrides})
    assert response.status_code == 201, response.text
    return response.json()


def _bearer(token):
    return {"Authorization": f"Bearer {token}"}


class TestSignupAndLogin:
    @pytest.mark.asyncio
    async def test_signup_returns_token_user_and_cookie(self, client):
        response = await client.post(f"{API}/signup", json=SIGNUP)

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "success"
        assert body["token_type"] == "bearer"
        assert body["user"]["username"] == "alice"
        assert body["user"]["role"] == "user"
        assert "password_hash" not in body["user"]
        assert "reset_code" not in body["user"]

        set_cookie = response.headers["set-cookie"]
        assert set_cookie.startswith(f"jwt={body['access_token']}")
        assert "httponly" in set_cookie.lower()

    @pytest.mark.asyncio
    async def test_signup_password_mismatch(self, client):
        response = await client.post(f"{API}/signup", json={**SIGNUP, "password_confirm": "nope"})

        assert response.status_code == 400
        assert response.json()["status"] == "fail"

    @pytest.mark.asyncio
    async def test_signup_with_invalid_body_is_400(self, client):
        response = await client.post(f"{API}/signup", json={**SIGNUP, "email": "not-an-email"})

        assert response.status_code == 400
        assert "email" in response.json()["detail"]

    @pytest.mark.asyncio
    async def test_duplicate_signup_conflicts(self, client):
        await _signup(client)
        response = await client.post(f"{API}/signup", json={**SIGNUP, "username": "other"})
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_login_by_username(self, client):
        await _signup(client)
        response = await client.post(f"{API}/login", json={"username": "alice", "password": "Pw1!"})

        assert response.status_code == 200
        assert response.json()["access_token"]

    @pytest.mark.asyncio
    async def test_bad_credentials_are_indistinguishable(self, client):
        await _signup(client)

        wrong_password = await client.post(f"{API}/login", json={"email": "a@x.com", "password": "nope"})
        unknown_user = await client.post(f"{API}/login", json={"email": "ghost@x.com", "password": "Pw1!"})

        assert wrong_password.status_code == unknown_user.status_code == 401
        assert wrong_password.json() == unknown_user.json()

    @pytest.mark.asyncio
    async def test_login_without_password_is_400(self, client):
        response = await client.post(f"{API}/login", json={"email": "a@x.com"})
        assert response.status_code == 400


class TestSession:
    @pytest.mark.asyncio
    async def test_me_with_bearer_token(self, client):
        token = (await _signup(client))["access_token"]
        client.cookies.clear()

        response = await client.get(f"{API}/me", headers=_bearer(token))

        assert response.status_code == 200
        assert response.json()["email"] == "a@x.com"

    @pytest.mark.asyncio
    async def test_me_with_cookie(self, client):
        await _signup(client)

        response = await client.get(f"{API}/me")

        assert response.status_code == 200
        assert response.json()["username"] == "alice"

    @pytest.mark.asyncio
    async def test_me_without_token(self, client):
        response = await client.get(f"{API}/me")

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"
        assert response.json()["status"] == "fail"

    @pytest.mark.asyncio
    async def test_logout_clears_the_cookie_session(self, client):
        await _signup(client)

        response = await client.get(f"{API}/logout")

        assert response.status_code == 200
        assert response.json()["message"] == "Logged out"
        assert response.headers["set-cookie"].startswith("jwt=loggedout")
        assert (await client.get(f"{API}/me")).status_code == 401

    @pytest.mark.asyncio
    async def test_bearer_token_survives_logout(self, client):
        token = (await _signup(client))["access_token"]
        await client.get(f"{API}/logout")

        response = await client.get(f"{API}/me", headers=_bearer(token))
        assert response.status_code == 200


class TestPasswordReset:
    @pytest.mark.asyncio
    async def test_reset_code_may_be_sent_as_a_number(self, client, notifier):
        await _signup(client)
        await client.post(f"{API}/forgotPassword", json={"email": "a@x.com"})

        response = await client.patch(f"{API}/resetPassword", json={
            "email": "a@x.com",
            "code": int(notifier.last_code()),
            "password": "NewPw1!",
            "password_confirm": "NewPw1!",
        })

        assert response.status_code == 200, response.text

    @pytest.mark.asyncio
    async def test_forgot_then_reset(self, client, notifier, clock):
        old_token = (await _signup(client))["access_token"]
        client.cookies.clear()
        clock.advance(10)

        response = await client.post(f"{API}/forgotPassword", json={"email": "a@x.com"})
        assert response.status_code == 200
        assert response.json()["message"] == "Token sent to email!"

        clock.advance(60)
        response = await client.patch(f"{API}/resetPassword", json={
            "email": "a@x.com",
            "code": notifier.last_code(),
            "password": "NewPw1!",
            "password_confirm": "NewPw1!",
        })
        assert response.status_code == 200
        new_token = response.json()["access_token"]
        client.cookies.clear()

        assert (await client.get(f"{API}/me", headers=_bearer(old_token))).status_code == 401
        assert (await client.get(f"{API}/me", headers=_bearer(new_token))).status_code == 200

    @pytest.mark.asyncio
    async def test_forgot_password_for_unknown_user(self, client):
        response = await client.post(f"{API}/forgotPassword", json={"email": "ghost@x.com"})
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_email_failure_is_a_server_error(self, client, notifier):
        await _signup(client)
        notifier.fail = True

        response = await client.post(f"{API}/forgotPassword", json={"username": "alice"})

        assert response.status_code == 500
        assert response.json()["status"] == "error"

    @pytest.mark.asyncio
    async def test_reset_with_wrong_code(self, client):
        await _signup(client)
        await client.post(f"{API}/forgotPassword", json={"email": "a@x.com"})

        response = await client.patch(f"{API}/resetPassword", json={
            "email": "a@x.com",
            "code": "12",
            "password": "NewPw1!",
            "password_confirm": "NewPw1!",
        })

        assert response.status_code == 400
        assert response.json()["detail"] == "Code is invalid or has expired"


class TestUpdateMyPassword:
    @pytest.mark.asyncio
    async def test_missing_current_password_is_401(self, client):
        token = (await _signup(client))["access_token"]

        response = await client.patch(
            f"{API}/updateMyPassword",
            json={"new_password": "NewPw1!"},
            headers=_bearer(token),
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Your current password is wrong."

    @pytest.mark.asyncio
    async def test_requires_login(self, client):
        response = await client.patch(f"{API}/updateMyPassword", json={
            "current_password": "Pw1!",
            "new_password": "NewPw1!",
        })
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_change_password(self, client, clock):
        old_token = (await _signup(client))["access_token"]
        client.cookies.clear()
        clock.advance(5)

        response = await client.patch(
            f"{API}/updateMyPassword",
            json={"current_password": "Pw1!", "new_password": "NewPw1!"},
            headers=_bearer(old_token),
        )

        assert response.status_code == 200
        client.cookies.clear()
        assert (await client.get(f"{API}/me", headers=_bearer(old_token))).status_code == 401
        login = await client.post(f"{API}/login", json={"email": "a@x.com", "password": "NewPw1!"})
        assert login.status_code == 200

    @pytest.mark.asyncio
    async def test_wrong_current_password(self, client):
        token = (await _signup(client))["access_token"]

        response = await client.patch(
            f"{API}/updateMyPassword",
            json={"current_password": "wrong", "new_password": "NewPw1!"},
            headers=_bearer(token),
        )
        assert response.status_code == 401


class TestUsers:
    @pytest.mark.asyncio
    async def test_admin_list_forbidden_for_users(self, client):
        token = (await _signup(client))["access_token"]

        response = await client.get(API, headers=_bearer(token))

        assert response.status_code == 403
        assert response.json()["detail"] == "You do not have permission to perform this action"

    @pytest.mark.asyncio
    async def test_admin_list_for_admins(self, client, directory, codec, hasher):
        await _signup(client)
        client.cookies.clear()
        admin = await directory.create(
            email="root@x.com",
            username="root",
            password_hash=hasher.hash("Pw1!"),
            role=UserRole.ADMIN,
        )

        response = await client.get(API, headers=_bearer(codec.issue(admin.id)))

        assert response.status_code == 200
        assert {u["username"] for u in response.json()} == {"alice", "root"}

    @pytest.mark.asyncio
    async def test_admin_list_requires_login(self, client):
        assert (await client.get(API)).status_code == 401

    @pytest.mark.asyncio
    async def test_profile_knows_the_viewer(self, client):
        body = await _signup(client)
        user_id = body["user"]["id"]
        client.cookies.clear()

        anonymous = await client.get(f"{API}/profile/{user_id}")
        garbage = await client.get(f"{API}/profile/{user_id}", headers=_bearer("garbage"))
        owner = await client.get(f"{API}/profile/{user_id}", headers=_bearer(body["access_token"]))

        assert anonymous.status_code == garbage.status_code == owner.status_code == 200
        assert anonymous.json()["is_me"] is False
        assert garbage.json()["is_me"] is False
        assert owner.json()["is_me"] is True

    @pytest.mark.asyncio
    async def test_profile_not_found(self, client):
        response = await client.get(f"{API}/profile/00000000-0000-0000-0000-000000000001")

        assert response.status_code == 404
        assert response.json()["detail"] == "No user found with that ID"


@pytest.mark.asyncio
async def test_unknown_route(client):
    response = await client.get("/api/v1/nothing-here")

    assert response.status_code == 404
    assert response.json() == {"status": "fail", "detail": "Not found"}


@pytest.mark.asyncio
async def test_service_info(client):
    response = await client.get("/")

    assert response.status_code == 200
    assert response.json()["api"] == "/api/v1"
