"""Tests for the register, login and logout tools."""

from library_service.tools.auth import login_handler, logout_handler, register_handler


def error_of(response: dict) -> dict:
    assert response.get("isError") is True, response
    return response["error"]


class TestRegisterTool:
    async def test_register(self, shared_services):
        response = await register_handler({"username": "alice", "password": "wonderland"})

        assert "isError" not in response
        assert response["data"]["user"]["name"] == "alice"
        assert response["data"]["user"]["role"] == "user"
        assert "password" not in response["data"]["user"]

    async def test_duplicate(self, shared_services, alice):
        response = await register_handler({"username": "alice", "password": "again"})

        error = error_of(response)
        assert error["code"] == "USER_EXISTS"
        assert error["status"] == 409

    async def test_missing_fields(self, shared_services):
        error = error_of(await register_handler({"username": "alice"}))

        assert error["status"] == 400
        assert "password" in error["message"]


class TestLoginTool:
    async def test_login_returns_usable_token(self, shared_services, alice):
        response = await login_handler({"username": "alice", "password": "wonderland"})

        token = response["data"]["session_token"]
        identity = shared_services.auth.resolve_identity(token)
        assert identity.user_id == alice.id
        assert response["content"][0]["text"] == "Logged in as 'alice' (user)"

    async def test_unknown_user(self, shared_services):
        error = error_of(await login_handler({"username": "nobody", "password": "pw"}))
        assert (error["code"], error["status"]) == ("USER_NOT_FOUND", 404)

    async def test_wrong_password(self, shared_services, alice):
        error = error_of(await login_handler({"username": "alice", "password": "nope"}))
        assert (error["code"], error["status"]) == ("INVALID_PASSWORD", 401)


class TestLogoutTool:
    async def test_logout(self, shared_services, user_token):
        response = await logout_handler({"session_token": user_token})

        assert "isError" not in response
        error = error_of(await logout_handler({"session_token": user_token}))
        assert error["status"] == 401

    async def test_logout_without_token(self, shared_services):
        error = error_of(await logout_handler({}))
        assert (error["code"], error["status"]) == ("UNAUTHENTICATED", 401)
