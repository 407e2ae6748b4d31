import pytest
from aiohttp import web

from auth.client import AuthClient, AuthError, options_from_settings
from conftest import serve

SETTINGS = {"voice": "alloy", "personality": "calm", "language": "pt"}


def auth_app() -> web.Application:
    users = {}

    async def me(request):
        session_id = request.cookies.get("sessionId")
        if session_id not in users:
            return web.json_response({"error": "Not authenticated"}, status=401)
        return web.json_response({"user": {"email": session_id}, "settings": SETTINGS})

    async def register(request):
        body = await request.json()
        if body["email"] in users:
            return web.json_response({"error": "User already exists"}, status=409)
        users[body["email"]] = body["password"]
        return web.Response(status=201)

    async def login(request):
        body = await request.json()
        if users.get(body["email"]) != body["password"]:
            return web.json_response({"error": "Invalid credentials"}, status=401)
        response = web.json_response({"user": {"email": body["email"]}, "settings": SETTINGS})
        response.set_cookie("sessionId", body["email"])
        return response

    async def logout(request):
        response = web.json_response({"ok": True})
        response.del_cookie("sessionId")
        return response

    app = web.Application()
    app.router.add_get("/api/auth/me", me)
    app.router.add_post("/api/auth/register", register)
    app.router.add_post("/api/auth/login", login)
    app.router.add_post("/api/auth/logout", logout)
    return app


@pytest.mark.asyncio
async def test_unauthenticated_session_is_none() -> None:
    async with serve(auth_app()) as server:
        async with AuthClient(base_url=str(server.make_url(""))) as auth:
            assert await auth.get_session() is None
            assert not auth.is_authenticated


@pytest.mark.asyncio
async def test_register_logs_in_and_returns_settings() -> None:
    async with serve(auth_app()) as server:
        async with AuthClient(base_url=str(server.make_url(""))) as auth:
            settings = await auth.register("ana@example.com", "secret", "Ana")
            session = await auth.get_session()

    assert settings == SETTINGS
    assert session.email == "ana@example.com"
    assert session.settings == SETTINGS


@pytest.mark.asyncio
async def test_login_error_uses_backend_message() -> None:
    async with serve(auth_app()) as server:
        async with AuthClient(base_url=str(server.make_url(""))) as auth:
            with pytest.raises(AuthError, match="Invalid credentials") as exc_info:
                await auth.login("nobody@example.com", "wrong")

    assert exc_info.value.status == 401


@pytest.mark.asyncio
async def test_logout_clears_user() -> None:
    async with serve(auth_app()) as server:
        async with AuthClient(base_url=str(server.make_url(""))) as auth:
            await auth.register("ana@example.com", "secret", "Ana")
            await auth.logout()

            assert not auth.is_authenticated
            assert await auth.get_session() is None


def test_options_from_settings() -> None:
    options = options_from_settings(SETTINGS, display_name="Ana")

    assert options.display_name == "Ana"
    assert options.voice == "alloy"
    assert options.personality == "calm"
    assert options.language == "pt"


def test_options_from_missing_settings_are_empty() -> None:
    options = options_from_settings(None)

    assert options.display_name is None
    assert options.voice is None


@pytest.mark.asyncio
@pytest.mark.parametrize("body", ['{"settings": {}}', '{"user": null}', "<html>oops</html>"])
async def test_session_without_user_is_auth_error(body) -> None:
    async def me(request):
        return web.Response(text=body, status=200)

    app = web.Application()
    app.router.add_get("/api/auth/me", me)

    async with serve(app) as server:
        async with AuthClient(base_url=str(server.make_url(""))) as auth:
            with pytest.raises(AuthError, match="did not include a user") as exc_info:
                await auth.get_session()

            assert not auth.is_authenticated

    assert exc_info.value.status == 200
