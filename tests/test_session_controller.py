import pytest

from models.user import User
from utils.exceptions import BadRequest, Conflict, NotFound, Unauthorized
from utils.security import verify_password


async def _register(sessions, make_file, username="alice", email=None, password="secret123", cover=False):
    return await sessions.register(
        f"{username.title()} Example",
        email or f"{username}@example.com",
        username,
        password,
        avatar_path=make_file("avatar.png"),
        cover_path=make_file("cover.png") if cover else None,
    )


@pytest.mark.asyncio
async def test_register_returns_public_profile(sessions, make_file, storage):
    user = await sessions.register(
        "  Alice Example ", " Alice@Example.com", "Alice", "secret123",
        avatar_path=make_file(), cover_path=make_file("cover.png"),
    )

    assert user["username"] == "alice"
    assert user["email"] == "alice@example.com"
    assert user["fullName"] == "Alice Example"
    assert user["avatar"].startswith("https://media.test/")
    assert user["coverImage"].startswith("https://media.test/")
    assert user["watchHistory"] == []
    assert "password" not in user and "passwordHash" not in user and "password_hash" not in user
    assert "refreshToken" not in user and "refresh_token" not in user

    stored = await storage.get(User, user["_id"])
    assert verify_password("secret123", stored.password_hash)


@pytest.mark.asyncio
async def test_register_without_cover_stores_empty_cover(sessions, make_file):
    user = await _register(sessions, make_file)
    assert user["coverImage"] == ""


@pytest.mark.asyncio
@pytest.mark.parametrize("username,email", [
    ("alice", "other@example.com"),
    ("someoneelse", "alice@example.com"),
    ("ALICE", "another@example.com"),
])
async def test_register_duplicate_is_conflict(sessions, make_file, username, email):
    await _register(sessions, make_file)

    with pytest.raises(Conflict):
        await sessions.register("Whoever", email, username, "different-pass", avatar_path=make_file())


@pytest.mark.asyncio
@pytest.mark.parametrize("field", ["full_name", "email", "username", "password"])
async def test_register_blank_field_is_bad_request(sessions, make_file, field):
    args = dict(full_name="Alice", email="alice@example.com", username="alice", password="secret123")
    args[field] = "   "

    with pytest.raises(BadRequest):
        await sessions.register(
            args["full_name"], args["email"], args["username"], args["password"], avatar_path=make_file()
        )


@pytest.mark.asyncio
async def test_register_without_avatar_creates_nothing(sessions, storage, media):
    with pytest.raises(BadRequest):
        await sessions.register("Alice", "alice@example.com", "alice", "secret123", avatar_path=None)

    assert await storage.find("users", {"username": "alice"}) == []
    assert media.objects == {}


@pytest.mark.asyncio
async def test_register_failed_avatar_upload_creates_nothing(sessions, storage, media, make_file):
    media.fail_uploads = True

    with pytest.raises(BadRequest):
        await _register(sessions, make_file)

    assert await storage.find("users") == []


@pytest.mark.asyncio
async def test_login_by_username_and_email(sessions, make_file, storage):
    await _register(sessions, make_file)

    by_name = await sessions.login("secret123", username="ALICE")
    by_email = await sessions.login("secret123", email="alice@example.com")

    assert by_name["user"]["username"] == "alice"
    assert by_email["user"]["username"] == "alice"
    assert "accessToken" in by_name and "refreshToken" in by_name
    assert "passwordHash" not in by_name["user"]


@pytest.mark.asyncio
async def test_login_refresh_token_matches_stored_value(sessions, make_file, storage):
    user = await _register(sessions, make_file)

    result = await sessions.login("secret123", username="alice")

    stored = await storage.get(User, user["_id"])
    assert stored.refresh_token == result["refreshToken"]


@pytest.mark.asyncio
async def test_login_without_identifier_is_bad_request(sessions):
    with pytest.raises(BadRequest):
        await sessions.login("secret123")


@pytest.mark.asyncio
async def test_login_unknown_user_is_not_found(sessions):
    with pytest.raises(NotFound):
        await sessions.login("secret123", username="ghost")


@pytest.mark.asyncio
async def test_login_wrong_password_is_unauthorized(sessions, make_file):
    await _register(sessions, make_file)

    with pytest.raises(Unauthorized):
        await sessions.login("not-the-password", username="alice")


@pytest.mark.asyncio
async def test_refresh_rotates_and_rejects_superseded_token(sessions, make_file, storage):
    user = await _register(sessions, make_file)
    first = await sessions.login("secret123", username="alice")

    rotated = await sessions.refresh(first["refreshToken"])

    assert rotated["refreshToken"] != first["refreshToken"]
    assert (await storage.get(User, user["_id"])).refresh_token == rotated["refreshToken"]
    with pytest.raises(Unauthorized):
        await sessions.refresh(first["refreshToken"])


@pytest.mark.asyncio
async def test_new_login_invalidates_previous_refresh_token(sessions, make_file):
    await _register(sessions, make_file)
    first = await sessions.login("secret123", username="alice")
    await sessions.login("secret123", email="alice@example.com")

    with pytest.raises(Unauthorized):
        await sessions.refresh(first["refreshToken"])


@pytest.mark.asyncio
@pytest.mark.parametrize("token", [None, "", "not.a.jwt"])
async def test_refresh_with_bad_token_is_unauthorized(sessions, token):
    with pytest.raises(Unauthorized):
        await sessions.refresh(token)


@pytest.mark.asyncio
async def test_logout_clears_refresh_token_and_is_idempotent(sessions, make_file, storage):
    user = await _register(sessions, make_file)
    tokens = await sessions.login("secret123", username="alice")

    assert await sessions.logout(user["_id"]) == {}
    assert await sessions.logout(user["_id"]) == {}

    assert (await storage.get(User, user["_id"])).refresh_token is None
    with pytest.raises(Unauthorized):
        await sessions.refresh(tokens["refreshToken"])


@pytest.mark.asyncio
async def test_change_password_with_wrong_old_password_keeps_hash(sessions, make_file, storage):
    user = await _register(sessions, make_file)
    before = (await storage.get(User, user["_id"])).password_hash

    with pytest.raises(BadRequest):
        await sessions.change_password(user["_id"], "wrong-old", "brand-new-pass")

    assert (await storage.get(User, user["_id"])).password_hash == before


@pytest.mark.asyncio
async def test_change_password_then_login_with_new_password(sessions, make_file):
    user = await _register(sessions, make_file)

    assert await sessions.change_password(user["_id"], "secret123", "brand-new-pass") == {}

    with pytest.raises(Unauthorized):
        await sessions.login("secret123", username="alice")
    result = await sessions.login("brand-new-pass", username="alice")
    assert result["user"]["_id"] == user["_id"]


@pytest.mark.asyncio
async def test_change_password_rejects_blank_new_password(sessions, make_file):
    user = await _register(sessions, make_file)

    with pytest.raises(BadRequest):
        await sessions.change_password(user["_id"], "secret123", "  ")


@pytest.mark.asyncio
async def test_current_user_is_public_profile(sessions, make_file, storage):
    user = await _register(sessions, make_file)
    row = await storage.get(User, user["_id"])

    profile = sessions.current_user(row)

    assert profile["_id"] == user["_id"]
    assert "passwordHash" not in profile
