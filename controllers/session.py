"""
Session controller: register, login, logout, refresh, change password.

Session lifecycle: Anonymous -> Authenticated (login) -> refresh loop ->
LoggedOut (back to Anonymous). The only server-side session state is the
refresh token stored on the user row, managed by the TokenService.

Controllers return plain response data and raise utils.exceptions errors;
the blueprints wrap results in the response envelope and handle cookies.
"""
from __future__ import annotations

import asyncio
import contextlib
import logging
import os
from typing import Any, Dict, Optional

from sqlalchemy import or_

from models.partial_update import PartialUpdate
from models.schemas.common import is_blank, normalize_identifier
from models.schemas.user import UserOutSchema
from models.user import User
from utils.exceptions import BadRequest, Conflict, InternalError, NotFound, Unauthorized
from utils.security import hash_password, verify_password

logger = logging.getLogger(__name__)

user_out_schema = UserOutSchema()


def _discard_staged(path: Optional[str]) -> None:
    if path:
        with contextlib.suppress(OSError):
            os.remove(path)


class SessionController:
    def __init__(self, storage, tokens, media):
        self.storage = storage
        self.tokens = tokens
        self.media = media

    async def register(
        self,
        full_name: Optional[str],
        email: Optional[str],
        username: Optional[str],
        password: Optional[str],
        avatar_path: Optional[str] = None,
        cover_path: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Create an account. The avatar must be stored before the user row exists."""
        if any(is_blank(field) for field in (full_name, email, username, password)):
            _discard_staged(avatar_path)
            _discard_staged(cover_path)
            raise BadRequest("All fields are required")

        email = normalize_identifier(email)
        username = normalize_identifier(username)

        existing = await self.storage.find_one(User, or_(User.username == username, User.email == email))
        if existing:
            _discard_staged(avatar_path)
            _discard_staged(cover_path)
            raise Conflict("User with email or username already exists")

        if not avatar_path:
            _discard_staged(cover_path)
            raise BadRequest("Avatar file is required")

        avatar = await self.media.upload(avatar_path)
        if avatar is None or not avatar.url:
            _discard_staged(cover_path)
            raise BadRequest("Avatar file is required")
        cover = await self.media.upload(cover_path) if cover_path else None

        password_hash = await asyncio.to_thread(hash_password, password)
        user = User(
            full_name=full_name.strip(),
            avatar=avatar.url,
            cover_image=cover.url if cover and cover.url else "",
            email=email,
            password_hash=password_hash,
            username=username,
        )
        await self.storage.new(user)

        created = await self.storage.get(User, user.id)
        if created is None:
            raise InternalError("Something went wrong while registering the user")
        logger.info("Registered user %s", created.id)
        return user_out_schema.dump(created)

    async def login(
        self,
        password: Optional[str],
        username: Optional[str] = None,
        email: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Check credentials and start a session. Returns the user and both tokens."""
        criteria = []
        if not is_blank(username):
            criteria.append(User.username == normalize_identifier(username))
        if not is_blank(email):
            criteria.append(User.email == normalize_identifier(email))
        if not criteria:
            raise BadRequest("Username or email is required")

        user = await self.storage.find_one(User, or_(*criteria))
        if user is None:
            raise NotFound("User does not exist")

        if not await asyncio.to_thread(verify_password, password or "", user.password_hash):
            logger.info("Failed login for user %s", user.id)
            raise Unauthorized("Invalid user credentials")

        pair = await self.tokens.issue_pair(user.id)
        logged_in = await self.storage.get(User, user.id)
        logger.info("User %s logged in", user.id)
        return {
            "user": user_out_schema.dump(logged_in),
            "accessToken": pair.access_token,
            "refreshToken": pair.refresh_token,
        }

    async def logout(self, user_id: str) -> Dict[str, Any]:
        await self.tokens.revoke(user_id)
        logger.info("User %s logged out", user_id)
        return {}

    async def refresh(self, incoming_refresh_token: Optional[str]) -> Dict[str, Any]:
        """Trade a current refresh token for a new pair; the old one stops working."""
        user_id = await self.tokens.verify_refresh(incoming_refresh_token)
        pair = await self.tokens.issue_pair(user_id)
        return {"accessToken": pair.access_token, "refreshToken": pair.refresh_token}

    async def change_password(
        self, user_id: str, old_password: Optional[str], new_password: Optional[str]
    ) -> Dict[str, Any]:
        user = await self.storage.get(User, user_id)
        if user is None:
            raise NotFound("User does not exist")

        if not await asyncio.to_thread(verify_password, old_password or "", user.password_hash):
            raise BadRequest("Invalid old password")
        if is_blank(new_password):
            raise BadRequest("New password is required")

        password_hash = await asyncio.to_thread(hash_password, new_password)
        await self.storage.update_fields(User, user.id, PartialUpdate.of(password_hash=password_hash))
        logger.info("Password changed for user %s", user.id)
        return {}

    def current_user(self, user: User) -> Dict[str, Any]:
        return user_out_schema.dump(user)
