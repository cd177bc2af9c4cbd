"""Profile controller: account details, avatar and cover image."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from models.partial_update import UNSET, PartialUpdate
from models.schemas.common import is_blank, normalize_identifier
from models.schemas.user import UserOutSchema
from models.user import User
from utils.exceptions import BadRequest, Conflict, NotFound
from utils.media import MediaStoreError, UploadResult, public_id_from_url

logger = logging.getLogger(__name__)

user_out_schema = UserOutSchema()


class ProfileController:
    def __init__(self, storage, media):
        self.storage = storage
        self.media = media

    async def update_account_details(
        self, user_id: str, full_name: Optional[str] = None, email: Optional[str] = None
    ) -> Dict[str, Any]:
        changes = PartialUpdate.of(
            full_name=UNSET if is_blank(full_name) else full_name.strip(),
            email=UNSET if is_blank(email) else normalize_identifier(email),
        )
        if changes.is_empty():
            raise BadRequest("fullName or email is required")

        if changes.is_set("email"):
            taken = await self.storage.find_one(User, User.email == changes.values["email"], User.id != user_id)
            if taken:
                raise Conflict("Email is already in use")

        user = await self.storage.update_fields(User, user_id, changes)
        if user is None:
            raise NotFound("User does not exist")
        return user_out_schema.dump(user)

    async def _upload(self, local_path: Optional[str], label: str) -> UploadResult:
        uploaded = await self.media.upload(local_path)
        if uploaded is None or not uploaded.url:
            raise BadRequest(f"Error while uploading {label}")
        return uploaded

    async def _discard(self, uploaded: UploadResult) -> None:
        try:
            await self.media.delete_by_id(uploaded.public_id)
        except MediaStoreError:
            logger.warning("Could not remove orphaned media object %s", uploaded.public_id)

    async def update_avatar(self, user_id: str, avatar_path: Optional[str]) -> Dict[str, Any]:
        """Swap the avatar. The old object is deleted only after the new upload worked.

        If deleting the old object fails the new one is removed again and the
        user row is left untouched.
        """
        if not avatar_path:
            raise BadRequest("Avatar file is missing")

        current = await self.storage.get(User, user_id)
        if current is None:
            raise NotFound("User does not exist")
        old_avatar_url = current.avatar

        uploaded = await self._upload(avatar_path, "avatar")

        if old_avatar_url:
            try:
                await self.media.delete_by_id(public_id_from_url(old_avatar_url))
            except MediaStoreError as exc:
                logger.warning("Deleting old avatar of user %s failed: %s", user_id, exc)
                await self._discard(uploaded)
                raise BadRequest("Error while deleting old avatar") from exc

        user = await self.storage.update_fields(User, user_id, PartialUpdate.of(avatar=uploaded.url))
        if user is None:
            raise NotFound("User does not exist")
        return user_out_schema.dump(user)

    async def update_cover_image(self, user_id: str, cover_path: Optional[str]) -> Dict[str, Any]:
        if not cover_path:
            raise BadRequest("Cover image file is missing")

        uploaded = await self._upload(cover_path, "cover image")

        user = await self.storage.update_fields(User, user_id, PartialUpdate.of(cover_image=uploaded.url))
        if user is None:
            await self._discard(uploaded)
            raise NotFound("User does not exist")
        return user_out_schema.dump(user)
