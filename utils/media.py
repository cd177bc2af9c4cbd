"""
Remote media store seam.

Controllers only see ``upload(local_path) -> UploadResult | None`` and
``delete_by_id(public_id)``. LocalMediaStore keeps objects in a directory
and hands out URLs under MEDIA_BASE_URL; filesystem work runs in a thread so
the event loop is never blocked.
"""
from __future__ import annotations

import asyncio
import logging
import os
import shutil
import uuid
from dataclasses import dataclass
from typing import Optional, Protocol
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


class MediaStoreError(Exception):
    """Raised when the media store fails to delete an object."""


@dataclass(frozen=True)
class UploadResult:
    url: str
    public_id: str


class MediaStore(Protocol):
    async def upload(self, local_path: Optional[str]) -> Optional[UploadResult]: ...

    async def delete_by_id(self, public_id: str) -> None: ...


def public_id_from_url(url: str) -> str:
    """Public id of a stored object: last path segment of its URL, extension dropped."""
    path = urlparse(url).path or url
    file_name = path.rstrip("/").split("/")[-1]
    return file_name.split(".")[0]


def _remove_quietly(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError:
        logger.warning("Could not remove temporary upload %s", path)


class LocalMediaStore:
    def __init__(self, root: str, base_url: str = "/media"):
        self.root = root
        self.base_url = base_url.rstrip("/")

    def path_for(self, name: str) -> str:
        return os.path.join(self.root, name)

    def _upload(self, local_path: str) -> Optional[UploadResult]:
        try:
            if not os.path.isfile(local_path):
                logger.warning("Upload source %s does not exist", local_path)
                return None
            os.makedirs(self.root, exist_ok=True)
            public_id = uuid.uuid4().hex
            extension = os.path.splitext(local_path)[1].lower()
            name = f"{public_id}{extension}"
            shutil.copyfile(local_path, self.path_for(name))
            return UploadResult(url=f"{self.base_url}/{name}", public_id=public_id)
        except OSError:
            logger.exception("Upload of %s failed", local_path)
            return None
        finally:
            # the staged temp file is consumed whether or not the upload worked
            _remove_quietly(local_path)

    async def upload(self, local_path: Optional[str]) -> Optional[UploadResult]:
        if not local_path:
            return None
        return await asyncio.to_thread(self._upload, local_path)

    def _delete(self, public_id: str) -> None:
        if not public_id or os.sep in public_id or public_id.startswith("."):
            raise MediaStoreError(f"Invalid public id {public_id!r}")
        if not os.path.isdir(self.root):
            return
        try:
            for name in os.listdir(self.root):
                if os.path.splitext(name)[0] == public_id:
                    os.remove(self.path_for(name))
        except OSError as exc:
            raise MediaStoreError(f"Could not delete {public_id}") from exc

    async def delete_by_id(self, public_id: str) -> None:
        await asyncio.to_thread(self._delete, public_id)
