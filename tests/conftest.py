"""Shared fixtures: a throwaway SQLite database per test and a fake media store."""
from datetime import timedelta

import pytest
import pytest_asyncio

from api.config import Settings
from controllers import GraphQueryEngine, ProfileController, SessionController
from models.db_storage import DBStorage
from models.user import User
from utils.media import MediaStoreError, UploadResult
from utils.security import TokenService, hash_password


class FakeMediaStore:
    """In-memory stand-in for the remote media store."""

    def __init__(self):
        self.objects = {}
        self.uploaded_from = []
        self.deleted = []
        self.fail_uploads = False
        self.fail_deletes = False
        self.failing_ids = set()
        self._counter = 0

    async def upload(self, local_path):
        if not local_path or self.fail_uploads:
            return None
        self._counter += 1
        public_id = f"obj{self._counter}"
        url = f"https://media.test/vidtube/{public_id}.png"
        self.objects[public_id] = url
        self.uploaded_from.append(local_path)
        return UploadResult(url=url, public_id=public_id)

    async def delete_by_id(self, public_id):
        if self.fail_deletes or public_id in self.failing_ids:
            raise MediaStoreError("media store unavailable")
        self.deleted.append(public_id)
        self.objects.pop(public_id, None)


def make_settings(tmp_path, **overrides):
    values = dict(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        jwt_algorithm="HS256",
        jwt_issuer="vidtube-test",
        access_token_secret="access-secret",
        access_token_expires=timedelta(minutes=15),
        refresh_token_secret="refresh-secret",
        refresh_token_expires=timedelta(days=10),
        cookie_secure=True,
        media_root=str(tmp_path / "media"),
        media_base_url="/media",
        upload_temp_dir=str(tmp_path / "temp"),
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings(tmp_path):
    return make_settings(tmp_path)


@pytest_asyncio.fixture
async def storage(settings):
    store = DBStorage(settings.database_url)
    await store.reload()
    yield store
    await store.close()


@pytest.fixture
def media():
    return FakeMediaStore()


@pytest.fixture
def tokens(storage, settings):
    return TokenService(storage, settings)


@pytest.fixture
def sessions(storage, tokens, media):
    return SessionController(storage, tokens, media)


@pytest.fixture
def profiles(storage, media):
    return ProfileController(storage, media)


@pytest.fixture
def graph(storage):
    return GraphQueryEngine(storage)


@pytest.fixture
def make_file(tmp_path):
    """Write a small file and return its path, like a staged multipart upload."""
    counter = {"n": 0}

    def _make(name="avatar.png"):
        counter["n"] += 1
        path = tmp_path / f"{counter['n']}-{name}"
        path.write_bytes(b"\x89PNG\r\n\x1a\nfake-image")
        return str(path)

    return _make


@pytest.fixture
def user_factory(storage):
    """Insert a user row directly, bypassing registration."""

    async def _create(username, password="secret123", **fields):
        user = User(
            username=username,
            email=fields.pop("email", f"{username}@example.com"),
            full_name=fields.pop("full_name", username.title()),
            avatar=fields.pop("avatar", f"https://media.test/vidtube/{username}-avatar.png"),
            password_hash=hash_password(password),
            **fields,
        )
        return await storage.new(user)

    return _create
