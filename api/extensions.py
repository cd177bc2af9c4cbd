"""
Per-app component bundle.

Built once in create_app() and stored in app.extensions; views reach it
through get_services().
"""
from __future__ import annotations

from dataclasses import dataclass

from flask import current_app

from api.config import Settings
from controllers import GraphQueryEngine, ProfileController, SessionController
from models.db_storage import DBStorage
from utils.media import LocalMediaStore
from utils.security import TokenService

EXTENSION_KEY = "vidtube"


@dataclass(frozen=True)
class Services:
    settings: Settings
    storage: DBStorage
    media: LocalMediaStore
    tokens: TokenService
    sessions: SessionController
    profiles: ProfileController
    graph: GraphQueryEngine

    @classmethod
    def build(cls, settings: Settings, storage=None, media=None) -> "Services":
        storage = storage or DBStorage(settings.database_url)
        media = media or LocalMediaStore(settings.media_root, settings.media_base_url)
        tokens = TokenService(storage, settings)
        return cls(
            settings=settings,
            storage=storage,
            media=media,
            tokens=tokens,
            sessions=SessionController(storage, tokens, media),
            profiles=ProfileController(storage, media),
            graph=GraphQueryEngine(storage),
        )


def get_services() -> Services:
    return current_app.extensions[EXTENSION_KEY]
