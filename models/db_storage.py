from __future__ import annotations

import logging
from os import getenv
from typing import Any, Dict, List, Mapping, Optional, Type

from dotenv import load_dotenv
from sqlalchemy import event, select, text, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from models.base_model import Base
from models.partial_update import PartialUpdate
from models.subscription import Subscription
from models.user import User
from models.video import Video

load_dotenv()
logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///vidtube.db"

# Map collection names to models for document queries and aggregation lookups
classes = {
    "users": User,
    "subscriptions": Subscription,
    "videos": Video,
}


class DBStorage:
    """Async document-style facade over SQLAlchemy.

    Each call opens its own short-lived session. The engine uses NullPool so
    no connection outlives the event loop that opened it; Flask runs every
    async view on its own loop.
    """

    __engine = None
    __session_factory = None

    def __init__(self, database_url: Optional[str] = None, echo: bool = False):
        """Initialize engine from the given URL or DATABASE_URL"""
        url = database_url or getenv("DATABASE_URL", DEFAULT_DATABASE_URL)
        self.__engine = create_async_engine(url, echo=echo, poolclass=NullPool)
        if self.__engine.url.get_backend_name() == "sqlite":
            # Enable SQLite foreign keys (needed for ON DELETE CASCADE / SET NULL)
            @event.listens_for(self.__engine.sync_engine, "connect")
            def _set_sqlite_pragma(dbapi_connection, connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()
        self.__session_factory = async_sessionmaker(bind=self.__engine, expire_on_commit=False)

    async def reload(self):
        """Create tables"""
        logger.debug("Creating tables on %s", self.__engine.url.render_as_string(hide_password=True))
        async with self.__engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self):
        """Round-trip a trivial query; raises SQLAlchemyError when the database is down"""
        async with self.__engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def close(self):
        """Dispose of the engine (app shutdown / test teardown)"""
        await self.__engine.dispose()

    def get_session(self) -> AsyncSession:
        """Expose a fresh AsyncSession for advanced querying"""
        return self.__session_factory()

    async def get(self, cls: Type, id: Optional[str]):
        """Fetch one object by class and ID"""
        if cls not in classes.values() or not id:
            return None
        async with self.get_session() as session:
            return await session.get(cls, id)

    async def find_one(self, cls: Type, *criteria):
        """First object matching the SQLAlchemy criteria, or None"""
        async with self.get_session() as session:
            result = await session.execute(select(cls).where(*criteria).limit(1))
            return result.scalars().first()

    async def find(self, collection: str, filters: Optional[Mapping[str, Any]] = None) -> List[Dict]:
        """Documents of a collection matching an equality / membership filter.

        A list, tuple or set value matches any of its members; anything else
        is compared for equality. Rows come back in insertion order.
        """
        cls = classes[collection]
        stmt = select(cls)
        for name, value in (filters or {}).items():
            column = getattr(cls, name)
            if isinstance(value, (list, tuple, set, frozenset)):
                if not value:
                    return []
                stmt = stmt.where(column.in_(list(value)))
            else:
                stmt = stmt.where(column == value)
        stmt = stmt.order_by(cls.created_at, cls.id)
        async with self.get_session() as session:
            result = await session.execute(stmt)
            return [obj.to_dict() for obj in result.scalars().all()]

    async def new(self, obj):
        """Add object and commit"""
        async with self.get_session() as session:
            session.add(obj)
            try:
                await session.commit()
            except SQLAlchemyError:
                await session.rollback()
                raise
        return obj

    async def update_fields(self, cls: Type, id: str, changes: PartialUpdate):
        """Apply a partial update as a single UPDATE statement, return the fresh row.

        Returns None when no row has that id.
        """
        async with self.get_session() as session:
            if not changes.is_empty():
                try:
                    result = await session.execute(
                        update(cls).where(cls.id == id).values(**changes.as_dict())
                    )
                    await session.commit()
                except SQLAlchemyError:
                    await session.rollback()
                    raise
                if result.rowcount == 0:
                    return None
            return await session.get(cls, id, populate_existing=True)

    async def aggregate(self, pipeline) -> List[Dict]:
        """Run an aggregation pipeline (see models.aggregation) against this store"""
        return await pipeline.run(self)
