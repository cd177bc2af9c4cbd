#!/usr/bin/env python3
"""
Shared SQLAlchemy base and mixin for the vidtube models.

- UUID primary key (String(36)) with a Python-side default
- created_at / updated_at timestamps set by the application, so a freshly
  committed row never needs a refresh round-trip (attributes stay loaded
  under the async session)
- to_dict() returns the row as a plain document keyed by column name; the
  aggregation pipelines in models/aggregation.py work on these documents
"""

from __future__ import annotations

from datetime import datetime, timezone
import uuid

from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import declarative_base

# Declarative base for all models
Base = declarative_base()


def _uuid_str() -> str:
    """Return a canonical UUIDv4 string (36 chars, with hyphens)."""
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BaseModel:
    """
    Base mixin for all persistent models.

    Provides id, created_at, updated_at and document conversion.
    updated_at is refreshed by ``onupdate`` both for ORM flushes and for the
    Core UPDATE statements issued by DBStorage.update_fields.
    """

    id = Column(String(36), primary_key=True, default=_uuid_str, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    def __init__(self, *args, **kwargs):
        """
        Allow attribute initialization via kwargs.
        Defaults are filled in eagerly so the instance is complete before flush.
        """
        for key, value in kwargs.items():
            if key != "__class__":
                setattr(self, key, value)
        if getattr(self, "id", None) is None:
            self.id = _uuid_str()
        now = _utcnow()
        if getattr(self, "created_at", None) is None:
            self.created_at = now
        if getattr(self, "updated_at", None) is None:
            self.updated_at = now

    def __str__(self) -> str:
        return f"[{self.__class__.__name__}] ({self.id})"

    def to_dict(self) -> dict:
        """Return the row as a document keyed by column name."""
        return {column.name: getattr(self, column.name) for column in self.__table__.columns}
