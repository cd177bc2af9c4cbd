"""
Subscription edge: ``subscriber`` follows ``channel``.

No uniqueness constraint on the (subscriber, channel) pair; duplicate edges
are stored and counted as-is by the channel profile query.
"""
from sqlalchemy import Column, String, ForeignKey, Index

from models.base_model import BaseModel, Base


class Subscription(BaseModel, Base):
    __tablename__ = "subscriptions"

    subscriber_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    channel_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    __table_args__ = (
        Index("ix_subscriptions_subscriber_id", "subscriber_id"),
        Index("ix_subscriptions_channel_id", "channel_id"),
    )
