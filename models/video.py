from sqlalchemy import (
    Column,
    String,
    Integer,
    Float,
    Boolean,
    ForeignKey,
    Text,
    CheckConstraint,
    Index,
)

from models.base_model import BaseModel, Base


class Video(BaseModel, Base):
    __tablename__ = "videos"

    video_file = Column(String(1024), nullable=False)
    thumbnail = Column(String(1024), nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    duration = Column(Float, nullable=False, default=0.0)  # seconds
    views = Column(Integer, nullable=False, default=0)
    is_published = Column(Boolean, nullable=False, default=True)

    owner_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    __table_args__ = (
        CheckConstraint("views >= 0", name="ck_videos_views_nonnegative"),
        Index("ix_videos_owner_id", "owner_id"),
    )
