from models.base_model import Base, BaseModel
from sqlalchemy import Column, String, JSON


class User(BaseModel, Base):
    __tablename__ = "users"
    username = Column(String(64), nullable=False, unique=True, index=True)  # stored lowercased
    email = Column(String(255), nullable=False, unique=True, index=True)
    full_name = Column(String(255), nullable=False, index=True)
    avatar = Column(String(1024), nullable=False)
    cover_image = Column(String(1024), nullable=False, default="")
    password_hash = Column(String(255), nullable=False)
    refresh_token = Column(String(1024), nullable=True)
    # ordered list of Video ids, most recent last
    watch_history = Column(JSON, nullable=False, default=lambda: [])

    def __init__(self, *args, **kwargs):
        kwargs.setdefault("cover_image", "")
        kwargs.setdefault("watch_history", [])
        super().__init__(*args, **kwargs)

    @property
    def password(self):
        raise AttributeError("Password: Write-only field")
