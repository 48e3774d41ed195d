from uuid import uuid4

from sqlalchemy import Column, DateTime, Integer, String, func

from app.database.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    full_name = Column(String(180), nullable=False)
    email = Column(String(180), unique=True, index=True, nullable=False)
    role = Column(String(20), nullable=False, default="intern", index=True)
    registration_step = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
