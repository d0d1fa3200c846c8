from core.database import Base
from sqlalchemy import (Column, Integer, String, Boolean, ForeignKey)
from sqlalchemy.orm import relationship
from .mixins import CreatedAtMixin, UpdatedAtMixin

class User(Base, CreatedAtMixin, UpdatedAtMixin):
    """Login identity. Store membership and role live on UserProfile."""
    __tablename__ = "users"

    #pk
    id = Column(Integer, primary_key=True, index=True)

    #relationships
    phones = relationship("UserPhone", back_populates="user", cascade="all, delete-orphan")
    profiles = relationship("UserProfile", back_populates="user")
    refresh_tokens = relationship("RefreshToken", back_populates="user")

    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)


class UserPhone(Base):
    __tablename__ = "user_phones"

    #pk
    id = Column(Integer, primary_key=True, index=True)

    #fk
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    #relationships
    user = relationship("User", back_populates="phones")

    number = Column(String(20), nullable=False)
