from core.database import Base
from sqlalchemy import (Column, Integer, String, Boolean, Text, ForeignKey)
from sqlalchemy.orm import relationship
from .mixins import CreatedAtMixin

class AccessLog(Base, CreatedAtMixin):
    """One row per login attempt."""
    __tablename__ = "access_logs"

    #pk
    id = Column(Integer, primary_key=True, index=True)

    #fk
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    #relationships
    user = relationship("User")

    ip = Column(String(45))
    user_agent = Column(String(512))
    success = Column(Boolean, nullable=False)


class SystemLog(Base, CreatedAtMixin):
    """Append-only audit trail of administrative actions."""
    __tablename__ = "system_logs"

    #pk
    id = Column(Integer, primary_key=True, index=True)

    #fk
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    #relationships
    user = relationship("User")

    action = Column(String(100), nullable=False)
    details = Column(Text)
