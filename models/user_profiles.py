from core.database import Base
from sqlalchemy import (Column, Integer, String, Boolean, ForeignKey, UniqueConstraint)
from sqlalchemy.orm import relationship
from core.roles import ROLE_EMPLOYEE
from .mixins import CreatedAtMixin

class UserProfile(Base, CreatedAtMixin):
    """
    Links a user to a store with a role.

    A user may hold profiles in several stores; the access token is always
    issued for exactly one of them.
    """
    __tablename__ = "user_profiles"
    __table_args__ = (
        UniqueConstraint("store_id", "document", name="uq_user_profiles_store_document"),
    )

    #pk
    id = Column(Integer, primary_key=True, index=True)

    #fk
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    store_id = Column(Integer, ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, index=True)

    #relationships
    user = relationship("User", back_populates="profiles")
    store = relationship("Store", back_populates="profiles")

    name = Column(String(255), nullable=False)
    # CPF, digits only
    document = Column(String(11), nullable=False)
    role = Column(String(20), nullable=False, default=ROLE_EMPLOYEE)
    job_title = Column(String(100))
    is_active = Column(Boolean, default=True, nullable=False)
