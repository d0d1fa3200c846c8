from core.database import Base
from sqlalchemy import (Column, Integer, String, Boolean, ForeignKey)
from sqlalchemy.orm import relationship
from .mixins import CreatedAtMixin

class Store(Base, CreatedAtMixin):
    __tablename__ = "stores"

    #pk
    id = Column(Integer, primary_key=True, index=True)

    #fk
    admin_user_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    #relationships
    admin = relationship("User")
    profiles = relationship("UserProfile", back_populates="store")

    name = Column(String(255), nullable=False)
    # CNPJ or CPF, digits only
    document = Column(String(14), unique=True, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
