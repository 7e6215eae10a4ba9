"""Service model definitions."""

from sqlalchemy import Boolean, Column, Float, Integer, String
from opticare.database import Base


class Service(Base):
    """Represents a bookable service; its duration drives slot spacing."""
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    description = Column(String, nullable=True)
    duration = Column(Integer, nullable=False)  # minutes
    price = Column(Float, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
