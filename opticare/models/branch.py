"""Branch model definitions."""

from sqlalchemy import Column, Integer, String
from opticare.database import Base


class Branch(Base):
    """Represents a physical practice location."""
    __tablename__ = "branches"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    address = Column(String, nullable=False, default="")
    phone = Column(String, nullable=False, default="")
    email = Column(String, nullable=False, default="")
    operating_hours = Column(String, nullable=False, default="")  # e.g. "Mon-Fri: 08:00-17:00"
