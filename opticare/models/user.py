"""User model definitions."""

from sqlalchemy import Column, Integer, String
from opticare.database import Base


class User(Base):
    """Represents a staff account allowed into the admin routes."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True)
    full_name = Column(String, nullable=True)
    role = Column(String, default="staff")  # staff/admin
