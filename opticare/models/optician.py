"""Optician, working-hours and time-off model definitions."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from opticare.database import Base
from opticare.models.branch import Branch


class Optician(Base):
    """Represents an optician on a branch roster."""
    __tablename__ = "opticians"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False)
    phone = Column(String, nullable=False, default="")
    specialty = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False, index=True)

    branch = relationship(Branch)


class OpticianWorkingHours(Base):
    """Weekly template entry: one row per optician and weekday (0 = Sunday)."""
    __tablename__ = "optician_working_hours"
    __table_args__ = (
        UniqueConstraint("optician_id", "day_of_week", name="uq_working_hours_optician_day"),
    )

    id = Column(Integer, primary_key=True)
    optician_id = Column(Integer, ForeignKey("opticians.id", ondelete="CASCADE"), nullable=False, index=True)
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(String(5), nullable=False)  # "HH:MM"
    end_time = Column(String(5), nullable=False)
    is_available = Column(Boolean, default=True, nullable=False)


class OpticianTimeOff(Base):
    """Absolute interval, bounds inclusive, during which an optician is away."""
    __tablename__ = "optician_time_off"

    id = Column(Integer, primary_key=True)
    optician_id = Column(Integer, ForeignKey("opticians.id", ondelete="CASCADE"), nullable=False, index=True)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    reason = Column(String, nullable=True)
    is_all_day = Column(Boolean, default=True, nullable=False)
