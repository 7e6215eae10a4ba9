"""Appointment model definitions."""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import relationship

from opticare.database import Base
from opticare.models.branch import Branch
from opticare.models.optician import Optician
from opticare.models.service import Service


APPOINTMENT_STATUSES = ("pending", "confirmed", "completed", "cancelled", "no_show")

_OCCUPYING = text("status IN ('pending', 'confirmed')")
_OCCUPYING_WITH_OPTICIAN = text("optician_id IS NOT NULL AND status IN ('pending', 'confirmed')")


class Appointment(Base):
    """Represents a booked appointment; scheduled_at is the slot start."""
    __tablename__ = "appointments"
    __table_args__ = (
        Index(
            "uq_appointments_branch_slot",
            "branch_id",
            "scheduled_at",
            unique=True,
            sqlite_where=_OCCUPYING,
            postgresql_where=_OCCUPYING,
        ),
        Index(
            "uq_appointments_optician_slot",
            "optician_id",
            "scheduled_at",
            unique=True,
            sqlite_where=_OCCUPYING_WITH_OPTICIAN,
            postgresql_where=_OCCUPYING_WITH_OPTICIAN,
        ),
    )

    id = Column(Integer, primary_key=True)
    patient_name = Column(String, nullable=False)
    phone = Column(String, nullable=False)
    email = Column(String, nullable=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False, index=True)
    optician_id = Column(Integer, ForeignKey("opticians.id"), nullable=True, index=True)
    scheduled_at = Column(DateTime, nullable=False, index=True)
    status = Column(String, nullable=False, default="pending")
    notes = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.now, nullable=False)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now, nullable=False)

    service = relationship(Service)
    branch = relationship(Branch)
    optician = relationship(Optician)
