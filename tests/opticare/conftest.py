import os
from dataclasses import dataclass
from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from opticare.database import Base  # noqa: E402
from opticare.models.appointment import Appointment  # noqa: E402
from opticare.models.branch import Branch  # noqa: E402
from opticare.models.optician import Optician, OpticianTimeOff, OpticianWorkingHours  # noqa: E402
from opticare.models.service import Service  # noqa: E402
from opticare.models.user import User  # noqa: E402


@dataclass
class Practice:
    branch: Branch
    service: Service
    optician: Optician


@pytest.fixture
def scheduling_db():
    engine = create_engine('sqlite:///:memory:')
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def practice(scheduling_db) -> Practice:
    """One branch open 08:00-17:00, a 30 minute service and an optician working Mon-Fri."""
    branch = Branch(
        name='Robinson House',
        address='Cnr Angwa & K.Nkrumah, Harare',
        phone='+263242757558',
        email='robinson@linkopticians.co.zw',
        operating_hours='Mon-Fri: 08:00-17:00',
    )
    service = Service(name='Eye Examination', duration=30, price=50.0)
    scheduling_db.add_all([branch, service])
    scheduling_db.commit()

    optician = Optician(name='Dr. Tendai Moyo', email='moyo@linkopticians.co.zw', branch_id=branch.id)
    scheduling_db.add(optician)
    scheduling_db.commit()

    scheduling_db.add(
        OpticianWorkingHours(optician_id=optician.id, day_of_week=0, start_time='09:00', end_time='17:00', is_available=False)
    )
    for day in range(1, 6):
        scheduling_db.add(
            OpticianWorkingHours(optician_id=optician.id, day_of_week=day, start_time='08:00', end_time='17:00')
        )
    scheduling_db.commit()

    return Practice(branch=branch, service=service, optician=optician)


@pytest.fixture
def add_appointment(scheduling_db, practice):
    def _add(scheduled_at: datetime, status: str = 'pending', optician_id: int | None = None, **fields) -> Appointment:
        appointment = Appointment(
            patient_name=fields.pop('patient_name', 'Rudo Banda'),
            phone=fields.pop('phone', '0771234567'),
            service_id=fields.pop('service_id', practice.service.id),
            branch_id=fields.pop('branch_id', practice.branch.id),
            optician_id=optician_id,
            scheduled_at=scheduled_at,
            status=status,
            **fields,
        )
        scheduling_db.add(appointment)
        scheduling_db.commit()
        return appointment

    return _add


@pytest.fixture
def add_time_off(scheduling_db, practice):
    def _add(start_date: datetime, end_date: datetime, reason: str | None = None, optician_id: int | None = None):
        entry = OpticianTimeOff(
            optician_id=optician_id or practice.optician.id,
            start_date=start_date,
            end_date=end_date,
            reason=reason,
        )
        scheduling_db.add(entry)
        scheduling_db.commit()
        return entry

    return _add


@pytest.fixture
def staff_user(scheduling_db) -> User:
    user = User(email='reception@linkopticians.co.zw', full_name='Front Desk', role='staff')
    scheduling_db.add(user)
    scheduling_db.commit()
    return user
