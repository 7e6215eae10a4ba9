"""Populate an empty database with branches, services and optician rosters.

Usage:
    python -m opticare.seed [--staff-email admin@example.com]

Existing rows (matched by name or email) are left untouched, so the command
can be re-run safely.
"""
import argparse
import logging

from sqlalchemy.orm import Session

from opticare.database import Base, SessionLocal, engine
from opticare.models.branch import Branch
from opticare.models.optician import Optician, OpticianWorkingHours
from opticare.models.service import Service
from opticare.models.user import User
from opticare.services.working_hours_service import ScheduleEntry, replace_schedule

logger = logging.getLogger(__name__)

BRANCH_HOURS = "Mon-Fri: 08:00-17:00, Sat: 08:00-13:00"

BRANCHES = [
    {
        "name": "Robinson House",
        "address": "15 & 16 Robinson House, Cnr Angwa & K.Nkrumah, Harare",
        "phone": "+263242757558",
        "email": "robinson@linkopticians.co.zw",
    },
    {
        "name": "Construction House",
        "address": "Construction House 1st Floor, 110 Leopold Takawira St, Harare",
        "phone": "+263242770732",
        "email": "construction@linkopticians.co.zw",
    },
    {
        "name": "Greendale",
        "address": "16 Greendale Ave, Greendale, Harare",
        "phone": "+263242481690",
        "email": "greendale@linkopticians.co.zw",
    },
    {
        "name": "Chiredzi",
        "address": "361 Mopani Drive, Chiredzi",
        "phone": "+263312312615",
        "email": "chiredzi@linkopticians.co.zw",
    },
    {
        "name": "Chipinge",
        "address": "98 Moodie Street, Chipinge",
        "phone": "+263272045605",
        "email": "chipinge@linkopticians.co.zw",
    },
]

SERVICES = [
    ("Eye Examination", "Comprehensive eye health and vision assessment", 30, 50.0),
    ("Contact Lens Fitting", "Professional contact lens fitting and training", 45, 35.0),
    ("Spectacles Dispensing", "Eyeglass fitting and prescription services", 20, 25.0),
    ("Low Vision Services", "Specialized services for low vision patients", 60, 75.0),
    ("Repairs & Adjustments", "Eyewear repairs and frame adjustments", 15, 15.0),
]

# Mon-Fri 08:00-17:00, Sat 08:00-13:00, Sunday off.
STANDARD_WEEK = [
    ScheduleEntry(day_of_week=0, start_time="09:00", end_time="17:00", is_available=False),
    *[ScheduleEntry(day_of_week=day, start_time="08:00", end_time="17:00") for day in range(1, 6)],
    ScheduleEntry(day_of_week=6, start_time="08:00", end_time="13:00"),
]


def _roster_for(branch: Branch) -> list[dict]:
    town = branch.name.split(" ")[0]
    domain = branch.email.split("@")[1]
    return [
        {"name": f"Dr. {town} Moyo", "email": f"dr.moyo.{town.lower()}@{domain}", "specialty": "Eye Examinations"},
        {"name": f"Dr. {town} Ndlovu", "email": f"dr.ndlovu.{town.lower()}@{domain}", "specialty": "Contact Lenses"},
        {
            "name": f"Optician {town} Chikowore",
            "email": f"optician.chikowore.{town.lower()}@{domain}",
            "specialty": "Spectacles Dispensing",
        },
    ]


def seed(db: Session, staff_email: str | None = None) -> None:
    for data in BRANCHES:
        if db.query(Branch).filter(Branch.name == data["name"]).first() is None:
            db.add(Branch(operating_hours=BRANCH_HOURS, **data))

    for name, description, duration, price in SERVICES:
        if db.query(Service).filter(Service.name == name).first() is None:
            db.add(Service(name=name, description=description, duration=duration, price=price))
    db.commit()

    for branch in db.query(Branch).order_by(Branch.id.asc()).all():
        for data in _roster_for(branch):
            if db.query(Optician).filter(Optician.email == data["email"]).first() is None:
                db.add(Optician(branch_id=branch.id, phone=branch.phone, **data))
    db.commit()

    for optician in db.query(Optician).all():
        has_schedule = db.query(OpticianWorkingHours).filter(
            OpticianWorkingHours.optician_id == optician.id,
        ).first()
        if has_schedule is None:
            result = replace_schedule(db, optician.id, STANDARD_WEEK)
            if not result.success:
                logger.error("Could not seed working hours for %s: %s", optician.name, result.error)

    if staff_email:
        normalized = staff_email.strip().lower()
        if db.query(User).filter(User.email == normalized).first() is None:
            db.add(User(email=normalized, role="admin"))
            db.commit()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Seed the booking database.")
    parser.add_argument("--staff-email", default=None)
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        seed(db, args.staff_email)
    finally:
        db.close()
    logger.info("Seed complete")


if __name__ == "__main__":
    main()
