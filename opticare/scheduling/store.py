"""Storage boundary for the availability engine.

The engine only needs the lookups named by ``SchedulingStore``; the
SQLAlchemy implementation is bound to one request's session and passed in
explicitly.
"""

from typing import Protocol

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from opticare.models.appointment import Appointment
from opticare.models.branch import Branch
from opticare.models.optician import Optician, OpticianTimeOff, OpticianWorkingHours
from opticare.models.service import Service
from opticare.scheduling.queries import AppointmentQuery, TimeOffQuery


class SchedulingStore(Protocol):
    def get_branch(self, branch_id: int) -> Branch | None: ...

    def get_service(self, service_id: int) -> Service | None: ...

    def get_optician(self, optician_id: int) -> Optician | None: ...

    def get_working_hours(self, optician_id: int, day_of_week: int) -> OpticianWorkingHours | None: ...

    def list_time_off(self, query: TimeOffQuery) -> list[OpticianTimeOff]: ...

    def list_appointments(self, query: AppointmentQuery) -> list[Appointment]: ...


class SqlAlchemyStore:
    def __init__(self, db: Session):
        self.db = db

    def get_branch(self, branch_id: int) -> Branch | None:
        return self.db.get(Branch, branch_id)

    def get_service(self, service_id: int) -> Service | None:
        return self.db.get(Service, service_id)

    def get_optician(self, optician_id: int) -> Optician | None:
        return self.db.get(Optician, optician_id)

    def get_working_hours(self, optician_id: int, day_of_week: int) -> OpticianWorkingHours | None:
        return self.db.query(OpticianWorkingHours).filter(
            OpticianWorkingHours.optician_id == optician_id,
            OpticianWorkingHours.day_of_week == day_of_week,
        ).first()

    def list_working_hours(self, optician_id: int) -> list[OpticianWorkingHours]:
        return self.db.query(OpticianWorkingHours).filter(
            OpticianWorkingHours.optician_id == optician_id,
        ).order_by(OpticianWorkingHours.day_of_week.asc()).all()

    def list_time_off(self, query: TimeOffQuery) -> list[OpticianTimeOff]:
        statement = self.db.query(OpticianTimeOff).filter(OpticianTimeOff.optician_id == query.optician_id)

        if query.covering is not None:
            statement = statement.filter(
                OpticianTimeOff.start_date <= query.covering,
                OpticianTimeOff.end_date >= query.covering,
            )

        if query.window_start is not None and query.window_end is not None:
            statement = statement.filter(
                or_(
                    and_(OpticianTimeOff.start_date <= query.window_start, OpticianTimeOff.end_date >= query.window_start),
                    and_(OpticianTimeOff.start_date <= query.window_end, OpticianTimeOff.end_date >= query.window_end),
                    and_(OpticianTimeOff.start_date >= query.window_start, OpticianTimeOff.end_date <= query.window_end),
                )
            )

        if query.exclude_id is not None:
            statement = statement.filter(OpticianTimeOff.id != query.exclude_id)

        return statement.order_by(OpticianTimeOff.start_date.asc(), OpticianTimeOff.id.asc()).all()

    def list_appointments(self, query: AppointmentQuery) -> list[Appointment]:
        statement = self.db.query(Appointment)

        if query.scheduled_at is not None:
            statement = statement.filter(Appointment.scheduled_at == query.scheduled_at)
        if query.scheduled_from is not None:
            statement = statement.filter(Appointment.scheduled_at >= query.scheduled_from)
        if query.scheduled_to is not None:
            statement = statement.filter(Appointment.scheduled_at <= query.scheduled_to)

        if query.branch_or_optician:
            scopes = []
            if query.branch_id is not None:
                scopes.append(Appointment.branch_id == query.branch_id)
            if query.optician_id is not None:
                scopes.append(Appointment.optician_id == query.optician_id)
            if scopes:
                statement = statement.filter(or_(*scopes))
        else:
            if query.branch_id is not None:
                statement = statement.filter(Appointment.branch_id == query.branch_id)
            if query.optician_id is not None:
                statement = statement.filter(Appointment.optician_id == query.optician_id)

        if query.statuses is not None:
            statement = statement.filter(Appointment.status.in_(sorted(query.statuses)))
        if query.exclude_id is not None:
            statement = statement.filter(Appointment.id != query.exclude_id)

        return statement.order_by(Appointment.scheduled_at.asc(), Appointment.id.asc()).all()
