from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from opticare.core import config


engine = create_engine(config.DATABASE_URL, echo=config.DATABASE_ECHO)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_scheduling_schema_checked = False

# Occupying statuses are spelled out here because partial index predicates are raw SQL.
_OCCUPYING_PREDICATE = "status IN ('pending', 'confirmed')"


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ensure_scheduling_schema() -> None:
    global _scheduling_schema_checked

    if _scheduling_schema_checked:
        return

    with _schema_lock:
        if _scheduling_schema_checked:
            return

        inspector = inspect(engine)
        table_names = set(inspector.get_table_names())

        if 'appointments' not in table_names:
            _scheduling_schema_checked = True
            return

        with engine.begin() as connection:
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_appointments_branch_scheduled ON appointments(branch_id, scheduled_at)')
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_appointments_optician_scheduled ON appointments(optician_id, scheduled_at)')
            )
            connection.execute(
                text(
                    'CREATE UNIQUE INDEX IF NOT EXISTS uq_appointments_branch_slot '
                    f'ON appointments(branch_id, scheduled_at) WHERE {_OCCUPYING_PREDICATE}'
                )
            )
            connection.execute(
                text(
                    'CREATE UNIQUE INDEX IF NOT EXISTS uq_appointments_optician_slot '
                    'ON appointments(optician_id, scheduled_at) '
                    f'WHERE optician_id IS NOT NULL AND {_OCCUPYING_PREDICATE}'
                )
            )
            if 'optician_time_off' in table_names:
                connection.execute(
                    text(
                        'CREATE INDEX IF NOT EXISTS idx_time_off_optician_range '
                        'ON optician_time_off(optician_id, start_date, end_date)'
                    )
                )

        _scheduling_schema_checked = True
