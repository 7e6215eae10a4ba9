import logging

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from opticare.core import config
from opticare.database import Base, engine, ensure_scheduling_schema
from opticare.models import appointment, branch, optician, service, user  # noqa: F401
from opticare.routes import (
    appointment_routes,
    auth_routes,
    availability_routes,
    bulk_routes,
    catalog_routes,
    optician_routes,
    time_off_routes,
    working_hours_routes,
)

logging.basicConfig(
    level=config.LOG_LEVEL.upper(),
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)

logger = logging.getLogger(__name__)

app = FastAPI(title='Opticare Booking API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)


@app.on_event('startup')
def initialize_database() -> None:
    config.validate_runtime_config()
    try:
        Base.metadata.create_all(bind=engine)
        ensure_scheduling_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.info('Rejected invalid request to %s', request.url.path)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={'error': 'Invalid data', 'details': jsonable_encoder(exc.errors())},
    )


@app.get('/')
def root():
    return {'status': 'Opticare Booking API Running'}


app.include_router(auth_routes.router, prefix='/auth')
app.include_router(catalog_routes.router)
app.include_router(availability_routes.router, prefix='/availability')
app.include_router(appointment_routes.router, prefix='/appointments')
app.include_router(working_hours_routes.router, prefix='/opticians/working-hours')
app.include_router(time_off_routes.router, prefix='/opticians/time-off')
app.include_router(bulk_routes.router, prefix='/opticians/bulk')
app.include_router(optician_routes.router, prefix='/opticians')


def run() -> None:
    uvicorn.run(app, host=config.HOST, port=config.PORT, log_level=config.LOG_LEVEL.lower())


if __name__ == '__main__':
    run()
