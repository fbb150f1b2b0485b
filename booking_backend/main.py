import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from booking_backend.core import config
from booking_backend.core.errors import BookingError, InternalError
from booking_backend.database import Base, engine, ensure_booking_schema
from booking_backend.models import clinic, practitioner, reservation, schedule, user  # noqa: F401
from booking_backend.routes import practitioner_me_routes, practitioner_routes, reservation_routes

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)

config.validate_runtime_config()

app = FastAPI()

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    if isinstance(exc, InternalError):
        logger.error('Internal failure on %s %s', request.method, request.url.path)
    return JSONResponse(status_code=exc.status_code, content={'detail': exc.detail})


@app.on_event('startup')
def initialize_database() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        ensure_booking_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.get('/')
def root():
    return {'status': 'Booking API Running'}


app.include_router(practitioner_me_routes.router, prefix='/practitioners/me')
app.include_router(practitioner_routes.router, prefix='/practitioners')
app.include_router(reservation_routes.router, prefix='/reservations')
app.include_router(practitioner_routes.dev_router, prefix='/dev')
