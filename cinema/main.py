import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine

from cinema.api.v1.router import api_router
from cinema.core.config import Settings, settings as default_settings
from cinema.core.errors import BookingError
from cinema.db.base import Base
from cinema.db.init_db import create_database
from cinema.db.session import SessionLocal, build_session_factory, engine as default_engine
from cinema.schemas.common import ErrorResponse
from cinema.services.booking_engine import BookingEngine

logger = logging.getLogger(__name__)


async def _availability_reconcile_loop(booking_engine: BookingEngine, interval: int) -> None:
    """Background task: recompute seat flags of upcoming showtimes from the ledger."""
    while True:
        try:
            count = await asyncio.to_thread(booking_engine.reconcile_upcoming)
            if count:
                logger.info("Reconciled %d seat flag(s) for upcoming showtimes.", count)
        except Exception:
            logger.exception("Error during availability reconcile.")
        await asyncio.sleep(interval)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Ensure DB exists and create tables
    db_engine = app.state.db_engine
    create_database(db_engine.url)
    Base.metadata.create_all(bind=db_engine)

    reconcile_task = None
    interval = app.state.settings.AVAILABILITY_RECONCILE_SECONDS
    if interval > 0:
        reconcile_task = asyncio.create_task(
            _availability_reconcile_loop(app.state.booking_engine, interval)
        )
    yield

    # Shutdown: cancel background task
    if reconcile_task is not None:
        reconcile_task.cancel()
        try:
            await reconcile_task
        except asyncio.CancelledError:
            pass


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=exc.kind, message=exc.message).model_dump(),
    )


def create_app(db_engine: Optional[Engine] = None, app_settings: Optional[Settings] = None) -> FastAPI:
    app_settings = app_settings or default_settings
    logging.basicConfig(level=app_settings.LOG_LEVEL)

    if db_engine is None:
        db_engine, session_factory = default_engine, SessionLocal
    else:
        session_factory = build_session_factory(db_engine)

    app = FastAPI(title=app_settings.PROJECT_NAME, lifespan=lifespan)
    app.state.settings = app_settings
    app.state.db_engine = db_engine
    app.state.session_factory = session_factory
    app.state.booking_engine = BookingEngine.from_settings(session_factory, app_settings)

    # Set all CORS enabled origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(BookingError, booking_error_handler)
    app.include_router(api_router, prefix=app_settings.API_PREFIX)

    @app.get("/")
    def read_root():
        return {"Hello": "Cinema"}

    return app


app = create_app()
