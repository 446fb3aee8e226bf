# storefront/main.py
import time
import uuid
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI, Request
from sqlalchemy.engine import Engine

from storefront.api import register_routes
from storefront.data.database import init_db, make_engine, make_session_factory
from storefront.services.notification_service import NotificationService
from storefront.services.payments import PaymentGateway, build_gateway
from storefront.utils.logging import configure_logging, get_logger
from storefront.utils.settings import DATABASE_URL

logger = get_logger(__name__)


def create_app(
    database_url: str | None = None,
    engine: Engine | None = None,
    gateway: PaymentGateway | None = None,
    notifier=None,
    create_tables: bool = True,
) -> FastAPI:
    """
    Build the application and everything it owns: the engine, the session
    factory, the payment gateway and the notifier. Nothing is global.
    """
    configure_logging()

    engine = engine or make_engine(database_url or DATABASE_URL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if create_tables:
            init_db(engine)
            logger.info("database.ready")
        yield
        engine.dispose()

    app = FastAPI(title="Storefront Service", version="1.0.0", lifespan=lifespan)

    app.state.engine = engine
    app.state.session_factory = make_session_factory(engine)
    app.state.gateway = gateway or build_gateway()
    app.state.notifier = notifier if notifier is not None else NotificationService()

    @app.middleware("http")
    async def request_logging(request: Request, call_next):
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request.headers.get("x-request-id") or uuid.uuid4().hex)
        started = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "request.completed",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        return response

    register_routes(app)
    return app


if __name__ == "__main__":
    uvicorn.run("storefront.main:create_app", factory=True, host="0.0.0.0", port=8000)
