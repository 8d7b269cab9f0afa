# app/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import Settings, get_settings
from app.core.database import build_engine, build_session_factory, ensure_schema
from app.core.errors import register_exception_handlers
from app.core.logging_config import configure_logging
from app.notification.routes import router as notification_router
from app.notification.services import build_dispatcher
from app.ticket.routes import router as ticket_router
from app.ui.routes import router as ui_router

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    engine = build_engine(settings.DATABASE_URL)
    ensure_schema(engine)

    app = FastAPI(
        title=settings.APP_NAME,
        description=settings.APP_DESC,
        version=settings.APP_VERSION,
    )
    app.state.settings = settings
    app.state.session_factory = build_session_factory(engine)
    app.state.dispatcher = build_dispatcher(settings)
    if not app.state.dispatcher.sink.configured:
        logger.warning("TaskRouter credentials missing; ticket notifications are disabled")

    # Matching origins are echoed back by CORSMiddleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=["*"],
    )

    # Any other origin is answered with the production origin
    @app.middleware("http")
    async def cors_fallback_origin(request: Request, call_next):
        response = await call_next(request)
        origin = request.headers.get("origin")
        if origin and settings.cors_origins and "access-control-allow-origin" not in response.headers:
            response.headers["Access-Control-Allow-Origin"] = settings.cors_origins[0]
            response.headers.add_vary_header("Origin")
        return response

    register_exception_handlers(app)

    # Routers
    app.include_router(ticket_router)
    app.include_router(notification_router)
    app.include_router(ui_router)

    @app.get("/health", tags=["Health"])
    def health():
        return {"status": "ok"}

    return app


app = create_app()
