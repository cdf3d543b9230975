import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.core.config import Settings, get_settings
from app.core.errors import DriveError, StorageFailure, Unauthenticated
from app.core.logging import configure_logging
from app.models.database import build_engine, build_session_factory, init_db
from app.routers import auth, files, pages  # <--- important

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    engine = build_engine(settings.database_url)
    init_db(engine)

    app = FastAPI(title="Mini Drive")
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)

    # include our routers
    app.include_router(auth.router)
    app.include_router(files.router)
    app.include_router(pages.router)

    @app.exception_handler(DriveError)
    def handle_drive_error(request: Request, exc: DriveError):
        if isinstance(exc, StorageFailure):
            logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
        elif isinstance(exc, Unauthenticated):
            logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.get("/api/health")
    def health():
        return {"status": "ok"}

    logger.info("Mini Drive started (environment=%s)", settings.environment)
    return app


app = create_app()


def run(host: str = "127.0.0.1", port: int = 8000) -> None:
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run()
