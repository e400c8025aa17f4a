import logging
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from hunt_admin import content
from hunt_admin.config import Settings, load_settings
from hunt_admin.routes import router

load_dotenv(Path(__file__).parent.parent / ".env")

logger = logging.getLogger(__name__)


def build_store(settings: Settings) -> content.ContentStore:
    """Content store selected by CONTENT_STORE (github unless set to memory)."""
    if settings.content_store == "memory":
        return content.MemoryStore()
    return content.GitHubStore(settings.github)


async def _content_error(request: Request, exc: content.ContentError) -> JSONResponse:
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


async def _invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = [
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', '')}"
        for err in exc.errors()
    ]
    body = {"ok": False, "error": "Invalid request", "fields": fields}
    return JSONResponse(body, status_code=400)


async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse({"ok": False, "error": str(exc) or type(exc).__name__}, status_code=500)


def create_app(
    settings: Settings | None = None, store: content.ContentStore | None = None
) -> FastAPI:
    resolved = settings or load_settings()

    app = FastAPI(title="Hunt Admin")
    app.state.settings = resolved
    app.state.store = store or build_store(resolved)
    app.include_router(router, prefix="/api")
    app.add_exception_handler(content.ContentError, _content_error)
    app.add_exception_handler(RequestValidationError, _invalid_request)
    app.add_exception_handler(Exception, _unexpected_error)
    return app


# Default app instance for uvicorn (configured from the environment)
app = create_app()
