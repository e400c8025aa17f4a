"""FastAPI API endpoints under /api.

Endpoint groups: health + store diagnostics, games (list, load), and the
save/publish workflow. Everything except /api/health sits behind HTTP
Basic auth when BASIC_AUTH_PASS is configured.
"""

from fastapi import APIRouter, Depends

from .deps import require_auth
from .games import router as games_router
from .publishing import router as publishing_router
from .settings import public_router
from .settings import router as settings_router

router = APIRouter()
router.include_router(public_router)

protected = APIRouter(dependencies=[Depends(require_auth)])
protected.include_router(settings_router)
protected.include_router(games_router)
protected.include_router(publishing_router)

router.include_router(protected)
