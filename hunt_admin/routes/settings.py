"""Health check and content store diagnostics."""

from fastapi import APIRouter, Depends

from hunt_admin import content
from hunt_admin.config import Settings

from .deps import get_settings, get_store

public_router = APIRouter()
router = APIRouter()


@public_router.get("/health")
async def health():
    """Health check."""
    return {"status": "ok"}


@router.get("/github/status")
async def github_status(
    settings: Settings = Depends(get_settings),
    store: content.ContentStore = Depends(get_store),
):
    """Report store configuration (never the token) and try to resolve the branch."""
    status = {"store": settings.content_store, **settings.github.snapshot()}
    try:
        ref = await store.resolve_branch()
    except content.StoreError as e:
        return {"ok": False, **status, "error": e.message}
    return {"ok": True, **status, "resolved": ref.model_dump()}
