"""Game listing, loading and creation endpoints."""

from fastapi import APIRouter, Depends

from hunt_admin import content

from .deps import get_store

router = APIRouter()


@router.get("/games")
async def list_games(store: content.ContentStore = Depends(get_store)):
    """List slugs of all games under public/games."""
    return {"ok": True, "slugs": await content.list_games(store)}


@router.post("/games")
async def create_game(body: dict, store: content.ContentStore = Depends(get_store)):
    """Create a game from {title, type?, mode?, slug?, ...}; seeds its draft channel."""
    req = content.parse_request(content.CreateGameRequest, body)
    return await content.create_game(store, req)


@router.get("/games/{slug}")
async def load_game(
    slug: str,
    channel: content.Channel = "published",
    store: content.ContentStore = Depends(get_store),
):
    """Load config + missions for one channel. Use slug "root" for the legacy game."""
    game = await content.load_game(store, slug, channel)
    return {"ok": True, **game}
