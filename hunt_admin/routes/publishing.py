"""Save and publish endpoints."""

from fastapi import APIRouter, Depends

from hunt_admin import content

from .deps import get_store

router = APIRouter()


@router.post("/save")
async def save(body: dict, store: content.ContentStore = Depends(get_store)):
    """Write config and/or missions of one game to its draft or published path."""
    request = content.parse_request(content.SaveRequest, body)
    return await content.save(store, request)


@router.post("/publish")
async def publish(body: dict, store: content.ContentStore = Depends(get_store)):
    """Publish a game's draft (or fallback) content plus the player-site mirror."""
    request = content.parse_request(content.PublishRequest, body)
    return await content.publish(store, request)
