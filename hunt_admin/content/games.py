"""Game listing, loading and creation."""

import logging
from typing import Any

from .errors import ConflictError, ValidationError
from .paths import (
    GAMES_ROOT,
    Channel,
    destination_base,
    is_legacy,
    is_valid_slug,
    slug_label,
    slugify,
)
from .publishing import read_pair, save
from .requests import CreateGameRequest, SaveRequest
from .store import ContentStore

logger = logging.getLogger(__name__)

PLAYERS_BY_MODE = {"single": 1, "head2head": 2, "multi": 4}


async def list_games(store: ContentStore) -> list[str]:
    """Slugs of all games that have a folder under public/games."""
    return sorted(await store.list_dirs(GAMES_ROOT))


async def load_game(store: ContentStore, slug: str, channel: Channel = "published") -> dict[str, Any]:
    """Config and missions of one game channel. Absent documents are None."""
    if not is_valid_slug(slug):
        raise ValidationError(f"Invalid slug {slug!r}", slug=slug)
    base = destination_base(slug, channel)
    config, missions = await read_pair(store, base)
    return {
        "slug": slug_label(slug),
        "channel": channel,
        "base": base,
        "config": config,
        "missions": missions,
    }


# ── Creation ─────────────────────────────────────────────


def default_missions(title: str) -> dict[str, Any]:
    return {
        "version": "0.0.1",
        "missions": [
            {
                "id": "m01",
                "title": "Welcome",
                "type": "statement",
                "rewards": {"points": 10},
                "content": {"text": f"Welcome to {title}! Ready to play?"},
            }
        ],
    }


def default_config(slug: str, request: CreateGameRequest) -> dict[str, Any]:
    tags = [slug]
    if slug == "default":
        tags.append("default-game")
    return {
        "splash": {"enabled": True, "mode": request.mode},
        "game": {
            "title": request.title.strip(),
            "type": request.type or "Mystery",
            "tags": tags,
            "coverImage": request.cover_image.strip(),
            "shortDescription": request.short_description.strip(),
            "longDescription": request.long_description.strip(),
            "slug": slug,
        },
        "forms": {"players": PLAYERS_BY_MODE[request.mode]},
        "textRules": [],
    }


async def create_game(store: ContentStore, request: CreateGameRequest) -> dict[str, Any]:
    """Seed config and missions for a new game in its draft channel.

    The documents are written through save(), one commit per file. An
    existing game folder with the same slug is a ConflictError.
    """
    title = request.title.strip()
    if not title:
        raise ValidationError("Missing title")
    slug = slugify(request.slug or title)
    if is_legacy(slug):
        raise ValidationError(f"Slug {slug!r} is reserved for the legacy root", slug=slug)
    if slug in await list_games(store):
        raise ConflictError(f"Game {slug} already exists", slug=slug)

    result = await save(
        store,
        SaveRequest(
            slug=slug,
            config=default_config(slug, request),
            missions=default_missions(title),
            channel="draft",
        ),
    )
    logger.info("created game %s", slug)
    return {"ok": True, "slug": slug, "title": title, "results": result["results"]}
