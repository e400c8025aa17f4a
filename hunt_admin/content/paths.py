"""Path resolution for game content. Pure functions, no I/O.

A game is addressed by its slug. Empty slugs and the reserved tokens
"(legacy root)", "legacy-root" and "root" denote the legacy game that
predates per-game folders and lives directly under public/.

    candidate_paths("pirate-cove")
      → public/games/pirate-cove/draft, public/games/pirate-cove,
        public/draft, public
    candidate_paths("")
      → public/draft, public
"""

import json
import re
import unicodedata
from typing import Any, Literal

Channel = Literal["draft", "published"]

CHANNELS: tuple[str, ...] = ("draft", "published")
LEGACY_TOKENS = frozenset({"(legacy root)", "legacy-root", "root"})
LEGACY_LABEL = "(root)"

PUBLIC_ROOT = "public"
GAMES_ROOT = "public/games"
MIRROR_PREFIX = "game"

CONFIG_FILE = "config.json"
MISSIONS_FILE = "missions.json"

# lowercase, URL-safe, one path segment
SLUG_PATTERN = re.compile(r"[a-z0-9][a-z0-9-]*")
SLUG_MAX_LENGTH = 48


def join_path(*parts: str) -> str:
    """Join non-empty segments with '/', collapsing duplicate and edge slashes."""
    joined = "/".join(p for p in parts if p)
    joined = re.sub(r"/+", "/", joined)
    return joined.strip("/")


def is_legacy(slug: str | None) -> bool:
    value = (slug or "").strip().lower()
    return not value or value in LEGACY_TOKENS


def normalize_slug(slug: str | None) -> str:
    """Trimmed slug, or "" for the legacy game."""
    if is_legacy(slug):
        return ""
    return (slug or "").strip()


def slug_label(slug: str | None) -> str:
    """Human-readable game name for commit messages and responses."""
    return LEGACY_LABEL if is_legacy(slug) else normalize_slug(slug)


def is_valid_slug(slug: str | None) -> bool:
    """True for legacy tokens and for slugs that are safe as a path segment."""
    if is_legacy(slug):
        return True
    return SLUG_PATTERN.fullmatch(normalize_slug(slug)) is not None


def slugify(title: str) -> str:
    """Convert a title to a game slug.

    "Pirate's Cove!" → "pirates-cove"
    """
    text = unicodedata.normalize("NFKD", str(title or ""))
    text = text.encode("ascii", "ignore").decode("ascii")
    text = text.lower()
    text = re.sub(r"['\"]", "", text)
    text = re.sub(r"[^a-z0-9]+", "-", text)
    text = text.strip("-")[:SLUG_MAX_LENGTH].rstrip("-")
    return text or "game"


def candidate_paths(slug: str | None) -> list[str]:
    """Base paths to probe for current content, most specific first."""
    candidates: list[str] = []
    if not is_legacy(slug):
        game = join_path(GAMES_ROOT, normalize_slug(slug))
        candidates.append(join_path(game, "draft"))
        candidates.append(game)
    candidates.append(join_path(PUBLIC_ROOT, "draft"))
    candidates.append(PUBLIC_ROOT)
    return candidates


def destination_base(slug: str | None, channel: Channel) -> str:
    """Canonical admin base path that a save or publish writes to."""
    if is_legacy(slug):
        base = PUBLIC_ROOT
    else:
        base = join_path(GAMES_ROOT, normalize_slug(slug))
    if channel == "draft":
        return join_path(base, "draft")
    return base


def mirror_path(admin_path: str, slug: str | None) -> str | None:
    """Player-site copy of an admin path, or None when there is no mirror.

    public/games/<slug>/config.json → game/public/games/<slug>/config.json
    """
    if is_legacy(slug):
        return None
    prefix = join_path(GAMES_ROOT, normalize_slug(slug))
    path = join_path(admin_path)
    if path != prefix and not path.startswith(prefix + "/"):
        return None
    return join_path(MIRROR_PREFIX, path)


def serialize_document(document: Any) -> str:
    """Pretty-printed JSON with a trailing newline. Deterministic for equal input."""
    return json.dumps(document, indent=2, ensure_ascii=False) + "\n"
