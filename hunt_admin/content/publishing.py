"""Save and publish workflow.

Save writes the supplied documents of one channel, one file at a time.
Each document gets its own commit, so a failure on the second document
does not undo the first; the per-document results say what happened.

Publish probes candidate_paths(slug) in order and stops at the first base
holding config.json or missions.json. The documents found there are
written to the published destination plus, for slugged games, the
game/public/... mirror, all in one commit. A config without missions
publishes `{"missions": []}` alongside it.

The read phase performs no writes; a failure there aborts before the
commit is attempted. No step retries.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from typing import Any

from .errors import ContentError, NotFoundError, StoreError
from .paths import (
    CONFIG_FILE,
    MISSIONS_FILE,
    candidate_paths,
    destination_base,
    is_legacy,
    join_path,
    mirror_path,
    serialize_document,
    slug_label,
)
from .requests import PublishRequest, SaveRequest
from .store import BranchRef, CommitFile, ContentStore, StoredFile

logger = logging.getLogger(__name__)

DOCUMENTS: tuple[tuple[str, str], ...] = (
    ("config", CONFIG_FILE),
    ("missions", MISSIONS_FILE),
)


def empty_missions() -> dict[str, list]:
    return {"missions": []}


# ── Reading ──────────────────────────────────────────────


def _parse_document(stored: StoredFile) -> Any:
    try:
        return json.loads(stored.content)
    except ValueError as e:
        raise StoreError(f"{stored.path} is not valid JSON: {e}", path=stored.path) from e


async def read_document(store: ContentStore, path: str, ref: str | None = None) -> Any:
    """Decoded JSON at path, or None when the file does not exist."""
    stored = await store.get_file(path, ref)
    if stored is None:
        return None
    return _parse_document(stored)


async def read_pair(
    store: ContentStore, base: str, ref: str | None = None
) -> tuple[Any, Any]:
    """(config, missions) found under base; missing documents are None."""
    config = await read_document(store, join_path(base, CONFIG_FILE), ref)
    missions = await read_document(store, join_path(base, MISSIONS_FILE), ref)
    return config, missions


async def probe(
    store: ContentStore, candidates: Iterable[str], ref: str | None = None
) -> tuple[str, Any, Any] | None:
    """First (base, config, missions) where either document exists, else None."""
    for base in candidates:
        config, missions = await read_pair(store, base, ref)
        if config is not None or missions is not None:
            return base, config, missions
    return None


# ── Writing ──────────────────────────────────────────────


def build_publish_files(slug: str, config: Any, missions: Any) -> list[CommitFile]:
    """Published admin files plus their player-site mirrors, in write order."""
    dest = destination_base(slug, "published")
    files: list[CommitFile] = []
    for name, filename in DOCUMENTS:
        document = config if name == "config" else missions
        if document is None:
            continue
        content = serialize_document(document)
        admin_path = join_path(dest, filename)
        files.append(CommitFile(path=admin_path, content=content))
        mirror = mirror_path(admin_path, slug)
        if mirror is not None:
            files.append(CommitFile(path=mirror, content=content, repo_path=True))
    return files


async def _resolve(store: ContentStore, **context: Any) -> BranchRef:
    try:
        return await store.resolve_branch()
    except ContentError as e:
        raise e.add_context(**context)


async def save(store: ContentStore, request: SaveRequest) -> dict[str, Any]:
    """Write the documents present in the request to their channel path.

    Returns {"ok": True, "slug", "channel", "results"}; raises StoreError
    carrying the same per-document results if any write failed.
    """
    label = slug_label(request.slug)
    channel = request.channel
    base = destination_base(request.slug, channel)
    branch = await _resolve(store, slug=label, channel=channel)

    results: list[dict[str, Any]] = []
    for name, filename in DOCUMENTS:
        document = getattr(request, name)
        if document is None:
            continue
        path = join_path(base, filename)
        message = f"save({name}): {label} [{channel}]"
        try:
            written = await store.put_file(
                path, serialize_document(document), message, ref=branch.name
            )
        except StoreError as e:
            logger.warning("save of %s failed: %s", path, e.message)
            results.append({"document": name, "path": path, "ok": False, "error": e.message})
            continue
        results.append({
            "document": name,
            "path": written.path,
            "ok": True,
            "sha": written.sha,
            "commit": written.commit_sha,
            "commitUrl": written.commit_url,
        })

    failed = [r["document"] for r in results if not r["ok"]]
    if failed:
        raise StoreError(
            f"Save failed for {', '.join(failed)}",
            slug=label,
            channel=channel,
            results=results,
        )
    logger.info("saved %s [%s]: %s", label, channel, [r["path"] for r in results])
    return {"ok": True, "slug": label, "channel": channel, "results": results}


async def publish(store: ContentStore, request: PublishRequest) -> dict[str, Any]:
    """Publish the most specific existing content of a game in one commit."""
    slug = request.slug
    label = slug_label(slug)
    candidates = candidate_paths(slug)
    branch = await _resolve(store, slug=label)

    try:
        found = await probe(store, candidates, ref=branch.name)
    except ContentError as e:
        raise e.add_context(slug=label, tried=candidates)
    if found is None:
        raise NotFoundError(
            "No draft or published content found at any expected path",
            slug=label,
            tried=candidates,
        )

    used_base, config, missions = found
    if config is not None and missions is None:
        missions = empty_missions()

    files = build_publish_files(slug, config, missions)
    if is_legacy(slug):
        message = f"publish {label}"
    else:
        message = f"publish {label} (+ mirror to game/)"

    try:
        commit = await store.commit_files(files, message, ref=branch.name)
    except ContentError as e:
        logger.warning("publish of %s failed: %s", label, e.message)
        raise e.add_context(slug=label, usedBase=used_base)

    logger.info("published %s from %s as %s", label, used_base, commit.sha[:7])
    return {
        "ok": True,
        "slug": label,
        "usedBase": used_base,
        "wrote": commit.paths or [f.path for f in files],
        "commit": commit.sha,
        "commitUrl": commit.url,
    }
