"""Content store protocol and the in-process implementation.

The publish/save workflow talks to a branch-versioned file store through
the protocol below. Paths are repository paths such as
"public/games/pirate-cove/config.json"; `ref` is a branch name (None
means the configured branch).

Two implementations are provided:

    GitHubStore   - GitHub Contents + Git Data API client (content/github.py).
    MemoryStore   - dict-backed store. Used by tests and for local
                    development with CONTENT_STORE=memory.

Lookups return None for missing files instead of raising, so callers can
probe several candidate paths cheaply. Writes raise ContentError
subclasses (see content/errors.py).
"""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Mapping, Sequence
from typing import Protocol

from pydantic import BaseModel

from .errors import CommitError, ConflictError, NotFoundError
from .paths import join_path

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Value types
# ---------------------------------------------------------------------------

class BranchRef(BaseModel):
    """A branch name resolved to the commit it currently points at."""

    name: str
    sha: str


class StoredFile(BaseModel):
    path: str
    content: str
    sha: str


class WriteResult(BaseModel):
    """Outcome of a single-file create/update."""

    path: str
    sha: str  # blob sha of the written content
    commit_sha: str
    commit_url: str = ""


class CommitFile(BaseModel):
    """One entry of a multi-file commit.

    `repo_path` marks paths that are absolute within the repository and
    must not be prefixed with the configured base directory (mirror copies
    for the player site live outside the admin app).
    """

    path: str
    content: str
    repo_path: bool = False


class CommitResult(BaseModel):
    """Outcome of a commit. `paths` are the repository paths actually written."""

    sha: str
    url: str = ""
    paths: list[str] = []


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------

class ContentStore(Protocol):
    async def resolve_branch(self) -> BranchRef: ...

    async def get_file(self, path: str, ref: str | None = None) -> StoredFile | None: ...

    async def put_file(
        self,
        path: str,
        content: str,
        message: str,
        ref: str | None = None,
        prior_sha: str | None = None,
    ) -> WriteResult: ...

    async def delete_file(self, path: str, message: str, ref: str | None = None) -> CommitResult: ...

    async def list_dirs(self, path: str, ref: str | None = None) -> list[str]: ...

    async def commit_files(
        self, files: Sequence[CommitFile], message: str, ref: str | None = None
    ) -> CommitResult: ...


def blob_sha(content: str) -> str:
    """Git blob id of a text file, as the remote store reports it."""
    data = content.encode("utf-8")
    return hashlib.sha1(b"blob %d\0" % len(data) + data).hexdigest()


# ---------------------------------------------------------------------------
# MemoryStore
# ---------------------------------------------------------------------------

class MemoryStore:
    """Single-branch store held in a dict. No network calls.

    Every write produces a commit entry in `commits` so tests can assert
    on what was written together. Multi-file commits are validated before
    any file is touched, so a rejected commit leaves the store unchanged.
    """

    def __init__(self, files: Mapping[str, str] | None = None, branch: str = "main") -> None:
        self.branch = branch
        self._files: dict[str, str] = {join_path(p): c for p, c in (files or {}).items()}
        self.commits: list[dict] = []
        self._head = hashlib.sha1(b"root").hexdigest()

    @property
    def files(self) -> dict[str, str]:
        return dict(self._files)

    def _commit(self, message: str, paths: list[str]) -> CommitResult:
        digest = hashlib.sha1(self._head.encode("ascii"))
        digest.update(message.encode("utf-8"))
        for path in paths:
            digest.update(path.encode("utf-8"))
            digest.update(self._files.get(path, "").encode("utf-8"))
        self._head = digest.hexdigest()
        self.commits.append({"sha": self._head, "message": message, "paths": paths})
        logger.debug("memory commit %s paths=%s", self._head[:7], paths)
        return CommitResult(sha=self._head, url=f"memory://commit/{self._head}", paths=paths)

    async def resolve_branch(self) -> BranchRef:
        return BranchRef(name=self.branch, sha=self._head)

    async def get_file(self, path: str, ref: str | None = None) -> StoredFile | None:
        key = join_path(path)
        if key not in self._files:
            return None
        content = self._files[key]
        return StoredFile(path=key, content=content, sha=blob_sha(content))

    async def put_file(
        self,
        path: str,
        content: str,
        message: str,
        ref: str | None = None,
        prior_sha: str | None = None,
    ) -> WriteResult:
        key = join_path(path)
        current = self._files.get(key)
        current_sha = blob_sha(current) if current is not None else None
        if prior_sha is not None and prior_sha != current_sha:
            raise ConflictError(
                f"{key} changed since it was read (expected {prior_sha}, found {current_sha})",
                path=key,
            )
        self._files[key] = content
        commit = self._commit(message, [key])
        return WriteResult(path=key, sha=blob_sha(content), commit_sha=commit.sha, commit_url=commit.url)

    async def delete_file(self, path: str, message: str, ref: str | None = None) -> CommitResult:
        key = join_path(path)
        if key not in self._files:
            raise NotFoundError(f"{key} does not exist", path=key)
        del self._files[key]
        return self._commit(message, [key])

    async def list_dirs(self, path: str, ref: str | None = None) -> list[str]:
        prefix = join_path(path) + "/"
        names = set()
        for key in self._files:
            if key.startswith(prefix):
                rest = key[len(prefix):]
                if "/" in rest:
                    names.add(rest.split("/", 1)[0])
        return sorted(names)

    async def commit_files(
        self, files: Sequence[CommitFile], message: str, ref: str | None = None
    ) -> CommitResult:
        if not files:
            raise CommitError("Nothing to commit")
        if ref is not None and ref != self.branch:
            raise CommitError(f"Unknown branch '{ref}'", branch=ref)
        paths = [join_path(f.path) for f in files]
        for path, f in zip(paths, files):
            self._files[path] = f.content
        return self._commit(message, paths)
