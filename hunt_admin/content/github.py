"""GitHub-backed content store.

Single-file reads and writes go through the Contents API:

    GET    /repos/{owner}/{repo}/contents/{path}?ref=...
    PUT    /repos/{owner}/{repo}/contents/{path}   {message, content, branch, sha?}
    DELETE /repos/{owner}/{repo}/contents/{path}   {message, sha, branch}

Multi-file commits use the Git Data API so that all files land in one
commit or none do:

    GET   git/ref/heads/{branch}        → head commit
    GET   git/commits/{head}            → base tree
    POST  git/trees                     → new tree (base_tree + files)
    POST  git/commits                   → new commit (parent = head)
    PATCH git/refs/heads/{branch}       → fast-forward, force=false

Nothing is visible on the branch until the final PATCH, and that PATCH is
rejected if the branch moved in the meantime.

Admin paths are prefixed with GITHUB_BASE_DIR (monorepo sub-directory);
CommitFile entries flagged `repo_path` are used as-is.

Nothing is cached between calls except through an explicitly injected
RefCache, whose TTL defaults to 0 (disabled).
"""

from __future__ import annotations

import base64
import logging
import time
from collections.abc import Callable, Sequence
from typing import Any
from urllib.parse import quote

import httpx

from hunt_admin.config import DEFAULT_BRANCH, GitHubSettings

from .errors import (
    CommitError,
    ConflictError,
    NotFoundError,
    ResolutionError,
    StoreError,
)
from .paths import join_path
from .store import BranchRef, CommitFile, CommitResult, StoredFile, WriteResult

logger = logging.getLogger(__name__)

USER_AGENT = "hunt-admin/1.0"


# ---------------------------------------------------------------------------
# RefCache: time-boxed cache for one resolved branch
# ---------------------------------------------------------------------------

class RefCache:
    """Holds one BranchRef together with the time it was stored.

    Args:
        ttl:   Seconds a stored ref stays valid. 0 disables caching.
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(self, ttl: float = 0.0, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl = ttl
        self._clock = clock
        self._value: BranchRef | None = None
        self._stored_at = 0.0

    def get(self) -> BranchRef | None:
        if self._value is None or self.ttl <= 0:
            return None
        if self._clock() - self._stored_at >= self.ttl:
            self._value = None
            return None
        return self._value

    def set(self, value: BranchRef) -> None:
        if self.ttl <= 0:
            return
        self._value = value
        self._stored_at = self._clock()

    def clear(self) -> None:
        self._value = None


# ---------------------------------------------------------------------------
# GitHubStore
# ---------------------------------------------------------------------------

def _error_message(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return resp.text[:300]
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return resp.text[:300]


def _json(
    resp: httpx.Response, what: str, error: type[StoreError] = StoreError, **context: Any
) -> Any:
    """Decoded JSON body, raising `error` when GitHub sent something else."""
    try:
        return resp.json()
    except ValueError as e:
        raise error(
            f"{what}: GitHub returned a non-JSON body ({resp.status_code})",
            status=resp.status_code,
            **context,
        ) from e


def _field(data: Any, *keys: str, what: str, error: type[StoreError] = StoreError) -> Any:
    """data[k1][k2]..., raising `error` when the response lacks that field."""
    try:
        for key in keys:
            data = data[key]
    except (KeyError, TypeError, IndexError) as e:
        raise error(f"{what}: unexpected GitHub response, no {'.'.join(keys)}") from e
    return data


class GitHubStore:
    """Async GitHub client implementing the ContentStore protocol.

    Args:
        settings:   Repository coordinates, token, branch and base dir.
        transport:  Optional httpx transport (tests pass httpx.MockTransport).
        ref_cache:  Optional RefCache for resolve_branch(). When omitted a
                    cache with settings.ref_cache_ttl is used.
    """

    def __init__(
        self,
        settings: GitHubSettings,
        transport: httpx.AsyncBaseTransport | None = None,
        ref_cache: RefCache | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._ref_cache = ref_cache or RefCache(settings.ref_cache_ttl)

    @property
    def settings(self) -> GitHubSettings:
        return self._settings

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_config(self) -> None:
        missing = self._settings.missing()
        if missing:
            raise StoreError(f"Missing env: {', '.join(missing)}")

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._settings.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": USER_AGENT,
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._settings.api_url,
            headers=self._headers(),
            timeout=self._settings.timeout,
            transport=self._transport,
        )

    def _repo_url(self, suffix: str = "") -> str:
        return f"/repos/{self._settings.owner}/{self._settings.repo}{suffix}"

    def _contents_url(self, full_path: str) -> str:
        return self._repo_url(f"/contents/{quote(full_path, safe='/')}")

    def _full_path(self, path: str, repo_path: bool = False) -> str:
        if repo_path:
            return join_path(path)
        return join_path(self._settings.base_dir, path)

    def _ref_params(self, ref: str | None) -> dict[str, str]:
        branch = ref or self._settings.branch
        return {"ref": branch} if branch else {}

    def _commit_url(self, sha: str) -> str:
        return f"https://github.com/{self._settings.owner}/{self._settings.repo}/commit/{sha}"

    async def _request(
        self,
        client: httpx.AsyncClient,
        method: str,
        url: str,
        error: type[StoreError] = StoreError,
        **kwargs: Any,
    ) -> httpx.Response:
        logger.debug("github %s %s", method, url)
        try:
            resp = await client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise error(
                f"GitHub {method} {url} timed out after {self._settings.timeout}s"
            ) from e
        except httpx.TransportError as e:
            raise error(f"Cannot connect to GitHub at {self._settings.api_url}") from e
        logger.debug("github %s %s -> %d", method, url, resp.status_code)
        return resp

    async def _get_file(
        self, client: httpx.AsyncClient, full_path: str, ref: str | None
    ) -> StoredFile | None:
        resp = await self._request(
            client, "GET", self._contents_url(full_path), params=self._ref_params(ref)
        )
        if resp.status_code == 404:
            return None
        if resp.status_code != 200:
            raise StoreError(
                f"GitHub GET {full_path} failed: {resp.status_code} {_error_message(resp)}",
                status=resp.status_code,
                path=full_path,
            )
        what = f"GitHub GET {full_path}"
        data = _json(resp, what, path=full_path)
        # directory listings come back as arrays
        if not isinstance(data, dict) or data.get("type") != "file":
            return None
        sha = _field(data, "sha", what=what)
        try:
            text = base64.b64decode(data.get("content") or "").decode("utf-8")
        except ValueError as e:
            raise StoreError(f"{full_path} is not UTF-8 text: {e}", path=full_path) from e
        return StoredFile(path=full_path, content=text, sha=sha)

    async def _resolve_branch(self, client: httpx.AsyncClient) -> BranchRef:
        owner_repo = f"{self._settings.owner}/{self._settings.repo}"
        name = self._settings.branch
        if not name:
            resp = await self._request(client, "GET", self._repo_url(), error=ResolutionError)
            if resp.status_code != 200:
                raise ResolutionError(
                    f"Cannot resolve branch for {owner_repo} (HTTP {resp.status_code}). "
                    "Check REPO_OWNER/REPO_NAME/GITHUB_TOKEN.",
                    status=resp.status_code,
                )
            data = _json(resp, f"GET {owner_repo}", error=ResolutionError)
            name = (data.get("default_branch") if isinstance(data, dict) else None) or DEFAULT_BRANCH

        resp = await self._request(
            client, "GET", self._repo_url(f"/git/ref/heads/{quote(name)}"), error=ResolutionError
        )
        if resp.status_code == 404:
            raise ResolutionError(
                f"Branch '{name}' does not exist in {owner_repo}", status=404, branch=name
            )
        if resp.status_code != 200:
            raise ResolutionError(
                f"Cannot resolve branch '{name}' in {owner_repo}: "
                f"{resp.status_code} {_error_message(resp)}",
                status=resp.status_code,
                branch=name,
            )
        data = _json(resp, f"GET ref {name}", error=ResolutionError, branch=name)
        sha = _field(data, "object", "sha", what=f"GET ref {name}", error=ResolutionError)
        return BranchRef(name=name, sha=sha)

    # ------------------------------------------------------------------
    # ContentStore protocol
    # ------------------------------------------------------------------

    async def resolve_branch(self) -> BranchRef:
        """Resolve the configured (or default) branch to its head commit."""
        self._require_config()
        cached = self._ref_cache.get()
        if cached is not None:
            return cached
        async with self._client() as client:
            ref = await self._resolve_branch(client)
        self._ref_cache.set(ref)
        return ref

    async def get_file(self, path: str, ref: str | None = None) -> StoredFile | None:
        self._require_config()
        async with self._client() as client:
            return await self._get_file(client, self._full_path(path), ref)

    async def put_file(
        self,
        path: str,
        content: str,
        message: str,
        ref: str | None = None,
        prior_sha: str | None = None,
    ) -> WriteResult:
        """Create or update one file.

        The current sha is read immediately before the PUT. When `prior_sha`
        is given and no longer matches, ConflictError is raised without
        writing.
        """
        self._require_config()
        full_path = self._full_path(path)
        branch = ref or self._settings.branch
        async with self._client() as client:
            current = await self._get_file(client, full_path, branch)
            current_sha = current.sha if current else None
            if prior_sha is not None and prior_sha != current_sha:
                raise ConflictError(
                    f"{full_path} changed since it was read "
                    f"(expected {prior_sha}, found {current_sha})",
                    path=full_path,
                )
            payload: dict[str, Any] = {
                "message": message or f"Update {full_path}",
                "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
            }
            if branch:
                payload["branch"] = branch
            if current_sha:
                payload["sha"] = current_sha
            resp = await self._request(client, "PUT", self._contents_url(full_path), json=payload)

        if resp.status_code in (409, 422):
            raise ConflictError(
                f"GitHub PUT {full_path} rejected: {resp.status_code} {_error_message(resp)}",
                status=resp.status_code,
                path=full_path,
            )
        if resp.status_code not in (200, 201):
            raise StoreError(
                f"GitHub PUT {full_path} failed: {resp.status_code} {_error_message(resp)}",
                status=resp.status_code,
                path=full_path,
            )
        data = _json(resp, f"GitHub PUT {full_path}", path=full_path)
        if not isinstance(data, dict):
            data = {}
        commit = data.get("commit") or {}
        return WriteResult(
            path=full_path,
            sha=(data.get("content") or {}).get("sha", ""),
            commit_sha=commit.get("sha", ""),
            commit_url=commit.get("html_url", ""),
        )

    async def delete_file(self, path: str, message: str, ref: str | None = None) -> CommitResult:
        self._require_config()
        full_path = self._full_path(path)
        branch = ref or self._settings.branch
        async with self._client() as client:
            current = await self._get_file(client, full_path, branch)
            if current is None:
                raise NotFoundError(f"{full_path} does not exist", path=full_path)
            payload: dict[str, Any] = {"message": message, "sha": current.sha}
            if branch:
                payload["branch"] = branch
            resp = await self._request(
                client, "DELETE", self._contents_url(full_path), json=payload
            )

        if resp.status_code in (409, 422):
            raise ConflictError(
                f"GitHub DELETE {full_path} rejected: {resp.status_code} {_error_message(resp)}",
                status=resp.status_code,
                path=full_path,
            )
        if resp.status_code != 200:
            raise StoreError(
                f"GitHub DELETE {full_path} failed: {resp.status_code} {_error_message(resp)}",
                status=resp.status_code,
                path=full_path,
            )
        data = _json(resp, f"GitHub DELETE {full_path}", path=full_path)
        commit = (data.get("commit") if isinstance(data, dict) else None) or {}
        return CommitResult(
            sha=commit.get("sha", ""), url=commit.get("html_url", ""), paths=[full_path]
        )

    async def list_dirs(self, path: str, ref: str | None = None) -> list[str]:
        self._require_config()
        full_path = self._full_path(path)
        async with self._client() as client:
            resp = await self._request(
                client, "GET", self._contents_url(full_path), params=self._ref_params(ref)
            )
        if resp.status_code == 404:
            return []
        if resp.status_code != 200:
            raise StoreError(
                f"GitHub list {full_path} failed: {resp.status_code} {_error_message(resp)}",
                status=resp.status_code,
                path=full_path,
            )
        data = _json(resp, f"GitHub list {full_path}", path=full_path)
        if not isinstance(data, list):
            return []
        return sorted(
            str(item["name"])
            for item in data
            if isinstance(item, dict) and item.get("type") == "dir" and "name" in item
        )

    async def commit_files(
        self, files: Sequence[CommitFile], message: str, ref: str | None = None
    ) -> CommitResult:
        """Write every file in one commit on top of the branch head."""
        self._require_config()
        if not files:
            raise CommitError("Nothing to commit")

        async with self._client() as client:
            branch = ref or (await self._resolve_branch(client)).name
            ref_url = self._repo_url(f"/git/refs/heads/{quote(branch)}")

            resp = await self._request(
                client, "GET", self._repo_url(f"/git/ref/heads/{quote(branch)}"), error=CommitError
            )
            self._check_step(resp, "GET ref", branch)
            head_sha = self._step_field(resp, "GET ref", "object", "sha")

            resp = await self._request(
                client, "GET", self._repo_url(f"/git/commits/{head_sha}"), error=CommitError
            )
            self._check_step(resp, "GET commit", branch)
            base_tree = self._step_field(resp, "GET commit", "tree", "sha")

            tree = [
                {
                    "path": self._full_path(f.path, f.repo_path),
                    "mode": "100644",
                    "type": "blob",
                    "content": f.content,
                }
                for f in files
            ]
            resp = await self._request(
                client,
                "POST",
                self._repo_url("/git/trees"),
                error=CommitError,
                json={"base_tree": base_tree, "tree": tree},
            )
            self._check_step(resp, "POST tree", branch)
            tree_sha = self._step_field(resp, "POST tree", "sha")

            resp = await self._request(
                client,
                "POST",
                self._repo_url("/git/commits"),
                error=CommitError,
                json={"message": message or "Update", "tree": tree_sha, "parents": [head_sha]},
            )
            self._check_step(resp, "POST commit", branch)
            commit_sha = self._step_field(resp, "POST commit", "sha")

            resp = await self._request(
                client,
                "PATCH",
                ref_url,
                error=CommitError,
                json={"sha": commit_sha, "force": False},
            )
            self._check_step(resp, "PATCH ref", branch)

        logger.debug("github commit %s on %s files=%d", commit_sha[:7], branch, len(files))
        return CommitResult(
            sha=commit_sha,
            url=self._commit_url(commit_sha),
            paths=[entry["path"] for entry in tree],
        )

    @staticmethod
    def _step_field(resp: httpx.Response, step: str, *keys: str) -> Any:
        data = _json(resp, step, error=CommitError)
        return _field(data, *keys, what=step, error=CommitError)

    @staticmethod
    def _check_step(resp: httpx.Response, step: str, branch: str) -> None:
        if resp.status_code not in (200, 201):
            raise CommitError(
                f"{step} failed: {resp.status_code} {_error_message(resp)}",
                status=resp.status_code,
                branch=branch,
            )
