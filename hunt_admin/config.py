"""Environment configuration (content store credentials, auth, store backend)."""

import logging
import math
import os
from collections.abc import Mapping
from typing import Literal

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_BRANCH = "main"
STORE_KINDS = ("github", "memory")


def _first(environ: Mapping[str, str], *names: str, default: str = "") -> str:
    for name in names:
        value = environ.get(name)
        if value:
            return value
    return default


def _flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _seconds(name: str, value: str | None) -> float:
    if not value:
        return 0.0
    try:
        seconds = float(value)
    except ValueError:
        logger.warning("Ignoring %s=%r: not a number of seconds", name, value)
        return 0.0
    if seconds < 0 or not math.isfinite(seconds):
        logger.warning("Ignoring %s=%r: must be a finite, non-negative number", name, value)
        return 0.0
    return seconds


def _store_kind(value: str | None) -> str:
    kind = (value or "github").strip().lower()
    if kind not in STORE_KINDS:
        logger.warning("Unknown CONTENT_STORE=%r, using github", value)
        return "github"
    return kind


def _base_dir(value: str) -> str:
    # Vercel-era configs used the literal "(empty)" for no base dir
    if not value or value == "(empty)":
        return ""
    return value.strip("/")


class GitHubSettings(BaseModel):
    token: str = ""
    owner: str = ""
    repo: str = ""
    branch: str = DEFAULT_BRANCH  # empty → repository default branch
    base_dir: str = ""
    api_url: str = DEFAULT_API_URL
    ref_cache_ttl: float = 0.0
    timeout: float = 20.0

    def missing(self) -> list[str]:
        """Names of required variables that are not set."""
        missing = []
        if not self.owner:
            missing.append("REPO_OWNER")
        if not self.repo:
            missing.append("REPO_NAME")
        if not self.token:
            missing.append("GITHUB_TOKEN")
        return missing

    def snapshot(self) -> dict:
        """Configuration summary that is safe to return to clients."""
        return {
            "owner": self.owner,
            "repo": self.repo,
            "branch": self.branch,
            "base_dir": self.base_dir,
            "token_present": bool(self.token),
            "configured": not self.missing(),
        }


class AuthSettings(BaseModel):
    user: str = ""
    password: str = ""
    disabled: bool = False

    @property
    def enabled(self) -> bool:
        return bool(self.password) and not self.disabled


class Settings(BaseModel):
    github: GitHubSettings = Field(default_factory=GitHubSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    content_store: Literal["github", "memory"] = "github"


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build Settings from environment variables (os.environ by default).

    Malformed values are logged and replaced by their defaults; configuration
    problems surface through /api/github/status, never as a startup failure.
    """
    env = os.environ if environ is None else environ
    github = GitHubSettings(
        token=_first(env, "GITHUB_TOKEN"),
        owner=_first(env, "REPO_OWNER", "GITHUB_OWNER"),
        repo=_first(env, "REPO_NAME", "GITHUB_REPO"),
        branch=env.get("GITHUB_BRANCH", DEFAULT_BRANCH).strip(),
        base_dir=_base_dir(env.get("GITHUB_BASE_DIR", "")),
        api_url=_first(env, "GITHUB_API", default=DEFAULT_API_URL).rstrip("/"),
        ref_cache_ttl=_seconds("REF_CACHE_TTL", env.get("REF_CACHE_TTL")),
    )
    auth = AuthSettings(
        user=env.get("BASIC_AUTH_USER", ""),
        password=env.get("BASIC_AUTH_PASS", ""),
        disabled=_flag(env.get("AUTH_DISABLE", "")),
    )
    return Settings(github=github, auth=auth, content_store=_store_kind(env.get("CONTENT_STORE")))
