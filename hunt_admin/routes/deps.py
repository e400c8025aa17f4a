"""Shared route dependencies: content store lookup and HTTP Basic auth."""

import secrets

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from hunt_admin.config import Settings
from hunt_admin.content import ContentStore

REALM = "Hunt Admin"

_basic = HTTPBasic(auto_error=False, realm=REALM)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> ContentStore:
    return request.app.state.store


def _matches(provided: str, expected: str) -> bool:
    return secrets.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


def require_auth(
    settings: Settings = Depends(get_settings),
    credentials: HTTPBasicCredentials | None = Depends(_basic),
) -> None:
    """Reject the request unless Basic credentials match BASIC_AUTH_USER/PASS.

    No-op when no password is configured or AUTH_DISABLE is set.
    """
    auth = settings.auth
    if not auth.enabled:
        return
    ok = credentials is not None and _matches(credentials.password, auth.password)
    if ok and auth.user:
        ok = _matches(credentials.username, auth.user)
    if not ok:
        raise HTTPException(
            401, "Auth required", headers={"WWW-Authenticate": f'Basic realm="{REALM}"'}
        )
