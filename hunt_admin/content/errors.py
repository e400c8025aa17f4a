"""Error taxonomy for content store access and the publish/save workflow.

Every error carries an HTTP status category and a context dict (slug,
channel, document, paths tried, ...) that is rendered next to the message
in the `{"ok": false, "error": ...}` response body.

    ContentError
      ValidationError     400  malformed or missing request input
      NotFoundError       404  no content at any candidate path
      StoreError          500  transport/auth failure from the content store
        ConflictError     409  stale version identifier on write
        CommitError       500  multi-file commit rejected
        ResolutionError   500  branch could not be resolved
"""

from __future__ import annotations

from typing import Any


class ContentError(RuntimeError):
    """Base class for all failures surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context: dict[str, Any] = dict(context)

    def add_context(self, **context: Any) -> ContentError:
        """Attach operation context without overwriting keys already set."""
        for key, value in context.items():
            self.context.setdefault(key, value)
        return self

    def to_dict(self) -> dict[str, Any]:
        return {"ok": False, "error": self.message, **self.context}


class ValidationError(ContentError):
    status_code = 400


class NotFoundError(ContentError):
    status_code = 404


class StoreError(ContentError):
    """Raised when the content store cannot be reached or rejects a request."""

    def __init__(self, message: str, status: int | None = None, **context: Any) -> None:
        super().__init__(message, **context)
        # HTTP status returned by the remote store, when there was one
        self.status = status


class ConflictError(StoreError):
    status_code = 409


class CommitError(StoreError):
    pass


class ResolutionError(StoreError):
    pass
