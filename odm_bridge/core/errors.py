# File: odm_bridge/core/errors.py

"""
Error taxonomy for the bridge.

Every failure that reaches an HTTP caller is a ``BridgeError``. Each carries
an HTTP status, a machine-readable ``code`` and optional ``extra`` fields that
are merged into the JSON error body (available project names, upstream
status, and so on). The FastAPI handler in ``odm_bridge.main`` renders them.
"""

from typing import Any, Dict, Optional


class BridgeError(Exception):
    status_code: int = 500
    code: str = "internal-error"

    def __init__(
        self,
        message: str,
        *,
        details: Optional[str] = None,
        code: Optional[str] = None,
        **extra: Any,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details
        if code is not None:
            self.code = code
        self.extra: Dict[str, Any] = extra

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message, "code": self.code}
        if self.details:
            body["details"] = self.details
        body.update(self.extra)
        return body


class MissingParameterError(BridgeError):
    status_code = 400
    code = "missing-parameter"


class InvalidRequestError(BridgeError):
    status_code = 400
    code = "invalid-request"


class UploadTooLargeError(BridgeError):
    status_code = 413
    code = "upload-too-large"


class NotFoundError(BridgeError):
    status_code = 404
    code = "not-found"


class ConflictError(BridgeError):
    status_code = 409
    code = "conflict"


class InternalError(BridgeError):
    status_code = 500
    code = "internal-error"


class UpstreamError(BridgeError):
    """A remote server or local tool failed. Upstream status/body ride along."""

    status_code = 500
    code = "upstream-error"

    def __init__(
        self,
        message: str,
        *,
        upstream_status: Optional[int] = None,
        upstream_body: Any = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.upstream_status = upstream_status
        self.upstream_body = upstream_body
        if upstream_status is not None:
            self.extra["upstream_status"] = upstream_status
        if upstream_body is not None:
            self.extra["upstream_body"] = upstream_body


class AuthenticationError(UpstreamError):
    code = "authentication-failed"


class DownloadError(UpstreamError):
    code = "download-failed"


class SpatialIndexError(UpstreamError):
    code = "index-failed"
