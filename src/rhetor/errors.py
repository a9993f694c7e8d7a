"""Error taxonomy shared by the backend handlers and the client core.

Every error carries a short human-readable message and the HTTP status the
backend renders it with. Nothing here is retried automatically.
"""

from __future__ import annotations


class RhetorError(Exception):
    status_code = 500

    def __init__(self, message: str, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_payload(self) -> dict[str, str]:
        payload = {"error": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(RhetorError):
    status_code = 400


class AuthError(RhetorError):
    status_code = 401


class ForbiddenError(RhetorError):
    status_code = 403


class NotFoundError(RhetorError):
    status_code = 404


class DataSourceError(RhetorError):
    status_code = 500


class AggregationError(RhetorError):
    status_code = 500


class PermissionDenied(RhetorError):
    status_code = 403


class SessionCreationFailed(RhetorError):
    pass


class CaptureProducedNoFile(RhetorError):
    pass


class DuplicateUpload(RhetorError):
    status_code = 409


class UploadFailed(RhetorError):
    pass
