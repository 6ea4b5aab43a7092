"""Error taxonomy for guardianship and record operations.

Core operations raise these; the HTTP layer turns them into JSON responses
using ``code`` and ``status_code``.
"""
from __future__ import annotations


class UsratiError(Exception):
    code = "error"
    status_code = 500

    def __init__(self, detail: str = "") -> None:
        super().__init__(detail or self.code)
        self.detail = detail or self.code


class NotFound(UsratiError):
    code = "not_found"
    status_code = 404


class AdultDependent(UsratiError):
    code = "adult_dependent"
    status_code = 422


class DuplicateLink(UsratiError):
    code = "duplicate_link"
    status_code = 409


class AlreadyRevoked(UsratiError):
    code = "already_revoked"
    status_code = 409


class StoreError(UsratiError):
    """The record store rejected a request."""

    code = "store_error"
    status_code = 502


class UniqueViolation(StoreError):
    code = "unique_violation"
    status_code = 409


class StoreUnavailable(StoreError):
    """Transient infrastructure failure; not retried here."""

    code = "store_unavailable"
    status_code = 503
