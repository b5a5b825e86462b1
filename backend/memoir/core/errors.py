"""Domain error taxonomy shared by services and the HTTP layer.

Every error carries the HTTP status it maps to so route handlers can stay thin;
the translation to JSON bodies lives in ``memoir.main``.
"""

from __future__ import annotations

from fastapi import status


class MemoirError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInput(MemoirError):
    status_code = status.HTTP_400_BAD_REQUEST


class UnknownProfile(MemoirError):
    status_code = status.HTTP_401_UNAUTHORIZED


class Forbidden(MemoirError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(MemoirError):
    status_code = status.HTTP_404_NOT_FOUND


class ProviderUnavailable(MemoirError):
    """No embedding/generative credential is configured."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class ProviderError(MemoirError):
    """The remote provider call failed or returned something unusable."""

    status_code = status.HTTP_502_BAD_GATEWAY


class StorageError(MemoirError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class DimensionMismatch(ValueError):
    """Two vectors of different length were compared in strict mode."""
