"""Application error types for token handling."""

from __future__ import annotations

from enum import Enum

_DESCRIPTIONS = (
    "ER0001 unauthorized",
    "ER0002 the token is expired",
    "ER0003 the token is already refreshed",
    "ER0004 refresh token not found in database",
    "ER0005 error reading jwt claims",
    "ER0006 error fetching claims",
    "ER0007 could not parse refresh token with claims",
    "ER0008 could not read refresh token claims",
)


class ErrorType(str, Enum):
    """Known errors, each a code followed by a description."""

    UNAUTHORIZED = _DESCRIPTIONS[0]
    EXPIRED_TOKEN = _DESCRIPTIONS[1]
    TOKEN_ALREADY_REFRESHED = _DESCRIPTIONS[2]
    REFRESH_TOKEN_NOT_FOUND_IN_DATABASE = _DESCRIPTIONS[3]
    READING_JWT_CLAIMS = _DESCRIPTIONS[4]
    FETCHING_JWT_CLAIMS = _DESCRIPTIONS[5]
    PARSING_REFRESH_TOKEN_WITH_CLAIMS = _DESCRIPTIONS[6]
    READING_REFRESH_TOKEN_CLAIMS = _DESCRIPTIONS[7]


class AppError(Exception):
    """An exception carrying one of the known error types."""

    def __init__(self, error_type: ErrorType) -> None:
        self.error_type = error_type
        self.message = error_type.value.partition(" ")[2]
        super().__init__(error_type.value)

    def code(self) -> str:
        """Return the error code, such as the leading ER number."""
        return self.error_type.value.partition(" ")[0]