# errors.py
from __future__ import annotations

from enum import Enum

__all__ = ["ErrorCode", "ApiError"]


class ErrorCode(Enum):
    """Every failure the API can report: (HTTP status, default message)."""

    VALIDATION          = (400, "Invalid request.")
    ACCOUNT_EXISTS      = (400, "User with this email already exists.")
    INVALID_EMAIL       = (400, "Invalid email.")
    INVALID_CREDENTIALS = (400, "Invalid credentials.")
    INVALID_OTP         = (400, "Invalid or expired OTP.")
    UNAUTHENTICATED     = (401, "Token is not valid.")
    ACCOUNT_NOT_FOUND   = (404, "User not found. Please sign up first.")
    NOTE_NOT_FOUND      = (404, "Note not found or you are not the owner.")
    INTERNAL            = (500, "Server error.")

    @property
    def status(self) -> int:
        return self.value[0]

    @property
    def default_message(self) -> str:
        return self.value[1]


class ApiError(Exception):
    def __init__(self, code: ErrorCode, message: str | None = None):
        self.code = code
        self.message = message or code.default_message
        super().__init__(self.message)

    @property
    def status(self) -> int:
        return self.code.status

    def to_dict(self) -> dict:
        return {"success": False, "error": self.code.name, "message": self.message}
