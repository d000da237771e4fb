"""
Error categorization for API callers.

Every failure is reduced to one of: validation, auth, server, client, network, unknown.
"""
from dataclasses import dataclass

import httpx

VALIDATION = "validation"
AUTH = "auth"
SERVER = "server"
CLIENT = "client"
NETWORK = "network"
UNKNOWN = "unknown"


@dataclass(frozen=True)
class ErrorInfo:
    type: str
    message: str
    status_code: int | None = None


class ApiError(Exception):
    def __init__(self, info: ErrorInfo):
        super().__init__(info.message)
        self.info = info

    @property
    def type(self) -> str:
        return self.info.type

    @property
    def status_code(self) -> int | None:
        return self.info.status_code


def _server_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        message = body.get("error") or body.get("message") or body.get("detail")
        if isinstance(message, str) and message:
            return message
    return "Server returned an error."


def categorize_error(err: Exception | None) -> ErrorInfo:
    if err is None:
        return ErrorInfo(UNKNOWN, "Something went wrong.")

    if isinstance(err, ApiError):
        return err.info

    if isinstance(err, httpx.HTTPStatusError):
        status = err.response.status_code
        message = _server_message(err.response)
        if status >= 500:
            return ErrorInfo(SERVER, message, status)
        if status in (400, 422):
            return ErrorInfo(VALIDATION, message, status)
        if status in (401, 403):
            return ErrorInfo(AUTH, "Please log in again.", status)
        return ErrorInfo(CLIENT, message, status)

    if isinstance(err, httpx.RequestError):
        return ErrorInfo(NETWORK, "Network error. Check your connection and try again.")

    return ErrorInfo(UNKNOWN, str(err) or "Unexpected error occurred.")
