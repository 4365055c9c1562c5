from __future__ import annotations

from typing import Any


class LuffaError(RuntimeError):
    pass


class ConfigError(LuffaError):
    pass


class LuffaAPIError(LuffaError):
    """The API answered with something that is not JSON."""

    def __init__(
        self,
        message: str = "Luffa API error",
        *,
        raw: str | None = None,
        endpoint: str | None = None,
    ) -> None:
        super().__init__(message)
        self.raw = raw
        self.endpoint = endpoint


class SoftFailError(LuffaError):
    """HTTP 200 with a failure encoded in the body."""

    def __init__(self, message: str = "API request failed", code: Any = None) -> None:
        super().__init__(message)
        self.code = code


class ReplyValidationError(LuffaError, ValueError):
    pass


class StartupError(LuffaError):
    pass
