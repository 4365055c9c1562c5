from __future__ import annotations

__version__ = "0.1.0"

from . import constants
from .client import Client
from .errors import (
    ConfigError,
    LuffaAPIError,
    LuffaError,
    ReplyValidationError,
    SoftFailError,
    StartupError,
)
from .message import Message
from .outbound import ReplyRequest
from .responses import parse_response
from .rest import LuffaRest

__all__ = [
    "Client",
    "ConfigError",
    "LuffaAPIError",
    "LuffaError",
    "LuffaRest",
    "Message",
    "ReplyRequest",
    "ReplyValidationError",
    "SoftFailError",
    "StartupError",
    "__version__",
    "constants",
    "parse_response",
]
