from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .constants import SOFT_FAIL_CODE, VERIFICATION_FAILED_MSG
from .errors import SoftFailError


def parse_response(body: Any) -> Any:
    """Return the body, or raise `SoftFailError` if it encodes a failure.

    The API always answers HTTP 200, so rejections only show up in the body:
    either the verification failure message or `code == 500`. Anything else
    (including `{}` and lists) is a success and is returned as-is.
    """
    if not isinstance(body, Mapping):
        return body
    msg = body.get("msg")
    code = body.get("code")
    if msg == VERIFICATION_FAILED_MSG or (
        code == SOFT_FAIL_CODE and not isinstance(code, bool)
    ):
        raise SoftFailError(msg or "API request failed", code)
    return body
