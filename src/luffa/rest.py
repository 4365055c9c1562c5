from __future__ import annotations

from typing import Any

import httpx
import msgspec

from .api_models import TextMessage, encode_msg
from .constants import (
    API_BASE_URL,
    DEFAULT_HTTP_TIMEOUT_S,
    ENDPOINT_RECEIVE,
    ENDPOINT_SEND,
    ENDPOINT_SEND_GROUP,
    GROUP_MESSAGE_TYPE_TEXT,
)
from .errors import LuffaAPIError
from .logging import get_logger, register_secret
from .responses import parse_response

logger = get_logger(__name__)


class LuffaRest:
    """Issues the bot API calls and interprets their soft-fail bodies."""

    def __init__(
        self,
        secret: str,
        *,
        base_url: str = API_BASE_URL,
        timeout_s: float = DEFAULT_HTTP_TIMEOUT_S,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._secret = secret
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout_s)
        self._owns_client = client is None
        register_secret(secret)

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def request(self, endpoint: str, payload: dict[str, Any]) -> Any:
        logger.debug("rest.request", endpoint=endpoint, payload=payload)
        resp = await self._client.post(
            f"{self.base_url}{endpoint}",
            json=payload,
            headers={"Content-Type": "application/json"},
        )
        raw = resp.text
        if not raw:
            return parse_response({})
        try:
            body = msgspec.json.decode(raw)
        except msgspec.DecodeError as e:
            logger.error(
                "rest.bad_response",
                endpoint=endpoint,
                status=resp.status_code,
                error=str(e),
                body=raw,
            )
            raise LuffaAPIError(
                "Invalid JSON response from Luffa API", raw=raw, endpoint=endpoint
            ) from e
        logger.debug("rest.response", endpoint=endpoint, payload=body)
        return parse_response(body)

    async def receive(self) -> Any:
        return await self.request(ENDPOINT_RECEIVE, {"secret": self._secret})

    async def send(self, uid: Any, text: str) -> Any:
        return await self.request(
            ENDPOINT_SEND,
            {
                "secret": self._secret,
                "uid": uid,
                "msg": encode_msg(TextMessage(text=text)),
            },
        )

    async def send_group(
        self, uid: Any, message: Any, kind: int = GROUP_MESSAGE_TYPE_TEXT
    ) -> Any:
        return await self.request(
            ENDPOINT_SEND_GROUP,
            {
                "secret": self._secret,
                "uid": uid,
                "msg": encode_msg(message),
                "type": str(kind),
            },
        )
