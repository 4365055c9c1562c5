from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Hashable, Mapping
from typing import TYPE_CHECKING, Any

import anyio
import httpx
import msgspec

from .constants import API_BASE_URL, DEFAULT_POLL_INTERVAL_S, MESSAGE_TYPE_GROUP
from .errors import ConfigError, LuffaError, StartupError
from .logging import get_logger
from .message import Message
from .poller import Poller
from .rest import LuffaRest

if TYPE_CHECKING:
    from anyio.abc import TaskGroup

logger = get_logger(__name__)

MessageHandler = Callable[[Message], Awaitable[None] | None]


def is_group_entry(entry_type: Any) -> bool:
    if isinstance(entry_type, bool):
        return False
    return entry_type in (MESSAGE_TYPE_GROUP, str(MESSAGE_TYPE_GROUP))


class Client:
    """A bot session: polls for messages and hands them to handlers.

    Use it as an async context manager so handler coroutines and the poll
    loop have a task group to run in::

        async with Client(secret="...") as client:
            client.on_message(handler)
            await client.start()
            ...

    Seen message ids are kept for the lifetime of the session and never
    evicted.
    """

    def __init__(
        self,
        secret: str,
        *,
        poll_interval_s: float = DEFAULT_POLL_INTERVAL_S,
        base_url: str = API_BASE_URL,
        http_client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[None]] = anyio.sleep,
    ) -> None:
        if not secret:
            raise ConfigError("Luffa client requires a secret")
        self.secret = secret
        self.poll_interval_s = poll_interval_s
        self.rest = LuffaRest(secret, base_url=base_url, client=http_client)
        self.poller = Poller(
            self.rest.receive,
            self.handle_receive,
            poll_interval_s,
            sleep=sleep,
        )
        self._handlers: list[MessageHandler] = []
        self._seen_message_ids: set[Hashable] = set()
        self._running = False
        self._stopped: anyio.Event | None = None
        self._tg: TaskGroup | None = None

    @property
    def running(self) -> bool:
        return self._running

    async def __aenter__(self) -> Client:
        self._tg = await anyio.create_task_group().__aenter__()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.stop()
        tg, self._tg = self._tg, None
        try:
            if tg is not None:
                # let the original error propagate instead of an exception group
                if exc is not None:
                    tg.cancel_scope.cancel()
                await tg.__aexit__(None, None, None)
        finally:
            await self.rest.close()

    async def start(self) -> None:
        """Validate the secret with one poll, then start the poll loop."""
        if self._running:
            return
        if self._tg is None:
            raise RuntimeError("Client.start() must be called inside `async with client`")
        self._running = True
        # keep the event that wait_stopped() callers may already hold
        if self._stopped is None or self._stopped.is_set():
            self._stopped = anyio.Event()
        try:
            data = await self.rest.receive()
        except (LuffaError, httpx.HTTPError) as exc:
            self.stop()
            raise StartupError(
                f"Luffa client: {exc}. Check your API secret."
            ) from exc
        if not self._running:
            return
        logger.info("client.started", poll_interval_s=self.poll_interval_s)
        self.handle_receive(data)
        # a handler may have stopped the client
        if not self._running:
            return
        self.poller.start(self._tg)

    def stop(self) -> None:
        was_running = self._running
        self._running = False
        self.poller.stop()
        if self._stopped is not None:
            self._stopped.set()
        if was_running:
            logger.info("client.stopped")

    async def wait_stopped(self) -> None:
        if self._stopped is None:
            self._stopped = anyio.Event()
        await self._stopped.wait()

    async def run(self) -> None:
        """Start the client and block until `stop()` is called."""
        async with self:
            await self.start()
            await self.wait_stopped()

    def on_message(self, handler: MessageHandler) -> MessageHandler:
        if not callable(handler):
            raise TypeError("on_message expects a callable")
        self._handlers.append(handler)
        return handler

    def handle_receive(self, payload: Any) -> None:
        if not isinstance(payload, list):
            return
        for entry in payload:
            if not isinstance(entry, Mapping):
                continue
            channel_id = entry.get("uid")
            is_group = is_group_entry(entry.get("type"))
            messages = entry.get("message")
            if not isinstance(messages, list):
                continue
            for raw in messages:
                try:
                    parsed = msgspec.json.decode(raw)
                except (msgspec.DecodeError, TypeError):
                    continue
                if not isinstance(parsed, dict):
                    continue
                msg_id = parsed.get("msgId")
                if not isinstance(msg_id, Hashable):
                    continue
                if not msg_id or msg_id in self._seen_message_ids:
                    continue
                self._seen_message_ids.add(msg_id)
                content = parsed.get("text")
                author_id = parsed.get("uid")
                message = Message(
                    client=self,
                    id=msg_id,
                    content="" if content is None else content,
                    author_id=channel_id if author_id is None else author_id,
                    channel_id=channel_id,
                    is_group=is_group,
                    raw=parsed,
                )
                self._emit(message)

    def _emit(self, message: Message) -> None:
        for handler in list(self._handlers):
            try:
                result = handler(message)
                if inspect.isawaitable(result):
                    if self._tg is None:
                        if inspect.iscoroutine(result):
                            result.close()
                        raise RuntimeError(
                            "async handlers need the client to be entered"
                        )
                    self._tg.start_soon(self._await_handler, result, message.id)
            except Exception as exc:
                logger.error(
                    "dispatch.handler_failed",
                    message_id=message.id,
                    error=str(exc),
                    error_type=exc.__class__.__name__,
                    exc_info=True,
                )

    async def _await_handler(
        self, result: Awaitable[Any], message_id: Hashable
    ) -> None:
        try:
            await result
        except Exception as exc:
            logger.error(
                "dispatch.handler_failed",
                message_id=message_id,
                error=str(exc),
                error_type=exc.__class__.__name__,
                exc_info=True,
            )
