from __future__ import annotations

from collections.abc import Hashable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .outbound import GroupReply, ReplyRequest, build_reply

if TYPE_CHECKING:
    from .client import Client


@dataclass(slots=True)
class Message:
    client: Client = field(repr=False)
    id: Hashable
    content: str
    author_id: Any
    channel_id: Any
    is_group: bool
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    async def reply(self, content: str | ReplyRequest | Mapping[str, Any]) -> Any:
        """Reply in the channel this message came from.

        A private channel only ever receives the text; buttons, confirm
        dialogs and mentions are applied to group replies.
        """
        route = build_reply(content, is_group=self.is_group)
        if isinstance(route, GroupReply):
            return await self.client.rest.send_group(
                self.channel_id, route.message, route.kind
            )
        return await self.client.rest.send(self.channel_id, route.text)
