from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from .api_models import AtEntry, Button, ConfirmButton, GroupMessage
from .constants import (
    BUTTON_TYPE_DEFAULT,
    GROUP_MESSAGE_TYPE_BUTTONS,
    GROUP_MESSAGE_TYPE_TEXT,
    MENTION_USER_TYPE,
    VISIBILITY_HIDDEN,
    VISIBILITY_VISIBLE,
)
from .errors import ReplyValidationError

__all__ = [
    "GroupReply",
    "PrivateReply",
    "ReplyRequest",
    "apply_mentions",
    "build_reply",
    "normalize_buttons",
    "to_hidden_flag",
]


@dataclass(frozen=True, slots=True)
class ReplyRequest:
    text: str
    buttons: Sequence[Mapping[str, Any]] | None = None
    confirm: Sequence[Mapping[str, Any]] | None = None
    dismiss_type: str | None = None
    mentions: Sequence[Mapping[str, Any]] | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ReplyRequest:
        dismiss_type = data.get("dismissType")
        if dismiss_type is None:
            dismiss_type = data.get("dismiss_type")
        return cls(
            text=data.get("text"),  # type: ignore[arg-type]
            buttons=data.get("buttons"),
            confirm=data.get("confirm"),
            dismiss_type=dismiss_type,
            mentions=data.get("mentions"),
        )


@dataclass(frozen=True, slots=True)
class PrivateReply:
    text: str


@dataclass(frozen=True, slots=True)
class GroupReply:
    message: GroupMessage
    kind: int


def _first(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None


def to_hidden_flag(value: Any) -> str:
    if value in (True, 1, "1"):
        return VISIBILITY_HIDDEN
    return VISIBILITY_VISIBLE


def _button_type(button: Mapping[str, Any]) -> str:
    value = _first(button, "type", "style")
    return BUTTON_TYPE_DEFAULT if value is None else value


def normalize_buttons(
    buttons: Any, *, include_type: bool
) -> list[Button] | list[ConfirmButton]:
    if (
        isinstance(buttons, (str, bytes, Mapping))
        or not isinstance(buttons, Sequence)
        or not buttons
    ):
        raise ReplyValidationError("Buttons must be a non-empty list")

    normalized: list[Any] = []
    for button in buttons:
        if not isinstance(button, Mapping):
            raise ReplyValidationError("Each button must be a mapping")
        name = _first(button, "name", "label")
        selector = _first(button, "selector", "value")
        if not name or not selector:
            raise ReplyValidationError(
                "Buttons require name/label and selector/value"
            )
        is_hidden = to_hidden_flag(_first(button, "isHidden", "hidden"))
        if include_type:
            normalized.append(
                ConfirmButton(
                    name=name,
                    selector=selector,
                    isHidden=is_hidden,
                    type=_button_type(button),
                )
            )
        else:
            normalized.append(Button(name=name, selector=selector, isHidden=is_hidden))
    return normalized


def apply_mentions(
    text: str, mentions: Sequence[Any]
) -> tuple[str, list[AtEntry]]:
    """Make sure every `@<id>` token is in `text` and locate each one.

    When any token is missing, all tokens are prepended (each followed by a
    space) in mention order. Locations are searched left to right, so two
    mentions of the same id map to two distinct occurrences.
    """
    resolved: list[tuple[str, str]] = []
    for mention in mentions:
        if not isinstance(mention, Mapping):
            continue
        if not (mention.get("uid") or mention.get("id")):
            continue
        uid = _first(mention, "uid", "id")
        name = _first(mention, "name", "uid", "id")
        resolved.append((str(uid), str(name)))

    tokens = [f"@{uid}" for uid, _ in resolved]
    working = text
    if not all(token in text for token in tokens):
        working = "".join(f"{token} " for token in tokens) + text

    at_list: list[AtEntry] = []
    cursor = 0
    for (uid, name), token in zip(resolved, tokens, strict=True):
        location = working.find(token, cursor)
        if location == -1:
            continue
        at_list.append(
            AtEntry(
                name=name,
                did=uid,
                length=len(token) + 1,
                location=location,
                userType=MENTION_USER_TYPE,
            )
        )
        cursor = location + len(token)
    return working, at_list


def _require_text(text: Any) -> str:
    if not isinstance(text, str) or not text:
        raise ReplyValidationError("Reply text must be a non-empty string")
    return text


def build_reply(
    request: str | ReplyRequest | Mapping[str, Any], *, is_group: bool
) -> PrivateReply | GroupReply:
    if isinstance(request, str):
        text = _require_text(request)
        if is_group:
            return GroupReply(GroupMessage(text=text), GROUP_MESSAGE_TYPE_TEXT)
        return PrivateReply(text)

    if isinstance(request, Mapping):
        request = ReplyRequest.from_mapping(request)
    elif not isinstance(request, ReplyRequest):
        raise ReplyValidationError("reply expects a string or a reply request")

    text = _require_text(request.text)
    if not is_group:
        return PrivateReply(text)

    message = GroupMessage(text=text)
    kind = GROUP_MESSAGE_TYPE_TEXT

    if request.buttons is not None or request.confirm is not None:
        if request.buttons is not None and request.confirm is not None:
            raise ReplyValidationError("Only one of buttons or confirm can be provided")
        kind = GROUP_MESSAGE_TYPE_BUTTONS
        if request.buttons is not None:
            message.button = normalize_buttons(request.buttons, include_type=False)
        else:
            message.confirm = normalize_buttons(request.confirm, include_type=True)
        if request.dismiss_type:
            message.dismissType = request.dismiss_type

    mentions = request.mentions
    if (
        isinstance(mentions, Sequence)
        and not isinstance(mentions, (str, bytes))
        and mentions
    ):
        message.text, message.atList = apply_mentions(message.text, mentions)

    return GroupReply(message, kind)
