from __future__ import annotations

from typing import Any

import msgspec

__all__ = [
    "AtEntry",
    "Button",
    "ConfirmButton",
    "GroupMessage",
    "TextMessage",
    "encode_msg",
]


class Button(msgspec.Struct):
    name: str
    selector: str
    isHidden: str


class ConfirmButton(msgspec.Struct):
    name: str
    selector: str
    isHidden: str
    type: str


class AtEntry(msgspec.Struct):
    name: str
    did: str
    length: int
    location: int
    userType: str


class TextMessage(msgspec.Struct):
    text: str


class GroupMessage(msgspec.Struct, omit_defaults=True):
    text: str
    button: list[Button] | None = None
    confirm: list[ConfirmButton] | None = None
    dismissType: str | None = None
    atList: list[AtEntry] | None = None


_encoder = msgspec.json.Encoder()


def encode_msg(message: Any) -> str:
    """Serialize a message object into the JSON string sent as `msg`."""
    return _encoder.encode(message).decode("utf-8")
