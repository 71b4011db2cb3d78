from __future__ import annotations
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from hospital_bot.utils.text import normalize


class InboundMessage(BaseModel):
    """Channel-neutral shape of one incoming chat message."""

    type: str
    sender_id: Optional[str] = None
    message_id: Optional[str] = None
    sender_name: Optional[str] = None
    text: Optional[str] = None
    button_reply_id: Optional[str] = None
    list_reply_id: Optional[str] = None

    def normalized_text(self) -> str:
        # typed text is case/space-insensitive, reply ids are matched verbatim
        if self.type == "text":
            return normalize(self.text)
        if self.type == "interactive":
            return self.button_reply_id or self.list_reply_id or ""
        return ""

    @property
    def is_supported(self) -> bool:
        return self.type in ("text", "interactive") and bool(self.sender_id)


class Button(BaseModel):
    id: str
    title: str


class ListRow(BaseModel):
    id: str
    title: str
    description: Optional[str] = None


class ListSection(BaseModel):
    title: str
    rows: List[ListRow]


class Reply(BaseModel):
    """One outgoing message: plain text, reply buttons or a list picker."""

    kind: Literal["text", "buttons", "list"] = "text"
    body: str
    buttons: List[Button] = Field(default_factory=list)
    button_label: str = "Choose"
    sections: List[ListSection] = Field(default_factory=list)

    @classmethod
    def text(cls, body: str) -> "Reply":
        return cls(kind="text", body=body)

    @classmethod
    def with_buttons(cls, body: str, buttons: List[Button]) -> "Reply":
        return cls(kind="buttons", body=body, buttons=buttons)

    @classmethod
    def with_list(cls, body: str, button_label: str, sections: List[ListSection]) -> "Reply":
        return cls(kind="list", body=body, button_label=button_label, sections=sections)
