from typing import Any

from pydantic import BaseModel, Field


class InboundEmail(BaseModel):
    sender: str | None = None
    recipient: str = Field(min_length=1)
    subject: str | None = None
    body: str | None = None
    message_id: str | None = None
    in_reply_to: str | None = None
    data: dict[str, Any] | None = None


class InboundResponse(BaseModel):
    status: str
    ticket_id: str | None = None
    ticket_url: str | None = None
    occurrences: int = 0
    detail: str | None = None
