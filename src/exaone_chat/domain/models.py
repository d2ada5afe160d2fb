"""Domain models for the chat application."""

from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..utils.text import DEFAULT_TITLE, generate_id

Role = Literal["user", "assistant", "system"]


def utcnow() -> datetime:
    """Current timestamp in UTC."""
    return datetime.now(timezone.utc)


class Message(BaseModel):
    """Message model."""

    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    id: str = Field(default_factory=generate_id)
    role: Role
    content: str = ""
    reasoning_content: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")
    is_streaming: bool = Field(default=False, alias="isStreaming")


class Conversation(BaseModel):
    """Conversation model."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=generate_id)
    title: str = DEFAULT_TITLE
    messages: List[Message] = []
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")
    updated_at: datetime = Field(default_factory=utcnow, alias="updatedAt")


class ConversationCollection(BaseModel):
    """Session-wide chat state.

    Only ``conversations`` and ``active_conversation_id`` are persisted;
    ``is_streaming`` and ``error`` are transient.
    """

    model_config = ConfigDict(populate_by_name=True)

    conversations: List[Conversation] = []
    active_conversation_id: Optional[str] = Field(default=None, alias="activeConversationId")
    is_streaming: bool = Field(default=False, exclude=True)
    error: Optional[str] = Field(default=None, exclude=True)


class ChatMessage(BaseModel):
    """Role/content pair exchanged with the relay and the provider."""

    role: Role
    content: str


class StreamFrame(BaseModel):
    """Simplified frame written by the relay for each upstream delta."""

    id: Optional[str] = None
    content: str = ""
    reasoning_content: str = ""
    finish_reason: Optional[str] = None


class ErrorFrame(BaseModel):
    """In-band error written when the upstream stream fails mid-flight."""

    error: str
