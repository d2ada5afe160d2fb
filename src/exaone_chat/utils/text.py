"""Text and date helpers for conversations."""

import re
from datetime import datetime
from typing import Optional
from uuid import uuid4

TITLE_MAX_LENGTH = 50
DEFAULT_TITLE = "New Conversation"

_MARKDOWN_CHARS = re.compile(r"[#*_~`]")
_MARKDOWN_LINK = re.compile(r"\[([^\]]+)\]\([^)]+\)")


def generate_id() -> str:
    """Generate a unique identifier."""
    return uuid4().hex


def truncate(text: str, max_length: int) -> str:
    """Truncate text to ``max_length`` characters, marking the cut with an ellipsis."""
    if len(text) <= max_length:
        return text
    return text[:max_length].strip() + "..."


def generate_conversation_title(content: str) -> str:
    """Derive a plain-text conversation title from the first user message."""
    cleaned = _MARKDOWN_CHARS.sub("", content)
    cleaned = _MARKDOWN_LINK.sub(r"\1", cleaned).strip()
    return truncate(cleaned, TITLE_MAX_LENGTH) or DEFAULT_TITLE


def format_date(value: datetime, now: Optional[datetime] = None) -> str:
    """Format a date relative to ``now`` for conversation listings."""
    now = now or datetime.now(value.tzinfo)
    days = (now - value).days

    if days == 0:
        return "Today"
    if days == 1:
        return "Yesterday"
    if days < 7:
        return f"{days} days ago"

    label = f"{value:%b} {value.day}"
    if value.year != now.year:
        label += f", {value.year}"
    return label


def format_time(value: datetime) -> str:
    """Format a timestamp as ``h:MM AM``."""
    hour = value.hour % 12 or 12
    suffix = "AM" if value.hour < 12 else "PM"
    return f"{hour}:{value:%M} {suffix}"
