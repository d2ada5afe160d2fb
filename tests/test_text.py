"""Test suite for title and date helpers."""

from datetime import datetime

from exaone_chat.utils.text import (
    format_date,
    format_time,
    generate_conversation_title,
    generate_id,
    truncate,
)


def test_generate_id_unique():
    """Test that ids are unique strings."""
    ids = {generate_id() for _ in range(100)}
    assert len(ids) == 100
    assert all(isinstance(i, str) for i in ids)


def test_truncate():
    """Test truncation with ellipsis."""
    assert truncate("short", 10) == "short"
    assert truncate("exactly10!", 10) == "exactly10!"
    assert truncate("this is a long sentence", 10) == "this is a..."


def test_title_strips_markdown():
    """Test that emphasis markers and link syntax are removed."""
    assert generate_conversation_title("**Bold** text") == "Bold text"
    assert generate_conversation_title("[this link](http://x)") == "this link"
    assert generate_conversation_title("# Heading with `code` and ~strike~") == "Heading with code and strike"


def test_title_defaults_when_empty():
    """Test the placeholder title for blank content."""
    assert generate_conversation_title("") == "New Conversation"
    assert generate_conversation_title("   ") == "New Conversation"
    assert generate_conversation_title("***") == "New Conversation"


def test_title_is_length_bounded():
    """Test that long messages are cut to 50 characters plus an ellipsis."""
    title = generate_conversation_title("a" * 80)
    assert title == "a" * 50 + "..."


def test_format_date():
    """Test relative date labels."""
    now = datetime(2024, 1, 15, 12, 0)
    assert format_date(datetime(2024, 1, 15, 10, 0), now) == "Today"
    assert format_date(datetime(2024, 1, 14, 10, 0), now) == "Yesterday"
    assert format_date(datetime(2024, 1, 12, 10, 0), now) == "3 days ago"
    assert format_date(datetime(2024, 1, 1, 10, 0), now) == "Jan 1"
    assert format_date(datetime(2023, 12, 1, 10, 0), now) == "Dec 1, 2023"


def test_format_time():
    """Test 12-hour clock formatting."""
    assert format_time(datetime(2024, 1, 15, 14, 30)) == "2:30 PM"
    assert format_time(datetime(2024, 1, 15, 0, 5)) == "12:05 AM"
    assert format_time(datetime(2024, 1, 15, 12, 0)) == "12:00 PM"
