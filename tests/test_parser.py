"""Test suite for event frame parsing."""

import pytest

from exaone_chat.streaming.parser import (
    DONE,
    EventFrameParser,
    aiter_payloads,
    decode_payload,
    encode_frame,
    is_terminal,
)

STREAM = (
    'data: {"id": "1", "content": "Hel"}\n\n'
    ": keepalive\n\n"
    'data: {"id": "2", "content": "lo, wörld ✨"}\n\n'
    "event: ping\n"
    "data: [DONE]\n\n"
).encode("utf-8")

EXPECTED = [
    '{"id": "1", "content": "Hel"}',
    '{"id": "2", "content": "lo, wörld ✨"}',
    DONE,
]


def parse_all(chunks):
    parser = EventFrameParser()
    payloads = []
    for chunk in chunks:
        payloads.extend(parser.feed(chunk))
    payloads.extend(parser.flush())
    return payloads


def test_whole_stream_in_one_chunk():
    """Test decoding a stream delivered in a single read."""
    assert parse_all([STREAM]) == EXPECTED


@pytest.mark.parametrize("size", [1, 2, 3, 7, 16, 64])
def test_output_independent_of_chunking(size):
    """Test that splitting bytes anywhere, even inside characters, changes nothing."""
    chunks = [STREAM[i:i + size] for i in range(0, len(STREAM), size)]
    assert parse_all(chunks) == EXPECTED


def test_partial_line_is_held_back():
    """Test that an incomplete line is buffered until its terminator arrives."""
    parser = EventFrameParser()
    assert parser.feed(b'data: {"content": "par') == []
    assert parser.feed(b'tial"}\n') == ['{"content": "partial"}']


def test_crlf_line_endings():
    """Test streams framed with CRLF."""
    assert parse_all([b"data: one\r\n\r\ndata: two\r\n\r\n"]) == ["one", "two"]


def test_unterminated_final_line_is_flushed():
    """Test that a last line without a newline is still delivered at end of input."""
    assert parse_all([b"data: first\n\ndata: last"]) == ["first", "last"]


def test_non_data_lines_are_ignored():
    """Test that comments and other fields never produce payloads."""
    assert parse_all([b": comment\nevent: update\nid: 4\nretry: 10\n\n"]) == []


def test_terminal_sentinel():
    """Test sentinel classification."""
    assert is_terminal("[DONE]")
    assert not is_terminal('"[DONE]"')
    assert not is_terminal('{"content": "[DONE]"}')


def test_decode_payload():
    """Test structured payload decoding and malformed payload tolerance."""
    assert decode_payload('{"content": "hi"}') == {"content": "hi"}
    assert decode_payload("{not json") is None
    assert decode_payload("[1, 2]") is None
    assert decode_payload("42") is None


def test_encode_frame():
    """Test outbound framing."""
    assert encode_frame('{"a": 1}') == 'data: {"a": 1}\n\n'
    assert encode_frame(DONE) == "data: [DONE]\n\n"


@pytest.mark.asyncio
async def test_malformed_payload_between_good_frames():
    """Test that a malformed payload is yielded raw and good frames around it survive."""

    async def chunks():
        yield b'data: {"content": "a"}\n\ndata: {bro'
        yield b'ken\n\ndata: {"content": "b"}\n\n'

    payloads = [p async for p in aiter_payloads(chunks())]
    decoded = [decode_payload(p) for p in payloads]
    assert decoded == [{"content": "a"}, None, {"content": "b"}]
