"""Server-sent-event frame parsing shared by the relay and the client.

Both ends of the relay speak the same line-oriented framing: each frame is a
``data: <payload>`` line followed by a blank line. Network reads can split a
line anywhere (including inside a multi-byte character) or carry several
lines at once, so the parser keeps a carry-over buffer between chunks.
"""

import codecs
import json
from typing import Any, AsyncIterable, AsyncIterator, Dict, List, Optional

import structlog

logger = structlog.get_logger()

DATA_PREFIX = "data: "
DONE = "[DONE]"


class EventFrameParser:
    """Incremental decoder from raw byte chunks to frame payload strings."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._buffer = ""

    def feed(self, chunk: bytes) -> List[str]:
        """Consume one chunk and return the payloads of all completed lines."""
        self._buffer += self._decoder.decode(chunk)
        lines = self._buffer.split("\n")
        self._buffer = lines.pop()
        return [payload for payload in map(_payload, lines) if payload is not None]

    def flush(self) -> List[str]:
        """Treat whatever is still buffered as the final line of the stream."""
        remainder = self._buffer + self._decoder.decode(b"", final=True)
        self._buffer = ""
        payload = _payload(remainder)
        return [payload] if payload is not None else []


def _payload(line: str) -> Optional[str]:
    line = line.rstrip("\r")
    if not line.startswith(DATA_PREFIX):
        return None
    return line[len(DATA_PREFIX):]


async def aiter_payloads(chunks: AsyncIterable[bytes]) -> AsyncIterator[str]:
    """Lazily yield frame payloads from an async stream of byte chunks."""
    parser = EventFrameParser()
    async for chunk in chunks:
        for payload in parser.feed(chunk):
            yield payload
    for payload in parser.flush():
        yield payload


def is_terminal(payload: str) -> bool:
    """Check for the end-of-stream sentinel."""
    return payload == DONE


def decode_payload(payload: str) -> Optional[Dict[str, Any]]:
    """Parse a JSON frame payload.

    Returns None for anything that is not a JSON object; the caller skips
    the frame and keeps reading.
    """
    try:
        data = json.loads(payload)
    except ValueError as e:
        logger.warning("malformed_frame_skipped", payload=payload[:200], error=str(e))
        return None
    if not isinstance(data, dict):
        logger.warning("malformed_frame_skipped", payload=payload[:200], error="not an object")
        return None
    return data


def encode_frame(payload: str) -> str:
    """Frame a payload for the outbound stream."""
    return f"{DATA_PREFIX}{payload}\n\n"
