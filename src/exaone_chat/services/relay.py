"""Relay between the chat client and the completion provider.

The relay has two phases. Opening the upstream request happens before any
response is committed, so failures there become ordinary error responses.
Once the upstream stream is open the relay only ever writes frames: a
failure mid-stream is reported as an in-band error frame and the stream is
closed.
"""

from typing import AsyncIterator, List, Optional

import httpx
import structlog
from pydantic import ValidationError

from ..config import RelaySettings
from ..domain.errors import UpstreamError
from ..domain.models import ChatMessage, ErrorFrame, StreamFrame
from ..metrics import FRAMES, MALFORMED_FRAMES
from ..streaming.parser import DONE, aiter_payloads, decode_payload, encode_frame, is_terminal

logger = structlog.get_logger()


class UpstreamRelay:
    """Forwards a chat history upstream and re-frames the provider's stream."""

    def __init__(self, settings: RelaySettings, client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            # Reads never time out; a stalled provider is only ended by the client
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(None, connect=self.settings.connect_timeout)
            )
        return self._client

    async def aclose(self) -> None:
        """Release the upstream connection pool."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def prepare_messages(self, messages: List[ChatMessage]) -> List[dict]:
        """Prepend the default system directive unless the history carries one."""
        payload = [message.model_dump() for message in messages]
        if not any(message.role == "system" for message in messages):
            payload.insert(0, {"role": "system", "content": self.settings.system_prompt})
        return payload

    def build_request(self, messages: List[ChatMessage]) -> httpx.Request:
        body = {
            "model": self.settings.model,
            "messages": self.prepare_messages(messages),
            "stream": True,
            **self.settings.extra_body,
        }
        return self.client.build_request(
            "POST",
            self.settings.completions_url,
            json=body,
            headers={"Authorization": f"Bearer {self.settings.api_token}"},
        )

    async def open_stream(self, messages: List[ChatMessage]) -> httpx.Response:
        """Open the upstream stream.

        Raises UpstreamError when the provider cannot be reached or answers
        with a non-success status; the error body is read in full.
        """
        try:
            response = await self.client.send(self.build_request(messages), stream=True)
        except httpx.HTTPError as e:
            logger.error("upstream_connection_failed", error=str(e))
            raise UpstreamError(502, f"Failed to reach completion provider: {e}") from e

        if not response.is_success:
            try:
                await response.aread()
                detail = response.text
            finally:
                await response.aclose()
            logger.error("upstream_request_failed", status=response.status_code, body=detail[:500])
            raise UpstreamError(response.status_code, detail or "API request failed")

        logger.info("relay_stream_opened", message_count=len(messages))
        return response

    async def relay_frames(self, response: httpx.Response) -> AsyncIterator[str]:
        """Translate the provider's event stream into simplified frames."""
        frames = 0
        try:
            async for payload in aiter_payloads(response.aiter_bytes()):
                if is_terminal(payload):
                    frames += 1
                    FRAMES.inc()
                    yield encode_frame(DONE)
                    continue

                frame = translate_chunk(payload)
                if frame is None:
                    MALFORMED_FRAMES.inc()
                    continue

                frames += 1
                FRAMES.inc()
                yield encode_frame(frame.model_dump_json())
        except Exception as e:
            logger.error("relay_stream_failed", error=str(e), frames=frames)
            yield encode_frame(ErrorFrame(error=str(e) or "Streaming failed").model_dump_json())
        finally:
            await response.aclose()
        logger.info("relay_stream_closed", frames=frames)


def translate_chunk(payload: str) -> Optional[StreamFrame]:
    """Extract the first choice's deltas from a provider chunk.

    Returns None when the payload is not a usable chunk.
    """
    data = decode_payload(payload)
    if data is None:
        return None

    choices = data.get("choices")
    choice = choices[0] if isinstance(choices, list) and choices else {}
    if not isinstance(choice, dict):
        choice = {}
    delta = choice.get("delta")
    if not isinstance(delta, dict):
        delta = {}

    chunk_id = data.get("id")
    try:
        return StreamFrame(
            id=str(chunk_id) if chunk_id is not None else None,
            content=delta.get("content") or "",
            reasoning_content=delta.get("reasoning_content") or "",
            finish_reason=choice.get("finish_reason"),
        )
    except ValidationError as e:
        logger.warning("malformed_frame_skipped", payload=payload[:200], error=str(e))
        return None
