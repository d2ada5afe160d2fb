"""
Chat Session Module

Client side of the streaming relay. A send appends the user's message and an
empty assistant placeholder to the store, posts the history to the relay and
applies every decoded frame to the placeholder as it arrives.

The placeholder always leaves the streaming state through exactly one of
three paths:
- success: content stays as accumulated
- abort: partial content, or a cancellation notice when nothing arrived
- error: a fixed error notice, with the error text kept on the store
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import httpx
import structlog

from ..domain.errors import RelayRequestError, RelayStreamError, StreamAborted
from ..store.conversation_store import ConversationStore
from ..streaming.parser import aiter_payloads, decode_payload, is_terminal
from .cancellation import CancellationController, CancellationToken

logger = structlog.get_logger()

CANCELLED_NOTICE = "Message generation was cancelled."
ERROR_NOTICE = "An error occurred while generating the response. Please try again."


@dataclass
class StreamAccumulator:
    """Running totals for one response."""

    content: str = ""
    reasoning: str = ""

    def append(self, frame: Dict[str, Any]) -> None:
        self.content += frame.get("content") or ""
        self.reasoning += frame.get("reasoning_content") or ""


class ChatSession:
    """Sends messages to the relay and streams replies into the store."""

    def __init__(
        self,
        store: ConversationStore,
        client: httpx.AsyncClient,
        endpoint: str = "/api/chat",
        on_error: Optional[Callable[[Exception], None]] = None,
    ) -> None:
        self.store = store
        self.client = client
        self.endpoint = endpoint
        self.on_error = on_error
        self.cancellation = CancellationController()

    @property
    def is_streaming(self) -> bool:
        return self.store.is_streaming

    def abort(self) -> None:
        """Stop the response currently being generated, if there is one."""
        self.cancellation.abort()

    def _history(self, conversation_id: str, exclude_id: str) -> List[Dict[str, str]]:
        conversation = self.store.get_conversation(conversation_id)
        if conversation is None:
            return []
        return [
            {"role": m.role, "content": m.content}
            for m in conversation.messages
            if m.role != "system" and m.id != exclude_id
        ]

    async def send_message(self, content: str) -> str:
        """Send a user message and stream the reply; returns the reply's message id."""
        store = self.store
        store.clear_error()

        conversation_id = store.active_conversation_id or store.create_conversation()
        store.add_message(conversation_id, role="user", content=content)
        assistant_id = store.add_message(
            conversation_id, role="assistant", content="", is_streaming=True
        )
        store.set_streaming(True)

        accumulator = StreamAccumulator()
        token = self.cancellation.begin()
        try:
            history = self._history(conversation_id, exclude_id=assistant_id)
            task = asyncio.ensure_future(
                self._consume(conversation_id, assistant_id, history, accumulator, token)
            )
            token.bind(task)
            await task

            store.update_message(conversation_id, assistant_id, is_streaming=False)
            logger.info(
                "stream_completed",
                conversation_id=conversation_id,
                content_length=len(accumulator.content),
                reasoning_length=len(accumulator.reasoning),
            )
        except (asyncio.CancelledError, StreamAborted):
            store.update_message(
                conversation_id,
                assistant_id,
                content=accumulator.content or CANCELLED_NOTICE,
                is_streaming=False,
            )
            logger.info("stream_aborted", conversation_id=conversation_id, by_user=token.cancelled)
            if not token.cancelled:
                raise
        except Exception as e:
            message = str(e) or "Unknown error"
            logger.error("stream_failed", conversation_id=conversation_id, error=message)
            store.set_error(message)
            store.update_message(
                conversation_id, assistant_id, content=ERROR_NOTICE, is_streaming=False
            )
            if self.on_error is not None:
                self.on_error(e)
        finally:
            store.set_streaming(False)
            self.cancellation.settle(token)

        return assistant_id

    async def _consume(
        self,
        conversation_id: str,
        message_id: str,
        history: List[Dict[str, str]],
        accumulator: StreamAccumulator,
        token: CancellationToken,
    ) -> None:
        async with self.client.stream("POST", self.endpoint, json={"messages": history}) as response:
            if not response.is_success:
                await response.aread()
                logger.warning(
                    "relay_request_failed", status=response.status_code, body=response.text[:500]
                )
                raise RelayRequestError(response.status_code)

            async for payload in aiter_payloads(response.aiter_bytes()):
                token.raise_if_cancelled()
                if is_terminal(payload):
                    break

                frame = decode_payload(payload)
                if frame is None:
                    continue
                if frame.get("error"):
                    raise RelayStreamError(str(frame["error"]))

                accumulator.append(frame)
                updates: Dict[str, Any] = {"content": accumulator.content, "is_streaming": True}
                if accumulator.reasoning:
                    updates["reasoning_content"] = accumulator.reasoning
                self.store.update_message(conversation_id, message_id, **updates)
