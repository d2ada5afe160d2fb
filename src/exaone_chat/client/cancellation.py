"""Cooperative cancellation of the in-flight chat request."""

import asyncio
from typing import Optional

import structlog

from ..domain.errors import StreamAborted

logger = structlog.get_logger()


class CancellationToken:
    """Cancellation signal for a single request.

    Cancelling sets the flag checked by the read loop and cancels the bound
    task, so a read that is currently suspended fails immediately.
    """

    def __init__(self) -> None:
        self._cancelled = False
        self._task: Optional["asyncio.Task"] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def bind(self, task: "asyncio.Task") -> None:
        self._task = task

    def cancel(self) -> None:
        self._cancelled = True
        if self._task is not None and not self._task.done():
            self._task.cancel()

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise StreamAborted("Request was aborted")


class CancellationController:
    """Holds the token of the request currently in flight, if any."""

    def __init__(self) -> None:
        self._token: Optional[CancellationToken] = None

    @property
    def in_flight(self) -> bool:
        return self._token is not None

    def begin(self) -> CancellationToken:
        """Create the token for a new request."""
        self._token = CancellationToken()
        return self._token

    def settle(self, token: CancellationToken) -> None:
        """Discard token once its request has finished."""
        if self._token is token:
            self._token = None

    def abort(self) -> bool:
        """Cancel the in-flight request; a no-op when nothing is running."""
        if self._token is None:
            return False
        logger.info("stream_abort_requested")
        self._token.cancel()
        return True
