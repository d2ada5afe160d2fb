"""Exceptions shared by the relay and the client."""


class UpstreamError(Exception):
    """The completion provider could not be reached or refused the request."""

    def __init__(self, status_code: int, detail: str):
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail


class RelayRequestError(Exception):
    """The relay answered with a non-success status instead of a stream."""

    def __init__(self, status_code: int):
        super().__init__(f"HTTP error: {status_code}")
        self.status_code = status_code


class RelayStreamError(Exception):
    """The relay reported a failure inside an already open stream."""
    pass


class StreamAborted(Exception):
    """The user cancelled the in-flight request."""
    pass
