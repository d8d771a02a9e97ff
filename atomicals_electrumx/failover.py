"""Multi-endpoint failover with bounded per-URI retries.

A call walks the configured base URIs in order. Each URI gets
``max_retries + 1`` attempts separated by a fixed ``retry_delay`` before the
engine moves on to the next one; the first decodable response wins. Every
call starts again from the first URI.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Sequence, TypeVar

from .transport import DecodeFailure, HTTPTransport, NetworkFailure, TransportError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY = 2.0


class ExhaustedAllEndpoints(RuntimeError):
    """Raised when every URI has used up its retry budget for one call."""

    def __init__(self, last_uri: str, attempts: int, last_error: Exception | None) -> None:
        super().__init__(
            f"Exceeded maximum retry attempts ({attempts} requests); last URI tried: {last_uri}"
            + (f" ({last_error})" if last_error is not None else "")
        )
        self.last_uri = last_uri
        self.attempts = attempts
        self.last_error = last_error


class OperationCancelled(RuntimeError):
    """Raised when the caller's cancel event is set while a call is pending."""


def _identity(body: Any) -> Any:
    return body


def check_cancelled(cancel_event: threading.Event | None) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise OperationCancelled("operation cancelled")


def pause(delay: float, cancel_event: threading.Event | None) -> None:
    """Sleep for ``delay`` seconds, waking early if ``cancel_event`` is set."""

    if cancel_event is None:
        time.sleep(delay)
        return
    if cancel_event.wait(delay):
        raise OperationCancelled("operation cancelled")


class FailoverEngine:
    """Turn an ordered list of upstream base URIs into one request primitive."""

    def __init__(
        self,
        transport: HTTPTransport,
        base_uris: Sequence[str],
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
    ) -> None:
        if not base_uris:
            raise ValueError("FailoverEngine requires at least one base URI")
        if max_retries < 0:
            raise ValueError("max_retries must be non-negative")
        self.transport = transport
        self.base_uris = tuple(base_uris)
        self.max_retries = max_retries
        self.retry_delay = retry_delay

    @property
    def max_attempts(self) -> int:
        return len(self.base_uris) * (self.max_retries + 1)

    @staticmethod
    def uri_of(base_uri: str, endpoint_path: str) -> str:
        return f"{base_uri}/{endpoint_path}"

    # TODO: remember the last URI that answered so a dead first endpoint is
    # not probed max_retries + 1 times on every call.
    def call(
        self,
        endpoint_path: str,
        params: Sequence[Any],
        decode: Callable[[Any], T] = _identity,
        *,
        cancel_event: threading.Event | None = None,
    ) -> T:
        """Send ``params`` to ``endpoint_path`` and return ``decode(body)``.

        ``NetworkFailure`` and ``DecodeFailure`` (including one raised by
        ``decode``) are retried; any other error propagates immediately.

        Raises:
            ExhaustedAllEndpoints: every URI failed ``max_retries + 1`` times.
            OperationCancelled: ``cancel_event`` was set before or between attempts.
        """

        uri_index = 0
        attempts = 0
        total = 0
        last_error: TransportError | None = None

        while True:
            check_cancelled(cancel_event)
            url = self.uri_of(self.base_uris[uri_index], endpoint_path)
            total += 1
            try:
                return decode(self.transport.post(url, params))
            except (NetworkFailure, DecodeFailure) as exc:
                last_error = exc
                logger.info("request %s failed: %s: %s", url, type(exc).__name__, exc)

            if attempts < self.max_retries:
                attempts += 1
                pause(self.retry_delay, cancel_event)
                continue

            if uri_index + 1 < len(self.base_uris):
                uri_index += 1
                attempts = 0
                logger.info("switching to URI %s", self.base_uris[uri_index])
                continue

            raise ExhaustedAllEndpoints(url, total, last_error)
