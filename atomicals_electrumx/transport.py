"""Single-shot HTTP transport for the ElectrumX JSON proxy.

One call to :meth:`HTTPTransport.post` is exactly one HTTP request. Retries and
endpoint rotation live in :mod:`atomicals_electrumx.failover`; this layer only
reports the outcome of the attempt it was asked to make.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Sequence

import requests
from requests import RequestException

logger = logging.getLogger(__name__)

DEFAULT_REQUEST_TIMEOUT = 30.0


class TransportError(RuntimeError):
    """Base class for failures of a single request attempt."""

    def __init__(
        self, message: str, *, url: str | None = None, status_code: int | None = None
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class NetworkFailure(TransportError):
    """The upstream could not be reached or the connection dropped."""


class DecodeFailure(TransportError):
    """A body was received but it is not the JSON shape the caller expects."""


class UnrecoverableTransport(TransportError):
    """The response body stream broke mid-read; the attempt is not retried."""


class HTTPTransport:
    """POST ``{"params": [...]}`` to an absolute URL and decode the JSON reply."""

    def __init__(
        self,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        self._session = session if session is not None else requests.Session()
        self.timeout = timeout

    def post(self, url: str, params: Sequence[Any]) -> Any:
        payload = {"params": list(params)}
        logger.debug("POST %s params=%s", url, payload["params"])
        try:
            response = self._session.post(
                url,
                data=json.dumps(payload),
                headers={"content-type": "application/json"},
                timeout=self.timeout,
                stream=True,
            )
        except RequestException as exc:
            raise NetworkFailure(f"{type(exc).__name__}: {exc}", url=url) from exc

        # The context manager hands the connection back to the pool however
        # reading ends.
        with response:
            text = self._read_text(url, response)
            try:
                return json.loads(text)
            except ValueError as exc:
                status = response.status_code
                prefix = f"HTTP {status}, " if not 200 <= status < 300 else ""
                raise DecodeFailure(
                    f"{prefix}malformed JSON body: {exc}", url=url, status_code=status
                ) from exc

    @staticmethod
    def _read_text(url: str, response: requests.Response) -> str:
        try:
            return response.text
        except (requests.exceptions.ChunkedEncodingError, requests.exceptions.ContentDecodingError) as exc:
            logger.error("Response body from %s broke mid-read: %s", url, exc)
            raise UnrecoverableTransport(
                f"response body stream error: {exc}", url=url, status_code=response.status_code
            ) from exc
        except RequestException as exc:
            raise NetworkFailure(
                f"{type(exc).__name__}: {exc}", url=url, status_code=response.status_code
            ) from exc

    def close(self) -> None:
        self._session.close()
