"""Fluent construction of :class:`ElectrumXClient` instances."""

from __future__ import annotations

from typing import Sequence

import requests

from .client import ElectrumXClient
from .config import DEFAULT_BASE_URI, DEFAULT_POLL_INTERVAL, ClientConfig
from .failover import DEFAULT_MAX_RETRIES, DEFAULT_RETRY_DELAY
from .network import Network
from .transport import DEFAULT_REQUEST_TIMEOUT


class ElectrumXBuilder:
    """Collect client settings, then :meth:`build` an immutable client.

    Example:
        client = (
            ElectrumXBuilder()
            .network("testnet")
            .base_uris("https://a.example/proxy,https://b.example/proxy")
            .build()
        )
    """

    def __init__(self) -> None:
        self._network: Network | str = Network.MAINNET
        self._base_uris: str | Sequence[str] = [DEFAULT_BASE_URI]
        self._request_timeout = DEFAULT_REQUEST_TIMEOUT
        self._max_retries = DEFAULT_MAX_RETRIES
        self._retry_delay = DEFAULT_RETRY_DELAY
        self._poll_interval = DEFAULT_POLL_INTERVAL
        self._session: requests.Session | None = None

    @classmethod
    def from_config(cls, config: ClientConfig) -> "ElectrumXBuilder":
        return (
            cls()
            .network(config.network)
            .base_uris(config.base_uris)
            .request_timeout(config.request_timeout)
            .max_retries(config.max_retries_per_uri)
            .retry_delay(config.retry_delay)
            .poll_interval(config.poll_interval)
        )

    def network(self, network: Network | str) -> "ElectrumXBuilder":
        self._network = network
        return self

    def base_uris(self, base_uris: str | Sequence[str]) -> "ElectrumXBuilder":
        """Set endpoints from a comma-delimited string or an ordered sequence."""

        self._base_uris = base_uris
        return self

    def request_timeout(self, seconds: float) -> "ElectrumXBuilder":
        self._request_timeout = seconds
        return self

    def max_retries(self, retries: int) -> "ElectrumXBuilder":
        self._max_retries = retries
        return self

    def retry_delay(self, seconds: float) -> "ElectrumXBuilder":
        self._retry_delay = seconds
        return self

    def poll_interval(self, seconds: float) -> "ElectrumXBuilder":
        self._poll_interval = seconds
        return self

    def session(self, session: requests.Session) -> "ElectrumXBuilder":
        """Use a caller-owned session (custom adapters, proxies, test doubles)."""

        self._session = session
        return self

    def build_config(self) -> ClientConfig:
        return ClientConfig(
            network=self._network,
            base_uris=self._base_uris,
            request_timeout=self._request_timeout,
            max_retries_per_uri=self._max_retries,
            retry_delay=self._retry_delay,
            poll_interval=self._poll_interval,
        )

    def build(self) -> ElectrumXClient:
        """Validate the collected settings and return a ready client.

        Raises:
            ConfigurationError: no base URIs, a malformed URI, an unknown
                network or an out-of-range timing/retry value.
        """

        return ElectrumXClient(self.build_config(), session=self._session)
