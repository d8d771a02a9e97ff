"""Typed client for an Atomicals ElectrumX HTTP proxy.

Each public method maps to one proxy endpoint: it knows the method path, how
to build ``params`` and which envelope to unwrap. Retries, endpoint rotation
and timeouts are handled underneath by :class:`FailoverEngine` and
:class:`HTTPTransport`; the methods here add none of their own.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List

import requests

from .address import address_to_scripthash
from .config import ClientConfig
from .failover import FailoverEngine, check_cancelled, pause
from .model import (
    Unspent,
    Utxo,
    decode_ft_info,
    decode_ticker,
    decode_txid,
    decode_unspent_list,
)
from .network import Network
from .transport import HTTPTransport
from .utxo import normalize_unspent, select_spendable, sort_by_value

logger = logging.getLogger(__name__)

GET_BY_TICKER = "blockchain.atomicals.get_by_ticker"
GET_FT_INFO = "blockchain.atomicals.get_ft_info"
LIST_UNSPENT = "blockchain.scripthash.listunspent"
BROADCAST = "blockchain.transaction.broadcast"


class ElectrumXClient:
    """RPC facade over a prioritised list of ElectrumX proxy endpoints.

    Build instances with :class:`~atomicals_electrumx.builder.ElectrumXBuilder`.
    The client holds a pooled ``requests.Session`` and no other mutable state,
    so its connection pool is reused across calls. ``requests`` does not
    promise that a ``Session`` is thread-safe; give each thread its own client.

    Every method accepts an optional ``cancel_event``; setting it aborts the
    call at its next retry or poll sleep with :class:`OperationCancelled`.
    """

    def __init__(self, config: ClientConfig, session: requests.Session | None = None) -> None:
        self.config = config
        self._transport = HTTPTransport(session, timeout=config.request_timeout)
        self._engine = FailoverEngine(
            self._transport,
            config.base_uris,
            max_retries=config.max_retries_per_uri,
            retry_delay=config.retry_delay,
        )

    @property
    def network(self) -> Network:
        return self.config.network

    @property
    def base_uris(self) -> tuple[str, ...]:
        return self.config.base_uris

    def close(self) -> None:
        self._transport.close()

    def __enter__(self) -> "ElectrumXClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # Proxy methods --------------------------------------------------------

    def get_by_ticker(
        self, ticker: str, *, cancel_event: threading.Event | None = None
    ) -> Dict[str, Any]:
        return self._engine.call(GET_BY_TICKER, [ticker], decode_ticker, cancel_event=cancel_event)

    def get_ft_info(
        self, atomical_id: str, *, cancel_event: threading.Event | None = None
    ) -> Dict[str, Any]:
        """Return the ``{"result": ft, "global": ...}`` response for an FT."""

        return self._engine.call(GET_FT_INFO, [atomical_id], decode_ft_info, cancel_event=cancel_event)

    def list_unspent_scripthash(
        self, scripthash: str, *, cancel_event: threading.Event | None = None
    ) -> List[Unspent]:
        return self._engine.call(
            LIST_UNSPENT, [scripthash], decode_unspent_list, cancel_event=cancel_event
        )

    def broadcast(self, raw_tx_hex: str, *, cancel_event: threading.Event | None = None) -> str:
        """Broadcast a signed transaction and return its txid."""

        txid = self._engine.call(BROADCAST, [raw_tx_hex], decode_txid, cancel_event=cancel_event)
        logger.info("Transaction broadcast successful: %s", txid)
        return txid

    # UTXO view ------------------------------------------------------------

    def get_unspent_scripthash(
        self, scripthash: str, *, cancel_event: threading.Event | None = None
    ) -> List[Utxo]:
        """UTXOs for ``scripthash``, smallest value first."""

        unspents = self.list_unspent_scripthash(scripthash, cancel_event=cancel_event)
        return sort_by_value(normalize_unspent(unspents))

    def list_unspent_for_address(
        self, address: str, *, cancel_event: threading.Event | None = None
    ) -> List[Utxo]:
        """UTXOs for ``address``, smallest value first.

        Raises:
            AddressMismatch: ``address`` is malformed or not on ``self.network``.
        """

        scripthash = address_to_scripthash(address, self.network)
        return self.get_unspent_scripthash(scripthash, cancel_event=cancel_event)

    def wait_until_spendable_utxo(
        self,
        address: str,
        min_satoshis: int,
        *,
        cancel_event: threading.Event | None = None,
    ) -> Utxo:
        """Block until ``address`` holds a clean UTXO worth ``min_satoshis``.

        Outputs carrying Atomicals are never returned. Among the rest the
        smallest sufficient one wins. There is no timeout: the loop polls every
        ``config.poll_interval`` seconds until it succeeds, an RPC error
        propagates, or ``cancel_event`` is set.
        """

        if min_satoshis < 0:
            raise ValueError(f"min_satoshis must be non-negative, got {min_satoshis}")
        scripthash = address_to_scripthash(address, self.network)
        while True:
            check_cancelled(cancel_event)
            utxos = self.get_unspent_scripthash(scripthash, cancel_event=cancel_event)
            match = select_spendable(utxos, min_satoshis)
            if match is not None:
                return match

            logger.info("waiting for UTXO... (%s, >= %d sats)", address, min_satoshis)
            pause(self.config.poll_interval, cancel_event)
