"""Wire and domain models for ElectrumX proxy responses.

The proxy wraps every payload in an envelope: ``{"response": payload}`` for
most methods and ``{"response": {"result": payload, ...}}`` for ticker
lookups. The ``decode_*`` helpers below unwrap one method's envelope and raise
:class:`~atomicals_electrumx.transport.DecodeFailure` when the body does not
have the expected shape, which the failover engine treats as retryable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Tuple

from .transport import DecodeFailure


def _require_mapping(value: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise DecodeFailure(f"expected {what} to be a JSON object, got {type(value).__name__}")
    return value


def _require_int(value: Any, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise DecodeFailure(f"expected {what} to be a non-negative integer, got {value!r}")
    return value


def _first_present(entry: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if entry.get(key) is not None:
            return entry[key]
    return None


def _atomical_ids(raw: Any) -> Tuple[str, ...]:
    # The Atomicals server reports {atomical_id: value}; older proxies send a list.
    if raw is None:
        return ()
    if isinstance(raw, Mapping):
        return tuple(str(key) for key in raw)
    if isinstance(raw, list):
        return tuple(str(item) for item in raw)
    raise DecodeFailure(f"expected atomicals to be an array or object, got {type(raw).__name__}")


@dataclass(frozen=True)
class Unspent:
    """One ``blockchain.scripthash.listunspent`` entry as sent by the proxy."""

    txid: str
    vout: int
    value: int
    atomicals: Tuple[str, ...] = ()
    height: int = 0

    @classmethod
    def from_json(cls, entry: Any) -> "Unspent":
        entry = _require_mapping(entry, "unspent entry")
        txid = _first_present(entry, "txid", "tx_hash")
        if not isinstance(txid, str) or not txid:
            raise DecodeFailure(f"unspent entry is missing txid: {dict(entry)!r}")
        vout = _require_int(_first_present(entry, "vout", "tx_pos"), "vout")
        value = _require_int(entry.get("value"), "value")
        # Mempool entries report 0, or -1 when a parent is unconfirmed.
        height = entry.get("height") or 0
        if isinstance(height, bool) or not isinstance(height, int):
            raise DecodeFailure(f"expected height to be an integer, got {height!r}")
        return cls(
            txid=txid,
            vout=vout,
            value=value,
            atomicals=_atomical_ids(entry.get("atomicals")),
            height=height,
        )


@dataclass(frozen=True)
class Utxo:
    """A spendable-candidate output as handed to callers."""

    txid: str
    vout: int
    value: int
    atomicals: Tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_unspent(cls, unspent: Unspent) -> "Utxo":
        return cls(
            txid=unspent.txid,
            vout=unspent.vout,
            value=unspent.value,
            atomicals=unspent.atomicals,
        )

    @property
    def outpoint(self) -> str:
        return f"{self.txid}:{self.vout}"

    @property
    def is_clean(self) -> bool:
        """True when no Atomicals are bound to this output."""

        return not self.atomicals

    def to_dict(self) -> Dict[str, Any]:
        return {
            "txid": self.txid,
            "vout": self.vout,
            "value": self.value,
            "atomicals": list(self.atomicals),
        }


def unwrap_response(body: Any) -> Any:
    envelope = _require_mapping(body, "response body")
    if "response" not in envelope:
        raise DecodeFailure(f"response envelope missing 'response' key: {sorted(envelope)}")
    return envelope["response"]


def unwrap_result(body: Any) -> Any:
    inner = _require_mapping(unwrap_response(body), "response")
    if "result" not in inner:
        raise DecodeFailure(f"response envelope missing 'result' key: {sorted(inner)}")
    return inner["result"]


def decode_ticker(body: Any) -> Dict[str, Any]:
    return dict(_require_mapping(unwrap_result(body), "ticker result"))


def decode_ft_info(body: Any) -> Dict[str, Any]:
    response = _require_mapping(unwrap_response(body), "ft info response")
    if "result" not in response:
        raise DecodeFailure("ft info response missing 'result' key")
    return dict(response)


def decode_unspent_list(body: Any) -> List[Unspent]:
    entries = unwrap_response(body)
    if not isinstance(entries, list):
        raise DecodeFailure(f"expected listunspent response to be an array, got {type(entries).__name__}")
    return [Unspent.from_json(entry) for entry in entries]


def decode_txid(body: Any) -> str:
    txid = unwrap_response(body)
    if not isinstance(txid, str) or not txid:
        raise DecodeFailure(f"expected broadcast response to be a txid string, got {txid!r}")
    return txid
