"""Atomicals ElectrumX proxy client package."""

from .address import AddressMismatch, address_to_script_pubkey, address_to_scripthash
from .builder import ElectrumXBuilder
from .client import ElectrumXClient
from .config import ClientConfig, ConfigurationError, load_client_config
from .failover import ExhaustedAllEndpoints, FailoverEngine, OperationCancelled
from .model import Unspent, Utxo
from .network import Network
from .transport import (
    DecodeFailure,
    HTTPTransport,
    NetworkFailure,
    TransportError,
    UnrecoverableTransport,
)

__all__ = [
    "AddressMismatch",
    "ClientConfig",
    "ConfigurationError",
    "DecodeFailure",
    "ElectrumXBuilder",
    "ElectrumXClient",
    "ExhaustedAllEndpoints",
    "FailoverEngine",
    "HTTPTransport",
    "Network",
    "NetworkFailure",
    "OperationCancelled",
    "TransportError",
    "UnrecoverableTransport",
    "Unspent",
    "Utxo",
    "address_to_script_pubkey",
    "address_to_scripthash",
    "load_client_config",
]
