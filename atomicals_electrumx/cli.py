"""Command line interface for the Atomicals ElectrumX client."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Sequence

from .address import AddressMismatch
from .builder import ElectrumXBuilder
from .client import ElectrumXClient
from .config import ConfigurationError, load_client_config, set_default_config_path
from .failover import ExhaustedAllEndpoints
from .transport import UnrecoverableTransport

logger = logging.getLogger(__name__)


class CLIError(RuntimeError):
    """Raised when CLI arguments are invalid."""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Atomicals ElectrumX proxy client")
    parser.add_argument("--config", default=None, help="YAML config file (electrumx: section)")
    parser.add_argument("--network", default=None, help="mainnet, testnet, signet or regtest")
    parser.add_argument(
        "--base-uris",
        default=None,
        help="Comma-separated proxy base URIs, tried in order",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    ticker_parser = subparsers.add_parser("ticker", help="Resolve an Atomicals ticker")
    ticker_parser.add_argument("ticker")

    ft_parser = subparsers.add_parser("ft-info", help="Fetch fungible token metadata")
    ft_parser.add_argument("atomical_id")

    list_parser = subparsers.add_parser(
        "list-utxos", help="List UTXOs for an address, smallest first"
    )
    list_parser.add_argument("address")
    list_parser.add_argument(
        "--json", dest="as_json", action="store_true", help="Emit JSON instead of a table"
    )

    wait_parser = subparsers.add_parser(
        "wait-utxo", help="Poll until the address holds a clean UTXO of at least --min-sats"
    )
    wait_parser.add_argument("address")
    wait_parser.add_argument("--min-sats", type=int, required=True, help="Minimum value in satoshis")

    broadcast_parser = subparsers.add_parser("broadcast", help="Broadcast a raw transaction hex")
    broadcast_parser.add_argument("raw_tx")

    return parser


def _client_from_args(args: argparse.Namespace) -> ElectrumXClient:
    if args.config:
        set_default_config_path(args.config)
    config = load_client_config(
        overrides={"network": args.network, "base_uris": args.base_uris},
    )
    return ElectrumXBuilder.from_config(config).build()


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True))


def cmd_list_utxos(client: ElectrumXClient, args: argparse.Namespace) -> None:
    utxos = client.list_unspent_for_address(args.address)
    if args.as_json:
        _print_json([u.to_dict() for u in utxos])
        return
    if not utxos:
        print("No UTXOs found.")
        return
    print(f"Found {len(utxos)} UTXOs for {args.address}")
    print(" idx |        value | clean | txid:vout")
    print("-----+--------------+-------+------------------------------------------------")
    for index, utxo in enumerate(utxos):
        clean = "Y" if utxo.is_clean else "N"
        print(f"{index:>4} | {utxo.value:>12} | {clean:^5} | {utxo.outpoint}")


def cmd_wait_utxo(client: ElectrumXClient, args: argparse.Namespace) -> None:
    if args.min_sats < 0:
        raise CLIError("--min-sats must be non-negative")
    utxo = client.wait_until_spendable_utxo(args.address, args.min_sats)
    _print_json(utxo.to_dict())


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)
    try:
        with _client_from_args(args) as client:
            if args.command == "ticker":
                _print_json(client.get_by_ticker(args.ticker))
            elif args.command == "ft-info":
                _print_json(client.get_ft_info(args.atomical_id))
            elif args.command == "list-utxos":
                cmd_list_utxos(client, args)
            elif args.command == "wait-utxo":
                cmd_wait_utxo(client, args)
            elif args.command == "broadcast":
                print(client.broadcast(args.raw_tx))
            else:  # pragma: no cover - argparse enforces choices
                raise CLIError(f"Unknown command: {args.command}")
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except (
        CLIError,
        ConfigurationError,
        AddressMismatch,
        ExhaustedAllEndpoints,
        UnrecoverableTransport,
    ) as exc:
        parser.exit(1, f"error: {exc}\n")


if __name__ == "__main__":
    main(sys.argv[1:])
