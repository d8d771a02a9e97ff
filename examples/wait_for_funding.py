"""Wait for a funding output before starting a mint.

Polls the configured ElectrumX proxies until ``TARGET_ADDRESS`` holds a UTXO
with no Atomicals attached and at least ``MIN_VALUE_SATS`` satoshis, then
prints it. A background timer sets the cancel event after
``GIVE_UP_AFTER_SECONDS`` so the loop cannot outlive the script.
"""

from __future__ import annotations

import logging
import threading

from atomicals_electrumx import ElectrumXBuilder, OperationCancelled, load_client_config

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# User-tunable configuration
# ---------------------------------------------------------------------------

TARGET_ADDRESS: str = "tb1qrp33g0q5c5txsp9arysrx4k6zdkfs4nce4xj0gdcccefvpysxf3q0sl5k7"
MIN_VALUE_SATS: int = 10_000
GIVE_UP_AFTER_SECONDS: float = 600.0


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    config = load_client_config(overrides={"network": "testnet"})
    cancel = threading.Event()
    timer = threading.Timer(GIVE_UP_AFTER_SECONDS, cancel.set)
    timer.daemon = True
    timer.start()

    with ElectrumXBuilder.from_config(config).build() as client:
        try:
            utxo = client.wait_until_spendable_utxo(
                TARGET_ADDRESS, MIN_VALUE_SATS, cancel_event=cancel
            )
        except OperationCancelled:
            logger.warning("No funding after %.0f seconds; giving up", GIVE_UP_AFTER_SECONDS)
            return
        finally:
            timer.cancel()

    print(f"Funding output {utxo.outpoint} holds {utxo.value} sats")


if __name__ == "__main__":
    main()
