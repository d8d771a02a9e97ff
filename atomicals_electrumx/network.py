"""Bitcoin network identifiers and their address parameters."""

from __future__ import annotations

import enum


class Network(enum.Enum):
    """Chain a client talks to; only used to validate supplied addresses."""

    MAINNET = "mainnet"
    TESTNET = "testnet"
    SIGNET = "signet"
    REGTEST = "regtest"

    @classmethod
    def parse(cls, raw: "str | Network") -> "Network":
        if isinstance(raw, Network):
            return raw
        normalized = str(raw).strip().lower()
        if normalized == "bitcoin":
            return cls.MAINNET
        try:
            return cls(normalized)
        except ValueError as exc:
            choices = ", ".join(member.value for member in cls)
            raise ValueError(f"Unknown network '{raw}' (expected one of: {choices})") from exc

    @property
    def bech32_hrp(self) -> str:
        return _BECH32_HRP[self]

    @property
    def p2pkh_version(self) -> int:
        return 0x00 if self is Network.MAINNET else 0x6F

    @property
    def p2sh_version(self) -> int:
        return 0x05 if self is Network.MAINNET else 0xC4


_BECH32_HRP = {
    Network.MAINNET: "bc",
    Network.TESTNET: "tb",
    Network.SIGNET: "tb",
    Network.REGTEST: "bcrt",
}
