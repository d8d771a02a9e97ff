"""Address parsing and ElectrumX scripthash derivation.

Supports legacy base58check addresses (P2PKH, P2SH) and segwit addresses
encoded with bech32 (witness v0) or bech32m (witness v1+, Taproot).

References:
    BIP173 (bech32): https://github.com/bitcoin/bips/blob/master/bip-0173.mediawiki
    BIP350 (bech32m): https://github.com/bitcoin/bips/blob/master/bip-0350.mediawiki
"""

from __future__ import annotations

import hashlib

import base58

from .network import Network

CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"
BECH32_CONST = 1
BECH32M_CONST = 0x2bc830a3
KNOWN_HRPS = ("bc", "tb", "bcrt")

OP_DUP = 0x76
OP_HASH160 = 0xA9
OP_EQUAL = 0x87
OP_EQUALVERIFY = 0x88
OP_CHECKSIG = 0xAC


class AddressMismatch(ValueError):
    """Raised when an address cannot be parsed or belongs to another network."""

    def __init__(self, address: str, reason: str, network: Network | None = None) -> None:
        super().__init__(f"Invalid address {address!r}: {reason}")
        self.address = address
        self.network = network


def bech32_polymod(values: list[int]) -> int:
    """Compute bech32 checksum polymod."""
    GEN = [0x3b6a57b2, 0x26508e6d, 0x1ea119fa, 0x3d4233dd, 0x2a1462b3]
    chk = 1
    for value in values:
        b = chk >> 25
        chk = (chk & 0x1ffffff) << 5 ^ value
        for i in range(5):
            chk ^= GEN[i] if ((b >> i) & 1) else 0
    return chk


def bech32_hrp_expand(hrp: str) -> list[int]:
    """Expand HRP for bech32 checksum."""
    return [ord(x) >> 5 for x in hrp] + [0] + [ord(x) & 31 for x in hrp]


def bech32_decode(bech: str) -> tuple[str, list[int], str] | None:
    """Split a bech32/bech32m string into HRP, 5-bit data and encoding.

    Returns:
        ``(hrp, data, spec)`` where ``spec`` is ``'bech32'`` or ``'bech32m'``,
        or ``None`` when the string is not a valid bech32 encoding.
    """
    if any(ord(ch) < 33 or ord(ch) > 126 for ch in bech):
        return None
    if bech.lower() != bech and bech.upper() != bech:
        return None
    bech = bech.lower()
    pos = bech.rfind("1")
    if pos < 1 or pos + 7 > len(bech) or len(bech) > 90:
        return None
    if not all(ch in CHARSET for ch in bech[pos + 1:]):
        return None
    hrp = bech[:pos]
    data = [CHARSET.find(ch) for ch in bech[pos + 1:]]
    const = bech32_polymod(bech32_hrp_expand(hrp) + data)
    if const == BECH32_CONST:
        spec = "bech32"
    elif const == BECH32M_CONST:
        spec = "bech32m"
    else:
        return None
    return hrp, data[:-6], spec


def _convertbits(data: list[int] | bytes, frombits: int, tobits: int, pad: bool = True) -> list[int] | None:
    """Regroup a sequence of ``frombits``-wide values into ``tobits``-wide ones."""
    acc = 0
    bits = 0
    ret = []
    maxv = (1 << tobits) - 1
    max_acc = (1 << (frombits + tobits - 1)) - 1

    for value in data:
        if value < 0 or (value >> frombits):
            return None
        acc = ((acc << frombits) | value) & max_acc
        bits += frombits
        while bits >= tobits:
            bits -= tobits
            ret.append((acc >> bits) & maxv)

    if pad:
        if bits:
            ret.append((acc << (tobits - bits)) & maxv)
    elif bits >= frombits or ((acc << (tobits - bits)) & maxv):
        return None

    return ret


def decode_segwit_address(address: str, hrp: str) -> tuple[int, bytes]:
    """Decode a segwit address into ``(witness_version, witness_program)``.

    Raises:
        AddressMismatch: if the checksum, HRP, version or program length is invalid.
    """
    decoded = bech32_decode(address)
    if decoded is None:
        raise AddressMismatch(address, "bad bech32 encoding or checksum")
    hrp_got, data, spec = decoded
    if hrp_got != hrp:
        raise AddressMismatch(address, f"expected prefix '{hrp}1', got '{hrp_got}1'")
    if not data:
        raise AddressMismatch(address, "missing witness version")
    witver = data[0]
    if witver > 16:
        raise AddressMismatch(address, f"unsupported witness version {witver}")
    program = _convertbits(data[1:], 5, 8, False)
    if program is None or len(program) < 2 or len(program) > 40:
        raise AddressMismatch(address, "invalid witness program")
    if witver == 0 and len(program) not in (20, 32):
        raise AddressMismatch(address, "invalid v0 witness program length")
    # BIP350: v0 must use bech32, v1+ must use bech32m
    expected_spec = "bech32" if witver == 0 else "bech32m"
    if spec != expected_spec:
        raise AddressMismatch(address, f"witness v{witver} requires {expected_spec}")
    return witver, bytes(program)


def _witness_script(witver: int, program: bytes) -> bytes:
    opcode = witver + 0x50 if witver else 0x00
    return bytes([opcode, len(program)]) + program


def _segwit_script_pubkey(address: str, hrp: str, network: Network) -> bytes:
    if hrp != network.bech32_hrp:
        raise AddressMismatch(address, f"address is not valid for {network.value}", network)
    witver, program = decode_segwit_address(address, hrp)
    return _witness_script(witver, program)


def _base58_script_pubkey(address: str, network: Network) -> bytes:
    try:
        payload = base58.b58decode_check(address)
    except ValueError as exc:
        raise AddressMismatch(address, f"bad base58check encoding ({exc})") from exc
    if len(payload) != 21:
        raise AddressMismatch(address, f"unexpected payload length {len(payload)}")
    version, digest = payload[0], payload[1:]
    if version == network.p2pkh_version:
        return bytes([OP_DUP, OP_HASH160, 20]) + digest + bytes([OP_EQUALVERIFY, OP_CHECKSIG])
    if version == network.p2sh_version:
        return bytes([OP_HASH160, 20]) + digest + bytes([OP_EQUAL])
    known_versions = {
        candidate.p2pkh_version for candidate in Network
    } | {candidate.p2sh_version for candidate in Network}
    if version in known_versions:
        raise AddressMismatch(address, f"address is not valid for {network.value}", network)
    raise AddressMismatch(address, f"unknown version byte 0x{version:02x}")


def address_to_script_pubkey(address: str, network: Network) -> bytes:
    """Parse ``address`` for ``network`` and return its scriptPubKey bytes."""

    candidate = address.strip()
    if not candidate:
        raise AddressMismatch(address, "empty address")
    lowered = candidate.lower()
    for hrp in KNOWN_HRPS:
        if lowered.startswith(hrp + "1"):
            return _segwit_script_pubkey(candidate, hrp, network)
    return _base58_script_pubkey(candidate, network)


def script_to_scripthash(script: bytes) -> str:
    """ElectrumX scripthash: SHA256 of the scriptPubKey, byte-reversed, hex."""

    return hashlib.sha256(script).digest()[::-1].hex()


def address_to_scripthash(address: str, network: Network) -> str:
    """Return the ElectrumX scripthash for ``address`` on ``network``."""

    return script_to_scripthash(address_to_script_pubkey(address, network))
