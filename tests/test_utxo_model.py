import pytest

from atomicals_electrumx.model import (
    Unspent,
    Utxo,
    decode_ft_info,
    decode_ticker,
    decode_txid,
    decode_unspent_list,
)
from atomicals_electrumx.transport import DecodeFailure
from atomicals_electrumx.utxo import (
    is_spendable,
    normalize_unspent,
    select_spendable,
    sort_by_value,
    total_value,
)

TXID = "cd" * 32


def test_unspent_accepts_electrum_field_names() -> None:
    unspent = Unspent.from_json({"tx_hash": TXID, "tx_pos": 2, "value": 1000, "height": -1})

    assert unspent.txid == TXID
    assert unspent.vout == 2
    assert unspent.height == -1
    assert unspent.atomicals == ()


def test_unspent_ignores_unknown_fields_and_reads_atomicals_object() -> None:
    unspent = Unspent.from_json(
        {"txid": TXID, "vout": 0, "value": 546, "sat_value": 546, "atomicals": {"a1i0": 546, "b2i0": 1}}
    )

    assert unspent.atomicals == ("a1i0", "b2i0")


@pytest.mark.parametrize(
    "entry",
    [
        "not an object",
        {"vout": 0, "value": 1},
        {"txid": TXID, "vout": -1, "value": 1},
        {"txid": TXID, "vout": 0, "value": "1000"},
        {"txid": TXID, "vout": 0, "value": True},
        {"txid": TXID, "vout": 0, "value": 1, "atomicals": "a1i0"},
        {"txid": TXID, "vout": 0, "value": 1, "height": "tip"},
    ],
)
def test_malformed_unspent_is_decode_failure(entry) -> None:
    with pytest.raises(DecodeFailure):
        Unspent.from_json(entry)


def test_envelope_decoders() -> None:
    assert decode_ticker({"response": {"result": {"status": "verified"}}}) == {"status": "verified"}
    assert decode_ft_info({"response": {"result": {}, "global": {}}}) == {"result": {}, "global": {}}
    assert decode_txid({"response": TXID}) == TXID
    assert decode_unspent_list({"response": []}) == []

    with pytest.raises(DecodeFailure):
        decode_ticker({"response": {"status": "verified"}})
    with pytest.raises(DecodeFailure):
        decode_ft_info({"response": {"global": {}}})
    with pytest.raises(DecodeFailure):
        decode_txid({"response": {"code": 1}})
    with pytest.raises(DecodeFailure):
        decode_unspent_list({"response": {"txid": TXID}})
    with pytest.raises(DecodeFailure):
        decode_unspent_list(["no envelope"])


def test_utxo_helpers() -> None:
    utxo = Utxo(txid=TXID, vout=1, value=700, atomicals=("a1i0",))

    assert utxo.outpoint == f"{TXID}:1"
    assert not utxo.is_clean
    assert utxo.to_dict() == {"txid": TXID, "vout": 1, "value": 700, "atomicals": ["a1i0"]}


def test_selection_prefers_smallest_clean_output() -> None:
    unspents = [
        Unspent(txid=TXID, vout=0, value=5000, atomicals=("a1i0",)),
        Unspent(txid=TXID, vout=1, value=300),
        Unspent(txid=TXID, vout=2, value=1200),
        Unspent(txid=TXID, vout=3, value=4000),
    ]
    utxos = sort_by_value(normalize_unspent(unspents))

    assert [u.vout for u in utxos] == [1, 2, 3, 0]
    assert select_spendable(utxos, 1000).vout == 2
    assert select_spendable(utxos, 4500) is None
    assert select_spendable(utxos, 0).vout == 1
    assert not is_spendable(utxos[-1], 1)
    assert total_value(utxos) == 10500
    assert total_value(utxos, clean_only=True) == 5500
