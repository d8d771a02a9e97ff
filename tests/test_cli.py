import json
from pathlib import Path

import pytest
from requests import Response

from atomicals_electrumx import ElectrumXBuilder, cli

ADDRESS = "bc1qw508d6qejxtdg4y5r3zarvary0c5xw7kv8f3t4"


class StubSession:
    def __init__(self, payload) -> None:
        self.payload = payload

    def post(self, url, data=None, headers=None, timeout=None, stream=False):
        resp = Response()
        resp.status_code = 200
        resp._content = json.dumps(self.payload).encode()
        resp._content_consumed = True
        resp.encoding = "utf-8"
        return resp

    def close(self) -> None:
        pass


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr("atomicals_electrumx.config.DEFAULT_CONFIG_PATH", tmp_path / "none.yaml")
    monkeypatch.setattr("atomicals_electrumx.config._CONFIG_PATH_OVERRIDE", None)
    for name in ("NETWORK", "BASE_URIS", "REQUEST_TIMEOUT", "MAX_RETRIES", "RETRY_DELAY", "POLL_INTERVAL"):
        monkeypatch.delenv(f"ELECTRUMX_{name}", raising=False)


def _patch_client(monkeypatch: pytest.MonkeyPatch, payload) -> None:
    def fake_client(_args):
        return ElectrumXBuilder().base_uris("http://A").session(StubSession(payload)).build()

    monkeypatch.setattr(cli, "_client_from_args", fake_client)


def test_list_utxos_json(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture) -> None:
    _patch_client(
        monkeypatch,
        {
            "response": [
                {"txid": "aa" * 32, "vout": 0, "value": 900, "atomicals": []},
                {"txid": "bb" * 32, "vout": 3, "value": 600, "atomicals": ["x"]},
            ]
        },
    )

    cli.main(["list-utxos", ADDRESS, "--json"])

    listed = json.loads(capsys.readouterr().out)
    assert [entry["value"] for entry in listed] == [600, 900]
    assert listed[0]["atomicals"] == ["x"]


def test_list_utxos_table_marks_atomicals(monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    _patch_client(
        monkeypatch, {"response": [{"txid": "bb" * 32, "vout": 3, "value": 600, "atomicals": ["x"]}]}
    )

    cli.main(["list-utxos", ADDRESS])

    out = capsys.readouterr().out
    assert "Found 1 UTXOs" in out
    assert f"{'bb' * 32}:3" in out


def test_broadcast_prints_txid(monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    _patch_client(monkeypatch, {"response": "cd" * 32})

    cli.main(["broadcast", "0200"])

    assert capsys.readouterr().out.strip() == "cd" * 32


def test_configuration_errors_exit_nonzero(capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--base-uris", "ftp://nowhere", "ticker", "quark"])

    assert excinfo.value.code == 1
    assert "error:" in capsys.readouterr().err


def test_address_errors_exit_nonzero(monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    _patch_client(monkeypatch, {"response": []})

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["list-utxos", "tb1qrp33g0q5c5txsp9arysrx4k6zdkfs4nce4xj0gdcccefvpysxf3q0sl5k7"])

    assert excinfo.value.code == 1
    assert "Invalid address" in capsys.readouterr().err


class InterruptingSession(StubSession):
    def post(self, url, data=None, headers=None, timeout=None, stream=False):
        raise KeyboardInterrupt


def test_keyboard_interrupt_is_logged_not_raised(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    def fake_client(_args):
        return ElectrumXBuilder().base_uris("http://A").session(InterruptingSession(None)).build()

    monkeypatch.setattr(cli, "_client_from_args", fake_client)

    with caplog.at_level("INFO"):
        cli.main(["ticker", "quark"])

    assert "Interrupted by user" in caplog.text
