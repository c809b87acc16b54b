from __future__ import annotations

import json
from pathlib import Path

import pytest

from main import main
from tests.constants import ADMIN


@pytest.fixture()
def config_path(tmp_path: Path) -> Path:
    path = tmp_path / "oracle.json"
    path.write_text(
        json.dumps(
            {
                "base_currency": "USD",
                "administrator": ADMIN,
                "feeds": [{"asset_id": "WBTC", "quote_currency": "USD", "answer": 2000 * 10**8, "decimals": 8}],
                "tokens": [{"token": "cWBTC", "underlying": "WBTC", "decimals": 8}],
            }
        ),
        encoding="utf-8",
    )
    return path


def test_price_command(config_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = main(["--config", str(config_path), "price", "WBTC", "USD"])

    out = capsys.readouterr().out
    assert exit_code == 0
    assert f"WBTC: 2000 USD (raw={2000 * 10**18})" in out
    assert f"USD: 1 USD (raw={10**18})" in out


def test_underlying_price_command(config_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = main(["--config", str(config_path), "underlying-price", "cWBTC"])

    assert exit_code == 0
    assert f"cWBTC: {2000 * 10**28}" in capsys.readouterr().out


def test_unknown_asset_fails(config_path: Path) -> None:
    assert main(["--config", str(config_path), "price", "LINK"]) == 1


def test_changes_are_persisted_and_listed(
    config_path: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    database_url = f"sqlite:///{tmp_path / 'events.db'}"

    assert main(["--config", str(config_path), "--database-url", database_url, "price", "WBTC"]) == 0
    capsys.readouterr()
    assert main(["--database-url", database_url, "events", "--asset-id", "WBTC"]) == 0

    out = capsys.readouterr().out
    assert "price-registry PROVIDER [WBTC]: None -> price-registry/feeds" in out
    assert "3 event(s)" in out


def test_missing_config_fails(tmp_path: Path) -> None:
    assert main(["--config", str(tmp_path / "missing.json"), "price", "WBTC"]) == 1


def test_rpc_feed_without_rpc_url_fails(tmp_path: Path) -> None:
    path = tmp_path / "oracle.json"
    path.write_text(
        json.dumps(
            {
                "base_currency": "USD",
                "administrator": ADMIN,
                "feeds": [{"asset_id": "ETH", "quote_currency": "USD", "address": "0xfeed"}],
            }
        ),
        encoding="utf-8",
    )

    assert main(["--config", str(path), "--rpc-url", "", "price", "ETH"]) == 1
