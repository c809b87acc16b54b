from __future__ import annotations

from unittest.mock import Mock

import pytest

from clients.json_rpc import JsonRpcClient
from services.price_feeds import DECIMALS_SELECTOR, LATEST_ROUND_DATA_SELECTOR, RpcPriceFeed, StaticPriceFeed
from services.price_types import RoundData


def _encode_words(*values: int) -> str:
    return "0x" + "".join((value % 2**256).to_bytes(32, "big").hex() for value in values)


def _rpc_response(result: str) -> Mock:
    response = Mock()
    response.status_code = 200
    response.json.return_value = {"jsonrpc": "2.0", "id": 1, "result": result}
    response.raise_for_status.return_value = None
    return response


def test_rpc_feed_decodes_latest_round_data() -> None:
    session = Mock()
    session.post.return_value = _rpc_response(_encode_words(110, 2000 * 10**8, 1_700_000_000, 1_700_000_060, 110))
    feed = RpcPriceFeed(JsonRpcClient("http://node.local", session=session), "0xfeed")

    report = feed.latest_round_data()

    assert report == RoundData(
        round_id=110,
        answer=2000 * 10**8,
        started_at=1_700_000_000,
        updated_at=1_700_000_060,
        answered_in_round=110,
    )
    request = session.post.call_args.kwargs["json"]
    assert request["params"][0] == {"to": "0xfeed", "data": LATEST_ROUND_DATA_SELECTOR}
    assert feed.description == "0xfeed"


def test_rpc_feed_decodes_negative_answer() -> None:
    session = Mock()
    session.post.return_value = _rpc_response(_encode_words(1, -42, 1, 1, 1))
    feed = RpcPriceFeed(JsonRpcClient("http://node.local", session=session), "0xfeed")

    assert feed.latest_round_data().answer == -42


def test_rpc_feed_caches_decimals() -> None:
    session = Mock()
    session.post.return_value = _rpc_response(_encode_words(8))
    feed = RpcPriceFeed(JsonRpcClient("http://node.local", session=session), "0xfeed", description="ETH / USD")

    assert feed.decimals() == 8
    assert feed.decimals() == 8
    session.post.assert_called_once()
    assert session.post.call_args.kwargs["json"]["params"][0]["data"] == DECIMALS_SELECTOR
    assert feed.description == "ETH / USD"


def test_static_feed_rounds_advance() -> None:
    feed = StaticPriceFeed(100, decimals=8, description="ETH / USD")
    first = feed.latest_round_data()

    second = feed.update_answer(200, timestamp=1_700_000_000)

    assert first.round_id == 1
    assert first.answered_in_round == 1
    assert second == RoundData(
        round_id=2,
        answer=200,
        started_at=1_700_000_000,
        updated_at=1_700_000_000,
        answered_in_round=2,
    )
    assert feed.latest_round_data() == second
    assert feed.decimals() == 8


def test_static_feed_rejects_negative_decimals() -> None:
    with pytest.raises(ValueError):
        StaticPriceFeed(1, decimals=-1)
