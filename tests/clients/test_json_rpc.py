from __future__ import annotations

from unittest.mock import Mock

import pytest
import requests

from clients.json_rpc import JsonRpcClient, JsonRpcError, decode_address, decode_int, decode_uint, split_words


def _mock_response(payload: object, status_code: int = 200) -> Mock:
    response = Mock()
    response.status_code = status_code
    response.json.return_value = payload
    response.text = "payload"
    response.raise_for_status.return_value = None
    return response


def _http_error_response(status_code: int) -> Mock:
    response = _mock_response({}, status_code=status_code)
    http_error = requests.HTTPError(response=response)
    response.raise_for_status.side_effect = http_error
    return response


def test_eth_call_posts_request_and_decodes_hex() -> None:
    session = Mock()
    session.post.return_value = _mock_response({"jsonrpc": "2.0", "id": 1, "result": "0x" + "00" * 31 + "08"})

    client = JsonRpcClient("http://node.local", session=session, timeout=3.0)
    raw = client.eth_call("0xfeed", "0x313ce567")

    assert decode_uint(raw) == 8
    session.post.assert_called_once()
    args, kwargs = session.post.call_args
    assert args[0] == "http://node.local"
    assert kwargs["timeout"] == 3.0
    assert kwargs["json"]["method"] == "eth_call"
    assert kwargs["json"]["params"] == [{"to": "0xfeed", "data": "0x313ce567"}, "latest"]


def test_request_ids_increase() -> None:
    session = Mock()
    session.post.return_value = _mock_response({"result": "0x1"})
    client = JsonRpcClient("http://node.local", session=session)

    client.request("eth_chainId", [])
    client.request("eth_chainId", [])

    ids = [call.kwargs["json"]["id"] for call in session.post.call_args_list]
    assert ids == [1, 2]


def test_request_raises_on_rpc_error() -> None:
    session = Mock()
    session.post.return_value = _mock_response({"error": {"code": 3, "message": "execution reverted"}})
    client = JsonRpcClient("http://node.local", session=session)

    with pytest.raises(JsonRpcError, match="execution reverted"):
        client.eth_call("0xfeed", "0xfeaf968c")


def test_request_wraps_http_errors() -> None:
    session = Mock()
    session.post.return_value = _http_error_response(503)
    client = JsonRpcClient("http://node.local", session=session)

    with pytest.raises(JsonRpcError) as exc_info:
        client.request("eth_blockNumber", [])

    assert exc_info.value.status_code == 503


def test_request_wraps_connection_errors() -> None:
    session = Mock()
    session.post.side_effect = requests.ConnectionError("boom")
    client = JsonRpcClient("http://node.local", session=session)

    with pytest.raises(JsonRpcError):
        client.request("eth_blockNumber", [])


def test_request_rejects_invalid_json_and_missing_result() -> None:
    session = Mock()
    bad_json = _mock_response({})
    bad_json.json.side_effect = ValueError("not json")
    session.post.side_effect = [bad_json, _mock_response({"jsonrpc": "2.0", "id": 1})]
    client = JsonRpcClient("http://node.local", session=session)

    with pytest.raises(JsonRpcError):
        client.request("eth_blockNumber", [])
    with pytest.raises(JsonRpcError):
        client.request("eth_blockNumber", [])


def test_eth_call_rejects_non_hex_result() -> None:
    session = Mock()
    session.post.return_value = _mock_response({"result": 12})
    client = JsonRpcClient("http://node.local", session=session)

    with pytest.raises(JsonRpcError):
        client.eth_call("0xfeed", "0x313ce567")


def test_client_requires_url() -> None:
    with pytest.raises(ValueError):
        JsonRpcClient("")


def test_abi_word_decoding() -> None:
    negative = (-5 % 2**256).to_bytes(32, "big")
    address = bytes(12) + bytes.fromhex("6b175474e89094c44da98b954eedeac495271d0f")

    assert decode_int(negative) == -5
    assert decode_uint((7).to_bytes(32, "big")) == 7
    assert decode_address(address) == "0x6b175474e89094c44da98b954eedeac495271d0f"
    assert split_words(negative + address, 2) == [negative, address]
    with pytest.raises(JsonRpcError):
        split_words(negative, 2)
