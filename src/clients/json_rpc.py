from __future__ import annotations

import itertools
import logging
from typing import Any

import requests
from requests import Response
from requests.adapters import HTTPAdapter
from urllib3.util import Retry

logger = logging.getLogger(__name__)

WORD_SIZE = 32


class JsonRpcError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = None, payload: Any | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class JsonRpcClient:
    """Minimal Ethereum JSON-RPC client covering the read calls the price feeds need."""

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 10.0,
        session: requests.Session | None = None,
        retry_attempts: int = 5,
        retry_backoff_seconds: float = 1,
    ) -> None:
        if not url:
            msg = "url must be provided"
            raise ValueError(msg)

        self.url = url
        self.timeout = timeout
        self._session = session or requests.Session()
        self._ids = itertools.count(1)

        retries = Retry(
            total=retry_attempts,
            backoff_factor=retry_backoff_seconds,
            status_forcelist=[429],
            allowed_methods=frozenset({"POST"}),
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retries)
        self._session.mount("https://", adapter)
        self._session.mount("http://", adapter)

    def eth_call(self, to: str, data: str, *, block: str = "latest") -> bytes:
        if not to:
            msg = "to must be provided"
            raise ValueError(msg)
        result = self.request("eth_call", [{"to": to, "data": data}, block])
        if not isinstance(result, str) or not result.startswith("0x"):
            raise JsonRpcError("eth_call returned a non-hex result", payload=result)
        try:
            return bytes.fromhex(result[2:])
        except ValueError as exc:
            raise JsonRpcError("eth_call returned malformed hex", payload=result) from exc

    def request(self, method: str, params: list[Any]) -> Any:
        body = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        try:
            response = self._session.post(self.url, json=body, timeout=self.timeout)
            response.raise_for_status()
        except requests.HTTPError as exc:
            resp = exc.response
            status_code = getattr(resp, "status_code", None)
            raise JsonRpcError(
                f"JSON-RPC {method} request failed", status_code=status_code, payload=self._extract_body(resp)
            ) from exc
        except requests.RequestException as exc:
            status_code = getattr(getattr(exc, "response", None), "status_code", None)
            raise JsonRpcError(f"JSON-RPC {method} request failed", status_code=status_code) from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise JsonRpcError("JSON-RPC endpoint returned invalid JSON", payload=response.text) from exc

        if not isinstance(payload, dict):
            raise JsonRpcError("JSON-RPC endpoint returned unexpected payload type", payload=payload)

        err = payload.get("error")
        if err:
            message = err.get("message") if isinstance(err, dict) else None
            raise JsonRpcError(message or f"JSON-RPC {method} failed", status_code=response.status_code, payload=payload)

        if "result" not in payload:
            raise JsonRpcError(f"JSON-RPC {method} response has no result", payload=payload)

        logger.debug("JSON-RPC %s ok", method)
        return payload["result"]

    @staticmethod
    def _extract_body(response: Response | None) -> Any | None:
        if response is None:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text


def split_words(data: bytes, count: int) -> list[bytes]:
    if len(data) < count * WORD_SIZE:
        raise JsonRpcError(f"expected {count} ABI words, got {len(data)} bytes", payload=data.hex())
    return [data[i * WORD_SIZE : (i + 1) * WORD_SIZE] for i in range(count)]


def decode_uint(word: bytes) -> int:
    return int.from_bytes(word, "big", signed=False)


def decode_int(word: bytes) -> int:
    return int.from_bytes(word, "big", signed=True)


def decode_address(word: bytes) -> str:
    return "0x" + word[-20:].hex()


__all__ = [
    "JsonRpcClient",
    "JsonRpcError",
    "decode_address",
    "decode_int",
    "decode_uint",
    "split_words",
]
