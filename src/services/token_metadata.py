from __future__ import annotations

from typing import Mapping

from clients.json_rpc import JsonRpcClient, decode_address, decode_uint, split_words
from domain.errors import NotFoundError
from domain.pricing import AssetId, TokenMetadata

# CToken.underlying() and ERC20.decimals()
UNDERLYING_SELECTOR = "0x6f307dc3"
DECIMALS_SELECTOR = "0x313ce567"


class StaticTokenMetadata(TokenMetadata):
    def __init__(self, *, underlyings: Mapping[str, AssetId], decimals: Mapping[AssetId, int]) -> None:
        for asset_id, value in decimals.items():
            if value < 0:
                msg = f"decimals for {asset_id} must be >= 0"
                raise ValueError(msg)
        self._underlyings = dict(underlyings)
        self._decimals = dict(decimals)

    def underlying(self, token_ref: str) -> AssetId:
        try:
            return self._underlyings[token_ref]
        except KeyError as exc:
            msg = f"No underlying asset known for {token_ref}"
            raise NotFoundError(msg, asset_id=token_ref) from exc

    def decimals(self, asset_id: AssetId) -> int:
        try:
            return self._decimals[asset_id]
        except KeyError as exc:
            msg = f"No decimals known for {asset_id}"
            raise NotFoundError(msg, asset_id=asset_id) from exc


class RpcTokenMetadata(TokenMetadata):
    """Reads ``underlying()`` from wrapped-token contracts and ``decimals()`` from ERC20s.

    Decimals are immutable on-chain and cached per asset.
    """

    def __init__(self, client: JsonRpcClient) -> None:
        self.client = client
        self._decimals_cache: dict[AssetId, int] = {}

    def underlying(self, token_ref: str) -> AssetId:
        raw = self.client.eth_call(token_ref, UNDERLYING_SELECTOR)
        (word,) = split_words(raw, 1)
        return AssetId(decode_address(word))

    def decimals(self, asset_id: AssetId) -> int:
        cached = self._decimals_cache.get(asset_id)
        if cached is not None:
            return cached
        raw = self.client.eth_call(asset_id, DECIMALS_SELECTOR)
        (word,) = split_words(raw, 1)
        value = decode_uint(word)
        self._decimals_cache[asset_id] = value
        return value


__all__ = ["RpcTokenMetadata", "StaticTokenMetadata"]
