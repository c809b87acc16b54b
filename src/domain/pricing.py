from __future__ import annotations

from typing import NewType, Protocol, runtime_checkable

from .errors import InvalidArgumentError

AssetId = NewType("AssetId", str)
Address = NewType("Address", str)

WAD_DECIMALS = 18
WAD = 10**WAD_DECIMALS


@runtime_checkable
class PriceProvider(Protocol):
    """Lookup interface for asset prices expressed in ``base_currency`` with 18 decimals.

    ``context`` is the provider currently resolving the lookup. Providers that need a
    second price (e.g. to rebase a feed quoted in another currency) ask it instead of
    holding a reference to a registry.
    """

    @property
    def name(self) -> str: ...

    @property
    def base_currency(self) -> AssetId: ...

    def price(self, asset_id: AssetId, context: PriceProvider | None = None) -> int: ...


class TokenMetadata(Protocol):
    """Resolves wrapped-asset references to their underlying asset and its precision."""

    def underlying(self, token_ref: str) -> AssetId: ...

    def decimals(self, asset_id: AssetId) -> int: ...


def to_wad(value: int, decimals: int) -> int:
    """Rescale an integer with ``decimals`` places to 18 decimal places.

    Scaling down truncates toward zero for non-negative values (floor division).
    """
    if decimals < 0:
        msg = f"decimals must be >= 0, got {decimals}"
        raise InvalidArgumentError(msg)
    if decimals <= WAD_DECIMALS:
        return value * 10 ** (WAD_DECIMALS - decimals)
    return value // 10 ** (decimals - WAD_DECIMALS)


def normalize_asset_id(asset_id: str) -> AssetId:
    """Lowercase hex addresses; symbols such as ``USD`` are kept as given."""
    if asset_id[:2].lower() == "0x":
        return AssetId(asset_id.lower())
    return AssetId(asset_id)


def provider_label(provider: PriceProvider | None) -> str | None:
    if provider is None:
        return None
    return getattr(provider, "name", None) or type(provider).__name__


__all__ = [
    "Address",
    "AssetId",
    "PriceProvider",
    "TokenMetadata",
    "WAD",
    "WAD_DECIMALS",
    "normalize_asset_id",
    "provider_label",
    "to_wad",
]
