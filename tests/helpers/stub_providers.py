from __future__ import annotations

from domain.errors import ProviderNotFoundError
from domain.pricing import AssetId, PriceProvider


class StubPriceProvider(PriceProvider):
    """Answers fixed quotes and records every lookup with the context it was given."""

    def __init__(
        self,
        quotes: dict[str, int],
        *,
        base_currency: str = "USD",
        name: str = "stub",
    ) -> None:
        self.quotes = dict(quotes)
        self._base_currency = AssetId(base_currency)
        self._name = name
        self.calls: list[tuple[str, PriceProvider | None]] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def base_currency(self) -> AssetId:
        return self._base_currency

    def price(self, asset_id: AssetId, context: PriceProvider | None = None) -> int:
        self.calls.append((asset_id, context))
        try:
            return self.quotes[asset_id]
        except KeyError as exc:
            raise ProviderNotFoundError(f"{self._name} has no quote for {asset_id}", asset_id=asset_id) from exc
