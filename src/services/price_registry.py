from __future__ import annotations

import logging
import threading
from typing import Iterable, Mapping, Sequence

from domain.errors import InvalidArgumentError, ProviderNotFoundError
from domain.events import ChangeEvent, ChangeKind, EventSink, flag_label
from domain.pricing import WAD, Address, AssetId, PriceProvider, TokenMetadata, provider_label, to_wad

from .access_control import require_role

logger = logging.getLogger(__name__)


class PriceRegistry(PriceProvider):
    """Routes price lookups to per-asset providers with a default-provider fallback.

    Prices are returned in ``base_currency`` as integers scaled by 10**18. Routing for
    an asset that is not the base currency:

    - ``call_default_first`` set and a default provider configured: the default answers.
    - otherwise the explicit provider answers when set, else the default provider.
    - neither configured: ProviderNotFoundError.

    The administrator controls every mutation; the guardian may only clear provider
    entries.
    """

    def __init__(
        self,
        base_currency: AssetId,
        *,
        administrator: Address,
        guardian: Address | None = None,
        default_provider: PriceProvider | None = None,
        call_default_first: bool = False,
        providers: Mapping[AssetId, PriceProvider | None] | None = None,
        token_metadata: TokenMetadata | None = None,
        event_sink: EventSink | None = None,
        name: str = "price-registry",
    ) -> None:
        if not base_currency:
            msg = "base_currency must be provided"
            raise InvalidArgumentError(msg)
        if not administrator:
            msg = "administrator must be provided"
            raise InvalidArgumentError(msg)
        self._check_compatible(default_provider, base_currency)

        self._base_currency = base_currency
        self._name = name
        self.token_metadata = token_metadata
        self._event_sink = event_sink
        self._lock = threading.RLock()

        self._administrator: Address = administrator
        self._guardian: Address | None = guardian
        self._default_provider: PriceProvider | None = default_provider
        self._call_default_first = call_default_first
        self._providers: dict[AssetId, PriceProvider | None] = {}

        self._emit(ChangeKind.ADMINISTRATOR, None, administrator)
        if guardian is not None:
            self._emit(ChangeKind.GUARDIAN, None, guardian)
        if default_provider is not None:
            self._emit(ChangeKind.DEFAULT_PROVIDER, None, provider_label(default_provider))
            self._emit(ChangeKind.CALL_DEFAULT_FIRST, flag_label(False), flag_label(call_default_first))
        if providers:
            self._assign(providers.items())

    @property
    def name(self) -> str:
        return self._name

    @property
    def base_currency(self) -> AssetId:
        return self._base_currency

    @property
    def administrator(self) -> Address:
        return self._administrator

    @property
    def guardian(self) -> Address | None:
        return self._guardian

    @property
    def default_provider(self) -> PriceProvider | None:
        return self._default_provider

    @property
    def call_default_first(self) -> bool:
        return self._call_default_first

    def provider_for(self, asset_id: AssetId) -> PriceProvider | None:
        with self._lock:
            return self._providers.get(asset_id)

    # Mutators

    def set_providers(
        self,
        asset_ids: Sequence[AssetId],
        providers: Sequence[PriceProvider | None],
        *,
        caller: Address,
    ) -> None:
        require_role(caller, [self._administrator], action="set providers", emitter=self.name)
        if len(asset_ids) != len(providers) or not asset_ids:
            msg = "asset_ids and providers must have the same nonzero length"
            raise InvalidArgumentError(msg)
        self._assign(zip(asset_ids, providers))

    def clear_providers(self, asset_ids: Sequence[AssetId], *, caller: Address) -> None:
        require_role(caller, [self._administrator, self._guardian], action="clear providers", emitter=self.name)
        if not asset_ids:
            msg = "asset_ids must not be empty"
            raise InvalidArgumentError(msg)
        self._assign((asset_id, None) for asset_id in asset_ids)

    def set_default_provider(
        self,
        new_provider: PriceProvider | None,
        new_call_first: bool,
        *,
        caller: Address,
    ) -> None:
        require_role(caller, [self._administrator], action="set default provider", emitter=self.name)
        if new_provider is self:
            msg = f"{self.name} cannot be its own default provider"
            raise InvalidArgumentError(msg)
        self._check_compatible(new_provider, self._base_currency)
        with self._lock:
            old_provider, old_call_first = self._default_provider, self._call_default_first
            self._default_provider = new_provider
            self._call_default_first = new_call_first
        logger.info(
            "%s default provider %s -> %s (call_default_first=%s)",
            self.name,
            provider_label(old_provider),
            provider_label(new_provider),
            new_call_first,
        )
        self._emit(ChangeKind.DEFAULT_PROVIDER, provider_label(old_provider), provider_label(new_provider))
        self._emit(ChangeKind.CALL_DEFAULT_FIRST, flag_label(old_call_first), flag_label(new_call_first))

    def set_administrator(self, new_admin: Address, *, caller: Address) -> None:
        require_role(caller, [self._administrator], action="set administrator", emitter=self.name)
        if not new_admin:
            msg = "new administrator must be provided"
            raise InvalidArgumentError(msg)
        with self._lock:
            old_admin = self._administrator
            self._administrator = new_admin
        logger.info("%s administrator %s -> %s", self.name, old_admin, new_admin)
        self._emit(ChangeKind.ADMINISTRATOR, old_admin, new_admin)

    def set_guardian(self, new_guardian: Address | None, *, caller: Address) -> None:
        require_role(caller, [self._administrator], action="set guardian", emitter=self.name)
        with self._lock:
            old_guardian = self._guardian
            self._guardian = new_guardian
        logger.info("%s guardian %s -> %s", self.name, old_guardian, new_guardian)
        self._emit(ChangeKind.GUARDIAN, old_guardian, new_guardian)

    # Queries

    def price(self, asset_id: AssetId, context: PriceProvider | None = None) -> int:
        # A registry always resolves against itself; ``context`` only matters to leaf providers.
        if asset_id == self._base_currency:
            return WAD

        with self._lock:
            explicit = self._providers.get(asset_id)
            fallback = self._default_provider
            call_first = self._call_default_first

        if call_first and fallback is not None:
            selected, route = fallback, "default (call first)"
        elif explicit is not None:
            selected, route = explicit, "explicit"
        elif fallback is not None:
            selected, route = fallback, "default"
        else:
            msg = f"provider not found for {asset_id} in {self.name}"
            raise ProviderNotFoundError(msg, asset_id=asset_id)

        logger.debug("%s routing %s to %s provider %s", self.name, asset_id, route, provider_label(selected))
        return selected.price(asset_id, self)

    def prices(self, asset_ids: Iterable[AssetId]) -> list[int]:
        return [self.price(asset_id) for asset_id in asset_ids]

    def underlying_price(self, token_ref: str) -> int:
        """Price of one raw unit of the token's underlying asset, scaled by 10**(36 - decimals).

        An 18-decimal asset keeps its 18-decimal price; an 8-decimal asset is multiplied
        by 10**10; a 36-decimal asset is floor-divided by 10**18.
        """
        if self.token_metadata is None:
            msg = f"{self.name} has no token metadata source configured"
            raise InvalidArgumentError(msg)

        underlying = self.token_metadata.underlying(token_ref)
        quote = self.price(underlying)
        decimals = self.token_metadata.decimals(underlying)
        return to_wad(quote, decimals)

    def _assign(self, assignments: Iterable[tuple[AssetId, PriceProvider | None]]) -> None:
        changes: list[tuple[AssetId, PriceProvider | None, PriceProvider | None]] = []
        with self._lock:
            for asset_id, provider in assignments:
                changes.append((asset_id, self._providers.get(asset_id), provider))
                self._providers[asset_id] = provider
        # Sinks run after the lock is released.
        for asset_id, old_provider, provider in changes:
            self._emit(ChangeKind.PROVIDER, provider_label(old_provider), provider_label(provider), asset_id=asset_id)

    @staticmethod
    def _check_compatible(provider: PriceProvider | None, expected: AssetId) -> None:
        if provider is None:
            return
        if provider.base_currency != expected:
            msg = (
                f"default provider {provider_label(provider)} quotes in {provider.base_currency}, "
                f"expected {expected}"
            )
            raise InvalidArgumentError(msg)

    def _emit(
        self,
        kind: ChangeKind,
        old_value: str | None,
        new_value: str | None,
        *,
        asset_id: AssetId | None = None,
    ) -> None:
        if self._event_sink is None:
            return
        self._event_sink.emit(
            ChangeEvent(emitter=self.name, kind=kind, asset_id=asset_id, old_value=old_value, new_value=new_value)
        )


__all__ = ["PriceRegistry"]
