from __future__ import annotations


class PriceRouterError(Exception):
    """Base class for every failure raised by the price router."""


class UnauthorizedError(PriceRouterError):
    def __init__(self, message: str, *, caller: str | None = None) -> None:
        super().__init__(message)
        self.caller = caller


class InvalidArgumentError(PriceRouterError, ValueError):
    pass


class NotFoundError(PriceRouterError, LookupError):
    def __init__(self, message: str, *, asset_id: str | None = None) -> None:
        super().__init__(message)
        self.asset_id = asset_id


class ProviderNotFoundError(NotFoundError):
    pass


class FeedNotFoundError(NotFoundError):
    pass


class FeedValidationError(PriceRouterError):
    """Latest feed report is unusable. Never replaced by a fallback value."""

    def __init__(self, message: str, *, asset_id: str | None = None, round_id: int | None = None) -> None:
        super().__init__(message)
        self.asset_id = asset_id
        self.round_id = round_id


class StaleDataError(FeedValidationError):
    pass


class IncompleteRoundError(FeedValidationError):
    pass


class InvalidQuoteError(FeedValidationError):
    pass


__all__ = [
    "FeedNotFoundError",
    "FeedValidationError",
    "IncompleteRoundError",
    "InvalidArgumentError",
    "InvalidQuoteError",
    "NotFoundError",
    "PriceRouterError",
    "ProviderNotFoundError",
    "StaleDataError",
    "UnauthorizedError",
]
