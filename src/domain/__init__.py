"""Domain types for the price router.

This package holds the provider capability protocols, the fixed-point helpers,
the error hierarchy and the (Pydantic) change-event models. They are independent
from persistence and transport so routing logic can be tested without either.
"""

__all__ = [
    "errors",
    "events",
    "pricing",
]
