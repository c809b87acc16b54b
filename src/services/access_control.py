from __future__ import annotations

import logging
from typing import Iterable

from domain.errors import UnauthorizedError
from domain.pricing import Address

logger = logging.getLogger(__name__)


def require_role(caller: Address, allowed: Iterable[Address | None], *, action: str, emitter: str) -> None:
    """Raise UnauthorizedError unless ``caller`` is one of the ``allowed`` principals.

    Unset roles (``None``) never match.
    """
    if caller and any(role is not None and caller == role for role in allowed):
        return
    logger.warning("Rejected %s on %s: caller=%s is not authorized", action, emitter, caller)
    msg = f"{caller!r} is not authorized to {action} on {emitter}"
    raise UnauthorizedError(msg, caller=caller)


__all__ = ["require_role"]
