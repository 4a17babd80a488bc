"""Invariant markers for gomodfix."""

from __future__ import annotations

import logging
from typing import NoReturn

from gomodfix.exceptions import NeverThrown

logger = logging.getLogger(__name__)


def never(reason: str = "", **env: object) -> NoReturn:
    """Mark a code path as unreachable.

    Reaching it is a bug; the env payload is carried on the exception and
    logged so that reports include the offending values.
    """
    exc = NeverThrown(reason or "never() marker reached", env=env)
    logger.error("invariant violated: %r", exc.payload_dict)
    raise exc
