"""Ordered fallback over alternative data sources: the first non-empty answer wins."""
from __future__ import annotations

import inspect
from typing import Any, Callable, Sequence

from .errors import HealSyncError
from .logging_config import get_logger

logger = get_logger(__name__)

Strategy = Callable[[], Any]


class FallbackChain:
    """Run named strategies strictly one after another.

    A strategy returns a sequence (or ``None``). A ``HealSyncError`` raised by
    a strategy counts as an empty answer; anything else propagates.
    """

    def __init__(self, strategies: Sequence[tuple[str, Strategy]]):
        self.strategies = list(strategies)

    async def run(self) -> list:
        for name, strategy in self.strategies:
            try:
                result = strategy()
                if inspect.isawaitable(result):
                    result = await result
            except HealSyncError as exc:
                logger.warning("strategy_failed", strategy=name, status=exc.status_code, error=exc.message)
                continue
            if result:
                logger.info("strategy_succeeded", strategy=name, count=len(result))
                return list(result)
            logger.debug("strategy_empty", strategy=name)
        return []
