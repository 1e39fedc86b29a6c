from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)


class InFlightRegistry:
    """Share one running load per key between concurrent callers."""

    def __init__(self) -> None:
        self._pending: dict[str, asyncio.Future[Any]] = {}

    def __len__(self) -> int:
        return len(self._pending)

    def is_pending(self, key: str) -> bool:
        return key in self._pending

    async def run(self, key: str, factory: Callable[[], Awaitable[Any]]) -> Any:
        existing = self._pending.get(key)
        if existing is not None:
            logger.debug("inflight_join key=%s", key)
            return await asyncio.shield(existing)

        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending[key] = future
        try:
            result = await factory()
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as exc:
            future.set_exception(exc)
            # Nobody may be waiting; mark the exception retrieved.
            future.exception()
            raise
        else:
            future.set_result(result)
            return result
        finally:
            self._pending.pop(key, None)
