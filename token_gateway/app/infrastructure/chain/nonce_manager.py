from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable

logger = logging.getLogger(__name__)


class NonceManager:
    """
    Hands out transaction nonces for a single signing key.

    Callers hold the reservation for the duration of one broadcast:

        async with nonces.reserve() as nonce:
            await send(nonce)

    - reservations are serialized by an asyncio.Lock, so nonces are unique and ordered,
    - the next nonce is tracked locally after the first sync with the node,
    - if the body raises, the nonce is not consumed and the next reservation
      resyncs from the node (the broadcast may or may not have landed).
    """

    def __init__(self, fetch_pending_nonce: Callable[[], Awaitable[int]]) -> None:
        self._fetch = fetch_pending_nonce
        self._lock = asyncio.Lock()
        self._next: int | None = None

    @asynccontextmanager
    async def reserve(self) -> AsyncIterator[int]:
        async with self._lock:
            if self._next is None:
                self._next = await self._fetch()
                logger.info("Synced signer nonce from node: %s", self._next)

            nonce = self._next
            try:
                yield nonce
            except BaseException:
                self._next = None
                raise
            self._next = nonce + 1

    def reset(self) -> None:
        self._next = None
