from __future__ import annotations

import json
import logging

from token_gateway.app.domain.models import Address, TransferRecord
from token_gateway.app.domain.ports.out import CacheStore, TransferHistoryProvider
from token_gateway.app.domain.transfers import TransferParseError, parse_transfer

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 10
DEFAULT_HISTORY_TTL_SECONDS = 20.0
DEFAULT_CATEGORIES = ("external", "internal", "erc20", "erc721", "erc1155")


def history_cache_key(address: str) -> str:
    return f"txs:{address.lower()}"


class TransferHistoryService:
    """
    Cache-aside view over the indexing API.

    - hit: cached, already normalized records are returned as-is,
    - miss: fetch the newest transfers, normalize at the boundary (malformed records
      are dropped with a warning), cache the newest max(limit, default_limit)
      records and return the last `limit`,
    - provider failure propagates (HistoryUnavailableError) and nothing is cached,
    - cache failures never fail the request: a broken read is a miss,
      a broken write is logged.
    """

    def __init__(
        self,
        *,
        provider: TransferHistoryProvider,
        cache: CacheStore,
        ttl_seconds: float = DEFAULT_HISTORY_TTL_SECONDS,
        categories: tuple[str, ...] | list[str] = DEFAULT_CATEGORIES,
        default_limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> None:
        self._provider = provider
        self._cache = cache
        self._ttl_seconds = ttl_seconds
        self._categories = list(categories)
        self._default_limit = default_limit

    async def get_history(
        self,
        address: Address,
        limit: int | None = None,
    ) -> list[TransferRecord]:
        limit = self._default_limit if limit is None else limit
        if limit <= 0:
            raise ValueError("limit must be positive")

        key = history_cache_key(address)
        # The shared entry always covers at least the default window
        window = max(limit, self._default_limit)

        cached = await self._read_cache(key)
        # A list shorter than `limit` can only serve limits up to the default window
        if cached is not None and (len(cached) >= limit or limit <= self._default_limit):
            logger.debug("History cache hit", extra={"address": address})
            return cached[-limit:]

        logger.debug("History cache miss", extra={"address": address})
        raw_transfers = await self._provider.fetch_transfers(
            address=address,
            categories=self._categories,
            max_count=window,
        )

        records: list[TransferRecord] = []
        for raw in raw_transfers:
            parsed = parse_transfer(raw)
            if isinstance(parsed, TransferParseError):
                logger.warning(
                    "Skipping malformed transfer record: %s",
                    parsed.reason,
                    extra={"address": address},
                )
                continue
            records.append(parsed)

        await self._write_cache(key, records[-window:])
        return records[-limit:]

    async def invalidate(self, address: str) -> None:
        try:
            await self._cache.delete(history_cache_key(address))
        except Exception as e:
            logger.warning("History cache invalidation failed: %s", e, extra={"address": address})

    async def _read_cache(self, key: str) -> list[TransferRecord] | None:
        try:
            payload = await self._cache.get(key)
        except Exception as e:
            logger.warning("History cache read failed, treating as miss: %s", e)
            return None

        if payload is None:
            return None

        try:
            return [TransferRecord.from_dict(item) for item in json.loads(payload)]
        except (ValueError, KeyError, TypeError) as e:
            logger.warning("Discarding undecodable history cache entry %s: %s", key, e)
            return None

    async def _write_cache(self, key: str, records: list[TransferRecord]) -> None:
        payload = json.dumps([r.to_dict() for r in records])
        try:
            await self._cache.set(key, payload, ttl_seconds=self._ttl_seconds)
        except Exception as e:
            logger.warning("History cache write failed: %s", e)
