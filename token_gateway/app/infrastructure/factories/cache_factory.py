from __future__ import annotations

from typing import Callable, Dict

from token_gateway.app.config import Settings
from token_gateway.app.domain.ports.out import CacheStore
from token_gateway.app.infrastructure.cache.memory_cache import InMemoryCacheStore
from token_gateway.app.infrastructure.cache.redis_cache import RedisCacheStore

CacheStoreFactory = Callable[[Settings], CacheStore]


def _make_redis_cache(settings: Settings) -> CacheStore:
    if not settings.redis_url:
        raise ValueError("REDIS_URL is required for the redis cache backend")
    return RedisCacheStore.from_url(settings.redis_url)


_CACHE_STORE_REGISTRY: Dict[str, CacheStoreFactory] = {
    "memory": lambda settings: InMemoryCacheStore(),
    "redis": _make_redis_cache,
}


def cache_store_factory(*, backend: str, settings: Settings) -> CacheStore:
    try:
        factory = _CACHE_STORE_REGISTRY[backend]
    except KeyError:
        raise ValueError(f"Unsupported cache backend: {backend!r}")
    return factory(settings)
