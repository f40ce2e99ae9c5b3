import asyncio
from collections import OrderedDict
from functools import wraps


def lru_acache(maxsize: int = 128):
    """
    Caches an async function's return value, per event loop.

    If the maxsize is reached, the least recently used value is removed. Like `functools.lru_cache`, the wrapper exposes `cache_clear()` to forget every value, e.g. after closing a cached client, and `cache_get()` to peek at a value without creating it.
    """

    def decorator(func):
        cache: OrderedDict[tuple, object] = OrderedDict()

        def _key(args: tuple, kwargs: dict) -> tuple:
            # Objects bound to a loop (sessions, pools) must not leak to another loop
            return (
                id(asyncio.get_running_loop()),
                args,
                frozenset(kwargs.items()),
            )

        def cache_get(*args, **kwargs):
            """
            Get the cached value for the current loop, without computing it. Returns `None` if there is none.
            """
            return cache.get(_key(args, kwargs))

        @wraps(func)
        async def wrapper(*args, **kwargs):
            key = _key(args, kwargs)

            if key in cache:
                cache.move_to_end(key)
                return cache[key]

            value = await func(*args, **kwargs)
            cache[key] = value
            cache.move_to_end(key)

            # Evict the least recently used
            if len(cache) > maxsize:
                cache.popitem(last=False)

            return value

        wrapper.cache_clear = cache.clear  # pyright: ignore
        wrapper.cache_get = cache_get  # pyright: ignore
        return wrapper

    return decorator
