from aiohttp import (
    AsyncResolver,
    ClientSession,
    ClientTimeout,
    DummyCookieJar,
    TCPConnector,
)

from app.helpers.cache import lru_acache


@lru_acache()
async def _aiohttp_cookie_jar() -> DummyCookieJar:
    """
    Create a cookie jar mock for AIOHTTP.

    Object is cached for performance.

    Returns a `DummyCookieJar` instance.
    """
    return DummyCookieJar()


@lru_acache()
async def aiohttp_session() -> ClientSession:
    """
    Create an AIOHTTP session.

    Object is cached for performance. There is no retry layer on top of it, a failed request fails once.

    Returns a `ClientSession` instance.
    """
    return ClientSession(
        cookie_jar=await _aiohttp_cookie_jar(),
        trust_env=True,
        # Performance
        connector=TCPConnector(resolver=AsyncResolver()),
        # Reliability
        timeout=ClientTimeout(
            connect=5,
            total=60,
        ),
    )


async def close_aiohttp_session() -> None:
    """
    Close the shared AIOHTTP session and forget it, the next call to `aiohttp_session` opens a new one.

    Nothing is done if no session was opened.
    """
    session: ClientSession | None = aiohttp_session.cache_get()  # pyright: ignore
    if session is None:
        return
    await session.close()
    aiohttp_session.cache_clear()  # pyright: ignore
