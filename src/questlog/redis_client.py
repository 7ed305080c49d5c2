"""Redis client construction for the key-value backend."""

import redis.asyncio as redis


def create_redis(url: str, socket_timeout: float = 5.0) -> redis.Redis:
    """Create a pooled client. Responses are decoded to ``str``."""
    return redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=50,
        socket_timeout=socket_timeout,
        socket_connect_timeout=socket_timeout,
    )


async def check_connection(client: redis.Redis) -> None:
    """PING the server. Raises if it does not answer."""
    await client.ping()
