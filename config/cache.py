# config/cache.py
import logging
from typing import Optional
from urllib.parse import urlsplit
from redis.asyncio import Redis, from_url
from redis.exceptions import RedisError
from config.settings import settings

logger = logging.getLogger(__name__)

_client: Optional[Redis] = None


def redacted_url(url: str) -> str:
    """Redis URL without credentials, for logs."""
    parts = urlsplit(url)
    if not parts.password and not parts.username:
        return url
    host = parts.hostname or ""
    if parts.port:
        host = f"{host}:{parts.port}"
    return parts._replace(netloc=host).geturl()


async def get_redis() -> Redis:
    """
    Shared connection for every repository. Documents, contexts and PDF
    blobs are all stored as raw bytes, so responses are not decoded.
    """
    global _client
    if _client is None:
        client = from_url(
            settings.REDIS_URL,
            decode_responses=False,
            socket_keepalive=True,
            health_check_interval=30,
        )
        await client.ping()
        logger.info("redis.connect url=%s", redacted_url(settings.REDIS_URL))
        _client = client
    return _client


async def redis_ready() -> bool:
    """Liveness probe for /healthz; never raises."""
    try:
        r = await get_redis()
        return bool(await r.ping())
    except (RedisError, OSError):
        logger.warning("redis.ping.error", exc_info=True)
        return False


async def close_redis() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        logger.info("redis.close")
        _client = None
