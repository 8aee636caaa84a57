"""Redis connection handling: URL parsing, client creation and a startup check."""

from dataclasses import dataclass
from typing import Optional
from urllib.parse import unquote, urlparse

import redis.asyncio as aioredis
from redis.exceptions import RedisError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from .logger import logger

DEFAULT_REDIS_PORT = 6379


@dataclass(frozen=True)
class RedisSettings:
    host: str
    port: int = DEFAULT_REDIS_PORT
    username: Optional[str] = None
    password: Optional[str] = None
    use_tls: bool = False
    db: int = 0

    @property
    def provider(self) -> str:
        if "upstash" in self.host:
            return "Upstash"
        if self.host in ("localhost", "127.0.0.1"):
            return "Local"
        return "Unknown/Custom"


def parse_redis_url(url: str, tls_override: Optional[str] = None) -> RedisSettings:
    """Split a redis:// or rediss:// URL into connection settings.

    TLS is enabled for the ``rediss`` scheme and for Upstash endpoints, which
    only accept TLS. ``tls_override`` ("true"/"false") wins over both.
    """
    parsed = urlparse(url)
    if parsed.scheme not in ("redis", "rediss") or not parsed.hostname:
        raise ValueError("Invalid Redis URL format")

    username = None
    password = None
    if parsed.password is not None:
        username = unquote(parsed.username) if parsed.username else None
        password = unquote(parsed.password)
    elif parsed.username:
        # redis://secret@host carries only a password
        password = unquote(parsed.username)

    use_tls = parsed.scheme == "rediss" or "upstash" in parsed.hostname
    if tls_override is not None and tls_override.strip():
        use_tls = tls_override.strip().lower() == "true"

    db = 0
    path = parsed.path.lstrip("/")
    if path.isdigit():
        db = int(path)

    return RedisSettings(
        host=parsed.hostname,
        port=parsed.port or DEFAULT_REDIS_PORT,
        username=username,
        password=password,
        use_tls=use_tls,
        db=db,
    )


def create_redis(settings: RedisSettings) -> aioredis.Redis:
    logger.info(f"Creating Redis client (provider={settings.provider}) tls={settings.use_tls}")
    return aioredis.Redis(
        host=settings.host,
        port=settings.port,
        db=settings.db,
        username=settings.username,
        password=settings.password,
        ssl=settings.use_tls,
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=2,
    )


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=5),
    retry=retry_if_exception_type((RedisError, OSError)),
    reraise=True,
)
async def _ping(redis: aioredis.Redis) -> bool:
    return await redis.ping()


async def check_redis_connection(redis: aioredis.Redis, settings: RedisSettings) -> bool:
    """Ping Redis at startup. The outcome is logged, never raised."""
    logger.info(f">> Redis provider: {settings.provider}")
    logger.info(f">> Redis TLS {'enabled' if settings.use_tls else 'not enabled'}")
    try:
        if await _ping(redis):
            logger.info(">> Redis PING successful!")
            return True
        logger.error(">> Redis PING failed")
    except (RedisError, OSError) as e:
        # Only the exception type: messages may echo credentials
        logger.error(f">> Redis connection FAILED ({type(e).__name__})")
    return False
