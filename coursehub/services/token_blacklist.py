import logging
from functools import lru_cache
from typing import Optional

import redis

from coursehub.config import settings

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_redis_client() -> Optional[redis.Redis]:
    # Redis is optional: without it logout cannot revoke tokens
    client = redis.Redis(
        host=settings.REDIS_HOST,
        port=settings.REDIS_PORT,
        password=settings.REDIS_PASSWORD,
        decode_responses=True,
        socket_connect_timeout=1,
    )
    try:
        client.ping()
    except redis.RedisError:
        logger.warning("Redis not available. Token blacklisting will be disabled.")
        return None
    return client


def add_to_blacklist(token: str, expires_in: int) -> bool:
    client = get_redis_client()
    if client is None:
        return False
    client.setex(f"blacklist_token:{token}", expires_in, "1")
    return True


def is_blacklisted(token: str) -> bool:
    client = get_redis_client()
    if client is None:
        return False
    return client.exists(f"blacklist_token:{token}") == 1
