"""Fixed-window rate limiting backed by Redis.

Used as a FastAPI dependency on the trade endpoint (per user, per minute):

    count = INCR ratelimit:{group}:{user_id}
    if count == 1: EXPIRE key 60
    if count > limit: raise RateLimitError (9001 -> HTTP 429)

Redis being unreachable never blocks trading: the check is skipped with a
warning and the request proceeds.
"""

import logging

from fastapi import Depends
from redis.exceptions import RedisError

from config.settings import settings
from src.pm_common.errors import RateLimitError
from src.pm_common.redis_client import get_redis
from src.pm_gateway.auth.dependencies import get_current_user
from src.pm_gateway.user.db_models import UserModel

logger = logging.getLogger(__name__)

_WINDOW_SECONDS = 60


class RateLimiter:
    def __init__(self, group: str, limit_per_minute: int) -> None:
        self.group = group
        self.limit = limit_per_minute

    async def hit(self, subject: str) -> None:
        key = f"ratelimit:{self.group}:{subject}"
        try:
            redis = await get_redis()
            count = await redis.incr(key)
            if count == 1:
                await redis.expire(key, _WINDOW_SECONDS)
        except RedisError as exc:
            logger.warning("Rate limit check skipped for %s: %s", key, exc)
            return
        if count > self.limit:
            raise RateLimitError()

    async def __call__(
        self, current_user: UserModel = Depends(get_current_user)
    ) -> UserModel:
        await self.hit(str(current_user.id))
        return current_user


trade_rate_limit = RateLimiter("trade", settings.TRADE_RATE_LIMIT_PER_MINUTE)
