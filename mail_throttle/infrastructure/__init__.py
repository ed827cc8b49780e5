from .queue import ReleasingJobScheduler
from .redis import create_redis_client, get_redis
from .throttle_store import RedisThrottleStore

__all__ = [
    "ReleasingJobScheduler",
    "RedisThrottleStore",
    "create_redis_client",
    "get_redis",
]
