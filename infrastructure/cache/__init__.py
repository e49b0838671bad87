"""Cache infrastructure exports."""
from .connection import init_redis, shutdown_redis
from .reservation_list_cache import InMemoryReservationListCache, RedisReservationListCache

__all__ = [
    "init_redis",
    "shutdown_redis",
    "InMemoryReservationListCache",
    "RedisReservationListCache",
]
