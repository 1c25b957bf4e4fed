"""
Redis 緩存引擎

讓網頁緩存前端以 Redis 作為後端：鍵前綴、值編碼與 TTL 策略，
實際的連接、協議與重試交給 redis-py。
"""

from .services.cache import (
    CacheManager,
    RedisCacheEngine,
    cache_manager,
)

__version__ = "0.1.0"

__all__ = [
    "CacheManager",
    "RedisCacheEngine",
    "cache_manager",
]
