"""
緩存服務模組

- RedisCacheEngine: Redis 緩存引擎
- CacheManager: 以具名配置管理引擎的前端
"""

from .adapters import ICacheEngine, RedisCacheEngine
from .cache_manager import CacheManager, cache_manager
from .keys import namespaced_key, validate_key

__all__ = [
    "ICacheEngine",
    "RedisCacheEngine",
    "CacheManager",
    "cache_manager",
    "namespaced_key",
    "validate_key",
]
