"""
緩存適配器模組

提供緩存引擎的統一接口實現
"""

from .base import ICacheEngine
from .redis_adapter import RedisCacheEngine

__all__ = [
    "ICacheEngine",
    "RedisCacheEngine",
]
