"""
緩存管理器

以具名配置管理多個緩存引擎，提供前端使用的 read/write/delete/clear 等接口
"""

from typing import Optional, Any, Callable, Dict, List, Mapping
import logging

from redis_cache_engine.core.config import settings
from redis_cache_engine.core.exceptions import CacheConfigError, CacheConnectionError
from redis_cache_engine.core.logging_utils import AppLogger
from redis_cache_engine.services.cache.adapters.base import ICacheEngine
from redis_cache_engine.services.cache.adapters.redis_adapter import RedisCacheEngine

logger = AppLogger(__name__, level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)).get_logger()

DEFAULT_CONFIG_NAME = "default"

EngineFactory = Callable[[str], ICacheEngine]


def _redis_engine_factory(name: str) -> ICacheEngine:
    return RedisCacheEngine(name=name)


class CacheManager:
    """
    緩存管理器

    核心功能：
    1. 以名稱註冊配置，第一次使用時才建立並初始化引擎
    2. 統一的 read/write/delete 接口，預設使用 "default" 配置
    3. 依分組清理所有相關配置
    4. 統一關閉所有連接

    使用範例：
        cache_manager.set_config("default", {"prefix": "app_", "duration": 600})
        cache_manager.set_config("posts", {"prefix": "app_posts_", "groups": ["posts"]})

        cache_manager.write("user_123", {"name": "John"})
        cache_manager.read("user_123")

        # 清理所有屬於 posts 分組的配置
        for name in cache_manager.group_configs("posts")["posts"]:
            cache_manager.clear_group("posts", name)
    """

    def __init__(self, engine_factory: Optional[EngineFactory] = None):
        self._engine_factory = engine_factory or _redis_engine_factory
        self._configs: Dict[str, Dict[str, Any]] = {}
        self._engines: Dict[str, ICacheEngine] = {}

    def set_config(self, name: str, config: Optional[Mapping[str, Any]] = None) -> None:
        """
        註冊配置

        Raises:
            CacheConfigError: 名稱已被使用
        """
        if name in self._configs:
            raise CacheConfigError(name, "配置名稱已存在，請先 drop")
        self._configs[name] = dict(config or {})
        logger.debug(f"[CacheManager] 已註冊配置: {name}")

    def configured(self) -> List[str]:
        return list(self._configs)

    def engine(self, name: str = DEFAULT_CONFIG_NAME) -> ICacheEngine:
        """
        取得（必要時建立）引擎

        Raises:
            CacheConfigError: 名稱未註冊
            CacheConnectionError: 引擎無法連接
        """
        existing = self._engines.get(name)
        if existing is not None:
            return existing

        if name not in self._configs:
            raise CacheConfigError(name, "配置不存在")

        engine = self._engine_factory(name)
        if not engine.init(self._configs[name]):
            raise CacheConnectionError(name)

        self._engines[name] = engine
        logger.info(f"[CacheManager] 引擎已初始化: {name}")
        return engine

    def read(self, key: str, config: str = DEFAULT_CONFIG_NAME, default: Any = None) -> Any:
        return self.engine(config).get(key, default)

    def write(self, key: str, value: Any, config: str = DEFAULT_CONFIG_NAME) -> bool:
        return self.engine(config).set(key, value)

    def delete(self, key: str, config: str = DEFAULT_CONFIG_NAME) -> bool:
        return self.engine(config).delete(key)

    def increment(self, key: str, offset: int = 1, config: str = DEFAULT_CONFIG_NAME) -> Any:
        return self.engine(config).increment(key, offset)

    def decrement(self, key: str, offset: int = 1, config: str = DEFAULT_CONFIG_NAME) -> Any:
        return self.engine(config).decrement(key, offset)

    def clear(self, config: str = DEFAULT_CONFIG_NAME) -> bool:
        return self.engine(config).clear()

    def clear_group(self, group: str, config: str = DEFAULT_CONFIG_NAME) -> bool:
        return self.engine(config).clear_group(group)

    def group_configs(self, group: Optional[str] = None) -> Dict[str, List[str]]:
        """
        分組 → 列出該分組的配置名稱

        Args:
            group: 只查詢某個分組，None 表示全部

        Raises:
            CacheConfigError: 指定的分組不存在
        """
        mapping: Dict[str, List[str]] = {}
        for name, config in self._configs.items():
            groups = config.get("groups") or []
            if isinstance(groups, str):
                groups = [groups]
            for group_name in groups:
                mapping.setdefault(group_name, []).append(name)

        if group is None:
            return mapping
        if group not in mapping:
            raise CacheConfigError("groups", f"分組不存在: {group}")
        return {group: mapping[group]}

    def drop(self, name: str) -> bool:
        """移除配置並關閉其引擎"""
        if name not in self._configs:
            return False
        engine = self._engines.pop(name, None)
        if engine is not None:
            engine.close()
        del self._configs[name]
        logger.info(f"[CacheManager] 已移除配置: {name}")
        return True

    def shutdown(self) -> None:
        """關閉所有引擎連接，保留配置"""
        for name, engine in list(self._engines.items()):
            engine.close()
            logger.debug(f"[CacheManager] 已關閉引擎: {name}")
        self._engines.clear()
        logger.info("[CacheManager] 所有引擎已關閉")

    def get_statistics(self) -> Dict[str, Any]:
        """各引擎的統計信息"""
        return {name: engine.get_stats() for name, engine in self._engines.items()}

    def health_check(self) -> Dict[str, bool]:
        """各引擎的健康狀態"""
        return {name: engine.health_check() for name, engine in self._engines.items()}


# 全局緩存管理器實例
cache_manager = CacheManager()
