"""
Redis 緩存引擎

把前端的通用緩存操作轉成 redis-py 命令，負責鍵前綴、值編碼與 TTL 策略
"""

from typing import Optional, Any, Dict, Iterable, List, Mapping
import logging

import redis
from redis.exceptions import RedisError

from redis_cache_engine.core.config import EngineConfig, merge_config
from redis_cache_engine.core.exceptions import EngineNotInitializedError, SerializationError
from redis_cache_engine.core.logging_utils import mask_sensitive_data
from redis_cache_engine.services.cache.connection import build_client
from redis_cache_engine.services.cache.keys import group_pattern, namespaced_key, validate_key
from redis_cache_engine.services.cache.serializers import decode_value, encode_value

logger = logging.getLogger(__name__)


class RedisCacheEngine:
    """
    Redis 緩存引擎

    特點：
    - 整數以十進位文字存放，可直接使用 INCRBY/DECRBY
    - 其他值以 pickle 或 JSON 序列化
    - 過期時間一律取配置的 duration，呼叫時傳入的 ttl 會被忽略
    - clear/clear_group 以 KEYS 列舉後逐一刪除，不是原子操作：
      列舉與刪除之間由其他客戶端寫入的鍵可能不會被清除

    使用範例：
        engine = RedisCacheEngine()
        if engine.init({"prefix": "app_", "duration": 600}):
            engine.set("user_123", {"name": "John"})
            engine.get("user_123")
        engine.close()
    """

    def __init__(self, client: Optional[redis.Redis] = None, name: str = "redis"):
        """
        Args:
            client: 預先建立的 Redis 客戶端，None 表示在 init 時依配置建立
            name: 引擎名稱，用於日誌
        """
        self.name = name
        self._injected_client = client
        self._client: Optional[redis.Redis] = None
        self._config: Optional[EngineConfig] = None

        # 統計信息
        self._hits = 0
        self._misses = 0
        self._sets = 0
        self._deletes = 0

    # ========== 生命週期 ==========

    @property
    def config(self) -> Optional[EngineConfig]:
        return self._config

    @property
    def is_ready(self) -> bool:
        return self._client is not None

    def init(self, config: Optional[Mapping[str, Any]] = None) -> bool:
        """
        合併配置並連接 Redis

        連接失敗只記錄並返回 False，由前端決定降級方式。

        Raises:
            CacheConfigError: 配置不合法
        """
        if self._client is not None:
            self.close()

        self._config = merge_config(config)
        client = self._injected_client or build_client(self._config)

        try:
            client.ping()
        except RedisError as e:
            logger.error(
                f"[Redis:{self.name}] 連接失敗: "
                f"{mask_sensitive_data(self._config.connections)}, {e}"
            )
            if client is not self._injected_client:
                client.close()
            return False

        self._client = client
        logger.info(
            f"[Redis:{self.name}] 連接成功: "
            f"connections={mask_sensitive_data(self._config.connections)}, "
            f"prefix={self._config.prefix!r}, duration={self._config.duration}s"
        )
        return True

    def close(self) -> None:
        """斷開 Redis 連接，重複呼叫無副作用"""
        if self._client is None:
            return
        client, self._client = self._client, None
        try:
            client.close()
            logger.info(f"[Redis:{self.name}] 連接已關閉")
        except RedisError as e:
            logger.warning(f"[Redis:{self.name}] 關閉連接時發生錯誤: {e}")

    def __enter__(self) -> "RedisCacheEngine":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _require_ready(self, operation: str) -> redis.Redis:
        if self._client is None:
            raise EngineNotInitializedError(operation)
        return self._client

    def _key(self, key: str) -> str:
        return namespaced_key(self._config.prefix, validate_key(key))

    # ========== 讀寫 ==========

    def get(self, key: str, default: Any = None) -> Any:
        """獲取緩存值，不存在、讀取失敗或無法解碼時返回 default"""
        client = self._require_ready("get")
        full_key = self._key(key)

        try:
            raw = client.get(full_key)
        except RedisError as e:
            logger.error(f"[Redis:{self.name}] 獲取緩存失敗: {full_key}, {e}")
            self._misses += 1
            return default

        if raw is None:
            self._misses += 1
            logger.debug(f"[Redis:{self.name}] 緩存未命中: {full_key}")
            return default

        try:
            value = decode_value(raw, self._config.serializer)
        except SerializationError as e:
            logger.error(f"[Redis:{self.name}] 解碼緩存失敗: {full_key}, {e}")
            self._misses += 1
            return default

        self._hits += 1
        logger.debug(f"[Redis:{self.name}] 緩存命中: {full_key}")
        return value

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """
        設置緩存值

        ttl 只為契約相容而接受，過期時間固定使用配置的 duration。
        duration 為 0 時使用 SET（永不過期），否則使用 SETEX。
        """
        client = self._require_ready("set")
        full_key = self._key(key)

        try:
            payload = encode_value(value, self._config.serializer)
        except SerializationError as e:
            logger.error(f"[Redis:{self.name}] 序列化失敗: {full_key}, {e}")
            return False

        duration = self._config.duration
        try:
            if duration == 0:
                result = client.set(full_key, payload)
            else:
                result = client.setex(full_key, duration, payload)
        except RedisError as e:
            logger.error(f"[Redis:{self.name}] 設置緩存失敗: {full_key}, {e}")
            return False

        if not result:
            return False
        self._sets += 1
        logger.debug(f"[Redis:{self.name}] 緩存已設置: {full_key}, TTL={duration}s")
        return True

    def read(self, key: str, default: Any = None) -> Any:
        return self.get(key, default)

    def write(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        return self.set(key, value, ttl)

    def add(self, key: str, value: Any) -> bool:
        """只在鍵不存在時寫入"""
        client = self._require_ready("add")
        full_key = self._key(key)

        try:
            payload = encode_value(value, self._config.serializer)
        except SerializationError as e:
            logger.error(f"[Redis:{self.name}] 序列化失敗: {full_key}, {e}")
            return False

        try:
            result = client.set(full_key, payload, nx=True, ex=self._config.duration or None)
        except RedisError as e:
            logger.error(f"[Redis:{self.name}] 新增緩存失敗: {full_key}, {e}")
            return False

        if not result:
            return False
        self._sets += 1
        return True

    def has(self, key: str) -> bool:
        """檢查鍵是否存在"""
        client = self._require_ready("has")
        full_key = self._key(key)
        try:
            return client.exists(full_key) > 0
        except RedisError as e:
            logger.error(f"[Redis:{self.name}] 檢查存在失敗: {full_key}, {e}")
            return False

    def delete(self, key: str) -> bool:
        """刪除緩存，鍵不存在或刪除失敗時返回 False"""
        client = self._require_ready("delete")
        full_key = self._key(key)

        try:
            if not client.exists(full_key):
                return False
            removed = client.delete(full_key)
        except RedisError as e:
            logger.error(f"[Redis:{self.name}] 刪除緩存失敗: {full_key}, {e}")
            return False

        if removed != 1:
            return False
        self._deletes += 1
        logger.debug(f"[Redis:{self.name}] 緩存已刪除: {full_key}")
        return True

    # ========== 計數器 ==========

    def increment(self, key: str, offset: int = 1) -> Any:
        """遞增並返回新值，鍵不存在或值不是整數時返回 False"""
        return self._adjust("increment", key, offset)

    def decrement(self, key: str, offset: int = 1) -> Any:
        """遞減並返回新值，鍵不存在或值不是整數時返回 False"""
        return self._adjust("decrement", key, offset)

    def _adjust(self, operation: str, key: str, offset: int) -> Any:
        client = self._require_ready(operation)
        full_key = self._key(key)

        try:
            if not client.exists(full_key):
                return False
            if operation == "increment":
                return client.incrby(full_key, offset)
            return client.decrby(full_key, offset)
        except RedisError as e:
            logger.error(f"[Redis:{self.name}] {operation} 失敗: {full_key}, {e}")
            return False

    # ========== 清理 ==========

    def clear(self) -> bool:
        """清理本前綴下的所有緩存，盡力而為，總是返回 True"""
        self._require_ready("clear")
        return self._delete_matching(group_pattern(self._config.prefix))

    def clear_group(self, group: str) -> bool:
        """
        清理分組

        Redis 沒有原生分組，這裡依命名慣例把 prefix + group 開頭的鍵全部刪除。
        """
        self._require_ready("clear_group")
        return self._delete_matching(group_pattern(self._config.prefix, group))

    def _delete_matching(self, pattern: str) -> bool:
        client = self._client

        try:
            keys = client.keys(pattern)
        except RedisError as e:
            logger.error(f"[Redis:{self.name}] 列舉緩存失敗: {pattern}, {e}")
            return True

        count = 0
        for key in keys:
            try:
                count += client.delete(key)
            except RedisError as e:
                logger.warning(f"[Redis:{self.name}] 刪除 {key!r} 失敗: {e}")

        self._deletes += count
        logger.info(f"[Redis:{self.name}] 已清理匹配緩存: {pattern}, {count} 個")
        return True

    # ========== 批量操作 ==========

    def get_multiple(self, keys: Iterable[str], default: Any = None) -> Dict[str, Any]:
        """批量獲取"""
        return {key: self.get(key, default) for key in keys}

    def set_multiple(self, mapping: Mapping[str, Any], ttl: Optional[int] = None) -> bool:
        """批量設置，全部成功才返回 True"""
        results = [self.set(key, value, ttl) for key, value in mapping.items()]
        return all(results)

    def delete_multiple(self, keys: Iterable[str]) -> bool:
        """批量刪除，全部成功才返回 True"""
        results = [self.delete(key) for key in keys]
        return all(results)

    # ========== 其他 ==========

    def groups(self) -> List[str]:
        if self._config is None:
            return []
        return list(self._config.groups)

    def get_stats(self) -> Dict[str, Any]:
        """獲取統計信息"""
        total_requests = self._hits + self._misses
        hit_rate = (self._hits / total_requests * 100) if total_requests > 0 else 0

        return {
            "backend": "redis",
            "name": self.name,
            "enabled": self.is_ready,
            "prefix": self._config.prefix if self._config else None,
            "duration": self._config.duration if self._config else None,
            "hits": self._hits,
            "misses": self._misses,
            "sets": self._sets,
            "deletes": self._deletes,
            "hit_rate": round(hit_rate, 2),
            "total_requests": total_requests,
        }

    def health_check(self) -> bool:
        """健康檢查（不計入統計）"""
        if self._client is None:
            return False
        try:
            return bool(self._client.ping())
        except RedisError as e:
            logger.error(f"[Redis:{self.name}] 健康檢查失敗: {e}")
            return False
