"""
全局測試配置

定義全局的 pytest 配置和通用 fixtures。
"""

import fnmatch
import time
from typing import Dict, Optional

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError, ResponseError

from redis_cache_engine.services.cache.adapters.redis_adapter import RedisCacheEngine


def pytest_configure(config):
    """
    Pytest 配置鉤子 - 註冊自定義標記
    """
    config.addinivalue_line(
        "markers",
        "unit: 單元測試，使用 mock，不依賴外部資源"
    )
    config.addinivalue_line(
        "markers",
        "integration: 整合測試，需要真實的 Redis 服務"
    )


class InMemoryRedis:
    """
    模擬 redis.Redis 的最小子集

    只實現引擎會用到的命令，行為（返回值、bytes 鍵、INCRBY 的錯誤）盡量和 Redis 一致。
    down=True 時所有命令拋出 ConnectionError。
    """

    def __init__(self):
        self.store: Dict[str, bytes] = {}
        self.expires: Dict[str, Optional[float]] = {}
        self.down = False
        self.closed = False

    @staticmethod
    def _name(key) -> str:
        return key.decode("utf-8") if isinstance(key, bytes) else key

    @staticmethod
    def _bytes(value) -> bytes:
        if isinstance(value, bytes):
            return value
        return str(value).encode("utf-8")

    def _check(self):
        if self.down:
            raise RedisConnectionError("Error 111 connecting to 127.0.0.1:6379. Connection refused.")

    def _alive(self, name: str) -> bool:
        expires_at = self.expires.get(name)
        if expires_at is not None and expires_at <= time.time():
            self.store.pop(name, None)
            self.expires.pop(name, None)
        return name in self.store

    def ping(self):
        self._check()
        return True

    def close(self):
        self.closed = True

    def get(self, key):
        self._check()
        name = self._name(key)
        return self.store[name] if self._alive(name) else None

    def set(self, key, value, ex=None, nx=False):
        self._check()
        name = self._name(key)
        if nx and self._alive(name):
            return None
        self.store[name] = self._bytes(value)
        self.expires[name] = time.time() + ex if ex else None
        return True

    def setex(self, key, seconds, value):
        return self.set(key, value, ex=seconds)

    def exists(self, *keys):
        self._check()
        return sum(1 for key in keys if self._alive(self._name(key)))

    def delete(self, *keys):
        self._check()
        removed = 0
        for key in keys:
            name = self._name(key)
            if self._alive(name):
                del self.store[name]
                self.expires.pop(name, None)
                removed += 1
        return removed

    def incrby(self, key, amount=1):
        self._check()
        name = self._name(key)
        current = self.store.get(name, b"0") if self._alive(name) else b"0"
        try:
            value = int(current) + amount
        except ValueError:
            raise ResponseError("value is not an integer or out of range")
        self.store[name] = str(value).encode("ascii")
        self.expires.setdefault(name, None)
        return value

    def decrby(self, key, amount=1):
        return self.incrby(key, -amount)

    def keys(self, pattern="*"):
        self._check()
        return [
            name.encode("utf-8")
            for name in list(self.store)
            if self._alive(name) and fnmatch.fnmatchcase(name, pattern)
        ]

    def ttl(self, key):
        self._check()
        name = self._name(key)
        if not self._alive(name):
            return -2
        expires_at = self.expires.get(name)
        if expires_at is None:
            return -1
        return int(round(expires_at - time.time()))


@pytest.fixture
def fake_redis():
    """記憶體中的 Redis 替身"""
    return InMemoryRedis()


@pytest.fixture
def engine(fake_redis):
    """
    已初始化的引擎（默認配置，使用記憶體 Redis 替身）
    """
    cache_engine = RedisCacheEngine(client=fake_redis, name="test")
    assert cache_engine.init({"prefix": "cake_", "duration": 3600, "serializer": "pickle"})
    yield cache_engine
    cache_engine.close()
