"""
集成测试配置

使用真實的 Redis 服務（TEST_REDIS_URL，默認使用第 15 號資料庫），
無法連接時跳過所有集成測試。每個測試使用獨立前綴並在結束時清理。
"""

import os
from uuid import uuid4

import pytest
import redis
from redis.exceptions import RedisError

from redis_cache_engine.services.cache.adapters.redis_adapter import RedisCacheEngine

TEST_REDIS_URL = os.getenv("TEST_REDIS_URL", "redis://localhost:6379/15")


@pytest.fixture(scope="session")
def redis_url():
    """確認 Redis 可用"""
    client = redis.Redis.from_url(TEST_REDIS_URL, socket_connect_timeout=1)
    try:
        client.ping()
    except RedisError as e:
        pytest.skip(f"Redis 不可用 ({TEST_REDIS_URL}): {e}")
    finally:
        client.close()
    return TEST_REDIS_URL


@pytest.fixture
def live_engine_factory(redis_url):
    """
    建立連接真實 Redis 的引擎

    返回的工廠接受額外配置，前綴固定為隨機值避免互相干擾。
    """
    engines = []

    def factory(**config):
        engine = RedisCacheEngine(name="integration")
        merged = {"connections": redis_url, "prefix": f"test_{uuid4().hex[:8]}_", **config}
        assert engine.init(merged)
        engines.append(engine)
        return engine

    yield factory

    for engine in engines:
        if engine.is_ready:
            engine.clear()
            engine.close()


@pytest.fixture
def redis_client(redis_url):
    """直接連接 Redis，用於檢查引擎寫入的結果"""
    client = redis.Redis.from_url(redis_url)
    yield client
    client.close()
