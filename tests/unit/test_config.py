"""
測試配置合併與環境變數覆蓋
"""

import pytest
from pydantic import ValidationError

from redis_cache_engine.core.config import EngineConfig, Settings, default_config, merge_config
from redis_cache_engine.core.exceptions import CacheConfigError

# 标记为单元测试
pytestmark = pytest.mark.unit


@pytest.fixture
def clean_settings(monkeypatch):
    """不受外部環境變數與 .env 影響的 Settings"""
    for name in ("DURATION", "PREFIX", "PROBABILITY", "CONNECTIONS", "SERIALIZER", "LOG_LEVEL"):
        monkeypatch.delenv(f"CACHE_ENGINE_{name}", raising=False)
    return Settings(_env_file=None)


def test_defaults(clean_settings):
    """測試默認配置"""
    config = merge_config(None, source=clean_settings)

    assert config.duration == 3600
    assert config.prefix == "cake_"
    assert config.probability == 100
    assert config.connections == "tcp://127.0.0.1:6379"
    assert config.options is None
    assert config.groups == ()
    assert config.serializer == "pickle"


def test_environment_overrides_defaults(monkeypatch, clean_settings):
    """測試環境變數覆蓋默認值"""
    monkeypatch.setenv("CACHE_ENGINE_PREFIX", "env_")
    monkeypatch.setenv("CACHE_ENGINE_DURATION", "0")
    source = Settings(_env_file=None)

    defaults = default_config(source)

    assert defaults["prefix"] == "env_"
    assert defaults["duration"] == 0


def test_runtime_config_overrides_defaults(clean_settings):
    """測試運行時配置覆蓋默認值，未知鍵被忽略"""
    config = merge_config(
        {
            "prefix": "app_",
            "duration": 60,
            "groups": ["posts"],
            "options": {"socket_timeout": 1},
            "className": "Redis",
        },
        source=clean_settings,
    )

    assert config.prefix == "app_"
    assert config.duration == 60
    assert config.groups == ("posts",)
    assert config.options == {"socket_timeout": 1}
    assert config.connections == "tcp://127.0.0.1:6379"


def test_single_group_string_is_coerced(clean_settings):
    """測試單一分組字串轉為 tuple"""
    assert merge_config({"groups": "posts"}, source=clean_settings).groups == ("posts",)


def test_config_is_frozen(clean_settings):
    """測試配置初始化後不可變"""
    config = merge_config(None, source=clean_settings)

    with pytest.raises(ValidationError):
        config.prefix = "changed_"


@pytest.mark.parametrize("override, field", [
    ({"duration": -1}, "duration"),
    ({"serializer": "yaml"}, "serializer"),
    ({"connections": []}, "connections"),
])
def test_invalid_config(clean_settings, override, field):
    """測試不合法的配置拋出 CacheConfigError"""
    with pytest.raises(CacheConfigError) as exc_info:
        merge_config(override, source=clean_settings)

    assert exc_info.value.details["field"] == field


def test_connections_accepts_mapping_and_list():
    """測試連接描述可以是映射或列表"""
    config = EngineConfig(connections=[{"host": "10.0.0.1", "port": 6380}, "tcp://10.0.0.2:6379"])

    assert config.connections[0] == {"host": "10.0.0.1", "port": 6380}
    assert config.connections[1] == "tcp://10.0.0.2:6379"
