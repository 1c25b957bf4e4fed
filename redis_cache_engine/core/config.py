from typing import Any, Dict, List, Literal, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import CacheConfigError


class Settings(BaseSettings):
    # 引擎默認值，可由環境變數 CACHE_ENGINE_* 或 .env 覆蓋
    DURATION: int = 3600  # 緩存存活時間（秒），0 表示永不過期
    PREFIX: str = "cake_"
    PROBABILITY: int = 100  # 前端 gc 觸發機率，Redis 引擎本身不使用
    CONNECTIONS: str = "tcp://127.0.0.1:6379"
    SERIALIZER: Literal["pickle", "json"] = "pickle"

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="CACHE_ENGINE_",
        env_file=".env",
        env_file_encoding='utf-8',
        extra='ignore'
    )


settings = Settings()


ConnectionSpec = Union[str, Dict[str, Any]]


class EngineConfig(BaseModel):
    """
    引擎配置（初始化後不可變）

    - `duration` 緩存存活秒數，0 表示使用 SET（不過期），否則使用 SETEX
    - `prefix` 所有鍵的前綴，用於和其他配置或應用共享同一個 keyspace
    - `probability` 前端觸發 gc 的機率，僅保留給前端讀取
    - `connections` 一個或多個連接描述，URI 如 'tcp://127.0.0.1:6379'，
       或具名映射如 {'scheme': 'tcp', 'host': '127.0.0.1', 'port': 6379}
    - `options` 直接傳給 redis.Redis 的關鍵字參數
    - `groups` 邏輯分組名稱
    - `serializer` 非整數值的序列化方式
    """

    model_config = ConfigDict(frozen=True)

    duration: int = Field(default=3600, ge=0)
    prefix: str = "cake_"
    probability: int = Field(default=100, ge=0)
    connections: Union[ConnectionSpec, List[ConnectionSpec]] = "tcp://127.0.0.1:6379"
    options: Optional[Dict[str, Any]] = None
    groups: Tuple[str, ...] = ()
    serializer: Literal["pickle", "json"] = "pickle"

    @field_validator("groups", mode="before")
    @classmethod
    def _coerce_groups(cls, value: Any) -> Any:
        if value is None:
            return ()
        if isinstance(value, str):
            return (value,)
        return value

    @field_validator("connections")
    @classmethod
    def _check_connections(cls, value: Any) -> Any:
        if isinstance(value, list) and not value:
            raise ValueError("至少需要一個連接")
        return value


def default_config(source: Optional[Settings] = None) -> Dict[str, Any]:
    """返回套用環境變數覆蓋後的默認配置"""
    source = source or settings
    return {
        "duration": source.DURATION,
        "groups": [],
        "prefix": source.PREFIX,
        "probability": source.PROBABILITY,
        "connections": source.CONNECTIONS,
        "options": None,
        "serializer": source.SERIALIZER,
    }


def merge_config(
    config: Optional[Mapping[str, Any]] = None,
    source: Optional[Settings] = None
) -> EngineConfig:
    """
    將運行時配置合併到默認配置上

    未知的鍵會被忽略，與前端傳入整份配置（包括 className 等）的習慣一致。

    Args:
        config: 運行時配置
        source: 提供默認值的 Settings，None 表示使用全局 settings

    Returns:
        不可變的 EngineConfig

    Raises:
        CacheConfigError: 配置值不合法
    """
    merged = default_config(source)
    if config:
        merged.update({k: v for k, v in config.items() if k in merged})

    try:
        return EngineConfig(**merged)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or "config"
        raise CacheConfigError(field, first.get("msg", str(e))) from e
