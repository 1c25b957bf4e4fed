"""
Redis 連接建立

把前端的連接描述（URI 或具名映射）轉成 redis.Redis 客戶端
"""

from typing import Any, Dict, Mapping, Optional
from urllib.parse import parse_qsl, urlencode, urlparse
import logging

import redis

from redis_cache_engine.core.config import ConnectionSpec, EngineConfig
from redis_cache_engine.core.exceptions import CacheConfigError
from redis_cache_engine.core.logging_utils import mask_sensitive_data

logger = logging.getLogger(__name__)

# 前端 scheme → redis-py URL scheme
SCHEME_MAP = {
    "tcp": "redis",
    "redis": "redis",
    "tls": "rediss",
    "rediss": "rediss",
    "unix": "unix",
}

# redis-py 必須以 bytes 回傳，序列化內容才能還原
FORCED_OPTIONS = {"decode_responses": False}


def normalize_url(uri: str) -> str:
    """
    將 tcp://、tls:// 等 URI 轉為 redis-py 可接受的形式

    查詢參數中的 `database` 會改名為 redis-py 使用的 `db`。
    """
    parsed = urlparse(uri)
    scheme = SCHEME_MAP.get(parsed.scheme.lower())
    if scheme is None:
        raise CacheConfigError("connections", f"不支持的連接 scheme: {parsed.scheme or '(空)'}")

    query = [
        ("db" if name == "database" else name, value)
        for name, value in parse_qsl(parsed.query)
    ]

    # urlunparse 會把 unix:///path 折成 unix:/path，這裡手動組裝
    normalized = f"{scheme}://{parsed.netloc}{parsed.path}"
    if query:
        normalized = f"{normalized}?{urlencode(query)}"
    return normalized


def connection_kwargs(connection: Mapping[str, Any]) -> Dict[str, Any]:
    """具名映射 → redis.Redis 關鍵字參數"""
    scheme = str(connection.get("scheme", "tcp")).lower()
    if scheme not in SCHEME_MAP:
        raise CacheConfigError("connections", f"不支持的連接 scheme: {scheme}")

    kwargs: Dict[str, Any] = {
        "db": int(connection.get("database", connection.get("db", 0))),
    }
    if connection.get("password") is not None:
        kwargs["password"] = connection["password"]
    if connection.get("username") is not None:
        kwargs["username"] = connection["username"]

    if scheme == "unix":
        if not connection.get("path"):
            raise CacheConfigError("connections", "unix 連接需要 path")
        kwargs["unix_socket_path"] = connection["path"]
        return kwargs

    kwargs["host"] = connection.get("host", "127.0.0.1")
    kwargs["port"] = int(connection.get("port", 6379))
    if SCHEME_MAP[scheme] == "rediss":
        kwargs["ssl"] = True
    return kwargs


def _client_options(options: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    merged = dict(options or {})
    for name, forced in FORCED_OPTIONS.items():
        if name in merged and merged[name] != forced:
            logger.warning(f"忽略選項 {name}={merged[name]!r}，引擎固定使用 {forced!r}")
        merged[name] = forced
    return merged


def _select_connection(connections: Any) -> ConnectionSpec:
    if isinstance(connections, (list, tuple)):
        if len(connections) > 1:
            logger.warning(
                f"配置了 {len(connections)} 個連接，只使用第一個: "
                f"{mask_sensitive_data(connections[0])}"
            )
        return connections[0]
    return connections


def build_client(config: EngineConfig) -> redis.Redis:
    """
    依配置建立（尚未連線的）Redis 客戶端

    redis-py 延遲到第一個命令才真正連線，呼叫方需以 ping() 確認。
    """
    connection = _select_connection(config.connections)
    options = _client_options(config.options)

    try:
        if isinstance(connection, str):
            return redis.Redis.from_url(normalize_url(connection), **options)
        if isinstance(connection, Mapping):
            return redis.Redis(**{**connection_kwargs(connection), **options})
    except ValueError as e:
        raise CacheConfigError("connections", f"連接描述不合法: {mask_sensitive_data(connection)}, {e}") from e
    raise CacheConfigError("connections", f"不支持的連接描述類型: {type(connection).__name__}")
