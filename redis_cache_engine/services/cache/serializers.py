"""
緩存值編碼

整數以十進位文字存放，讓 Redis 的 INCRBY/DECRBY 可以直接操作；
其他值依配置使用 pickle 或 JSON 序列化。

讀取時，只要原始內容是（可帶負號的）純 ASCII 數字，就解碼為 int。
經由本引擎寫入的序列化內容永遠不會是純數字，因此只有其他客戶端
直接寫入的數字字串會被讀成 int。
"""

import builtins
import datetime
import io
import json
import pickle
import re
from typing import Any

from redis_cache_engine.core.exceptions import CacheConfigError, SerializationError

SERIALIZERS = ("pickle", "json")

INTEGER_PATTERN = re.compile(rb"-?\d+")


class RestrictedUnpickler(pickle.Unpickler):
    """只允許安全類型的 unpickler，避免反序列化時執行任意代碼"""

    SAFE_BUILTINS = {
        "str",
        "int",
        "float",
        "bool",
        "list",
        "tuple",
        "dict",
        "set",
        "frozenset",
        "bytes",
        "bytearray",
        "complex",
    }

    SAFE_DATETIME = {"datetime", "date", "time", "timedelta", "timezone"}

    def find_class(self, module, name):
        if module == "builtins" and name in self.SAFE_BUILTINS:
            return getattr(builtins, name)
        if module == "datetime" and name in self.SAFE_DATETIME:
            return getattr(datetime, name)
        raise pickle.UnpicklingError(f"Forbidden class {module}.{name}")


def _check_serializer(serializer: str) -> None:
    if serializer not in SERIALIZERS:
        raise CacheConfigError("serializer", f"不支持的序列化方式: {serializer}")


def is_integer_value(value: Any) -> bool:
    """bool 是 int 的子類，但不能以數字文字存放"""
    return isinstance(value, int) and not isinstance(value, bool)


def encode_value(value: Any, serializer: str = "pickle") -> bytes:
    """
    編碼要寫入 Redis 的值

    Args:
        value: 要緩存的值
        serializer: 非整數值的序列化方式

    Returns:
        寫入 Redis 的位元組

    Raises:
        SerializationError: 值無法序列化
    """
    _check_serializer(serializer)

    if is_integer_value(value):
        # 超過 sys.get_int_max_str_digits() 的整數無法轉成文字
        try:
            return str(value).encode("ascii")
        except ValueError as e:
            raise SerializationError("encode", serializer, str(e)) from e

    try:
        if serializer == "pickle":
            return pickle.dumps(value)
        return json.dumps(value).encode("utf-8")
    except (TypeError, ValueError, pickle.PicklingError, AttributeError) as e:
        raise SerializationError("encode", serializer, str(e)) from e


def decode_value(raw: bytes, serializer: str = "pickle") -> Any:
    """
    解碼從 Redis 讀出的值

    Raises:
        SerializationError: 內容無法以配置的方式反序列化
    """
    _check_serializer(serializer)

    if isinstance(raw, str):
        raw = raw.encode("utf-8")

    if INTEGER_PATTERN.fullmatch(raw):
        try:
            return int(raw)
        except ValueError as e:
            raise SerializationError("decode", serializer, str(e)) from e

    try:
        if serializer == "pickle":
            return RestrictedUnpickler(io.BytesIO(raw)).load()
        return json.loads(raw.decode("utf-8"))
    except Exception as e:
        raise SerializationError("decode", serializer, str(e)) from e
