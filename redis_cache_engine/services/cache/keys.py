"""
緩存鍵工具

以純函數提供鍵的命名空間與合法性檢查，任何適配器都可以直接組合使用
"""

from typing import Any, Optional

from redis_cache_engine.core.exceptions import InvalidKeyError

# 前端鍵語法保留的字元
RESERVED_KEY_CHARACTERS = "{}()/\\@:"

# glob 元字元 → 只匹配自身的字元集合
GLOB_ESCAPES = {
    "*": "[*]",
    "?": "[?]",
    "[": "[[]",
    "\\": "[\\\\]",
}


def validate_key(key: Any) -> str:
    """
    檢查鍵是否合法

    Args:
        key: 呼叫方傳入的原始鍵

    Returns:
        原始鍵（未加前綴）

    Raises:
        InvalidKeyError: 鍵不是字串、為空或包含保留字元
    """
    if not isinstance(key, str):
        raise InvalidKeyError(key, f"鍵必須是字串，收到 {type(key).__name__}")
    if key == "":
        raise InvalidKeyError(key, "鍵不能為空")

    found = sorted({c for c in key if c in RESERVED_KEY_CHARACTERS})
    if found:
        raise InvalidKeyError(key, f"包含保留字元 {''.join(found)}")
    return key


def namespaced_key(prefix: str, raw_key: str) -> str:
    """構建帶前綴的完整鍵"""
    return f"{prefix}{raw_key}"


def escape_glob(text: str) -> str:
    """
    轉義 glob 元字元，讓前綴與分組名稱只按字面匹配

    使用單字元集合（如 `[*]`）而不是反斜線，Redis KEYS 與 fnmatch 都能識別。
    """
    return "".join(GLOB_ESCAPES.get(c, c) for c in text)


def group_pattern(prefix: str, group: Optional[str] = None) -> str:
    """構建清理用的 glob 模式，group 為 None 時匹配整個前綴"""
    return f"{escape_glob(prefix)}{escape_glob(group or '')}*"
