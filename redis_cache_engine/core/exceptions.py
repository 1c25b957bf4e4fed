"""
自定義異常類框架

定義緩存引擎的異常層次結構，提供更精確的錯誤處理和更好的錯誤信息。
Redis 自身的錯誤（RedisError）不在此轉譯，由引擎記錄後以 False 或默認值返回。
"""

from typing import Optional, Dict, Any


class CacheEngineBaseException(Exception):
    """
    所有緩存引擎自定義異常的基類

    Attributes:
        message: 錯誤信息
        error_code: 內部錯誤代碼
        details: 額外的錯誤詳情
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """轉換為字典格式（用於日誌或上層響應）"""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details
        }


# ==================== 鍵相關異常 ====================

class InvalidKeyError(CacheEngineBaseException):
    """緩存鍵不合法（空字串、非字串或包含保留字元）"""
    def __init__(self, key: Any, reason: str, **kwargs):
        super().__init__(
            message=f"緩存鍵不合法: {key!r} ({reason})",
            details={"key": repr(key), "reason": reason},
            **kwargs
        )


# ==================== 引擎狀態異常 ====================

class EngineNotInitializedError(CacheEngineBaseException):
    """引擎尚未初始化，或已經關閉"""
    def __init__(self, operation: str, **kwargs):
        super().__init__(
            message=f"緩存引擎尚未初始化，無法執行: {operation}",
            details={"operation": operation},
            **kwargs
        )


# ==================== 配置與連接異常 ====================

class CacheConfigError(CacheEngineBaseException):
    """緩存配置錯誤"""
    def __init__(self, field: str, reason: str, **kwargs):
        super().__init__(
            message=f"緩存配置錯誤 ({field}): {reason}",
            details={"field": field, "reason": reason},
            **kwargs
        )


class CacheConnectionError(CacheEngineBaseException):
    """無法連接到緩存後端"""
    def __init__(self, config_name: str, **kwargs):
        super().__init__(
            message=f"緩存配置 '{config_name}' 無法連接到 Redis",
            details={"config_name": config_name},
            **kwargs
        )


# ==================== 序列化異常 ====================

class SerializationError(CacheEngineBaseException):
    """值無法編碼或解碼"""
    def __init__(self, operation: str, serializer: str, reason: str, **kwargs):
        super().__init__(
            message=f"{serializer} {operation} 失敗: {reason}",
            details={"operation": operation, "serializer": serializer, "reason": reason},
            **kwargs
        )
