"""
緩存引擎基礎接口

定義前端（CacheManager）所依賴的引擎契約
"""

from typing import Protocol, Optional, Any, Dict, Iterable, List, Mapping
from abc import abstractmethod


class ICacheEngine(Protocol):
    """
    統一緩存引擎接口

    所有引擎都必須實現這個接口，前端只透過它操作緩存。
    除 init 外，所有操作都要求引擎已成功初始化。
    """

    @abstractmethod
    def init(self, config: Optional[Mapping[str, Any]] = None) -> bool:
        """
        合併配置並建立連接

        Args:
            config: 運行時配置，會覆蓋默認值

        Returns:
            是否成功連接
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """釋放連接"""
        ...

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """
        獲取緩存值

        Args:
            key: 緩存鍵
            default: 不存在時返回的值

        Returns:
            緩存的值，不存在則返回 default
        """
        ...

    @abstractmethod
    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """
        設置緩存值

        Args:
            key: 緩存鍵
            value: 要緩存的值
            ttl: 為契約相容而接受，過期時間由引擎配置決定

        Returns:
            是否設置成功
        """
        ...

    @abstractmethod
    def delete(self, key: str) -> bool:
        """刪除緩存，鍵不存在時返回 False"""
        ...

    @abstractmethod
    def clear(self) -> bool:
        """清理本引擎前綴下的所有緩存"""
        ...

    @abstractmethod
    def clear_group(self, group: str) -> bool:
        """清理屬於某分組的緩存"""
        ...

    @abstractmethod
    def increment(self, key: str, offset: int = 1) -> Any:
        """遞增，返回新值；鍵不存在時返回 False"""
        ...

    @abstractmethod
    def decrement(self, key: str, offset: int = 1) -> Any:
        """遞減，返回新值；鍵不存在時返回 False"""
        ...

    @abstractmethod
    def groups(self) -> List[str]:
        """返回配置的分組名稱"""
        ...

    @abstractmethod
    def get_multiple(self, keys: Iterable[str], default: Any = None) -> Dict[str, Any]:
        """批量獲取"""
        ...

    @abstractmethod
    def set_multiple(self, mapping: Mapping[str, Any], ttl: Optional[int] = None) -> bool:
        """批量設置"""
        ...

    @abstractmethod
    def get_stats(self) -> Dict[str, Any]:
        """獲取統計信息"""
        ...

    @abstractmethod
    def health_check(self) -> bool:
        """健康檢查"""
        ...
