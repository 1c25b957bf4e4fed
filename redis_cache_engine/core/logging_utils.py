from typing import Any
from urllib.parse import urlparse
import logging

# 標準庫 logger，用於 logging_utils.py 內部日誌
module_logger = logging.getLogger(__name__)

SENSITIVE_KEYS = [
    "password", "token", "secret", "api_key", "credentials",
    "username", "ssl_password"
]

URL_KEYS = ["connections", "url", "redis_url"]


def mask_url_password(value: str) -> str:
    """Masks the password part of a connection URI, e.g. redis://user:pw@host:6379."""
    if not isinstance(value, str):
        return value
    try:
        parsed_url = urlparse(value)
        if parsed_url.password:
            netloc = f"{parsed_url.username or ''}:[MASKED]@{parsed_url.hostname}"
            if parsed_url.port:
                netloc = f"{netloc}:{parsed_url.port}"
            return parsed_url._replace(netloc=netloc).geturl()
        return value
    except ValueError:  # 無法解析的 URI 整個遮蔽
        module_logger.debug("無法解析連接 URI，已整體遮蔽")
        return "[MASKED]"


def mask_sensitive_data(data: Any) -> Any:
    """Recursively masks sensitive data in dictionaries and lists."""
    if isinstance(data, dict):
        masked_dict = {}
        for key, value in data.items():
            if key in SENSITIVE_KEYS:
                masked_dict[key] = "[MASKED]"
            elif key in URL_KEYS and isinstance(value, str):
                masked_dict[key] = mask_url_password(value)
            else:
                masked_dict[key] = mask_sensitive_data(value)
        return masked_dict
    elif isinstance(data, (list, tuple)):
        return [mask_sensitive_data(item) for item in data]
    elif isinstance(data, str) and "://" in data:
        return mask_url_password(data)
    else:
        return data


class AppLogger:
    def __init__(self, name: str, level: int = logging.INFO):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(level)

        if not self.logger.handlers:  # 避免重複添加 handlers
            ch = logging.StreamHandler()
            ch.setLevel(level)
            formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
            ch.setFormatter(formatter)
            self.logger.addHandler(ch)

    def get_logger(self) -> logging.Logger:
        return self.logger
