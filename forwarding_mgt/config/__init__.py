"""
配置模块

提供应用程序配置和版本信息。
配置按以下顺序叠加：内置默认配置 -> 用户配置文件 -> 环境变量。
"""

import copy
import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

# 应用版本
__version__ = "1.0.0"

DEFAULT_CONFIG_PATH = Path(__file__).parent / "default_config.json"

ENV_PREFIX = "FORWARDING_MGT_"

# 环境变量名 -> (配置键, 类型转换)
ENV_OVERRIDES = {
    "BASE_URL": ("api.base_url", str),
    "API_KEY": ("api.api_key", str),
    "USERNAME": ("api.username", str),
    "PASSWORD": ("api.password", str),
    "TIMEOUT": ("api.timeout", float),
    "PAGE_SIZE": ("ui.page_size", int),
    "LOG_LEVEL": ("logging.console_level", str),
}


def get_version():
    """
    获取应用程序版本

    Returns:
        str: 应用程序版本
    """
    try:
        with open(DEFAULT_CONFIG_PATH, "r", encoding="utf-8") as f:
            config = json.load(f)
        if "app" in config and "version" in config["app"]:
            return config["app"]["version"]
    except (OSError, ValueError):
        pass

    return __version__


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """递归合并字典，override 中的值优先"""
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


class AppConfig:
    """应用配置"""

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = data or {}

    @classmethod
    def load(cls, user_config_path: Optional[str] = None, environ: Optional[Dict[str, str]] = None) -> "AppConfig":
        """
        加载配置

        Args:
            user_config_path: 用户配置文件路径，文件不存在时忽略
            environ: 环境变量字典，默认使用 os.environ

        Returns:
            AppConfig: 配置对象

        Raises:
            ValueError: 配置文件格式错误或环境变量无法转换
        """
        with open(DEFAULT_CONFIG_PATH, "r", encoding="utf-8") as f:
            data = json.load(f)

        if user_config_path and os.path.exists(user_config_path):
            with open(user_config_path, "r", encoding="utf-8") as f:
                user_data = json.load(f)
            if not isinstance(user_data, dict):
                raise ValueError(f"配置文件不是JSON对象: {user_config_path}")
            _merge(data, user_data)

        config = cls(data)
        config._apply_env(os.environ if environ is None else environ)
        return config

    def _apply_env(self, environ: Dict[str, str]):
        """应用环境变量覆盖"""
        for name, (key, convert) in ENV_OVERRIDES.items():
            raw = environ.get(ENV_PREFIX + name)
            if raw is None or raw == "":
                continue
            try:
                self.set(key, convert(raw))
            except ValueError as e:
                raise ValueError(f"环境变量 {ENV_PREFIX + name} 取值无效: {raw}") from e

    def get(self, key: str, default: Any = None) -> Any:
        """
        按点分隔的键获取配置值

        Args:
            key: 配置键，如 "api.base_url"
            default: 默认值
        """
        node = self._data
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def set(self, key: str, value: Any):
        """按点分隔的键设置配置值"""
        parts = key.split(".")
        node = self._data
        for part in parts[:-1]:
            node = node.setdefault(part, {})
        node[parts[-1]] = value

    def as_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self._data)

    @property
    def base_url(self) -> str:
        return str(self.get("api.base_url", "")).rstrip("/")

    @property
    def api_key(self) -> Optional[str]:
        return self.get("api.api_key") or None

    @property
    def username(self) -> Optional[str]:
        return self.get("api.username") or None

    @property
    def password(self) -> Optional[str]:
        return self.get("api.password") or None

    @property
    def timeout(self) -> float:
        return float(self.get("api.timeout", 10.0))

    @property
    def page_size(self) -> int:
        size = int(self.get("ui.page_size", 20))
        return size if size > 0 else 20

    @property
    def console_level(self) -> str:
        return self.get("logging.console_level", "INFO")

    @property
    def file_level(self) -> str:
        return self.get("logging.file_level", "DEBUG")

    @property
    def retention(self) -> str:
        return self.get("logging.retention", "7 days")

    @property
    def rotation(self) -> str:
        return self.get("logging.rotation", "50 MB")
