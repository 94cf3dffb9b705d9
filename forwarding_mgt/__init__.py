"""
转发规则管理客户端

提供转发规则的分页浏览、批量删除和新增功能。
"""

from forwarding_mgt.config import __version__

__all__ = ["__version__"]
