"""功能模块聚合与公共导出。"""

from . import accounts, skins

__all__ = [
    "accounts",
    "skins",
]
