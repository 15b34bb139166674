"""
连接登记

进程级的两个计数器：递增的客户端编号与当前活跃会话数。
"""

from __future__ import annotations

import logging
import threading

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    """客户端编号与活跃会话计数，所有操作都在同一把锁内完成"""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._last_id = 0
        self._active = 0

    def next_id(self) -> int:
        """分配下一个客户端编号（从 1 开始严格递增）"""
        with self._lock:
            self._last_id += 1
            return self._last_id

    def client_connected(self) -> int:
        """活跃数 +1，返回加一之后的值"""
        with self._lock:
            self._active += 1
            return self._active

    def client_disconnected(self) -> int:
        """活跃数 -1，返回减一之后的值；计数不会小于 0"""
        with self._lock:
            if self._active == 0:
                logger.warning("活跃会话数已为 0，忽略多余的断开通知")
                return 0
            self._active -= 1
            return self._active

    @property
    def active_count(self) -> int:
        with self._lock:
            return self._active

    def reset(self) -> None:
        with self._lock:
            self._last_id = 0
            self._active = 0


__all__ = ["ConnectionRegistry"]
