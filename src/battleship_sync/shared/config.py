"""
配置读取

支持通过环境变量覆盖主机、端口与服务器行为；非法取值回退为默认值并记录警告。
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from battleship_sync.shared.constants import (
    DEFAULT_EXCHANGE_SCOPE,
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_USER,
    EXCHANGE_SCOPES,
)

logger = logging.getLogger(__name__)

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def get_str(env: Mapping[str, str], key: str, default: str) -> str:
    v = (env.get(key) or "").strip()
    return v if v else default


def get_int(env: Mapping[str, str], key: str, default: int) -> int:
    v = env.get(key)
    if v is None or not v.strip():
        return default
    try:
        return int(v)
    except ValueError:
        logger.warning(f"{key}={v!r} 不是整数，使用默认值 {default}")
        return default


def get_float(env: Mapping[str, str], key: str, default: Optional[float]) -> Optional[float]:
    v = env.get(key)
    if v is None or not v.strip():
        return default
    try:
        value = float(v)
    except ValueError:
        logger.warning(f"{key}={v!r} 不是数字，使用默认值 {default}")
        return default
    if value <= 0:
        logger.warning(f"{key}={v!r} 必须为正数，使用默认值 {default}")
        return default
    return value


def get_bool(env: Mapping[str, str], key: str, default: bool) -> bool:
    v = (env.get(key) or "").strip().lower()
    if not v:
        return default
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    logger.warning(f"{key}={v!r} 不是布尔值，使用默认值 {default}")
    return default


@dataclass
class ServerSettings:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    # 最后一个客户端断开后自动停止服务器
    auto_shutdown: bool = False
    # RECVGAME 最长等待秒数，None 表示一直等待
    recv_timeout: Optional[float] = None
    exchange_scope: str = DEFAULT_EXCHANGE_SCOPE
    log_file: str = "server.log"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "ServerSettings":
        env = os.environ if env is None else env
        scope = get_str(env, "EXCHANGE_SCOPE", DEFAULT_EXCHANGE_SCOPE).lower()
        if scope not in EXCHANGE_SCOPES:
            logger.warning(f"EXCHANGE_SCOPE={scope!r} 无效，使用默认值 {DEFAULT_EXCHANGE_SCOPE}")
            scope = DEFAULT_EXCHANGE_SCOPE
        return cls(
            host=get_str(env, "HOST", DEFAULT_HOST),
            port=get_int(env, "PORT", DEFAULT_PORT),
            auto_shutdown=get_bool(env, "AUTO_SHUTDOWN", False),
            recv_timeout=get_float(env, "RECV_TIMEOUT", None),
            exchange_scope=scope,
            log_file=get_str(env, "LOG_FILE", "server.log"),
        )


@dataclass
class ClientSettings:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    player_name: str = DEFAULT_USER
    # 等待单条应答的最长秒数，None 表示一直等待
    response_timeout: Optional[float] = None

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "ClientSettings":
        env = os.environ if env is None else env
        return cls(
            host=get_str(env, "HOST", DEFAULT_HOST),
            port=get_int(env, "PORT", DEFAULT_PORT),
            player_name=get_str(env, "PLAYER_NAME", DEFAULT_USER),
            response_timeout=get_float(env, "RESPONSE_TIMEOUT", None),
        )


__all__ = ["ClientSettings", "ServerSettings", "get_bool", "get_float", "get_int", "get_str"]
