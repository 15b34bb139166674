"""
客户端网络封装：连接服务器、读取分配的编号，并提供同步的请求/应答调用。
"""
from __future__ import annotations

import logging
import socket
from typing import Optional

from battleship_sync.shared.config import ClientSettings
from battleship_sync.shared.constants import (
    BUFFER_SIZE,
    CONNECT_TIMEOUT,
    DEFAULT_DIMENSION,
    DEFAULT_HOST,
    DEFAULT_PORT,
    DISCONNECT_TIMEOUT,
    ENCODING,
    REPLY_ACK_GAME_RESULTS,
)
from battleship_sync.shared.protocols import Message

logger = logging.getLogger(__name__)


class ClientError(ConnectionError):
    """客户端通信错误的基类"""


class NotConnectedError(ClientError):
    pass


class ConnectionClosedError(ClientError):
    """服务器关闭了连接"""


class ResponseTimeout(ClientError):
    """在限定时间内没有收到应答"""


class NetworkClient:
    """同步客户端：每次 send() 写一行并读取一行应答。"""

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        response_timeout: Optional[float] = None,
    ) -> None:
        self.host = host
        self.port = port
        self.response_timeout = response_timeout
        self.sock: Optional[socket.socket] = None
        self.client_id: Optional[int] = None
        self.dimension = DEFAULT_DIMENSION
        self._buf = bytearray()

    @classmethod
    def from_settings(cls, settings: ClientSettings) -> "NetworkClient":
        return cls(settings.host, settings.port, response_timeout=settings.response_timeout)

    @property
    def connected(self) -> bool:
        return self.sock is not None

    def __enter__(self) -> "NetworkClient":
        self.connect()
        return self

    def __exit__(self, *exc_info) -> None:
        self.disconnect()

    def connect(self) -> int:
        """连接服务器并读取分配的客户端编号。"""
        if self.connected:
            return self.client_id  # type: ignore[return-value]
        logger.info(f"正在连接服务器 {self.host}:{self.port}...")
        # 设置连接超时
        self.sock = socket.create_connection((self.host, self.port), timeout=CONNECT_TIMEOUT)
        # 连接成功后改为应答超时（None 表示一直阻塞）
        self.sock.settimeout(self.response_timeout)
        self._buf.clear()
        try:
            line = self._read_line()
            self.client_id = int(line)
        except (OSError, ValueError):
            self.close()
            raise
        logger.info(f"已连接服务器，分配的客户端编号: {self.client_id}")
        return self.client_id

    def send(self, message: Message) -> str:
        """发送一条消息并返回服务器的一行应答。"""
        if not self.sock:
            raise NotConnectedError("not connected to a server")
        line = message.to_line()
        logger.info(f"发送消息: {line}")
        try:
            self.sock.sendall((line + "\n").encode(ENCODING))
            response = self._read_line()
        except socket.timeout:
            # 迟到的应答会被下一次请求读到，超时后连接不能再复用
            timeout = self.sock.gettimeout() if self.sock else None
            self.close()
            raise ResponseTimeout(f"no response to {line!r} within {timeout}s") from None
        logger.info(f"收到应答: {response}")
        return response

    def disconnect(self) -> None:
        """通知服务器结束会话（尽力而为），然后关闭本地连接。"""
        if not self.sock:
            return
        logger.info("正在断开与服务器的连接...")
        try:
            # ACK_END 是可选应答，只等待很短的时间
            self.sock.settimeout(DISCONNECT_TIMEOUT)
            self.send(Message.end(self._id()))
        except OSError as e:
            logger.warning(f"发送 END 失败: {e}")
        finally:
            self.close()
        logger.info("已断开连接")

    def close(self) -> None:
        try:
            if self.sock:
                try:
                    self.sock.shutdown(socket.SHUT_RDWR)
                except OSError:
                    pass
                self.sock.close()
        finally:
            self.sock = None
            self._buf.clear()

    # 常用请求
    def send_game_configuration(self, board: str, dimension: Optional[int] = None) -> str:
        """发送自己的棋盘，返回服务器应答（成功为 ACK）"""
        if dimension is not None:
            self.dimension = dimension
        return self.send(Message.send_game(self._id(), self.dimension, board))

    def request_game_configuration(self) -> str:
        """请求一个棋盘；服务器没有可用棋盘时会一直阻塞"""
        return self.send(Message.recv_game(self._id()))

    def send_game_results(self, player_name: str, score: int) -> bool:
        response = self.send(Message.game_results(self._id(), player_name, score))
        if response == REPLY_ACK_GAME_RESULTS:
            logger.info("服务器已收到对局结果")
            return True
        logger.warning(f"发送对局结果失败，服务器应答: {response}")
        return False

    # 内部方法
    def _id(self) -> int:
        if self.client_id is None:
            raise NotConnectedError("not connected to a server")
        return self.client_id

    def _read_line(self) -> str:
        assert self.sock is not None
        while True:
            try:
                idx = self._buf.index(ord("\n"))
            except ValueError:
                data = self.sock.recv(BUFFER_SIZE)
                if not data:
                    self.close()
                    raise ConnectionClosedError("server closed the connection")
                self._buf.extend(data)
                continue
            raw = bytes(self._buf[:idx])
            del self._buf[: idx + 1]
            return raw.decode(ENCODING, errors="replace").rstrip("\r")


__all__ = [
    "ClientError",
    "ConnectionClosedError",
    "NetworkClient",
    "NotConnectedError",
    "ResponseTimeout",
]
