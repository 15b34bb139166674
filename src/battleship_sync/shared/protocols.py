"""
协议定义

一行一条消息，顶层字段用 "#" 分隔：

    <clientId>#<code>
    <clientId>#<code>#<arg1>[#<arg2>...]

SENDGAME 的载荷内部再用 "," 分隔维度与棋盘字符串。
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Sequence, Tuple

from battleship_sync.shared.constants import (
    FIELD_SEPARATOR,
    PROTOCOL_DATA,
    PROTOCOL_END,
    PROTOCOL_RECVGAME,
    PROTOCOL_SENDGAME,
    PROTOCOL_SEPARATOR,
)


class ProtocolError(ValueError):
    """协议层错误的基类"""


class MalformedMessage(ProtocolError):
    """字段不足或客户端编号非法"""


class UnknownCommand(ProtocolError):
    """无法识别的协议码"""

    def __init__(self, code: str):
        super().__init__(f"unknown protocol code: {code!r}")
        self.code = code


class PayloadError(ProtocolError):
    """命令载荷无法解析（维度/分数非数字、缺字段等）"""


class ProtocolCode(str, enum.Enum):
    END = PROTOCOL_END
    SENDGAME = PROTOCOL_SENDGAME
    RECVGAME = PROTOCOL_RECVGAME
    DATA = PROTOCOL_DATA


_FORBIDDEN = (PROTOCOL_SEPARATOR, "\n", "\r")


def _check_field(value: str) -> str:
    for ch in _FORBIDDEN:
        if ch in value:
            raise PayloadError(f"field may not contain {ch!r}: {value!r}")
    return value


@dataclass(frozen=True)
class Message:
    """一条协议消息"""

    client_id: int
    code: ProtocolCode
    fields: Tuple[str, ...] = ()

    def to_line(self) -> str:
        """编码为一行文本（不含换行符）"""
        parts = [str(self.client_id), self.code.value]
        parts.extend(_check_field(str(f)) for f in self.fields)
        return PROTOCOL_SEPARATOR.join(parts)

    @classmethod
    def from_line(cls, line: str) -> "Message":
        """解析一行文本。

        Raises:
            MalformedMessage: 顶层字段少于 2 个，或客户端编号不是整数
            UnknownCommand: 协议码不在 P0..P3 之中
        """
        parts = line.rstrip("\r\n").split(PROTOCOL_SEPARATOR)
        if len(parts) < 2:
            raise MalformedMessage(f"expected at least 2 fields: {line!r}")
        try:
            client_id = int(parts[0])
        except ValueError:
            raise MalformedMessage(f"client id is not an integer: {parts[0]!r}") from None
        try:
            code = ProtocolCode(parts[1])
        except ValueError:
            raise UnknownCommand(parts[1]) from None
        return cls(client_id, code, tuple(parts[2:]))

    # 常用消息
    @classmethod
    def end(cls, client_id: int) -> "Message":
        return cls(client_id, ProtocolCode.END)

    @classmethod
    def send_game(cls, client_id: int, dimension: int, board: str) -> "Message":
        if FIELD_SEPARATOR in board:
            raise PayloadError(f"board may not contain {FIELD_SEPARATOR!r}")
        return cls(client_id, ProtocolCode.SENDGAME, (f"{int(dimension)}{FIELD_SEPARATOR}{board}",))

    @classmethod
    def recv_game(cls, client_id: int) -> "Message":
        return cls(client_id, ProtocolCode.RECVGAME)

    @classmethod
    def game_results(cls, client_id: int, player_name: str, score: int) -> "Message":
        return cls(client_id, ProtocolCode.DATA, (player_name, str(int(score))))


def encode(message: Message) -> str:
    return message.to_line()


def decode(line: str) -> Message:
    return Message.from_line(line)


def parse_game_payload(fields: Sequence[str]) -> Tuple[int, str]:
    """解析 SENDGAME 载荷 "<dimension>,<board>"，返回 (dimension, board)"""
    if not fields:
        raise PayloadError("SENDGAME without payload")
    dimension, sep, board = fields[0].partition(FIELD_SEPARATOR)
    if not sep:
        raise PayloadError(f"SENDGAME payload lacks {FIELD_SEPARATOR!r}: {fields[0]!r}")
    try:
        return int(dimension), board
    except ValueError:
        raise PayloadError(f"dimension is not an integer: {dimension!r}") from None


def parse_game_results(fields: Sequence[str]) -> Tuple[str, int]:
    """解析 DATA 载荷，返回 (player_name, score)。

    兼容两种写法：``name#score``（两个顶层字段）与 ``name,score``。
    """
    if len(fields) >= 2:
        name, score = fields[0], fields[1]
    elif len(fields) == 1 and FIELD_SEPARATOR in fields[0]:
        name, _, score = fields[0].rpartition(FIELD_SEPARATOR)
    else:
        raise PayloadError(f"DATA expects a player name and a score: {fields!r}")
    try:
        return name, int(score)
    except ValueError:
        raise PayloadError(f"score is not an integer: {score!r}") from None


__all__ = [
    "MalformedMessage",
    "Message",
    "PayloadError",
    "ProtocolCode",
    "ProtocolError",
    "UnknownCommand",
    "decode",
    "encode",
    "parse_game_payload",
    "parse_game_results",
]
