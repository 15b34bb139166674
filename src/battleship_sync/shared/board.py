"""
棋盘字符串

游戏逻辑把二维格子按行展开成一个长度为 dimension² 的字符串交给协议层，
每个格子一个字符。服务器只负责转发，不解析其内容。
"""

from __future__ import annotations

import enum
from typing import List, Sequence


class CellState(str, enum.Enum):
    EMPTY = "E"
    BOAT = "B"
    HIT = "H"
    MISS = "M"


def board_to_string(grid: Sequence[Sequence[CellState]]) -> str:
    """按行展开二维格子"""
    size = len(grid)
    chars = []
    for row in grid:
        if len(row) != size:
            raise ValueError(f"grid must be square, got a row of {len(row)} in a {size}x{size} grid")
        chars.extend(CellState(c).value for c in row)
    return "".join(chars)


def board_from_string(text: str, dimension: int) -> List[List[CellState]]:
    """还原二维格子；长度不是 dimension² 或含未知字符时抛出 ValueError"""
    if dimension <= 0:
        raise ValueError(f"dimension must be positive: {dimension}")
    if len(text) != dimension * dimension:
        raise ValueError(f"board of dimension {dimension} needs {dimension * dimension} cells, got {len(text)}")
    cells = [CellState(c) for c in text]
    return [cells[r * dimension:(r + 1) * dimension] for r in range(dimension)]


def format_board(text: str, dimension: int) -> str:
    """控制台显示用：每行一排格子，空格分隔"""
    grid = board_from_string(text, dimension)
    return "\n".join(" ".join(c.value for c in row) for row in grid)


__all__ = ["CellState", "board_from_string", "board_to_string", "format_board"]
