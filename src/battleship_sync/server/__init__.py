"""
服务器端模块

负责接受客户端连接、分配编号、转发棋盘与记录对局结果。

模块组成：
- game: 棋盘交换队列与按作用域解析队列的登记表
- registry: 客户端编号与活跃会话计数
- network: TCP 会话、逐行解码与命令分发

使用方式：
- 入口参见 battleship_sync/server/main.py，启动 NetworkServer
"""

from . import game, network, registry

__all__ = ["game", "network", "registry"]
