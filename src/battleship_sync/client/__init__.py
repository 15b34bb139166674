"""
客户端模块

负责连接服务器并发起同步请求（发送棋盘、获取棋盘、上报对局结果）。

模块组成：
- network: 同步的请求/应答客户端 NetworkClient
- main: 命令行入口，按顺序执行一次完整的交换流程

入口提示：
- 运行 battleship_sync/client/main.py 或 battleship-sync-client
- 与服务器通信基于 "#" 分隔的行协议（Message.to_line() + "\n"）
"""

from . import network

__all__ = ["network"]
