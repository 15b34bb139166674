"""
共享模块

存放客户端和服务器共用的代码，如常量、协议定义、配置读取等。

组件说明：
- constants: 分隔符、协议码、应答字符串、默认地址/端口
- protocols: 基于 "#" 分隔的行协议（Message 及编解码、载荷解析）
- board: 棋盘字符串与二维格子互转（游戏逻辑与协议层的边界）
- config: 从环境变量读取服务器/客户端配置

提示：
- 协议层约定按行分隔的文本，网络层直接透传 Message.to_line() + "\n"
- 棋盘字符串对服务器是不透明的，服务器从不解析其内容
"""

from . import board, config, constants, protocols

__all__ = ["board", "config", "constants", "protocols"]
