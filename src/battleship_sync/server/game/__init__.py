"""
棋盘交换模块

SENDGAME 放入、RECVGAME 阻塞取出的先进先出队列，以及按作用域（对手/共享/自身）
为每个客户端解析队列的登记表。
"""

from .exchange import ExchangeCancelled, ExchangeQueue, ExchangeRegistry, ExchangeTimeout

__all__ = ["ExchangeCancelled", "ExchangeQueue", "ExchangeRegistry", "ExchangeTimeout"]
