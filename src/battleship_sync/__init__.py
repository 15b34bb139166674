"""
Battleship Sync - 海战棋联机同步服务

A small threaded TCP server and client for exchanging Battleship board
configurations and match results between two players.
"""

__version__ = "0.1.0"
__author__ = "Battleship Sync Team"
__license__ = "MIT"

# 导出主要组件
from . import client, server, shared

__all__ = ["client", "server", "shared", "__version__"]
