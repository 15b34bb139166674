"""
客户端主程序入口

连接服务器后按顺序执行：发送棋盘、获取棋盘、上报对局结果，最后断开。
"""

import argparse
import logging
import sys
from typing import List, Optional

from battleship_sync.client.network import ClientError, NetworkClient
from battleship_sync.shared.board import format_board
from battleship_sync.shared.config import ClientSettings
from battleship_sync.shared.constants import DEFAULT_DIMENSION, REPLY_ACK

logger = logging.getLogger(__name__)


def build_parser(settings: ClientSettings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Battleship Sync - 棋盘交换客户端")
    parser.add_argument("--host", type=str, default=settings.host, help="Server address")
    parser.add_argument("--port", type=int, default=settings.port, help="Server TCP port")
    parser.add_argument("--name", type=str, default=settings.player_name, help="Player name")
    parser.add_argument("--dimension", type=int, default=DEFAULT_DIMENSION, help="Board dimension")
    parser.add_argument("--board", type=str, help="Board string to send (dimension² cells of E/B/H/M)")
    parser.add_argument("--receive", action="store_true", help="Wait for a board from the server")
    parser.add_argument("--score", type=int, help="Report a final score for --name")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log protocol traffic")
    return parser


def run(args: argparse.Namespace, client: NetworkClient) -> int:
    """执行一次交换流程，返回退出码"""
    client.connect()
    print(f"已连接，客户端编号: {client.client_id}")
    try:
        if args.board is not None:
            reply = client.send_game_configuration(args.board, args.dimension)
            print(f"发送棋盘: {reply}")
            if reply != REPLY_ACK:
                return 1
        if args.receive:
            board = client.request_game_configuration()
            print(f"收到棋盘: {board}")
            try:
                print(format_board(board, args.dimension))
            except ValueError as e:
                logger.warning(f"无法按维度 {args.dimension} 显示棋盘: {e}")
        if args.score is not None:
            ok = client.send_game_results(args.name, args.score)
            print(f"上报结果: {'成功' if ok else '失败'}")
            if not ok:
                return 1
    finally:
        client.disconnect()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    settings = ClientSettings.from_env()
    args = build_parser(settings).parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    client = NetworkClient(args.host, args.port, response_timeout=settings.response_timeout)
    try:
        return run(args, client)
    except (ClientError, OSError) as e:
        logger.error(f"通信失败: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
