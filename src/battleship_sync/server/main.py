"""
服务器主程序入口

启动同步服务器，监听客户端连接。
"""

import logging

from battleship_sync.shared.config import ServerSettings

logger = logging.getLogger(__name__)


def configure_logging(log_file: str = "server.log") -> None:
    """配置日志：同时写入文件与控制台"""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.FileHandler(log_file), logging.StreamHandler()],
    )


def main():
    """启动服务器主函数"""
    # 支持通过环境变量覆盖主机、端口与行为开关
    settings = ServerSettings.from_env()
    configure_logging(settings.log_file)

    logger.info("=" * 50)
    logger.info("Battleship Sync 服务器启动中...")
    logger.info(f"监听地址: {settings.host}:{settings.port}")
    logger.info(f"棋盘交换作用域: {settings.exchange_scope}，自动停止: {settings.auto_shutdown}")
    logger.info("=" * 50)

    from battleship_sync.server.network import NetworkServer

    server = NetworkServer.from_settings(settings)
    try:
        logger.info("服务器运行中，按 Ctrl+C 停止")
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("服务器正在关闭...")
    except Exception as e:
        logger.error(f"服务器错误: {e}", exc_info=True)
    finally:
        server.stop()
        logger.info("服务器已停止")


if __name__ == "__main__":
    main()
