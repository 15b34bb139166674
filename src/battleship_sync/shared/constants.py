"""
常量定义

定义协议与网络使用的各种常量。
"""

# 网络配置
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 12345
BUFFER_SIZE = 4096
ENCODING = "utf-8"
LISTEN_BACKLOG = 32
CONNECT_TIMEOUT = 5.0  # 秒
SHUTDOWN_JOIN_TIMEOUT = 2.0  # 秒，stop() 等待每个会话线程退出的上限
DISCONNECT_TIMEOUT = 1.0  # 秒，断开时等待 ACK_END 的上限

# 游戏配置
DEFAULT_USER = "Pepe"
DEFAULT_DIMENSION = 5

# 协议分隔符
PROTOCOL_SEPARATOR = "#"  # 顶层：<clientId>#<code>#<arg>...
FIELD_SEPARATOR = ","  # SENDGAME 载荷内：<dimension>,<board>

# 协议码
PROTOCOL_END = "P0"
PROTOCOL_SENDGAME = "P1"
PROTOCOL_RECVGAME = "P2"
PROTOCOL_DATA = "P3"

# 服务器应答
REPLY_ACK = "ACK"
REPLY_ACK_END = "ACK_END"
REPLY_ACK_GAME_RESULTS = "ACK_GAME_RESULTS"

# 交换队列作用域
SCOPE_PEER = "peer"  # 按连接顺序两两配对，RECVGAME 读取对手的队列
SCOPE_SHARED = "shared"  # 全局单一队列
SCOPE_SESSION = "session"  # RECVGAME 只能读取自己发送的棋盘
EXCHANGE_SCOPES = (SCOPE_PEER, SCOPE_SHARED, SCOPE_SESSION)
DEFAULT_EXCHANGE_SCOPE = SCOPE_PEER
