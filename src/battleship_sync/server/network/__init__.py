"""
网络通信模块

处理 Socket 连接、按行收发、协议解码与命令分发。
"""

from __future__ import annotations

import logging
import socket
import threading
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

from battleship_sync.shared.config import ServerSettings
from battleship_sync.shared.constants import (
	BUFFER_SIZE,
	DEFAULT_EXCHANGE_SCOPE,
	DEFAULT_HOST,
	DEFAULT_PORT,
	ENCODING,
	LISTEN_BACKLOG,
	REPLY_ACK,
	REPLY_ACK_END,
	REPLY_ACK_GAME_RESULTS,
	SHUTDOWN_JOIN_TIMEOUT,
)
from battleship_sync.shared.protocols import (
	MalformedMessage,
	Message,
	PayloadError,
	ProtocolCode,
	UnknownCommand,
	parse_game_payload,
	parse_game_results,
)
from battleship_sync.server.game import ExchangeCancelled, ExchangeRegistry, ExchangeTimeout
from battleship_sync.server.registry import ConnectionRegistry


class ServerError(RuntimeError):
	"""accept 循环中出现的非预期 I/O 错误"""


@dataclass(frozen=True)
class GameResult:
	client_id: int
	player_name: str
	score: int


class ClientSession:
	"""客户端会话，封装连接与客户端编号"""

	def __init__(self, conn: socket.socket, addr: Tuple[str, int], client_id: int):
		self.conn = conn
		self.addr = addr
		self.client_id = client_id
		self.thread: Optional[threading.Thread] = None
		self._recv_buffer = bytearray()
		self._closed = threading.Event()
		self._released = False
		self._lock = threading.Lock()

	@property
	def closed(self) -> bool:
		return self._closed.is_set()

	def read_line(self) -> Optional[str]:
		"""读取一行（去掉行尾换行）；对端关闭时返回 None"""
		while True:
			try:
				idx = self._recv_buffer.index(ord("\n"))
			except ValueError:
				data = self.conn.recv(BUFFER_SIZE)
				if not data:
					return None
				self._recv_buffer.extend(data)
				continue
			raw = bytes(self._recv_buffer[:idx])
			del self._recv_buffer[: idx + 1]
			return raw.decode(ENCODING, errors="replace").rstrip("\r")

	def send_line(self, text: str) -> None:
		self.conn.sendall((text + "\n").encode(ENCODING))

	def close(self) -> None:
		self._closed.set()
		try:
			# // 唤醒阻塞在 recv 上的会话线程
			self.conn.shutdown(socket.SHUT_RDWR)
		except OSError:
			pass
		try:
			self.conn.close()
		except OSError:
			pass

	def release(self) -> bool:
		"""标记会话已结束，只有第一次调用返回 True"""
		with self._lock:
			if self._released:
				return False
			self._released = True
			return True


class NetworkServer:
	"""网络服务器，负责接入、编号分配与命令分发"""

	def __init__(
		self,
		host: str = DEFAULT_HOST,
		port: int = DEFAULT_PORT,
		auto_shutdown: bool = False,
		recv_timeout: Optional[float] = None,
		exchange_scope: str = DEFAULT_EXCHANGE_SCOPE,
	):
		self.host = host
		self.port = port
		self.auto_shutdown = auto_shutdown
		self.recv_timeout = recv_timeout
		self.registry = ConnectionRegistry()
		self.exchange = ExchangeRegistry(exchange_scope)
		self.sessions: Dict[int, ClientSession] = {}
		self._sessions_lock = threading.Lock()
		self._results: List[GameResult] = []
		self._results_lock = threading.Lock()
		self._sock: Optional[socket.socket] = None
		self._address: Tuple[str, int] = (host, port)
		self._accept_thread: Optional[threading.Thread] = None
		self._lifecycle_lock = threading.Lock()
		self._running = threading.Event()
		self._stopped = threading.Event()

	@classmethod
	def from_settings(cls, settings: ServerSettings) -> "NetworkServer":
		return cls(
			settings.host,
			settings.port,
			auto_shutdown=settings.auto_shutdown,
			recv_timeout=settings.recv_timeout,
			exchange_scope=settings.exchange_scope,
		)

	@property
	def address(self) -> Tuple[str, int]:
		"""实际监听的地址（port=0 时为系统分配的端口）"""
		return self._address

	@property
	def running(self) -> bool:
		return self._running.is_set()

	@property
	def active_clients(self) -> int:
		return self.registry.active_count

	@property
	def results(self) -> List[GameResult]:
		"""已收到的对局结果快照"""
		with self._results_lock:
			return list(self._results)

	# 服务器生命周期
	def _bind(self) -> socket.socket:
		with self._lifecycle_lock:
			if self._running.is_set():
				raise ServerError("server is already running")
			# // 计数器与队列随每次启动重新创建
			self.registry.reset()
			self.exchange.clear()
			with self._results_lock:
				self._results.clear()
			sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
			# // 允许快速重启服务
			sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
			try:
				sock.bind((self.host, self.port))
				sock.listen(LISTEN_BACKLOG)
			except OSError:
				sock.close()
				raise
			self._sock = sock
			self._address = sock.getsockname()[:2]
			self._stopped.clear()
			self._running.set()
		logger.info(f"服务器已启动，监听地址: {self._address[0]}:{self._address[1]}")
		return sock

	def start(self) -> None:
		"""绑定端口并在后台线程中运行 Accept 循环"""
		sock = self._bind()
		self._accept_thread = threading.Thread(
			target=self._accept_loop, args=(sock,), name="accept-loop", daemon=True
		)
		self._accept_thread.start()

	def serve_forever(self) -> None:
		"""绑定端口并在当前线程运行 Accept 循环，直到 stop()"""
		self._accept_loop(self._bind())

	def wait_stopped(self, timeout: Optional[float] = None) -> bool:
		return self._stopped.wait(timeout)

	def stop(self) -> None:
		"""停止服务器并关闭所有会话"""
		with self._lifecycle_lock:
			if not self._running.is_set():
				return
			logger.info("正在停止服务器...")
			self._running.clear()
			sock, self._sock = self._sock, None
		if sock:
			# // 触发 accept 退出
			try:
				sock.shutdown(socket.SHUT_RDWR)
			except OSError:
				pass
			sock.close()
		# // 关闭所有客户端连接，同时唤醒阻塞中的 RECVGAME
		with self._sessions_lock:
			sessions = list(self.sessions.values())
		for sess in sessions:
			self._close_session(sess)
		# // 等待会话线程完成清理，避免下一次启动时计数被旧会话修改
		current = threading.current_thread()
		for sess in sessions:
			if sess.thread is not None and sess.thread is not current:
				sess.thread.join(SHUTDOWN_JOIN_TIMEOUT)
		self._stopped.set()

	# 接入与会话线程
	def _accept_loop(self, sock: socket.socket) -> None:
		"""Accept 新连接，分配编号并为其创建会话线程"""
		while self._running.is_set():
			try:
				conn, addr = sock.accept()
			except OSError as e:
				if not self._running.is_set():
					# // 监听套接字被 stop() 关闭，属于正常退出
					logger.info("服务器已停止，不再接受新连接")
					break
				logger.error(f"接受连接失败: {e}", exc_info=True)
				self.stop()
				raise ServerError(f"accept failed: {e}") from e
			if not self._running.is_set():
				conn.close()
				break
			client_id = self.registry.next_id()
			sess = ClientSession(conn, addr, client_id)
			with self._sessions_lock:
				self.sessions[client_id] = sess
			count = self.registry.client_connected()
			logger.info(f"客户端 {client_id} 已连接: {addr}，当前活跃客户端数: {count}")
			t = threading.Thread(target=self._session_loop, args=(sess,), name=f"client-{client_id}", daemon=True)
			sess.thread = t
			t.start()

	def _session_loop(self, sess: ClientSession) -> None:
		"""单会话收发循环：先发送编号，然后按行（\n）读取并分发"""
		cid = sess.client_id
		try:
			sess.send_line(str(cid))
			while not sess.closed:
				line = sess.read_line()
				if line is None:
					if not sess.closed:
						logger.info(f"客户端 {cid} 未发送 END 即断开连接")
					break
				if not self._handle_line(sess, line):
					break
		except ExchangeCancelled:
			logger.info(f"客户端 {cid} 的会话已关闭，放弃等待棋盘")
		except OSError as e:
			if not sess.closed:
				logger.warning(f"客户端 {cid} 连接异常: {e}")
		finally:
			self._on_disconnect(sess)

	# 消息处理
	def _handle_line(self, sess: ClientSession, line: str) -> bool:
		"""解码一行并处理；返回 False 表示会话应当结束"""
		cid = sess.client_id
		logger.info(f"收到客户端 {cid} 的消息: {line}")
		try:
			msg = Message.from_line(line)
		except MalformedMessage as e:
			logger.warning(f"客户端 {cid} 的消息格式错误，已忽略: {e}")
			return True
		except UnknownCommand as e:
			logger.warning(f"客户端 {cid} 发送了未知协议码，已忽略: {e.code}")
			return True
		if msg.client_id != cid:
			logger.warning(f"客户端 {cid} 的消息携带了编号 {msg.client_id}，按会话编号处理")

		try:
			return self._route_message(sess, msg)
		except PayloadError as e:
			logger.error(f"客户端 {cid} 的 {msg.code.name} 载荷无效: {e}")
		except ExchangeTimeout as e:
			logger.error(f"客户端 {cid} 等待棋盘超时: {e}")
		except (OSError, ExchangeCancelled):
			raise
		except Exception:
			logger.exception(f"处理客户端 {cid} 的消息时出错: {line}")
		return True

	def _route_message(self, sess: ClientSession, msg: Message) -> bool:
		"""根据协议码路由到对应处理"""
		cid = sess.client_id
		code = msg.code

		if code is ProtocolCode.END:
			logger.info(f"客户端 {cid} 结束了连接")
			try:
				sess.send_line(REPLY_ACK_END)
			except OSError:
				pass
			sess.close()
			return False

		elif code is ProtocolCode.SENDGAME:
			dimension, board = parse_game_payload(msg.fields)
			queue = self.exchange.put(cid, board)
			logger.info(f"收到客户端 {cid} 的棋盘（维度 {dimension}）-> {queue.name}: {board}")
			sess.send_line(REPLY_ACK)

		elif code is ProtocolCode.RECVGAME:
			queue = self.exchange.inbox(cid)
			logger.info(f"客户端 {cid} 等待 {queue.name} 中的棋盘")
			# // 可能一直阻塞，直到有棋盘、会话关闭或超时
			board = queue.take(cid, self.recv_timeout)
			sess.send_line(board)
			logger.info(f"已向客户端 {cid} 发送棋盘: {board}")

		elif code is ProtocolCode.DATA:
			name, score = parse_game_results(msg.fields)
			with self._results_lock:
				self._results.append(GameResult(cid, name, score))
			sess.send_line(REPLY_ACK_GAME_RESULTS)
			logger.info(f"收到客户端 {cid} 的对局结果，玩家: {name}，得分: {score}")

		return True

	# 断开清理
	def _close_session(self, sess: ClientSession) -> None:
		sess.close()
		self.exchange.cancel(sess.client_id)

	def _on_disconnect(self, sess: ClientSession) -> None:
		if not sess.release():
			return
		self._close_session(sess)
		# // 会话线程即将退出，之后不会再有 RECVGAME
		self.exchange.release(sess.client_id)
		with self._sessions_lock:
			self.sessions.pop(sess.client_id, None)
		# // 以递减后的返回值判断是否是最后一个客户端
		count = self.registry.client_disconnected()
		logger.info(f"客户端 {sess.client_id} 已断开，当前活跃客户端数: {count}")
		if count == 0 and self.auto_shutdown and self.running:
			logger.info("最后一个客户端已断开，自动停止服务器")
			self.stop()


__all__ = [
	"ClientSession",
	"GameResult",
	"NetworkServer",
	"ServerError",
]
