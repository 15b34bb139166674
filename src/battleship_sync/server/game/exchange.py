import logging
import threading
from collections import deque
from typing import Deque, Dict, List, Optional, Set

from battleship_sync.shared.constants import (
    DEFAULT_EXCHANGE_SCOPE,
    EXCHANGE_SCOPES,
    SCOPE_SESSION,
    SCOPE_SHARED,
)

logger = logging.getLogger(__name__)


class ExchangeCancelled(Exception):
    """等待方所属的会话已关闭"""


class ExchangeTimeout(Exception):
    """在限定时间内没有等到棋盘"""


class _Waiter:
    __slots__ = ("owner", "event", "item", "delivered", "cancelled")

    def __init__(self, owner: int):
        self.owner = owner
        self.event = threading.Event()
        self.item: Optional[str] = None
        self.delivered = False
        self.cancelled = False


class ExchangeQueue:
    """
    棋盘交换队列：先进先出，取出时阻塞。

    多个等待者按到达顺序排队，新放入的棋盘直接交给排在最前面的等待者；
    等待者被取消时，若棋盘已交到它手上，则退回队首重新分配，不会丢失也不会重复。
    """

    def __init__(self, name: str = ""):
        self.name = name
        self._lock = threading.Lock()
        self._items: Deque[str] = deque()
        self._waiters: Deque[_Waiter] = deque()  # 尚未拿到棋盘的等待者
        self._active: List[_Waiter] = []  # 所有还没从 take() 返回的等待者
        self._cancelled: Set[int] = set()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    @property
    def waiting(self) -> int:
        with self._lock:
            return len(self._waiters)

    def put(self, item: str) -> None:
        """放入一个棋盘，不阻塞"""
        with self._lock:
            self._dispatch(item)

    def _dispatch(self, item: str, front: bool = False) -> None:
        # 调用方持有 self._lock
        if self._waiters:
            w = self._waiters.popleft()
            w.item = item
            w.delivered = True
            w.event.set()
        elif front:
            self._items.appendleft(item)
        else:
            self._items.append(item)

    def take(self, owner: int, timeout: Optional[float] = None) -> str:
        """取出最早放入的棋盘，没有则阻塞等待。

        Args:
            owner: 等待方的客户端编号，用于 cancel()
            timeout: 最长等待秒数，None 表示一直等待

        Raises:
            ExchangeCancelled: 等待期间（或之前）owner 被取消
            ExchangeTimeout: 超时
        """
        with self._lock:
            if owner in self._cancelled:
                raise ExchangeCancelled(f"client {owner} is closed")
            if self._items:
                return self._items.popleft()
            w = _Waiter(owner)
            self._waiters.append(w)
            self._active.append(w)

        w.event.wait(timeout)

        with self._lock:
            self._active.remove(w)
            if w.cancelled:
                raise ExchangeCancelled(f"client {owner} is closed")
            if w.delivered:
                return w.item  # type: ignore[return-value]
            self._waiters.remove(w)
        raise ExchangeTimeout(f"no board arrived on {self.name or 'queue'} within {timeout}s")

    def cancel(self, owner: int) -> int:
        """取消 owner 的所有等待（含之后的等待，直到 forget()），返回被唤醒的等待者数量"""
        woken = 0
        with self._lock:
            self._cancelled.add(owner)
            for w in list(self._active):
                if w.owner != owner or w.cancelled:
                    continue
                w.cancelled = True
                if w.delivered:
                    # // 已交付但尚未返回，退回队首
                    self._dispatch(w.item, front=True)  # type: ignore[arg-type]
                else:
                    self._waiters.remove(w)
                w.event.set()
                woken += 1
        return woken

    def forget(self, owner: int) -> None:
        """owner 的会话线程已退出，不再需要记住它的取消状态"""
        with self._lock:
            self._cancelled.discard(owner)

    @property
    def idle(self) -> bool:
        """没有棋盘，也没有等待者"""
        with self._lock:
            return not self._items and not self._active


class ExchangeRegistry:
    """
    按作用域管理交换队列。

    - peer: 按连接顺序两两配对（1↔2、3↔4 ...），SENDGAME 写入自己的队列，
      RECVGAME 读取对手的队列
    - shared: 所有客户端共用一个队列
    - session: RECVGAME 只读取自己的队列

    取消状态只为仍在运行的会话保存，release() 之后即被清除。
    """

    def __init__(self, scope: str = DEFAULT_EXCHANGE_SCOPE):
        if scope not in EXCHANGE_SCOPES:
            raise ValueError(f"unknown exchange scope: {scope!r}")
        self.scope = scope
        self._lock = threading.Lock()
        self._queues: Dict[object, ExchangeQueue] = {}
        self._cancelled: Set[int] = set()

    @staticmethod
    def peer_of(client_id: int) -> int:
        return client_id + 1 if client_id % 2 else client_id - 1

    def __len__(self) -> int:
        with self._lock:
            return len(self._queues)

    def _queue(self, key: object) -> ExchangeQueue:
        # 调用方持有 self._lock
        q = self._queues.get(key)
        if q is None:
            name = key if isinstance(key, str) else f"client-{key}"
            q = ExchangeQueue(name)
            self._queues[key] = q
        return q

    def _inbox_key(self, client_id: int) -> object:
        if self.scope == SCOPE_SHARED:
            return SCOPE_SHARED
        if self.scope == SCOPE_SESSION:
            return client_id
        return self.peer_of(client_id)

    def outbox(self, client_id: int) -> ExchangeQueue:
        """SENDGAME 写入的队列"""
        with self._lock:
            if self.scope == SCOPE_SHARED:
                return self._queue(SCOPE_SHARED)
            return self._queue(client_id)

    def inbox(self, client_id: int) -> ExchangeQueue:
        """RECVGAME 读取的队列"""
        with self._lock:
            if client_id in self._cancelled:
                raise ExchangeCancelled(f"client {client_id} is closed")
            return self._queue(self._inbox_key(client_id))

    def put(self, client_id: int, board: str) -> ExchangeQueue:
        q = self.outbox(client_id)
        q.put(board)
        return q

    def take(self, client_id: int, timeout: Optional[float] = None) -> str:
        return self.inbox(client_id).take(client_id, timeout)

    def cancel(self, client_id: int) -> None:
        """会话关闭时调用：唤醒并取消该客户端阻塞中的 RECVGAME"""
        with self._lock:
            self._cancelled.add(client_id)
            # // 客户端只会在自己的 inbox 上等待
            q = self._queues.get(self._inbox_key(client_id))
        woken = q.cancel(client_id) if q is not None else 0
        if woken:
            logger.info(f"已取消客户端 {client_id} 的 {woken} 个等待")

    def release(self, client_id: int) -> None:
        """会话线程退出后调用：清除取消状态，丢弃不会再被读取的队列。

        peer/session 作用域下 inbox 只有该客户端会读取，直接丢弃；
        自己的队列若还有棋盘留给对手则保留，取空后丢弃。
        """
        with self._lock:
            self._cancelled.discard(client_id)
            if self.scope == SCOPE_SHARED:
                inbox = self._queues.get(SCOPE_SHARED)
            else:
                inbox = self._queues.pop(self._inbox_key(client_id), None)
                own = self._queues.get(client_id)
                if own is not None and own.idle:
                    del self._queues[client_id]
        if inbox is not None:
            inbox.forget(client_id)

    def clear(self) -> None:
        with self._lock:
            self._queues.clear()
            self._cancelled.clear()
