"""SpecAlign - Progress Tracker

批处理（测试生成 / 执行）进度的内存登记表：
记录每个批次的最新事件，并把事件分发给观察者回调。
"""
from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from typing import Callable, Optional

from specalign.models.test_schemas import ProgressEvent

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressEvent], None]

# 保留的批次数量上限（超出后淘汰最早的批次）
MAX_TRACKED_BATCHES = 256


class ProgressTracker:
    """线程安全的进度登记表"""

    def __init__(self, max_batches: int = MAX_TRACKED_BATCHES):
        self._events: OrderedDict[str, ProgressEvent] = OrderedDict()
        self._observers: list[ProgressCallback] = []
        self._max_batches = max_batches
        self._lock = threading.Lock()

    def publish(self, event: ProgressEvent) -> None:
        """登记事件并通知观察者"""
        with self._lock:
            self._events[event.batch_id] = event
            self._events.move_to_end(event.batch_id)
            while len(self._events) > self._max_batches:
                self._events.popitem(last=False)
            observers = list(self._observers)

        for callback in observers:
            try:
                callback(event)
            except Exception as e:
                logger.warning(f"进度回调失败: {e}")

    def latest(self, batch_id: str) -> Optional[ProgressEvent]:
        with self._lock:
            return self._events.get(batch_id)

    def subscribe(self, callback: ProgressCallback) -> Callable[[], None]:
        """注册观察者，返回取消注册函数"""
        with self._lock:
            self._observers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._observers:
                    self._observers.remove(callback)

        return unsubscribe


# 全局单例
_tracker: Optional[ProgressTracker] = None


def get_progress_tracker() -> ProgressTracker:
    """获取全局进度登记表"""
    global _tracker
    if _tracker is None:
        _tracker = ProgressTracker()
    return _tracker
