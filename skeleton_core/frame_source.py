"""帧来源（外部传感器）接口与配套工具。

- BodyFrame: 一帧人体数据的句柄，拷出数据后须立即 release；
- LatestFrameSlot: 只保留最新一帧的“有界通道”，旧帧直接丢弃；
- FrameSource: 传感器抽象（取最新帧、坐标映射、可用性事件、打开/关闭）。
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Optional, Sequence

from .types import Body

logger = logging.getLogger(__name__)


class FrameSourceError(RuntimeError):
    pass


class BodyFrame:
    """一帧人体数据；可作为上下文管理器使用，退出时自动释放。"""

    def __init__(self, bodies: Sequence[Body], on_release: Optional[Callable[[], None]] = None):
        self._bodies = list(bodies)
        self._on_release = on_release
        self._released = False

    @property
    def body_count(self) -> int:
        return len(self._bodies)

    @property
    def released(self) -> bool:
        return self._released

    def refresh_bodies(self, slots: Sequence[Body]) -> None:
        """把本帧数据覆盖写入调用方持有的槽位数组（不重新分配）。"""
        if self._released:
            raise FrameSourceError("帧已释放，无法再读取数据")
        if len(slots) < len(self._bodies):
            raise FrameSourceError(
                f"槽位数量不足：帧内 {len(self._bodies)} 个，槽位 {len(slots)} 个"
            )
        for i, slot in enumerate(slots):
            if i < len(self._bodies):
                slot.copy_from(self._bodies[i])
            else:
                slot.reset()

    def release(self) -> None:
        # 只释放一次
        if self._released:
            return
        self._released = True
        if self._on_release is not None:
            self._on_release()

    def __enter__(self) -> "BodyFrame":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


class LatestFrameSlot:
    """最新帧优先的单元素通道。

    put 会替换（并释放）尚未被取走的旧帧；take 取出并清空。
    生产者可在其他线程，消费者在 UI 线程。
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._frame: Optional[BodyFrame] = None
        self.dropped = 0

    def put(self, frame: BodyFrame) -> None:
        with self._lock:
            stale = self._frame
            self._frame = frame
            if stale is not None:
                self.dropped += 1
        if stale is not None:
            stale.release()

    def take(self) -> Optional[BodyFrame]:
        with self._lock:
            frame = self._frame
            self._frame = None
        return frame

    def clear(self) -> None:
        frame = self.take()
        if frame is not None:
            frame.release()


class SensorStatus(Enum):
    RUNNING = "传感器运行中"
    NO_SENSOR = "未检测到传感器"
    NOT_AVAILABLE = "传感器不可用"

    @property
    def message(self) -> str:
        return self.value


def availability_status(is_available: bool, first: bool = False) -> SensorStatus:
    """可用性变化 -> 状态值。

    输入: is_available 当前是否可用；first 是否为启动时的首次查询。
    输出: SensorStatus（只用于状态显示，不影响帧处理）。
    """
    if is_available:
        return SensorStatus.RUNNING
    return SensorStatus.NO_SENSOR if first else SensorStatus.NOT_AVAILABLE


@dataclass(frozen=True)
class PinholeMapper:
    """针孔相机模型的 map3Dto2D，默认参数近似深度相机（512x424）。

    y 轴向上为正，因此显示坐标中 v = cy - fy * y / z。
    """

    fx: float = 365.0
    fy: float = 365.0
    cx: float = 256.0
    cy: float = 212.0

    def __call__(self, x: float, y: float, z: float) -> tuple[float, float]:
        if z == 0:
            return float("-inf"), float("-inf")
        return self.cx + self.fx * x / z, self.cy - self.fy * y / z


AvailabilityListener = Callable[[bool], None]


class FrameSource(ABC):
    """传感器抽象。"""

    def __init__(self) -> None:
        self._listeners: list[AvailabilityListener] = []
        self._available = False

    @property
    def is_available(self) -> bool:
        return self._available

    def add_availability_listener(self, listener: AvailabilityListener) -> None:
        self._listeners.append(listener)

    def remove_availability_listener(self, listener: AvailabilityListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _set_available(self, value: bool) -> None:
        if value == self._available:
            return
        self._available = value
        logger.info("传感器可用性变化: %s", value)
        for listener in list(self._listeners):
            listener(value)

    @property
    @abstractmethod
    def display_size(self) -> tuple[int, int]: ...

    @abstractmethod
    def map_point(self, x: float, y: float, z: float) -> tuple[float, float]: ...

    @abstractmethod
    def acquire_latest(self) -> Optional[BodyFrame]: ...

    @abstractmethod
    def open(self) -> None: ...

    @abstractmethod
    def close(self) -> None: ...


class ReplayFrameSource(FrameSource):
    """从内存中的帧序列回放；None 表示该拍没有新帧。"""

    def __init__(
        self,
        frames: Iterable[Optional[Sequence[Body]]],
        mapper: Optional[PinholeMapper] = None,
        display_size: tuple[int, int] = (512, 424),
    ):
        super().__init__()
        self._frames = iter(frames)
        self._mapper = mapper or PinholeMapper()
        self._size = display_size
        self._opened = False
        self.released_count = 0
        self.close_count = 0

    @property
    def display_size(self) -> tuple[int, int]:
        return self._size

    def map_point(self, x: float, y: float, z: float) -> tuple[float, float]:
        return self._mapper(x, y, z)

    def _on_release(self) -> None:
        self.released_count += 1

    def acquire_latest(self) -> Optional[BodyFrame]:
        if not self._opened:
            return None
        bodies = next(self._frames, None)
        if bodies is None:
            return None
        return BodyFrame(bodies, on_release=self._on_release)

    def open(self) -> None:
        self._opened = True
        self._set_available(True)

    def close(self) -> None:
        if not self._opened:
            return
        self._opened = False
        self.close_count += 1
        self._set_available(False)
