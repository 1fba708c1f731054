from __future__ import annotations

import dataclasses
import logging
from typing import Optional

from PySide6.QtCore import QObject, QTimer, Signal, Slot

from skeleton_core.config import ProcessorConfig
from skeleton_core.frame_processor import FrameProcessor, RenderFrame
from skeleton_core.frame_source import FrameSource, FrameSourceError, SensorStatus, availability_status
from skeleton_core.types import PoseName

from ..render import RenderStyle, render_frame
from .view_protocol import SkeletonView

logger = logging.getLogger(__name__)


class TrackingController(QObject):
    """控制器：按定时器拉取最新帧，交给 FrameProcessor，再把结果推给视图。"""

    status_changed = Signal(str)
    log_message = Signal(str)
    poses_changed = Signal(object)  # list[PoseName]

    def __init__(
        self,
        view: SkeletonView,
        config: Optional[ProcessorConfig] = None,
        style: Optional[RenderStyle] = None,
        interval_ms: int = 33,
    ):
        """初始化控制器。

        输入: view 为实现 SkeletonView 协议的视图；config/style 可选处理与绘制配置。
        输出: 无。
        作用: 准备定时器；帧来源通过 attach_source 注入。
        """
        super().__init__()
        self._view = view
        self._config = config or ProcessorConfig()
        self._style = style or RenderStyle()

        self._source: Optional[FrameSource] = None
        self._processor: Optional[FrameProcessor] = None
        self._shown: Optional[RenderFrame] = None
        self._status: Optional[SensorStatus] = None

        # QTimer 归属 UI 线程；parent 设为 controller
        self._timer = QTimer(self)
        self._timer.setInterval(interval_ms)
        self._timer.timeout.connect(self.tick)

    @property
    def status(self) -> Optional[SensorStatus]:
        return self._status

    @property
    def processor(self) -> Optional[FrameProcessor]:
        return self._processor

    @property
    def is_running(self) -> bool:
        return self._timer.isActive()

    def attach_source(self, source: FrameSource) -> None:
        """替换帧来源，旧来源会被关闭。"""
        self.close()
        w, h = source.display_size
        cfg = dataclasses.replace(self._config, display_width=w, display_height=h)
        self._source = source
        self._processor = FrameProcessor(source.map_point, cfg)
        self._shown = None
        source.add_availability_listener(self.on_availability_changed)

    def start(self) -> bool:
        """打开传感器并开始定时处理。返回是否成功。"""
        if self._source is None:
            self._view.show_error("缺少传感器", "没有可用的帧来源")
            return False
        try:
            self._source.open()
        except FrameSourceError as e:
            logger.error("打开帧来源失败: %s", e)
            self.log_message.emit(f"打开帧来源失败: {e}")
            self._view.show_error("打开失败", str(e))
            return False

        self._publish_status(availability_status(self._source.is_available, first=True))
        self._timer.start()
        self.log_message.emit("开始处理骨架帧")
        return True

    def stop(self) -> None:
        if self._timer.isActive():
            self._timer.stop()

    @Slot()
    def tick(self) -> Optional[RenderFrame]:
        """主循环：取最新帧 -> 处理 -> 绘制 -> 更新视图。

        没有新帧时处理器返回上一次的输出，视图保持不变（不闪黑）。
        """
        if self._source is None or self._processor is None:
            return None
        out = self._processor.process_latest(self._source)
        if out is None or out is self._shown:
            return out
        self._shown = out

        self._view.set_frame_image(render_frame(out, self._style))
        detected = [e.name for e in out.pose_events if e.detected]
        self._view.set_poses(detected)
        self.poses_changed.emit(detected)
        return out

    @Slot(bool)
    def on_availability_changed(self, is_available: bool) -> SensorStatus:
        status = availability_status(is_available)
        self._publish_status(status)
        return status

    def _publish_status(self, status: SensorStatus) -> None:
        self._status = status
        self._view.set_status(status.message)
        self.status_changed.emit(status.message)

    def close(self) -> None:
        """停止处理并关闭帧来源；可重复调用。"""
        self.stop()
        source = self._source
        self._source = None
        self._processor = None
        if source is None:
            return
        source.remove_availability_listener(self.on_availability_changed)
        source.close()
        self.log_message.emit("帧来源已关闭")
