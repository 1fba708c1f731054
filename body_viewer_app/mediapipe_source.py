"""摄像头 + MediaPipe Pose 的帧来源。

没有深度传感器时用它填充人体槽位：33 个 MediaPipe 关键点折算为 25 个骨架关节，
世界坐标平移到相机前方 assumed_depth_m 处，再交给针孔模型投影。
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Optional

import cv2
import numpy as np
from PySide6.QtCore import QThread

from skeleton_core.frame_source import (
    BodyFrame,
    FrameSource,
    FrameSourceError,
    LatestFrameSlot,
    PinholeMapper,
)
from skeleton_core.types import Body, FrameEdge, HandState, JointType, TrackingState

from .pose_detector import DetectedPose, PoseDetector, PoseDetectorConfig

logger = logging.getLogger(__name__)

J = JointType

# 骨架关节 -> 参与平均的 MediaPipe 关键点索引
MEDIAPIPE_JOINTS: dict[JointType, tuple[int, ...]] = {
    J.SPINE_BASE: (23, 24),
    J.SPINE_MID: (11, 12, 23, 24),
    J.NECK: (9, 10, 11, 12),
    J.HEAD: (7, 8),
    J.SHOULDER_LEFT: (11,),
    J.ELBOW_LEFT: (13,),
    J.WRIST_LEFT: (15,),
    J.HAND_LEFT: (15, 17, 19),
    J.SHOULDER_RIGHT: (12,),
    J.ELBOW_RIGHT: (14,),
    J.WRIST_RIGHT: (16,),
    J.HAND_RIGHT: (16, 18, 20),
    J.HIP_LEFT: (23,),
    J.KNEE_LEFT: (25,),
    J.ANKLE_LEFT: (27,),
    J.FOOT_LEFT: (31,),
    J.HIP_RIGHT: (24,),
    J.KNEE_RIGHT: (26,),
    J.ANKLE_RIGHT: (28,),
    J.FOOT_RIGHT: (32,),
    J.SPINE_SHOULDER: (11, 12),
    J.HAND_TIP_LEFT: (19,),
    J.THUMB_LEFT: (21,),
    J.HAND_TIP_RIGHT: (20,),
    J.THUMB_RIGHT: (22,),
}


@dataclass(frozen=True)
class CaptureConfig:
    camera_index: int = 0
    assumed_depth_m: float = 2.5
    tracked_visibility: float = 0.7
    inferred_visibility: float = 0.3
    display_width: int = 512
    display_height: int = 424
    detector: PoseDetectorConfig = field(default_factory=PoseDetectorConfig)


def _state_for(visibility: float, cfg: CaptureConfig) -> TrackingState:
    if visibility >= cfg.tracked_visibility:
        return TrackingState.TRACKED
    if visibility >= cfg.inferred_visibility:
        return TrackingState.INFERRED
    return TrackingState.NOT_TRACKED


def _clipped_edges(image: np.ndarray, cfg: CaptureConfig) -> FrameEdge:
    visible = image[image[:, 3] >= cfg.inferred_visibility]
    edges = FrameEdge.NONE
    if visible.size == 0:
        return edges
    if np.any(visible[:, 0] < 0.0):
        edges |= FrameEdge.LEFT
    if np.any(visible[:, 0] > 1.0):
        edges |= FrameEdge.RIGHT
    if np.any(visible[:, 1] < 0.0):
        edges |= FrameEdge.TOP
    if np.any(visible[:, 1] > 1.0):
        edges |= FrameEdge.BOTTOM
    return edges


def body_from_pose(pose: DetectedPose, config: Optional[CaptureConfig] = None) -> Body:
    """把 MediaPipe 结果折算为一个 Body。

    输入: pose 为 DetectedPose；config 可选可见度阈值与假定深度。
    输出: is_tracked=True 的 Body；MediaPipe Pose 不区分手势，手部状态为 UNKNOWN。
    作用: 世界坐标 y 轴向下，这里翻转为向上并把 z 平移到相机前方。
    """
    cfg = config or CaptureConfig()
    body = Body(is_tracked=True)
    world = pose.world
    for jt, idxs in MEDIAPIPE_JOINTS.items():
        rows = world[list(idxs)]
        x, y, z = rows[:, :3].mean(axis=0)
        vis = float(rows[:, 3].min())
        body.set_joint(jt, (float(x), -float(y), cfg.assumed_depth_m + float(z)), _state_for(vis, cfg))
    body.hand_left_state = HandState.UNKNOWN
    body.hand_right_state = HandState.UNKNOWN
    body.clipped_edges = _clipped_edges(pose.image, cfg)
    return body


class CaptureThread(QThread):
    """后台采集线程：读帧、检测、把最新一帧放入 LatestFrameSlot。"""

    def __init__(self, cap: cv2.VideoCapture, slot: LatestFrameSlot, config: CaptureConfig, parent=None):
        super().__init__(parent)
        self._cap = cap
        self._slot = slot
        self._config = config
        # 在 start() 之前置位，stop() 可在 run() 开始前生效
        self.running = True
        self.failed = False

    def run(self) -> None:
        if not self.running:
            return
        detector = PoseDetector(self._config.detector)
        try:
            while self.running:
                ok, frame = self._cap.read()
                if not ok:
                    logger.warning("摄像头读帧失败，停止采集")
                    self.failed = True
                    break
                pose = detector.detect(frame)
                bodies = [body_from_pose(pose, self._config)] if pose is not None else []
                self._slot.put(BodyFrame(bodies))
                time.sleep(0.001)
        finally:
            detector.close()

    def stop(self) -> None:
        self.running = False
        self.wait()


class MediaPipeFrameSource(FrameSource):
    def __init__(self, config: Optional[CaptureConfig] = None):
        super().__init__()
        self._config = config or CaptureConfig()
        self._mapper = PinholeMapper(
            cx=self._config.display_width / 2.0,
            cy=self._config.display_height / 2.0,
        )
        self._slot = LatestFrameSlot()
        self._cap: Optional[cv2.VideoCapture] = None
        self._thread: Optional[CaptureThread] = None

    @property
    def display_size(self) -> tuple[int, int]:
        return self._config.display_width, self._config.display_height

    def map_point(self, x: float, y: float, z: float) -> tuple[float, float]:
        return self._mapper(x, y, z)

    def acquire_latest(self) -> Optional[BodyFrame]:
        # 可用性事件只在调用方（UI）线程上派发
        if self._thread is not None and self._thread.failed:
            self._set_available(False)
        return self._slot.take()

    def open(self) -> None:
        if self._cap is not None:
            return
        cap = cv2.VideoCapture(self._config.camera_index)
        if not cap.isOpened():
            cap.release()
            raise FrameSourceError(f"无法打开摄像头 {self._config.camera_index}")
        self._cap = cap
        self._thread = CaptureThread(cap, self._slot, self._config)
        self._thread.start()
        self._set_available(True)
        logger.info("摄像头 %d 已打开", self._config.camera_index)

    def close(self) -> None:
        if self._thread is not None:
            self._thread.stop()
            self._thread = None
        if self._cap is not None:
            self._cap.release()
            self._cap = None
            logger.info("摄像头已关闭")
        self._slot.clear()
        self._set_available(False)
