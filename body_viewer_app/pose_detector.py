from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np


@dataclass(frozen=True)
class PoseDetectorConfig:
    model_complexity: int = 1
    min_detection_confidence: float = 0.5
    min_tracking_confidence: float = 0.5


@dataclass(frozen=True)
class DetectedPose:
    """单帧 MediaPipe 结果。

    属性:
    - image: (33,4) 归一化图像坐标 x,y,z,visibility。
    - world: (33,4) 以髋部中心为原点的世界坐标（米）x,y,z,visibility。
    """

    image: np.ndarray
    world: np.ndarray


def _to_array(landmarks) -> np.ndarray:
    data = np.zeros((33, 4), dtype=np.float32)
    for i in range(33):
        data[i, 0] = landmarks[i].x
        data[i, 1] = landmarks[i].y
        data[i, 2] = landmarks[i].z
        data[i, 3] = landmarks[i].visibility
    return data


class PoseDetector:
    """MediaPipe Pose 的薄封装。只暴露 numpy 关键点，不暴露 MediaPipe 对象。"""

    def __init__(self, config: Optional[PoseDetectorConfig] = None):
        self._config = config or PoseDetectorConfig()
        # 延迟导入，避免没有安装 mediapipe 时 import 直接炸
        import mediapipe as mp

        self._pose = mp.solutions.pose.Pose(
            static_image_mode=False,
            model_complexity=self._config.model_complexity,
            enable_segmentation=False,
            smooth_landmarks=False,
            min_detection_confidence=self._config.min_detection_confidence,
            min_tracking_confidence=self._config.min_tracking_confidence,
        )

    def detect(self, frame_bgr: np.ndarray) -> Optional[DetectedPose]:
        """对单帧 BGR 图像做姿态检测；未检测到人体或输入无效时返回 None。"""
        if frame_bgr is None or frame_bgr.size == 0:
            return None

        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        result = self._pose.process(frame_rgb)
        if result.pose_landmarks is None or result.pose_world_landmarks is None:
            return None
        return DetectedPose(
            image=_to_array(result.pose_landmarks.landmark),
            world=_to_array(result.pose_world_landmarks.landmark),
        )

    def close(self) -> None:
        self._pose.close()
