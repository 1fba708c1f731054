from __future__ import annotations

from typing import Optional, Sequence, Union

import numpy as np

from .config import DEFAULT_TOUCH_THRESHOLD, ClassifierConfig, ProximityMetric
from .types import JointType, PoseEvent, PoseName, ProjectedPoint, TrackingState

# ProjectedPoint 或 (x, y, ...) 序列
PointLike = Union[ProjectedPoint, Sequence[float]]

# 姿态名 -> (关节 A, 关节 B)
POSE_LANDMARKS: dict[PoseName, tuple[JointType, JointType]] = {
    PoseName.RIGHT_HAND_ON_HEAD: (JointType.HAND_RIGHT, JointType.HEAD),
    PoseName.LEFT_HAND_ON_HEAD: (JointType.HAND_LEFT, JointType.HEAD),
    PoseName.LEFT_HAND_ON_HIP: (JointType.HAND_LEFT, JointType.HIP_LEFT),
    PoseName.RIGHT_HAND_ON_HIP: (JointType.HAND_RIGHT, JointType.HIP_RIGHT),
    PoseName.HANDS_TOGETHER: (JointType.HAND_LEFT, JointType.HAND_RIGHT),
}


def _xy(p: PointLike) -> tuple[float, float]:
    if isinstance(p, ProjectedPoint):
        return float(p.x), float(p.y)
    return float(p[0]), float(p[1])


def _distance(a: tuple[float, float], b: tuple[float, float], metric: ProximityMetric) -> float:
    dx = a[0] - b[0]
    dy = a[1] - b[1]
    if metric is ProximityMetric.EUCLIDEAN:
        return float(np.hypot(dx, dy))
    if metric is ProximityMetric.MANHATTAN:
        return abs(dx) + abs(dy)
    # 带符号的轴差之和，x、y 差值可以相互抵消
    return dx + dy


def touching(
    a: PointLike,
    b: PointLike,
    threshold: float = DEFAULT_TOUCH_THRESHOLD,
    metric: ProximityMetric = ProximityMetric.SIGNED_SUM,
) -> bool:
    """两点是否“接触”：|d| <= threshold（含边界）。

    输入: a/b 为 ProjectedPoint 或 (x,y) 显示空间坐标；threshold 阈值；metric 距离度量。
    输出: bool；任一坐标非有限时返回 False。
    """
    pa, pb = _xy(a), _xy(b)
    if not (np.all(np.isfinite(pa)) and np.all(np.isfinite(pb))):
        return False
    return abs(_distance(pa, pb, metric)) <= threshold


def vector_between(p1: PointLike, p2: PointLike) -> np.ndarray:
    (x1, y1), (x2, y2) = _xy(p1), _xy(p2)
    return np.array([x1 - x2, y1 - y2], dtype=np.float64)


def angle_between(v1: np.ndarray, v2: np.ndarray) -> float:
    """两向量夹角（弧度）；任一向量长度为 0 时返回 NaN。"""
    denom = float(np.linalg.norm(v1) * np.linalg.norm(v2))
    if denom <= 1e-9:
        return float("nan")
    cosv = float(np.clip(np.dot(v1, v2) / denom, -1.0, 1.0))
    return float(np.arccos(cosv))


class ProximityClassifier:
    """基于两关节距离的逐帧姿态判定，无跨帧状态。"""

    def __init__(self, config: Optional[ClassifierConfig] = None):
        self._config = config or ClassifierConfig()
        names = self._config.poses if self._config.poses is not None else tuple(POSE_LANDMARKS)
        self._poses: tuple[PoseName, ...] = tuple(names)

    @property
    def poses(self) -> tuple[PoseName, ...]:
        return self._poses

    def detect(self, name: PoseName, points: np.ndarray, states: np.ndarray) -> bool:
        ja, jb = POSE_LANDMARKS[name]
        if int(states[ja]) == TrackingState.NOT_TRACKED or int(states[jb]) == TrackingState.NOT_TRACKED:
            return False
        return touching(points[ja], points[jb], self._config.threshold, self._config.metric)

    def classify(self, points: np.ndarray, states: np.ndarray) -> list[PoseEvent]:
        """对一个人体计算全部已启用姿态。

        输入: points 为 (25,2) 投影缓存；states 为 (25,) 跟踪状态。
        输出: [PoseEvent, ...]，顺序与启用的姿态顺序一致。
        """
        return [PoseEvent(name, self.detect(name, points, states)) for name in self._poses]
