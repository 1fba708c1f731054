from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence

import numpy as np

from .config import ProjectorConfig
from .types import JOINT_COUNT, Body, JointType, ProjectedPoint

logger = logging.getLogger(__name__)

# map3Dto2D(x, y, z) -> (x, y)，由外部传感器提供
CoordinateMapper = Callable[[float, float, float], Sequence[float]]

_NAN_POINT = ProjectedPoint(float("nan"), float("nan"))


def clamp_z(z: float, z_clamp: float) -> float:
    """z < 0 时返回 z_clamp，否则原样返回。"""
    if z < 0:
        return z_clamp
    return z


class JointProjector:
    """把传感器空间的三维关节坐标映射到二维显示空间。"""

    def __init__(self, mapper: CoordinateMapper, config: Optional[ProjectorConfig] = None):
        self._mapper = mapper
        self._config = config or ProjectorConfig()

    @property
    def z_clamp(self) -> float:
        return self._config.z_clamp

    def project(self, position: Sequence[float]) -> ProjectedPoint:
        """投影单个点。

        输入: position 为 (x,y,z) 传感器坐标。
        输出: ProjectedPoint；映射失败或结果非有限时返回 (nan, nan)。
        作用: 先钳制负深度再调用外部映射函数，不做重试。
        """
        x, y, z = (float(v) for v in position)
        z = clamp_z(z, self._config.z_clamp)
        try:
            px, py = self._mapper(x, y, z)
        except (ArithmeticError, ValueError) as e:
            logger.warning("坐标映射失败 (%.3f, %.3f, %.3f): %s", x, y, z, e)
            return _NAN_POINT
        pt = ProjectedPoint(float(px), float(py))
        if not pt.is_finite:
            logger.debug("坐标映射得到非有限值 (%.3f, %.3f, %.3f)", x, y, z)
            return _NAN_POINT
        return pt

    def project_body(self, body: Body) -> np.ndarray:
        """投影一个人体的全部关节。

        输出: (25,2) 的 numpy.ndarray，按 JointType 序号索引；无法投影的关节为 NaN。
        """
        out = np.full((JOINT_COUNT, 2), np.nan, dtype=np.float64)
        for jt in JointType:
            pt = self.project(body.positions[jt])
            out[jt, 0] = pt.x
            out[jt, 1] = pt.y
        return out
