from __future__ import annotations

from typing import Protocol

import numpy as np

from skeleton_core.types import PoseName


class SkeletonView(Protocol):
    """骨架视图接口：控制器通过该协议调用视图更新。"""
    def set_status(self, message: str, timeout_ms: int = 0) -> None:
        """更新状态栏。输入: 文本与超时毫秒（0 表示常驻）。输出: 无。"""
        ...

    def show_error(self, title: str, message: str) -> None:
        """显示错误弹窗。输入: 标题与内容。输出: 无。"""
        ...

    def set_frame_image(self, frame_bgr: np.ndarray) -> None:
        """更新骨架画面。输入: (h,w,3) BGR 图像。输出: 无。"""
        ...

    def set_poses(self, detected: list[PoseName]) -> None:
        """显示本帧命中的姿态。输入: 姿态名列表（可为空）。"""
        ...
