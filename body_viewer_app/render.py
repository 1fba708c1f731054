from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import cv2
import numpy as np

from skeleton_core.frame_processor import BodyRender, RenderFrame
from skeleton_core.types import HandState, JointType, PoseName, ProjectedPoint, Tier

# 颜色均为 BGR
BgrColor = tuple[int, int, int]


def _default_body_colors() -> tuple[BgrColor, ...]:
    return (
        (0, 0, 255),  # red
        (0, 165, 255),  # orange
        (0, 128, 0),  # green
        (255, 0, 0),  # blue
        (130, 0, 75),  # indigo
        (238, 130, 238),  # violet
    )


@dataclass(frozen=True)
class RenderStyle:
    hand_radius: int = 30
    joint_radius: int = 3
    highlight_radius: int = 20
    body_thickness: int = 6
    inferred_bone_thickness: int = 1
    body_colors: tuple[BgrColor, ...] = field(default_factory=_default_body_colors)
    background: BgrColor = (0, 0, 0)
    clip_color: BgrColor = (0, 0, 255)
    tracked_joint_color: BgrColor = (68, 192, 68)
    inferred_joint_color: BgrColor = (0, 255, 255)
    inferred_bone_color: BgrColor = (128, 128, 128)
    highlight_color: BgrColor = (255, 0, 0)
    # 手部标记为半透明
    hand_alpha: float = 128 / 255
    hand_colors: dict = field(
        default_factory=lambda: {
            HandState.CLOSED: (0, 0, 255),
            HandState.OPEN: (0, 255, 0),
            HandState.LASSO: (255, 0, 0),
        }
    )


# 姿态命中时在哪个关节上画高亮圆
POSE_HIGHLIGHTS: dict[PoseName, JointType] = {
    PoseName.HANDS_TOGETHER: JointType.HAND_RIGHT,
    PoseName.RIGHT_HAND_ON_HEAD: JointType.HAND_LEFT,
}


# 画布外保留的绘制余量（像素），须大于任何圆的半径
CANVAS_MARGIN = 1024

# (x_min, y_min, x_max, y_max)
Bounds = tuple[float, float, float, float]


def _bounds(canvas: np.ndarray) -> Bounds:
    h, w = canvas.shape[:2]
    return (-CANVAS_MARGIN, -CANVAS_MARGIN, w + CANVAS_MARGIN, h + CANVAS_MARGIN)


def _px(pt: ProjectedPoint, bounds: Bounds) -> tuple[int, int]:
    """投影点 -> OpenCV 整数像素坐标，先夹到 bounds 内，避免超大坐标让 cv2 报错。"""
    x = min(max(pt.x, bounds[0]), bounds[2])
    y = min(max(pt.y, bounds[1]), bounds[3])
    return int(round(x)), int(round(y))


def _segment(
    start: ProjectedPoint, end: ProjectedPoint, bounds: Bounds
) -> Optional[tuple[tuple[int, int], tuple[int, int]]]:
    """把线段裁剪到 bounds 内（Liang-Barsky），保持方向不变；完全在外时返回 None。"""
    x0, y0 = start.x, start.y
    dx, dy = end.x - x0, end.y - y0
    t0, t1 = 0.0, 1.0
    for p, q in (
        (-dx, x0 - bounds[0]),
        (dx, bounds[2] - x0),
        (-dy, y0 - bounds[1]),
        (dy, bounds[3] - y0),
    ):
        if p == 0:
            if q < 0:
                return None
            continue
        r = q / p
        if p < 0:
            if r > t1:
                return None
            t0 = max(t0, r)
        else:
            if r < t0:
                return None
            t1 = min(t1, r)
    a = ProjectedPoint(x0 + t0 * dx, y0 + t0 * dy)
    b = ProjectedPoint(x0 + t1 * dx, y0 + t1 * dy)
    return _px(a, bounds), _px(b, bounds)


def _draw_body(canvas: np.ndarray, body: BodyRender, style: RenderStyle) -> None:
    color = style.body_colors[body.color_index % len(style.body_colors)]
    bounds = _bounds(canvas)

    for b in body.bones:
        seg = _segment(b.start, b.end, bounds)
        if seg is None:
            continue
        if b.tier is Tier.CONFIRMED:
            cv2.line(canvas, seg[0], seg[1], color, style.body_thickness)
        else:
            cv2.line(canvas, seg[0], seg[1], style.inferred_bone_color, style.inferred_bone_thickness)

    for j in body.joints:
        c = style.tracked_joint_color if j.tier is Tier.CONFIRMED else style.inferred_joint_color
        cv2.circle(canvas, _px(j.point, bounds), style.joint_radius, c, -1)

    for hand in body.hands:
        overlay = canvas.copy()
        cv2.circle(overlay, _px(hand.point, bounds), style.hand_radius, style.hand_colors[hand.state], -1)
        cv2.addWeighted(overlay, style.hand_alpha, canvas, 1.0 - style.hand_alpha, 0, dst=canvas)

    for name, jt in POSE_HIGHLIGHTS.items():
        if not body.detected(name):
            continue
        pt = body.point_of(jt)
        if pt is None:
            continue
        cv2.circle(canvas, _px(pt, bounds), style.highlight_radius, style.highlight_color, -1)


def render_frame(frame: RenderFrame, style: Optional[RenderStyle] = None) -> np.ndarray:
    """把渲染描述画成 BGR 图像。

    输入: frame 为 FrameProcessor 的输出；style 可选绘制样式。
    输出: (height,width,3) uint8 的 numpy 图像。
    作用: 黑色背景 -> 边缘裁切提示 -> 按槽位顺序画骨骼、关节、手部与姿态高亮。
    """
    st = style or RenderStyle()
    canvas = np.empty((frame.height, frame.width, 3), dtype=np.uint8)
    canvas[:] = st.background

    for r in frame.clip_rects:
        x0, y0 = int(r.x), int(r.y)
        x1, y1 = int(r.x + r.width) - 1, int(r.y + r.height) - 1
        cv2.rectangle(canvas, (x0, y0), (x1, y1), st.clip_color, -1)

    for body in frame.bodies:
        _draw_body(canvas, body, st)
    return canvas
