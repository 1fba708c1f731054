from __future__ import annotations

from typing import Optional

from skeleton_core.types import Body, FrameEdge, HandState, JointType, TrackingState


def identity_mapper(x: float, y: float, z: float) -> tuple[float, float]:
    """测试用映射：直接取 (x, y)，便于在显示空间里摆放关节。"""
    return x, y


def make_body(
    state: TrackingState = TrackingState.TRACKED,
    overrides: Optional[dict[JointType, tuple[tuple[float, float, float], TrackingState]]] = None,
    hand_left: HandState = HandState.UNKNOWN,
    hand_right: HandState = HandState.UNKNOWN,
    clipped: FrameEdge = FrameEdge.NONE,
) -> Body:
    """所有关节分散摆放（两两之间轴差之和为 17 的倍数，互不接触），再按 overrides 覆盖。"""
    body = Body(is_tracked=True, hand_left_state=hand_left, hand_right_state=hand_right, clipped_edges=clipped)
    for jt in JointType:
        body.set_joint(jt, (float(jt) * 10.0, float(jt) * 7.0, 2.0), state)
    for jt, (pos, st) in (overrides or {}).items():
        body.set_joint(jt, pos, st)
    return body
