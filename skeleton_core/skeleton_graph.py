"""骨架拓扑（骨骼连接）与可绘制性判定。

BONES 为静态常量，运行期不修改；判定只依赖当前帧各关节的 TrackingState。
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from .types import Body, JointType, Tier, TrackingState

J = JointType

Bone = tuple[JointType, JointType]

# 连接对 (a, b)
BONES: tuple[Bone, ...] = (
    # torso
    (J.HEAD, J.NECK),
    (J.NECK, J.SPINE_SHOULDER),
    (J.SPINE_SHOULDER, J.SPINE_MID),
    (J.SPINE_MID, J.SPINE_BASE),
    (J.SPINE_SHOULDER, J.SHOULDER_RIGHT),
    (J.SPINE_SHOULDER, J.SHOULDER_LEFT),
    (J.SPINE_BASE, J.HIP_RIGHT),
    (J.SPINE_BASE, J.HIP_LEFT),
    # right arm
    (J.SHOULDER_RIGHT, J.ELBOW_RIGHT),
    (J.ELBOW_RIGHT, J.WRIST_RIGHT),
    (J.WRIST_RIGHT, J.HAND_RIGHT),
    (J.HAND_RIGHT, J.HAND_TIP_RIGHT),
    (J.WRIST_RIGHT, J.THUMB_RIGHT),
    # left arm
    (J.SHOULDER_LEFT, J.ELBOW_LEFT),
    (J.ELBOW_LEFT, J.WRIST_LEFT),
    (J.WRIST_LEFT, J.HAND_LEFT),
    (J.HAND_LEFT, J.HAND_TIP_LEFT),
    (J.WRIST_LEFT, J.THUMB_LEFT),
    # right leg
    (J.HIP_RIGHT, J.KNEE_RIGHT),
    (J.KNEE_RIGHT, J.ANKLE_RIGHT),
    (J.ANKLE_RIGHT, J.FOOT_RIGHT),
    # left leg
    (J.HIP_LEFT, J.KNEE_LEFT),
    (J.KNEE_LEFT, J.ANKLE_LEFT),
    (J.ANKLE_LEFT, J.FOOT_LEFT),
)


def tier_for(*states: TrackingState) -> Optional[Tier]:
    """任一 NOT_TRACKED 返回 None；全部 TRACKED 为 CONFIRMED；其余为 INFERRED。"""
    if any(s == TrackingState.NOT_TRACKED for s in states):
        return None
    if all(s == TrackingState.TRACKED for s in states):
        return Tier.CONFIRMED
    return Tier.INFERRED


def _finite(projected: Optional[np.ndarray], jt: JointType) -> bool:
    if projected is None:
        return True
    return bool(np.all(np.isfinite(projected[jt])))


def drawable_bones(body: Body, projected: Optional[np.ndarray] = None) -> list[tuple[Bone, Tier]]:
    """返回本帧可绘制的骨骼及其置信等级。

    输入: body 当前人体；projected 可选 (25,2) 投影缓存，非有限的端点会使骨骼不可绘制。
    输出: [(bone, tier), ...]，顺序与 BONES 一致。
    """
    out: list[tuple[Bone, Tier]] = []
    for bone in BONES:
        j0, j1 = bone
        tier = tier_for(body.state_of(j0), body.state_of(j1))
        if tier is None:
            continue
        if not (_finite(projected, j0) and _finite(projected, j1)):
            continue
        out.append((bone, tier))
    return out


def drawable_joints(body: Body, projected: Optional[np.ndarray] = None) -> list[tuple[JointType, Tier]]:
    """返回本帧可绘制的关节点及其置信等级（NOT_TRACKED 永不绘制）。"""
    out: list[tuple[JointType, Tier]] = []
    for jt in JointType:
        tier = tier_for(body.state_of(jt))
        if tier is None or not _finite(projected, jt):
            continue
        out.append((jt, tier))
    return out
