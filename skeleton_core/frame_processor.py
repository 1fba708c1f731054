from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .config import ProcessorConfig
from .frame_source import BodyFrame, FrameSource
from .projector import CoordinateMapper, JointProjector
from .proximity import ProximityClassifier
from .skeleton_graph import Bone, drawable_bones, drawable_joints
from .types import (
    Body,
    FrameEdge,
    HandState,
    JointType,
    PoseEvent,
    PoseName,
    ProjectedPoint,
    Tier,
    TrackingState,
)

logger = logging.getLogger(__name__)

# 需要绘制手部标记的手势状态
MARKED_HAND_STATES = (HandState.OPEN, HandState.CLOSED, HandState.LASSO)


@dataclass(frozen=True)
class ClipRect:
    edge: FrameEdge
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class BoneRender:
    bone: Bone
    tier: Tier
    start: ProjectedPoint
    end: ProjectedPoint


@dataclass(frozen=True)
class JointRender:
    joint_type: JointType
    tier: Tier
    point: ProjectedPoint


@dataclass(frozen=True)
class HandRender:
    joint_type: JointType
    state: HandState
    point: ProjectedPoint


@dataclass(frozen=True)
class BodyRender:
    slot: int
    color_index: int
    bones: tuple[BoneRender, ...]
    joints: tuple[JointRender, ...]
    hands: tuple[HandRender, ...]
    clipped_edges: FrameEdge
    poses: tuple[PoseEvent, ...]

    def detected(self, name: PoseName) -> bool:
        return any(p.name is name and p.detected for p in self.poses)

    def point_of(self, joint_type: JointType) -> Optional[ProjectedPoint]:
        for j in self.joints:
            if j.joint_type is joint_type:
                return j.point
        return None


@dataclass(frozen=True)
class RenderFrame:
    """一帧的渲染描述：背景清除 + 边缘提示 + 各人体的骨架/手部/姿态。"""

    width: int
    height: int
    clip_rects: tuple[ClipRect, ...]
    bodies: tuple[BodyRender, ...]

    @property
    def pose_events(self) -> tuple[PoseEvent, ...]:
        return tuple(p for b in self.bodies for p in b.poses)


def clip_rects_for(edges: FrameEdge, width: float, height: float, thickness: float) -> list[ClipRect]:
    """按裁切方向生成贴边矩形（顺序：下、上、左、右）。"""
    rects: list[ClipRect] = []
    if edges & FrameEdge.BOTTOM:
        rects.append(ClipRect(FrameEdge.BOTTOM, 0.0, height - thickness, width, thickness))
    if edges & FrameEdge.TOP:
        rects.append(ClipRect(FrameEdge.TOP, 0.0, 0.0, width, thickness))
    if edges & FrameEdge.LEFT:
        rects.append(ClipRect(FrameEdge.LEFT, 0.0, 0.0, thickness, height))
    if edges & FrameEdge.RIGHT:
        rects.append(ClipRect(FrameEdge.RIGHT, width - thickness, 0.0, thickness, height))
    return rects


def _point(projected: np.ndarray, jt: JointType) -> ProjectedPoint:
    return ProjectedPoint(float(projected[jt, 0]), float(projected[jt, 1]))


class FrameProcessor:
    """逐帧编排：刷新槽位 -> 投影 -> 骨架判定 -> 姿态判定 -> 渲染描述。

    除了复用的槽位存储与上一次输出外不保存任何跨帧状态。
    """

    def __init__(self, mapper: CoordinateMapper, config: Optional[ProcessorConfig] = None):
        self._config = config or ProcessorConfig()
        self._projector = JointProjector(mapper, self._config.projector)
        self._classifier = ProximityClassifier(self._config.classifier)
        self._slots: list[Body] = [Body() for _ in range(self._config.body_slots)]
        self._last: Optional[RenderFrame] = None
        self.frames_processed = 0
        self.frames_skipped = 0

    @property
    def config(self) -> ProcessorConfig:
        return self._config

    @property
    def slots(self) -> list[Body]:
        return self._slots

    @property
    def last_output(self) -> Optional[RenderFrame]:
        return self._last

    def process_latest(self, source: FrameSource) -> Optional[RenderFrame]:
        """从帧来源取最新帧并处理；没有新帧时返回上一次的输出。"""
        return self.process_frame(source.acquire_latest())

    def process_frame(self, frame: Optional[BodyFrame]) -> Optional[RenderFrame]:
        """处理一帧。

        输入: frame 可为 None（本拍无数据）。
        输出: RenderFrame；frame 为 None 时原样返回上一次的输出（可能为 None）。
        作用: 拷出人体数据后立即释放帧句柄，再在槽位数据上完成全部计算。
        """
        if frame is None:
            self.frames_skipped += 1
            logger.debug("本拍无新帧，沿用上一次输出")
            return self._last

        with frame:
            frame.refresh_bodies(self._slots)

        cfg = self._config
        w, h = cfg.display_width, cfg.display_height
        clip_rects: list[ClipRect] = []
        bodies: list[BodyRender] = []
        for slot, body in enumerate(self._slots):
            if not body.is_tracked:
                continue
            clip_rects.extend(clip_rects_for(body.clipped_edges, w, h, cfg.clip_thickness))
            bodies.append(self._process_body(slot, body))

        out = RenderFrame(width=w, height=h, clip_rects=tuple(clip_rects), bodies=tuple(bodies))
        self._last = out
        self.frames_processed += 1
        return out

    def _process_body(self, slot: int, body: Body) -> BodyRender:
        projected = self._projector.project_body(body)

        bones = tuple(
            BoneRender(bone, tier, _point(projected, bone[0]), _point(projected, bone[1]))
            for bone, tier in drawable_bones(body, projected)
        )
        joints = tuple(
            JointRender(jt, tier, _point(projected, jt))
            for jt, tier in drawable_joints(body, projected)
        )

        hands: list[HandRender] = []
        for jt, state in (
            (JointType.HAND_LEFT, body.hand_left_state),
            (JointType.HAND_RIGHT, body.hand_right_state),
        ):
            pt = _point(projected, jt)
            if (
                state in MARKED_HAND_STATES
                and body.state_of(jt) != TrackingState.NOT_TRACKED
                and pt.is_finite
            ):
                hands.append(HandRender(jt, HandState(state), pt))

        poses = tuple(self._classifier.classify(projected, body.states))
        return BodyRender(
            slot=slot,
            color_index=slot,
            bones=bones,
            joints=joints,
            hands=tuple(hands),
            clipped_edges=FrameEdge(body.clipped_edges),
            poses=poses,
        )
