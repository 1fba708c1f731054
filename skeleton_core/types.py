from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum, IntFlag

import numpy as np


class JointType(IntEnum):
    """25 个骨架关节点，数值即传感器的关节序号（用作数组下标）。"""

    SPINE_BASE = 0
    SPINE_MID = 1
    NECK = 2
    HEAD = 3
    SHOULDER_LEFT = 4
    ELBOW_LEFT = 5
    WRIST_LEFT = 6
    HAND_LEFT = 7
    SHOULDER_RIGHT = 8
    ELBOW_RIGHT = 9
    WRIST_RIGHT = 10
    HAND_RIGHT = 11
    HIP_LEFT = 12
    KNEE_LEFT = 13
    ANKLE_LEFT = 14
    FOOT_LEFT = 15
    HIP_RIGHT = 16
    KNEE_RIGHT = 17
    ANKLE_RIGHT = 18
    FOOT_RIGHT = 19
    SPINE_SHOULDER = 20
    HAND_TIP_LEFT = 21
    THUMB_LEFT = 22
    HAND_TIP_RIGHT = 23
    THUMB_RIGHT = 24


JOINT_COUNT = len(JointType)


class TrackingState(IntEnum):
    # 置信度顺序：NOT_TRACKED < INFERRED < TRACKED
    NOT_TRACKED = 0
    INFERRED = 1
    TRACKED = 2


class HandState(IntEnum):
    UNKNOWN = 0
    NOT_TRACKED = 1
    OPEN = 2
    CLOSED = 3
    LASSO = 4


class FrameEdge(IntFlag):
    NONE = 0
    RIGHT = 1
    LEFT = 2
    TOP = 4
    BOTTOM = 8


class Tier(Enum):
    """骨骼/关节的绘制置信等级。"""

    CONFIRMED = "confirmed"
    INFERRED = "inferred"


class PoseName(Enum):
    RIGHT_HAND_ON_HEAD = "RightHandOnHead"
    LEFT_HAND_ON_HEAD = "LeftHandOnHead"
    LEFT_HAND_ON_HIP = "LeftHandOnHip"
    RIGHT_HAND_ON_HIP = "RightHandOnHip"
    HANDS_TOGETHER = "HandsTogether"


@dataclass(frozen=True)
class Joint:
    joint_type: JointType
    position: tuple[float, float, float]
    state: TrackingState


@dataclass(frozen=True)
class ProjectedPoint:
    """显示空间中的二维点（像素坐标）。"""

    x: float
    y: float

    @property
    def is_finite(self) -> bool:
        return bool(np.isfinite(self.x) and np.isfinite(self.y))


@dataclass(frozen=True)
class PoseEvent:
    name: PoseName
    detected: bool


def _empty_positions() -> np.ndarray:
    return np.zeros((JOINT_COUNT, 3), dtype=np.float64)


def _empty_states() -> np.ndarray:
    return np.zeros((JOINT_COUNT,), dtype=np.int8)


@dataclass
class Body:
    """单帧中的一个人体槽位。

    属性:
    - positions: numpy.ndarray，形状 (25,3)，传感器空间 x,y,z（米），按 JointType 序号索引。
    - states: numpy.ndarray，形状 (25,)，每个关节的 TrackingState 数值。
    - hand_left_state / hand_right_state: 左右手状态。
    - clipped_edges: 人体被画面边缘裁切的方向。

    每个 JointType 总有一行数据（不会出现残缺骨架）；未跟踪的关节用 NOT_TRACKED 表示。
    """

    is_tracked: bool = False
    positions: np.ndarray = field(default_factory=_empty_positions)
    states: np.ndarray = field(default_factory=_empty_states)
    hand_left_state: HandState = HandState.UNKNOWN
    hand_right_state: HandState = HandState.UNKNOWN
    clipped_edges: FrameEdge = FrameEdge.NONE

    def __post_init__(self) -> None:
        self.positions = np.asarray(self.positions, dtype=np.float64).reshape(JOINT_COUNT, 3)
        self.states = np.asarray(self.states, dtype=np.int8).reshape(JOINT_COUNT)

    def state_of(self, joint_type: JointType) -> TrackingState:
        return TrackingState(int(self.states[joint_type]))

    def joint(self, joint_type: JointType) -> Joint:
        x, y, z = (float(v) for v in self.positions[joint_type])
        return Joint(joint_type=joint_type, position=(x, y, z), state=self.state_of(joint_type))

    def joints(self) -> list[Joint]:
        return [self.joint(jt) for jt in JointType]

    def set_joint(
        self,
        joint_type: JointType,
        position: tuple[float, float, float],
        state: TrackingState = TrackingState.TRACKED,
    ) -> None:
        self.positions[joint_type] = position
        self.states[joint_type] = int(state)

    def reset(self) -> None:
        """原地清空槽位（保留数组存储）。"""
        self.is_tracked = False
        self.positions.fill(0.0)
        self.states.fill(int(TrackingState.NOT_TRACKED))
        self.hand_left_state = HandState.UNKNOWN
        self.hand_right_state = HandState.UNKNOWN
        self.clipped_edges = FrameEdge.NONE

    def copy_from(self, other: "Body") -> None:
        """用 other 的内容覆盖本槽位，不重新分配数组。"""
        self.is_tracked = bool(other.is_tracked)
        np.copyto(self.positions, other.positions)
        np.copyto(self.states, other.states)
        self.hand_left_state = HandState(other.hand_left_state)
        self.hand_right_state = HandState(other.hand_right_state)
        self.clipped_edges = FrameEdge(other.clipped_edges)
