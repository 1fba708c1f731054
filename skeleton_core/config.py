from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .types import PoseName


# 推断关节的深度可能为负，投影前将 z 钳到该值
INFERRED_Z_CLAMP = 0.1

# 默认显示空间（深度图分辨率）
DEFAULT_DISPLAY_WIDTH = 512
DEFAULT_DISPLAY_HEIGHT = 424

DEFAULT_TOUCH_THRESHOLD = 0.25
DEFAULT_BODY_SLOTS = 6


class ConfigError(ValueError):
    pass


class ProximityMetric(Enum):
    # SIGNED_SUM: d = (ax-bx) + (ay-by)，可能相互抵消，为兼容旧行为保留为默认
    SIGNED_SUM = "signed_sum"
    EUCLIDEAN = "euclidean"
    MANHATTAN = "manhattan"


@dataclass(frozen=True)
class ProjectorConfig:
    z_clamp: float = INFERRED_Z_CLAMP

    def __post_init__(self) -> None:
        if not self.z_clamp > 0:
            raise ConfigError(f"z_clamp 必须为正数：{self.z_clamp}")


@dataclass(frozen=True)
class ClassifierConfig:
    threshold: float = DEFAULT_TOUCH_THRESHOLD
    metric: ProximityMetric = ProximityMetric.SIGNED_SUM
    # None 表示启用全部姿态
    poses: Optional[tuple[PoseName, ...]] = None

    def __post_init__(self) -> None:
        if self.threshold < 0:
            raise ConfigError(f"threshold 不能为负数：{self.threshold}")


@dataclass(frozen=True)
class ProcessorConfig:
    """帧处理器配置。

    属性:
    - display_width / display_height: 显示空间尺寸（像素）。
    - body_slots: 人体槽位数量（由传感器能力决定）。
    - clip_thickness: 边缘裁切提示条的厚度（像素）。
    """

    display_width: int = DEFAULT_DISPLAY_WIDTH
    display_height: int = DEFAULT_DISPLAY_HEIGHT
    body_slots: int = DEFAULT_BODY_SLOTS
    clip_thickness: float = 10.0
    projector: ProjectorConfig = field(default_factory=ProjectorConfig)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)

    def __post_init__(self) -> None:
        if self.display_width <= 0 or self.display_height <= 0:
            raise ConfigError(
                f"显示尺寸无效：{self.display_width}x{self.display_height}"
            )
        if self.body_slots <= 0:
            raise ConfigError(f"body_slots 必须大于 0：{self.body_slots}")
        if self.clip_thickness < 0:
            raise ConfigError(f"clip_thickness 不能为负数：{self.clip_thickness}")
