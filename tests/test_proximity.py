import math

import numpy as np
import pytest

from skeleton_core.config import ClassifierConfig, ConfigError, ProximityMetric
from skeleton_core.projector import JointProjector
from skeleton_core.proximity import (
    POSE_LANDMARKS,
    ProximityClassifier,
    angle_between,
    touching,
    vector_between,
)
from skeleton_core.types import JointType, PoseName, ProjectedPoint, TrackingState

from body_factory import identity_mapper, make_body


def _classify(body, config=None):
    points = JointProjector(identity_mapper).project_body(body)
    events = ProximityClassifier(config).classify(points, body.states)
    return {e.name: e.detected for e in events}


def test_same_point_touches():
    assert touching((100.0, 100.0), (100.0, 100.0), 0.25)


def test_threshold_is_inclusive():
    assert touching((100.25, 100.0), (100.0, 100.0), 0.25)
    assert touching((0.0, 100.0), (0.0, 100.25), 0.25)


def test_just_over_threshold_is_not_touching():
    over = float(np.nextafter(0.25, 1.0))
    assert not touching((over, 0.0), (0.0, 0.0), 0.25)
    assert not touching((0.0, 0.0), (0.26, 0.0), 0.25)


@pytest.mark.parametrize(
    "a,b,t",
    [
        ((1.0, 2.0), (1.1, 2.05), 0.25),
        ((5.0, -3.0), (4.0, 7.0), 10.0),
        ((0.3, 0.0), (0.0, 0.0), 0.25),
        ((-2.5, 8.0), (3.0, 1.0), 0.0),
    ],
)
@pytest.mark.parametrize("metric", list(ProximityMetric))
def test_touching_is_symmetric(a, b, t, metric):
    assert touching(a, b, t, metric) == touching(b, a, t, metric)


def test_signed_sum_cancellation_is_preserved():
    # x 差 +50，y 差 -50：原公式得到 d = 0，判定为接触
    a, b = (150.0, 100.0), (100.0, 150.0)
    assert touching(a, b, 0.25)
    assert touching(a, b, 0.25, ProximityMetric.SIGNED_SUM)


def test_corrected_metrics_reject_cancellation():
    a, b = (150.0, 100.0), (100.0, 150.0)
    assert not touching(a, b, 0.25, ProximityMetric.EUCLIDEAN)
    assert not touching(a, b, 0.25, ProximityMetric.MANHATTAN)


def test_metrics_differ_on_diagonal_offset():
    a, b = (0.15, 0.15), (0.0, 0.0)
    assert not touching(a, b, 0.25, ProximityMetric.SIGNED_SUM)  # 0.30
    assert not touching(a, b, 0.25, ProximityMetric.MANHATTAN)  # 0.30
    assert touching(a, b, 0.25, ProximityMetric.EUCLIDEAN)  # ~0.212


def test_non_finite_point_never_touches():
    assert not touching((float("nan"), 0.0), (0.0, 0.0), 0.25)
    assert not touching((0.0, 0.0), (float("inf"), 0.0), 1e9)


def test_pose_table():
    assert POSE_LANDMARKS == {
        PoseName.RIGHT_HAND_ON_HEAD: (JointType.HAND_RIGHT, JointType.HEAD),
        PoseName.LEFT_HAND_ON_HEAD: (JointType.HAND_LEFT, JointType.HEAD),
        PoseName.LEFT_HAND_ON_HIP: (JointType.HAND_LEFT, JointType.HIP_LEFT),
        PoseName.RIGHT_HAND_ON_HIP: (JointType.HAND_RIGHT, JointType.HIP_RIGHT),
        PoseName.HANDS_TOGETHER: (JointType.HAND_LEFT, JointType.HAND_RIGHT),
    }


def test_hands_together_scenario():
    body = make_body(
        overrides={
            JointType.HAND_LEFT: ((100.0, 100.0, 2.0), TrackingState.TRACKED),
            JointType.HAND_RIGHT: ((100.0, 100.0, 2.0), TrackingState.TRACKED),
        }
    )
    result = _classify(body)
    assert result[PoseName.HANDS_TOGETHER] is True
    assert result[PoseName.RIGHT_HAND_ON_HEAD] is False


@pytest.mark.parametrize("head", [(0.0, 0.0, 2.0), (30.0, 21.0, 2.0), (123.0, -4.0, 1.0)])
def test_not_tracked_hand_never_on_head(head):
    body = make_body(
        overrides={
            JointType.HAND_RIGHT: (head, TrackingState.NOT_TRACKED),
            JointType.HEAD: (head, TrackingState.TRACKED),
        }
    )
    assert _classify(body)[PoseName.RIGHT_HAND_ON_HEAD] is False


def test_inferred_joints_still_classified():
    body = make_body(
        overrides={
            JointType.HAND_LEFT: ((40.0, 40.0, 2.0), TrackingState.INFERRED),
            JointType.HIP_LEFT: ((40.1, 40.0, 2.0), TrackingState.TRACKED),
        }
    )
    assert _classify(body)[PoseName.LEFT_HAND_ON_HIP] is True


def test_nan_projection_is_not_classified():
    points = np.full((25, 2), np.nan)
    states = np.full((25,), int(TrackingState.TRACKED), dtype=np.int8)
    events = ProximityClassifier().classify(points, states)
    assert [e.detected for e in events] == [False] * 5


def test_each_pose_evaluated_independently():
    body = make_body(
        overrides={
            JointType.HAND_RIGHT: ((10.0, 10.0, 2.0), TrackingState.TRACKED),
            JointType.HEAD: ((10.0, 10.0, 2.0), TrackingState.TRACKED),
            JointType.HAND_LEFT: ((60.0, 60.0, 2.0), TrackingState.TRACKED),
            JointType.HIP_LEFT: ((60.0, 60.1, 2.0), TrackingState.TRACKED),
        }
    )
    result = _classify(body)
    assert result == {
        PoseName.RIGHT_HAND_ON_HEAD: True,
        PoseName.LEFT_HAND_ON_HEAD: False,
        PoseName.LEFT_HAND_ON_HIP: True,
        PoseName.RIGHT_HAND_ON_HIP: False,
        PoseName.HANDS_TOGETHER: False,
    }


def test_configured_pose_subset_and_threshold():
    cfg = ClassifierConfig(threshold=5.0, poses=(PoseName.HANDS_TOGETHER,))
    body = make_body(
        overrides={
            JointType.HAND_LEFT: ((0.0, 0.0, 2.0), TrackingState.TRACKED),
            JointType.HAND_RIGHT: ((3.0, 1.0, 2.0), TrackingState.TRACKED),
        }
    )
    assert _classify(body, cfg) == {PoseName.HANDS_TOGETHER: True}


def test_negative_threshold_rejected():
    with pytest.raises(ConfigError):
        ClassifierConfig(threshold=-0.1)


def test_angle_between_vectors():
    v1 = vector_between((1.0, 0.0), (0.0, 0.0))
    v2 = vector_between((0.0, 2.0), (0.0, 0.0))
    assert angle_between(v1, v2) == pytest.approx(math.pi / 2)
    assert angle_between(v1, v1) == pytest.approx(0.0)


def test_angle_between_zero_vector_is_nan():
    zero = vector_between((3.0, 4.0), (3.0, 4.0))
    assert math.isnan(angle_between(zero, np.array([1.0, 0.0])))


def test_touching_accepts_projected_points():
    projector = JointProjector(identity_mapper)
    a = projector.project((100.0, 100.0, 2.0))
    assert touching(a, ProjectedPoint(100.0, 100.0), 0.25)
    assert touching(a, ProjectedPoint(100.0, 100.25))
    assert not touching(a, ProjectedPoint(100.0, 101.0))


def test_touching_projected_point_not_finite():
    assert not touching(ProjectedPoint(float("nan"), float("nan")), ProjectedPoint(0.0, 0.0))


def test_vector_between_projected_points():
    v = vector_between(ProjectedPoint(3.0, 4.0), ProjectedPoint(1.0, 1.0))
    assert v.tolist() == [2.0, 3.0]
