import itertools

import numpy as np
import pytest

from skeleton_core.skeleton_graph import BONES, drawable_bones, drawable_joints, tier_for
from skeleton_core.types import JointType, Tier, TrackingState

from body_factory import make_body

T = TrackingState


def test_bone_table_shape():
    assert len(BONES) == 24
    assert len(set(BONES)) == 24
    assert isinstance(BONES, tuple)
    joints_used = {j for bone in BONES for j in bone}
    assert joints_used == set(JointType)


@pytest.mark.parametrize("s0,s1", list(itertools.product(TrackingState, repeat=2)))
def test_tier_rule(s0, s1):
    tier = tier_for(s0, s1)
    if T.NOT_TRACKED in (s0, s1):
        assert tier is None
    elif s0 == s1 == T.TRACKED:
        assert tier is Tier.CONFIRMED
    else:
        assert tier is Tier.INFERRED


def test_fully_tracked_body_has_all_bones_confirmed():
    bones = drawable_bones(make_body())
    assert [b for b, _ in bones] == list(BONES)
    assert all(t is Tier.CONFIRMED for _, t in bones)


def test_not_tracked_joint_never_drawn():
    body = make_body(overrides={JointType.ELBOW_LEFT: ((0, 0, 1), T.NOT_TRACKED)})
    bones = drawable_bones(body)
    assert all(JointType.ELBOW_LEFT not in bone for bone, _ in bones)
    assert len(bones) == 22
    assert JointType.ELBOW_LEFT not in [jt for jt, _ in drawable_joints(body)]


def test_inferred_endpoint_downgrades_bone():
    body = make_body(overrides={JointType.WRIST_RIGHT: ((0, 0, 1), T.INFERRED)})
    tiers = dict(drawable_bones(body))
    assert tiers[(JointType.ELBOW_RIGHT, JointType.WRIST_RIGHT)] is Tier.INFERRED
    assert tiers[(JointType.WRIST_RIGHT, JointType.HAND_RIGHT)] is Tier.INFERRED
    assert tiers[(JointType.WRIST_RIGHT, JointType.THUMB_RIGHT)] is Tier.INFERRED
    assert tiers[(JointType.HEAD, JointType.NECK)] is Tier.CONFIRMED


def test_joint_tiers():
    body = make_body(
        overrides={
            JointType.HEAD: ((0, 0, 1), T.INFERRED),
            JointType.FOOT_LEFT: ((0, 0, 1), T.NOT_TRACKED),
        }
    )
    tiers = dict(drawable_joints(body))
    assert tiers[JointType.HEAD] is Tier.INFERRED
    assert tiers[JointType.NECK] is Tier.CONFIRMED
    assert JointType.FOOT_LEFT not in tiers
    assert len(tiers) == 24


def test_all_not_tracked_body_draws_nothing():
    body = make_body(state=T.NOT_TRACKED)
    assert drawable_bones(body) == []
    assert drawable_joints(body) == []


def test_non_finite_projection_excludes_joint_and_bones():
    body = make_body()
    projected = np.zeros((25, 2))
    projected[JointType.KNEE_RIGHT] = np.nan
    bones = drawable_bones(body, projected)
    assert all(JointType.KNEE_RIGHT not in bone for bone, _ in bones)
    assert JointType.KNEE_RIGHT not in [jt for jt, _ in drawable_joints(body, projected)]


def test_graph_queries_do_not_mutate_bone_table():
    before = tuple(BONES)
    drawable_bones(make_body(state=T.INFERRED))
    assert BONES == before
