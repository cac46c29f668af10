import math

import numpy as np
import pytest
from numpy.testing import assert_allclose
from scipy.spatial.transform import Rotation

from motionsim.parameters import BoneParameters, LegParameters, SimulationParameters
from motionsim.signals import ParametricFactor
from motionsim import skeleton as skeleton_module
from motionsim.skeleton import ANIMATED_BONES, BONE_NAMES, UNIT_Y, Bone, Legs, Skeleton, euler_rotation, squash

UNIT_X = np.array([1.0, 0.0, 0.0])


def _same_rotation(a, b):
    # q and -q are the same rotation
    return np.isclose(abs(np.dot(a.as_quat(), b.as_quat())), 1.0)


def test_squash_bounds_and_symmetry():
    assert squash(0.0) == 0.0
    assert squash(1.5) == pytest.approx(-squash(-1.5))
    assert squash(1.0) == pytest.approx(2.0 / (1.0 + math.exp(-1.0)) - 1.0)
    assert squash(1000.0) == pytest.approx(1.0)
    assert squash(-1000.0) == pytest.approx(-1.0)
    for v in np.linspace(-30, 30, 61):
        assert -1.0 <= squash(v) <= 1.0


def test_rest_pose_ignores_angle():
    legs = Legs()
    legs.update(0.0, np.zeros(3), 0.3)
    hand_spec = next(s for s in ANIMATED_BONES if s.name == "Hand")
    bone = Bone(hand_spec, 0)

    bone.update(legs, roll=0.0, amount=0.0, angle=1.7)
    first = bone.rotation
    bone.update(legs, roll=0.0, amount=0.0, angle=-2.0)

    assert _same_rotation(first, legs.rotation * bone.attached_rotation)
    assert _same_rotation(bone.rotation, first)


def test_amount_tilts_the_bone():
    legs = Legs()
    torso = Bone(ANIMATED_BONES[0], 0)
    torso.update(legs, roll=0.0, amount=0.0, angle=0.0)
    rest = torso.rotation
    torso.update(legs, roll=0.0, amount=3.0, angle=0.0)
    assert not _same_rotation(torso.rotation, rest)
    assert torso.last_amount == 3.0



def test_tilt_and_twist_composition_order():
    legs = Legs()
    legs.update(0.0, np.zeros(3), 0.4)
    hand_spec = next(s for s in ANIMATED_BONES if s.name == "Hand")
    bone = Bone(hand_spec, 0)
    roll, amount, angle = 0.8, -1.3, 0.6
    bone.update(legs, roll=roll, amount=amount, angle=angle)

    max_x, max_roll, max_z = np.radians(hand_spec.max_angles)
    tilt = euler_rotation(math.cos(angle) * squash(amount) * max_x, 0.0, math.sin(angle) * squash(amount) * max_z)
    twist = euler_rotation(0.0, squash(roll) * max_roll, 0.0)
    assert _same_rotation(bone.rotation, legs.rotation * bone.attached_rotation * tilt * twist)

    assert not _same_rotation(bone.rotation, legs.rotation * bone.attached_rotation * twist * tilt)
    assert not _same_rotation(bone.rotation, legs.rotation * tilt * twist * bone.attached_rotation)
    swapped = euler_rotation(math.sin(angle) * squash(amount) * max_x, 0.0, math.cos(angle) * squash(amount) * max_z)
    assert not _same_rotation(bone.rotation, legs.rotation * bone.attached_rotation * swapped * twist)

@pytest.mark.parametrize("heading", [0.0, 0.7, -2.5, math.pi])
def test_legs_without_velocity_only_yaw(heading):
    legs = Legs()
    for _ in range(5):
        legs.update(0.1, np.zeros(3), heading)
    assert_allclose(legs.position, np.zeros(3))
    assert_allclose(legs.rotation.apply(UNIT_Y), UNIT_Y, atol=1e-12)
    assert_allclose(legs.rotation.apply(UNIT_X), [math.cos(heading), 0.0, -math.sin(heading)], atol=1e-12)


def test_legs_integrate_rotated_velocity():
    legs = Legs()
    legs.update(2.0, np.array([1.0, 0.0, 0.0]), math.pi / 2)
    assert_allclose(legs.position, [0.0, 0.0, -2.0], atol=1e-12)
    assert legs.last_direction == pytest.approx(math.pi / 2)


def test_skeleton_rest_positions(make_parameters):
    skeleton = Skeleton(make_parameters())
    skeleton.update(0.0)
    assert_allclose(skeleton.bone("Torso").position, [0.0, 1.0, 0.0], atol=1e-12)
    assert_allclose(skeleton.bone("Head").position, [0.0, 1.55, 0.0], atol=1e-12)


def test_skeleton_uses_elapsed_time_from_start(make_parameters):
    skeleton = Skeleton(make_parameters(velocity_x=1.0), start_time=10.0)
    skeleton.update(10.0)
    assert_allclose(skeleton.legs.position, np.zeros(3))
    skeleton.update(10.5)
    assert_allclose(skeleton.legs.position, [0.5, 0.0, 0.0], atol=1e-12)


def test_skeleton_bone_lookup(make_parameters):
    skeleton = Skeleton(make_parameters())
    assert skeleton.bone("Phone") is not None
    assert skeleton.bone("Eyes").name == "Eyes"
    assert skeleton.bone("Legs") is None
    assert skeleton.bone("Tail") is None
    assert [b.name for b in skeleton.bones] == list(BONE_NAMES)


def test_skeleton_rejects_mismatched_bone_names(make_parameters):
    names = BONE_NAMES[:-1] + ("Paw",)
    with pytest.raises(ValueError):
        Skeleton(make_parameters(names=names))


def test_skeleton_rejects_wrong_bone_count(make_parameters):
    with pytest.raises(ValueError):
        Skeleton(make_parameters(names=BONE_NAMES[:3]))


def test_skeleton_rejects_duplicate_bone_names():
    still = ParametricFactor.still(0.0)
    bones = [BoneParameters("Torso", still, still, still)] * len(BONE_NAMES)
    with pytest.raises(ValueError):
        Skeleton(SimulationParameters(LegParameters.stationary(0.0), bones))


def test_end_effectors_follow_parents(make_parameters):
    skeleton = Skeleton(make_parameters(direction=1.0))
    skeleton.update(0.0)
    hand = skeleton.bone("Hand")
    phone = skeleton.bone("Phone")
    expected = hand.position + hand.rotation.apply([0.0, hand.length * 0.5, 0.0])
    assert_allclose(phone.position, expected, atol=1e-12)
    assert isinstance(phone.rotation, Rotation)


def test_skeleton_rejects_a_changed_bone_count(make_parameters, monkeypatch):
    monkeypatch.setattr(skeleton_module, "ANIMATED_BONES", ANIMATED_BONES[:4])
    with pytest.raises(ValueError, match="Bones count"):
        Skeleton(make_parameters())
