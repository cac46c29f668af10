"""
Articulated body model: a rooted tree of rigid bones carried by moving legs.

Conventions:
- Y is the global vertical axis, bones extend along their local +Y axis.
- Euler triples are (x=pitch, y=yaw, z=roll) and compose as Ry * Rx * Rz.
- Bones live in a flat list ordered parents-before-children and refer to
  their parent by index; index 0 of the arena is always the legs.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Union

import numpy as np
from scipy.spatial.transform import Rotation

from motionsim.parameters import SimulationParameters

UNIT_Y = np.array([0.0, 1.0, 0.0])
UNIT_Z = np.array([0.0, 0.0, 1.0])

LEGS_LENGTH = 1.00


def squash(value: float) -> float:
    """2 * sigmoid(x) - 1, maps the real line onto (-1, 1)."""
    if value >= 0:
        k = math.exp(-value)
        sigmoid = 1.0 / (1.0 + k)
    else:
        k = math.exp(value)
        sigmoid = k / (1.0 + k)
    return (sigmoid - 0.5) * 2.0


def euler_rotation(x: float, y: float, z: float, degrees: bool = False) -> Rotation:
    """Yaw (y) * pitch (x) * roll (z) rotation."""
    return Rotation.from_euler("YXZ", [y, x, z], degrees=degrees)


@dataclass(frozen=True)
class BoneSpec:
    name: str
    length: float
    parent: str
    attached_offset: float
    attached_rotation: tuple[float, float, float]
    max_angles: tuple[float, float, float]


# Fixed human upper body, the parent "Legs" is the root locomotion part
ANIMATED_BONES: tuple[BoneSpec, ...] = (
    BoneSpec("Torso", 0.55, "Legs", 0.0, (0, 0, 0), (15, 25, 28)),
    BoneSpec("Shoulder", 0.20, "Torso", 0.10, (98, 15, 0), (17, 0, 0)),
    BoneSpec("Upper Arm", 0.30, "Shoulder", 0.0, (15, 10, -35), (65, 60, 70)),
    BoneSpec("Lower Arm", 0.27, "Upper Arm", 0.0, (0, 0, -70), (0, 0, 70)),
    BoneSpec("Hand", 0.21, "Lower Arm", 0.0, (0, 0, -15), (25, 90, 75)),
)

END_EFFECTORS: tuple[BoneSpec, ...] = (
    BoneSpec("Head", 0.30, "Torso", 0.0, (0, 0, 0), (55, 75, 65)),
    BoneSpec("Eyes", 0.00, "Head", 0.50, (0, 0, -90), (0, 0, 0)),
    BoneSpec("Phone", 0.00, "Hand", 0.50, (0, 90, -90), (0, 0, 0)),
)

BONE_NAMES: tuple[str, ...] = tuple(spec.name for spec in ANIMATED_BONES)
# Animated bones the gene layouts are sized for
BONES_COUNT = 5


class Legs:
    """Root locomotion: integrates a heading-rotated velocity over elapsed time."""

    def __init__(self, length: float = LEGS_LENGTH) -> None:
        self.length = length
        self.position = np.zeros(3)
        self.rotation = Rotation.identity()
        self.last_direction = 0.0

    def update(self, elapsed: float, velocity: np.ndarray, direction: float) -> None:
        self.last_direction = direction
        heading = Rotation.from_rotvec(direction * UNIT_Y)
        self.position = self.position + heading.apply(velocity) * elapsed
        self.rotation = heading


class Bone:
    """A rigid segment attached to a parent part at a fixed offset and rotation."""

    def __init__(self, spec: BoneSpec, parent: Optional[int]) -> None:
        self.name = spec.name
        self.length = spec.length
        self.parent = parent
        # 0 attaches at the end of the parent, 1 at its start
        self.attached_offset = spec.attached_offset
        self.attached_rotation = euler_rotation(*spec.attached_rotation, degrees=True)
        self.max_angles = np.radians(np.asarray(spec.max_angles, dtype=np.float64))
        self.position = np.zeros(3)
        self.rotation = Rotation.identity()
        self.last_roll = 0.0
        self.last_angle = 0.0
        self.last_amount = 0.0

    def update(self, parent: Optional[Union["Bone", Legs]], roll: float, amount: float, angle: float) -> None:
        self.last_roll = roll
        self.last_angle = angle
        self.last_amount = amount

        if parent is not None:
            base = parent.rotation
            offset = np.array([0.0, parent.length * (1.0 - self.attached_offset), 0.0])
            self.position = parent.position + parent.rotation.apply(offset)
        else:
            base = Rotation.identity()
            self.position = np.zeros(3)

        if roll == 0 and amount == 0:
            self.rotation = base * self.attached_rotation
            return

        max_x, max_roll, max_z = self.max_angles
        tilt = squash(amount)
        y_rotation = squash(roll) * max_roll
        x_rotation = math.cos(angle) * tilt * max_x
        z_rotation = math.sin(angle) * tilt * max_z
        pitch_rotation = euler_rotation(x_rotation, 0.0, z_rotation)
        roll_rotation = euler_rotation(0.0, y_rotation, 0.0)
        self.rotation = base * self.attached_rotation * pitch_rotation * roll_rotation


class Skeleton:
    """The fixed body: legs, five animated bones and rigid end-effectors."""

    def __init__(self, parameters: SimulationParameters, start_time: float = 0.0) -> None:
        self.legs = Legs()
        self.bones: list[Bone] = []
        self.end_effectors: list[Bone] = []
        # arena index 0 is the legs, bones follow in topological order
        self._parts: list[Union[Legs, Bone]] = [self.legs]
        self._index = {"Legs": 0}

        for spec in ANIMATED_BONES:
            self.bones.append(self._add(spec))
        if len(self.bones) != BONES_COUNT:
            raise ValueError(f"Bones count of the skeleton {len(self.bones)} does not match the configured count {BONES_COUNT}")
        for spec in END_EFFECTORS:
            self.end_effectors.append(self._add(spec))
        self.parameters = parameters
        self.last_time = start_time

    def _add(self, spec: BoneSpec) -> Bone:
        if spec.parent not in self._index:
            raise ValueError(f"Parent {spec.parent!r} of bone {spec.name!r} must be added first")
        bone = Bone(spec, self._index[spec.parent])
        self._index[spec.name] = len(self._parts)
        self._parts.append(bone)
        return bone

    @property
    def parameters(self) -> SimulationParameters:
        return self._parameters

    @parameters.setter
    def parameters(self, value: SimulationParameters) -> None:
        names = [b.bone_name for b in value.bones]
        if len(names) != len(self.bones):
            raise ValueError(f"Parameters count {len(names)} does not match bones count {len(self.bones)}")
        if len(set(names)) != len(names) or set(names) != set(BONE_NAMES):
            raise ValueError(f"Parameter bone names {sorted(names)} do not match skeleton bones {sorted(BONE_NAMES)}")
        self._parameters = value
        self._bone_parameters = [value.bone(b.name) for b in self.bones]

    def _parent_of(self, bone: Bone) -> Optional[Union[Bone, Legs]]:
        return None if bone.parent is None else self._parts[bone.parent]

    def update(self, time: float) -> None:
        legs = self._parameters.legs
        direction = legs.direction.value(time)
        self.legs.update(time - self.last_time, legs.velocity(time), direction)

        for bone, params in zip(self.bones, self._bone_parameters):
            bone.update(
                self._parent_of(bone),
                roll=params.roll.value(time),
                amount=params.amount.value(time),
                angle=params.angle.value(time),
            )

        for bone in self.end_effectors:
            bone.update(self._parent_of(bone), roll=0.0, amount=0.0, angle=0.0)

        self.last_time = time

    def bone(self, name: str) -> Optional[Bone]:
        index = self._index.get(name)
        if index is None or index == 0:
            return None
        return self._parts[index]
