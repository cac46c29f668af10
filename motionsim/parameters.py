"""Decoded motion parameters and the JSON document they are saved as."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Optional

import numpy as np

from motionsim.signals import ParametricFactor


@dataclass(frozen=True)
class BoneParameters:
    bone_name: str
    angle: ParametricFactor
    amount: ParametricFactor
    roll: ParametricFactor

    @property
    def factors(self) -> tuple[ParametricFactor, ParametricFactor, ParametricFactor]:
        return self.angle, self.amount, self.roll

    def amplitude_portion(self, n: int) -> float:
        """Mean amplitude portion of the first ``n`` waves over angle, amount and roll."""
        return float(np.mean([f.amplitude_portion(n) for f in self.factors]))

    def to_dict(self) -> dict[str, Any]:
        return {
            "boneName": self.bone_name,
            "angle": self.angle.to_dict(),
            "amount": self.amount.to_dict(),
            "roll": self.roll.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BoneParameters":
        return cls(
            data["boneName"],
            ParametricFactor.from_dict(data["angle"]),
            ParametricFactor.from_dict(data["amount"]),
            ParametricFactor.from_dict(data["roll"]),
        )


@dataclass(frozen=True)
class LegParameters:
    velocity_x: ParametricFactor
    velocity_y: ParametricFactor
    velocity_z: ParametricFactor
    direction: ParametricFactor

    @classmethod
    def stationary(cls, direction: float) -> "LegParameters":
        """No movement at all, facing a fixed heading."""
        still = ParametricFactor.still(0.0)
        return cls(still, still, still, ParametricFactor.still(direction))

    @property
    def velocities(self) -> tuple[ParametricFactor, ParametricFactor, ParametricFactor]:
        return self.velocity_x, self.velocity_y, self.velocity_z

    def velocity(self, time: float) -> np.ndarray:
        return np.array([f.value(time) for f in self.velocities], dtype=np.float64)

    def velocity_amplitude_portion(self, n: int) -> float:
        return float(np.mean([f.amplitude_portion(n) for f in self.velocities]))

    @property
    def theoretical_max_velocity_without_constant(self) -> float:
        """Length of the per-axis summed wave amplitudes (the periodic part only)."""
        return math.sqrt(sum(f.amplitude_total ** 2 for f in self.velocities))

    @property
    def factors(self) -> tuple[ParametricFactor, ...]:
        return self.velocity_x, self.velocity_y, self.velocity_z, self.direction

    def to_dict(self) -> dict[str, Any]:
        return {
            "velocityX": self.velocity_x.to_dict(),
            "velocityY": self.velocity_y.to_dict(),
            "velocityZ": self.velocity_z.to_dict(),
            "direction": self.direction.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LegParameters":
        return cls(
            ParametricFactor.from_dict(data["velocityX"]),
            ParametricFactor.from_dict(data["velocityY"]),
            ParametricFactor.from_dict(data["velocityZ"]),
            ParametricFactor.from_dict(data["direction"]),
        )


@dataclass(frozen=True)
class SimulationParameters:
    legs: LegParameters
    bones: tuple[BoneParameters, ...]
    name: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "bones", tuple(self.bones))

    def bone(self, name: str) -> BoneParameters:
        matches = [b for b in self.bones if b.bone_name == name]
        if len(matches) != 1:
            raise ValueError(f"Expected exactly one parameter set for bone {name!r}, found {len(matches)}")
        return matches[0]

    def bone_amplitude_portion(self, n: int) -> float:
        return float(np.mean([b.amplitude_portion(n) for b in self.bones]))

    @property
    def non_zero_parameter_portion(self) -> float:
        values = [v for f in self.legs.factors for v in f.parameter_values()]
        for bone in self.bones:
            for f in bone.factors:
                values.extend(f.parameter_values())
        return sum(1 for v in values if v != 0) / len(values)

    def with_name(self, name: str) -> "SimulationParameters":
        return SimulationParameters(self.legs, self.bones, name)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "legs": self.legs.to_dict(),
            "bones": [b.to_dict() for b in self.bones],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SimulationParameters":
        return cls(
            LegParameters.from_dict(data["legs"]),
            tuple(BoneParameters.from_dict(b) for b in data["bones"]),
            data.get("name"),
        )
