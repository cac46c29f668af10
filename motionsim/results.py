"""Signals derived from a recorded phone pose history."""

from __future__ import annotations

import math
from typing import Optional, Sequence

import numpy as np
from scipy.spatial.transform import Rotation

from motionsim.parameters import SimulationParameters
from motionsim.skeleton import UNIT_Y, UNIT_Z


def describe(series: Sequence[float]) -> tuple[float, float]:
    """Mean and sample standard deviation, zeros for an empty series."""
    values = np.asarray(series, dtype=np.float64)
    if values.size == 0:
        return 0.0, 0.0
    if values.size == 1:
        return float(values[0]), 0.0
    return float(np.mean(values)), float(np.std(values, ddof=1))


def target_hit(value: float, target: float) -> float:
    """min/max ratio: 1 at an exact match, decaying towards 0 as they diverge."""
    high = max(value, target)
    if high == 0:
        return 1.0
    return min(value, target) / high


def up_facing_value(rotation: Rotation) -> float:
    """1 when the phone's local +Z points straight up, 0 when it points down."""
    forward = rotation.apply(UNIT_Z)
    angle = math.acos(float(np.clip(np.dot(UNIT_Y, forward), -1.0, 1.0)))
    return 1.0 - min(angle, math.pi) / math.pi


def vertical_alignment(rotation: Rotation) -> float:
    """How well the plane spanned by the phone's Y and Z axes contains the vertical."""
    up = rotation.apply(UNIT_Y)
    forward = rotation.apply(UNIT_Z)
    normal = np.cross(up, forward)
    cosine = np.dot(normal, UNIT_Y) / (np.linalg.norm(forward) * np.linalg.norm(up))
    angle = math.acos(float(np.clip(cosine, -1.0, 1.0)))
    return 1.0 - 2.0 * abs(0.5 - angle / math.pi)


def angle_velocity(q1: Rotation, q2: Rotation, step: float) -> float:
    delta_w = (q1.inv() * q2).as_quat()[3]
    return 2.0 * math.acos(min(1.0, abs(float(delta_w)))) / step


class SimulationResults:
    """Recorded series of one simulation run plus the values derived from them."""

    def __init__(
        self,
        step: float,
        parameters: SimulationParameters,
        phone_positions: Sequence[np.ndarray],
        phone_rotations: Sequence[Rotation],
        legs_directions: Sequence[float],
        facing_values: Sequence[float],
        peak_amounts: Optional[dict[str, float]] = None,
        peak_rolls: Optional[dict[str, float]] = None,
    ) -> None:
        self.step = step
        self.parameters = parameters
        self.phone_positions = np.asarray(phone_positions, dtype=np.float64).reshape(-1, 3)
        self.phone_rotations = list(phone_rotations)
        self.legs_directions = np.asarray(legs_directions, dtype=np.float64)
        self.facing_values = np.asarray(facing_values, dtype=np.float64)
        self.peak_amounts = peak_amounts or {}
        self.peak_rolls = peak_rolls or {}

        self.legs_direction_velocities = np.abs(np.diff(self.legs_directions)) / step
        self.phone_velocities = np.linalg.norm(np.diff(self.phone_positions, axis=0), axis=1) / step
        self.phone_accelerations = np.abs(np.diff(self.phone_velocities)) / step
        self.phone_up_facing_values = np.array([up_facing_value(r) for r in self.phone_rotations])
        self.phone_vertical_alignments = np.array([vertical_alignment(r) for r in self.phone_rotations])
        self.phone_angle_velocities = np.array(
            [angle_velocity(a, b, step) for a, b in zip(self.phone_rotations, self.phone_rotations[1:])]
        )

        bones = parameters.bones
        self.max_amount_value = max((b.amount.theoretical_maximum for b in bones), default=0.0)
        self.max_angle_value = max((b.angle.theoretical_maximum for b in bones), default=0.0)
        self.max_roll_value = max((b.roll.theoretical_maximum for b in bones), default=0.0)

    def __len__(self) -> int:
        return len(self.phone_rotations)

    def velocity_spectrum(self, window: Optional[str] = "hann") -> tuple[np.ndarray, np.ndarray]:
        """Frequencies (Hz) and FFT magnitudes of the mean-removed phone speed."""
        speeds = self.phone_velocities
        if speeds.size < 2:
            return np.zeros(0), np.zeros(0)
        centered = speeds - speeds.mean()
        if window == "hann":
            centered = centered * np.hanning(centered.size)
        elif window is not None:
            raise ValueError(f"Unknown window {window!r}")
        magnitudes = np.abs(np.fft.rfft(centered))
        frequencies = np.fft.rfftfreq(centered.size, d=self.step)
        return frequencies, magnitudes

    def spectral_power_share(self, frequency: float, bandwidth: float, window: Optional[str] = "hann") -> float:
        """Share of the speed power within ``frequency +- bandwidth`` Hz."""
        frequencies, magnitudes = self.velocity_spectrum(window)
        power = magnitudes ** 2
        total = float(power.sum())
        if total == 0:
            return 0.0
        band = np.abs(frequencies - frequency) <= bandwidth
        return float(power[band].sum()) / total
