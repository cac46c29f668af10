"""Closed-form time signals: single sinusoids and constant-plus-sinusoids factors."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class WaveSignal:
    """amplitude * sin(frequency * t + phase), frequency in rad/s."""

    amplitude: float
    phase: float
    frequency: float

    def value(self, time: float) -> float:
        return self.amplitude * math.sin(self.frequency * time + self.phase)

    def to_dict(self) -> dict[str, float]:
        return {"amplitude": self.amplitude, "phase": self.phase, "frequency": self.frequency}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WaveSignal":
        return cls(float(data["amplitude"]), float(data["phase"]), float(data["frequency"]))


@dataclass(frozen=True)
class ParametricFactor:
    """
    A constant offset plus an ordered sum of waves.

    Drives every independently animated quantity of the skeleton: the angle,
    amount and roll of a bone, each legs velocity component and the heading.
    """

    constant: float
    waves: tuple[WaveSignal, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        # accept any iterable of waves but store an immutable tuple
        object.__setattr__(self, "waves", tuple(self.waves))

    @classmethod
    def still(cls, constant: float) -> "ParametricFactor":
        return cls(float(constant), ())

    def value(self, time: float) -> float:
        return self.constant + sum(wave.value(time) for wave in self.waves)

    @property
    def amplitude_total(self) -> float:
        return sum(abs(wave.amplitude) for wave in self.waves)

    @property
    def theoretical_maximum(self) -> float:
        """Upper bound of |value(t)| regardless of phase alignment."""
        return abs(self.constant) + self.amplitude_total

    def amplitude_portion(self, n: int) -> float:
        """Share of the total absolute amplitude carried by the first ``n`` waves."""
        if n > len(self.waves):
            raise ValueError(f"Requested {n} waves but factor only has {len(self.waves)}")
        total = self.amplitude_total
        if total == 0:
            return 0.0
        return sum(abs(wave.amplitude) for wave in self.waves[:n]) / total

    def parameter_values(self) -> list[float]:
        values = [self.constant]
        for wave in self.waves:
            values.extend((wave.amplitude, wave.phase, wave.frequency))
        return values

    @property
    def non_zero_portion(self) -> float:
        values = self.parameter_values()
        return sum(1 for v in values if v != 0) / len(values)

    def to_dict(self) -> dict[str, Any]:
        return {"constant": self.constant, "sines": [wave.to_dict() for wave in self.waves]}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ParametricFactor":
        return cls(float(data["constant"]), tuple(WaveSignal.from_dict(w) for w in data.get("sines", [])))
