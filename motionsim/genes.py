"""
Gene layout arithmetic shared by the movement templates.

Every animated control input is encoded as
``[constant, a1, p1, (f1), a2, p2, f2, ...]``. A template can fix the first
wave's frequency (cadence from step or breath time), fix the constant
(e.g. forward speed) or keep a bone completely still (constants only). The
omitted genes are counted separately so that

    chromosome_length = max_chromosome_length - set_genes_count
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from motionsim.signals import ParametricFactor, WaveSignal
from motionsim.skeleton import BONES_COUNT

WAVE_PARAMETER_COUNT = 3
BONE_FACTOR_COUNT = 3
VELOCITY_DIRECTIONS = 3
# Frequencies below one cycle per simulated run would look like a constant
MIN_FREQUENCY = 2 * math.pi / 35.0


def factor_length(waves: int) -> int:
    return 1 + waves * WAVE_PARAMETER_COUNT


@dataclass(frozen=True)
class GeneLayout:
    bone_waves_per_factor: int
    legs_velocity_waves: int
    legs_direction_waves: int
    # waves per bone factor whose frequency comes from the template
    bone_set_frequencies_per_factor: int
    velocity_set_constants: int
    velocity_set_frequencies: int
    direction_set_constants: int
    direction_set_frequencies: int
    stationary_bones: int = 0

    @property
    def moving_bones(self) -> int:
        return BONES_COUNT - self.stationary_bones

    @property
    def bone_factor_length(self) -> int:
        return factor_length(self.bone_waves_per_factor)

    @property
    def bone_chromosome_length(self) -> int:
        return BONE_FACTOR_COUNT * self.bone_factor_length

    @property
    def bones_chromosome_length(self) -> int:
        return self.moving_bones * self.bone_chromosome_length + self.stationary_bones * BONE_FACTOR_COUNT

    @property
    def legs_velocity_factor_length(self) -> int:
        return factor_length(self.legs_velocity_waves)

    @property
    def legs_direction_length(self) -> int:
        return factor_length(self.legs_direction_waves)

    @property
    def legs_chromosome_length(self) -> int:
        return self.legs_direction_length + VELOCITY_DIRECTIONS * self.legs_velocity_factor_length

    @property
    def max_chromosome_length(self) -> int:
        return self.legs_chromosome_length + self.bones_chromosome_length

    @property
    def bones_set_genes_count(self) -> int:
        return self.bone_set_frequencies_per_factor * BONE_FACTOR_COUNT * self.moving_bones

    @property
    def legs_set_genes_count(self) -> int:
        return (
            VELOCITY_DIRECTIONS * (self.velocity_set_constants + self.velocity_set_frequencies)
            + self.direction_set_constants
            + self.direction_set_frequencies
        )

    @property
    def set_genes_count(self) -> int:
        return self.bones_set_genes_count + self.legs_set_genes_count

    @property
    def chromosome_length(self) -> int:
        return self.max_chromosome_length - self.set_genes_count

    @property
    def bone_factor_gene_count(self) -> int:
        return self.bone_factor_length - self.bone_set_frequencies_per_factor

    @property
    def moving_bone_gene_count(self) -> int:
        return BONE_FACTOR_COUNT * self.bone_factor_gene_count

    @property
    def bones_gene_count(self) -> int:
        return self.moving_bones * self.moving_bone_gene_count + self.stationary_bones * BONE_FACTOR_COUNT

    @property
    def velocity_gene_count(self) -> int:
        return self.legs_velocity_factor_length - self.velocity_set_constants - self.velocity_set_frequencies

    @property
    def direction_gene_count(self) -> int:
        return self.legs_direction_length - self.direction_set_constants - self.direction_set_frequencies

    @property
    def legs_gene_count(self) -> int:
        return VELOCITY_DIRECTIONS * self.velocity_gene_count + self.direction_gene_count


def floor_frequency(frequency: float) -> float:
    """Push a gene frequency away from zero, keeping its sign."""
    return frequency + (MIN_FREQUENCY if frequency >= 0 else -MIN_FREQUENCY)


class GeneReader:
    """Sequential reader over a chromosome that must be consumed exactly."""

    def __init__(self, genes: Sequence[float], expected_length: int) -> None:
        self.genes = np.asarray(genes, dtype=np.float64)
        if self.genes.ndim != 1 or self.genes.size != expected_length:
            raise ValueError(f"Expected {expected_length} genes, got {self.genes.size}")
        self.position = 0

    def take(self, count: int) -> list[float]:
        end = self.position + count
        if end > self.genes.size:
            raise ValueError(f"Gene underrun: need {end} genes, chromosome has {self.genes.size}")
        values = [float(v) for v in self.genes[self.position:end]]
        self.position = end
        return values

    def waves(self, count: int, fixed_frequency: Optional[float] = None) -> list[WaveSignal]:
        waves = []
        for i in range(count):
            if i == 0 and fixed_frequency is not None:
                amplitude, phase = self.take(2)
                waves.append(WaveSignal(amplitude, phase, fixed_frequency))
            else:
                amplitude, phase, frequency = self.take(3)
                waves.append(WaveSignal(amplitude, phase, floor_frequency(frequency)))
        return waves

    def factor(
        self,
        waves: int,
        fixed_frequency: Optional[float] = None,
        constant: Optional[float] = None,
    ) -> ParametricFactor:
        """Read a factor; a given ``constant`` is not read from the genes."""
        if constant is None:
            (constant,) = self.take(1)
        return ParametricFactor(constant, tuple(self.waves(waves, fixed_frequency)))

    def finish(self) -> None:
        if self.position != self.genes.size:
            raise ValueError(f"Gene layout consumed {self.position} of {self.genes.size} genes")
