"""
Movement templates: gene decoding, simulation timing and fitness rubric per
movement archetype (walking, sitting, phone lying on a table).
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence

import numpy as np

from motionsim import config
from motionsim.fitness_score import FitnessScore
from motionsim.genes import BONE_FACTOR_COUNT, GeneLayout, GeneReader
from motionsim.parameters import BoneParameters, LegParameters, SimulationParameters
from motionsim.results import SimulationResults, describe, target_hit
from motionsim.skeleton import BONE_NAMES


class MovementTemplate(ABC):
    name: str
    layout: GeneLayout
    simulation_length: float
    simulation_step: float

    def __init__(self, *, simulation_length: Optional[float] = None, start_time: float = config.SIM_START_TIME) -> None:
        if simulation_length is not None:
            self.simulation_length = simulation_length
        self.start_time = start_time

    @property
    def chromosome_length(self) -> int:
        return self.layout.chromosome_length

    def sample_times(self) -> np.ndarray:
        return self.start_time + np.arange(0.0, self.simulation_length, self.simulation_step)

    def initial_genes(self, rng: np.random.Generator) -> np.ndarray:
        return (rng.random(self.chromosome_length) - 0.5) * 0.05

    def decode(self, genes: Sequence[float]) -> SimulationParameters:
        reader = GeneReader(genes, self.chromosome_length)
        parameters = self._decode(reader)
        reader.finish()
        return parameters

    @abstractmethod
    def _decode(self, reader: GeneReader) -> SimulationParameters:
        ...

    @abstractmethod
    def score(self, results: SimulationResults) -> FitnessScore:
        ...

    def settings(self) -> dict[str, Any]:
        return {
            "template": self.name,
            "chromosome_length": self.chromosome_length,
            "simulation_length": self.simulation_length,
            "simulation_step": self.simulation_step,
            "start_time": self.start_time,
        }

    def _bone_parameters(self, reader: GeneReader, bone_name: str, fixed_frequency: float) -> BoneParameters:
        waves = self.layout.bone_waves_per_factor
        angle = reader.factor(waves, fixed_frequency)
        amount = reader.factor(waves, fixed_frequency)
        roll = reader.factor(waves, fixed_frequency)
        return BoneParameters(bone_name, angle, amount, roll)

    @staticmethod
    def _stationary_bone_parameters(reader: GeneReader, bone_name: str) -> BoneParameters:
        angle, amount, roll = (reader.factor(0) for _ in range(BONE_FACTOR_COUNT))
        return BoneParameters(bone_name, angle, amount, roll)

    @staticmethod
    def _add_target_hits(
        fitness: FitnessScore,
        prefix: str,
        series: np.ndarray,
        targets: tuple[float, float],
        weights: tuple[float, float],
    ) -> None:
        mean, std = describe(series)
        fitness.add_weighed_score_linear(f"{prefix}MeanTargetHit", weights[0], target_hit(mean, targets[0]))
        fitness.add_weighed_score_linear(f"{prefix}StdDevTargetHit", weights[1], target_hit(std, targets[1]))

    @staticmethod
    def _add_joint_range_penalties(
        fitness: FitnessScore, results: SimulationResults, score: float, thresholds: tuple[float, float, float]
    ) -> None:
        """Penalize amount, angle and roll bounds above the given thresholds."""
        amount, angle, roll = thresholds
        fitness.add_weighed_penalty_sqrt("maxAmountValue", score, math.log10(max(results.max_amount_value - amount, 1)))
        fitness.add_weighed_penalty_sqrt("maxAngleValue", score, math.log10(max(results.max_angle_value - angle, 1)))
        fitness.add_weighed_penalty_sqrt("maxRollValue", score, math.log10(max(results.max_roll_value - roll, 1)))


class WalkingTemplate(MovementTemplate):
    """Walking at a given forward speed with a given time between steps."""

    name = "Walking"
    layout = GeneLayout(
        bone_waves_per_factor=5,
        legs_velocity_waves=3,
        legs_direction_waves=3,
        # one wave per factor follows the step cadence
        bone_set_frequencies_per_factor=1,
        # X velocity constant is the walking speed, Y and Z are 0
        velocity_set_constants=1,
        velocity_set_frequencies=1,
        direction_set_constants=0,
        direction_set_frequencies=1,
    )
    simulation_length = 35.0
    simulation_step = 0.020

    # Measured on real phones while walking. The acceleration mean is set lower
    # than measured, real values made the movement too unstable.
    ACCELERATION_TARGETS = (1.2026032686709813, 0.637425618317317)
    UP_FACING_TARGETS = (0.8516780614784941, 0.015626926172786673)
    VERTICAL_ALIGNMENT_TARGETS = (0.9812675862994678, 0.017599923114221077)
    ANGLE_VELOCITY_TARGETS = (0.5741832154443963, 1.31332073902392)

    def __init__(self, walking_speed: float, step_time: float, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.walking_speed = walking_speed
        self.step_time = step_time

    @property
    def cadence(self) -> float:
        """Angular frequency of one step."""
        return math.pi / self.step_time

    def _decode(self, reader: GeneReader) -> SimulationParameters:
        waves = self.layout.legs_velocity_waves
        legs = LegParameters(
            velocity_x=reader.factor(waves, self.cadence, constant=self.walking_speed),
            velocity_y=reader.factor(waves, self.cadence, constant=0.0),
            velocity_z=reader.factor(waves, self.cadence, constant=0.0),
            direction=reader.factor(self.layout.legs_direction_waves, self.cadence),
        )
        bones = [self._bone_parameters(reader, name, self.cadence) for name in BONE_NAMES]
        return SimulationParameters(legs, bones)

    def score(self, results: SimulationResults) -> FitnessScore:
        fitness = FitnessScore()
        parameters = results.parameters
        # step time should dominate the legs and bones movement
        fitness.add_weighed_score_linear("boneAmplitudePortions", 1, parameters.bone_amplitude_portion(1) * 2)
        fitness.add_weighed_score_linear("walkingAmplitudePortions", 10, parameters.legs.velocity_amplitude_portion(1))
        fitness.add_weighed_score_linear("averageFacingValue", 6, describe(results.facing_values)[0])
        self._add_joint_range_penalties(fitness, results, 4, (1.2, 2.0, 1.2))

        max_legs_velocity = parameters.legs.theoretical_max_velocity_without_constant
        if max_legs_velocity > 0.10:
            fitness.add_weighed_penalty_linear("maxLegsVelocity", 10, (max_legs_velocity - 0.10) / 5)
        if max_legs_velocity < 0.01:
            fitness.add_weighed_penalty_sqrt("maxLegsVelocityLow", 5, (0.01 - max_legs_velocity) / 0.01)

        # small headings keep transitions to other movements smooth
        max_legs_direction = float(np.max(np.abs(results.legs_directions))) if len(results) else 0.0
        fitness.add_weighed_penalty_sqrt("maxLegsDirection", 50, max_legs_direction - math.pi)
        direction_velocity = describe(results.legs_direction_velocities)[0]
        if direction_velocity > 0.1:
            fitness.add_weighed_penalty_sqrt("legsAngleVelocityMeanHigh", 50, (direction_velocity - 0.1) * 50)
        if direction_velocity < 0.01:
            fitness.add_weighed_penalty_linear("legsAngleVelocityMeanLow", 50, (0.01 - direction_velocity) / 0.01)

        self._add_target_hits(fitness, "acceleration", results.phone_accelerations, self.ACCELERATION_TARGETS, (4, 8))
        self._add_target_hits(fitness, "upValue", results.phone_up_facing_values, self.UP_FACING_TARGETS, (2, 1))
        self._add_target_hits(
            fitness, "vertical", results.phone_vertical_alignments, self.VERTICAL_ALIGNMENT_TARGETS, (2, 1)
        )
        self._add_target_hits(
            fitness, "angleVelocities", results.phone_angle_velocities, self.ANGLE_VELOCITY_TARGETS, (8, 4)
        )
        step_hz = self.cadence / (2 * math.pi)
        fitness.add_weighed_score_linear("velocitySpectrumCadence", 2, results.spectral_power_share(step_hz, 0.25))
        return fitness

    def settings(self) -> dict[str, Any]:
        return {**super().settings(), "walking_speed": self.walking_speed, "step_time": self.step_time}


class SittingTemplate(MovementTemplate):
    """Sitting still facing a fixed direction, the arm moves with breathing."""

    name = "Sitting"
    layout = GeneLayout(
        bone_waves_per_factor=6,
        legs_velocity_waves=0,
        legs_direction_waves=0,
        bone_set_frequencies_per_factor=1,
        velocity_set_constants=1,
        velocity_set_frequencies=0,
        direction_set_constants=1,
        direction_set_frequencies=0,
        stationary_bones=3,
    )
    simulation_length = 35.0
    simulation_step = 0.040

    MOVING_BONES = ("Lower Arm", "Hand")
    STATIONARY_BONES = ("Torso", "Shoulder", "Upper Arm")

    VELOCITY_TARGETS = (0.006536578384818213, 0.0031485489303939664)
    ACCELERATION_TARGETS = (0.0700441741975513, 0.08289680478705595)
    UP_FACING_TARGETS = (0.773362970126794, 0.011569981076266491)
    VERTICAL_ALIGNMENT_TARGETS = (0.9947331032183104, 0.005830482082136991)
    ANGLE_VELOCITY_TARGETS = (0.10745778488993558, 2.6593325544282607)

    def __init__(self, direction: float, breath_time: float, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.direction = direction
        self.breath_time = breath_time

    @property
    def cadence(self) -> float:
        return math.pi / self.breath_time

    def _decode(self, reader: GeneReader) -> SimulationParameters:
        moving = [self._bone_parameters(reader, name, self.cadence) for name in self.MOVING_BONES]
        stationary = [self._stationary_bone_parameters(reader, name) for name in self.STATIONARY_BONES]
        return SimulationParameters(LegParameters.stationary(self.direction), stationary + moving)

    def score(self, results: SimulationResults) -> FitnessScore:
        fitness = FitnessScore()
        moving = [b for b in results.parameters.bones if b.bone_name in self.MOVING_BONES]
        bone_portions = sum(b.amplitude_portion(1) for b in moving)
        fitness.add_weighed_score_linear("boneAmplitudePortions", 1, bone_portions * 4)
        fitness.add_weighed_score_linear("averageFacingValue", 6, describe(results.facing_values)[0])
        self._add_joint_range_penalties(fitness, results, 6, (1.2, 2.0, 1.2))

        self._add_target_hits(fitness, "velocities", results.phone_velocities, self.VELOCITY_TARGETS, (8, 4))
        self._add_target_hits(fitness, "acceleration", results.phone_accelerations, self.ACCELERATION_TARGETS, (4, 2))
        self._add_target_hits(fitness, "upValue", results.phone_up_facing_values, self.UP_FACING_TARGETS, (4, 2))
        self._add_target_hits(
            fitness, "vertical", results.phone_vertical_alignments, self.VERTICAL_ALIGNMENT_TARGETS, (4, 2)
        )
        self._add_target_hits(
            fitness, "angleVelocities", results.phone_angle_velocities, self.ANGLE_VELOCITY_TARGETS, (4, 2)
        )
        breath_hz = self.cadence / (2 * math.pi)
        fitness.add_weighed_score_linear("velocitySpectrumBreathing", 2, results.spectral_power_share(breath_hz, 0.1))
        return fitness

    def settings(self) -> dict[str, Any]:
        return {**super().settings(), "direction": self.direction, "breath_time": self.breath_time}


class OnTableTemplate(MovementTemplate):
    """Phone lying still on a table, legs facing a given direction."""

    name = "OnTable"
    layout = GeneLayout(
        bone_waves_per_factor=0,
        legs_velocity_waves=0,
        legs_direction_waves=0,
        bone_set_frequencies_per_factor=0,
        velocity_set_constants=1,
        velocity_set_frequencies=0,
        direction_set_constants=1,
        direction_set_frequencies=0,
    )
    # a single sample is enough
    simulation_length = 1.0
    simulation_step = 2.0

    def __init__(self, direction: float, up_value_target: float, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.direction = direction
        self.up_value_target = up_value_target

    def initial_genes(self, rng: np.random.Generator) -> np.ndarray:
        return np.zeros(self.chromosome_length)

    def _decode(self, reader: GeneReader) -> SimulationParameters:
        bones = [self._stationary_bone_parameters(reader, name) for name in BONE_NAMES]
        return SimulationParameters(LegParameters.stationary(self.direction), bones)

    def score(self, results: SimulationResults) -> FitnessScore:
        fitness = FitnessScore()
        self._add_joint_range_penalties(fitness, results, 2, (2.0, 4.0, 2.0))
        up_value = float(results.phone_up_facing_values[0])
        fitness.add_weighed_score_linear("upValueMeanTargetHit", 6, target_hit(up_value, self.up_value_target))
        return fitness

    def settings(self) -> dict[str, Any]:
        return {**super().settings(), "direction": self.direction, "up_value_target": self.up_value_target}


TEMPLATE_KINDS = ("walking", "sitting", "on_table")


def create_template(kind: str, rng: np.random.Generator, **kwargs: Any) -> MovementTemplate:
    """Build a template with its configuration drawn from the designer ranges."""
    if kind == "walking":
        return WalkingTemplate(
            walking_speed=float(rng.uniform(*config.WALKING_SPEED_RANGE)),
            step_time=float(rng.uniform(*config.STEP_TIME_RANGE)),
            **kwargs,
        )
    elif kind == "sitting":
        return SittingTemplate(
            direction=float(rng.uniform(*config.SITTING_DIRECTION_RANGE)),
            breath_time=float(rng.uniform(*config.BREATH_TIME_RANGE)),
            **kwargs,
        )
    elif kind == "on_table":
        return OnTableTemplate(
            direction=float(rng.uniform(*config.ON_TABLE_DIRECTION_RANGE)),
            up_value_target=float(rng.uniform(*config.ON_TABLE_UP_TARGET_RANGE)),
            **kwargs,
        )
    raise ValueError(f"Unknown template kind {kind!r}, expected one of {TEMPLATE_KINDS}")
