"""Simulation driver: parameters -> skeleton run -> recorded phone series -> fitness."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from motionsim.fitness_score import FitnessScore
from motionsim.parameters import SimulationParameters
from motionsim.results import SimulationResults
from motionsim.skeleton import UNIT_Z, Skeleton
from motionsim.templates import MovementTemplate

PHONE = "Phone"
EYES = "Eyes"


def facing_value_phone_to_eyes(skeleton: Skeleton) -> float:
    """Squared cosine between the phone's local +Z and the direction to the eyes."""
    phone = skeleton.bone(PHONE)
    eyes = skeleton.bone(EYES)
    if phone is None or eyes is None:
        return 0.0
    to_eyes = eyes.position - phone.position
    distance = np.linalg.norm(to_eyes)
    if distance == 0:
        return 0.0
    phone_forward = phone.rotation.apply(UNIT_Z)
    facing = float(np.dot(to_eyes / distance, phone_forward))
    return facing * facing


def simulate(template: MovementTemplate, parameters: SimulationParameters) -> SimulationResults:
    """Run the skeleton over the template's time window and record the phone."""
    times = template.sample_times()
    skeleton = Skeleton(parameters, start_time=template.start_time)
    phone = skeleton.bone(PHONE)

    positions, rotations, directions, facing_values = [], [], [], []
    peak_amounts = {b.name: 0.0 for b in skeleton.bones}
    peak_rolls = {b.name: 0.0 for b in skeleton.bones}

    for time in times:
        skeleton.update(float(time))
        positions.append(phone.position.copy())
        rotations.append(phone.rotation)
        directions.append(skeleton.legs.last_direction)
        facing_values.append(facing_value_phone_to_eyes(skeleton))
        for bone in skeleton.bones:
            peak_amounts[bone.name] = max(peak_amounts[bone.name], abs(bone.last_amount))
            peak_rolls[bone.name] = max(peak_rolls[bone.name], abs(bone.last_roll))

    return SimulationResults(
        template.simulation_step,
        parameters,
        positions,
        rotations,
        directions,
        facing_values,
        peak_amounts=peak_amounts,
        peak_rolls=peak_rolls,
    )


def evaluate_genes(genes: Sequence[float], template: MovementTemplate) -> FitnessScore:
    parameters = template.decode(genes)
    return template.score(simulate(template, parameters))


def fitness_values(genes: Sequence[float], template: MovementTemplate) -> tuple[float]:
    """DEAP style 1-tuple fitness."""
    return (evaluate_genes(np.asarray(genes, dtype=np.float64), template).score,)
