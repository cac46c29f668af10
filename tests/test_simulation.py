import numpy as np
import pytest

from motionsim.fitness_score import FitnessScore
from motionsim.simulation import evaluate_genes, facing_value_phone_to_eyes, fitness_values, simulate
from motionsim.skeleton import Skeleton
from motionsim.templates import SittingTemplate, WalkingTemplate


@pytest.fixture
def walking():
    return WalkingTemplate(walking_speed=1.3, step_time=0.5, simulation_length=0.99)


def test_simulate_records_every_sample(walking):
    genes = walking.initial_genes(np.random.default_rng(1))
    results = simulate(walking, walking.decode(genes))
    assert len(results) == 50
    assert results.phone_positions.shape == (50, 3)
    assert results.phone_velocities.shape == (49,)
    assert np.all((results.facing_values >= 0.0) & (results.facing_values <= 1.0))
    assert set(results.peak_amounts) == {"Torso", "Shoulder", "Upper Arm", "Lower Arm", "Hand"}


def test_walking_moves_forward(walking):
    results = simulate(walking, walking.decode(np.zeros(walking.chromosome_length)))
    travelled = results.phone_positions[-1] - results.phone_positions[0]
    # 49 steps of 0.02 s at 1.3 m/s along +X with a zero heading
    assert travelled[0] == pytest.approx(1.3 * 49 * 0.02, rel=1e-6)


def test_evaluate_genes_is_deterministic(walking):
    genes = walking.initial_genes(np.random.default_rng(2))
    first = evaluate_genes(genes, walking)
    second = evaluate_genes(genes.copy(), walking)
    assert isinstance(first, FitnessScore)
    assert np.isfinite(first.score)
    assert first.score == second.score
    for name in ("walkingAmplitudePortions", "averageFacingValue", "velocitySpectrumCadence",
                 "angleVelocitiesMeanTargetHit", "maxLegsDirection"):
        assert name in first.components
    assert fitness_values(list(genes), walking) == (first.score,)


def test_sitting_scores_breathing_terms():
    template = SittingTemplate(direction=0.0, breath_time=4.0, simulation_length=2.0)
    fitness = evaluate_genes(template.initial_genes(np.random.default_rng(3)), template)
    assert "velocitySpectrumBreathing" in fitness.components
    assert "velocitiesMeanTargetHit" in fitness.components
    assert fitness.score <= fitness.max_score


def test_facing_value_is_squared_cosine(make_parameters):
    skeleton = Skeleton(make_parameters())
    skeleton.update(0.0)
    value = facing_value_phone_to_eyes(skeleton)
    assert 0.0 <= value <= 1.0
