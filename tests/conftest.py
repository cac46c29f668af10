import pytest

from motionsim.parameters import BoneParameters, LegParameters, SimulationParameters
from motionsim.signals import ParametricFactor
from motionsim.skeleton import BONE_NAMES


def still_parameters(direction=0.0, velocity_x=0.0, names=BONE_NAMES):
    still = ParametricFactor.still(0.0)
    legs = LegParameters(ParametricFactor.still(velocity_x), still, still, ParametricFactor.still(direction))
    bones = [BoneParameters(name, still, still, still) for name in names]
    return SimulationParameters(legs, bones)


@pytest.fixture
def make_parameters():
    return still_parameters
