"""Run constants. The CLI overrides the GA settings per run."""

import math
import os
from pathlib import Path
from typing import Final

SEED: Final[int] = 42

# Outer GA loop
POP_SIZE: Final[int] = 200
N_GEN: Final[int] = 1000
ELITISM_SIZE: Final[int] = 40
MUT_PROB: Final[float] = 0.05
MUT_SIGMA: Final[float] = 2.0
CX_INDPB: Final[float] = 0.5
WORKERS: Final[int] = max(1, (os.cpu_count() or 2) // 2)

OUTPUT: Final[Path] = Path.cwd() / "__output__"

# Simulated time starts here; the first samples are not at rest
SIM_START_TIME: Final[float] = 10.0

# Designer ranges for the per-run randomized template configuration
WALKING_SPEED_RANGE: Final[tuple[float, float]] = (1.0, 1.6)
STEP_TIME_RANGE: Final[tuple[float, float]] = (0.45, 0.65)
SITTING_DIRECTION_RANGE: Final[tuple[float, float]] = (-math.pi, math.pi)
BREATH_TIME_RANGE: Final[tuple[float, float]] = (3.0, 5.0)
ON_TABLE_DIRECTION_RANGE: Final[tuple[float, float]] = (-math.pi, math.pi)
ON_TABLE_UP_TARGET_RANGE: Final[tuple[float, float]] = (0.9, 1.0)
