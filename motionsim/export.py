"""Run artifacts: parameter document, fitness history, config and a phone path plot."""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Any

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402

from motionsim.parameters import SimulationParameters  # noqa: E402
from motionsim.results import SimulationResults  # noqa: E402

HISTORY_FIELDS = ["gen", "best", "avg", "std", "time_s"]


def save_parameters(parameters: SimulationParameters, path: Path) -> Path:
    with open(path, "w") as f:
        json.dump(parameters.to_dict(), f, indent=2)
    return path


def load_parameters(path: Path) -> SimulationParameters:
    with open(path) as f:
        return SimulationParameters.from_dict(json.load(f))


def save_history(history: list[dict], path: Path) -> Path:
    with open(path, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=HISTORY_FIELDS)
        writer.writeheader()
        writer.writerows(history)
    return path


def save_config(cfg: dict[str, Any], path: Path) -> Path:
    with open(path, "w") as f:
        json.dump(cfg, f, indent=2)
    return path


def plot_phone_path(results: SimulationResults, path: Path, title: str = "Phone path") -> Path:
    """Top-down (X/Z) view of the phone trajectory of one run."""
    pos = np.asarray(results.phone_positions, dtype=np.float64)
    fig, ax = plt.subplots()
    ax.plot(pos[:, 0], pos[:, 2], "b-", label="Path")
    ax.plot(pos[0, 0], pos[0, 2], "go", label="Start")
    ax.plot(pos[-1, 0], pos[-1, 2], "ro", label="End")
    ax.set_xlabel("X Position")
    ax.set_ylabel("Z Position")
    ax.set_aspect("equal", adjustable="datalim")
    ax.legend()
    ax.set_title(title)
    fig.savefig(path)
    plt.close(fig)
    return path
