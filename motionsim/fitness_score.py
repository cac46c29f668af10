"""Weighted score accumulator used by the movement template rubrics."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from rich.table import Table


def _clamp01(weight: float) -> float:
    return min(max(weight, 0.0), 1.0)


@dataclass
class FitnessScore:
    """
    Keeps track of all added or subtracted terms.

    ``components`` maps a term name to (weighted value, raw value). Scores add
    to both ``score`` and ``max_score``; penalties only subtract from
    ``score``. Reusing a name overwrites the recorded component.
    """

    score: float = 0.0
    max_score: float = 0.0
    components: dict[str, tuple[float, float]] = field(default_factory=dict)

    def add_weighed_score_linear(self, name: str, score: float, weight: float) -> None:
        weighed = score * _clamp01(weight)
        self.score += weighed
        self.max_score += score
        self.components[name] = (weighed, score)

    def add_weighed_score_sqrt(self, name: str, score: float, weight: float) -> None:
        self.add_weighed_score_linear(name, score, math.sqrt(_clamp01(weight)))

    def add_score(self, name: str, score: float) -> None:
        self.score += score
        self.max_score += score
        self.components[name] = (score, score)

    def add_weighed_penalty_linear(self, name: str, score: float, weight: float) -> None:
        weighed = score * _clamp01(weight)
        self.score -= weighed
        self.components[name] = (-weighed, -score)

    def add_weighed_penalty_sqrt(self, name: str, score: float, weight: float) -> None:
        self.add_weighed_penalty_linear(name, score, math.sqrt(_clamp01(weight)))

    def add_penalty(self, name: str, score: float) -> None:
        self.score -= score
        self.components[name] = (-score, -score)

    @property
    def ratio(self) -> float:
        return self.score / self.max_score if self.max_score else 0.0

    def as_table(self, title: str = "Fitness") -> Table:
        table = Table(title=f"{title}: {self.score:.4f} / {self.max_score:.4f}")
        table.add_column("component")
        table.add_column("weighted", justify="right")
        table.add_column("raw", justify="right")
        for name, (weighed, raw) in self.components.items():
            style = "red" if weighed < 0 else None
            table.add_row(name, f"{weighed:.4f}", f"{raw:.4f}", style=style)
        return table
