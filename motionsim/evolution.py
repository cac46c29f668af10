"""
Generational GA with DEAP over flat motion chromosomes.

- Genome: flat float vector, length given by the movement template
- Selection: elitism, the best ``elite_k`` survive unchanged and are the parent pool
- Variation: uniform crossover of two elites (drawn with replacement), then
  per-gene Gaussian mutation, unbounded
- Parallel: fitness of a generation is evaluated through ``toolbox.map``
  (a multiprocessing pool when workers > 1)
- Reproducibility: every child gets its own numpy generator spawned from one
  SeedSequence; Python's ``random`` (used by cxUniform) is seeded as well
"""

from __future__ import annotations

import multiprocessing as mp
import random
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Optional

import numpy as np
from deap import base, creator, tools

from motionsim import config, console
from motionsim.fitness_score import FitnessScore
from motionsim.parameters import SimulationParameters
from motionsim.simulation import evaluate_genes, fitness_values
from motionsim.templates import MovementTemplate

# Created once at import so pool workers see the same classes
if "FitnessMax" not in creator.__dict__:
    creator.create("FitnessMax", base.Fitness, weights=(1.0,))
if "Individual" not in creator.__dict__:
    creator.create("Individual", np.ndarray, fitness=creator.FitnessMax)


@dataclass
class GAConfig:
    pop_size: int = config.POP_SIZE
    n_gen: int = config.N_GEN
    elite_k: int = config.ELITISM_SIZE
    mut_prob: float = config.MUT_PROB
    mut_sigma: float = config.MUT_SIGMA
    cx_indpb: float = config.CX_INDPB
    seed: int = config.SEED
    workers: int = 1

    def __post_init__(self) -> None:
        if not 1 <= self.elite_k <= self.pop_size:
            raise ValueError(f"elite_k must be in [1, pop_size={self.pop_size}], got {self.elite_k}")

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class GAResult:
    best_genes: np.ndarray
    best_fitness: FitnessScore
    parameters: SimulationParameters
    history: list[dict] = field(default_factory=list)
    logbook: Optional[tools.Logbook] = None

    @property
    def best_score(self) -> float:
        return self.best_fitness.score


def mutate_gaussian(individual: np.ndarray, rng: np.random.Generator, indpb: float, sigma: float):
    """Add N(0, sigma) noise to each gene with probability ``indpb``, no clipping."""
    mask = rng.random(individual.shape[0]) < indpb
    individual[mask] += rng.normal(loc=0.0, scale=sigma, size=int(mask.sum()))
    return (individual,)


def build_toolbox(template: MovementTemplate, cfg: GAConfig, init_rng: np.random.Generator) -> base.Toolbox:
    toolbox = base.Toolbox()
    toolbox.register("individual", lambda: creator.Individual(template.initial_genes(init_rng)))
    toolbox.register("population", tools.initRepeat, list, toolbox.individual)
    toolbox.register("evaluate", fitness_values, template=template)
    toolbox.register("mate", tools.cxUniform, indpb=cfg.cx_indpb)
    toolbox.register("mutate", mutate_gaussian, indpb=cfg.mut_prob, sigma=cfg.mut_sigma)
    toolbox.register("select", tools.selBest)
    return toolbox


def _evaluate_invalid(toolbox: base.Toolbox, population: list) -> int:
    invalid = [ind for ind in population if not ind.fitness.valid]
    if invalid:
        # plain arrays travel to the workers, the creator classes stay here
        fits = list(toolbox.map(toolbox.evaluate, [np.asarray(ind, dtype=np.float64) for ind in invalid]))
        for ind, fit in zip(invalid, fits):
            ind.fitness.values = fit
    return len(invalid)


def breed(toolbox: base.Toolbox, elites: list, select_rng: np.random.Generator,
          child_seeds: list[np.random.SeedSequence]) -> list:
    """Children from elite parent pairs drawn with replacement."""
    offspring = []
    for seed in child_seeds:
        i, j = select_rng.integers(len(elites), size=2)
        child, other = toolbox.clone(elites[i]), toolbox.clone(elites[j])
        toolbox.mate(child, other)
        toolbox.mutate(child, np.random.default_rng(seed))
        del child.fitness.values
        offspring.append(child)
    return offspring


def run_ga(template: MovementTemplate, cfg: GAConfig, name: Optional[str] = None) -> GAResult:
    """
    Evolve chromosomes for ``template`` and return the best one decoded.

    Note: reseeds the global ``random`` module with ``cfg.seed``, the caller's
    ``random`` state is reset.
    """
    # cxUniform draws from the global random module
    random.seed(cfg.seed)
    seeds = np.random.SeedSequence(cfg.seed)
    init_seed, select_seed = seeds.spawn(2)
    select_rng = np.random.default_rng(select_seed)
    toolbox = build_toolbox(template, cfg, np.random.default_rng(init_seed))

    pool = None
    if cfg.workers > 1:
        pool = mp.Pool(processes=cfg.workers)
        toolbox.register("map", pool.map)

    hof = tools.HallOfFame(1, similar=lambda a, b: np.array_equal(np.asarray(a), np.asarray(b)))
    stats = tools.Statistics(key=lambda ind: float(ind.fitness.values[0]))
    stats.register("avg", np.mean)
    stats.register("std", np.std)
    stats.register("min", np.min)
    stats.register("max", np.max)
    logbook = tools.Logbook()
    logbook.header = ["gen", "nevals", "avg", "std", "min", "max", "time_s"]
    history: list[dict] = []

    console.rule(f"[bold green]{template.name}: {template.chromosome_length} genes[/bold green]")
    console.log(f"[bold cyan]GA pop={cfg.pop_size} gens={cfg.n_gen} elites={cfg.elite_k} "
                f"workers={cfg.workers} seed={cfg.seed}[/bold cyan]")
    try:
        population = toolbox.population(n=cfg.pop_size)
        start = time.time()
        nevals = _evaluate_invalid(toolbox, population)
        hof.update(population)

        for gen in range(cfg.n_gen + 1):
            if gen > 0:
                gen_start = time.time()
                elites = toolbox.select(population, cfg.elite_k)
                child_count = cfg.pop_size - len(elites)
                offspring = breed(toolbox, elites, select_rng, seeds.spawn(child_count))
                population = [toolbox.clone(e) for e in elites] + offspring
                nevals = _evaluate_invalid(toolbox, population)
                hof.update(population)
            else:
                gen_start = start

            record = stats.compile(population)
            elapsed = float(time.time() - gen_start)
            logbook.record(gen=gen, nevals=nevals, time_s=elapsed, **record)
            history.append({"gen": gen, "best": record["max"], "avg": record["avg"],
                            "std": record["std"], "time_s": elapsed})
            console.log(f"[Gen {gen:04d}] best={record['max']:.4f} avg={record['avg']:.4f} "
                        f"std={record['std']:.4f} ({elapsed:.2f}s)")
    finally:
        if pool is not None:
            pool.close()
            pool.join()

    best_genes = np.asarray(hof[0], dtype=np.float64).copy()
    if name is None:
        name = f"{template.name}_{datetime.now().strftime('%Y%m%d_%H%M%S')}"
    parameters = template.decode(best_genes).with_name(name)
    best_fitness = evaluate_genes(best_genes, template)
    console.log(f"[bold magenta]Best fitness = {best_fitness.score:.4f} / {best_fitness.max_score:.4f}[/bold magenta]")
    return GAResult(best_genes, best_fitness, parameters, history, logbook)
