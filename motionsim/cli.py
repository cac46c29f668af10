"""
Command line entry point.

Usage (example):
    python -m motionsim train --template walking --gens 50 --pop_size 60 --workers 4 --seed 42
    python -m motionsim evaluate __output__/template=walking/seed=42/Walking_20250101_120000.json \
        --template walking --walking_speed 1.3 --step_time 0.55
"""

from __future__ import annotations

import argparse
from datetime import datetime
from pathlib import Path
from typing import Optional

import numpy as np

from motionsim import config, console
from motionsim.evolution import GAConfig, run_ga
from motionsim.export import load_parameters, plot_phone_path, save_config, save_history, save_parameters
from motionsim.simulation import simulate
from motionsim.templates import (
    TEMPLATE_KINDS,
    MovementTemplate,
    OnTableTemplate,
    SittingTemplate,
    WalkingTemplate,
    create_template,
)


def _pick(value: Optional[float], rng: np.random.Generator, bounds: tuple[float, float]) -> float:
    return float(rng.uniform(*bounds)) if value is None else value


def template_from_args(args: argparse.Namespace, rng: np.random.Generator) -> MovementTemplate:
    """Explicit values win, anything left out is drawn from the designer ranges."""
    kwargs = {}
    if args.sim_length is not None:
        kwargs["simulation_length"] = args.sim_length
    if args.template == "walking":
        return WalkingTemplate(
            _pick(args.walking_speed, rng, config.WALKING_SPEED_RANGE),
            _pick(args.step_time, rng, config.STEP_TIME_RANGE),
            **kwargs,
        )
    if args.template == "sitting":
        return SittingTemplate(
            _pick(args.direction, rng, config.SITTING_DIRECTION_RANGE),
            _pick(args.breath_time, rng, config.BREATH_TIME_RANGE),
            **kwargs,
        )
    if args.template == "on_table":
        return OnTableTemplate(
            _pick(args.direction, rng, config.ON_TABLE_DIRECTION_RANGE),
            _pick(args.up_target, rng, config.ON_TABLE_UP_TARGET_RANGE),
            **kwargs,
        )
    return create_template(args.template, rng, **kwargs)


def train(args: argparse.Namespace) -> Path:
    rng = np.random.default_rng(args.seed)
    template = template_from_args(args, rng)
    cfg = GAConfig(
        pop_size=args.pop_size,
        n_gen=args.gens,
        elite_k=args.elite_k,
        mut_prob=args.pm,
        mut_sigma=args.sigma,
        seed=args.seed,
        workers=args.workers,
    )

    run_dir = Path(args.outdir).absolute() / f"template={args.template}" / f"seed={args.seed}"
    run_dir.mkdir(parents=True, exist_ok=True)
    save_config({**cfg.as_dict(), **template.settings()}, run_dir / "config.json")

    name = f"{template.name}_{datetime.now().strftime('%Y%m%d_%H%M%S')}"
    result = run_ga(template, cfg, name=name)

    console.print(result.best_fitness.as_table(name))
    doc = save_parameters(result.parameters, run_dir / f"{name}.json")
    save_history(result.history, run_dir / "fitness_history.csv")
    np.save(run_dir / "best_genome.npy", result.best_genes)
    plot_phone_path(simulate(template, result.parameters), run_dir / "phone_path.png", title=name)
    console.log(f"[green]Saved best parameters to {doc}[/green]")
    return doc


def evaluate(args: argparse.Namespace) -> float:
    rng = np.random.default_rng(args.seed)
    template = template_from_args(args, rng)
    parameters = load_parameters(Path(args.document))
    fitness = template.score(simulate(template, parameters))
    console.print(fitness.as_table(parameters.name or template.name))
    return fitness.score


def _add_template_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--template", choices=TEMPLATE_KINDS, default="walking", help="Movement archetype.")
    p.add_argument("--walking_speed", type=float, default=None, help="Walking speed (m/s).")
    p.add_argument("--step_time", type=float, default=None, help="Time between steps (s).")
    p.add_argument("--direction", type=float, default=None, help="Fixed heading (rad).")
    p.add_argument("--breath_time", type=float, default=None, help="Time between breaths (s).")
    p.add_argument("--up_target", type=float, default=None, help="Target up-facing value on a table.")
    p.add_argument("--sim_length", type=float, default=None, help="Override simulated seconds.")
    p.add_argument("--seed", type=int, default=config.SEED, help="Random seed.")


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Evolve phone-carrying body motions with a DEAP GA.")
    sub = p.add_subparsers(dest="cmd", required=True)

    t = sub.add_parser("train", help="Run GA training.")
    _add_template_args(t)
    t.add_argument("--pop_size", type=int, default=config.POP_SIZE, help="Population size.")
    t.add_argument("--gens", type=int, default=config.N_GEN, help="Generations.")
    t.add_argument("--elite_k", type=int, default=config.ELITISM_SIZE, help="Elites carried over each gen.")
    t.add_argument("--pm", type=float, default=config.MUT_PROB, help="Mutation per-gene probability.")
    t.add_argument("--sigma", type=float, default=config.MUT_SIGMA, help="Gaussian mutation std.")
    t.add_argument("--workers", type=int, default=config.WORKERS, help="Parallel workers.")
    t.add_argument("--outdir", type=str, default=str(config.OUTPUT), help="Output directory.")

    e = sub.add_parser("evaluate", help="Re-simulate a saved parameter document and score it.")
    e.add_argument("document", type=str, help="Parameter JSON written by train.")
    _add_template_args(e)

    return p.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> None:
    args = parse_args(argv)
    if args.cmd == "train":
        train(args)
    elif args.cmd == "evaluate":
        evaluate(args)
    else:
        raise ValueError("Unknown command")


if __name__ == "__main__":
    main()
