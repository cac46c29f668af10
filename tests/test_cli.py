import csv
import json

import numpy as np
import pytest

from motionsim.cli import evaluate, parse_args, template_from_args, train
from motionsim.templates import OnTableTemplate, WalkingTemplate


def test_explicit_values_win():
    args = parse_args(["train", "--template", "walking", "--walking_speed", "1.1", "--sim_length", "3"])
    template = template_from_args(args, np.random.default_rng(0))
    assert isinstance(template, WalkingTemplate)
    assert template.walking_speed == 1.1
    assert 0.45 <= template.step_time <= 0.65
    assert template.simulation_length == 3.0


def test_unknown_template_is_rejected():
    with pytest.raises(SystemExit):
        parse_args(["train", "--template", "running"])


def test_train_then_evaluate(tmp_path):
    argv = ["--template", "on_table", "--seed", "3"]
    args = parse_args(["train", *argv, "--pop_size", "6", "--gens", "2", "--elite_k", "2",
                       "--workers", "1", "--outdir", str(tmp_path)])
    doc = train(args)

    run_dir = tmp_path / "template=on_table" / "seed=3"
    assert doc.parent == run_dir
    for artifact in ("config.json", "fitness_history.csv", "best_genome.npy", "phone_path.png"):
        assert (run_dir / artifact).exists()

    data = json.loads(doc.read_text())
    assert data["name"].startswith("OnTable_")
    assert [b["boneName"] for b in data["bones"]] == ["Torso", "Shoulder", "Upper Arm", "Lower Arm", "Hand"]
    assert set(data["legs"]) == {"velocityX", "velocityY", "velocityZ", "direction"}

    config = json.loads((run_dir / "config.json").read_text())
    assert config["template"] == "OnTable"
    assert config["pop_size"] == 6

    with open(run_dir / "fitness_history.csv") as f:
        rows = list(csv.DictReader(f))
    assert len(rows) == 3

    score = evaluate(parse_args(["evaluate", str(doc), *argv]))
    assert score == pytest.approx(float(rows[-1]["best"]))


def test_on_table_args():
    args = parse_args(["evaluate", "doc.json", "--template", "on_table", "--direction", "0.2", "--up_target", "0.9"])
    template = template_from_args(args, np.random.default_rng(0))
    assert isinstance(template, OnTableTemplate)
    assert template.direction == 0.2
    assert template.up_value_target == 0.9
