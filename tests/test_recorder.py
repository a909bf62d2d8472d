import csv
import json

import numpy as np

from optimizer.boxdescent import BoxDescent
from utils.recorder import (RunConfig, coordinate_labels, create_run_dir, save_decisions_csv,
                            save_history_csv, save_run_metadata)
from benchmarks.quadratic import bowl
from benchmarks.run_savings import run_savings


def test_history_csv_from_traced_run(tmp_path):
    res = BoxDescent({"trace": True}).run(lambda v: bowl(v, (0.3, 0.7)), [0.5, 0.5])
    run_dir = create_run_dir("box", "bowl_2d", root=tmp_path)
    assert (run_dir / "problem.txt").read_text() == "bowl_2d"

    path = save_history_csv(run_dir, res.history)
    rows = list(csv.reader(path.open()))
    assert rows[0] == ["iter", "f", "x1", "x2"]
    assert len(rows) == 1 + len(res.history)
    float(rows[-1][1])


def test_decisions_and_metadata(tmp_path):
    run_dir = create_run_dir("induction", "savings_T2", root=tmp_path)
    labels = coordinate_labels([("welfare", "s"), ("allocation", "xi")], [1, 2])
    assert labels == ["welfare.s", "allocation.xi[0]", "allocation.xi[1]"]

    mat = np.array([[0.1, 0.2, 0.3], [0.4, 0.5, 0.6]])
    path = save_decisions_csv(run_dir, mat, labels, periods=[2020, 2030])
    lines = path.read_text().strip().splitlines()
    assert lines[0] == "period,welfare.s,allocation.xi[0],allocation.xi[1]"
    assert lines[2].startswith("2030,0.4")

    cfg = RunConfig(solver="induction", problem="savings_T2", n_periods=2, n_vars=3,
                    stepsize=0.5, tol=1e-6, maxiter=100)
    meta = json.loads(save_run_metadata(run_dir, cfg, {"objective": np.float64(-1.5)}).read_text())
    assert meta["n_vars"] == 3
    assert meta["objective"] == -1.5


def test_unique_run_dirs(tmp_path):
    a = create_run_dir("root", "p", root=tmp_path)
    b = create_run_dir("root", "p", root=tmp_path)
    assert a != b


def test_savings_run_is_recorded(tmp_path):
    run_dir = run_savings(n_periods=3, root=tmp_path)
    assert run_dir.parent == tmp_path / "induction"

    rows = list(csv.reader((run_dir / "decisions.csv").open()))
    assert rows[0] == ["period", "welfare.s"]
    assert len(rows) == 4
    s = np.array([float(r[1]) for r in rows[1:]])
    assert np.all((s >= 0.0) & (s <= 0.9))

    meta = json.loads((run_dir / "metadata.json").read_text())
    assert meta["problem"] == "savings_T3"
    assert meta["n_periods"] == 3 and meta["n_vars"] == 1
    assert np.isfinite(meta["welfare"])
