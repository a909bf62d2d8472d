from __future__ import annotations

import csv
import json
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

import numpy as np


# Project root: .../bisolve
PROJECT_ROOT = Path(__file__).resolve().parents[1]

DATA_ROOT = PROJECT_ROOT / "data"
RESULTS_ROOT = DATA_ROOT / "results"


@dataclass
class RunConfig:
    """Minimal run configuration metadata to store with each run."""
    solver: str          # "root", "curvefit", "box" or "induction"
    problem: str         # e.g. "savings_T3", "tfp_manufacturing"
    n_periods: int
    n_vars: int
    stepsize: float
    tol: float
    maxiter: int


def _ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def create_run_dir(solver: str, problem: str, root: Optional[Path] = None) -> Path:
    """
    Create and return a unique directory for a single run.

    Structure:
        {root}/{solver}/run_YYYYmmdd_HHMMSS_XXXX/

    root defaults to data/results under the project root.
    """
    if solver not in {"root", "curvefit", "box", "induction"}:
        raise ValueError(f"Unknown solver: {solver}")

    base = Path(root) if root is not None else RESULTS_ROOT
    base = base / solver
    _ensure_dir(base)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    # Short suffix from the microseconds to avoid collisions
    suffix = datetime.now().strftime("%f")[-4:]
    run_dir = base / f"run_{timestamp}_{suffix}"
    n = 1
    while run_dir.exists():
        run_dir = base / f"run_{timestamp}_{suffix}_{n}"
        n += 1
    _ensure_dir(run_dir)

    (run_dir / "problem.txt").write_text(problem)
    return run_dir


def save_history_csv(run_dir: Path, history: Sequence[Dict[str, Any]]) -> Path:
    """
    Save a solver iteration history (``result.history`` with trace on) to CSV:
        iter, f, x1, x2, ...
    """
    path = Path(run_dir) / "history.csv"
    n = max((np.size(h.get("x", ())) for h in history), default=0)
    with path.open("w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["iter", "f"] + [f"x{i + 1}" for i in range(n)])
        for h in history:
            x = np.atleast_1d(np.asarray(h.get("x", ()), dtype=float))
            writer.writerow([h["iter"], h["f"]] + [float(v) for v in x])
    return path


def save_decisions_csv(
    run_dir: Path,
    decisions: np.ndarray,
    labels: Optional[Sequence[str]] = None,
    periods: Optional[Sequence[Any]] = None,
) -> Path:
    """
    Save a (periods, coordinates) decision matrix:
        period, <label 1>, <label 2>, ...
    """
    mat = np.atleast_2d(np.asarray(decisions, dtype=float))
    T, n = mat.shape
    labels = list(labels) if labels is not None else [f"x{i + 1}" for i in range(n)]
    periods = list(periods) if periods is not None else list(range(T))
    if len(labels) != n or len(periods) != T:
        raise ValueError(f"labels/periods do not match decision matrix of shape {mat.shape}")

    path = Path(run_dir) / "decisions.csv"
    with path.open("w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["period"] + labels)
        for t, row in zip(periods, mat):
            writer.writerow([t] + [float(v) for v in row])
    return path


def coordinate_labels(coordinates: Iterable[Sequence[str]], sizes: Iterable[int]) -> List[str]:
    """Column labels "component.parameter[k]" for a decision layout."""
    labels: List[str] = []
    for (comp, param), size in zip(coordinates, sizes):
        if size == 1:
            labels.append(f"{comp}.{param}")
        else:
            labels.extend(f"{comp}.{param}[{k}]" for k in range(size))
    return labels


def save_run_metadata(run_dir: Path, config: RunConfig, extra: Dict[str, Any] | None = None) -> Path:
    """
    Save run configuration and optional extra info to metadata.json.
    """
    meta: Dict[str, Any] = asdict(config)
    if extra:
        meta.update(extra)

    path = Path(run_dir) / "metadata.json"
    with path.open("w") as f:
        json.dump(meta, f, indent=2, default=float)
    return path
