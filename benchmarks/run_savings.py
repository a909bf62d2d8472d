import argparse
from pathlib import Path
from typing import Optional

from induction.scheduler import BackwardInduction
from utils.recorder import RunConfig, coordinate_labels, create_run_dir, save_decisions_csv, save_run_metadata
from benchmarks.savings import SavingsModel, negative_welfare

COORDINATES = [("welfare", "s")]


def run_savings(n_periods: int = 5, upper: float = 0.9, stepsize: float = 0.5, tol: float = 1e-6,
                maxiter: int = 100, root: Optional[Path] = None, verbose: bool = False) -> Path:
    """Solve the savings model by backward induction and record the run; returns the run directory."""
    model = SavingsModel(n_periods=n_periods)
    sched = BackwardInduction(model, COORDINATES, negative_welfare, upper=[upper],
                              options=dict(stepsize=stepsize, tol=tol, maxiter=maxiter, verbose=verbose))
    decisions = sched.solve()

    run_dir = create_run_dir("induction", f"savings_T{n_periods}", root=root)
    save_decisions_csv(run_dir, decisions, labels=coordinate_labels(sched.layout.coordinates, sched.layout.sizes))
    config = RunConfig(solver="induction", problem=f"savings_T{n_periods}", n_periods=n_periods,
                       n_vars=sched.layout.n_vars, stepsize=stepsize, tol=tol, maxiter=maxiter)
    save_run_metadata(run_dir, config, extra={
        "welfare": model.read("welfare", "W"),
        "model_runs": model.n_runs,
    })
    return run_dir


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--T", type=int, default=5, help="Number of periods")
    parser.add_argument("--upper", type=float, default=0.9, help="Upper bound on the savings rate")
    parser.add_argument("--stepsize", type=float, default=0.5)
    parser.add_argument("--tol", type=float, default=1e-6)
    parser.add_argument("--maxiter", type=int, default=100, help="Iteration cap per period")
    parser.add_argument("--out", type=str, default=None, help="Results root (default data/results)")
    args = parser.parse_args()

    run_dir = run_savings(args.T, args.upper, args.stepsize, args.tol, args.maxiter,
                          root=Path(args.out) if args.out else None, verbose=True)
    print("Saved run:", run_dir)


if __name__ == "__main__":
    main()
