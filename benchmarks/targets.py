from __future__ import annotations

from typing import Dict, Optional, Tuple

import numpy as np

from induction.model import ArrayModel


class TargetModel(ArrayModel):
    """
    Model without any link between periods: every parameter entry has a target
    and the loss is the squared distance to it. Outputs:

    - (component, "loss"): sum of squared deviations over all periods
    - (component, "total"): per-period sum of all parameter entries
    """
    def __init__(self, shapes: Dict[str, Tuple[int, ...]], targets: Optional[Dict[str, np.ndarray]] = None,
                 component: str = "alloc"):
        super().__init__({(component, name): np.zeros(shape) for name, shape in shapes.items()})
        self.component = component
        self.targets = {name: np.asarray(targets[name], dtype=float) if targets and name in targets
                        else np.zeros(shape) for name, shape in shapes.items()}

    def compute(self):
        loss = 0.0
        total = np.zeros(self.n_periods)
        for name, target in self.targets.items():
            x = self.params[(self.component, name)]
            loss += float(np.sum((x - target) ** 2))
            total += x.reshape(x.shape[0], -1).sum(axis=1)
        return {(self.component, "loss"): loss, (self.component, "total"): total}


def target_loss(model: TargetModel) -> float:
    return model.read(model.component, "loss")


def negative_total(model: TargetModel) -> float:
    return -float(np.sum(model.read(model.component, "total")))
