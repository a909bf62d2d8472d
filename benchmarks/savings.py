from __future__ import annotations

import numpy as np

from induction.model import ArrayModel


class SavingsModel(ArrayModel):
    """
    One-sector growth model with a savings-rate decision per period.

        Y_t     = A * K_t^alpha
        C_t     = (1 - s_t) * Y_t
        K_{t+1} = (1 - delta) * K_t + s_t * Y_t
        W       = sum_t beta^t log C_t + beta^T * terminal * log K_T

    Capital only flows forward, so the savings choice in period t changes every
    later period but none before it.
    """
    def __init__(self, n_periods: int = 3, k0: float = 1.0, A: float = 1.0, alpha: float = 0.3,
                 delta: float = 0.1, beta: float = 0.96, terminal: float = 2.0, s0: float = 0.2):
        super().__init__({("welfare", "s"): np.full(n_periods, s0)})
        self.k0 = k0
        self.A = A
        self.alpha = alpha
        self.delta = delta
        self.beta = beta
        self.terminal = terminal

    def compute(self):
        s = self.params[("welfare", "s")]
        T = s.size
        K = np.empty(T + 1)
        Y = np.empty(T)
        K[0] = self.k0
        for t in range(T):
            Y[t] = self.A * K[t] ** self.alpha
            K[t + 1] = (1.0 - self.delta) * K[t] + s[t] * Y[t]
        C = (1.0 - s) * Y
        disc = self.beta ** np.arange(T)
        with np.errstate(divide="ignore"):
            W = float(np.sum(disc * np.log(C)) + self.beta ** T * self.terminal * np.log(K[T]))
        return {
            ("production", "K"): K,
            ("production", "Y"): Y,
            ("welfare", "C"): C,
            ("welfare", "W"): W,
        }

    def last_period_savings(self) -> float:
        """Closed-form optimal savings rate of the final period, given the capital it inherits."""
        self.run()
        T = self.n_periods
        K = self.read("production", "K")[T - 1]
        Y = self.read("production", "Y")[T - 1]
        bb = self.beta * self.terminal
        return (bb * Y - (1.0 - self.delta) * K) / ((1.0 + bb) * Y)


def negative_welfare(model: SavingsModel) -> float:
    return -model.read("welfare", "W")
