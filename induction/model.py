from __future__ import annotations

import copy
from typing import Any, Dict, Mapping, Optional, Tuple

import numpy as np

from optimizer.errors import ConfigurationError

Key = Tuple[str, str]


class EvaluableModel:
    """
    What the scheduler needs from an external simulation.

    Parameters are addressed by ``(component, parameter)`` and stored
    time-first: axis 0 is the period, the remaining axes are the parameter's
    native per-period shape.
    """
    def get(self, component: str, parameter: str) -> np.ndarray:
        """Current stored value of a parameter (a copy)."""
        raise NotImplementedError

    def set(self, component: str, parameter: str, period: int, values) -> None:
        """Overwrite one period of a parameter. ``values`` must have the native shape."""
        raise NotImplementedError

    def run(self) -> None:
        """Recompute the full trajectory from the first period forward."""
        raise NotImplementedError

    def read(self, component: str, parameter: str):
        """Output (or parameter) value after the last ``run``."""
        raise NotImplementedError


class ArrayModel(EvaluableModel):
    """
    In-memory model: parameters live in a dict of numpy arrays and ``run``
    stores whatever ``compute`` returns as the outputs. Subclasses implement
    ``compute``.
    """
    def __init__(self, params: Optional[Mapping[Key, Any]] = None):
        self.params: Dict[Key, np.ndarray] = {}
        for key, value in (params or {}).items():
            self.add_parameter(key[0], key[1], value)
        self.outputs: Dict[Key, Any] = {}
        self.n_runs: int = 0

    def add_parameter(self, component: str, parameter: str, value) -> None:
        arr = np.array(value, dtype=float)
        if arr.ndim == 0:
            raise ConfigurationError(f"{component}.{parameter} needs a time axis, got a scalar")
        self.params[(component, parameter)] = arr

    def _param(self, component: str, parameter: str) -> np.ndarray:
        try:
            return self.params[(component, parameter)]
        except KeyError:
            raise ConfigurationError(f"unknown parameter {component}.{parameter}") from None

    @property
    def n_periods(self) -> int:
        lengths = {arr.shape[0] for arr in self.params.values()}
        if len(lengths) != 1:
            raise ConfigurationError(f"parameters disagree on the number of periods: {sorted(lengths)}")
        return lengths.pop()

    def get(self, component: str, parameter: str) -> np.ndarray:
        return self._param(component, parameter).copy()

    def set(self, component: str, parameter: str, period: int, values) -> None:
        arr = self._param(component, parameter)
        if not 0 <= period < arr.shape[0]:
            raise ConfigurationError(
                f"period {period} out of range for {component}.{parameter} with {arr.shape[0]} periods")
        vals = np.asarray(values, dtype=float)
        if vals.shape != arr.shape[1:]:
            raise ConfigurationError(
                f"{component}.{parameter} expects shape {arr.shape[1:]} per period, got {vals.shape}")
        arr[period] = vals

    def update(self, component: str, parameter: str, values) -> None:
        """Replace every period of a parameter at once."""
        arr = self._param(component, parameter)
        vals = np.asarray(values, dtype=float)
        if vals.shape != arr.shape:
            raise ConfigurationError(
                f"{component}.{parameter} has shape {arr.shape}, got {vals.shape}")
        arr[...] = vals

    def compute(self) -> Mapping[Key, Any]:
        raise NotImplementedError

    def run(self) -> None:
        self.outputs = dict(self.compute())
        self.n_runs += 1

    def read(self, component: str, parameter: str):
        key = (component, parameter)
        if key in self.outputs:
            value = self.outputs[key]
        elif key in self.params:
            value = self.params[key]
        else:
            raise ConfigurationError(f"{component}.{parameter} is neither an output nor a parameter")
        return value.copy() if isinstance(value, np.ndarray) else value

    def snapshot(self) -> "ArrayModel":
        """Independent copy, for callers that need the state before a solve."""
        return copy.deepcopy(self)
