from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple
import warnings

import numpy as np

from optimizer.errors import ConfigurationError
from .model import EvaluableModel

Coordinate = Tuple[str, str]


def pair_coordinates(components: Sequence[str], parameters: Sequence[str]) -> List[Coordinate]:
    """Zip parallel component and parameter lists into (component, parameter) pairs."""
    if isinstance(components, str):
        components = [components]
    if isinstance(parameters, str):
        parameters = [parameters]
    if len(components) != len(parameters):
        raise ConfigurationError(
            f"{len(components)} components but {len(parameters)} parameters were given")
    return list(zip(components, parameters))


@dataclass(frozen=True)
class DecisionLayout:
    """
    How the decision parameters map onto one flat decision vector per period.

    Parameter j occupies ``sizes[j]`` consecutive coordinates (the product of
    its per-period shape) in the order the parameters were listed.
    """
    coordinates: Tuple[Coordinate, ...]
    shapes: Tuple[Tuple[int, ...], ...]
    n_periods: int

    @classmethod
    def from_model(cls, model: EvaluableModel, coordinates: Sequence[Coordinate]) -> "DecisionLayout":
        if not coordinates:
            raise ConfigurationError("at least one (component, parameter) pair is required")
        coords, shapes, periods = [], [], set()
        for pair in coordinates:
            if len(pair) != 2:
                raise ConfigurationError(f"coordinate {pair!r} is not a (component, parameter) pair")
            arr = np.asarray(model.get(*pair))
            if arr.ndim == 0:
                raise ConfigurationError(f"{pair[0]}.{pair[1]} has no time axis")
            coords.append(tuple(pair))
            shapes.append(tuple(arr.shape[1:]))
            periods.add(arr.shape[0])
        if len(periods) != 1:
            raise ConfigurationError(f"decision parameters disagree on the number of periods: {sorted(periods)}")
        return cls(tuple(coords), tuple(shapes), periods.pop())

    @property
    def sizes(self) -> List[int]:
        return [int(np.prod(s, dtype=int)) for s in self.shapes]

    @property
    def n_vars(self) -> int:
        return sum(self.sizes)

    def slices(self) -> List[slice]:
        ends = np.cumsum(self.sizes)
        return [slice(int(e - s), int(e)) for s, e in zip(self.sizes, ends)]

    def split(self, x: np.ndarray) -> List[np.ndarray]:
        """Cut a flat decision vector into per-parameter arrays of native shape."""
        x = np.asarray(x, dtype=float)
        if x.shape != (self.n_vars,):
            raise ConfigurationError(f"decision vector has shape {x.shape}, expected ({self.n_vars},)")
        return [x[sl].reshape(shape) for sl, shape in zip(self.slices(), self.shapes)]

    def indices(self, parameters: Sequence[int]) -> np.ndarray:
        """Decision coordinates belonging to the listed parameter positions."""
        groups = list(parameters)
        if not groups:
            raise ConfigurationError("an index group must name at least one parameter")
        slices = self.slices()
        out = []
        for j in groups:
            if not isinstance(j, (int, np.integer)) or not 0 <= j < len(slices):
                raise ConfigurationError(
                    f"parameter index {j!r} outside 0..{len(slices) - 1}")
            out.extend(range(slices[j].start, slices[j].stop))
        return np.unique(np.asarray(out, dtype=int))

    def initial(self, model: EvaluableModel) -> np.ndarray:
        """(periods, coordinates) matrix of the model's current decision values."""
        cols = [np.asarray(model.get(*pair), dtype=float).reshape(self.n_periods, size)
                for pair, size in zip(self.coordinates, self.sizes)]
        return np.hstack(cols)


def resolve_bounds(values, layout: DecisionLayout, default: float, name: str = "bounds") -> np.ndarray:
    """
    Expand a bound specification to a (periods, coordinates) matrix.

    Accepted lengths, tried in this order:
    - periods * coordinates: one bound per coordinate per period (a flat
      sequence runs over periods first, column-major; a (periods, coordinates)
      array is taken as is)
    - coordinates: broadcast across periods
    - parameters: expanded over each parameter's coordinates, then across periods
    - periods: broadcast across coordinates (warns)
    """
    T, n = layout.n_periods, layout.n_vars
    if values is None:
        return np.full((T, n), float(default))

    arr = np.asarray(values, dtype=float)
    if arr.shape == (T, n):
        return arr.copy()
    flat = arr.ravel()
    size = flat.size

    if size == T * n:
        return flat.reshape((T, n), order="F").copy()
    if size == n:
        return np.tile(flat, (T, 1))
    if size == len(layout.coordinates):
        return np.tile(np.repeat(flat, layout.sizes), (T, 1))
    if size == T:
        warnings.warn(
            f"Only one {name} value was specified per period; broadcasting it across all "
            f"{n} decision coordinates. Consider giving {name} per parameter explicitly.",
            stacklevel=3,
        )
        return np.repeat(flat[:, None], n, axis=1)

    raise ConfigurationError(
        f"{size} {name} values were given, but the problem has {T * n} decision variables "
        f"({T} periods x {n} coordinates over {len(layout.coordinates)} parameters)")
