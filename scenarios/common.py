"""Common scenario helpers."""

from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np

from refl_core.geometry import Hypercube


def single_step(a: Sequence[float], b: Sequence[float]) -> Tuple[np.ndarray, np.ndarray]:
    """One step as ``(d, 1)`` column arrays."""

    return np.asarray(a, dtype=float)[:, None], np.asarray(b, dtype=float)[:, None]


def interior_points(box: Hypercube, m: int, rng: np.random.Generator) -> np.ndarray:
    return box.lower[:, None] + rng.uniform(size=(box.dim, m)) * box.widths()[:, None]


def gaussian_steps(box: Hypercube, m: int, step_std: float, seed: int) -> Tuple[np.ndarray, np.ndarray]:
    """Uniform interior start points with isotropic Gaussian increments."""

    rng = np.random.default_rng(seed)
    a = interior_points(box, m, rng)
    return a, a + step_std * rng.standard_normal((box.dim, m))
