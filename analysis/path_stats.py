"""Statistics over reflected steps: path length, containment, batch agreement."""

from __future__ import annotations

from typing import Dict, Sequence

import numpy as np

from refl_core.batch import reflect_batch_counts
from refl_core.geometry import Hypercube
from refl_core.reflect import ReflectConfig, ReflectionTrace, reflect_path


def polyline_length(vertices: np.ndarray) -> float:
    """Total length of the polyline whose vertices are the rows of ``vertices``."""

    v = np.asarray(vertices, dtype=float)
    if v.shape[0] < 2:
        return 0.0
    return float(np.sum(np.linalg.norm(np.diff(v, axis=0), axis=1)))


def path_length_error(trace: ReflectionTrace, a: np.ndarray, b: np.ndarray) -> float:
    """Reflected path length minus the straight-line length ``|b - a|``."""

    straight = float(np.linalg.norm(np.asarray(b, dtype=float) - np.asarray(a, dtype=float)))
    return polyline_length(trace.vertices) - straight


def containment_violation(points: np.ndarray, s: np.ndarray, e: np.ndarray) -> np.ndarray:
    """Largest distance outside ``[s, e]`` per point (0 for points inside).

    Accepts one point ``(d,)`` or columns ``(d, m)``.
    """

    p = np.asarray(points, dtype=float)
    lo = np.asarray(s, dtype=float)
    hi = np.asarray(e, dtype=float)
    if p.ndim == 2:
        lo, hi = lo[:, None], hi[:, None]
    excess = np.maximum(np.maximum(lo - p, p - hi), 0.0)
    return excess.max(axis=0)


def batch_scalar_max_deviation(a: np.ndarray, b: np.ndarray, s: np.ndarray, e: np.ndarray, config: ReflectConfig | None = None) -> float:
    """Max absolute difference between the vectorized and column-by-column batches."""

    vec, _ = reflect_batch_counts(a, b, s, e, config=config, strategy="vectorized")
    col, _ = reflect_batch_counts(a, b, s, e, config=config, strategy="columns")
    if vec.size == 0:
        return 0.0
    return float(np.max(np.abs(vec - col)))


def traces_for_batch(a: np.ndarray, b: np.ndarray, box: Hypercube, config: ReflectConfig | None = None) -> list[ReflectionTrace]:
    return [reflect_path(a[:, j], b[:, j], box.lower, box.upper, config=config) for j in range(a.shape[1])]


def pass_histogram(passes: Sequence[int]) -> Dict[int, int]:
    vals, counts = np.unique(np.asarray(passes, dtype=int), return_counts=True)
    return {int(v): int(c) for v, c in zip(vals, counts)}


def summarize_batch(
    a: np.ndarray,
    b: np.ndarray,
    b_reflected: np.ndarray,
    passes: np.ndarray,
    box: Hypercube,
    config: ReflectConfig | None = None,
) -> Dict[str, object]:
    """Per-case summary used by the validation report."""

    traces = traces_for_batch(a, b, box, config=config)
    length_err = np.array([path_length_error(t, a[:, j], b[:, j]) for j, t in enumerate(traces)], dtype=float)
    straight = np.linalg.norm(b - a, axis=0)
    rel_err = np.abs(length_err) / np.maximum(straight, 1e-300)
    violation = containment_violation(b_reflected, box.lower, box.upper)
    return {
        "n_lanes": int(a.shape[1]),
        "dim": int(a.shape[0]),
        "passes": np.asarray(passes, dtype=int),
        "pass_hist": pass_histogram(passes),
        "max_passes": int(np.max(passes)) if len(passes) else 0,
        "length_err": length_err,
        "max_rel_length_err": float(rel_err.max()) if rel_err.size else 0.0,
        "max_violation": float(violation.max()) if violation.size else 0.0,
        "batch_scalar_dev": batch_scalar_max_deviation(a, b, box.lower, box.upper, config=config),
        "traces": traces,
    }
