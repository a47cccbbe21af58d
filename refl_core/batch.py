"""Batched reflection of many concurrent trajectories.

Trajectories are stored column-wise: ``A`` and ``B`` have shape ``(d, m)``
and column ``j`` is the step ``A[:, j] -> B[:, j]``. Every column follows the
same arithmetic as :func:`refl_core.reflect.reflect`, so the two agree
bit-for-bit; the batch keeps iterating while any lane still crosses a face,
and lanes that have settled are carried through unchanged.

Two executors are provided:

* ``"vectorized"``: whole-array numpy passes over all lanes at once.
* ``"columns"``: the scalar reflector applied to each column in turn.

Example:
    >>> import numpy as np
    >>> from refl_core.batch import reflect_batch_counts
    >>> A = np.array([[0.5, 0.9, 0.2], [0.5, 0.9, 0.2]])
    >>> B = np.array([[1.5, 1.3, 0.3], [0.5, 1.3, 0.3]])
    >>> out, passes = reflect_batch_counts(A, B, np.zeros(2), np.ones(2))
    >>> passes.tolist()
    [1, 2, 0]
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np
from numpy.typing import NDArray

from refl_core.errors import DimensionMismatchError, DomainPreconditionError, ReflectionNonConvergenceError
from refl_core.geometry import crossing_fractions, default_max_passes, first_crossing, inside_mask
from refl_core.reflect import ReflectConfig, reflect_path

Matrix = NDArray[np.float64]

STRATEGIES = ("vectorized", "columns")


@dataclass(frozen=True)
class LaneState:
    """Snapshot of every lane between two reflection passes."""

    a: Matrix
    b: Matrix
    passes: NDArray[np.int64]

    @property
    def n_lanes(self) -> int:
        return int(self.a.shape[1])

    def first_crossings(self, s, e) -> Tuple[NDArray[np.float64], NDArray[np.int64]]:
        """Per-lane earliest crossing fraction and the axis that achieves it."""

        rmin, axis, _ = first_crossing(crossing_fractions(self.a, self.b, s, e), self.b > e[:, None])
        return rmin, axis

    def advance(self, rmin: NDArray[np.float64], axis: NDArray[np.int64], active: NDArray[np.bool_]) -> "LaneState":
        """Reflect every active lane once; inactive lanes are returned as they are."""

        cols = np.flatnonzero(active)
        hit = np.zeros(self.b.shape)
        hit[axis[cols], cols] = 1.0
        r = np.where(active, rmin, 0.0)
        c = self.a + (self.b - self.a) * r
        b = self.b - 2.0 * hit * (self.b - c)
        return LaneState(
            a=np.where(active[None, :], c, self.a),
            b=np.where(active[None, :], b, self.b),
            passes=self.passes + active.astype(np.int64),
        )


def _check_batch(a, b, s, e) -> Tuple[Matrix, Matrix, NDArray[np.float64], NDArray[np.float64], bool]:
    aa = np.array(a, dtype=float)
    bb = np.array(b, dtype=float)
    if aa.shape != bb.shape:
        raise DimensionMismatchError(f"A has shape {aa.shape} but B has shape {bb.shape}")
    if aa.ndim not in (1, 2):
        raise DimensionMismatchError(f"Batch arrays must be (d,) or (d, m), got {aa.shape}")
    squeeze = aa.ndim == 1
    if squeeze:
        aa = aa[:, None]
        bb = bb[:, None]
    lo = np.ravel(np.array(s, dtype=float))
    hi = np.ravel(np.array(e, dtype=float))
    if lo.size != aa.shape[0] or hi.size != aa.shape[0]:
        raise DimensionMismatchError(f"Box bounds of size {lo.size}, {hi.size} do not match dimension {aa.shape[0]}")
    if not np.all(np.isfinite(bb)):
        raise ValueError("B has non-finite coordinates")
    bad = np.flatnonzero(~inside_mask(aa, lo, hi))
    if bad.size:
        raise DomainPreconditionError(f"Columns {bad.tolist()} of A not in hypercube [{lo.tolist()}, {hi.tolist()}]")
    return aa, bb, lo, hi, squeeze


def _run_vectorized(a: Matrix, b: Matrix, s, e, cfg: ReflectConfig) -> LaneState:
    caps = default_max_passes(a, b, s, e) if cfg.max_passes is None else np.full(a.shape[1], int(cfg.max_passes))
    state = LaneState(a=a, b=b, passes=np.zeros(a.shape[1], dtype=np.int64))
    while True:
        rmin, axis = state.first_crossings(s, e)
        active = rmin < 1.0
        if not np.any(active):
            return state
        stuck = np.flatnonzero(active & (state.passes >= caps))
        if stuck.size:
            raise ReflectionNonConvergenceError(
                f"Reflection did not settle for columns {stuck.tolist()} after {int(state.passes[stuck].max())} passes",
                passes=int(state.passes[stuck].max()),
            )
        state = state.advance(rmin, axis, active)


def _run_columns(a: Matrix, b: Matrix, s, e, cfg: ReflectConfig) -> LaneState:
    traces = [reflect_path(a[:, j], b[:, j], s, e, config=cfg) for j in range(a.shape[1])]
    if not traces:
        return LaneState(a=a, b=b, passes=np.zeros(0, dtype=np.int64))
    ends = np.stack([t.end for t in traces], axis=1)
    last = np.stack([t.impacts[-1] if t.impacts else t.start for t in traces], axis=1)
    return LaneState(a=last, b=ends, passes=np.array([t.n_passes for t in traces], dtype=np.int64))


def reflect_batch_counts(
    a: Matrix,
    b: Matrix,
    s,
    e,
    config: ReflectConfig | None = None,
    strategy: str = "vectorized",
) -> Tuple[Matrix, NDArray[np.int64]]:
    """Reflect every column of ``b`` into ``[s, e]`` and report pass counts."""

    if strategy not in STRATEGIES:
        raise ValueError(f"Unsupported strategy: {strategy}")
    aa, bb, lo, hi, squeeze = _check_batch(a, b, s, e)
    cfg = config or ReflectConfig()
    run = _run_vectorized if strategy == "vectorized" else _run_columns
    state = run(aa, bb, lo, hi, cfg)
    if squeeze:
        return state.b[:, 0], state.passes
    return state.b, state.passes


def reflect_batch(
    a: Matrix,
    b: Matrix,
    s,
    e,
    config: ReflectConfig | None = None,
    strategy: str = "vectorized",
) -> Matrix:
    """Column-wise :func:`refl_core.reflect.reflect` for ``(d, m)`` arrays."""

    return reflect_batch_counts(a, b, s, e, config=config, strategy=strategy)[0]
