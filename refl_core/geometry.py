"""Hypercube primitive and axis-wise crossing helpers.

All helpers accept either a single point of shape ``(d,)`` or a batch of
points stored column-wise with shape ``(d, m)``; bounds are always per-axis
vectors of shape ``(d,)``.

Example:
    >>> import numpy as np
    >>> from refl_core.geometry import Hypercube, crossing_fractions
    >>> box = Hypercube(lower=np.zeros(2), upper=np.ones(2))
    >>> bool(box.contains(np.array([0.5, 1.0])))
    True
    >>> crossing_fractions(np.array([0.5, 0.5]), np.array([1.5, 0.5]), box.lower, box.upper).tolist()
    [0.5, inf]
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple
import warnings

import numpy as np
from numpy.typing import NDArray

from refl_core.errors import DimensionMismatchError

Vector = NDArray[np.float64]
Matrix = NDArray[np.float64]


@dataclass(frozen=True)
class Hypercube:
    """Axis-aligned reflecting box ``[lower, upper]``.

    lower: Lower corner ``s``.
    upper: Upper corner ``e``, with ``lower <= upper`` on every axis.
    """

    lower: Vector
    upper: Vector

    def __post_init__(self) -> None:
        lo = np.array(self.lower, dtype=float)
        hi = np.array(self.upper, dtype=float)
        if lo.ndim != 1 or lo.shape != hi.shape:
            raise DimensionMismatchError(f"Box corners must be vectors of equal length, got {lo.shape} and {hi.shape}")
        if np.any(lo > hi):
            raise ValueError(f"Box lower corner exceeds upper corner on axes {np.flatnonzero(lo > hi).tolist()}")
        if np.any(lo == hi):
            warnings.warn(
                f"Box has zero width on axes {np.flatnonzero(lo == hi).tolist()}; reflection may not converge.",
                RuntimeWarning,
                stacklevel=3,
            )
        lo.flags.writeable = False
        hi.flags.writeable = False
        object.__setattr__(self, "lower", lo)
        object.__setattr__(self, "upper", hi)

    @classmethod
    def unit(cls, dim: int) -> "Hypercube":
        return cls(lower=np.zeros(dim), upper=np.ones(dim))

    @classmethod
    def from_axis_bounds(cls, bounds: Sequence[Tuple[float, float]] | NDArray[np.float64]) -> "Hypercube":
        """Build from per-axis ``(lo, hi)`` pairs, i.e. a ``(d, 2)`` array."""

        b = np.asarray(bounds, dtype=float)
        if b.ndim != 2 or b.shape[1] != 2:
            raise DimensionMismatchError(f"Axis bounds must have shape (d, 2), got {b.shape}")
        return cls(lower=b[:, 0], upper=b[:, 1])

    @property
    def dim(self) -> int:
        return int(self.lower.size)

    def widths(self) -> Vector:
        return self.upper - self.lower

    def center(self) -> Vector:
        return 0.5 * (self.lower + self.upper)

    def contains(self, points: NDArray[np.float64]) -> bool | NDArray[np.bool_]:
        return inside_mask(points, self.lower, self.upper)

    def reflect(self, a: Vector, b: Vector, config=None) -> Vector:
        from refl_core.reflect import reflect

        return reflect(a, b, self.lower, self.upper, config=config)

    def reflect_batch(self, a: Matrix, b: Matrix, config=None, strategy: str = "vectorized") -> Matrix:
        from refl_core.batch import reflect_batch

        return reflect_batch(a, b, self.lower, self.upper, config=config, strategy=strategy)


def _axis_bounds(s: Vector, e: Vector, ndim: int) -> Tuple[NDArray[np.float64], NDArray[np.float64]]:
    lo = np.asarray(s, dtype=float)
    hi = np.asarray(e, dtype=float)
    if ndim == 2:
        return lo[:, None], hi[:, None]
    return lo, hi


def inside_mask(points: NDArray[np.float64], s: Vector, e: Vector) -> bool | NDArray[np.bool_]:
    """Inclusive box test; a bool for one point, a ``(m,)`` mask for columns."""

    p = np.asarray(points, dtype=float)
    lo, hi = _axis_bounds(s, e, p.ndim)
    ok = np.all((p >= lo) & (p <= hi), axis=0)
    return bool(ok) if p.ndim == 1 else ok


def violation_masks(b: NDArray[np.float64], s: Vector, e: Vector) -> Tuple[NDArray[np.bool_], NDArray[np.bool_]]:
    bb = np.asarray(b, dtype=float)
    lo, hi = _axis_bounds(s, e, bb.ndim)
    return bb < lo, bb > hi


def crossing_fractions(a: NDArray[np.float64], b: NDArray[np.float64], s: Vector, e: Vector) -> NDArray[np.float64]:
    """Fraction along ``a -> b`` at which each violated face is struck.

    Entries for axes that are not violated, or whose fraction is not finite
    (``a[i] == b[i]``), hold ``inf`` so they never win the minimum.
    """

    aa = np.asarray(a, dtype=float)
    bb = np.asarray(b, dtype=float)
    lo, hi = _axis_bounds(s, e, bb.ndim)
    out_lo, out_hi = bb < lo, bb > hi
    with np.errstate(divide="ignore", invalid="ignore"):
        r_lo = (aa - lo) / (aa - bb)
        r_hi = (hi - aa) / (bb - aa)
    r = np.where(out_lo, r_lo, np.where(out_hi, r_hi, np.inf))
    return np.where(np.isfinite(r), r, np.inf)


def first_crossing(fractions: NDArray[np.float64], out_hi: NDArray[np.bool_]):
    """Earliest crossing per point: ``(r, axis, sign)``.

    Ties go to the lowest axis index. ``sign`` is ``+1`` for an upper face and
    ``-1`` for a lower face. For a batch every item is a ``(m,)`` array.
    """

    f = np.asarray(fractions, dtype=float)
    if f.ndim == 1:
        axis = int(np.argmin(f))
        return float(f[axis]), axis, 1.0 if out_hi[axis] else -1.0
    axis = np.argmin(f, axis=0)
    cols = np.arange(f.shape[1])
    return f[axis, cols], axis, np.where(out_hi[axis, cols], 1.0, -1.0)


def signed_normal(dim: int, axis: int, sign: float) -> Vector:
    n = np.zeros(dim)
    n[axis] = sign
    return n


def default_max_passes(a: NDArray[np.float64], b: NDArray[np.float64], s: Vector, e: Vector) -> int | NDArray[np.int64]:
    """Reflection-pass cap: ``4 d + sum_i ceil(|b_i - a_i| / w_i)``.

    Axes of zero width contribute nothing. Returns an int for one point and
    a ``(m,)`` array for columns.
    """

    aa = np.asarray(a, dtype=float)
    bb = np.asarray(b, dtype=float)
    lo, hi = _axis_bounds(s, e, bb.ndim)
    w = np.broadcast_to(hi - lo, bb.shape)
    safe_w = np.where(w > 0, w, 1.0)
    crossings = np.where(w > 0, np.ceil(np.abs(bb - aa) / safe_w), 0.0)
    caps = 4 * bb.shape[0] + np.sum(crossings, axis=0)
    if bb.ndim == 1:
        return int(caps)
    return caps.astype(np.int64)
