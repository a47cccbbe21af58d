"""Elastic reflection of one Brownian step inside a hypercube.

For a step ``a -> b`` of a process living in ``[s, e]`` (Neumann boundary),
the part of the step that leaves the box is folded back across the first
face it strikes, and the procedure is repeated from the impact point until
the endpoint stays inside.

Example:
    >>> import numpy as np
    >>> from refl_core.reflect import reflect, reflect_path
    >>> reflect(np.array([0.5]), np.array([1.5]), np.array([0.0]), np.array([1.0])).tolist()
    [0.5]
    >>> reflect_path([0.9, 0.9], [1.3, 1.3], [0.0, 0.0], [1.0, 1.0]).n_passes
    2
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from refl_core.errors import DimensionMismatchError, DomainPreconditionError, ReflectionNonConvergenceError
from refl_core.geometry import crossing_fractions, default_max_passes, first_crossing, inside_mask, signed_normal

Vector = NDArray[np.float64]


@dataclass(frozen=True)
class ReflectConfig:
    """Reflection settings.

    max_passes: Upper bound on reflection passes per segment. ``None`` uses
        ``default_max_passes`` computed from the segment and the box.
    """

    max_passes: Optional[int] = None


@dataclass
class ReflectionTrace:
    start: Vector
    end: Vector
    impacts: List[Vector] = field(default_factory=list)
    axes: List[int] = field(default_factory=list)
    signs: List[int] = field(default_factory=list)

    @property
    def n_passes(self) -> int:
        return len(self.impacts)

    @property
    def vertices(self) -> NDArray[np.float64]:
        """Polyline ``start, impacts..., end`` as rows of a ``(k+2, d)`` array."""

        return np.vstack([self.start, *self.impacts, self.end])


def _check_segment(a, b, s, e) -> Tuple[Vector, Vector, Vector, Vector]:
    aa = np.array(a, dtype=float)
    bb = np.array(b, dtype=float)
    lo = np.array(s, dtype=float)
    hi = np.array(e, dtype=float)
    if aa.ndim != 1 or bb.ndim != 1:
        raise DimensionMismatchError(f"a and b must be vectors, got shapes {aa.shape} and {bb.shape}")
    if aa.shape != bb.shape:
        raise DimensionMismatchError(f"a has dimension {aa.size} but b has dimension {bb.size}")
    if lo.shape != aa.shape or hi.shape != aa.shape:
        raise DimensionMismatchError(f"Box bounds {lo.shape}, {hi.shape} do not match point dimension {aa.size}")
    if not np.all(np.isfinite(bb)):
        raise ValueError(f"b = {bb.tolist()} has non-finite coordinates")
    if not inside_mask(aa, lo, hi):
        raise DomainPreconditionError(f"a = {aa.tolist()} not in hypercube [{lo.tolist()}, {hi.tolist()}]")
    return aa, bb, lo, hi


def reflect_path(a: Vector, b: Vector, s: Vector, e: Vector, config: ReflectConfig | None = None) -> ReflectionTrace:
    """Reflect ``a -> b`` off the faces of ``[s, e]`` and record every impact."""

    a, b, s, e = _check_segment(a, b, s, e)
    cfg = config or ReflectConfig()
    cap = default_max_passes(a, b, s, e) if cfg.max_passes is None else int(cfg.max_passes)

    trace = ReflectionTrace(start=a, end=b)
    while True:
        r, axis, sign = first_crossing(crossing_fractions(a, b, s, e), b > e)
        if r >= 1.0:
            break
        if trace.n_passes >= cap:
            raise ReflectionNonConvergenceError(
                f"Reflection did not settle after {trace.n_passes} passes (a = {a.tolist()}, b = {b.tolist()})",
                passes=trace.n_passes,
            )
        n = signed_normal(a.size, axis, sign)
        c = a + (b - a) * r
        b = b - 2.0 * n * np.dot(b - c, n)
        a = c
        trace.impacts.append(c)
        trace.axes.append(axis)
        trace.signs.append(int(sign))
    trace.end = b
    return trace


def reflect(a: Vector, b: Vector, s: Vector, e: Vector, config: ReflectConfig | None = None) -> Vector:
    """Endpoint of the step ``a -> b`` reflected into ``[s, e]``.

    Raises DomainPreconditionError when ``a`` is outside the box and
    DimensionMismatchError when the inputs disagree in dimension.
    """

    return reflect_path(a, b, s, e, config=config).end
