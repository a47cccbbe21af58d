"""Figures for reflected steps and sweep diagnostics."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence
import warnings

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.patches import Rectangle

from refl_core.geometry import Hypercube
from refl_core.reflect import ReflectionTrace


def _save(fig: plt.Figure, outdir: str, name: str) -> str:
    Path(outdir).mkdir(parents=True, exist_ok=True)
    png = Path(outdir) / f"{name}.png"
    pdf = Path(outdir) / f"{name}.pdf"
    fig.savefig(png, dpi=150, bbox_inches="tight")
    try:
        fig.savefig(pdf, bbox_inches="tight")
    except PermissionError:
        warnings.warn(
            f"Could not write '{pdf}' (permission denied). Saved PNG only.",
            RuntimeWarning,
            stacklevel=2,
        )
    plt.close(fig)
    return str(png)


def _box_outline(ax: plt.Axes, box: Hypercube, dims: Sequence[int]) -> None:
    i, j = dims
    w = box.widths()
    ax.add_patch(Rectangle((box.lower[i], box.lower[j]), w[i], w[j], fill=False, lw=1.5, color="k"))


def p1_reflected_paths_2d(
    box: Hypercube,
    traces: Sequence[ReflectionTrace],
    outdir: str,
    dims: Sequence[int] = (0, 1),
    max_paths: int = 50,
) -> str:
    """Reflected polylines projected on two axes."""

    i, j = dims
    fig, ax = plt.subplots(figsize=(5, 5))
    _box_outline(ax, box, dims)
    for t in list(traces)[:max_paths]:
        v = t.vertices
        ax.plot(v[:, i], v[:, j], "-", color="tab:blue", lw=0.8)
        ax.plot(v[-1, i], v[-1, j], "o", color="tab:blue", ms=2)
    ax.set_aspect("equal")
    ax.set_xlabel(f"x{i}")
    ax.set_ylabel(f"x{j}")
    ax.set_title("P1 reflected paths")
    return _save(fig, outdir, "P1")


def p2_pass_histogram(passes: np.ndarray, outdir: str) -> str:
    fig, ax = plt.subplots()
    p = np.asarray(passes, dtype=int)
    bins = np.arange(0, (p.max() if p.size else 0) + 2) - 0.5
    ax.hist(p, bins=bins)
    ax.set_xlabel("reflection passes")
    ax.set_ylabel("count")
    ax.set_title("P2 passes per step")
    return _save(fig, outdir, "P2")


def p3_length_error(length_err: np.ndarray, outdir: str) -> str:
    fig, ax = plt.subplots()
    ax.semilogy(np.abs(np.asarray(length_err, dtype=float)) + 1e-18, ".")
    ax.set_xlabel("trajectory")
    ax.set_ylabel("|path length - step length|")
    ax.set_title("P3 length preservation")
    return _save(fig, outdir, "P3")


def p4_endpoint_scatter(box: Hypercube, b: np.ndarray, b_reflected: np.ndarray, outdir: str, dims: Sequence[int] = (0, 1)) -> str:
    i, j = dims
    fig, ax = plt.subplots(figsize=(5, 5))
    _box_outline(ax, box, dims)
    ax.scatter(b[i], b[j], s=4, c="tab:red", label="tentative")
    ax.scatter(b_reflected[i], b_reflected[j], s=4, c="tab:green", label="reflected")
    ax.legend()
    ax.set_aspect("equal")
    ax.set_title("P4 endpoints")
    return _save(fig, outdir, "P4")


def p5_sweep_max_errors(names: Sequence[str], rel_err: Sequence[float], outdir: str) -> str:
    fig, ax = plt.subplots()
    ax.semilogy(list(names), np.asarray(rel_err, dtype=float) + 1e-18, "o-")
    ax.tick_params(axis="x", rotation=45)
    ax.set_title("P5 max relative length error per case")
    return _save(fig, outdir, "P5")
