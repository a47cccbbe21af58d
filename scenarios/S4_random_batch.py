"""Scenario S4: Gaussian steps from random interior points, several dimensions."""

from __future__ import annotations

from refl_core.geometry import Hypercube
from scenarios.common import gaussian_steps


def build_box(params):
    return Hypercube.unit(params["dim"])


def build_sweep_params():
    return [
        {"case_id": f"s4_d{d}_std{std}", "dim": d, "m": 256, "step_std": std, "seed": 100 + d}
        for d in (2, 5, 10)
        for std in (0.1, 0.5)
    ]


def run_case(params):
    box = build_box(params)
    a, b = gaussian_steps(box, params["m"], params["step_std"], params["seed"])
    return box, a, b
