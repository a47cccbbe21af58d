"""Scenario S5: steps spanning several box widths (many reflections per step)."""

from __future__ import annotations

import numpy as np

from refl_core.geometry import Hypercube
from scenarios.common import gaussian_steps


def build_box(params):
    d = params["dim"]
    return Hypercube(lower=np.zeros(d), upper=np.linspace(0.5, 2.0, d))


def build_sweep_params():
    return [
        {"case_id": "s5_d2", "dim": 2, "m": 64, "step_std": 4.0, "seed": 5},
        {"case_id": "s5_d4", "dim": 4, "m": 64, "step_std": 6.0, "seed": 6},
    ]


def run_case(params):
    box = build_box(params)
    a, b = gaussian_steps(box, params["m"], params["step_std"], params["seed"])
    return box, a, b
