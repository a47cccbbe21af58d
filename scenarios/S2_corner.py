"""Scenario S2: a diagonal step through the corner of the unit square."""

from __future__ import annotations

from refl_core.geometry import Hypercube
from scenarios.common import single_step


def build_box(params):
    return Hypercube.unit(2)


def build_sweep_params():
    return [
        {"case_id": "s2_corner", "a": [0.9, 0.9], "b": [1.3, 1.3], "expected_passes": [2], "expected_end": [0.7, 0.7]},
        {"case_id": "s2_near_corner", "a": [0.8, 0.9], "b": [1.3, 1.2], "expected_passes": [2], "expected_end": [0.7, 0.8]},
    ]


def run_case(params):
    a, b = single_step(params["a"], params["b"])
    return build_box(params), a, b
