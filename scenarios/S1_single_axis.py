"""Scenario S1: one crossing of the upper face in one dimension."""

from __future__ import annotations

from refl_core.geometry import Hypercube
from scenarios.common import single_step


def build_box(params):
    return Hypercube.unit(1)


def build_sweep_params():
    return [
        {"case_id": "s1_upper", "a": [0.5], "b": [1.5], "expected_passes": [1], "expected_end": [0.5]},
        {"case_id": "s1_lower", "a": [0.25], "b": [-0.5], "expected_passes": [1], "expected_end": [0.5]},
    ]


def run_case(params):
    a, b = single_step(params["a"], params["b"])
    return build_box(params), a, b
