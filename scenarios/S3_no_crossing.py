"""Scenario S3: a step that stays inside the box."""

from __future__ import annotations

import numpy as np

from refl_core.geometry import Hypercube
from scenarios.common import single_step


def build_box(params):
    return Hypercube(lower=-np.ones(3), upper=np.ones(3))


def build_sweep_params():
    return [
        {"case_id": "s3_inside", "a": [0.0, 0.0, 0.0], "b": [0.5, 0.5, 0.5], "expected_passes": [0], "expected_end": [0.5, 0.5, 0.5]},
        {"case_id": "s3_on_face", "a": [0.0, 0.0, 0.0], "b": [1.0, -1.0, 0.0], "expected_passes": [0], "expected_end": [1.0, -1.0, 0.0]},
    ]


def run_case(params):
    a, b = single_step(params["a"], params["b"])
    return build_box(params), a, b
