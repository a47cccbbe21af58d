"""HDF5 schema for reflection sweep outputs.

The schema stores multiple scenarios and multiple sweep cases per scenario.
Batches are stored column-wise, one column per trajectory.

Structure:
    /
      meta                       (attrs: created_at, layout, tie_break)
      scenarios/{scenario_id}/cases/{case_id}/
          params_json            (scalar utf-8 JSON)
          box/
              lower              (d,)
              upper              (d,)
          A                      (d,m) pre-step points
          B                      (d,m) tentative post-step points
          B_reflected            (d,m) reflected points
          passes                 (m,) int32 reflection passes

Example:
    >>> import numpy as np
    >>> from refl_core.geometry import Hypercube
    >>> case = CaseData(params={"case_id": "c0"}, box=Hypercube.unit(2),
    ...                 a=np.full((2, 1), 0.5), b=np.array([[1.5], [0.5]]),
    ...                 b_reflected=np.full((2, 1), 0.5), passes=np.array([1]))
    >>> save_reflection_hdf5("/tmp/refl_example.h5", {"S1": {"c0": case}})
    >>> loaded, meta = load_reflection_hdf5("/tmp/refl_example.h5")
    >>> list(loaded.keys()), meta.layout
    (['S1'], 'd x m')
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import json
from typing import Any, Dict, Mapping, Tuple

import h5py
import numpy as np

from refl_core.batch import reflect_batch_counts
from refl_core.geometry import Hypercube

LAYOUT = "d x m"
TIE_BREAK = "lowest-axis"


@dataclass
class CaseData:
    params: Dict[str, Any]
    box: Hypercube
    a: np.ndarray
    b: np.ndarray
    b_reflected: np.ndarray
    passes: np.ndarray


@dataclass
class Hdf5Meta:
    created_at: str
    layout: str
    tie_break: str


def _json_default(obj: Any) -> Any:
    if isinstance(obj, (np.integer, np.floating)):
        return obj.item()
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    raise TypeError(f"Unsupported JSON type: {type(obj)}")


def save_reflection_hdf5(filepath: str, scenarios: Mapping[str, Mapping[str, CaseData]]) -> None:
    """Save reflection sweep cases to HDF5 using a fixed schema contract."""

    with h5py.File(filepath, "w") as h5:
        meta = h5.create_group("meta")
        meta.attrs["created_at"] = datetime.now(timezone.utc).isoformat()
        meta.attrs["layout"] = LAYOUT
        meta.attrs["tie_break"] = TIE_BREAK

        g_scenarios = h5.create_group("scenarios")
        for scenario_id, cases in scenarios.items():
            g_cases = g_scenarios.create_group(str(scenario_id)).create_group("cases")
            for case_id, case in cases.items():
                g_case = g_cases.create_group(str(case_id))
                g_case.create_dataset("params_json", data=json.dumps(case.params, default=_json_default))
                g_box = g_case.create_group("box")
                g_box.create_dataset("lower", data=np.asarray(case.box.lower, dtype=np.float64))
                g_box.create_dataset("upper", data=np.asarray(case.box.upper, dtype=np.float64))
                g_case.create_dataset("A", data=np.asarray(case.a, dtype=np.float64))
                g_case.create_dataset("B", data=np.asarray(case.b, dtype=np.float64))
                g_case.create_dataset("B_reflected", data=np.asarray(case.b_reflected, dtype=np.float64))
                g_case.create_dataset("passes", data=np.asarray(case.passes, dtype=np.int32))


def load_reflection_hdf5(filepath: str) -> Tuple[Dict[str, Dict[str, CaseData]], Hdf5Meta]:
    """Load a reflection sweep and rebuild its cases."""

    scenarios: Dict[str, Dict[str, CaseData]] = {}
    with h5py.File(filepath, "r") as h5:
        meta = Hdf5Meta(
            created_at=str(h5["meta"].attrs.get("created_at", "")),
            layout=str(h5["meta"].attrs.get("layout", LAYOUT)),
            tie_break=str(h5["meta"].attrs.get("tie_break", TIE_BREAK)),
        )
        for scenario_id, g_scenario in h5["scenarios"].items():
            scenarios[scenario_id] = {}
            for case_id, g_case in g_scenario["cases"].items():
                raw = g_case["params_json"][()]
                params = json.loads(raw.decode() if isinstance(raw, bytes) else raw)
                box = Hypercube(
                    lower=np.asarray(g_case["box"]["lower"][()], dtype=np.float64),
                    upper=np.asarray(g_case["box"]["upper"][()], dtype=np.float64),
                )
                scenarios[scenario_id][case_id] = CaseData(
                    params=params,
                    box=box,
                    a=np.asarray(g_case["A"][()], dtype=np.float64),
                    b=np.asarray(g_case["B"][()], dtype=np.float64),
                    b_reflected=np.asarray(g_case["B_reflected"][()], dtype=np.float64),
                    passes=np.asarray(g_case["passes"][()], dtype=np.int64),
                )

    return scenarios, meta


def self_test_roundtrip(filepath: str, atol: float = 0.0) -> bool:
    """Write->read self-test: stored reflections must be reproducible from stored inputs."""

    rng = np.random.default_rng(7)
    box = Hypercube(lower=np.array([-1.0, 0.0, 0.0]), upper=np.array([1.0, 2.0, 0.5]))
    a = box.lower[:, None] + rng.uniform(size=(3, 32)) * box.widths()[:, None]
    b = a + 0.8 * rng.standard_normal((3, 32))
    b_ref, passes = reflect_batch_counts(a, b, box.lower, box.upper)
    payload = {"selftest": {"case0": CaseData(params={"seed": 7}, box=box, a=a, b=b, b_reflected=b_ref, passes=passes)}}
    save_reflection_hdf5(filepath, payload)
    loaded, _ = load_reflection_hdf5(filepath)
    c2 = loaded["selftest"]["case0"]

    b_again, passes_again = reflect_batch_counts(c2.a, c2.b, c2.box.lower, c2.box.upper)
    return bool(
        np.allclose(b_again, b_ref, atol=atol, rtol=0.0)
        and np.allclose(c2.b_reflected, b_ref, atol=atol, rtol=0.0)
        and np.array_equal(passes_again, passes)
    )
