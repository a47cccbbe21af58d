"""Scenario sweep runner + auto plot + validation report."""

from __future__ import annotations

from dataclasses import dataclass
from importlib import import_module
from pathlib import Path
from typing import Dict, List

import numpy as np

from analysis.path_stats import summarize_batch
from plots import trajectories
from refl_core.batch import reflect_batch_counts
from refl_io.hdf5_io import CaseData, save_reflection_hdf5

SCENARIO_MODULES = {
    "S1": "scenarios.S1_single_axis",
    "S2": "scenarios.S2_corner",
    "S3": "scenarios.S3_no_crossing",
    "S4": "scenarios.S4_random_batch",
    "S5": "scenarios.S5_long_step",
}


@dataclass
class SweepConfig:
    length_rtol: float = 1e-9
    containment_atol: float = 0.0
    max_plotted_paths: int = 50


def run_all(
    out_h5: str = "artifacts/reflection_sweep.h5",
    out_plot_dir: str = "artifacts/plots",
    config: SweepConfig | None = None,
) -> str:
    cfg = config or SweepConfig()
    payload: Dict[str, Dict[str, CaseData]] = {}
    report_lines: List[str] = [
        "# Validation Report",
        "",
        "- containment metric: `max_j max_i max(s_i - b'_ij, b'_ij - e_i, 0)`",
        "- length metric: `|len(reflected polyline) - |b - a|| / |b - a|`",
        "- batch/scalar metric: `max |vectorized - columns|` (expected exactly 0)",
        "",
    ]
    all_names: List[str] = []
    all_rel_err: List[float] = []
    failures: List[str] = []

    for sid, mod_name in SCENARIO_MODULES.items():
        mod = import_module(mod_name)
        payload[sid] = {}
        report_lines.append(f"## {sid}")
        for p in mod.build_sweep_params():
            box, a, b = mod.run_case(p)
            case_id = p["case_id"]
            b_ref, passes = reflect_batch_counts(a, b, box.lower, box.upper, strategy="vectorized")
            payload[sid][case_id] = CaseData(params=p, box=box, a=a, b=b, b_reflected=b_ref, passes=passes)
            summary = summarize_batch(a, b, b_ref, passes, box)

            case_dir = str(Path(out_plot_dir) / sid / case_id)
            plot_links = []
            if box.dim >= 2:
                trajectories.p1_reflected_paths_2d(box, summary["traces"], case_dir, max_paths=cfg.max_plotted_paths)
                trajectories.p4_endpoint_scatter(box, b, b_ref, case_dir)
                plot_links += [f"[P1]({case_dir}/P1.png)", f"[P4]({case_dir}/P4.png)"]
            trajectories.p2_pass_histogram(passes, case_dir)
            trajectories.p3_length_error(summary["length_err"], case_dir)
            plot_links += [f"[P2]({case_dir}/P2.png)", f"[P3]({case_dir}/P3.png)"]

            report_lines.append(
                f"- case `{case_id}`: d={summary['dim']}, trajectories={summary['n_lanes']}, "
                f"pass_dist={summary['pass_hist']}, max_passes={summary['max_passes']}"
            )
            report_lines.append(f"  - max containment violation: {summary['max_violation']:.3e}")
            report_lines.append(f"  - max relative length error: {summary['max_rel_length_err']:.3e}")
            report_lines.append(f"  - batch/scalar deviation: {summary['batch_scalar_dev']:.3e}")
            report_lines.append(f"  - plots: {', '.join(plot_links)}")

            if summary["max_violation"] > cfg.containment_atol:
                failures.append(f"{sid}:{case_id} reflected point outside box by {summary['max_violation']:.3e}")
            if summary["max_rel_length_err"] > cfg.length_rtol:
                failures.append(f"{sid}:{case_id} path length not preserved (rel err {summary['max_rel_length_err']:.3e})")
            if summary["batch_scalar_dev"] != 0.0:
                failures.append(f"{sid}:{case_id} vectorized and column-wise batches differ by {summary['batch_scalar_dev']:.3e}")
            if "expected_passes" in p and passes.tolist() != list(p["expected_passes"]):
                failures.append(f"{sid}:{case_id} expected passes {list(p['expected_passes'])}, got {passes.tolist()}")
            if "expected_end" in p and not np.allclose(b_ref[:, 0], p["expected_end"], rtol=0.0, atol=1e-12):
                failures.append(f"{sid}:{case_id} expected end {p['expected_end']}, got {b_ref[:, 0].tolist()}")

            all_names.append(f"{sid}:{case_id}")
            all_rel_err.append(summary["max_rel_length_err"])

        report_lines.append("")

    Path(out_h5).parent.mkdir(parents=True, exist_ok=True)
    save_reflection_hdf5(out_h5, payload)
    trajectories.p5_sweep_max_errors(all_names, all_rel_err, out_plot_dir)

    report_lines.append("## Failure Checks")
    if failures:
        for msg in failures:
            report_lines.append(f"- FAIL: {msg}")
    else:
        report_lines.append("- PASS: No automatic failure checks triggered.")

    report_path = Path(out_plot_dir).parent / "report.md"
    report_path.write_text("\n".join(report_lines), encoding="utf-8")
    return str(report_path)


if __name__ == "__main__":
    print(run_all())
