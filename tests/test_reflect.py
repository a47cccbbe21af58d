import numpy as np
import pytest

from analysis.path_stats import polyline_length
from refl_core.errors import DimensionMismatchError, DomainPreconditionError, ReflectionNonConvergenceError
from refl_core.geometry import Hypercube
from refl_core.reflect import ReflectConfig, reflect, reflect_path


def _random_steps(dim: int, m: int, step_std: float, seed: int):
    rng = np.random.default_rng(seed)
    a = rng.uniform(size=(m, dim))
    b = a + step_std * rng.standard_normal((m, dim))
    return a, b


def test_single_axis_crossing_reflects_about_upper_face():
    out = reflect(np.array([0.5]), np.array([1.5]), np.array([0.0]), np.array([1.0]))
    assert np.allclose(out, [0.5], rtol=0.0, atol=1e-15)


def test_single_axis_crossing_of_lower_face():
    trace = reflect_path([0.25], [-0.5], [0.0], [1.0])
    assert trace.n_passes == 1
    assert trace.signs == [-1]
    assert np.allclose(trace.impacts[0], [0.0], atol=1e-15)
    assert np.allclose(trace.end, [0.5], atol=1e-15)


def test_corner_double_reflection():
    a = np.array([0.9, 0.9])
    b = np.array([1.3, 1.3])
    trace = reflect_path(a, b, np.zeros(2), np.ones(2))
    assert trace.n_passes == 2
    assert trace.axes == [0, 1]
    assert trace.signs == [1, 1]
    assert np.all((trace.end >= 0.0) & (trace.end <= 1.0))
    assert np.allclose(trace.end, [0.7, 0.7], atol=1e-12)
    assert np.isclose(polyline_length(trace.vertices), np.linalg.norm(b - a), rtol=1e-12)


def test_no_crossing_returns_b_unchanged():
    b = np.array([0.5, 0.5, 0.5])
    trace = reflect_path(np.zeros(3), b, -np.ones(3), np.ones(3))
    assert trace.n_passes == 0
    assert np.array_equal(trace.end, b)


def test_idempotent_on_points_inside_or_on_the_box():
    a, b = _random_steps(4, 200, 0.05, seed=1)
    b = np.clip(b, 0.0, 1.0)
    for i in range(len(a)):
        assert np.array_equal(reflect(a[i], b[i], np.zeros(4), np.ones(4)), b[i])


def test_containment_for_random_steps():
    lo = np.array([-1.0, 0.0, 2.0])
    hi = np.array([1.0, 0.5, 5.0])
    rng = np.random.default_rng(11)
    for _ in range(300):
        a = lo + rng.uniform(size=3) * (hi - lo)
        b = a + 2.0 * rng.standard_normal(3)
        out = reflect(a, b, lo, hi)
        assert np.all(out >= lo - 1e-12) and np.all(out <= hi + 1e-12)


def test_length_preserved_across_many_reflections():
    a, b = _random_steps(3, 100, 5.0, seed=2)
    passes = []
    for i in range(len(a)):
        trace = reflect_path(a[i], b[i], np.zeros(3), np.ones(3))
        passes.append(trace.n_passes)
        assert np.isclose(polyline_length(trace.vertices), np.linalg.norm(b[i] - a[i]), rtol=1e-9, atol=0.0)
    assert max(passes) > 3


def test_second_reflection_keeps_segment_direction_mirrored():
    trace = reflect_path([0.8, 0.9], [1.3, 1.2], [0.0, 0.0], [1.0, 1.0])
    assert trace.axes == [1, 0]
    v = trace.vertices
    d0 = (v[1] - v[0]) / np.linalg.norm(v[1] - v[0])
    d1 = (v[2] - v[1]) / np.linalg.norm(v[2] - v[1])
    assert np.allclose(d1, d0 * np.array([1.0, -1.0]), atol=1e-12)
    assert np.allclose(trace.end, [0.7, 0.8], atol=1e-12)


def test_inputs_are_not_mutated():
    a = np.array([0.9, 0.9])
    b = np.array([1.3, 1.3])
    reflect(a, b, np.zeros(2), np.ones(2))
    assert a.tolist() == [0.9, 0.9]
    assert b.tolist() == [1.3, 1.3]


def test_accepts_plain_lists():
    out = reflect([0.5, 0.5], [0.5, 1.25], [0.0, 0.0], [1.0, 1.0])
    assert np.allclose(out, [0.5, 0.75])


def test_start_outside_box_is_rejected():
    with pytest.raises(DomainPreconditionError, match="not in hypercube"):
        reflect(np.array([1.5, 0.5]), np.array([0.5, 0.5]), np.zeros(2), np.ones(2))


def test_dimension_mismatch_is_rejected():
    with pytest.raises(DimensionMismatchError):
        reflect(np.array([0.5, 0.5]), np.array([0.5, 0.5, 0.5]), np.zeros(2), np.ones(2))
    with pytest.raises(DimensionMismatchError):
        reflect(np.array([0.5, 0.5]), np.array([0.5, 0.5]), np.zeros(3), np.ones(3))
    with pytest.raises(DimensionMismatchError):
        reflect(np.zeros((2, 2)), np.zeros((2, 2)), np.zeros(2), np.ones(2))


def test_non_finite_target_is_rejected():
    with pytest.raises(ValueError, match="non-finite"):
        reflect(np.array([0.5]), np.array([np.inf]), np.zeros(1), np.ones(1))


def test_pass_cap_raises_non_convergence():
    with pytest.raises(ReflectionNonConvergenceError) as excinfo:
        reflect([0.9, 0.9], [1.3, 1.3], [0.0, 0.0], [1.0, 1.0], config=ReflectConfig(max_passes=1))
    assert excinfo.value.passes == 1


def test_zero_width_axis_does_not_loop_forever():
    with pytest.warns(RuntimeWarning):
        box = Hypercube(lower=np.array([0.0, 0.0]), upper=np.array([1.0, 0.0]))
    with pytest.raises(ReflectionNonConvergenceError):
        box.reflect(np.array([0.5, 0.0]), np.array([0.5, 0.3]))


def test_hypercube_reflect_delegates():
    box = Hypercube.unit(1)
    assert np.allclose(box.reflect(np.array([0.5]), np.array([1.5])), [0.5])
