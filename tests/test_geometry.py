import numpy as np
import pytest

from refl_core.errors import DimensionMismatchError
from refl_core.geometry import (
    Hypercube,
    crossing_fractions,
    default_max_passes,
    first_crossing,
    inside_mask,
    violation_masks,
)


def test_hypercube_contains_is_inclusive():
    box = Hypercube.unit(3)
    assert box.contains(np.array([0.0, 1.0, 0.5]))
    assert not box.contains(np.array([0.0, 1.0 + 1e-12, 0.5]))
    cols = np.array([[0.5, 1.5, 0.0], [0.5, 0.5, -0.1]])
    assert Hypercube.unit(2).contains(cols).tolist() == [True, False, False]


def test_hypercube_from_axis_bounds_and_accessors():
    box = Hypercube.from_axis_bounds([(-1.0, 1.0), (0.0, 4.0)])
    assert box.dim == 2
    assert np.allclose(box.lower, [-1.0, 0.0])
    assert np.allclose(box.widths(), [2.0, 4.0])
    assert np.allclose(box.center(), [0.0, 2.0])


def test_hypercube_rejects_bad_corners():
    with pytest.raises(ValueError):
        Hypercube(lower=np.array([0.0, 2.0]), upper=np.array([1.0, 1.0]))
    with pytest.raises(DimensionMismatchError):
        Hypercube(lower=np.zeros(2), upper=np.ones(3))
    with pytest.raises(DimensionMismatchError):
        Hypercube.from_axis_bounds(np.zeros((2, 3)))


def test_hypercube_zero_width_axis_warns():
    with pytest.warns(RuntimeWarning, match="zero width"):
        Hypercube(lower=np.array([0.0, 1.0]), upper=np.array([1.0, 1.0]))


def test_hypercube_corners_are_read_only_copies():
    lo = np.zeros(2)
    box = Hypercube(lower=lo, upper=np.ones(2))
    lo[0] = 5.0
    assert box.lower[0] == 0.0
    with pytest.raises(ValueError):
        box.lower[0] = 1.0


def test_inside_mask_single_point_returns_bool():
    assert inside_mask(np.array([0.2, 0.3]), np.zeros(2), np.ones(2)) is True
    assert inside_mask(np.array([0.2, -0.3]), np.zeros(2), np.ones(2)) is False


def test_violation_masks_split_lower_and_upper():
    out_lo, out_hi = violation_masks(np.array([-0.5, 0.5, 1.5]), np.zeros(3), np.ones(3))
    assert out_lo.tolist() == [True, False, False]
    assert out_hi.tolist() == [False, False, True]


def test_crossing_fractions_per_face():
    a = np.array([0.5, 0.5, 0.5])
    b = np.array([1.5, -0.5, 0.7])
    r = crossing_fractions(a, b, np.zeros(3), np.ones(3))
    assert np.isclose(r[0], 0.5)
    assert np.isclose(r[1], 0.5)
    assert np.isinf(r[2])


def test_crossing_fractions_non_finite_is_never_selected():
    # a already outside on axis 0 with no motion: 0/0
    a = np.array([1.0 + 1e-9, 0.5])
    b = np.array([1.0 + 1e-9, 0.5])
    r = crossing_fractions(a, b, np.zeros(2), np.ones(2))
    assert np.all(np.isinf(r))


def test_crossing_fractions_batch_matches_columns():
    rng = np.random.default_rng(3)
    a = rng.uniform(size=(4, 20))
    b = a + rng.standard_normal((4, 20))
    r = crossing_fractions(a, b, np.zeros(4), np.ones(4))
    for j in range(20):
        assert np.array_equal(r[:, j], crossing_fractions(a[:, j], b[:, j], np.zeros(4), np.ones(4)))


def test_first_crossing_tie_goes_to_lowest_axis():
    r, axis, sign = first_crossing(np.array([np.inf, 0.25, 0.25]), np.array([False, True, False]))
    assert r == 0.25
    assert axis == 1
    assert sign == 1.0

    fr = np.array([[0.25, np.inf], [0.25, 0.3]])
    r, axis, sign = first_crossing(fr, np.array([[False, False], [True, True]]))
    assert axis.tolist() == [0, 1]
    assert sign.tolist() == [-1.0, 1.0]
    assert np.allclose(r, [0.25, 0.3])


def test_default_max_passes_counts_box_widths():
    a = np.array([0.5, 0.5])
    b = np.array([3.6, 0.5])
    # 4*d + ceil(3.1 / 1) + 0
    assert default_max_passes(a, b, np.zeros(2), np.ones(2)) == 8 + 4
    caps = default_max_passes(np.stack([a, a], axis=1), np.stack([b, a], axis=1), np.zeros(2), np.ones(2))
    assert caps.tolist() == [12, 8]


def test_default_max_passes_ignores_zero_width_axes():
    with pytest.warns(RuntimeWarning):
        box = Hypercube(lower=np.zeros(2), upper=np.array([1.0, 0.0]))
    assert default_max_passes(np.array([0.5, 0.0]), np.array([0.5, 0.3]), box.lower, box.upper) == 8
