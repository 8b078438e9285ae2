import math

import numpy as np
import pytest

from histbin import UNDERFLOW, OVERFLOW, AxisKind, EquidistantAxis, GrowAxis
from histbin.axis import FLOAT_MAX, FLOAT_LOWEST


def below(x):
    return float(np.nextafter(x, -np.inf))


def test_equidistant_basics():
    a = EquidistantAxis(6, -7.5, 5.8)
    assert a.kind is AxisKind.EQUIDISTANT
    assert a.nbins_no_over == 6
    assert a.n_bins == 8
    assert not a.can_grow
    assert a.low == -7.5
    assert a.high == 5.8
    assert len(a.edges) == 7
    assert a.bin_ids() == [UNDERFLOW, 1, 2, 3, 4, 5, 6, OVERFLOW]


@pytest.mark.parametrize(
    "nbins, low, high",
    [(0, 0.0, 1.0), (3, 1.0, 1.0), (3, 2.0, 1.0), (3, 0.0, math.inf), (3, math.nan, 1.0)],
)
def test_equidistant_rejects_bad_ranges(nbins, low, high):
    with pytest.raises(ValueError):
        EquidistantAxis(nbins, low, high)


@pytest.mark.parametrize(
    "x, expected",
    [
        (0.1, 1), (0.22, 2), (0.2, 2), (1.0, OVERFLOW), (0.0, 1), (-0.1, UNDERFLOW),
        (0.5, 3), (0.600000001, 4), (0.7, 4), (0.8, 5), (0.9, 5),
    ],
)
def test_equidistant_find_bin(x, expected):
    # [0.0, 0.2, 0.4, 0.6, 0.8, 1.0)
    a = EquidistantAxis(5, 0.0, 1.0)
    assert a.find_bin(x) == expected


def test_equidistant_find_bin_agrees_with_boundaries():
    """Half-open bins: lower edge is in, upper edge belongs to the next bin."""
    a = EquidistantAxis(10, 0.0, 1.0)
    for b in range(1, 11):
        assert a.find_bin(a.get_bin_from(b)) == b
        assert a.find_bin(below(a.get_bin_to(b))) == b
        assert a.find_bin(a.get_bin_center(b)) == b
    assert a.find_bin(a.high) == OVERFLOW
    assert a.find_bin(below(a.low)) == UNDERFLOW


def test_equidistant_extreme_values():
    a = EquidistantAxis(4, -3.2, -2.5)
    assert a.find_bin(FLOAT_LOWEST) == UNDERFLOW
    assert a.find_bin(FLOAT_MAX) == OVERFLOW
    assert a.find_bin(-math.inf) == UNDERFLOW
    assert a.find_bin(math.inf) == OVERFLOW


def test_equidistant_range_wider_than_largest_float():
    a = EquidistantAxis(2, -1e308, 1e308)
    assert a.get_bin_from(2) == 0.0
    assert a.find_bin(-1e307) == 1
    assert a.find_bin(0.0) == 2
    assert a.find_bin(5e307) == 2
    assert a.find_bin(1e308) == OVERFLOW
    assert a.find_bin(FLOAT_LOWEST) == UNDERFLOW
    assert a.find_bin(FLOAT_MAX) == OVERFLOW
    assert a.find_bins([-1e307, 0.0, 5e307, 1e308]).tolist() == [1, 2, 2, OVERFLOW]

    full = EquidistantAxis(1, FLOAT_LOWEST, FLOAT_MAX)
    assert full.find_bin(0.0) == 1
    assert full.find_bin(FLOAT_LOWEST) == 1
    assert full.find_bin(FLOAT_MAX) == OVERFLOW
    assert full.get_bin_center(1) == 0.0
    assert math.isinf(full.width)


def test_equidistant_subnormal_width():
    a = EquidistantAxis(1, 0.0, 1e-310)
    assert a.find_bin(0.0) == 1
    assert a.find_bin(5e-311) == 1
    assert a.find_bin(1e-310) == OVERFLOW
    assert a.find_bins([0.0, 5e-311, 1e-310]).tolist() == [1, 1, OVERFLOW]

    b = EquidistantAxis(2, 0.0, 1e-310)
    assert b.find_bin(b.get_bin_from(2)) == 2
    assert b.find_bins([0.0, b.get_bin_from(2)]).tolist() == [1, 2]


def test_equidistant_sentinel_boundaries():
    a = EquidistantAxis(2, 0.0, 2.0)
    assert a.get_bin_from(UNDERFLOW) == FLOAT_LOWEST
    assert a.get_bin_to(UNDERFLOW) == 0.0
    assert a.get_bin_from(OVERFLOW) == 2.0
    assert a.get_bin_to(OVERFLOW) == FLOAT_MAX

    uf_center = a.get_bin_center(UNDERFLOW)
    of_center = a.get_bin_center(OVERFLOW)
    assert math.isfinite(uf_center) and math.isfinite(of_center)
    assert FLOAT_LOWEST <= uf_center < 0.0
    assert 2.0 < of_center <= FLOAT_MAX
    assert a.find_bin(uf_center) == UNDERFLOW
    assert a.find_bin(of_center) == OVERFLOW


def test_equidistant_regular_boundaries():
    a = EquidistantAxis(2, -1.0, 1.0)
    assert a.get_bin_from(1) == -1.0
    assert a.get_bin_center(1) == -0.5
    assert a.get_bin_to(1) == 0.0
    assert a.get_bin_from(2) == 0.0
    assert a.get_bin_center(2) == 0.5
    assert a.get_bin_to(2) == 1.0


def test_equidistant_find_bins_matches_scalar():
    a = EquidistantAxis(7, -7.8, -2.4)
    xs = np.concatenate(
        [np.linspace(-9.0, -1.0, 101), a.edges, [FLOAT_LOWEST, FLOAT_MAX, -np.inf, np.inf]]
    )
    got = a.find_bins(xs)
    assert got.dtype == np.int64
    assert got.tolist() == [a.find_bin(x) for x in xs]


def test_grow_basics():
    a = GrowAxis(3, 3.0, 5.3)
    assert a.kind is AxisKind.GROW
    assert a.can_grow
    assert a.nbins_no_over == 3
    assert a.n_bins == 3
    assert a.bin_ids() == [1, 2, 3]
    assert a.get_bin_from(1) == 3.0
    assert a.get_bin_to(3) == 5.3


def test_grow_has_no_sentinel_bins():
    a = GrowAxis(3, 3.0, 5.3)
    with pytest.raises(IndexError):
        a.get_bin_from(UNDERFLOW)
    with pytest.raises(IndexError):
        a.get_bin_to(OVERFLOW)
    with pytest.raises(IndexError):
        a.get_bin_center(4)


def test_grow_find_bin_inside_initial_range():
    a = GrowAxis(3, 3.0, 5.3)
    probes = [3.0, 3.2, 3.7, 3.9, 4.2, 4.5, 4.6, 5.0, 5.29]
    assert [a.find_bin(x) for x in probes] == [1, 1, 1, 2, 2, 2, 3, 3, 3]


def test_grow_clamps_outside_initial_range():
    a = GrowAxis(3, 3.0, 5.3)
    assert a.find_bin(2.0) == 1
    assert a.find_bin(5.3) == 3
    assert a.find_bin(FLOAT_LOWEST) == 1
    assert a.find_bin(FLOAT_MAX) == 3
    assert a.find_bins([-np.inf, 4.0, np.inf]).tolist() == [1, 2, 3]


def test_grow_from_edges():
    a = GrowAxis.from_edges([0.0, 0.5, 2.0, 10.0])
    assert a.nbins_no_over == 3
    assert a.find_bin(0.5) == 2
    assert a.find_bin(1.99) == 2
    assert a.find_bin(2.0) == 3
    assert a.get_bin_center(3) == 6.0
    assert a == GrowAxis.from_edges([0.0, 0.5, 2.0, 10.0])


@pytest.mark.parametrize("edges", [[1.0], [0.0, 0.0], [1.0, 0.5], [0.0, np.inf]])
def test_grow_from_edges_rejects_bad_edges(edges):
    with pytest.raises(ValueError):
        GrowAxis.from_edges(edges)


def test_nan_is_rejected():
    for a in (EquidistantAxis(2, 0.0, 1.0), GrowAxis(2, 0.0, 1.0)):
        with pytest.raises(ValueError):
            a.find_bin(math.nan)
        with pytest.raises(ValueError):
            a.find_bins([0.5, math.nan])


def test_axes_are_immutable_and_comparable():
    a = EquidistantAxis(3, 0.0, 3.0)
    with pytest.raises(ValueError):
        a.edges[0] = -1.0
    assert a == EquidistantAxis(3, 0.0, 3.0)
    assert a != GrowAxis(3, 0.0, 3.0)
    assert a != EquidistantAxis(4, 0.0, 3.0)
    assert len({a, EquidistantAxis(3, 0.0, 3.0)}) == 1
