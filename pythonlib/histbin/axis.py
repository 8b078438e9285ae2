import enum
import math

import numpy as np

UNDERFLOW = -1
OVERFLOW = -2

# Outermost finite boundaries of the under/overflow bins
FLOAT_MAX = float(np.finfo(np.float64).max)
FLOAT_LOWEST = -FLOAT_MAX


class AxisKind(enum.Enum):
    EQUIDISTANT = "equidistant"
    GROW = "grow"


def _midpoint(a, b):
    # 0.5*a + 0.5*b never overflows, (a + b) / 2 can
    return 0.5 * a + 0.5 * b


def _range_scale(low, high):
    # high - low overflows past the largest float, halved ends do not
    return 1.0 if math.isfinite(high - low) else 0.5


def _linear_edges(nbins, low, high):
    """
    Edges of ``nbins`` equal-width bins, pinned exactly to low and high.

    Returns the edges, the scale applied to coordinates before
    differencing and the scaled span ``scale*high - scale*low``.
    """
    nbins = int(nbins)
    low, high = float(low), float(high)
    if nbins < 1:
        raise ValueError("Need at least 1 bin.")
    if not (math.isfinite(low) and math.isfinite(high)):
        raise ValueError("Axis range must be finite.")
    if not low < high:
        raise ValueError(f"Axis range is empty: low={low} >= high={high}.")
    scale = _range_scale(low, high)
    span = scale * high - scale * low

    frac = np.arange(nbins + 1, dtype=np.float64) / nbins
    edges = (scale * low + span * frac) / scale
    edges[0], edges[-1] = low, high
    return edges, scale, span


class Axis:
    """
    One dimension of a histogram, partitioned into ordered bins.

    Local bin identifiers are ``1..nbins_no_over`` for regular bins and
    ``UNDERFLOW`` / ``OVERFLOW`` for the sentinel bins of axes that cannot
    grow. Bins are half-open intervals ``[from, to)``.

    Abstract: ``can_grow``, ``find_bin`` and ``find_bins`` are provided by
    ``EquidistantAxis`` and ``GrowAxis``.
    """

    kind = None

    def __init__(self, edges):
        edges = np.array(edges, dtype=np.float64, copy=True)
        if edges.ndim != 1 or len(edges) < 2:
            raise ValueError("An axis needs at least 2 bin edges.")
        if not np.all(np.isfinite(edges)):
            raise ValueError("Bin edges must be finite.")
        if np.any(edges[1:] <= edges[:-1]):
            raise ValueError("Bin edges must be strictly increasing.")
        edges.flags.writeable = False
        self._edges = edges
        self._nbins = len(edges) - 1

    # ---------- capability set ----------
    @property
    def nbins_no_over(self):
        return self._nbins

    @property
    def can_grow(self):
        raise NotImplementedError

    def get_bin_from(self, b):
        b = self.check_bin(b)
        if b == UNDERFLOW:
            return FLOAT_LOWEST
        if b == OVERFLOW:
            return float(self._edges[-1])
        return float(self._edges[b - 1])

    def get_bin_to(self, b):
        b = self.check_bin(b)
        if b == UNDERFLOW:
            return float(self._edges[0])
        if b == OVERFLOW:
            return FLOAT_MAX
        return float(self._edges[b])

    def get_bin_center(self, b):
        return _midpoint(self.get_bin_from(b), self.get_bin_to(b))

    def find_bin(self, x):
        raise NotImplementedError

    def find_bins(self, xs):
        raise NotImplementedError

    # ---------- introspection ----------
    @property
    def edges(self):
        """Read-only boundaries of the regular bins."""
        return self._edges

    @property
    def low(self):
        return float(self._edges[0])

    @property
    def high(self):
        return float(self._edges[-1])

    @property
    def n_bins(self):
        """Number of bins including under/overflow."""
        return self._nbins if self.can_grow else self._nbins + 2

    def bin_ids(self):
        """Local bin identifiers in enumeration order."""
        ids = list(range(1, self._nbins + 1))
        if not self.can_grow:
            ids = [UNDERFLOW] + ids + [OVERFLOW]
        return ids

    def check_bin(self, b):
        """Validated local bin id, ``IndexError`` if the axis has no such bin."""
        b = int(b)
        if 1 <= b <= self._nbins:
            return b
        if not self.can_grow and b in (UNDERFLOW, OVERFLOW):
            return b
        raise IndexError(f"{self!r} has no local bin {b}.")

    @staticmethod
    def _check_not_nan(xs):
        if np.any(np.isnan(xs)):
            raise ValueError("Cannot bin a NaN coordinate.")

    def __eq__(self, other):
        if not isinstance(other, Axis):
            return NotImplemented
        return self.kind is other.kind and np.array_equal(self._edges, other._edges)

    def __hash__(self):
        return hash((self.kind, self._edges.tobytes()))


class EquidistantAxis(Axis):
    """
    Fixed range ``[low, high)`` split into ``nbins`` bins of equal width,
    with an underflow and an overflow bin.

    ``find_bin`` is plain arithmetic; the result is nudged by at most one
    bin so that it agrees with ``get_bin_from``/``get_bin_to`` on every
    boundary.
    """

    kind = AxisKind.EQUIDISTANT

    def __init__(self, nbins, low, high):
        edges, scale, span = _linear_edges(nbins, low, high)
        super().__init__(edges)
        self._scale = scale
        self._span = span

    @property
    def width(self):
        """Bin width; ``inf`` if a single bin is wider than the largest float."""
        return self._span / self._nbins / self._scale

    @property
    def can_grow(self):
        return False

    def _raw_bins(self, x):
        # fraction of the range below x, in [0, 1] for low <= x < high
        frac = (self._scale * x - self._scale * self.low) / self._span
        return 1 + frac * self._nbins

    def find_bin(self, x):
        x = float(x)
        if math.isnan(x):
            raise ValueError("Cannot bin a NaN coordinate.")
        if x < self.low:
            return UNDERFLOW
        if x >= self.high:
            return OVERFLOW

        b = int(self._raw_bins(x))
        b = min(max(b, 1), self._nbins)
        if x < self._edges[b - 1]:
            b -= 1
        elif x >= self._edges[b]:
            b += 1
        return b

    def find_bins(self, xs):
        xs = np.asarray(xs, dtype=np.float64)
        self._check_not_nan(xs)
        inside = (xs >= self.low) & (xs < self.high)

        # out-of-range values never enter the arithmetic
        safe = np.where(inside, xs, self.low)
        b = np.floor(self._raw_bins(safe)).astype(np.int64)
        b = np.clip(b, 1, self._nbins)
        b -= safe < self._edges[b - 1]
        b += safe >= self._edges[b]

        out = np.where(xs < self.low, UNDERFLOW, OVERFLOW).astype(np.int64)
        out[inside] = b[inside]
        return out

    def __repr__(self):
        return f"EquidistantAxis({self._nbins}, {self.low!r}, {self.high!r})"


class GrowAxis(Axis):
    """
    Axis whose range may be extended, hence without under/overflow bins.

    Only the initial partition is supported: coordinates outside of it are
    clamped to the first or last bin.
    """

    kind = AxisKind.GROW

    def __init__(self, nbins, low, high):
        edges, _, _ = _linear_edges(nbins, low, high)
        super().__init__(edges)

    @classmethod
    def from_edges(cls, edges):
        """Growable axis with an arbitrary initial partition."""
        out = cls.__new__(cls)
        Axis.__init__(out, edges)
        return out

    @property
    def can_grow(self):
        return True

    def find_bin(self, x):
        x = float(x)
        if math.isnan(x):
            raise ValueError("Cannot bin a NaN coordinate.")
        b = int(np.searchsorted(self._edges, x, side="right"))
        return min(max(b, 1), self._nbins)

    def find_bins(self, xs):
        xs = np.asarray(xs, dtype=np.float64)
        self._check_not_nan(xs)
        b = np.searchsorted(self._edges, xs, side="right").astype(np.int64)
        return np.clip(b, 1, self._nbins)

    def __repr__(self):
        return f"GrowAxis.from_edges({self._edges.tolist()!r})"
