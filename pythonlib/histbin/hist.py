from collections import namedtuple

import numpy as np

from .axis import Axis
from .bin_index import BinIndexer

BinInfo = namedtuple("BinInfo", ["index", "local_ids", "from_", "center", "to"])


class Hist:
    """
    N-D histogram over a fixed tuple of axes, addressed by global bin index.

    Parameters
    ----------
    *axes : Axis
        One axis per dimension, axis 0 first. A single list/tuple of axes is
        accepted as well.
    dtype : numpy dtype-like, default float
        Storage dtype for bin contents.

    Bin contents live in a flat array of ``get_n_bins()`` entries, regular
    bins first (global index ``i`` at slot ``i - 1``), then under/overflow
    bins (global index ``-k`` at slot ``n_regular + k - 1``).
    """

    def __init__(self, *axes, dtype=float):
        if len(axes) == 1 and isinstance(axes[0], (list, tuple)):
            axes = tuple(axes[0])
        for ax in axes:
            if not isinstance(ax, Axis):
                raise TypeError(f"Expected Axis instances, got {type(ax).__name__}.")
        self._indexer = BinIndexer(axes)
        self.D = self._indexer.D
        self.dtype = np.dtype(dtype)
        self.counts = np.zeros(self._indexer.n_bins, dtype=self.dtype)

    @property
    def axes(self):
        return self._indexer.axes

    @property
    def ndim(self):
        return self.D

    def axis(self, k):
        return self._indexer.axes[k]

    # ---------- binning ----------
    def get_n_bins(self):
        """Total number of bins, under/overflow included."""
        return self._indexer.n_bins

    def get_n_regular_bins(self):
        return self._indexer.n_regular

    def get_n_overflow_bins(self):
        return self._indexer.n_overflow

    def get_bin_index(self, coords):
        """Global bin index of one coordinate tuple."""
        if len(coords) != self.D:
            raise ValueError(f"Expected {self.D} coordinates, got {len(coords)}.")
        return self._indexer.compose(
            [ax.find_bin(x) for ax, x in zip(self.axes, coords)]
        )

    def get_bin_indices(self, *coords):
        """Global bin indices for one coordinate array (or scalar) per axis."""
        if len(coords) != self.D:
            raise ValueError(f"Expected {self.D} coordinate arrays.")
        arrs = np.broadcast_arrays(*[np.asarray(c, dtype=np.float64) for c in coords])
        return self._indexer.compose_many(
            [ax.find_bins(a) for ax, a in zip(self.axes, arrs)]
        )

    def get_local_bins(self, index):
        """Per-axis local bin ids of a global index."""
        return self._indexer.decompose(index)

    def get_bin_from(self, index):
        return tuple(
            ax.get_bin_from(b) for ax, b in zip(self.axes, self._indexer.decompose(index))
        )

    def get_bin_center(self, index):
        return tuple(
            ax.get_bin_center(b) for ax, b in zip(self.axes, self._indexer.decompose(index))
        )

    def get_bin_to(self, index):
        return tuple(
            ax.get_bin_to(b) for ax, b in zip(self.axes, self._indexer.decompose(index))
        )

    def is_regular(self, index):
        return self._indexer.is_regular(index)

    def iter_bins(self):
        """Yield a ``BinInfo`` per bin in enumeration order (axis 0 fastest)."""
        for index, ids in self._indexer.enumerate():
            yield BinInfo(
                index,
                ids,
                tuple(ax.get_bin_from(b) for ax, b in zip(self.axes, ids)),
                tuple(ax.get_bin_center(b) for ax, b in zip(self.axes, ids)),
                tuple(ax.get_bin_to(b) for ax, b in zip(self.axes, ids)),
            )

    # ---------- content ----------
    def get_bin_content(self, index):
        return self.counts[self._indexer.slot(index)]

    def fill(self, *coords, mask=None, weights=None):
        """
        Fill with raw coordinates (one array or scalar per axis).

        Under/overflow entries are kept in their own bins.
        """
        if len(coords) != self.D:
            raise ValueError(f"Expected {self.D} coordinate arrays.")
        arrs = [np.asarray(c, dtype=np.float64) for c in coords]
        arrs = [a if a.ndim > 0 else a[None] for a in arrs]
        if mask is not None:
            m = np.asarray(mask)
            arrs = [a[m] for a in arrs]
            if weights is not None:
                w = np.asarray(weights)
                weights = w[m] if w.ndim > 0 else w
        self._accumulate(self.get_bin_indices(*arrs), weights)

    def _accumulate(self, indices, weights=None):
        flat = self._indexer.slots(np.ravel(indices))
        if flat.size == 0:
            return

        if weights is None:
            add = np.bincount(flat, minlength=self.get_n_bins())
        else:
            w = np.asarray(weights, dtype=float)
            if w.ndim == 0:
                w = np.full(flat.shape, float(w))
            add = np.bincount(flat, weights=np.ravel(w), minlength=self.get_n_bins())
        self.counts += add.astype(self.counts.dtype, copy=False)

    def copy(self):
        """Copy of the contents; axes are immutable and shared."""
        out = Hist(self.axes, dtype=self.dtype.type)
        out.counts = self.counts.copy()
        return out

    def __repr__(self):
        return (
            f"Hist(axes={list(self.axes)!r}, n_bins={self.get_n_bins()}, "
            f"dtype={self.counts.dtype})"
        )
