"""
Composition of per-axis local bin identifiers into one global bin index.

The bins of a histogram are enumerated as the Cartesian product of the
per-axis identifier sequences (``[-1, 1..n, -2]`` for axes that cannot
grow, ``[1..n]`` for growable ones), axis 0 advancing fastest. Walking that
product once, fully regular combinations get ``1, 2, 3, ...`` and every
combination touching an under/overflow bin gets ``-1, -2, -3, ...``, both in
visitation order.

``BinIndexer`` reproduces that assignment in O(D) per query, in both
directions, without walking or tabulating the product.
"""

import operator

import numpy as np

from .axis import UNDERFLOW, OVERFLOW


class InvalidBinIndexError(IndexError):
    """Global bin index that no combination of local bins maps to."""


def _position(axis, b):
    # position of local id ``b`` in the axis' identifier sequence
    lead = 0 if axis.can_grow else 1
    if b == UNDERFLOW:
        return 0
    if b == OVERFLOW:
        return lead + axis.nbins_no_over
    return lead + b - 1


def _local_id(axis, v):
    if axis.can_grow:
        return v + 1
    if v == 0:
        return UNDERFLOW
    if v == axis.nbins_no_over + 1:
        return OVERFLOW
    return v


def iter_bin_combinations(axes):
    """
    Yield tuples of local bin ids over all bins, axis 0 fastest.

    Odometer over per-axis positions; memory is proportional to the number
    of axes only.
    """
    axes = tuple(axes)
    if not axes:
        return
    lengths = [axis.n_bins for axis in axes]
    cursors = [0] * len(axes)
    while True:
        yield tuple(_local_id(axis, v) for axis, v in zip(axes, cursors))
        for k, n in enumerate(lengths):
            cursors[k] += 1
            if cursors[k] < n:
                break
            cursors[k] = 0
        else:
            return


class BinIndexer:
    """
    Global bin index <-> local bin ids for a fixed tuple of axes.

    Parameters
    ----------
    axes : sequence of Axis
        Only the capability set of the axes is used (``nbins_no_over``,
        ``can_grow``, ``find_bin`` and the boundary accessors).

    Notes
    -----
    Per axis ``k`` with identifier sequence length ``L_k``, ``n_k`` regular
    bins and ``a_k`` leading underflow entries (0 or 1), the block spanned by
    one step of axis ``k`` holds ``S_k = prod(L_j, j<k)`` bins, of which
    ``R_k = prod(n_j, j<k)`` are regular and ``O_k = S_k - R_k`` are not.
    Regular bins are plain mixed-radix numbers over ``n``. The rank of an
    overflow bin is accumulated from the slowest axis down: a regular
    position on axis ``k`` skips ``O_k`` overflow bins per preceding step and
    keeps descending, a sentinel position makes the rest of the block all
    overflow, so the remaining axes count with plain strides ``S_j``.
    """

    def __init__(self, axes):
        self.axes = tuple(axes)
        if not self.axes:
            raise ValueError("Need at least 1 dimension.")
        self.D = len(self.axes)

        self._n = [axis.nbins_no_over for axis in self.axes]
        self._lead = [0 if axis.can_grow else 1 for axis in self.axes]
        self._S = []
        self._R = []
        s = r = 1
        for axis, n in zip(self.axes, self._n):
            self._S.append(s)
            self._R.append(r)
            s *= axis.n_bins
            r *= n
        self._O = [s_k - r_k for s_k, r_k in zip(self._S, self._R)]

        self.n_bins = s
        self.n_regular = r
        self.n_overflow = s - r

    # ---------- forward ----------
    def compose(self, local_ids):
        """Global index of one tuple of local bin ids."""
        if len(local_ids) != self.D:
            raise ValueError(f"Expected {self.D} local bin ids, got {len(local_ids)}.")
        ids = [axis.check_bin(b) for axis, b in zip(self.axes, local_ids)]

        if all(b >= 1 for b in ids):
            return 1 + sum((b - 1) * r for b, r in zip(ids, self._R))

        pos = [_position(axis, b) for axis, b in zip(self.axes, ids)]
        rank = 0
        for k in range(self.D - 1, -1, -1):
            v, a, n = pos[k], self._lead[k], self._n[k]
            if a <= v < a + n:
                rank += a * self._S[k] + (v - a) * self._O[k]
                continue
            if v >= a + n:
                rank += a * self._S[k] + n * self._O[k] + (v - a - n) * self._S[k]
            rank += sum(pos[j] * self._S[j] for j in range(k))
            break
        return -(rank + 1)

    def compose_many(self, local_ids):
        """Vectorized ``compose`` over equally shaped arrays of local ids."""
        if len(local_ids) != self.D:
            raise ValueError(f"Expected {self.D} local bin id arrays.")
        ids = [np.asarray(b, dtype=np.int64) for b in local_ids]

        regular = np.ones(ids[0].shape, dtype=bool)
        reg_index = np.ones(ids[0].shape, dtype=np.int64)
        pos, full = [], []
        acc = np.zeros(ids[0].shape, dtype=np.int64)
        for k, b in enumerate(ids):
            valid = (b >= 1) & (b <= self._n[k])
            if self._lead[k]:
                valid |= (b == UNDERFLOW) | (b == OVERFLOW)
            if not np.all(valid):
                bad = int(b[~valid].flat[0])
                raise IndexError(f"{self.axes[k]!r} has no local bin {bad}.")
            regular &= b >= 1
            reg_index += (b - 1) * self._R[k]
            a, n = self._lead[k], self._n[k]
            v = np.where(b == UNDERFLOW, 0, np.where(b == OVERFLOW, a + n, a + b - 1))
            pos.append(v)
            full.append(acc.copy())
            acc += v * self._S[k]

        rank = np.zeros(ids[0].shape, dtype=np.int64)
        active = ~regular
        for k in range(self.D - 1, -1, -1):
            v, a, n, S, O = pos[k], self._lead[k], self._n[k], self._S[k], self._O[k]
            under = active & (v < a)
            over = active & (v >= a + n)
            mid = active & ~under & ~over
            rank += np.where(under, full[k], 0)
            rank += np.where(over, a * S + n * O + (v - a - n) * S + full[k], 0)
            rank += np.where(mid, a * S + (v - a) * O, 0)
            active = mid
        return np.where(regular, reg_index, -(rank + 1))

    # ---------- inverse ----------
    def decompose(self, index):
        """Local bin ids of a global index."""
        i = self._check_index(index)
        if i > 0:
            r = i - 1
            ids = []
            for n in self._n:
                r, q = divmod(r, n)
                ids.append(q + 1)
            return tuple(ids)

        r = -i - 1
        pos = [0] * self.D
        for k in range(self.D - 1, -1, -1):
            a, n, S, O = self._lead[k], self._n[k], self._S[k], self._O[k]
            if r < a * S:
                pos[k], r = divmod(r, S)
            else:
                r -= a * S
                if r < n * O:
                    q, r = divmod(r, O)
                    pos[k] = a + q
                    continue
                r -= n * O
                q, r = divmod(r, S)
                pos[k] = a + n + q
            for j in range(k - 1, -1, -1):
                pos[j], r = divmod(r, self._S[j])
            break
        return tuple(_local_id(axis, v) for axis, v in zip(self.axes, pos))

    def is_regular(self, index):
        return self._check_index(index) > 0

    def _check_index(self, index):
        try:
            i = operator.index(index)
        except TypeError:
            raise InvalidBinIndexError(f"Bin index must be an integer, got {index!r}.") from None
        if i == 0 or i > self.n_regular or i < -self.n_overflow:
            raise InvalidBinIndexError(
                f"Bin index {i} outside of [-{self.n_overflow}, -1] U [1, {self.n_regular}]."
            )
        return i

    # ---------- storage slots ----------
    def slot(self, index):
        """Contiguous storage position: regular bins first, then overflow bins."""
        i = self._check_index(index)
        return i - 1 if i > 0 else self.n_regular - i - 1

    def slots(self, indices):
        indices = np.asarray(indices, dtype=np.int64)
        return np.where(indices > 0, indices - 1, self.n_regular - indices - 1)

    def index_from_slot(self, slot):
        slot = operator.index(slot)
        if not 0 <= slot < self.n_bins:
            raise InvalidBinIndexError(f"Storage slot {slot} outside of [0, {self.n_bins}).")
        if slot < self.n_regular:
            return slot + 1
        return self.n_regular - slot - 1

    def enumerate(self):
        """Yield ``(global_index, local_ids)`` in enumeration order."""
        for ids in iter_bin_combinations(self.axes):
            yield self.compose(ids), ids

    def __repr__(self):
        return (
            f"BinIndexer(D={self.D}, n_regular={self.n_regular}, "
            f"n_overflow={self.n_overflow})"
        )
