# sparse_matrix.py
#
# Project: CSR PageRank
#
# Description:
#   Sparse matrix in CSR (Compressed Sparse Row) format with random-access
#   get/set, used to hold the PageRank transition weights.
#
#   Storage is three parallel arrays:
#     entries     : stored Entry objects (values), grouped by row
#     row_offsets : length m+1; row i lives in [row_offsets[i], row_offsets[i+1])
#     col_indices : column of each stored entry, same order as entries
#
#   Entries inside a row are kept in insertion order, NOT sorted by column,
#   so lookups are a linear scan of the row: O(row length) per get/set, plus
#   O(m) to shift the offsets on insertion.  Fine for construction-time use
#   on graphs that are read in full from a file.

import numpy as np

from csr_pagerank.errors import CoordinateOutOfRangeError

# Marks a placeholder Entry; None is a storable value.
_EMPTY = object()


class Entry:
    """
    A single matrix cell.

    An empty entry marks a structurally absent element, as opposed to a
    stored zero.  Its value is always the zero of the matrix.
    """

    __slots__ = ('_i', '_j', '_value', '_zero', '_is_empty')

    def __init__(self, i, j, value=_EMPTY, zero=0.0):
        self._i = i
        self._j = j
        self._zero = zero
        if value is _EMPTY:
            self._value = zero
            self._is_empty = True
        else:
            self._value = value
            self._is_empty = False

    @property
    def i(self):
        return self._i

    @property
    def j(self):
        return self._j

    @property
    def value(self):
        return self._value

    @property
    def is_empty(self):
        return self._is_empty

    def set_value(self, value):
        self._value = value
        self._is_empty = False

    def set_empty(self):
        self._value = self._zero
        self._is_empty = True

    def __repr__(self):
        if self._is_empty:
            return f"Entry({self._i}, {self._j}, empty)"
        return f"Entry({self._i}, {self._j}, {self._value!r})"


class SparseMatrix:
    """
    m x n sparse matrix in CSR format.

    Shape is fixed at construction.  Cells are added on the first set() to an
    absent coordinate and overwritten on later ones; there is no deletion.
    """

    def __init__(self, m, n, zero=0.0):
        if m < 0 or n < 0:
            raise ValueError(f"matrix shape must be non-negative, got ({m}, {n})")
        self._m = m
        self._n = n
        self._zero = zero
        self._entries = []
        self._row_offsets = np.zeros(m + 1, dtype=np.int64)
        self._col_indices = []

    @property
    def m(self):
        return self._m

    @property
    def n(self):
        return self._n

    @property
    def shape(self):
        return (self._m, self._n)

    @property
    def nnz(self):
        """Number of stored entries."""
        return len(self._entries)

    @property
    def values(self):
        return [entry.value for entry in self._entries]

    @property
    def row_offsets(self):
        return self._row_offsets.copy()

    @property
    def col_indices(self):
        return list(self._col_indices)

    def _check(self, i, j):
        if not (0 <= i < self._m and 0 <= j < self._n):
            raise CoordinateOutOfRangeError(i, j, self.shape)

    def _find(self, i, j):
        """Position of (i, j) in the parallel arrays, or -1."""
        for pos in range(self._row_offsets[i], self._row_offsets[i + 1]):
            if self._col_indices[pos] == j:
                return pos
        return -1

    def get(self, i, j):
        """
        Return the entry at (i, j).

        On a miss, returns a new empty Entry that is NOT part of the matrix;
        check `is_empty` before using its value.

        Raises:
            CoordinateOutOfRangeError: if (i, j) is outside the matrix
        """
        self._check(i, j)
        pos = self._find(i, j)
        if pos < 0:
            return Entry(i, j, zero=self._zero)
        return self._entries[pos]

    def set(self, i, j, value):
        """
        Store `value` at (i, j).

        An existing cell is overwritten in place.  A new cell is appended at
        the end of row i and every later row offset shifts by one.

        Raises:
            CoordinateOutOfRangeError: if (i, j) is outside the matrix
        """
        self._check(i, j)
        pos = self._find(i, j)
        if pos >= 0:
            self._entries[pos].set_value(value)
            return

        pos = int(self._row_offsets[i + 1])
        self._entries.insert(pos, Entry(i, j, value, zero=self._zero))
        self._col_indices.insert(pos, j)
        self._row_offsets[i + 1:] += 1

    def row(self, i):
        """Yield the stored entries of row i in insertion order."""
        if not 0 <= i < self._m:
            raise CoordinateOutOfRangeError(i, 0, self.shape)
        for pos in range(self._row_offsets[i], self._row_offsets[i + 1]):
            yield self._entries[pos]

    def row_length(self, i):
        if not 0 <= i < self._m:
            raise CoordinateOutOfRangeError(i, 0, self.shape)
        return int(self._row_offsets[i + 1] - self._row_offsets[i])

    def to_dense(self):
        """Dense numpy copy, for display and debugging of small matrices."""
        dense = np.full((self._m, self._n), self._zero, dtype=np.float64)
        for entry in self._entries:
            dense[entry.i, entry.j] = entry.value
        return dense

    def __iter__(self):
        return iter(self._entries)

    def __len__(self):
        return len(self._entries)

    def __repr__(self):
        return f"SparseMatrix(shape={self.shape}, nnz={self.nnz})"
