"""Compressed sparse row matrices and conversions to and from dense buffers.

Dense matrices live in flat numpy buffers; entry ``(i, j)`` is stored at
``i * stride_row + j * stride_col``.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Sequence

import numpy as np

from randsketch.util import Layout

__all__ = [
    "IndexBase",
    "CSRMatrix",
    "csr_to_dense",
    "csr_to_dense_strided",
    "dense_to_csr",
    "dense_to_csr_strided",
]


class IndexBase(enum.Enum):
    """Whether stored indices count from zero or from one."""

    Zero = 0
    One = 1


def _float_dtype(arr: np.ndarray) -> np.dtype:
    return arr.dtype if np.issubdtype(arr.dtype, np.floating) else np.dtype(np.float64)


@dataclass
class CSRMatrix:
    """A sparse matrix in CSR form: ``vals``, ``rowptr`` and ``colidxs``.

    Row ``i`` holds ``rowptr[i+1] - rowptr[i]`` structural nonzeros; the
    ``k``-th of them sits in column ``colidxs[rowptr[i] + k]`` with value
    ``vals[rowptr[i] + k]``.  A matrix created without any arrays owns its
    storage and may be filled through :meth:`reserve`.
    """

    n_rows: int
    n_cols: int
    nnz: int = 0
    vals: np.ndarray | None = None
    rowptr: np.ndarray | None = None
    colidxs: np.ndarray | None = None
    index_base: IndexBase = IndexBase.Zero
    own_memory: bool | None = None
    dtype: Any = np.float64

    def __post_init__(self) -> None:
        if self.n_rows < 0 or self.n_cols < 0:
            raise ValueError("matrix dimensions must be nonnegative")
        if self.own_memory is None:
            self.own_memory = self.vals is None and self.rowptr is None and self.colidxs is None
        self.dtype = np.dtype(self.dtype)
        if self.vals is not None:
            self.vals = np.asarray(self.vals)
            self.dtype = _float_dtype(self.vals)
            self.vals = self.vals.astype(self.dtype, copy=False)
        if self.rowptr is not None:
            self.rowptr = np.asarray(self.rowptr, dtype=np.int64)
        if self.colidxs is not None:
            self.colidxs = np.asarray(self.colidxs, dtype=np.int64)

    def reserve(self, nnz: int) -> None:
        """Allocate storage for ``nnz`` structural nonzeros.

        The matrix must own its memory and have no ``vals`` or ``colidxs``
        yet.  An existing ``rowptr`` is kept; otherwise a zero array of
        length ``n_rows + 1`` is attached.
        """
        if not self.own_memory:
            raise ValueError("cannot reserve storage for a matrix that does not own its memory")
        if self.colidxs is not None:
            raise ValueError("colidxs is already allocated")
        if self.vals is not None:
            raise ValueError("vals is already allocated")
        if nnz < 0:
            raise ValueError("nnz must be nonnegative")
        if self.rowptr is None:
            self.rowptr = np.zeros(self.n_rows + 1, dtype=np.int64)
        self.nnz = nnz
        if nnz > 0:
            self.colidxs = np.zeros(nnz, dtype=np.int64)
            self.vals = np.zeros(nnz, dtype=self.dtype)


def csr_to_dense_strided(spmat: CSRMatrix, stride_row: int, stride_col: int) -> np.ndarray:
    """Return a dense buffer holding ``spmat`` with the given row and column strides."""
    if spmat.index_base is not IndexBase.Zero:
        raise ValueError("only zero-based indices are supported")
    m, n = spmat.n_rows, spmat.n_cols
    size = 0 if m == 0 or n == 0 else (m - 1) * stride_row + (n - 1) * stride_col + 1
    out = np.zeros(size, dtype=spmat.dtype)
    if spmat.nnz == 0 or m == 0:
        return out
    if spmat.rowptr is None or spmat.colidxs is None or spmat.vals is None:
        raise ValueError("matrix data is not allocated")
    rowptr, colidxs, vals = spmat.rowptr, spmat.colidxs, spmat.vals
    for i in range(m):
        lo, hi = int(rowptr[i]), int(rowptr[i + 1])
        out[i * stride_row + colidxs[lo:hi] * stride_col] = vals[lo:hi]
    return out


def csr_to_dense(spmat: CSRMatrix, layout: Layout) -> np.ndarray:
    """Return ``spmat`` as a packed dense buffer in ``layout`` order."""
    if layout is Layout.ColMajor:
        return csr_to_dense_strided(spmat, 1, spmat.n_rows)
    return csr_to_dense_strided(spmat, spmat.n_cols, 1)


def dense_to_csr_strided(
    stride_row: int, stride_col: int, mat: Sequence[float], n_rows: int, n_cols: int,
    abs_tol: float = 0.0,
) -> CSRMatrix:
    """Build a CSR matrix from entries of the strided dense ``mat`` whose magnitude exceeds ``abs_tol``."""
    buf = np.asarray(mat)
    dtype = _float_dtype(buf)
    offsets = (
        np.arange(n_rows, dtype=np.int64)[:, None] * stride_row
        + np.arange(n_cols, dtype=np.int64)[None, :] * stride_col
    )
    dense = buf[offsets].astype(dtype, copy=False)
    mask = np.abs(dense) > abs_tol
    spmat = CSRMatrix(n_rows, n_cols, dtype=dtype)
    spmat.reserve(int(mask.sum()))
    rows, cols = np.nonzero(mask)
    if spmat.nnz:
        spmat.vals[:] = dense[rows, cols]
        spmat.colidxs[:] = cols
    spmat.rowptr[1:] = np.cumsum(mask.sum(axis=1))
    return spmat


def dense_to_csr(
    layout: Layout, mat: Sequence[float], n_rows: int, n_cols: int, abs_tol: float = 0.0,
) -> CSRMatrix:
    """Build a CSR matrix from a packed dense buffer stored in ``layout`` order."""
    if layout is Layout.ColMajor:
        return dense_to_csr_strided(1, n_rows, mat, n_rows, n_cols, abs_tol)
    return dense_to_csr_strided(n_cols, 1, mat, n_rows, n_cols, abs_tol)