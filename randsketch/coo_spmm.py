"""Coordinate-format sparse matrices and their multiplication with dense matrices.

Dense operands are flat numpy buffers described by a layout and a leading
dimension.  Output buffers are updated in place: ``C += alpha * A @ B``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from randsketch.csc_spmm import CSCMatrix, apply_csc_left_jki
from randsketch.csr_matrix import IndexBase
from randsketch.util import Layout

__all__ = [
    "COOMatrix",
    "set_filtered_coo",
    "apply_coo_left_jki",
]


@dataclass
class COOMatrix:
    """A sparse matrix as coordinate triplets ``(vals, rows, cols)``.

    The ``ell``-th structural nonzero, for ``ell < nnz``, equals ``vals[ell]``
    and sits at row ``rows[ell]`` and column ``cols[ell]``.
    """

    n_rows: int
    n_cols: int
    nnz: int = 0
    vals: np.ndarray | None = None
    rows: np.ndarray | None = None
    cols: np.ndarray | None = None
    index_base: IndexBase = IndexBase.Zero

    def __post_init__(self) -> None:
        if self.n_rows < 0 or self.n_cols < 0:
            raise ValueError("matrix dimensions must be nonnegative")
        if self.nnz < 0:
            raise ValueError("nnz must be nonnegative")
        if self.vals is not None:
            vals = np.asarray(self.vals)
            if not np.issubdtype(vals.dtype, np.floating):
                vals = vals.astype(np.float64)
            self.vals = vals
        if self.rows is not None:
            self.rows = np.asarray(self.rows, dtype=np.int64)
        if self.cols is not None:
            self.cols = np.asarray(self.cols, dtype=np.int64)
        if self.nnz > 0:
            for name in ("vals", "rows", "cols"):
                arr = getattr(self, name)
                if arr is None or arr.size < self.nnz:
                    raise ValueError(f"{name} must hold at least nnz entries")


def set_filtered_coo(
    vals: Sequence[float], rowidxs: Sequence[int], colidxs: Sequence[int],
    col_start: int, col_end: int, row_start: int, row_end: int,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Keep the triplets inside rows ``[row_start, row_end)`` and columns ``[col_start, col_end)``.

    Returns ``(vals, rows, cols)`` with indices shifted to the submatrix,
    in the order the triplets were given.
    """
    vals = np.asarray(vals)
    rows = np.asarray(rowidxs, dtype=np.int64)
    cols = np.asarray(colidxs, dtype=np.int64)
    keep = (row_start <= rows) & (rows < row_end) & (col_start <= cols) & (cols < col_end)
    return vals[keep].copy(), rows[keep] - row_start, cols[keep] - col_start


def apply_coo_left_jki(
    alpha: float, layout_b: Layout, layout_c: Layout, d: int, n: int, m: int,
    a: COOMatrix, ro_a: int, co_a: int, b: Sequence[float], ldb: int,
    c: np.ndarray, ldc: int,
) -> None:
    """Update ``C += alpha * submat(A) @ B``.

    ``submat(A)`` is the ``d``-by-``m`` block of ``a`` whose upper-left corner
    is at ``(ro_a, co_a)``; ``B`` is ``m``-by-``n`` and ``C`` is ``d``-by-``n``.
    ``a`` itself is left unchanged.
    """
    if a.index_base is not IndexBase.Zero:
        raise ValueError("only zero-based indices are supported")
    if ro_a < 0 or co_a < 0:
        raise ValueError("submatrix offsets must be nonnegative")
    if ro_a + d > a.n_rows or co_a + m > a.n_cols:
        raise ValueError("submatrix does not fit inside the sparse matrix")

    nnz = a.nnz
    if nnz == 0:
        empty = np.zeros(0)
        vals, rows, cols = empty, empty.astype(np.int64), empty.astype(np.int64)
    else:
        vals, rows, cols = set_filtered_coo(
            a.vals[:nnz], a.rows[:nnz], a.cols[:nnz],
            co_a, co_a + m, ro_a, ro_a + d,
        )
    vals = vals * alpha

    order = np.lexsort((rows, cols))
    vals, rows, cols = vals[order], rows[order], cols[order]
    colptr = np.zeros(m + 1, dtype=np.int64)
    colptr[1:] = np.cumsum(np.bincount(cols, minlength=m)[:m])

    csc = CSCMatrix(d, m, nnz=int(vals.size), vals=vals, rowidxs=rows, colptr=colptr)
    apply_csc_left_jki(1.0, layout_b, layout_c, d, n, m, csc, b, ldb, c, ldc)