"""Multiplication of compressed sparse column matrices with dense matrices.

Dense operands are flat numpy buffers described by a layout and a leading
dimension.  Output buffers are updated in place: ``C += alpha * A @ B``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from randsketch.csr_matrix import IndexBase
from randsketch.util import Layout, layout_to_strides

__all__ = [
    "CSCMatrix",
    "apply_csc_to_vector_from_left",
    "apply_regular_csc_to_vector_from_left",
    "apply_csc_left_jki",
    "apply_csc_left_kib_rowmajor",
]


@dataclass
class CSCMatrix:
    """A sparse matrix in CSC form: ``vals``, ``rowidxs`` and ``colptr``.

    Column ``j`` holds ``colptr[j+1] - colptr[j]`` structural nonzeros, in
    rows ``rowidxs[colptr[j]:colptr[j+1]]``.
    """

    n_rows: int
    n_cols: int
    nnz: int = 0
    vals: np.ndarray | None = None
    rowidxs: np.ndarray | None = None
    colptr: np.ndarray | None = None
    index_base: IndexBase = IndexBase.Zero

    def __post_init__(self) -> None:
        if self.n_rows < 0 or self.n_cols < 0:
            raise ValueError("matrix dimensions must be nonnegative")
        if self.vals is not None:
            vals = np.asarray(self.vals)
            if not np.issubdtype(vals.dtype, np.floating):
                vals = vals.astype(np.float64)
            self.vals = vals
        if self.rowidxs is not None:
            self.rowidxs = np.asarray(self.rowidxs, dtype=np.int64)
        if self.colptr is not None:
            self.colptr = np.asarray(self.colptr, dtype=np.int64)
            if self.colptr.size < self.n_cols + 1:
                raise ValueError("colptr must have at least n_cols + 1 entries")


def apply_csc_to_vector_from_left(
    vals: Sequence[float], rowidxs: Sequence[int], colptr: Sequence[int], len_v: int,
    v: Sequence[float], incv: int, av: np.ndarray, inc_av: int,
) -> None:
    """Accumulate ``A @ v`` into the strided vector ``av`` for a CSC matrix ``A``."""
    colptr = np.asarray(colptr, dtype=np.int64)
    if len_v == 0:
        return
    n_entries = int(colptr[len_v])
    entries = np.arange(n_entries, dtype=np.int64)
    cols = np.searchsorted(colptr[1:len_v + 1], entries, side="right")
    vals = np.asarray(vals)[:n_entries]
    rows = np.asarray(rowidxs, dtype=np.int64)[:n_entries]
    scales = np.asarray(v)[cols * incv]
    np.add.at(av, rows * inc_av, vals * scales)


def apply_regular_csc_to_vector_from_left(
    vals: Sequence[float], rowidxs: Sequence[int], col_nnz: int, len_v: int,
    v: Sequence[float], incv: int, av: np.ndarray, inc_av: int,
) -> None:
    """Accumulate ``A @ v`` into ``av`` for a CSC matrix with ``col_nnz`` nonzeros in every column."""
    n_entries = len_v * col_nnz
    if n_entries == 0:
        return
    cols = np.arange(n_entries, dtype=np.int64) // col_nnz
    vals = np.asarray(vals)[:n_entries]
    rows = np.asarray(rowidxs, dtype=np.int64)[:n_entries]
    scales = np.asarray(v)[cols * incv]
    np.add.at(av, rows * inc_av, vals * scales)


def _check_operand(a: CSCMatrix, d: int, m: int) -> None:
    if a.index_base is not IndexBase.Zero:
        raise ValueError("only zero-based indices are supported")
    if d != a.n_rows:
        raise ValueError("d must equal the number of rows of the sparse matrix")
    if m != a.n_cols:
        raise ValueError("m must equal the number of columns of the sparse matrix")


def apply_csc_left_jki(
    alpha: float, layout_b: Layout, layout_c: Layout, d: int, n: int, m: int,
    a: CSCMatrix, b: Sequence[float], ldb: int, c: np.ndarray, ldc: int,
) -> None:
    """Update ``C += alpha * A @ B`` one column of ``B`` at a time.

    ``A`` is ``d``-by-``m``, ``B`` is ``m``-by-``n`` and ``C`` is ``d``-by-``n``.
    """
    _check_operand(a, d, m)
    if m == 0 or n == 0 or a.nnz == 0:
        return
    vals = np.asarray(a.vals)
    if alpha != 1.0:
        vals = vals * alpha
    colptr = a.colptr
    col_nnz = int(colptr[1] - colptr[0])
    fixed_nnz_per_col = int(colptr[0]) == 0 and bool(np.all(np.diff(colptr[:m + 1]) == col_nnz))

    b_irs, b_ics = layout_to_strides(layout_b, ldb)
    c_irs, c_ics = layout_to_strides(layout_c, ldc)
    b = np.asarray(b)
    for j in range(n):
        b_col = b[b_ics * j:]
        c_col = c[c_ics * j:]
        if fixed_nnz_per_col:
            apply_regular_csc_to_vector_from_left(vals, a.rowidxs, col_nnz, m, b_col, b_irs, c_col, c_irs)
        else:
            apply_csc_to_vector_from_left(vals, a.rowidxs, colptr, m, b_col, b_irs, c_col, c_irs)


def apply_csc_left_kib_rowmajor(
    alpha: float, d: int, n: int, m: int, a: CSCMatrix, b: Sequence[float], ldb: int,
    c: np.ndarray, ldc: int, num_blocks: int = 1,
) -> None:
    """Update row-major ``C += alpha * A @ B`` by rank-1 updates over row blocks of ``C``.

    The rows of ``C`` are split into ``num_blocks`` contiguous blocks, each
    processed independently.
    """
    _check_operand(a, d, m)
    if num_blocks < 1:
        raise ValueError("num_blocks must be positive")
    block_size = max(d // num_blocks, 1)
    bounds = [t * block_size for t in range(num_blocks + 1)]
    bounds[-1] += d % num_blocks
    if m == 0 or n == 0 or a.nnz == 0:
        return
    b = np.asarray(b)
    colptr, rowidxs, vals = a.colptr, a.rowidxs, a.vals
    for lower, upper in zip(bounds, bounds[1:]):
        for k in range(m):
            row_b = b[k * ldb: k * ldb + n]
            for ell in range(int(colptr[k]), int(colptr[k + 1])):
                i = int(rowidxs[ell])
                if lower <= i < upper:
                    c[i * ldc: i * ldc + n] += (alpha * vals[ell]) * row_b