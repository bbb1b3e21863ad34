"""Dense-matrix helpers and index sampling on strided buffers.

Matrices live in flat numpy buffers.  Entry ``(i, j)`` sits at
``i * irs + j * ics``, where ``irs`` is the inter-row stride and ``ics`` is
the inter-column stride.  Functions that write into a buffer require a
numpy array and modify it in place.
"""

from __future__ import annotations

import enum
import math
import sys
from typing import Sequence, TextIO

import numpy as np

from randsketch.random_gen import RNGState, generate_uneg11, incr_counter

__all__ = [
    "Layout",
    "Uplo",
    "ArrayStyle",
    "layout_to_strides",
    "safe_scal",
    "omatcopy",
    "flip_layout",
    "require_symmetric",
    "format_strided",
    "print_buff_to_stream",
    "print_colmaj",
    "symmetrize",
    "overwrite_triangle",
    "transpose_square",
    "sqrt_epsilon",
    "weights_to_cdf",
    "sample_indices_iid",
    "sample_indices_iid_uniform",
]


class Layout(enum.Enum):
    """Storage order of a dense matrix."""

    ColMajor = "C"
    RowMajor = "R"


class Uplo(enum.Enum):
    """Which triangle of a square matrix is meant."""

    Upper = "U"
    Lower = "L"
    General = "G"


class ArrayStyle(enum.Enum):
    """Text style for printed matrices: MATLAB or numpy syntax."""

    MATLAB = "M"
    Python = "P"


def layout_to_strides(layout: Layout, ld: int) -> tuple[int, int]:
    """Return ``(inter_row_stride, inter_col_stride)`` for a layout and leading dimension."""
    if layout is Layout.ColMajor:
        return 1, ld
    if layout is Layout.RowMajor:
        return ld, 1
    raise ValueError(f"unknown layout {layout!r}")


def _grid(m: int, n: int, irs: int, ics: int) -> np.ndarray:
    """Buffer offsets of an ``m``-by-``n`` strided matrix, as an ``(m, n)`` index array."""
    return np.arange(m, dtype=np.int64)[:, None] * irs + np.arange(n, dtype=np.int64)[None, :] * ics


def safe_scal(n: int, a: float, x: np.ndarray, inc_x: int) -> None:
    """Scale ``n`` strided entries of ``x`` by ``a``; with ``a == 0`` they become exactly zero."""
    idx = np.arange(n, dtype=np.int64) * inc_x
    if a == 0.0:
        x[idx] = 0.0
    else:
        x[idx] = x[idx] * a


def omatcopy(
    m: int, n: int, a: Sequence[float], irs_a: int, ics_a: int,
    b: np.ndarray, irs_b: int, ics_b: int,
) -> None:
    """Copy the ``m``-by-``n`` strided matrix in ``a`` into the strided matrix in ``b``."""
    src = np.asarray(a)
    b[_grid(m, n, irs_b, ics_b)] = src[_grid(m, n, irs_a, ics_a)]


def flip_layout(
    layout_in: Layout, m: int, n: int, a: Sequence[float], lda_in: int, lda_out: int,
) -> np.ndarray:
    """Return the buffer of the ``m``-by-``n`` matrix ``a`` stored in the opposite layout."""
    if layout_in is Layout.ColMajor:
        layout_out = Layout.RowMajor
        if lda_in < m:
            raise ValueError("lda_in must be at least the number of rows")
        if lda_out < n:
            raise ValueError("lda_out must be at least the number of columns")
        len_out = lda_out * m
    else:
        layout_out = Layout.ColMajor
        if lda_in < n:
            raise ValueError("lda_in must be at least the number of columns")
        if lda_out < m:
            raise ValueError("lda_out must be at least the number of rows")
        len_out = lda_out * n
    irs_in, ics_in = layout_to_strides(layout_in, lda_in)
    irs_out, ics_out = layout_to_strides(layout_out, lda_out)

    src = np.array(a, copy=True)
    if len_out >= src.size:
        src = np.concatenate([src, np.zeros(len_out - src.size, dtype=src.dtype)])
    out = src.copy()
    omatcopy(m, n, src, irs_in, ics_in, out, irs_out, ics_out)
    return out[:len_out]


def require_symmetric(layout: Layout, a: Sequence[float], n: int, lda: int, tol: float) -> None:
    """Raise ValueError unless the order-``n`` matrix is symmetric to relative tolerance ``tol``.

    A negative ``tol`` skips the check.
    """
    if tol < 0:
        return
    buf = np.asarray(a)
    irs, ics = layout_to_strides(layout, lda)
    mat = buf[_grid(n, n, irs, ics)]
    viol = np.abs(mat - mat.T)
    rel_tol = (np.abs(mat) + np.abs(mat.T) + 1) * tol
    bad = np.triu(viol > rel_tol, 1)
    hits = np.argwhere(bad)
    if hits.size:
        i, j = (int(v) for v in hits[0])
        raise ValueError(
            f"Symmetry check failed. |A({i},{j}) - A({j},{i})| was {viol[i, j]:e}, "
            f"which exceeds tolerance of {rel_tol[i, j]:e}."
        )


def _format_value(value: object, decimals: int) -> str:
    if isinstance(value, (int, np.integer)) and not isinstance(value, bool):
        return str(int(value))
    return format(float(value), f".{decimals}g")


def format_strided(
    n_rows: int, n_cols: int, a: Sequence[float], irs: int, ics: int, label: object,
    decimals: int = 8, style: ArrayStyle = ArrayStyle.MATLAB,
) -> str:
    """Return a MATLAB- or numpy-style text representation of a strided matrix."""
    if style is ArrayStyle.MATLAB:
        abs_start, mid_start, mid_end, abs_end = " = [ ... \n", "\t", " ; ...\n", " ; ...\n];\n"
    else:
        abs_start, mid_start, mid_end, abs_end = " = np.array([\n", "\t[", " ],\n", " ]\n])\n"
    buf = np.asarray(a)
    parts = ["\n", str(label), abs_start]
    for i in range(n_rows):
        parts.append(mid_start)
        row = [_format_value(buf[i * irs + j * ics], decimals) for j in range(n_cols)]
        parts.append(",".join(f"  {v}" for v in row))
        parts.append(mid_end if i < n_rows - 1 else abs_end)
    parts.append("\n")
    return "".join(parts)


def print_buff_to_stream(
    stream: TextIO, layout: Layout, n_rows: int, n_cols: int, a: Sequence[float], lda: int,
    label: object, decimals: int = 8, style: ArrayStyle = ArrayStyle.MATLAB,
) -> None:
    """Write a text representation of a matrix stored in ``layout`` order to ``stream``."""
    if layout is Layout.ColMajor:
        if lda < n_rows:
            raise ValueError("lda must be at least the number of rows")
        irs, ics = 1, lda
    else:
        if lda < n_cols:
            raise ValueError("lda must be at least the number of columns")
        irs, ics = lda, 1
    stream.write(format_strided(n_rows, n_cols, a, irs, ics, label, decimals, style))


def print_colmaj(
    n_rows: int, n_cols: int, a: Sequence[float], label: object,
    decimals: int = 8, style: ArrayStyle = ArrayStyle.MATLAB,
) -> None:
    """Print a packed column-major matrix to standard output."""
    print_buff_to_stream(sys.stdout, Layout.ColMajor, n_rows, n_cols, a, n_rows, label, decimals, style)


def symmetrize(layout: Layout, uplo: Uplo, n: int, a: np.ndarray, lda: int) -> None:
    """Copy the strict ``uplo`` triangle of the matrix into the opposite triangle."""
    irs, ics = layout_to_strides(layout, lda)
    idx = _grid(n, n, irs, ics)
    rows, cols = np.triu_indices(n, 1)
    upper = idx[rows, cols]
    lower = idx[cols, rows]
    if uplo is Uplo.Upper:
        a[lower] = a[upper]
    elif uplo is Uplo.Lower:
        a[upper] = a[lower]


def overwrite_triangle(layout: Layout, to_overwrite: Uplo, n: int, k: int, a: np.ndarray, lda: int) -> None:
    """Zero entries on or beyond the ``k``-th super- (Upper) or sub-diagonal (Lower)."""
    if k < 0:
        raise ValueError("k must be nonnegative")
    if to_overwrite not in (Uplo.Upper, Uplo.Lower):
        raise ValueError("Invalid argument for UPLO.")
    irs, ics = layout_to_strides(layout, lda)
    idx = _grid(n, n, irs, ics)
    rows, cols = np.triu_indices(n, k)
    if to_overwrite is Uplo.Upper:
        a[idx[rows, cols]] = 0.0
    else:
        a[idx[cols, rows]] = 0.0


def transpose_square(a: np.ndarray, n: int, lda: int) -> None:
    """Transpose the order-``n`` matrix in place; the result is layout independent."""
    idx = _grid(n, n, 1, lda)
    rows, cols = np.triu_indices(n, 1)
    first = idx[rows, cols]
    second = idx[cols, rows]
    a[first], a[second] = a[second].copy(), a[first].copy()


def sqrt_epsilon(dtype: type = np.float64) -> float:
    """Square root of the machine epsilon of ``dtype``."""
    return float(np.sqrt(np.finfo(dtype).eps))


def weights_to_cdf(w: Sequence[float], error_if_below: float | None = None) -> np.ndarray:
    """Turn nonnegative weights into a normalised cumulative distribution.

    Weights below ``error_if_below`` (default ``-sqrt_epsilon``) raise
    ValueError; small negative weights count as zero.
    """
    arr = np.asarray(w)
    dtype = arr.dtype if np.issubdtype(arr.dtype, np.floating) else np.dtype(np.float64)
    arr = arr.astype(dtype)
    if error_if_below is None:
        error_if_below = -sqrt_epsilon(dtype)
    if arr.size and np.any(arr < error_if_below):
        raise ValueError("weight below the permitted lower bound")
    cdf = np.cumsum(np.maximum(arr, dtype.type(0)), dtype=dtype)
    total = cdf[-1] if cdf.size else dtype.type(0)
    if not total >= dtype.type(math.sqrt(arr.size)) * np.finfo(dtype).eps:
        raise ValueError("weights sum to a value too close to zero")
    return (cdf * (dtype.type(1) / total)).astype(dtype)


def _uneg11_values(state: RNGState, count: int, per_block: int) -> tuple[np.ndarray, RNGState]:
    """Draw ``count`` values, using ``per_block`` of each counter block, and the next state."""
    gen = state.generator
    counter, key = state
    n_blocks = -(-count // per_block)
    values: list[float] = []
    for _ in range(n_blocks):
        values.extend(generate_uneg11(gen, counter, key)[:per_block])
        counter = incr_counter(counter, 1, gen.width)
    return np.asarray(values[:count], dtype=np.float64), RNGState(key=key, counter=counter, generator=gen)


def sample_indices_iid(cdf: Sequence[float], k: int, state: RNGState) -> tuple[np.ndarray, RNGState]:
    """Draw ``k`` independent indices from the distribution whose CDF is ``cdf``.

    Returns the samples and the state for the next independent draw.
    """
    arr = np.asarray(cdf)
    dtype = arr.dtype if np.issubdtype(arr.dtype, np.floating) else np.dtype(np.float64)
    arr = arr.astype(dtype)
    raw, new_state = _uneg11_values(state, k, state.len_c)
    one, two = dtype.type(1), dtype.type(2)
    unif = (raw.astype(dtype) + one) / two
    samples = np.searchsorted(arr, unif, side="left").astype(np.int64)
    return samples, new_state


def sample_indices_iid_uniform(
    n: int, k: int, state: RNGState, with_rademachers: bool = False,
) -> tuple[np.ndarray, RNGState] | tuple[np.ndarray, np.ndarray, RNGState]:
    """Draw ``k`` indices uniformly from ``range(n)``.

    Returns ``(samples, state)``, or ``(samples, signs, state)`` when
    ``with_rademachers`` is set, where ``signs`` holds independent +1/-1 values.
    """
    len_c = state.len_c
    if with_rademachers:
        per_block = 2 * (len_c // 2)
        raw, new_state = _uneg11_values(state, 2 * k, per_block)
        picks, signs = raw[0::2], raw[1::2]
    else:
        raw, new_state = _uneg11_values(state, k, len_c)
        picks, signs = raw, None
    unif = (picks + 1.0) / 2.0
    samples = (float(n) * unif).astype(np.int64)
    if with_rademachers:
        rademachers = np.where(signs >= 0, 1.0, -1.0)
        return samples, rademachers, new_state
    return samples, new_state