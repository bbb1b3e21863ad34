import numpy as np
import pytest

from randsketch.csc_spmm import (
    CSCMatrix,
    apply_csc_left_jki,
    apply_csc_left_kib_rowmajor,
    apply_csc_to_vector_from_left,
    apply_regular_csc_to_vector_from_left,
)
from randsketch.csr_matrix import IndexBase
from randsketch.util import Layout


def _random_sparse(m, n, density, seed):
    rng = np.random.default_rng(seed)
    dense = rng.standard_normal((m, n))
    dense[rng.random((m, n)) >= density] = 0.0
    return dense


def _to_csc(dense):
    m, n = dense.shape
    cols, rows = np.nonzero(dense.T)
    colptr = np.concatenate([[0], np.cumsum(np.bincount(cols, minlength=n))])
    return CSCMatrix(m, n, nnz=rows.size, vals=dense[rows, cols], rowidxs=rows, colptr=colptr)


def _to_buffer(mat, layout, ld):
    m, n = mat.shape
    if layout is Layout.ColMajor:
        buf = np.zeros(ld * n)
        for j in range(n):
            buf[j * ld: j * ld + m] = mat[:, j]
    else:
        buf = np.zeros(ld * m)
        for i in range(m):
            buf[i * ld: i * ld + n] = mat[i, :]
    return buf


def _from_buffer(buf, layout, m, n, ld):
    if layout is Layout.ColMajor:
        return np.column_stack([buf[j * ld: j * ld + m] for j in range(n)])
    return np.vstack([buf[i * ld: i * ld + n] for i in range(m)])


def test_vector_product_matches_dense():
    dense = _random_sparse(6, 5, 0.5, 1)
    a = _to_csc(dense)
    v = np.arange(1.0, 11.0)
    av = np.zeros(12)
    apply_csc_to_vector_from_left(a.vals, a.rowidxs, a.colptr, 5, v, 2, av, 2)
    np.testing.assert_allclose(av[0::2], dense @ v[0::2])
    np.testing.assert_array_equal(av[1::2], np.zeros(6))


def test_regular_vector_product_matches_dense():
    dense = np.zeros((5, 4))
    rng = np.random.default_rng(2)
    for j in range(4):
        rows = rng.choice(5, size=2, replace=False)
        dense[rows, j] = rng.standard_normal(2)
    a = _to_csc(dense)
    v = rng.standard_normal(4)
    av = np.ones(5)
    apply_regular_csc_to_vector_from_left(a.vals, a.rowidxs, 2, 4, v, 1, av, 1)
    np.testing.assert_allclose(av, 1.0 + dense @ v)


@pytest.mark.parametrize("layout_b", [Layout.ColMajor, Layout.RowMajor])
@pytest.mark.parametrize("layout_c", [Layout.ColMajor, Layout.RowMajor])
@pytest.mark.parametrize("alpha", [1.0, 5.5])
def test_left_jki_matches_dense(layout_b, layout_c, alpha):
    d, m, n = 7, 9, 4
    dense = _random_sparse(d, m, 0.3, 4)
    a = _to_csc(dense)
    rng = np.random.default_rng(5)
    b = rng.standard_normal((m, n))
    c0 = rng.standard_normal((d, n))
    ldb = (m if layout_b is Layout.ColMajor else n) + 2
    ldc = (d if layout_c is Layout.ColMajor else n) + 1
    bbuf = _to_buffer(b, layout_b, ldb)
    cbuf = _to_buffer(c0, layout_c, ldc)
    apply_csc_left_jki(alpha, layout_b, layout_c, d, n, m, a, bbuf, ldb, cbuf, ldc)
    np.testing.assert_allclose(_from_buffer(cbuf, layout_c, d, n, ldc), c0 + alpha * dense @ b)


def test_left_jki_regular_matrix():
    d, m, n = 6, 5, 3
    rng = np.random.default_rng(6)
    dense = np.zeros((d, m))
    for j in range(m):
        dense[rng.choice(d, size=3, replace=False), j] = rng.standard_normal(3)
    a = _to_csc(dense)
    b = rng.standard_normal((m, n))
    c = np.zeros(d * n)
    apply_csc_left_jki(2.0, Layout.ColMajor, Layout.ColMajor, d, n, m, a, b.flatten(order="F"), m, c, d)
    np.testing.assert_allclose(c.reshape(n, d).T, 2.0 * dense @ b)


def test_left_jki_does_not_modify_matrix_values():
    dense = _random_sparse(4, 4, 0.6, 7)
    a = _to_csc(dense)
    before = a.vals.copy()
    c = np.zeros(16)
    apply_csc_left_jki(3.0, Layout.RowMajor, Layout.RowMajor, 4, 4, 4, a, np.eye(4).ravel(), 4, c, 4)
    np.testing.assert_array_equal(a.vals, before)
    np.testing.assert_allclose(c.reshape(4, 4), 3.0 * dense)


@pytest.mark.parametrize("num_blocks", [1, 2, 3, 20])
def test_left_kib_rowmajor_matches_dense(num_blocks):
    d, m, n = 11, 8, 5
    dense = _random_sparse(d, m, 0.4, 9)
    a = _to_csc(dense)
    rng = np.random.default_rng(10)
    b = rng.standard_normal((m, n))
    c0 = rng.standard_normal((d, n))
    ldb, ldc = n + 1, n + 3
    bbuf = _to_buffer(b, Layout.RowMajor, ldb)
    cbuf = _to_buffer(c0, Layout.RowMajor, ldc)
    apply_csc_left_kib_rowmajor(-1.5, d, n, m, a, bbuf, ldb, cbuf, ldc, num_blocks)
    np.testing.assert_allclose(_from_buffer(cbuf, Layout.RowMajor, d, n, ldc), c0 - 1.5 * dense @ b)


def test_one_based_matrix_rejected():
    a = CSCMatrix(2, 2, nnz=1, vals=[1.0], rowidxs=[1], colptr=[0, 1, 1], index_base=IndexBase.One)
    with pytest.raises(ValueError):
        apply_csc_left_jki(1.0, Layout.ColMajor, Layout.ColMajor, 2, 1, 2, a, np.ones(2), 2, np.zeros(2), 2)


def test_dimension_mismatch_rejected():
    a = _to_csc(np.eye(3))
    with pytest.raises(ValueError):
        apply_csc_left_kib_rowmajor(1.0, 4, 1, 3, a, np.ones(3), 1, np.zeros(4), 1)
    with pytest.raises(ValueError):
        apply_csc_left_jki(1.0, Layout.ColMajor, Layout.ColMajor, 3, 1, 2, a, np.ones(2), 2, np.zeros(3), 3)


def test_nonpositive_block_count_rejected():
    a = _to_csc(np.eye(2))
    with pytest.raises(ValueError):
        apply_csc_left_kib_rowmajor(1.0, 2, 2, 2, a, np.eye(2).ravel(), 2, np.zeros(4), 2, 0)


def test_short_colptr_rejected():
    with pytest.raises(ValueError):
        CSCMatrix(2, 3, nnz=1, vals=[1.0], rowidxs=[0], colptr=[0, 1])