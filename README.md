# randsketch

Building blocks for randomized linear algebra in Python, on top of NumPy.

## What is in the package

- **`randsketch.random_gen`**: counter-based random numbers.
  - `Philox4x32`: a Philox generator (10 rounds by default) that maps a four-word
    counter and a two-word key to four 32-bit output words.
  - `RNGState`: a frozen pair of counter and key. An integer key `k` becomes `(k, 0)`;
    the counter starts at zero. `state.advanced(step)` returns a state whose counter
    is `step` further on.
  - `incr_counter`: adds to a little-endian multi-word counter, wrapping around.
  - `uneg11` maps a word into [-1, 1], `u01` into (0, 1]; `boxmuller` and `boxmulall`
    turn pairs of words into standard normal values.
  - `generate_uneg11` and `generate_boxmul` produce one block of values from a
    generator, counter and key.
- **`randsketch.util`**: helpers for dense matrices held in flat NumPy buffers, where
  entry `(i, j)` sits at `i * irs + j * ics`.
  - Enums `Layout` (`ColMajor`, `RowMajor`), `Uplo` (`Upper`, `Lower`, `General`) and
    `ArrayStyle` (`MATLAB`, `Python`).
  - `layout_to_strides`, `safe_scal`, `omatcopy`, `flip_layout` (returns a new buffer in
    the other layout).
  - `require_symmetric` raises `ValueError` naming the first offending pair of entries;
    a negative tolerance skips the check.
  - `symmetrize`, `overwrite_triangle`, `transpose_square` work in place.
  - `format_strided` returns a MATLAB- or NumPy-style literal of a matrix;
    `print_buff_to_stream` writes it to a stream and `print_colmaj` to standard output.
  - `sqrt_epsilon`, `weights_to_cdf`, `sample_indices_iid` and
    `sample_indices_iid_uniform` (optionally with +1/-1 Rademacher signs). The sampling
    functions return the samples together with the state to use for the next
    independent draw.
- **`randsketch.csr_matrix`**: `IndexBase`, `CSRMatrix` (with `reserve`), and
  `csr_to_dense`, `csr_to_dense_strided`, `dense_to_csr`, `dense_to_csr_strided`.
- **`randsketch.csc_spmm`**: `CSCMatrix` and kernels that accumulate
  `C += alpha * A @ B` for a CSC matrix `A`: `apply_csc_left_jki`,
  `apply_csc_left_kib_rowmajor`, and the vector kernels
  `apply_csc_to_vector_from_left` and `apply_regular_csc_to_vector_from_left`.
- **`randsketch.coo_spmm`**: `COOMatrix`, `set_filtered_coo` (keeps the triplets inside a
  row and column range) and `apply_coo_left_jki`, which multiplies a submatrix of a COO
  matrix into a dense matrix without changing the COO matrix.

## Installation

```
pip install .
```

## Examples

Reproducible random numbers:

```python
from randsketch.random_gen import Philox4x32, RNGState, generate_uneg11

state = RNGState(42)          # key = (42, 0), counter = (0, 0, 0, 0)
values = generate_uneg11(Philox4x32(), state.counter, state.key)   # four values in [-1, 1]
next_state = state.advanced(1)
```

Sampling indices from weights:

```python
import numpy as np
from randsketch.random_gen import RNGState
from randsketch.util import weights_to_cdf, sample_indices_iid, sample_indices_iid_uniform

cdf = weights_to_cdf(np.array([1.0, 2.0, 7.0]))
samples, state = sample_indices_iid(cdf, 10, RNGState(0))
picks, signs, state = sample_indices_iid_uniform(5, 4, state, with_rademachers=True)
```

Dense and CSR storage:

```python
import numpy as np
from randsketch.util import Layout
from randsketch.csr_matrix import dense_to_csr, csr_to_dense

dense = np.array([1.0, 0.0, 0.0, 2.0])            # 2x2, row-major
spmat = dense_to_csr(Layout.RowMajor, dense, 2, 2, 0.0)
back = csr_to_dense(spmat, Layout.RowMajor)
```

Multiplying a sparse matrix into a dense one:

```python
import numpy as np
from randsketch.util import Layout
from randsketch.csc_spmm import CSCMatrix, apply_csc_left_jki

a = CSCMatrix(2, 2, nnz=2, vals=[1.0, 2.0], rowidxs=[0, 1], colptr=[0, 1, 2])
b = np.array([1.0, 0.0, 0.0, 1.0])                # 2x2 identity, column-major
c = np.zeros(4)
apply_csc_left_jki(1.0, Layout.ColMajor, Layout.ColMajor, 2, 2, 2, a, b, 2, c, 2)
```

Printing a matrix:

```python
import sys
from randsketch.util import Layout, ArrayStyle, print_buff_to_stream

print_buff_to_stream(sys.stdout, Layout.ColMajor, 2, 2, [1.0, 2.0, 2.0, 3.0], 2, "A",
                     style=ArrayStyle.Python)
```

## What the package does not do

It provides the random number generation, dense helpers and sparse kernels only.
It has no sketching operators (dense or sparse) and no functions that apply such
operators to a matrix, no right-multiplication kernels for sparse matrices, no
conversions between COO and CSC storage, and no command-line program.

## Running the tests

```
pip install .[test]
pytest
```