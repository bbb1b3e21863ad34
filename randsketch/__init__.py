"""Philox random numbers, dense matrix utilities and CSR, CSC and COO sparse kernels."""

__version__ = "0.1.0"
__all__ = ["random_gen", "util", "csr_matrix", "csc_spmm", "coo_spmm"]