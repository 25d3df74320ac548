"""Linear-algebra primitives used by the finite-difference and simulation code."""

from __future__ import annotations

import numpy as np

from .exceptions import CalculationError, InvalidParameterError

__all__ = ["PIVOT_TOLERANCE", "solve_tridiagonal", "cholesky_decomposition"]

PIVOT_TOLERANCE = 1e-12


def solve_tridiagonal(
    lower: np.ndarray,
    diag: np.ndarray,
    upper: np.ndarray,
    rhs: np.ndarray,
) -> np.ndarray:
    """Solve a tridiagonal system Ax = rhs via the Thomas algorithm.

    A has:
      - lower: subdiagonal (length n-1)  -> A[i, i-1]
      - diag:  main diagonal (length n)  -> A[i, i]
      - upper: superdiagonal (length n-1)-> A[i, i+1]

    Raises CalculationError if a pivot falls below ``PIVOT_TOLERANCE`` in
    magnitude, so a singular system never yields NaN.
    """
    lower = np.asarray(lower, dtype=float)
    diag = np.asarray(diag, dtype=float)
    upper = np.asarray(upper, dtype=float)
    rhs = np.asarray(rhs, dtype=float)

    n = diag.size
    if n == 0:
        raise InvalidParameterError("diag must not be empty")
    if rhs.size != n:
        raise InvalidParameterError("rhs length must match diag length")
    if lower.size != n - 1 or upper.size != n - 1:
        raise InvalidParameterError("lower/upper must have length n-1")

    # Copy to avoid mutating inputs
    c = upper.copy()
    d = diag.copy()
    y = rhs.copy()

    # Forward elimination
    if abs(d[0]) < PIVOT_TOLERANCE:
        raise CalculationError("Singular tridiagonal system: zero pivot at row 0")
    for i in range(1, n):
        w = lower[i - 1] / d[i - 1]
        d[i] -= w * c[i - 1]
        y[i] -= w * y[i - 1]
        if abs(d[i]) < PIVOT_TOLERANCE:
            raise CalculationError(f"Singular tridiagonal system: zero pivot at row {i}")

    # Back substitution
    x = np.empty(n, dtype=float)
    x[-1] = y[-1] / d[-1]
    for i in range(n - 2, -1, -1):
        x[i] = (y[i] - c[i] * x[i + 1]) / d[i]
    return x


def cholesky_decomposition(matrix: np.ndarray) -> np.ndarray:
    """Lower-triangular L with L @ L.T == matrix.

    Raises CalculationError if the matrix is not symmetric positive definite.
    """
    a = np.asarray(matrix, dtype=float)
    if a.ndim != 2 or a.shape[0] != a.shape[1]:
        raise InvalidParameterError(f"matrix must be square, got shape {a.shape}")
    if not np.allclose(a, a.T):
        raise CalculationError("Cholesky decomposition requires a symmetric matrix")
    try:
        return np.linalg.cholesky(a)
    except np.linalg.LinAlgError as exc:
        raise CalculationError("Matrix is not positive definite") from exc
