from __future__ import annotations

import logging
import math

import numpy as np

from ..exceptions import InvalidInputError
from ..typing import FloatArray

logger = logging.getLogger(__name__)


def cholesky(a, *, eps: float = 1e-14) -> FloatArray:
    """
    Lower-triangular ``L`` with ``L @ L.T ~= a`` for a symmetric matrix ``a``.

    Standard row-by-row recurrence. A diagonal pivot ``<= eps`` is floored to
    ``eps`` instead of failing, so empirically estimated, near-singular
    correlation matrices still factorize. The result then reconstructs ``a``
    only approximately; positive-definiteness is not enforced.

    Raises
    ------
    InvalidInputError
        If ``a`` is not a finite square matrix.
    """
    a = np.asarray(a, dtype=np.float64)
    if a.ndim != 2 or a.shape[0] != a.shape[1]:
        raise InvalidInputError(f"matrix must be square, got shape {a.shape}")
    if not np.all(np.isfinite(a)):
        raise InvalidInputError("matrix must be finite")

    n = a.shape[0]
    L = np.zeros((n, n), dtype=np.float64)
    for i in range(n):
        for j in range(i + 1):
            s = a[i, j] - float(np.dot(L[i, :j], L[j, :j]))
            if i == j:
                if s <= eps:
                    logger.warning(
                        "Cholesky pivot %d is %.3e <= %.1e; flooring", i, s, eps
                    )
                    s = eps
                L[i, j] = math.sqrt(s)
            else:
                L[i, j] = s / L[j, j]
    return L


def mul_lower_tri(L: FloatArray, v: FloatArray) -> FloatArray:
    """
    ``L @ v`` for lower-triangular ``L``.

    ``v`` may be a single vector of shape ``(n,)`` or a batch of row vectors of
    shape ``(m, n)``; the batch form returns ``v @ L.T``.
    """
    L = np.asarray(L, dtype=np.float64)
    v = np.asarray(v, dtype=np.float64)
    if v.shape[-1] != L.shape[0]:
        raise InvalidInputError(
            f"vector length {v.shape[-1]} does not match matrix size {L.shape[0]}"
        )
    return v @ np.tril(L).T
