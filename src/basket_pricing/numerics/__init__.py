"""
Numerical building blocks: factorization, sampling and the normal CDF used by
the basket pricers.
"""

from .distributions import norm_cdf, norm_pdf
from .linalg import cholesky, mul_lower_tri
from .random import correlated_normals, make_rng, standard_normals

__all__ = [
    # Linear algebra
    "cholesky",
    "mul_lower_tri",
    # Sampling
    "make_rng",
    "standard_normals",
    "correlated_normals",
    # Distributions
    "norm_cdf",
    "norm_pdf",
]
