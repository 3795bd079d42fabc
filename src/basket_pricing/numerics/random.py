from __future__ import annotations

import numpy as np

from ..config import RandomConfig
from ..typing import FloatArray
from .linalg import mul_lower_tri


def make_rng(cfg: RandomConfig | int | None = None) -> np.random.Generator:
    """Seeded generator for the configured bit generator."""
    if cfg is None:
        cfg = RandomConfig()
    elif not isinstance(cfg, RandomConfig):
        cfg = RandomConfig(seed=int(cfg))

    if cfg.rng_type == "pcg64":
        return np.random.Generator(np.random.PCG64(cfg.seed))
    if cfg.rng_type == "mt19937":
        return np.random.Generator(np.random.MT19937(cfg.seed))
    raise ValueError(f"Unsupported rng_type: {cfg.rng_type!r}")


def standard_normals(
    rng: np.random.Generator, size: int | tuple[int, ...]
) -> FloatArray:
    """
    Standard normals via Box-Muller, one normal per pair of uniforms.

    Uniforms are consumed in pairs ``(u1, u2)`` in C order of ``size``; the
    second variate of each pair is discarded. Because the uniform stream is
    consumed sequentially, drawing ``(m, n)`` normals in one call or in
    several row blocks yields the same numbers.
    """
    shape = (size,) if isinstance(size, int) else tuple(size)
    u = rng.random(shape + (2,))
    # 1 - U lies in (0, 1], avoiding log(0)
    u1 = 1.0 - u[..., 0]
    u2 = 1.0 - u[..., 1]
    return np.sqrt(-2.0 * np.log(u1)) * np.cos(2.0 * np.pi * u2)


def correlated_normals(
    rng: np.random.Generator, L: FloatArray, n_samples: int
) -> FloatArray:
    """Rows ``L @ eps`` with ``eps`` iid standard normal; covariance ``L L^T``."""
    eps = standard_normals(rng, (int(n_samples), L.shape[0]))
    return mul_lower_tri(L, eps)
