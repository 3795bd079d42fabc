from __future__ import annotations

import math

_INV_SQRT_2PI = 1.0 / math.sqrt(2.0 * math.pi)

# Abramowitz & Stegun 26.2.17
_P = 0.2316419
_B1 = 0.319381530
_B2 = -0.356563782
_B3 = 1.781477937
_B4 = -1.821255978
_B5 = 1.330274429


def norm_pdf(x: float) -> float:
    return _INV_SQRT_2PI * math.exp(-0.5 * x * x)


def norm_cdf(x: float) -> float:
    """
    Standard normal CDF, rational approximation (absolute error < 7.5e-8).

    Deterministic and dependency-free, used by the closed-form basket pricers.
    """
    x = float(x)
    t = 1.0 / (1.0 + _P * abs(x))
    poly = t * (_B1 + t * (_B2 + t * (_B3 + t * (_B4 + t * _B5))))
    tail = norm_pdf(x) * poly
    return 1.0 - tail if x >= 0.0 else tail
