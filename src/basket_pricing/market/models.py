from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import Protocol, runtime_checkable

import numpy as np

from ..config import IntegrationConfig
from ..exceptions import DimensionMismatchError, InvalidInputError, MissingVolCurveError
from ..types import Basket
from ..typing import FloatArray
from .curves import DiscountCurve, FlatDiscountCurve, VolCurve

logger = logging.getLogger(__name__)


@runtime_checkable
class MarketModel(Protocol):
    """Joint-lognormal description of the basket's terminal prices.

    Any model exposing these operations can be priced: the pricers only ever
    ask for a discount factor and the first two log-moments at maturity.
    """

    @property
    def basket(self) -> Basket: ...

    @property
    def dim(self) -> int: ...

    def discount_factor(self, T: float) -> float: ...

    def log_mean(self, i: int, T: float) -> float: ...

    def log_var(self, i: int, T: float) -> float: ...

    def log_cov(self, i: int, j: int, T: float) -> float: ...


def _as_corr(corr, dim: int) -> FloatArray:
    arr = np.array(corr, dtype=np.float64)
    if arr.shape != (dim, dim):
        raise DimensionMismatchError(
            f"correlation matrix has shape {arr.shape}, expected ({dim}, {dim})"
        )
    if not np.all(np.isfinite(arr)):
        raise InvalidInputError("correlation matrix must be finite")
    arr.setflags(write=False)
    return arr


def _check_index(i: int, dim: int) -> int:
    if not 0 <= i < dim:
        raise IndexError(f"asset index {i} out of range for dimension {dim}")
    return i


class ConstantParameterModel:
    """
    Flat rate ``r``, constant per-asset vol ``sigma_i = asset.vol_const`` and
    constant correlation ``rho``:

        E[ln S_i(T)]   = ln S_i + (r - q_i - sigma_i^2 / 2) T
        Var[ln S_i(T)] = sigma_i^2 T
        Cov[.,.]       = rho_ij sigma_i sigma_j T
    """

    __slots__ = ("_basket", "_rate", "_corr", "_discount")

    def __init__(self, basket: Basket, rate: float, corr) -> None:
        self._basket = basket
        self._rate = float(rate)
        self._corr = _as_corr(corr, basket.dim)
        self._discount: DiscountCurve = FlatDiscountCurve(self._rate)
        logger.debug("ConstantParameterModel built: dim=%d r=%g", basket.dim, rate)

    @property
    def basket(self) -> Basket:
        return self._basket

    @property
    def dim(self) -> int:
        return self._basket.dim

    @property
    def rate(self) -> float:
        return self._rate

    @property
    def corr(self) -> FloatArray:
        return self._corr

    def discount_factor(self, T: float) -> float:
        return self._discount.df(T)

    def log_mean(self, i: int, T: float) -> float:
        a = self._basket.assets[_check_index(i, self.dim)]
        mu = (self._rate - a.dividend_yield - 0.5 * a.vol_const * a.vol_const) * T
        return math.log(a.spot) + mu

    def log_var(self, i: int, T: float) -> float:
        a = self._basket.assets[_check_index(i, self.dim)]
        return a.vol_const * a.vol_const * T

    def log_cov(self, i: int, j: int, T: float) -> float:
        ai = self._basket.assets[_check_index(i, self.dim)]
        aj = self._basket.assets[_check_index(j, self.dim)]
        return float(self._corr[i, j]) * ai.vol_const * aj.vol_const * T


class TermStructureModel:
    """
    Discount curve ``R`` (a ``RateCurve`` or any ``DiscountCurve``), per-asset
    deterministic vol curves ``sigma_i(t)`` and constant instantaneous
    correlation ``rho``:

        E[ln S_i(T)]   = ln S_i + int_0^T r - q_i T - 0.5 int_0^T sigma_i^2
        Var[ln S_i(T)] = int_0^T sigma_i^2
        Cov[.,.]       = rho_ij int_0^T sigma_i sigma_j

    Vol curves are looked up by ticker. Integrals use the trapezoid rule with
    ``integration.steps`` intervals, so each covariance entry costs
    ``O(steps)``.
    """

    __slots__ = ("_basket", "_rate_curve", "_vol_curves", "_corr", "_steps")

    def __init__(
        self,
        basket: Basket,
        rate_curve: DiscountCurve,
        vol_curves: Mapping[str, VolCurve],
        corr,
        *,
        integration: IntegrationConfig | None = None,
    ) -> None:
        self._basket = basket
        self._rate_curve = rate_curve
        self._corr = _as_corr(corr, basket.dim)

        curves: list[VolCurve] = []
        for tkr in basket.tickers:
            if tkr not in vol_curves:
                raise MissingVolCurveError(f"Missing vol curve for {tkr}")
            curves.append(vol_curves[tkr])
        self._vol_curves = tuple(curves)
        self._steps = (integration or IntegrationConfig()).steps
        logger.debug(
            "TermStructureModel built: dim=%d steps=%d", basket.dim, self._steps
        )

    @property
    def basket(self) -> Basket:
        return self._basket

    @property
    def dim(self) -> int:
        return self._basket.dim

    @property
    def rate_curve(self) -> DiscountCurve:
        return self._rate_curve

    @property
    def corr(self) -> FloatArray:
        return self._corr

    def vol_curve(self, i: int) -> VolCurve:
        return self._vol_curves[_check_index(i, self.dim)]

    def discount_factor(self, T: float) -> float:
        return self._rate_curve.df(T)

    def log_mean(self, i: int, T: float) -> float:
        a = self._basket.assets[_check_index(i, self.dim)]
        int_r = self._rate_curve.integral_r(T)
        int_sig2 = self._vol_curves[i].integral_vol2(T, self._steps)
        # q constant => int q dt = q T
        return math.log(a.spot) + int_r - a.dividend_yield * T - 0.5 * int_sig2

    def log_var(self, i: int, T: float) -> float:
        return self._vol_curves[_check_index(i, self.dim)].integral_vol2(T, self._steps)

    def log_cov(self, i: int, j: int, T: float) -> float:
        _check_index(i, self.dim)
        _check_index(j, self.dim)
        if i == j:
            return self.log_var(i, T)
        prod = VolCurve.integral_vol_product(
            self._vol_curves[i], self._vol_curves[j], T, self._steps
        )
        return float(self._corr[i, j]) * prod


def terminal_log_moments(model: MarketModel, T: float) -> tuple[FloatArray, FloatArray]:
    """
    Mean vector and covariance matrix of ``ln S(T)``.

    The diagonal uses ``log_var``; the matrix is filled from the upper
    triangle so it is exactly symmetric.
    """
    n = model.dim
    mean = np.array([model.log_mean(i, T) for i in range(n)], dtype=np.float64)
    cov = np.empty((n, n), dtype=np.float64)
    for i in range(n):
        cov[i, i] = model.log_var(i, T)
        for j in range(i + 1, n):
            c = model.log_cov(i, j, T)
            cov[i, j] = c
            cov[j, i] = c
    return mean, cov


def terminal_correlation(cov: FloatArray, *, var_floor: float = 1e-16) -> FloatArray:
    """
    Normalize a terminal log-covariance into a correlation matrix.

    Assets whose terminal variance is below ``var_floor`` are treated as
    uncorrelated with everything else (unit diagonal, zero off-diagonal).
    """
    cov = np.asarray(cov, dtype=np.float64)
    var = np.diag(cov).copy()
    degenerate = var < var_floor
    std = np.sqrt(np.where(degenerate, 1.0, var))
    corr = cov / np.outer(std, std)
    corr[degenerate, :] = 0.0
    corr[:, degenerate] = 0.0
    idx = np.flatnonzero(degenerate)
    corr[idx, idx] = 1.0
    return corr
