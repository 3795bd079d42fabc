from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass, replace
from enum import Enum

import numpy as np

from .exceptions import InvalidInputError
from .typing import FloatArray

logger = logging.getLogger(__name__)


class OptionType(str, Enum):
    """Option contract type.

    Attributes
    ----------
    CALL : str
        Call option ("call").
    PUT : str
        Put option ("put").
    """

    CALL = "call"
    PUT = "put"


@dataclass(frozen=True, slots=True)
class OptionSpec:
    """European option written on a basket.

    Parameters
    ----------
    kind : OptionType
        Option type (call or put).
    strike : float
        Strike :math:`K` applied to the terminal basket value. Must be positive.
    maturity : float
        Time to maturity in years. Must be positive.
    """

    kind: OptionType
    strike: float
    maturity: float

    def __post_init__(self) -> None:
        if not self.strike > 0.0:
            raise InvalidInputError("strike must be > 0")
        if not self.maturity > 0.0:
            raise InvalidInputError("maturity must be > 0")


@dataclass(frozen=True, slots=True)
class Asset:
    """A single underlying of a basket.

    Parameters
    ----------
    ticker : str
        Unique identifier of the asset inside a basket.
    spot : float
        Current price, must be positive.
    dividend_yield : float, default 0.0
        Continuous dividend yield :math:`q` (any real).
    vol_const : float, default 0.2
        Constant annualized volatility used by the constant-parameter model.

    Notes
    -----
    Assets are immutable; a recalibration produces a new instance through
    :meth:`recalibrated`.
    """

    ticker: str
    spot: float
    dividend_yield: float = 0.0
    vol_const: float = 0.2

    def __post_init__(self) -> None:
        if not self.ticker or not self.ticker.strip():
            raise InvalidInputError("ticker is required")
        if not self.spot > 0.0:
            raise InvalidInputError(f"spot must be > 0 for {self.ticker}")
        if not self.vol_const > 0.0:
            raise InvalidInputError(f"vol_const must be > 0 for {self.ticker}")
        if not math.isfinite(self.dividend_yield):
            raise InvalidInputError(f"dividend_yield must be finite for {self.ticker}")

    def recalibrated(
        self,
        *,
        spot: float | None = None,
        dividend_yield: float | None = None,
        vol_const: float | None = None,
    ) -> Asset:
        changes: dict[str, float] = {}
        if spot is not None:
            changes["spot"] = float(spot)
        if dividend_yield is not None:
            changes["dividend_yield"] = float(dividend_yield)
        if vol_const is not None:
            changes["vol_const"] = float(vol_const)
        return replace(self, **changes)


@dataclass(frozen=True, slots=True, init=False)
class Basket:
    """Ordered, weighted collection of assets priced as one underlying.

    Weights are expected, but not required, to sum to one; a warning is logged
    otherwise.
    """

    assets: tuple[Asset, ...]
    weights: tuple[float, ...]

    def __init__(self, assets: Sequence[Asset], weights: Sequence[float]) -> None:
        assets_t = tuple(assets)
        weights_t = tuple(float(w) for w in weights)

        if len(assets_t) == 0:
            raise InvalidInputError("basket needs at least one asset")
        if len(weights_t) != len(assets_t):
            raise InvalidInputError(
                f"weights size mismatch: {len(weights_t)} weights "
                f"for {len(assets_t)} assets"
            )
        tickers = [a.ticker for a in assets_t]
        if len(set(tickers)) != len(tickers):
            raise InvalidInputError(f"duplicate tickers in basket: {tickers}")
        if not all(math.isfinite(w) for w in weights_t):
            raise InvalidInputError("weights must be finite")

        total = math.fsum(weights_t)
        if abs(total - 1.0) > 1e-6:
            logger.warning("Basket weights sum to %.8f, not 1", total)

        object.__setattr__(self, "assets", assets_t)
        object.__setattr__(self, "weights", weights_t)

    @classmethod
    def equally_weighted(cls, assets: Sequence[Asset]) -> Basket:
        n = len(assets)
        if n == 0:
            raise InvalidInputError("basket needs at least one asset")
        return cls(assets, [1.0 / n] * n)

    @property
    def dim(self) -> int:
        return len(self.assets)

    @property
    def tickers(self) -> tuple[str, ...]:
        return tuple(a.ticker for a in self.assets)

    @property
    def weights_array(self) -> FloatArray:
        return np.asarray(self.weights, dtype=np.float64)

    @property
    def spot_value(self) -> float:
        """Current basket level ``sum_i w_i S_i`` (the ATM strike)."""
        return math.fsum(w * a.spot for w, a in zip(self.weights, self.assets))

    def index_of(self, ticker: str) -> int:
        for i, a in enumerate(self.assets):
            if a.ticker == ticker:
                return i
        raise KeyError(ticker)


@dataclass(frozen=True, slots=True)
class PriceResult:
    """Outcome of a pricer call.

    Parameters
    ----------
    price : float
        Discounted option value.
    estimator_variance : float, default 0.0
        Variance of the price estimator (the sample mean), not of individual
        payoffs. Zero for closed-form pricers.
    plain_variance : float | None
        Monte Carlo only: variance of the unadjusted estimator on the same draws.
    beta : float | None
        Monte Carlo only: control-variate coefficient used.
    n_paths : int | None
        Monte Carlo only: number of simulated paths.
    """

    price: float
    estimator_variance: float = 0.0
    plain_variance: float | None = None
    beta: float | None = None
    n_paths: int | None = None

    @property
    def std_error(self) -> float:
        return math.sqrt(max(self.estimator_variance, 0.0))

    def confidence_interval(self, z: float = 1.96) -> tuple[float, float]:
        half = z * self.std_error
        return self.price - half, self.price + half

    @property
    def variance_reduction(self) -> float | None:
        """Ratio plain / control-variate estimator variance (Monte Carlo only)."""
        if self.plain_variance is None:
            return None
        if self.estimator_variance <= 0.0:
            return math.inf if self.plain_variance > 0.0 else 1.0
        return self.plain_variance / self.estimator_variance
