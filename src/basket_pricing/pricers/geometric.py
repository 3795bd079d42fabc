from __future__ import annotations

import math

from ..config import NumericsConfig
from ..market.models import MarketModel, terminal_log_moments
from ..models.bs import lognormal_call_put
from ..types import OptionSpec, PriceResult


def geometric_log_moments(model: MarketModel, T: float) -> tuple[float, float]:
    """Mean and variance of ``ln G_T = sum_i w_i ln S_i(T)``."""
    mean, cov = terminal_log_moments(model, T)
    w = model.basket.weights_array
    return float(w @ mean), float(w @ cov @ w)


def geometric_basket_price(
    model: MarketModel,
    option: OptionSpec,
    *,
    numerics: NumericsConfig | None = None,
) -> PriceResult:
    """
    Exact price of an option on the geometric basket ``G_T = prod S_i(T)^w_i``.

    Under a joint-lognormal model ``ln G_T`` is exactly normal with mean
    ``m = sum w_i mu_i`` and variance ``v = w^T C w``, so the option has a
    closed form on ``E[G_T] = exp(m + v / 2)``. Used as the control variate of
    the Monte Carlo pricer. ``v`` is floored at ``numerics.var_floor``.
    """
    numerics = numerics or NumericsConfig()
    T = option.maturity
    m, v = geometric_log_moments(model, T)
    v = max(v, numerics.var_floor)

    price, _ = lognormal_call_put(
        kind=option.kind,
        forward=math.exp(m + 0.5 * v),
        strike=option.strike,
        total_var=v,
        df=model.discount_factor(T),
    )
    return PriceResult(price=price)
