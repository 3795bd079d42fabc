from __future__ import annotations

import math
from collections.abc import Callable

from scipy.stats import norm

from ..numerics.distributions import norm_cdf
from ..types import OptionType


def _validate_scalar_inputs(
    *, spot: float, strike: float, sigma: float, tau: float
) -> None:
    if spot <= 0.0:
        raise ValueError("spot must be positive")
    if strike <= 0.0:
        raise ValueError("strike must be positive")
    if sigma <= 0.0:
        raise ValueError("sigma must be positive")
    if tau <= 0.0:
        raise ValueError("tau must be positive")


def lognormal_call_put(
    *,
    kind: OptionType,
    forward: float,
    strike: float,
    total_var: float,
    df: float,
    cdf: Callable[[float], float] = norm_cdf,
) -> tuple[float, float]:
    """
    Black-76 style price of an option on a lognormal terminal value.

    ``forward`` is the expected terminal value and ``total_var`` the variance
    of its logarithm. Returns ``(price, call)``; the put is obtained from the
    call through parity ``put = call - df * (forward - strike)``, so parity
    holds exactly.
    """
    s = math.sqrt(total_var)
    d1 = (math.log(forward / strike) + 0.5 * total_var) / s
    d2 = d1 - s

    call = df * (forward * cdf(d1) - strike * cdf(d2))
    if kind == OptionType.CALL:
        return call, call
    if kind == OptionType.PUT:
        return call - df * (forward - strike), call
    raise ValueError(f"Unsupported option kind: {kind}")


def _scipy_cdf(x: float) -> float:
    return float(norm.cdf(x))


def _forward_and_df(
    *, spot: float, strike: float, r: float, q: float, sigma: float, tau: float
) -> tuple[float, float]:
    _validate_scalar_inputs(spot=spot, strike=strike, sigma=sigma, tau=tau)
    return spot * math.exp((r - q) * tau), math.exp(-r * tau)


def call_price(
    *, spot: float, strike: float, r: float, q: float, sigma: float, tau: float
) -> float:
    """Black-Scholes European call with continuous dividend yield q."""
    fwd, df = _forward_and_df(
        spot=spot, strike=strike, r=r, q=q, sigma=sigma, tau=tau
    )
    price, _ = lognormal_call_put(
        kind=OptionType.CALL,
        forward=fwd,
        strike=strike,
        total_var=sigma * sigma * tau,
        df=df,
        cdf=_scipy_cdf,
    )
    return float(price)


def put_price(
    *, spot: float, strike: float, r: float, q: float, sigma: float, tau: float
) -> float:
    """Black-Scholes European put with continuous dividend yield q."""
    fwd, df = _forward_and_df(
        spot=spot, strike=strike, r=r, q=q, sigma=sigma, tau=tau
    )
    s = sigma * math.sqrt(tau)
    d1 = (math.log(fwd / strike) + 0.5 * s * s) / s
    d2 = d1 - s
    return float(df * (strike * norm.cdf(-d2) - fwd * norm.cdf(-d1)))


def bs_price(
    kind: OptionType,
    *,
    spot: float,
    strike: float,
    r: float,
    q: float,
    sigma: float,
    tau: float,
) -> float:
    """Exact single-asset Black-Scholes price (scipy normal CDF)."""
    if kind == OptionType.CALL:
        return call_price(spot=spot, strike=strike, r=r, q=q, sigma=sigma, tau=tau)
    if kind == OptionType.PUT:
        return put_price(spot=spot, strike=strike, r=r, q=q, sigma=sigma, tau=tau)
    raise ValueError(f"Unsupported option kind: {kind}")
