from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from pathlib import Path

import numpy as np
import pandas as pd

from ..exceptions import CalibrationError
from ..market.curves import VolCurve
from ..types import Asset, Basket
from ..typing import FloatArray

TRADING_DAYS = 252

# Common trailing windows, in observations
WINDOW_6M = 126
WINDOW_1Y = 252


def load_prices_csv(path: str | Path, *, date_col: str | None = None) -> pd.DataFrame:
    """
    Read a wide price table (one column per ticker) from CSV.

    The first column (or ``date_col``) is parsed as dates and used as a sorted
    index. Non-numeric cells become NaN.
    """
    df = pd.read_csv(path)
    if df.empty:
        raise CalibrationError(f"No rows in {path}")
    col = date_col or df.columns[0]
    if col not in df.columns:
        raise CalibrationError(f"Missing date column {col!r} in {path}")
    df[col] = pd.to_datetime(df[col])
    df = df.set_index(col).sort_index()
    return df.apply(pd.to_numeric, errors="coerce")


def _select(prices: pd.DataFrame, tickers: Sequence[str] | None) -> pd.DataFrame:
    if tickers is None:
        return prices
    missing = [t for t in tickers if t not in prices.columns]
    if missing:
        raise CalibrationError(f"Missing tickers in price data: {missing}")
    return prices[list(tickers)]


def last_n_obs(prices: pd.DataFrame, n: int) -> pd.DataFrame:
    """Trailing window of the last ``n`` dates (e.g. 126 ~ 6M, 252 ~ 1Y)."""
    if n <= 0:
        raise CalibrationError("window must be > 0")
    return prices.tail(int(n))


def log_returns(
    prices: pd.DataFrame, tickers: Sequence[str] | None = None
) -> pd.DataFrame:
    """
    Daily log-returns ``ln(S_t / S_{t-1})``.

    A return is kept only when every requested ticker has a positive price on
    both consecutive dates; the returns on either side of a gap are dropped
    rather than spanning it.
    """
    px = _select(prices, tickers)
    px = px.where(px > 0.0)
    valid = px.notna().all(axis=1)
    keep = valid & valid.shift(1, fill_value=False)
    rets = np.log(px / px.shift(1))
    return rets[keep]


def annualized_vol(
    returns: pd.Series | Sequence[float], trading_days: int = TRADING_DAYS
) -> float:
    """Population standard deviation of daily log-returns, annualized."""
    r = np.asarray(returns, dtype=np.float64)
    r = r[np.isfinite(r)]
    if r.size < 2:
        raise CalibrationError("Not enough returns to compute vol")
    var = float(np.var(r, ddof=0))
    return math.sqrt(max(var, 1e-18)) * math.sqrt(trading_days)


def correlation_matrix(returns: pd.DataFrame) -> FloatArray:
    """Pearson correlation of aligned log-returns, unit diagonal."""
    if returns.shape[1] == 0:
        raise CalibrationError("Tickers required")
    aligned = returns.dropna(how="any")
    if len(aligned) < 2:
        raise CalibrationError("Not enough aligned returns to compute correlation")

    x = aligned.to_numpy(dtype=np.float64)
    x = x - x.mean(axis=0)
    std = np.sqrt(np.maximum((x * x).mean(axis=0), 1e-18))
    corr = (x.T @ x) / len(x) / np.outer(std, std)
    np.fill_diagonal(corr, 1.0)
    return corr


def calibrate_basket(
    prices: pd.DataFrame,
    tickers: Sequence[str] | None = None,
    *,
    weights: Sequence[float] | None = None,
    dividend_yield: float | Mapping[str, float] = 0.0,
    window: int | None = None,
    trading_days: int = TRADING_DAYS,
) -> tuple[Basket, FloatArray]:
    """
    Build a basket and its correlation matrix from historical prices.

    Spots are the prices on the last date where every ticker trades; vols and
    correlations are estimated on the trailing ``window`` when given. Weights
    default to equal weighting.

    Returns
    -------
    (basket, corr)
    """
    px = _select(prices, tickers)
    complete = px.dropna(how="any")
    if complete.empty:
        raise CalibrationError("No dates with prices for every ticker")
    sample = last_n_obs(px, window) if window is not None else px
    rets = log_returns(sample)

    assets = []
    for col in px.columns:
        name = str(col)
        q = (
            dividend_yield.get(name, 0.0)
            if isinstance(dividend_yield, Mapping)
            else dividend_yield
        )
        assets.append(
            Asset(
                ticker=name,
                spot=float(complete[col].iloc[-1]),
                dividend_yield=float(q),
                vol_const=annualized_vol(rets[col], trading_days),
            )
        )

    basket = (
        Basket.equally_weighted(assets) if weights is None else Basket(assets, weights)
    )
    return basket, correlation_matrix(rets)


def flat_vol_curves(
    basket: Basket,
    tenors: Sequence[float] = (1.0 / 12.0, 0.25, 0.5, 1.0, 2.0),
) -> dict[str, VolCurve]:
    """Flat vol curve per asset at its constant vol."""
    return {a.ticker: VolCurve.flat(a.vol_const, tenors) for a in basket.assets}


def vol_comparison_table(
    basket: Basket, vol_curves: Mapping[str, VolCurve], T: float = 1.0
) -> pd.DataFrame:
    """
    Historical vol vs the constant vol equivalent to each implied curve up to ``T``.

    Sorted by ``diff = implied_eq - hist``, largest first.
    """
    rows: list[dict[str, object]] = []
    for a in basket.assets:
        if a.ticker not in vol_curves:
            raise CalibrationError(f"Missing vol curve for {a.ticker}")
        implied = vol_curves[a.ticker].equivalent_vol(T)
        rows.append(
            {
                "ticker": a.ticker,
                "vol_hist": a.vol_const,
                "vol_implied_eq": implied,
                "diff": implied - a.vol_const,
            }
        )
    return (
        pd.DataFrame(rows).sort_values("diff", ascending=False).reset_index(drop=True)
    )
