from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from datetime import date
from pathlib import Path

import pandas as pd

from ..exceptions import CalibrationError
from ..market.curves import RateCurve, VolCurve

logger = logging.getLogger(__name__)

DAY_COUNT_BASIS = 365.0


def _require_columns(df: pd.DataFrame, cols: Sequence[str], path: str | Path) -> None:
    missing = [c for c in cols if c not in df.columns]
    if missing:
        raise CalibrationError(f"{path} is missing columns: {missing}")


def _percent(values: pd.Series) -> pd.Series:
    # "25.3", "25.3%" and 25.3 all mean 0.253
    text = values.astype(str).str.replace("%", "", regex=False).str.strip()
    return pd.to_numeric(text, errors="coerce") / 100.0


def _tenor_years(tenor: object) -> float | None:
    """``"3M"`` -> 0.25, ``"2Y"`` -> 2.0; anything else -> None."""
    s = str(tenor).strip().upper()
    if s.endswith("M"):
        scale = 1.0 / 12.0
    elif s.endswith("Y"):
        scale = 1.0
    else:
        return None
    try:
        return float(s[:-1]) * scale
    except ValueError:
        return None


def load_vol_curves_csv(
    path: str | Path,
    *,
    as_of: date | str | pd.Timestamp | None = None,
    day_count: float = DAY_COUNT_BASIS,
    ticker_col: str = "Ticker",
    expiry_col: str = "Expiry",
    vol_col: str = "ATMVolPct",
) -> dict[str, VolCurve]:
    """
    Read ATM implied vol curves from a long CSV (one row per ticker and expiry).

    Parameters
    ----------
    path : str or Path
        CSV with ``ticker_col``, ``expiry_col`` and ``vol_col`` columns.
    as_of : date-like, optional
        Valuation date. A numeric expiry column holds year fractions;
        otherwise expiries are dates and become
        ``(expiry - as_of).days / day_count``, which requires ``as_of``.
    vol_col
        ATM vol in percent; a trailing ``%`` is accepted.

    Returns
    -------
    dict[str, VolCurve]
        One curve per ticker. Rows with missing fields or non-positive
        maturities are skipped; for a repeated maturity the last row wins.

    Raises
    ------
    CalibrationError
        Missing columns, expiry dates without ``as_of``, no usable rows, or a
        ticker with fewer than 2 points.
    """
    df = pd.read_csv(path)
    _require_columns(df, (ticker_col, expiry_col, vol_col), path)

    if pd.api.types.is_numeric_dtype(df[expiry_col]):
        t = df[expiry_col].astype(float)
    elif as_of is None:
        raise CalibrationError(f"{path} has expiry dates; pass as_of")
    else:
        expiry = pd.to_datetime(df[expiry_col], errors="coerce").dt.normalize()
        t = (expiry - pd.Timestamp(as_of).normalize()).dt.days / day_count

    points = pd.DataFrame(
        {
            "ticker": df[ticker_col].astype("string").str.strip(),
            "t": t,
            "vol": _percent(df[vol_col]),
        }
    ).dropna()
    points = points[(points["ticker"] != "") & (points["t"] > 0.0)]
    if points.empty:
        raise CalibrationError(f"No usable vol points in {path}")

    curves: dict[str, VolCurve] = {}
    for ticker, grp in points.groupby("ticker", sort=False):
        grp = grp.drop_duplicates("t", keep="last")
        if len(grp) < 2:
            raise CalibrationError(f"Not enough vol points for {ticker!r} (need >= 2)")
        curves[str(ticker)] = VolCurve(zip(grp["t"], grp["vol"]))

    logger.debug("Loaded vol curves for %d tickers from %s", len(curves), path)
    return curves


def load_rate_curve_csv(
    path: str | Path, *, tenor_col: str = "Tenor", yield_col: str = "Yield"
) -> RateCurve:
    """
    Read a zero curve from a CSV of tenors (``3M``, ``1Y``, ...) and yields in %.

    Unparseable rows are skipped. At least 2 points are required.
    """
    df = pd.read_csv(path, dtype={tenor_col: str})
    _require_columns(df, (tenor_col, yield_col), path)

    points = pd.DataFrame(
        {
            "t": pd.to_numeric(df[tenor_col].map(_tenor_years), errors="coerce"),
            "z": _percent(df[yield_col]),
        }
    ).dropna()
    points = points[points["t"] > 0.0].drop_duplicates("t", keep="last")
    if len(points) < 2:
        raise CalibrationError(f"Not enough rate points in {path} (need >= 2)")
    return RateCurve.from_zero_rates(zip(points["t"], points["z"]))


def select_vol_curves(
    curves: Mapping[str, VolCurve], tickers: Sequence[str]
) -> dict[str, VolCurve]:
    """Restrict ``curves`` to ``tickers``; every ticker must have a curve."""
    missing = [t for t in tickers if t not in curves]
    if missing:
        raise CalibrationError(f"Missing vol curves for tickers: {missing}")
    return {t: curves[t] for t in tickers}
