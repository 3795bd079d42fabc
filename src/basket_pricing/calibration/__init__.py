from .historical import (
    WINDOW_1Y,
    WINDOW_6M,
    annualized_vol,
    calibrate_basket,
    correlation_matrix,
    flat_vol_curves,
    last_n_obs,
    load_prices_csv,
    log_returns,
    vol_comparison_table,
)
from .market_data import load_rate_curve_csv, load_vol_curves_csv, select_vol_curves

__all__ = [
    "WINDOW_6M",
    "WINDOW_1Y",
    "load_prices_csv",
    "last_n_obs",
    "log_returns",
    "annualized_vol",
    "correlation_matrix",
    "calibrate_basket",
    "flat_vol_curves",
    "vol_comparison_table",
    "load_vol_curves_csv",
    "load_rate_curve_csv",
    "select_vol_curves",
]
