"""
Command line front end: calibrate a basket from a price CSV and compare pricers.

Usage:
    python -m basket_pricing prices.csv
    python -m basket_pricing prices.csv --tickers AI.PA,OR.PA --maturity 2 --kind put
    python -m basket_pricing prices.csv --zero-rate 0.5:0.025 --zero-rate 2:0.03
    python -m basket_pricing prices.csv --rate-curve rates.csv --vol-curves vols.csv
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence

import pandas as pd

from .calibration.historical import (
    WINDOW_1Y,
    WINDOW_6M,
    calibrate_basket,
    flat_vol_curves,
    load_prices_csv,
    vol_comparison_table,
)
from .calibration.market_data import (
    load_rate_curve_csv,
    load_vol_curves_csv,
    select_vol_curves,
)
from .config import MCConfig, RandomConfig
from .diagnostics.compare import compare_pricers
from .market.curves import DiscountCurve, FlatDiscountCurve, RateCurve, VolCurve
from .market.models import ConstantParameterModel, MarketModel, TermStructureModel
from .types import Basket, OptionSpec, OptionType

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False, debug: bool = False) -> None:
    """Configure logging based on verbosity level."""
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _zero_rate_point(text: str) -> tuple[float, float]:
    try:
        t, z = text.split(":")
        return float(t), float(z)
    except ValueError as e:
        raise argparse.ArgumentTypeError(
            f"expected MATURITY:RATE (e.g. 1.0:0.03), got {text!r}"
        ) from e


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="basket_pricing",
        description="Price a basket option from historical prices with moment "
        "matching, the geometric closed form and control-variate Monte Carlo.",
    )
    parser.add_argument(
        "prices", help="CSV with a date column and one column per ticker"
    )
    parser.add_argument(
        "--tickers", help="Comma-separated subset of tickers (default: all columns)"
    )
    parser.add_argument(
        "--maturity", type=float, default=1.0, help="Years (default: 1)"
    )
    parser.add_argument(
        "--strike", type=float, help="Strike (default: current basket level, ATM)"
    )
    parser.add_argument(
        "--kind", choices=[k.value for k in OptionType], default=OptionType.CALL.value
    )
    parser.add_argument(
        "--rate",
        type=float,
        default=0.03,
        help="Flat rate; also discounts the term-structure model without a curve",
    )
    parser.add_argument("--dividend-yield", type=float, default=0.0)
    parser.add_argument(
        "--window", type=int, help="Trailing observations for vols/correlation"
    )
    rates = parser.add_mutually_exclusive_group()
    rates.add_argument(
        "--zero-rate",
        type=_zero_rate_point,
        action="append",
        default=[],
        metavar="T:Z",
        help="Zero-rate point; when given, a term-structure model is added",
    )
    rates.add_argument(
        "--rate-curve",
        metavar="PATH",
        help="CSV of Tenor (3M, 1Y, ...) and Yield in percent",
    )
    parser.add_argument(
        "--vol-curves",
        metavar="PATH",
        help="CSV of Ticker, Expiry (years or dates) and ATMVolPct; falls back to "
        "flat historical vols when a ticker has no curve",
    )
    parser.add_argument("--paths", type=int, default=200_000)
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--batch-size", type=int, default=50_000)
    parser.add_argument("-v", "--verbose", action="store_true")
    parser.add_argument("--debug", action="store_true")
    return parser.parse_args(argv)


def _discount_curve(args: argparse.Namespace) -> DiscountCurve:
    if args.rate_curve:
        return load_rate_curve_csv(args.rate_curve)
    if args.zero_rate:
        return RateCurve.from_zero_rates(args.zero_rate)
    return FlatDiscountCurve(args.rate)


def _vol_curves(
    args: argparse.Namespace, basket: Basket, as_of: pd.Timestamp
) -> tuple[dict[str, VolCurve], bool]:
    """Implied vol curves for the basket, or flat historical ones as a fallback."""
    if args.vol_curves:
        try:
            curves = load_vol_curves_csv(args.vol_curves, as_of=as_of)
            return select_vol_curves(curves, basket.tickers), True
        except (ValueError, OSError) as e:
            logger.warning("Falling back to flat historical vol curves: %s", e)
    return flat_vol_curves(basket), False


def run(args: argparse.Namespace) -> tuple[pd.DataFrame, pd.DataFrame | None]:
    """
    Price the option under every market model.

    Returns the pricer comparison table and, when implied vol curves were
    loaded, the historical vs implied-equivalent vol table.
    """
    prices = load_prices_csv(args.prices)
    tickers = args.tickers.split(",") if args.tickers else None
    basket, corr = calibrate_basket(
        prices, tickers, dividend_yield=args.dividend_yield, window=args.window
    )
    strike = args.strike if args.strike is not None else basket.spot_value
    option = OptionSpec(
        kind=OptionType(args.kind), strike=strike, maturity=args.maturity
    )
    logger.info(
        "Basket of %d assets, level %.4f, K=%.4f, T=%g",
        basket.dim,
        basket.spot_value,
        strike,
        args.maturity,
    )

    models: dict[str, MarketModel] = {
        "constant": ConstantParameterModel(basket, args.rate, corr)
    }
    for label, window in (("constant_6m", WINDOW_6M), ("constant_1y", WINDOW_1Y)):
        b_w, corr_w = calibrate_basket(
            prices, tickers, dividend_yield=args.dividend_yield, window=window
        )
        models[label] = ConstantParameterModel(b_w, args.rate, corr_w)

    vol_table = None
    if args.zero_rate or args.rate_curve or args.vol_curves:
        vol_curves, implied = _vol_curves(args, basket, prices.index[-1])
        if implied:
            vol_table = vol_comparison_table(basket, vol_curves, T=args.maturity)
        models["term_structure"] = TermStructureModel(
            basket, _discount_curve(args), vol_curves, corr
        )

    cfg = MCConfig(
        n_paths=args.paths,
        batch_size=args.batch_size,
        random=RandomConfig(seed=args.seed),
    )
    table = compare_pricers(
        models, option, n_paths=args.paths, seed=args.seed, cfg=cfg
    )
    return table, vol_table


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(verbose=args.verbose, debug=args.debug)

    try:
        table, vol_table = run(args)
    except (ValueError, OSError) as e:
        logger.error("Pricing failed: %s", e)
        return 2

    with pd.option_context("display.width", 160, "display.max_columns", None):
        print(table.to_string(index=False))
        if vol_table is not None:
            print(f"\nHistorical vs implied-equivalent vol (T={args.maturity:g})")
            print(vol_table.to_string(index=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
