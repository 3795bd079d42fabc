from __future__ import annotations

from collections.abc import Iterable, Mapping
from time import perf_counter

import numpy as np
import pandas as pd

from ..config import MCConfig
from ..market.models import MarketModel
from ..pricers.geometric import geometric_basket_price
from ..pricers.mc import mc_price
from ..pricers.moment_matching import mm_price
from ..types import OptionSpec


def compare_pricers(
    models: Mapping[str, MarketModel],
    option: OptionSpec,
    *,
    n_paths: int = 200_000,
    seed: int = 42,
    cfg: MCConfig | None = None,
    zcrit: float = 1.96,
) -> pd.DataFrame:
    """
    Price one option under several market models with every pricer.

    One row per named model: moment matching (MM), geometric basket (GEO) and
    control-variate Monte Carlo (MC) with its standard error, confidence
    interval, beta and variance-reduction ratio, plus wall-clock seconds per
    method (the speed side of the speed/accuracy trade-off).
    """
    rows: list[dict[str, object]] = []

    for name, model in models.items():
        t0 = perf_counter()
        mm = mm_price(model, option).price
        t_mm = perf_counter() - t0

        t0 = perf_counter()
        geo = geometric_basket_price(model, option).price
        t_geo = perf_counter() - t0

        t0 = perf_counter()
        res = mc_price(model, option, n_paths=n_paths, seed=seed, cfg=cfg)
        t_mc = perf_counter() - t0

        ci_low, ci_high = res.confidence_interval(zcrit)
        rows.append(
            {
                "model": name,
                "kind": option.kind.value,
                "K": float(option.strike),
                "T": float(option.maturity),
                "MM": float(mm),
                "GEO": float(geo),
                "MC": float(res.price),
                "SE": float(res.std_error),
                "CI_low": float(ci_low),
                "CI_high": float(ci_high),
                "MM_in_CI": bool(ci_low <= mm <= ci_high),
                "MC-MM": float(res.price - mm),
                "beta": float(res.beta) if res.beta is not None else np.nan,
                "var_reduction": (
                    float(res.variance_reduction)
                    if res.variance_reduction is not None
                    else np.nan
                ),
                "n_paths": int(res.n_paths or 0),
                "sec_MM": t_mm,
                "sec_GEO": t_geo,
                "sec_MC": t_mc,
            }
        )

    return pd.DataFrame(rows)


def convergence_table(
    model: MarketModel,
    option: OptionSpec,
    *,
    n_paths_list: Iterable[int] = (5_000, 10_000, 50_000, 100_000, 200_000),
    seed: int = 0,
) -> pd.DataFrame:
    """
    For one model, show how the MC price and its SE behave as n_paths grows,
    against the moment-matching benchmark.
    """
    mm = float(mm_price(model, option).price)
    rows: list[dict[str, object]] = []

    for n in n_paths_list:
        res = mc_price(model, option, n_paths=int(n), seed=seed)
        err = float(res.price - mm)
        rows.append(
            {
                "n_paths": int(n),
                "MC": float(res.price),
                "SE": float(res.std_error),
                "SE_plain": float(np.sqrt(res.plain_variance or 0.0)),
                "MM": mm,
                "MC-MM": err,
                "abs_err": abs(err),
                "beta": float(res.beta) if res.beta is not None else np.nan,
            }
        )

    return pd.DataFrame(rows)
