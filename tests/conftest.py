"""Pytest helpers for the basket_pricing library."""

from __future__ import annotations

import numpy as np
import pytest

from basket_pricing.market.curves import RateCurve, VolCurve
from basket_pricing.market.models import ConstantParameterModel, TermStructureModel
from basket_pricing.types import Asset, Basket, OptionSpec, OptionType


@pytest.fixture
def base_params() -> dict:
    """A small set of canonical parameters used across tests."""
    return {
        "S": 100.0,
        "K": 100.0,
        "r": 0.05,
        "q": 0.0,
        "sigma": 0.2,
        "rho": 0.5,
        "T": 1.0,
    }


@pytest.fixture
def make_basket():
    """Factory fixture for equally weighted baskets of identical-looking assets."""

    def _make(
        *,
        spots=(100.0, 100.0),
        vols=(0.2, 0.2),
        q: float = 0.0,
        weights=None,
    ) -> Basket:
        assets = [
            Asset(ticker=f"A{i}", spot=s, dividend_yield=q, vol_const=v)
            for i, (s, v) in enumerate(zip(spots, vols))
        ]
        if weights is None:
            return Basket.equally_weighted(assets)
        return Basket(assets, weights)

    return _make


@pytest.fixture
def make_corr():
    def _corr(n: int, rho: float) -> np.ndarray:
        return np.eye(n) + rho * (np.ones((n, n)) - np.eye(n))

    return _corr


@pytest.fixture
def two_asset_model(make_basket, make_corr, base_params) -> ConstantParameterModel:
    basket = make_basket()
    return ConstantParameterModel(
        basket, base_params["r"], make_corr(2, base_params["rho"])
    )


@pytest.fixture
def flat_term_structure_model(
    make_basket, make_corr, base_params
) -> TermStructureModel:
    """Term-structure model equivalent to ``two_asset_model`` (flat curves)."""
    basket = make_basket()
    rate_curve = RateCurve.from_zero_rates([(0.5, 0.05), (1.0, 0.05), (5.0, 0.05)])
    vols = {a.ticker: VolCurve.flat(0.2) for a in basket.assets}
    return TermStructureModel(
        basket, rate_curve, vols, make_corr(2, base_params["rho"])
    )


@pytest.fixture
def atm_call(base_params) -> OptionSpec:
    return OptionSpec(
        kind=OptionType.CALL, strike=base_params["K"], maturity=base_params["T"]
    )


@pytest.fixture
def atm_put(base_params) -> OptionSpec:
    return OptionSpec(
        kind=OptionType.PUT, strike=base_params["K"], maturity=base_params["T"]
    )
