import math

import pytest

from basket_pricing.market.models import ConstantParameterModel
from basket_pricing.models.bs import bs_price
from basket_pricing.pricers.geometric import (
    geometric_basket_price,
    geometric_log_moments,
)
from basket_pricing.types import OptionSpec, OptionType


def test_geometric_log_moments_two_assets(two_asset_model, base_params):
    r, sigma, rho, T = (base_params[k] for k in ("r", "sigma", "rho", "T"))
    m, v = geometric_log_moments(two_asset_model, T)

    assert m == pytest.approx(math.log(100.0) + (r - 0.5 * sigma**2) * T)
    assert v == pytest.approx(sigma**2 * T * (1.0 + rho) / 2.0)


@pytest.mark.parametrize("kind", [OptionType.CALL, OptionType.PUT])
def test_single_asset_reduces_to_black_scholes(make_basket, kind):
    basket = make_basket(spots=(95.0,), vols=(0.3,), q=0.02)
    model = ConstantParameterModel(basket, 0.04, [[1.0]])
    option = OptionSpec(kind=kind, strike=100.0, maturity=2.0)

    geo = geometric_basket_price(model, option).price
    bs = bs_price(kind, spot=95.0, strike=100.0, r=0.04, q=0.02, sigma=0.3, tau=2.0)
    assert abs(geo - bs) < 5e-5


def test_perfectly_correlated_identical_assets_is_single_asset(
    make_basket, make_corr, atm_call
):
    model = ConstantParameterModel(make_basket(), 0.05, make_corr(2, 1.0))
    geo = geometric_basket_price(model, atm_call).price
    bs = bs_price(
        OptionType.CALL, spot=100.0, strike=100.0, r=0.05, q=0.0, sigma=0.2, tau=1.0
    )
    assert abs(geo - bs) < 5e-5


def test_geometric_put_call_parity(two_asset_model):
    T, K = 1.0, 104.0
    call = geometric_basket_price(two_asset_model, OptionSpec(OptionType.CALL, K, T))
    put = geometric_basket_price(two_asset_model, OptionSpec(OptionType.PUT, K, T))
    m, v = geometric_log_moments(two_asset_model, T)
    df = two_asset_model.discount_factor(T)
    assert abs((call.price - put.price) - df * (math.exp(m + 0.5 * v) - K)) < 1e-10
