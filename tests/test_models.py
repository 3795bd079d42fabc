import math

import numpy as np
import pytest

from basket_pricing.config import IntegrationConfig
from basket_pricing.exceptions import DimensionMismatchError, MissingVolCurveError
from basket_pricing.market.curves import (
    DiscountCurve,
    FlatDiscountCurve,
    RateCurve,
    VolCurve,
)
from basket_pricing.market.models import (
    ConstantParameterModel,
    MarketModel,
    TermStructureModel,
    terminal_correlation,
    terminal_log_moments,
)


def test_constant_model_moments(make_basket, make_corr):
    basket = make_basket(spots=(100.0, 80.0), vols=(0.2, 0.3), q=0.01)
    model = ConstantParameterModel(basket, 0.04, make_corr(2, 0.3))
    T = 2.0

    assert model.discount_factor(T) == pytest.approx(math.exp(-0.08))
    assert model.log_mean(0, T) == pytest.approx(
        math.log(100.0) + (0.04 - 0.01 - 0.02) * T
    )
    assert model.log_mean(1, T) == pytest.approx(
        math.log(80.0) + (0.04 - 0.01 - 0.045) * T
    )
    assert model.log_var(1, T) == pytest.approx(0.09 * T)
    assert model.log_cov(0, 1, T) == pytest.approx(0.3 * 0.2 * 0.3 * T)
    assert model.log_cov(1, 0, T) == model.log_cov(0, 1, T)
    assert model.log_cov(0, 0, T) == pytest.approx(model.log_var(0, T))


def test_models_satisfy_protocol(two_asset_model, flat_term_structure_model):
    assert isinstance(two_asset_model, MarketModel)
    assert isinstance(flat_term_structure_model, MarketModel)


def test_correlation_shape_is_checked(make_basket, make_corr):
    basket = make_basket()
    with pytest.raises(DimensionMismatchError):
        ConstantParameterModel(basket, 0.05, make_corr(3, 0.2))
    with pytest.raises(DimensionMismatchError):
        TermStructureModel(
            basket,
            RateCurve([(1.0, 0.95)]),
            {t: VolCurve.flat(0.2) for t in basket.tickers},
            np.eye(3),
        )


def test_correlation_is_read_only(two_asset_model):
    corr = two_asset_model.corr
    with pytest.raises(ValueError):
        corr[0, 1] = 0.9


def test_missing_vol_curve(make_basket):
    basket = make_basket()
    with pytest.raises(MissingVolCurveError, match="A1"):
        TermStructureModel(
            basket, RateCurve([(1.0, 0.95)]), {"A0": VolCurve.flat(0.2)}, np.eye(2)
        )


def test_asset_index_out_of_range(two_asset_model, flat_term_structure_model):
    for model in (two_asset_model, flat_term_structure_model):
        with pytest.raises(IndexError):
            model.log_mean(2, 1.0)
        with pytest.raises(IndexError):
            model.log_cov(0, -1, 1.0)


def test_flat_term_structure_matches_constant_model(
    two_asset_model, flat_term_structure_model
):
    for T in (0.25, 1.0, 3.0):
        m_c, c_c = terminal_log_moments(two_asset_model, T)
        m_t, c_t = terminal_log_moments(flat_term_structure_model, T)
        np.testing.assert_allclose(m_t, m_c, rtol=0, atol=1e-10)
        np.testing.assert_allclose(c_t, c_c, rtol=0, atol=1e-10)
        assert flat_term_structure_model.discount_factor(T) == pytest.approx(
            two_asset_model.discount_factor(T), rel=1e-12
        )


def test_term_structure_accepts_any_discount_curve(
    make_basket, make_corr, two_asset_model
):
    basket = make_basket()
    curve: DiscountCurve = FlatDiscountCurve(0.05)
    vols = {a.ticker: VolCurve.flat(0.2) for a in basket.assets}
    model = TermStructureModel(basket, curve, vols, make_corr(2, 0.5))

    assert model.rate_curve is curve
    for T in (0.5, 2.0):
        assert model.discount_factor(T) == pytest.approx(
            two_asset_model.discount_factor(T), rel=1e-12
        )
        m_t, _ = terminal_log_moments(model, T)
        m_c, _ = terminal_log_moments(two_asset_model, T)
        np.testing.assert_allclose(m_t, m_c, rtol=0, atol=1e-10)


def test_term_structure_uses_integrated_rates_and_vols(make_basket):
    basket = make_basket(spots=(100.0,), vols=(0.2,), q=0.02)
    rates = RateCurve.from_zero_rates([(1.0, 0.02), (2.0, 0.03)])
    vol = VolCurve([(0.0, 0.1), (2.0, 0.3)])
    model = TermStructureModel(
        basket, rates, {"A0": vol}, [[1.0]], integration=IntegrationConfig(steps=400)
    )

    T = 2.0
    int_sig2 = 0.06 + 0.08 / 3.0
    assert model.log_var(0, T) == pytest.approx(int_sig2, abs=1e-6)
    assert model.log_mean(0, T) == pytest.approx(
        math.log(100.0) + 0.06 - 0.04 - 0.5 * int_sig2, abs=1e-6
    )
    assert model.vol_curve(0) is vol
    assert model.rate_curve is rates


def test_terminal_correlation_drops_below_instantaneous(make_basket):
    basket = make_basket()
    rising = VolCurve([(0.0, 0.1), (1.0, 0.3)])
    falling = VolCurve([(0.0, 0.3), (1.0, 0.1)])
    rho = 0.8
    model = TermStructureModel(
        basket,
        RateCurve([(1.0, 0.97)]),
        {"A0": rising, "A1": falling},
        [[1.0, rho], [rho, 1.0]],
    )
    _, cov = terminal_log_moments(model, 1.0)
    corr = terminal_correlation(cov)

    assert np.allclose(np.diag(corr), 1.0)
    assert 0.0 < corr[0, 1] < rho
    assert corr[0, 1] == corr[1, 0]


def test_terminal_log_moments_symmetric(two_asset_model):
    _, cov = terminal_log_moments(two_asset_model, 1.5)
    assert np.array_equal(cov, cov.T)
    assert cov[0, 0] == two_asset_model.log_var(0, 1.5)


def test_terminal_correlation_with_degenerate_variance():
    cov = np.array([[0.04, 0.0, 0.0], [0.0, 0.0, 0.0], [0.0, 0.0, 0.09]])
    cov[0, 2] = cov[2, 0] = 0.5 * 0.2 * 0.3
    corr = terminal_correlation(cov)

    np.testing.assert_allclose(np.diag(corr), 1.0)
    assert corr[0, 1] == 0.0 and corr[1, 2] == 0.0
    assert corr[0, 2] == pytest.approx(0.5)
