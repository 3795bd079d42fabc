from __future__ import annotations

import logging
import math

import numpy as np

from ..config import NumericsConfig
from ..exceptions import DegenerateMomentsError
from ..market.models import MarketModel, terminal_log_moments
from ..models.bs import lognormal_call_put
from ..types import OptionSpec, PriceResult

logger = logging.getLogger(__name__)


def basket_moments(model: MarketModel, T: float) -> tuple[float, float]:
    """
    First two raw moments of the arithmetic basket ``B_T = sum_i w_i S_i(T)``.

        m1 = sum_i w_i exp(mu_i + v_i / 2)
        m2 = sum_ij w_i w_j exp(mu_i + mu_j + (v_i + v_j + 2 c_ij) / 2)
    """
    mean, cov = terminal_log_moments(model, T)
    w = model.basket.weights_array
    var = np.diag(cov)

    m1 = float(np.dot(w, np.exp(mean + 0.5 * var)))

    log_e_ij = (
        mean[:, None] + mean[None, :] + 0.5 * (var[:, None] + var[None, :] + 2.0 * cov)
    )
    m2 = float(w @ np.exp(log_e_ij) @ w)
    return m1, m2


def mm_price(
    model: MarketModel,
    option: OptionSpec,
    *,
    numerics: NumericsConfig | None = None,
) -> PriceResult:
    """
    Price a basket option by lognormal moment matching.

    The terminal basket is approximated by a lognormal with the same mean
    ``m1`` and second moment ``m2``, i.e. log-variance
    ``sigma^2 = ln(m2 / m1^2)``, and priced with a Black-76 formula on the
    forward ``m1``. Puts come from parity on the approximation, so
    ``call - put == df * (m1 - K)`` holds exactly.

    Parameters
    ----------
    model : MarketModel
        Any market model variant.
    option : OptionSpec
        Basket option to price.
    numerics : NumericsConfig, optional
        ``moment_rel_eps`` is the relative bump applied when ``m2 <= m1^2``.

    Returns
    -------
    PriceResult
        Price with ``estimator_variance == 0``.

    Raises
    ------
    DegenerateMomentsError
        If ``m1 <= 0``.
    """
    numerics = numerics or NumericsConfig()
    T = option.maturity
    df = model.discount_factor(T)

    m1, m2 = basket_moments(model, T)
    if not m1 > 0.0:
        raise DegenerateMomentsError(f"m1 = {m1:g} <= 0, check inputs")
    if m2 <= m1 * m1:
        logger.warning("m2 <= m1^2 (m1=%g, m2=%g); regularizing", m1, m2)
        m2 = m1 * m1 * (1.0 + numerics.moment_rel_eps)

    sig2 = math.log(m2 / (m1 * m1))
    logger.debug("Moment matching: m1=%g m2=%g sigma^2=%g", m1, m2, sig2)

    price, _ = lognormal_call_put(
        kind=option.kind, forward=m1, strike=option.strike, total_var=sig2, df=df
    )
    return PriceResult(price=price)
