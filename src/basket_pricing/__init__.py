"""
basket_pricing

Pricing of European options on weighted baskets of correlated assets.

The main entrypoints are re-exported at the top level, so you can write:

    from basket_pricing import Basket, ConstantParameterModel, mm_price, mc_price
"""

from .config import IntegrationConfig, MCConfig, NumericsConfig, RandomConfig
from .exceptions import (
    BasketPricingError,
    CalibrationError,
    DegenerateMomentsError,
    DimensionMismatchError,
    InsufficientPathsError,
    InvalidInputError,
    MissingVolCurveError,
)
from .market.curves import FlatDiscountCurve, RateCurve, VolCurve
from .market.models import ConstantParameterModel, MarketModel, TermStructureModel
from .pricers.geometric import geometric_basket_price
from .pricers.mc import mc_price
from .pricers.moment_matching import mm_price
from .types import Asset, Basket, OptionSpec, OptionType, PriceResult

__all__ = [
    # Types
    "OptionType",
    "OptionSpec",
    "Asset",
    "Basket",
    "PriceResult",
    # Curves
    "RateCurve",
    "VolCurve",
    "FlatDiscountCurve",
    # Models
    "MarketModel",
    "ConstantParameterModel",
    "TermStructureModel",
    # Pricers
    "mm_price",
    "geometric_basket_price",
    "mc_price",
    # Config
    "NumericsConfig",
    "IntegrationConfig",
    "RandomConfig",
    "MCConfig",
    # Errors
    "BasketPricingError",
    "InvalidInputError",
    "DimensionMismatchError",
    "MissingVolCurveError",
    "InsufficientPathsError",
    "DegenerateMomentsError",
    "CalibrationError",
]
