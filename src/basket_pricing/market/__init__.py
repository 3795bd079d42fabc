from .curves import CurvePoint, DiscountCurve, FlatDiscountCurve, RateCurve, VolCurve
from .models import (
    ConstantParameterModel,
    MarketModel,
    TermStructureModel,
    terminal_correlation,
    terminal_log_moments,
)

__all__ = [
    # Curves
    "CurvePoint",
    "DiscountCurve",
    "FlatDiscountCurve",
    "RateCurve",
    "VolCurve",
    # Models
    "MarketModel",
    "ConstantParameterModel",
    "TermStructureModel",
    "terminal_log_moments",
    "terminal_correlation",
]
