from .geometric import geometric_basket_price, geometric_log_moments
from .mc import McBasketModel, mc_price, mc_price_plain
from .moment_matching import basket_moments, mm_price

__all__ = [
    "mm_price",
    "basket_moments",
    "geometric_basket_price",
    "geometric_log_moments",
    "mc_price",
    "mc_price_plain",
    "McBasketModel",
]
