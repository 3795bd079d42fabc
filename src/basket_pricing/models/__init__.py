from .bs import bs_price, call_price, lognormal_call_put, put_price

__all__ = ["bs_price", "call_price", "put_price", "lognormal_call_put"]
