class BasketPricingError(ValueError):
    """Base class for rejected basket-pricing operations.

    Subclasses :class:`ValueError` so callers that already guard pricing calls
    with ``except ValueError`` keep working.
    """


class InvalidInputError(BasketPricingError):
    """Raised when an input violates its domain (non-positive strike, spot, ...)."""


class DimensionMismatchError(InvalidInputError):
    """Raised when a correlation matrix is not ``n x n`` for an ``n``-asset basket."""


class MissingVolCurveError(InvalidInputError):
    """Raised when a term-structure model has no vol curve for a basket ticker."""


class InsufficientPathsError(InvalidInputError):
    """Raised when Monte Carlo is asked for too few paths to be meaningful."""


class DegenerateMomentsError(BasketPricingError):
    """Raised when the matched first moment of the basket is not positive.

    Notes
    -----
    Moment matching fits a lognormal to ``m1 = E[B_T]`` and ``m2 = E[B_T^2]``.
    A lognormal requires ``m1 > 0``; this happens e.g. with short (negative)
    weights dominating the basket.
    """


class CalibrationError(BasketPricingError):
    """Raised when historical statistics cannot be computed from the data."""
