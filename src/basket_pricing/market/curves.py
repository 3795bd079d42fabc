from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import NamedTuple, Protocol

import numpy as np

from ..exceptions import InvalidInputError
from ..typing import ArrayLike, FloatArray


class CurvePoint(NamedTuple):
    t: float
    value: float


class DiscountCurve(Protocol):
    """Discount factors and the integrated short rate ``int_0^T r(u) du``."""

    def df(self, T: float) -> float: ...
    def integral_r(self, T: float) -> float: ...
    def __call__(self, T: float) -> float: ...


def _trapezoid_grid(T: float, steps: int) -> FloatArray:
    if steps <= 0:
        raise InvalidInputError("steps must be > 0")
    return np.arange(steps + 1, dtype=np.float64) * (float(T) / steps)


def _trapezoid(values: FloatArray, dt: float) -> float:
    # Composite trapezoid on a uniform grid
    return float(dt * (values.sum() - 0.5 * (values[0] + values[-1])))


@dataclass(frozen=True, slots=True)
class FlatDiscountCurve:
    r: float

    def df(self, T: float) -> float:
        T = float(T)
        if T <= 0.0:
            return 1.0
        return math.exp(-self.r * T)

    def integral_r(self, T: float) -> float:
        return self.r * max(float(T), 0.0)

    def __call__(self, T: float) -> float:
        return self.df(T)


@dataclass(frozen=True, slots=True, init=False)
class RateCurve:
    """
    Discount-factor term structure with log-linear interpolation.

    Knots are given as ``(t, DF(t))`` with ``t > 0``; the curve is always
    anchored at ``(0, 1)``. ``log DF`` is interpolated linearly between the two
    surrounding knots and extrapolated past the last knot along the last
    segment:

        DF(t) = exp((1 - w) log DF0 + w log DF1),   w = (t - t0) / (t1 - t0).

    ``DF(t) = 1`` for ``t <= 0`` and DF is continuous at 0. A single knot gives
    a flat zero curve.

    Below the first knot ``log DF`` runs linearly from the ``(0, 1)`` anchor, so
    the short end does not follow the first segment extrapolated backwards.
    A curve whose first zero rate differs from the slope of its first segment
    therefore discounts short maturities at the first zero rate.
    """

    times: tuple[float, ...]
    log_dfs: tuple[float, ...]

    def __init__(self, points: Iterable[tuple[float, float]]) -> None:
        pts = sorted((float(t), float(df)) for t, df in points)
        if not pts:
            raise InvalidInputError("RateCurve needs at least 1 point")
        for t, df in pts:
            if not t > 0.0:
                raise InvalidInputError("RateCurve maturities must be > 0")
            if not (df > 0.0 and math.isfinite(df)):
                raise InvalidInputError("discount factors must be finite and > 0")
        times = [t for t, _ in pts]
        if any(b - a <= 0.0 for a, b in zip(times, times[1:])):
            raise InvalidInputError("RateCurve maturities must be unique")

        pts = [(0.0, 1.0), *pts]

        object.__setattr__(self, "times", tuple(t for t, _ in pts))
        object.__setattr__(self, "log_dfs", tuple(math.log(df) for _, df in pts))

    @classmethod
    def from_zero_rates(cls, zero_rates: Iterable[tuple[float, float]]) -> RateCurve:
        """Build from continuously-compounded zero rates, ``df = exp(-z t)``."""
        pts = []
        for t, z in zero_rates:
            t = float(t)
            if not t > 0.0:
                raise InvalidInputError("RateCurve maturities must be > 0")
            pts.append((t, math.exp(-float(z) * t)))
        return cls(pts)

    @property
    def points(self) -> tuple[CurvePoint, ...]:
        return tuple(
            CurvePoint(t, math.exp(ldf))
            for t, ldf in zip(self.times, self.log_dfs)
            if t > 0.0
        )

    def _segment(self, t: float) -> int:
        # Index i of the segment [t_i, t_{i+1}] used for t (boundary segments extrapolate)
        times = self.times
        i = int(np.searchsorted(times, t, side="right")) - 1
        return min(max(i, 0), len(times) - 2)

    def df(self, T: float) -> float:
        T = float(T)
        if T <= 0.0:
            return 1.0
        i = self._segment(T)
        t0, t1 = self.times[i], self.times[i + 1]
        l0, l1 = self.log_dfs[i], self.log_dfs[i + 1]
        w = (T - t0) / (t1 - t0)
        return math.exp((1.0 - w) * l0 + w * l1)

    def integral_r(self, T: float) -> float:
        """Integrated short rate ``int_0^T r(u) du = -ln DF(T)``."""
        return -math.log(self.df(T))

    def zero_rate(self, T: float) -> float:
        T = float(T)
        if T <= 0.0:
            raise InvalidInputError("T must be > 0")
        return self.integral_r(T) / T

    def __call__(self, T: float) -> float:
        return self.df(T)


@dataclass(frozen=True, slots=True, init=False)
class VolCurve:
    """
    Deterministic volatility term structure ``sigma(t)``.

    Linear interpolation between knots, flat extrapolation outside. Integrals
    over ``[0, T]`` use the composite trapezoid rule on ``steps`` uniform
    intervals; the error decreases as ``O(steps^-2)``.
    """

    times: tuple[float, ...]
    vols: tuple[float, ...]

    def __init__(self, points: Iterable[tuple[float, float]]) -> None:
        pts = sorted((float(t), float(v)) for t, v in points)
        if len(pts) < 2:
            raise InvalidInputError("VolCurve needs at least 2 points")
        if any(v < 0.0 or not math.isfinite(v) for _, v in pts):
            raise InvalidInputError("vols must be finite and >= 0")
        times = [t for t, _ in pts]
        if any(b - a <= 0.0 for a, b in zip(times, times[1:])):
            raise InvalidInputError("VolCurve times must be unique")
        object.__setattr__(self, "times", tuple(times))
        object.__setattr__(self, "vols", tuple(v for _, v in pts))

    @classmethod
    def flat(
        cls,
        vol: float,
        tenors: Sequence[float] = (1.0 / 12.0, 0.25, 0.5, 1.0, 2.0),
    ) -> VolCurve:
        return cls((t, float(vol)) for t in tenors)

    @property
    def points(self) -> tuple[CurvePoint, ...]:
        return tuple(CurvePoint(t, v) for t, v in zip(self.times, self.vols))

    def vol(self, t: ArrayLike) -> ArrayLike:
        # np.interp clamps to the boundary values outside the knot range
        out = np.interp(t, self.times, self.vols)
        if np.ndim(out) == 0:
            return float(out)
        return out

    def __call__(self, t: ArrayLike) -> ArrayLike:
        return self.vol(t)

    def integral_vol2(self, T: float, steps: int = 200) -> float:
        """Cumulative variance ``int_0^T sigma(t)^2 dt``."""
        if T <= 0.0:
            return 0.0
        grid = _trapezoid_grid(T, steps)
        v = np.interp(grid, self.times, self.vols)
        return _trapezoid(v * v, float(T) / steps)

    @staticmethod
    def integral_vol_product(
        a: VolCurve, b: VolCurve, T: float, steps: int = 200
    ) -> float:
        """Cross term ``int_0^T sigma_a(t) sigma_b(t) dt``."""
        if T <= 0.0:
            return 0.0
        grid = _trapezoid_grid(T, steps)
        va = np.interp(grid, a.times, a.vols)
        vb = np.interp(grid, b.times, b.vols)
        return _trapezoid(va * vb, float(T) / steps)

    def equivalent_vol(self, T: float, steps: int = 200) -> float:
        """Constant vol with the same cumulative variance to ``T``."""
        if T <= 0.0:
            raise InvalidInputError("T must be > 0")
        return math.sqrt(max(self.integral_vol2(T, steps) / T, 0.0))
