from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

RngType = Literal["pcg64", "mt19937"]

# Fewer paths than this are rejected by the Monte Carlo pricer.
MIN_MC_PATHS = 1000


@dataclass(frozen=True, slots=True)
class NumericsConfig:
    """Regularization thresholds shared by the pricers.

    Attributes
    ----------
    cholesky_eps
        Floor applied to Cholesky diagonal pivots.
    var_floor
        Floor applied to terminal log-variances before taking square roots.
    moment_rel_eps
        Relative bump used when moment matching finds ``m2 <= m1**2``.
    control_var_tol
        Control variances at or below this value disable the control variate.
    """

    cholesky_eps: float = 1e-14
    var_floor: float = 1e-16
    moment_rel_eps: float = 1e-12
    control_var_tol: float = 1e-18

    def __post_init__(self) -> None:
        if self.cholesky_eps <= 0 or self.var_floor <= 0:
            raise ValueError("cholesky_eps and var_floor must be > 0")
        if self.moment_rel_eps <= 0:
            raise ValueError("moment_rel_eps must be > 0")
        if self.control_var_tol < 0:
            raise ValueError("control_var_tol must be >= 0")


@dataclass(frozen=True, slots=True)
class IntegrationConfig:
    steps: int = 200

    def __post_init__(self) -> None:
        if self.steps <= 0:
            raise ValueError("steps must be > 0")


@dataclass(frozen=True, slots=True)
class RandomConfig:
    seed: int = 0
    rng_type: RngType = "pcg64"

    def __post_init__(self) -> None:
        if self.rng_type not in ("pcg64", "mt19937"):
            raise ValueError(f"Unsupported rng_type: {self.rng_type!r}")


@dataclass(frozen=True, slots=True)
class MCConfig:
    n_paths: int = 100_000
    batch_size: int = 50_000
    random: RandomConfig = field(default_factory=RandomConfig)

    def __post_init__(self) -> None:
        if self.n_paths <= 0:
            raise ValueError("n_paths must be > 0")
        if self.batch_size <= 0:
            raise ValueError("batch_size must be > 0")
