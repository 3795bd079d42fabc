from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import pandas as pd

if TYPE_CHECKING:
    from matplotlib.axes import Axes

_CONVERGENCE_COLUMNS = ("n_paths", "MC", "SE", "MM")


def _pyplot():
    try:
        import matplotlib.pyplot as plt
    except ModuleNotFoundError as e:
        raise ModuleNotFoundError(
            "Plotting requires matplotlib: pip install 'basket-pricing[plot]'"
        ) from e
    return plt


def plot_convergence(
    df: pd.DataFrame, *, ax: Axes | None = None, zcrit: float = 1.96
) -> Axes:
    """
    MC price with a ``zcrit`` standard-error band against the MM benchmark.

    Expects the columns produced by
    :func:`basket_pricing.diagnostics.compare.convergence_table`.
    """
    missing = [c for c in _CONVERGENCE_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"convergence table is missing columns: {missing}")

    if ax is None:
        _, ax = _pyplot().subplots(figsize=(8, 4.5))

    n = df["n_paths"].to_numpy(dtype=float)
    mc = df["MC"].to_numpy(dtype=float)
    se = df["SE"].to_numpy(dtype=float)

    ax.plot(n, mc, marker="o", lw=1.2, label="MC (control variate)")
    ax.fill_between(n, mc - zcrit * se, mc + zcrit * se, alpha=0.2, label="CI")
    ax.axhline(float(np.mean(df["MM"])), color="k", ls="--", lw=1.0, label="MM")
    ax.set_xscale("log")
    ax.set_xlabel("n_paths")
    ax.set_ylabel("price")
    ax.set_title("Basket option: MC convergence vs moment matching")
    ax.grid(alpha=0.25)
    for side in ("top", "right"):
        ax.spines[side].set_visible(False)
    ax.legend()
    return ax
