from .compare import compare_pricers, convergence_table
from .plots import plot_convergence

__all__ = ["compare_pricers", "convergence_table", "plot_convergence"]
