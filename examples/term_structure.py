from __future__ import annotations


def main() -> None:
    import numpy as np

    from basket_pricing import (
        Asset,
        Basket,
        OptionSpec,
        OptionType,
        RateCurve,
        TermStructureModel,
        VolCurve,
    )
    from basket_pricing.diagnostics import compare_pricers, convergence_table

    basket = Basket(
        [Asset("AAA", spot=100.0), Asset("BBB", spot=50.0)], weights=[0.4, 0.6]
    )
    rates = RateCurve.from_zero_rates([(0.25, 0.028), (1.0, 0.031), (3.0, 0.034)])
    vols = {
        "AAA": VolCurve([(0.25, 0.30), (1.0, 0.24), (3.0, 0.22)]),
        "BBB": VolCurve([(0.25, 0.18), (1.0, 0.21), (3.0, 0.25)]),
    }
    model = TermStructureModel(basket, rates, vols, np.array([[1.0, 0.4], [0.4, 1.0]]))

    for T in (0.5, 1.0, 2.0):
        print(T, rates.df(T), [vols[t].equivalent_vol(T) for t in basket.tickers])

    option = OptionSpec(kind=OptionType.PUT, strike=basket.spot_value, maturity=2.0)
    print(compare_pricers({"term_structure": model}, option).to_string(index=False))
    print(convergence_table(model, option).to_string(index=False))


if __name__ == "__main__":
    main()
