from __future__ import annotations


def main() -> None:
    # [START README_QUICKSTART]
    import numpy as np

    from basket_pricing import (
        Asset,
        Basket,
        ConstantParameterModel,
        OptionSpec,
        OptionType,
        geometric_basket_price,
        mc_price,
        mm_price,
    )

    basket = Basket.equally_weighted(
        [
            Asset("AI.PA", spot=160.0, dividend_yield=0.018, vol_const=0.18),
            Asset("OR.PA", spot=410.0, dividend_yield=0.015, vol_const=0.22),
            Asset("MC.PA", spot=690.0, dividend_yield=0.020, vol_const=0.28),
        ]
    )
    corr = np.array([[1.0, 0.55, 0.5], [0.55, 1.0, 0.65], [0.5, 0.65, 1.0]])
    model = ConstantParameterModel(basket, rate=0.03, corr=corr)
    option = OptionSpec(kind=OptionType.CALL, strike=basket.spot_value, maturity=1.0)

    print("MM :", mm_price(model, option).price)
    print("GEO:", geometric_basket_price(model, option).price)

    res = mc_price(model, option, n_paths=200_000, seed=42)
    print("MC :", res.price, "(SE=", res.std_error, ", beta=", res.beta, ")")
    # [END README_QUICKSTART]


if __name__ == "__main__":
    main()
