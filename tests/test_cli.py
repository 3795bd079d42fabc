import logging

import numpy as np
import pandas as pd
import pytest

from basket_pricing.__main__ import main, parse_args, run


@pytest.fixture
def prices_csv(tmp_path):
    rng = np.random.default_rng(3)
    n = 300
    rets = rng.normal(0.0, 0.012, size=(n, 3))
    px = np.array([40.0, 120.0, 75.0]) * np.exp(np.cumsum(rets, axis=0))
    df = pd.DataFrame(px, columns=["AI.PA", "OR.PA", "MC.PA"])
    df.insert(0, "Date", pd.bdate_range("2023-01-02", periods=n).strftime("%Y-%m-%d"))
    path = tmp_path / "prices.csv"
    df.to_csv(path, index=False)
    return path


def test_parse_args_defaults(prices_csv):
    args = parse_args([str(prices_csv)])
    assert args.maturity == 1.0
    assert args.kind == "call"
    assert args.strike is None
    assert args.zero_rate == []


def test_parse_zero_rates(prices_csv):
    argv = [str(prices_csv), "--zero-rate", "0.5:0.02", "--zero-rate", "2:0.03"]
    args = parse_args(argv)
    assert args.zero_rate == [(0.5, 0.02), (2.0, 0.03)]


def test_bad_zero_rate_is_a_usage_error(prices_csv):
    with pytest.raises(SystemExit):
        parse_args([str(prices_csv), "--zero-rate", "one-year"])


def test_main_prints_comparison(prices_csv, capsys):
    code = main(
        [
            str(prices_csv),
            "--tickers",
            "AI.PA,OR.PA",
            "--kind",
            "put",
            "--paths",
            "5000",
            "--zero-rate",
            "1:0.03",
            "--window",
            "126",
        ]
    )
    out = capsys.readouterr().out

    assert code == 0
    assert "constant" in out
    assert "term_structure" in out
    assert "MC-MM" in out


def test_main_reports_errors(prices_csv, tmp_path, caplog):
    with caplog.at_level(logging.ERROR):
        assert main([str(prices_csv), "--paths", "500"]) == 2
        assert main([str(tmp_path / "missing.csv")]) == 2
        assert main([str(prices_csv), "--tickers", "XX.PA"]) == 2
    assert "Pricing failed" in caplog.text


@pytest.fixture
def vol_curves_csv(tmp_path):
    path = tmp_path / "vols.csv"
    path.write_text(
        "Ticker,Expiry,ATMVolPct\n"
        "AI.PA,0.25,21\n"
        "AI.PA,1.0,23\n"
        "AI.PA,2.0,24%\n"
        "OR.PA,0.5,25\n"
        "OR.PA,2.0,27\n"
    )
    return path


@pytest.fixture
def rate_curve_csv(tmp_path):
    path = tmp_path / "rates.csv"
    path.write_text("Tenor,Yield\n3M,2.8\n1Y,3.0\n5Y,3.2\n")
    return path


def test_windowed_constant_models(prices_csv):
    table, vol_table = run(parse_args([str(prices_csv), "--paths", "5000"]))

    assert list(table["model"]) == ["constant", "constant_6m", "constant_1y"]
    assert vol_table is None
    # same rate and basket level, different estimation windows
    assert table["MM"].nunique() == 3


def test_implied_vol_curves_are_compared_with_history(
    prices_csv, vol_curves_csv, rate_curve_csv, capsys
):
    argv = [
        str(prices_csv),
        "--tickers",
        "AI.PA,OR.PA",
        "--paths",
        "5000",
        "--rate-curve",
        str(rate_curve_csv),
        "--vol-curves",
        str(vol_curves_csv),
    ]
    table, vol_table = run(parse_args(argv))

    assert "term_structure" in list(table["model"])
    assert set(vol_table["ticker"]) == {"AI.PA", "OR.PA"}
    ai = vol_table.set_index("ticker").loc["AI.PA"]
    assert ai["vol_implied_eq"] == pytest.approx(0.22, abs=0.01)

    assert main(argv) == 0
    out = capsys.readouterr().out
    assert "Historical vs implied-equivalent vol" in out
    assert "vol_implied_eq" in out


def test_missing_implied_curve_falls_back_to_flat(prices_csv, vol_curves_csv, caplog):
    argv = [str(prices_csv), "--paths", "5000", "--vol-curves", str(vol_curves_csv)]
    with caplog.at_level(logging.WARNING):
        table, vol_table = run(parse_args(argv))

    assert "MC.PA" in caplog.text
    assert "flat historical vol" in caplog.text
    assert vol_table is None
    ts = table.set_index("model")
    # flat historical curves and a flat discount curve reproduce the constant model
    assert ts.loc["term_structure", "MM"] == pytest.approx(
        ts.loc["constant", "MM"], rel=1e-9
    )


def test_unreadable_vol_curves_fall_back(prices_csv, tmp_path, caplog):
    missing = tmp_path / "no.csv"
    argv = [str(prices_csv), "--paths", "5000", "--vol-curves", str(missing)]
    with caplog.at_level(logging.WARNING):
        assert main(argv) == 0
    assert "Falling back" in caplog.text


def test_zero_rates_and_rate_curve_are_exclusive(prices_csv, rate_curve_csv):
    with pytest.raises(SystemExit):
        parse_args(
            [
                str(prices_csv),
                "--zero-rate",
                "1:0.03",
                "--rate-curve",
                str(rate_curve_csv),
            ]
        )
