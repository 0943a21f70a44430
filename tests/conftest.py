"""Pytest fixtures for monetary policy SVAR tests."""

import numpy as np
import pandas as pd
import pytest

# True VAR(1) used to simulate data: gdp_growth, inflation, interest_rate
TRUE_A = np.array([
    [0.5, 0.0, -0.2],
    [0.1, 0.6, 0.0],
    [0.2, 0.3, 0.6],
])
TRUE_P = np.array([
    [1.0, 0.0, 0.0],
    [0.3, 0.8, 0.0],
    [0.2, 0.3, 0.5],
])
TRUE_MEAN = np.array([2.0, 3.0, 4.0])


@pytest.fixture
def analysis_frame():
    """Simulated quarterly analysis frame from a stable recursive VAR(1)."""
    np.random.seed(42)

    index = pd.period_range("1990Q1", "2024Q4", freq="Q", name="quarter")
    T = len(index)

    y = np.zeros((T, 3))
    y[0] = TRUE_MEAN
    for t in range(1, T):
        shock = TRUE_P @ np.random.normal(0, 1, 3)
        y[t] = TRUE_MEAN + TRUE_A @ (y[t - 1] - TRUE_MEAN) + shock

    df = pd.DataFrame(y, index=index, columns=["gdp_growth", "inflation", "interest_rate"])
    df["in_sample"] = True
    df["pre_covid"] = df.index <= pd.Period("2019Q4", freq="Q")

    return df


@pytest.fixture
def true_cpi():
    """Quarterly CPI path with roughly 3% annual inflation."""
    np.random.seed(7)

    index = pd.period_range("2000Q1", "2024Q4", freq="Q", name="quarter")
    growth = 0.0075 + np.random.normal(0, 0.003, len(index))

    return pd.Series(100 * np.exp(np.cumsum(growth)), index=index, name="cpi")


@pytest.fixture
def raw_frame(true_cpi):
    """Raw quarterly table with the last six CPI quarters missing."""
    np.random.seed(11)

    index = true_cpi.index
    T = len(index)

    yoy = (true_cpi / true_cpi.shift(4) - 1) * 100

    cpi = true_cpi.copy()
    cpi.iloc[-6:] = np.nan

    manual = yoy.copy()
    manual.iloc[:-8] = np.nan  # manual figures only cover recent quarters

    return pd.DataFrame({
        "cpi": cpi,
        "real_gdp": 1000 * np.exp(np.cumsum(0.006 + np.random.normal(0, 0.005, T))),
        "interest_rate": 3 + np.random.normal(0, 0.5, T),
        "population": np.linspace(15e6, 19e6, T),
        "manual_inflation": manual,
    }, index=index)


@pytest.fixture
def wide_inflation_csv(tmp_path):
    """Wide manual inflation file with decimal commas and a partial year."""
    path = tmp_path / "manual_inflation.csv"
    path.write_text(
        "Year,Jan,Feb,Mar,Apr,May,Jun,Jul,Aug,Sep,Oct,Nov,Dec\n"
        '2023,"1,0","2,0","3,0","4,0","5,0","6,0","7,0","8,0","9,0","10,0","11,0","12,0"\n'
        '2024,"3,0","3,5","4,0","4,5",,,,,,,,\n'
    )
    return path
