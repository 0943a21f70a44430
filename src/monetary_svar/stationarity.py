"""
Unit-root and stationarity tests for the SVAR variables.
"""

import warnings
from typing import NamedTuple

import pandas as pd
from statsmodels.tools.sm_exceptions import InterpolationWarning
from statsmodels.tsa.stattools import adfuller, kpss

from .config import SIGNIFICANCE, UNIT_ROOT_COLUMNS
from .transforms import longest_contiguous_run, select_sample


class UnitRootResult(NamedTuple):
    """Container for a single unit-root / stationarity test."""

    series: str
    test: str  # "ADF" or "KPSS"
    statistic: float
    p_value: float
    lags: int
    nobs: int
    critical_values: dict[str, float]
    stationary: bool  # Conclusion at the chosen significance level


def adf_test(
    series: pd.Series,
    regression: str = "c",
    autolag: str | None = "AIC",
    significance: float = SIGNIFICANCE,
) -> UnitRootResult:
    """
    Augmented Dickey-Fuller test (null: unit root).

    Args:
        series: Time series to test (missing values are dropped)
        regression: Deterministic terms ("c", "ct", "ctt", "n")
        autolag: Lag selection criterion passed to adfuller
        significance: Level at which to reject the null

    Returns:
        UnitRootResult
    """
    if not 0 < significance < 1:
        raise ValueError("Significance must be between 0 and 1")

    data = series.dropna()
    if len(data) < 10:
        raise ValueError(f"Series '{series.name}' has too few observations ({len(data)})")

    statistic, p_value, lags, nobs, critical_values, *_ = adfuller(
        data, regression=regression, autolag=autolag
    )

    return UnitRootResult(
        series=str(series.name),
        test="ADF",
        statistic=float(statistic),
        p_value=float(p_value),
        lags=int(lags),
        nobs=int(nobs),
        critical_values=dict(critical_values),
        stationary=bool(p_value < significance),
    )


def kpss_test(
    series: pd.Series,
    regression: str = "c",
    significance: float = SIGNIFICANCE,
) -> UnitRootResult:
    """
    KPSS test (null: stationarity).

    statsmodels truncates KPSS p-values to [0.01, 0.1] and warns when it
    does; the warning is silenced here.

    Args:
        series: Time series to test (missing values are dropped)
        regression: "c" (level) or "ct" (trend) stationarity
        significance: Level at which to reject the null

    Returns:
        UnitRootResult
    """
    if not 0 < significance < 1:
        raise ValueError("Significance must be between 0 and 1")

    data = series.dropna()
    if len(data) < 10:
        raise ValueError(f"Series '{series.name}' has too few observations ({len(data)})")

    with warnings.catch_warnings():
        warnings.simplefilter("ignore", InterpolationWarning)
        statistic, p_value, lags, critical_values = kpss(data, regression=regression, nlags="auto")

    return UnitRootResult(
        series=str(series.name),
        test="KPSS",
        statistic=float(statistic),
        p_value=float(p_value),
        lags=int(lags),
        nobs=len(data),
        critical_values=dict(critical_values),
        stationary=bool(p_value >= significance),
    )


def run_unit_root_tests(
    df: pd.DataFrame,
    columns: list[str] | None = None,
    significance: float = SIGNIFICANCE,
    include_kpss: bool = True,
    sample: str | None = None,
) -> pd.DataFrame:
    """
    Run ADF (and optionally KPSS) on each column.

    Args:
        df: Analysis frame
        columns: Columns to test (defaults to UNIT_ROOT_COLUMNS present in df)
        significance: Test level
        include_kpss: Also run the KPSS test
        sample: Boolean column selecting rows (None keeps every row); the
            flagged rows are cut to their longest run of consecutive quarters

    Returns:
        Summary table with one row per series and test
    """
    if columns is None:
        columns = [c for c in UNIT_ROOT_COLUMNS if c in df.columns]

    missing_cols = [c for c in columns if c not in df.columns]
    if missing_cols:
        raise ValueError(f"Missing required columns: {missing_cols}")

    if sample is not None:
        df = select_sample(df, sample)

    rows = []
    for col in columns:
        series = longest_contiguous_run(df[[col]].dropna())[col].rename(col)

        results = [adf_test(series, significance=significance)]
        if include_kpss:
            results.append(kpss_test(series, significance=significance))

        for result in results:
            rows.append({
                "series": result.series,
                "test": result.test,
                "statistic": result.statistic,
                "p_value": result.p_value,
                "lags": result.lags,
                "nobs": result.nobs,
                "crit_5%": result.critical_values.get("5%"),
                "stationary": result.stationary,
            })

    return pd.DataFrame(rows)
