"""
Series transformations: CPI reconstruction, per-capita output, logs and
annualized growth rates.
"""

import numpy as np
import pandas as pd

from .config import BASELINE_ORDERING, COVID_CUTOFF
from .logger import logger


def reconstruct_cpi(
    cpi: pd.Series,
    manual_inflation: pd.Series,
) -> tuple[pd.Series, pd.Series]:
    """
    Fill missing CPI quarters from year-over-year inflation.

    For each quarter t with missing CPI and known inflation pi_t (in %):
        cpi_t = cpi_{t-4} * (1 + pi_t / 100)

    Quarters are filled in chronological order, so reconstructed values can
    serve as the base for later quarters. Observed CPI is never overwritten.

    Args:
        cpi: Quarterly CPI index
        manual_inflation: Quarterly year-over-year inflation (%)

    Returns:
        Tuple of (patched CPI, boolean mask of reconstructed quarters)
    """
    if not isinstance(cpi.index, pd.PeriodIndex):
        raise ValueError("cpi must be indexed by a quarterly PeriodIndex")

    inflation = manual_inflation.reindex(cpi.index)
    patched = cpi.astype(float).copy()
    mask = pd.Series(False, index=cpi.index, name="cpi_patched")

    positions = {quarter: i for i, quarter in enumerate(cpi.index)}
    values = patched.to_numpy(copy=True)

    for i, quarter in enumerate(cpi.index):
        if not np.isnan(values[i]) or np.isnan(inflation.iloc[i]):
            continue

        base = positions.get(quarter - 4)
        if base is None or np.isnan(values[base]):
            logger.warning(f"Cannot reconstruct CPI for {quarter}: no base value four quarters earlier")
            continue

        values[i] = values[base] * (1 + inflation.iloc[i] / 100)
        mask.iloc[i] = True

    patched = pd.Series(values, index=cpi.index, name=cpi.name)

    if mask.any():
        logger.info(
            f"Reconstructed CPI for {mask.sum()} quarters "
            f"({mask[mask].index.min()} - {mask[mask].index.max()})"
        )

    return patched, mask


def annualized_growth(series: pd.Series, periods: int = 1) -> pd.Series:
    """
    Annualized quarterly growth rate in percent.

    growth_t = (400 / periods) * (log x_t - log x_{t-periods})

    Args:
        series: Quarterly level series (strictly positive)
        periods: Difference span in quarters

    Returns:
        Growth rate series
    """
    if periods < 1:
        raise ValueError("periods must be at least 1")

    if (series.dropna() <= 0).any():
        raise ValueError("growth rates require strictly positive levels")

    return (400.0 / periods) * np.log(series).diff(periods)


def add_per_capita(df: pd.DataFrame) -> pd.DataFrame:
    """Add real GDP per capita."""
    df = df.copy()
    df["gdp_per_capita"] = df["real_gdp"] / df["population"]
    return df


def add_log_levels(df: pd.DataFrame) -> pd.DataFrame:
    """Add log levels of GDP per capita and CPI."""
    df = df.copy()
    df["log_gdp_per_capita"] = np.log(df["gdp_per_capita"])
    df["log_cpi"] = np.log(df["cpi"])
    return df


def add_sample_flags(
    df: pd.DataFrame,
    variables: list[str] | None = None,
    covid_cutoff: str = COVID_CUTOFF,
) -> pd.DataFrame:
    """
    Flag rows usable for estimation.

    Args:
        df: Quarterly analysis frame
        variables: Columns that must be observed (defaults to baseline SVAR variables)
        covid_cutoff: Last quarter of the pre-COVID subsample

    Returns:
        Copy of df with `in_sample` and `pre_covid` boolean columns
    """
    if variables is None:
        variables = BASELINE_ORDERING

    missing_cols = [c for c in variables if c not in df.columns]
    if missing_cols:
        raise ValueError(f"Missing required columns: {missing_cols}")

    df = df.copy()
    df["in_sample"] = df[variables].notna().all(axis=1)
    df["pre_covid"] = df["in_sample"] & (df.index <= pd.Period(covid_cutoff, freq="Q"))

    return df


def longest_contiguous_run(data: pd.DataFrame) -> pd.DataFrame:
    """
    Keep the longest run of consecutive quarters.

    Rows selected by a sample flag may have holes; time-series estimators
    would otherwise treat the quarters on either side of a hole as adjacent.

    Args:
        data: Frame indexed by a quarterly PeriodIndex

    Returns:
        The longest gap-free slice of `data` (earliest run on ties)
    """
    if not isinstance(data.index, pd.PeriodIndex) or len(data) < 2:
        return data

    breaks = np.flatnonzero(np.diff(data.index.asi8) != 1) + 1
    if not len(breaks):
        return data

    runs = np.split(np.arange(len(data)), breaks)
    longest = max(runs, key=len)
    logger.warning(
        f"Sample has {len(breaks)} gap(s); using "
        f"{data.index[longest[0]]} - {data.index[longest[-1]]}"
    )

    return data.iloc[longest]


def select_sample(df: pd.DataFrame, sample: str | None = "in_sample") -> pd.DataFrame:
    """
    Rows flagged by `sample`, reduced to their longest contiguous run.

    Args:
        df: Analysis frame
        sample: Boolean column selecting rows (None keeps every row)

    Returns:
        Gap-free slice of df
    """
    if sample is None:
        return longest_contiguous_run(df)

    if sample not in df.columns:
        raise ValueError(f"Sample flag '{sample}' not in DataFrame")

    return longest_contiguous_run(df[df[sample].astype(bool)])


def build_analysis_frame(
    raw: pd.DataFrame,
    covid_cutoff: str = COVID_CUTOFF,
) -> pd.DataFrame:
    """
    Run the full transformation chain on the raw quarterly table.

    Args:
        raw: Output of assemble_dataset
        covid_cutoff: Last quarter of the pre-COVID subsample

    Returns:
        Analysis frame with patched CPI, per-capita GDP, logs, growth rates
        and sample flags
    """
    required_cols = ["cpi", "real_gdp", "interest_rate", "population"]
    missing_cols = [c for c in required_cols if c not in raw.columns]
    if missing_cols:
        raise ValueError(f"Missing required columns: {missing_cols}")

    df = raw.copy()

    if "manual_inflation" in df.columns:
        df["cpi"], df["cpi_patched"] = reconstruct_cpi(df["cpi"], df["manual_inflation"])
    else:
        df["cpi_patched"] = False

    df = add_per_capita(df)
    df = add_log_levels(df)

    df["gdp_growth"] = annualized_growth(df["gdp_per_capita"])
    df["inflation"] = annualized_growth(df["cpi"])

    df = add_sample_flags(df, covid_cutoff=covid_cutoff)

    logger.info(
        f"Analysis frame: {df['in_sample'].sum()} usable quarters "
        f"({df['pre_covid'].sum()} pre-COVID)"
    )

    return df
