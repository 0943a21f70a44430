"""
Data loading utilities for the monetary policy SVAR.
Fetches macro series from FRED and the World Bank and reads the manual
inflation file used to patch recent CPI quarters.
"""

from pathlib import Path

import numpy as np
import pandas as pd
import wbgapi as wb
from fredapi import Fred
from scipy.interpolate import PchipInterpolator

from .config import (
    COUNTRY,
    FRED_AGGREGATION,
    FRED_API_KEY,
    FRED_SERIES,
    MANUAL_INFLATION_PATH,
    SAMPLE_END,
    SAMPLE_START,
    WB_POPULATION,
)
from .logger import logger

MONTHS = ["jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec"]


class DataFetchError(RuntimeError):
    """Raised when a remote data source cannot deliver a series."""


def _month_number(label) -> int | None:
    """Map a column header ("Jan", "january", "1", 1) to a month number."""
    text = str(label).strip().lower()
    if text.isdigit():
        number = int(text)
        return number if 1 <= number <= 12 else None
    if text[:3] in MONTHS:
        return MONTHS.index(text[:3]) + 1
    return None


def _to_numeric(values: pd.Series) -> pd.Series:
    """Parse numbers that may carry decimal commas or percent signs."""
    if values.dtype == object:
        values = (
            values.astype(str)
            .str.replace("%", "", regex=False)
            .str.replace(",", ".", regex=False)
            .str.strip()
        )
    return pd.to_numeric(values, errors="coerce")


def load_manual_inflation(filepath: str | Path) -> pd.Series:
    """
    Load manually supplied monthly inflation and reshape it to quarters.

    Two layouts are accepted:
      - wide: one row per year, a "year" column and one column per month
        (Jan..Dec or 1..12)
      - long: "date" and "value" columns, one row per month

    Args:
        filepath: Path to the CSV file

    Returns:
        Quarterly year-over-year inflation (%) on a quarterly PeriodIndex.
        Quarters with fewer than three monthly observations are dropped.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the layout cannot be recognised
    """
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"Manual inflation file not found: {filepath}")

    df = pd.read_csv(filepath)
    columns = {str(c).strip().lower(): c for c in df.columns}

    if "date" in columns and "value" in columns:
        dates = pd.to_datetime(df[columns["date"]], errors="coerce")
        monthly = pd.Series(
            _to_numeric(df[columns["value"]]).values,
            index=dates.dt.to_period("M"),
        )
        monthly = monthly[monthly.index.notna()]
    else:
        year_col = columns.get("year", df.columns[0])
        month_cols = {c: _month_number(c) for c in df.columns if c != year_col}
        month_cols = {c: m for c, m in month_cols.items() if m is not None}

        if not month_cols:
            raise ValueError(
                f"No month columns found in {filepath}; expected Jan..Dec or 1..12"
            )

        # Reshape from wide to long format
        long = df[[year_col] + list(month_cols)].melt(
            id_vars=[year_col], var_name="month", value_name="value"
        )
        long["month"] = long["month"].map(month_cols)
        long["year"] = pd.to_numeric(long[year_col], errors="coerce")
        long = long.dropna(subset=["year"])

        dates = pd.to_datetime(
            pd.DataFrame({"year": long["year"].astype(int), "month": long["month"], "day": 1})
        )
        monthly = pd.Series(
            _to_numeric(long["value"]).values,
            index=dates.dt.to_period("M"),
        )

    monthly = monthly.dropna().sort_index()

    if monthly.index.has_duplicates:
        raise ValueError(f"Duplicate months in {filepath}")

    if monthly.empty:
        raise ValueError(f"No inflation values found in {filepath}")

    quarters = monthly.index.asfreq("Q")
    grouped = monthly.groupby(quarters)
    quarterly = grouped.mean()[grouped.count() == 3]

    quarterly.index = pd.PeriodIndex(quarterly.index, freq="Q", name="quarter")
    quarterly.name = "manual_inflation"

    logger.info(
        f"Loaded manual inflation: {len(monthly)} months -> {len(quarterly)} quarters"
    )

    return quarterly


def fetch_fred_series(
    series_id: str,
    start: str = SAMPLE_START,
    end: str = SAMPLE_END,
    api_key: str | None = None,
) -> pd.Series:
    """
    Fetch a single series from FRED.

    Args:
        series_id: FRED series identifier
        start: First quarter (e.g. "1996Q1") or date
        end: Last quarter (e.g. "2024Q4") or date
        api_key: FRED API key (defaults to FRED_API_KEY from the environment)

    Returns:
        Series with a DatetimeIndex

    Raises:
        DataFetchError: If the key is missing, the request fails or returns nothing
    """
    api_key = api_key or FRED_API_KEY
    if not api_key:
        raise DataFetchError(
            "FRED API key required. Set FRED_API_KEY environment variable "
            "or pass api_key parameter."
        )

    start_date = pd.Period(start, freq="Q").start_time.strftime("%Y-%m-%d")
    end_date = pd.Period(end, freq="Q").end_time.strftime("%Y-%m-%d")

    try:
        data = Fred(api_key=api_key).get_series(
            series_id,
            observation_start=start_date,
            observation_end=end_date,
        )
    except Exception as e:
        raise DataFetchError(f"Error fetching {series_id} from FRED: {e}") from e

    if data is None or data.dropna().empty:
        raise DataFetchError(f"No data returned for {series_id}")

    data.name = series_id
    logger.info(f"Fetched {series_id}: {data.notna().sum()} obs")

    return data


def fetch_population(
    country: str = COUNTRY,
    start_year: int = 1990,
    end_year: int = 2024,
) -> pd.Series:
    """
    Fetch annual population from the World Bank.

    Args:
        country: ISO3 country code
        start_year: First year
        end_year: Last year

    Returns:
        Annual population indexed by integer year

    Raises:
        DataFetchError: If the World Bank request fails or returns nothing
    """
    try:
        df = wb.data.DataFrame(
            WB_POPULATION,
            economy=[country],
            time=range(start_year, end_year + 1),
        )
    except Exception as e:
        raise DataFetchError(f"Error fetching population for {country}: {e}") from e

    # wbgapi returns country as index, years as columns (YR1990, YR1991, etc.)
    df = df.reset_index()
    df = df.melt(id_vars=["economy"], var_name="year", value_name="population")
    df["year"] = df["year"].str.replace("YR", "").astype(int)

    population = df.set_index("year")["population"].sort_index().dropna()

    if population.empty:
        raise DataFetchError(f"No population data returned for {country}")

    population.name = "population"
    logger.info(f"Fetched population: {len(population)} years")

    return population


def _is_monthly(index: pd.Index) -> bool:
    if isinstance(index, pd.PeriodIndex):
        return index.freqstr.startswith("M")
    if len(index) < 3:
        return False
    gaps = np.diff(index.values).astype("timedelta64[D]").astype(int)
    return 27 <= np.median(gaps) <= 31


def to_quarterly(series: pd.Series, how: str = "mean") -> pd.Series:
    """
    Convert a daily, monthly or quarterly series to a quarterly PeriodIndex.

    Monthly series keep only quarters with all three months observed.

    Args:
        series: Series with a DatetimeIndex or PeriodIndex
        how: "mean" to average within the quarter, "last" for end of quarter

    Returns:
        Quarterly series
    """
    if how not in ("mean", "last"):
        raise ValueError(f"how must be 'mean' or 'last', got '{how}'")

    series = series.dropna()
    index = series.index

    if isinstance(index, pd.PeriodIndex):
        quarters = index.asfreq("Q")
    elif isinstance(index, pd.DatetimeIndex):
        quarters = index.to_period("Q")
    else:
        raise ValueError("series must have a DatetimeIndex or PeriodIndex")

    grouped = series.groupby(quarters)
    quarterly = grouped.mean() if how == "mean" else grouped.last()

    if _is_monthly(index):
        quarterly = quarterly[grouped.count() == 3]

    quarterly.index = pd.PeriodIndex(quarterly.index, freq="Q", name="quarter")

    return quarterly


def _extrapolate(values: np.ndarray, x_new: np.ndarray, x_known: np.ndarray, y_known: np.ndarray):
    """Fill values outside the annual span with the nearest annual growth rate."""
    if len(x_known) == 1:
        values[np.isnan(values)] = y_known[0]
        return values

    growth_head = y_known[1] / y_known[0]
    growth_tail = y_known[-1] / y_known[-2]

    before = x_new < x_known[0]
    after = x_new > x_known[-1]

    values[before] = y_known[0] * growth_head ** ((x_new[before] - x_known[0]) / 4)
    values[after] = y_known[-1] * growth_tail ** ((x_new[after] - x_known[-1]) / 4)

    return values


def interpolate_population(
    annual: pd.Series,
    index: pd.PeriodIndex,
    method: str = "linear",
) -> pd.Series:
    """
    Interpolate annual population onto a quarterly index.

    Each annual value is treated as a mid-year (Q2) observation.

    Args:
        annual: Population indexed by integer year
        index: Target quarterly PeriodIndex
        method: "linear" or "pchip"

    Returns:
        Quarterly population on `index`
    """
    if method not in ("linear", "pchip"):
        raise ValueError(f"method must be 'linear' or 'pchip', got '{method}'")

    annual = annual.dropna().sort_index()
    if annual.empty:
        raise ValueError("annual population series is empty")

    x_known = np.array([pd.Period(f"{int(year)}Q2", freq="Q").ordinal for year in annual.index])
    y_known = annual.values.astype(float)
    x_new = np.asarray(index.asi8)

    values = np.full(len(x_new), np.nan)
    inside = (x_new >= x_known[0]) & (x_new <= x_known[-1])

    if len(x_known) > 1:
        if method == "pchip":
            values[inside] = PchipInterpolator(x_known, y_known)(x_new[inside])
        else:
            values[inside] = np.interp(x_new[inside], x_known, y_known)

    values = _extrapolate(values, x_new, x_known, y_known)

    return pd.Series(values, index=index, name="population")


def align_quarterly(
    frames: dict[str, pd.Series],
    start: str | None = None,
    end: str | None = None,
) -> pd.DataFrame:
    """
    Align quarterly series onto one contiguous quarterly index.

    Args:
        frames: Mapping of column name to quarterly series
        start: First quarter (defaults to earliest observation)
        end: Last quarter (defaults to latest observation)

    Returns:
        DataFrame indexed by quarter
    """
    if not frames:
        raise ValueError("frames must contain at least one series")

    observed = [s.index for s in frames.values() if len(s)]
    if start is None:
        start = min(idx.min() for idx in observed)
    if end is None:
        end = max(idx.max() for idx in observed)

    index = pd.period_range(start=start, end=end, freq="Q", name="quarter")

    return pd.DataFrame({name: s.reindex(index) for name, s in frames.items()}, index=index)


def assemble_dataset(
    inflation_path: str | Path | None = MANUAL_INFLATION_PATH,
    start: str = SAMPLE_START,
    end: str = SAMPLE_END,
    country: str = COUNTRY,
    api_key: str | None = None,
    save_path: str | Path | None = None,
) -> pd.DataFrame:
    """
    Assemble the quarterly macro table.

    Args:
        inflation_path: Path to the manual inflation CSV (skipped if missing)
        start: First quarter
        end: Last quarter
        country: ISO3 country code for population
        api_key: FRED API key
        save_path: Path to save assembled data

    Returns:
        DataFrame with cpi, real_gdp, interest_rate, population and
        manual_inflation on a quarterly index

    Raises:
        DataFetchError: If any download fails
    """
    series = {}

    logger.info("Fetching FRED data...")
    for name, series_id in FRED_SERIES.items():
        raw = fetch_fred_series(series_id, start=start, end=end, api_key=api_key)
        series[name] = to_quarterly(raw, how=FRED_AGGREGATION.get(name, "mean"))

    logger.info("Fetching World Bank population...")
    start_year = pd.Period(start, freq="Q").year
    end_year = pd.Period(end, freq="Q").year
    annual_population = fetch_population(country, start_year - 1, end_year)

    if inflation_path is not None and Path(inflation_path).exists():
        series["manual_inflation"] = load_manual_inflation(inflation_path)
    else:
        logger.warning(f"Manual inflation file not found ({inflation_path}); CPI will not be patched")
        series["manual_inflation"] = pd.Series(dtype=float)

    df = align_quarterly(series, start=start, end=end)
    df["population"] = interpolate_population(annual_population, df.index)
    df = df[["cpi", "real_gdp", "interest_rate", "population", "manual_inflation"]]

    if save_path is not None:
        Path(save_path).parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(save_path)
        logger.info(f"Data saved to {save_path}")

    logger.info(f"Quarterly data assembled: {len(df)} quarters")
    logger.info(f"Quarters: {df.index.min()} - {df.index.max()}")

    return df


def load_dataset(filepath: str | Path) -> pd.DataFrame:
    """
    Load a table saved by assemble_dataset, restoring the quarterly index.

    Args:
        filepath: Path to the CSV file

    Returns:
        DataFrame indexed by quarter
    """
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"File not found: {filepath}")

    df = pd.read_csv(filepath)
    df.index = pd.PeriodIndex(df.pop("quarter"), freq="Q", name="quarter")

    return df
