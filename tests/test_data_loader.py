"""Tests for data loading and quarterly alignment."""

import numpy as np
import pandas as pd
import pytest

from monetary_svar import data_loader
from monetary_svar.data_loader import (
    DataFetchError,
    align_quarterly,
    assemble_dataset,
    fetch_fred_series,
    fetch_population,
    interpolate_population,
    load_dataset,
    load_manual_inflation,
    to_quarterly,
)


class TestLoadManualInflation:
    """Tests for the load_manual_inflation function."""

    def test_wide_layout_quarterly_means(self, wide_inflation_csv):
        """Monthly values should be averaged into complete quarters."""
        result = load_manual_inflation(wide_inflation_csv)

        assert isinstance(result.index, pd.PeriodIndex)
        assert result.name == "manual_inflation"
        assert result.loc[pd.Period("2023Q1", freq="Q")] == pytest.approx(2.0)
        assert result.loc[pd.Period("2023Q4", freq="Q")] == pytest.approx(11.0)
        assert result.loc[pd.Period("2024Q1", freq="Q")] == pytest.approx(3.5)

    def test_incomplete_quarter_dropped(self, wide_inflation_csv):
        """A quarter with only one month should not appear."""
        result = load_manual_inflation(wide_inflation_csv)
        assert pd.Period("2024Q2", freq="Q") not in result.index
        assert len(result) == 5

    def test_long_layout(self, tmp_path):
        """date/value files should be accepted."""
        path = tmp_path / "long.csv"
        dates = pd.date_range("2023-01-01", periods=6, freq="MS")
        pd.DataFrame({"date": dates, "value": [1, 2, 3, 4, 5, 6]}).to_csv(path, index=False)

        result = load_manual_inflation(path)
        assert list(result.values) == pytest.approx([2.0, 5.0])

    def test_missing_file(self, tmp_path):
        """Missing file should raise FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_manual_inflation(tmp_path / "nope.csv")

    def test_no_month_columns(self, tmp_path):
        """Unrecognised layout should raise ValueError."""
        path = tmp_path / "bad.csv"
        path.write_text("year,foo,bar\n2023,1,2\n")
        with pytest.raises(ValueError, match="month columns"):
            load_manual_inflation(path)


class TestToQuarterly:
    """Tests for the to_quarterly function."""

    def test_monthly_mean_complete_quarters(self):
        """Monthly series should average to quarters, dropping partial ones."""
        dates = pd.date_range("2020-01-01", periods=7, freq="MS")
        series = pd.Series(np.arange(1, 8, dtype=float), index=dates)

        result = to_quarterly(series)

        assert list(result.index.astype(str)) == ["2020Q1", "2020Q2"]
        assert list(result.values) == pytest.approx([2.0, 5.0])

    def test_monthly_last(self):
        """how='last' should take the end-of-quarter month."""
        dates = pd.date_range("2020-01-01", periods=6, freq="MS")
        series = pd.Series(np.arange(1, 7, dtype=float), index=dates)

        result = to_quarterly(series, how="last")
        assert list(result.values) == pytest.approx([3.0, 6.0])

    def test_quarterly_passthrough(self):
        """Quarterly observations map one-to-one onto quarters."""
        dates = pd.date_range("2020-01-01", periods=4, freq="QS")
        series = pd.Series([1.0, 2.0, 3.0, 4.0], index=dates)

        result = to_quarterly(series)
        assert len(result) == 4
        assert result.index[0] == pd.Period("2020Q1", freq="Q")

    def test_invalid_how(self):
        """Unknown aggregation should raise ValueError."""
        series = pd.Series([1.0], index=pd.date_range("2020-01-01", periods=1))
        with pytest.raises(ValueError):
            to_quarterly(series, how="sum")


class TestInterpolatePopulation:
    """Tests for the interpolate_population function."""

    @pytest.fixture
    def annual(self):
        return pd.Series({2000: 100.0, 2001: 104.0})

    @pytest.fixture
    def quarters(self):
        return pd.period_range("2000Q1", "2001Q4", freq="Q", name="quarter")

    def test_mid_year_anchors(self, annual, quarters):
        """Annual values should sit exactly at Q2."""
        result = interpolate_population(annual, quarters)
        assert result.loc[pd.Period("2000Q2", freq="Q")] == pytest.approx(100.0)
        assert result.loc[pd.Period("2001Q2", freq="Q")] == pytest.approx(104.0)

    def test_linear_between_anchors(self, annual, quarters):
        """Q4 should lie halfway between consecutive mid-year values."""
        result = interpolate_population(annual, quarters)
        assert result.loc[pd.Period("2000Q4", freq="Q")] == pytest.approx(102.0)

    def test_extrapolation_uses_growth(self, annual, quarters):
        """Quarters outside the annual span follow the nearest growth rate."""
        result = interpolate_population(annual, quarters)
        assert result.loc[pd.Period("2000Q1", freq="Q")] == pytest.approx(100 * 1.04 ** -0.25)
        assert result.loc[pd.Period("2001Q4", freq="Q")] == pytest.approx(104 * 1.04 ** 0.5)

    def test_pchip_monotone(self, quarters):
        """PCHIP interpolation should keep a rising population rising."""
        annual = pd.Series({2000: 100.0, 2001: 104.0, 2002: 106.0})
        index = pd.period_range("2000Q2", "2002Q2", freq="Q")
        result = interpolate_population(annual, index, method="pchip")
        assert np.all(np.diff(result.values) > 0)

    def test_no_missing_values(self, annual, quarters):
        result = interpolate_population(annual, quarters)
        assert result.notna().all()

    def test_empty_input(self, quarters):
        with pytest.raises(ValueError):
            interpolate_population(pd.Series(dtype=float), quarters)


class TestAlignQuarterly:
    """Tests for the align_quarterly function."""

    def test_contiguous_index(self):
        """Gaps between series should become NaN rows."""
        a = pd.Series([1.0, 2.0], index=pd.PeriodIndex(["2020Q1", "2020Q2"], freq="Q"))
        b = pd.Series([5.0], index=pd.PeriodIndex(["2020Q4"], freq="Q"))

        result = align_quarterly({"a": a, "b": b})

        assert list(result.index.astype(str)) == ["2020Q1", "2020Q2", "2020Q3", "2020Q4"]
        assert result["a"].isna().sum() == 2
        assert result.loc[pd.Period("2020Q4", freq="Q"), "b"] == 5.0

    def test_explicit_bounds(self):
        a = pd.Series([1.0, 2.0], index=pd.PeriodIndex(["2020Q1", "2020Q2"], freq="Q"))
        result = align_quarterly({"a": a}, start="2019Q4", end="2020Q1")
        assert len(result) == 2


QUARTERLY_IDS = {"CLVMNACSCAB1GQPL"}


class FakeFred:
    """Stand-in for fredapi.Fred."""

    def __init__(self, api_key):
        self.api_key = api_key

    def get_series(self, series_id, observation_start=None, observation_end=None):
        if series_id == "BROKEN":
            raise ValueError("Bad Request. The series does not exist.")
        if series_id == "EMPTY":
            return pd.Series(dtype=float)

        if series_id in QUARTERLY_IDS:
            dates = pd.date_range(observation_start, observation_end, freq="QS")
        else:
            dates = pd.date_range(observation_start, observation_end, freq="MS")
        return pd.Series(np.linspace(100, 120, len(dates)), index=dates)


class TestFetchFredSeries:
    """Tests for the fetch_fred_series function."""

    def test_success(self, monkeypatch):
        monkeypatch.setattr(data_loader, "Fred", FakeFred)
        result = fetch_fred_series("CLVMNACSCAB1GQPL", "2020Q1", "2020Q4", api_key="key")
        assert len(result) == 4
        assert result.name == "CLVMNACSCAB1GQPL"

    def test_missing_key(self, monkeypatch):
        """No API key should abort with DataFetchError."""
        monkeypatch.setattr(data_loader, "Fred", FakeFred)
        monkeypatch.setattr(data_loader, "FRED_API_KEY", None)
        with pytest.raises(DataFetchError, match="API key"):
            fetch_fred_series("CLVMNACSCAB1GQPL", "2020Q1", "2020Q4")

    def test_client_error(self, monkeypatch):
        """Client errors should be wrapped in DataFetchError."""
        monkeypatch.setattr(data_loader, "Fred", FakeFred)
        with pytest.raises(DataFetchError):
            fetch_fred_series("BROKEN", "2020Q1", "2020Q4", api_key="key")

    def test_empty_result(self, monkeypatch):
        monkeypatch.setattr(data_loader, "Fred", FakeFred)
        with pytest.raises(DataFetchError, match="No data"):
            fetch_fred_series("EMPTY", "2020Q1", "2020Q4", api_key="key")


def fake_wb_dataframe(indicator, economy, time):
    years = list(time)
    values = [15e6 + 2e5 * i for i in range(len(years))]
    return pd.DataFrame(
        [values],
        index=pd.Index(economy, name="economy"),
        columns=[f"YR{y}" for y in years],
    )


class TestFetchPopulation:
    """Tests for the fetch_population function."""

    def test_reshape(self, monkeypatch):
        """wbgapi's wide output should become a year-indexed series."""
        monkeypatch.setattr(data_loader.wb.data, "DataFrame", fake_wb_dataframe)
        result = fetch_population("POL", 2000, 2004)

        assert list(result.index) == [2000, 2001, 2002, 2003, 2004]
        assert result.loc[2001] == pytest.approx(15.2e6)

    def test_error_wrapped(self, monkeypatch):
        def boom(*args, **kwargs):
            raise ConnectionError("offline")

        monkeypatch.setattr(data_loader.wb.data, "DataFrame", boom)
        with pytest.raises(DataFetchError):
            fetch_population("POL", 2000, 2004)


class TestAssembleDataset:
    """Tests for the assemble_dataset function."""

    def test_assembles_and_saves(self, monkeypatch, tmp_path, wide_inflation_csv):
        monkeypatch.setattr(data_loader, "Fred", FakeFred)
        monkeypatch.setattr(data_loader.wb.data, "DataFrame", fake_wb_dataframe)

        save_path = tmp_path / "raw" / "macro.csv"
        df = assemble_dataset(
            inflation_path=wide_inflation_csv,
            start="2022Q1",
            end="2024Q4",
            api_key="key",
            save_path=save_path,
        )

        assert list(df.columns) == [
            "cpi", "real_gdp", "interest_rate", "population", "manual_inflation"
        ]
        assert len(df) == 12
        assert df["population"].notna().all()
        assert df.loc[pd.Period("2023Q1", freq="Q"), "manual_inflation"] == pytest.approx(2.0)

        reloaded = load_dataset(save_path)
        assert isinstance(reloaded.index, pd.PeriodIndex)
        pd.testing.assert_frame_equal(reloaded, df, check_freq=False, check_names=False)

    def test_missing_inflation_file(self, monkeypatch, tmp_path):
        """A missing manual file leaves manual_inflation empty."""
        monkeypatch.setattr(data_loader, "Fred", FakeFred)
        monkeypatch.setattr(data_loader.wb.data, "DataFrame", fake_wb_dataframe)

        df = assemble_dataset(
            inflation_path=tmp_path / "missing.csv",
            start="2022Q1",
            end="2022Q4",
            api_key="key",
        )
        assert df["manual_inflation"].isna().all()

    def test_fetch_failure_propagates(self, monkeypatch):
        monkeypatch.setattr(data_loader, "Fred", FakeFred)
        monkeypatch.setattr(data_loader, "FRED_SERIES", {"real_gdp": "BROKEN"})
        with pytest.raises(DataFetchError):
            assemble_dataset(inflation_path=None, start="2022Q1", end="2022Q4", api_key="key")
