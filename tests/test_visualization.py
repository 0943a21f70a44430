"""Tests for figure helpers."""

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt

from monetary_svar.visualization import label, plot_series


class TestLabel:
    """Tests for the label function."""

    def test_known_variable(self):
        assert label("interest_rate") == "Interest rate"

    def test_unknown_variable_falls_back(self):
        assert label("log_cpi") == "log_cpi"


class TestPlotSeries:
    """Tests for the plot_series function."""

    def test_panel_titles_and_country(self, analysis_frame):
        fig, axes = plot_series(analysis_frame)

        assert [ax.get_title() for ax in axes] == [
            "Real GDP per capita growth", "CPI inflation", "Interest rate"
        ]
        assert fig._suptitle.get_text() == "Poland: SVAR variables"
        plt.close(fig)
