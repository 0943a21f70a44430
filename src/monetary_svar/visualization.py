"""
Visualization functions for the monetary policy SVAR.
"""

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

from .config import (
    COUNTRY_NAME,
    COVID_CUTOFF,
    POLICY_VARIABLE,
    VARIABLE_LABELS,
)
from .svar import SVARResult


def setup_style():
    """Set up matplotlib style for publication-quality figures."""
    plt.style.use("seaborn-v0_8-whitegrid")
    plt.rcParams.update({
        "figure.figsize": (10, 6),
        "figure.dpi": 100,
        "font.size": 11,
        "axes.labelsize": 12,
        "axes.titlesize": 14,
        "legend.fontsize": 10,
        "xtick.labelsize": 10,
        "ytick.labelsize": 10,
        "lines.linewidth": 2,
    })


def label(variable: str) -> str:
    """Axis label for a variable, falling back to the column name."""
    return VARIABLE_LABELS.get(variable, variable)


def plot_series(
    df: pd.DataFrame,
    columns: list[str] | None = None,
    title: str = f"{COUNTRY_NAME}: SVAR variables",
    save_path: str | None = None,
):
    """
    Plot the transformed series, marking reconstructed CPI quarters.

    Args:
        df: Analysis frame from build_analysis_frame
        columns: Series to plot (one panel each)
        title: Figure title
        save_path: Path to save figure
    """
    if columns is None:
        columns = ["gdp_growth", "inflation", POLICY_VARIABLE]

    setup_style()
    fig, axes = plt.subplots(len(columns), 1, figsize=(10, 3 * len(columns)), sharex=True)
    axes = np.atleast_1d(axes)

    dates = df.index.to_timestamp()
    covid = pd.Period(COVID_CUTOFF, freq="Q").end_time

    for ax, col in zip(axes, columns):
        ax.plot(dates, df[col], "b-", linewidth=1.8)

        if col == "inflation" and "cpi_patched" in df.columns:
            patched = df["cpi_patched"].astype(bool).to_numpy()
            ax.scatter(
                dates[patched],
                df.loc[patched, col],
                color="indianred",
                zorder=3,
                label="Reconstructed CPI",
            )
            if patched.any():
                ax.legend(loc="upper left")

        ax.axvline(x=covid, color="black", linestyle=":", alpha=0.7)
        ax.axhline(y=0, color="black", alpha=0.3)
        ax.set_ylabel("%")
        ax.set_title(label(col))

    axes[-1].set_xlabel("Quarter")
    fig.suptitle(title, fontsize=14, fontweight="bold")
    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=300, bbox_inches="tight")

    return fig, axes


def plot_irf(
    result: SVARResult,
    cumulative: bool = False,
    title: str | None = None,
    save_path: str | None = None,
):
    """
    Plot the k x k grid of structural impulse responses with error bands.

    Rows are responses, columns are shocks.

    Args:
        result: SVARResult from fit_recursive_svar
        cumulative: Plot cumulative responses (no bands)
        title: Figure title
        save_path: Path to save figure
    """
    setup_style()
    k = len(result.ordering)
    fig, axes = plt.subplots(k, k, figsize=(4 * k, 3 * k), sharex=True, squeeze=False)

    irf = result.cumulative_irf if cumulative else result.irf
    horizons = np.arange(irf.shape[0])

    for i, response in enumerate(result.ordering):
        for j, shock in enumerate(result.ordering):
            ax = axes[i, j]
            ax.plot(horizons, irf[:, i, j], "b-", linewidth=2)

            if not cumulative:
                ax.fill_between(
                    horizons,
                    result.irf_lower[:, i, j],
                    result.irf_upper[:, i, j],
                    color="gray",
                    alpha=0.3,
                )

            ax.axhline(y=0, color="black", alpha=0.5, linewidth=1)
            ax.set_title(f"{shock} -> {response}", fontsize=10)

            if i == k - 1:
                ax.set_xlabel("Quarters")

    if title is None:
        kind = "Cumulative impulse responses" if cumulative else "Impulse responses"
        title = f"{kind}: {result.name}"

    fig.suptitle(title, fontsize=14, fontweight="bold")
    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=300, bbox_inches="tight")

    return fig, axes


def plot_policy_shock(
    results: dict[str, SVARResult],
    shock: str = POLICY_VARIABLE,
    title: str = "Responses to a monetary policy shock",
    save_path: str | None = None,
):
    """
    Compare responses to the policy shock across SVAR variants.

    Args:
        results: Dictionary of SVARResult by variant name
        shock: Shock variable
        title: Figure title
        save_path: Path to save figure
    """
    setup_style()

    first = next(iter(results.values()))
    responses = first.ordering
    fig, axes = plt.subplots(1, len(responses), figsize=(5 * len(responses), 5))
    axes = np.atleast_1d(axes)

    colors = plt.cm.Set1(np.linspace(0, 1, max(len(results), 2)))

    for (name, result), color in zip(results.items(), colors):
        j = result.ordering.index(shock)
        horizons = np.arange(result.irf.shape[0])

        for ax, response in zip(axes, responses):
            i = result.ordering.index(response)
            ax.plot(horizons, result.irf[:, i, j], color=color, label=name)
            ax.fill_between(
                horizons,
                result.irf_lower[:, i, j],
                result.irf_upper[:, i, j],
                color=color,
                alpha=0.12,
            )

    for ax, response in zip(axes, responses):
        ax.axhline(y=0, color="black", alpha=0.5, linewidth=1)
        ax.set_title(label(response))
        ax.set_xlabel("Quarters")

    axes[0].legend(loc="best")
    fig.suptitle(title, fontsize=14, fontweight="bold")
    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=300, bbox_inches="tight")

    return fig, axes


def plot_fevd(
    result: SVARResult,
    title: str | None = None,
    save_path: str | None = None,
):
    """
    Stacked forecast error variance decomposition for each variable.

    Args:
        result: SVARResult from fit_recursive_svar
        title: Figure title
        save_path: Path to save figure
    """
    setup_style()
    k = len(result.ordering)
    fig, axes = plt.subplots(1, k, figsize=(5 * k, 5), sharey=True)
    axes = np.atleast_1d(axes)

    horizons = np.arange(1, result.fevd.shape[1] + 1)
    colors = plt.cm.Set2(np.linspace(0, 1, k))

    for i, (ax, variable) in enumerate(zip(axes, result.ordering)):
        ax.stackplot(
            horizons,
            result.fevd[i].T,
            labels=result.ordering,
            colors=colors,
            alpha=0.85,
        )
        ax.set_title(label(variable))
        ax.set_xlabel("Quarters")
        ax.set_ylim(0, 1)

    axes[0].set_ylabel("Share of forecast error variance")
    axes[-1].legend(loc="lower right")

    fig.suptitle(title or f"Variance decomposition: {result.name}", fontsize=14, fontweight="bold")
    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=300, bbox_inches="tight")

    return fig, axes
