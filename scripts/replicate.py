#!/usr/bin/env python3
"""
Main script for the monetary policy transmission SVAR.

Usage:
    uv run scripts/replicate.py                     # Run full analysis
    uv run scripts/replicate.py --data-only         # Only fetch and save data
    uv run scripts/replicate.py --refresh-data      # Force refresh data from sources
    uv run scripts/replicate.py --lags 2 --horizon 16
    uv run scripts/replicate.py --skip-plots --replications 200
"""

import argparse
import sys
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from monetary_svar.logger import configure_file_logging, logger
from monetary_svar.config import (
    FIGURES_DIR,
    IRF_HORIZON,
    IRF_REPLICATIONS,
    MANUAL_INFLATION_PATH,
    POLICY_VARIABLE,
    PROCESSED_DATA_PATH,
    RANDOM_SEED,
    RAW_DATA_PATH,
    RESULTS_DIR,
    SVAR_VARIANTS,
)
from monetary_svar.data_loader import (
    DataFetchError,
    assemble_dataset,
    load_dataset,
    load_manual_inflation,
)
from monetary_svar.transforms import build_analysis_frame
from monetary_svar.stationarity import run_unit_root_tests
from monetary_svar.svar import (
    fevd_table,
    irf_table,
    run_svar_variants,
    summarize_svar,
)
from monetary_svar.visualization import (
    plot_fevd,
    plot_irf,
    plot_policy_shock,
    plot_series,
)


def create_directories():
    """Create output directories."""
    Path("data/raw").mkdir(parents=True, exist_ok=True)
    Path("data/processed").mkdir(parents=True, exist_ok=True)
    Path(FIGURES_DIR).mkdir(parents=True, exist_ok=True)
    Path(RESULTS_DIR).mkdir(exist_ok=True)


def load_or_fetch_data(
    force_refresh: bool = False,
    inflation_path: str = MANUAL_INFLATION_PATH,
) -> pd.DataFrame:
    """
    Load data from cache or fetch from sources.

    Args:
        force_refresh: If True, fetch fresh data even if cache exists
        inflation_path: Manual inflation CSV

    Returns:
        Raw quarterly macro table
    """
    data_path = Path(RAW_DATA_PATH)

    if data_path.exists() and not force_refresh:
        logger.info(f"Loading cached data from {data_path}")
        raw = load_dataset(data_path)

        # The manual file is edited by hand; always take the current version
        if inflation_path is not None and Path(inflation_path).exists():
            raw["manual_inflation"] = load_manual_inflation(inflation_path).reindex(raw.index)
        else:
            logger.warning(
                f"Manual inflation file not found ({inflation_path}); "
                "using the cached manual_inflation column"
            )

        return raw

    logger.info("Fetching data from sources...")
    return assemble_dataset(inflation_path=inflation_path, save_path=data_path)


def run_stationarity(df: pd.DataFrame) -> pd.DataFrame:
    """
    Run unit-root tests on every SVAR series.

    Args:
        df: Analysis frame

    Returns:
        Unit-root summary table
    """
    logger.info("\n" + "=" * 60)
    logger.info("UNIT ROOT TESTS")
    logger.info("=" * 60)

    table = run_unit_root_tests(df, sample="in_sample")
    logger.info("\n" + table.to_string(index=False, float_format=lambda x: f"{x:.3f}"))

    return table


def run_svar_analysis(
    df: pd.DataFrame,
    lags: int | None,
    horizon: int,
    replications: int = IRF_REPLICATIONS,
) -> dict:
    """
    Estimate every SVAR variant.

    Args:
        df: Analysis frame
        lags: Fixed lag order (None selects by information criteria)
        horizon: IRF horizon in quarters
        replications: Monte Carlo draws for the error bands

    Returns:
        Dictionary of SVARResult by variant name
    """
    logger.info("\n" + "=" * 60)
    logger.info("RECURSIVE SVAR")
    logger.info("=" * 60)

    results = run_svar_variants(
        df, SVAR_VARIANTS, lags=lags, horizon=horizon, replications=replications
    )

    for result in results.values():
        if result.lag_selection is not None:
            logger.info(f"\nLag selection ({result.name}):")
            logger.info("\n" + result.lag_selection.table.to_string(float_format=lambda x: f"{x:.3f}"))
        logger.info(summarize_svar(result))

    return results


def generate_figures(df: pd.DataFrame, results: dict):
    """
    Generate all figures.

    Args:
        df: Analysis frame
        results: Dictionary of SVARResult by variant name
    """
    logger.info("\n" + "=" * 60)
    logger.info("GENERATING FIGURES")
    logger.info("=" * 60)

    figures = Path(FIGURES_DIR)

    logger.info("  Series...")
    plot_series(df, save_path=figures / "series.png")
    plt.close("all")

    for name, result in results.items():
        logger.info(f"  Impulse responses ({name})...")
        plot_irf(result, save_path=figures / f"irf_{name}.png")
        plot_irf(result, cumulative=True, save_path=figures / f"irf_cumulative_{name}.png")
        plot_fevd(result, save_path=figures / f"fevd_{name}.png")
        plt.close("all")

    if results:
        logger.info("  Policy shock comparison...")
        plot_policy_shock(results, save_path=figures / "policy_shock_variants.png")
        plt.close("all")

    logger.info(f"\nFigures saved to {figures}/")


def save_results(df: pd.DataFrame, unit_roots: pd.DataFrame, results: dict):
    """
    Save numerical results to CSV.

    Args:
        df: Analysis frame
        unit_roots: Unit-root summary table
        results: Dictionary of SVARResult by variant name
    """
    out = Path(RESULTS_DIR)

    df.to_csv(PROCESSED_DATA_PATH)
    unit_roots.to_csv(out / "unit_root_tests.csv", index=False)

    for name, result in results.items():
        irf_table(result, shock=POLICY_VARIABLE).to_csv(out / f"irf_{name}.csv", index=False)
        result.impact.to_csv(out / f"impact_{name}.csv")

        if result.lag_selection is not None:
            result.lag_selection.table.to_csv(out / f"lag_selection_{name}.csv")

        fevd = pd.concat(
            {v: fevd_table(result, v) for v in result.ordering},
            names=["variable"],
        )
        fevd.to_csv(out / f"fevd_{name}.csv")

    logger.info(f"Results saved to {out}/")


def main():
    parser = argparse.ArgumentParser(
        description="Estimate a recursive SVAR of monetary policy transmission"
    )
    parser.add_argument(
        "--data-only",
        action="store_true",
        help="Only fetch and save data",
    )
    parser.add_argument(
        "--refresh-data",
        action="store_true",
        help="Force refresh data from sources",
    )
    parser.add_argument(
        "--inflation-csv",
        default=MANUAL_INFLATION_PATH,
        help="Manual monthly inflation CSV used to patch CPI",
    )
    parser.add_argument(
        "--skip-plots",
        action="store_true",
        help="Do not generate figures",
    )
    parser.add_argument(
        "--lags",
        type=int,
        default=None,
        help="Fix the VAR lag order instead of selecting it",
    )
    parser.add_argument(
        "--horizon",
        type=int,
        default=IRF_HORIZON,
        help="Impulse response horizon in quarters",
    )
    parser.add_argument(
        "--replications",
        type=int,
        default=IRF_REPLICATIONS,
        help="Monte Carlo draws for the impulse response bands",
    )

    args = parser.parse_args()

    # Setup
    create_directories()
    configure_file_logging(Path(RESULTS_DIR) / "run.log")

    np.random.seed(RANDOM_SEED)
    logger.info(f"Random seed set to {RANDOM_SEED}")

    # Load data
    try:
        raw = load_or_fetch_data(
            force_refresh=args.refresh_data,
            inflation_path=args.inflation_csv,
        )
    except DataFetchError as e:
        logger.error(f"Download failed, aborting: {e}")
        sys.exit(1)

    if args.data_only:
        logger.info("\nData fetched and saved. Exiting.")
        return

    df = build_analysis_frame(raw)

    unit_roots = run_stationarity(df)
    results = run_svar_analysis(
        df, lags=args.lags, horizon=args.horizon, replications=args.replications
    )

    if "baseline" not in results:
        logger.error("Baseline SVAR could not be estimated")
        sys.exit(1)

    if not args.skip_plots:
        generate_figures(df, results)

    save_results(df, unit_roots, results)

    logger.info("\n" + "=" * 60)
    logger.info("ANALYSIS COMPLETE")
    logger.info("=" * 60)


if __name__ == "__main__":
    main()
