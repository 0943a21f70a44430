"""
Configuration parameters for the monetary policy transmission SVAR.
Recursive identification in the tradition of Sims (1980).
"""

import os

from dotenv import load_dotenv

load_dotenv()

# Country under study
COUNTRY = "POL"  # Poland ISO3 code
COUNTRY_NAME = "Poland"

# FRED series ids (quarterly / monthly)
FRED_SERIES = {
    "real_gdp": "CLVMNACSCAB1GQPL",  # Real GDP, chain-linked, seasonally adjusted, quarterly
    "cpi": "POLCPIALLMINMEI",  # CPI all items, monthly
    "interest_rate": "IRSTCI01PLM156N",  # Immediate rates (call money), monthly
}

# How each FRED series is collapsed to quarters
FRED_AGGREGATION = {
    "real_gdp": "mean",
    "cpi": "mean",
    "interest_rate": "mean",
}

# World Bank indicator for annual population
WB_POPULATION = "SP.POP.TOTL"

FRED_API_KEY = os.getenv("FRED_API_KEY")

# Sample
SAMPLE_START = "1996Q1"
SAMPLE_END = "2024Q4"
COVID_CUTOFF = "2019Q4"  # Last quarter of the pre-COVID subsample

# Manual inflation file (year-over-year %, monthly)
MANUAL_INFLATION_PATH = "data/raw/manual_inflation.csv"
RAW_DATA_PATH = "data/raw/macro_data.csv"
PROCESSED_DATA_PATH = "data/processed/analysis_data.csv"

# SVAR variables in the baseline recursive ordering
BASELINE_ORDERING = ["gdp_growth", "inflation", "interest_rate"]
ALTERNATIVE_ORDERING = ["inflation", "gdp_growth", "interest_rate"]

POLICY_VARIABLE = "interest_rate"

SVAR_VARIANTS = {
    "baseline": {"ordering": BASELINE_ORDERING, "sample": "in_sample"},
    "alternative_ordering": {"ordering": ALTERNATIVE_ORDERING, "sample": "in_sample"},
    "pre_covid": {"ordering": BASELINE_ORDERING, "sample": "pre_covid"},
}

VARIABLE_LABELS = {
    "gdp_growth": "Real GDP per capita growth",
    "inflation": "CPI inflation",
    "interest_rate": "Interest rate",
    "gdp_per_capita": "Real GDP per capita",
    "cpi": "CPI",
    "manual_inflation": "Inflation (manual, y/y)",
}

# Unit root tests
UNIT_ROOT_COLUMNS = ["gdp_growth", "inflation", "interest_rate", "log_gdp_per_capita", "log_cpi"]
SIGNIFICANCE = 0.05

# Lag selection
MAX_LAGS = 8
LAG_CRITERION = "aic"

# Impulse responses
IRF_HORIZON = 20  # quarters
IRF_REPLICATIONS = 1000  # Monte Carlo draws for error bands
IRF_BAND_METHOD = "mc"  # "mc" or "asymptotic"

# Output directories
FIGURES_DIR = "reports/figures"
RESULTS_DIR = "results"

# Random seed for reproducibility
RANDOM_SEED = 42
