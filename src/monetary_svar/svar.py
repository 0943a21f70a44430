"""
Recursive structural VAR for monetary policy transmission.
Cholesky identification following Sims (1980): the ordering of the
variables fixes which shocks may move which variables on impact.
"""

from typing import NamedTuple

import numpy as np
import pandas as pd
from scipy import stats
from statsmodels.tsa.api import VAR
from tqdm import tqdm

from .config import (
    BASELINE_ORDERING,
    IRF_BAND_METHOD,
    IRF_HORIZON,
    IRF_REPLICATIONS,
    LAG_CRITERION,
    MAX_LAGS,
    POLICY_VARIABLE,
    RANDOM_SEED,
    SIGNIFICANCE,
    SVAR_VARIANTS,
)
from .logger import logger
from .transforms import longest_contiguous_run

CRITERIA = ("aic", "bic", "hqic", "fpe")


class LagSelection(NamedTuple):
    """Container for VAR lag order selection."""

    selected: int  # Lag order used for estimation
    criterion: str  # Criterion that picked it
    orders: dict[str, int]  # Order chosen by every criterion
    table: pd.DataFrame  # Criterion values by lag


class SVARResult(NamedTuple):
    """Container for a recursive SVAR estimation."""

    name: str
    ordering: list[str]  # Recursive (Cholesky) ordering
    lags: int
    nobs: int
    sample_start: pd.Period
    sample_end: pd.Period
    lag_selection: LagSelection | None
    impact: pd.DataFrame  # Lower-triangular impact matrix P (P P' = Sigma_u)
    irf: np.ndarray  # (horizon+1, k, k): [h, response, shock]
    irf_lower: np.ndarray
    irf_upper: np.ndarray
    cumulative_irf: np.ndarray
    fevd: np.ndarray  # (k, horizon, k): [variable, h, shock]
    is_stable: bool
    whiteness_pvalue: float
    normality_pvalue: float
    model: object  # Underlying statsmodels VARResults


def _estimation_sample(df: pd.DataFrame, ordering: list[str], sample: str | None) -> pd.DataFrame:
    """Select the estimation rows and keep the longest contiguous run of quarters."""
    missing_cols = [c for c in ordering if c not in df.columns]
    if missing_cols:
        raise ValueError(f"Missing required columns: {missing_cols}")

    if sample is not None:
        if sample not in df.columns:
            raise ValueError(f"Sample flag '{sample}' not in DataFrame")
        data = df.loc[df[sample].astype(bool), ordering]
    else:
        data = df[ordering]

    data = data.dropna()
    if data.empty:
        raise ValueError("No complete observations in the estimation sample")

    return longest_contiguous_run(data)


def select_lag_order(
    data: pd.DataFrame,
    maxlags: int = MAX_LAGS,
    criterion: str = LAG_CRITERION,
    trend: str = "c",
) -> LagSelection:
    """
    Select the VAR lag order by information criteria.

    Args:
        data: Endogenous variables (T x k)
        maxlags: Largest lag order considered
        criterion: One of "aic", "bic", "hqic", "fpe"
        trend: Deterministic terms of the VAR

    Returns:
        LagSelection (selected order is at least 1)
    """
    if criterion not in CRITERIA:
        raise ValueError(f"criterion must be one of {CRITERIA}, got '{criterion}'")

    if maxlags < 1:
        raise ValueError("maxlags must be at least 1")

    data = data.dropna()
    nobs, k = data.shape

    # Each equation needs more observations than regressors at the largest lag
    feasible = max((nobs - 2) // (k + 1), 1)
    if maxlags > feasible:
        logger.warning(f"maxlags={maxlags} too large for {nobs} observations; using {feasible}")
        maxlags = feasible

    order = VAR(data.reset_index(drop=True)).select_order(maxlags=maxlags, trend=trend)

    orders = {name: int(lag) for name, lag in order.selected_orders.items()}
    table = pd.DataFrame(
        {name: np.asarray(values, dtype=float) for name, values in order.ics.items()}
    )
    table.index.name = "lag"

    selected = max(orders[criterion], 1)

    return LagSelection(
        selected=selected,
        criterion=criterion,
        orders=orders,
        table=table,
    )


def cholesky_impact(sigma_u: np.ndarray) -> np.ndarray:
    """
    Lower-triangular impact matrix P with P P' = sigma_u.

    Args:
        sigma_u: Reduced-form residual covariance (k x k)

    Returns:
        P (k x k)
    """
    sigma_u = np.asarray(sigma_u, dtype=float)

    if sigma_u.ndim != 2 or sigma_u.shape[0] != sigma_u.shape[1]:
        raise ValueError("sigma_u must be a square matrix")

    if not np.allclose(sigma_u, sigma_u.T):
        raise ValueError("sigma_u must be symmetric")

    try:
        return np.linalg.cholesky(sigma_u)
    except np.linalg.LinAlgError as e:
        raise ValueError("sigma_u is not positive definite") from e


def structural_irf(coefs: np.ndarray, impact: np.ndarray, horizon: int) -> np.ndarray:
    """
    Structural impulse responses from VAR coefficients.

    Phi_0 = I, Phi_h = sum_{i=1..min(h,p)} Phi_{h-i} A_i, Theta_h = Phi_h P

    Args:
        coefs: Lag coefficient matrices A_1..A_p (p x k x k)
        impact: Impact matrix P (k x k)
        horizon: Last horizon

    Returns:
        Array (horizon+1, k, k); [h, i, j] is the response of variable i
        to shock j after h periods
    """
    if horizon < 0:
        raise ValueError("horizon must be non-negative")

    coefs = np.asarray(coefs, dtype=float)
    impact = np.asarray(impact, dtype=float)

    p, k, _ = coefs.shape
    if impact.shape != (k, k):
        raise ValueError(f"impact must be {k} x {k}")

    phis = np.zeros((horizon + 1, k, k))
    phis[0] = np.eye(k)

    for h in range(1, horizon + 1):
        for i in range(1, min(h, p) + 1):
            phis[h] += phis[h - i] @ coefs[i - 1]

    return phis @ impact


def fit_recursive_svar(
    df: pd.DataFrame,
    ordering: list[str] | None = None,
    sample: str | None = "in_sample",
    lags: int | None = None,
    maxlags: int = MAX_LAGS,
    criterion: str = LAG_CRITERION,
    horizon: int = IRF_HORIZON,
    band_method: str = IRF_BAND_METHOD,
    replications: int = IRF_REPLICATIONS,
    significance: float = SIGNIFICANCE,
    normalize: bool = False,
    seed: int = RANDOM_SEED,
    name: str = "svar",
) -> SVARResult:
    """
    Fit a recursive SVAR and compute structural impulse responses.

    The reduced-form VAR is estimated by OLS with a constant; structural
    shocks are identified by the Cholesky factor of the residual covariance
    in the given ordering.

    Args:
        df: Analysis frame
        ordering: Variables in recursive order (defaults to BASELINE_ORDERING)
        sample: Boolean column selecting the estimation rows (None for all)
        lags: Lag order (selected by `criterion` if None)
        maxlags: Largest lag considered during selection
        criterion: Information criterion for lag selection
        horizon: IRF horizon in quarters
        band_method: "mc" (Monte Carlo) or "asymptotic" error bands
        replications: Monte Carlo draws
        significance: Band significance level (0.05 gives 95% bands)
        normalize: Scale each shock to a unit impact on its own variable
        seed: Random seed for Monte Carlo bands
        name: Label stored in the result

    Returns:
        SVARResult

    Raises:
        ValueError: If inputs are invalid
    """
    if ordering is None:
        ordering = BASELINE_ORDERING

    if len(set(ordering)) != len(ordering):
        raise ValueError("ordering contains duplicate variables")

    if band_method not in ("mc", "asymptotic"):
        raise ValueError(f"band_method must be 'mc' or 'asymptotic', got '{band_method}'")

    if not 0 < significance < 1:
        raise ValueError("Significance must be between 0 and 1")

    if horizon < 1:
        raise ValueError("horizon must be at least 1")

    data = _estimation_sample(df, ordering, sample)

    lag_selection = None
    if lags is None:
        lag_selection = select_lag_order(data, maxlags=maxlags, criterion=criterion)
        lags = lag_selection.selected
    elif lags < 1:
        raise ValueError("lags must be at least 1")

    model = VAR(data.reset_index(drop=True))
    var_result = model.fit(lags, trend="c")

    impact = cholesky_impact(var_result.sigma_u)
    irf = structural_irf(var_result.coefs, impact, horizon)

    irf_obj = var_result.irf(horizon)

    if band_method == "mc":
        irf_lower, irf_upper = irf_obj.errband_mc(
            orth=True,
            repl=replications,
            signif=significance,
            seed=seed,
        )
    else:
        z = stats.norm.ppf(1 - significance / 2)
        stderr = irf_obj.stderr(orth=True)
        irf_lower = irf - z * stderr
        irf_upper = irf + z * stderr

    if normalize:
        scale = 1.0 / np.diag(impact)
        irf = irf * scale
        irf_lower = irf_lower * scale
        irf_upper = irf_upper * scale

    fevd = var_result.fevd(horizon).decomp

    nlags_white = max(10, lags + 1)
    whiteness = var_result.test_whiteness(nlags=nlags_white)
    normality = var_result.test_normality()

    is_stable = bool(var_result.is_stable(verbose=False))
    if not is_stable:
        logger.warning(f"{name}: VAR({lags}) is not stable; impulse responses may diverge")

    return SVARResult(
        name=name,
        ordering=list(ordering),
        lags=int(lags),
        nobs=int(var_result.nobs),
        sample_start=data.index[0],
        sample_end=data.index[-1],
        lag_selection=lag_selection,
        impact=pd.DataFrame(impact, index=ordering, columns=ordering),
        irf=irf,
        irf_lower=np.asarray(irf_lower),
        irf_upper=np.asarray(irf_upper),
        cumulative_irf=irf.cumsum(axis=0),
        fevd=np.asarray(fevd),
        is_stable=is_stable,
        whiteness_pvalue=float(whiteness.pvalue),
        normality_pvalue=float(normality.pvalue),
        model=var_result,
    )


def run_svar_variants(
    df: pd.DataFrame,
    variants: dict[str, dict] | None = None,
    **kwargs,
) -> dict[str, SVARResult]:
    """
    Estimate every SVAR variant.

    Args:
        df: Analysis frame
        variants: Mapping of name to {"ordering": [...], "sample": flag}
            (defaults to SVAR_VARIANTS)
        **kwargs: Passed to fit_recursive_svar

    Returns:
        Dictionary mapping variant name to SVARResult
    """
    if variants is None:
        variants = SVAR_VARIANTS

    results = {}

    for name, settings in tqdm(variants.items(), desc="SVAR variants"):
        try:
            results[name] = fit_recursive_svar(
                df,
                ordering=settings.get("ordering", BASELINE_ORDERING),
                sample=settings.get("sample", "in_sample"),
                name=name,
                **kwargs,
            )
        except (ValueError, np.linalg.LinAlgError) as e:
            logger.warning(f"Failed SVAR variant {name}: {e}")

    return results


def irf_table(result: SVARResult, shock: str = POLICY_VARIABLE) -> pd.DataFrame:
    """
    Tidy table of responses to one structural shock.

    Args:
        result: SVARResult
        shock: Variable whose innovation is the shock

    Returns:
        DataFrame with columns horizon, response, irf, lower, upper, cumulative
    """
    if shock not in result.ordering:
        raise ValueError(f"Shock '{shock}' not in ordering {result.ordering}")

    j = result.ordering.index(shock)
    horizons = np.arange(result.irf.shape[0])

    frames = []
    for i, response in enumerate(result.ordering):
        frames.append(pd.DataFrame({
            "horizon": horizons,
            "response": response,
            "irf": result.irf[:, i, j],
            "lower": result.irf_lower[:, i, j],
            "upper": result.irf_upper[:, i, j],
            "cumulative": result.cumulative_irf[:, i, j],
        }))

    table = pd.concat(frames, ignore_index=True)
    table.insert(0, "shock", shock)

    return table


def fevd_table(result: SVARResult, variable: str) -> pd.DataFrame:
    """
    Forecast error variance shares of one variable by shock.

    Args:
        result: SVARResult
        variable: Variable whose forecast error is decomposed

    Returns:
        DataFrame (horizon x shocks), rows sum to one
    """
    if variable not in result.ordering:
        raise ValueError(f"Variable '{variable}' not in ordering {result.ordering}")

    i = result.ordering.index(variable)
    table = pd.DataFrame(result.fevd[i], columns=result.ordering)
    table.index = pd.RangeIndex(1, len(table) + 1, name="horizon")

    return table


def summarize_svar(result: SVARResult, shock: str = POLICY_VARIABLE) -> str:
    """
    Generate a summary report of an SVAR estimation.

    Args:
        result: SVARResult
        shock: Shock whose responses are reported

    Returns:
        Formatted summary string
    """
    j = result.ordering.index(shock)

    lines = [
        "",
        f"Recursive SVAR: {result.name}",
        "=" * 40,
        "",
        f"Ordering:  {' -> '.join(result.ordering)}",
        f"Sample:    {result.sample_start} - {result.sample_end} ({result.nobs} obs)",
        f"Lags:      {result.lags}",
    ]

    if result.lag_selection is not None:
        orders = ", ".join(f"{k.upper()}={v}" for k, v in result.lag_selection.orders.items())
        lines.append(f"Criteria:  {orders}")

    lines += [
        "",
        "Diagnostics:",
        f"  - Stable:               {'yes' if result.is_stable else 'NO'}",
        f"  - Whiteness p-value:    {result.whiteness_pvalue:.3f}",
        f"  - Normality p-value:    {result.normality_pvalue:.3f}",
        "",
        f"Responses to a {shock} shock:",
    ]

    for i, response in enumerate(result.ordering):
        path = result.irf[:, i, j]
        peak = int(np.argmax(np.abs(path)))
        lines.append(
            f"  - {response:<15} impact {path[0]:+.3f}, "
            f"peak {path[peak]:+.3f} at h={peak}, "
            f"h={len(path) - 1}: {path[-1]:+.3f}"
        )

    return "\n".join(lines) + "\n"
