"""
precipfreq.plots - Diagnostic plots for extreme precipitation analysis
"""

from __future__ import annotations

import math
from typing import Dict, Optional, Sequence, Tuple, Union

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from matplotlib.colors import BoundaryNorm, LinearSegmentedColormap

from .core import Distribution, plotting_positions
from .distributions import (
    DistributionFamily,
    GEVFamily,
    GEVParameters,
    LP3Family,
    LP3Parameters,
    get_family,
)
from .stations import dms_to_decimal

# Colors per distribution, used across all figures
DISTRIBUTION_COLORS: Dict[Distribution, str] = {
    Distribution.GEV: "#1F4E79",
    Distribution.LP3: "#355E3F",
}
_REFERENCE_COLOR = "#4D4D4D"
_LINESTYLES = ("-", "--", ":")
_MAP_LOW = "#E6F0FF"
_MAP_HIGH = "#08306B"


def apply_style():
    """Apply the plotting style shared by all figures."""
    plt.rcParams.update({
        "figure.dpi": 140,
        "figure.facecolor": "white",
        "axes.facecolor": "white",
        "axes.grid": True,
        "grid.alpha": 0.3,
        "axes.spines.top": False,
        "axes.spines.right": False,
        "font.size": 12,
        "axes.labelsize": 14,
        "axes.labelpad": 10,
    })


def _finish(fig: plt.Figure, save_path: Optional[str]) -> plt.Figure:
    fig.tight_layout()
    if save_path:
        fig.savefig(save_path, dpi=300, bbox_inches="tight")
    return fig


def plot_annual_series(
    years: Sequence[float],
    values: Sequence[float],
    threshold: Optional[float] = 150.0,
    save_path: Optional[str] = None,
    figsize: tuple = (10, 6),
) -> plt.Figure:
    """
    Plot the annual maximum daily precipitation series.

    Parameters
    ----------
    years, values : sequence
        Year and annual maximum (mm) of each record.
    threshold : float, optional
        Reference level drawn as a dashed line (mm).
    """
    apply_style()
    years = np.asarray(years, dtype=float)
    values = np.asarray(values, dtype=float)

    fig, ax = plt.subplots(figsize=figsize)
    ax.plot(years, values, color="black", linewidth=1)
    ax.scatter(years, values, color="black", s=12, zorder=3)

    if threshold is not None:
        ax.axhline(threshold, color="black", linestyle="--", linewidth=1)

    ax.set_xlabel("Year")
    ax.set_ylabel("Maximum daily precipitation (mm)")

    finite = years[np.isfinite(years)]
    if finite.size:
        start = int(math.floor(finite.min()))
        ax.set_xticks(np.arange(start, int(finite.max()) + 1, 10))

    return _finish(fig, save_path)


def plot_histogram(
    values: Sequence[float],
    bins: int = 20,
    save_path: Optional[str] = None,
    figsize: tuple = (10, 6),
) -> plt.Figure:
    """Horizontal relative-frequency histogram of the annual maxima."""
    apply_style()
    values = np.asarray(values, dtype=float)
    values = values[np.isfinite(values)]

    fig, ax = plt.subplots(figsize=figsize)
    weights = np.full(values.shape, 1.0 / len(values)) if len(values) else None
    ax.hist(
        values,
        bins=bins,
        weights=weights,
        orientation="horizontal",
        histtype="step",
        color="black",
    )
    ax.set_xlabel("Relative frequency")
    ax.set_ylabel("Maximum daily precipitation (mm)")

    return _finish(fig, save_path)


def _fitted(
    values: Sequence[float], family: Union[str, DistributionFamily], params
) -> Tuple[DistributionFamily, object, np.ndarray]:
    family = get_family(family)
    if params is None:
        params = family.fit(values)
    return family, params, np.sort(family.validate(values))


def plot_qq(
    values: Sequence[float],
    family: Union[str, DistributionFamily],
    params=None,
    save_path: Optional[str] = None,
    figsize: tuple = (10, 6),
) -> plt.Figure:
    """
    Quantile-quantile plot of the sample against a fitted distribution.

    Theoretical quantiles are evaluated at the Weibull plotting positions
    i/(n+1), in data units. ``params`` are fitted by L-moments when omitted.
    """
    apply_style()
    family, params, ordered = _fitted(values, family, params)
    theoretical = family.data_ppf(plotting_positions(len(ordered)), params)

    fig, ax = plt.subplots(figsize=figsize)
    ax.scatter(theoretical, ordered, color=DISTRIBUTION_COLORS[family.kind], s=20, zorder=3)

    lo = min(np.min(theoretical), ordered[0])
    hi = max(np.max(theoretical), ordered[-1])
    ax.plot([lo, hi], [lo, hi], color=_REFERENCE_COLOR, linestyle="--", linewidth=1)

    ax.set_xlabel(f"Theoretical quantiles ({family.name})")
    ax.set_ylabel("Empirical quantiles")

    return _finish(fig, save_path)


def plot_pp(
    values: Sequence[float],
    family: Union[str, DistributionFamily],
    params=None,
    save_path: Optional[str] = None,
    figsize: tuple = (10, 6),
) -> plt.Figure:
    """Probability-probability plot of the sample against a fitted distribution."""
    apply_style()
    family, params, ordered = _fitted(values, family, params)
    theoretical = family.data_cdf(ordered, params)
    empirical = plotting_positions(len(ordered))

    fig, ax = plt.subplots(figsize=figsize)
    ax.scatter(theoretical, empirical, color=DISTRIBUTION_COLORS[family.kind], s=20, zorder=3)
    ax.plot([0, 1], [0, 1], color=_REFERENCE_COLOR, linestyle="--", linewidth=1)

    ax.set_xlim(0, 1)
    ax.set_ylim(0, 1)
    ax.set_xticks(np.arange(0, 1.01, 0.2))
    ax.set_yticks(np.arange(0, 1.01, 0.2))
    ax.set_xlabel(f"Theoretical probabilities ({family.name})")
    ax.set_ylabel("Empirical probabilities")

    return _finish(fig, save_path)


def plot_ecdf(
    values: Sequence[float],
    family: Union[str, DistributionFamily],
    params=None,
    save_path: Optional[str] = None,
    figsize: tuple = (8, 6),
) -> plt.Figure:
    """Empirical CDF (step) overlaid on the fitted CDF."""
    apply_style()
    family, params, ordered = _fitted(values, family, params)
    n = len(ordered)

    upper = math.ceil(ordered[-1] * 1.2 / 10) * 10
    x = np.linspace(ordered[0], ordered[-1] * 1.2, 100)

    fig, ax = plt.subplots(figsize=figsize)
    ax.step(
        np.concatenate([[0], ordered, [upper]]),
        np.concatenate([[0], np.arange(1, n + 1) / n, [1]]),
        where="post",
        color="black",
        linewidth=1,
        label="ECDF",
    )
    ax.plot(
        x,
        family.data_cdf(x, params),
        color=DISTRIBUTION_COLORS[family.kind],
        linewidth=1.5,
        label=family.name,
    )

    ax.set_xlim(0, upper)
    ax.set_ylim(0, 1.02)
    ax.set_yticks(np.arange(0, 1.01, 0.2))
    ax.set_xlabel("Value (mm)")
    ax.set_ylabel("Cumulative probability")
    ax.legend(loc="center left", bbox_to_anchor=(1.0, 0.5), frameon=False)

    return _finish(fig, save_path)


def plot_gev_densities(
    shapes: Sequence[float] = (0.0, 0.5, -0.5),
    loc: float = 0.0,
    scale: float = 1.0,
    x: Optional[np.ndarray] = None,
    save_path: Optional[str] = None,
    figsize: tuple = (6, 4),
) -> plt.Figure:
    """
    Compare GEV densities for several shape parameters.

    The defaults show the Gumbel (xi = 0), Frechet (xi = 0.5) and Weibull
    (xi = -0.5) types.
    """
    apply_style()
    family = GEVFamily()
    x = np.linspace(-3, 6, 1000) if x is None else np.asarray(x, dtype=float)

    fig, ax = plt.subplots(figsize=figsize)
    for i, xi in enumerate(shapes):
        params = GEVParameters(loc=loc, scale=scale, shape=xi)
        ax.plot(
            x,
            family.pdf(x, params),
            color="black",
            linestyle=_LINESTYLES[i % len(_LINESTYLES)],
            linewidth=1,
            label=f"{_gev_type(xi)} (ξ = {xi:g})",
        )

    ax.set_xlabel("x")
    ax.set_ylabel("Density")
    ax.legend(loc="center left", bbox_to_anchor=(1.0, 0.5), frameon=False)

    return _finish(fig, save_path)


def _gev_type(xi: float) -> str:
    if xi == 0:
        return "Gumbel"
    return "Fréchet" if xi > 0 else "Weibull"


def plot_lp3_densities(
    parameter_sets: Sequence[Tuple[float, float, float]] = ((3, 0, 0.2), (4, 0, 0.3), (5, 0, 0.4)),
    x: Optional[np.ndarray] = None,
    save_path: Optional[str] = None,
    figsize: tuple = (6, 4),
) -> plt.Figure:
    """
    Compare log-Pearson Type III densities in data units.

    Parameters
    ----------
    parameter_sets : sequence of (alpha, location, beta)
        Gamma-form parameters of ln(x). A negative beta gives a negatively
        skewed log distribution.
    x : array, optional
        Evaluation points. Defaults to 1..10 when every beta is positive and
        to 0.001..1 otherwise.
    """
    apply_style()
    family = LP3Family()
    if x is None:
        if all(beta > 0 for _, _, beta in parameter_sets):
            x = np.linspace(1, 10, 1000)
        else:
            x = np.linspace(0.001, 1, 1000)
    x = np.asarray(x, dtype=float)

    fig, ax = plt.subplots(figsize=figsize)
    for i, (alpha, location, beta) in enumerate(parameter_sets):
        params = LP3Parameters.from_gamma(alpha, location, beta)
        ax.plot(
            x,
            family.data_pdf(x, params),
            color="black",
            linestyle=_LINESTYLES[i % len(_LINESTYLES)],
            linewidth=1,
            label=f"α={alpha:g}, β={beta:g}",
        )

    ax.set_xlabel("x")
    ax.set_ylabel("Density")
    ax.legend(loc="center left", bbox_to_anchor=(1.0, 0.5), frameon=False)

    return _finish(fig, save_path)


def map_breaks(values: Sequence[float], n_intervals: int = 6) -> np.ndarray:
    """
    Colour-scale breaks for return level maps.

    Limits are the data range widened to multiples of 10; the range is split
    into ``n_intervals`` equal steps, rounded to integers, and the last
    break is pinned to the upper limit.
    """
    values = np.asarray(values, dtype=float)
    values = values[np.isfinite(values)]
    if values.size == 0:
        raise ValueError("No finite values to build map breaks from")

    lower = math.floor(values.min() / 10) * 10
    upper = math.ceil(values.max() / 10) * 10
    if upper == lower:
        upper = lower + 10

    breaks = np.round(np.linspace(lower, upper, n_intervals + 1))
    breaks[-1] = upper
    return breaks


def _coordinate(value) -> float:
    if isinstance(value, str):
        return dms_to_decimal(value)
    return float(value)


def plot_return_level_map(
    map_data: pd.DataFrame,
    return_period: float,
    distributions: Sequence[Union[str, Distribution]] = (Distribution.GEV, Distribution.LP3),
    n_intervals: int = 6,
    save_path: Optional[str] = None,
    figsize: tuple = (9, 6),
) -> plt.Figure:
    """
    Side-by-side station maps of return levels, one panel per distribution.

    Each station is drawn as a single point coloured by its return level.
    Municipality polygons are not filled from the nearest station and
    stations without a value are not imputed; there is no spatial join.

    Parameters
    ----------
    map_data : pd.DataFrame
        Columns Longitude, Latitude (decimal degrees or DDMMSS[EWNS]
        strings), Rainfall, Return_Period and Distribution.
    return_period : float
        Return period to map; all panels share one stepped colour scale.
    """
    apply_style()
    required = {"Longitude", "Latitude", "Rainfall", "Return_Period", "Distribution"}
    missing = required - set(map_data.columns)
    if missing:
        raise ValueError(f"Map data is missing columns: {sorted(missing)}")

    period_mask = pd.to_numeric(map_data["Return_Period"], errors="coerce") == float(return_period)
    selected = map_data.loc[period_mask]
    if selected.empty:
        raise ValueError(f"No map data for return period {return_period}")

    breaks = map_breaks(selected["Rainfall"], n_intervals)
    cmap = LinearSegmentedColormap.from_list("return_level", [_MAP_LOW, _MAP_HIGH], N=len(breaks) - 1)
    norm = BoundaryNorm(breaks, cmap.N)

    kinds = [Distribution.parse(d) for d in distributions]
    fig, axes = plt.subplots(1, len(kinds), figsize=figsize, squeeze=False)

    scatter = None
    for ax, kind in zip(axes[0], kinds):
        subset = selected[selected["Distribution"].astype(str).str.upper() == kind.name]
        lon = [_coordinate(v) for v in subset["Longitude"]]
        lat = [_coordinate(v) for v in subset["Latitude"]]
        scatter = ax.scatter(
            lon,
            lat,
            c=subset["Rainfall"].astype(float),
            cmap=cmap,
            norm=norm,
            s=60,
            edgecolors="red",
            linewidths=0.6,
        )
        ax.set_title(kind.name)
        ax.set_aspect("equal", adjustable="datalim")
        ax.set_xticks([])
        ax.set_yticks([])
        ax.grid(False)
        for spine in ax.spines.values():
            spine.set_visible(False)

    cbar = fig.colorbar(
        scatter,
        ax=axes[0].tolist(),
        orientation="horizontal",
        fraction=0.05,
        pad=0.05,
        ticks=breaks,
    )
    cbar.ax.set_xticklabels([f"{b:g}" for b in breaks])

    if save_path:
        fig.savefig(save_path, dpi=300, bbox_inches="tight")
    return fig
