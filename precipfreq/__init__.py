"""
precipfreq - Frequency analysis of extreme daily precipitation

Includes:
- L-moment fitting of the GEV and log-Pearson Type III distributions
- Kolmogorov-Smirnov goodness of fit with parametric-bootstrap p-values
- Return level tables for 5 to 500 year return periods (LaTeX and CSV)
- Batch processing of station CSV files
- Diagnostic plots and return level maps
"""

from .batch import BatchReport, EstimateOutcome, analyze_folder, estimate_station, run_stations
from .config import AnalysisConfig
from .core import (
    STANDARD_RETURN_PERIODS,
    Distribution,
    EstimationError,
    FitFailureError,
    FitResult,
    InvalidInputError,
    LMoments,
    ReturnLevelRow,
    sample_lmoments,
)
from .distributions import (
    DistributionFamily,
    GEVFamily,
    GEVParameters,
    LP3Family,
    LP3Parameters,
    get_family,
)
from .engine import ReturnLevelTableBuilder
from .goodness_of_fit import GoodnessOfFitEstimator, estimate, ks_statistic
from .report import latex_table, long_format, write_csv, write_latex_table
from .stations import StationRecord, dms_to_decimal, read_station_csv, read_station_folder


def return_levels_table(
    folder: str,
    output_path: str = "pmax_table.tex",
    csv_path: str = None,
    config: AnalysisConfig = None,
) -> dict:
    """
    Complete return level analysis for a folder of station CSV files.

    Parameters
    ----------
    folder : str
        Folder with one CSV file per station
    output_path : str
        LaTeX table output file
    csv_path : str, optional
        CSV table output file
    config : AnalysisConfig, optional
        Bootstrap and column settings (default: from environment)

    Returns
    -------
    dict
        report (BatchReport), rows (list of ReturnLevelRow), table
        (pd.DataFrame) and the written paths.
    """
    import logging

    logger = logging.getLogger(__name__)
    config = config or AnalysisConfig.from_env()

    report = analyze_folder(folder, config=config)
    logger.info(
        "%d fits succeeded, %d failed, %d unreadable files",
        len(report.successes),
        len(report.failures),
        len(report.read_errors),
    )

    builder = ReturnLevelTableBuilder(config.return_periods)
    rows = report.rows(builder)
    result = {"report": report, "rows": rows, "table": builder.to_frame(rows)}

    if rows:
        result["latex_path"] = write_latex_table(
            rows, output_path, return_periods=config.return_periods
        )
        if csv_path:
            result["csv_path"] = write_csv(rows, csv_path, builder)
    else:
        logger.warning("No station could be fitted; no table written")

    return result


__version__ = "0.1.0"
__author__ = "precipfreq"

__all__ = [
    # Core
    "Distribution",
    "STANDARD_RETURN_PERIODS",
    "EstimationError",
    "InvalidInputError",
    "FitFailureError",
    "LMoments",
    "sample_lmoments",
    "FitResult",
    "ReturnLevelRow",
    # Distributions
    "DistributionFamily",
    "GEVFamily",
    "GEVParameters",
    "LP3Family",
    "LP3Parameters",
    "get_family",
    # Goodness of fit
    "GoodnessOfFitEstimator",
    "estimate",
    "ks_statistic",
    # Tables and reports
    "ReturnLevelTableBuilder",
    "latex_table",
    "write_latex_table",
    "write_csv",
    "long_format",
    # Stations and batch
    "AnalysisConfig",
    "StationRecord",
    "read_station_csv",
    "read_station_folder",
    "dms_to_decimal",
    "EstimateOutcome",
    "BatchReport",
    "estimate_station",
    "run_stations",
    "analyze_folder",
    # Convenience
    "return_levels_table",
]
