"""
precipfreq.report - Return level table output (LaTeX and CSV)
"""

from __future__ import annotations

import logging
from itertools import groupby
from pathlib import Path
from typing import List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from .core import STANDARD_RETURN_PERIODS, ReturnLevelRow
from .engine import ReturnLevelTableBuilder, period_label

logger = logging.getLogger(__name__)

DEFAULT_CAPTION = (
    "Estimated maximum daily precipitation for different return periods "
    "using the GEV and LP3 distributions."
)
DEFAULT_LABEL = "tab:return_levels"

_LATEX_SPECIAL = {
    "\\": r"\textbackslash{}",
    "&": r"\&",
    "%": r"\%",
    "$": r"\$",
    "#": r"\#",
    "_": r"\_",
    "{": r"\{",
    "}": r"\}",
    "~": r"\textasciitilde{}",
    "^": r"\textasciicircum{}",
}


def latex_escape(text: str) -> str:
    return "".join(_LATEX_SPECIAL.get(c, c) for c in str(text))


def _format_p_value(p: Optional[float]) -> str:
    if p is None or not np.isfinite(p):
        return "-"
    return f"{p:.3f}"


def _format_level(q: Optional[float]) -> str:
    if q is None or not np.isfinite(q):
        return "-"
    return f"{q:.1f}"


def _return_periods(rows: Sequence[ReturnLevelRow]) -> List[float]:
    periods: List[float] = []
    for row in rows:
        for T in row.return_periods:
            if T not in periods:
                periods.append(T)
    return periods


def latex_table(
    rows: Sequence[ReturnLevelRow],
    return_periods: Optional[Sequence[float]] = None,
    caption: str = DEFAULT_CAPTION,
    label: str = DEFAULT_LABEL,
    station_header: str = "Station",
    distribution_header: str = "Distribution",
    values_header: str = "24 h precipitation (mm)",
    p_value_header: str = r"\( p \)-value (K-S)",
    period_unit: str = "years",
) -> str:
    """
    Format return-level rows as a LaTeX ``longtable``.

    Consecutive rows of the same station share one ``\\multirow`` cell with
    the station code. Return levels are printed with one decimal and
    p-values with three; missing values print as ``-``. Requires the
    ``longtable`` and ``multirow`` LaTeX packages.

    Parameters
    ----------
    rows : sequence of ReturnLevelRow
        Rows in output order (station, then distribution).
    return_periods : sequence of float, optional
        Columns to print. Defaults to the periods present in ``rows``.

    Returns
    -------
    str
        LaTeX source of the table.
    """
    if not rows:
        raise ValueError("No return level rows to format")

    periods = list(return_periods) if return_periods else _return_periods(rows)
    k = len(periods)
    n_cols = k + 3
    last_period_col = k + 2

    header = (
        "\\hline\n"
        f"\\multirow{{2}}{{*}}{{\\centering\\textbf{{\\footnotesize {station_header}}}}} & "
        f"\\multirow{{2}}{{*}}{{\\centering\\textbf{{\\footnotesize {distribution_header}}}}} & "
        f"\\multicolumn{{{k}}}{{c|}}{{\\centering\\textbf{{\\footnotesize {values_header}}}}} & "
        f"\\multirow{{2}}{{*}}{{\\centering\\textbf{{\\footnotesize {p_value_header}}}}} \\\\\n"
        f"\\cline{{3-{last_period_col}}}\n"
        "& & "
        + " & ".join(
            f"\\textbf{{\\shortstack{{T={period_label(T)[1:]} \\\\ {period_unit}}}}}"
            for T in periods
        )
        + " & \\\\\n"
        "\\hline\n"
    )

    latex = (
        "\\scriptsize\n"
        "\\setlength{\\tabcolsep}{4pt}\n"
        "\\renewcommand{\\arraystretch}{1.1}\n"
        f"\\begin{{longtable}}{{|{'c|' * n_cols}}}\n"
        "\n"
        f"{header}"
        "\\endfirsthead\n"
        "\n"
        f"{header}"
        "\\endhead\n"
        "\n"
        f"\\multicolumn{{{n_cols}}}{{r}}{{}} \\\\\n"
        "\\endfoot\n"
        "\n"
        "\\endlastfoot\n"
    )

    groups = [list(g) for _, g in groupby(rows, key=lambda r: r.station)]
    for g_idx, group in enumerate(groups):
        for r_idx, row in enumerate(group):
            cells = [row.distribution.name]
            cells += [_format_level(row.return_levels.get(T)) for T in periods]
            cells.append(_format_p_value(row.p_value))

            if r_idx == 0:
                first = f"\\multirow{{{len(group)}}}{{*}}{{\\centering {latex_escape(row.station)}}}"
            else:
                first = ""
            latex += f"{first} & " + " & ".join(cells) + " \\\\\n"

            if r_idx < len(group) - 1:
                latex += f"\\cline{{2-{n_cols}}}\n"
        if g_idx < len(groups) - 1:
            latex += "\\hline\n"

    latex += (
        "\\hline\n"
        f"\\caption{{{caption}}}\n"
        f"\\label{{{label}}}\n"
        "\\end{longtable}\n"
    )
    return latex


def write_latex_table(
    rows: Sequence[ReturnLevelRow], output_path: Union[str, Path], **kwargs
) -> Path:
    """Write :func:`latex_table` output to a ``.tex`` file."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(latex_table(rows, **kwargs), encoding="utf-8")
    logger.info("LaTeX table saved to %s", output_path)
    return output_path


def write_csv(
    rows: Sequence[ReturnLevelRow],
    output_path: Union[str, Path],
    builder: Optional[ReturnLevelTableBuilder] = None,
) -> Path:
    """Write rows as CSV with columns Code, distribution, T5 ... T500, KS_pvalue."""
    builder = builder or ReturnLevelTableBuilder(_return_periods(rows) or STANDARD_RETURN_PERIODS)
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    builder.to_frame(rows).to_csv(output_path, index=False)
    logger.info("CSV table saved to %s", output_path)
    return output_path


def long_format(rows: Sequence[ReturnLevelRow]) -> pd.DataFrame:
    """
    One record per (station, distribution, return period).

    Columns: Station, Distribution, Return_Period, Rainfall. Merged with
    station coordinates this is the input of
    :func:`precipfreq.plots.plot_return_level_map`.
    """
    records = [
        {
            "Station": row.station,
            "Distribution": row.distribution.name,
            "Return_Period": T,
            "Rainfall": q,
        }
        for row in rows
        for T, q in row.return_levels.items()
    ]
    return pd.DataFrame(records, columns=["Station", "Distribution", "Return_Period", "Rainfall"])
