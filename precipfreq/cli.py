"""
precipfreq command-line interface.

Provides CLI commands for return level tables, diagnostic figures, station
maps and validation benchmarks.
"""

from __future__ import annotations

import logging
from pathlib import Path

import click


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log progress messages.")
def cli(verbose: bool) -> None:
    """precipfreq - Extreme precipitation frequency analysis tools."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )


@cli.command()
@click.argument("folder", type=click.Path(exists=True, file_okay=False))
@click.option("-o", "--output", default="pmax_table.tex", show_default=True, help="LaTeX output file.")
@click.option("--csv", "csv_path", default=None, help="Also write the table as CSV.")
@click.option("--simulations", type=int, default=None, help="Bootstrap refits per fit.")
@click.option("--seed", type=int, default=None, help="Random seed.")
@click.option("--workers", type=int, default=None, help="Parallel worker processes.")
def table(folder, output, csv_path, simulations, seed, workers) -> None:
    """Build the return level table for every station CSV in FOLDER."""
    from precipfreq.batch import analyze_folder
    from precipfreq.config import AnalysisConfig
    from precipfreq.engine import ReturnLevelTableBuilder
    from precipfreq.report import write_csv, write_latex_table

    try:
        config = AnalysisConfig.from_env(simulations=simulations, seed=seed, workers=workers)
    except ValueError as e:
        raise click.BadParameter(str(e)) from None

    click.echo(f"Analysing stations in {folder} ({config.simulations} simulations)...")
    report = analyze_folder(folder, config=config)

    builder = ReturnLevelTableBuilder(config.return_periods)
    rows = report.rows(builder)
    if not rows:
        raise click.ClickException("No station could be fitted")

    write_latex_table(rows, output, return_periods=config.return_periods)
    click.echo(f"LaTeX table written to {output}")
    if csv_path:
        write_csv(rows, csv_path, builder)
        click.echo(f"CSV table written to {csv_path}")

    for outcome in report.failures:
        click.echo(f"  skipped {outcome.station} {outcome.distribution.name}: {outcome.error}")
    for name, message in report.read_errors.items():
        click.echo(f"  unreadable {name}: {message}")


@cli.command()
@click.argument("csv_file", type=click.Path(exists=True, dir_okay=False))
@click.option("-d", "--output-dir", default=".", show_default=True, help="Output directory.")
@click.option("--threshold", type=float, default=150.0, show_default=True)
def diagnostics(csv_file, output_dir, threshold) -> None:
    """Annual series, histogram and P-P / Q-Q plots for one station."""
    import matplotlib.pyplot as plt

    from precipfreq import plots
    from precipfreq.batch import DEFAULT_FAMILIES
    from precipfreq.config import AnalysisConfig
    from precipfreq.core import EstimationError
    from precipfreq.distributions import get_family
    from precipfreq.stations import read_station_csv

    config = AnalysisConfig()
    record = read_station_csv(
        csv_file, config.value_column, config.station_column, config.year_column
    )
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)

    figures = {}
    if record.years is not None:
        figures["temporal_series.png"] = lambda p: plots.plot_annual_series(
            record.years, record.values, threshold=threshold, save_path=p
        )
    figures["histogram.png"] = lambda p: plots.plot_histogram(record.values, save_path=p)

    for kind in DEFAULT_FAMILIES:
        family = get_family(kind)
        try:
            params = family.fit(record.values)
        except EstimationError as e:
            click.echo(f"  {family.name} fit failed: {e}")
            continue
        prefix = family.name.lower()
        figures[f"{prefix}_qq_plot.png"] = (
            lambda p, f=family, q=params: plots.plot_qq(record.values, f, q, save_path=p)
        )
        figures[f"{prefix}_pp_plot.png"] = (
            lambda p, f=family, q=params: plots.plot_pp(record.values, f, q, save_path=p)
        )

    for name, draw in figures.items():
        plt.close(draw(str(out / name)))
        click.echo(f"  {out / name}")


@cli.command()
@click.option("-d", "--output-dir", default=".", show_default=True, help="Output directory.")
@click.option("--seed", type=int, default=123, show_default=True)
def densities(output_dir, seed) -> None:
    """Theoretical GEV / LP3 densities and a simulated GEV ECDF."""
    import matplotlib.pyplot as plt
    import numpy as np

    from precipfreq import plots
    from precipfreq.distributions import GEVFamily, GEVParameters

    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)

    params = GEVParameters(loc=50.0, scale=15.0, shape=0.2)
    sample = GEVFamily().ppf(np.random.default_rng(seed).random(100), params)

    figures = {
        "gev_density.png": lambda p: plots.plot_gev_densities(save_path=p),
        "lp3_density_positive_beta.png": lambda p: plots.plot_lp3_densities(
            ((3, 0, 0.2), (4, 0, 0.3), (5, 0, 0.4)), save_path=p
        ),
        "lp3_density_negative_beta.png": lambda p: plots.plot_lp3_densities(
            ((3, 0, -0.2), (4, 0, -0.3), (5, 0, -0.4)), save_path=p
        ),
        "ecdf_gev.png": lambda p: plots.plot_ecdf(sample, "gev", params, save_path=p),
    }
    for name, draw in figures.items():
        plt.close(draw(str(out / name)))
        click.echo(f"  {out / name}")


@cli.command("map")
@click.argument("csv_file", type=click.Path(exists=True, dir_okay=False))
@click.option("-T", "--return-period", type=float, default=500, show_default=True)
@click.option("-o", "--output", default=None, help="Output PNG (default map_<T>.png).")
def map_command(csv_file, return_period, output) -> None:
    """Side-by-side GEV / LP3 return level map from a map data CSV.

    The CSV needs Longitude, Latitude, Rainfall, Return_Period and
    Distribution columns.
    """
    import matplotlib.pyplot as plt
    import pandas as pd

    from precipfreq.plots import plot_return_level_map

    output = output or f"map_{return_period:g}.png"
    map_data = pd.read_csv(csv_file)
    try:
        fig = plot_return_level_map(map_data, return_period, save_path=output)
    except ValueError as e:
        raise click.ClickException(str(e)) from None
    plt.close(fig)
    click.echo(f"Map written to {output}")


@cli.command()
def validate() -> None:
    """Run parameter recovery benchmarks."""
    from precipfreq.validation.benchmarks import print_benchmark_report, run_all_benchmarks

    click.echo("Running validation benchmarks...")
    results = run_all_benchmarks()
    print_benchmark_report(results)

    n_pass = sum(1 for r in results.values() if r.passed)
    if n_pass < len(results):
        raise SystemExit(1)


@cli.command()
@click.option("--format", "fmt", type=click.Choice(["text", "json"]), default="text")
def benchmark(fmt: str) -> None:
    """Run benchmarks and generate a report."""
    from precipfreq.validation.benchmarks import run_all_benchmarks
    from precipfreq.validation.reports import generate_json_report, generate_text_report

    results = run_all_benchmarks()

    if fmt == "json":
        click.echo(generate_json_report(results))
    else:
        click.echo(generate_text_report(results))


if __name__ == "__main__":
    cli()
