"""
Generates plots of loaded SampleSets.

Each SampleSet becomes one interactive line chart with a trace per reading,
built from the frame produced by `analysis.sample_set_to_frame`. Charts are
saved as HTML and, on request and if Kaleido is installed, as static PNG
images.
"""

import logging
import re
from collections import Counter
from pathlib import Path
from typing import Iterable, List, Mapping, Optional, Sequence, Set

import plotly.graph_objects as go
import polars as pl

from .analysis.report import TIMESTAMP_COLUMN, reading_names, sample_set_to_frame
from .models.sample_set import SampleSet
from .parsing.patterns import SAMPLE_DIRECTORY_FORMAT

logger = logging.getLogger(__name__)

# Characters that cannot appear in a file name on common file systems.
_UNSAFE_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|]')


def _save_plotly_figure(
    fig: go.Figure, base_filename: str, output_dir: Path, export_png: bool = False
) -> Path:
    """
    Saves a Plotly figure as HTML and, if requested and possible, PNG.

    Returns:
        Path of the HTML file
    """
    plot_filename_html = output_dir / f"{base_filename}.html"
    fig.write_html(plot_filename_html)
    logger.info(f"Interactive plot saved to: {plot_filename_html}")
    if not export_png:
        return plot_filename_html
    try:
        plot_filename_png = output_dir / f"{base_filename}.png"
        fig.write_image(plot_filename_png, width=1200, height=600)
        logger.info(f"Static plot saved to: {plot_filename_png}")
    except Exception as e_kaleido:
        # Non-critical: the HTML chart already exists.
        logger.warning(
            f"Failed to save static plot to PNG (Kaleido might be missing or misconfigured): {e_kaleido}"
        )
    return plot_filename_html


def build_sample_set_figure(
    sample_set: SampleSet, readings: Optional[Sequence[str]] = None
) -> go.Figure:
    """
    Build a line chart with one trace per reading of a SampleSet.

    Args:
        sample_set: The set to plot
        readings: Reading names to include (any case); all readings when None
    """
    df = sample_set_to_frame(sample_set)
    names = reading_names(sample_set)
    if readings is not None:
        wanted = {name.lower() for name in readings}
        names = [name for name in names if name.lower() in wanted]

    fig = go.Figure()
    timestamps = df[TIMESTAMP_COLUMN].to_list()
    for name in names:
        fig.add_trace(
            go.Scatter(
                x=timestamps,
                y=df[name].to_list(),
                mode="lines+markers",
                name=name,
                connectgaps=False,
            )
        )

    meta = sample_set.meta
    status = "genuine" if meta.is_genuine else f"not genuine: {meta.genuine}"
    fig.update_layout(
        title=f"{sample_set.counter_name} ({len(sample_set)} samples, {status})",
        legend_title_text="Reading",
        xaxis_title="Time",
        yaxis_title="Value",
    )
    return fig


def plot_sample_set(
    sample_set: SampleSet,
    output_dir: Path,
    readings: Optional[Sequence[str]] = None,
    export_png: bool = False,
    base_filename: Optional[str] = None,
) -> Path:
    """
    Plot one SampleSet into `output_dir`.

    Args:
        base_filename: File name without extension; defaults to the counter name

    Returns:
        Path of the written HTML chart
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    fig = build_sample_set_figure(sample_set, readings)
    base_filename = _UNSAFE_FILENAME_CHARS.sub("_", base_filename or sample_set.counter_name)
    return _save_plotly_figure(fig, base_filename, output_dir, export_png)


def _unique_base_filenames(sample_sets: Sequence[SampleSet]) -> List[str]:
    """
    One file name per set. Counters loaded from several runs are told apart by
    the start time of each run, then by a running number.
    """
    safe_names = [_UNSAFE_FILENAME_CHARS.sub("_", s.counter_name) for s in sample_sets]
    counts = Counter(name.lower() for name in safe_names)
    used: Set[str] = set()
    names: List[str] = []
    for sample_set, name in zip(sample_sets, safe_names):
        if counts[name.lower()] > 1:
            name = f"{name}_{sample_set[0].timestamp.strftime(SAMPLE_DIRECTORY_FORMAT)}"
        candidate, n = name, 1
        while candidate.lower() in used:
            candidate = f"{name}_{n}"
            n += 1
        used.add(candidate.lower())
        names.append(candidate)
    return names


def plot_sample_sets(
    sets_by_process: Mapping[str, Iterable[SampleSet]],
    output_dir: Path,
    readings: Optional[Sequence[str]] = None,
    export_png: bool = False,
) -> List[Path]:
    """
    Plot every loaded SampleSet, one chart per counter.

    Counters of the same name from different runs get the start time of
    their run appended to the file name. A chart that fails to render is
    logged and skipped.

    Returns:
        Paths of the written HTML charts
    """
    labelled = [(process_name, s) for process_name, sets in sets_by_process.items() for s in sets]
    base_filenames = _unique_base_filenames([s for _, s in labelled])
    written: List[Path] = []
    for (process_name, sample_set), base_filename in zip(labelled, base_filenames):
        try:
            written.append(
                plot_sample_set(sample_set, output_dir, readings, export_png, base_filename=base_filename)
            )
        except (OSError, ValueError, pl.exceptions.PolarsError) as e:
            logger.error(
                f"Failed to plot {sample_set.counter_name} ({process_name}): {e}",
                exc_info=True,
            )
    logger.info(f"Generated {len(written)} plots in {output_dir}")
    return written
