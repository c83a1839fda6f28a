#!/usr/bin/env python3
"""Summarize read alignments from SAM files against an assembly report.

This script reads one or more SAM alignment files together with an NCBI
assembly report, counts total and aligned reads, maps GenBank accessions
to chromosome names, and tallies aligned reads per chromosome.

A read is counted as *aligned* when its reference name (column 3) is not
``*`` and its mapping position (column 4) is a positive integer.

Outputs:
    - A plain-text report (default ``output.txt``) with totals, the
      alignment rate and an ``ACC / CHR / COUNT`` table sorted by count
    - Optionally (``--outdir``) CSV tables of per-chromosome and per-file
      counts plus a bar chart of aligned reads per chromosome

Usage:
    python scripts/analyze_sam_alignments.py \
        data/sample1.sam data/sample2.sam \
        data/GCA_000001215.4_assembly_report.txt \
        --output output.txt --outdir results
"""

# Enable postponed evaluation of annotations (PEP 604 union syntax, etc.)
from __future__ import annotations

# Standard-library imports
import argparse  # command-line argument parsing
import logging  # structured log output instead of bare print()
import os  # access checks for readable input files
import re  # accession pattern matching
import sys  # for sys.exit on fatal errors
import time  # wall-clock timing of the run
from collections import Counter  # multiset tally of accessions
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime  # "Generated on" timestamp in the report
from pathlib import Path  # object-oriented filesystem paths
from typing import NamedTuple

# Third-party imports
import matplotlib.pyplot as plt  # low-level plotting API
import numpy as np  # numerical array operations
import pandas as pd  # tabular data manipulation
import seaborn as sns  # high-level statistical plotting

# ---------------------------------------------------------------------------
# Configure module-level logger so all messages go to stderr
# ---------------------------------------------------------------------------
logger = logging.getLogger(__name__)  # create logger scoped to this module

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# SAM header lines (@HD, @SQ, @PG, ...) start with this character
SAM_HEADER_PREFIX: str = "@"

# Assembly-report comment lines start with this character
REPORT_COMMENT_PREFIX: str = "#"

# Reference-name sentinel meaning "no reference" in SAM column 3
UNMAPPED_REFERENCE: str = "*"

# A SAM data line has 11 mandatory columns
MIN_SAM_FIELDS: int = 11

# An assembly report data line has at least 8 columns
MIN_REPORT_FIELDS: int = 8

# The mapper only needs columns 1 (sequence name) and 5 (GenBank accession)
MIN_MAPPING_FIELDS: int = 5

# Number of leading lines the format validators look at
VALIDATION_SAMPLE_LINES: int = 100

# GenBank accession: two upper-case letters, digits, a dot, version digits
ACCESSION_PATTERN: re.Pattern[str] = re.compile(r"[A-Z]{2}[0-9]+\.[0-9]+")

# Placeholder chromosome name used when no mapping is available
UNKNOWN_CHROMOSOME: str = "Unknown"

# Line written in place of the table when no read aligned anywhere
NO_CHROMOSOME_DATA: str = "No chromosome alignment data available"

# Explicit policies (see --skip-unreadable / --duplicate-accessions)
READ_ERROR_POLICIES: tuple[str, ...] = ("fail", "skip")
DUPLICATE_POLICIES: tuple[str, ...] = ("last", "first", "error")

# Column order of the tabular outputs
ROW_COLUMNS: list[str] = ["accession", "chromosome", "count"]
PER_FILE_COLUMNS: list[str] = [
    "file", "total_reads", "aligned_reads", "alignment_rate_pct",
]


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class SamAnalysisError(Exception):
    """Base class for every fatal error raised by this script."""


class MissingFileError(SamAnalysisError):
    """An input path does not exist or cannot be read."""

    def __init__(self, path: Path, label: str = "Input") -> None:
        self.path = Path(path)
        self.label = label
        super().__init__(f"{label} file '{self.path}' not found or not readable")


class FormatError(SamAnalysisError):
    """An input file failed a structural sanity check.

    Parameters
    ----------
    reason : str
        Short machine-readable reason, e.g. ``"too few columns"``.
    path : Path
        File that failed validation.
    line : int or None
        1-based line number of the offending line, when known.
    value : str or None
        Offending field value (the accession for ``"bad accession"``).
    """

    def __init__(
        self,
        reason: str,
        path: Path,
        line: int | None = None,
        value: str | None = None,
    ) -> None:
        self.reason = reason
        self.path = Path(path)
        self.line = line
        self.value = value

        message: str = f"{self.path}: {reason}"
        if line is not None:
            message += f" on line {line}"
        if value is not None:
            message += f" ('{value}')"
        super().__init__(message)


class ReadError(SamAnalysisError):
    """An input file could not be opened or decoded."""

    def __init__(self, path: Path, cause: Exception) -> None:
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"Failed to read '{self.path}': {cause}")


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RunCounters:
    """Total and aligned read counts accumulated over all SAM files."""

    total_reads: int = 0
    aligned_reads: int = 0

    @property
    def alignment_rate(self) -> float:
        """Percentage of reads that aligned (``0.0`` for an empty run)."""
        if self.total_reads == 0:
            return 0.0
        return 100.0 * self.aligned_reads / self.total_reads

    def __add__(self, other: RunCounters) -> RunCounters:
        return RunCounters(
            total_reads=self.total_reads + other.total_reads,
            aligned_reads=self.aligned_reads + other.aligned_reads,
        )


class ReportRow(NamedTuple):
    """One line of the per-chromosome table."""

    accession: str
    chromosome: str
    count: int


# ---------------------------------------------------------------------------
# Line-level helpers
# ---------------------------------------------------------------------------

def _split_fields(line: str) -> list[str]:
    """Strip the line terminator and split a line on TAB."""
    return line.rstrip("\r\n").split("\t")


def _is_positive_position(value: str) -> bool:
    """Return True if *value* parses as an integer greater than zero.

    Non-numeric or empty values are treated as "not positive" rather
    than raising.
    """
    try:
        return int(value) > 0
    except ValueError:
        return False


def aligned_reference(fields: Sequence[str]) -> str | None:
    """Return the reference name of an aligned SAM record, else None.

    Parameters
    ----------
    fields : Sequence[str]
        TAB-split columns of a non-header SAM line.

    Returns
    -------
    str or None
        Column 3 when the record is aligned (``RNAME != "*"`` and
        ``POS > 0``); ``None`` for unmapped or truncated records.
    """
    # Records too short to carry RNAME and POS cannot be aligned
    if len(fields) < 4:
        return None

    reference: str = fields[2]
    if reference == UNMAPPED_REFERENCE or not _is_positive_position(fields[3]):
        return None
    return reference


def _choose_policy(value: str, allowed: tuple[str, ...], name: str) -> str:
    """Return *value* if it is one of *allowed*, else raise ValueError."""
    if value not in allowed:
        raise ValueError(
            f"Unknown {name} {value!r}; expected one of {', '.join(allowed)}"
        )
    return value


# ---------------------------------------------------------------------------
# Input checks and format validation
# ---------------------------------------------------------------------------

def check_input_file(path: Path, label: str = "Input") -> None:
    """Raise :class:`MissingFileError` unless *path* is a readable file.

    Parameters
    ----------
    path : Path
        Filesystem path to check.
    label : str
        Human-readable file kind used in the error message
        (e.g. ``"SAM"`` or ``"Assembly report"``).
    """
    path = Path(path)
    if not path.is_file() or not os.access(path, os.R_OK):
        raise MissingFileError(path, label)


def _first_data_line(path: Path, skip_prefix: str) -> tuple[int, list[str]] | None:
    """Return ``(line_number, fields)`` of the first sampled data line.

    Lines starting with *skip_prefix* are skipped and at most
    ``VALIDATION_SAMPLE_LINES`` lines are read.  ``None`` means the sample
    held no data line.

    Raises
    ------
    ReadError
        If the file cannot be opened or its prefix cannot be decoded.
    """
    try:
        with Path(path).open("r", encoding="utf-8") as handle:
            for line_no, line in enumerate(handle, start=1):
                # Never look beyond the sampled prefix
                if line_no > VALIDATION_SAMPLE_LINES:
                    break

                if line.startswith(skip_prefix):
                    continue
                return line_no, _split_fields(line)
    except (OSError, UnicodeDecodeError) as exc:
        raise ReadError(path, exc) from exc

    return None


def validate_alignment_format(path: Path) -> None:
    """Sanity-check that *path* looks like a SAM file.

    Only the first ``VALIDATION_SAMPLE_LINES`` lines are inspected.  Header
    lines (``@``) are skipped; the first data line must have at least
    ``MIN_SAM_FIELDS`` TAB-separated columns, after which scanning stops.
    A sample made only of header lines is accepted.

    Parameters
    ----------
    path : Path
        Filesystem path to the SAM file.

    Raises
    ------
    FormatError
        With reason ``"too few columns"`` if the first data line is short.
    ReadError
        If the sampled prefix cannot be read or decoded.
    """
    path = Path(path)
    first = _first_data_line(path, SAM_HEADER_PREFIX)

    if first is None:
        logger.debug("%s: no data lines in sampled prefix; accepted", path)
        return

    line_no, fields = first
    if len(fields) < MIN_SAM_FIELDS:
        raise FormatError("too few columns", path, line=line_no)

    # First data line is well formed; the rest is not checked
    logger.debug("%s looks like SAM (%d columns)", path, len(fields))


def validate_assembly_format(path: Path) -> None:
    """Sanity-check that *path* looks like an NCBI assembly report.

    Comment lines (``#``) are skipped.  The first data line within the
    first ``VALIDATION_SAMPLE_LINES`` lines must have at least
    ``MIN_REPORT_FIELDS`` TAB-separated columns and its fifth column must
    be a GenBank accession such as ``CP122180.1``.

    Raises
    ------
    FormatError
        ``"too few columns"`` or ``"bad accession"`` (with the field value).
    ReadError
        If the sampled prefix cannot be read or decoded.
    """
    path = Path(path)
    first = _first_data_line(path, REPORT_COMMENT_PREFIX)
    if first is None:
        return

    line_no, fields = first
    if len(fields) < MIN_REPORT_FIELDS:
        raise FormatError("too few columns", path, line=line_no)

    # Column 5 holds the GenBank accession
    accession: str = fields[4]
    if ACCESSION_PATTERN.fullmatch(accession) is None:
        raise FormatError("bad accession", path, line=line_no, value=accession)


# ---------------------------------------------------------------------------
# Read counting
# ---------------------------------------------------------------------------

@dataclass
class AlignmentScan:
    """Everything one pass over the SAM files produces.

    Attributes
    ----------
    per_file : pd.DataFrame
        Columns ``PER_FILE_COLUMNS``; one row per successfully read file.
    references : Counter[str]
        Aligned records per reference name over all read files, in the
        order accessions were first seen.
    skipped : list[Path]
        Files dropped under the ``"skip"`` read-error policy.
    """

    per_file: pd.DataFrame
    references: Counter[str]
    skipped: list[Path]

    @property
    def counters(self) -> RunCounters:
        """Totals over all files that were read."""
        return RunCounters(
            total_reads=int(self.per_file["total_reads"].sum()),
            aligned_reads=int(self.per_file["aligned_reads"].sum()),
        )


def _scan_alignment_file(path: Path) -> tuple[int, int, Counter[str]]:
    """Stream one SAM file once, tallying reads and aligned references.

    Returns
    -------
    tuple[int, int, Counter[str]]
        ``(total_reads, aligned_reads, reference_counts)`` for this file.

    Raises
    ------
    ReadError
        If the file cannot be opened or decoding fails mid-stream.
    """
    total: int = 0
    aligned: int = 0
    references: Counter[str] = Counter()

    try:
        with Path(path).open("r", encoding="utf-8") as handle:
            for line in handle:
                # Header lines are neither reads nor alignments
                if line.startswith(SAM_HEADER_PREFIX):
                    continue
                total += 1

                reference: str | None = aligned_reference(_split_fields(line))
                if reference is not None:
                    aligned += 1
                    references[reference] += 1
    except (OSError, UnicodeDecodeError) as exc:
        raise ReadError(path, exc) from exc

    return total, aligned, references


def _per_file_frame(rows: list[dict]) -> pd.DataFrame:
    """Build the per-file table, adding a divide-by-zero-safe rate column."""
    per_file: pd.DataFrame = pd.DataFrame(
        rows, columns=["file", "total_reads", "aligned_reads"],
    ).astype({"total_reads": int, "aligned_reads": int})

    # Percentage per file; empty files get 0 instead of a division by zero
    totals: np.ndarray = per_file["total_reads"].to_numpy(dtype=float)
    aligned_arr: np.ndarray = per_file["aligned_reads"].to_numpy(dtype=float)
    per_file["alignment_rate_pct"] = np.where(
        totals > 0,
        100.0 * aligned_arr / np.where(totals > 0, totals, 1.0),
        0.0,
    )

    return per_file[PER_FILE_COLUMNS]


def scan_alignments(
    paths: Sequence[Path],
    on_read_error: str = "fail",
) -> AlignmentScan:
    """Read every SAM file exactly once and collect counts and references.

    The read-error policy is applied here, once per file, so totals and
    per-chromosome counts always come from the same set of files.

    Parameters
    ----------
    paths : Sequence[Path]
        SAM files, processed in the given order.
    on_read_error : str
        ``"fail"`` (default) raises :class:`ReadError`; ``"skip"`` drops an
        unreadable file with a warning.  A dropped file contributes nothing,
        not even the lines read before the failure.

    Returns
    -------
    AlignmentScan
        Per-file table, combined reference tally and skipped files.
    """
    _choose_policy(on_read_error, READ_ERROR_POLICIES, "read-error policy")

    rows: list[dict] = []
    combined: Counter[str] = Counter()
    skipped: list[Path] = []

    for path in map(Path, paths):
        try:
            total, aligned, references = _scan_alignment_file(path)
        except ReadError as exc:
            if on_read_error == "fail":
                raise
            logger.warning("Skipping %s: %s", path, exc.cause)
            skipped.append(path)
            continue

        logger.info("  %s: %d reads, %d aligned", path, total, aligned)
        rows.append(
            {"file": str(path), "total_reads": total, "aligned_reads": aligned}
        )
        combined.update(references)

    return AlignmentScan(_per_file_frame(rows), combined, skipped)


def count_reads_per_file(
    paths: Sequence[Path],
    on_read_error: str = "fail",
) -> pd.DataFrame:
    """Count total and aligned reads separately for every SAM file.

    Returns
    -------
    pd.DataFrame
        Columns ``PER_FILE_COLUMNS``; one row per successfully read file.
    """
    return scan_alignments(paths, on_read_error).per_file


def count_reads(
    paths: Sequence[Path],
    on_read_error: str = "fail",
) -> RunCounters:
    """Count total and aligned reads across all SAM files.

    Non-header lines count toward the total; those whose reference is not
    ``*`` and whose position is a positive integer also count as aligned.
    Per-file sub-totals are logged at INFO level.

    Parameters
    ----------
    paths : Sequence[Path]
        SAM files, processed in the given order.
    on_read_error : str
        Read-failure policy, ``"fail"`` or ``"skip"``.

    Returns
    -------
    RunCounters
        Sums over all (successfully read) files.
    """
    logger.info("Counting total and aligned reads …")
    return scan_alignments(paths, on_read_error).counters


# ---------------------------------------------------------------------------
# Chromosome mapping
# ---------------------------------------------------------------------------

def _read_mapping(path: Path, on_duplicate: str) -> dict[str, str]:
    """Parse the assembly report lines into an accession → name dict."""
    mapping: dict[str, str] = {}

    with path.open("r", encoding="utf-8") as handle:
        for line_no, line in enumerate(handle, start=1):
            if line.startswith(REPORT_COMMENT_PREFIX):
                continue

            fields: list[str] = _split_fields(line)
            if len(fields) < MIN_MAPPING_FIELDS:
                continue

            # Column 1 = sequence name, column 5 = GenBank accession
            sequence_name: str = fields[0]
            accession: str = fields[4]
            if not sequence_name or not accession:
                continue

            previous: str | None = mapping.get(accession)
            if previous is not None and previous != sequence_name:
                if on_duplicate == "error":
                    raise FormatError(
                        "duplicate accession", path, line=line_no,
                        value=accession,
                    )
                logger.warning(
                    "Accession %s maps to both %s and %s (keeping %s)",
                    accession, previous, sequence_name,
                    previous if on_duplicate == "first" else sequence_name,
                )
            if previous is not None and on_duplicate == "first":
                continue

            mapping[accession] = sequence_name

    return mapping


def build_chromosome_map(
    assembly_report: Path,
    on_duplicate: str = "last",
) -> Mapping[str, str]:
    """Build an accession → chromosome-name table from an assembly report.

    Comment lines are skipped.  Every remaining line with at least
    ``MIN_MAPPING_FIELDS`` columns and a non-empty sequence name (column 1)
    and accession (column 5) contributes one entry.  The accession pattern
    is not enforced here.

    A missing, unreadable or undecodable report is not an error: a warning
    is logged and an empty map is returned, which makes every chromosome
    name ``"Unknown"`` later on.

    Parameters
    ----------
    assembly_report : Path
        Filesystem path to the assembly report.
    on_duplicate : str
        What to do when an accession appears twice: ``"last"`` (default,
        later lines overwrite earlier ones), ``"first"`` (keep the first
        line) or ``"error"`` (raise :class:`FormatError` on a conflicting
        duplicate).

    Returns
    -------
    Mapping[str, str]
        Accession → sequence name.
    """
    _choose_policy(on_duplicate, DUPLICATE_POLICIES, "duplicate policy")
    path = Path(assembly_report)

    logger.info("Processing assembly report …")
    if not path.is_file():
        logger.warning("Assembly report %s not found; chromosomes will be %r",
                       path, UNKNOWN_CHROMOSOME)
        return {}

    try:
        mapping: dict[str, str] = _read_mapping(path, on_duplicate)
    except (OSError, UnicodeDecodeError) as exc:
        # Never a partial map: either every row is joined or none is
        logger.warning(
            "Could not read assembly report %s (%s); chromosomes will be %r",
            path, exc, UNKNOWN_CHROMOSOME,
        )
        return {}

    logger.info("  Created mapping for %d chromosomes", len(mapping))
    return mapping


# ---------------------------------------------------------------------------
# Per-chromosome aggregation
# ---------------------------------------------------------------------------

def tally_aligned_references(
    paths: Sequence[Path],
    on_read_error: str = "fail",
) -> Counter[str]:
    """Count aligned records per reference name over all SAM files.

    Files are not distinguished: the result is one combined multiset whose
    iteration order is the order in which accessions were first seen.
    """
    return scan_alignments(paths, on_read_error).references


def join_chromosome_counts(
    tally: Mapping[str, int],
    chromosome_map: Mapping[str, str],
) -> list[ReportRow]:
    """Join per-accession counts to chromosome names and sort by count.

    With a non-empty *chromosome_map* the join is an inner join: accessions
    missing from the map produce no row.  With an empty map the join is
    skipped and every accession is reported as ``"Unknown"``.

    Parameters
    ----------
    tally : Mapping[str, int]
        Aligned-record count per accession, in first-seen order.
    chromosome_map : Mapping[str, str]
        Output of :func:`build_chromosome_map`.

    Returns
    -------
    list[ReportRow]
        Rows sorted by count, highest first; equal counts keep the order in
        which their accessions were first seen.  Empty if nothing aligned.
    """
    if not tally:
        logger.info("  No aligned reads found")
        return []

    # One row per distinct accession, in first-seen order
    count_df: pd.DataFrame = pd.DataFrame(
        {"accession": list(tally.keys()), "count": list(tally.values())}
    )

    if chromosome_map:
        map_df: pd.DataFrame = pd.DataFrame(
            {
                "accession": list(chromosome_map.keys()),
                "chromosome": list(chromosome_map.values()),
            }
        )
        # Inner join keeps the left (first-seen) order of accessions
        joined: pd.DataFrame = count_df.merge(map_df, on="accession", how="inner")

        dropped: int = len(count_df) - len(joined)
        if dropped:
            logger.info(
                "  %d accession(s) with aligned reads are absent from the "
                "assembly report and were dropped", dropped,
            )
    else:
        logger.warning(
            "No chromosome mapping available, showing raw reference names",
        )
        joined = count_df.assign(chromosome=UNKNOWN_CHROMOSOME)

    # Stable sort so ties keep first-seen order
    joined = joined.sort_values("count", ascending=False, kind="stable")

    return [
        ReportRow(str(acc), str(chrom), int(count))
        for acc, chrom, count in joined[ROW_COLUMNS].itertuples(index=False)
    ]


def aggregate_by_chromosome(
    paths: Sequence[Path],
    chromosome_map: Mapping[str, str],
    on_read_error: str = "fail",
) -> list[ReportRow]:
    """Tally aligned reads per accession and join them to chromosome names.

    Parameters
    ----------
    paths : Sequence[Path]
        SAM files to stream.
    chromosome_map : Mapping[str, str]
        Output of :func:`build_chromosome_map`.
    on_read_error : str
        Read-failure policy, ``"fail"`` or ``"skip"``.

    Returns
    -------
    list[ReportRow]
        See :func:`join_chromosome_counts`.
    """
    logger.info("Analyzing reads per chromosome …")
    return join_chromosome_counts(
        tally_aligned_references(paths, on_read_error), chromosome_map,
    )


def rows_to_frame(rows: Sequence[ReportRow]) -> pd.DataFrame:
    """Convert report rows into a DataFrame with columns ``ROW_COLUMNS``."""
    return pd.DataFrame(list(rows), columns=ROW_COLUMNS).astype({"count": int})


# ---------------------------------------------------------------------------
# Report assembly
# ---------------------------------------------------------------------------

def format_report(
    counters: RunCounters,
    rows: Sequence[ReportRow],
    generated_on: datetime | None = None,
    elapsed_seconds: float | None = None,
) -> str:
    """Render the plain-text summary report.

    Parameters
    ----------
    counters : RunCounters
        Read totals from :func:`count_reads`.
    rows : Sequence[ReportRow]
        Sorted rows from :func:`aggregate_by_chromosome`.
    generated_on : datetime or None
        If given, a ``Generated on:`` line is added under the title.
    elapsed_seconds : float or None
        If given, an execution-time footer is added.

    Returns
    -------
    str
        The report text, ending with a newline.
    """
    lines: list[str] = [
        "SAM File Analysis Results",
        "========================",
    ]
    if generated_on is not None:
        lines.append(f"Generated on: {generated_on:%a %b %d %H:%M:%S %Y}")
    lines.append("")

    lines.append(f"Total number of reads processed: {counters.total_reads}")
    lines.append(f"Number of aligned reads: {counters.aligned_reads}")

    # The rate is undefined for an empty run, so it is left out
    if counters.total_reads > 0:
        lines.append(f"Alignment rate: {counters.alignment_rate:.2f}%")

    lines.extend(["", "Reads aligned per chromosome:", "ACC\tCHR\tCOUNT"])

    if rows:
        lines.extend(f"{r.accession}\t{r.chromosome}\t{r.count}" for r in rows)
    else:
        lines.append(NO_CHROMOSOME_DATA)

    if elapsed_seconds is not None:
        lines.extend(
            ["", f"Script execution completed in {elapsed_seconds:.0f} seconds."]
        )

    return "\n".join(lines) + "\n"


def write_report(path: Path, text: str) -> None:
    """Write the report text to *path* (UTF-8), replacing any old file."""
    Path(path).write_text(text, encoding="utf-8")
    logger.info("Wrote %s", path)


# ---------------------------------------------------------------------------
# Visualisation
# ---------------------------------------------------------------------------

def plot_reads_per_chromosome(
    rows_df: pd.DataFrame,
    output_path: Path,
) -> None:
    """Create a bar chart of aligned reads per chromosome.

    Bars follow the row order (highest count first).  Each bar is labelled
    with its chromosome and accession, or just the accession when the
    chromosome is unknown.

    Parameters
    ----------
    rows_df : pd.DataFrame
        Output of :func:`rows_to_frame`.
    output_path : Path
        Where to save the PNG image.
    """
    if rows_df.empty:
        logger.warning("No aligned reads to plot; skipping %s", output_path)
        return

    plot_df: pd.DataFrame = rows_df.copy()

    # Accessions are unique, chromosome names may not be ("Unknown")
    plot_df["label"] = np.where(
        plot_df["chromosome"] == UNKNOWN_CHROMOSOME,
        plot_df["accession"],
        plot_df["chromosome"] + " (" + plot_df["accession"] + ")",
    )

    # Widen the figure with the number of bars, within sensible limits
    width: float = min(max(6.0, 0.5 * len(plot_df)), 24.0)
    plt.figure(figsize=(width, 6))

    sns.barplot(
        data=plot_df,
        x="label",  # x-axis: chromosome (accession)
        y="count",  # y-axis: aligned reads
        order=plot_df["label"].tolist(),  # keep the descending-count order
        color="steelblue",
    )

    plt.title("Aligned Reads per Chromosome")
    plt.xlabel("Chromosome")
    plt.ylabel("Aligned reads")

    # Rotate x-tick labels so long names don't overlap
    plt.xticks(rotation=45, ha="right")
    plt.tight_layout()

    plt.savefig(output_path, dpi=200)
    plt.close()

    logger.info("Saved per-chromosome bar chart to %s", output_path)


# ---------------------------------------------------------------------------
# CLI argument parsing
# ---------------------------------------------------------------------------

def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Parameters
    ----------
    argv : Sequence[str] or None
        Argument list; ``None`` means ``sys.argv[1:]``.

    Returns
    -------
    argparse.Namespace
        Parsed arguments.
    """
    parser = argparse.ArgumentParser(
        description=(
            "Process SAM files and generate alignment statistics, including "
            "aligned reads per chromosome from an assembly report."
        ),
        epilog="Example: %(prog)s SAM1 [SAM2 SAM3 ...] assembly_report.txt",
    )

    # Required: at least one SAM file followed by the assembly report
    parser.add_argument(
        "sam_files",
        type=Path,
        nargs="+",
        metavar="SAM",
        help="One or more SAM alignment files",
    )
    parser.add_argument(
        "assembly_report",
        type=Path,
        help="Assembly report with accession and chromosome mapping",
    )

    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("output.txt"),
        help="Text report to write (default: output.txt)",
    )

    # Optional: directory for CSV tables and the bar chart
    parser.add_argument(
        "--outdir",
        type=Path,
        default=None,
        help="Also write CSV tables and a bar chart into this directory",
    )

    parser.add_argument(
        "--skip-unreadable",
        action="store_true",
        help=(
            "Skip missing or unreadable SAM files with a warning instead of "
            "aborting (their reads are then not counted)"
        ),
    )

    parser.add_argument(
        "--duplicate-accessions",
        choices=DUPLICATE_POLICIES,
        default="last",
        help=(
            "How to resolve an accession listed twice in the assembly "
            "report (default: last)"
        ),
    )

    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Only log warnings and errors",
    )

    return parser.parse_args(argv)


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

def _usable_sam_files(sam_files: Sequence[Path], skip_unreadable: bool) -> list[Path]:
    """Check and validate SAM paths, dropping bad ones only in best-effort mode.

    Missing files and files whose sampled prefix cannot be read are fatal
    unless *skip_unreadable* is set.  Format errors are always fatal.
    """
    usable: list[Path] = []
    for sam_file in sam_files:
        try:
            check_input_file(sam_file, "SAM")
            validate_alignment_format(sam_file)
        except (MissingFileError, ReadError) as exc:
            if not skip_unreadable:
                raise
            logger.warning("%s, skipping", exc)
            continue
        usable.append(sam_file)
    return usable


def run(args: argparse.Namespace) -> tuple[RunCounters, list[ReportRow]]:
    """Validate inputs, count reads, aggregate and write all outputs.

    Returns
    -------
    tuple[RunCounters, list[ReportRow]]
        The numbers that went into the report.
    """
    start: float = time.perf_counter()
    on_read_error: str = "skip" if args.skip_unreadable else "fail"

    logger.info("Starting SAM file analysis …")
    logger.info("SAM files: %s", " ".join(str(p) for p in args.sam_files))
    logger.info("Assembly report: %s", args.assembly_report)

    # --- Step 1: existence and format checks, before any counting ---
    sam_files: list[Path] = _usable_sam_files(args.sam_files, args.skip_unreadable)
    check_input_file(args.assembly_report, "Assembly report")
    validate_assembly_format(args.assembly_report)

    # --- Step 2: one pass over the SAM files for totals and references ---
    logger.info("Counting total and aligned reads …")
    scan: AlignmentScan = scan_alignments(sam_files, on_read_error)
    counters: RunCounters = scan.counters
    if scan.skipped:
        logger.warning(
            "%d SAM file(s) could not be read and are not counted: %s",
            len(scan.skipped), ", ".join(str(p) for p in scan.skipped),
        )

    # --- Step 3: per-chromosome table ---
    chromosome_map: Mapping[str, str] = build_chromosome_map(
        args.assembly_report, on_duplicate=args.duplicate_accessions,
    )
    logger.info("Analyzing reads per chromosome …")
    rows: list[ReportRow] = join_chromosome_counts(scan.references, chromosome_map)

    # --- Step 4: optional tables and figure ---
    if args.outdir is not None:
        args.outdir.mkdir(parents=True, exist_ok=True)

        rows_df: pd.DataFrame = rows_to_frame(rows)
        rows_csv: Path = args.outdir / "reads_per_chromosome.csv"
        rows_df.to_csv(rows_csv, index=False)
        logger.info("Wrote %s", rows_csv)

        per_file_csv: Path = args.outdir / "reads_per_file.csv"
        scan.per_file.to_csv(per_file_csv, index=False)
        logger.info("Wrote %s", per_file_csv)

        sns.set_theme(style="whitegrid")
        plot_reads_per_chromosome(rows_df, args.outdir / "reads_per_chromosome.png")

    # --- Step 5: text report ---
    elapsed: float = time.perf_counter() - start
    write_report(
        args.output,
        format_report(
            counters, rows, generated_on=datetime.now(), elapsed_seconds=elapsed,
        ),
    )

    logger.info("Analysis complete! Results saved to %s", args.output)
    logger.info("Total reads: %d", counters.total_reads)
    logger.info("Aligned reads: %d", counters.aligned_reads)
    logger.info("Execution time: %.2f seconds", elapsed)

    return counters, rows


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def main(argv: Sequence[str] | None = None) -> int:
    """Run the full analysis; return the process exit status."""

    args: argparse.Namespace = parse_args(argv)

    # --- Set up logging to stderr ---
    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(levelname)s: %(message)s",  # simple format without timestamp
        stream=sys.stderr,  # keep stdout clean
    )

    try:
        run(args)
    except SamAnalysisError as exc:
        logger.error("%s", exc)
        return 1
    return 0

# Standard Python idiom: only run main() when executed as a script
if __name__ == "__main__":
    sys.exit(main())
