"""File boundary - categorize uploaded exports and load them as row mappings.

Uploaded files are matched to their role by name:
- "new" in the filename: new-visitor export (required)
- "bookings": bookings export (required)
- "payment" / "payments": payments export (optional)
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

import pandas as pd
from studiostats.metrics.exceptions import MissingInputError
from studiostats.metrics.pipeline import MetricsPipeline, ProgressReporter
from studiostats.metrics.schema import ProcessingResult

logger = logging.getLogger(__name__)

FILE_PATTERNS = {
    "new": re.compile(r"new", re.IGNORECASE),
    "bookings": re.compile(r"bookings", re.IGNORECASE),
    "payments": re.compile(r"payments?", re.IGNORECASE),
}


@dataclass
class CategorizedFiles:
    """Uploaded files sorted by the export they contain."""

    new: Path | None = None
    bookings: Path | None = None
    payments: Path | None = None
    unknown: list[Path] = field(default_factory=list)

    def require(self) -> CategorizedFiles:
        """Check that both required exports are present.

        Raises:
            MissingInputError: If the new-visitor or bookings file is missing.
        """
        if self.new is None:
            raise MissingInputError("New client", "new")
        if self.bookings is None:
            raise MissingInputError("Bookings", "bookings")
        return self


def categorize_files(paths: Iterable[str | Path]) -> CategorizedFiles:
    """Assign each file to an export role by its filename.

    Rules are checked in the order new, bookings, payments; a later file
    with the same role replaces an earlier one.
    """
    categorized = CategorizedFiles()

    for raw_path in paths:
        path = Path(raw_path)
        name = path.name.lower()
        if FILE_PATTERNS["new"].search(name):
            categorized.new = path
        elif FILE_PATTERNS["bookings"].search(name):
            categorized.bookings = path
        elif FILE_PATTERNS["payments"].search(name):
            categorized.payments = path
        else:
            logger.warning(f"Could not categorize file {path.name}, ignoring")
            categorized.unknown.append(path)

    return categorized


def load_rows(path: str | Path) -> list[dict[str, str]]:
    """Read a CSV export into row mappings keyed by header.

    All values are read as strings; blank cells become ``""`` and blank lines
    are skipped.
    """
    df = pd.read_csv(
        path,
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
    )
    logger.info(f"Loaded {len(df)} rows from {Path(path).name}")
    return df.to_dict(orient="records")


def process_files(
    paths: Iterable[str | Path],
    progress: ProgressReporter | None = None,
    pipeline: MetricsPipeline | None = None,
) -> ProcessingResult:
    """Categorize, load and process a set of uploaded exports.

    Raises:
        MissingInputError: If a required export is missing.
    """
    files = categorize_files(paths).require()

    new_rows = load_rows(files.new)
    booking_rows = load_rows(files.bookings)
    sale_rows = load_rows(files.payments) if files.payments else []

    pipeline = pipeline or MetricsPipeline()
    return pipeline.run(new_rows, booking_rows, sale_rows, progress)
