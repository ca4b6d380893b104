"""CSV export of the canonical record collection."""

from __future__ import annotations

import csv
import io
import logging
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path

from ideaboard.config import CSV_FILENAME
from ideaboard.models.catalog import CRITERIA, business_model_label, status_label
from ideaboard.models.record import Record

logger = logging.getLogger(__name__)

BOM = "\ufeff"
DELIMITER = ";"
DEFAULT_DATE_FORMAT = "%d/%m/%Y"

HEADERS: tuple[str, ...] = (
    "ID",
    "Name",
    "Description",
    "Target Audience",
    "Cluster",
    "Business Model",
    "Status",
    "Creator",
    "Created",
    *(c.title for c in CRITERIA),
    "Revenue Estimate",
    "Total Score",
)


def format_date(timestamp: str | None, date_format: str = DEFAULT_DATE_FORMAT) -> str:
    if not timestamp:
        return ""
    try:
        return datetime.fromisoformat(timestamp).strftime(date_format)
    except ValueError:
        logger.debug("Unparsable creation timestamp %r exported as-is", timestamp)
        return timestamp


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def record_row(record: Record, date_format: str = DEFAULT_DATE_FORMAT) -> list[str]:
    return [
        str(record.id),
        record.name,
        record.description,
        record.target_audience,
        record.cluster,
        business_model_label(record.business_model),
        status_label(record.status),
        record.creator_name,
        format_date(record.creation_timestamp, date_format),
        *(str(score) for score in record.scores),
        _format_number(record.revenue_estimate),
        str(record.total),
    ]


def export_csv(records: Iterable[Record], *, date_format: str = DEFAULT_DATE_FORMAT) -> str:
    """Serialize records: every field quoted, ``;``-delimited, BOM-prefixed.

    Pass canonical records only; unsaved buffer edits never belong in an export.
    """
    out = io.StringIO()
    writer = csv.writer(out, delimiter=DELIMITER, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(HEADERS)
    for record in records:
        writer.writerow(record_row(record, date_format))
    content = out.getvalue()
    if content.endswith("\n"):
        content = content[:-1]
    return BOM + content


def write_csv(
    records: Iterable[Record],
    path: Path | None = None,
    *,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> Path:
    """Write the export to ``path`` (a directory gets the fixed filename)."""
    target = Path(path) if path else Path.cwd() / CSV_FILENAME
    if target.is_dir():
        target = target / CSV_FILENAME
    target.parent.mkdir(parents=True, exist_ok=True)
    # newline="" keeps the "\n" row separator on every platform
    with open(target, "w", encoding="utf-8", newline="") as f:
        f.write(export_csv(records, date_format=date_format))
    logger.info("Exported CSV to %s", target)
    return target
