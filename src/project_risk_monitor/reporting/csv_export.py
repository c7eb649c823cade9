from __future__ import annotations

import csv
import io

from ..models import RankedTableSection, Report


def ranked_table_csv(report: Report) -> str:
    """The ranked-risk table as CSV text; header only when the table has no rows."""
    section = report.section("ranked_table")
    if not isinstance(section, RankedTableSection):
        return ""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(section.columns)
    for row in section.rows:
        writer.writerow([row.rank, row.activity_id, row.name, row.score, row.severity, row.status])
    return buffer.getvalue()
