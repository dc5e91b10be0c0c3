"""
Work-log export: CSV (UTF-8 with BOM, Excel friendly) and XLSX.

Both formats share the column layout below and receive rows already
filtered and scoped by ``collect_export_rows``.
"""

import csv
import io
import logging

from openpyxl import Workbook
from openpyxl.styles import Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from workhours.core.exceptions import ForbiddenError
from workhours.models.work_log import WorkLog
from workhours.services.work_log_service import (
    UNKNOWN_CATEGORY,
    UNKNOWN_PROJECT,
    UNKNOWN_USER,
    filtered_query,
    resolve_scope_user_ids,
    with_display_fields,
)

logger = logging.getLogger(__name__)

EXPORT_HEADERS = ["Date", "User", "Hours", "Project", "Category", "Details"]
MAX_EXPORT_ROWS = 10000
UTF8_BOM = "\ufeff"

HEADER_FILL = PatternFill(start_color="354A5F", end_color="354A5F", fill_type="solid")
HEADER_FONT = Font(color="FFFFFF", bold=True, size=11)
THIN_BORDER = Border(
    left=Side(style="thin"),
    right=Side(style="thin"),
    top=Side(style="thin"),
    bottom=Side(style="thin"),
)
_COLUMN_WIDTHS = [12, 24, 8, 30, 24, 60]


def collect_export_rows(params, caller) -> list[list[str]]:
    """Resolve scope, run the filtered query and flatten rows for writing.

    An explicit ``userId`` overrides scope; non-admins may only name themselves.
    """
    if params.user_id:
        if params.user_id != caller.id and not caller.is_admin:
            raise ForbiddenError("You can only export your own work logs")
        user_ids = [params.user_id]
    else:
        user_ids = resolve_scope_user_ids(params.scope, caller)

    q = filtered_query(
        user_ids=user_ids,
        start_date=params.start_date,
        end_date=params.end_date,
        project_ids=params.project_ids,
        category_ids=params.category_ids,
    )
    rows = (
        with_display_fields(q)
        .order_by(WorkLog.date.asc(), WorkLog.created_at.asc())
        .limit(MAX_EXPORT_ROWS)
        .all()
    )
    out = []
    for log, project_name, category_name, user_name, user_email in rows:
        out.append([
            log.date.isoformat(),
            user_name or user_email or UNKNOWN_USER,
            log.hours,
            project_name or UNKNOWN_PROJECT,
            category_name or UNKNOWN_CATEGORY,
            log.details or "",
        ])
    logger.info("Export collected %d rows", len(out), extra={"user_id": caller.id})
    return out


def generate_work_log_csv(rows: list[list[str]]) -> str:
    """CSV text starting with a BOM; quoting handles commas, quotes and newlines."""
    buf = io.StringIO()
    buf.write(UTF8_BOM)
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(EXPORT_HEADERS)
    writer.writerows(rows)
    return buf.getvalue()


def generate_work_log_xlsx(rows: list[list[str]], title: str = "Work Logs") -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = title[:31]

    for col, header in enumerate(EXPORT_HEADERS, 1):
        cell = ws.cell(row=1, column=col, value=header)
        cell.fill = HEADER_FILL
        cell.font = HEADER_FONT
        cell.border = THIN_BORDER
    for r, row in enumerate(rows, 2):
        for col, value in enumerate(row, 1):
            cell = ws.cell(row=r, column=col, value=value)
            cell.border = THIN_BORDER
    for col, width in enumerate(_COLUMN_WIDTHS, 1):
        ws.column_dimensions[get_column_letter(col)].width = width
    ws.freeze_panes = "A2"

    buf = io.BytesIO()
    wb.save(buf)
    buf.seek(0)
    return buf.getvalue()
