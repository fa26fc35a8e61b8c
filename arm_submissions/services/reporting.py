import csv
import io
from datetime import datetime, timedelta
from typing import Iterable, Optional
from zoneinfo import ZoneInfo

from arm_submissions.models.submission_schema import BookSubmission, SubmissionStatus
from arm_submissions.utils.config import TIMEZONE


PERIODS = ("all", "daily", "weekly", "monthly", "yearly")

EXPORT_HEADERS = ["F.I.Sh", "Muassasa", "Kafedra", "Lavozim", "Kitoblar Soni", "Holati", "Sana"]

# Only two labels exist in the export; REJECTED falls through to the pending one.
EXPORT_STATUS_LABELS = {SubmissionStatus.RECEIVED: "Qabul"}
EXPORT_DEFAULT_LABEL = "Kutilmoqda"


def _local(ts: datetime, tz: ZoneInfo) -> datetime:
    return ts.astimezone(tz)


def in_period(ts: datetime, period: str, now: datetime, tz: ZoneInfo) -> bool:
    if period == "all":
        return True
    local, today = _local(ts, tz), _local(now, tz)
    if period == "daily":
        return local.date() == today.date()
    if period == "weekly":
        return ts >= now - timedelta(days=7)
    if period == "monthly":
        return (local.year, local.month) == (today.year, today.month)
    if period == "yearly":
        return local.year == today.year
    raise ValueError(f"unknown period: {period}")


def matches_query(sub: BookSubmission, query: str) -> bool:
    q = query.strip().lower()
    if not q:
        return True
    fields = [sub.full_name, sub.department, sub.institution]
    fields.extend(b.title for b in sub.books)
    return any(q in (f or "").lower() for f in fields)


def filter_submissions(
    submissions: Iterable[BookSubmission],
    period: str = "all",
    query: str = "",
    status: Optional[SubmissionStatus] = None,
    now: Optional[datetime] = None,
    tz: Optional[ZoneInfo] = None,
) -> list[BookSubmission]:
    """Admin list filters: time period on submitted_at, free-text search, status."""
    if period not in PERIODS:
        raise ValueError(f"unknown period: {period}")
    tz = tz or ZoneInfo(TIMEZONE)
    now = now or datetime.now(tz)
    return [
        s for s in submissions
        if in_period(s.submitted_at, period, now, tz)
        and matches_query(s, query)
        and (status is None or s.status is status)
    ]


def export_filename(period: str) -> str:
    return f"ARM_Hisobot_{period}.csv"


def export_csv(submissions: Iterable[BookSubmission], tz: Optional[ZoneInfo] = None) -> str:
    """Spreadsheet-friendly report: UTF-8 text with a leading BOM."""
    tz = tz or ZoneInfo(TIMEZONE)
    output = io.StringIO()
    output.write("\ufeff")
    writer = csv.writer(output, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
    writer.writerow(EXPORT_HEADERS)
    for s in submissions:
        writer.writerow([
            s.full_name,
            s.institution,
            s.department,
            s.position,
            len(s.books),
            EXPORT_STATUS_LABELS.get(s.status, EXPORT_DEFAULT_LABEL),
            _local(s.submitted_at, tz).strftime("%d.%m.%Y"),
        ])
    return output.getvalue()
