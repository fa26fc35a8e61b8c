"""
Context for the two printable certificates issued for an accepted submission:
the reference listing (ma'lumotnoma) and the consent letter (rozilik xati).
"""


from datetime import date
from typing import Any, Optional

from arm_submissions.models.submission_schema import BookSubmission, SubmissionStatus
from arm_submissions.services.qr_code import qr_data_url
from arm_submissions.services.submission_form import HOME_INSTITUTION
from arm_submissions.services.verification import build_verify_url
from arm_submissions.utils.logger import get_logger


logger = get_logger("certificates")


KINDS = ("ref", "consent", "both")
REFERENCE_ROWS = 8

UZ_MONTHS = [
    "yanvar", "fevral", "mart", "aprel", "may", "iyun",
    "iyul", "avgust", "sentabr", "oktabr", "noyabr", "dekabr",
]


class CertificateNotIssuable(Exception):
    """Certificates exist only for RECEIVED submissions."""


def certificate_date(submission: BookSubmission, today: Optional[date] = None) -> date:
    raw = (submission.submission_date or "").strip()
    if raw:
        try:
            return date.fromisoformat(raw[:10])
        except ValueError:
            logger.warning("Submission %s has unparsable date %r; using today", submission.id, raw)
    return today or date.today()


def date_parts(d: date) -> dict[str, str]:
    return {
        "day": f"{d.day:02d}",
        "month_name": UZ_MONTHS[d.month - 1],
        "year": str(d.year),
        "formatted": d.strftime("%d.%m.%Y"),
    }


def build_certificate_context(
    submission: BookSubmission,
    base_url: str,
    kind: str = "both",
    today: Optional[date] = None,
) -> dict[str, Any]:
    if kind not in KINDS:
        raise ValueError(f"unknown certificate kind: {kind}")
    if submission.status is not SubmissionStatus.RECEIVED:
        raise CertificateNotIssuable(submission.id)

    verify_url = build_verify_url(base_url, submission.id)
    books = submission.books
    return {
        "submission": submission,
        "kind": kind,
        "show_ref": kind in ("ref", "both"),
        "show_consent": kind in ("consent", "both"),
        "date": date_parts(certificate_date(submission, today)),
        "verify_url": verify_url,
        "qr": qr_data_url(verify_url),
        "blank_rows": range(len(books) + 1, max(REFERENCE_ROWS, len(books)) + 1),
        "institution_title": (submission.institution or HOME_INSTITUTION).upper(),
        "long_text": len(books) > 3 or len(submission.full_name) > 25,
    }
