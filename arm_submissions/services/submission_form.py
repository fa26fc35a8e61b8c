"""
Form gate for staff submissions.

Mirrors what the submission form enforces before anything reaches the
store: who is submitting, which department, and 1-6 complete book rows.
"""


from datetime import date
from typing import Any, Mapping, Optional

from arm_submissions.models.submission_schema import BookItem, SubmissionCreate
from arm_submissions.utils.logger import get_logger


logger = get_logger("submission-form")


HOME_INSTITUTION = "Jizzax Politexnika Instituti"
OTHER_DEPARTMENT = "OTHER"
MAX_BOOKS = 6
DEFAULT_BOOK_TYPE = "Darslik"

DEPARTMENTS = [
    "Transport vositalari muhandisligi", "Transport logistikasi", "Umumtexnika fanlari", "Ijtimoiy fanlar",
    "Qurilish muhandisligi", "Yo‘l muhandisligi", "Qurilish materiallari va konstruksiyalari",
    "Muhandislik kommunikatsiyalari", "Kimyoviy texnologiya", "Kimyo", "Arxitekturaviy loyihalash",
    "O‘zbek va xorijiy tillar", "To‘qimqchilik mahsulotlari texnologiyasi",
    "Tabiiy tolalar va matoga ishlov berish texnologiyalari",
    "Qishloq xo‘jalik va oziq – ovqat texnika texnologiyalari",
    "Ekologiya va mehnat muxofazasi", "Energetika va elektr texnologiyasi", "Metrologiya va standartlashtirish",
    "Fizika", "Oliy matemetika", "Kompyuter va dasturiy injiniring", "Jismoniy tarbiya",
    "Radioelektronika", "Iqtisodiyot va menejment",
]

BOOK_TYPES = [
    "Darslik", "Uslubiy ko'rsatma", "O'quv qo'llanma", "Badiiy adabiyot", "Uslubiy qo'llanma",
    "Lug'atlar", "Ma'lumotnomalar", "Ma'ruzalar to'plami", "O'quv-uslubiy majmua",
    "Ilmiy maqola", "Ilmiy tezis", "PhD dissertatsiya", "DSc dissertatsiya", "Monografiya", "Boshqa",
]


class FormValidationError(Exception):
    def __init__(self, errors: dict[str, str]):
        super().__init__(", ".join(f"{k}: {v}" for k, v in errors.items()))
        self.errors = errors


def _text(payload: Mapping[str, Any], key: str) -> str:
    value = payload.get(key)
    return str(value).strip() if value is not None else ""


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _int(value: Any, default: int) -> Optional[int]:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _resolve_department(payload: Mapping[str, Any], is_external: bool, errors: dict[str, str]) -> tuple[str, str]:
    institution = _text(payload, "institution")
    department = _text(payload, "department")
    if is_external:
        if not institution:
            errors["institution"] = "required"
        if not department:
            errors["department"] = "required"
        return institution, department

    institution = institution or HOME_INSTITUTION
    if department == OTHER_DEPARTMENT:
        department = _text(payload, "other_department")
        if not department:
            errors["other_department"] = "required"
    elif not department:
        errors["department"] = "required"
    elif department not in DEPARTMENTS:
        errors["department"] = "unknown department"
    return institution, department


def _parse_books(raw: Any, errors: dict[str, str], today: date) -> list[BookItem]:
    if not isinstance(raw, list) or not raw:
        errors["books"] = "at least one book is required"
        return []
    if len(raw) > MAX_BOOKS:
        errors["books"] = f"at most {MAX_BOOKS} books per submission"
        return []

    books = []
    for i, entry in enumerate(raw):
        prefix = f"books[{i}]"
        if not isinstance(entry, Mapping):
            errors[prefix] = "must be an object"
            continue
        title = _text(entry, "title")
        authors = _text(entry, "authors")
        book_type = _text(entry, "type") or DEFAULT_BOOK_TYPE
        quantity = _int(entry.get("quantity"), 1)
        year = _int(entry.get("published_year"), today.year)
        if not title:
            errors[f"{prefix}.title"] = "required"
        if not authors:
            errors[f"{prefix}.authors"] = "required"
        if book_type not in BOOK_TYPES:
            errors[f"{prefix}.type"] = "unknown literature type"
        if quantity is None or quantity < 1:
            errors[f"{prefix}.quantity"] = "must be a positive integer"
        if year is None:
            errors[f"{prefix}.published_year"] = "must be a year"
        books.append(BookItem(
            title=title,
            type=book_type,
            authors=authors,
            isbn=_text(entry, "isbn") or None,
            quantity=quantity if quantity is not None else 1,
            published_year=year,
        ))
    return books


def parse_submission_form(payload: Mapping[str, Any], today: Optional[date] = None) -> SubmissionCreate:
    """Validate a raw form payload and build the store input.

    Raises FormValidationError with every offending field; nothing is
    partially accepted.
    """
    today = today or date.today()
    errors: dict[str, str] = {}

    is_external = _flag(payload.get("is_external"))
    full_name = _text(payload, "full_name")
    position = _text(payload, "position")
    if not full_name:
        errors["full_name"] = "required"
    if not position:
        errors["position"] = "required"
    institution, department = _resolve_department(payload, is_external, errors)
    books = _parse_books(payload.get("books"), errors, today)

    if errors:
        logger.info("Form rejected: %s", ", ".join(sorted(errors)))
        raise FormValidationError(errors)

    return SubmissionCreate(
        full_name=full_name,
        institution=institution,
        department=department,
        position=position,
        is_external=is_external,
        submission_date=_text(payload, "submission_date") or today.isoformat(),
        books=books,
    )
