from datetime import datetime
from enum import Enum
from typing import Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator


class SubmissionStatus(str, Enum):
    PENDING = "PENDING"
    RECEIVED = "RECEIVED"
    REJECTED = "REJECTED"


STATUS_LABELS = {
    SubmissionStatus.PENDING: "Kutilmoqda",
    SubmissionStatus.RECEIVED: "Qabul qilindi",
    SubmissionStatus.REJECTED: "Rad etildi",
}


class BookItem(BaseModel):
    """One literature item inside a submission. Stored rows are read as-is."""

    model_config = ConfigDict(extra="ignore")

    title: str = ""
    type: str = ""
    authors: str = ""
    isbn: Optional[str] = None
    quantity: int = 1
    # legacy rows may hold the year as text; it is returned unchanged
    published_year: Optional[Union[int, str]] = None


class BookSubmission(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    full_name: str = ""
    institution: str = ""
    department: str = ""
    position: str = ""
    is_external: bool = False
    submission_date: Optional[str] = None
    submitted_at: datetime
    received_at: Optional[datetime] = None
    status: SubmissionStatus = SubmissionStatus.PENDING
    books: list[BookItem] = Field(default_factory=list)

    @property
    def short_id(self) -> str:
        return self.id[:8]

    @property
    def status_label(self) -> str:
        return STATUS_LABELS[self.status]


class SubmissionCreate(BaseModel):
    """Fields a submitter provides; the store fills in id, status and timestamps."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    full_name: str = Field(..., min_length=1)
    institution: str = Field(..., min_length=1)
    department: str = Field(..., min_length=1)
    position: str = Field(..., min_length=1)
    is_external: bool = False
    submission_date: Optional[str] = None
    books: list[BookItem] = Field(..., min_length=1)

    @field_validator("books")
    @classmethod
    def _books_complete(cls, books: list[BookItem]) -> list[BookItem]:
        for i, book in enumerate(books, start=1):
            if not book.title.strip():
                raise ValueError(f"book {i}: title is required")
            if not book.authors.strip():
                raise ValueError(f"book {i}: authors are required")
            if book.quantity < 1:
                raise ValueError(f"book {i}: quantity must be positive")
        return books


WRITABLE_FIELDS = frozenset(SubmissionCreate.model_fields)


class StatusUpdate(BaseModel):
    status: SubmissionStatus
