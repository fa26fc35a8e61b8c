from dataclasses import dataclass
from enum import Enum
from typing import Optional
from urllib.parse import quote

from arm_submissions.models.submission_schema import BookSubmission
from arm_submissions.services.submission_store import StoreUnavailable, SubmissionStore
from arm_submissions.utils.logger import get_logger


logger = get_logger("verification")


VERIFY_PARAM = "verify"


class VerificationOutcome(str, Enum):
    VERIFIED = "verified"
    NOT_FOUND = "not_found"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class VerificationResult:
    submission_id: str
    outcome: VerificationOutcome
    record: Optional[BookSubmission] = None

    @property
    def verified(self) -> bool:
        return self.outcome is VerificationOutcome.VERIFIED


class VerificationResolver:
    """Resolves a certificate's identifier back to the stored submission.

    The identifier is the only credential. A deleted submission no longer
    verifies, which is how a certificate is revoked.
    """

    def __init__(self, store: SubmissionStore):
        self.store = store

    def verify(self, submission_id: str) -> VerificationResult:
        submission_id = (submission_id or "").strip()
        if not submission_id:
            return VerificationResult(submission_id, VerificationOutcome.NOT_FOUND)
        try:
            record = self.store.get_by_id(submission_id)
        except StoreUnavailable as e:
            logger.error("Verification lookup failed for %s: %s", submission_id, e)
            return VerificationResult(submission_id, VerificationOutcome.UNAVAILABLE)
        if record is None:
            logger.info("Verification miss: %s", submission_id)
            return VerificationResult(submission_id, VerificationOutcome.NOT_FOUND)
        logger.info("Verified submission %s", submission_id)
        return VerificationResult(submission_id, VerificationOutcome.VERIFIED, record)


def build_verify_url(base_url: str, submission_id: str) -> str:
    """``<origin><path>?verify=<id>``; any query or fragment on base_url is dropped."""
    base = base_url.split("#", 1)[0].split("?", 1)[0]
    return f"{base}?{VERIFY_PARAM}={quote(submission_id, safe='')}"
