from flask import Blueprint, jsonify, render_template

from arm_submissions.services.verification import VerificationOutcome
from arm_submissions.utils.logger import get_logger
from arm_submissions.utils.web import get_resolver, public_base_url


bp = Blueprint("verification", __name__, url_prefix="/api/verify")
logger = get_logger("verification-routes")


@bp.get("/<sub_id>")
def verify_json(sub_id: str):
    result = get_resolver().verify(sub_id)
    if result.verified:
        return jsonify({"verified": True, "submission": result.record.model_dump(mode="json")}), 200
    status_code = 503 if result.outcome is VerificationOutcome.UNAVAILABLE else 404
    return jsonify({"verified": False, "reason": result.outcome.value}), status_code


def render_verification(sub_id: str):
    """Authentic / not-found card. Store failures read as not found here."""
    result = get_resolver().verify(sub_id)
    html = render_template(
        "verification.html",
        result=result,
        record=result.record,
        home_url=public_base_url(),
    )
    return html, 200 if result.verified else 404
