from flask import Blueprint, Response, jsonify, render_template, request

from arm_submissions.services.certificates import KINDS, CertificateNotIssuable, build_certificate_context
from arm_submissions.services.qr_code import render_qr_png
from arm_submissions.services.submission_store import StoreUnavailable
from arm_submissions.services.verification import build_verify_url
from arm_submissions.utils.logger import get_logger
from arm_submissions.utils.web import get_store, public_base_url, require_api_key


bp = Blueprint("certificates", __name__, url_prefix="/submissions")
logger = get_logger("certificates-routes")


def _load(sub_id: str):
    try:
        record = get_store().get_by_id(sub_id)
    except StoreUnavailable:
        return None, (jsonify({"error": "store unavailable"}), 503)
    if record is None:
        return None, (jsonify({"error": "submission not found"}), 404)
    return record, None


@bp.get("/<sub_id>/certificates")
@require_api_key
def certificates(sub_id: str):
    """Printable reference listing and/or consent letter. ?kind=ref|consent|both"""
    kind = request.args.get("kind", "both")
    if kind not in KINDS:
        return jsonify({"error": f"kind must be one of {', '.join(KINDS)}"}), 400
    record, error = _load(sub_id)
    if error:
        return error
    try:
        ctx = build_certificate_context(record, public_base_url(), kind=kind)
    except CertificateNotIssuable:
        return jsonify({"error": "certificates are issued only for received submissions"}), 409
    logger.info("Issuing %s certificate(s) for %s", kind, sub_id)
    return render_template("certificates.html", **ctx), 200


@bp.get("/<sub_id>/qr.png")
@require_api_key
def qr_png(sub_id: str):
    record, error = _load(sub_id)
    if error:
        return error
    png = render_qr_png(build_verify_url(public_base_url(), record.id))
    return Response(png, mimetype="image/png")
