import json
import queue

from flask import Blueprint, Response, current_app, jsonify, request
from pydantic import ValidationError

from arm_submissions.models.submission_schema import StatusUpdate, SubmissionStatus
from arm_submissions.services.reporting import PERIODS, export_csv, export_filename, filter_submissions
from arm_submissions.services.submission_form import FormValidationError, parse_submission_form
from arm_submissions.services.submission_store import (
    InvalidTransition,
    StoreUnavailable,
    SubmissionInvalid,
    SubmissionNotFound,
    SubmissionStore,
)
from arm_submissions.utils.logger import get_logger
from arm_submissions.utils.web import get_store, require_api_key


bp = Blueprint("submissions", __name__, url_prefix="/api/submissions")
logger = get_logger("submissions")


CREATED_MESSAGE = "Arizangiz qabul qilindi! ARM xodimi tekshirgandan so'ng hujjatlarni olishingiz mumkin."
WRITE_FAILED_MESSAGE = "Xatolik yuz berdi. Iltimos qaytadan urunib ko'ring."
DELETE_FAILED_MESSAGE = "O'chirishda xatolik yuz berdi."
NOT_FOUND_MESSAGE = "Ariza topilmadi."


class BadFilter(ValueError):
    pass


def _filters():
    period = request.args.get("period", "all")
    if period not in PERIODS:
        raise BadFilter(f"period must be one of {', '.join(PERIODS)}")
    status = request.args.get("status")
    if status:
        try:
            status = SubmissionStatus(status.upper())
        except ValueError:
            raise BadFilter("unknown status")
    return period, request.args.get("q", ""), status or None


@bp.post("")
def create_submission():
    """
    JSON form payload: {full_name, position, is_external, institution,
    department, other_department?, submission_date?, books: [...]}.
    """
    payload = request.get_json(silent=True) or {}
    try:
        data = parse_submission_form(payload)
    except FormValidationError as e:
        return jsonify({"error": "validation_failed", "fields": e.errors}), 400

    try:
        sub_id = get_store().create(data)
    except SubmissionInvalid as e:
        return jsonify({"error": "validation_failed", "details": e.errors}), 422
    except StoreUnavailable:
        return jsonify({"error": WRITE_FAILED_MESSAGE}), 503
    return jsonify({"id": sub_id, "message": CREATED_MESSAGE}), 201


@bp.get("")
@require_api_key
def list_submissions():
    try:
        period, query, status = _filters()
    except BadFilter as e:
        return jsonify({"error": str(e)}), 400
    try:
        records = get_store().list_all()
    except StoreUnavailable:
        return jsonify({"error": WRITE_FAILED_MESSAGE}), 503

    records = filter_submissions(records, period=period, query=query, status=status)
    limit = request.args.get("limit", type=int)
    if limit is not None and limit >= 0:
        records = records[:limit]
    return jsonify({
        "count": len(records),
        "submissions": [r.model_dump(mode="json") for r in records],
    }), 200


@bp.get("/export.csv")
@require_api_key
def export_submissions():
    try:
        period, query, status = _filters()
    except BadFilter as e:
        return jsonify({"error": str(e)}), 400
    try:
        records = get_store().list_all()
    except StoreUnavailable:
        return jsonify({"error": WRITE_FAILED_MESSAGE}), 503

    records = filter_submissions(records, period=period, query=query, status=status)
    logger.info("Exporting %d submission(s) for period %s", len(records), period)
    return Response(
        export_csv(records).encode("utf-8"),
        mimetype="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export_filename(period)}"'},
    )


def snapshot_events(store: SubmissionStore, keepalive: float = 15.0):
    """Server-Sent Events over the store's change feed.

    Each event carries the full ordered collection; the subscription is
    released when the client goes away and the generator is closed.
    """
    inbox: queue.Queue = queue.Queue()
    sub = store.subscribe_all(inbox.put)
    try:
        while True:
            try:
                snapshot = inbox.get(timeout=keepalive)
            except queue.Empty:
                yield ": keepalive\n\n"
                continue
            payload = [r.model_dump(mode="json") for r in snapshot]
            yield f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"
    finally:
        sub.unsubscribe()


@bp.get("/stream")
@require_api_key
def stream_submissions():
    events = snapshot_events(get_store(), current_app.config.get("STREAM_KEEPALIVE", 15.0))
    return Response(
        events,
        mimetype="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@bp.get("/<sub_id>")
@require_api_key
def get_submission(sub_id: str):
    try:
        record = get_store().get_by_id(sub_id)
    except StoreUnavailable:
        return jsonify({"error": WRITE_FAILED_MESSAGE}), 503
    if record is None:
        return jsonify({"error": NOT_FOUND_MESSAGE}), 404
    return jsonify(record.model_dump(mode="json")), 200


@bp.post("/<sub_id>/status")
@require_api_key
def update_status(sub_id: str):
    """JSON: { status: PENDING|RECEIVED|REJECTED }"""
    try:
        update = StatusUpdate.model_validate(request.get_json(silent=True) or {})
    except ValidationError:
        return jsonify({"error": "status must be one of PENDING, RECEIVED, REJECTED"}), 400

    try:
        get_store().update_status(sub_id, update.status)
    except SubmissionNotFound:
        return jsonify({"error": NOT_FOUND_MESSAGE}), 404
    except InvalidTransition as e:
        return jsonify({"error": str(e)}), 409
    except StoreUnavailable:
        return jsonify({"error": WRITE_FAILED_MESSAGE}), 503
    return jsonify({"id": sub_id, "status": update.status.value}), 200


@bp.delete("/<sub_id>")
@require_api_key
def delete_submission(sub_id: str):
    try:
        get_store().delete(sub_id)
    except StoreUnavailable:
        return jsonify({"error": DELETE_FAILED_MESSAGE}), 503
    return jsonify({"id": sub_id, "deleted": True}), 200
