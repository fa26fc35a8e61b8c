from flask import Blueprint, jsonify
from arm_submissions.utils.logger import get_logger
from arm_submissions.utils.web import get_store


bp = Blueprint("health", __name__, url_prefix="/api/system")
logger = get_logger("health")


@bp.get("/health")
def health():
    store = get_store()
    status = {"flask": "ok", "store": "down", "backend": getattr(store.backend, "name", "unknown")}
    try:
        status["store"] = "ok" if store.backend.ping() else "down"
    except Exception as e:
        logger.warning("Store health probe failed: %s", e)
        status["store"] = "down"
    return jsonify(status), 200
