from functools import wraps

from flask import current_app, jsonify, request

from arm_submissions.services.submission_store import SubmissionStore
from arm_submissions.services.verification import VerificationResolver


def require_api_key(view):
    """Bearer-token guard for administrator endpoints."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        expected_key = current_app.config.get("ADMIN_API_KEY")
        if not expected_key:
            return jsonify({"error": "Server not configured: ADMIN_API_KEY missing"}), 500
        authorization = request.headers.get("Authorization")
        if not authorization or not authorization.startswith("Bearer "):
            return jsonify({"error": "Missing bearer token"}), 401
        token = authorization.removeprefix("Bearer ").strip()
        if token != expected_key:
            return jsonify({"error": "Invalid token"}), 403
        return view(*args, **kwargs)

    return wrapper


def get_store() -> SubmissionStore:
    return current_app.extensions["submission_store"]


def get_resolver() -> VerificationResolver:
    return current_app.extensions["verification_resolver"]


def public_base_url() -> str:
    """Origin + path that verification links point at."""
    return current_app.config.get("PUBLIC_BASE_URL") or request.url_root
