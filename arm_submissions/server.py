from typing import Optional

from flask import Flask, jsonify, request

from arm_submissions.routes.certificates import bp as certificates_bp
from arm_submissions.routes.health import bp as health_bp
from arm_submissions.routes.submissions import bp as submissions_bp
from arm_submissions.routes.verification import bp as verification_bp, render_verification
from arm_submissions.services.submission_store import SubmissionStore, build_store
from arm_submissions.services.verification import VERIFY_PARAM, VerificationResolver
from arm_submissions.utils import config
from arm_submissions.utils.logger import get_logger


logger = get_logger("server")


def create_app(store: Optional[SubmissionStore] = None, **overrides) -> Flask:
    app = Flask(__name__)
    app.config.update(
        ADMIN_API_KEY=config.ADMIN_API_KEY,
        PUBLIC_BASE_URL=config.PUBLIC_BASE_URL,
        STREAM_KEEPALIVE=config.STREAM_KEEPALIVE,
    )
    app.config.update(overrides)
    app.json.ensure_ascii = False

    if store is None:
        store = build_store()
    app.extensions["submission_store"] = store
    app.extensions["verification_resolver"] = VerificationResolver(store)

    app.register_blueprint(health_bp)
    app.register_blueprint(submissions_bp)
    app.register_blueprint(verification_bp)
    app.register_blueprint(certificates_bp)


    @app.get("/")
    def root():
        # ?verify=<id> switches the whole page to the verification card
        if VERIFY_PARAM in request.args:
            return render_verification(request.args.get(VERIFY_PARAM, ""))
        return jsonify({"service": "arm-submissions", "env": config.FLASK_ENV})


    return app


app = create_app()


if __name__ == "__main__":
    logger.info("Starting arm-submissions on %s:%s (%s)", config.HOST, config.PORT, config.FLASK_ENV)
    app.run(host=config.HOST, port=config.PORT)
