from functools import wraps
import logging
import os

from flask import Flask, request, jsonify
from flask_cors import CORS

from repasses import Competence, JsonSnapshotStore, RepassePreviewProcessor
from repasses.authorization import (
    BUILD_SCHEDULE,
    PREVIEW_REPASSES,
    RECTIFY_INSTALLMENT,
    RENEGOTIATE_CONTRACT,
    can,
)

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

ENVIRONMENT = os.environ.get("ENVIRONMENT", "dev")


def require_capability(capability):
    """Authorization gate, evaluated once at the request boundary.

    The upstream auth gateway forwards the caller's role in X-User-Role.
    """
    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if not can(request.headers.get("X-User-Role"), capability):
                return jsonify({"error": "Access denied", "status": "forbidden"}), 403
            return view(*args, **kwargs)
        return wrapper
    return decorator


def create_app(store=None, processor=None):
    """
    Build the Flask app.

    Args:
        store: Snapshot store for GET /repasses/previa (anything with load()).
               Defaults to REPASSES_SNAPSHOT_PATH when set.
        processor: RepassePreviewProcessor to use
    """
    app = Flask(__name__)

    # Enable CORS for all routes (the React back office calls from another origin)
    CORS(app)

    if store is None and os.environ.get("REPASSES_SNAPSHOT_PATH"):
        store = JsonSnapshotStore(os.environ["REPASSES_SNAPSHOT_PATH"])
    processor = processor or RepassePreviewProcessor()

    @app.route("/api", methods=["GET"])
    def api_info():
        """API information endpoint"""
        return jsonify({
            "status": "ok",
            "message": "Repasses Payout API",
            "version": "1.0",
            "environment": ENVIRONMENT,
            "endpoints": {
                "previa": "/repasses/previa [GET, POST]",
                "retificacao": "/parcelas/retificacao [POST]",
                "cronograma": "/contratos/cronograma [POST]",
                "renegociacao": "/contratos/renegociacao [POST]",
                "health": "/health [GET]"
            }
        }), 200

    @app.route("/health", methods=["GET"])
    def health():
        """Health check for monitoring"""
        return jsonify({"status": "healthy", "environment": ENVIRONMENT}), 200

    @app.route("/repasses/previa", methods=["GET"])
    @require_capability(PREVIEW_REPASSES)
    def preview_query():
        """
        Payout preview for ?ano=&mes= against the configured snapshot
        """
        if store is None:
            return jsonify({
                "error": "No snapshot store configured",
                "status": "failed"
            }), 503

        def action():
            competence = Competence.from_dict(request.args)
            return processor.preview_to_dict(competence, store.load())

        return _run(action, f"preview {request.args.get('mes')}/{request.args.get('ano')}")

    @app.route("/repasses/previa", methods=["POST"])
    @require_capability(PREVIEW_REPASSES)
    def preview_body():
        """
        Payout preview with the snapshot sent in the request body
        """
        input_data = request.get_json(force=True, silent=True)
        if not input_data:
            return jsonify({
                "error": "No input data provided",
                "status": "failed"
            }), 400

        return _run(lambda: processor.process_from_dict(input_data), "preview from body")

    @app.route("/parcelas/retificacao", methods=["POST"])
    @require_capability(RECTIFY_INSTALLMENT)
    def rectification():
        """
        Preview the rectification of a scheduled installment
        """
        input_data = request.get_json(force=True, silent=True)
        if not input_data:
            return jsonify({
                "error": "No input data provided",
                "status": "failed"
            }), 400

        return _run(lambda: processor.rectify_from_dict(input_data), "installment rectification")

    @app.route("/contratos/cronograma", methods=["POST"])
    @require_capability(BUILD_SCHEDULE)
    def schedule():
        """
        Preview the payment schedule of a new contract
        """
        input_data = request.get_json(force=True, silent=True)
        if not input_data:
            return jsonify({
                "error": "No input data provided",
                "status": "failed"
            }), 400

        return _run(lambda: processor.schedule_from_dict(input_data), "payment schedule")

    @app.route("/contratos/renegociacao", methods=["POST"])
    @require_capability(RENEGOTIATE_CONTRACT)
    def renegotiation():
        """
        Preview the renegotiation of a contract into a new -R<n> contract
        """
        input_data = request.get_json(force=True, silent=True)
        if not input_data:
            return jsonify({
                "error": "No input data provided",
                "status": "failed"
            }), 400

        return _run(lambda: processor.renegotiate_from_dict(input_data), "contract renegotiation")

    return app


def _run(action, label):
    try:
        logger.info(f"Processing {label}")
        result = action()
        logger.info(f"{label} processed successfully")
        return jsonify(result), 200

    except (ValueError, KeyError, TypeError) as e:
        # Validation errors from engine
        logger.error(f"Validation error: {str(e)}")
        return jsonify({
            "error": str(e),
            "status": "validation_failed"
        }), 400

    except Exception as e:
        # Unexpected errors
        logger.error(f"Processing error: {str(e)}", exc_info=True)
        return jsonify({
            "error": "An unexpected error occurred during processing",
            "status": "failed"
        }), 500


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8080))
    create_app().run(host="0.0.0.0", port=port, debug=False)
