"""
AWS Lambda handler for the Repasses Payout API.

This is the production entry point for AWS Lambda deployments.
For local development, use main.py (Flask app) instead.

Authentication happens upstream (API Gateway authorizer); the caller's
role arrives in the X-User-Role header and is checked once per route.
"""

import base64
import json
import logging
import os

from repasses import Competence, JsonSnapshotStore, RepassePreviewProcessor
from repasses.authorization import (
    BUILD_SCHEDULE,
    PREVIEW_REPASSES,
    RECTIFY_INSTALLMENT,
    RENEGOTIATE_CONTRACT,
    can,
)

# Configure logging
logger = logging.getLogger()
logger.setLevel(logging.INFO)

# Environment (dev, staging, prod)
ENVIRONMENT = os.environ.get("ENVIRONMENT", "dev")

# Initialize processor (stateless, reused across warm invocations)
processor = RepassePreviewProcessor()

# CORS headers for API Gateway
CORS_HEADERS = {
    "Content-Type": "application/json",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type,Authorization,X-User-Role",
    "Access-Control-Allow-Methods": "GET,POST,OPTIONS",
}


def _response(status_code: int, payload) -> dict:
    return {"statusCode": status_code, "headers": CORS_HEADERS, "body": json.dumps(payload, ensure_ascii=False)}


def lambda_handler(event, context):
    """
    Main Lambda entry point.

    Handles API Gateway events for:
    - GET /health
    - GET /api
    - GET /repasses/previa?ano=&mes=
    - POST /repasses/previa
    - POST /parcelas/retificacao
    - POST /contratos/cronograma
    - POST /contratos/renegociacao
    - OPTIONS (CORS preflight)
    """
    # Handle CORS preflight
    http_method = event.get("httpMethod") or event.get("requestContext", {}).get("http", {}).get("method", "")
    if http_method == "OPTIONS":
        return {"statusCode": 200, "headers": CORS_HEADERS, "body": ""}

    # Get path (supports both REST API and HTTP API formats)
    path = event.get("path") or event.get("rawPath", "")

    # Route to appropriate handler
    if path == "/health" and http_method == "GET":
        return handle_health()
    elif path == "/api" and http_method == "GET":
        return handle_api_info()
    elif path == "/repasses/previa" and http_method in ("GET", "POST"):
        if not _allowed(event, PREVIEW_REPASSES):
            return _forbidden()
        if http_method == "GET":
            return handle_preview_query(event)
        return handle_body(event, processor.process_from_dict, "preview from body")
    elif path == "/parcelas/retificacao" and http_method == "POST":
        if not _allowed(event, RECTIFY_INSTALLMENT):
            return _forbidden()
        return handle_body(event, processor.rectify_from_dict, "installment rectification")
    elif path == "/contratos/cronograma" and http_method == "POST":
        if not _allowed(event, BUILD_SCHEDULE):
            return _forbidden()
        return handle_body(event, processor.schedule_from_dict, "payment schedule")
    elif path == "/contratos/renegociacao" and http_method == "POST":
        if not _allowed(event, RENEGOTIATE_CONTRACT):
            return _forbidden()
        return handle_body(event, processor.renegotiate_from_dict, "contract renegotiation")
    else:
        return _response(404, {"error": "Not found", "path": path})


def _allowed(event, capability: str) -> bool:
    headers = {str(k).lower(): v for k, v in (event.get("headers") or {}).items()}
    return can(headers.get("x-user-role"), capability)


def _forbidden():
    return _response(403, {"error": "Access denied", "status": "forbidden"})


def handle_health():
    """Health check endpoint."""
    return _response(200, {"status": "healthy", "environment": ENVIRONMENT})


def handle_api_info():
    """API information endpoint."""
    return _response(
        200,
        {
            "status": "ok",
            "message": "Repasses Payout API",
            "version": "1.0",
            "environment": ENVIRONMENT,
            "runtime": "AWS Lambda",
            "endpoints": {
                "previa": "/repasses/previa [GET, POST]",
                "retificacao": "/parcelas/retificacao [POST]",
                "cronograma": "/contratos/cronograma [POST]",
                "renegociacao": "/contratos/renegociacao [POST]",
                "health": "/health [GET]",
            },
        },
    )


def _parse_body(event):
    body = event.get("body", "")
    if isinstance(body, str):
        if not body:
            return None
        # Handle base64 encoded body (API Gateway)
        if event.get("isBase64Encoded"):
            body = base64.b64decode(body).decode("utf-8")
        return json.loads(body)
    return body


def _run(action, label: str):
    """Execute an engine call and map its errors to HTTP responses."""
    try:
        logger.info(f"Processing {label}")
        result = action()
        logger.info(f"{label} processed successfully")
        return _response(200, result)

    except json.JSONDecodeError as e:
        logger.error(f"JSON parse error: {str(e)}")
        return _response(400, {"error": f"Invalid JSON: {str(e)}", "status": "failed"})

    except (ValueError, KeyError, TypeError) as e:
        # Validation errors from engine (missing fields, invalid types, etc.)
        logger.error(f"Validation error: {str(e)}")
        return _response(400, {"error": f"Validation error: {str(e)}", "status": "validation_failed"})

    except Exception as e:
        # Unexpected errors - log details but return generic message to avoid information disclosure
        logger.error(f"Unexpected processing error: {str(e)}", exc_info=True)
        return _response(500, {"error": "An unexpected error occurred during processing", "status": "failed"})


def handle_preview_query(event):
    """Preview a competence against the configured snapshot file."""
    snapshot_path = os.environ.get("REPASSES_SNAPSHOT_PATH")
    if not snapshot_path:
        return _response(503, {"error": "No snapshot store configured", "status": "failed"})

    params = event.get("queryStringParameters") or {}

    def action():
        competence = Competence.from_dict(params)
        snapshot = JsonSnapshotStore(snapshot_path).load()
        return processor.preview_to_dict(competence, snapshot)

    return _run(action, f"preview {params.get('mes')}/{params.get('ano')}")


def handle_body(event, operation, label: str):
    """Run an engine operation on the JSON request body."""

    def action():
        input_data = _parse_body(event)
        if not input_data:
            raise ValueError("No input data provided")
        return operation(input_data)

    return _run(action, label)
