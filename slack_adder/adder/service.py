"""HTTP service that adds two integers."""

from __future__ import annotations

import structlog
from flask import Flask, jsonify, request
from pydantic import ValidationError

from slack_adder.adder.models import AddRequest, AddResponse
from slack_adder.logging_config import configure_logging

logger = structlog.get_logger(__name__)

DEFAULT_PORT = 8080


def add(payload: AddRequest) -> AddResponse:
    return AddResponse(sum=payload.num1 + payload.num2)


def create_adder_app() -> Flask:
    """Create the Flask application serving ``POST /``."""

    configure_logging()

    app = Flask(__name__)

    @app.route("/", methods=["POST"])
    def handle_add():
        try:
            payload = AddRequest.model_validate_json(request.get_data())
        except ValidationError as exc:
            logger.info("add_request_rejected", error=str(exc))
            return f"error reading request body: {exc}", 400, {"Content-Type": "text/plain; charset=utf-8"}

        result = add(payload)
        logger.info("add_request_served", num1=payload.num1, num2=payload.num2, sum=result.sum)
        return jsonify(result.model_dump()), 200

    @app.route("/healthz", methods=["GET"])
    def healthz():
        return jsonify({"ok": True}), 200

    return app


if __name__ == "__main__":  # pragma: no cover - manual execution helper
    create_adder_app().run(host="0.0.0.0", port=DEFAULT_PORT)
