"""Application entry point for the Slack Adder integration service."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Mapping, assert_never
from uuid import uuid4

import structlog
from flask import Blueprint, Flask, Response, g, jsonify, redirect, request
from slack_sdk.errors import SlackApiError, SlackClientError
from structlog.contextvars import bind_contextvars, unbind_contextvars
from werkzeug.exceptions import HTTPException

from slack_adder.adder import AdderClient, AdderServiceError
from slack_adder.commands import (
    CommandArgumentError,
    SlashCommandPayloadError,
    format_sum_message,
    parse_plus_arguments,
    parse_slash_command,
)
from slack_adder.config import AppSettings, get_settings
from slack_adder.db import create_db_engine, create_session_factory
from slack_adder.events import (
    APP_UNINSTALLED,
    AppRateLimitedEvent,
    CallbackEvent,
    EventPayloadError,
    UnsupportedEventError,
    UrlVerificationEvent,
    parse_event,
)
from slack_adder.logging_config import configure_logging
from slack_adder.security import (
    SLACK_SIGNATURE_HEADER,
    SLACK_TIMESTAMP_HEADER,
    is_valid_slack_request,
)
from slack_adder.slack_client import (
    OAuthExchangeError,
    OAuthResult,
    SlackClient,
    exchange_oauth_code,
)
from slack_adder.tokens import TokenStore, TokenStoreError, init_token_store

SlackClientFactory = Callable[[str], SlackClient]
OAuthExchanger = Callable[..., OAuthResult]

INSTALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]
DEFAULT_PORT = 3000


def _text(message: str, status: int) -> Response:
    return Response(message, status=status, mimetype="text/plain")


def _slack_error(exc: SlackClientError) -> str:
    if isinstance(exc, SlackApiError):
        return exc.response.get("error") or str(exc)
    return str(exc)


def _default_slack_client_factory(token: str) -> SlackClient:
    return SlackClient(token=token)


def _handle_installation(
    *,
    args: Mapping[str, str],
    settings: AppSettings,
    store: TokenStore,
    exchange: OAuthExchanger,
) -> Response:
    log = structlog.get_logger()

    if "error" in args:
        log.info("install_declined", error=args.get("error"))
        return _text("error installing app", 200)

    code = args.get("code")
    if not code:
        return _text("missing mandatory 'code' query parameter", 400)

    try:
        result = exchange(client_id=settings.client_id, client_secret=settings.client_secret, code=code)
    except OAuthExchangeError as exc:
        log.error("oauth_exchange_failed", error=str(exc))
        return _text(f"error exchanging temporary code for access token: {exc}", 500)

    try:
        store.put(result.team_id, result.access_token)
    except TokenStoreError as exc:
        log.error("token_store_failed", team_id=result.team_id, error=str(exc))
        return _text(f"error storing slack access token: {exc}", 500)

    log.info("install_completed", team_id=result.team_id, app_id=result.app_id)
    return redirect(f"slack://app?team={result.team_id}&id={result.app_id}&tab=about", code=302)


def _handle_plus_command(
    *,
    raw_body: bytes,
    store: TokenStore,
    adder: AdderClient,
    slack_client_factory: SlackClientFactory,
) -> Response:
    log = structlog.get_logger()

    try:
        command = parse_slash_command(raw_body)
    except SlashCommandPayloadError as exc:
        return _text(f"invalid slash command payload: {exc}", 400)

    log = log.bind(team_id=command.team_id, user_id=command.user_id)
    log.info("plus_command_received", command=command.command, text=command.text)

    try:
        operands = parse_plus_arguments(command.text)
    except CommandArgumentError as exc:
        return _text(str(exc), 400)

    try:
        result = adder.add(operands)
    except AdderServiceError as exc:
        return _text(str(exc), 500)

    try:
        token = store.get(command.team_id)
    except TokenStoreError as exc:
        log.error("token_lookup_failed", error=str(exc))
        return _text(f"error reading slack access token: {exc}", 500)

    if token is None:
        log.warning("token_missing")
        return _text(f"error sending slack message: no access token stored for team {command.team_id}", 500)

    try:
        slack_client_factory(token).send_direct_message(
            user_id=command.user_id, text=format_sum_message(result.sum)
        )
    except SlackClientError as exc:
        log.error("slack_message_failed", error=_slack_error(exc))
        return _text(f"error sending slack message: {_slack_error(exc)}", 500)

    log.info("plus_command_answered", sum=result.sum)
    return _text("", 200)


def _handle_callback_event(event: CallbackEvent, store: TokenStore) -> Response:
    log = structlog.get_logger().bind(team_id=event.team_id, event_id=event.event_id)

    try:
        inner = event.inner_event()
    except EventPayloadError as exc:
        return _text(str(exc), 400)

    if inner.type != APP_UNINSTALLED:
        log.info("event_unhandled", event_type=inner.type)
        return _text("no handler for event of given type", 400)

    try:
        store.delete(event.team_id)
    except TokenStoreError as exc:
        log.error("app_uninstall_failed", error=str(exc))
        return _text("error handling app uninstallation", 500)

    log.info("app_uninstalled")
    return _text("", 200)


def _handle_event(*, raw_body: bytes, store: TokenStore) -> Response:
    try:
        event = parse_event(raw_body)
    except (EventPayloadError, UnsupportedEventError) as exc:
        return _text(str(exc), 400)

    if isinstance(event, UrlVerificationEvent):
        return jsonify({"challenge": event.challenge})
    if isinstance(event, AppRateLimitedEvent):
        structlog.get_logger().warning(
            "app_rate_limited", team_id=event.team_id, minute_rate_limited=event.minute_rate_limited
        )
        return _text("ack", 200)
    if isinstance(event, CallbackEvent):
        return _handle_callback_event(event, store)
    assert_never(event)


def _signature_gate(settings: AppSettings) -> Callable[[], Response | None]:
    """Build a ``before_request`` hook rejecting requests not signed by Slack.

    The raw body is read once and kept on ``g.raw_body``; handlers parse that
    buffer instead of the request stream.
    """

    def verify_signature() -> Response | None:
        raw_body = request.get_data(cache=True)
        if not is_valid_slack_request(
            signing_secret=settings.signing_secret,
            timestamp=request.headers.get(SLACK_TIMESTAMP_HEADER, ""),
            body=raw_body,
            signature=request.headers.get(SLACK_SIGNATURE_HEADER, ""),
            tolerance=settings.signature_tolerance,
        ):
            structlog.get_logger().warning("signature_rejected", path=request.path)
            response = jsonify({"error": "invalid_signature"})
            response.status_code = 401
            return response
        g.raw_body = raw_body
        return None

    return verify_signature


def _register_error_handlers(flask_app: Flask) -> None:
    """Register a JSON error handler that attaches a trace identifier."""

    @flask_app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):  # type: ignore[override]
        if isinstance(error, HTTPException):
            return error
        trace_id = g.get("trace_id") or str(uuid4())
        flask_app.logger.exception(
            "Unhandled application error", extra={"trace_id": trace_id}, exc_info=error
        )
        response = jsonify({"error": "internal_server_error", "trace_id": trace_id})
        response.status_code = 500
        return response


def _register_tracing(flask_app: Flask) -> None:
    @flask_app.before_request
    def bind_trace_id() -> None:
        g.trace_id = str(uuid4())
        bind_contextvars(trace_id=g.trace_id)

    @flask_app.teardown_request
    def unbind_trace_id(_exc: BaseException | None) -> None:
        unbind_contextvars("trace_id")


def _create_token_store(settings: AppSettings) -> TokenStore:
    engine = create_db_engine(settings.database_url)
    init_token_store(engine)
    return TokenStore(create_session_factory(engine))


def _load_version() -> str:
    version_file = Path(__file__).resolve().parent / "VERSION"
    if version_file.exists():
        return version_file.read_text(encoding="utf-8").strip()
    return "unknown"


def create_app(
    settings: AppSettings | None = None,
    *,
    token_store: TokenStore | None = None,
    adder_client: AdderClient | None = None,
    slack_client_factory: SlackClientFactory | None = None,
    oauth_exchange: OAuthExchanger | None = None,
) -> Flask:
    """Create and configure the Flask application.

    Collaborators default to the real implementations built from *settings*;
    passing them in replaces them wholesale.
    """

    configure_logging()

    settings = settings or get_settings()
    store = token_store or _create_token_store(settings)
    adder = adder_client or AdderClient(settings.adder_service_url, timeout=settings.http_timeout)
    client_factory = slack_client_factory or _default_slack_client_factory
    exchange = oauth_exchange or exchange_oauth_code

    flask_app = Flask(__name__)
    flask_app.config["APP_VERSION"] = _load_version()
    flask_app.logger.setLevel("INFO")

    _register_error_handlers(flask_app)
    _register_tracing(flask_app)

    @flask_app.route("/install", methods=INSTALL_METHODS)
    def install():
        return _handle_installation(args=request.args, settings=settings, store=store, exchange=exchange)

    cmd = Blueprint("cmd", __name__, url_prefix="/cmd")
    cmd.before_request(_signature_gate(settings))

    @cmd.route("/plus", methods=["POST"])
    def plus():
        return _handle_plus_command(
            raw_body=g.raw_body, store=store, adder=adder, slack_client_factory=client_factory
        )

    event = Blueprint("event", __name__, url_prefix="/event")
    event.before_request(_signature_gate(settings))

    @event.route("/handle", methods=["POST"])
    def handle_event():
        return _handle_event(raw_body=g.raw_body, store=store)

    flask_app.register_blueprint(cmd)
    flask_app.register_blueprint(event)

    @flask_app.route("/healthz", methods=["GET"])
    def healthz():
        health: dict[str, object] = {"ok": True}
        health["version"] = flask_app.config.get("APP_VERSION", "unknown")
        health["config"] = "valid"
        try:
            store.ping()
            health["db"] = "up"
        except TokenStoreError as exc:
            health["db"] = "down"
            health["db_error"] = str(exc)
            health["ok"] = False

        status = 200 if health["ok"] else 503
        return jsonify(health), status

    return flask_app


if __name__ == "__main__":  # pragma: no cover - manual execution helper
    application = create_app()
    application.run(host="0.0.0.0", port=DEFAULT_PORT)
