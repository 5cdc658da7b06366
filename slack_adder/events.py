"""Models for Slack Events API envelopes.

Slack posts three kinds of envelope to the events endpoint, told apart by the
top-level ``type`` field. :func:`parse_event` turns the raw body into exactly
one of the classes in :data:`SlackEvent`; callers dispatch on the class.
"""

from __future__ import annotations

import json
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

URL_VERIFICATION = "url_verification"
APP_RATE_LIMITED = "app_rate_limited"
EVENT_CALLBACK = "event_callback"

APP_UNINSTALLED = "app_uninstalled"


class EventPayloadError(ValueError):
    """The body is not a well-formed envelope of a known type."""


class UnsupportedEventError(ValueError):
    """The envelope ``type`` is not one this service understands."""


class _Envelope(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class UrlVerificationEvent(_Envelope):
    type: Literal["url_verification"]
    challenge: str
    token: str | None = None


class AppRateLimitedEvent(_Envelope):
    type: Literal["app_rate_limited"]
    team_id: str | None = None
    minute_rate_limited: int | None = None
    api_app_id: str | None = None


class InnerEvent(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)

    type: str
    event_ts: str | None = None


class CallbackEvent(_Envelope):
    type: Literal["event_callback"]
    team_id: str
    api_app_id: str | None = None
    event_id: str | None = None
    event_time: int | None = None
    event: dict[str, Any] = Field(default_factory=dict)

    def inner_event(self) -> InnerEvent:
        """Validate and return the wrapped event."""

        try:
            return InnerEvent.model_validate(self.event)
        except ValidationError as exc:
            raise EventPayloadError(f"invalid inner event payload sent from slack: {exc}") from exc


SlackEvent = Union[UrlVerificationEvent, AppRateLimitedEvent, CallbackEvent]

_ENVELOPES: dict[str, tuple[type[_Envelope], str]] = {
    URL_VERIFICATION: (UrlVerificationEvent, "url verification"),
    APP_RATE_LIMITED: (AppRateLimitedEvent, "rate limited"),
    EVENT_CALLBACK: (CallbackEvent, "callback"),
}


def parse_event(raw_body: bytes) -> SlackEvent:
    """Decode *raw_body* into one of the supported envelope classes.

    Raises :class:`EventPayloadError` for undecodable or malformed bodies and
    :class:`UnsupportedEventError` for envelope types outside the union.
    """

    try:
        data = json.loads(raw_body)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise EventPayloadError(f"invalid slack event payload: {exc}") from exc
    if not isinstance(data, dict):
        raise EventPayloadError("invalid slack event payload: expected a JSON object")

    event_type = data.get("type")
    entry = _ENVELOPES.get(event_type) if isinstance(event_type, str) else None
    if entry is None:
        raise UnsupportedEventError("invalid event type sent from slack")

    model, label = entry
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise EventPayloadError(f"invalid {label} event payload sent from slack: {exc}") from exc
